"""
Pydantic schemas for upload endpoints.
"""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional


class PresignRequest(BaseModel):
    """Request schema for write-credential issuance."""
    filename: str = Field(..., min_length=1, description="Original filename")
    content_type: str = Field(..., description="MIME type (e.g., 'image/jpeg')")
    size: int = Field(..., gt=0, description="File size in bytes")
    folder: Optional[str] = Field(None, description="Folder to place the object under")
    
    class Config:
        json_schema_extra = {
            "example": {
                "filename": "cat.png",
                "content_type": "image/png",
                "size": 1048576,
                "folder": "photos"
            }
        }


class PresignResponse(BaseModel):
    """Response schema for a write credential."""
    upload_url: str = Field(..., description="Presigned PUT URL for direct upload")
    key: str = Field(..., description="Object key in storage bucket")
    expires_in: int = Field(..., description="URL expiration time in seconds")
    expires_at: datetime = Field(..., description="Instant after which the URL is unusable")
    
    class Config:
        json_schema_extra = {
            "example": {
                "upload_url": "https://s3.ap-southeast-1.amazonaws.com/photo-journal/photos/...",
                "key": "photos/0b7e2c1a-5f0e-4f7a-9b1e-3c2d1a0f9e8d-cat.png",
                "expires_in": 360,
                "expires_at": "2026-01-01T12:06:00Z"
            }
        }


class DirectUploadRequest(BaseModel):
    """Request schema for a server-mediated upload."""
    filename: str = Field(..., min_length=1, description="Original filename")
    content_type: str = Field(..., description="MIME type (e.g., 'image/jpeg')")
    folder: Optional[str] = Field(None, description="Folder to place the object under")
    data: str = Field(..., description="Base64-encoded file bytes")


class DirectUploadResponse(BaseModel):
    """Response schema for a server-mediated upload."""
    key: str = Field(..., description="Object key in storage bucket")
    public_url: str = Field(..., description="Unsigned public URL of the object")


class DeleteObjectResponse(BaseModel):
    """Response schema for object deletion."""
    success: bool = Field(..., description="Whether the object is gone")
    key: str = Field(..., description="Deleted object key")


class PresignedUrlResponse(BaseModel):
    url: str

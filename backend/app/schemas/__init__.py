"""
Pydantic schemas for request/response validation.
"""
from app.schemas.auth import CallerIdentity
from app.schemas.photo import Address, PhotoCreate, PhotoResponse
from app.schemas.upload import (
    DeleteObjectResponse,
    DirectUploadRequest,
    DirectUploadResponse,
    PresignRequest,
    PresignResponse,
    PresignedUrlResponse,
)

__all__ = [
    "Address",
    "CallerIdentity",
    "DeleteObjectResponse",
    "DirectUploadRequest",
    "DirectUploadResponse",
    "PhotoCreate",
    "PhotoResponse",
    "PresignRequest",
    "PresignResponse",
    "PresignedUrlResponse",
]

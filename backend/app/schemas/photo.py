"""
Pydantic schemas for photo record endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class Address(BaseModel):
    """Reverse-geocoded location attached to a photo."""
    country: Optional[str] = None
    country_code: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    full_address: Optional[str] = None
    place_formatted: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class PhotoCreate(BaseModel):
    """Schema for committing an uploaded object as a photo record."""
    key: str = Field(..., min_length=1, description="Object key returned by the upload")
    title: str = Field("", description="Photo title")
    description: Optional[str] = Field(None, description="Journal text")
    
    make: Optional[str] = None
    model: Optional[str] = None
    lens_model: Optional[str] = None
    focal_length: Optional[float] = None
    focal_length_35mm: Optional[float] = None
    f_number: Optional[float] = None
    iso: Optional[int] = None
    exposure_time: Optional[float] = None
    exposure_compensation: Optional[float] = None
    date_taken: Optional[datetime] = None
    gps_altitude: Optional[float] = None
    
    width: int = Field(0, ge=0)
    height: int = Field(0, ge=0)
    blur_data: Optional[str] = None
    
    address: Optional[Address] = Field(None, description="Location, if known")
    
    class Config:
        json_schema_extra = {
            "example": {
                "key": "photos/0b7e2c1a-5f0e-4f7a-9b1e-3c2d1a0f9e8d-cat.png",
                "title": "Cat on a wall",
                "width": 4000,
                "height": 3000,
                "address": {"country": "Japan", "country_code": "JP", "city": "Kyoto"}
            }
        }


class PhotoResponse(BaseModel):
    """Schema for photo response."""
    id: str
    user_id: str
    key: str
    url: str = ""
    title: str
    description: Optional[str] = None
    make: Optional[str] = None
    model: Optional[str] = None
    lens_model: Optional[str] = None
    focal_length: Optional[float] = None
    f_number: Optional[float] = None
    iso: Optional[int] = None
    exposure_time: Optional[float] = None
    date_taken: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None
    full_address: Optional[str] = None
    place_formatted: Optional[str] = None
    width: int
    height: int
    aspect_ratio: float
    blur_data: Optional[str] = None
    created_at: datetime
    
    class Config:
        from_attributes = True

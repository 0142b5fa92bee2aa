"""
Photo model: the durable record that references an uploaded object.

The image bytes live in object storage; this row only stores the key.
Deleting a photo row does NOT delete the stored object.

Lifecycle:
1. Client obtains a presigned URL and uploads to storage directly
2. Client submits the photo form -> row created referencing the key
3. (Discarded uploads never get a row; their object is deleted instead)
"""
from sqlalchemy import Column, String, Integer, Float, DateTime, Text, Index
from sqlalchemy.sql import func

from app.models.base import Base, generate_uuid


class Photo(Base):
    """
    Photo metadata model.
    
    Attributes:
        id: Unique identifier (UUID)
        user_id: Owner (Firebase uid)
        key: Object key in the bucket, or a full URL for legacy rows
        title / description: Journal text
        make ... date_taken: Camera parameters taken from EXIF
        latitude / longitude / gps_altitude: Where the photo was taken
        country ... place_formatted: Reverse-geocoded address
        width / height / aspect_ratio / blur_data: Rendering hints
    """
    __tablename__ = "photos"
    
    id = Column(String, primary_key=True, default=generate_uuid)
    user_id = Column(String(128), nullable=False, index=True)
    
    # Object key, e.g. photos/{uuid}-cat.png
    key = Column(String(1024), nullable=False, unique=True)
    
    title = Column(String(255), nullable=False, default="")
    description = Column(Text, nullable=True)
    
    # Camera parameters
    make = Column(String(255), nullable=True)
    model = Column(String(255), nullable=True)
    lens_model = Column(String(255), nullable=True)
    focal_length = Column(Float, nullable=True)
    focal_length_35mm = Column(Float, nullable=True)
    f_number = Column(Float, nullable=True)
    iso = Column(Integer, nullable=True)
    exposure_time = Column(Float, nullable=True)
    exposure_compensation = Column(Float, nullable=True)
    date_taken = Column(DateTime(timezone=True), nullable=True)
    
    # Location
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    gps_altitude = Column(Float, nullable=True)
    country = Column(String(255), nullable=True)
    country_code = Column(String(8), nullable=True)
    region = Column(String(255), nullable=True)
    city = Column(String(255), nullable=True)
    district = Column(String(255), nullable=True)
    full_address = Column(Text, nullable=True)
    place_formatted = Column(Text, nullable=True)
    
    # Rendering
    width = Column(Integer, nullable=False, default=0)
    height = Column(Integer, nullable=False, default=0)
    aspect_ratio = Column(Float, nullable=False, default=1.0)
    blur_data = Column(Text, nullable=True)
    
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    
    __table_args__ = (
        Index('ix_photos_user_created', 'user_id', 'created_at'),
        Index('ix_photos_city', 'city'),
    )
    
    def __repr__(self):
        return f"<Photo(id={self.id}, user={self.user_id}, key={self.key})>"

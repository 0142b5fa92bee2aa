"""
Photo service: the record store side of upload reconciliation.

Creating a photo commits an uploaded key; deleting a photo removes only the
row. The stored object is left alone because discard is the only path that
deletes objects.
"""
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Any, Mapping, Optional
import logging

from app.models.photo import Photo
from app.schemas.photo import Address, PhotoCreate

logger = logging.getLogger(__name__)

_ADDRESS_FIELDS = (
    "country",
    "country_code",
    "region",
    "city",
    "district",
    "full_address",
    "place_formatted",
)


class PhotoService:
    """Service for photo record business logic."""
    
    @staticmethod
    async def create_photo(db: AsyncSession, user_id: str, data: PhotoCreate) -> Photo:
        """
        Create a photo record referencing an uploaded object key.
        
        Args:
            db: Database session
            user_id: Owner of the record
            data: Validated photo fields including the key
        """
        fields = data.model_dump(exclude={"address"})
        address: Optional[Address] = data.address
        
        if address is not None:
            for name in _ADDRESS_FIELDS:
                fields[name] = getattr(address, name)
            # EXIF coordinates win; the address only fills gaps
            if address.latitude is not None and fields.get("latitude") is None:
                fields["latitude"] = address.latitude
            if address.longitude is not None and fields.get("longitude") is None:
                fields["longitude"] = address.longitude
        
        fields["aspect_ratio"] = data.width / data.height if data.height else 1.0
        
        photo = Photo(user_id=user_id, **fields)
        db.add(photo)
        await db.commit()
        await db.refresh(photo)
        
        logger.info(
            f"Photo created: {photo.id}",
            extra={"event": "photo_created", "key": photo.key, "user_id": user_id},
        )
        return photo
    
    @staticmethod
    async def create_from_mapping(db: AsyncSession, user_id: str, key: str, metadata: Mapping[str, Any]) -> Photo:
        """Adapter used by the reconciler: (key, metadata) -> record."""
        return await PhotoService.create_photo(db, user_id, PhotoCreate(key=key, **metadata))
    
    @staticmethod
    async def get_photo(db: AsyncSession, photo_id: str, user_id: str) -> Optional[Photo]:
        result = await db.execute(
            select(Photo).where(Photo.id == photo_id, Photo.user_id == user_id)
        )
        return result.scalar_one_or_none()
    
    @staticmethod
    async def list_photos(db: AsyncSession, user_id: str, limit: int = 50, offset: int = 0) -> list[Photo]:
        result = await db.execute(
            select(Photo)
            .where(Photo.user_id == user_id)
            .order_by(Photo.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
    
    @staticmethod
    async def referenced_keys(db: AsyncSession) -> set[str]:
        """Every key (or legacy URL) any photo record points at."""
        result = await db.execute(select(Photo.key))
        return set(result.scalars().all())
    
    @staticmethod
    async def is_key_referenced(db: AsyncSession, key: str) -> bool:
        """True if any photo, whoever owns it, has committed key."""
        result = await db.execute(select(Photo.id).where(Photo.key == key).limit(1))
        return result.scalar_one_or_none() is not None
    
    @staticmethod
    async def delete_photo(db: AsyncSession, photo_id: str, user_id: str) -> bool:
        """
        Delete a photo record. The stored object is NOT deleted.
        
        Returns:
            True if a row was deleted, False if it did not exist
        """
        photo = await PhotoService.get_photo(db, photo_id, user_id)
        if photo is None:
            return False
        
        await db.delete(photo)
        await db.commit()
        logger.info(
            f"Photo deleted: {photo_id}",
            extra={"event": "photo_deleted", "key": photo.key, "user_id": user_id},
        )
        return True

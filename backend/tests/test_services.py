"""
Tests for the photo service.
"""
import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.photo import Address, PhotoCreate
from app.services.photo_service import PhotoService


class TestPhotoService:
    """Tests for PhotoService."""
    
    @pytest.mark.asyncio
    async def test_create_photo_flattens_address(self, db_session: AsyncSession):
        """Test the address struct is flattened into columns."""
        photo = await PhotoService.create_photo(
            db_session,
            "uid-1",
            PhotoCreate(
                key="photos/a.jpg",
                title="Temple",
                width=3000,
                height=2000,
                address=Address(country="Japan", country_code="JP", city="Kyoto", latitude=35.0, longitude=135.7),
            ),
        )
        
        assert photo.id is not None
        assert photo.city == "Kyoto"
        assert photo.country_code == "JP"
        assert photo.latitude == 35.0
        assert photo.longitude == 135.7
        assert photo.aspect_ratio == pytest.approx(1.5)
    
    @pytest.mark.asyncio
    async def test_zero_height_aspect_ratio(self, db_session: AsyncSession):
        """Test missing dimensions give an aspect ratio of 1."""
        photo = await PhotoService.create_photo(db_session, "uid-1", PhotoCreate(key="photos/b.jpg"))
        
        assert photo.aspect_ratio == 1.0
    
    @pytest.mark.asyncio
    async def test_duplicate_key_rejected(self, db_session: AsyncSession):
        """Test one key backs at most one photo."""
        await PhotoService.create_photo(db_session, "uid-1", PhotoCreate(key="photos/a.jpg"))
        
        with pytest.raises(IntegrityError):
            await PhotoService.create_photo(db_session, "uid-2", PhotoCreate(key="photos/a.jpg"))
    
    @pytest.mark.asyncio
    async def test_create_from_mapping(self, db_session: AsyncSession):
        """Test creating a photo from reconciler metadata."""
        photo = await PhotoService.create_from_mapping(
            db_session, "uid-1", "photos/c.jpg", {"title": "Cat", "iso": 200}
        )
        
        assert photo.key == "photos/c.jpg"
        assert photo.iso == 200
    
    @pytest.mark.asyncio
    async def test_photos_are_scoped_to_owner(self, db_session: AsyncSession):
        """Test photos are only visible to their owner."""
        photo = await PhotoService.create_photo(db_session, "uid-1", PhotoCreate(key="photos/a.jpg"))
        
        assert await PhotoService.get_photo(db_session, photo.id, "uid-2") is None
        assert await PhotoService.list_photos(db_session, "uid-2") == []
        assert await PhotoService.delete_photo(db_session, photo.id, "uid-2") is False
        assert [p.id for p in await PhotoService.list_photos(db_session, "uid-1")] == [photo.id]
    
    @pytest.mark.asyncio
    async def test_referenced_keys(self, db_session: AsyncSession):
        """Test referenced keys include legacy URLs."""
        await PhotoService.create_photo(db_session, "uid-1", PhotoCreate(key="photos/a.jpg"))
        await PhotoService.create_photo(db_session, "uid-2", PhotoCreate(key="https://cdn.example.com/old.jpg"))
        
        assert await PhotoService.referenced_keys(db_session) == {
            "photos/a.jpg",
            "https://cdn.example.com/old.jpg",
        }
    
    @pytest.mark.asyncio
    async def test_delete_photo(self, db_session: AsyncSession):
        """Test deleting a photo record."""
        photo = await PhotoService.create_photo(db_session, "uid-1", PhotoCreate(key="photos/a.jpg"))
        
        assert await PhotoService.delete_photo(db_session, photo.id, "uid-1") is True
        assert await PhotoService.get_photo(db_session, photo.id, "uid-1") is None
    
    @pytest.mark.asyncio
    async def test_is_key_referenced_ignores_owner(self, db_session: AsyncSession):
        """Test a committed key counts as referenced for every caller."""
        await PhotoService.create_photo(db_session, "uid-1", PhotoCreate(key="photos/a.jpg"))
        
        assert await PhotoService.is_key_referenced(db_session, "photos/a.jpg") is True
        assert await PhotoService.is_key_referenced(db_session, "photos/uncommitted.jpg") is False

"""
Photo record endpoints.

Creating a photo commits an uploaded key. Deleting a photo removes the record
only; the stored object stays (discarding objects goes through
DELETE /uploads/objects/{key}).
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user, get_key_resolver
from app.config import settings
from app.database import get_db
from app.models.photo import Photo
from app.schemas.auth import CallerIdentity
from app.schemas.photo import PhotoCreate, PhotoResponse
from app.services.photo_service import PhotoService
from app.storage.resolver import KeyResolver

router = APIRouter()


def _to_response(photo: Photo, resolver: KeyResolver, signed: bool = False) -> PhotoResponse:
    response = PhotoResponse.model_validate(photo)
    if signed:
        response.url = resolver.resolve_presigned(photo.key, settings.read_credential_expiration)
    else:
        response.url = resolver.resolve(photo.key)
    return response


@router.post("", response_model=PhotoResponse, status_code=status.HTTP_201_CREATED)
async def create_photo(
    request: PhotoCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CallerIdentity = Depends(get_current_user),
    resolver: KeyResolver = Depends(get_key_resolver),
):
    """
    Commit an uploaded object as a photo record.
    
    Each key can back at most one photo; a second commit is a 409.
    """
    try:
        photo = await PhotoService.create_photo(db, current_user.uid, request)
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="A photo already references this key"
        )
    
    return _to_response(photo, resolver)


@router.get("", response_model=list[PhotoResponse])
async def list_photos(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    signed: bool = Query(False, description="Return presigned read URLs"),
    db: AsyncSession = Depends(get_db),
    current_user: CallerIdentity = Depends(get_current_user),
    resolver: KeyResolver = Depends(get_key_resolver),
):
    photos = await PhotoService.list_photos(db, current_user.uid, limit=limit, offset=offset)
    return [_to_response(p, resolver, signed) for p in photos]


@router.get("/{photo_id}", response_model=PhotoResponse)
async def get_photo(
    photo_id: str,
    signed: bool = Query(False, description="Return a presigned read URL"),
    db: AsyncSession = Depends(get_db),
    current_user: CallerIdentity = Depends(get_current_user),
    resolver: KeyResolver = Depends(get_key_resolver),
):
    photo = await PhotoService.get_photo(db, photo_id, current_user.uid)
    if not photo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found"
        )
    return _to_response(photo, resolver, signed)


@router.delete("/{photo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_photo(
    photo_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: CallerIdentity = Depends(get_current_user),
):
    """Delete the photo record. The stored object is left in place."""
    deleted = await PhotoService.delete_photo(db, photo_id, current_user.uid)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Photo not found"
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

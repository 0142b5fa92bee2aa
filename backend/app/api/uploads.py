"""
Upload endpoints.

Implements the direct-to-storage upload flow:
1. POST /uploads/presign - Get a presigned PUT URL and the object key
2. (client PUTs the file straight to storage)
3. POST /photos to commit the key, or DELETE /uploads/objects/{key} to discard

POST /uploads/direct is the fallback for browsers that cannot PUT
cross-origin: the payload comes inline (base64) and the server writes it.

Security:
- All endpoints require Firebase JWT authentication
- Presigned URLs expire after 6 minutes (configurable)
- Each URL is bound to one key, one content type and one size

Presign and direct upload are plain ``def``: boto3 is blocking, so FastAPI
runs them in its threadpool. Delete also reads the record store, so it is
async and hands the boto3 call to a worker thread.
"""
import asyncio

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.errors import to_http_exception
from app.auth.dependencies import get_credential_issuer, get_current_user
from app.config import settings
from app.database import get_db
from app.errors import PhotoJournalError
from app.schemas.auth import CallerIdentity
from app.schemas.upload import (
    DeleteObjectResponse,
    DirectUploadRequest,
    DirectUploadResponse,
    PresignRequest,
    PresignResponse,
)
from app.services.photo_service import PhotoService
from app.storage.presign import CredentialIssuer

router = APIRouter()


def _folder(requested):
    return requested if requested is not None else settings.default_upload_folder


@router.post("/presign", response_model=PresignResponse)
def presign_upload(
    request: PresignRequest,
    current_user: CallerIdentity = Depends(get_current_user),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
):
    """
    Issue a presigned URL for one direct upload.
    
    The client must PUT exactly ``size`` bytes with the same
    ``Content-Type`` before the URL expires.
    """
    try:
        issued = issuer.issue_write_credential(
            current_user,
            filename=request.filename,
            content_type=request.content_type,
            size=request.size,
            folder=_folder(request.folder),
        )
    except PhotoJournalError as e:
        raise to_http_exception(e)
    
    return PresignResponse(
        upload_url=issued.credential.url,
        key=issued.key,
        expires_in=settings.write_credential_expiration,
        expires_at=issued.credential.expires_at,
    )


@router.delete("/objects/{key:path}", response_model=DeleteObjectResponse)
async def delete_object(
    key: str,
    db: AsyncSession = Depends(get_db),
    current_user: CallerIdentity = Depends(get_current_user),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
):
    """
    Delete an uploaded object (discard / reupload).
    
    Idempotent: deleting a key that does not exist succeeds. Only
    uncommitted objects can be discarded; a key a photo references is a 409.
    """
    if await PhotoService.is_key_referenced(db, key):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Object is referenced by a photo"
        )
    
    try:
        result = await asyncio.to_thread(issuer.delete_object, current_user, key)
    except PhotoJournalError as e:
        raise to_http_exception(e)
    
    return DeleteObjectResponse(success=result.success, key=result.key)


@router.post("/direct", response_model=DirectUploadResponse, status_code=status.HTTP_201_CREATED)
def direct_upload(
    request: DirectUploadRequest,
    current_user: CallerIdentity = Depends(get_current_user),
    issuer: CredentialIssuer = Depends(get_credential_issuer),
):
    """
    Write an inline base64 payload to storage from the server.
    
    The object is fully written before this responds.
    """
    try:
        stored = issuer.store_object(
            current_user,
            filename=request.filename,
            content_type=request.content_type,
            payload_base64=request.data,
            folder=_folder(request.folder),
        )
    except PhotoJournalError as e:
        raise to_http_exception(e)
    
    return DirectUploadResponse(key=stored.key, public_url=stored.public_url)

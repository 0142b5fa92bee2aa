"""
Read-URL endpoint for rendering stored photos in the browser.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.auth.dependencies import get_current_user, get_key_resolver
from app.config import settings
from app.schemas.auth import CallerIdentity
from app.schemas.upload import PresignedUrlResponse
from app.storage.resolver import KeyResolver

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/presigned-url", response_model=PresignedUrlResponse)
def presigned_url(
    key: Optional[str] = None,
    current_user: CallerIdentity = Depends(get_current_user),
    resolver: KeyResolver = Depends(get_key_resolver),
):
    """
    Return a signed GET URL for key.
    
    Responds ``{"url": ...}``, or ``{"error": ...}`` with 400 when key is
    missing. Signing problems degrade to the public URL inside the resolver,
    so 500 only covers unexpected failures.
    """
    if not key:
        return JSONResponse({"error": "Missing key parameter"}, status_code=400)
    
    try:
        url = resolver.resolve_presigned(key, settings.read_credential_expiration)
    except Exception:
        logger.exception(f"Error generating presigned URL for {key}")
        return JSONResponse({"error": "Failed to generate presigned URL"}, status_code=500)
    
    return PresignedUrlResponse(url=url)

"""
FastAPI dependencies for authentication and shared collaborators.

get_current_user is the authorization gate: it fails closed with 401 for a
missing, invalid or unverifiable token.
"""
import logging
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from app.auth.firebase import verify_firebase_token
from app.config import settings
from app.schemas.auth import CallerIdentity
from app.storage.presign import CredentialIssuer
from app.storage.resolver import KeyResolver
from app.storage.s3_client import StorageClient

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes 401 rather than 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CallerIdentity:
    """
    Verify the Firebase ID token and return the caller identity.
    
    Raises:
        HTTPException 401: If token is missing, invalid, or expired, or if
            the verifier itself is unavailable
    """
    token = credentials.credentials if credentials else None
    
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    try:
        decoded_token = verify_firebase_token(token)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except RuntimeError as e:
        logger.error(f"Token verification unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication unavailable",
            headers={"WWW-Authenticate": "Bearer"},
        )
    
    uid = decoded_token.get("uid")
    if not uid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing uid"
        )
    
    return CallerIdentity(uid=uid, email=decoded_token.get("email"))


def get_storage_client(request: Request) -> StorageClient:
    """The process-wide storage client built in the app lifespan."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = StorageClient(settings)
        request.app.state.storage = storage
    return storage


def get_key_resolver(storage: StorageClient = Depends(get_storage_client)) -> KeyResolver:
    return KeyResolver(storage, settings.s3_public_url)


def get_credential_issuer(
    storage: StorageClient = Depends(get_storage_client),
    resolver: KeyResolver = Depends(get_key_resolver),
) -> CredentialIssuer:
    return CredentialIssuer(storage, settings, resolver=resolver)

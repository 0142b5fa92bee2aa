"""
Firebase Admin SDK wiring for the authorization gate.
Initialized once from the app lifespan; tokens are verified per request.
"""
import json
import os
import logging
from typing import Optional
import firebase_admin
from firebase_admin import credentials, auth
from app.config import settings

logger = logging.getLogger(__name__)


_firebase_app: Optional[firebase_admin.App] = None


def _load_credentials(value: Optional[str]):
    """
    Build a credential from FIREBASE_CREDENTIALS_JSON.
    
    The value may be a path to a service-account file or the JSON itself.
    With no value, application default credentials are used (gcloud login).
    """
    if not value:
        return credentials.ApplicationDefault()
    
    if os.path.exists(value):
        logger.info(f"Loaded Firebase credentials from file: {value}")
        return credentials.Certificate(value)
    
    try:
        cred_dict = json.loads(value)
    except json.JSONDecodeError:
        raise ValueError(
            "FIREBASE_CREDENTIALS_JSON must be a valid file path or JSON string"
        )
    logger.info("Loaded Firebase credentials from JSON string")
    return credentials.Certificate(cred_dict)


def initialize_firebase() -> None:
    """Initialize the Firebase Admin SDK (idempotent)."""
    global _firebase_app
    
    if _firebase_app is not None:
        return
    
    if not settings.firebase_project_id:
        raise ValueError("FIREBASE_PROJECT_ID must be set")
    
    _firebase_app = firebase_admin.initialize_app(
        _load_credentials(settings.firebase_credentials_json),
        {"projectId": settings.firebase_project_id}
    )


def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token and return its claims.
    
    Raises:
        RuntimeError: the SDK was never initialized
        ValueError: the token is invalid, expired, or revoked
    """
    if _firebase_app is None:
        raise RuntimeError("Firebase Admin SDK not initialized. Call initialize_firebase() first.")
    
    try:
        # Checks signature, expiry, issuer and audience
        return auth.verify_id_token(token, app=_firebase_app)
    except ValueError:
        raise
    except Exception as e:
        raise ValueError(f"Token verification failed: {str(e)}")

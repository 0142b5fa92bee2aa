"""
Key -> URL resolution for stored photos.
"""
import logging
from typing import Optional

from app.errors import StorageError
from app.storage.s3_client import StorageClient
from app.utils.metrics import read_url_fallbacks_total

logger = logging.getLogger(__name__)

DEFAULT_READ_EXPIRATION = 3600


class KeyResolver:
    """
    Turns object keys into URLs a browser can load.
    
    Records written before keys were stored hold full URLs; those pass
    through untouched.
    """
    
    def __init__(self, storage: Optional[StorageClient], public_base_url: str):
        self.storage = storage
        self.public_base_url = (public_base_url or "").rstrip("/")
    
    @staticmethod
    def is_full_url(key: str) -> bool:
        return key.startswith("http://") or key.startswith("https://")
    
    def resolve(self, key: Optional[str]) -> str:
        """Public URL for key; "" means no image."""
        if not key:
            return ""
        if self.is_full_url(key):
            return key
        return f"{self.public_base_url}/{key}"
    
    def resolve_presigned(self, key: Optional[str], expires_in: int = DEFAULT_READ_EXPIRATION) -> str:
        """
        Fresh signed GET URL for key.
        
        Falls back to the public URL if signing fails, so a transient signing
        problem never breaks rendering of publicly readable objects.
        """
        if not key:
            return ""
        if self.is_full_url(key):
            return key
        if self.storage is None:
            return self.resolve(key)
        
        try:
            return self.storage.generate_presigned_read_url(key, expiration=expires_in)
        except StorageError as e:
            read_url_fallbacks_total.inc()
            logger.warning(f"Falling back to public URL for {key}: {e}")
            return self.resolve(key)

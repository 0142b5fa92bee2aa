"""
Write-credential issuance and the server-side object operations.

Flow:
1. Client requests a credential with filename, content_type, size, folder
2. Backend generates a unique object key and a presigned PUT URL
3. Client uploads directly to storage using the presigned URL
4. Client either creates a photo record referencing the key (commit)
   or asks the backend to delete the object (discard)

When the browser cannot PUT cross-origin, ``store_object`` accepts the
payload inline and writes it from the server instead.
"""
import base64
import binascii
import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.config import Settings, settings as default_settings
from app.errors import StorageWriteError, UnauthorizedError, ValidationError
from app.schemas.auth import CallerIdentity
from app.storage.resolver import KeyResolver
from app.storage.s3_client import StorageClient
from app.storage.validation import sanitize_filename, sanitize_folder, validate_image_upload
from app.utils.logging import log_credential_issued, log_object_deleted, log_object_stored
from app.utils.metrics import (
    direct_upload_bytes,
    direct_uploads_total,
    objects_deleted_total,
    write_credentials_issued_total,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WriteCredential:
    """A presigned URL authorizing exactly one PUT at one key."""
    url: str
    key: str
    content_type: str
    content_length: int
    expires_at: datetime
    method: str = "PUT"
    
    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or _utcnow()) >= self.expires_at


@dataclass(frozen=True)
class IssuedUpload:
    key: str
    credential: WriteCredential


@dataclass(frozen=True)
class StoredObject:
    key: str
    public_url: str


@dataclass(frozen=True)
class DeleteResult:
    key: str
    success: bool = True


class CredentialIssuer:
    """
    Issues write credentials and performs authenticated object operations.
    
    Responsibilities:
    - Gate every operation on an authorized caller
    - Generate collision-free object keys
    - Mint presigned PUT URLs scoped to key, content type and size
    - Delete objects (idempotently) and store inline payloads
    """
    
    def __init__(
        self,
        storage: StorageClient,
        config: Optional[Settings] = None,
        resolver: Optional[KeyResolver] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.storage = storage
        self.settings = config or default_settings
        self.resolver = resolver or KeyResolver(storage, self.settings.s3_public_url)
        self._clock = clock
    
    @staticmethod
    def _require_authorized(caller: Optional[CallerIdentity]) -> CallerIdentity:
        if caller is None or not caller.uid:
            raise UnauthorizedError()
        return caller
    
    @staticmethod
    def generate_object_key(filename: str, folder: Optional[str] = None) -> str:
        """
        Generate a unique object key.
        
        Pattern: [folder/]{uuid4}-{sanitized filename}
        
        The random UUID guarantees no key is ever reissued, even for identical
        filenames and folders.
        """
        name = sanitize_filename(filename)
        folder = sanitize_folder(folder)
        file_uuid = str(uuid.uuid4())
        
        if folder:
            return f"{folder}/{file_uuid}-{name}"
        return f"{file_uuid}-{name}"
    
    def issue_write_credential(
        self,
        caller: Optional[CallerIdentity],
        filename: str,
        content_type: str,
        size: int,
        folder: Optional[str] = None,
    ) -> IssuedUpload:
        """
        Mint a presigned PUT URL for one new object.
        
        Raises:
            UnauthorizedError: caller is not authorized (nothing is signed)
            ValidationError: bad filename, size or content type
            StorageSigningError: the store could not sign; the key is discarded
        """
        caller = self._require_authorized(caller)
        validate_image_upload(size, content_type, self.settings.max_upload_size)
        
        key = self.generate_object_key(filename, folder)
        expiration = self.settings.write_credential_expiration
        expires_at = self._clock() + timedelta(seconds=expiration)
        
        url = self.storage.generate_presigned_upload_url(
            key,
            content_type,
            content_length=size,
            expiration=expiration,
        )
        
        write_credentials_issued_total.inc()
        log_credential_issued(
            logger,
            key=key,
            user_id=caller.uid,
            content_type=content_type,
            size=size,
            expires_in=expiration,
        )
        
        return IssuedUpload(
            key=key,
            credential=WriteCredential(
                url=url,
                key=key,
                content_type=content_type,
                content_length=size,
                expires_at=expires_at,
            ),
        )
    
    def delete_object(
        self,
        caller: Optional[CallerIdentity],
        key: str,
        reason: str = "discard",
    ) -> DeleteResult:
        """
        Delete one object. Deleting a key that does not exist is success.
        
        Raises:
            UnauthorizedError: caller is not authorized
            ValidationError: empty key
            StorageDeleteError: the store failed for another reason
        """
        caller = self._require_authorized(caller)
        if not key:
            raise ValidationError("Key is required")
        
        self.storage.delete_object(key)
        
        objects_deleted_total.labels(reason=reason).inc()
        log_object_deleted(logger, key=key, user_id=caller.uid, reason=reason)
        return DeleteResult(key=key)
    
    def store_object(
        self,
        caller: Optional[CallerIdentity],
        filename: str,
        content_type: str,
        payload_base64: str,
        folder: Optional[str] = None,
    ) -> StoredObject:
        """
        Write a base64-encoded payload from the server.
        
        The object is fully written when this returns; on failure no object
        is considered created at the generated key.
        
        Raises:
            UnauthorizedError, ValidationError, StorageWriteError
        """
        caller = self._require_authorized(caller)
        
        try:
            body = base64.b64decode(payload_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError("File payload is not valid base64") from e
        
        validate_image_upload(len(body), content_type, self.settings.max_upload_size)
        key = self.generate_object_key(filename, folder)
        
        start = time.monotonic()
        try:
            self.storage.put_object(key, body, content_type)
        except StorageWriteError:
            direct_uploads_total.labels(status="failed").inc()
            raise
        
        direct_uploads_total.labels(status="stored").inc()
        direct_upload_bytes.observe(len(body))
        log_object_stored(
            logger,
            key=key,
            user_id=caller.uid,
            size=len(body),
            duration_ms=(time.monotonic() - start) * 1000,
        )
        
        return StoredObject(key=key, public_url=self.resolver.resolve(key))

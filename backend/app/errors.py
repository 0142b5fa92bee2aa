"""
Error taxonomy for the upload flow.

Every error carries a short human-readable message suitable for showing to
the user. The HTTP layer maps these onto status codes; nothing here knows
about HTTP.
"""
from typing import Optional


class PhotoJournalError(Exception):
    """Base class for all application errors."""
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(PhotoJournalError):
    """Caller lacks permission. Raised before any side effect."""
    
    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


# Validation (local, before any network call)

class ValidationError(PhotoJournalError):
    """Bad input shape, size or type."""


class FileTooLargeError(ValidationError):
    def __init__(self, size: int, max_size: int):
        super().__init__(
            f"File size exceeds {max_size / 1024 / 1024:g}MB limit"
        )
        self.size = size
        self.max_size = max_size


class UnsupportedTypeError(ValidationError):
    def __init__(self, content_type: str):
        super().__init__("Only image files are allowed")
        self.content_type = content_type


# Storage backend

class StorageError(PhotoJournalError):
    """Base class for failures talking to the object store."""


class StorageNotConfiguredError(StorageError):
    def __init__(self):
        super().__init__("Storage service not configured")


class StorageSigningError(StorageError):
    """Minting a presigned URL failed. No object is affected."""


class StorageWriteError(StorageError):
    """A server-side PUT failed. No object is considered created."""


class StorageDeleteError(StorageError):
    """A delete failed for a reason other than the key being absent."""


# Transfer phase (caller side)

class UploadError(PhotoJournalError):
    """
    Terminal failure of a transfer.
    
    The object state is indeterminate from the caller's point of view; a retry
    must request a fresh credential.
    """


class UploadRejectedError(UploadError):
    """Storage answered with a non-2xx status."""
    
    def __init__(self, status_code: int, body: Optional[str] = None):
        super().__init__(f"Upload failed with status {status_code}")
        self.status_code = status_code
        self.body = body


class NetworkError(UploadError):
    """
    Transport-level failure.
    
    Carries enough context to tell a CORS/preflight rejection apart from a
    genuine outage.
    """
    
    def __init__(
        self,
        method: str,
        target: str,
        reason: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__("Network error during upload (CORS issue or network failure)")
        self.method = method
        self.target = target
        self.reason = reason
        self.status_code = status_code
        self.body = body
    
    @property
    def diagnostics(self) -> dict:
        return {
            "method": self.method,
            "target": self.target,
            "reason": self.reason,
            "status": self.status_code,
            "response": self.body,
            "hint": "This is usually a CORS issue. Check the bucket CORS configuration.",
        }


class UploadTimeoutError(UploadError):
    def __init__(self, timeout: float):
        super().__init__(f"Upload timed out ({timeout:g} seconds)")
        self.timeout = timeout


class CredentialExpiredError(UploadError):
    def __init__(self, key: str):
        super().__init__("Upload URL has expired, request a new one")
        self.key = key


# Reconciliation

class InvalidTransitionError(PhotoJournalError):
    """An upload session was asked to move to a state it cannot reach."""
    
    def __init__(self, current: str, target: str):
        super().__init__(f"Cannot move upload from {current} to {target}")
        self.current = current
        self.target = target

"""
Storage module for S3-compatible object storage.

Clients upload directly to the bucket with presigned URLs; the backend only
signs, deletes, and (for the cross-origin fallback) writes inline payloads.
"""
from app.storage.s3_client import StorageClient
from app.storage.resolver import KeyResolver
from app.storage.presign import CredentialIssuer, IssuedUpload, StoredObject, WriteCredential

__all__ = [
    "CredentialIssuer",
    "IssuedUpload",
    "KeyResolver",
    "StorageClient",
    "StoredObject",
    "WriteCredential",
]

"""
S3-compatible storage client.

Uses boto3 against any S3-compatible endpoint (AWS S3, R2, MinIO).

One instance is built per serving process (see app.main lifespan) and handed
to every component that needs storage; there is no module-level singleton.
Tests pass a mocked boto3 client through the ``client`` argument.
"""
import logging
from datetime import datetime
from typing import Iterator, Optional
import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.config import Settings, settings as default_settings
from app.errors import (
    StorageDeleteError,
    StorageError,
    StorageNotConfiguredError,
    StorageSigningError,
    StorageWriteError,
)
from app.utils.logging import log_storage_failure
from app.utils.metrics import storage_signing_failures_total

logger = logging.getLogger(__name__)

# Error codes S3-compatible stores use for a missing key
MISSING_KEY_CODES = {'404', 'NoSuchKey', 'NotFound'}


class StorageClient:
    """
    Thin wrapper over a boto3 S3 client scoped to one bucket.
    
    Every operation raises a typed StorageError on failure instead of leaking
    botocore exceptions to callers.
    """
    
    def __init__(self, config: Optional[Settings] = None, client=None):
        """
        Args:
            config: Settings to read bucket/endpoint/credentials from
            client: Pre-built boto3 S3 client (tests inject a mock here)
        """
        self._settings = config or default_settings
        self._client = client
        
        if self._client is not None:
            return
        
        if not all([
            self._settings.s3_access_key_id,
            self._settings.s3_secret_access_key,
        ]):
            logger.warning(
                "S3 storage not configured. "
                "Set S3_ACCESS_KEY_ID and S3_SECRET_ACCESS_KEY."
            )
            return
        
        self._client = boto3.client(
            's3',
            endpoint_url=self._settings.s3_endpoint,
            aws_access_key_id=self._settings.s3_access_key_id,
            aws_secret_access_key=self._settings.s3_secret_access_key,
            region_name=self._settings.s3_region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': self._settings.s3_addressing_style}
            )
        )
        logger.info(f"S3 client initialized for bucket: {self.bucket}")
    
    @property
    def is_configured(self) -> bool:
        return self._client is not None
    
    @property
    def bucket(self) -> str:
        return self._settings.s3_bucket_name
    
    def _require_client(self):
        if self._client is None:
            raise StorageNotConfiguredError()
        return self._client
    
    def generate_presigned_upload_url(
        self,
        object_key: str,
        content_type: str,
        content_length: Optional[int] = None,
        expiration: Optional[int] = None
    ) -> str:
        """
        Generate a presigned PUT URL for direct upload.
        
        Args:
            object_key: The S3 object key (path in bucket)
            content_type: MIME type the upload must declare
            content_length: Exact byte count the upload must carry
            expiration: URL lifetime in seconds (default from settings)
            
        Returns:
            Presigned URL string
            
        Raises:
            StorageSigningError: if the URL cannot be minted
            
        Security:
            - URL expires after the given time
            - Only allows PUT, not GET
            - Content-Type (and Content-Length) must match what was signed
        """
        client = self._require_client()
        
        if expiration is None:
            expiration = self._settings.write_credential_expiration
        
        params = {
            'Bucket': self.bucket,
            'Key': object_key,
            'ContentType': content_type,
        }
        if content_length is not None:
            params['ContentLength'] = content_length
        
        try:
            url = client.generate_presigned_url(
                ClientMethod='put_object',
                Params=params,
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            storage_signing_failures_total.labels(method='PUT').inc()
            log_storage_failure(logger, 'sign_put', str(e), key=object_key)
            raise StorageSigningError("Failed to generate upload URL") from e
        
        logger.debug(f"Generated presigned upload URL for {object_key}")
        return url
    
    def generate_presigned_read_url(self, object_key: str, expiration: Optional[int] = None) -> str:
        """
        Generate a presigned GET URL for reading an object.
        
        Raises:
            StorageSigningError: if the URL cannot be minted
        """
        client = self._require_client()
        
        if expiration is None:
            expiration = self._settings.read_credential_expiration
        
        try:
            url = client.generate_presigned_url(
                ClientMethod='get_object',
                Params={
                    'Bucket': self.bucket,
                    'Key': object_key,
                },
                ExpiresIn=expiration
            )
        except (ClientError, BotoCoreError) as e:
            storage_signing_failures_total.labels(method='GET').inc()
            log_storage_failure(logger, 'sign_get', str(e), key=object_key)
            raise StorageSigningError("Failed to generate read URL") from e
        
        logger.debug(f"Generated presigned read URL for {object_key} (expires in {expiration}s)")
        return url
    
    def put_object(self, object_key: str, body: bytes, content_type: str) -> None:
        """
        Write an object in one request. Returns only once the store has
        acknowledged the write.
        
        Raises:
            StorageWriteError: on any failure
        """
        client = self._require_client()
        
        try:
            client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            log_storage_failure(logger, 'put', str(e), key=object_key)
            raise StorageWriteError("Failed to upload file") from e
    
    def delete_object(self, object_key: str) -> None:
        """
        Delete an object from the bucket.
        
        A missing key is treated as success (idempotent).
        
        Raises:
            StorageDeleteError: for any other failure
        """
        client = self._require_client()
        
        try:
            client.delete_object(Bucket=self.bucket, Key=object_key)
            logger.debug(f"Deleted object {object_key}")
        except ClientError as e:
            if e.response['Error']['Code'] in MISSING_KEY_CODES:
                logger.debug(f"Object {object_key} not found (already deleted)")
                return
            log_storage_failure(logger, 'delete', str(e), key=object_key)
            raise StorageDeleteError("Failed to delete file") from e
        except BotoCoreError as e:
            log_storage_failure(logger, 'delete', str(e), key=object_key)
            raise StorageDeleteError("Failed to delete file") from e
    
    def list_objects(self, prefix: str = "") -> Iterator[tuple[str, datetime]]:
        """
        Yield (key, last_modified) for every object under prefix.
        
        Follows ListObjectsV2 continuation tokens.
        """
        client = self._require_client()
        continuation_token = None
        
        while True:
            kwargs = {'Bucket': self.bucket, 'Prefix': prefix, 'MaxKeys': 1000}
            if continuation_token:
                kwargs['ContinuationToken'] = continuation_token
            
            try:
                response = client.list_objects_v2(**kwargs)
            except (ClientError, BotoCoreError) as e:
                log_storage_failure(logger, 'list', str(e))
                raise StorageError("Failed to list objects") from e
            
            for item in response.get('Contents', []):
                yield item['Key'], item['LastModified']
            
            if not response.get('IsTruncated'):
                break
            
            continuation_token = response.get('NextContinuationToken')
    
    def configure_cors(self, allowed_origins: list[str]) -> dict:
        """
        Apply the CORS rules browsers need to PUT straight into the bucket.
        
        Returns the configuration that was applied.
        """
        client = self._require_client()
        
        cors_configuration = {
            'CORSRules': [
                {
                    'AllowedHeaders': ['*'],
                    'AllowedMethods': ['GET', 'PUT', 'POST', 'DELETE', 'HEAD'],
                    'AllowedOrigins': list(allowed_origins),
                    'ExposeHeaders': ['ETag', 'x-amz-version-id'],
                    'MaxAgeSeconds': 3000,
                },
            ],
        }
        
        try:
            client.put_bucket_cors(
                Bucket=self.bucket,
                CORSConfiguration=cors_configuration,
            )
        except (ClientError, BotoCoreError) as e:
            log_storage_failure(logger, 'put_bucket_cors', str(e))
            raise StorageError("Failed to configure CORS") from e
        
        logger.info(f"CORS configured for bucket {self.bucket}: {allowed_origins}")
        return cors_configuration
    
    def check_connection(self) -> bool:
        """Return True if the bucket is reachable with the configured credentials."""
        client = self._require_client()
        
        try:
            client.head_bucket(Bucket=self.bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            log_storage_failure(logger, 'head_bucket', str(e))
            return False

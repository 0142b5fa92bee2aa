"""
Caller-side transfer of a file to storage through a presigned PUT URL.

A transfer is one PUT of the raw bytes. Progress is reported as an integer
percentage computed from bytes handed to the transport; it never decreases
and only reaches 100 once storage has answered with a 2xx status.
"""
import asyncio
import logging
import mimetypes
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator, Callable, Optional, Union

import httpx

from app.config import settings
from app.errors import (
    CredentialExpiredError,
    NetworkError,
    UploadRejectedError,
    UploadTimeoutError,
)
from app.storage.presign import WriteCredential
from app.storage.validation import validate_image_upload
from app.utils.logging import log_transfer_failed

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]

DEFAULT_CHUNK_SIZE = 64 * 1024

# Rejection bodies from S3 are small XML documents; cap what we keep
MAX_ERROR_BODY = 2048


@dataclass(frozen=True)
class FilePayload:
    """A file as the caller holds it: name, declared type and bytes."""
    name: str
    content_type: str
    data: bytes
    
    @property
    def size(self) -> int:
        return len(self.data)
    
    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "FilePayload":
        path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(name=path.name, content_type=content_type, data=path.read_bytes())


class _ProgressReporter:
    """Forwards monotonic, de-duplicated percentages to the callback."""
    
    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._last: Optional[int] = None
    
    def update(self, sent: int, total: int) -> None:
        percent = round(sent / total * 100) if total else 0
        # 100 is reserved for a confirmed success
        self._emit(min(percent, 99))
    
    def complete(self) -> None:
        self._emit(100)
    
    def _emit(self, percent: int) -> None:
        if self._callback is None:
            return
        if self._last is not None and percent <= self._last:
            return
        self._last = percent
        self._callback(percent)


def _redact(url: str) -> str:
    """Strip the signature query string before a URL goes into logs or errors."""
    return str(httpx.URL(url).copy_with(query=None))


class TransferExecutor:
    """
    Performs the PUT for one write credential.
    
    Preconditions (size limit, image type, credential not yet expired) are
    checked locally before any network call. There is no internal retry: a
    failed transfer is reported and the caller decides whether to request a
    fresh credential and try again.
    """
    
    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        max_size: Optional[int] = None,
        timeout: Optional[float] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._http = http_client
        self.max_size = max_size if max_size is not None else settings.max_upload_size
        self.timeout = timeout if timeout is not None else settings.upload_timeout
        self.chunk_size = chunk_size
        self._clock = clock
    
    async def transfer(
        self,
        file: FilePayload,
        credential: WriteCredential,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Upload file to the credential's URL.
        
        Raises:
            FileTooLargeError, UnsupportedTypeError: before any network call
            CredentialExpiredError: the credential's window has passed
            UploadRejectedError: storage answered with a non-2xx status
            NetworkError: transport failure (commonly a CORS misconfiguration)
            UploadTimeoutError: the whole transfer exceeded the time budget
        """
        validate_image_upload(file.size, file.content_type, self.max_size)
        if credential.is_expired(self._clock()):
            raise CredentialExpiredError(credential.key)
        
        reporter = _ProgressReporter(on_progress)
        target = _redact(credential.url)
        start = time.monotonic()
        
        try:
            response = await asyncio.wait_for(
                self._put(file, credential, reporter),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            log_transfer_failed(
                logger,
                key=credential.key,
                error="timeout",
                duration_ms=(time.monotonic() - start) * 1000,
                target=target,
            )
            raise UploadTimeoutError(self.timeout) from e
        except httpx.TransportError as e:
            error = NetworkError(
                method=credential.method,
                target=target,
                reason=str(e) or type(e).__name__,
            )
            log_transfer_failed(
                logger,
                key=credential.key,
                error=error.message,
                duration_ms=(time.monotonic() - start) * 1000,
                **error.diagnostics
            )
            raise error from e
        
        if not 200 <= response.status_code < 300:
            body = response.text[:MAX_ERROR_BODY] or None
            log_transfer_failed(
                logger,
                key=credential.key,
                error=f"status {response.status_code}",
                duration_ms=(time.monotonic() - start) * 1000,
                status=response.status_code,
                response=body,
                target=target,
            )
            raise UploadRejectedError(response.status_code, body)
        
        reporter.complete()
        logger.info(
            f"Transfer complete: {credential.key}",
            extra={
                "event": "transfer_complete",
                "key": credential.key,
                "size": file.size,
                "duration_ms": round((time.monotonic() - start) * 1000, 2),
            },
        )
    
    async def _put(
        self,
        file: FilePayload,
        credential: WriteCredential,
        reporter: _ProgressReporter,
    ) -> httpx.Response:
        headers = {
            "Content-Type": file.content_type,
            "Content-Length": str(file.size),
        }
        
        if self._http is not None:
            return await self._http.request(
                credential.method,
                credential.url,
                content=self._iter_chunks(file.data, reporter),
                headers=headers,
                timeout=self.timeout,
            )
        
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(
                credential.method,
                credential.url,
                content=self._iter_chunks(file.data, reporter),
                headers=headers,
            )
    
    async def _iter_chunks(self, data: bytes, reporter: _ProgressReporter) -> AsyncIterator[bytes]:
        total = len(data)
        for offset in range(0, total, self.chunk_size):
            chunk = data[offset:offset + self.chunk_size]
            yield chunk
            reporter.update(offset + len(chunk), total)

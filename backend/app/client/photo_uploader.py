"""
Caller-side driver of the upload flow.

Mirrors what the dashboard does: ask the API for a write credential, PUT the
file straight to storage, then either commit the key as a photo or discard
the object when the user picks another file.
"""
import asyncio
import logging
from datetime import datetime
from typing import Any, Mapping, Optional
from urllib.parse import quote

import httpx

from app.errors import (
    NetworkError,
    PhotoJournalError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)
from app.storage.presign import WriteCredential
from app.storage.validation import validate_image_upload
from app.uploads.reconciler import ObjectLifecycleReconciler
from app.uploads.session import UploadSession, UploadState
from app.uploads.transfer import FilePayload, ProgressCallback, TransferExecutor

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _raise_for_api_error(response: httpx.Response) -> None:
    if response.is_success:
        return
    
    try:
        detail = response.json().get("detail") or response.text
    except ValueError:
        detail = response.text
    detail = str(detail) or f"Request failed with status {response.status_code}"
    
    if response.status_code == 401:
        raise UnauthorizedError(detail)
    if response.status_code in (400, 422):
        raise ValidationError(detail)
    if response.status_code >= 500:
        raise StorageError(detail)
    raise PhotoJournalError(detail)


class PhotoUploadClient:
    """
    Upload photos through the API.
    
    Args:
        api: Client pointed at the API, carrying the Bearer token
        executor: Performs the storage PUT (defaults to a fresh executor)
        folder: Folder keys are created under (server default when None)
    """
    
    def __init__(
        self,
        api: httpx.AsyncClient,
        executor: Optional[TransferExecutor] = None,
        folder: Optional[str] = None,
    ):
        self.api = api
        self.executor = executor or TransferExecutor()
        self.folder = folder
        self.reconciler = ObjectLifecycleReconciler(self._delete_object, self._create_photo)
    
    async def request_credential(self, file: FilePayload, folder: Optional[str] = None) -> WriteCredential:
        payload = {
            "filename": file.name,
            "content_type": file.content_type,
            "size": file.size,
        }
        if folder is not None:
            payload["folder"] = folder
        
        try:
            response = await self.api.post("/api/uploads/presign", json=payload)
        except httpx.TransportError as e:
            raise NetworkError("POST", "/api/uploads/presign", str(e) or type(e).__name__) from e
        _raise_for_api_error(response)
        
        try:
            data = response.json()
            return WriteCredential(
                url=data["upload_url"],
                key=data["key"],
                content_type=file.content_type,
                content_length=file.size,
                expires_at=_parse_timestamp(data["expires_at"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PhotoJournalError("Unexpected response from upload API") from e
    
    async def upload(
        self,
        file: FilePayload,
        session: Optional[UploadSession] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadSession:
        """
        Run credential issuance and transfer for file.
        
        Invalid files are rejected before any request is made. Once the
        session has started, any failure (including one raised by
        on_progress) ends it FAILED so it can be reset, and is re-raised.
        """
        validate_image_upload(file.size, file.content_type, self.executor.max_size)
        
        session = session or UploadSession(folder=self.folder)
        session.start()
        
        def report(percent: int) -> None:
            session.update_progress(percent)
            if on_progress:
                on_progress(percent)
        
        try:
            credential = await self.request_credential(file, session.folder)
            await self.executor.transfer(file, credential, on_progress=report)
        except (Exception, asyncio.CancelledError) as e:
            self.reconciler.on_transfer_failed(session, e)
            raise
        
        self.reconciler.on_transfer_succeeded(session, credential.key)
        return session
    
    async def reupload(
        self,
        session: UploadSession,
        file: FilePayload,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadSession:
        """
        Replace the session's file: discard the uploaded object first, then
        start a new session. A failed session is reset and reused.
        """
        if session.state is UploadState.UPLOADED:
            await self.reconciler.discard(session)
            return await self.upload(file, UploadSession(folder=session.folder), on_progress)
        if session.state is UploadState.FAILED:
            session.reset()
        return await self.upload(file, session, on_progress)
    
    async def commit(self, session: UploadSession, metadata: Optional[Mapping[str, Any]] = None) -> dict:
        return await self.reconciler.commit(session, metadata)
    
    async def discard(self, session: UploadSession) -> bool:
        return await self.reconciler.discard(session)
    
    async def _delete_object(self, key: str) -> None:
        response = await self.api.delete(f"/api/uploads/objects/{quote(key, safe='/')}")
        _raise_for_api_error(response)
    
    async def _create_photo(self, key: str, metadata: Mapping[str, Any]) -> dict:
        response = await self.api.post("/api/photos", json={**metadata, "key": key})
        _raise_for_api_error(response)
        return response.json()

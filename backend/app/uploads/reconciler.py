"""
Reconciles transfer outcomes with application records.

After a successful transfer the key is provisionally owned by its session.
It then either becomes a photo record (commit) or is deleted from storage
(discard, e.g. the user picked another file). Which collaborator performs
the delete and the record creation is injected, so the same reconciler runs
in-process against CredentialIssuer/PhotoService or over HTTP from a client.
"""
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional

from app.errors import InvalidTransitionError
from app.uploads.session import UploadSession, UploadState

logger = logging.getLogger(__name__)

RemoveObject = Callable[[str], Awaitable[Any]]
CreateRecord = Callable[[str, Mapping[str, Any]], Awaitable[Any]]


class ObjectLifecycleReconciler:
    
    def __init__(self, remove_object: RemoveObject, create_record: Optional[CreateRecord] = None):
        self._remove_object = remove_object
        self._create_record = create_record
    
    def on_transfer_succeeded(self, session: UploadSession, key: str) -> None:
        """The key now belongs to session until it is committed or discarded."""
        session.mark_uploaded(key)
        logger.info(f"Upload provisionally owned: {key}", extra={"event": "upload_provisional", "key": key})
    
    def on_transfer_failed(self, session: UploadSession, error: Exception) -> None:
        session.mark_failed(str(error))
    
    async def discard(self, session: UploadSession) -> bool:
        """
        Delete the session's object.
        
        Returns False (and deletes nothing) if the session was already
        discarded. If the delete fails the session stays UPLOADED so the
        caller can try again.
        
        Raises:
            InvalidTransitionError: the key is committed to a record, or the
                session never reached UPLOADED
        """
        async with session.lock:
            if session.state is UploadState.DISCARDED:
                return False
            if not session.can_move_to(UploadState.DISCARDED):
                raise InvalidTransitionError(session.state.value, UploadState.DISCARDED.value)
            
            await self._remove_object(session.key)
            session.mark_discarded()
        
        logger.info(f"Upload discarded: {session.key}", extra={"event": "upload_discarded", "key": session.key})
        return True
    
    async def commit(self, session: UploadSession, metadata: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Create the record referencing the session's key.
        
        Raises:
            InvalidTransitionError: the session is not UPLOADED (including
                already committed or discarded)
        """
        if self._create_record is None:
            raise RuntimeError("No record store configured for commit")
        
        async with session.lock:
            if not session.can_move_to(UploadState.COMMITTED):
                raise InvalidTransitionError(session.state.value, UploadState.COMMITTED.value)
            
            record = await self._create_record(session.key, dict(metadata or {}))
            session.mark_committed()
        
        logger.info(f"Upload committed: {session.key}", extra={"event": "upload_committed", "key": session.key})
        return record

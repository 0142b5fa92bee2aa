"""
Upload session state machine.

    EMPTY -> UPLOADING -> UPLOADED | FAILED
    UPLOADED -> COMMITTED | DISCARDED   (terminal, exactly once)
    FAILED -> EMPTY                      (retry with a fresh credential)

Any other move raises InvalidTransitionError, so a key that has been
committed to a record can never be discarded afterwards, and vice versa.
"""
import asyncio
import enum
import uuid
from typing import Optional

from app.errors import InvalidTransitionError


class UploadState(str, enum.Enum):
    EMPTY = "empty"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    FAILED = "failed"
    COMMITTED = "committed"
    DISCARDED = "discarded"


_TRANSITIONS = {
    UploadState.EMPTY: {UploadState.UPLOADING},
    UploadState.UPLOADING: {UploadState.UPLOADED, UploadState.FAILED},
    UploadState.UPLOADED: {UploadState.COMMITTED, UploadState.DISCARDED},
    UploadState.FAILED: {UploadState.EMPTY},
    UploadState.COMMITTED: set(),
    UploadState.DISCARDED: set(),
}


class UploadSession:
    """One file's journey from credential to record (or deletion)."""
    
    def __init__(self, folder: Optional[str] = None):
        self.id = str(uuid.uuid4())
        self.folder = folder
        self.state = UploadState.EMPTY
        self.key: Optional[str] = None
        self.progress = 0
        self.error: Optional[str] = None
        # Serializes commit/discard for this session
        self.lock = asyncio.Lock()
    
    @property
    def is_terminal(self) -> bool:
        return not _TRANSITIONS[self.state]
    
    def can_move_to(self, target: UploadState) -> bool:
        return target in _TRANSITIONS[self.state]
    
    def _move(self, target: UploadState) -> None:
        if not self.can_move_to(target):
            raise InvalidTransitionError(self.state.value, target.value)
        self.state = target
    
    def start(self) -> None:
        self._move(UploadState.UPLOADING)
        self.key = None
        self.progress = 0
        self.error = None
    
    def update_progress(self, percent: int) -> None:
        if self.state is UploadState.UPLOADING:
            self.progress = max(self.progress, percent)
    
    def mark_uploaded(self, key: str) -> None:
        self._move(UploadState.UPLOADED)
        self.key = key
        self.progress = 100
    
    def mark_failed(self, error: str) -> None:
        self._move(UploadState.FAILED)
        self.error = error
    
    def mark_committed(self) -> None:
        self._move(UploadState.COMMITTED)
    
    def mark_discarded(self) -> None:
        self._move(UploadState.DISCARDED)
    
    def reset(self) -> None:
        # A failed key is never cleaned up here: the write presumably never completed
        self._move(UploadState.EMPTY)
        self.key = None
        self.progress = 0
        self.error = None
    
    def __repr__(self):
        return f"<UploadSession(id={self.id}, state={self.state.value}, key={self.key})>"

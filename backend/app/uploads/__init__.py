"""
Caller-side upload flow: transfer execution and session reconciliation.
"""
from app.uploads.session import UploadSession, UploadState
from app.uploads.transfer import FilePayload, TransferExecutor
from app.uploads.reconciler import ObjectLifecycleReconciler

__all__ = [
    "FilePayload",
    "ObjectLifecycleReconciler",
    "TransferExecutor",
    "UploadSession",
    "UploadState",
]

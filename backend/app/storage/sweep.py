"""
Orphan sweep for uploads that were never committed or discarded.

A session lost mid-flow (closed tab, crashed client) leaves an object that no
photo references and nobody will discard. Once an object is older than the
write-credential window, no live session can still be about to commit it, so
it is safe to delete if no record points at it.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional
from urllib.parse import urlparse

from app.config import Settings, settings as default_settings
from app.storage.s3_client import StorageClient
from app.utils.logging import log_object_deleted
from app.utils.metrics import objects_deleted_total

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    scanned: int = 0
    deleted: list[str] = field(default_factory=list)
    kept_referenced: int = 0
    kept_recent: int = 0
    dry_run: bool = False


class OrphanSweeper:
    
    def __init__(
        self,
        storage: StorageClient,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.storage = storage
        self.settings = config or default_settings
        self._clock = clock
    
    def _normalize_reference(self, reference: str) -> str:
        """Map a stored reference (bare key or legacy full URL) to a key."""
        if not reference.startswith(("http://", "https://")):
            return reference
        
        base = self.settings.s3_public_url.rstrip("/")
        if base and reference.startswith(base + "/"):
            return reference[len(base) + 1:]
        
        path = urlparse(reference).path.lstrip("/")
        bucket_prefix = f"{self.settings.s3_bucket_name}/"
        if path.startswith(bucket_prefix):
            path = path[len(bucket_prefix):]
        return path
    
    def sweep(
        self,
        referenced: Iterable[str],
        folder: Optional[str] = None,
        dry_run: bool = False,
    ) -> SweepReport:
        """
        Delete unreferenced objects under folder older than the write window.
        
        Args:
            referenced: Keys (or legacy URLs) held by photo records
            folder: Folder to scan (default: the upload folder)
            dry_run: Report what would be deleted without deleting
        """
        folder = folder if folder is not None else self.settings.default_upload_folder
        prefix = f"{folder.strip('/')}/" if folder else ""
        keys_in_use = {self._normalize_reference(r) for r in referenced if r}
        cutoff = self._clock() - timedelta(seconds=self.settings.write_credential_expiration)
        
        report = SweepReport(dry_run=dry_run)
        
        for key, last_modified in self.storage.list_objects(prefix):
            report.scanned += 1
            
            if key in keys_in_use:
                report.kept_referenced += 1
                continue
            if last_modified.tzinfo is None:
                last_modified = last_modified.replace(tzinfo=timezone.utc)
            if last_modified > cutoff:
                report.kept_recent += 1
                continue
            
            if not dry_run:
                self.storage.delete_object(key)
                objects_deleted_total.labels(reason="sweep").inc()
                log_object_deleted(logger, key=key, reason="sweep")
            report.deleted.append(key)
        
        logger.info(
            f"Orphan sweep complete: {len(report.deleted)} orphaned out of {report.scanned} scanned",
            extra={
                "event": "orphan_sweep",
                "scanned": report.scanned,
                "orphaned": len(report.deleted),
                "dry_run": dry_run,
            },
        )
        return report

"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- key
- user_id
- duration_ms

Usage:
    from app.utils.logging import configure_logging, log_credential_issued
    
    configure_logging('photo-journal-api', 'INFO')
    log_credential_issued(logger, key='photos/abc-cat.png', user_id='456')
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""
    
    _service_name = None
    _configured = False
    
    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.
        
        Args:
            service_name: Service identifier (photo-journal-api, photo-journal-cli)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return
        
        cls._service_name = service_name
        
        root_logger = logging.getLogger()
        root_logger.handlers = []
        
        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(level)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )
        
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True
        
        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    key: Optional[str] = None,
    user_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """Build extra fields for structured logging."""
    extra = {
        "event": event,
        **kwargs
    }
    
    if key:
        extra["key"] = key
    if user_id:
        extra["user_id"] = user_id
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
    
    return extra


# Credential / storage events

def log_credential_issued(
    logger: logging.Logger,
    key: str,
    user_id: Optional[str] = None,
    content_type: Optional[str] = None,
    size: Optional[int] = None,
    expires_in: Optional[int] = None,
    **kwargs
):
    """
    Log issuance of a write credential.
    
    Args:
        logger: Logger instance
        key: Object key the credential is scoped to (required)
        user_id: Caller the credential was issued to
        content_type: Signed content type
        size: Signed content length in bytes
        expires_in: Credential lifetime in seconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="credential_issued",
        key=key,
        user_id=user_id,
        **kwargs
    )
    if content_type:
        extra["content_type"] = content_type
    if size is not None:
        extra["size"] = size
    if expires_in is not None:
        extra["expires_in"] = expires_in
    
    logger.info(f"Write credential issued: {key}", extra=extra)


def log_object_stored(
    logger: logging.Logger,
    key: str,
    user_id: Optional[str] = None,
    size: Optional[int] = None,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a server-mediated upload that completed."""
    extra = _build_log_extra(
        event="object_stored",
        key=key,
        user_id=user_id,
        duration_ms=duration_ms,
        **kwargs
    )
    if size is not None:
        extra["size"] = size
    
    logger.info(f"Object stored: {key}", extra=extra)


def log_object_deleted(
    logger: logging.Logger,
    key: str,
    user_id: Optional[str] = None,
    reason: Optional[str] = None,
    **kwargs
):
    """
    Log deletion of a stored object.
    
    Args:
        logger: Logger instance
        key: Deleted object key (required)
        user_id: Caller that requested the delete
        reason: Why it was deleted (discard, sweep, ...)
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="object_deleted",
        key=key,
        user_id=user_id,
        **kwargs
    )
    if reason:
        extra["reason"] = reason
    
    logger.info(f"Object deleted: {key}", extra=extra)


def log_transfer_failed(
    logger: logging.Logger,
    key: str,
    error: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a failed caller-side transfer.
    
    Stack traces are not included; transfer failures carry their own
    diagnostics in kwargs (status, method, target, response).
    """
    extra = _build_log_extra(
        event="transfer_failed",
        key=key,
        duration_ms=duration_ms,
        error=str(error),
        **kwargs
    )
    
    logger.error(f"Transfer failed: {key} - {error}", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: str,
    key: Optional[str] = None,
    include_traceback: bool = False,
    **kwargs
):
    """
    Log a storage backend failure.
    
    Args:
        logger: Logger instance
        operation: Storage operation name (sign_put, sign_get, put, delete, list)
        error: Error message (required)
        key: Object key involved, if any
        include_traceback: Whether to include stack trace
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        key=key,
        operation=operation,
        error=str(error),
        **kwargs
    )
    
    message = f"Storage failure: {operation} - {error}"
    
    if include_traceback:
        exc_info = sys.exc_info()
        if exc_info[0] is not None:
            logger.error(message, extra=extra, exc_info=exc_info)
            return
    logger.error(message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)

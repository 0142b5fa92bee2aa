"""
Services package for business logic.
"""
from app.services.photo_service import PhotoService

__all__ = ["PhotoService"]

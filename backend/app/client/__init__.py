"""
HTTP client for driving uploads against the Photo Journal API.
"""
from app.client.photo_uploader import PhotoUploadClient

__all__ = ["PhotoUploadClient"]

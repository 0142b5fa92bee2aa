"""
Database models package.
"""
from app.models.base import Base
from app.models.photo import Photo

__all__ = [
    "Base",
    "Photo",
]

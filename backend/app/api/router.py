"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from app.api import health, photos, s3, uploads

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(uploads.router, prefix="/uploads", tags=["uploads"])
api_router.include_router(s3.router, prefix="/s3", tags=["s3"])
api_router.include_router(photos.router, prefix="/photos", tags=["photos"])

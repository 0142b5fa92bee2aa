"""
Health check endpoint.
Verifies database connectivity and storage configuration.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text
from app.auth.dependencies import get_storage_client
from app.database import get_db
from app.storage.s3_client import StorageClient

router = APIRouter()


@router.get("")
async def health_check(
    db: AsyncSession = Depends(get_db),
    storage: StorageClient = Depends(get_storage_client),
):
    """
    Health check endpoint.
    Returns status of the database connection and storage configuration.
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "storage": "configured" if storage.is_configured else "not configured"
    }
    
    try:
        await db.execute(text("SELECT 1"))
        health_status["database"] = "connected"
    except Exception as e:
        health_status["database"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"
    
    if not storage.is_configured:
        health_status["status"] = "unhealthy"
    
    if health_status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=health_status)
    
    return health_status

"""Liveness endpoint."""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...config import AppConfig
from ...database.session import DatabaseManager
from ..dependencies import get_app_config, get_database_manager

router = APIRouter(tags=["health"])


@router.get("/health")
def health(
    manager: DatabaseManager = Depends(get_database_manager),
    config: AppConfig = Depends(get_app_config),
):
    """Report service identity and whether the database answers."""
    database_ok = manager.verify_connection()

    body = {
        "success": database_ok,
        "status": "healthy" if database_ok else "unhealthy",
        "timestamp": datetime.now().isoformat(),
        "database": database_ok,
        **config.service_info,
    }
    return JSONResponse(body, status_code=200 if database_ok else 503)

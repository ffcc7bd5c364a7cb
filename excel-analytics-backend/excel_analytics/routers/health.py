from datetime import datetime, timezone

from fastapi import APIRouter

from excel_analytics import config
from excel_analytics.schemas.responses import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
async def health_check():
    """Liveness plus a redacted view of the configuration"""
    return {
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": {
            "JWT_SECRET": "NOT SET" if config.JWT_SECRET == config.DEV_JWT_SECRET else "SET",
            "STORAGE_BACKEND": config.STORAGE_BACKEND,
            "MAX_UPLOAD_BYTES": config.MAX_UPLOAD_BYTES,
            "ALLOW_CSV_UPLOADS": config.ALLOW_CSV_UPLOADS,
        },
    }

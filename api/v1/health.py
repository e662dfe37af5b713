from fastapi import APIRouter
from fastapi.responses import JSONResponse
from tortoise import connections

from core.logger import app_logger
from services.reminders import utcnow

router = APIRouter(prefix="/api/v1", tags=["Health"])


@router.get("/health")
async def health_check():
    timestamp = utcnow().isoformat()
    try:
        await connections.get("default").execute_query("SELECT 1")
    except Exception as e:
        app_logger.error(f"Health check failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "timestamp": timestamp})

    return {"status": "healthy", "timestamp": timestamp}

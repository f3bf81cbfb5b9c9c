import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import DB
from app.core.database import ping

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

SERVICE_NAME = "Payroll Sync API"
VERSION = "1.0.0"


async def _check_database(db) -> dict:
    try:
        await ping(db)
    except SQLAlchemyError as e:
        logger.error("Database health check failed: %s", e)
        return {"status": "unhealthy", "message": str(e)}
    return {"status": "healthy", "message": "Database reachable"}


@router.get("")
async def health_check(db: DB):
    database = await _check_database(db)
    ok = database["status"] == "healthy"
    return JSONResponse(
        status_code=200 if ok else 503,
        content={
            "status": "ok" if ok else "degraded",
            "service": SERVICE_NAME,
            "version": VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {"api": {"status": "healthy"}, "database": database},
        },
    )


@router.get("/db")
async def database_health(db: DB):
    database = await _check_database(db)
    ok = database["status"] == "healthy"
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"success": ok, "message": database["message"]},
    )

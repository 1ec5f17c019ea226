from fastapi import APIRouter

from app.core.config import settings
from app.db.Connection import database

router = APIRouter(tags=["health"])


# simple liveness
@router.get("/health")
def health():
    return {"status": "healthy", "service": settings.PROJECT_NAME}


# readiness: database must answer; Redis only matters when configured
@router.get("/ready")
def readiness():
    db_ok = database.verify_database_connection()
    details = {"db": "ok" if db_ok else "error"}
    if database.redis_client is None:
        details["redis"] = "disabled"
        redis_ok = True
    else:
        redis_ok = database.verify_redis_connection()
        details["redis"] = "ok" if redis_ok else "error"
    return {"ready": db_ok and redis_ok, "details": details}

import asyncio

from fastapi import APIRouter

from app.config.settings import config
from app.core.state import state
from app.i18n import i18n
from app.infra.database import ping_db

router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint"""
    return {
        "status": i18n.get("response.status_running"),
        "service": config.api.title,
        "version": config.api.version,
        "redis_enabled": state.redis is not None
    }


@router.get("/health")
async def health_check():
    """Lightweight health check"""
    redis_status = i18n.get("health.disabled")
    if state.redis:
        try:
            await state.redis.ping()
            redis_status = i18n.get("health.connected")
        except Exception:
            redis_status = i18n.get("health.disconnected")

    database_ok = await asyncio.to_thread(ping_db)

    return {
        "status": i18n.get("health.status"),
        "database": i18n.get("health.connected" if database_ok else "health.disconnected"),
        "redis": redis_status
    }

# planning_poker/api/routes/health.py

from datetime import datetime, timezone

from fastapi import APIRouter

from planning_poker.core import state
from planning_poker.core.config import settings

router = APIRouter()

@router.get("/health")
async def health():
    """
    Health check endpoint.

    Returns the storage backend in use and how many rooms currently have
    sockets watching them.
    """
    watched = state.connection_manager.get_rooms_info() if state.connection_manager else {}
    return {
        "status": "healthy" if state.machine is not None else "starting",
        "backend": settings.STORE_BACKEND,
        "write_policy": settings.WRITE_POLICY,
        "watched_rooms": len(watched),
        "sockets": sum(watched.values()),
        "uptime_seconds": int((datetime.now(timezone.utc) - state.app_start_time).total_seconds()),
    }

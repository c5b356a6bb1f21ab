# planning_poker/api/routes/root.py

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
async def root():
    """
    Root endpoint - API information.
    """
    return {
        "message": "Planning Poker",
        "version": "1.0",
        "features": ["rooms", "reveal_and_archive", "round_history", "average", "csv_export"],
        "endpoints": {
            "websocket": "/ws/{room_id}",
            "rooms": "/rooms",
            "health": "/health",
        },
    }

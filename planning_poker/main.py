# planning_poker/main.py

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from planning_poker.api import websocket as websocket_module
from planning_poker.api.routes import health, rooms, root
from planning_poker.core import state
from planning_poker.core.config import settings
from planning_poker.core.logging import get_logger, setup_logging
from planning_poker.services import redis_pub_sub

# Configure logging first
setup_logging(settings.INSTANCE_ID)
logger = get_logger(__name__)


def log_listener_exit(task: asyncio.Task) -> None:
    """Done-callback for the Redis listener: other instances' changes stop arriving once it ends."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Redis change listener crashed", exc_info=error)
    else:
        logger.warning("Redis change listener stopped")


async def stop_listener(task: asyncio.Task) -> None:
    if task.done():
        return
    task.cancel()
    with suppress(asyncio.CancelledError):
        await task


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"🚀 Application starting - {settings.STORE_BACKEND} room store, {settings.WRITE_POLICY}")

    listener = None
    if settings.STORE_BACKEND == "redis":
        client = await redis_pub_sub.connect(settings.redis_url)
        state.init_redis(settings, client)

        # Start Redis listener in the background
        listener = asyncio.create_task(state.notifier.listen())
        listener.add_done_callback(log_listener_exit)
    else:
        state.init_local(settings)

    yield

    if listener is not None:
        await stop_listener(listener)
    await state.shutdown()
    logger.info("Application stopped")


# FastAPI app
app = FastAPI(title="Planning Poker", lifespan=lifespan)

# CORS (relaxed for now – tighten in prod)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# REST routes
app.include_router(root.router)
app.include_router(health.router)
app.include_router(rooms.router)

# WebSocket routes
app.include_router(websocket_module.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("planning_poker.main:app", host="0.0.0.0", port=8000)

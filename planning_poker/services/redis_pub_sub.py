# planning_poker/services/redis_pub_sub.py
import json
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import WatchError

from planning_poker.core.exceptions import StaleWrite
from planning_poker.models.models import Room
from planning_poker.services.change_notifier import ChangeNotifier
from planning_poker.services.room_store import (
    ROOM_KEY_PREFIX,
    RoomStore,
    decode_room,
    encode_room,
    room_key,
    stored_version,
)

logger = logging.getLogger(__name__)

ROOM_CHANNEL_PATTERN = f"{ROOM_KEY_PREFIX}*"


async def connect(url: str) -> redis.Redis:
    """Open an async Redis client and check it answers."""
    client = redis.from_url(url, decode_responses=True)
    await client.ping()
    logger.info("✓ Connected to Redis")
    return client


def change_message(room_id: str, origin: str) -> str:
    return json.dumps({"room_id": room_id, "origin": origin})


class RedisRoomStore(RoomStore):
    """
    RoomStore on Redis string keys (one key per room, JSON value).

    Every write also publishes a change message on the room's channel in
    the same MULTI/EXEC transaction, so a committed write is always
    announced to the other instances.

    Versioned writes WATCH the key first; if another client commits
    between our check and EXEC, Redis aborts the transaction and we raise
    StaleWrite.
    """

    def __init__(self, client: redis.Redis, origin: str):
        self.client = client
        self.origin = origin

    async def read(self, room_id: str) -> Optional[Room]:
        raw = await self.client.get(room_key(room_id))
        return decode_room(raw)

    async def write(self, room_id: str, room: Room, expected_version: Optional[int] = None) -> Room:
        key = room_key(room_id)
        stored = room.model_copy(update={"version": room.version + 1})

        async with self.client.pipeline(transaction=True) as pipe:
            try:
                if expected_version is not None:
                    await pipe.watch(key)
                    current = stored_version(decode_room(await pipe.get(key)))
                    if current != expected_version:
                        raise StaleWrite(room_id, expected_version, current)
                    pipe.multi()

                pipe.set(key, encode_room(stored))
                pipe.publish(key, change_message(room_id, self.origin))
                await pipe.execute()
            except WatchError:
                raise StaleWrite(room_id, expected_version)

        logger.info(f"📤 Stored room {room_id} v{stored.version}")
        return stored

    async def close(self):
        await self.client.aclose()


class RedisChangeNotifier(ChangeNotifier):
    """
    ChangeNotifier fed by Redis pub/sub.

    `listen()` pattern-subscribes to every room channel and must run as a
    background task:
        asyncio.create_task(notifier.listen())

    Messages published by this instance (same origin) are skipped.
    """

    def __init__(self, client: redis.Redis, origin: str):
        super().__init__(origin)
        self.client = client
        self.pubsub = None

    async def listen(self, pattern: str = ROOM_CHANNEL_PATTERN):
        self.pubsub = self.client.pubsub()
        await self.pubsub.psubscribe(pattern)
        logger.info(f"✓ Subscribed to Redis pattern '{pattern}'")

        async for message in self.pubsub.listen():
            if message["type"] in ("message", "pmessage"):
                await self.handle_message(message["data"])

    async def handle_message(self, data: str) -> None:
        try:
            payload = json.loads(data)
            room_id = payload["room_id"]
            origin = payload.get("origin")
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Ignoring malformed Redis change message: {e}")
            return

        if origin == self.origin:
            return

        logger.info(f"➡ Redis: room={room_id} changed by {origin}")
        await self.notify(room_id)

    async def close(self):
        if self.pubsub:
            await self.pubsub.punsubscribe()
            await self.pubsub.aclose()
        await super().close()
        logger.info("Redis listener closed")

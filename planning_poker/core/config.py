# planning_poker/core/config.py
import os
import uuid
from typing import Literal
from dotenv import load_dotenv

class Settings:
    """
    Setup environment variables.
        - STORE_BACKEND where room documents live: "local" or "redis"
        - ROOMS_FILE JSON file backing the local storage medium (empty keeps it in memory)
        - WRITE_POLICY "last_write_wins" or "strict" (reject stale writes)
        - INSTANCE_ID origin id of this process on the shared medium
    """

    # Load environment variables from the .env file
    load_dotenv()

    STORE_BACKEND: Literal["local", "redis"] = os.getenv("STORE_BACKEND", "local")
    ROOMS_FILE: str = os.getenv("ROOMS_FILE", "rooms.json")

    REDIS_HOST: str = os.getenv("REDIS_HOST", "localhost")
    REDIS_PORT: int = int(os.getenv("REDIS_PORT", "6379"))
    REDIS_ACCESS_KEY: str = os.getenv("REDIS_ACCESS_KEY", "")
    REDIS_SSL: bool = os.getenv("REDIS_SSL", "false").lower() == "true"

    WRITE_POLICY: Literal["last_write_wins", "strict"] = os.getenv("WRITE_POLICY", "last_write_wins")

    ROOM_CODE_LENGTH: int = int(os.getenv("ROOM_CODE_LENGTH", "5"))
    ROOM_CREATE_ATTEMPTS: int = int(os.getenv("ROOM_CREATE_ATTEMPTS", "5"))

    INSTANCE_ID: str = os.getenv("INSTANCE_ID") or uuid.uuid4().hex

    @property
    def redis_url(self) -> str:
        scheme = "rediss" if self.REDIS_SSL else "redis"
        return f"{scheme}://:{self.REDIS_ACCESS_KEY}@{self.REDIS_HOST}:{self.REDIS_PORT}"

settings = Settings()

"""
Room code generation and normalization.
"""
import random
import string

from planning_poker.core.exceptions import ValidationError

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_room_code(length: int = 5) -> str:
    """
    Random upper-case alphanumeric room code.

    Example: ABC12, 7QX0D

    Uniqueness is not checked here; the store rejects a colliding create.
    """
    return ''.join(random.choices(ROOM_CODE_ALPHABET, k=length))


def normalize_room_id(room_id: str) -> str:
    """Room codes are case-insensitive: lookups use the upper-cased form."""
    normalized = (room_id or "").strip().upper()
    if not normalized:
        raise ValidationError("Room id required")
    return normalized

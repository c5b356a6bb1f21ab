"""
Room engine exceptions.

Every failure the engine surfaces to a caller derives from
PlanningPokerError so the API layer can map them in one place.
Nothing here is retried by the engine itself.
"""


class PlanningPokerError(Exception):
    """Base class for all room engine errors"""
    pass


class RoomNotFound(PlanningPokerError):
    """The targeted room has no readable document"""
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class NotAParticipant(PlanningPokerError):
    """The name is not (or no longer) a member of the room; the caller must re-join"""
    def __init__(self, room_id, name):
        self.room_id = room_id
        self.name = name
        super().__init__(f"{name!r} is not in room {room_id} (rejoin)")


class ValidationError(PlanningPokerError):
    """Missing or invalid input (empty room id, empty name, unknown card)"""
    pass


class AlreadyExists(PlanningPokerError):
    """Room identifier collision on create; retry with a fresh identifier"""
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} already exists")


class StaleWrite(PlanningPokerError):
    """A versioned write found a different document than the one it read"""
    def __init__(self, room_id, expected_version, actual_version=None):
        self.room_id = room_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        if actual_version is None:
            detail = f"expected version {expected_version}"
        else:
            detail = f"expected version {expected_version}, found {actual_version}"
        super().__init__(f"Room {room_id} changed concurrently ({detail})")

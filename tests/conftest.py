import pytest

from planning_poker.services.change_notifier import LocalChangeNotifier
from planning_poker.services.local_storage import StorageMedium
from planning_poker.services.room_state_machine import RoomStateMachine
from planning_poker.services.room_store import LocalRoomStore

from tests.helpers import FakeClock, code_sequence


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def medium():
    return StorageMedium()


@pytest.fixture
def store(medium):
    return LocalRoomStore(medium, origin="tab-a")


@pytest.fixture
def machine(store, clock):
    return RoomStateMachine(store, id_factory=code_sequence("abc12", "XYZ99", "QQQ11"), clock=clock)


@pytest.fixture
def other_context(medium, clock):
    """A second client (another tab) on the same storage medium."""
    store = LocalRoomStore(medium, origin="tab-b")
    notifier = LocalChangeNotifier(medium, origin="tab-b")
    machine = RoomStateMachine(store, id_factory=code_sequence("ZZZ00"), clock=clock)
    return machine, notifier

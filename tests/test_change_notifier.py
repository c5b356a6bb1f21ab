from planning_poker.services.change_notifier import ChangeNotifier, LocalChangeNotifier
from planning_poker.services.room_store import LocalRoomStore
from planning_poker.models.models import Room

from tests.helpers import FakeClock


def make_room(room_id="ABC12"):
    return Room(id=room_id, created_at=FakeClock()())


async def test_other_context_is_notified_but_writer_is_not(medium):
    writer_notifier = LocalChangeNotifier(medium, origin="tab-a")
    reader_notifier = LocalChangeNotifier(medium, origin="tab-b")
    writer_calls, reader_calls = [], []

    async def on_writer(room_id):
        writer_calls.append(room_id)

    async def on_reader(room_id):
        reader_calls.append(room_id)

    writer_notifier.subscribe("ABC12", on_writer)
    reader_notifier.subscribe("ABC12", on_reader)

    await LocalRoomStore(medium, origin="tab-a").write("ABC12", make_room())

    assert writer_calls == []
    assert reader_calls == ["ABC12"]


async def test_only_subscribed_room_fires(medium):
    notifier = LocalChangeNotifier(medium, origin="tab-b")
    calls = []

    async def on_change(room_id):
        calls.append(room_id)

    notifier.subscribe("XYZ99", on_change)

    await LocalRoomStore(medium, origin="tab-a").write("ABC12", make_room())

    assert calls == []


async def test_unsubscribe_stops_delivery(medium):
    notifier = LocalChangeNotifier(medium, origin="tab-b")
    calls = []

    async def on_change(room_id):
        calls.append(room_id)

    unsubscribe = notifier.subscribe("ABC12", on_change)
    unsubscribe()
    unsubscribe()

    await LocalRoomStore(medium, origin="tab-a").write("ABC12", make_room())

    assert calls == []
    assert notifier.subscribers == {}


async def test_failing_callback_does_not_block_others(medium):
    notifier = LocalChangeNotifier(medium, origin="tab-b")
    calls = []

    async def broken(room_id):
        raise RuntimeError("boom")

    async def on_change(room_id):
        calls.append(room_id)

    notifier.subscribe("ABC12", broken)
    notifier.subscribe("ABC12", on_change)

    await LocalRoomStore(medium, origin="tab-a").write("ABC12", make_room())

    assert calls == ["ABC12"]


async def test_closed_notifier_stops_listening(medium):
    notifier = LocalChangeNotifier(medium, origin="tab-b")
    calls = []

    async def on_change(room_id):
        calls.append(room_id)

    notifier.subscribe("ABC12", on_change)
    await notifier.close()

    await LocalRoomStore(medium, origin="tab-a").write("ABC12", make_room())

    assert calls == []


async def test_non_room_keys_are_ignored(medium):
    notifier = LocalChangeNotifier(medium, origin="tab-b")
    calls = []

    async def on_change(room_id):
        calls.append(room_id)

    notifier.subscribe("ABC12", on_change)

    await medium.set_item("settings:theme", "dark", origin="tab-a")

    assert calls == []


async def test_notify_without_subscribers_is_a_no_op():
    notifier = ChangeNotifier(origin="tab-a")
    await notifier.notify("ABC12")

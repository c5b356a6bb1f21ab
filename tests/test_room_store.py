import json

import pytest

from planning_poker.core.exceptions import StaleWrite
from planning_poker.models.models import Room
from planning_poker.services.local_storage import StorageMedium
from planning_poker.services.room_store import LocalRoomStore, room_id_from_key, room_key

from tests.helpers import FakeClock


def make_room(room_id="ABC12"):
    return Room(id=room_id, created_at=FakeClock()())


async def test_read_missing_room(store):
    assert await store.read("NOPE1") is None


async def test_write_then_read(store, medium):
    stored = await store.write("ABC12", make_room())

    assert stored.version == 1
    assert await store.read("ABC12") == stored
    assert json.loads(medium.get_item("planning-poker:room:ABC12"))["id"] == "ABC12"


async def test_write_replaces_whole_document(store):
    room = await store.write("ABC12", make_room())
    room.deck = ["1", "2"]
    room.reveal = True

    stored = await store.write("ABC12", room)

    assert stored.version == 2
    assert (await store.read("ABC12")).deck == ["1", "2"]


@pytest.mark.parametrize("raw", ["{not json", '{"id": "ABC12"}', "[]", ""])
async def test_unreadable_document_reads_as_absent(store, medium, raw):
    medium.items[room_key("ABC12")] = raw
    assert await store.read("ABC12") is None


async def test_create_only_write_rejects_existing_room(store):
    await store.write("ABC12", make_room())

    with pytest.raises(StaleWrite):
        await store.write("ABC12", make_room(), expected_version=0)


async def test_versioned_write_rejects_stale_document(store, medium):
    first = await store.write("ABC12", make_room())
    other_tab = LocalRoomStore(medium, origin="tab-b")
    await other_tab.write("ABC12", first)

    with pytest.raises(StaleWrite) as excinfo:
        await store.write("ABC12", first, expected_version=first.version)

    assert excinfo.value.actual_version == 2
    assert (await store.read("ABC12")).version == 2


async def test_unversioned_write_overwrites_newer_document(store, medium):
    first = await store.write("ABC12", make_room())
    other_tab = LocalRoomStore(medium, origin="tab-b")
    newer = first.model_copy(update={"reveal": True})
    await other_tab.write("ABC12", newer)

    await store.write("ABC12", first)

    assert (await store.read("ABC12")).reveal is False


def test_room_keys():
    assert room_key("ABC12") == "planning-poker:room:ABC12"
    assert room_id_from_key("planning-poker:room:ABC12") == "ABC12"
    assert room_id_from_key("other:ABC12") is None


async def test_file_backed_medium_survives_restart(tmp_path):
    path = str(tmp_path / "rooms.json")
    store = LocalRoomStore(StorageMedium(path=path), origin="tab-a")
    await store.write("ABC12", make_room())

    reopened = LocalRoomStore(StorageMedium(path=path), origin="tab-a")

    room = await reopened.read("ABC12")
    assert room is not None
    assert room.id == "ABC12"


def test_corrupt_file_starts_empty(tmp_path):
    path = tmp_path / "rooms.json"
    path.write_text("{broken")

    medium = StorageMedium(path=str(path))

    assert medium.items == {}

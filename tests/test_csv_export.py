from planning_poker.models.models import Participant, Room
from planning_poker.services.csv_export import export_csv, export_filename, parse_deck_text, quote_field

from tests.helpers import FakeClock


def test_export_csv_rows():
    clock = FakeClock()
    created = clock()
    alice_joined, alice_seen = clock(), clock()
    room = Room(id="ABC12", created_at=created, participants={
        "Alice": Participant(name="Alice", joined_at=alice_joined, card="5", last_seen=alice_seen),
        'Bob "B"': Participant(name='Bob "B"', joined_at=alice_joined, card=None, last_seen=alice_seen),
    })

    lines = export_csv(room).decode("utf-8").split("\n")

    assert lines[0] == "name,card,joinedAt,lastSeen"
    assert lines[1] == f"Alice,5,{alice_joined.isoformat()},{alice_seen.isoformat()}"
    assert lines[2] == f'"Bob ""B""",,{alice_joined.isoformat()},{alice_seen.isoformat()}'
    assert len(lines) == 3


def test_export_csv_empty_room_has_header_only():
    room = Room(id="ABC12", created_at=FakeClock()())
    assert export_csv(room) == b"name,card,joinedAt,lastSeen"
    assert export_filename(room) == "planning-poker-ABC12.csv"


def test_quote_field():
    assert quote_field("plain") == "plain"
    assert quote_field(None) == ""
    assert quote_field('say "hi"') == '"say ""hi"""'
    assert quote_field("a,b") == '"a,b"'


def test_parse_deck_text():
    assert parse_deck_text("1, 2,,3 , ") == ["1", "2", "3"]
    assert parse_deck_text("") == []

from decimal import Decimal

import pytest

from planning_poker.models.models import Participant, Room
from planning_poker.services.aggregate import compute_average, parse_card_value

from tests.helpers import FakeClock


def room_with_cards(cards):
    clock = FakeClock()
    now = clock()
    return Room(
        id="ABC12",
        created_at=now,
        participants={
            name: Participant(name=name, joined_at=now, card=card, last_seen=now)
            for name, card in cards.items()
        },
    )


def test_average_of_numeric_cards():
    average = compute_average(room_with_cards({"A": "3", "B": "5", "C": "8"}))
    assert average == Decimal("5.33")


def test_non_numeric_cards_are_skipped():
    average = compute_average(room_with_cards({"A": "?", "B": "☕️", "C": "13"}))
    assert str(average) == "13.00"


def test_no_numeric_cards_gives_no_average():
    assert compute_average(room_with_cards({"A": "?", "B": "☕️"})) is None


def test_unselected_cards_are_ignored():
    assert compute_average(room_with_cards({"A": None, "B": "2"})) == Decimal("2.00")
    assert compute_average(room_with_cards({"A": None})) is None


def test_average_rounds_half_up():
    assert compute_average(room_with_cards({"A": "0", "B": "1/2"})) == Decimal("6.00")
    assert compute_average(room_with_cards({"A": "0.5", "B": "0.0"})) == Decimal("0.25")


@pytest.mark.parametrize("card, expected", [
    ("8", Decimal("8")),
    ("0.5", Decimal("0.5")),
    ("-3", Decimal("-3")),
    ("13 pts", Decimal("13")),
    ("1/2", Decimal("12")),
    ("1.2.3", Decimal("1.2")),
    ("?", None),
    ("☕️", None),
    ("-", None),
    ("", None),
])
def test_parse_card_value(card, expected):
    assert parse_card_value(card) == expected


def test_average_of_very_large_cards():
    huge = "1" * 27
    assert compute_average(room_with_cards({"A": huge})) == Decimal(huge + ".00")

    average = compute_average(room_with_cards({"A": "9" * 40, "B": "1"}))
    assert str(average) == "5" + "0" * 39 + ".00"

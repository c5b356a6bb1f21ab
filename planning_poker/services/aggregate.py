"""
Numeric summary of the current card selections.

Pure computation, no state changes. The average is computed whether or
not the cards are revealed; showing it only after reveal is the caller's
job.
"""
import re
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import List, Optional

from planning_poker.models.models import Room

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")

TWO_PLACES = Decimal("0.01")


def parse_card_value(card: str) -> Optional[Decimal]:
    """
    Numeric value of a card label, or None.

    Every character other than digits, '.' and '-' is stripped and the
    leading decimal number of what remains is taken.

    Examples:
        parse_card_value("13")  -> Decimal("13")
        parse_card_value("1/2") -> Decimal("12")
        parse_card_value("?")   -> None
        parse_card_value("☕️")  -> None
    """
    cleaned = _NON_NUMERIC.sub("", card)
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    return Decimal(match.group(0))


def card_values(room: Room) -> List[Decimal]:
    values = []
    for participant in room.participants.values():
        if not participant.card:
            continue
        value = parse_card_value(participant.card)
        if value is not None:
            values.append(value)
    return values


def compute_average(room: Room) -> Optional[Decimal]:
    """
    Mean of the numeric-looking cards, rounded to 2 places.

    Returns None when no card parses (e.g. only "?" and "☕️" were played).

    Example:
        cards 3, 5, 8   -> Decimal("5.33")
        cards ?, ☕️, 13 -> Decimal("13.00")
    """
    values = card_values(room)
    if not values:
        return None
    with localcontext() as ctx:
        # Room for every integer digit of the sum plus the two places
        ctx.prec = max(ctx.prec, max(v.adjusted() for v in values) + len(str(len(values))) + 10)
        mean = sum(values) / len(values)
        return mean.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)

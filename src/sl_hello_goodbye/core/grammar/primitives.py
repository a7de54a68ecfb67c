"""Grammar fragments for the small value types embedded in chat log lines."""

from __future__ import annotations

from urllib.parse import unquote
from uuid import UUID

from ..models import Area, Location, RegionCoordinates
from .base import Cursor, run

_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
_UUID_GROUPS = (8, 4, 4, 4, 12)

INT16_MIN = -(2**15)
INT16_MAX = 2**15 - 1
U64_MAX = 2**64 - 1

AGENT_URL_PREFIX = "secondlife:///app/agent/"
AGENT_URL_ACTIONS = ("about", "inspect", "username", "displayname", "completename")
LOCATION_URL_PREFIXES = (
    "http://maps.secondlife.com/secondlife/",
    "https://maps.secondlife.com/secondlife/",
    "http://slurl.com/secondlife/",
)

_AREA_LITERALS: tuple[tuple[str, Area], ...] = (
    ("chat range", Area.CHAT_RANGE),
    ("draw distance", Area.DRAW_DISTANCE),
    ("the region", Area.REGION),
)


def digits(cur: Cursor) -> str:
    return cur.take_while(lambda c: c in _DIGITS, expected="digit")


def fixed_digits(cur: Cursor, count: int) -> str:
    """Exactly ``count`` decimal digits."""
    start = cur.pos
    for _ in range(count):
        if cur.at_end() or cur.peek() not in _DIGITS:
            raise cur.fail("digit")
        cur.pos += 1
    return cur.text[start : cur.pos]


def unsigned_int(cur: Cursor, *, maximum: int) -> int:
    start = cur.pos
    value = int(digits(cur))
    if value > maximum:
        raise cur.fail_custom("number too large to fit in target type", start)
    return value


def signed_int16(cur: Cursor) -> int:
    start = cur.pos
    negative = cur.accept("-")
    value = int(digits(cur))
    if negative:
        value = -value
    if value < INT16_MIN:
        raise cur.fail_custom("number too small to fit in target type", start)
    if value > INT16_MAX:
        raise cur.fail_custom("number too large to fit in target type", start)
    return value


def uuid(cur: Cursor) -> UUID:
    start = cur.pos
    with cur.label("uuid"):
        for i, width in enumerate(_UUID_GROUPS):
            if i:
                cur.expect("-")
            for _ in range(width):
                if cur.at_end() or cur.peek() not in _HEX_DIGITS:
                    raise cur.fail("hexadecimal digit")
                cur.pos += 1
        try:
            return UUID(cur.text[start : cur.pos])
        except ValueError as exc:
            raise cur.fail_custom(str(exc), start) from exc


def actor_key(cur: Cursor) -> UUID:
    """``secondlife:///app/agent/<uuid>/<action>``."""
    with cur.label("avatar url"):
        cur.expect(AGENT_URL_PREFIX)
        key = uuid(cur)
        cur.expect("/")
        cur.one_of(AGENT_URL_ACTIONS)
    return key


def coordinates(cur: Cursor) -> RegionCoordinates:
    """``x/y/z``."""
    with cur.label("coordinates"):
        x = signed_int16(cur)
        cur.expect("/")
        y = signed_int16(cur)
        cur.expect("/")
        z = signed_int16(cur)
    return RegionCoordinates(x=x, y=y, z=z)


def location(cur: Cursor) -> Location:
    """A maps/slurl URL: ``http://maps.secondlife.com/secondlife/<region>/x/y/z``."""
    with cur.label("location"):
        cur.one_of(LOCATION_URL_PREFIXES)
        region = cur.take_while(lambda c: c not in "/ \t\n", expected="region name")
        cur.expect("/")
        coords = coordinates(cur)
    return Location(region_name=unquote(region), coordinates=coords)


def linden_amount(cur: Cursor) -> int:
    with cur.label("linden amount"):
        return unsigned_int(cur, maximum=U64_MAX)


def distance(cur: Cursor) -> float:
    """``12.34 m`` in meters."""
    with cur.label("distance"):
        start = cur.pos
        text = digits(cur)
        if cur.accept("."):
            text += "." + digits(cur)
        try:
            value = float(text)
        except ValueError as exc:  # pragma: no cover - digits only
            raise cur.fail_custom(str(exc), start) from exc
        cur.expect(" m")
    return value


def area(cur: Cursor) -> Area:
    with cur.label("area"):
        literal = cur.one_of([lit for lit, _ in _AREA_LITERALS])
    return dict(_AREA_LITERALS)[literal]


def parse_actor_key(text: str) -> UUID:
    """Parse an avatar URL into the avatar's key."""
    return run(actor_key, text)


def parse_uuid(text: str) -> UUID:
    return run(uuid, text)


def parse_coordinates(text: str) -> RegionCoordinates:
    return run(coordinates, text)


def parse_location(text: str) -> Location:
    return run(location, text)


def parse_linden_amount(text: str) -> int:
    return run(linden_amount, text)


def parse_distance(text: str) -> float:
    return run(distance, text)


def parse_area(text: str) -> Area:
    return run(area, text)

"""System message grammar (lines prefixed with ``Second Life: ``).

Rules are tried in the order of :data:`SYSTEM_MESSAGE_RULES`. Several rules
share anchors (``gave you`` appears in two of them), so the order matters.
The table ends with a catch-all that keeps the raw text.
"""

from __future__ import annotations

from collections.abc import Sequence

from ..models import (
    AvatarGaveObject,
    ItemsShared,
    ModifiedSearchQuery,
    NowPlaying,
    ObjectGaveObject,
    OtherSystemMessage,
    ReceivedPayment,
    RegionRestart,
    RenamedAvatar,
    SavedAttachment,
    SavedSnapshot,
    SentPayment,
    SimulatorVersionMismatch,
    SystemMessage,
    TeleportCompleted,
)
from .base import Cursor, Rule, first_match, run
from .primitives import actor_key, linden_amount, location

_WHITESPACE = frozenset(" \t\r\n")


def _non_empty_rest(cur: Cursor, expected: str) -> str:
    if cur.at_end():
        raise cur.fail(expected)
    return cur.take_rest()


def _text_then_period(cur: Cursor, expected: str) -> str:
    """The rest of the input, which must end in a period (dropped)."""
    rest = cur.rest()
    if not rest:
        raise cur.fail(expected)
    if not rest.endswith("."):
        raise cur.fail("'.'", at=len(cur.text))
    if len(rest) == 1:
        raise cur.fail(expected)
    cur.pos = len(cur.text)
    return rest[:-1]


def _spaces(cur: Cursor) -> None:
    cur.take_while(lambda c: c in _WHITESPACE, expected="whitespace")


def _saved_snapshot(cur: Cursor) -> SystemMessage:
    cur.expect("Snapshot saved: ")
    return SavedSnapshot(filename=_non_empty_rest(cur, "file name"))


def _saved_attachment(cur: Cursor) -> SystemMessage:
    cur.expect("Attachment has been saved.")
    cur.expect_end()
    return SavedAttachment()


def _sent_payment(cur: Cursor) -> SystemMessage:
    cur.expect("You paid ")
    recipient = actor_key(cur)
    cur.expect(" L$")
    amount = linden_amount(cur)
    cur.expect(".")
    cur.expect_end()
    return SentPayment(recipient_key=recipient, amount=amount)


def _received_payment(cur: Cursor) -> SystemMessage:
    sender = actor_key(cur)
    cur.expect(" paid you L$")
    amount = linden_amount(cur)
    cur.expect(".")
    cur.expect_end()
    return ReceivedPayment(sender_key=sender, amount=amount)


def _now_playing(cur: Cursor) -> SystemMessage:
    cur.expect("Now playing: ")
    return NowPlaying(song_name=_non_empty_rest(cur, "song name"))


def _teleport_completed(cur: Cursor) -> SystemMessage:
    cur.expect("Teleport completed from ")
    origin = location(cur)
    cur.expect_end()
    return TeleportCompleted(origin=origin)


def _region_restart(cur: Cursor) -> SystemMessage:
    cur.expect("The region you are in now is about to restart.")
    cur.take_rest()
    return RegionRestart()


def _object_gave_object(cur: Cursor) -> SystemMessage:
    cur.expect("An object named ")
    opened_at = cur.pos
    cur.expect("[")
    where = location(cur)
    cur.expect(" ")
    if cur.text.find("]", cur.pos) < 0:
        raise cur.fail_unclosed("[", opened_at, "]")
    name = cur.take_until("]", expected="object name")
    cur.expect("]")
    cur.expect(" owned by ")
    owner = actor_key(cur)
    cur.expect(" gave you ")
    given = _text_then_period(cur, "object name")
    return ObjectGaveObject(
        giving_object_name=name,
        giving_object_location=where,
        giving_object_owner=owner,
        given_object_name=given,
    )


def _avatar_gave_object(cur: Cursor) -> SystemMessage:
    giver = cur.take_until(" gave you ", expected="avatar name")
    cur.expect(" gave you ")
    given = _text_then_period(cur, "object name")
    return AvatarGaveObject(giving_avatar_name=giver, given_object_name=given)


def _items_shared(cur: Cursor) -> SystemMessage:
    cur.expect("Items successfully shared.")
    cur.expect_end()
    return ItemsShared()


def _modified_search_query(cur: Cursor) -> SystemMessage:
    cur.expect("Modified search query: ")
    return ModifiedSearchQuery(query=_non_empty_rest(cur, "search query"))


def _simulator_version_mismatch(cur: Cursor) -> SystemMessage:
    cur.expect("The region you have entered is running a different simulator version.")
    _spaces(cur)
    cur.expect("Current simulator: ")
    current = cur.take_while(lambda c: c not in _WHITESPACE, expected="simulator version")
    _spaces(cur)
    cur.expect("Previous simulator: ")
    previous = cur.take_while(lambda c: c not in _WHITESPACE, expected="simulator version")
    cur.take_while(lambda c: c in _WHITESPACE)
    cur.expect_end()
    return SimulatorVersionMismatch(current_version=current, previous_version=previous)


def _renamed_avatar(cur: Cursor) -> SystemMessage:
    old = cur.take_until(" is now known as ", expected="avatar name")
    cur.expect(" is now known as ")
    new = _text_then_period(cur, "avatar name")
    return RenamedAvatar(old_name=old, new_name=new)


def _other_system_message(cur: Cursor) -> SystemMessage:
    return OtherSystemMessage(message=cur.take_rest())


SYSTEM_MESSAGE_RULES: Sequence[tuple[str, Rule[SystemMessage]]] = (
    ("snapshot saved", _saved_snapshot),
    ("attachment saved", _saved_attachment),
    ("sent payment", _sent_payment),
    ("received payment", _received_payment),
    ("now playing", _now_playing),
    ("teleport completed", _teleport_completed),
    ("region restart", _region_restart),
    ("object gave object", _object_gave_object),
    ("avatar gave object", _avatar_gave_object),
    ("items shared", _items_shared),
    ("modified search query", _modified_search_query),
    ("simulator version mismatch", _simulator_version_mismatch),
    ("renamed avatar", _renamed_avatar),
    ("other system message", _other_system_message),
)


def system_message(cur: Cursor) -> SystemMessage:
    return first_match(cur, SYSTEM_MESSAGE_RULES)


def parse_system_message(text: str) -> SystemMessage:
    """Parse the text following ``Second Life: ``. Never fails."""
    return run(system_message, text)

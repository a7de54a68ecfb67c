"""Avatar message grammar (the text after ``<name>: ``)."""

from __future__ import annotations

from collections.abc import Sequence

from ..models import AvatarMessage, CameOnline, Chat, ChatVolume, Emote, EnteredArea, LeftArea, WentOffline
from .base import Cursor, Rule, first_match, run
from .primitives import area, distance

_VOLUME_PREFIXES: tuple[tuple[str, ChatVolume], ...] = (
    ("whispers: ", ChatVolume.WHISPER),
    ("shouts: ", ChatVolume.SHOUT),
)

EMOTE_PREFIX = "/me "


def volume_and_message(body: str) -> tuple[ChatVolume, str]:
    """Split a chat body into its volume and the message proper.

    There is no marker for region-wide chat, so anything without a known
    prefix is treated as normal (say) volume.
    """
    for prefix, volume in _VOLUME_PREFIXES:
        if body.startswith(prefix):
            return volume, body[len(prefix) :]
    return ChatVolume.SAY, body


def _came_online(cur: Cursor) -> AvatarMessage:
    cur.expect("is online.")
    cur.expect_end()
    return CameOnline()


def _went_offline(cur: Cursor) -> AvatarMessage:
    cur.expect("is offline.")
    cur.expect_end()
    return WentOffline()


def _entered_area(cur: Cursor) -> AvatarMessage:
    cur.expect("entered ")
    where = area(cur)
    meters: float | None = None
    if cur.startswith(" ("):
        cur.expect(" ")
        opened_at = cur.pos
        cur.expect("(")
        meters = distance(cur)
        if not cur.accept(")"):
            raise cur.fail_unclosed("(", opened_at, ")")
    cur.expect(".")
    cur.expect_end()
    return EnteredArea(area=where, distance=meters)


def _left_area(cur: Cursor) -> AvatarMessage:
    cur.expect("left ")
    where = area(cur)
    cur.expect(".")
    cur.expect_end()
    return LeftArea(area=where)


def _emote(cur: Cursor) -> AvatarMessage:
    volume, message = volume_and_message(cur.rest())
    if not message.startswith(EMOTE_PREFIX):
        raise cur.fail(repr(EMOTE_PREFIX))
    cur.take_rest()
    return Emote(volume=volume, message=message[len(EMOTE_PREFIX) :])


def _chat(cur: Cursor) -> AvatarMessage:
    volume, message = volume_and_message(cur.take_rest())
    return Chat(volume=volume, message=message)


AVATAR_MESSAGE_RULES: Sequence[tuple[str, Rule[AvatarMessage]]] = (
    ("came online", _came_online),
    ("went offline", _went_offline),
    ("entered area", _entered_area),
    ("left area", _left_area),
    ("emote", _emote),
    ("chat", _chat),
)


def avatar_message(cur: Cursor) -> AvatarMessage:
    return first_match(cur, AVATAR_MESSAGE_RULES)


def parse_avatar_message(text: str) -> AvatarMessage:
    """Parse the text following ``<name>: ``. Falls back to chat, never fails."""
    return run(avatar_message, text)

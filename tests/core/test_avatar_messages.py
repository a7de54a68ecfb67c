from __future__ import annotations

import itertools

import pytest

from sl_hello_goodbye.core.grammar import parse_avatar_message, volume_and_message
from sl_hello_goodbye.core.models import (
    Area,
    CameOnline,
    Chat,
    ChatVolume,
    Emote,
    EnteredArea,
    LeftArea,
    WentOffline,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("is online.", CameOnline()),
        ("is offline.", WentOffline()),
        ("entered chat range (12.34 m).", EnteredArea(area=Area.CHAT_RANGE, distance=12.34)),
        ("entered draw distance (75 m).", EnteredArea(area=Area.DRAW_DISTANCE, distance=75.0)),
        ("entered the region.", EnteredArea(area=Area.REGION, distance=None)),
        ("left chat range.", LeftArea(area=Area.CHAT_RANGE)),
        ("left the region.", LeftArea(area=Area.REGION)),
        ("/me waves", Emote(volume=ChatVolume.SAY, message="waves")),
        ("whispers: /me nods", Emote(volume=ChatVolume.WHISPER, message="nods")),
        ("shouts: HELLO", Chat(volume=ChatVolume.SHOUT, message="HELLO")),
        ("whispers: psst", Chat(volume=ChatVolume.WHISPER, message="psst")),
        ("good evening", Chat(volume=ChatVolume.SAY, message="good evening")),
    ],
)
def test_avatar_message_rules(text: str, expected: object) -> None:
    assert parse_avatar_message(text) == expected


def test_online_with_trailing_text_is_chat() -> None:
    assert parse_avatar_message("is online. yay") == Chat(volume=ChatVolume.SAY, message="is online. yay")


def test_unclosed_distance_falls_back_to_chat() -> None:
    text = "entered chat range (12.34 m."

    assert parse_avatar_message(text) == Chat(volume=ChatVolume.SAY, message=text)


@pytest.mark.parametrize("message", ["", "hi", "/me waves", "whispers: again", "ü"])
def test_volume_prefix_stripping(message: str) -> None:
    assert volume_and_message("whispers: " + message) == (ChatVolume.WHISPER, message)
    assert volume_and_message("shouts: " + message) == (ChatVolume.SHOUT, message)


@pytest.mark.parametrize("message", ["", "hi", "whisper: close but no", " shouts: leading space"])
def test_no_volume_prefix_is_say(message: str) -> None:
    assert volume_and_message(message) == (ChatVolume.SAY, message)


def test_volume_ordering() -> None:
    ordered = [ChatVolume.WHISPER, ChatVolume.SAY, ChatVolume.SHOUT, ChatVolume.REGION_SAY]

    for a, b in itertools.combinations(ordered, 2):
        assert a < b


def test_area_ordering() -> None:
    ordered = [Area.CHAT_RANGE, Area.DRAW_DISTANCE, Area.REGION]

    for a, b in itertools.combinations(ordered, 2):
        assert a < b

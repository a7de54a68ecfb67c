"""Chat log grammar.

Contains the top-level line parser and the fragment parsers it is built from.
"""

from __future__ import annotations

from .avatar import parse_avatar_message, volume_and_message
from .base import ChatLogParseError, Cursor, FailureReason, ParseFailure, first_match
from .greeting import parse_greeting
from .line import parse_chat_log_event, parse_chat_log_line, parse_timestamp
from .primitives import (
    parse_actor_key,
    parse_area,
    parse_coordinates,
    parse_distance,
    parse_linden_amount,
    parse_location,
    parse_uuid,
)
from .system import parse_system_message

__all__ = [
    "ChatLogParseError",
    "Cursor",
    "FailureReason",
    "ParseFailure",
    "first_match",
    "parse_actor_key",
    "parse_area",
    "parse_avatar_message",
    "parse_chat_log_event",
    "parse_chat_log_line",
    "parse_coordinates",
    "parse_distance",
    "parse_greeting",
    "parse_linden_amount",
    "parse_location",
    "parse_system_message",
    "parse_timestamp",
    "parse_uuid",
    "volume_and_message",
]

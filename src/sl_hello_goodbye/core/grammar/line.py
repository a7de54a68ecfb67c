"""Top-level chat log line grammar.

A logical entry looks like ``[2024/05/01 18:04:33]  Jane Doe: hello``. The
timestamp bracket is mandatory; the body after it is dispatched through
:data:`EVENT_RULES`, whose last rule accepts anything.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from ..models import AvatarLine, ChatLogEvent, OtherMessage, ParsedLine, SystemMessageLine
from .avatar import avatar_message
from .base import Cursor, Rule, first_match, run
from .primitives import fixed_digits
from .system import system_message

SYSTEM_PREFIX = "Second Life: "

# Some viewer builds write the timestamp template without substituting it.
UNRESOLVED_TIMESTAMP = (
    "[year,datetime,slt]/[mthnum,datetime,slt]/[day,datetime,slt] "
    "[hour,datetime,slt]:[min,datetime,slt]"
)
UNRESOLVED_SECONDS = ":[second,datetime,slt]"


def _concrete_timestamp(cur: Cursor) -> datetime:
    start = cur.pos
    year = fixed_digits(cur, 4)
    cur.expect("/")
    month = fixed_digits(cur, 2)
    cur.expect("/")
    day = fixed_digits(cur, 2)
    cur.expect(" ")
    hour = fixed_digits(cur, 2)
    cur.expect(":")
    minute = fixed_digits(cur, 2)
    second = "00"
    if cur.accept(":"):
        second = fixed_digits(cur, 2)
    try:
        return datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
    except ValueError as exc:
        raise cur.fail_custom(f"invalid timestamp: {exc}", start) from exc


def timestamp(cur: Cursor) -> datetime | None:
    """``[YYYY/MM/DD HH:MM[:SS]]`` or the unresolved template (-> None)."""
    with cur.label("timestamp"):
        opened_at = cur.pos
        cur.expect("[")
        if cur.startswith("["):
            cur.expect(UNRESOLVED_TIMESTAMP)
            cur.accept(UNRESOLVED_SECONDS)
            value = None
        else:
            value = _concrete_timestamp(cur)
        if not cur.startswith("]"):
            if cur.text.find("]", cur.pos) < 0:
                raise cur.fail_unclosed("[", opened_at, "]")
            raise cur.fail("']'")
        cur.expect("]")
    return value


def _system_line(cur: Cursor) -> ChatLogEvent:
    cur.expect(SYSTEM_PREFIX)
    return SystemMessageLine(message=system_message(cur))


def _avatar_line(cur: Cursor) -> ChatLogEvent:
    name = cur.take_while(lambda c: c != ":", expected="avatar name")
    cur.expect(": ")
    return AvatarLine(name=name, message=avatar_message(cur))


def _other_message(cur: Cursor) -> ChatLogEvent:
    return OtherMessage(message=cur.take_rest())


EVENT_RULES: Sequence[tuple[str, Rule[ChatLogEvent]]] = (
    ("system message", _system_line),
    ("avatar line", _avatar_line),
    ("other message", _other_message),
)


def chat_log_event(cur: Cursor) -> ChatLogEvent:
    return first_match(cur, EVENT_RULES)


def chat_log_line(cur: Cursor) -> ParsedLine:
    ts = timestamp(cur)
    if not cur.at_end():
        cur.take_while(lambda c: c == " ", expected="' '")
    return ParsedLine(timestamp=ts, event=chat_log_event(cur))


def parse_timestamp(text: str) -> datetime | None:
    return run(timestamp, text)


def parse_chat_log_event(text: str) -> ChatLogEvent:
    """Parse a line body (everything after the timestamp). Never fails."""
    return run(chat_log_event, text)


def parse_chat_log_line(text: str) -> ParsedLine:
    """Parse one logical chat log entry.

    Raises ChatLogParseError when the timestamp bracket is missing or
    malformed; any body is accepted.
    """
    return run(chat_log_line, text, label="chat log line")

"""Greeting detection for our own chat lines ("hi jane and john", "hello, paul")."""

from __future__ import annotations

import re

from .base import Cursor, run

# Longer tokens first so "welcome back" is not cut short.
GREETING_TOKENS: tuple[str, ...] = ("welcome back", "hello", "hallo", "ahoy", "hi", "wb")

_SEPARATOR_RE = re.compile(r"\s*(?:,|\n|\band\b|\bund\b)\s*")
_TRAILING_PUNCTUATION = ".!?"


def greeting(cur: Cursor) -> list[str]:
    with cur.label("greeting"):
        cur.one_of(GREETING_TOKENS)
        cur.accept(",")
        cur.take_while(str.isspace, expected="whitespace")
        start = cur.pos
        names = [
            name.strip().rstrip(_TRAILING_PUNCTUATION).strip()
            for name in _SEPARATOR_RE.split(cur.take_rest())
        ]
        names = [name for name in names if name]
        if not names:
            raise cur.fail("name", at=start)
    return names


def parse_greeting(text: str) -> list[str]:
    """Return the greeted names, raising ChatLogParseError if ``text`` is no greeting."""
    return run(greeting, text)

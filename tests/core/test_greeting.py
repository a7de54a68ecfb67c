from __future__ import annotations

import pytest

from sl_hello_goodbye.core.grammar import ChatLogParseError, parse_greeting


@pytest.mark.parametrize(
    ("text", "names"),
    [
        ("hello john", ["john"]),
        ("hello john and paul", ["john", "paul"]),
        ("hello john, paul and mary", ["john", "paul", "mary"]),
        ("hi  jane ", ["jane"]),
        ("welcome back jane!", ["jane"]),
        ("wb jane", ["jane"]),
        ("ahoy jane,\nbob", ["jane", "bob"]),
        ("hallo anna und bernd", ["anna", "bernd"]),
        ("hi andrew", ["andrew"]),
        ("hi, jane", ["jane"]),
        ("hello, john and paul", ["john", "paul"]),
    ],
)
def test_parse_greeting(text: str, names: list[str]) -> None:
    assert parse_greeting(text) == names


@pytest.mark.parametrize("text", ["hi", "hi ", "hi,", "hi,jane", "history lesson", "good morning jane", ""])
def test_not_a_greeting(text: str) -> None:
    with pytest.raises(ChatLogParseError):
        parse_greeting(text)

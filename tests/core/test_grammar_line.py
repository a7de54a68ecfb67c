from __future__ import annotations

from datetime import datetime

import pytest

from sl_hello_goodbye.core.grammar import (
    ChatLogParseError,
    FailureReason,
    ParseFailure,
    parse_chat_log_event,
    parse_chat_log_line,
    parse_timestamp,
)
from sl_hello_goodbye.core.grammar.line import UNRESOLVED_SECONDS, UNRESOLVED_TIMESTAMP
from sl_hello_goodbye.core.models import (
    AvatarLine,
    Chat,
    ChatVolume,
    ItemsShared,
    OtherMessage,
    SystemMessageLine,
)


def test_parse_avatar_line_with_seconds() -> None:
    parsed = parse_chat_log_line("[2024/05/01 18:04:33]  Jane Doe: hello")

    assert parsed.timestamp == datetime(2024, 5, 1, 18, 4, 33)
    assert parsed.event == AvatarLine(name="Jane Doe", message=Chat(volume=ChatVolume.SAY, message="hello"))


def test_parse_timestamp_seconds_default_to_zero() -> None:
    assert parse_timestamp("[2024/05/01 18:04]") == datetime(2024, 5, 1, 18, 4, 0)


@pytest.mark.parametrize("suffix", ["", UNRESOLVED_SECONDS])
def test_unresolved_timestamp_template_is_none(suffix: str) -> None:
    parsed = parse_chat_log_line(f"[{UNRESOLVED_TIMESTAMP}{suffix}]  Jane Doe: hi")

    assert parsed.timestamp is None
    assert isinstance(parsed.event, AvatarLine)


def test_parse_system_line() -> None:
    parsed = parse_chat_log_line("[2024/05/01 18:04:33]  Second Life: Items successfully shared.")

    assert parsed.event == SystemMessageLine(message=ItemsShared())


def test_parse_other_message_without_name() -> None:
    parsed = parse_chat_log_line("[2024/05/01 18:04:33]  just some text")

    assert parsed.event == OtherMessage(message="just some text")


def test_colon_without_space_is_other_message() -> None:
    parsed = parse_chat_log_line("[2024/05/01 18:04:33] Jane Doe:hello")

    assert parsed.event == OtherMessage(message="Jane Doe:hello")


def test_multi_line_entry_keeps_continuation() -> None:
    parsed = parse_chat_log_line("[2024/05/01 18:00:09]  Jane Doe: hi everyone\n   second line")

    assert parsed.event.message == Chat(volume=ChatVolume.SAY, message="hi everyone\n   second line")


def test_timestamp_only_line() -> None:
    parsed = parse_chat_log_line("[2024/05/01 18:04]")

    assert parsed.event == OtherMessage(message="")


@pytest.mark.parametrize("body", ["", ":", "Second Life: ", "x: ", "\n\n", "ü: ß", "[not a timestamp"])
def test_event_parse_never_fails(body: str) -> None:
    event = parse_chat_log_event(body)

    assert event is not None


def test_missing_bracket_fails_at_start() -> None:
    with pytest.raises(ChatLogParseError) as excinfo:
        parse_chat_log_line("2024/05/01 18:04:33 Jane: hi")

    failure = excinfo.value.failures[0]
    assert failure.span == (0, 1)
    assert failure.found == "2"
    assert failure.expected == frozenset({"'['"})
    assert failure.label == "timestamp"


def test_non_digit_in_timestamp() -> None:
    with pytest.raises(ChatLogParseError) as excinfo:
        parse_chat_log_line("[2024/0x/01 10:00] Jane: hi")

    failure = excinfo.value.failures[0]
    assert failure.span == (7, 8)
    assert failure.found == "x"
    assert failure.expected == frozenset({"digit"})


def test_invalid_date_is_custom_failure() -> None:
    with pytest.raises(ChatLogParseError) as excinfo:
        parse_chat_log_line("[2024/13/01 10:00] Jane: hi")

    failure = excinfo.value.failures[0]
    assert failure.reason is FailureReason.CUSTOM
    assert failure.span == (1, 17)
    assert failure.message is not None
    assert failure.message.startswith("invalid timestamp")


def test_unclosed_timestamp_bracket() -> None:
    with pytest.raises(ChatLogParseError) as excinfo:
        parse_chat_log_line("[2024/05/01 10:00 Jane: hi")

    failure = excinfo.value.failures[0]
    assert failure.reason is FailureReason.UNCLOSED_DELIMITER
    assert failure.delimiter == "["
    assert failure.delimiter_span == (0, 1)
    assert failure.span == (17, 18)


def test_end_of_input_failure_has_no_found_token() -> None:
    with pytest.raises(ChatLogParseError) as excinfo:
        parse_chat_log_line("[2024/05")

    failure = excinfo.value.failures[0]
    assert failure.found is None
    assert failure.span == (8, 8)


def test_missing_space_after_timestamp() -> None:
    with pytest.raises(ChatLogParseError) as excinfo:
        parse_chat_log_line("[2024/05/01 10:00]Jane: hi")

    assert excinfo.value.failures[0].span == (18, 19)


def test_byte_span_counts_utf8_bytes() -> None:
    failure = ParseFailure(span=(2, 3), found="x")

    assert failure.byte_span("ü x") == (3, 4)

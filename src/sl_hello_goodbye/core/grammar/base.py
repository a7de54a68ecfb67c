"""Parsing primitives shared by all grammar fragments.

Every fragment parser is a plain function taking a :class:`Cursor`. A parser
either returns its value (leaving the cursor after the consumed text) or
raises :class:`ChatLogParseError` carrying structured :class:`ParseFailure`
values. Nothing in here formats text for humans; see
:mod:`sl_hello_goodbye.core.diagnostics` for that.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

T = TypeVar("T")

END_OF_INPUT = "end of input"


class FailureReason(str, Enum):
    """Why a fragment parser gave up."""

    UNEXPECTED = "unexpected"
    UNCLOSED_DELIMITER = "unclosed_delimiter"
    CUSTOM = "custom"


@dataclass(frozen=True, slots=True)
class ParseFailure:
    """A single structured parse failure.

    Spans are ``(start, end)`` character offsets into the parsed text.
    ``found`` is None when the parser ran into the end of input.
    """

    span: tuple[int, int]
    expected: frozenset[str] = frozenset()
    found: str | None = None
    label: str | None = None
    reason: FailureReason = FailureReason.UNEXPECTED
    delimiter: str | None = None
    delimiter_span: tuple[int, int] | None = None
    message: str | None = None

    def byte_span(self, source: str) -> tuple[int, int]:
        """Return the span as UTF-8 byte offsets into ``source``."""
        start, end = self.span
        head = len(source[:start].encode("utf-8", errors="surrogatepass"))
        width = len(source[start:end].encode("utf-8", errors="surrogatepass"))
        return head, head + width


class ChatLogParseError(ValueError):
    """Raised by grammar fragments; carries one or more ParseFailures."""

    def __init__(self, failures: Sequence[ParseFailure]) -> None:
        self.failures: tuple[ParseFailure, ...] = tuple(failures)
        first = self.failures[0] if self.failures else None
        if first is None:
            summary = "parse failed"
        elif first.reason is FailureReason.CUSTOM:
            summary = first.message or "parse failed"
        else:
            found = repr(first.found) if first.found is not None else END_OF_INPUT
            summary = f"unexpected {found} at offset {first.span[0]}"
        super().__init__(summary)


def _merge(failures: Iterable[ParseFailure]) -> list[ParseFailure]:
    """Keep the failures that got furthest; merge expectations at equal spans."""
    failures = list(failures)
    if not failures:
        return []
    furthest = max(f.span[0] for f in failures)
    merged: dict[tuple[tuple[int, int], FailureReason, str | None], ParseFailure] = {}
    for f in failures:
        if f.span[0] != furthest:
            continue
        key = (f.span, f.reason, f.message)
        prev = merged.get(key)
        if prev is None:
            merged[key] = f
        else:
            merged[key] = ParseFailure(
                span=prev.span,
                expected=prev.expected | f.expected,
                found=prev.found,
                label=prev.label or f.label,
                reason=prev.reason,
                delimiter=prev.delimiter,
                delimiter_span=prev.delimiter_span,
                message=prev.message,
            )
    return list(merged.values())


@dataclass(slots=True)
class Cursor:
    """Position inside the text being parsed."""

    text: str
    pos: int = 0
    _labels: list[str] = field(default_factory=list)

    # -- inspection --------------------------------------------------------

    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def peek(self, n: int = 1) -> str:
        return self.text[self.pos : self.pos + n]

    def rest(self) -> str:
        return self.text[self.pos :]

    def startswith(self, literal: str) -> bool:
        return self.text.startswith(literal, self.pos)

    @property
    def current_label(self) -> str | None:
        return self._labels[-1] if self._labels else None

    @contextmanager
    def label(self, name: str) -> Iterator[None]:
        """Name the grammar rule active while the block runs."""
        self._labels.append(name)
        try:
            yield
        finally:
            self._labels.pop()

    # -- failures ----------------------------------------------------------

    def fail(self, *expected: str, at: int | None = None) -> ChatLogParseError:
        """Build an 'unexpected token' error at the cursor (or ``at``)."""
        pos = self.pos if at is None else at
        if pos >= len(self.text):
            found = None
            span = (len(self.text), len(self.text))
        else:
            found = self.text[pos]
            span = (pos, pos + 1)
        return ChatLogParseError(
            [
                ParseFailure(
                    span=span,
                    expected=frozenset(expected),
                    found=found,
                    label=self.current_label,
                )
            ]
        )

    def fail_custom(self, message: str, start: int, end: int | None = None) -> ChatLogParseError:
        end = self.pos if end is None else end
        return ChatLogParseError(
            [
                ParseFailure(
                    span=(start, max(start, end)),
                    found=self.text[start:end] or None,
                    label=self.current_label,
                    reason=FailureReason.CUSTOM,
                    message=message,
                )
            ]
        )

    def fail_unclosed(self, delimiter: str, opened_at: int, closing: str) -> ChatLogParseError:
        base = self.fail(repr(closing)).failures[0]
        return ChatLogParseError(
            [
                ParseFailure(
                    span=base.span,
                    expected=base.expected,
                    found=base.found,
                    label=self.current_label,
                    reason=FailureReason.UNCLOSED_DELIMITER,
                    delimiter=delimiter,
                    delimiter_span=(opened_at, opened_at + len(delimiter)),
                )
            ]
        )

    # -- consuming ---------------------------------------------------------

    def expect(self, literal: str) -> str:
        """Consume ``literal`` or fail at the first mismatching character."""
        for i, ch in enumerate(literal):
            pos = self.pos + i
            if pos >= len(self.text) or self.text[pos] != ch:
                raise self.fail(repr(literal), at=pos)
        self.pos += len(literal)
        return literal

    def accept(self, literal: str) -> bool:
        """Consume ``literal`` if it is next."""
        if self.startswith(literal):
            self.pos += len(literal)
            return True
        return False

    def one_of(self, literals: Sequence[str]) -> str:
        """Consume the first of ``literals`` that matches."""
        for literal in literals:
            if self.accept(literal):
                return literal
        raise self.fail(*(repr(lit) for lit in literals))

    def take_while(self, pred: Callable[[str], bool], *, expected: str | None = None) -> str:
        """Consume characters while ``pred`` holds; at least one if ``expected`` is set."""
        start = self.pos
        while self.pos < len(self.text) and pred(self.text[self.pos]):
            self.pos += 1
        if expected is not None and self.pos == start:
            raise self.fail(expected)
        return self.text[start : self.pos]

    def take_until(self, anchor: str, *, expected: str | None = None) -> str:
        """Consume everything up to (not including) the next ``anchor``."""
        idx = self.text.find(anchor, self.pos)
        if idx < 0:
            raise self.fail(repr(anchor), at=len(self.text))
        if expected is not None and idx == self.pos:
            raise self.fail(expected)
        out = self.text[self.pos : idx]
        self.pos = idx
        return out

    def take_rest(self) -> str:
        out = self.text[self.pos :]
        self.pos = len(self.text)
        return out

    def expect_end(self) -> None:
        if not self.at_end():
            raise self.fail(END_OF_INPUT)


Rule = Callable[[Cursor], T]


def first_match(cur: Cursor, rules: Sequence[tuple[str, Rule[T]]]) -> T:
    """Try ``(label, rule)`` pairs in order; first success wins.

    Each rule starts from the same position. When every rule fails, the
    failures that got furthest into the text are merged and raised.
    """
    start = cur.pos
    failures: list[ParseFailure] = []
    for name, rule in rules:
        cur.pos = start
        try:
            with cur.label(name):
                return rule(cur)
        except ChatLogParseError as exc:
            failures.extend(exc.failures)
    cur.pos = start
    raise ChatLogParseError(_merge(failures))


def run(rule: Rule[T], text: str, *, label: str | None = None) -> T:
    """Run ``rule`` over the whole of ``text``."""
    cur = Cursor(text)
    if label is None:
        value = rule(cur)
        cur.expect_end()
        return value
    with cur.label(label):
        value = rule(cur)
        cur.expect_end()
    return value

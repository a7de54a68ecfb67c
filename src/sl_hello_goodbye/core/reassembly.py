"""Reassembly of physical chat log lines into logical entries.

The viewer writes multi-line messages as a head line followed by lines that
start with whitespace (or are empty). Such a continuation looks exactly like
the start of an empty message until the next line shows up, so the pipeline
also flushes the buffer after a quiet period without new lines.
"""

from __future__ import annotations

from dataclasses import dataclass

from .models import LogicalEntry


def is_continuation(line: str) -> bool:
    """True for lines that extend the previous entry."""
    return line == "" or line[0].isspace()


@dataclass(slots=True)
class LineReassembler:
    """Holds at most one in-progress entry."""

    _buffer: str | None = None

    @property
    def pending(self) -> bool:
        return self._buffer is not None

    def feed(self, line: str) -> LogicalEntry | None:
        """Add a physical line; return the entry it completed, if any."""
        if self._buffer is not None and is_continuation(line):
            self._buffer = f"{self._buffer}\n{line}"
            return None
        done = self.flush()
        self._buffer = line
        return done

    def flush(self) -> LogicalEntry | None:
        """Emit the in-progress entry (quiet period elapsed or input ended)."""
        if self._buffer is None:
            return None
        entry = LogicalEntry(content=self._buffer)
        self._buffer = None
        return entry

"""The ingestion pipeline: raw lines -> logical entries -> parsed lines -> presence.

Three asyncio tasks connected by bounded queues:

1. reader: pulls ``RawLine`` values from the source (usually the tailer)
2. reassembler: turns them into ``LogicalEntry`` values, flushing after a
   quiet period
3. consumer: parses entries and feeds the presence state machine

When the source is exhausted the reassembler flushes its buffer, the consumer
drains the remaining entries and the first error raised by any stage is
re-raised to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

import aiofiles

from .diagnostics import DiagnosticRenderError, render_failures
from .grammar import ChatLogParseError, parse_chat_log_line
from .models import LogicalEntry, ParsedLine, RawLine
from .presence import PresenceStateMachine
from .reassembly import LineReassembler

LOGGER = logging.getLogger(__name__)

PARSE_FAILURE_DESCRIPTION = "could not parse chat log line"


@dataclass(slots=True)
class PipelineStats:
    lines: int = 0
    entries: int = 0
    parsed: int = 0
    failed: int = 0
    decisions: int = 0


def parse_entry(entry: LogicalEntry, *, source_name: str = "<entry>") -> ParsedLine | None:
    """Parse one entry; log a rendered diagnostic and return None on failure."""
    try:
        return parse_chat_log_line(entry.content)
    except ChatLogParseError as exc:
        try:
            report = render_failures(
                exc, entry.content, PARSE_FAILURE_DESCRIPTION, source_name=source_name
            )
        except DiagnosticRenderError:
            LOGGER.exception("internal error while rendering a parse diagnostic")
        else:
            LOGGER.warning("%s", report)
        return None


async def run_pipeline(
    source: AsyncIterator[RawLine],
    machine: PresenceStateMachine,
    *,
    quiet_period: float,
    queue_size: int = 256,
    source_name: str = "<entry>",
) -> PipelineStats:
    """Run all stages until ``source`` is exhausted."""
    if queue_size < 1:
        raise ValueError("queue_size must be >= 1")
    if quiet_period <= 0:
        raise ValueError("quiet_period must be > 0")

    line_queue: asyncio.Queue[object] = asyncio.Queue(maxsize=queue_size)
    entry_queue: asyncio.Queue[object] = asyncio.Queue(maxsize=queue_size)
    done_sentinel = object()
    errors: list[Exception] = []
    stats = PipelineStats()

    async def reader() -> None:
        try:
            async for raw in source:
                stats.lines += 1
                await line_queue.put(raw)
        except Exception as exc:
            errors.append(exc)
        await line_queue.put(done_sentinel)

    async def reassembler() -> None:
        assembler = LineReassembler()
        try:
            while True:
                timeout = quiet_period if assembler.pending else None
                try:
                    item = await asyncio.wait_for(line_queue.get(), timeout=timeout)
                except TimeoutError:
                    entry = assembler.flush()
                    if entry is not None:
                        await entry_queue.put(entry)
                    continue
                if item is done_sentinel:
                    break
                entry = assembler.feed(item.content)
                if entry is not None:
                    await entry_queue.put(entry)
            entry = assembler.flush()
            if entry is not None:
                await entry_queue.put(entry)
        except Exception as exc:
            errors.append(exc)
        await entry_queue.put(done_sentinel)

    reader_task = asyncio.create_task(reader())
    reassembler_task = asyncio.create_task(reassembler())

    try:
        while True:
            item = await entry_queue.get()
            if item is done_sentinel:
                break
            stats.entries += 1
            parsed = parse_entry(item, source_name=source_name)
            if parsed is None:
                stats.failed += 1
                continue
            stats.parsed += 1
            stats.decisions += len(await machine.handle(parsed))

        if errors:
            raise errors[0]
    finally:
        reader_task.cancel()
        reassembler_task.cancel()
        await asyncio.gather(reader_task, reassembler_task, return_exceptions=True)

    LOGGER.info(
        "pipeline finished: %d lines, %d entries, %d parsed, %d failed",
        stats.lines,
        stats.entries,
        stats.parsed,
        stats.failed,
    )
    return stats


async def iter_logical_entries(
    path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> AsyncIterator[tuple[int, LogicalEntry]]:
    """Yield ``(first line number, entry)`` for a complete chat log file."""
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Chat log not found: {path}")

    assembler = LineReassembler()
    head_line = 1
    async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
        line_no = 0
        async for line in f:
            line_no += 1
            line = line.rstrip("\r\n")
            entry = assembler.feed(line)
            if entry is not None:
                yield head_line, entry
                head_line = line_no
    entry = assembler.flush()
    if entry is not None:
        yield head_line, entry

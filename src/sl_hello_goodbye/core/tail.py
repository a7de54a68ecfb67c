"""Following a chat log file as the viewer appends to it."""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import time
from collections.abc import AsyncIterator
from pathlib import Path

import aiofiles
import aiofiles.os

from .models import RawLine

LOGGER = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class ChatLogNotFoundError(FileNotFoundError):
    """The chat log to follow does not exist."""


async def _sleep_or_stop(seconds: float, stop: asyncio.Event | None) -> None:
    if stop is None:
        await asyncio.sleep(seconds)
        return
    with contextlib.suppress(TimeoutError):
        await asyncio.wait_for(stop.wait(), timeout=seconds)


async def tail_chat_log(
    path: str | Path,
    *,
    from_start: bool = False,
    follow: bool = True,
    poll_interval: float = 0.25,
    stop: asyncio.Event | None = None,
    encoding: str = "utf-8",
    read_chunk_size: int = READ_CHUNK_SIZE,
) -> AsyncIterator[RawLine]:
    """Yield lines appended to ``path``.

    Starts at the end of the file unless ``from_start`` is set. Without
    ``follow`` the iterator ends once the current end of file is reached;
    otherwise it polls until ``stop`` is set. A file that shrinks is assumed
    to have been truncated and is read again from the start. New data is read
    in chunks of at most ``read_chunk_size`` bytes.
    """
    if read_chunk_size < 1:
        raise ValueError("read_chunk_size must be >= 1")
    path = Path(path)
    if not path.is_file():
        raise ChatLogNotFoundError(f"Chat log not found: {path}")

    source_id = str(path)
    offset = 0 if from_start else path.stat().st_size
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    partial = ""

    while stop is None or not stop.is_set():
        try:
            size = (await aiofiles.os.stat(path)).st_size
        except FileNotFoundError:
            LOGGER.debug("%s disappeared; waiting for it to come back", path)
            size = 0

        if size < offset:
            LOGGER.info("%s was truncated; reading from the start", path)
            offset = 0
            partial = ""
            decoder.reset()

        if size > offset:
            async with aiofiles.open(path, "rb") as f:
                await f.seek(offset)
                while offset < size:
                    data = await f.read(min(read_chunk_size, size - offset))
                    if not data:
                        break
                    offset += len(data)
                    lines = (partial + decoder.decode(data)).split("\n")
                    partial = lines.pop()
                    now = time.monotonic()
                    for line in lines:
                        yield RawLine(source_id=source_id, content=line.rstrip("\r"), arrival_time=now)
            continue

        if not follow:
            break
        await _sleep_or_stop(poll_interval, stop)

    partial += decoder.decode(b"", final=True)
    if partial:
        yield RawLine(source_id=source_id, content=partial.rstrip("\r"), arrival_time=time.monotonic())

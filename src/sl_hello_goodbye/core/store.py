"""Persistence of last-seen timestamps across restarts."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Protocol

import aiofiles
import aiofiles.os
from pydantic import BaseModel, Field, ValidationError, field_validator

LOGGER = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class StoreError(RuntimeError):
    """The last-seen store could not be read or written."""


class LastSeenStore(Protocol):
    """Key-value store keyed by lower-cased avatar name."""

    async def load(self) -> dict[str, datetime]:
        """Return every stored last-seen timestamp."""
        ...

    async def save(self, name: str, timestamp: datetime) -> None:
        """Store ``timestamp`` for ``name``. Repeating a write is harmless."""
        ...


def format_timestamp(ts: datetime) -> str:
    return ts.strftime(TIMESTAMP_FORMAT)


def parse_stored_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT)


class LastSeenDocument(BaseModel):
    version: int = Field(default=1, description="File format version.")
    last_seen: dict[str, str] = Field(
        default_factory=dict,
        description="Lower-cased avatar name -> 'YYYY-MM-DD HH:MM:SS'.",
    )

    @field_validator("last_seen")
    @classmethod
    def _check_timestamps(cls, value: dict[str, str]) -> dict[str, str]:
        for name, ts in value.items():
            try:
                parse_stored_timestamp(ts)
            except ValueError as exc:
                raise ValueError(f"invalid timestamp for {name!r}: {ts!r}") from exc
        return value


class JsonLastSeenStore:
    """JSON file store, rewritten atomically on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._values: dict[str, str] | None = None

    async def _read(self) -> dict[str, str]:
        if self._values is not None:
            return self._values
        if not self.path.exists():
            self._values = {}
            return self._values
        try:
            async with aiofiles.open(self.path, encoding="utf-8") as f:
                raw = await f.read()
        except OSError as exc:
            raise StoreError(f"cannot read last-seen store {self.path}: {exc}") from exc
        try:
            doc = LastSeenDocument.model_validate_json(raw)
        except ValidationError as exc:
            raise StoreError(f"corrupt last-seen store {self.path}: {exc}") from exc
        self._values = {name.lower(): ts for name, ts in doc.last_seen.items()}
        return self._values

    async def load(self) -> dict[str, datetime]:
        values = await self._read()
        return {name: parse_stored_timestamp(ts) for name, ts in values.items()}

    async def save(self, name: str, timestamp: datetime) -> None:
        values = dict(await self._read())
        values[name.lower()] = format_timestamp(timestamp)
        doc = LastSeenDocument(last_seen=values)
        tmp = self.path.with_name(self.path.name + ".tmp")
        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
                await f.write(doc.model_dump_json(indent=2))
            await aiofiles.os.replace(tmp, self.path)
        except OSError as exc:
            raise StoreError(f"cannot write last-seen store {self.path}: {exc}") from exc
        self._values = values
        LOGGER.debug("stored last seen %s for %s", values[name.lower()], name)

"""Presence tracking for avatars entering and leaving chat range.

:meth:`PresenceStateMachine.transition` is the only place records change. It
returns the decisions (notify, close a notification, persist a timestamp)
that :meth:`PresenceStateMachine.handle` then carries out against the
notifier and the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Union

from .grammar import ChatLogParseError, parse_greeting
from .models import (
    Area,
    AvatarLine,
    Chat,
    ChatVolume,
    Emote,
    EnteredArea,
    LeftArea,
    ParsedLine,
    PresenceRecord,
)
from .notify import Notifier
from .store import LastSeenStore, format_timestamp

LOGGER = logging.getLogger(__name__)

DEFAULT_GRACE_WINDOW = timedelta(seconds=5)


@dataclass(frozen=True, slots=True)
class Notify:
    name: str
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class CloseNotification:
    name: str
    handle: Any


@dataclass(frozen=True, slots=True)
class PersistLastSeen:
    name: str
    timestamp: datetime


Decision = Union[Notify, CloseNotification, PersistLastSeen]


def _format_age(age: timedelta) -> str:
    seconds = int(age.total_seconds())
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h {seconds % 3600 // 60}m"
    return f"{seconds // 86400}d {seconds % 86400 // 3600}h"


class PresenceStateMachine:
    """Owns the presence records; driven by one consumer task."""

    def __init__(
        self,
        own_name: str,
        notifier: Notifier,
        store: LastSeenStore,
        *,
        grace_window: timedelta = DEFAULT_GRACE_WINDOW,
    ) -> None:
        self.own_name = own_name.lower()
        self.notifier = notifier
        self.store = store
        self.grace_window = grace_window
        self.records: dict[str, PresenceRecord] = {}

    def record(self, name: str) -> PresenceRecord | None:
        return self.records.get(name.lower())

    async def restore(self) -> int:
        """Seed last-seen values from the store; returns the number loaded."""
        stored = await self.store.load()
        for name, ts in stored.items():
            self.records[name.lower()] = PresenceRecord(last_seen=ts)
        LOGGER.info("restored last seen timestamps for %d avatars", len(stored))
        return len(stored)

    # -- transitions -------------------------------------------------------

    def transition(self, parsed: ParsedLine) -> list[Decision]:
        """Apply one parsed line to the records and return what to do about it."""
        event = parsed.event
        if not isinstance(event, AvatarLine):
            return []
        key = event.name.lower()
        msg = event.message

        if isinstance(msg, EnteredArea) and msg.area is Area.CHAT_RANGE:
            return self._entered(key, event.name, parsed.timestamp, msg.distance)
        if isinstance(msg, LeftArea) and msg.area is Area.CHAT_RANGE:
            return self._left(key, parsed.timestamp)
        if key == self.own_name:
            if isinstance(msg, Chat):
                return self._greeted(msg.message)
            return []
        if isinstance(msg, (Chat, Emote)) and msg.volume <= ChatVolume.SAY:
            return self._seen(key, parsed.timestamp)
        return []

    def _take_pending(self, key: str, record: PresenceRecord) -> list[Decision]:
        if record.pending_notification is None:
            return []
        handle = record.pending_notification
        record.pending_notification = None
        return [CloseNotification(name=key, handle=handle)]

    def _entered(
        self, key: str, display_name: str, ts: datetime | None, meters: float | None
    ) -> list[Decision]:
        if ts is None:
            LOGGER.debug("ignoring untimestamped chat range entry of %s", display_name)
            return []

        decisions: list[Decision] = []
        record = self.records.get(key)
        previous = record.last_seen if record is not None else None

        if previous is not None and ts - previous <= self.grace_window:
            LOGGER.debug("%s re-entered chat range within grace window", display_name)
        else:
            body = f"{display_name} entered chat range"
            if meters is not None:
                body += f" ({meters:.1f} m)"
            if previous is not None:
                body += f"\nlast seen {format_timestamp(previous)} ({_format_age(ts - previous)} ago)"
            if record is not None:
                # replace rather than leak an older notification
                decisions.extend(self._take_pending(key, record))
            decisions.append(Notify(name=key, title=f"Say hello to {display_name}", body=body))

        if record is None:
            record = PresenceRecord(last_seen=ts)
            self.records[key] = record
        record.last_seen = ts
        record.in_range = True
        decisions.append(PersistLastSeen(name=key, timestamp=ts))
        return decisions

    def _left(self, key: str, ts: datetime | None) -> list[Decision]:
        decisions: list[Decision] = []
        record = self.records.get(key)
        if record is not None:
            decisions.extend(self._take_pending(key, record))
            record.in_range = False
        if ts is not None:
            if record is None:
                self.records[key] = PresenceRecord(last_seen=ts)
            else:
                record.last_seen = ts
            decisions.append(PersistLastSeen(name=key, timestamp=ts))
        return decisions

    def _greeted(self, message: str) -> list[Decision]:
        try:
            names = parse_greeting(message.lower())
        except ChatLogParseError:
            return []
        decisions: list[Decision] = []
        for token in names:
            for key, record in self.records.items():
                if token in key:
                    decisions.extend(self._take_pending(key, record))
        return decisions

    def _seen(self, key: str, ts: datetime | None) -> list[Decision]:
        if ts is None:
            return []
        record = self.records.get(key)
        if record is None:
            self.records[key] = PresenceRecord(last_seen=ts)
        else:
            record.last_seen = ts
        return [PersistLastSeen(name=key, timestamp=ts)]

    # -- side effects ------------------------------------------------------

    async def _execute(self, decision: Decision) -> None:
        if isinstance(decision, Notify):
            LOGGER.info("notifying: %s", decision.body.replace("\n", " / "))
            handle = await self.notifier.show(decision.title, decision.body)
            record = self.records.get(decision.name)
            if record is not None and handle is not None:
                record.pending_notification = handle
        elif isinstance(decision, CloseNotification):
            LOGGER.info("closing notification for %s", decision.name)
            await self.notifier.close(decision.handle)
        else:
            await self.store.save(decision.name, decision.timestamp)

    async def handle(self, parsed: ParsedLine) -> list[Decision]:
        """Apply ``parsed`` and carry out the resulting decisions in order."""
        decisions = self.transition(parsed)
        for decision in decisions:
            await self._execute(decision)
        return decisions

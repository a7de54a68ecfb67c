"""Core data models for chat log events and presence tracking."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any, Union
from uuid import UUID


class ChatVolume(IntEnum):
    """How far a chat message carries. Ordered from quietest to loudest."""

    WHISPER = 0  # 10m
    SAY = 1  # 20m, a.k.a. chat range
    SHOUT = 2  # 100m
    REGION_SAY = 3  # whole region


class Area(IntEnum):
    """Radar areas, ordered from narrowest to widest."""

    CHAT_RANGE = 0
    DRAW_DISTANCE = 1
    REGION = 2


@dataclass(frozen=True, slots=True)
class RegionCoordinates:
    """Integer position inside a region (each axis fits in 16 bits signed)."""

    x: int
    y: int
    z: int


@dataclass(frozen=True, slots=True)
class Location:
    """Region name plus coordinates."""

    region_name: str
    coordinates: RegionCoordinates


@dataclass(frozen=True, slots=True)
class RawLine:
    """A physical line as delivered by the tailer."""

    source_id: str
    content: str
    arrival_time: float  # time.monotonic() reading


@dataclass(frozen=True, slots=True)
class LogicalEntry:
    """One head line plus its continuation lines, newline-joined."""

    content: str


# System messages


@dataclass(frozen=True, slots=True)
class SavedSnapshot:
    filename: str


@dataclass(frozen=True, slots=True)
class SavedAttachment:
    pass


@dataclass(frozen=True, slots=True)
class SentPayment:
    recipient_key: UUID
    amount: int


@dataclass(frozen=True, slots=True)
class ReceivedPayment:
    sender_key: UUID
    amount: int


@dataclass(frozen=True, slots=True)
class NowPlaying:
    song_name: str


@dataclass(frozen=True, slots=True)
class TeleportCompleted:
    origin: Location


@dataclass(frozen=True, slots=True)
class RegionRestart:
    pass


@dataclass(frozen=True, slots=True)
class ObjectGaveObject:
    giving_object_name: str
    giving_object_location: Location
    giving_object_owner: UUID
    given_object_name: str


@dataclass(frozen=True, slots=True)
class AvatarGaveObject:
    giving_avatar_name: str
    given_object_name: str


@dataclass(frozen=True, slots=True)
class ItemsShared:
    pass


@dataclass(frozen=True, slots=True)
class ModifiedSearchQuery:
    query: str


@dataclass(frozen=True, slots=True)
class SimulatorVersionMismatch:
    current_version: str
    previous_version: str


@dataclass(frozen=True, slots=True)
class RenamedAvatar:
    old_name: str
    new_name: str


@dataclass(frozen=True, slots=True)
class OtherSystemMessage:
    """A system message none of the known rules recognized (raw text)."""

    message: str


SystemMessage = Union[
    SavedSnapshot,
    SavedAttachment,
    SentPayment,
    ReceivedPayment,
    NowPlaying,
    TeleportCompleted,
    RegionRestart,
    ObjectGaveObject,
    AvatarGaveObject,
    ItemsShared,
    ModifiedSearchQuery,
    SimulatorVersionMismatch,
    RenamedAvatar,
    OtherSystemMessage,
]


# Avatar messages


@dataclass(frozen=True, slots=True)
class Chat:
    volume: ChatVolume
    message: str


@dataclass(frozen=True, slots=True)
class Emote:
    volume: ChatVolume
    message: str


@dataclass(frozen=True, slots=True)
class CameOnline:
    pass


@dataclass(frozen=True, slots=True)
class WentOffline:
    pass


@dataclass(frozen=True, slots=True)
class EnteredArea:
    area: Area
    distance: float | None = None  # meters, when the radar reported it


@dataclass(frozen=True, slots=True)
class LeftArea:
    area: Area


AvatarMessage = Union[Chat, Emote, CameOnline, WentOffline, EnteredArea, LeftArea]


# Chat log events


@dataclass(frozen=True, slots=True)
class AvatarLine:
    """Line about an avatar (or an object indistinguishable from one in the log)."""

    name: str
    message: AvatarMessage


@dataclass(frozen=True, slots=True)
class SystemMessageLine:
    """Line written by the viewer or the grid itself."""

    message: SystemMessage


@dataclass(frozen=True, slots=True)
class OtherMessage:
    """Line without a recognizable 'name: ' prefix."""

    message: str


ChatLogEvent = Union[AvatarLine, SystemMessageLine, OtherMessage]


@dataclass(frozen=True, slots=True)
class ParsedLine:
    """Parsed logical entry."""

    timestamp: datetime | None  # None when the viewer wrote an unresolved template
    event: ChatLogEvent


@dataclass(slots=True)
class PresenceRecord:
    """Bookkeeping for one (lower-cased) actor name."""

    last_seen: datetime
    in_range: bool = False
    pending_notification: Any | None = field(default=None, repr=False)

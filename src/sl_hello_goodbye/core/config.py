"""Runtime configuration and its environment overrides."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from datetime import timedelta
from pathlib import Path

from .presence import DEFAULT_GRACE_WINDOW

QUIET_PERIOD_ENV = "SL_HELLO_GOODBYE_QUIET_PERIOD_MS"
QUEUE_SIZE_ENV = "SL_HELLO_GOODBYE_QUEUE_SIZE"
STATE_FILE_NAME = "last_seen.json"


def avatar_dir_name(avatar_name: str) -> str:
    """Viewer log directory name for an account name ('Jane Doe' -> 'jane_doe')."""
    return avatar_name.replace(" ", "_").lower()


def default_chat_log_path(avatar_name: str, *, home: Path | None = None) -> Path:
    home = home if home is not None else Path.home()
    return home / ".firestorm" / avatar_dir_name(avatar_name) / "chat.txt"


def default_state_path() -> Path:
    data_home = os.getenv("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(data_home) / "sl-hello-goodbye" / STATE_FILE_NAME


@dataclass(frozen=True, slots=True)
class HelloGoodbyeConfig:
    avatar_name: str
    chat_log_path: Path
    state_path: Path
    quiet_period: float = 0.5  # seconds without a new line before a buffered entry is flushed
    grace_window: timedelta = DEFAULT_GRACE_WINDOW
    queue_size: int = 256
    poll_interval: float = 0.25  # must stay below quiet_period
    from_start: bool = False
    follow: bool = True

    @classmethod
    def for_avatar(cls, avatar_name: str, **overrides) -> HelloGoodbyeConfig:
        values = {
            "chat_log_path": default_chat_log_path(avatar_name),
            "state_path": default_state_path(),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(avatar_name=avatar_name, **values)


def _env_int(name: str, *, minimum: int) -> int | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = int(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}")
    return value


def resolve_config(cfg: HelloGoodbyeConfig) -> HelloGoodbyeConfig:
    """Return config with env overrides applied and values validated."""
    quiet_ms = _env_int(QUIET_PERIOD_ENV, minimum=1)
    if quiet_ms is not None:
        cfg = replace(cfg, quiet_period=quiet_ms / 1000.0)
    queue_size = _env_int(QUEUE_SIZE_ENV, minimum=1)
    if queue_size is not None:
        cfg = replace(cfg, queue_size=queue_size)

    if cfg.quiet_period <= 0:
        raise ValueError("quiet_period must be > 0")
    if cfg.poll_interval <= 0:
        raise ValueError("poll_interval must be > 0")
    if cfg.quiet_period <= cfg.poll_interval:
        # lines reach the reassembler once per poll
        raise ValueError(
            f"quiet_period ({cfg.quiet_period}s) must be longer than poll_interval ({cfg.poll_interval}s)"
        )
    if cfg.queue_size < 1:
        raise ValueError("queue_size must be >= 1")
    if cfg.grace_window < timedelta(0):
        raise ValueError("grace_window must be >= 0")
    return cfg

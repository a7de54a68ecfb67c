from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest

from sl_hello_goodbye.core.config import (
    QUEUE_SIZE_ENV,
    QUIET_PERIOD_ENV,
    HelloGoodbyeConfig,
    avatar_dir_name,
    default_chat_log_path,
    default_state_path,
    resolve_config,
)


def test_avatar_dir_name() -> None:
    assert avatar_dir_name("Jane Doe") == "jane_doe"


def test_default_chat_log_path(tmp_path: Path) -> None:
    assert default_chat_log_path("Jane Doe", home=tmp_path) == tmp_path / ".firestorm" / "jane_doe" / "chat.txt"


def test_default_state_path_uses_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))

    assert default_state_path() == tmp_path / "sl-hello-goodbye" / "last_seen.json"


def test_for_avatar_ignores_unset_overrides(tmp_path: Path) -> None:
    cfg = HelloGoodbyeConfig.for_avatar("Jane Doe", chat_log_path=tmp_path / "chat.txt", quiet_period=None)

    assert cfg.chat_log_path == tmp_path / "chat.txt"
    assert cfg.quiet_period == 0.5


def _cfg(tmp_path: Path, **overrides) -> HelloGoodbyeConfig:
    return HelloGoodbyeConfig(
        avatar_name="Jane Doe",
        chat_log_path=tmp_path / "chat.txt",
        state_path=tmp_path / "last_seen.json",
        **overrides,
    )


def test_resolve_config_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(QUIET_PERIOD_ENV, "750")
    monkeypatch.setenv(QUEUE_SIZE_ENV, "8")

    cfg = resolve_config(_cfg(tmp_path))

    assert cfg.quiet_period == 0.75
    assert cfg.queue_size == 8


@pytest.mark.parametrize(("env", "value"), [(QUIET_PERIOD_ENV, "abc"), (QUIET_PERIOD_ENV, "0"), (QUEUE_SIZE_ENV, "-1")])
def test_resolve_config_rejects_bad_env(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, env: str, value: str
) -> None:
    monkeypatch.setenv(env, value)

    with pytest.raises(ValueError, match=env):
        resolve_config(_cfg(tmp_path))


@pytest.mark.parametrize(
    "overrides",
    [{"quiet_period": 0.0}, {"poll_interval": -1.0}, {"queue_size": 0}, {"grace_window": timedelta(seconds=-1)}],
)
def test_resolve_config_rejects_bad_values(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, overrides: dict
) -> None:
    monkeypatch.delenv(QUIET_PERIOD_ENV, raising=False)
    monkeypatch.delenv(QUEUE_SIZE_ENV, raising=False)

    with pytest.raises(ValueError):
        resolve_config(_cfg(tmp_path, **overrides))


def test_defaults_resolve(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv(QUIET_PERIOD_ENV, raising=False)
    monkeypatch.delenv(QUEUE_SIZE_ENV, raising=False)

    cfg = resolve_config(_cfg(tmp_path))

    assert cfg.quiet_period > cfg.poll_interval


@pytest.mark.parametrize("quiet_period", [0.25, 0.1])
def test_quiet_period_must_exceed_poll_interval(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path, quiet_period: float
) -> None:
    monkeypatch.delenv(QUIET_PERIOD_ENV, raising=False)
    monkeypatch.delenv(QUEUE_SIZE_ENV, raising=False)

    with pytest.raises(ValueError, match="poll_interval"):
        resolve_config(_cfg(tmp_path, quiet_period=quiet_period, poll_interval=0.25))


def test_quiet_period_env_below_poll_interval_rejected(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv(QUIET_PERIOD_ENV, "100")

    with pytest.raises(ValueError, match="poll_interval"):
        resolve_config(_cfg(tmp_path))

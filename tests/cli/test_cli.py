from __future__ import annotations

import json
from pathlib import Path

import pytest

from sl_hello_goodbye import cli as cli_module
from sl_hello_goodbye.core.config import HelloGoodbyeConfig
from sl_hello_goodbye.core.tail import ChatLogNotFoundError


class FakeNotifier:
    def __init__(self) -> None:
        self.shown: list[tuple[str, str]] = []
        self.closed: list[int] = []

    async def show(self, title: str, body: str) -> int:
        self.shown.append((title, body))
        return len(self.shown)

    async def close(self, handle: int) -> None:
        self.closed.append(handle)


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(cli_module, "_configure_logging", lambda: None)


def test_check_clean_log(tmp_path: Path, write_chat_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "chat.txt"
    write_chat_log(log)

    cli_module.main(["check", str(log)])

    assert capsys.readouterr().out.strip() == "Parsed 4 of 4 entries, 0 failed."


def test_check_reports_failures(tmp_path: Path, write_lines, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "chat.txt"
    write_lines(log, ["[2024/05/01 10:00]  Jane Doe: hi", "[2024/0x/01 10:00]  Jane Doe: hi"])

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["check", str(log)])

    out = capsys.readouterr().out
    assert excinfo.value.code == 1
    assert "error: could not parse chat log line: unexpected 'x'" in out
    assert "--> chat.txt line 2:1:8" in out
    assert "Parsed 1 of 2 entries, 1 failed." in out


def test_check_max_reports(tmp_path: Path, write_lines, capsys: pytest.CaptureFixture[str]) -> None:
    log = tmp_path / "chat.txt"
    write_lines(log, ["bad one", "bad two", "bad three"])

    with pytest.raises(SystemExit):
        cli_module.main(["check", str(log), "--max-reports", "1"])

    out = capsys.readouterr().out
    assert out.count("error:") == 1
    assert "Parsed 0 of 3 entries, 3 failed." in out


def test_check_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["check", str(tmp_path / "missing.txt")])

    assert excinfo.value.code == 2


def test_watch_requires_avatar_name() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["watch"])

    assert excinfo.value.code == 2


def test_watch_missing_chat_log_exits_1(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(
            [
                "watch",
                "--avatar-name",
                "Jane Doe",
                "--chat-log",
                str(tmp_path / "missing.txt"),
                "--state-file",
                str(tmp_path / "last_seen.json"),
            ]
        )

    assert excinfo.value.code == 1
    assert "local chat file not found" in capsys.readouterr().err


def test_watch_bad_env_exits_2(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SL_HELLO_GOODBYE_QUIET_PERIOD_MS", "soon")

    with pytest.raises(SystemExit) as excinfo:
        cli_module.main(["watch", "--avatar-name", "Jane Doe", "--state-file", str(tmp_path / "s.json")])

    assert excinfo.value.code == 2


@pytest.mark.asyncio
async def test_watch_missing_chat_log_raises(tmp_path: Path) -> None:
    cfg = HelloGoodbyeConfig(
        avatar_name="Me Myself",
        chat_log_path=tmp_path / "missing.txt",
        state_path=tmp_path / "last_seen.json",
    )

    with pytest.raises(ChatLogNotFoundError):
        await cli_module.watch(cfg)


@pytest.mark.asyncio
async def test_watch_processes_existing_log(
    tmp_path: Path, write_chat_log, monkeypatch: pytest.MonkeyPatch
) -> None:
    log = tmp_path / "chat.txt"
    state = tmp_path / "state" / "last_seen.json"
    write_chat_log(log)
    notifier = FakeNotifier()
    monkeypatch.setattr(cli_module, "default_notifier", lambda: notifier)

    cfg = HelloGoodbyeConfig(
        avatar_name="Me Myself",
        chat_log_path=log,
        state_path=state,
        quiet_period=0.05,
        from_start=True,
        follow=False,
    )
    stats = await cli_module.watch(cfg)

    assert stats.entries == 4
    assert stats.failed == 0
    assert notifier.shown == [("Say hello to Jane Doe", "Jane Doe entered chat range (12.5 m)")]
    assert notifier.closed == [1]
    assert json.loads(state.read_text(encoding="utf-8"))["last_seen"] == {"jane doe": "2024-05-01 18:01:00"}

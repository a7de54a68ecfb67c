from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def write_chat_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    "[2024/05/01 18:00:00]  Second Life: Snapshot saved: /home/jane/snap.png",
                    "[2024/05/01 18:00:05]  Jane Doe: entered chat range (12.5 m).",
                    "[2024/05/01 18:00:09]  Jane Doe: hi everyone",
                    "   second line of the greeting",
                    "[2024/05/01 18:01:00]  Jane Doe: left chat range.",
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write


@pytest.fixture
def write_lines() -> Callable[[Path, list[str]], None]:
    def _write(path: Path, lines: list[str]) -> None:
        path.write_text("".join(line + "\n" for line in lines), encoding="utf-8")

    return _write

"""Command line entry point.

    sl-hello-goodbye watch --avatar-name "Jane Doe"
    sl-hello-goodbye check ~/.firestorm/jane_doe/chat.txt
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path

from sl_hello_goodbye.core.config import HelloGoodbyeConfig, resolve_config
from sl_hello_goodbye.core.diagnostics import render_failures
from sl_hello_goodbye.core.grammar import ChatLogParseError, parse_chat_log_line
from sl_hello_goodbye.core.notify import default_notifier
from sl_hello_goodbye.core.pipeline import (
    PARSE_FAILURE_DESCRIPTION,
    PipelineStats,
    iter_logical_entries,
    run_pipeline,
)
from sl_hello_goodbye.core.presence import PresenceStateMachine
from sl_hello_goodbye.core.store import JsonLastSeenStore, StoreError
from sl_hello_goodbye.core.tail import ChatLogNotFoundError, tail_chat_log

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV = "SL_HELLO_GOODBYE_LOG_LEVEL"
LOG_DIR_ENV = "SL_HELLO_GOODBYE_LOG_DIR"
LOG_FILE_ENV = "SL_HELLO_GOODBYE_LOG_FILE"
LOG_FILE_LEVEL_ENV = "SL_HELLO_GOODBYE_LOG"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _level(env: str, default: int) -> int:
    name = os.getenv(env, "").strip().upper()
    if not name:
        return default
    return getattr(logging, name, default)


def _configure_logging() -> None:
    """Terminal logging (warnings by default) plus an optional log file."""
    terminal = logging.StreamHandler(sys.stderr)
    terminal.setLevel(_level(LOG_LEVEL_ENV, logging.WARNING))
    handlers: list[logging.Handler] = [terminal]

    log_dir = os.getenv(LOG_DIR_ENV)
    if log_dir:
        log_file = os.getenv(LOG_FILE_ENV) or "sl_hello_goodbye.log"
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(Path(log_dir) / log_file, encoding="utf-8")
        file_handler.setLevel(_level(LOG_FILE_LEVEL_ENV, logging.DEBUG))
        handlers.append(file_handler)

    logging.basicConfig(
        level=min(h.level for h in handlers),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
    if log_dir:
        LOGGER.info("Logging to %s", Path(log_dir) / log_file)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="sl-hello-goodbye",
        description=(
            "Follow a Second Life chat log and show desktop notifications when "
            "avatars enter chat range, so you can still say hello."
        ),
    )
    sub = p.add_subparsers(dest="command", required=True)

    w = sub.add_parser("watch", help="Follow the chat log and notify about arrivals")
    w.add_argument(
        "--avatar-name",
        required=True,
        help="Name of the logged in avatar whose chat.txt to watch (account name, not display name)",
    )
    w.add_argument("--chat-log", type=Path, default=None, help="Chat log path (default: derived from the avatar name)")
    w.add_argument("--state-file", type=Path, default=None, help="Where last-seen timestamps are kept")
    w.add_argument("--quiet-period-ms", type=int, default=None, help="Flush a buffered entry after this many ms without input")
    w.add_argument("--grace-seconds", type=float, default=None, help="Suppress repeat notifications within this window")
    w.add_argument("--from-start", action="store_true", help="Process the existing log before following it")
    w.add_argument("--no-follow", dest="follow", action="store_false", help="Stop at the end of the file")
    w.set_defaults(follow=True)

    c = sub.add_parser("check", help="Parse a chat log file and report lines that fail to parse")
    c.add_argument("log_path", type=Path)
    c.add_argument("--max-reports", type=int, default=None, help="Stop printing diagnostics after N failures")
    return p


def _config_from_args(args: argparse.Namespace) -> HelloGoodbyeConfig:
    cfg = HelloGoodbyeConfig.for_avatar(
        args.avatar_name,
        chat_log_path=args.chat_log,
        state_path=args.state_file,
        quiet_period=(args.quiet_period_ms / 1000.0) if args.quiet_period_ms is not None else None,
        grace_window=timedelta(seconds=args.grace_seconds) if args.grace_seconds is not None else None,
        from_start=args.from_start,
        follow=args.follow,
    )
    return resolve_config(cfg)


async def watch(cfg: HelloGoodbyeConfig) -> PipelineStats:
    """Run the full pipeline for ``cfg`` until the log ends or we are signalled."""
    if not cfg.chat_log_path.is_file():
        LOGGER.error("Local chat log %s does not exist for this avatar", cfg.chat_log_path)
        raise ChatLogNotFoundError(f"local chat file not found: {cfg.chat_log_path}")

    machine = PresenceStateMachine(
        cfg.avatar_name,
        default_notifier(),
        JsonLastSeenStore(cfg.state_path),
        grace_window=cfg.grace_window,
    )
    await machine.restore()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop.set)
            installed.append(sig)

    LOGGER.debug("Watching %s", cfg.chat_log_path)
    source = tail_chat_log(
        cfg.chat_log_path,
        from_start=cfg.from_start,
        follow=cfg.follow,
        poll_interval=cfg.poll_interval,
        stop=stop,
    )
    try:
        return await run_pipeline(
            source,
            machine,
            quiet_period=cfg.quiet_period,
            queue_size=cfg.queue_size,
            source_name=cfg.chat_log_path.name,
        )
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def check(log_path: Path, *, max_reports: int | None = None) -> tuple[int, int]:
    """Parse every entry of ``log_path``; print diagnostics; return (total, failed)."""
    total = 0
    failed = 0
    async for line_no, entry in iter_logical_entries(log_path):
        total += 1
        try:
            parse_chat_log_line(entry.content)
        except ChatLogParseError as exc:
            failed += 1
            if max_reports is None or failed <= max_reports:
                print(
                    render_failures(
                        exc,
                        entry.content,
                        PARSE_FAILURE_DESCRIPTION,
                        source_name=f"{log_path.name} line {line_no}",
                    )
                )
                print()
    return total, failed


def main(argv: Sequence[str] | None = None) -> None:
    _configure_logging()
    args = _build_parser().parse_args(argv)

    if args.command == "check":
        try:
            total, failed = asyncio.run(check(args.log_path, max_reports=args.max_reports))
        except FileNotFoundError as e:
            print(str(e), file=sys.stderr)
            raise SystemExit(2)
        print(f"Parsed {total - failed} of {total} entries, {failed} failed.")
        if failed:
            raise SystemExit(1)
        return

    try:
        cfg = _config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)

    try:
        stats = asyncio.run(watch(cfg))
    except (ChatLogNotFoundError, StoreError, OSError) as e:
        LOGGER.error("%s", e)
        print(str(e), file=sys.stderr)
        raise SystemExit(1)
    LOGGER.debug("Exiting after %d entries", stats.entries)


if __name__ == "__main__":
    main()

# src/todo_beads/cli/main.py

"""
CLI entrypoint.

    todo-beads write SESSION [FILE]   forward sync a JSON todo list (FILE or stdin)
    todo-beads read SESSION           print the todo list rebuilt from beads
    todo-beads sessions               list sessions known to the mapping file

Logs go to stderr and the log file; stdout carries only results.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import TextIO

from ..config import Settings, get_settings
from ..core.errors import StoreError, SyncAborted
from ..logging_setup import setup_logging
from ..sync.mapping_store import JsonMappingStore
from ..tools.handlers import parse_todos, render_todos
from .bootstrap import create_engine

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="todo-beads",
        description="Keep an agent session's todo list in sync with beads issues.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_write = sub.add_parser("write", help="Sync a todo list (JSON array) to beads.")
    p_write.add_argument("session", help="Session id.")
    p_write.add_argument(
        "file",
        nargs="?",
        type=argparse.FileType("r", encoding="utf-8"),
        default=sys.stdin,
        help="JSON file with the todo list (default: stdin).",
    )

    p_read = sub.add_parser("read", help="Print the todo list rebuilt from beads.")
    p_read.add_argument("session", help="Session id.")

    sub.add_parser("sessions", help="List sessions in the mapping file.")
    return parser


def _cmd_write(settings: Settings, session_id: str, src: TextIO, out: TextIO) -> int:
    try:
        todos = parse_todos(json.load(src))
    except ValueError as exc:
        # json.JSONDecodeError included.
        logger.error("Invalid todo list: %s", exc)
        return 1

    engine = create_engine(settings=settings)
    try:
        report = engine.sync_forward(session_id, todos)
    except (SyncAborted, StoreError) as exc:
        logger.error("Sync failed: %s", exc)
        return 1

    print(report.summary(), file=out)
    return 0


def _cmd_read(settings: Settings, session_id: str, out: TextIO) -> int:
    engine = create_engine(settings=settings)
    back = engine.read_back(session_id)
    print(render_todos(back.todos), file=out)
    if back.unreachable:
        logger.error("Could not read any issue for session %s (%d bd calls failed)", session_id, back.failed)
        return 1
    return 0


def _cmd_sessions(settings: Settings, out: TextIO) -> int:
    doc = JsonMappingStore(settings.mapping_path).load()
    if not doc.sessions:
        print("No sessions.", file=out)
        return 0
    for session_id, anchor_id in doc.sessions.items():
        n = len(doc.todos.get(session_id, {}))
        print(f"{session_id}\t{anchor_id}\t{n} todos", file=out)
    return 0


def main(argv: list[str] | None = None, *, settings: Settings | None = None, out: TextIO | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = settings or get_settings()
    out = out or sys.stdout

    console_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    setup_logging(log_dir=settings.log_dir, console_level=console_level)

    if args.command == "write":
        try:
            return _cmd_write(settings, args.session, args.file, out)
        finally:
            if args.file is not sys.stdin:
                args.file.close()
    if args.command == "read":
        return _cmd_read(settings, args.session, out)
    return _cmd_sessions(settings, out)


if __name__ == "__main__":
    sys.exit(main())

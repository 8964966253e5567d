# src/todo_beads/tools/handlers.py

from __future__ import annotations

"""
todowrite / todoread tool handlers.

The host agent calls these with a session id. They return exactly what the host
shows to the model: the todo list as a JSON array.

- todowrite never waits for beads: forward sync runs in a background task
  (on a worker thread) and its failures only reach the log.
- todoread waits for earlier writes, then rebuilds the list from beads.
"""

import asyncio
import json
import logging
from collections.abc import Iterable
from typing import Any

from ..sync.engine import TodoSyncEngine
from ..sync.models import Todo

logger = logging.getLogger(__name__)


def parse_todos(payload: Any) -> list[Todo]:
    """Validate a tool payload (list of todo objects). Raises ValueError."""
    if not isinstance(payload, list):
        raise ValueError("todos must be a list")
    return [Todo.from_dict(item) for item in payload]


def render_todos(todos: Iterable[Todo]) -> str:
    return json.dumps([t.to_dict() for t in todos], ensure_ascii=False, indent=2)


class TodoToolHandlers:
    def __init__(self, engine: TodoSyncEngine) -> None:
        self._engine = engine
        # One sync at a time through this instance: reads see earlier writes,
        # and two writes for the same session never interleave.
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task[None]] = set()

    async def _run_forward(self, session_id: str, todos: list[Todo]) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._engine.sync_forward, session_id, todos)
            except Exception:
                logger.exception("Background forward sync failed session=%s", session_id)

    async def todowrite(self, session_id: str, todos_payload: Any) -> str:
        todos = parse_todos(todos_payload)

        task = asyncio.create_task(self._run_forward(session_id, todos))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

        return render_todos(todos)

    async def todoread(self, session_id: str) -> str:
        # Writes already handed to the background may not hold the lock yet.
        await self.drain()
        async with self._lock:
            try:
                todos = await asyncio.to_thread(self._engine.sync_backward, session_id)
            except Exception:
                logger.exception("Backward sync failed session=%s", session_id)
                todos = []
        return render_todos(todos)

    async def drain(self) -> None:
        """Wait for every background forward sync started so far."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

# tests/conftest.py

from __future__ import annotations

from datetime import date

import pytest

from todo_beads.sync.engine import TodoSyncEngine
from todo_beads.sync.mapping_store import InMemoryMappingStore
from todo_beads.sync.models import Todo, TodoPriority, TodoStatus

from .fakes import FakeTracker

FIXED_DAY = date(2026, 10, 17)
SESSION = "ses_0123456789abcdef"


@pytest.fixture()
def tracker() -> FakeTracker:
    return FakeTracker()


@pytest.fixture()
def store() -> InMemoryMappingStore:
    """
    In-memory mapping store: engine tests never touch the filesystem.
    JsonMappingStore has its own tests.
    """
    return InMemoryMappingStore()


@pytest.fixture()
def engine(store: InMemoryMappingStore, tracker: FakeTracker) -> TodoSyncEngine:
    return TodoSyncEngine(store, tracker, label="OpenCode", today=lambda: FIXED_DAY)


def todo(
    todo_id: str,
    status: TodoStatus = TodoStatus.PENDING,
    *,
    content: str | None = None,
    priority: TodoPriority = TodoPriority.MEDIUM,
) -> Todo:
    return Todo(id=todo_id, content=content or f"Task {todo_id}", status=status, priority=priority)

# src/todo_beads/sync/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class TodoStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, raw: str | None) -> TodoStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.PENDING

    @property
    def is_terminal(self) -> bool:
        return self in (TodoStatus.COMPLETED, TodoStatus.CANCELLED)


class TodoPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def parse(cls, raw: str | None) -> TodoPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.MEDIUM


class IssueStatus(StrEnum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"

    @classmethod
    def parse(cls, raw: str | None) -> IssueStatus:
        if not raw:
            return cls.OPEN
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.OPEN


@dataclass(slots=True)
class Todo:
    """One entry of a session's todo list, as the host agent sends it."""

    id: str
    content: str
    status: TodoStatus = TodoStatus.PENDING
    priority: TodoPriority = TodoPriority.MEDIUM

    def __post_init__(self) -> None:
        if not isinstance(self.status, TodoStatus):
            self.status = TodoStatus.parse(self.status)
        if not isinstance(self.priority, TodoPriority):
            self.priority = TodoPriority.parse(self.priority)

    @classmethod
    def from_dict(cls, raw: Any) -> Todo:
        if not isinstance(raw, dict):
            raise ValueError(f"todo must be an object, got {type(raw).__name__}")
        todo_id = raw.get("id")
        if todo_id is None or not str(todo_id).strip():
            raise ValueError("todo id is required")
        return cls(
            id=str(todo_id),
            content=str(raw.get("content") or ""),
            status=TodoStatus.parse(raw.get("status")),
            priority=TodoPriority.parse(raw.get("priority")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "content": self.content,
            "status": self.status.value,
            "priority": self.priority.value,
        }


@dataclass(frozen=True, slots=True)
class BeadsIssue:
    """Subset of a beads issue as printed by `bd show --json`."""

    id: str
    title: str
    status: IssueStatus
    priority: int
    issue_type: str
    description: str | None = None
    notes: str | None = None

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> BeadsIssue:
        issue_id = payload.get("id")
        if not issue_id:
            raise ValueError("beads issue payload has no id")
        try:
            priority = int(payload.get("priority", 2))
        except (TypeError, ValueError):
            priority = 2
        return cls(
            id=str(issue_id),
            title=str(payload.get("title") or ""),
            status=IssueStatus.parse(payload.get("status")),
            priority=priority,
            issue_type=str(payload.get("issue_type") or "task"),
            description=payload.get("description") or None,
            notes=payload.get("notes") or None,
        )


@dataclass(slots=True)
class MappingDocument:
    """
    Correlation state between sessions/todos and beads issues.

    - sessions: session_id -> anchor (epic) issue id
    - todos:    session_id -> {todo_id -> issue id}
    - last_sync: epoch milliseconds of the last successful save
    """

    sessions: dict[str, str] = field(default_factory=dict)
    todos: dict[str, dict[str, str]] = field(default_factory=dict)
    last_sync: int = 0

    @classmethod
    def from_json(cls, data: Any) -> MappingDocument:
        """Strict parse; raises ValueError on any shape mismatch."""
        if not isinstance(data, dict):
            raise ValueError("mapping document must be an object")

        sessions = data.get("sessions", {})
        todos = data.get("todos", {})
        last_sync = data.get("lastSync", 0)

        if not isinstance(sessions, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in sessions.items()
        ):
            raise ValueError("sessions must map string -> string")

        if not isinstance(todos, dict):
            raise ValueError("todos must be an object")
        clean_todos: dict[str, dict[str, str]] = {}
        for sid, inner in todos.items():
            if not isinstance(inner, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in inner.items()
            ):
                raise ValueError(f"todos[{sid!r}] must map string -> string")
            clean_todos[str(sid)] = dict(inner)

        if isinstance(last_sync, bool) or not isinstance(last_sync, (int, float)):
            raise ValueError("lastSync must be a number")

        return cls(sessions=dict(sessions), todos=clean_todos, last_sync=int(last_sync))

    def to_json(self) -> dict[str, Any]:
        return {
            "sessions": dict(self.sessions),
            "todos": {sid: dict(inner) for sid, inner in self.todos.items()},
            "lastSync": int(self.last_sync),
        }

    def session_todos(self, session_id: str) -> dict[str, str]:
        """Correlation map for a session, created on first access."""
        return self.todos.setdefault(session_id, {})

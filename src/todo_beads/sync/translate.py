# src/todo_beads/sync/translate.py

"""
Todo <-> beads vocabulary mapping.

All functions are pure and total: unknown inputs fall back to a default
instead of raising. The mapping is lossy on purpose:
- beads has five priority levels, todos have three;
- beads has no "cancelled" status, so completed/cancelled are told apart
  only by a marker in the issue notes.
"""

from __future__ import annotations

from .models import BeadsIssue, IssueStatus, Todo, TodoPriority, TodoStatus

# Substring looked up in issue notes to recover "cancelled" after close.
# NOTE: free-text match; a note that mentions the word for another reason misclassifies.
CANCELLED_MARKER = "Cancelled"

DEFAULT_BEADS_PRIORITY = 2

PRIORITY_TO_BEADS: dict[str, int] = {
    TodoPriority.HIGH.value: 1,
    TodoPriority.MEDIUM.value: 2,
    TodoPriority.LOW.value: 3,
}

PRIORITY_FROM_BEADS: dict[int, TodoPriority] = {
    0: TodoPriority.HIGH,
    1: TodoPriority.HIGH,
    2: TodoPriority.MEDIUM,
    3: TodoPriority.LOW,
    4: TodoPriority.LOW,
}

STATUS_TO_BEADS: dict[str, IssueStatus] = {
    TodoStatus.PENDING.value: IssueStatus.OPEN,
    TodoStatus.IN_PROGRESS.value: IssueStatus.IN_PROGRESS,
    TodoStatus.COMPLETED.value: IssueStatus.CLOSED,
    TodoStatus.CANCELLED.value: IssueStatus.CLOSED,
}


def priority_to_beads(priority: TodoPriority | str) -> int:
    return PRIORITY_TO_BEADS.get(str(priority), DEFAULT_BEADS_PRIORITY)


def priority_from_beads(priority: int) -> TodoPriority:
    return PRIORITY_FROM_BEADS.get(priority, TodoPriority.MEDIUM)


def status_to_beads(status: TodoStatus | str) -> IssueStatus:
    return STATUS_TO_BEADS.get(str(status), IssueStatus.OPEN)


def status_from_beads(status: IssueStatus | str, notes: str | None = None) -> TodoStatus:
    s = str(status)
    if s == IssueStatus.IN_PROGRESS.value:
        return TodoStatus.IN_PROGRESS
    if s == IssueStatus.CLOSED.value:
        if notes and CANCELLED_MARKER in notes:
            return TodoStatus.CANCELLED
        return TodoStatus.COMPLETED
    return TodoStatus.PENDING


def close_reason_for(status: TodoStatus | str, label: str) -> str:
    """Reason passed to `bd close` when a todo reaches a terminal status."""
    if str(status) == TodoStatus.CANCELLED.value:
        return f"{CANCELLED_MARKER} in {label}"
    return "Completed"


def issue_to_todo(todo_id: str, issue: BeadsIssue) -> Todo:
    """Rebuild a todo from its correlated issue; content comes from the title."""
    return Todo(
        id=todo_id,
        content=issue.title,
        status=status_from_beads(issue.status, issue.notes),
        priority=priority_from_beads(issue.priority),
    )

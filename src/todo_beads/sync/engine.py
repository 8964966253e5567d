# src/todo_beads/sync/engine.py

from __future__ import annotations

"""
Todo <-> beads reconciliation.

Forward sync projects a session's todo list onto beads:
- resolve (or create) the session anchor epic,
- create a child issue for each new todo, update/close correlated ones,
- close issues whose todo disappeared from the list,
- close the anchor once every todo is completed or cancelled,
- save the mapping document once, at the very end.

Backward sync rebuilds a todo list from beads through the recorded correlations.

Every tracker call goes through TodoSyncEngine._attempt, which records an OpResult
and applies FAILURE_POLICY. That table is the only place deciding which failures
abort the sync, which skip a single todo and which are tolerated.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any, TypeVar

from ..core.errors import SyncAborted, TrackerError
from ..core.ports import IssueTracker, MappingRepo
from .anchor import resolve_session_anchor
from .models import IssueStatus, Todo, TodoStatus
from .translate import close_reason_for, issue_to_todo, priority_to_beads, status_to_beads

logger = logging.getLogger(__name__)

T = TypeVar("T")

TODO_ISSUE_TYPE = "task"


class SyncOp(StrEnum):
    RESOLVE_ANCHOR = "resolve_anchor"
    CREATE_ISSUE = "create_issue"
    UPDATE_STATUS = "update_status"
    CLOSE_ISSUE = "close_issue"
    CLOSE_REMOVED = "close_removed"
    NOTE_ANCHOR = "note_anchor"
    CLOSE_ANCHOR = "close_anchor"


class OpOutcome(StrEnum):
    OK = "ok"
    TOLERATED = "tolerated"  # failed, logged, sync continues
    SKIPPED = "skipped"  # failed, this todo is left out of the mapping
    ABORTED = "aborted"  # failed, whole sync stops


# "Already in the desired state" looks exactly like a real failure through bd,
# and the next sync repairs either case, so updates and closes are tolerated.
FAILURE_POLICY: dict[SyncOp, OpOutcome] = {
    SyncOp.RESOLVE_ANCHOR: OpOutcome.ABORTED,
    SyncOp.CREATE_ISSUE: OpOutcome.SKIPPED,
    SyncOp.UPDATE_STATUS: OpOutcome.TOLERATED,
    SyncOp.CLOSE_ISSUE: OpOutcome.TOLERATED,
    SyncOp.CLOSE_REMOVED: OpOutcome.TOLERATED,
    SyncOp.NOTE_ANCHOR: OpOutcome.TOLERATED,
    SyncOp.CLOSE_ANCHOR: OpOutcome.TOLERATED,
}


def failure_outcome(op: SyncOp) -> OpOutcome:
    return FAILURE_POLICY[op]


@dataclass(slots=True, frozen=True)
class OpResult:
    op: SyncOp
    target: str | None
    outcome: OpOutcome
    error: str | None = None


@dataclass(slots=True)
class SyncReport:
    """What one forward sync did. Returned for callers and tests; not persisted."""

    session_id: str
    anchor_id: str | None = None
    results: list[OpResult] = field(default_factory=list)
    created: dict[str, str] = field(default_factory=dict)  # todo_id -> issue id
    removed: list[str] = field(default_factory=list)  # todo ids

    @property
    def failures(self) -> list[OpResult]:
        return [r for r in self.results if r.outcome is not OpOutcome.OK]

    def count(self, op: SyncOp, outcome: OpOutcome | None = None) -> int:
        return sum(1 for r in self.results if r.op is op and (outcome is None or r.outcome is outcome))

    def summary(self) -> str:
        return (
            f"session={self.session_id} anchor={self.anchor_id} "
            f"created={len(self.created)} removed={len(self.removed)} "
            f"ops={len(self.results)} failures={len(self.failures)}"
        )


@dataclass(slots=True)
class ReadBack:
    """Result of one backward sync: the rebuilt todos and how many shows failed."""

    todos: list[Todo] = field(default_factory=list)
    failed: int = 0

    @property
    def unreachable(self) -> bool:
        """True when some show raised and no todo came back."""
        return self.failed > 0 and not self.todos


class TodoSyncEngine:
    def __init__(
        self,
        store: MappingRepo,
        tracker: IssueTracker,
        *,
        label: str = "OpenCode",
        today: Callable[[], date] = date.today,
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._label = label
        self._today = today

    # ---- helpers ----

    def _attempt(
        self,
        report: SyncReport,
        op: SyncOp,
        target: str | None,
        fn: Callable[..., T],
        *args: Any,
        **kwargs: Any,
    ) -> T | None:
        try:
            value = fn(*args, **kwargs)
        except TrackerError as exc:
            outcome = failure_outcome(op)
            report.results.append(OpResult(op=op, target=target, outcome=outcome, error=str(exc)))
            if outcome is OpOutcome.ABORTED:
                logger.error("%s failed target=%s: %s", op.value, target, exc)
                raise SyncAborted(f"{op.value} failed for {target}: {exc}") from exc
            logger.warning("%s failed target=%s (%s): %s", op.value, target, outcome.value, exc)
            return None

        report.results.append(OpResult(op=op, target=target, outcome=OpOutcome.OK))
        return value

    def _apply_status(self, report: SyncReport, issue_id: str, todo: Todo) -> None:
        target = status_to_beads(todo.status)
        if target is IssueStatus.CLOSED:
            reason = close_reason_for(todo.status, self._label)
            self._attempt(report, SyncOp.CLOSE_ISSUE, issue_id, self._tracker.close_issue, issue_id, reason)
        else:
            self._attempt(
                report,
                SyncOp.UPDATE_STATUS,
                issue_id,
                self._tracker.update_issue,
                issue_id,
                status=target.value,
            )

    def _create_issue(self, report: SyncReport, anchor_id: str, todo: Todo) -> str | None:
        issue_id = self._attempt(
            report,
            SyncOp.CREATE_ISSUE,
            todo.id,
            self._tracker.create_issue,
            todo.content,
            TODO_ISSUE_TYPE,
            priority_to_beads(todo.priority),
            parent_id=anchor_id,
            description=f"{self._label} todo ID: {todo.id}",
        )
        if issue_id is None:
            return None

        # Fresh issues start open; only move them if the todo is already further along.
        if todo.status is not TodoStatus.PENDING:
            self._apply_status(report, issue_id, todo)
        return issue_id

    def _close_anchor(self, report: SyncReport, anchor_id: str, todos: list[Todo]) -> None:
        completed = sum(1 for t in todos if t.status is TodoStatus.COMPLETED)
        cancelled = sum(1 for t in todos if t.status is TodoStatus.CANCELLED)
        summary = f"Session complete: {completed} completed, {cancelled} cancelled"

        self._attempt(report, SyncOp.NOTE_ANCHOR, anchor_id, self._tracker.update_issue, anchor_id, notes=summary)
        self._attempt(report, SyncOp.CLOSE_ANCHOR, anchor_id, self._tracker.close_issue, anchor_id, summary)

    # ---- public API ----

    def sync_forward(self, session_id: str, todos: Iterable[Todo]) -> SyncReport:
        """
        Make beads match `todos` for this session.

        Raises SyncAborted if the session anchor cannot be resolved, and StoreError
        if the final save fails. Individual create/update/close failures only show
        up in the returned report.
        """
        todo_list = list(todos)
        report = SyncReport(session_id=session_id)

        doc = self._store.load()
        anchor_id = self._attempt(
            report,
            SyncOp.RESOLVE_ANCHOR,
            session_id,
            resolve_session_anchor,
            self._tracker,
            self._store,
            session_id,
            doc,
            label=self._label,
            today=self._today(),
        )
        if anchor_id is None:
            raise SyncAborted(f"no anchor for session {session_id}")
        report.anchor_id = anchor_id

        todo_map = doc.session_todos(session_id)
        seen: set[str] = set()

        for todo in todo_list:
            seen.add(todo.id)
            existing = todo_map.get(todo.id)
            if existing:
                self._apply_status(report, existing, todo)
                continue

            new_id = self._create_issue(report, anchor_id, todo)
            if new_id is not None:
                todo_map[todo.id] = new_id
                report.created[todo.id] = new_id

        # Todos that vanished from the list.
        removed_reason = f"Todo removed from {self._label}"
        for todo_id, issue_id in list(todo_map.items()):
            if todo_id in seen:
                continue
            self._attempt(
                report, SyncOp.CLOSE_REMOVED, issue_id, self._tracker.close_issue, issue_id, removed_reason
            )
            del todo_map[todo_id]
            report.removed.append(todo_id)

        if todo_list and all(t.status.is_terminal for t in todo_list):
            self._close_anchor(report, anchor_id, todo_list)

        self._store.save(doc)
        logger.info("Forward sync done: %s", report.summary())
        return report

    def sync_backward(self, session_id: str) -> list[Todo]:
        """
        Rebuild the session's todo list from beads.

        Order follows the correlation map (first-creation order). Issues the tracker
        no longer knows are skipped; their correlations are left in place.
        """
        return self.read_back(session_id).todos

    def read_back(self, session_id: str) -> ReadBack:
        """Like sync_backward, but also counts shows that failed with TrackerError."""
        back = ReadBack()
        doc = self._store.load()
        if not doc.sessions.get(session_id):
            return back

        out = back.todos
        for todo_id, issue_id in doc.todos.get(session_id, {}).items():
            try:
                issue = self._tracker.show_issue(issue_id)
            except TrackerError as exc:
                logger.warning("show %s failed during backward sync: %s", issue_id, exc)
                back.failed += 1
                continue
            if issue is None:
                logger.debug("Stale correlation %s -> %s skipped", todo_id, issue_id)
                continue
            out.append(issue_to_todo(todo_id, issue))

        logger.debug("Backward sync session=%s todos=%d failed=%d", session_id, len(out), back.failed)
        return back

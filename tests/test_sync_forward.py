# tests/test_sync_forward.py

from __future__ import annotations

import pytest

from todo_beads.core.errors import StoreError, SyncAborted
from todo_beads.sync.engine import OpOutcome, SyncOp, TodoSyncEngine
from todo_beads.sync.mapping_store import InMemoryMappingStore
from todo_beads.sync.models import MappingDocument, TodoPriority, TodoStatus

from .conftest import FIXED_DAY, SESSION, todo
from .fakes import FakeTracker


def test_first_sync_creates_anchor_and_child_issues(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    report = engine.sync_forward(
        SESSION,
        [todo("a", priority=TodoPriority.HIGH), todo("b", priority=TodoPriority.LOW)],
    )

    creates = tracker.calls_for("create")
    assert len(creates) == 3

    anchor = creates[0]
    assert anchor.target == "OpenCode Session ses_0123 (2026-10-17)"
    assert anchor.kwargs["issue_type"] == "epic"
    assert anchor.kwargs["priority"] == 2
    assert SESSION in anchor.kwargs["description"]

    a, b = creates[1], creates[2]
    assert a.target == "Task a"
    assert a.kwargs["issue_type"] == "task"
    assert a.kwargs["priority"] == 1
    assert a.kwargs["parent_id"] == report.anchor_id
    assert a.kwargs["description"] == "OpenCode todo ID: a"
    assert b.kwargs["priority"] == 3

    doc = store.snapshot()
    assert doc.sessions == {SESSION: report.anchor_id}
    assert doc.todos[SESSION] == report.created
    assert set(report.created) == {"a", "b"}
    assert doc.last_sync > 0


def test_second_identical_sync_creates_nothing(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    todos = [todo("a"), todo("b", TodoStatus.IN_PROGRESS)]
    engine.sync_forward(SESSION, todos)
    before = store.snapshot()
    creates_before = len(tracker.calls_for("create"))

    report = engine.sync_forward(SESSION, todos)

    assert len(tracker.calls_for("create")) == creates_before
    assert report.created == {}
    after = store.snapshot()
    assert after.sessions == before.sessions
    assert after.todos == before.todos
    assert after.last_sync >= before.last_sync


def test_status_change_issues_exactly_one_close(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine.sync_forward(SESSION, [todo("a")])
    issue_a = store.snapshot().todos[SESSION]["a"]
    n_calls = len(tracker.calls)

    engine.sync_forward(SESSION, [todo("a", TodoStatus.COMPLETED)])

    new_calls = tracker.calls[n_calls:]
    on_a = [c for c in new_calls if c.target == issue_a]
    assert [c.op for c in on_a] == ["close"]
    assert on_a[0].kwargs["reason"] == "Completed"
    assert not [c for c in new_calls if c.op == "create"]


def test_pending_to_in_progress_updates_status(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine.sync_forward(SESSION, [todo("a")])
    issue_a = store.snapshot().todos[SESSION]["a"]

    engine.sync_forward(SESSION, [todo("a", TodoStatus.IN_PROGRESS)])

    updates = tracker.calls_for("update", issue_a)
    assert updates[-1].kwargs["status"] == "in_progress"
    assert tracker.issues[issue_a]["status"] == "in_progress"


def test_removed_todo_is_closed_and_forgotten(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine.sync_forward(SESSION, [todo("a"), todo("b")])
    mapping = store.snapshot().todos[SESSION]
    issue_a, issue_b = mapping["a"], mapping["b"]
    n_calls = len(tracker.calls)

    report = engine.sync_forward(SESSION, [todo("a")])

    new_calls = tracker.calls[n_calls:]
    closes_b = [c for c in new_calls if c.op == "close" and c.target == issue_b]
    assert len(closes_b) == 1
    assert closes_b[0].kwargs["reason"] == "Todo removed from OpenCode"
    assert not [c for c in new_calls if c.op == "close" and c.target == issue_a]
    assert report.removed == ["b"]
    assert store.snapshot().todos[SESSION] == {"a": issue_a}


def test_removal_tolerates_already_closed_issue(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine.sync_forward(SESSION, [todo("a"), todo("b")])
    issue_b = store.snapshot().todos[SESSION]["b"]
    tracker.fail("close", issue_b)

    report = engine.sync_forward(SESSION, [todo("a")])

    assert report.count(SyncOp.CLOSE_REMOVED, OpOutcome.TOLERATED) == 1
    assert "b" not in store.snapshot().todos[SESSION]


def test_missing_anchor_is_recreated(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    first = engine.sync_forward(SESSION, [todo("a")])
    tracker.delete(first.anchor_id)

    second = engine.sync_forward(SESSION, [todo("a")])

    assert second.anchor_id != first.anchor_id
    assert store.snapshot().sessions[SESSION] == second.anchor_id
    # The correlation map was reset with the new anchor, so "a" is re-created under it.
    assert second.created["a"] != first.created["a"]
    assert tracker.issues[second.created["a"]]["parent"] == second.anchor_id


def test_anchor_failure_aborts_and_persists_nothing(
    store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine = TodoSyncEngine(store, tracker, today=lambda: FIXED_DAY)
    tracker.fail("create")

    with pytest.raises(SyncAborted):
        engine.sync_forward(SESSION, [todo("a")])

    assert store.saves == 0
    assert store.snapshot() == MappingDocument()


def test_create_failure_skips_only_that_todo(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    tracker.fail("create", "Task b")

    report = engine.sync_forward(SESSION, [todo("a"), todo("b"), todo("c")])

    assert set(report.created) == {"a", "c"}
    assert report.count(SyncOp.CREATE_ISSUE, OpOutcome.SKIPPED) == 1
    assert set(store.snapshot().todos[SESSION]) == {"a", "c"}

    # Next sync retries the skipped todo.
    tracker.heal()
    retry = engine.sync_forward(SESSION, [todo("a"), todo("b"), todo("c")])
    assert set(retry.created) == {"b"}


def test_update_failure_is_tolerated(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine.sync_forward(SESSION, [todo("a"), todo("b")])
    issue_a = store.snapshot().todos[SESSION]["a"]
    tracker.fail("update", issue_a)

    report = engine.sync_forward(SESSION, [todo("a", TodoStatus.IN_PROGRESS), todo("b", TodoStatus.IN_PROGRESS)])

    assert report.count(SyncOp.UPDATE_STATUS, OpOutcome.TOLERATED) == 1
    assert report.count(SyncOp.UPDATE_STATUS, OpOutcome.OK) == 1
    assert len(report.failures) == 1
    assert store.saves >= 2


def test_reused_anchor_sync_saves_exactly_once(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    engine.sync_forward(SESSION, [todo("a")])
    before = store.saves

    engine.sync_forward(SESSION, [todo("a", TodoStatus.COMPLETED), todo("b")])

    assert store.saves == before + 1
    assert store.snapshot().todos[SESSION].keys() == {"a", "b"}


class _BrokenDiskStore(InMemoryMappingStore):
    def __init__(self) -> None:
        super().__init__()
        self.broken = False

    def save(self, doc: MappingDocument) -> None:
        if self.broken:
            raise StoreError("disk full")
        super().save(doc)


def test_final_save_failure_propagates(tracker: FakeTracker) -> None:
    store = _BrokenDiskStore()
    engine = TodoSyncEngine(store, tracker, today=lambda: FIXED_DAY)
    first = engine.sync_forward(SESSION, [todo("a")])
    store.broken = True

    with pytest.raises(StoreError):
        engine.sync_forward(SESSION, [todo("a"), todo("b")])

    # The anchor was reused; only the final save was attempted and it failed.
    saved = store.snapshot()
    assert saved.sessions[SESSION] == first.anchor_id
    assert saved.todos[SESSION].keys() == {"a"}
    assert len(tracker.calls_for("create", "Task b")) == 1


def test_new_todo_already_in_progress_or_done(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    report = engine.sync_forward(
        SESSION,
        [
            todo("a", TodoStatus.IN_PROGRESS),
            todo("b", TodoStatus.CANCELLED),
            todo("c", TodoStatus.PENDING),
        ],
    )

    a, b, c = (report.created[k] for k in ("a", "b", "c"))
    assert tracker.issues[a]["status"] == "in_progress"
    assert tracker.issues[b]["status"] == "closed"
    assert tracker.calls_for("close", b)[0].kwargs["reason"] == "Cancelled in OpenCode"
    assert tracker.issues[c]["status"] == "open"
    assert tracker.calls_for("update", c) == []
    assert tracker.calls_for("close", c) == []


def test_all_terminal_closes_anchor_once_with_counts(
    engine: TodoSyncEngine, tracker: FakeTracker
) -> None:
    report = engine.sync_forward(
        SESSION,
        [todo("a", TodoStatus.COMPLETED), todo("b", TodoStatus.CANCELLED)],
    )

    anchor_closes = tracker.calls_for("close", report.anchor_id)
    assert len(anchor_closes) == 1
    reason = anchor_closes[0].kwargs["reason"]
    assert reason == "Session complete: 1 completed, 1 cancelled"
    assert tracker.issues[report.anchor_id]["notes"] == reason


def test_anchor_stays_open_while_work_remains(engine: TodoSyncEngine, tracker: FakeTracker) -> None:
    report = engine.sync_forward(SESSION, [todo("a", TodoStatus.COMPLETED), todo("b")])
    assert tracker.calls_for("close", report.anchor_id) == []


def test_empty_list_closes_everything_but_not_anchor(
    engine: TodoSyncEngine, store: InMemoryMappingStore, tracker: FakeTracker
) -> None:
    first = engine.sync_forward(SESSION, [todo("a")])

    report = engine.sync_forward(SESSION, [])

    assert report.removed == ["a"]
    assert store.snapshot().todos[SESSION] == {}
    assert tracker.calls_for("close", first.anchor_id) == []


def test_sessions_are_independent(
    engine: TodoSyncEngine, store: InMemoryMappingStore
) -> None:
    r1 = engine.sync_forward("session-one", [todo("a")])
    r2 = engine.sync_forward("session-two", [todo("a")])

    doc = store.snapshot()
    assert r1.anchor_id != r2.anchor_id
    assert doc.todos["session-one"]["a"] != doc.todos["session-two"]["a"]

    engine.sync_forward("session-two", [])
    doc = store.snapshot()
    assert doc.todos["session-one"] == {"a": r1.created["a"]}
    assert doc.todos["session-two"] == {}

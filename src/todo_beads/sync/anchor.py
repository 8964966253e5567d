# src/todo_beads/sync/anchor.py

from __future__ import annotations

import logging
from datetime import date

from ..core.errors import TrackerError
from ..core.ports import IssueTracker, MappingRepo
from .models import MappingDocument
from .translate import DEFAULT_BEADS_PRIORITY

logger = logging.getLogger(__name__)

ANCHOR_ISSUE_TYPE = "epic"


def anchor_title(session_id: str, label: str, today: date) -> str:
    return f"{label} Session {session_id[:8]} ({today.isoformat()})"


def resolve_session_anchor(
    tracker: IssueTracker,
    store: MappingRepo,
    session_id: str,
    doc: MappingDocument,
    *,
    label: str = "OpenCode",
    today: date | None = None,
) -> str:
    """
    Return the epic that groups this session's todos, creating it if needed.

    A recorded anchor is reused only if the tracker still knows it; a failed show
    counts as absent. Otherwise a new epic is created, recorded in doc.sessions,
    the session's correlations are reset, and the document is saved before returning.

    TrackerError from create propagates.
    """
    existing = doc.sessions.get(session_id)
    if existing:
        try:
            found = tracker.show_issue(existing)
        except TrackerError as exc:
            logger.warning("show %s failed for session %s: %s", existing, session_id, exc)
            found = None
        if found is not None:
            return existing
        logger.info("Anchor %s for session %s is gone; creating a new one", existing, session_id)

    title = anchor_title(session_id, label, today or date.today())
    issue_id = tracker.create_issue(
        title,
        ANCHOR_ISSUE_TYPE,
        DEFAULT_BEADS_PRIORITY,
        description=f"Tracks todos for {label} session {session_id}",
    )

    doc.sessions[session_id] = issue_id
    doc.todos[session_id] = {}
    store.save(doc)

    logger.info("Created anchor %s for session %s", issue_id, session_id)
    return issue_id

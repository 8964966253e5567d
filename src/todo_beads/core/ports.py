# src/todo_beads/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the sync engine.

The engine depends on Protocols instead of concrete implementations.
This keeps the mapping store and the tracker swappable and makes testing easier.
"""

from typing import Protocol

from ..sync.models import BeadsIssue, MappingDocument


class MappingRepo(Protocol):
    """Whole-document storage for todo <-> issue correlations."""

    def load(self) -> MappingDocument: ...

    def save(self, doc: MappingDocument) -> None: ...


class IssueTracker(Protocol):
    """
    Issue tracker command boundary.

    Every method is a single external call and may raise TrackerError.
    show_issue returns None when the issue does not exist.
    """

    def create_issue(
            self,
            title: str,
            issue_type: str,
            priority: int,
            *,
            parent_id: str | None = None,
            description: str | None = None,
    ) -> str: ...

    def show_issue(self, issue_id: str) -> BeadsIssue | None: ...

    def update_issue(
            self,
            issue_id: str,
            *,
            status: str | None = None,
            notes: str | None = None,
    ) -> None: ...

    def close_issue(self, issue_id: str, reason: str) -> None: ...

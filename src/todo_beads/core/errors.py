# src/todo_beads/core/errors.py

from __future__ import annotations


class TodoBeadsError(Exception):
    """Base class for errors raised by this package."""


class StoreError(TodoBeadsError):
    """The mapping document could not be written."""


class TrackerError(TodoBeadsError):
    """A `bd` invocation failed or printed something we could not parse."""

    def __init__(
        self, message: str, *, argv: list[str] | None = None, returncode: int | None = None
    ) -> None:
        super().__init__(message)
        self.argv = list(argv or [])
        self.returncode = returncode


class SyncAborted(TodoBeadsError):
    """A forward sync could not proceed at all (no session anchor)."""

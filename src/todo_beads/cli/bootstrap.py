# src/todo_beads/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root": it wires the JSON mapping store and the
bd client into a TodoSyncEngine from one Settings object.
"""

from __future__ import annotations

from ..beads.client import BdCliClient
from ..config import Settings, get_settings
from ..sync.engine import TodoSyncEngine
from ..sync.mapping_store import JsonMappingStore


def create_engine(*, settings: Settings | None = None) -> TodoSyncEngine:
    """
    Build the engine from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    store = JsonMappingStore(settings.mapping_path)
    tracker = BdCliClient(
        bd_bin=settings.bd_bin,
        cwd=settings.bd_cwd,
        beads_dir=settings.beads_dir,
    )
    return TodoSyncEngine(store, tracker, label=settings.source_label)

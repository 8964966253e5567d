# src/todo_beads/sync/mapping_store.py

from __future__ import annotations

import copy
import json
import logging
import os
import time
from pathlib import Path

from ..core.errors import StoreError
from .models import MappingDocument

logger = logging.getLogger(__name__)

DEFAULT_MAPPING_PATH = Path(".beads/opencode-todo-mapping.json")


def _now_ms() -> int:
    return int(time.time() * 1000)


class JsonMappingStore:
    """
    Mapping document persisted as one JSON file.

    - load() never raises: a missing, empty or malformed file is an empty document
    - save() writes a temp sibling and os.replace()s it, so readers never see half a file
    - no cross-process locking; last writer wins
    """

    def __init__(self, path: str | Path = DEFAULT_MAPPING_PATH) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> MappingDocument:
        try:
            raw = self._path.read_text("utf-8")
        except FileNotFoundError:
            return MappingDocument()
        except (OSError, UnicodeDecodeError):
            logger.warning("Mapping file unreadable, starting empty: %s", self._path, exc_info=True)
            return MappingDocument()

        if not raw.strip():
            return MappingDocument()

        try:
            return MappingDocument.from_json(json.loads(raw))
        except ValueError as exc:
            # json.JSONDecodeError is a ValueError too.
            logger.warning("Mapping file malformed, starting empty: %s (%s)", self._path, exc)
            return MappingDocument()

    def save(self, doc: MappingDocument) -> None:
        doc.last_sync = _now_ms()
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(doc.to_json(), ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as exc:
            raise StoreError(f"failed to save mapping to {self._path}: {exc}") from exc
        logger.debug(
            "Saved mapping %s sessions=%d lastSync=%d",
            self._path,
            len(doc.sessions),
            doc.last_sync,
        )


class InMemoryMappingStore:
    """MappingRepo without a filesystem. Copies on the way in and out."""

    def __init__(self, doc: MappingDocument | None = None) -> None:
        self._doc = copy.deepcopy(doc) if doc is not None else MappingDocument()
        self.saves = 0

    def load(self) -> MappingDocument:
        return copy.deepcopy(self._doc)

    def save(self, doc: MappingDocument) -> None:
        doc.last_sync = _now_ms()
        self._doc = copy.deepcopy(doc)
        self.saves += 1

    def snapshot(self) -> MappingDocument:
        return copy.deepcopy(self._doc)

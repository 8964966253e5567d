# src/todo_beads/beads/client.py

"""
Thin wrapper around the beads `bd` CLI.

Each method is exactly one `bd ... --json` subprocess call. The client does not
retry; deciding whether a failure matters is the sync engine's job.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any

from ..core.errors import TrackerError
from ..sync.models import BeadsIssue

logger = logging.getLogger(__name__)

_NOT_FOUND_MARKERS = (
    "not found",
    "no issue found",
    "no issues found",
)


def _is_not_found(detail: str) -> bool:
    normalized = detail.lower()
    return any(marker in normalized for marker in _NOT_FOUND_MARKERS)


class BdCliClient:
    """IssueTracker implementation backed by the `bd` executable."""

    def __init__(
        self,
        *,
        bd_bin: str = "bd",
        cwd: str | Path | None = None,
        beads_dir: str | Path | None = None,
    ) -> None:
        self._bd_bin = bd_bin
        self._cwd = Path(cwd) if cwd else None
        self._beads_dir = Path(beads_dir) if beads_dir else None

    # ---- low-level helpers ----

    def _env(self) -> dict[str, str] | None:
        if self._beads_dir is None:
            return None
        env = os.environ.copy()
        env["BEADS_DIR"] = str(self._beads_dir)
        return env

    def _run(self, args: list[str]) -> subprocess.CompletedProcess[str]:
        argv = [self._bd_bin, *args, "--json"]
        logger.debug("bd call: %s", argv)
        try:
            return subprocess.run(
                argv,
                cwd=str(self._cwd) if self._cwd else None,
                env=self._env(),
                capture_output=True,
                text=True,
                stdin=subprocess.DEVNULL,
                check=False,
            )
        except OSError as exc:
            # FileNotFoundError when bd is not installed.
            raise TrackerError(f"cannot run {self._bd_bin}: {exc}", argv=argv) from exc

    @staticmethod
    def _detail(result: subprocess.CompletedProcess[str]) -> str:
        return (result.stderr or result.stdout or "").strip()

    def _check(self, result: subprocess.CompletedProcess[str]) -> None:
        if result.returncode != 0:
            argv = [str(a) for a in result.args]
            raise TrackerError(
                f"bd exited {result.returncode}: {self._detail(result) or '(no output)'}",
                argv=argv,
                returncode=result.returncode,
            )

    @staticmethod
    def _parse_object(result: subprocess.CompletedProcess[str]) -> dict[str, Any] | None:
        """
        Parse bd --json stdout into one object.

        bd prints either an object or a list of objects depending on the command/version.
        Returns None for empty output.
        """
        raw = (result.stdout or "").strip()
        if not raw:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise TrackerError(f"failed to parse bd json output: {exc}", argv=list(result.args)) from exc
        if isinstance(payload, list):
            payload = next((item for item in payload if isinstance(item, dict)), None)
        if payload is not None and not isinstance(payload, dict):
            raise TrackerError(
                f"unexpected bd json output type: {type(payload).__name__}", argv=list(result.args)
            )
        return payload

    # ---- public API ----

    def create_issue(
        self,
        title: str,
        issue_type: str,
        priority: int,
        *,
        parent_id: str | None = None,
        description: str | None = None,
    ) -> str:
        args = ["create", "--title", title, "-t", issue_type, "-p", str(int(priority))]
        if parent_id:
            args += ["--parent", parent_id]
        if description:
            args += ["-d", description]

        result = self._run(args)
        self._check(result)
        payload = self._parse_object(result)
        issue_id = (payload or {}).get("id")
        if not issue_id:
            raise TrackerError("bd create returned no issue id", argv=list(result.args))
        logger.debug("bd created %s type=%s priority=%s parent=%s", issue_id, issue_type, priority, parent_id)
        return str(issue_id)

    def show_issue(self, issue_id: str) -> BeadsIssue | None:
        result = self._run(["show", issue_id])
        if result.returncode != 0 and _is_not_found(self._detail(result)):
            return None
        self._check(result)
        payload = self._parse_object(result)
        if not payload or not payload.get("id"):
            return None
        return BeadsIssue.from_json(payload)

    def update_issue(
        self,
        issue_id: str,
        *,
        status: str | None = None,
        notes: str | None = None,
    ) -> None:
        args = ["update", issue_id]
        if status is not None:
            args += ["--status", str(status)]
        if notes is not None:
            args += ["--notes", notes]
        if len(args) == 2:
            return
        self._check(self._run(args))

    def close_issue(self, issue_id: str, reason: str) -> None:
        self._check(self._run(["close", issue_id, "--reason", reason]))

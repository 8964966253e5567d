# src/todo_beads/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Every value has a default; nothing is required to run against a local beads repo.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TODO_BEADS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Real environment wins over .env.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_optional_path(name: str) -> Path | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    log_dir: Path
    mapping_path: Path

    # ---- beads CLI ----
    bd_bin: str
    bd_cwd: Path | None
    beads_dir: Path | None

    # ---- Naming on the beads side ----
    source_label: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "todo-beads").strip() or "todo-beads"
        log_level = _env(_k("LOG_LEVEL"), "INFO").strip().upper() or "INFO"

        data_dir = _env_path(_k("DATA_DIR"), Path(".beads"))
        log_dir = _env_path(_k("LOG_DIR"), data_dir / "logs")
        mapping_path = _env_path(_k("MAPPING_PATH"), data_dir / "opencode-todo-mapping.json")

        bd_bin = _env(_k("BD_BIN"), "bd").strip() or "bd"
        bd_cwd = _env_optional_path(_k("BD_CWD"))
        # Fall back to the variable bd itself reads.
        beads_dir = _env_optional_path(_k("BEADS_DIR")) or _env_optional_path("BEADS_DIR")

        source_label = _env(_k("SOURCE_LABEL"), "OpenCode").strip() or "OpenCode"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            log_dir=log_dir,
            mapping_path=mapping_path,
            bd_bin=bd_bin,
            bd_cwd=bd_cwd,
            beads_dir=beads_dir,
            source_label=source_label,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS

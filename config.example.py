# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TODO_BEADS_APP_NAME": "App display name (default: todo-beads).",
    "TODO_BEADS_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths
    "TODO_BEADS_DATA_DIR": "Local data directory (default: .beads).",
    "TODO_BEADS_LOG_DIR": "Log directory (default: <data_dir>/logs).",
    "TODO_BEADS_MAPPING_PATH": (
        "Todo <-> issue mapping JSON (default: <data_dir>/opencode-todo-mapping.json)."
    ),
    # beads CLI
    "TODO_BEADS_BD_BIN": "bd executable name or path (default: bd).",
    "TODO_BEADS_BD_CWD": "Working directory for bd calls (default: current directory).",
    "TODO_BEADS_BEADS_DIR": "BEADS_DIR passed to bd (falls back to BEADS_DIR, then bd's own discovery).",
    # Naming
    "TODO_BEADS_SOURCE_LABEL": (
        "Name used in anchor titles and close reasons (default: OpenCode), "
        "e.g. 'OpenCode Session 1a2b3c4d (2026-10-17)', 'Cancelled in OpenCode'."
    ),
}

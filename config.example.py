# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep machine-specific paths in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "WEEKPLAN_APP_NAME": "App display name (default: weekplan).",
    "WEEKPLAN_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Front end
    "WEEKPLAN_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Grid geometry
    "WEEKPLAN_SLOT_PX": "Height of one half-hour slot in pixels (default: 24).",
    "WEEKPLAN_COLUMN_PX": "Width of one day column in pixels (default: 160).",
    "WEEKPLAN_DRAG_THRESHOLD_PX": "Pointer travel before a press becomes a drag/resize (default: 3).",
    # Paths (gitignored)
    "WEEKPLAN_DATA_DIR": "Local data directory (default: .local/weekplan).",
    "WEEKPLAN_TASKS_PATH": "Task collection JSON path (default: <data_dir>/tasks.json).",
    "WEEKPLAN_COLORS_PATH": "Client color overrides JSON path (default: <data_dir>/client_colors.json).",
}

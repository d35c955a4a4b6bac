# src/weekplan/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (repository/store/controller/palette).
"""

from __future__ import annotations

import logging
from datetime import date

from ..config import get_settings
from ..core.ports import PointerCapture
from ..core.state import AppState
from ..grid.colors import ClientPalette
from ..grid.interaction import InteractionController
from ..grid.layout import GridLayout, monday_of
from ..storage.json_repo import JsonTaskRepository
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_path.parent.mkdir(parents=True, exist_ok=True)
    settings.colors_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    today: date | None = None,
    pointer: PointerCapture | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    store = TaskStore(JsonTaskRepository(settings.tasks_path))
    layout = GridLayout(slot_px=float(settings.slot_px))
    controller = InteractionController(
        store,
        week_start=monday_of(today or date.today()),
        layout=layout,
        pointer=pointer,
        drag_threshold_px=float(settings.drag_threshold_px),
    )

    state = AppState(
        settings=settings,
        store=store,
        controller=controller,
        palette=ClientPalette(settings.colors_path),
    )
    logger.info("State ready week=%s tasks=%d", state.week_start, store.count_tasks())
    return state

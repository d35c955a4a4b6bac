# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from weekplan.core.state import AppState
from weekplan.grid.colors import ClientPalette
from weekplan.grid.interaction import InteractionController
from weekplan.grid.layout import GridLayout
from weekplan.tasks.task_store import TaskStore

from fakes import MONDAY, CountingPointerCapture, FakeTaskRepository


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="weekplan-test",
        log_level="DEBUG",
        console_enabled=False,
        slot_px=24.0,
        column_px=100.0,
        drag_threshold_px=3.0,
        data_dir=tmp_path,
        tasks_path=tmp_path / "tasks.json",
        colors_path=tmp_path / "client_colors.json",
    )


@pytest.fixture()
def layout() -> GridLayout:
    return GridLayout(slot_px=24.0)


@pytest.fixture()
def repo() -> FakeTaskRepository:
    return FakeTaskRepository()


@pytest.fixture()
def store(repo: FakeTaskRepository) -> TaskStore:
    return TaskStore(repo)


@pytest.fixture()
def pointer() -> CountingPointerCapture:
    return CountingPointerCapture()


@pytest.fixture()
def controller(store: TaskStore, layout: GridLayout, pointer: CountingPointerCapture) -> InteractionController:
    counter = iter(range(1, 1000))
    return InteractionController(
        store,
        week_start=MONDAY,
        layout=layout,
        pointer=pointer,
        id_factory=lambda: f"new{next(counter)}",
    )


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, controller: InteractionController) -> AppState:
    """AppState wired with the fake repository and an on-disk palette under tmp_path."""
    return AppState(
        settings=settings,
        store=store,
        controller=controller,
        palette=ClientPalette(settings.colors_path),
    )

# src/weekplan/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Any

from ..core.state import AppState
from ..grid.layout import monday_of
from ..interchange.codec import parse, serialize
from .task_models import Category, Task, new_task_id

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("client", "project", "quote", "type", "description")


def _clean(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _apply_category_rules(task: Task) -> Task:
    """Mirror the edit form: switching category drops the other category's fields."""
    if task.category == Category.NON_BILLABLE:
        return replace(task, client=None, project=None, quote=None, billed=False)
    return replace(task, type=None)


def create_task(
    state: AppState,
    *,
    day: date,
    start_hour: float,
    duration: float = 1.0,
    category: Category = Category.BILLABLE,
    client: str | None = None,
    project: str | None = None,
    quote: str | None = None,
    type: str | None = None,
    description: str | None = None,
    billed: bool = False,
) -> Task:
    """
    Form submission for a new task (fresh id).

    Raises ValidationError / ConflictError from the store; nothing is stored then.
    """
    task = Task(
        id=new_task_id(),
        date=day,
        start_hour=float(start_hour),
        end_hour=float(start_hour) + float(duration),
        category=category,
        client=_clean(client),
        project=_clean(project),
        quote=_clean(quote),
        type=_clean(type),
        description=_clean(description),
        billed=bool(billed),
    )
    return state.store.upsert(_apply_category_rules(task))


def edit_task(state: AppState, task_id: str, **changes: Any) -> Task:
    """
    Form submission for an existing task (same id).

    `duration` is accepted as an alternative to `end_hour`.
    """
    current = state.store.get(task_id)
    if current is None:
        raise KeyError(task_id)

    duration = changes.pop("duration", None)
    if "category" in changes:
        changes["category"] = Category(changes["category"])
    for key in _TEXT_FIELDS:
        if key in changes:
            changes[key] = _clean(changes[key])
    updated = replace(current, **changes)
    if duration is not None:
        updated = replace(updated, end_hour=updated.start_hour + float(duration))

    return state.store.upsert(_apply_category_rules(updated))


def delete_task(state: AppState, task_id: str) -> bool:
    return state.store.delete(task_id)


def import_text(state: AppState, text: str) -> list[Task]:
    """
    Parse interchange text and add every task, or none.

    Imported tasks go through the same overlap check as interactive edits, against
    the existing collection and against each other. Raises ParseError,
    ValidationError or ConflictError (the latter two carry the failing `index`).
    """
    tasks = parse(text)
    accepted = state.store.upsert_many(tasks)
    logger.info("Imported %d task(s)", len(accepted))
    return accepted


def export_tasks(state: AppState, *, week_only: bool = False) -> list[Task]:
    if week_only:
        return week_tasks(state)
    return state.store.all_tasks()


def export_text(state: AppState, *, week_only: bool = False) -> str:
    return serialize(export_tasks(state, week_only=week_only))


def week_tasks(state: AppState) -> list[Task]:
    dates = state.controller.layout.week_dates(state.week_start)
    return sorted(
        state.store.query(start=dates[0], end=dates[-1]),
        key=lambda t: (t.date, t.start_hour),
    )


def visible_tasks(state: AppState) -> list[Task]:
    """Tasks of the displayed week that pass the active filters."""
    f = state.filters
    dates = state.controller.layout.week_dates(state.week_start)
    return sorted(
        state.store.query(
            start=dates[0],
            end=dates[-1],
            category=f.category,
            client=f.client,
            type=f.type,
        ),
        key=lambda t: (t.date, t.start_hour),
    )


def go_to_week(state: AppState, day: date) -> date:
    monday = monday_of(day)
    state.controller.set_week(monday)
    return monday


def shift_week(state: AppState, weeks: int) -> date:
    return go_to_week(state, state.week_start + timedelta(weeks=weeks))

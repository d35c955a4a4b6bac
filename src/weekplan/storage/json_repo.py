# src/weekplan/storage/json_repo.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from ..tasks.task_models import Category, Task

logger = logging.getLogger(__name__)


def task_to_dict(task: Task) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": task.id,
        "date": task.date.isoformat(),
        "start_hour": task.start_hour,
        "end_hour": task.end_hour,
        "category": task.category.value,
    }
    for key in ("client", "project", "quote", "type", "description"):
        value = getattr(task, key)
        if value is not None:
            out[key] = value
    if task.category == Category.BILLABLE:
        out["billed"] = bool(task.billed)
    return out


def _opt_str(raw: Any) -> str | None:
    return raw if isinstance(raw, str) and raw != "" else None


def task_from_dict(raw: dict[str, Any]) -> Task | None:
    """Best-effort decode; returns None for records that cannot be a Task."""
    try:
        category = Category(raw["category"])
        return Task(
            id=str(raw["id"]),
            date=date.fromisoformat(str(raw["date"])),
            start_hour=float(raw["start_hour"]),
            end_hour=float(raw["end_hour"]),
            category=category,
            client=_opt_str(raw.get("client")),
            project=_opt_str(raw.get("project")),
            quote=_opt_str(raw.get("quote")),
            type=_opt_str(raw.get("type")),
            description=_opt_str(raw.get("description")),
            billed=bool(raw.get("billed", False)) if category == Category.BILLABLE else False,
        )
    except (KeyError, TypeError, ValueError):
        return None


def read_json(path: Path) -> Any:
    """Parsed JSON content of `path`, or None when missing/unreadable."""
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text("utf-8"))
    except Exception:
        logger.exception("Failed to read %s", path)
        return None


def write_json_atomic(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
    os.replace(tmp, path)
    with contextlib.suppress(Exception):
        # Best-effort: timesheets name clients, keep the file private on disk.
        os.chmod(path, 0o600)


class JsonTaskRepository:
    """
    Task collection persisted as a JSON list.

    load() never raises: a missing file, invalid JSON or a non-list payload yields an
    empty collection, and undecodable records are skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Task]:
        data = read_json(self._path)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning("Ignoring %s: expected a JSON list", self._path)
            return []

        out: list[Task] = []
        for item in data:
            task = task_from_dict(item) if isinstance(item, dict) else None
            if task is None:
                logger.warning("Skipping undecodable task record in %s", self._path)
                continue
            out.append(task)
        logger.info("Loaded %d task(s) from %s", len(out), self._path)
        return out

    def save(self, tasks: Iterable[Task]) -> None:
        payload = [task_to_dict(t) for t in tasks]
        write_json_atomic(self._path, payload)
        logger.debug("Saved %d task(s) to %s", len(payload), self._path)


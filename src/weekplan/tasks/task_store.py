# src/weekplan/tasks/task_store.py

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Iterator
from datetime import date

from ..core.ports import TaskRepository
from .errors import ConflictError, SchedulingError, ValidationError
from .task_models import (
    DAY_END_HOUR,
    DAY_START_HOUR,
    DESCRIPTION_MAX_LEN,
    Category,
    Task,
    is_slot_aligned,
)

logger = logging.getLogger(__name__)


def _fmt_hour(hour: float) -> str:
    h = int(hour)
    return f"{h:02d}:{int(round((hour - h) * 60)):02d}"


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_task(task: Task) -> None:
    """
    Check a single task in isolation (range, granularity, category fields).

    Raises ValidationError naming the first broken rule.
    """
    if not task.id:
        raise ValidationError("Task id is required.")

    if not is_slot_aligned(task.start_hour) or not is_slot_aligned(task.end_hour):
        raise ValidationError("Start and end must fall on a half hour.")

    if task.start_hour < DAY_START_HOUR or task.end_hour > DAY_END_HOUR:
        raise ValidationError(
            f"Time range must stay within {_fmt_hour(DAY_START_HOUR)}-{_fmt_hour(DAY_END_HOUR)} "
            f"(got {_fmt_hour(task.start_hour)}-{_fmt_hour(task.end_hour)})."
        )

    if task.start_hour >= task.end_hour:
        raise ValidationError("End time must be after start time.")

    if not isinstance(task.category, Category):
        raise ValidationError(f"Unknown category: {task.category!r}.")

    if any(v == "" for v in (task.client, task.project, task.quote, task.type, task.description)):
        raise ValidationError("Optional text fields must be None when absent, not empty.")

    if task.category == Category.BILLABLE:
        if _blank(task.client):
            raise ValidationError("Client is required for billable tasks.")
        if task.type is not None:
            raise ValidationError("Billable tasks do not carry a type.")
    else:
        if _blank(task.type):
            raise ValidationError("Type is required for non-billable tasks.")
        if task.client is not None or task.project is not None or task.quote is not None:
            raise ValidationError("Non-billable tasks cannot reference a client, project or quote.")
        if task.billed:
            raise ValidationError("Non-billable tasks cannot be marked as billed.")

    if task.description is not None and len(task.description) > DESCRIPTION_MAX_LEN:
        raise ValidationError(f"Description is limited to {DESCRIPTION_MAX_LEN} characters.")


class TaskStore:
    """
    Authoritative in-memory task collection for the session.

    Every mutation is validate-then-apply: a rejected candidate leaves the collection
    untouched. When a repository is attached, the collection is loaded from it once
    and saved after each accepted mutation (best-effort).
    """

    def __init__(self, repo: TaskRepository | None = None) -> None:
        self._tasks: dict[str, Task] = {}
        self._repo = repo
        if repo is not None:
            self._load(repo)
        logger.info("TaskStore ready total=%s persistent=%s", len(self._tasks), repo is not None)

    # ---- low-level helpers ----

    def _load(self, repo: TaskRepository) -> None:
        try:
            loaded = list(repo.load())
        except Exception:
            logger.exception("Failed to load tasks; starting empty.")
            return

        dropped = 0
        for task in loaded:
            try:
                self._check(task, self._tasks)
            except SchedulingError as e:
                dropped += 1
                logger.warning("Dropping stored task id=%s: %s", getattr(task, "id", "?"), e)
                continue
            self._tasks[task.id] = task
        if dropped:
            logger.warning("Dropped %d invalid stored task(s).", dropped)

    def _save(self) -> None:
        if self._repo is None:
            return
        try:
            self._repo.save(self.all_tasks())
        except Exception:
            logger.exception("Failed to persist tasks.")

    @staticmethod
    def _check(task: Task, existing: dict[str, Task]) -> None:
        validate_task(task)
        for other in existing.values():
            if task.overlaps(other):
                raise ConflictError(
                    f"Overlaps {other.label()} on {other.date.isoformat()} "
                    f"{_fmt_hour(other.start_hour)}-{_fmt_hour(other.end_hour)}.",
                    conflicting_id=other.id,
                )

    # ---- public API ----

    def upsert(self, task: Task) -> Task:
        """Insert a new task or replace the one with the same id."""
        self._check(task, self._tasks)
        existed = task.id in self._tasks
        self._tasks[task.id] = task
        logger.debug(
            "Task %s id=%s date=%s %s-%s",
            "updated" if existed else "added",
            task.id,
            task.date,
            task.start_hour,
            task.end_hour,
        )
        self._save()
        return task

    def upsert_many(self, tasks: Iterable[Task]) -> list[Task]:
        """
        All-or-nothing batch upsert.

        Candidates are checked against the store and against the candidates before
        them. On failure the raised error carries the candidate's `index`.
        """
        staged = dict(self._tasks)
        accepted: list[Task] = []
        for i, task in enumerate(tasks):
            try:
                self._check(task, staged)
            except (ValidationError, ConflictError) as e:
                e.index = i
                raise
            staged[task.id] = task
            accepted.append(task)

        self._tasks = staged
        logger.info("Batch upsert applied count=%d total=%d", len(accepted), len(staged))
        self._save()
        return accepted

    def delete(self, task_id: str) -> bool:
        """Remove a task. Unknown ids are a no-op (returns False)."""
        task = self._tasks.pop(task_id, None)
        if task is None:
            logger.debug("Delete ignored, unknown id=%s", task_id)
            return False
        logger.debug("Task deleted id=%s", task_id)
        self._save()
        return True

    def get(self, task_id: str) -> Task | None:
        return self._tasks.get(task_id)

    def count_tasks(self) -> int:
        return len(self._tasks)

    def all_tasks(self) -> list[Task]:
        return sorted(self._tasks.values(), key=lambda t: (t.date, t.start_hour))

    def query(
        self,
        *,
        start: date | None = None,
        end: date | None = None,
        category: Category | None = None,
        client: str | None = None,
        type: str | None = None,
        predicate: Callable[[Task], bool] | None = None,
    ) -> Iterator[Task]:
        """
        Lazily yield tasks matching every given filter.

        `start`/`end` are inclusive dates. Iterates over a snapshot, so the store
        may be mutated while a query is being consumed.
        """
        for task in list(self._tasks.values()):
            if start is not None and task.date < start:
                continue
            if end is not None and task.date > end:
                continue
            if category is not None and task.category != category:
                continue
            if client and task.client != client:
                continue
            if type and task.type != type:
                continue
            if predicate is not None and not predicate(task):
                continue
            yield task

    # ---- option lists ----

    def clients(self) -> list[str]:
        return sorted({t.client for t in self._tasks.values() if t.client})

    def types(self) -> list[str]:
        return sorted({t.type for t in self._tasks.values() if t.type})

    def projects_by_client(self) -> dict[str, list[str]]:
        return self._values_by_client(lambda t: t.project)

    def quotes_by_client(self) -> dict[str, list[str]]:
        return self._values_by_client(lambda t: t.quote)

    def _values_by_client(self, field: Callable[[Task], str | None]) -> dict[str, list[str]]:
        acc: dict[str, set[str]] = defaultdict(set)
        for t in self._tasks.values():
            value = field(t)
            if t.category == Category.BILLABLE and t.client and value:
                acc[t.client].add(value)
        return {k: sorted(v) for k, v in sorted(acc.items())}

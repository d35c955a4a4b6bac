# tests/fakes.py

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from weekplan.tasks.task_models import Category, Task

MONDAY = date(2025, 1, 6)


class FakeTaskRepository:
    """
    In-memory TaskRepository.

    Records every save so tests can assert on persistence without touching disk.
    """

    def __init__(self, tasks: Iterable[Task] | None = None) -> None:
        self.tasks: list[Task] = list(tasks or [])
        self.saves = 0

    def load(self) -> list[Task]:
        return list(self.tasks)

    def save(self, tasks: Iterable[Task]) -> None:
        self.tasks = list(tasks)
        self.saves += 1


class CountingPointerCapture:
    """PointerCapture that counts acquire/release calls."""

    def __init__(self) -> None:
        self.acquired = 0
        self.released = 0

    @property
    def held(self) -> bool:
        return self.acquired > self.released

    def acquire(self) -> None:
        self.acquired += 1

    def release(self) -> None:
        self.released += 1


def make_task(
    task_id: str = "t1",
    *,
    day: date = MONDAY,
    start: float = 9.0,
    end: float = 10.0,
    client: str = "Acme",
    **extra,
) -> Task:
    """Billable task factory; pass category=Category.NON_BILLABLE, type=... for the other kind."""
    if extra.get("category") == Category.NON_BILLABLE:
        client = None  # type: ignore[assignment]
    fields = {"category": Category.BILLABLE, "client": client, **extra}
    return Task(id=task_id, date=day, start_hour=start, end_hour=end, **fields)

# src/weekplan/tasks/task_models.py

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date
from enum import StrEnum

DAY_START_HOUR = 7.0
DAY_END_HOUR = 20.0  # exclusive upper bound for slot starts
SLOT_HOURS = 0.5
DESCRIPTION_MAX_LEN = 140


class Category(StrEnum):
    """Billing category of a task (closed set)."""

    BILLABLE = "BILLABLE"
    NON_BILLABLE = "NON_BILLABLE"

    @classmethod
    def parse(cls, raw: str | None) -> Category | None:
        if not raw:
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


def new_task_id() -> str:
    return uuid.uuid4().hex


def is_slot_aligned(hour: float) -> bool:
    return float(hour / SLOT_HOURS).is_integer()


@dataclass(frozen=True, slots=True)
class Task:
    """
    One scheduled block of work on the weekly grid.

    Hours are floats on a half-hour grid (9.0, 9.5, ...). Optional text fields use
    None for "absent"; `billed` only carries meaning for billable tasks.
    """

    id: str
    date: date
    start_hour: float
    end_hour: float
    category: Category

    client: str | None = None
    project: str | None = None
    quote: str | None = None
    type: str | None = None
    description: str | None = None
    billed: bool = False

    @property
    def duration(self) -> float:
        return self.end_hour - self.start_hour

    @property
    def is_billable(self) -> bool:
        return self.category == Category.BILLABLE

    def overlaps(self, other: Task) -> bool:
        """Half-open interval test; touching endpoints do not overlap."""
        return (
            self.id != other.id
            and self.date == other.date
            and self.start_hour < other.end_hour
            and other.start_hour < self.end_hour
        )

    def label(self) -> str:
        if self.is_billable:
            return f"{self.client} / {self.project}" if self.project else str(self.client)
        return str(self.type)

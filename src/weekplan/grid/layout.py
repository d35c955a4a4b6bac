# src/weekplan/grid/layout.py

"""
Grid geometry: calendar coordinates <-> pixel coordinates.

Everything here is pure. A GridLayout is an immutable bundle of constants; its
methods never fail and always return in-range values by clamping.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, timedelta

from ..tasks.task_models import DAY_END_HOUR, DAY_START_HOUR, SLOT_HOURS

_WEEKDAY_LABELS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def round_half_up(x: float) -> int:
    """Round to the nearest integer, ties towards +inf (pointer rounding)."""
    return int(math.floor(x + 0.5))


def monday_of(d: date) -> date:
    return d - timedelta(days=d.weekday())


def day_label(d: date) -> str:
    return f"{_WEEKDAY_LABELS[d.weekday()]} {d.day:02d}/{d.month:02d}"


@dataclass(frozen=True, slots=True)
class GridLayout:
    days: int = 6
    start_hour: float = DAY_START_HOUR
    end_hour: float = DAY_END_HOUR
    slot_hours: float = SLOT_HOURS
    slot_px: float = 24.0

    @property
    def hour_px(self) -> float:
        return self.slot_px / self.slot_hours

    @property
    def last_slot_start(self) -> float:
        return self.end_hour - self.slot_hours

    # ---- vertical axis ----

    def time_to_offset(self, hour: float) -> float:
        return (hour - self.start_hour) / self.slot_hours * self.slot_px

    def offset_to_time(self, px: float) -> float:
        slots = round_half_up(px / self.slot_px)
        hour = self.start_hour + slots * self.slot_hours
        return min(self.last_slot_start, max(self.start_hour, hour))

    def snap_duration(self, px_delta: float) -> int:
        """Pixel delta -> whole number of slots (may be negative)."""
        return round_half_up(px_delta / self.slot_px)

    def slots_to_hours(self, slots: int) -> float:
        return slots * self.slot_hours

    def height_for(self, duration: float) -> float:
        return duration / self.slot_hours * self.slot_px

    def time_slots(self) -> list[float]:
        n = int(round((self.end_hour - self.start_hour) / self.slot_hours))
        return [self.start_hour + i * self.slot_hours for i in range(n)]

    # ---- horizontal axis ----

    def clamp_day_index(self, index: int) -> int:
        return min(self.days - 1, max(0, index))

    def week_dates(self, week_start: date) -> list[date]:
        return [week_start + timedelta(days=i) for i in range(self.days)]

    def date_for_index(self, week_start: date, index: int) -> date:
        return week_start + timedelta(days=self.clamp_day_index(index))

    def day_index_of(self, d: date, week_start: date) -> int | None:
        """Column of `d` in the week starting at `week_start`, or None when off-grid."""
        index = (d - week_start).days
        if 0 <= index < self.days:
            return index
        return None


DEFAULT_LAYOUT = GridLayout()

# src/weekplan/grid/interaction.py

"""
Pointer interaction state machine for the weekly grid.

One gesture (pointer-down -> pointer-up) is active at a time. While it runs, the
controller only tracks displacement and exposes a preview; nothing reaches the store
until pointer-up, when a single candidate task is submitted to TaskStore.upsert.
A rejected candidate is discarded, so re-rendering from the store shows the last
accepted state.

State transitions:

    IDLE --down(body)--> POTENTIALLY_DRAGGING --moved > threshold--> DRAGGING
    IDLE --down(edge)--> POTENTIALLY_RESIZING --moved > threshold--> RESIZING
    any  --up / cancel--> IDLE

The candidate builders (drag_candidate, resize_candidate, paste_candidate) are pure
and can be exercised without simulating pointer events.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import date
from enum import StrEnum

from ..core.ports import NullPointerCapture, PointerCapture
from ..tasks.errors import SchedulingError
from ..tasks.task_models import Task, new_task_id
from ..tasks.task_store import TaskStore
from .layout import DEFAULT_LAYOUT, GridLayout, round_half_up

logger = logging.getLogger(__name__)

DRAG_THRESHOLD_PX = 3.0


class GestureState(StrEnum):
    IDLE = "idle"
    POTENTIALLY_DRAGGING = "potentially_dragging"
    DRAGGING = "dragging"
    POTENTIALLY_RESIZING = "potentially_resizing"
    RESIZING = "resizing"


class Handle(StrEnum):
    """Where on the task card the pointer went down."""

    BODY = "body"
    TOP = "top"
    BOTTOM = "bottom"


class GestureOutcome(StrEnum):
    COMMITTED = "committed"
    REJECTED = "rejected"
    OPEN_EDIT = "open_edit"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"


@dataclass(slots=True)
class Gesture:
    """Mutable record of the gesture in flight, keyed by its origin task."""

    task_id: str
    original: Task
    handle: Handle
    start_pos: tuple[float, float]
    column_width: float
    state: GestureState
    delta: tuple[float, float] = (0.0, 0.0)

    @property
    def is_resize(self) -> bool:
        return self.handle is not Handle.BODY

    @property
    def promoted(self) -> bool:
        return self.state in (GestureState.DRAGGING, GestureState.RESIZING)


@dataclass(frozen=True, slots=True)
class GesturePreview:
    task_id: str
    dx: float
    dy: float
    start_hour: float
    end_hour: float
    top_px: float
    height_px: float


@dataclass(frozen=True, slots=True)
class GestureResult:
    outcome: GestureOutcome
    task: Task | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (GestureOutcome.COMMITTED, GestureOutcome.UNCHANGED)


@dataclass(frozen=True, slots=True)
class CreateRequest:
    date: date
    start_hour: float


@dataclass(frozen=True, slots=True)
class HoverTarget:
    date: date
    hour: float
    task_id: str | None = None


# ---- pure candidate builders ----


def drag_candidate(
    task: Task,
    *,
    week_start: date,
    dx: float,
    dy: float,
    column_width: float,
    layout: GridLayout = DEFAULT_LAYOUT,
) -> Task:
    """Moved copy of `task`: whole-day horizontal shift, slot-snapped vertical shift."""
    day_shift = round_half_up(dx / column_width) if column_width > 0 else 0
    origin = layout.day_index_of(task.date, week_start)
    if origin is None:
        new_date = date.fromordinal(task.date.toordinal() + day_shift)
    else:
        new_date = layout.date_for_index(week_start, origin + day_shift)

    duration = task.duration
    shifted = task.start_hour + layout.slots_to_hours(layout.snap_duration(dy))
    new_start = min(layout.end_hour - duration, max(layout.start_hour, shifted))
    return replace(task, date=new_date, start_hour=new_start, end_hour=new_start + duration)


def resize_candidate(
    task: Task,
    *,
    handle: Handle,
    dy: float,
    layout: GridLayout = DEFAULT_LAYOUT,
) -> Task:
    """Bottom edge keeps the start fixed; top edge keeps the end fixed."""
    shift = layout.slots_to_hours(layout.snap_duration(dy))
    if handle is Handle.BOTTOM:
        duration = min(layout.end_hour - task.start_hour, max(layout.slot_hours, task.duration + shift))
        return replace(task, end_hour=task.start_hour + duration)
    if handle is Handle.TOP:
        new_start = max(layout.start_hour, min(task.end_hour - layout.slot_hours, task.start_hour + shift))
        return replace(task, start_hour=new_start)
    raise ValueError(f"not a resize handle: {handle}")


def paste_candidate(
    source: Task,
    *,
    target_date: date,
    target_hour: float,
    new_id: str,
    layout: GridLayout = DEFAULT_LAYOUT,
) -> Task:
    duration = source.duration
    start = max(layout.start_hour, min(target_hour, layout.end_hour - duration))
    return replace(source, id=new_id, date=target_date, start_hour=start, end_hour=start + duration)


class InteractionController:
    """
    Turns raw pointer events into validated move/resize/duplicate mutations.

    Coordinates are pixels in the grid's own frame: `y` is measured from the top of
    the first hour row, `x` only matters as a displacement.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        week_start: date,
        layout: GridLayout = DEFAULT_LAYOUT,
        pointer: PointerCapture | None = None,
        drag_threshold_px: float = DRAG_THRESHOLD_PX,
        id_factory: Callable[[], str] = new_task_id,
    ) -> None:
        self._store = store
        self._layout = layout
        self._pointer: PointerCapture = pointer or NullPointerCapture()
        self._threshold = float(drag_threshold_px)
        self._new_id = id_factory

        self.week_start = week_start
        self._gesture: Gesture | None = None
        self._captured = False
        self._clipboard: Task | None = None
        self._hover: HoverTarget | None = None

    # ---- inspection ----

    @property
    def state(self) -> GestureState:
        return self._gesture.state if self._gesture is not None else GestureState.IDLE

    @property
    def gesture(self) -> Gesture | None:
        return self._gesture

    @property
    def clipboard(self) -> Task | None:
        return self._clipboard

    @property
    def hover_target(self) -> HoverTarget | None:
        return self._hover

    @property
    def layout(self) -> GridLayout:
        return self._layout

    def set_week(self, week_start: date) -> None:
        self.week_start = week_start
        self._hover = None

    # ---- gestures ----

    def pointer_down(
        self,
        task_id: str,
        handle: Handle,
        x: float,
        y: float,
        *,
        column_width: float,
    ) -> bool:
        """Start a gesture on a task card. Returns False when the input is ignored."""
        if self._gesture is not None:
            logger.warning(
                "pointer_down on %s while gesture on %s is active; ignored",
                task_id,
                self._gesture.task_id,
            )
            return False

        task = self._store.get(task_id)
        if task is None:
            logger.debug("pointer_down on unknown task id=%s; ignored", task_id)
            return False

        state = GestureState.POTENTIALLY_DRAGGING if handle is Handle.BODY else GestureState.POTENTIALLY_RESIZING
        self._gesture = Gesture(
            task_id=task_id,
            original=task,
            handle=handle,
            start_pos=(float(x), float(y)),
            column_width=float(column_width),
            state=state,
        )
        self._pointer.acquire()
        self._captured = True
        logger.debug("Gesture started task=%s handle=%s", task_id, handle.value)
        return True

    def pointer_move(self, x: float, y: float) -> GesturePreview | None:
        g = self._gesture
        if g is None:
            return None
        self._track(g, x, y)
        return self.preview()

    def pointer_up(self, x: float, y: float) -> GestureResult:
        g = self._gesture
        if g is None:
            return GestureResult(GestureOutcome.IGNORED)
        try:
            self._track(g, x, y)
            return self._finish(g)
        finally:
            self._end_gesture()

    def cancel(self) -> None:
        if self._gesture is not None:
            logger.debug("Gesture cancelled task=%s", self._gesture.task_id)
        self._end_gesture()

    def preview(self) -> GesturePreview | None:
        g = self._gesture
        if g is None:
            return None

        dx, dy = g.delta
        task = g.original
        if g.is_resize and g.promoted:
            task = resize_candidate(g.original, handle=g.handle, dy=dy, layout=self._layout)
            dx = dy = 0.0
        elif g.is_resize or not g.promoted:
            dx = dy = 0.0

        return GesturePreview(
            task_id=g.task_id,
            dx=dx,
            dy=dy,
            start_hour=task.start_hour,
            end_hour=task.end_hour,
            top_px=self._layout.time_to_offset(task.start_hour),
            height_px=self._layout.height_for(task.duration),
        )

    def _track(self, g: Gesture, x: float, y: float) -> None:
        dx = float(x) - g.start_pos[0]
        dy = float(y) - g.start_pos[1]
        g.delta = (dx, dy)
        if not g.promoted and (abs(dx) > self._threshold or abs(dy) > self._threshold):
            g.state = GestureState.RESIZING if g.is_resize else GestureState.DRAGGING
            logger.debug("Gesture promoted task=%s state=%s", g.task_id, g.state.value)

    def _finish(self, g: Gesture) -> GestureResult:
        dx, dy = g.delta
        if not g.promoted:
            if g.is_resize:
                return GestureResult(GestureOutcome.UNCHANGED, task=g.original)
            return GestureResult(GestureOutcome.OPEN_EDIT, task=g.original)

        if g.is_resize:
            candidate = resize_candidate(g.original, handle=g.handle, dy=dy, layout=self._layout)
        else:
            candidate = drag_candidate(
                g.original,
                week_start=self.week_start,
                dx=dx,
                dy=dy,
                column_width=g.column_width,
                layout=self._layout,
            )
        return self._submit(candidate, previous=g.original)

    def _end_gesture(self) -> None:
        self._gesture = None
        if not self._captured:
            return
        self._captured = False
        try:
            self._pointer.release()
        except Exception:
            logger.exception("Pointer capture release failed.")

    def _submit(self, candidate: Task, *, previous: Task | None) -> GestureResult:
        if previous is not None and candidate == previous:
            return GestureResult(GestureOutcome.UNCHANGED, task=previous)
        try:
            accepted = self._store.upsert(candidate)
        except SchedulingError as e:
            logger.info("Mutation rejected task=%s: %s", candidate.id, e)
            current = self._store.get(previous.id) if previous is not None else None
            return GestureResult(GestureOutcome.REJECTED, task=current, error=str(e))
        return GestureResult(GestureOutcome.COMMITTED, task=accepted)

    # ---- cells, hover, clipboard ----

    def click_cell(self, day_index: int, y: float) -> CreateRequest:
        """Empty cell clicked: where the create-task flow should open."""
        return CreateRequest(
            date=self._layout.date_for_index(self.week_start, day_index),
            start_hour=self._layout.offset_to_time(y),
        )

    def hover(self, day_index: int, y: float, task_id: str | None = None) -> HoverTarget:
        self._hover = HoverTarget(
            date=self._layout.date_for_index(self.week_start, day_index),
            hour=self._layout.offset_to_time(y),
            task_id=task_id,
        )
        return self._hover

    def leave(self) -> None:
        self._hover = None

    def copy(self, task_id: str | None = None) -> Task | None:
        """Put the given (or hovered) task in the clipboard, replacing its content."""
        if task_id is None and self._hover is not None:
            task_id = self._hover.task_id
        task = self._store.get(task_id) if task_id else None
        if task is None:
            return None
        self._clipboard = task
        logger.debug("Copied task id=%s", task.id)
        return task

    def paste(self) -> GestureResult:
        if self._clipboard is None:
            return GestureResult(GestureOutcome.IGNORED, error="Clipboard is empty.")
        if self._hover is None:
            return GestureResult(GestureOutcome.IGNORED, error="No paste target under the pointer.")

        candidate = paste_candidate(
            self._clipboard,
            target_date=self._hover.date,
            target_hour=self._hover.hour,
            new_id=self._new_id(),
            layout=self._layout,
        )
        return self._submit(candidate, previous=None)

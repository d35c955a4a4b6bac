# tests/test_interaction.py

from __future__ import annotations

from datetime import timedelta

import pytest

from weekplan.grid.interaction import (
    GestureOutcome,
    GestureState,
    Handle,
    InteractionController,
    drag_candidate,
    paste_candidate,
    resize_candidate,
)
from weekplan.grid.layout import GridLayout
from weekplan.tasks.task_store import TaskStore

from fakes import MONDAY, CountingPointerCapture, make_task

COL = 100.0


def _drag(controller: InteractionController, task_id: str, dx: float, dy: float, handle: Handle = Handle.BODY):
    assert controller.pointer_down(task_id, handle, 50.0, 200.0, column_width=COL)
    controller.pointer_move(50.0 + dx / 2, 200.0 + dy / 2)
    return controller.pointer_up(50.0 + dx, 200.0 + dy)


# ---- pure builders ----


def test_drag_candidate_snaps_47_minutes_to_one_hour(layout: GridLayout) -> None:
    task = make_task(start=9.0, end=10.0)
    dy = 47 / 60 * layout.hour_px
    moved = drag_candidate(task, week_start=MONDAY, dx=0, dy=dy, column_width=COL, layout=layout)
    assert moved.start_hour == 10.0
    assert moved.end_hour == 11.0


def test_drag_candidate_keeps_duration_inside_the_day(layout: GridLayout) -> None:
    task = make_task(start=18.0, end=19.5)
    down = drag_candidate(task, week_start=MONDAY, dx=0, dy=500, column_width=COL, layout=layout)
    assert (down.start_hour, down.end_hour) == (18.5, 20.0)

    up = drag_candidate(task, week_start=MONDAY, dx=0, dy=-5000, column_width=COL, layout=layout)
    assert (up.start_hour, up.end_hour) == (7.0, 8.5)


def test_drag_candidate_clamps_day_to_visible_week(layout: GridLayout) -> None:
    friday = make_task(day=MONDAY + timedelta(days=4))
    moved = drag_candidate(friday, week_start=MONDAY, dx=3 * COL, dy=0, column_width=COL, layout=layout)
    assert moved.date == MONDAY + timedelta(days=5)

    back = drag_candidate(friday, week_start=MONDAY, dx=-10 * COL, dy=0, column_width=COL, layout=layout)
    assert back.date == MONDAY

    # just under half a column stays put
    same = drag_candidate(friday, week_start=MONDAY, dx=0.49 * COL, dy=0, column_width=COL, layout=layout)
    assert same.date == friday.date


def test_drag_candidate_off_week_task_is_not_clamped(layout: GridLayout) -> None:
    task = make_task(day=MONDAY - timedelta(days=7))
    moved = drag_candidate(task, week_start=MONDAY, dx=COL, dy=0, column_width=COL, layout=layout)
    assert moved.date == MONDAY - timedelta(days=6)


def test_resize_candidate_bounds(layout: GridLayout) -> None:
    task = make_task(start=9.0, end=10.0)

    assert resize_candidate(task, handle=Handle.BOTTOM, dy=-500, layout=layout).end_hour == 9.5
    assert resize_candidate(task, handle=Handle.BOTTOM, dy=5000, layout=layout).end_hour == 20.0
    assert resize_candidate(task, handle=Handle.BOTTOM, dy=48, layout=layout).end_hour == 11.0

    top_up = resize_candidate(task, handle=Handle.TOP, dy=-5000, layout=layout)
    assert (top_up.start_hour, top_up.end_hour) == (7.0, 10.0)
    top_down = resize_candidate(task, handle=Handle.TOP, dy=5000, layout=layout)
    assert (top_down.start_hour, top_down.end_hour) == (9.5, 10.0)

    with pytest.raises(ValueError):
        resize_candidate(task, handle=Handle.BODY, dy=0, layout=layout)


def test_paste_candidate_clamps_to_fit(layout: GridLayout) -> None:
    source = make_task(start=9.0, end=11.0, description="copy me")
    pasted = paste_candidate(source, target_date=MONDAY, target_hour=19.5, new_id="p1", layout=layout)
    assert pasted.id == "p1"
    assert (pasted.start_hour, pasted.end_hour) == (18.0, 20.0)
    assert pasted.description == "copy me"
    assert pasted.client == source.client


# ---- gestures ----


def test_click_without_movement_opens_edit(
    controller: InteractionController, store: TaskStore, pointer: CountingPointerCapture
) -> None:
    task = store.upsert(make_task("a"))
    result = _drag(controller, "a", dx=2.0, dy=-3.0)

    assert result.outcome is GestureOutcome.OPEN_EDIT
    assert result.task == task
    assert store.get("a") == task
    assert (pointer.acquired, pointer.released) == (1, 1)
    assert controller.state is GestureState.IDLE


def test_drag_commits_move(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a", start=9.0, end=10.0))
    result = _drag(controller, "a", dx=2 * COL, dy=96.0)

    assert result.ok
    assert result.outcome is GestureOutcome.COMMITTED
    moved = store.get("a")
    assert moved.date == MONDAY + timedelta(days=2)
    assert (moved.start_hour, moved.end_hour) == (11.0, 12.0)


def test_drag_into_conflict_is_rejected(controller: InteractionController, store: TaskStore) -> None:
    original = store.upsert(make_task("a", start=9.0, end=10.0))
    store.upsert(make_task("b", start=10.0, end=11.0))

    result = _drag(controller, "a", dx=0, dy=24.0)

    assert result.outcome is GestureOutcome.REJECTED
    assert result.task == original
    assert not result.ok
    assert result.error
    assert store.get("a") == original


def test_drag_back_to_origin_is_unchanged(
    controller: InteractionController, store: TaskStore, pointer: CountingPointerCapture
) -> None:
    store.upsert(make_task("a"))
    controller.pointer_down("a", Handle.BODY, 10.0, 10.0, column_width=COL)
    controller.pointer_move(10.0, 60.0)
    assert controller.state is GestureState.DRAGGING
    result = controller.pointer_up(10.0, 10.0)

    assert result.outcome is GestureOutcome.UNCHANGED
    assert pointer.released == 1


def test_resize_commits(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a", start=9.0, end=10.0))
    result = _drag(controller, "a", dx=0, dy=48.0, handle=Handle.BOTTOM)
    assert result.outcome is GestureOutcome.COMMITTED
    assert store.get("a").end_hour == 11.0

    result = _drag(controller, "a", dx=0, dy=-96.0, handle=Handle.TOP)
    assert result.outcome is GestureOutcome.COMMITTED
    assert store.get("a").start_hour == 7.0


def test_resize_below_threshold_is_unchanged(controller: InteractionController, store: TaskStore) -> None:
    task = store.upsert(make_task("a"))
    result = _drag(controller, "a", dx=0, dy=2.0, handle=Handle.BOTTOM)
    assert result.outcome is GestureOutcome.UNCHANGED
    assert store.get("a") == task


def test_preview_reports_displacement_only_once_promoted(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a", start=9.0, end=10.0))
    controller.pointer_down("a", Handle.BODY, 0.0, 0.0, column_width=COL)

    early = controller.pointer_move(1.0, 2.0)
    assert (early.dx, early.dy) == (0.0, 0.0)
    assert controller.state is GestureState.POTENTIALLY_DRAGGING

    late = controller.pointer_move(30.0, 40.0)
    assert (late.dx, late.dy) == (30.0, 40.0)
    assert late.top_px == 96.0
    assert late.height_px == 48.0
    controller.cancel()


def test_resize_preview_shows_snapped_interval(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a", start=9.0, end=10.0))
    controller.pointer_down("a", Handle.BOTTOM, 0.0, 0.0, column_width=COL)
    preview = controller.pointer_move(0.0, 50.0)
    assert controller.state is GestureState.RESIZING
    assert (preview.start_hour, preview.end_hour) == (9.0, 11.0)
    assert preview.height_px == 96.0
    controller.cancel()


def test_second_pointer_down_is_ignored(
    controller: InteractionController, store: TaskStore, pointer: CountingPointerCapture
) -> None:
    store.upsert(make_task("a"))
    store.upsert(make_task("b", start=12.0, end=13.0))

    assert controller.pointer_down("a", Handle.BODY, 0.0, 0.0, column_width=COL)
    assert not controller.pointer_down("b", Handle.BODY, 0.0, 0.0, column_width=COL)
    assert controller.gesture.task_id == "a"
    assert pointer.acquired == 1

    controller.cancel()
    assert pointer.released == 1
    assert controller.state is GestureState.IDLE


def test_pointer_down_on_unknown_task_is_ignored(
    controller: InteractionController, pointer: CountingPointerCapture
) -> None:
    assert not controller.pointer_down("ghost", Handle.BODY, 0.0, 0.0, column_width=COL)
    assert pointer.acquired == 0
    assert controller.pointer_up(0.0, 0.0).outcome is GestureOutcome.IGNORED
    assert controller.pointer_move(5.0, 5.0) is None


def test_pointer_released_even_when_store_raises(
    controller: InteractionController,
    store: TaskStore,
    pointer: CountingPointerCapture,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    store.upsert(make_task("a"))

    def boom(task):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(store, "upsert", boom)

    with pytest.raises(RuntimeError):
        _drag(controller, "a", dx=0, dy=48.0)

    assert (pointer.acquired, pointer.released) == (1, 1)
    assert controller.state is GestureState.IDLE


def test_failing_release_does_not_break_the_gesture(store: TaskStore, layout: GridLayout) -> None:
    class FlakyPointer(CountingPointerCapture):
        def release(self) -> None:
            super().release()
            raise RuntimeError("lost capture")

    pointer = FlakyPointer()
    controller = InteractionController(store, week_start=MONDAY, layout=layout, pointer=pointer)
    store.upsert(make_task("a"))

    result = _drag(controller, "a", dx=0, dy=48.0)
    assert result.outcome is GestureOutcome.COMMITTED
    assert pointer.released == 1
    assert controller.state is GestureState.IDLE


# ---- cells, hover, clipboard ----


def test_click_cell_clamps(controller: InteractionController) -> None:
    req = controller.click_cell(7, -50.0)
    assert req.date == MONDAY + timedelta(days=5)
    assert req.start_hour == 7.0

    req = controller.click_cell(1, 100.0)
    assert req.date == MONDAY + timedelta(days=1)
    assert req.start_hour == 9.0


def test_copy_paste_duplicates_with_new_id(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a", start=9.0, end=11.0, project="Site"))

    controller.hover(0, 100.0, task_id="a")
    assert controller.copy().id == "a"

    controller.hover(2, 12.5 * 48)
    result = controller.paste()

    assert result.outcome is GestureOutcome.COMMITTED
    pasted = store.get("new1")
    assert pasted.date == MONDAY + timedelta(days=2)
    assert (pasted.start_hour, pasted.end_hour) == (18.0, 20.0)
    assert pasted.project == "Site"
    assert store.count_tasks() == 2


def test_paste_onto_existing_task_is_rejected(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a", start=9.0, end=10.0))
    controller.copy("a")
    controller.hover(0, 96.0, task_id="a")

    result = controller.paste()
    assert result.outcome is GestureOutcome.REJECTED
    assert result.task is None
    assert store.count_tasks() == 1


def test_paste_needs_clipboard_and_target(controller: InteractionController, store: TaskStore) -> None:
    store.upsert(make_task("a"))
    controller.hover(1, 0.0)
    assert controller.paste().outcome is GestureOutcome.IGNORED

    assert controller.copy("missing") is None
    assert controller.clipboard is None

    controller.copy("a")
    controller.leave()
    result = controller.paste()
    assert result.outcome is GestureOutcome.IGNORED
    assert result.error


def test_set_week_clears_hover(controller: InteractionController) -> None:
    controller.hover(0, 0.0)
    controller.set_week(MONDAY + timedelta(days=7))
    assert controller.hover_target is None
    assert controller.week_start == MONDAY + timedelta(days=7)

# src/weekplan/cli/render.py

"""Text rendering of the visible week for the console front end."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..core.ports import ColorProvider
from ..core.state import AppState
from ..grid.colors import derive_colors
from ..grid.layout import day_label
from ..interchange.codec import format_time
from ..tasks.task_api import visible_tasks
from ..tasks.task_models import Task

SHORT_ID_LEN = 6


def short_id(task: Task) -> str:
    return task.id[:SHORT_ID_LEN]


def _card_style(palette: ColorProvider, task: Task) -> str:
    if not task.is_billable or not task.client:
        return "black on grey85"
    value = palette.color_for(task.client)
    if value is None:
        return ""
    colors = derive_colors(value)
    return f"{colors.text} on {colors.background}"


def _card_text(state: AppState, task: Task) -> Text:
    badge = ""
    if task.is_billable:
        badge = " [billed]" if task.billed else " [to bill]"
    return Text(f"{task.label()}{badge} #{short_id(task)}", style=_card_style(state.palette, task))


def build_week_table(state: AppState) -> Table:
    layout = state.controller.layout
    dates = layout.week_dates(state.week_start)
    tasks = visible_tasks(state)

    table = Table(
        title=f"Week {dates[0].isoformat()} -> {dates[-1].isoformat()}",
        box=box.SIMPLE_HEAVY,
        show_lines=False,
    )
    table.add_column("Time", justify="right", no_wrap=True)
    for d in dates:
        table.add_column(day_label(d), overflow="ellipsis", no_wrap=True)

    by_day: dict[int, list[Task]] = {i: [] for i in range(len(dates))}
    for t in tasks:
        idx = layout.day_index_of(t.date, state.week_start)
        if idx is not None:
            by_day[idx].append(t)

    for slot in layout.time_slots():
        row: list[Text | str] = [format_time(slot)]
        for idx in range(len(dates)):
            cell: Text | str = ""
            for t in by_day[idx]:
                if t.start_hour == slot:
                    cell = _card_text(state, t)
                    break
                if t.start_hour < slot < t.end_hour:
                    cell = Text("|", style=_card_style(state.palette, t))
                    break
            row.append(cell)
        table.add_row(*row)
    return table


def render_week(state: AppState, *, width: int = 140) -> str:
    console = Console(width=width, color_system=None, force_terminal=False)
    with console.capture() as capture:
        console.print(build_week_table(state))
    return capture.get()


def describe_task(task: Task) -> str:
    parts = [
        f"#{short_id(task)}",
        task.date.isoformat(),
        f"{format_time(task.start_hour)}-{format_time(task.end_hour)}",
        task.category.value,
        task.label(),
    ]
    if task.quote:
        parts.append(f"quote={task.quote}")
    if task.is_billable:
        parts.append("billed" if task.billed else "to bill")
    if task.description:
        parts.append(f'"{task.description}"')
    return "  ".join(parts)

# src/weekplan/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import json
import logging
import shlex
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import cast

from ..core.state import AppState
from ..grid.interaction import GestureOutcome, GestureResult, Handle
from ..interchange.codec import parse_time, serialize
from ..tasks import task_api
from ..tasks.errors import ParseError, SchedulingError
from ..tasks.task_models import Category, Task
from .render import describe_task, render_week, short_id

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /show, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Cannot parse command: {e}."
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    positional: list[str] = []
    options: dict[str, str] = {}
    for a in args:
        key, sep, value = a.partition("=")
        if sep and key:
            options[key.lower()] = value
        else:
            positional.append(a)
    return positional, options


def _parse_category(raw: str) -> Category:
    key = raw.strip().upper().replace("-", "_")
    aliases = {"B": "BILLABLE", "NB": "NON_BILLABLE", "NONBILLABLE": "NON_BILLABLE"}
    return Category(aliases.get(key, key))


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _resolve_task(state: AppState, token: str) -> Task | str:
    """Full id or unique id prefix -> Task, or a user-facing error string."""
    token = token.lstrip("#")
    exact = state.store.get(token)
    if exact is not None:
        return exact
    matches = [t for t in state.store.all_tasks() if t.id.startswith(token)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        return f"No task matches #{token}."
    return f"Ambiguous id #{token} ({len(matches)} tasks)."


def _result_message(result: GestureResult) -> str:
    if result.outcome is GestureOutcome.COMMITTED and result.task is not None:
        return f"Saved: {describe_task(result.task)}"
    if result.outcome is GestureOutcome.REJECTED:
        return f"Rejected: {result.error}"
    if result.outcome is GestureOutcome.OPEN_EDIT and result.task is not None:
        return f"No movement; use /edit to change {describe_task(result.task)}"
    if result.outcome is GestureOutcome.UNCHANGED:
        return "Nothing changed."
    return result.error or "Ignored."


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    f = state.filters
    filters = "none"
    if f.any():
        filters = ", ".join(
            f"{k}={v}" for k, v in (("category", f.category), ("client", f.client), ("type", f.type)) if v
        )
    clipboard = state.controller.clipboard
    return (
        "Status:\n"
        f"  Week: {state.week_start.isoformat()}\n"
        f"  Tasks stored: {state.store.count_tasks()}\n"
        f"  Filters: {filters}\n"
        f"  Clipboard: {describe_task(clipboard) if clipboard else 'empty'}\n"
        f"  Data file: {getattr(state.settings, 'tasks_path', '?')}"
    )


def cmd_week(state: AppState, args: list[str]) -> str:
    """
    /week              -> show current week start
    /week prev|next    -> navigate
    /week today        -> back to the current week
    /week YYYY-MM-DD   -> week containing that date
    """
    if not args:
        return f"Week starts {state.week_start.isoformat()}."
    arg = args[0].lower()
    if arg in ("prev", "previous", "-"):
        monday = task_api.shift_week(state, -1)
    elif arg in ("next", "+"):
        monday = task_api.shift_week(state, 1)
    elif arg == "today":
        monday = task_api.go_to_week(state, date.today())
    else:
        try:
            monday = task_api.go_to_week(state, date.fromisoformat(arg))
        except ValueError:
            return "Usage: /week [prev|next|today|YYYY-MM-DD]"
    return f"Week starts {monday.isoformat()}."


def cmd_show(state: AppState, args: list[str]) -> str:
    return render_week(state)


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = task_api.visible_tasks(state)
    if not tasks:
        return "No tasks this week."
    return "\n".join(describe_task(t) for t in tasks)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add DATE HH:MM HOURS billable CLIENT [project=..] [quote=..] [desc=..] [billed=yes]
    /add DATE HH:MM HOURS non_billable TYPE [desc=..]
    """
    positional, opts = _split_options(args)
    if len(positional) < 5:
        return (
            "Usage:\n"
            "  /add DATE HH:MM HOURS billable CLIENT [project=..] [quote=..] [desc=..] [billed=yes]\n"
            "  /add DATE HH:MM HOURS non_billable TYPE [desc=..]"
        )
    raw_date, raw_time, raw_hours, raw_category, name = positional[:5]
    try:
        day = date.fromisoformat(raw_date)
        start = parse_time(raw_time)
        duration = float(raw_hours)
        category = _parse_category(raw_category)
    except ValueError as e:
        return f"Invalid input: {e}"

    billable = category == Category.BILLABLE
    try:
        task = task_api.create_task(
            state,
            day=day,
            start_hour=start,
            duration=duration,
            category=category,
            client=name if billable else None,
            project=opts.get("project"),
            quote=opts.get("quote"),
            type=None if billable else name,
            description=opts.get("desc") or opts.get("description"),
            billed=_parse_bool(opts.get("billed", "no")),
        )
    except SchedulingError as e:
        return f"Rejected: {e}"
    return f"Saved: {describe_task(task)}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit ID field=value ... (date, start, hours, category, client, project, quote, type, desc, billed)"""
    positional, opts = _split_options(args)
    if not positional or not opts:
        return "Usage: /edit ID field=value ... (date, start, hours, category, client, project, quote, type, desc, billed)"
    found = _resolve_task(state, positional[0])
    if isinstance(found, str):
        return found

    changes: dict[str, object] = {}
    try:
        for key, value in opts.items():
            if key == "date":
                changes["date"] = date.fromisoformat(value)
            elif key == "start":
                changes["start_hour"] = parse_time(value)
                changes.setdefault("duration", found.duration)
            elif key in ("hours", "duration"):
                changes["duration"] = float(value)
            elif key == "category":
                changes["category"] = _parse_category(value)
            elif key in ("client", "project", "quote", "type"):
                changes[key] = value
            elif key in ("desc", "description"):
                changes["description"] = value
            elif key == "billed":
                changes["billed"] = _parse_bool(value)
            else:
                return f"Unknown field: {key}."
    except ValueError as e:
        return f"Invalid input: {e}"

    try:
        task = task_api.edit_task(state, found.id, **changes)
    except SchedulingError as e:
        return f"Rejected: {e}"
    return f"Saved: {describe_task(task)}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete ID"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    task_api.delete_task(state, found.id)
    return f"Deleted #{short_id(found)}."


def cmd_move(state: AppState, args: list[str]) -> str:
    """/move ID DAYS HOURS -> drag the card by whole days and hours (may be negative)."""
    if len(args) < 3:
        return "Usage: /move ID DAYS HOURS"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    try:
        days, hours = float(args[1]), float(args[2])
    except ValueError:
        return "DAYS and HOURS must be numbers."

    c = state.controller
    column = float(getattr(state.settings, "column_px", 160.0))
    y0 = c.layout.time_to_offset(found.start_hour)
    if not c.pointer_down(found.id, Handle.BODY, 0.0, y0, column_width=column):
        return "Another gesture is in progress."
    return _result_message(c.pointer_up(days * column, y0 + hours * c.layout.hour_px))


def cmd_resize(state: AppState, args: list[str]) -> str:
    """/resize ID top|bottom HOURS -> drag an edge by HOURS (may be negative)."""
    if len(args) < 3 or args[1].lower() not in ("top", "bottom"):
        return "Usage: /resize ID top|bottom HOURS"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    try:
        hours = float(args[2])
    except ValueError:
        return "HOURS must be a number."

    c = state.controller
    handle = Handle.TOP if args[1].lower() == "top" else Handle.BOTTOM
    edge = found.start_hour if handle is Handle.TOP else found.end_hour
    y0 = c.layout.time_to_offset(edge)
    column = float(getattr(state.settings, "column_px", 160.0))
    if not c.pointer_down(found.id, handle, 0.0, y0, column_width=column):
        return "Another gesture is in progress."
    return _result_message(c.pointer_up(0.0, y0 + hours * c.layout.hour_px))


def cmd_copy(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /copy ID"
    found = _resolve_task(state, args[0])
    if isinstance(found, str):
        return found
    state.controller.copy(found.id)
    return f"Copied #{short_id(found)}."


def cmd_paste(state: AppState, args: list[str]) -> str:
    """/paste DATE HH:MM -> duplicate the copied task at that slot."""
    if len(args) < 2:
        return "Usage: /paste DATE HH:MM"
    try:
        day = date.fromisoformat(args[0])
        hour = parse_time(args[1])
    except ValueError as e:
        return f"Invalid input: {e}"

    c = state.controller
    if day.weekday() >= c.layout.days:
        return f"{day.isoformat()} is not on the grid (Monday-Saturday only)."
    index = c.layout.day_index_of(day, c.week_start)
    if index is None:
        task_api.go_to_week(state, day)
        index = c.layout.day_index_of(day, c.week_start)
    if index is None:
        return f"{day.isoformat()} is not on the grid (Monday-Saturday only)."
    c.hover(index, c.layout.time_to_offset(hour))
    return _result_message(c.paste())


def cmd_filter(state: AppState, args: list[str]) -> str:
    """/filter category=.. client=.. type=..  |  /filter reset"""
    f = state.filters
    if args and args[0].lower() == "reset":
        f.category = f.client = f.type = None
        return "Filters cleared."
    _, opts = _split_options(args)
    if not opts:
        return "Usage: /filter category=BILLABLE|NON_BILLABLE client=NAME type=NAME | /filter reset"
    try:
        if "category" in opts:
            f.category = _parse_category(opts["category"]) if opts["category"] else None
    except ValueError:
        return f"Unknown category: {opts['category']}."
    if "client" in opts:
        f.client = opts["client"] or None
    if "type" in opts:
        f.type = opts["type"] or None
    return "Filters updated."


def cmd_options(state: AppState, args: list[str]) -> str:
    store = state.store
    lines = [
        f"Clients: {', '.join(store.clients()) or '-'}",
        f"Types: {', '.join(store.types()) or '-'}",
    ]
    for client, projects in store.projects_by_client().items():
        lines.append(f"Projects of {client}: {', '.join(projects)}")
    for client, quotes in store.quotes_by_client().items():
        lines.append(f"Quotes of {client}: {', '.join(quotes)}")
    return "\n".join(lines)


def cmd_export(state: AppState, args: list[str]) -> str:
    """/export PATH [week] -> write the interchange file (whole collection by default)."""
    if not args:
        return "Usage: /export PATH [week]"
    path = Path(args[0]).expanduser()
    week_only = len(args) > 1 and args[1].lower() == "week"
    tasks = task_api.export_tasks(state, week_only=week_only)
    text = serialize(tasks)
    try:
        path.write_text(text, encoding="utf-8")
    except OSError as e:
        logger.exception("Export failed path=%s", path)
        return f"Export failed: {e}"
    return f"Exported {len(tasks)} task(s) to {path}."


def cmd_import(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if not args:
        return "Usage: /import PATH"
    path = Path(args[0]).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        return f"Cannot read {path}: {e}"

    if emit:
        with contextlib.suppress(Exception):
            emit(f"Importing {path}...")

    try:
        tasks = task_api.import_text(state, text)
    except ParseError as e:
        return e.details()
    except SchedulingError as e:
        index = getattr(e, "index", None)
        where = f" (task {index + 1} of the file)" if index is not None else ""
        return f"Import rejected{where}: {e}"
    return f"Imported {len(tasks)} task(s)."


def cmd_color(state: AppState, args: list[str]) -> str:
    """
    /color CLIENT            -> show color
    /color CLIENT #rrggbb    -> override
    /color CLIENT reset      -> back to the default
    /color export PATH | /color import PATH
    """
    if not args:
        return "Usage: /color CLIENT [#rrggbb|reset] | /color export PATH | /color import PATH"
    palette = state.palette
    if args[0] in ("export", "import") and len(args) > 1:
        path = Path(args[1]).expanduser()
        try:
            if args[0] == "export":
                path.write_text(json.dumps(palette.export(), indent=2), encoding="utf-8")
                return f"Client colors written to {path}."
            count = palette.replace_all(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            return f"Color {args[0]} failed: {e}"
        return f"Loaded {count} client color(s)."

    client = args[0]
    if len(args) > 1:
        if args[1].lower() == "reset":
            palette.reset_color(client)
        else:
            try:
                palette.set_color(client, args[1])
            except ValueError as e:
                return str(e)
    colors = palette.colors_for(client)
    if colors is None:
        return "Client name is empty."
    return f"{client}: background {colors.background}, border {colors.border}, text {colors.text}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show week, task count, filters and clipboard.")
registry.register("week", cmd_week, help_text="Navigate weeks: /week prev | next | today | YYYY-MM-DD.")
registry.register("show", cmd_show, help_text="Render the visible week.", aliases=["s"])
registry.register("list", cmd_list, help_text="List visible tasks with their ids.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task (see /add for usage).")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit ID field=value ...")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete ID.", aliases=["rm"])
registry.register("move", cmd_move, help_text="Drag a task: /move ID DAYS HOURS.")
registry.register("resize", cmd_resize, help_text="Resize a task: /resize ID top|bottom HOURS.")
registry.register("copy", cmd_copy, help_text="Copy a task to the clipboard: /copy ID.")
registry.register("paste", cmd_paste, help_text="Duplicate the copied task: /paste DATE HH:MM.")
registry.register("filter", cmd_filter, help_text="Filter the view: /filter category=.. client=.. type=.. | reset.")
registry.register("options", cmd_options, help_text="Known clients, types, projects and quotes.")
registry.register("export", cmd_export, help_text="Export tasks: /export PATH [week].")
registry.register("import", cmd_import, help_text="Import tasks: /import PATH (all or nothing).")
registry.register("color", cmd_color, help_text="Client colors: /color CLIENT [#rrggbb|reset].")

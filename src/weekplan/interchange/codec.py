# src/weekplan/interchange/codec.py

"""
Semicolon-delimited interchange format for bulk import/export.

One header line, then one line per task. Fields holding `;`, `"` or a line break are
wrapped in double quotes with embedded quotes doubled (RFC 4180 style).

Import is all-or-nothing: a bad header aborts immediately, and any line-level error
rejects the whole file with every line error reported together.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from datetime import date

from ..tasks.errors import LineError, ParseError
from ..tasks.task_models import Category, Task, new_task_id

logger = logging.getLogger(__name__)

DELIMITER = ";"
HEADER = "date;start_time;end_time;category;client;project;quote;type;description;duration_h;billed"
FIELD_COUNT = 11

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")
_BILLED = {"yes": True, "no": False}


def format_time(hour: float) -> str:
    h = int(hour)
    m = 30 if hour - h >= 0.5 else 0
    return f"{h:02d}:{m:02d}"


def parse_time(text: str) -> float:
    """HH:MM on the half-hour grid -> hours. Raises ValueError with a readable reason."""
    m = _TIME_RE.match(text)
    if not m:
        raise ValueError(f"invalid time format: {text!r} (expected HH:MM)")
    hours, minutes = int(m.group(1)), int(m.group(2))
    if hours > 23 or minutes not in (0, 30):
        raise ValueError(f"invalid time: {text!r} (only full and half hours are supported)")
    return hours + (0.5 if minutes == 30 else 0.0)


def _format_duration(hours: float) -> str:
    return f"{hours:g}"


def _row(task: Task) -> list[str]:
    billable = task.category == Category.BILLABLE
    return [
        task.date.isoformat(),
        format_time(task.start_hour),
        format_time(task.end_hour),
        task.category.value,
        task.client or "",
        task.project or "",
        task.quote or "",
        task.type or "",
        task.description or "",
        _format_duration(task.duration),
        ("yes" if task.billed else "no") if billable else "",
    ]


def _encode_row(row: list[str]) -> str:
    # The writer quotes any field holding a lineterminator character, so "\r\n"
    # makes both bare \r and \n quoted. The terminator itself is dropped here.
    buf = io.StringIO()
    csv.writer(buf, delimiter=DELIMITER, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n").writerow(row)
    return buf.getvalue().removesuffix("\r\n")


def serialize(tasks: Iterable[Task]) -> str:
    """Header + one line per task, sorted by (date, start)."""
    lines = [HEADER]
    for task in sorted(tasks, key=lambda t: (t.date, t.start_hour)):
        lines.append(_encode_row(_row(task)))
    return "\n".join(lines)


# ---- parsing ----


def _split_records(text: str) -> Iterator[tuple[int, str]]:
    """
    Yield (line_no, record) pairs, splitting on line breaks outside quotes.

    line_no is the 1-based physical line the record starts on. A quote left open at
    the end of the text does not swallow the following lines: that trailing record
    is split on physical lines again so each line is checked on its own.
    """
    in_quotes = False
    start_line = 1
    line_no = 1
    current: list[str] = []
    for ch in text:
        if ch == '"':
            in_quotes = not in_quotes
        if ch == "\n" and not in_quotes:
            yield start_line, "".join(current)
            current = []
            line_no += 1
            start_line = line_no
            continue
        if ch == "\n":
            line_no += 1
        current.append(ch)
    if not current:
        return
    tail = "".join(current)
    if not in_quotes:
        yield start_line, tail
        return
    for offset, line in enumerate(tail.split("\n")):
        yield start_line + offset, line


def split_fields(record: str) -> list[str]:
    """Quote-aware split of one record on `;`."""
    return next(csv.reader([record], delimiter=DELIMITER, strict=False), [""])


def _parse_line(fields: list[str], new_id: str) -> Task:
    """Build a Task from 11 raw fields, raising ValueError on the first broken rule."""
    (
        raw_date,
        raw_start,
        raw_end,
        raw_category,
        client,
        project,
        quote,
        type_,
        description,
        _duration,
        raw_billed,
    ) = fields

    if not _DATE_RE.match(raw_date):
        raise ValueError(f"invalid date format: {raw_date!r} (expected YYYY-MM-DD)")
    try:
        day = date.fromisoformat(raw_date)
    except ValueError:
        raise ValueError(f"invalid date: {raw_date!r}") from None

    start = parse_time(raw_start)
    end = parse_time(raw_end)
    if start >= end:
        raise ValueError("end time must be after start time")

    category = Category.parse(raw_category)
    if category is None:
        raise ValueError(f"invalid category: {raw_category!r} (expected BILLABLE or NON_BILLABLE)")

    billed = False
    if category == Category.BILLABLE and raw_billed:
        flag = _BILLED.get(raw_billed.lower())
        if flag is None:
            raise ValueError(f"invalid billed value: {raw_billed!r} (expected 'yes' or 'no')")
        billed = flag

    if category == Category.BILLABLE:
        if not client.strip():
            raise ValueError("client is required for BILLABLE tasks")
        return Task(
            id=new_id,
            date=day,
            start_hour=start,
            end_hour=end,
            category=category,
            client=client,
            project=project or None,
            quote=quote or None,
            description=description or None,
            billed=billed,
        )

    if not type_.strip():
        raise ValueError("type is required for NON_BILLABLE tasks")
    return Task(
        id=new_id,
        date=day,
        start_hour=start,
        end_hour=end,
        category=category,
        type=type_,
        description=description or None,
    )


def parse(text: str, *, id_factory: Callable[[], str] = new_task_id) -> list[Task]:
    """
    Parse interchange text into new tasks (fresh ids).

    Raises ParseError when the header is wrong, when any line is invalid (all line
    errors are collected), or when there is nothing to import.
    """
    text = text.removeprefix("\ufeff")

    records = [(n, r.strip()) for n, r in _split_records(text)]
    records = [(n, r) for n, r in records if r]
    if not records:
        raise ParseError("The file is empty.")

    _, header = records[0]
    if header != HEADER:
        raise ParseError(f"Unexpected header.\nExpected:\n{HEADER}\nGot:\n{header}")

    tasks: list[Task] = []
    errors: list[LineError] = []
    for line_no, record in records[1:]:
        try:
            fields = split_fields(record)
        except csv.Error as e:
            errors.append(LineError(line_no, f"malformed line: {e}"))
            continue
        if len(fields) != FIELD_COUNT:
            errors.append(LineError(line_no, f"wrong number of fields ({len(fields)}/{FIELD_COUNT})"))
            continue
        try:
            tasks.append(_parse_line(fields, id_factory()))
        except ValueError as e:
            errors.append(LineError(line_no, str(e)))

    if errors:
        logger.info("Import rejected: %d line error(s)", len(errors))
        raise ParseError(f"Import rejected: {len(errors)} invalid line(s).", errors)

    if not tasks:
        raise ParseError("Nothing to import.")

    logger.debug("Parsed %d task(s)", len(tasks))
    return tasks

# src/weekplan/tasks/errors.py

"""
Error taxonomy.

Every error here is recoverable: the operation that raised it left prior state intact.
"""

from __future__ import annotations

from dataclasses import dataclass


class SchedulingError(Exception):
    """Base class for rejected mutations and rejected imports."""


class ValidationError(SchedulingError):
    """Candidate task breaks a range, granularity or required-field rule."""

    def __init__(self, message: str, *, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


class ConflictError(SchedulingError):
    """Candidate task overlaps another task on the same date."""

    def __init__(self, message: str, *, conflicting_id: str, index: int | None = None) -> None:
        super().__init__(message)
        self.conflicting_id = conflicting_id
        self.index = index


@dataclass(frozen=True, slots=True)
class LineError:
    line_no: int
    message: str

    def __str__(self) -> str:
        return f"Line {self.line_no}: {self.message}"


class ParseError(SchedulingError):
    """Interchange text rejected as a whole; `errors` lists every offending line."""

    def __init__(self, message: str, errors: list[LineError] | None = None) -> None:
        super().__init__(message)
        self.errors: list[LineError] = list(errors or [])

    def details(self) -> str:
        if not self.errors:
            return str(self)
        return "\n".join([str(self), *(str(e) for e in self.errors)])

# src/weekplan/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and the front end swappable and makes testing easier.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task


class TaskRepository(Protocol):
    """
    Persistence of the whole task collection.

    load() must degrade to an empty collection on missing or corrupt data.
    """

    def load(self) -> list[Task]: ...
    def save(self, tasks: Iterable[Task]) -> None: ...


class ColorProvider(Protocol):
    """Client name -> background hex color (deterministic, overridable)."""

    def color_for(self, client: str) -> str | None: ...


class PointerCapture(Protocol):
    """
    The global pointer-move / pointer-up subscription.

    A gesture acquires it on pointer-down and releases it exactly once when the
    gesture ends, whatever the outcome.
    """

    def acquire(self) -> None: ...
    def release(self) -> None: ...


class NullPointerCapture:
    """Capture for front ends that deliver every pointer event anyway (console, tests)."""

    def acquire(self) -> None:
        return

    def release(self) -> None:
        return

# src/weekplan/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ..grid.colors import ClientPalette
from ..grid.interaction import InteractionController
from ..tasks.task_models import Category
from ..tasks.task_store import TaskStore


@dataclass(slots=True)
class ViewFilters:
    category: Category | None = None
    client: str | None = None
    type: str | None = None

    def any(self) -> bool:
        return self.category is not None or bool(self.client) or bool(self.type)


@dataclass
class AppState:
    settings: object

    store: TaskStore
    controller: InteractionController
    palette: ClientPalette

    filters: ViewFilters = field(default_factory=ViewFilters)

    @property
    def week_start(self) -> date:
        return self.controller.week_start

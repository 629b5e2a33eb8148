from __future__ import annotations
from typing import Dict, Iterable, List, Optional

from .catalog import category_names, tools_by_category
from .models import Inventory, Tool

class SelectionWizard:
    """
    Walks the non-empty categories one at a time.

    confirm() stores the checked tools of the current category and moves
    forward, back() stores them and moves to the previous category. Stored
    selections are used to pre-check tools when a category is shown again,
    in addition to tools the inventory reports as installed.
    """

    def __init__(self, tools: List[Tool], inventory: Optional[Inventory] = None, order: str = "name"):
        grouped = tools_by_category(tools)
        self.inventory = inventory or Inventory()
        self.categories: List[str] = [c for c in category_names(tools, order) if grouped.get(c)]
        self.tools: Dict[str, List[Tool]] = {c: grouped[c] for c in self.categories}
        self.selections: Dict[str, List[Tool]] = {}
        self.index = 0

    @property
    def total(self) -> int:
        return len(self.categories)

    @property
    def done(self) -> bool:
        return self.index >= self.total

    @property
    def can_go_back(self) -> bool:
        return 0 < self.index < self.total

    @property
    def category(self) -> str:
        if self.done:
            raise IndexError("wizard already finished")
        return self.categories[self.index]

    def choices(self) -> List[Tool]:
        return list(self.tools[self.category])

    def is_installed(self, tool: Tool) -> bool:
        return self.inventory.has(tool)

    def is_prechecked(self, tool: Tool) -> bool:
        prev = {t.package for t in self.selections.get(tool.category, [])}
        return tool.package in prev or self.is_installed(tool)

    def _store(self, checked: Iterable[Tool]) -> None:
        # catalog order; tools from other categories are ignored
        picked = {t.package for t in checked}
        self.selections[self.category] = [t for t in self.tools[self.category] if t.package in picked]

    def confirm(self, checked: Iterable[Tool]) -> None:
        self._store(checked)
        self.index += 1

    def back(self, checked: Iterable[Tool]) -> bool:
        if not self.can_go_back:
            return False
        self._store(checked)
        self.index -= 1
        return True

    def selected(self) -> List[Tool]:
        out: List[Tool] = []
        for c in self.categories:
            out.extend(self.selections.get(c, []))
        return out

    def listed(self) -> List[Tool]:
        """Every tool in the order the checklists show them."""
        return [t for c in self.categories for t in self.tools[c]]

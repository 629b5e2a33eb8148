from __future__ import annotations
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

FORMULA = "formula"
CASK = "cask"
KINDS = (FORMULA, CASK)

INSTALL = "install"
UNINSTALL = "uninstall"

@dataclass(frozen=True)
class Tool:
    name: str
    package: str
    kind: str  # formula|cask
    category: str
    description: str = ""

    @property
    def label(self) -> str:
        return f"[{self.kind}]"

@dataclass(frozen=True)
class Inventory:
    formulae: FrozenSet[str] = frozenset()
    casks: FrozenSet[str] = frozenset()

    def has(self, tool: Tool) -> bool:
        if tool.kind == CASK:
            return tool.package in self.casks
        return tool.package in self.formulae

@dataclass(frozen=True)
class InstallationResult:
    tool: Tool
    success: bool
    error: Optional[str] = None

@dataclass(frozen=True)
class Plan:
    to_uninstall: List[Tool] = field(default_factory=list)
    already_installed: List[Tool] = field(default_factory=list)
    to_install: List[Tool] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.to_uninstall or self.to_install)

    def prompt(self) -> str:
        if self.to_uninstall and self.to_install:
            return "Proceed with uninstallation and installation?"
        if self.to_uninstall:
            return "Proceed with uninstallation?"
        return "Proceed with installation?"

@dataclass(frozen=True)
class HistoryEntry:
    ts: str
    action: str  # install|uninstall
    rc: int
    command: str = ""

    @property
    def ok(self) -> bool:
        return self.rc == 0

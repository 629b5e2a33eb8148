from __future__ import annotations
from typing import Dict, List, Optional

from rich.console import Console
from rich.status import Status
from rich.table import Table
from rich.text import Text

from .models import CASK, INSTALL, HistoryEntry, InstallationResult, Plan, Tool
from .progress import DOWNLOAD, ECHO, PHASE, PROGRESS, SUDO, Event

RULE = "=" * 50

def kind_label(tool: Tool) -> Text:
    return Text(tool.label, style="yellow" if tool.kind == CASK else "blue")

def tool_line(tool: Tool, with_category: bool = False) -> Text:
    t = Text("  ")
    t.append_text(kind_label(tool))
    t.append(f" {tool.name}")
    if with_category:
        t.append(f" ({tool.category})", style="bright_black")
    return t

def plan_text(plan: Plan) -> Text:
    out = Text()
    sections = (
        (plan.to_uninstall, "⚠ To uninstall", "red"),
        (plan.already_installed, "✓ Already installed", "green"),
        (plan.to_install, "To install", "bold"),
    )
    for tools, title, style in sections:
        if not tools:
            continue
        out.append(f"\n{title} ({len(tools)}):\n\n", style=style)
        for tool in tools:
            out.append_text(tool_line(tool, with_category=True))
            out.append("\n")
    if not plan.has_changes:
        out.append("\n✓ All selected tools are already installed. Nothing to do.\n", style="green")
    return out

def print_plan(plan: Plan, console: Optional[Console] = None) -> None:
    (console or Console()).print(plan_text(plan))

def _verbs(mode: str) -> Dict[str, str]:
    if mode == INSTALL:
        return {"ing": "Installing", "ed": "Installed", "base": "install", "title": "Installation Summary"}
    return {"ing": "Uninstalling", "ed": "Uninstalled", "base": "uninstall", "title": "Uninstallation Summary"}

def print_summary(results: List[InstallationResult], mode: str, console: Optional[Console] = None) -> None:
    console = console or Console()
    v = _verbs(mode)
    ok = [r for r in results if r.success]
    failed = [r for r in results if not r.success]

    console.print(f"\n{RULE}", style="bold")
    console.print(v["title"], style="bold")
    console.print(RULE, style="bold")

    if ok:
        console.print(f"\n✓ Successfully {v['ed'].lower()} ({len(ok)}):", style="green")
        for r in ok:
            console.print(tool_line(r.tool))
    if failed:
        console.print(f"\n✗ Failed to {v['base']} ({len(failed)}):", style="red")
        for r in failed:
            console.print(tool_line(r.tool))
            if r.error:
                console.print(Text(f"    Error: {r.error}", style="bright_black"))

    console.print(f"\n{RULE}\n", style="bold")

def print_history(entries: List[HistoryEntry], console: Optional[Console] = None) -> None:
    console = console or Console()
    if not entries:
        console.print("No actions recorded yet.", style="bright_black")
        return
    tbl = Table("ts", "action", "rc", "cmd")
    for e in entries:
        tbl.add_row(e.ts, e.action, Text(str(e.rc), style="green" if e.ok else "red"), e.command[:120])
    console.print(tbl)

class NullReporter:
    def batch_start(self, mode: str, count: int) -> None: pass
    def start(self, tool: Tool, mode: str) -> None: pass
    def event(self, tool: Tool, ev: Event) -> None: pass
    def finish(self, result: InstallationResult, mode: str) -> None: pass

class ConsoleReporter(NullReporter):
    """Spinner per package-manager invocation, stopped for password prompts."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._status: Optional[Status] = None

    def batch_start(self, mode: str, count: int) -> None:
        self.console.print(f"\n{_verbs(mode)['ing']} {count} tool(s)...\n", style="bold")

    def start(self, tool: Tool, mode: str) -> None:
        self._stop()
        msg = Text.assemble(f"{_verbs(mode)['ing']} ", (tool.name, "cyan"), "...")
        self._status = self.console.status(msg, spinner="dots")
        self._status.start()

    def _update(self, text: str) -> None:
        if self._status is not None:
            self._status.update(Text(text, style="cyan"))

    def _stop(self) -> bool:
        if self._status is None:
            return False
        self._status.stop()
        self._status = None
        return True

    def event(self, tool: Tool, ev: Event) -> None:
        if ev.kind == SUDO:
            self._stop()
            self.console.print(
                f"\n⚠ {tool.name} requires sudo privileges. Please enter your password when prompted.\n",
                style="yellow",
                markup=False,
            )
        elif ev.kind == DOWNLOAD:
            self._update(f"Downloading {tool.name}...")
        elif ev.kind == PROGRESS:
            self._update(f"Downloading {tool.name}... {ev.text}")
        elif ev.kind == PHASE:
            self._update(ev.text)
        elif ev.kind == ECHO:
            self.console.print(ev.text, markup=False, highlight=False)

    def finish(self, result: InstallationResult, mode: str) -> None:
        self._stop()
        v = _verbs(mode)
        name = result.tool.name
        if result.success:
            self.console.print(f"✓ {v['ed']} {name}", style="green", markup=False)
            return
        self.console.print(f"✗ Failed to {v['base']} {name}", style="red", markup=False)
        if result.error:
            self.console.print(f"\nError details:\n{result.error}", style="red", markup=False, highlight=False)

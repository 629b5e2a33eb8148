from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import Screen
from textual.widgets import Footer, Header, SelectionList, Static
from textual.widgets.selection_list import Selection

from .models import Inventory, Plan, Tool
from .modals import ConfirmModal
from .plan import reconcile
from .report import kind_label, plan_text
from .wizard import SelectionWizard

TOOLS_PER_PAGE = 8

CANCELLED = "cancelled"
QUIT = "quit"
EMPTY = "empty"
DECLINED = "declined"
READY = "ready"

@dataclass(frozen=True)
class SessionResult:
    status: str
    selected: List[Tool] = field(default_factory=list)
    plan: Plan = field(default_factory=Plan)

def tool_prompt(tool: Tool, installed: bool) -> Text:
    t = kind_label(tool)
    t.append(f" {tool.name}")
    if installed:
        t.append(" ✓", style="green")
    if tool.description:
        t.append(f" - {tool.description}", style="dim")
    return t

class IntroScreen(Screen):
    BINDINGS = [
        Binding("enter", "start", "Continue", priority=True),
        Binding("q", "app.leave", "Quit"),
    ]

    def __init__(self, brew_status: str, categories: int):
        super().__init__()
        self._brew_status = brew_status
        self._categories = categories

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Static(
            "[b cyan]🍺 MacBook Setup[/b cyan]\n\n"
            "[dim]This tool will help you install development tools via Homebrew.\n"
            "All tools will be installed using Homebrew (formulae and casks).[/dim]\n\n"
            f"{self._brew_status}\n\n"
            "[yellow]⚠ Warning: Some tools might require sudo privileges during installation.\n"
            "   If prompted for a password, you'll see a clear notification and can enter it directly.[/yellow]\n\n"
            f"[dim]You'll be shown {self._categories} categories. Select tools from each one.[/dim]\n\n"
            "[dim]Press[/dim] [b]<Enter>[/b] [dim]to continue or[/dim] [b]'q'[/b] [dim]to exit.[/dim]",
            classes="topcard",
        )
        yield Footer()

    def action_start(self) -> None:
        self.app.start_wizard()

class CategoryScreen(Screen):
    """
    One checklist per category. Enter is a priority binding, so it confirms
    the page instead of toggling the highlighted row; b and q bubble up from
    the list. Arrows, space and paging stay with the SelectionList.
    """

    BINDINGS = [
        Binding("enter", "next", "Continue", priority=True),
        Binding("b", "back", "Back"),
        Binding("q", "app.leave", "Quit"),
    ]

    def __init__(self, wizard: SelectionWizard, page_size: int = TOOLS_PER_PAGE):
        super().__init__()
        self.wizard = wizard
        self.page_size = page_size

    def compose(self) -> ComposeResult:
        yield Header(show_clock=False)
        yield Static("", id="cat_title", classes="topcard")
        yield SelectionList[Tool](id="cat_list")
        yield Footer()

    def on_mount(self) -> None:
        lst = self.query_one("#cat_list", SelectionList)
        lst.styles.height = self.page_size + 2
        self.show_category()

    def show_category(self) -> None:
        w = self.wizard
        hint = "use arrow keys to navigate, space to select" + (", 'b' to go back" if w.can_go_back else "")
        self.query_one("#cat_title", Static).update(
            f"[b]📦 {escape(w.category)} ({w.index + 1}/{w.total})[/b]\n[dim]Select tools from {escape(w.category)} ({hint}):[/dim]"
        )
        lst = self.query_one("#cat_list", SelectionList)
        lst.clear_options()
        lst.add_options(
            [Selection(tool_prompt(t, w.is_installed(t)), t, w.is_prechecked(t)) for t in w.choices()]
        )
        lst.highlighted = 0
        lst.focus()
        self.refresh_bindings()

    def checked(self) -> List[Tool]:
        return list(self.query_one("#cat_list", SelectionList).selected)

    def check_action(self, action: str, parameters: tuple) -> Optional[bool]:
        if action == "back":
            return self.wizard.can_go_back
        return True

    def action_next(self) -> None:
        self.wizard.confirm(self.checked())
        if self.wizard.done:
            self.app.finish_selection()
        else:
            self.show_category()

    def action_back(self) -> None:
        if self.wizard.back(self.checked()):
            self.show_category()

class SetupApp(App[SessionResult]):
    TITLE = "MacBook Setup"

    CSS = """
    Screen { background: $background; }
    Header { background: $panel; }
    Footer { background: $panel; }

    .topcard { height: auto; border: round $primary; background: $panel; padding: 1 2; margin: 0 1 1 1; }
    SelectionList { border: round $surface; background: $panel; margin: 0 1 1 1; }

    ConfirmModal { align: center middle; }
    #modal { width: 92%; max-width: 120; height: auto; max-height: 90%; padding: 1 2; border: round $primary; background: $panel; }
    #modal_body { height: auto; max-height: 30; }
    #modal Horizontal { height: auto; margin: 1 0 0 0; }
    #modal Button { margin: 0 1 0 0; }
    """

    BINDINGS = [
        Binding("ctrl+c", "cancel", "Quit", priority=True, show=False),
    ]

    def __init__(
        self,
        tools: List[Tool],
        inventory: Optional[Inventory] = None,
        order: str = "name",
        brew_status: str = "",
        confirm_plan: bool = True,
        page_size: int = TOOLS_PER_PAGE,
        show_intro: bool = True,
    ):
        super().__init__()
        self.inventory = inventory or Inventory()
        self.wizard = SelectionWizard(tools, self.inventory, order)
        self.brew_status = brew_status
        self.confirm_plan = confirm_plan
        self.page_size = page_size
        self.show_intro = show_intro

    def on_mount(self) -> None:
        if self.show_intro:
            self.push_screen(IntroScreen(self.brew_status, self.wizard.total))
        else:
            self.start_wizard()

    def start_wizard(self) -> None:
        if self.wizard.done:
            self.finish_selection()
            return
        screen = CategoryScreen(self.wizard, self.page_size)
        if self.show_intro:
            self.switch_screen(screen)
        else:
            self.push_screen(screen)

    def finish_selection(self) -> None:
        selected = self.wizard.selected()
        if not selected:
            self.exit(SessionResult(EMPTY))
            return
        plan = reconcile(selected, self.inventory, self.wizard.listed())
        if not plan.has_changes or not self.confirm_plan:
            self.exit(SessionResult(READY, selected, plan))
            return

        def _answer(ok: Optional[bool]) -> None:
            self.exit(SessionResult(READY if ok else DECLINED, selected, plan))

        self.push_screen(ConfirmModal(plan.prompt(), plan_text(plan)), callback=_answer)

    def action_leave(self) -> None:
        self.exit(SessionResult(QUIT))

    def action_cancel(self) -> None:
        self.exit(SessionResult(CANCELLED))

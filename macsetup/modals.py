from __future__ import annotations
from rich.console import RenderableType
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Static

class ConfirmModal(ModalScreen[bool]):
    BINDINGS = [
        Binding("y", "answer(True)", "Yes"),
        Binding("n", "answer(False)", "No"),
        Binding("escape", "answer(False)", "No", show=False),
    ]

    def __init__(self, title: str, body: RenderableType, default: bool = True):
        super().__init__()
        self._title = title
        self._body = body
        self._default = default

    def compose(self) -> ComposeResult:
        yield Container(
            Static(f"[b]{self._title}[/b]"),
            VerticalScroll(Static(self._body), id="modal_body"),
            Horizontal(
                Button("No", id="no", variant="error"),
                Button("Yes", id="yes", variant="success"),
            ),
            id="modal",
        )

    def on_mount(self) -> None:
        self.query_one("#yes" if self._default else "#no", Button).focus()

    def action_answer(self, ok: bool) -> None:
        self.dismiss(ok)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

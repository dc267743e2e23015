"""Confirmation dialog for batch lifecycle actions."""

from __future__ import annotations

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static


class ConfirmModal(ModalScreen[bool]):
    """Yes/no guard shown before snoozing or archiving the whole list.

    Dismisses with ``True`` when confirmed. ``final`` marks actions the
    reviewer cannot undo from the UI (archive), which draws the dialog in the
    error color and defaults the button focus to "keep".
    """

    BINDINGS = [
        Binding("y", "confirm", "Confirm"),
        Binding("n", "cancel", "Keep"),
        Binding("escape", "cancel", "Keep"),
    ]

    CSS = """
    ConfirmModal {
        align: center middle;
    }

    #batch-dialog {
        width: 56;
        height: auto;
        background: $th-panel;
        border: round $th-orange;
        padding: 1 2;
    }

    #batch-dialog.final {
        border: round $th-red;
    }

    #batch-prompt {
        color: $th-text;
        margin-bottom: 1;
    }

    #batch-actions {
        height: auto;
        align: center middle;
    }

    #batch-actions Button {
        margin: 0 1;
    }

    #batch-keys {
        color: $th-muted;
        text-align: center;
        margin-top: 1;
    }
    """

    def __init__(self, prompt: str, *, action_label: str = "Confirm", final: bool = False) -> None:
        super().__init__()
        self._prompt = prompt
        self._action_label = action_label
        self._final = final

    def compose(self) -> ComposeResult:
        with Vertical(id="batch-dialog", classes="final" if self._final else ""):
            yield Label(self._prompt, id="batch-prompt")
            with Horizontal(id="batch-actions"):
                yield Button(
                    f"{self._action_label} (y)",
                    variant="error" if self._final else "warning",
                    id="batch-confirm",
                )
                yield Button("Keep (n)", variant="default", id="batch-keep")
            yield Static("y confirm · n / Esc keep highlights", id="batch-keys")

    def on_mount(self) -> None:
        if self._final:
            self.query_one("#batch-keep", Button).focus()

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    @on(Button.Pressed, "#batch-confirm")
    def _on_confirm_pressed(self) -> None:
        self.dismiss(True)

    @on(Button.Pressed, "#batch-keep")
    def _on_keep_pressed(self) -> None:
        self.dismiss(False)


__all__ = ["ConfirmModal"]

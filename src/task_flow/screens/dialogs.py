"""Dialog screens for Task Flow."""

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static

DIALOG_CSS = """
{name} {{
    align: center middle;
}}

{name} > Vertical {{
    width: 60;
    height: auto;
    border: thick $primary;
    background: $surface;
    padding: 1 2;
}}

{name} #title {{
    text-align: center;
    text-style: bold;
    margin-bottom: 1;
}}

{name} #message {{
    margin-bottom: 1;
}}

{name} #path {{
    color: $text-muted;
    margin-bottom: 1;
}}

{name} Center {{
    margin-top: 1;
}}

{name} Button {{
    margin: 0 1;
}}
"""


class CreateDatabaseDialog(ModalScreen[bool]):
    """Modal dialog prompting user to create the database."""

    CSS = DIALOG_CSS.format(name="CreateDatabaseDialog")

    BINDINGS = [
        ("enter", "create", "Create Database"),
        ("escape", "exit_app", "Exit"),
    ]

    def __init__(self, db_path: Path) -> None:
        super().__init__()
        self.db_path = db_path

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("Database Not Found", id="title")
            yield Label(
                "No tasks database was found. Would you like to create one?",
                id="message",
            )
            yield Static(f"Path: {self.db_path}", id="path")
            with Center():
                yield Button("Create Database", variant="primary", id="create")
                yield Button("Exit", variant="default", id="exit")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "create")

    def action_create(self) -> None:
        """Handle Enter key - create database."""
        self.dismiss(True)

    def action_exit_app(self) -> None:
        """Handle Escape key - exit application."""
        self.dismiss(False)


class ConfirmDialog(ModalScreen[bool]):
    """Yes/no confirmation for destructive actions."""

    CSS = DIALOG_CSS.format(name="ConfirmDialog")

    BINDINGS = [
        ("y", "confirm", "Yes"),
        ("n", "cancel", "No"),
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, title: str, message: str, confirm_label: str = "Confirm") -> None:
        super().__init__()
        self._title = title
        self._message = message
        self._confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(self._title, id="title")
            yield Label(self._message, id="message")
            with Center():
                yield Button(self._confirm_label, variant="error", id="confirm")
                yield Button("Cancel", variant="default", id="cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

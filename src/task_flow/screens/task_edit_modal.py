"""Task edit modal dialog."""

from typing import Any

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, TextArea

from task_flow.models import DEFAULT_CATEGORY, Category, Priority, Task, local_date


class SubmitOnEnterTextArea(TextArea):
    """TextArea that posts a Submitted message on Enter, uses Ctrl+Enter for newlines."""

    class Submitted(TextArea.Changed):
        """Posted when Enter is pressed without a modifier."""

        pass

    def _on_key(self, event) -> None:
        if event.key == "enter":
            event.prevent_default()
            event.stop()
            self.post_message(self.Submitted(self))
        elif event.key == "ctrl+enter":
            event.prevent_default()
            event.stop()
            self.insert("\n")
        else:
            super()._on_key(event)


class TaskEditModal(ModalScreen[dict[str, Any] | None]):
    """Modal dialog for creating a task or editing its fields.

    Dismisses with a dict of the changed fields in canonical names, an empty
    dict when nothing changed, or None when cancelled.
    """

    CSS = """
    TaskEditModal {
        align: center middle;
        background: $background 60%;
    }

    TaskEditModal > Vertical {
        width: 64;
        height: auto;
        background: $surface;
        border: solid $primary-muted;
        padding: 1 2;
    }

    TaskEditModal #modal-title {
        text-style: bold;
        margin-bottom: 1;
    }

    TaskEditModal .field-label {
        color: $text-muted;
    }

    TaskEditModal #description-area {
        height: 6;
    }

    TaskEditModal #error {
        color: $error;
        height: auto;
    }

    TaskEditModal #button-row {
        margin-top: 1;
        height: auto;
    }

    TaskEditModal Button {
        min-width: 10;
        border: none;
        background: transparent;
        color: $text-muted;
        padding: 0 1;
        height: 1;
    }

    TaskEditModal Button:focus {
        background: $surface-lighten-1;
        color: $text;
        text-style: bold;
    }

    TaskEditModal #save-btn {
        color: $success;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, task: Task | None, categories: list[Category]) -> None:
        """Open the modal for ``task``, or for a new task when it is None."""
        super().__init__()
        self._task = task
        self._categories = categories

    def _category_options(self) -> list[tuple[str, str]]:
        options = [(category.name, category.key) for category in self._categories]
        keys = {key for _, key in options}
        current = self._task.category_id if self._task else DEFAULT_CATEGORY
        # Tasks may reference a key whose category was deleted
        if current not in keys:
            options.append((current, current))
        if DEFAULT_CATEGORY not in keys and current != DEFAULT_CATEGORY:
            options.append((DEFAULT_CATEGORY.capitalize(), DEFAULT_CATEGORY))
        return options

    def compose(self) -> ComposeResult:
        task = self._task
        due = ""
        if task is not None and task.due_date is not None:
            due = local_date(task.due_date).isoformat()
        with Vertical():
            yield Label("Edit Task" if task else "New Task", id="modal-title")
            yield Label("Title:", classes="field-label")
            yield Input(value=task.title if task else "", id="title-input")
            yield Label("Description:", classes="field-label")
            yield SubmitOnEnterTextArea(
                task.description if task else "", id="description-area"
            )
            yield Label("Priority:", classes="field-label")
            yield Select(
                [(p.value.capitalize(), p.value) for p in Priority],
                value=(task.priority if task else Priority.MEDIUM).value,
                allow_blank=False,
                id="priority-select",
            )
            yield Label("Category:", classes="field-label")
            yield Select(
                self._category_options(),
                value=task.category_id if task else DEFAULT_CATEGORY,
                allow_blank=False,
                id="category-select",
            )
            yield Label("Due date (YYYY-MM-DD):", classes="field-label")
            yield Input(value=due, placeholder="none", id="due-input")
            yield Label("", id="error")
            with Horizontal(id="button-row"):
                yield Button("[Enter] Save", id="save-btn")
                yield Button("[Esc] Cancel", id="cancel-btn")

    def on_mount(self) -> None:
        self.query_one("#title-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self._save()

    def on_submit_on_enter_text_area_submitted(
        self, event: SubmitOnEnterTextArea.Submitted
    ) -> None:
        self._save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-btn":
            self._save()
        elif event.button.id == "cancel-btn":
            self.dismiss(None)

    def action_cancel(self) -> None:
        """Handle Escape key - cancel editing."""
        self.dismiss(None)

    def form_values(self) -> dict[str, Any]:
        """Return the form contents as canonical task fields."""
        return {
            "title": self.query_one("#title-input", Input).value.strip(),
            "description": self.query_one("#description-area", TextArea).text,
            "priority": self.query_one("#priority-select", Select).value,
            "category_id": self.query_one("#category-select", Select).value,
            "due_date": self.query_one("#due-input", Input).value.strip() or None,
        }

    def _save(self) -> None:
        values = self.form_values()
        if not values["title"]:
            self.query_one("#error", Label).update("Title is required")
            return
        if self._task is None:
            self.dismiss(values)
            return

        current = self._task
        original_due = local_date(current.due_date).isoformat() if current.due_date else None
        original = {
            "title": current.title,
            "description": current.description,
            "priority": current.priority.value,
            "category_id": current.category_id,
            "due_date": original_due,
        }
        self.dismiss({name: value for name, value in values.items() if value != original[name]})

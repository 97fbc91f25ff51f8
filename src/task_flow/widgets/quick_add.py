"""Quick-add input widget."""

from textual.message import Message
from textual.widgets import Input


class TaskCreated(Message):
    """Message sent when a quick-add line is submitted."""

    def __init__(self, raw: str) -> None:
        self.raw = raw
        super().__init__()


class QuickAddBar(Input):
    """Single-line input for new tasks. Accepts ``#category`` and ``!priority`` tokens."""

    DEFAULT_CSS = """
    QuickAddBar {
        dock: bottom;
        margin: 0 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("placeholder", "Add a task... (#category !high)")
        super().__init__(*args, **kwargs)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        raw = event.value.strip()
        if raw:
            self.post_message(TaskCreated(raw))
        self.value = ""

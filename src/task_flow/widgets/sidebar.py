"""Category sidebar widget."""

from rich.text import Text
from textual.app import ComposeResult
from textual.message import Message
from textual.widgets import ListItem, ListView, Static

from task_flow.categories import SidebarEntry


class ViewSelected(Message):
    """Message sent when a sidebar row is chosen."""

    def __init__(self, view: str) -> None:
        self.view = view
        super().__init__()


class SidebarItem(ListItem):
    """One quick filter or category row."""

    def __init__(self, entry: SidebarEntry, active: bool = False) -> None:
        self.entry = entry
        super().__init__()
        if active:
            self.add_class("-active")
        if entry.is_category:
            self.add_class("-category")

    def compose(self) -> ComposeResult:
        label = Text()
        if self.entry.color:
            label.append("● ", style=self.entry.color)
        label.append(self.entry.label)
        label.append(f" {self.entry.count}", style="dim")
        yield Static(label)


class CategorySidebar(ListView):
    """Quick filters followed by categories, each with a task count."""

    DEFAULT_CSS = """
    CategorySidebar {
        width: 28;
        height: 1fr;
        border-right: solid $primary-muted;
    }

    CategorySidebar > SidebarItem {
        padding: 0 1;
    }

    CategorySidebar > SidebarItem.-active Static {
        text-style: bold;
        color: $accent;
    }

    CategorySidebar > SidebarItem.-category {
        padding-left: 2;
    }
    """

    def load_entries(self, entries: list[SidebarEntry], active_view: str) -> None:
        self.clear()
        for entry in entries:
            self.append(SidebarItem(entry, active=entry.view == active_view))
        views = [entry.view for entry in entries]
        if active_view in views:
            self.call_after_refresh(setattr, self, "index", views.index(active_view))

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        event.stop()
        if isinstance(event.item, SidebarItem):
            self.post_message(ViewSelected(event.item.entry.view))

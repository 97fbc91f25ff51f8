"""Screen modules for Task Flow."""

from task_flow.screens.analytics import AnalyticsScreen
from task_flow.screens.archive import ArchiveScreen
from task_flow.screens.dialogs import ConfirmDialog, CreateDatabaseDialog
from task_flow.screens.task_edit_modal import TaskEditModal

__all__ = [
    "AnalyticsScreen",
    "ArchiveScreen",
    "ConfirmDialog",
    "CreateDatabaseDialog",
    "TaskEditModal",
]

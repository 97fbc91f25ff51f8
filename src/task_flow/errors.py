"""Error types raised by Task Flow stores and backends."""

from typing import Any


class TaskFlowError(Exception):
    """Base class for all Task Flow errors."""


class NotFound(TaskFlowError):
    """An operation referenced a record id that does not exist."""

    def __init__(self, kind: str, record_id: Any) -> None:
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found")


class ValidationError(TaskFlowError):
    """The backing store rejected a write."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class TransportError(TaskFlowError):
    """The backing store was unreachable or failed at the transport level."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)

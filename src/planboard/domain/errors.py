"""Exceptions raised by the scheduling engine and the planning board."""

from datetime import date
from typing import Optional


class InvalidProfileError(ValueError):
    """A learning-curve profile cannot be projected.

    The allocator catches this and falls back to flat-rate distribution.
    """

    def __init__(self, reason: str, profile_id: Optional[str] = None) -> None:
        label = f"Learning curve {profile_id!r}" if profile_id else "Learning curve"
        super().__init__(f"{label} is invalid: {reason}")
        self.profile_id = profile_id
        self.reason = reason


class AllocationRequestError(ValueError):
    """An allocation request is malformed and cannot be processed."""


class BlockedStartDateError(ValueError):
    """A task was dropped on a date the work calendar blocks."""

    def __init__(self, start_date: date, resource_id: str) -> None:
        super().__init__(
            f"Cannot start on {start_date.isoformat()} for resource {resource_id}: date is blocked"
        )
        self.start_date = start_date
        self.resource_id = resource_id


class UnknownTaskError(KeyError):
    """A task id is not present in the board registry."""

    def __init__(self, task_id: str) -> None:
        super().__init__(task_id)
        self.task_id = task_id

    def __str__(self) -> str:
        return f"Unknown task ID: {self.task_id}"


class UnknownResourceError(KeyError):
    """A resource id is not registered on the board."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(resource_id)
        self.resource_id = resource_id

    def __str__(self) -> str:
        return f"Unknown resource ID: {self.resource_id}"

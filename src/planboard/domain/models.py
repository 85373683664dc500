"""Domain models for the production scheduling engine.

This module contains the data structures that flow through the engine:
allocation requests and results, scheduled task intervals owned by the
caller, and the discretised spans used for overlap stacking.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class TimeGranularity(Enum):
    """Resolution of the shared timeline used for stacking."""

    DAY = "day"
    HOUR = "hour"

    @property
    def units_per_day(self) -> int:
        return 24 if self is TimeGranularity.HOUR else 1


@dataclass(frozen=True)
class DailyProjection:
    """Theoretical output for one calendar day of a learning curve."""

    day: date
    theoretical_output_units: int
    efficiency_percent: float


@dataclass(frozen=True)
class AllocationRequest:
    """A request to spread an order quantity over a date window.

    Attributes:
        quantity_to_allocate: Units to place.
        start_date: First candidate production day.
        hard_deadline_date: Last candidate production day (inclusive).
        resource_daily_capacity_ceiling: Max units per day on the resource,
            or None for no ceiling.
    """

    quantity_to_allocate: int
    start_date: date
    hard_deadline_date: date
    resource_daily_capacity_ceiling: Optional[float] = None

    @property
    def window_days(self) -> int:
        """Days in the window, never less than one."""
        return max(1, (self.hard_deadline_date - self.start_date).days + 1)


@dataclass(frozen=True)
class AllocationSegment:
    """Quantity planned for one production day."""

    day: date
    planned_qty: int
    efficiency_percent: float
    cumulative_qty_so_far: int


@dataclass(frozen=True)
class AllocationResult:
    """Outcome of allocating a request.

    Only days with a positive planned quantity appear in ``segments``.
    A non-zero ``remaining_quantity`` is a partial schedule, not an error.
    """

    segments: tuple[AllocationSegment, ...]
    remaining_quantity: int
    actual_end_date: date
    used_learning_curve: bool = False

    @property
    def planned_quantity(self) -> int:
        return sum(s.planned_qty for s in self.segments)

    @property
    def is_complete(self) -> bool:
        return self.remaining_quantity == 0

    @property
    def is_partial(self) -> bool:
        """Some but not all of the quantity was placed."""
        return bool(self.segments) and self.remaining_quantity > 0


@dataclass(frozen=True)
class SchedulableResource:
    """A production line with a daily capacity ceiling."""

    resource_id: str
    name: str
    daily_capacity: float


@dataclass(frozen=True)
class ProductionOrder:
    """An order waiting to be placed on the board."""

    order_id: str
    style: str
    quantity: int
    learning_curve_id: Optional[str] = None


@dataclass
class ScheduledTaskInterval:
    """A booking of an order on a resource, owned by the caller's registry.

    Attributes:
        task_id: Unique id within the registry.
        resource_id: Resource the task is booked on.
        start_date: First day of the booking.
        end_date: Last day of the booking (inclusive).
        segments: Daily plan produced by the allocator.
        order_id: Order this task produces.
        style: Style label.
        quantity: Units the task was asked to produce.
        remaining_quantity: Units that did not fit in the window.
        learning_curve_id: Curve used to plan the task, if any.
    """

    task_id: str
    resource_id: str
    start_date: date
    end_date: date
    segments: tuple[AllocationSegment, ...] = ()
    order_id: str = ""
    style: str = ""
    quantity: int = 0
    remaining_quantity: int = 0
    learning_curve_id: Optional[str] = None

    @property
    def planned_quantity(self) -> int:
        return sum(s.planned_qty for s in self.segments)

    @property
    def duration_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


@dataclass(frozen=True)
class TimelineSpan:
    """A task expressed as inclusive unit indices on a shared timeline."""

    task_id: str
    start_index: int
    end_index: int

    def intersects(self, other: "TimelineSpan") -> bool:
        return self.start_index <= other.end_index and other.start_index <= self.end_index


@dataclass(frozen=True)
class StackAssignment:
    """Vertical lane assigned to a task on its resource."""

    task_id: str
    level: int


@dataclass
class ResourceSchedule:
    """All tasks booked on one resource plus their current stack levels."""

    resource: SchedulableResource
    tasks: list[ScheduledTaskInterval] = field(default_factory=list)
    levels: dict[str, int] = field(default_factory=dict)

    @property
    def max_level(self) -> int:
        return max(self.levels.values(), default=-1)

    def get_task(self, task_id: str) -> Optional[ScheduledTaskInterval]:
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None

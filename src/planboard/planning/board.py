"""Planning board: the schedule registry that drives the engine.

The board owns the tasks booked on each resource. Every drop or edit runs
the allocator for the affected order and then recomputes overlap stacking
for each resource whose task set changed.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from planboard.domain.errors import (
    BlockedStartDateError,
    InvalidProfileError,
    UnknownResourceError,
    UnknownTaskError,
)
from planboard.domain.learning_curve import CurveCatalog, LearningCurveProfile
from planboard.domain.models import (
    AllocationRequest,
    AllocationResult,
    ProductionOrder,
    ResourceSchedule,
    SchedulableResource,
    ScheduledTaskInterval,
    TimeGranularity,
)
from planboard.scheduling.allocator import CapacityAllocator
from planboard.scheduling.stacking import (
    OverlapStackResolver,
    StackingResult,
    spans_for_intervals,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    """Outcome of placing an order on the board.

    ``task`` is None when nothing could be scheduled; the registry is then
    left unchanged.
    """

    allocation: AllocationResult
    task: Optional[ScheduledTaskInterval] = None

    @property
    def is_placed(self) -> bool:
        return self.task is not None


class PlanningBoard:
    """Registry of scheduled tasks per production line.

    Example:
        >>> board = PlanningBoard(
        ...     resources=[SchedulableResource("L1", "Line 1", 250)],
        ...     catalog=create_standard_catalog(),
        ...     is_blocked_date=WorkCalendar(),
        ... )
        >>> placement = board.schedule_order(order, "L1", date(2024, 3, 4))
        >>> board.stack_levels("L1")
        {'T0001': 0}
    """

    def __init__(
        self,
        resources: Iterable[SchedulableResource],
        catalog: Optional[CurveCatalog] = None,
        is_blocked_date: Optional[Callable[[date], bool]] = None,
        allocator: Optional[CapacityAllocator] = None,
        resolver: Optional[OverlapStackResolver] = None,
        granularity: TimeGranularity = TimeGranularity.DAY,
    ):
        """Initialize board.

        Args:
            resources: Production lines available for booking.
            catalog: Learning curves keyed by id.
            is_blocked_date: Predicate for dates on which a task may not start.
            allocator: Capacity allocator (default configuration if None).
            resolver: Stack resolver (default soft cap if None).
            granularity: Timeline resolution used for stacking.
        """
        self.catalog = catalog or CurveCatalog()
        self.is_blocked_date = is_blocked_date or (lambda day: False)
        self.allocator = allocator or CapacityAllocator()
        self.resolver = resolver or OverlapStackResolver()
        self.granularity = granularity

        self._schedules: dict[str, ResourceSchedule] = {
            r.resource_id: ResourceSchedule(resource=r) for r in resources
        }
        self._task_resource: dict[str, str] = {}
        self._stacking: dict[str, StackingResult] = {}
        self._task_counter = 0

    @property
    def resources(self) -> list[SchedulableResource]:
        return [s.resource for s in self._schedules.values()]

    def schedule_for(self, resource_id: str) -> ResourceSchedule:
        if resource_id not in self._schedules:
            raise UnknownResourceError(resource_id)
        return self._schedules[resource_id]

    def tasks_for(self, resource_id: str) -> list[ScheduledTaskInterval]:
        return list(self.schedule_for(resource_id).tasks)

    def all_tasks(self) -> list[ScheduledTaskInterval]:
        return [t for s in self._schedules.values() for t in s.tasks]

    def get_task(self, task_id: str) -> ScheduledTaskInterval:
        resource_id = self._task_resource.get(task_id)
        if resource_id is None:
            raise UnknownTaskError(task_id)
        return self._schedules[resource_id].get_task(task_id)

    def stack_levels(self, resource_id: str) -> dict[str, int]:
        return dict(self.schedule_for(resource_id).levels)

    def stacking_for(self, resource_id: str) -> StackingResult:
        self.schedule_for(resource_id)
        return self._stacking.get(resource_id, StackingResult())

    def unscheduled_quantities(self) -> dict[str, int]:
        """Dict mapping task ID to units that did not fit in its window."""
        return {
            t.task_id: t.remaining_quantity
            for t in self.all_tasks()
            if t.remaining_quantity > 0
        }

    def resolve_profile(self, order: ProductionOrder) -> Optional[LearningCurveProfile]:
        """Resolve an order's learning curve once, at the board boundary."""
        profile = self.catalog.get(order.learning_curve_id)
        if order.learning_curve_id and profile is None:
            logger.warning(
                "Learning curve %s for order %s not found; using flat rate",
                order.learning_curve_id,
                order.order_id,
            )
        return profile

    def default_deadline(
        self,
        order: ProductionOrder,
        resource: SchedulableResource,
        start_date: date,
    ) -> date:
        """Propose a deadline long enough for the order at its expected pace."""
        profile = self.resolve_profile(order)
        days = None
        if profile is not None:
            try:
                days = self.allocator.projector.estimate_duration_days(
                    profile,
                    order.quantity,
                    start_date,
                    daily_ceiling=resource.daily_capacity,
                )
            except InvalidProfileError:
                days = None
        if days is None:
            if resource.daily_capacity > 0 and order.quantity > 0:
                days = math.ceil(order.quantity / resource.daily_capacity)
            else:
                days = 1
        return start_date + timedelta(days=max(1, days) - 1)

    def schedule_order(
        self,
        order: ProductionOrder,
        resource_id: str,
        start_date: date,
        deadline: Optional[date] = None,
    ) -> Placement:
        """Drop an order on a resource.

        Args:
            order: Order to place.
            resource_id: Target resource.
            start_date: Day the drop landed on.
            deadline: Last day available, or None to size the window from
                the order's expected pace.

        Returns:
            Placement with the allocation and the stored task (None if no
            unit could be scheduled).

        Raises:
            BlockedStartDateError: If the start date is blocked.
            UnknownResourceError: If the resource is not on the board.
        """
        placement = self._plan(order, resource_id, start_date, deadline)
        if placement.task is not None:
            self._insert(placement.task)
            self._restack(resource_id)
        return placement

    def remove_task(self, task_id: str) -> ScheduledTaskInterval:
        """Remove a task and restack its resource."""
        task = self._detach(task_id)
        self._restack(task.resource_id)
        return task

    def move_task(
        self,
        task_id: str,
        resource_id: str,
        start_date: date,
        deadline: Optional[date] = None,
    ) -> Placement:
        """Move a task to a new resource and/or start date.

        The task is re-allocated at its destination. If nothing can be
        scheduled there, the task stays where it was.
        """
        task = self.get_task(task_id)
        placement = self._plan(
            self._order_of(task), resource_id, start_date, deadline, task_id=task_id
        )
        if placement.task is None:
            return placement

        self._detach(task_id)
        self._insert(placement.task)
        self._restack(task.resource_id)
        if resource_id != task.resource_id:
            self._restack(resource_id)
        return placement

    def split_task(
        self,
        task_id: str,
        split_quantity: int,
        start_date: date,
        deadline: Optional[date] = None,
    ) -> tuple[Placement, Placement]:
        """Carve ``split_quantity`` off a task into a new task on the same line.

        The task being split keeps its start date and is re-allocated with the
        reduced quantity; the new task starts on ``start_date``. Both halves
        must be schedulable, otherwise the registry is left unchanged.

        Returns:
            Tuple of (remaining part, split-off part).
        """
        task = self.get_task(task_id)
        if not 0 < split_quantity < task.quantity:
            raise ValueError(
                f"Split quantity must be between 1 and {task.quantity - 1} "
                f"(got {split_quantity})"
            )

        order = self._order_of(task)
        kept_order = ProductionOrder(
            order.order_id, order.style, task.quantity - split_quantity, order.learning_curve_id
        )
        split_order = ProductionOrder(
            order.order_id, order.style, split_quantity, order.learning_curve_id
        )

        kept = self._plan(kept_order, task.resource_id, task.start_date, task_id=task_id)
        split = self._plan(split_order, task.resource_id, start_date, deadline)
        if kept.task is None or split.task is None:
            return Placement(kept.allocation), Placement(split.allocation)

        self._detach(task_id)
        self._insert(kept.task)
        self._insert(split.task)
        self._restack(task.resource_id)
        return kept, split

    def merge_tasks(
        self,
        task_ids: list[str],
        deadline: Optional[date] = None,
    ) -> Placement:
        """Merge tasks on one resource into a single task.

        The merged task starts at the earliest start, uses the first task's
        style and learning curve, and is re-allocated for the combined
        quantity.
        """
        if len(set(task_ids)) != len(task_ids):
            raise ValueError("Task IDs to merge must be distinct")
        if len(task_ids) < 2:
            raise ValueError("At least two tasks are needed to merge")
        tasks = sorted((self.get_task(t) for t in task_ids), key=lambda t: t.start_date)
        resource_ids = {t.resource_id for t in tasks}
        if len(resource_ids) != 1:
            raise ValueError("Only tasks on the same resource can be merged")

        first = tasks[0]
        merged_order = ProductionOrder(
            order_id="+".join(dict.fromkeys(t.order_id for t in tasks)),
            style=first.style,
            quantity=sum(t.quantity for t in tasks),
            learning_curve_id=first.learning_curve_id,
        )
        placement = self._plan(
            merged_order, first.resource_id, first.start_date, deadline, task_id=first.task_id
        )
        if placement.task is None:
            return placement

        for task in tasks:
            self._detach(task.task_id)
        self._insert(placement.task)
        self._restack(first.resource_id)
        return placement

    def _plan(
        self,
        order: ProductionOrder,
        resource_id: str,
        start_date: date,
        deadline: Optional[date] = None,
        task_id: Optional[str] = None,
    ) -> Placement:
        resource = self.schedule_for(resource_id).resource
        if self.is_blocked_date(start_date):
            raise BlockedStartDateError(start_date, resource_id)

        if deadline is None:
            deadline = self.default_deadline(order, resource, start_date)

        request = AllocationRequest(
            quantity_to_allocate=order.quantity,
            start_date=start_date,
            hard_deadline_date=deadline,
            resource_daily_capacity_ceiling=resource.daily_capacity,
        )
        allocation = self.allocator.allocate(
            request, self.resolve_profile(order), style=order.style
        )
        if not allocation.segments:
            logger.info(
                "Order %s could not be scheduled on %s from %s",
                order.order_id,
                resource_id,
                start_date.isoformat(),
            )
            return Placement(allocation=allocation)

        task = ScheduledTaskInterval(
            task_id=task_id or self._next_task_id(),
            resource_id=resource_id,
            start_date=start_date,
            end_date=allocation.actual_end_date,
            segments=allocation.segments,
            order_id=order.order_id,
            style=order.style,
            quantity=order.quantity,
            remaining_quantity=allocation.remaining_quantity,
            learning_curve_id=order.learning_curve_id,
        )
        return Placement(allocation=allocation, task=task)

    def _order_of(self, task: ScheduledTaskInterval) -> ProductionOrder:
        return ProductionOrder(
            order_id=task.order_id,
            style=task.style,
            quantity=task.quantity,
            learning_curve_id=task.learning_curve_id,
        )

    def _insert(self, task: ScheduledTaskInterval) -> None:
        self._schedules[task.resource_id].tasks.append(task)
        self._task_resource[task.task_id] = task.resource_id
        logger.debug(
            "Booked task %s on %s: %s to %s",
            task.task_id,
            task.resource_id,
            task.start_date.isoformat(),
            task.end_date.isoformat(),
        )

    def _detach(self, task_id: str) -> ScheduledTaskInterval:
        task = self.get_task(task_id)
        schedule = self._schedules[task.resource_id]
        schedule.tasks = [t for t in schedule.tasks if t.task_id != task_id]
        del self._task_resource[task_id]
        logger.debug("Removed task %s from %s", task_id, task.resource_id)
        return task

    def _restack(self, resource_id: str) -> None:
        """Recompute stack levels for every task on a resource."""
        schedule = self._schedules[resource_id]
        if not schedule.tasks:
            schedule.levels = {}
            self._stacking[resource_id] = StackingResult()
            return

        origin = min(t.start_date for t in schedule.tasks)
        result = self.resolver.resolve(
            spans_for_intervals(schedule.tasks, origin, self.granularity)
        )
        schedule.levels = dict(result.levels)
        self._stacking[resource_id] = result

    def _next_task_id(self) -> str:
        self._task_counter += 1
        task_id = f"T{self._task_counter:04d}"
        while task_id in self._task_resource:
            self._task_counter += 1
            task_id = f"T{self._task_counter:04d}"
        return task_id

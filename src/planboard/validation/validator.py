"""Validation of allocations, stacking and whole boards.

This module is the single place where the engine's invariants are checked:
quantity conservation, cumulative totals, daily capacity and non-colliding
stack levels. Every plan produced for output should pass validation.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Iterable, Optional

from planboard.domain.models import (
    AllocationRequest,
    AllocationResult,
    AllocationSegment,
    TimelineSpan,
)
from planboard.planning.board import PlanningBoard
from planboard.scheduling.stacking import peak_concurrency, spans_for_intervals


class ValidationErrorType(Enum):
    """Types of validation errors."""

    NON_POSITIVE_SEGMENT = "non_positive_segment"
    QUANTITY_NOT_CONSERVED = "quantity_not_conserved"
    CUMULATIVE_MISMATCH = "cumulative_mismatch"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    SEGMENT_OUTSIDE_WINDOW = "segment_outside_window"
    SEGMENTS_OUT_OF_ORDER = "segments_out_of_order"
    END_DATE_MISMATCH = "end_date_mismatch"
    MISSING_STACK_LEVEL = "missing_stack_level"
    STACK_COLLISION = "stack_collision"
    STACK_NOT_COMPACT = "stack_not_compact"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    task_id: Optional[str] = None
    day: Optional[date] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]"]
        if self.task_id:
            parts.append(f"Task {self.task_id}:")
        parts.append(self.message)
        if self.day is not None:
            parts.append(f"({self.day.isoformat()})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a plan."""

    is_valid: bool = True
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)

    def merge(self, other: "ValidationResult") -> None:
        for error in other.errors:
            self.add_error(error)
        self.warnings.extend(other.warnings)


class PlanValidator:
    """Checks plans against the engine's invariants.

    Example:
        >>> validator = PlanValidator()
        >>> result = validator.validate_allocation(allocation, request)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate_allocation(
        self,
        result: AllocationResult,
        request: AllocationRequest,
        day_capacities: Optional[dict[date, int]] = None,
        task_id: Optional[str] = None,
    ) -> ValidationResult:
        """Validate an allocation against the request that produced it.

        Args:
            result: Allocation to check.
            request: Original request.
            day_capacities: Optional per-day capacity (e.g. projected curve
                output) each segment must respect in addition to the ceiling.
            task_id: Task label for error messages.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        validation = ValidationResult()
        self._check_segments(
            result.segments,
            request.start_date,
            request.hard_deadline_date,
            request.resource_daily_capacity_ceiling,
            day_capacities,
            task_id,
            validation,
        )

        planned = result.planned_quantity
        if planned + result.remaining_quantity != request.quantity_to_allocate:
            validation.add_error(
                ValidationError(
                    error_type=ValidationErrorType.QUANTITY_NOT_CONSERVED,
                    message=(
                        f"Planned {planned} + remaining {result.remaining_quantity} "
                        f"!= requested {request.quantity_to_allocate}"
                    ),
                    task_id=task_id,
                )
            )

        expected_end = result.segments[-1].day if result.segments else request.start_date
        if result.actual_end_date != expected_end:
            validation.add_error(
                ValidationError(
                    error_type=ValidationErrorType.END_DATE_MISMATCH,
                    message=f"End date should be {expected_end.isoformat()}",
                    task_id=task_id,
                    day=result.actual_end_date,
                )
            )

        if result.remaining_quantity > 0:
            validation.add_warning(
                f"{result.remaining_quantity} units could not be scheduled"
                + (f" for task {task_id}" if task_id else "")
            )

        return validation

    def validate_stacking(
        self,
        spans: Iterable[TimelineSpan],
        levels: dict[str, int],
    ) -> ValidationResult:
        """Validate stack levels for the tasks of one resource.

        Intersecting tasks must be on different levels, and the highest level
        must not exceed the peak concurrency minus one.
        """
        validation = ValidationResult()
        spans = list(spans)

        for span in spans:
            if span.task_id not in levels:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.MISSING_STACK_LEVEL,
                        message="Task has no stack level",
                        task_id=span.task_id,
                    )
                )

        for i, first in enumerate(spans):
            for second in spans[i + 1:]:
                if (
                    first.task_id in levels
                    and second.task_id in levels
                    and first.intersects(second)
                    and levels[first.task_id] == levels[second.task_id]
                ):
                    validation.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.STACK_COLLISION,
                            message=(
                                f"Shares level {levels[first.task_id]} with "
                                f"overlapping task {second.task_id}"
                            ),
                            task_id=first.task_id,
                        )
                    )

        peak = peak_concurrency(spans)
        used = max(levels.values(), default=-1)
        if used > peak - 1:
            validation.add_error(
                ValidationError(
                    error_type=ValidationErrorType.STACK_NOT_COMPACT,
                    message=f"Uses level {used} but peak concurrency is {peak}",
                )
            )

        return validation

    def validate_board(self, board: PlanningBoard) -> ValidationResult:
        """Validate every task and every resource's stacking on a board."""
        validation = ValidationResult()

        for resource in board.resources:
            tasks = board.tasks_for(resource.resource_id)
            for task in tasks:
                self._check_segments(
                    task.segments,
                    task.start_date,
                    task.end_date,
                    resource.daily_capacity,
                    None,
                    task.task_id,
                    validation,
                )
                if task.planned_quantity + task.remaining_quantity != task.quantity:
                    validation.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.QUANTITY_NOT_CONSERVED,
                            message=(
                                f"Planned {task.planned_quantity} + remaining "
                                f"{task.remaining_quantity} != {task.quantity}"
                            ),
                            task_id=task.task_id,
                        )
                    )
                if task.remaining_quantity > 0:
                    validation.add_warning(
                        f"Task {task.task_id} partially scheduled, "
                        f"{task.remaining_quantity} units remain"
                    )

            if tasks:
                origin = min(t.start_date for t in tasks)
                spans = spans_for_intervals(tasks, origin, board.granularity)
                stacking = board.stacking_for(resource.resource_id)
                if stacking.has_overflow:
                    validation.add_warning(
                        f"Resource {resource.resource_id}: {len(stacking.overflowed)} "
                        f"tasks beyond {board.resolver.max_levels} stack levels"
                    )
                else:
                    validation.merge(
                        self.validate_stacking(spans, board.stack_levels(resource.resource_id))
                    )

        return validation

    def _check_segments(
        self,
        segments: Iterable[AllocationSegment],
        window_start: date,
        window_end: date,
        ceiling: Optional[float],
        day_capacities: Optional[dict[date, int]],
        task_id: Optional[str],
        validation: ValidationResult,
    ) -> None:
        running_total = 0
        previous_day = None
        for segment in segments:
            if segment.planned_qty <= 0:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.NON_POSITIVE_SEGMENT,
                        message=f"Segment plans {segment.planned_qty} units",
                        task_id=task_id,
                        day=segment.day,
                    )
                )

            running_total += segment.planned_qty
            if segment.cumulative_qty_so_far != running_total:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.CUMULATIVE_MISMATCH,
                        message=(
                            f"Cumulative {segment.cumulative_qty_so_far} "
                            f"should be {running_total}"
                        ),
                        task_id=task_id,
                        day=segment.day,
                    )
                )

            if previous_day is not None and segment.day <= previous_day:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SEGMENTS_OUT_OF_ORDER,
                        message="Segment dates must be strictly increasing",
                        task_id=task_id,
                        day=segment.day,
                    )
                )
            previous_day = segment.day

            if not window_start <= segment.day <= window_end:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.SEGMENT_OUTSIDE_WINDOW,
                        message=(
                            f"Segment outside window {window_start.isoformat()} to "
                            f"{window_end.isoformat()}"
                        ),
                        task_id=task_id,
                        day=segment.day,
                    )
                )

            if ceiling is not None and segment.planned_qty > ceiling:
                validation.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.CAPACITY_EXCEEDED,
                        message=f"Plans {segment.planned_qty} units, ceiling is {ceiling}",
                        task_id=task_id,
                        day=segment.day,
                    )
                )

            if day_capacities is not None:
                capacity = day_capacities.get(segment.day)
                if capacity is not None and segment.planned_qty > capacity:
                    validation.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.CAPACITY_EXCEEDED,
                            message=(
                                f"Plans {segment.planned_qty} units, day capacity "
                                f"is {capacity}"
                            ),
                            task_id=task_id,
                            day=segment.day,
                        )
                    )

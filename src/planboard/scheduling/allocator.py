"""Capacity allocation of order quantities across resource-days.

The allocator fills consecutive days of a window with an order's quantity,
never exceeding the projected (or flat) daily output nor the resource's
daily ceiling. Whatever does not fit is reported as a remainder; a partial
or empty allocation is a normal outcome, not an error.
"""

import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from planboard.domain.errors import AllocationRequestError, InvalidProfileError
from planboard.domain.learning_curve import LearningCurveProfile
from planboard.domain.models import (
    AllocationRequest,
    AllocationResult,
    AllocationSegment,
)
from planboard.scheduling.projector import LearningCurveProjector

logger = logging.getLogger(__name__)

FLAT_EFFICIENCY_PERCENT = 100.0


class FlatRateMode(Enum):
    """How the daily rate is chosen when no usable curve is available."""

    CAPACITY = "capacity"  # Default rate, else the resource ceiling
    EVEN_SPREAD = "even_spread"  # Quantity spread evenly over the window


@dataclass
class AllocatorConfig:
    """Configuration for the capacity allocator.

    Attributes:
        flat_rate_mode: Rate used without a learning curve.
        default_daily_rate: Caller-supplied flat rate. Takes precedence over
            the ceiling in CAPACITY mode.
    """

    flat_rate_mode: FlatRateMode = FlatRateMode.CAPACITY
    default_daily_rate: Optional[int] = None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


class CapacityAllocator:
    """Allocates a quantity over a window under daily capacity limits.

    Example:
        >>> allocator = CapacityAllocator()
        >>> request = AllocationRequest(
        ...     quantity_to_allocate=1000,
        ...     start_date=date(2024, 3, 4),
        ...     hard_deadline_date=date(2024, 3, 8),
        ...     resource_daily_capacity_ceiling=250,
        ... )
        >>> result = allocator.allocate(request)
        >>> [s.planned_qty for s in result.segments]
        [250, 250, 250, 250]
    """

    def __init__(
        self,
        config: Optional[AllocatorConfig] = None,
        projector: Optional[LearningCurveProjector] = None,
    ):
        self.config = config or AllocatorConfig()
        self.projector = projector or LearningCurveProjector()

    def allocate(
        self,
        request: AllocationRequest,
        profile: Optional[LearningCurveProfile] = None,
        style: str = "",
    ) -> AllocationResult:
        """Allocate a request across its window.

        Args:
            request: Quantity, window and optional daily ceiling.
            profile: Resolved learning curve, or None for a flat rate.
            style: Style label, used only in log messages.

        Returns:
            AllocationResult with the filled days and any remainder.

        Raises:
            AllocationRequestError: If the request is malformed.
        """
        self._validate(request)

        quantity = request.quantity_to_allocate
        window = request.window_days
        ceiling = request.resource_daily_capacity_ceiling

        daily_plan = self._daily_plan(request, profile, style)
        used_curve = daily_plan is not None
        if daily_plan is None:
            rate = self.flat_rate(request)
            daily_plan = [(rate, FLAT_EFFICIENCY_PERCENT)] * window

        segments = []
        cumulative = 0
        for day_index, (day_output, efficiency) in enumerate(daily_plan):
            if cumulative >= quantity:
                break

            day_capacity = self.day_capacity(day_output, ceiling)
            qty_this_day = min(day_capacity, quantity - cumulative)
            if qty_this_day <= 0:
                continue

            cumulative += qty_this_day
            segments.append(
                AllocationSegment(
                    day=request.start_date + timedelta(days=day_index),
                    planned_qty=qty_this_day,
                    efficiency_percent=efficiency,
                    cumulative_qty_so_far=cumulative,
                )
            )

        remaining = max(0, quantity - cumulative)
        actual_end = segments[-1].day if segments else request.start_date

        if remaining > 0:
            logger.info(
                "Partially allocated %s: %d of %d units placed, %d remain",
                style or "order",
                cumulative,
                quantity,
                remaining,
            )

        return AllocationResult(
            segments=tuple(segments),
            remaining_quantity=remaining,
            actual_end_date=actual_end,
            used_learning_curve=used_curve,
        )

    def flat_rate(self, request: AllocationRequest) -> int:
        """Daily rate applied when no learning curve is usable."""
        quantity = request.quantity_to_allocate
        ceiling = request.resource_daily_capacity_ceiling
        even_spread = max(1, round_half_up(quantity / request.window_days))

        if self.config.flat_rate_mode is FlatRateMode.EVEN_SPREAD:
            cap = math.floor(ceiling) if ceiling is not None else quantity
            return max(0, min(cap, even_spread, quantity))

        if self.config.default_daily_rate is not None:
            return max(0, self.config.default_daily_rate)
        if ceiling is not None:
            return max(0, math.floor(ceiling))
        return min(even_spread, quantity)

    def day_capacity(self, day_output: float, ceiling: Optional[float]) -> int:
        """Whole units that can be placed on a day."""
        capacity = day_output if ceiling is None else min(day_output, ceiling)
        return max(0, math.floor(capacity))

    def _daily_plan(
        self,
        request: AllocationRequest,
        profile: Optional[LearningCurveProfile],
        style: str,
    ) -> Optional[list[tuple[int, float]]]:
        """Projected (output, efficiency) per day, or None to use a flat rate."""
        if profile is None:
            return None
        try:
            projections = self.projector.project(
                profile, request.window_days, request.start_date
            )
        except InvalidProfileError as exc:
            logger.warning(
                "Falling back to flat rate for %s: %s", style or "order", exc
            )
            return None
        return [(p.theoretical_output_units, p.efficiency_percent) for p in projections]

    def _validate(self, request: AllocationRequest) -> None:
        if request.quantity_to_allocate < 0:
            raise AllocationRequestError(
                f"Quantity to allocate must not be negative (got {request.quantity_to_allocate})"
            )
        if request.hard_deadline_date < request.start_date:
            raise AllocationRequestError(
                f"Deadline {request.hard_deadline_date.isoformat()} is before "
                f"start {request.start_date.isoformat()}"
            )
        ceiling = request.resource_daily_capacity_ceiling
        if ceiling is not None and ceiling < 0:
            raise AllocationRequestError(
                f"Daily capacity ceiling must not be negative (got {ceiling})"
            )

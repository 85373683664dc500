"""Overlap stacking for tasks booked concurrently on one resource.

Each task receives a vertical lane (stack level) so that tasks sharing a
time unit never share a lane. Levels are assigned by greedy interval-graph
coloring, which is optimal: the highest level used equals the peak
concurrency minus one.

Assignment is order-sensitive, so callers must recompute the full set for a
resource whenever its tasks change.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from planboard.domain.models import (
    ScheduledTaskInterval,
    StackAssignment,
    TimeGranularity,
    TimelineSpan,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEVELS = 12


@dataclass
class StackingResult:
    """Levels assigned to the tasks of one resource.

    Attributes:
        levels: Dict mapping task ID to stack level.
        overflowed: Task IDs that found no free level below the soft cap and
            share the top lane.
    """

    levels: dict[str, int] = field(default_factory=dict)
    overflowed: list[str] = field(default_factory=list)

    @property
    def max_level(self) -> int:
        """Highest level in use, -1 when there are no tasks."""
        return max(self.levels.values(), default=-1)

    @property
    def has_overflow(self) -> bool:
        return bool(self.overflowed)

    def assignments(self) -> list[StackAssignment]:
        return [
            StackAssignment(task_id=task_id, level=level)
            for task_id, level in self.levels.items()
        ]


class OverlapStackResolver:
    """Assigns non-colliding stack levels to a resource's tasks.

    Example:
        >>> resolver = OverlapStackResolver()
        >>> result = resolver.resolve([
        ...     TimelineSpan("t1", 1, 3),
        ...     TimelineSpan("t2", 2, 4),
        ...     TimelineSpan("t3", 5, 6),
        ... ])
        >>> result.levels
        {'t1': 0, 't2': 1, 't3': 0}
    """

    def __init__(self, max_levels: int = DEFAULT_MAX_LEVELS):
        """Initialize resolver.

        Args:
            max_levels: Soft cap on the number of lanes. Tasks beyond it are
                drawn on the top lane and reported as overflowed.
        """
        if max_levels < 1:
            raise ValueError(f"max_levels must be at least 1 (got {max_levels})")
        self.max_levels = max_levels

    def resolve(self, spans: Iterable[TimelineSpan]) -> StackingResult:
        """Assign a level to every span.

        Args:
            spans: Tasks of one resource as inclusive unit ranges.

        Returns:
            StackingResult mapping each task ID to its level.
        """
        # sorted() is stable, so equal starts keep insertion order
        ordered = sorted(spans, key=lambda s: s.start_index)
        occupied: dict[int, set[int]] = {}
        result = StackingResult()

        for span in ordered:
            units = range(span.start_index, span.end_index + 1)
            level = self._lowest_free_level(occupied, units)
            if level is None:
                level = self.max_levels - 1
                result.overflowed.append(span.task_id)
                logger.warning(
                    "Task %s exceeds %d stack levels; drawing on the top lane",
                    span.task_id,
                    self.max_levels,
                )

            for unit in units:
                occupied.setdefault(unit, set()).add(level)
            result.levels[span.task_id] = level

        return result

    def resolve_intervals(
        self,
        intervals: Iterable[ScheduledTaskInterval],
        origin: date,
        granularity: TimeGranularity = TimeGranularity.DAY,
    ) -> StackingResult:
        """Assign levels to date intervals on a timeline starting at ``origin``."""
        return self.resolve(spans_for_intervals(intervals, origin, granularity))

    def _lowest_free_level(
        self,
        occupied: dict[int, set[int]],
        units: range,
    ) -> Optional[int]:
        for level in range(self.max_levels):
            if all(level not in occupied.get(unit, ()) for unit in units):
                return level
        return None


def peak_concurrency(spans: Iterable[TimelineSpan]) -> int:
    """Largest number of spans sharing a single time unit."""
    counts: dict[int, int] = {}
    for span in spans:
        for unit in range(span.start_index, span.end_index + 1):
            counts[unit] = counts.get(unit, 0) + 1
    return max(counts.values(), default=0)


def spans_for_intervals(
    intervals: Iterable[ScheduledTaskInterval],
    origin: date,
    granularity: TimeGranularity = TimeGranularity.DAY,
) -> list[TimelineSpan]:
    """Convert date intervals to unit spans relative to ``origin``.

    With hour granularity a day covers 24 units, from hour 0 of the start
    date to hour 23 of the end date.
    """
    per_day = granularity.units_per_day
    spans = []
    for interval in intervals:
        start = (interval.start_date - origin).days * per_day
        end = ((interval.end_date - origin).days + 1) * per_day - 1
        spans.append(TimelineSpan(interval.task_id, start, max(start, end)))
    return spans

"""Capacity scheduling engine: projection, allocation and stacking."""

from planboard.scheduling.allocator import (
    AllocatorConfig,
    CapacityAllocator,
    FlatRateMode,
)
from planboard.scheduling.projector import LearningCurveProjector
from planboard.scheduling.stacking import (
    OverlapStackResolver,
    StackingResult,
    peak_concurrency,
    spans_for_intervals,
)

__all__ = [
    # Projection
    "LearningCurveProjector",
    # Allocation
    "CapacityAllocator",
    "AllocatorConfig",
    "FlatRateMode",
    # Stacking
    "OverlapStackResolver",
    "StackingResult",
    "peak_concurrency",
    "spans_for_intervals",
]

"""Planning board that owns the schedule registry."""

from planboard.planning.board import Placement, PlanningBoard

__all__ = [
    "Placement",
    "PlanningBoard",
]

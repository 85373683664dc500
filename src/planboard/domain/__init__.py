"""Domain models and master data for production scheduling."""

from planboard.domain.calendar import HolidayType, WorkCalendar
from planboard.domain.errors import (
    AllocationRequestError,
    BlockedStartDateError,
    InvalidProfileError,
    UnknownResourceError,
    UnknownTaskError,
)
from planboard.domain.learning_curve import (
    CurveCatalog,
    CurveInterpolation,
    CurveType,
    LearningCurvePoint,
    LearningCurveProfile,
    ThresholdBasis,
    create_standard_catalog,
)
from planboard.domain.models import (
    AllocationRequest,
    AllocationResult,
    AllocationSegment,
    DailyProjection,
    ProductionOrder,
    ResourceSchedule,
    SchedulableResource,
    ScheduledTaskInterval,
    StackAssignment,
    TimeGranularity,
    TimelineSpan,
)

__all__ = [
    # Models
    "AllocationRequest",
    "AllocationResult",
    "AllocationSegment",
    "DailyProjection",
    "ProductionOrder",
    "ResourceSchedule",
    "SchedulableResource",
    "ScheduledTaskInterval",
    "StackAssignment",
    "TimeGranularity",
    "TimelineSpan",
    # Learning curves
    "CurveCatalog",
    "CurveInterpolation",
    "CurveType",
    "LearningCurvePoint",
    "LearningCurveProfile",
    "ThresholdBasis",
    "create_standard_catalog",
    # Calendar
    "HolidayType",
    "WorkCalendar",
    # Errors
    "AllocationRequestError",
    "BlockedStartDateError",
    "InvalidProfileError",
    "UnknownResourceError",
    "UnknownTaskError",
]

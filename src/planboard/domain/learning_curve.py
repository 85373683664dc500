"""Learning-curve master data.

A learning curve describes how a line's efficiency ramps up after it starts
sewing a new style. Profiles are read-only master data: the engine receives
a resolved profile as a plain argument and never mutates it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional


class ThresholdBasis(Enum):
    """What a learning-curve point's threshold is measured in."""

    ELAPSED_DAYS = "elapsed_days"  # 1-based production day number
    CUMULATIVE_OUTPUT = "cumulative_output"  # Units produced before the day


class CurveInterpolation(Enum):
    """How efficiency is read between two defined points."""

    STEP = "step"  # Last point at or below progress applies
    LINEAR = "linear"  # Straight line between neighbouring points


class CurveType(Enum):
    """Catalog classification of a curve."""

    SIMPLE = "simple"
    STANDARD = "standard"
    COMPLEX = "complex"
    CUSTOM = "custom"


@dataclass(frozen=True)
class LearningCurvePoint:
    """A single point on a ramp-up profile.

    Attributes:
        threshold: Progress at which this efficiency starts to apply.
        efficiency_percent: Line efficiency in percent (may exceed 100).
    """

    threshold: float
    efficiency_percent: float


@dataclass(frozen=True)
class LearningCurveProfile:
    """Ramp-up profile for a style on a production line.

    Attributes:
        profile_id: Master-data key.
        name: Human-readable name.
        points: Points ordered by ascending threshold.
        standard_minute_value: Minutes to produce one unit at 100% efficiency.
        working_minutes_per_day_per_operator: Paid minutes per operator per day.
        operator_count: Operators on the line.
        threshold_basis: Whether thresholds are day numbers or output units.
        interpolation: Step lookup or linear interpolation between points.
        curve_type: Catalog classification.
        description: Free text.
    """

    profile_id: str
    name: str
    points: tuple[LearningCurvePoint, ...]
    standard_minute_value: float
    working_minutes_per_day_per_operator: float = 480
    operator_count: int = 1
    threshold_basis: ThresholdBasis = ThresholdBasis.ELAPSED_DAYS
    interpolation: CurveInterpolation = CurveInterpolation.STEP
    curve_type: CurveType = CurveType.CUSTOM
    description: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.points, tuple):
            object.__setattr__(self, "points", tuple(self.points))

    @property
    def max_efficiency_percent(self) -> float:
        """Highest efficiency on the curve (0 for an empty curve)."""
        return max((p.efficiency_percent for p in self.points), default=0.0)

    @property
    def minutes_per_day(self) -> float:
        """Total line minutes available per day."""
        return self.working_minutes_per_day_per_operator * self.operator_count

    def invalid_reason(self) -> Optional[str]:
        """Return why this profile cannot be projected, or None if it can."""
        if self.standard_minute_value <= 0:
            return f"standard minute value must be positive (got {self.standard_minute_value})"
        if not self.points:
            return "profile has no points"
        if self.working_minutes_per_day_per_operator <= 0:
            return "working minutes per day must be positive"
        if self.operator_count < 1:
            return f"operator count must be at least 1 (got {self.operator_count})"
        previous = None
        for point in self.points:
            if point.efficiency_percent <= 0:
                return f"efficiency at threshold {point.threshold} must be positive"
            if previous is not None and point.threshold < previous:
                return "point thresholds must be non-decreasing"
            previous = point.threshold
        return None

    @property
    def is_valid(self) -> bool:
        return self.invalid_reason() is None

    @classmethod
    def from_linear_ramp(
        cls,
        profile_id: str,
        name: str,
        initial_efficiency: float,
        target_efficiency: float,
        learning_days: int,
        standard_minute_value: float,
        working_minutes_per_day_per_operator: float = 480,
        operator_count: int = 1,
        curve_type: CurveType = CurveType.STANDARD,
        description: str = "",
    ) -> "LearningCurveProfile":
        """Build a day-based profile that ramps linearly to a target.

        One point is generated per learning day, rising evenly from
        ``initial_efficiency`` on day 1 to ``target_efficiency`` on day
        ``learning_days``. A final point on the following day holds the
        target so the plateau is explicit.

        Args:
            profile_id: Master-data key.
            name: Human-readable name.
            initial_efficiency: Efficiency on the first production day.
            target_efficiency: Plateau efficiency.
            learning_days: Days needed to reach the plateau.
            standard_minute_value: SMV of the style.
            working_minutes_per_day_per_operator: Paid minutes per operator.
            operator_count: Operators on the line.
            curve_type: Catalog classification.
            description: Free text.
        """
        if learning_days <= 0:
            points = [LearningCurvePoint(1, target_efficiency)]
        else:
            step = (target_efficiency - initial_efficiency) / max(learning_days - 1, 1)
            points = [
                LearningCurvePoint(
                    day + 1,
                    round(min(initial_efficiency + step * day, target_efficiency), 1),
                )
                for day in range(learning_days)
            ]
            points[-1] = LearningCurvePoint(learning_days, target_efficiency)
            points.append(LearningCurvePoint(learning_days + 1, target_efficiency))

        return cls(
            profile_id=profile_id,
            name=name,
            points=tuple(points),
            standard_minute_value=standard_minute_value,
            working_minutes_per_day_per_operator=working_minutes_per_day_per_operator,
            operator_count=operator_count,
            threshold_basis=ThresholdBasis.ELAPSED_DAYS,
            curve_type=curve_type,
            description=description,
        )


@dataclass
class CurveCatalog:
    """Profiles keyed by id, resolved once at the board boundary."""

    profiles: dict[str, LearningCurveProfile] = field(default_factory=dict)

    def add(self, profile: LearningCurveProfile) -> None:
        self.profiles[profile.profile_id] = profile

    def get(self, profile_id: Optional[str]) -> Optional[LearningCurveProfile]:
        """Look up a profile; a missing id or None yields None."""
        if profile_id is None:
            return None
        return self.profiles.get(profile_id)

    def __contains__(self, profile_id: str) -> bool:
        return profile_id in self.profiles

    def __len__(self) -> int:
        return len(self.profiles)

    def __iter__(self) -> Iterator[LearningCurveProfile]:
        return iter(self.profiles.values())


def create_standard_catalog() -> CurveCatalog:
    """Create the stock curves used for common garment styles."""
    catalog = CurveCatalog()
    stock = [
        # (id, name, type, initial, target, days, smv, operators, description)
        ("lc-simple-tee", "Simple T-Shirt Curve", CurveType.SIMPLE, 45, 80, 5, 8, 20,
         "Basic t-shirts, quick learning, high volume."),
        ("lc-complex-jacket", "Complex Jacket Curve", CurveType.COMPLEX, 30, 70, 15, 45, 25,
         "Multi-panel jackets with many operations, slower learning."),
        ("lc-standard-polo", "Standard Polo Shirt", CurveType.STANDARD, 40, 75, 10, 15, 22,
         "Standard polo shirt line."),
        ("lc-very-fast", "Very Fast Item Curve", CurveType.SIMPLE, 60, 90, 3, 5, 15,
         "Very simple items or repeat orders with skilled operators."),
        ("lc-moderate-dress", "Moderate Dress Curve", CurveType.STANDARD, 35, 72, 12, 25, 18,
         "Dresses with moderate complexity."),
    ]
    for profile_id, name, curve_type, initial, target, days, smv, operators, desc in stock:
        catalog.add(
            LearningCurveProfile.from_linear_ramp(
                profile_id=profile_id,
                name=name,
                initial_efficiency=initial,
                target_efficiency=target,
                learning_days=days,
                standard_minute_value=smv,
                working_minutes_per_day_per_operator=480,
                operator_count=operators,
                curve_type=curve_type,
                description=desc,
            )
        )
    return catalog

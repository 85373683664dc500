"""Learning-curve output projection.

Maps a ramp-up profile and a date window to the theoretical output a line
can reach on each day. The projection is deterministic and has no side
effects; invalid profiles raise InvalidProfileError so the caller can fall
back to a flat rate.
"""

import math
from datetime import date, timedelta
from typing import Optional

from planboard.domain.errors import InvalidProfileError
from planboard.domain.learning_curve import (
    CurveInterpolation,
    LearningCurveProfile,
    ThresholdBasis,
)
from planboard.domain.models import DailyProjection

# Absorbs float noise in minutes * operators * efficiency / SMV before flooring
_FLOOR_EPSILON = 1e-9


class LearningCurveProjector:
    """Projects daily output from a learning-curve profile.

    Example:
        >>> projector = LearningCurveProjector()
        >>> days = projector.project(profile, 10, date(2024, 3, 4))
    """

    def project(
        self,
        profile: LearningCurveProfile,
        window_days: int,
        start_date: date,
    ) -> list[DailyProjection]:
        """Project output for each day of ``[start_date, start_date + N - 1]``.

        Args:
            profile: Resolved learning-curve profile.
            window_days: Number of days N to project.
            start_date: First day of the window.

        Returns:
            Exactly ``window_days`` projections in date order.

        Raises:
            InvalidProfileError: If the profile cannot be projected.
            ValueError: If ``window_days`` is negative.
        """
        self._check_profile(profile)
        if window_days < 0:
            raise ValueError(f"window_days must be non-negative (got {window_days})")

        projections = []
        cumulative_output = 0
        for day_index in range(window_days):
            if profile.threshold_basis is ThresholdBasis.CUMULATIVE_OUTPUT:
                progress = cumulative_output
            else:
                progress = day_index + 1

            efficiency = self.efficiency_at(profile, progress)
            output = self.output_at(profile, efficiency)
            cumulative_output += output

            projections.append(
                DailyProjection(
                    day=start_date + timedelta(days=day_index),
                    theoretical_output_units=output,
                    efficiency_percent=efficiency,
                )
            )

        return projections

    def efficiency_at(self, profile: LearningCurveProfile, progress: float) -> float:
        """Look up the efficiency that applies at a progress value.

        Progress before the first threshold uses the first point, past the
        last threshold uses the last point.
        """
        points = profile.points
        if progress < points[0].threshold:
            return points[0].efficiency_percent

        # Last point whose threshold is at or below progress
        index = 0
        for i, point in enumerate(points):
            if point.threshold <= progress:
                index = i
            else:
                break

        current = points[index]
        if (
            profile.interpolation is CurveInterpolation.STEP
            or index == len(points) - 1
            or current.threshold == progress
        ):
            return current.efficiency_percent

        following = points[index + 1]
        span = following.threshold - current.threshold
        fraction = (progress - current.threshold) / span
        efficiency = current.efficiency_percent + fraction * (
            following.efficiency_percent - current.efficiency_percent
        )
        return round(efficiency, 2)

    def output_at(self, profile: LearningCurveProfile, efficiency_percent: float) -> int:
        """Whole units the line can produce in a day at an efficiency."""
        raw = (profile.minutes_per_day * efficiency_percent) / (
            100 * profile.standard_minute_value
        )
        return max(0, math.floor(raw + _FLOOR_EPSILON))

    def estimate_duration_days(
        self,
        profile: LearningCurveProfile,
        quantity: int,
        start_date: date,
        max_days: int = 365,
        daily_ceiling: Optional[float] = None,
    ) -> int:
        """Estimate how many days the curve needs to produce ``quantity``.

        Args:
            profile: Resolved learning-curve profile.
            quantity: Units to produce.
            start_date: First production day.
            max_days: Search horizon.
            daily_ceiling: Resource limit applied to each day's output.

        Returns:
            Days until cumulative output reaches the quantity (at least 1),
            or ``max_days`` if the horizon is too short.
        """
        if quantity <= 0:
            return 1

        cumulative = 0
        for day_number, projection in enumerate(
            self.project(profile, max_days, start_date), start=1
        ):
            output = projection.theoretical_output_units
            if daily_ceiling is not None:
                output = min(output, math.floor(daily_ceiling))
            cumulative += output
            if cumulative >= quantity:
                return day_number
        return max_days

    def _check_profile(self, profile: LearningCurveProfile) -> None:
        reason = profile.invalid_reason()
        if reason is not None:
            raise InvalidProfileError(reason, profile_id=profile.profile_id)

"""Tests for learning-curve projection."""

from datetime import date

import pytest

from planboard.domain.errors import InvalidProfileError
from planboard.domain.learning_curve import (
    CurveInterpolation,
    LearningCurvePoint,
    LearningCurveProfile,
    ThresholdBasis,
    create_standard_catalog,
)
from planboard.scheduling.projector import LearningCurveProjector


def make_profile(points, **kwargs) -> LearningCurveProfile:
    """Profile with 4800 line minutes per day (480 min x 10 operators)."""
    defaults = dict(
        profile_id="lc-test",
        name="Test Curve",
        points=tuple(LearningCurvePoint(t, e) for t, e in points),
        standard_minute_value=10,
        working_minutes_per_day_per_operator=480,
        operator_count=10,
    )
    defaults.update(kwargs)
    return LearningCurveProfile(**defaults)


class TestProjection:
    """Tests for LearningCurveProjector.project."""

    @pytest.fixture
    def projector(self):
        return LearningCurveProjector()

    def test_returns_one_entry_per_day(self, projector):
        """Window of N days yields exactly N consecutive projections."""
        profile = make_profile([(1, 50), (3, 80)])
        days = projector.project(profile, 7, date(2024, 3, 4))

        assert len(days) == 7
        assert days[0].day == date(2024, 3, 4)
        assert days[-1].day == date(2024, 3, 10)

    def test_zero_window_is_empty(self, projector):
        """A zero-day window has no projections."""
        profile = make_profile([(1, 50)])
        assert projector.project(profile, 0, date(2024, 3, 4)) == []

    def test_negative_window_rejected(self, projector):
        """A negative window is a caller error."""
        profile = make_profile([(1, 50)])
        with pytest.raises(ValueError):
            projector.project(profile, -1, date(2024, 3, 4))

    def test_step_lookup_by_elapsed_days(self, projector):
        """Efficiency holds until the next threshold is reached."""
        profile = make_profile([(1, 50), (3, 80)])
        days = projector.project(profile, 4, date(2024, 3, 4))

        assert [d.efficiency_percent for d in days] == [50, 50, 80, 80]
        # 4800 minutes * 50% / 10 SMV = 240 units
        assert [d.theoretical_output_units for d in days] == [240, 240, 384, 384]

    def test_progress_before_first_threshold_clamps(self, projector):
        """Days before the first point use the first point's efficiency."""
        profile = make_profile([(3, 60), (5, 90)])
        days = projector.project(profile, 6, date(2024, 3, 4))

        assert [d.efficiency_percent for d in days] == [60, 60, 60, 60, 90, 90]

    def test_linear_interpolation(self, projector):
        """Linear curves interpolate between neighbouring points."""
        profile = make_profile(
            [(1, 50), (3, 80)], interpolation=CurveInterpolation.LINEAR
        )
        days = projector.project(profile, 4, date(2024, 3, 4))

        assert [d.efficiency_percent for d in days] == [50, 65, 80, 80]
        assert days[1].theoretical_output_units == 312

    def test_cumulative_output_basis(self, projector):
        """Output thresholds advance efficiency once enough units are made."""
        profile = make_profile(
            [(0, 50), (500, 100)],
            threshold_basis=ThresholdBasis.CUMULATIVE_OUTPUT,
        )
        days = projector.project(profile, 5, date(2024, 3, 4))

        # 240 per day until 720 units precede day 4
        assert [d.theoretical_output_units for d in days] == [240, 240, 240, 480, 480]

    def test_output_is_floored(self, projector):
        """Theoretical output truncates to whole units."""
        profile = make_profile([(1, 50)], standard_minute_value=7)
        days = projector.project(profile, 1, date(2024, 3, 4))

        # 4800 * 0.5 / 7 = 342.86
        assert days[0].theoretical_output_units == 342

    def test_deterministic(self, projector):
        """Repeated calls return identical projections."""
        profile = create_standard_catalog().get("lc-complex-jacket")
        first = projector.project(profile, 30, date(2024, 3, 4))
        second = projector.project(profile, 30, date(2024, 3, 4))

        assert first == second

    def test_efficiency_within_curve_range(self, projector):
        """Every projected efficiency lies in (0, max point efficiency]."""
        for profile in create_standard_catalog():
            for interpolation in CurveInterpolation:
                curve = LearningCurveProfile(
                    profile_id=profile.profile_id,
                    name=profile.name,
                    points=profile.points,
                    standard_minute_value=profile.standard_minute_value,
                    operator_count=profile.operator_count,
                    interpolation=interpolation,
                )
                for day in projector.project(curve, 40, date(2024, 3, 4)):
                    assert 0 < day.efficiency_percent <= curve.max_efficiency_percent


class TestInvalidProfiles:
    """Tests for InvalidProfileError signalling."""

    @pytest.fixture
    def projector(self):
        return LearningCurveProjector()

    def test_zero_smv(self, projector):
        """SMV of zero cannot be projected."""
        profile = make_profile([(1, 50)], standard_minute_value=0)
        with pytest.raises(InvalidProfileError) as exc_info:
            projector.project(profile, 5, date(2024, 3, 4))
        assert exc_info.value.profile_id == "lc-test"

    def test_negative_smv(self, projector):
        """Negative SMV cannot be projected."""
        profile = make_profile([(1, 50)], standard_minute_value=-3)
        with pytest.raises(InvalidProfileError):
            projector.project(profile, 5, date(2024, 3, 4))

    def test_empty_points(self, projector):
        """A curve without points cannot be projected."""
        profile = make_profile([])
        with pytest.raises(InvalidProfileError, match="no points"):
            projector.project(profile, 5, date(2024, 3, 4))

    def test_decreasing_thresholds(self, projector):
        """Thresholds must not go backwards."""
        profile = make_profile([(5, 50), (2, 80)])
        with pytest.raises(InvalidProfileError):
            projector.project(profile, 5, date(2024, 3, 4))

    def test_non_positive_efficiency(self, projector):
        """Efficiency must be positive."""
        profile = make_profile([(1, 0), (2, 80)])
        with pytest.raises(InvalidProfileError):
            projector.project(profile, 5, date(2024, 3, 4))

    def test_is_a_value_error(self):
        """Callers can treat invalid profiles as value errors."""
        assert issubclass(InvalidProfileError, ValueError)


class TestDurationEstimate:
    """Tests for estimate_duration_days."""

    @pytest.fixture
    def projector(self):
        return LearningCurveProjector()

    def test_days_to_reach_quantity(self, projector):
        """Counts days until cumulative output covers the quantity."""
        profile = make_profile([(1, 50), (3, 100)])
        # 240 + 240 + 480 = 960 after day 3, 1440 after day 4
        assert projector.estimate_duration_days(profile, 960, date(2024, 3, 4)) == 3
        assert projector.estimate_duration_days(profile, 1000, date(2024, 3, 4)) == 4

    def test_ceiling_lengthens_estimate(self, projector):
        """A resource ceiling caps each day's contribution."""
        profile = make_profile([(1, 50), (3, 100)])
        days = projector.estimate_duration_days(
            profile, 1000, date(2024, 3, 4), daily_ceiling=200
        )
        assert days == 5

    def test_zero_quantity_takes_one_day(self, projector):
        profile = make_profile([(1, 50)])
        assert projector.estimate_duration_days(profile, 0, date(2024, 3, 4)) == 1

    def test_horizon_exhausted(self, projector):
        """Returns the horizon when the quantity is never reached."""
        profile = make_profile([(1, 50)])
        assert projector.estimate_duration_days(
            profile, 10_000, date(2024, 3, 4), max_days=10
        ) == 10

"""Tests for capacity allocation."""

import logging
from datetime import date, timedelta

import pytest

from planboard.domain.errors import AllocationRequestError
from planboard.domain.learning_curve import (
    LearningCurvePoint,
    LearningCurveProfile,
    create_standard_catalog,
)
from planboard.domain.models import AllocationRequest
from planboard.scheduling.allocator import (
    AllocatorConfig,
    CapacityAllocator,
    FlatRateMode,
    round_half_up,
)
from planboard.scheduling.projector import LearningCurveProjector

START = date(2024, 3, 4)


def make_request(quantity, days, ceiling=None, start=START) -> AllocationRequest:
    return AllocationRequest(
        quantity_to_allocate=quantity,
        start_date=start,
        hard_deadline_date=start + timedelta(days=days - 1),
        resource_daily_capacity_ceiling=ceiling,
    )


@pytest.fixture
def ramp_profile():
    """240 units on days 1-2, 480 from day 3 (4800 line minutes, SMV 10)."""
    return LearningCurveProfile(
        profile_id="lc-ramp",
        name="Ramp",
        points=(LearningCurvePoint(1, 50), LearningCurvePoint(3, 100)),
        standard_minute_value=10,
        working_minutes_per_day_per_operator=480,
        operator_count=10,
    )


class TestFlatFallback:
    """Tests for allocation without a learning curve."""

    @pytest.fixture
    def allocator(self):
        return CapacityAllocator()

    def test_ceiling_rate_fills_early_days(self, allocator):
        """1000 units at 250/day over 5 days fills the first 4 days."""
        result = allocator.allocate(make_request(1000, 5, ceiling=250))

        assert [s.planned_qty for s in result.segments] == [250, 250, 250, 250]
        assert result.remaining_quantity == 0
        assert result.actual_end_date == START + timedelta(days=3)
        assert result.is_complete
        assert not result.used_learning_curve

    def test_zero_capacity_schedules_nothing(self, allocator):
        """A zero ceiling is a valid outcome with the full remainder."""
        result = allocator.allocate(make_request(100, 5, ceiling=0))

        assert result.segments == ()
        assert result.remaining_quantity == 100
        assert result.actual_end_date == START
        assert not result.is_partial

    def test_partial_allocation(self, allocator):
        """Quantity beyond the window's capacity is left as remainder."""
        result = allocator.allocate(make_request(1000, 5, ceiling=100))

        assert [s.planned_qty for s in result.segments] == [100] * 5
        assert result.remaining_quantity == 500
        assert result.actual_end_date == START + timedelta(days=4)
        assert result.is_partial

    def test_no_ceiling_spreads_evenly(self, allocator):
        """Without a ceiling or default rate the quantity is spread."""
        result = allocator.allocate(make_request(1000, 5))

        assert [s.planned_qty for s in result.segments] == [200] * 5

    def test_default_rate_clamped_by_ceiling(self):
        """A caller-supplied rate above the ceiling is clamped per day."""
        allocator = CapacityAllocator(AllocatorConfig(default_daily_rate=300))
        result = allocator.allocate(make_request(1000, 5, ceiling=250))

        assert [s.planned_qty for s in result.segments] == [250] * 4

    def test_default_rate_below_ceiling(self):
        allocator = CapacityAllocator(AllocatorConfig(default_daily_rate=150))
        result = allocator.allocate(make_request(1000, 5, ceiling=250))

        assert [s.planned_qty for s in result.segments] == [150] * 5
        assert result.remaining_quantity == 250

    def test_even_spread_mode(self):
        """Even-spread rate is min(ceiling, round(qty / window), qty)."""
        allocator = CapacityAllocator(AllocatorConfig(flat_rate_mode=FlatRateMode.EVEN_SPREAD))
        result = allocator.allocate(make_request(1000, 5, ceiling=250))

        assert [s.planned_qty for s in result.segments] == [200] * 5

    def test_even_spread_rounds_half_up(self):
        """10 units over 4 days rounds 2.5 up to 3 per day."""
        allocator = CapacityAllocator(AllocatorConfig(flat_rate_mode=FlatRateMode.EVEN_SPREAD))
        result = allocator.allocate(make_request(10, 4))

        assert [s.planned_qty for s in result.segments] == [3, 3, 3, 1]

    def test_even_spread_at_least_one_unit(self):
        allocator = CapacityAllocator(AllocatorConfig(flat_rate_mode=FlatRateMode.EVEN_SPREAD))
        result = allocator.allocate(make_request(2, 10))

        assert [s.planned_qty for s in result.segments] == [1, 1]

    def test_flat_efficiency_is_100(self, allocator):
        result = allocator.allocate(make_request(500, 3, ceiling=250))
        assert all(s.efficiency_percent == 100 for s in result.segments)


class TestCurveAllocation:
    """Tests for allocation driven by a learning curve."""

    @pytest.fixture
    def allocator(self):
        return CapacityAllocator()

    def test_follows_projected_output(self, allocator, ramp_profile):
        """Days fill up to the curve's projected output."""
        result = allocator.allocate(make_request(1000, 10), ramp_profile)

        assert [s.planned_qty for s in result.segments] == [240, 240, 480, 40]
        assert [s.efficiency_percent for s in result.segments] == [50, 50, 100, 100]
        assert result.used_learning_curve

    def test_ceiling_clamps_projection(self, allocator, ramp_profile):
        """The resource ceiling limits days where the curve exceeds it."""
        result = allocator.allocate(make_request(1000, 10, ceiling=300), ramp_profile)

        assert [s.planned_qty for s in result.segments] == [240, 240, 300, 220]

    def test_invalid_profile_falls_back(self, allocator, caplog):
        """An invalid curve is logged and replaced by the flat rate."""
        broken = LearningCurveProfile(
            profile_id="lc-broken",
            name="Broken",
            points=(LearningCurvePoint(1, 50),),
            standard_minute_value=0,
        )
        with caplog.at_level(logging.WARNING, logger="planboard.scheduling.allocator"):
            result = allocator.allocate(make_request(1000, 5, ceiling=250), broken, style="TEE")

        assert [s.planned_qty for s in result.segments] == [250] * 4
        assert not result.used_learning_curve
        assert "lc-broken" in caplog.text

    def test_empty_points_fall_back(self, allocator):
        empty = LearningCurveProfile(
            profile_id="lc-empty", name="Empty", points=(), standard_minute_value=10
        )
        result = allocator.allocate(make_request(100, 2, ceiling=50), empty)

        assert [s.planned_qty for s in result.segments] == [50, 50]

    def test_capacity_respected_per_day(self, allocator):
        """No segment exceeds min(projected output, ceiling) for its day."""
        projector = LearningCurveProjector()
        for profile in create_standard_catalog():
            request = make_request(5000, 20, ceiling=400)
            result = allocator.allocate(request, profile)
            projected = {
                p.day: p.theoretical_output_units
                for p in projector.project(profile, request.window_days, START)
            }
            for segment in result.segments:
                assert segment.planned_qty <= min(projected[segment.day], 400)


class TestAllocationInvariants:
    """Conservation and monotonicity across a range of requests."""

    CASES = [
        (1000, 5, 250),
        (1000, 5, 100),
        (999, 7, None),
        (1, 1, None),
        (37, 3, 10),
        (5000, 30, 333.7),
        (100, 5, 0),
    ]

    @pytest.mark.parametrize("quantity,days,ceiling", CASES)
    def test_conservation_and_monotonicity(self, quantity, days, ceiling, ramp_profile):
        for profile in (None, ramp_profile):
            result = CapacityAllocator().allocate(
                make_request(quantity, days, ceiling), profile
            )

            assert result.planned_quantity + result.remaining_quantity == quantity
            cumulative = [s.cumulative_qty_so_far for s in result.segments]
            assert cumulative == sorted(cumulative)
            if cumulative:
                assert cumulative[-1] == quantity - result.remaining_quantity
            assert all(s.planned_qty > 0 for s in result.segments)

    def test_pure_and_repeatable(self, ramp_profile):
        """Identical inputs always give identical results."""
        allocator = CapacityAllocator()
        request = make_request(1000, 10, ceiling=300)

        assert allocator.allocate(request, ramp_profile) == allocator.allocate(
            request, ramp_profile
        )


class TestRequestValidation:
    """Malformed requests are rejected before allocation."""

    @pytest.fixture
    def allocator(self):
        return CapacityAllocator()

    def test_negative_quantity(self, allocator):
        with pytest.raises(AllocationRequestError):
            allocator.allocate(make_request(-1, 5))

    def test_deadline_before_start(self, allocator):
        request = AllocationRequest(
            quantity_to_allocate=100,
            start_date=START,
            hard_deadline_date=START - timedelta(days=1),
        )
        with pytest.raises(AllocationRequestError):
            allocator.allocate(request)

    def test_negative_ceiling(self, allocator):
        with pytest.raises(AllocationRequestError):
            allocator.allocate(make_request(100, 5, ceiling=-5))

    def test_zero_quantity_is_empty_and_complete(self, allocator):
        result = allocator.allocate(make_request(0, 5, ceiling=100))

        assert result.segments == ()
        assert result.remaining_quantity == 0
        assert result.actual_end_date == START

    def test_same_day_window(self, allocator):
        """A deadline equal to the start gives a one-day window."""
        result = allocator.allocate(make_request(300, 1, ceiling=250))

        assert [s.planned_qty for s in result.segments] == [250]
        assert result.remaining_quantity == 50


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

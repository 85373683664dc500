"""Factory work calendar.

The calendar answers one question for the planning board: may a task start
on a given date? Holidays, weekly rest days and (optionally) days in the
past are blocked. The allocator itself never consults the calendar.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class HolidayType(Enum):
    """How much of a day a holiday removes."""

    FULL = "full"
    PARTIAL = "partial"  # Half-day; production still starts


@dataclass
class WorkCalendar:
    """Holiday and rest-day rules for a factory.

    Attributes:
        holidays: Dict mapping date to holiday type.
        rest_weekdays: Weekday numbers (Monday=0) with no production.
        today: When set, dates before it are blocked.
    """

    holidays: dict[date, HolidayType] = field(default_factory=dict)
    rest_weekdays: frozenset[int] = frozenset({6})  # Sunday
    today: Optional[date] = None

    def add_holiday(self, day: date, holiday_type: HolidayType = HolidayType.FULL) -> None:
        self.holidays[day] = holiday_type

    def is_blocked_date(self, day: date) -> bool:
        """Check whether production may not start on ``day``."""
        if self.today is not None and day < self.today:
            return True
        if day.weekday() in self.rest_weekdays:
            return True
        return self.holidays.get(day) is HolidayType.FULL

    def __call__(self, day: date) -> bool:
        return self.is_blocked_date(day)

"""Rental cost and late-return penalty calculation.

A rental is billed per started hour. Every full 24 hours is charged at the
unit's daily rate; a remainder of up to six hours is charged at the flat
hourly overdue rate, while a longer remainder is charged as one more day.
The same decomposition is used for the rental itself and for the penalty
of a late return.
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple, Union

HOURLY_OVERDUE_RATE = 15_000
HOURS_PER_DAY = 24
MAX_HOURLY_REMAINDER = 6

TimeOfDay = Union[str, time]


@dataclass(frozen=True)
class CalculationResult:
    total_hours: int
    full_days: int
    extra_hours: int
    daily_rate: int
    hourly_rate: int

    @property
    def daily_amount(self) -> int:
        return self.full_days * self.daily_rate

    @property
    def hourly_amount(self) -> int:
        return self.extra_hours * self.hourly_rate

    @property
    def amount(self) -> int:
        return self.daily_amount + self.hourly_amount


def parse_time_of_day(value: TimeOfDay) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def combine(day: Union[date, datetime], time_of_day: TimeOfDay) -> datetime:
    """Build a single instant from a calendar date and an ``HH:MM`` time."""
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, parse_time_of_day(time_of_day))


def ceil_hours(delta: timedelta) -> int:
    return math.ceil(delta.total_seconds() / 3600)


def split_hours(elapsed_hours: int) -> Tuple[int, int]:
    """Split billable hours into (full_days, extra_hours).

    A remainder above six hours collapses into one more full day.
    """
    full_days, extra_hours = divmod(elapsed_hours, HOURS_PER_DAY)
    if extra_hours > MAX_HOURLY_REMAINDER:
        full_days += 1
        extra_hours = 0
    return full_days, extra_hours


def price_hours(
    elapsed_hours: int, daily_rate: int, hourly_rate: int = HOURLY_OVERDUE_RATE
) -> CalculationResult:
    full_days, extra_hours = split_hours(elapsed_hours)
    return CalculationResult(
        total_hours=elapsed_hours,
        full_days=full_days,
        extra_hours=extra_hours,
        daily_rate=daily_rate,
        hourly_rate=hourly_rate,
    )


def compute_rental_cost(
    start_date: Union[date, datetime],
    end_date: Union[date, datetime],
    start_time: TimeOfDay,
    end_time: TimeOfDay,
    daily_rate: int,
    hourly_rate: int = HOURLY_OVERDUE_RATE,
) -> CalculationResult:
    """Price a rental from its start and end date/time.

    At least one hour is always billed, including for a reversed interval;
    callers are expected to reject those before pricing.
    """
    start = combine(start_date, start_time)
    end = combine(end_date, end_time)

    elapsed_hours = max(1, ceil_hours(end - start))
    return price_hours(elapsed_hours, daily_rate, hourly_rate)


def assess_overdue(
    due_date: Union[date, datetime],
    due_time: TimeOfDay,
    daily_rate: int,
    now: Optional[datetime] = None,
    hourly_rate: int = HOURLY_OVERDUE_RATE,
) -> CalculationResult:
    due = combine(due_date, due_time)
    if now is None:
        now = datetime.now()

    if now <= due:
        return price_hours(0, daily_rate, hourly_rate)

    return price_hours(ceil_hours(now - due), daily_rate, hourly_rate)


def compute_penalty(
    due_date: Union[date, datetime],
    due_time: TimeOfDay,
    daily_rate: int,
    now: Optional[datetime] = None,
    hourly_rate: int = HOURLY_OVERDUE_RATE,
) -> int:
    """Late-return penalty at ``now`` for a rental due at ``due_date due_time``."""
    return assess_overdue(due_date, due_time, daily_rate, now, hourly_rate).amount

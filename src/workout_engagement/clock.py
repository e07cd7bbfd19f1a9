"""Clock and random sources injected into the engine."""

import random
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Protocol, Tuple, runtime_checkable
from zoneinfo import ZoneInfo


# Uniform floats in [0, 1)
RandomSource = Callable[[], float]

default_random_source: RandomSource = random.random


@runtime_checkable
class Clock(Protocol):
    """Protocol for time sources."""

    def now(self) -> datetime:
        """Return the current timezone-aware datetime."""
        ...


class SystemClock:
    """Wall clock in a fixed timezone."""

    def __init__(self, tz: tzinfo = timezone.utc):
        self.tz = tz

    def now(self) -> datetime:
        return datetime.now(self.tz)


def resolve_timezone(name: str) -> tzinfo:
    """Resolve a timezone name from configuration."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def local_date_and_hour(moment: datetime, tz: tzinfo) -> Tuple[date, int]:
    """Split a moment into the user's local calendar date and hour.

    Naive datetimes are taken to be already in local time.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(tz)
    return moment.date(), moment.hour

from datetime import date, datetime, time, timezone
from uuid import uuid4 as _uuid4
from zoneinfo import ZoneInfo


def uuid4() -> str:
    return str(_uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def local_now(tz_name: str) -> datetime:
    """Naive wall-clock time in ``tz_name``, comparable with rental dates."""
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def to_local(value: datetime, tz_name: str) -> datetime:
    """Naive wall-clock time in ``tz_name``; naive values are taken as local already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def day_bounds(
    start: date, end: date, tz_name: str = "UTC"
) -> tuple[datetime, datetime]:
    """From start 00:00 to end 23:59:59.999999 on the ``tz_name`` wall clock."""
    tz = ZoneInfo(tz_name)
    return (
        datetime.combine(start, time.min, tzinfo=tz),
        datetime.combine(end, time.max, tzinfo=tz),
    )


def format_rupiah(amount: int) -> str:
    return "Rp " + f"{int(amount):,}".replace(",", ".")

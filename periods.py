"""Timeframes, bucket keys and dashboard windows.

Every timestamp is mapped onto a bucket key on the *local* calendar: aware
datetimes are converted into the dashboard timezone first, naive ones are
taken to already be local. The same key function is used when seeding the
window and when folding transactions into it, so a transaction lands in a
bucket exactly when its key was seeded.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional, Union

MONTH_ABBR = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

DAILY_BUCKETS = 14
WEEKLY_BUCKETS = 8
MONTHLY_BUCKETS = 12


class Timeframe(str, Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"
    yearly = "yearly"

    @classmethod
    def parse(cls, value: Union[str, "Timeframe"]) -> "Timeframe":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(f"Unknown timeframe: {value!r}") from exc


@dataclass
class Bucket:
    key: str
    label: str
    start: date
    income: Decimal = field(default_factory=Decimal)
    expense: Decimal = field(default_factory=Decimal)


def local_date(when: Union[date, datetime], tz: Optional[tzinfo] = None) -> date:
    if isinstance(when, datetime):
        if when.tzinfo is not None and tz is not None:
            when = when.astimezone(tz)
        return when.date()
    return when


def week_start(d: date) -> date:
    # weeks start on Sunday; date.weekday() has Monday == 0
    return d - timedelta(days=(d.weekday() + 1) % 7)


def add_months(d: date, count: int) -> date:
    month_index = (d.year * 12) + (d.month - 1) + count
    year = month_index // 12
    month = (month_index % 12) + 1
    return date(year, month, 1)


def _short_date(d: date) -> str:
    return f"{d.day:02d} {MONTH_ABBR[d.month - 1]}"


def _key_for_date(d: date, timeframe: Timeframe) -> tuple[str, str]:
    if timeframe is Timeframe.daily:
        return d.isoformat(), _short_date(d)
    if timeframe is Timeframe.weekly:
        start = week_start(d)
        return start.isoformat(), f"Wk {_short_date(start)}"
    if timeframe is Timeframe.monthly:
        return (
            f"{d.year:04d}-{d.month:02d}",
            f"{MONTH_ABBR[d.month - 1]} {d.year % 100:02d}",
        )
    key = f"{d.year:04d}"
    return key, key


def bucket_key(
    when: Union[date, datetime],
    timeframe: Union[str, Timeframe],
    tz: Optional[tzinfo] = None,
) -> tuple[str, str]:
    """Return ``(key, label)`` of the bucket containing ``when``."""
    return _key_for_date(local_date(when, tz), Timeframe.parse(timeframe))


def bucket_start(key: str, timeframe: Union[str, Timeframe]) -> date:
    timeframe = Timeframe.parse(timeframe)
    if timeframe in (Timeframe.daily, Timeframe.weekly):
        return date.fromisoformat(key)
    if timeframe is Timeframe.monthly:
        year, month = key.split("-")
        return date(int(year), int(month), 1)
    return date(int(key), 1, 1)


def _bucket(d: date, timeframe: Timeframe) -> Bucket:
    key, label = _key_for_date(d, timeframe)
    return Bucket(key=key, label=label, start=bucket_start(key, timeframe))


def seed_window(
    timeframe: Union[str, Timeframe],
    today: date,
    years: Iterable[int] = (),
) -> list[Bucket]:
    """Zero-filled buckets for the window ending at ``today``, oldest first.

    The yearly window is data-dependent: it spans every year in ``years``
    plus the current one, so its width is not fixed like the others.
    """
    timeframe = Timeframe.parse(timeframe)
    if timeframe is Timeframe.daily:
        days = [today - timedelta(days=i) for i in range(DAILY_BUCKETS - 1, -1, -1)]
        return [_bucket(d, timeframe) for d in days]
    if timeframe is Timeframe.weekly:
        weeks = [
            today - timedelta(weeks=i) for i in range(WEEKLY_BUCKETS - 1, -1, -1)
        ]
        return [_bucket(d, timeframe) for d in weeks]
    if timeframe is Timeframe.monthly:
        first = today.replace(day=1)
        months = [add_months(first, -i) for i in range(MONTHLY_BUCKETS - 1, -1, -1)]
        return [_bucket(d, timeframe) for d in months]

    all_years = set(years)
    all_years.add(today.year)
    return [_bucket(date(year, 1, 1), timeframe) for year in sorted(all_years)]

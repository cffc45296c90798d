from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from periods import Timeframe, bucket_key, bucket_start, seed_window, week_start


def test_day_month_and_year_keys() -> None:
    when = datetime(2024, 1, 5, 18, 30)
    assert bucket_key(when, Timeframe.daily) == ("2024-01-05", "05 Jan")
    assert bucket_key(when, "monthly") == ("2024-01", "Jan 24")
    assert bucket_key(when, "yearly") == ("2024", "2024")


def test_week_key_is_the_sunday_starting_the_week() -> None:
    # 2024-01-03 is a Wednesday
    assert bucket_key(date(2024, 1, 3), "weekly") == ("2023-12-31", "Wk 31 Dec")
    assert week_start(date(2023, 12, 31)) == date(2023, 12, 31)
    assert week_start(date(2024, 1, 6)) == date(2023, 12, 31)
    assert week_start(date(2024, 1, 7)) == date(2024, 1, 7)


def test_aware_timestamps_use_the_local_calendar_date() -> None:
    when = datetime(2024, 1, 31, 20, 0, tzinfo=timezone.utc)
    kolkata = ZoneInfo("Asia/Kolkata")
    assert bucket_key(when, "daily", kolkata)[0] == "2024-02-01"
    assert bucket_key(when, "monthly", kolkata)[0] == "2024-02"
    assert bucket_key(when, "daily")[0] == "2024-01-31"


def test_bucket_start_round_trips_keys() -> None:
    assert bucket_start("2024-03-10", "weekly") == date(2024, 3, 10)
    assert bucket_start("2024-03", "monthly") == date(2024, 3, 1)
    assert bucket_start("2024", "yearly") == date(2024, 1, 1)


def test_daily_window_is_fourteen_days_ending_today() -> None:
    window = seed_window("daily", date(2024, 3, 14))
    assert len(window) == 14
    assert window[0].key == "2024-03-01"
    assert window[-1].key == "2024-03-14"
    assert all(b.income == 0 and b.expense == 0 for b in window)


def test_weekly_window_is_eight_sunday_anchored_weeks() -> None:
    window = seed_window("weekly", date(2024, 3, 14))
    assert [b.key for b in window] == [
        "2024-01-21",
        "2024-01-28",
        "2024-02-04",
        "2024-02-11",
        "2024-02-18",
        "2024-02-25",
        "2024-03-03",
        "2024-03-10",
    ]
    assert window[0].label == "Wk 21 Jan"


def test_monthly_window_crosses_year_boundary() -> None:
    window = seed_window("monthly", date(2024, 2, 15))
    assert len(window) == 12
    assert window[0].key == "2023-03"
    assert window[-2].key == "2024-01"
    assert window[-1].label == "Feb 24"


def test_yearly_window_follows_the_data() -> None:
    window = seed_window("yearly", date(2024, 6, 1), years=[2022, 2019, 2022])
    assert [b.key for b in window] == ["2019", "2022", "2024"]
    assert [b.key for b in seed_window("yearly", date(2024, 6, 1))] == ["2024"]


def test_timeframe_parse() -> None:
    assert Timeframe.parse("Weekly") is Timeframe.weekly
    assert Timeframe.parse(Timeframe.daily) is Timeframe.daily
    with pytest.raises(ValueError):
        Timeframe.parse("hourly")

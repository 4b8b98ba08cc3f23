from datetime import datetime, timezone

import pytest

from lifetrail.time_utils import (
    format_clock_time,
    format_distance,
    format_duration,
    format_timespan,
    isoformat_day,
    parse_date_string,
)

MIDNIGHT = 1_699_920_000  # 2023-11-14 00:00 UTC


@pytest.mark.parametrize("raw", ["2023-11-14", "20231114", " 2023-11-14 "])
def test_parse_date_string(raw):
    assert parse_date_string(raw) == datetime(2023, 11, 14, tzinfo=timezone.utc)
    assert parse_date_string(raw).timestamp() == MIDNIGHT


def test_parse_date_string_rejects_garbage():
    with pytest.raises(ValueError, match="Invalid date format"):
        parse_date_string("14/11/2023")


def test_format_timespan():
    assert format_timespan(0) == "0 days"
    assert format_timespan(2 * 86400) == "2 days"
    assert format_timespan(400 * 86400) == "1 year, 1 month, 5 days"
    assert format_timespan(730 * 86400) == "2 years"


def test_format_duration():
    assert format_duration(30) == "<1 min"
    assert format_duration(600) == "10 min"
    assert format_duration(3600) == "1h"
    assert format_duration(5400) == "1h 30m"


def test_format_distance():
    assert format_distance(0.25) == "250m"
    assert format_distance(12.34) == "12.3km"


def test_clock_and_day_formatting():
    assert format_clock_time(MIDNIGHT + 9 * 3600 + 5 * 60) == "9:05 AM"
    assert format_clock_time(MIDNIGHT + 13 * 3600 + 30 * 60) == "1:30 PM"
    assert isoformat_day(MIDNIGHT + 86399) == "2023-11-14"

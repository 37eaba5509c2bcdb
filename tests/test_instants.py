from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from helmet_reservations.core.instants import day_bounds, parse_day, to_instant

PARIS = ZoneInfo("Europe/Paris")
EXPECTED = datetime(2026, 3, 9, 18, 0, tzinfo=timezone.utc)


class StoreTimestamp:
    def to_datetime(self):
        return EXPECTED


@pytest.mark.parametrize("value", [
    EXPECTED,
    StoreTimestamp(),
    {"seconds": 1773079200, "nanoseconds": 0},
    {"_seconds": 1773079200, "_nanoseconds": 0},
    1773079200000,
    "2026-03-09T18:00:00Z",
    "2026-03-09T19:00:00+01:00",
])
def test_to_instant_accepts_every_shape(value):
    assert to_instant(value) == EXPECTED


def test_naive_values_are_read_in_studio_time():
    assert to_instant(datetime(2026, 3, 9, 19, 0), PARIS) == EXPECTED
    assert to_instant("2026-03-09T19:00:00", PARIS) == EXPECTED


def test_plain_date_is_local_midnight():
    got = to_instant(date(2026, 3, 9), PARIS)
    assert got == datetime(2026, 3, 9, tzinfo=PARIS)


@pytest.mark.parametrize("value", [None, "", "next tuesday", {"when": "soon"}, True, [2026, 3, 9], object()])
def test_to_instant_rejects_unreadable_values(value):
    assert to_instant(value) is None


def test_day_bounds_cover_whole_local_days():
    lo, hi = day_bounds(date(2026, 3, 2), date(2026, 3, 8), PARIS)
    assert lo == datetime(2026, 3, 2, 0, 0, 0, tzinfo=PARIS)
    assert hi == datetime(2026, 3, 8, 23, 59, 59, 999000, tzinfo=PARIS)
    assert hi - lo == timedelta(days=7) - timedelta(milliseconds=1)


def test_day_bounds_open_ended():
    lo, hi = day_bounds(None, date(2026, 3, 8), PARIS)
    assert lo is None
    assert hi.date() == date(2026, 3, 8)


def test_parse_day_names_the_bad_field():
    assert parse_day("2026-03-02", "startDate") == date(2026, 3, 2)
    assert parse_day("2026-03-02T00:00:00.000Z", "startDate") == date(2026, 3, 2)
    with pytest.raises(ValueError, match="endDate"):
        parse_day("02/03/2026", "endDate")

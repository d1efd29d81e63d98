from datetime import datetime, timedelta, timezone

import pytest

from app.services.support_inbox import support_link_for
from app.services.ticket_identifier import (
    build_daily_id,
    day_bounds,
    day_key,
    resolve_reference_instant,
    strip_daily_suffix,
)

UTC = timezone.utc


@pytest.mark.parametrize(
    "base, instant",
    [
        ("T1", datetime(2024, 3, 5, 10, 0, tzinfo=UTC)),
        ("  abc-123 ", datetime(2024, 12, 31, 23, 59, 59, tzinfo=UTC)),
        ("weird__day__id", datetime(2024, 1, 1, 0, 0, tzinfo=UTC)),
    ],
)
def test_strip_undoes_build(base, instant):
    assert strip_daily_suffix(build_daily_id(base, instant)) == base.strip()


def test_build_daily_id_format():
    assert build_daily_id(" T1 ", datetime(2024, 3, 5, 10, tzinfo=UTC)) == "T1__day__2024-03-05"


def test_build_daily_id_is_stable_within_a_day():
    morning = datetime(2024, 3, 5, 0, 0, 1, tzinfo=UTC)
    night = datetime(2024, 3, 5, 23, 59, 59, tzinfo=UTC)
    assert build_daily_id("T1", morning) == build_daily_id("T1", night)


@pytest.mark.parametrize(
    "ticket_id",
    [
        "T1",
        "T1__day__",
        "T1__day__tomorrow",
        "T1__day__2024-3-5",
        "T1__day__2024-03-05x",
        "T1__day__2024-03-05__extra",
    ],
)
def test_strip_leaves_non_suffixed_ids_alone(ticket_id):
    assert strip_daily_suffix(ticket_id) == ticket_id


def test_strip_uses_last_delimiter():
    assert strip_daily_suffix("a__day__b__day__2024-03-05") == "a__day__b"


def test_strip_empty():
    assert strip_daily_suffix("") == ""


@pytest.mark.parametrize("offset", [0, 60, -300, 330, 840, -720])
def test_day_bounds_span_one_day(offset):
    instant = datetime(2024, 3, 10, 22, 45, tzinfo=UTC)
    start, end = day_bounds(instant, offset)

    assert end - start == timedelta(hours=24)
    assert start <= instant < end
    assert day_key(start, offset) == day_key(end - timedelta(milliseconds=1), offset)
    assert day_key(end, offset) != day_key(start, offset)


def test_day_bounds_with_positive_offset():
    # 23:30 UTC is already the next day at UTC+2
    instant = datetime(2024, 3, 5, 23, 30, tzinfo=UTC)
    start, end = day_bounds(instant, 120)

    assert day_key(instant, 120) == "2024-03-06"
    assert start == datetime(2024, 3, 5, 22, 0, tzinfo=UTC)
    assert end == datetime(2024, 3, 6, 22, 0, tzinfo=UTC)


def test_naive_datetimes_are_utc():
    naive = datetime(2024, 3, 5, 10, 0)
    assert day_key(naive) == "2024-03-05"
    assert day_bounds(naive)[0] == datetime(2024, 3, 5, tzinfo=UTC)


def test_resolve_reference_instant():
    now = datetime(2030, 1, 1, tzinfo=UTC)

    assert resolve_reference_instant("2024-03-05T10:00:00Z", now) == datetime(2024, 3, 5, 10, tzinfo=UTC)
    assert resolve_reference_instant("2024-03-05T10:00:00+02:00", now) == datetime(2024, 3, 5, 8, tzinfo=UTC)
    assert resolve_reference_instant("2024-03-05", now) == datetime(2024, 3, 5, tzinfo=UTC)
    assert resolve_reference_instant(None, now) == now
    assert resolve_reference_instant("", now) == now
    assert resolve_reference_instant("not a date", now) == now


def test_support_link_uses_stripped_id():
    url = support_link_for("T1__day__2024-03-05", base_url="https://support.example.com/inbox/")
    assert url == "https://support.example.com/inbox/T1"


@pytest.mark.parametrize(
    "raw",
    [
        "9999-12-31T12:00:00Z",
        "9999-12-31T23:00:00-05:00",
        "0001-01-01T00:30:00+01:00",
        "0001-01-01T00:00:00Z",
    ],
)
def test_reference_instant_near_datetime_limits_falls_back(raw):
    now = datetime(2030, 1, 1, tzinfo=UTC)

    assert resolve_reference_instant(raw, now) == now


def test_far_future_hint_inside_range_is_kept():
    instant = resolve_reference_instant("9999-12-01T12:00:00Z")

    assert instant == datetime(9999, 12, 1, 12, tzinfo=UTC)
    start, end = day_bounds(instant, 840)
    assert end - start == timedelta(hours=24)

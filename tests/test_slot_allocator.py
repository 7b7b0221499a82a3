"""Slot allocation: per-day quotas, hourly slots from 09:00 and field rotation."""
from collections import Counter
from datetime import datetime, timedelta

import pytest

from draw_engine.services.pairing_generator import UnscheduledPairing, round_robin_pairings
from draw_engine.services.slot_allocator import available_days, schedule_pairings

FIELDS = ["North", "South"]


def _pairings(n: int):
    return [
        UnscheduledPairing(team_a=2 * i + 1, team_b=2 * i + 2, round_number=1, round_name="Round 1", match_number=i + 1)
        for i in range(n)
    ]


def test_available_days():
    start = datetime(2026, 3, 1)
    assert available_days(start, start + timedelta(days=2)) == 2
    assert available_days(start, start + timedelta(hours=6)) == 1
    assert available_days(start, start) == 1
    assert available_days(start, start + timedelta(days=2, hours=1)) == 3


def test_ten_matches_over_two_days():
    start = datetime(2026, 3, 1)
    scheduled = schedule_pairings(_pairings(10), start, start + timedelta(days=2), 60, field_names=FIELDS)

    per_day = Counter(s.start_time.date() for s in scheduled)
    assert per_day == {start.date(): 5, (start + timedelta(days=1)).date(): 5}
    assert [s.start_time.hour for s in scheduled] == [9, 10, 11, 12, 13] * 2
    assert {s.field_name for s in scheduled} == {"North"}


def test_order_and_duration_preserved():
    start = datetime(2026, 3, 1)
    pairings = round_robin_pairings([1, 2, 3, 4])
    scheduled = schedule_pairings(pairings, start, start + timedelta(days=1), 45, field_names=FIELDS)

    assert [s.pairing for s in scheduled] == pairings
    for s in scheduled:
        assert s.end_time - s.start_time == timedelta(minutes=45)


def test_busy_day_wraps_to_next_field():
    start = datetime(2026, 3, 1)
    scheduled = schedule_pairings(_pairings(10), start, start + timedelta(days=1), 60, field_names=FIELDS)

    assert [s.start_time.hour for s in scheduled] == [9, 10, 11, 12, 13, 14, 15, 16, 9, 10]
    assert [s.field_name for s in scheduled] == ["North"] * 8 + ["South"] * 2
    # no field is double booked
    assert len({(s.field_name, s.start_time) for s in scheduled}) == 10


def test_field_pool_cycles():
    start = datetime(2026, 3, 1)
    scheduled = schedule_pairings(_pairings(17), start, start + timedelta(days=1), 60, field_names=["Only"])
    assert {s.field_name for s in scheduled} == {"Only"}


def test_default_field_labels_when_none_configured():
    start = datetime(2026, 3, 1)
    scheduled = schedule_pairings(_pairings(9), start, start + timedelta(days=1), 60, field_names=[])
    assert scheduled[0].field_name == "Field 1"
    assert scheduled[8].field_name == "Field 2"


def test_custom_day_start_and_slots():
    start = datetime(2026, 3, 1)
    scheduled = schedule_pairings(
        _pairings(4), start, start + timedelta(days=1), 30, field_names=FIELDS, day_start_hour=14, slots_per_day=2
    )
    assert [(s.start_time.hour, s.field_name) for s in scheduled] == [
        (14, "North"),
        (15, "North"),
        (14, "South"),
        (15, "South"),
    ]


def test_sub_day_window_uses_one_day():
    start = datetime(2026, 3, 1)
    scheduled = schedule_pairings(_pairings(3), start, start + timedelta(hours=4), 60, field_names=FIELDS)
    assert {s.start_time.date() for s in scheduled} == {start.date()}


def test_window_start_mid_day_snaps_to_midnight():
    start = datetime(2026, 3, 1, 15, 30)
    scheduled = schedule_pairings(_pairings(1), start, start + timedelta(days=1), 60, field_names=FIELDS)
    assert scheduled[0].start_time == datetime(2026, 3, 1, 9, 0)


def test_empty_input():
    start = datetime(2026, 3, 1)
    assert schedule_pairings([], start, start + timedelta(days=1), 60) == []


@pytest.mark.parametrize("duration", [0, -15])
def test_non_positive_duration_rejected(duration):
    start = datetime(2026, 3, 1)
    with pytest.raises(ValueError):
        schedule_pairings(_pairings(2), start, start + timedelta(days=1), duration)


def test_start_times_within_window():
    start = datetime(2026, 3, 1)
    end = start + timedelta(days=3)
    scheduled = schedule_pairings(_pairings(28), start, end, 60, field_names=FIELDS)
    for s in scheduled:
        assert start <= s.start_time < end
        assert s.end_time <= end + timedelta(minutes=60)

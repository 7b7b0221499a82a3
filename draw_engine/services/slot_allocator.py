"""
Slot Allocator — spread pairings across the tournament window.

Days available = max(1, ceil(window / 1 day)); each day takes
ceil(total / days) matches in generator order. Within a day the k-th match
starts at day_start_hour + (k mod slots_per_day) hours, so a busy day wraps
back onto the morning slots. Wrapped matches move to the next field in the
pool, which keeps one field from being double booked until the pool runs out.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Union

from draw_engine.config import DAY_START_HOUR, FIELD_NAMES, SLOTS_PER_DAY
from draw_engine.services.pairing_generator import UnscheduledPairing
from draw_engine.utils.fields import field_label_for_index

ONE_DAY = timedelta(days=1)


@dataclass
class ScheduledPairing:
    pairing: UnscheduledPairing
    start_time: datetime
    end_time: datetime
    field_name: str


def available_days(window_start: datetime, window_end: datetime) -> int:
    """Whole days in the window, at least one (a sub-day window counts as a day)."""
    span = (window_end - window_start) / ONE_DAY
    return max(1, math.ceil(span))


def schedule_pairings(
    pairings: Sequence[UnscheduledPairing],
    window_start: datetime,
    window_end: datetime,
    match_duration_minutes: int,
    field_names: Optional[Union[str, List[str]]] = None,
    day_start_hour: int = DAY_START_HOUR,
    slots_per_day: int = SLOTS_PER_DAY,
) -> List[ScheduledPairing]:
    """Assign start/end times and a field to each pairing, preserving order."""
    if match_duration_minutes <= 0:
        raise ValueError(f"match_duration_minutes must be positive, got {match_duration_minutes}")
    if not pairings:
        return []

    fields = field_names if field_names is not None else FIELD_NAMES
    duration = timedelta(minutes=match_duration_minutes)
    matches_per_day = math.ceil(len(pairings) / available_days(window_start, window_end))

    day = window_start.replace(hour=0, minute=0, second=0, microsecond=0)
    matches_today = 0
    scheduled: List[ScheduledPairing] = []

    for pairing in pairings:
        if matches_today >= matches_per_day:
            day += ONE_DAY
            matches_today = 0

        start_time = day + timedelta(hours=day_start_hour + (matches_today % slots_per_day))
        scheduled.append(
            ScheduledPairing(
                pairing=pairing,
                start_time=start_time,
                end_time=start_time + duration,
                field_name=field_label_for_index(fields, matches_today // slots_per_day),
            )
        )
        matches_today += 1

    return scheduled

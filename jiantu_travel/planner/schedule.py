"""Derive arrival/departure times for an ordered itinerary.

Everything here is pure: no I/O, no shared state. Times are plain integers
counting minutes since midnight of the first day; the accumulator is not
wrapped, so a trip that runs past midnight keeps growing and only
:func:`format_time` folds it back onto a 24h clock.
"""

from __future__ import annotations

import math
from typing import List, Sequence

from jiantu_travel.api.models import Leg, ScheduleEntry, Waypoint

MINUTES_PER_DAY = 24 * 60


def travel_minutes(duration_seconds: float) -> int:
    """Convert a leg duration to whole minutes, rounding half up."""
    return int(math.floor(duration_seconds / 60 + 0.5))


def parse_time(value: str) -> int:
    """Parse ``"HH:MM"`` into minutes since midnight."""
    try:
        hours_text, minutes_text = value.strip().split(":")
        hours, minutes = int(hours_text), int(minutes_text)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM") from None
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_time(minutes_from_midnight: int) -> str:
    """Format an (unbounded) minute count as a 24h ``"HH:MM"`` clock time."""
    minutes = int(minutes_from_midnight) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def calculate_schedule(
    waypoints: Sequence[Waypoint],
    legs: Sequence[Leg],
    start_minutes: int,
) -> List[ScheduleEntry]:
    """Return one ScheduleEntry per waypoint.

    ``legs[i]`` is the travel from waypoint i to i+1. A missing leg (no route
    yet, or the route is being recomputed) counts as zero travel time.
    """
    schedule: List[ScheduleEntry] = []
    clock = start_minutes
    for index, waypoint in enumerate(waypoints):
        travel = 0
        if index > 0:
            if index - 1 < len(legs):
                travel = travel_minutes(legs[index - 1].duration_seconds)
            clock += travel
        arrival = clock
        clock = arrival + waypoint.stay_duration
        schedule.append(ScheduleEntry(waypoint.id, arrival, clock, travel))
    return schedule

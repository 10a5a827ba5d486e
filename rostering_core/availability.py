"""Availability and leave checks for a staff member against a candidate shift."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .models import ExistingShift, StaffMember
from .time_utils import (
    MINUTES_PER_DAY,
    interval_minutes,
    intervals_overlap,
    parse_iso_date,
    require_minutes,
)


@dataclass(frozen=True)
class AvailabilityCheck:
    available: bool
    reason: str | None = None


def is_on_leave(staff: StaffMember, shift_date: str) -> bool:
    return any(leave.covers(shift_date) for leave in staff.leave)


def _window(start: str, end: str) -> tuple[int, int]:
    s = require_minutes(start, "availability start")
    e = require_minutes(end, "availability end")
    if e <= s:
        e += MINUTES_PER_DAY
    return s, e


def check_availability(
    staff: StaffMember,
    shift_date: str,
    start: str,
    end: str,
    existing_shifts: Iterable[ExistingShift] = (),
) -> AvailabilityCheck:
    """Run leave, weekday, window and overlap checks, stopping at the first failure."""
    if is_on_leave(staff, shift_date):
        return AvailabilityCheck(False, "On approved leave")

    weekday = parse_iso_date(shift_date).weekday()
    day = staff.availability.get(weekday)
    if day is None or not day.available:
        return AvailabilityCheck(False, "Not available on this day")

    shift_start, shift_end = interval_minutes(start, end)
    if day.is_bounded:
        win_start, win_end = _window(day.start, day.end)
        if shift_start < win_start or shift_end > win_end:
            return AvailabilityCheck(False, f"Only available {day.start} - {day.end}")

    for existing in existing_shifts:
        if existing.staff_id != staff.id or existing.date != shift_date:
            continue
        if intervals_overlap((shift_start, shift_end), existing.interval):
            return AvailabilityCheck(False, "Has overlapping shift")

    return AvailabilityCheck(True)

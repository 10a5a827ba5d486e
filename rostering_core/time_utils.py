"""Shared time and calendar utilities used by scoring, pricing and compliance."""

from __future__ import annotations

from collections.abc import Collection
from datetime import date

from .errors import InvalidInputError

MINUTES_PER_DAY = 24 * 60

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")

DAY_TYPES = ("weekday", "saturday", "sunday", "public_holiday")

NIGHT_START = 22 * 60
NIGHT_END = 6 * 60
EVENING_START = 18 * 60


def parse_hhmm_to_minutes(value: str | None) -> int | None:
    """Parse HH:MM into minutes after midnight."""
    if not value or ":" not in str(value):
        return None
    try:
        hh, mm = str(value).split(":", 1)
        h = int(hh)
        m = int(mm)
    except (TypeError, ValueError):
        return None
    if h < 0 or h > 23 or m < 0 or m > 59:
        return None
    return h * 60 + m


def require_minutes(value: str | None, field: str = "time") -> int:
    minutes = parse_hhmm_to_minutes(value)
    if minutes is None:
        raise InvalidInputError(f"{field} must be HH:MM, got {value!r}")
    return minutes


def format_minutes(minutes: int) -> str:
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_iso_date(value: str | date | None, field: str = "date") -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value or ""))
    except ValueError as exc:
        raise InvalidInputError(f"{field} must be YYYY-MM-DD, got {value!r}") from exc


def interval_minutes(start: str, end: str) -> tuple[int, int]:
    """Return [start, end) in minutes; an end at or before start wraps past midnight."""
    s = require_minutes(start, "start")
    e = require_minutes(end, "end")
    if e <= s:
        e += MINUTES_PER_DAY
    return s, e


def calc_shift_hours(start: str | None, end: str | None) -> float:
    """Calculate duration for a shift in decimal hours."""
    s = parse_hhmm_to_minutes(start)
    e = parse_hhmm_to_minutes(end)
    if s is None or e is None:
        return 0.0
    diff = e - s
    if diff < 0:
        diff += MINUTES_PER_DAY
    return diff / 60.0


def intervals_overlap(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """Half-open overlap test: [a0, a1) and [b0, b1) share at least one minute."""
    return not (a[1] <= b[0] or a[0] >= b[1])


def time_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Return True if two same-day HH:MM ranges overlap (overnight ends extend past 24:00)."""
    return intervals_overlap(interval_minutes(start_a, end_a), interval_minutes(start_b, end_b))


def week_key(datum: str | date) -> str:
    """ISO date of the Monday starting the week that contains `datum`."""
    d = parse_iso_date(datum)
    monday = d.fromordinal(d.toordinal() - d.weekday())
    return monday.isoformat()


def weekday_index(value: str | int) -> int:
    """Accept 0-6 (Monday first) or a weekday name/abbreviation."""
    if isinstance(value, int):
        idx = value
    else:
        text = str(value).strip().lower()
        if text.isdigit():
            idx = int(text)
        else:
            idx = WEEKDAY_NAMES.index(text[:3]) if text[:3] in WEEKDAY_NAMES else -1
    if not 0 <= idx <= 6:
        raise InvalidInputError(f"unknown weekday: {value!r}")
    return idx


def classify_day(datum: str | date, holidays: Collection[str] = ()) -> str:
    """Map a date to a pay day type using an injected public-holiday calendar."""
    d = parse_iso_date(datum)
    if d.isoformat() in holidays:
        return "public_holiday"
    if d.weekday() == 5:
        return "saturday"
    if d.weekday() == 6:
        return "sunday"
    return "weekday"


def shift_time_flags(start: str, end: str) -> tuple[bool, bool]:
    """Return (is_night_shift, is_evening_shift) for a shift window.

    Night takes precedence: a shift starting before 06:00 or from 22:00, or
    running past 22:00, is a night shift. Otherwise a shift ending after
    18:00 is an evening shift.
    """
    s, e = interval_minutes(start, end)
    is_night = s < NIGHT_END or s >= NIGHT_START or e > NIGHT_START
    is_evening = not is_night and e > EVENING_START
    return is_night, is_evening

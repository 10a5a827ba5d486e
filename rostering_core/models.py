"""Input data structures consumed by the engine.

Shifts, staff and timesheets are handed over by the rostering front end as
plain records; these dataclasses give them names and validate the parts the
engine would otherwise have to guess about.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from .errors import InvalidInputError
from .time_utils import (
    MINUTES_PER_DAY,
    format_minutes,
    interval_minutes,
    parse_iso_date,
    require_minutes,
    week_key,
)

EMPLOYMENT_TYPES = ("permanent", "casual", "contractor")


@dataclass(frozen=True)
class ShiftToFill:
    id: str
    centre_id: str
    room_id: str
    date: str
    start: str
    end: str
    break_minutes: int = 0
    required_qualifications: tuple[str, ...] = ()
    minimum_classification: str | None = None
    preferred_role: str | None = None

    def __post_init__(self) -> None:
        parse_iso_date(self.date, f"shift {self.id} date")
        s = require_minutes(self.start, f"shift {self.id} start")
        e = require_minutes(self.end, f"shift {self.id} end")
        if s == e:
            raise InvalidInputError(f"shift {self.id} has zero length ({self.start}-{self.end})")
        if self.break_minutes < 0 or self.break_minutes >= self.gross_minutes:
            raise InvalidInputError(
                f"shift {self.id} break of {self.break_minutes}m does not fit {self.start}-{self.end}"
            )

    @property
    def interval(self) -> tuple[int, int]:
        return interval_minutes(self.start, self.end)

    @property
    def gross_minutes(self) -> int:
        s, e = self.interval
        return e - s

    @property
    def net_hours(self) -> float:
        return (self.gross_minutes - self.break_minutes) / 60.0

    @property
    def time_label(self) -> str:
        return f"{self.start} - {self.end}"


@dataclass(frozen=True)
class ExistingShift:
    staff_id: str
    date: str
    start: str
    end: str
    break_minutes: int = 0
    id: str = ""

    @property
    def interval(self) -> tuple[int, int]:
        return interval_minutes(self.start, self.end)

    @property
    def net_hours(self) -> float:
        s, e = self.interval
        return max(e - s - self.break_minutes, 0) / 60.0


@dataclass(frozen=True)
class Qualification:
    type: str
    expires_on: date | None = None
    expired: bool = False

    def is_expired(self, on: date | None = None) -> bool:
        if self.expired:
            return True
        if self.expires_on is None or on is None:
            return False
        return self.expires_on < on


@dataclass(frozen=True)
class DayAvailability:
    available: bool
    start: str | None = None
    end: str | None = None

    @property
    def is_bounded(self) -> bool:
        return bool(self.start and self.end)


@dataclass(frozen=True)
class LeaveInterval:
    start_date: str
    end_date: str
    status: str = "approved"
    type: str = "annual_leave"

    def covers(self, datum: str) -> bool:
        if self.status != "approved":
            return False
        d = parse_iso_date(datum)
        return parse_iso_date(self.start_date) <= d <= parse_iso_date(self.end_date)


@dataclass(frozen=True)
class SchedulingPreferences:
    preferred_rooms: tuple[str, ...] = ()
    avoid_rooms: tuple[str, ...] = ()
    prefer_early_shifts: bool = False
    prefer_late_shifts: bool = False


@dataclass(frozen=True)
class StaffMember:
    id: str
    name: str
    role: str = ""
    employment_type: str = "permanent"
    agency: str | None = None
    qualifications: tuple[Qualification, ...] = ()
    hourly_rate: float = 0.0
    overtime_rate: float = 0.0
    max_hours_per_week: float = 38.0
    current_weekly_hours: float | None = None
    # weekday index (0 = Monday) -> availability for that day
    availability: dict[int, DayAvailability] = field(default_factory=dict)
    leave: tuple[LeaveInterval, ...] = ()
    preferences: SchedulingPreferences | None = None

    def __post_init__(self) -> None:
        if self.employment_type not in EMPLOYMENT_TYPES:
            raise InvalidInputError(
                f"staff {self.id} employment_type must be one of {EMPLOYMENT_TYPES}, got {self.employment_type!r}"
            )
        if self.hourly_rate < 0 or self.overtime_rate < 0:
            raise InvalidInputError(f"staff {self.id} has a negative pay rate")
        if self.max_hours_per_week <= 0:
            raise InvalidInputError(f"staff {self.id} max_hours_per_week must be positive")

    @property
    def is_casual(self) -> bool:
        return self.employment_type == "casual"

    @property
    def is_agency(self) -> bool:
        return bool(self.agency) and self.agency != "internal"

    def qualification_types(self) -> set[str]:
        return {q.type for q in self.qualifications}


# ---- Timesheets ------------------------------------------------------------


@dataclass(frozen=True)
class BreakRecord:
    duration_minutes: int
    paid: bool = False


@dataclass(frozen=True)
class ClockEntry:
    id: str
    date: str
    clock_in: str
    clock_out: str | None = None
    breaks: tuple[BreakRecord, ...] = ()

    def __post_init__(self) -> None:
        parse_iso_date(self.date, f"entry {self.id} date")
        require_minutes(self.clock_in, f"entry {self.id} clock_in")
        if self.clock_out is not None:
            require_minutes(self.clock_out, f"entry {self.id} clock_out")

    @property
    def break_minutes(self) -> int:
        return sum(b.duration_minutes for b in self.breaks)

    @property
    def gross_hours(self) -> float:
        if self.clock_out is None:
            return 0.0
        start = require_minutes(self.clock_in)
        end = require_minutes(self.clock_out)
        if end < start:
            end += MINUTES_PER_DAY
        return (end - start) / 60.0

    @property
    def net_hours(self) -> float:
        unpaid = sum(b.duration_minutes for b in self.breaks if not b.paid)
        return max(self.gross_hours - unpaid / 60.0, 0.0)


@dataclass(frozen=True)
class Timesheet:
    id: str
    staff_id: str
    entries: tuple[ClockEntry, ...] = ()
    base_hourly_rate: float = 0.0
    is_casual: bool = False
    award_type: str = "general"
    week_start: str | None = None
    # Caller-supplied totals win over the values derived from entries.
    total_hours: float | None = None
    overtime_hours: float | None = None

    def __post_init__(self) -> None:
        if self.week_start is not None:
            parse_iso_date(self.week_start, f"timesheet {self.id} week_start")

    @property
    def week_entries(self) -> tuple[ClockEntry, ...]:
        """Entries inside the week starting `week_start`; all entries when unset."""
        if self.week_start is None:
            return self.entries
        week = week_key(self.week_start)
        return tuple(e for e in self.entries if week_key(e.date) == week)

    @property
    def worked_hours(self) -> float:
        if self.total_hours is not None:
            return self.total_hours
        return sum(e.net_hours for e in self.week_entries)


def average_clock_in(history: list[Timesheet]) -> str | None:
    """Average clock-in time across historical timesheets, as HH:MM."""
    minutes = [require_minutes(e.clock_in) for t in history for e in t.entries if e.clock_in]
    if not minutes:
        return None
    return format_minutes(round(sum(minutes) / len(minutes)))

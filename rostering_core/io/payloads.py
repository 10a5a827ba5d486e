"""Coerce JSON-shaped dicts (MCP tool arguments, meta.json) into engine models.

Every function raises InvalidInputError naming the offending field; the
dataclasses themselves validate value ranges.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..errors import InvalidInputError
from ..jurisdictions import BreakRule, Jurisdiction, get_jurisdiction
from ..models import (
    BreakRecord,
    ClockEntry,
    DayAvailability,
    ExistingShift,
    LeaveInterval,
    Qualification,
    SchedulingPreferences,
    ShiftToFill,
    StaffMember,
    Timesheet,
)
from ..scoring import ScoringConfig, ScoringWeights, weights_for_preset
from ..time_utils import parse_iso_date, weekday_index

_CONFIG_OPTIONS = (
    "include_agency_staff",
    "include_casual_staff",
    "respect_preferences",
    "enforce_qualifications_strictly",
    "max_overtime_percent",
    "cost_ceiling_per_hour",
    "casual_loading_pct",
)


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    if not isinstance(data, Mapping):
        raise InvalidInputError(f"{what} must be an object, got {type(data).__name__}")
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidInputError(f"{what} is missing required field {key!r}")
    return value


def _number(data: Mapping[str, Any], key: str, what: str, default: float | None = None) -> float | None:
    value = data.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{what}.{key} must be a number, got {value!r}") from None


def _strings(value: Any, what: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(v.strip() for v in value.split("|") if v.strip())
    if not isinstance(value, Iterable):
        raise InvalidInputError(f"{what} must be a list of strings")
    return tuple(str(v) for v in value)


# ---- Staff -----------------------------------------------------------------


def qualification_from_value(value: str | Mapping[str, Any]) -> Qualification:
    if isinstance(value, str):
        return Qualification(type=value)
    qual_type = _require(value, "type", "qualification")
    expires = value.get("expires_on") or value.get("expiry_date")
    return Qualification(
        type=str(qual_type),
        expires_on=parse_iso_date(expires, "qualification expires_on") if expires else None,
        expired=bool(value.get("expired", False)),
    )


def availability_from_value(value: Mapping[Any, Any] | Iterable[Mapping[str, Any]] | None) -> dict[int, DayAvailability]:
    """Accept {weekday: {...}} or [{"weekday": ..., ...}] with names or 0-6 (Monday first)."""
    if not value:
        return {}
    if isinstance(value, Mapping):
        items = [(k, v) for k, v in value.items()]
    else:
        items = [(_require(row, "weekday", "availability"), row) for row in value]

    result: dict[int, DayAvailability] = {}
    for day, row in items:
        if isinstance(row, bool):
            row = {"available": row}
        result[weekday_index(day)] = DayAvailability(
            available=bool(row.get("available", True)),
            start=row.get("start") or None,
            end=row.get("end") or None,
        )
    return result


def leave_from_dict(data: Mapping[str, Any]) -> LeaveInterval:
    start = str(_require(data, "start_date", "leave"))
    end = str(data.get("end_date") or start)
    parse_iso_date(start, "leave start_date")
    parse_iso_date(end, "leave end_date")
    return LeaveInterval(
        start_date=start,
        end_date=end,
        status=str(data.get("status") or "approved"),
        type=str(data.get("type") or "annual_leave"),
    )


def preferences_from_dict(data: Mapping[str, Any] | None) -> SchedulingPreferences | None:
    if data is None:
        return None
    return SchedulingPreferences(
        preferred_rooms=_strings(data.get("preferred_rooms"), "preferred_rooms"),
        avoid_rooms=_strings(data.get("avoid_rooms"), "avoid_rooms"),
        prefer_early_shifts=bool(data.get("prefer_early_shifts", False)),
        prefer_late_shifts=bool(data.get("prefer_late_shifts", False)),
    )


def staff_from_dict(data: Mapping[str, Any]) -> StaffMember:
    staff_id = str(_require(data, "id", "staff"))
    what = f"staff {staff_id}"
    hourly = _number(data, "hourly_rate", what, 0.0)
    return StaffMember(
        id=staff_id,
        name=str(data.get("name") or staff_id),
        role=str(data.get("role") or ""),
        employment_type=str(data.get("employment_type") or "permanent"),
        agency=data.get("agency") or None,
        qualifications=tuple(qualification_from_value(q) for q in data.get("qualifications") or ()),
        hourly_rate=hourly,
        overtime_rate=_number(data, "overtime_rate", what, 0.0),
        max_hours_per_week=_number(data, "max_hours_per_week", what, 38.0),
        current_weekly_hours=_number(data, "current_weekly_hours", what),
        availability=availability_from_value(data.get("availability")),
        leave=tuple(leave_from_dict(item) for item in data.get("leave") or ()),
        preferences=preferences_from_dict(data.get("preferences")),
    )


# ---- Shifts ----------------------------------------------------------------


def shift_from_dict(data: Mapping[str, Any]) -> ShiftToFill:
    shift_id = str(_require(data, "id", "shift"))
    what = f"shift {shift_id}"
    return ShiftToFill(
        id=shift_id,
        centre_id=str(data.get("centre_id") or ""),
        room_id=str(data.get("room_id") or ""),
        date=str(_require(data, "date", what)),
        start=str(_require(data, "start", what)),
        end=str(_require(data, "end", what)),
        break_minutes=int(_number(data, "break_minutes", what, 0)),
        required_qualifications=_strings(data.get("required_qualifications"), f"{what}.required_qualifications"),
        minimum_classification=data.get("minimum_classification") or None,
        preferred_role=data.get("preferred_role") or None,
    )


def existing_shift_from_dict(data: Mapping[str, Any]) -> ExistingShift:
    what = "existing shift"
    return ExistingShift(
        staff_id=str(_require(data, "staff_id", what)),
        date=str(parse_iso_date(_require(data, "date", what), f"{what} date")),
        start=str(_require(data, "start", what)),
        end=str(_require(data, "end", what)),
        break_minutes=int(_number(data, "break_minutes", what, 0)),
        id=str(data.get("id") or ""),
    )


# ---- Timesheets ------------------------------------------------------------


def clock_entry_from_dict(data: Mapping[str, Any]) -> ClockEntry:
    entry_id = str(_require(data, "id", "clock entry"))
    what = f"clock entry {entry_id}"
    breaks = []
    for item in data.get("breaks") or ():
        if isinstance(item, (int, float)):
            breaks.append(BreakRecord(duration_minutes=int(item)))
        else:
            breaks.append(
                BreakRecord(
                    duration_minutes=int(_number(item, "duration_minutes", f"{what} break", 0)),
                    paid=bool(item.get("paid", False)),
                )
            )
    return ClockEntry(
        id=entry_id,
        date=str(_require(data, "date", what)),
        clock_in=str(_require(data, "clock_in", what)),
        clock_out=data.get("clock_out") or None,
        breaks=tuple(breaks),
    )


def timesheet_from_dict(data: Mapping[str, Any]) -> Timesheet:
    timesheet_id = str(_require(data, "id", "timesheet"))
    what = f"timesheet {timesheet_id}"
    return Timesheet(
        id=timesheet_id,
        staff_id=str(_require(data, "staff_id", what)),
        entries=tuple(clock_entry_from_dict(e) for e in data.get("entries") or ()),
        base_hourly_rate=_number(data, "base_hourly_rate", what, 0.0),
        is_casual=bool(data.get("is_casual", False)),
        award_type=str(data.get("award_type") or "general"),
        week_start=data.get("week_start") or None,
        total_hours=_number(data, "total_hours", what),
        overtime_hours=_number(data, "overtime_hours", what),
    )


# ---- Jurisdiction & config ---------------------------------------------------


def jurisdiction_from_value(value: str | Mapping[str, Any] | None, default_award: str = "general") -> Jurisdiction:
    """An award type name selects a built-in table; a dict describes a custom jurisdiction."""
    if value is None:
        return get_jurisdiction(default_award)
    if isinstance(value, str):
        return get_jurisdiction(value)

    what = "jurisdiction"
    rules = tuple(
        BreakRule(
            id=str(_require(r, "id", "break rule")),
            name=str(r.get("name") or r["id"]),
            min_work_hours_required=_number(r, "min_work_hours_required", "break rule", 0.0),
            break_duration_minutes=int(_number(r, "break_duration_minutes", "break rule", 0)),
            paid=bool(r.get("paid", False)),
            mandatory=bool(r.get("mandatory", True)),
        )
        for r in value.get("break_rules") or ()
    )
    return Jurisdiction(
        id=str(value.get("id") or "custom"),
        name=str(value.get("name") or "Custom"),
        code=str(value.get("code") or ""),
        award_type=str(value.get("award_type") or default_award),
        max_daily_hours=_number(value, "max_daily_hours", what),
        max_weekly_hours=_number(value, "max_weekly_hours", what),
        overtime_threshold_daily=_number(value, "overtime_threshold_daily", what),
        overtime_threshold_weekly=_number(value, "overtime_threshold_weekly", what),
        overtime_multiplier=_number(value, "overtime_multiplier", what, 1.5),
        double_time_threshold=_number(value, "double_time_threshold", what),
        double_time_multiplier=_number(value, "double_time_multiplier", what, 2.0),
        break_rules=rules,
    )


def config_from_dict(data: Mapping[str, Any] | None, holidays: Iterable[str] = ()) -> ScoringConfig:
    """Build a ScoringConfig from {"preset": ..., "weights": {...}, <options>}.

    Explicit weights win over the preset; holidays from the payload are merged
    with the calendar passed in.
    """
    data = data or {}
    weights_value = data.get("weights")
    if isinstance(weights_value, Mapping):
        try:
            weights = ScoringWeights(**{k: float(v) for k, v in weights_value.items()})
        except (TypeError, ValueError) as exc:
            raise InvalidInputError(f"invalid weights: {exc}") from None
    else:
        weights = weights_for_preset(str(data.get("preset") or weights_value or "balanced"))

    options = {key: data[key] for key in _CONFIG_OPTIONS if data.get(key) is not None}
    calendar = set(holidays) | set(_strings(data.get("holidays"), "holidays"))
    return ScoringConfig(weights=weights, holidays=frozenset(calendar), **options)

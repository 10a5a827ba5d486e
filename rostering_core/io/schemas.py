"""Column constants, pipe helpers, and type coercion for CSV I/O."""

from __future__ import annotations

from ..scoring import BREAKDOWN_KEYS

# ---------------------------------------------------------------------------
# Input CSV column names
# ---------------------------------------------------------------------------

STAFF_COLS = [
    "staff_id",
    "name",
    "role",
    "employment_type",
    "agency",
    "hourly_rate",
    "overtime_rate",
    "max_hours_per_week",
    "current_weekly_hours",
    "preferred_rooms",
    "avoid_rooms",
    "prefer_early_shifts",
    "prefer_late_shifts",
]

AVAILABILITY_COLS = [
    "staff_id",
    "weekday",
    "available",
    "start",
    "end",
]

QUALIFICATIONS_COLS = [
    "staff_id",
    "type",
    "expires_on",
    "expired",
]

LEAVE_COLS = [
    "staff_id",
    "start_date",
    "end_date",
    "status",
    "type",
]

OPEN_SHIFTS_COLS = [
    "shift_id",
    "centre_id",
    "room_id",
    "date",
    "start",
    "end",
    "break_minutes",
    "required_qualifications",
    "minimum_classification",
    "preferred_role",
]

EXISTING_SHIFTS_COLS = [
    "shift_id",
    "staff_id",
    "date",
    "start",
    "end",
    "break_minutes",
]

# ---------------------------------------------------------------------------
# Output sheet column names
# ---------------------------------------------------------------------------

SCORE_COMPONENTS = list(BREAKDOWN_KEYS)

ASSIGNMENTS_COLS = [
    "shift_id",
    "date",
    "time",
    "room_id",
    "staff_id",
    "staff_name",
    "score",
    "estimated_cost",
    "overridden",
    *[f"score_{c}" for c in SCORE_COMPONENTS],
    "issues",
]

ALTERNATIVES_COLS = [
    "shift_id",
    "rank",
    "staff_id",
    "staff_name",
    "employment_type",
    "eligible",
    "score",
    "hourly_rate",
    "estimated_cost",
    *[f"score_{c}" for c in SCORE_COMPONENTS],
    "issues",
]

UNASSIGNED_COLS = [
    "shift_id",
    "date",
    "time",
    "room_id",
    "reason",
    "top_blocked",
]

FLAGS_COLS = [
    "flag_id",
    "type",
    "severity",
    "title",
    "description",
    "entry_date",
]

APPROVAL_COLS = [
    "step",
    "tier",
    "status",
    "sla_deadline",
    "decided_at",
    "notes",
]

# ---------------------------------------------------------------------------
# Pipe-separated field helpers
# ---------------------------------------------------------------------------

PIPE = "|"


def pipe_join(values: list | tuple | None) -> str:
    """Join a list into a pipe-separated string. Empty/None -> empty string."""
    if not values:
        return ""
    return PIPE.join(str(v) for v in values if v is not None and str(v).strip())


def pipe_split(value: str | None) -> list[str]:
    """Split a pipe-separated string into a list. Empty/None -> empty list."""
    if not value or not str(value).strip():
        return []
    return [v.strip() for v in str(value).split(PIPE) if v.strip()]


# ---------------------------------------------------------------------------
# Type coercion helpers for reading CSV values
# ---------------------------------------------------------------------------


def to_float(value: str | None, default: float = 0.0) -> float:
    """Coerce a CSV string to float. Empty/None -> default."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return float(value)
    except (ValueError, TypeError):
        return default


def to_float_or_none(value: str | None) -> float | None:
    if value is None or str(value).strip() == "":
        return None
    try:
        return float(value)
    except (ValueError, TypeError):
        return None


def to_int(value: str | None, default: int = 0) -> int:
    """Coerce a CSV string to int. Empty/None -> default."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return default


def to_bool(value: str | None) -> bool:
    """TRUE/true/1/yes -> True, anything else -> False."""
    if value is None:
        return False
    return str(value).strip().upper() in ("TRUE", "1", "YES")


def to_str_or_none(value: str | None) -> str | None:
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def fmt_bool(value: bool) -> str:
    return "TRUE" if value else "FALSE"

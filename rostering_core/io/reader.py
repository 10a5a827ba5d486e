"""Read a CSV input directory into the models that allocate() expects."""

from __future__ import annotations

import csv
import json
from collections import defaultdict
from dataclasses import dataclass, field, replace
from pathlib import Path

from ..jurisdictions import Jurisdiction
from ..models import ExistingShift, ShiftToFill, StaffMember
from ..scoring import ScoringConfig
from .payloads import (
    availability_from_value,
    config_from_dict,
    existing_shift_from_dict,
    jurisdiction_from_value,
    leave_from_dict,
    qualification_from_value,
    shift_from_dict,
    staff_from_dict,
)
from .schemas import pipe_split, to_bool, to_float_or_none, to_int, to_str_or_none


@dataclass
class RosterInput:
    meta: dict
    staff: list[StaffMember]
    shifts: list[ShiftToFill]
    existing_shifts: list[ExistingShift]
    jurisdiction: Jurisdiction
    config: ScoringConfig
    holidays: frozenset[str] = field(default_factory=frozenset)


def load_input(directory: Path, holidays: frozenset[str] | set[str] = frozenset()) -> RosterInput:
    """Read CSV input dir -> RosterInput.

    meta.json, staff.csv and open_shifts.csv are required and raise
    FileNotFoundError when missing. The remaining CSVs are optional.
    Holidays listed in meta.json are merged with the calendar passed in.
    """
    d = Path(directory)

    # -- meta.json --------------------------------------------------------------
    meta = _read_json(d / "meta.json")
    calendar = frozenset(holidays) | frozenset(meta.get("holidays") or ())
    jurisdiction = jurisdiction_from_value(meta.get("jurisdiction") or meta.get("award_type"))
    config = config_from_dict(meta.get("config"), holidays=calendar)

    # -- per-staff side tables --------------------------------------------------
    availability: dict[str, list[dict]] = defaultdict(list)
    for row in _read_csv(d / "availability.csv", required=False):
        availability[row["staff_id"]].append(
            {
                "weekday": row["weekday"],
                "available": to_bool(row.get("available")),
                "start": to_str_or_none(row.get("start")),
                "end": to_str_or_none(row.get("end")),
            }
        )

    qualifications: dict[str, list] = defaultdict(list)
    for row in _read_csv(d / "qualifications.csv", required=False):
        qualifications[row["staff_id"]].append(
            qualification_from_value(
                {
                    "type": row["type"],
                    "expires_on": to_str_or_none(row.get("expires_on")),
                    "expired": to_bool(row.get("expired")),
                }
            )
        )

    leave: dict[str, list] = defaultdict(list)
    for row in _read_csv(d / "leave.csv", required=False):
        leave[row["staff_id"]].append(
            leave_from_dict(
                {
                    "start_date": row["start_date"],
                    "end_date": to_str_or_none(row.get("end_date")),
                    "status": to_str_or_none(row.get("status")),
                    "type": to_str_or_none(row.get("type")),
                }
            )
        )

    # -- staff.csv --------------------------------------------------------------
    staff = []
    for row in _read_csv(d / "staff.csv"):
        staff_id = row["staff_id"]
        member = staff_from_dict(
            {
                "id": staff_id,
                "name": row.get("name"),
                "role": row.get("role"),
                "employment_type": to_str_or_none(row.get("employment_type")),
                "agency": to_str_or_none(row.get("agency")),
                "hourly_rate": to_float_or_none(row.get("hourly_rate")),
                "overtime_rate": to_float_or_none(row.get("overtime_rate")),
                "max_hours_per_week": to_float_or_none(row.get("max_hours_per_week")),
                "current_weekly_hours": to_float_or_none(row.get("current_weekly_hours")),
                "preferences": _preferences(row),
            }
        )
        staff.append(
            replace(
                member,
                qualifications=tuple(qualifications.get(staff_id, ())),
                availability=availability_from_value(availability.get(staff_id)),
                leave=tuple(leave.get(staff_id, ())),
            )
        )

    # -- open_shifts.csv --------------------------------------------------------
    shifts = [
        shift_from_dict(
            {
                "id": row["shift_id"],
                "centre_id": row.get("centre_id"),
                "room_id": row.get("room_id"),
                "date": row["date"],
                "start": row["start"],
                "end": row["end"],
                "break_minutes": to_int(row.get("break_minutes")),
                "required_qualifications": pipe_split(row.get("required_qualifications")),
                "minimum_classification": to_str_or_none(row.get("minimum_classification")),
                "preferred_role": to_str_or_none(row.get("preferred_role")),
            }
        )
        for row in _read_csv(d / "open_shifts.csv")
    ]

    # -- existing_shifts.csv ----------------------------------------------------
    existing = [
        existing_shift_from_dict(
            {
                "id": row.get("shift_id"),
                "staff_id": row["staff_id"],
                "date": row["date"],
                "start": row["start"],
                "end": row["end"],
                "break_minutes": to_int(row.get("break_minutes")),
            }
        )
        for row in _read_csv(d / "existing_shifts.csv", required=False)
    ]

    return RosterInput(
        meta=meta,
        staff=staff,
        shifts=shifts,
        existing_shifts=existing,
        jurisdiction=jurisdiction,
        config=config,
        holidays=calendar,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _preferences(row: dict[str, str]) -> dict | None:
    keys = ("preferred_rooms", "avoid_rooms", "prefer_early_shifts", "prefer_late_shifts")
    if not any((row.get(k) or "").strip() for k in keys):
        return None
    return {
        "preferred_rooms": pipe_split(row.get("preferred_rooms")),
        "avoid_rooms": pipe_split(row.get("avoid_rooms")),
        "prefer_early_shifts": to_bool(row.get("prefer_early_shifts")),
        "prefer_late_shifts": to_bool(row.get("prefer_late_shifts")),
    }


def _read_json(path: Path) -> dict:
    """Read and parse a JSON file."""
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _read_csv(path: Path, required: bool = True) -> list[dict[str, str]]:
    """Read a CSV file into a list of dicts via csv.DictReader."""
    if not path.exists():
        if required:
            raise FileNotFoundError(f"Required file not found: {path}")
        return []
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f))

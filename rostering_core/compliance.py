"""Compliance validation for realized timesheets.

Flags are regenerated from scratch on every pass; nothing here patches the
result of an earlier validation. Critical flags block submission, warnings
and info flags do not.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from dataclasses import asdict, dataclass, field

from .jurisdictions import Jurisdiction, casual_loading_for
from .models import ClockEntry, Timesheet, average_clock_in
from .pay import price_timesheet
from .time_utils import require_minutes

logger = logging.getLogger(__name__)

SEVERITIES = ("critical", "warning", "info")

EARLY_CLOCK_IN_BEFORE = 5 * 60
LATE_CLOCK_OUT_FROM = 22 * 60
MAX_GROSS_HOURS = 12
PATTERN_DRIFT_MINUTES = 60
EXTENDED_BREAK_FACTOR = 1.5
HIGH_OVERTIME_SHARE = 0.5

WEEKLY_LIMIT_BLOCKER = "Weekly hours exceed legal limit"
HIGH_OVERTIME_WARNING = "High overtime hours flagged for review"


@dataclass(frozen=True)
class ComplianceFlag:
    id: str
    type: str
    severity: str
    title: str
    description: str
    entry_date: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ComplianceValidation:
    is_compliant: bool
    flags: list[ComplianceFlag]
    can_submit: bool
    blocking_issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


# ---- Anomaly detection -----------------------------------------------------


def detect_anomalies(timesheet: Timesheet, history: list[Timesheet] | None = None) -> list[ComplianceFlag]:
    """Flag irregular punches on each entry of a timesheet."""
    flags: list[ComplianceFlag] = []
    usual_clock_in = average_clock_in(history) if history else None

    for entry in timesheet.entries:
        if entry.clock_out is None:
            flags.append(
                ComplianceFlag(
                    id=f"flag-{entry.id}-missing-out",
                    type="missing_clock_out",
                    severity="critical",
                    title="Missing Clock Out",
                    description=f"No clock-out recorded for {entry.date}",
                    entry_date=entry.date,
                )
            )

        clock_in = require_minutes(entry.clock_in)
        if clock_in < EARLY_CLOCK_IN_BEFORE:
            flags.append(
                ComplianceFlag(
                    id=f"flag-{entry.id}-early-in",
                    type="early_clock_in",
                    severity="warning",
                    title="Unusual Early Start",
                    description=f"Clock-in at {entry.clock_in} is unusually early",
                    entry_date=entry.date,
                )
            )

        if entry.clock_out is not None and require_minutes(entry.clock_out) >= LATE_CLOCK_OUT_FROM:
            flags.append(
                ComplianceFlag(
                    id=f"flag-{entry.id}-late-out",
                    type="late_clock_out",
                    severity="warning",
                    title="Unusual Late End",
                    description=f"Clock-out at {entry.clock_out} is unusually late",
                    entry_date=entry.date,
                )
            )

        if entry.gross_hours > MAX_GROSS_HOURS:
            flags.append(
                ComplianceFlag(
                    id=f"flag-{entry.id}-max-hours",
                    type="max_daily_hours",
                    severity="critical",
                    title="Excessive Daily Hours",
                    description=f"{entry.gross_hours:g}h exceeds maximum allowed {MAX_GROSS_HOURS}h",
                    entry_date=entry.date,
                )
            )

        if usual_clock_in is not None:
            drift = clock_in - require_minutes(usual_clock_in)
            if abs(drift) > PATTERN_DRIFT_MINUTES:
                flags.append(
                    ComplianceFlag(
                        id=f"flag-{entry.id}-pattern-drift",
                        type="pattern_drift",
                        severity="info",
                        title="Pattern Deviation",
                        description=f"Clock-in time deviates {abs(drift)} minutes from usual pattern",
                        entry_date=entry.date,
                    )
                )

    return flags


def validate_breaks(entry: ClockEntry, jurisdiction: Jurisdiction) -> list[ComplianceFlag]:
    flags: list[ComplianceFlag] = []
    taken = entry.break_minutes

    for rule in jurisdiction.break_rules:
        if not rule.mandatory or entry.gross_hours < rule.min_work_hours_required:
            continue
        if taken < rule.break_duration_minutes:
            flags.append(
                ComplianceFlag(
                    id=f"flag-{entry.id}-missed-break-{rule.id}",
                    type="missed_break",
                    severity="warning",
                    title="Missed Required Break",
                    description=(
                        f"{rule.name} ({rule.break_duration_minutes}m) not taken. Only {taken}m recorded."
                    ),
                    entry_date=entry.date,
                )
            )
        elif taken > rule.break_duration_minutes * EXTENDED_BREAK_FACTOR:
            flags.append(
                ComplianceFlag(
                    id=f"flag-{entry.id}-exceeded-break-{rule.id}",
                    type="exceeded_break",
                    severity="info",
                    title="Extended Break Time",
                    description=f"Break time ({taken}m) exceeds typical duration",
                    entry_date=entry.date,
                )
            )

    return flags


# ---- Weekly totals -----------------------------------------------------------


def timesheet_hours(
    timesheet: Timesheet,
    jurisdiction: Jurisdiction,
    holidays: Collection[str] = (),
) -> tuple[float, float]:
    """Return (total_hours, overtime_hours), priced through the shared pay core."""
    total = timesheet.worked_hours
    if timesheet.overtime_hours is not None:
        return total, timesheet.overtime_hours

    week = price_timesheet(
        ((e.date, e.net_hours) for e in timesheet.week_entries),
        timesheet.base_hourly_rate,
        timesheet.is_casual,
        casual_loading_for(jurisdiction.award_type),
        jurisdiction.award_type,
        jurisdiction,
        holidays,
    )
    return total, week.weekly_overtime_hours


def validate_timesheet(
    timesheet: Timesheet,
    jurisdiction: Jurisdiction,
    history: list[Timesheet] | None = None,
    holidays: Collection[str] = (),
) -> ComplianceValidation:
    flags = detect_anomalies(timesheet, history)
    for entry in timesheet.entries:
        flags.extend(validate_breaks(entry, jurisdiction))

    blocking_issues: list[str] = []
    warnings: list[str] = []

    total_hours, overtime_hours = timesheet_hours(timesheet, jurisdiction, holidays)
    if total_hours > jurisdiction.max_weekly_hours:
        flags.append(
            ComplianceFlag(
                id="flag-weekly-max",
                type="max_weekly_hours",
                severity="critical",
                title="Weekly Hours Exceeded",
                description=(
                    f"{total_hours:g}h exceeds maximum {jurisdiction.max_weekly_hours:g}h weekly limit"
                ),
            )
        )
        blocking_issues.append(WEEKLY_LIMIT_BLOCKER)

    if overtime_hours > jurisdiction.overtime_threshold_weekly * HIGH_OVERTIME_SHARE:
        flags.append(
            ComplianceFlag(
                id="flag-high-overtime",
                type="overtime_threshold",
                severity="warning",
                title="High Overtime",
                description=f"{overtime_hours:g}h overtime requires additional approval",
            )
        )
        warnings.append(HIGH_OVERTIME_WARNING)

    for flag in flags:
        if flag.severity == "critical" and flag.description not in blocking_issues:
            blocking_issues.append(flag.description)
        elif flag.severity == "warning" and flag.description not in warnings:
            warnings.append(flag.description)

    logger.info(
        "timesheet %s: %d flags, %d blocking, %d warnings",
        timesheet.id,
        len(flags),
        len(blocking_issues),
        len(warnings),
    )
    ok = not blocking_issues
    return ComplianceValidation(
        is_compliant=ok,
        flags=flags,
        can_submit=ok,
        blocking_issues=blocking_issues,
        warnings=warnings,
    )

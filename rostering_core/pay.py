"""Tiered overtime and penalty-rate pricing.

Single source of truth for pay arithmetic. The allocator prices candidates
with `price_shift` before a shift is worked; compliance prices realized
timesheets with `price_timesheet`. Both go through the same daily core so
scheduling-time estimates and payroll figures cannot drift apart.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import asdict, dataclass, field

from .errors import InvalidInputError
from .jurisdictions import Jurisdiction, get_penalty_rates
from .time_utils import DAY_TYPES, classify_day

OVERTIME_15_BAND_HOURS = 2.0


@dataclass
class OvertimeBreakdown:
    ordinary_hours: float
    overtime_15_hours: float
    overtime_20_hours: float
    total_overtime_hours: float
    ordinary_pay: float
    overtime_15_pay: float
    overtime_20_pay: float
    total_overtime_pay: float
    penalty_multiplier: float
    penalty_loading: float
    penalty_pay: float
    casual_loading_amount: float
    gross_pay: float
    effective_hourly_rate: float
    has_overtime: bool
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class WeeklyOvertimeBreakdown:
    total_hours: float
    weekly_ordinary_hours: float
    weekly_overtime_hours: float
    daily_breakdowns: list[OvertimeBreakdown]
    total_ordinary_pay: float
    total_overtime_pay: float
    total_penalty_pay: float
    gross_pay: float
    exceeded_weekly_threshold: bool
    weekly_overtime_hours_from_threshold: float

    def to_dict(self) -> dict:
        return asdict(self)


def _penalty(
    award_type: str,
    day_type: str,
    is_night_shift: bool,
    is_evening_shift: bool,
) -> tuple[float, str]:
    rates = get_penalty_rates(award_type)
    if day_type == "saturday":
        return rates.saturday, "Saturday penalty"
    if day_type == "sunday":
        return rates.sunday, "Sunday penalty"
    if day_type == "public_holiday":
        return rates.public_holiday, "Public holiday penalty"
    # Shift-time loadings only apply on ordinary weekdays.
    if is_night_shift:
        return 1 + rates.night / 100, "Night shift loading"
    if is_evening_shift:
        return 1 + rates.evening / 100, "Evening shift loading"
    return 1.0, ""


def price_shift(
    hours_worked: float,
    base_rate: float,
    is_casual: bool,
    casual_loading_pct: float,
    award_type: str,
    day_type: str,
    is_night_shift: bool,
    is_evening_shift: bool,
    jurisdiction: Jurisdiction,
) -> OvertimeBreakdown:
    """Price one day's worked hours under the jurisdiction's overtime tiers.

    The first two hours past the daily threshold are paid at the overtime
    multiplier, hours past the double-time threshold at the double-time
    multiplier. Casual staff earn overtime like everyone else; their loading
    lifts the base rate instead. Day-type penalties and weekday shift-time
    loadings are mutually exclusive and apply to ordinary hours only.
    """
    if hours_worked < 0:
        raise InvalidInputError(f"hours_worked must be >= 0, got {hours_worked}")
    if base_rate < 0:
        raise InvalidInputError(f"base_rate must be >= 0, got {base_rate}")
    if casual_loading_pct < 0:
        raise InvalidInputError(f"casual_loading_pct must be >= 0, got {casual_loading_pct}")
    if day_type not in DAY_TYPES:
        raise InvalidInputError(f"Unknown day type: {day_type!r}. Choose from {DAY_TYPES}")

    reasons: list[str] = []
    casual_uplift = base_rate * (casual_loading_pct / 100) if is_casual else 0.0
    effective_rate = base_rate + casual_uplift

    threshold = jurisdiction.overtime_threshold_daily
    double_time_start = jurisdiction.double_time_start

    ordinary_hours = min(hours_worked, threshold)
    overtime_15_hours = 0.0
    overtime_20_hours = 0.0
    if hours_worked > threshold:
        overtime_15_hours = min(hours_worked - threshold, OVERTIME_15_BAND_HOURS)
        overtime_20_hours = max(0.0, hours_worked - double_time_start)
        if overtime_15_hours > 0:
            reasons.append(f"Daily threshold of {threshold:g}h exceeded")
        if overtime_20_hours > 0:
            reasons.append(f"Extended overtime after {double_time_start:g}h")

    multiplier, description = _penalty(award_type, day_type, is_night_shift, is_evening_shift)
    loading = multiplier - 1 if multiplier > 1 else 0.0
    if loading > 0 and description:
        reasons.append(description)

    ordinary_pay = ordinary_hours * effective_rate * multiplier
    penalty_pay = ordinary_hours * effective_rate * loading
    overtime_15_pay = overtime_15_hours * effective_rate * jurisdiction.overtime_multiplier
    overtime_20_pay = overtime_20_hours * effective_rate * jurisdiction.double_time_multiplier
    total_overtime_pay = overtime_15_pay + overtime_20_pay
    gross_pay = ordinary_pay + total_overtime_pay
    total_overtime_hours = overtime_15_hours + overtime_20_hours

    return OvertimeBreakdown(
        ordinary_hours=round(ordinary_hours, 4),
        overtime_15_hours=round(overtime_15_hours, 4),
        overtime_20_hours=round(overtime_20_hours, 4),
        total_overtime_hours=round(total_overtime_hours, 4),
        ordinary_pay=round(ordinary_pay, 2),
        overtime_15_pay=round(overtime_15_pay, 2),
        overtime_20_pay=round(overtime_20_pay, 2),
        total_overtime_pay=round(total_overtime_pay, 2),
        penalty_multiplier=multiplier,
        penalty_loading=round(loading, 4),
        penalty_pay=round(penalty_pay, 2),
        casual_loading_amount=round(casual_uplift * ordinary_hours, 2),
        gross_pay=round(gross_pay, 2),
        effective_hourly_rate=round(gross_pay / hours_worked, 4) if hours_worked > 0 else 0.0,
        has_overtime=total_overtime_hours > 0,
        reasons=reasons,
    )


def _summarise_week(
    total_hours: float,
    daily: list[OvertimeBreakdown],
    jurisdiction: Jurisdiction,
) -> WeeklyOvertimeBreakdown:
    weekly_ordinary = sum(d.ordinary_hours for d in daily)
    weekly_overtime = sum(d.total_overtime_hours for d in daily)

    # Days each under the daily trigger can still add up past the weekly one.
    from_threshold = 0.0
    exceeded = weekly_ordinary > jurisdiction.overtime_threshold_weekly
    if exceeded:
        from_threshold = weekly_ordinary - jurisdiction.overtime_threshold_weekly
        weekly_overtime += from_threshold
        weekly_ordinary = jurisdiction.overtime_threshold_weekly

    return WeeklyOvertimeBreakdown(
        total_hours=round(total_hours, 4),
        weekly_ordinary_hours=round(weekly_ordinary, 4),
        weekly_overtime_hours=round(weekly_overtime, 4),
        daily_breakdowns=daily,
        total_ordinary_pay=round(sum(d.ordinary_pay for d in daily), 2),
        total_overtime_pay=round(sum(d.total_overtime_pay for d in daily), 2),
        total_penalty_pay=round(sum(d.penalty_pay for d in daily), 2),
        gross_pay=round(sum(d.gross_pay for d in daily), 2),
        exceeded_weekly_threshold=exceeded,
        weekly_overtime_hours_from_threshold=round(from_threshold, 4),
    )


def price_week(
    daily_hours: Sequence[float],
    base_rate: float,
    is_casual: bool,
    casual_loading_pct: float,
    award_type: str,
    jurisdiction: Jurisdiction,
    day_types: Sequence[str] | None = None,
) -> WeeklyOvertimeBreakdown:
    """Price a Monday-first week of seven daily hour totals."""
    if len(daily_hours) != 7:
        raise InvalidInputError(f"price_week expects 7 daily totals, got {len(daily_hours)}")
    if day_types is None:
        day_types = ("weekday",) * 5 + ("saturday", "sunday")
    if len(day_types) != 7:
        raise InvalidInputError(f"price_week expects 7 day types, got {len(day_types)}")

    daily = [
        price_shift(hours, base_rate, is_casual, casual_loading_pct, award_type, day_type, False, False, jurisdiction)
        for hours, day_type in zip(daily_hours, day_types)
    ]
    return _summarise_week(sum(daily_hours), daily, jurisdiction)


def price_timesheet(
    entries: Iterable[tuple[str, float]],
    base_rate: float,
    is_casual: bool,
    casual_loading_pct: float,
    award_type: str,
    jurisdiction: Jurisdiction,
    holidays: Collection[str] = (),
) -> WeeklyOvertimeBreakdown:
    """Price dated (date, net_hours) entries, classifying each date's day type."""
    rows = list(entries)
    daily = [
        price_shift(
            hours,
            base_rate,
            is_casual,
            casual_loading_pct,
            award_type,
            classify_day(datum, holidays),
            False,
            False,
            jurisdiction,
        )
        for datum, hours in rows
    ]
    return _summarise_week(sum(hours for _, hours in rows), daily, jurisdiction)

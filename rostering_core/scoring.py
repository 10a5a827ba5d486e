"""Weighted eligibility scoring for one (staff, shift) pair.

Hard filters run first and short-circuit to an ineligible zero score; the
remaining candidates get five weighted sub-scores (cost, availability,
qualifications, fairness, preference) combined into a 0-100 figure of merit.
A sixth sub-score, penalty, is reported for display and not weighted.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Collection, Iterable
from dataclasses import asdict, dataclass, field, replace
from datetime import date

from .availability import check_availability
from .errors import InvalidInputError
from .jurisdictions import Jurisdiction
from .models import ExistingShift, ShiftToFill, StaffMember
from .pay import OvertimeBreakdown, price_shift
from .qualifications import check_qualifications
from .time_utils import classify_day, require_minutes, shift_time_flags, week_key

logger = logging.getLogger(__name__)

BREAKDOWN_KEYS = ("availability", "qualifications", "cost", "fairness", "preference", "penalty")

OVERTIME_COST_PENALTY = 20
OVERTIME_RATES_ISSUE = "Would incur overtime rates"
HIGH_PENALTY_LOADING = 0.2
EARLY_SHIFT_BEFORE = 9 * 60
LATE_SHIFT_FROM = 12 * 60

PREFERENCE_NEUTRAL = 60.0
PREFERENCE_UNKNOWN = 50.0
PREFERENCE_PREFERRED_ROOM = 100.0
PREFERENCE_AVOIDED_ROOM = 20.0
PREFERENCE_SHIFT_TIME_BONUS = 20.0


@dataclass(frozen=True)
class ScoringWeights:
    cost: float
    availability: float
    qualifications: float
    fairness: float
    preference: float

    def __post_init__(self) -> None:
        values = asdict(self)
        if any(v < 0 for v in values.values()):
            raise InvalidInputError(f"weights must be non-negative: {values}")
        if not math.isclose(sum(values.values()), 1.0, abs_tol=1e-3):
            raise InvalidInputError(f"weights must sum to 1.0, got {sum(values.values()):.3f}")

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


WEIGHT_PRESETS: dict[str, ScoringWeights] = {
    "balanced": ScoringWeights(cost=0.25, availability=0.25, qualifications=0.2, fairness=0.2, preference=0.1),
    "cost_optimized": ScoringWeights(cost=0.5, availability=0.2, qualifications=0.15, fairness=0.1, preference=0.05),
    "quality_first": ScoringWeights(cost=0.1, availability=0.2, qualifications=0.4, fairness=0.15, preference=0.15),
    "fair_distribution": ScoringWeights(cost=0.15, availability=0.2, qualifications=0.15, fairness=0.4, preference=0.1),
}


def weights_for_preset(name: str) -> ScoringWeights:
    try:
        return WEIGHT_PRESETS[name]
    except KeyError:
        raise InvalidInputError(
            f"Unknown weight preset: {name!r}. Choose from {tuple(WEIGHT_PRESETS)}"
        ) from None


@dataclass(frozen=True)
class ScoringConfig:
    weights: ScoringWeights = field(default_factory=lambda: WEIGHT_PRESETS["balanced"])
    include_agency_staff: bool = False
    include_casual_staff: bool = True
    respect_preferences: bool = True
    enforce_qualifications_strictly: bool = True
    max_overtime_percent: float = 10.0
    cost_ceiling_per_hour: float = 100.0
    casual_loading_pct: float = 25.0
    holidays: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if not 0 <= self.max_overtime_percent <= 50:
            raise InvalidInputError(f"max_overtime_percent must be within 0-50, got {self.max_overtime_percent}")
        if self.cost_ceiling_per_hour <= 0:
            raise InvalidInputError("cost_ceiling_per_hour must be positive")
        if self.casual_loading_pct < 0:
            raise InvalidInputError("casual_loading_pct must be >= 0")

    @classmethod
    def from_preset(cls, name: str = "balanced", **options) -> ScoringConfig:
        return cls(weights=weights_for_preset(name), **options)

    def with_holidays(self, holidays: Collection[str]) -> ScoringConfig:
        return replace(self, holidays=frozenset(holidays))


@dataclass
class CandidateScore:
    staff_id: str
    staff_name: str
    score: int
    breakdown: dict[str, float]
    is_eligible: bool
    issues: list[str]
    hourly_rate: float
    estimated_cost: float
    employment_type: str
    pay: OvertimeBreakdown | None = None

    def to_dict(self) -> dict:
        return asdict(self)


def _zero_breakdown() -> dict[str, float]:
    return {key: 0.0 for key in BREAKDOWN_KEYS}


def _ineligible(staff: StaffMember, issue: str | list[str]) -> CandidateScore:
    issues = [issue] if isinstance(issue, str) else list(issue)
    logger.debug("staff %s ineligible: %s", staff.id, "; ".join(issues))
    return CandidateScore(
        staff_id=staff.id,
        staff_name=staff.name,
        score=0,
        breakdown=_zero_breakdown(),
        is_eligible=False,
        issues=issues,
        hourly_rate=staff.hourly_rate,
        estimated_cost=0.0,
        employment_type=staff.employment_type,
    )


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def committed_hours(
    staff: StaffMember,
    existing_shifts: Iterable[ExistingShift],
    week: str | None = None,
    *,
    recorded_week: str | None = None,
) -> float:
    """Hours already committed in `week` (a Monday ISO date; None means all shifts).

    `current_weekly_hours` is the recorded figure for `recorded_week` and wins
    there; any other week is summed from the existing shifts that fall in it.
    """
    if staff.current_weekly_hours is not None and (week is None or recorded_week in (None, week)):
        return float(staff.current_weekly_hours)
    return sum(
        s.net_hours
        for s in existing_shifts
        if s.staff_id == staff.id and (week is None or week_key(s.date) == week)
    )


def preference_score(staff: StaffMember, shift: ShiftToFill, respect_preferences: bool) -> tuple[float, list[str]]:
    prefs = staff.preferences
    if not respect_preferences or prefs is None:
        return PREFERENCE_UNKNOWN, []

    issues: list[str] = []
    if shift.room_id in prefs.preferred_rooms:
        score = PREFERENCE_PREFERRED_ROOM
    elif shift.room_id in prefs.avoid_rooms:
        score = PREFERENCE_AVOIDED_ROOM
        issues.append("Prefers to avoid this room")
    else:
        score = PREFERENCE_NEUTRAL

    start = require_minutes(shift.start)
    if prefs.prefer_early_shifts and start < EARLY_SHIFT_BEFORE:
        score += PREFERENCE_SHIFT_TIME_BONUS
    elif prefs.prefer_late_shifts and start >= LATE_SHIFT_FROM:
        score += PREFERENCE_SHIFT_TIME_BONUS
    return min(100.0, score), issues


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_candidate(
    staff: StaffMember,
    shift: ShiftToFill,
    existing_shifts: Iterable[ExistingShift],
    config: ScoringConfig,
    jurisdiction: Jurisdiction,
    *,
    run_shifts: Iterable[ExistingShift] = (),
    recorded_week: str | None = None,
) -> CandidateScore:
    """Score one staff member for one shift.

    `run_shifts` are shifts already committed to this staff member earlier in
    the same allocation run; they count towards overlap and, within the
    shift's own week, towards committed hours. `recorded_week` names the week
    `current_weekly_hours` was recorded for (default: the shift's week).
    """
    existing = list(existing_shifts)
    in_run = [s for s in run_shifts if s.staff_id == staff.id]
    week = week_key(shift.date)

    if not config.include_casual_staff and staff.is_casual:
        return _ineligible(staff, "Casual staff excluded")
    if not config.include_agency_staff and staff.is_agency:
        return _ineligible(staff, "Agency staff excluded")

    avail = check_availability(staff, shift.date, shift.start, shift.end, existing + in_run)
    if not avail.available:
        return _ineligible(staff, avail.reason or "Not available")

    qual = check_qualifications(
        staff,
        shift.required_qualifications,
        shift.preferred_role,
        minimum_classification=shift.minimum_classification,
        strict=config.enforce_qualifications_strictly,
        on=date.fromisoformat(shift.date),
    )
    if not qual.qualified:
        return _ineligible(staff, qual.issues)

    issues = list(qual.issues)
    shift_hours = shift.net_hours
    current_hours = committed_hours(staff, existing, week, recorded_week=recorded_week) + sum(
        s.net_hours for s in in_run if week_key(s.date) == week
    )
    projected_hours = current_hours + shift_hours
    max_allowed = staff.max_hours_per_week * (1 + config.max_overtime_percent / 100)
    if projected_hours > max_allowed:
        return _ineligible(
            staff,
            f"Would exceed max hours ({current_hours:.1f} + {shift_hours:.1f} > {max_allowed:.1f})",
        )

    is_overtime = projected_hours > staff.max_hours_per_week
    rate = (staff.overtime_rate or staff.hourly_rate) if is_overtime else staff.hourly_rate
    is_night, is_evening = shift_time_flags(shift.start, shift.end)
    pay = price_shift(
        shift_hours,
        rate,
        staff.is_casual,
        config.casual_loading_pct,
        jurisdiction.award_type,
        classify_day(shift.date, config.holidays),
        is_night,
        is_evening,
        jurisdiction,
    )

    breakdown = _zero_breakdown()
    breakdown["availability"] = 100.0
    breakdown["qualifications"] = qual.score

    ceiling = shift_hours * config.cost_ceiling_per_hour
    cost = 100.0 * (1 - pay.gross_pay / ceiling)
    if is_overtime:
        issues.append(OVERTIME_RATES_ISSUE)
        cost -= OVERTIME_COST_PENALTY
    breakdown["cost"] = _clamp(cost)

    loading = pay.penalty_multiplier - 1
    breakdown["penalty"] = _clamp(100 - loading * 200)
    if loading > HIGH_PENALTY_LOADING:
        issues.append(f"High penalty rates ({loading * 100:.0f}% loading)")

    breakdown["fairness"] = _clamp(100.0 * (1 - current_hours / staff.max_hours_per_week))

    pref, pref_issues = preference_score(staff, shift, config.respect_preferences)
    breakdown["preference"] = pref
    issues.extend(pref_issues)

    weights = config.weights.as_dict()
    total = sum(breakdown[key] * weight for key, weight in weights.items())

    return CandidateScore(
        staff_id=staff.id,
        staff_name=staff.name,
        score=int(_clamp(_round_half_up(total))),
        breakdown={k: round(v, 2) for k, v in breakdown.items()},
        is_eligible=True,
        issues=issues,
        hourly_rate=rate,
        estimated_cost=pay.gross_pay,
        employment_type=staff.employment_type,
        pay=pay,
    )

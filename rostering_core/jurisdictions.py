"""Award and jurisdiction tables: hour limits, break rules, overtime tiers, penalty rates.

One `Jurisdiction` is selected per award type and treated as read-only for
the duration of a computation.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .errors import InvalidInputError

AWARD_TYPES = ("children_services", "healthcare", "hospitality", "retail", "general")


@dataclass(frozen=True)
class BreakRule:
    id: str
    name: str
    min_work_hours_required: float
    break_duration_minutes: int
    paid: bool = False
    mandatory: bool = True


@dataclass(frozen=True)
class PenaltyRates:
    saturday: float
    sunday: float
    public_holiday: float
    # percentage loadings
    evening: float
    night: float
    early_morning: float = 0.0


@dataclass(frozen=True)
class Jurisdiction:
    id: str
    name: str
    code: str
    award_type: str
    max_daily_hours: float
    max_weekly_hours: float
    overtime_threshold_daily: float
    overtime_threshold_weekly: float
    overtime_multiplier: float = 1.5
    double_time_threshold: float | None = None
    double_time_multiplier: float = 2.0
    break_rules: tuple[BreakRule, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        for name in ("max_daily_hours", "max_weekly_hours", "overtime_threshold_daily", "overtime_threshold_weekly"):
            value = getattr(self, name)
            if value is None or value <= 0:
                raise InvalidInputError(f"jurisdiction {self.id}: {name} must be positive, got {value!r}")
        if self.overtime_multiplier < 1 or self.double_time_multiplier < 1:
            raise InvalidInputError(f"jurisdiction {self.id}: overtime multipliers must be >= 1")
        if self.double_time_threshold is not None and self.double_time_threshold < self.overtime_threshold_daily:
            raise InvalidInputError(
                f"jurisdiction {self.id}: double_time_threshold {self.double_time_threshold} "
                f"is below the daily overtime threshold {self.overtime_threshold_daily}"
            )
        if self.award_type not in AWARD_TYPES:
            raise InvalidInputError(f"jurisdiction {self.id}: unknown award_type {self.award_type!r}")

    @property
    def double_time_start(self) -> float:
        if self.double_time_threshold is None:
            return self.overtime_threshold_daily + 2
        return self.double_time_threshold


# ---- Award tables ----------------------------------------------------------

_STANDARD_BREAKS = (
    BreakRule("au-meal-break", "Meal Break", 5, 30, paid=False, mandatory=True),
    BreakRule("au-rest-break-1", "Rest Break (Morning)", 4, 10, paid=True, mandatory=True),
    BreakRule("au-rest-break-2", "Rest Break (Afternoon)", 7, 10, paid=True, mandatory=True),
)

JURISDICTIONS: dict[str, Jurisdiction] = {
    "general": Jurisdiction(
        id="au-federal",
        name="Australia Federal (Modern Awards)",
        code="AU-NES",
        award_type="general",
        max_daily_hours=10,
        max_weekly_hours=38,
        overtime_threshold_daily=8,
        overtime_threshold_weekly=38,
        double_time_threshold=10,
        break_rules=_STANDARD_BREAKS,
    ),
    "children_services": Jurisdiction(
        id="au-children-services",
        name="Children's Services Award 2020",
        code="MA000120",
        award_type="children_services",
        max_daily_hours=10,
        max_weekly_hours=38,
        overtime_threshold_daily=8,
        overtime_threshold_weekly=38,
        double_time_threshold=10,
        break_rules=(
            BreakRule("cs-meal-break", "Meal Break", 5, 30, paid=False),
            BreakRule("cs-rest-break", "Rest Break", 4, 10, paid=True),
        ),
    ),
    "healthcare": Jurisdiction(
        id="au-healthcare",
        name="Health Professionals Award 2020",
        code="MA000027",
        award_type="healthcare",
        max_daily_hours=12,
        max_weekly_hours=38,
        overtime_threshold_daily=8,
        overtime_threshold_weekly=38,
        double_time_threshold=10,
        break_rules=(
            BreakRule("hc-meal-break", "Meal Break", 5, 30, paid=False),
            BreakRule("hc-rest-break-1", "Rest Break", 4, 10, paid=True),
            BreakRule("hc-rest-break-2", "Additional Rest Break", 10, 20, paid=True),
        ),
    ),
    "hospitality": Jurisdiction(
        id="au-hospitality",
        name="Hospitality Industry Award 2020",
        code="MA000009",
        award_type="hospitality",
        max_daily_hours=11.5,
        max_weekly_hours=38,
        overtime_threshold_daily=8,
        overtime_threshold_weekly=38,
        double_time_threshold=10,
        break_rules=(
            BreakRule("hosp-meal-break", "Meal Break", 5, 30, paid=False),
            BreakRule("hosp-rest-break", "Rest Break", 4, 10, paid=True, mandatory=False),
        ),
    ),
    "retail": Jurisdiction(
        id="au-retail",
        name="General Retail Industry Award 2020",
        code="MA000004",
        award_type="retail",
        max_daily_hours=9,
        max_weekly_hours=38,
        overtime_threshold_daily=9,
        overtime_threshold_weekly=38,
        double_time_threshold=11,
        break_rules=(
            BreakRule("retail-meal-break", "Meal Break", 5, 30, paid=False),
            BreakRule("retail-rest-break", "Rest Break", 4, 10, paid=True),
        ),
    ),
}

PENALTY_RATES: dict[str, PenaltyRates] = {
    "children_services": PenaltyRates(saturday=1.5, sunday=2.0, public_holiday=2.5, evening=10, night=15, early_morning=15),
    "healthcare": PenaltyRates(saturday=1.5, sunday=1.75, public_holiday=2.5, evening=12.5, night=15, early_morning=12.5),
    "hospitality": PenaltyRates(saturday=1.25, sunday=1.5, public_holiday=2.5, evening=10, night=15),
    "retail": PenaltyRates(saturday=1.25, sunday=1.5, public_holiday=2.5, evening=15, night=15),
    "general": PenaltyRates(saturday=1.5, sunday=2.0, public_holiday=2.5, evening=10, night=15, early_morning=15),
}

CASUAL_LOADING_PCT: dict[str, float] = {award: 25.0 for award in AWARD_TYPES}


def _require_award(award_type: str) -> str:
    if award_type not in AWARD_TYPES:
        raise InvalidInputError(f"Unknown award type: {award_type!r}. Choose from {AWARD_TYPES}")
    return award_type


def get_jurisdiction(award_type: str = "general") -> Jurisdiction:
    return JURISDICTIONS[_require_award(award_type)]


def get_penalty_rates(award_type: str = "general") -> PenaltyRates:
    return PENALTY_RATES[_require_award(award_type)]


def casual_loading_for(award_type: str = "general") -> float:
    return CASUAL_LOADING_PCT[_require_award(award_type)]

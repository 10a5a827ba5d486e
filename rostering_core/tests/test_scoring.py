"""Tests for weighted eligibility scoring."""

from __future__ import annotations

import pytest

from rostering_core.errors import InvalidInputError
from rostering_core.jurisdictions import get_jurisdiction
from rostering_core.models import (
    DayAvailability,
    ExistingShift,
    Qualification,
    SchedulingPreferences,
    ShiftToFill,
    StaffMember,
)
from rostering_core.scoring import (
    BREAKDOWN_KEYS,
    WEIGHT_PRESETS,
    ScoringConfig,
    ScoringWeights,
    score_candidate,
    weights_for_preset,
)

MONDAY = "2026-10-19"
SATURDAY = "2026-10-24"
GENERAL = get_jurisdiction("general")


def _shift(**overrides) -> ShiftToFill:
    values = {
        "id": "SH1",
        "centre_id": "C1",
        "room_id": "room-a",
        "date": MONDAY,
        "start": "09:00",
        "end": "15:00",
        "required_qualifications": ("first_aid",),
    }
    values.update(overrides)
    return ShiftToFill(**values)


def _staff(**overrides) -> StaffMember:
    values = {
        "id": "X",
        "name": "Staff X",
        "role": "educator",
        "qualifications": (Qualification("first_aid"),),
        "hourly_rate": 28.0,
        "overtime_rate": 42.0,
        "current_weekly_hours": 20.0,
        "availability": {0: DayAvailability(True, "08:00", "16:00"), 5: DayAvailability(True)},
    }
    values.update(overrides)
    return StaffMember(**values)


def _score(staff=None, shift=None, existing=(), config=None):
    return score_candidate(staff or _staff(), shift or _shift(), existing, config or ScoringConfig(), GENERAL)


class TestWeights:
    def test_preset_is_stable(self):
        assert weights_for_preset("balanced") == weights_for_preset("balanced")
        assert weights_for_preset("balanced").as_dict() == {
            "cost": 0.25,
            "availability": 0.25,
            "qualifications": 0.2,
            "fairness": 0.2,
            "preference": 0.1,
        }

    def test_unknown_preset(self):
        with pytest.raises(InvalidInputError):
            weights_for_preset("cheapest")

    def test_weights_must_sum_to_one(self):
        with pytest.raises(InvalidInputError):
            ScoringWeights(cost=0.5, availability=0.5, qualifications=0.5, fairness=0, preference=0)

    def test_weights_must_be_non_negative(self):
        with pytest.raises(InvalidInputError):
            ScoringWeights(cost=1.2, availability=-0.2, qualifications=0, fairness=0, preference=0)

    def test_overtime_percent_range(self):
        with pytest.raises(InvalidInputError):
            ScoringConfig(max_overtime_percent=60)

    def test_from_preset(self):
        config = ScoringConfig.from_preset("quality_first", include_agency_staff=True)
        assert config.weights is WEIGHT_PRESETS["quality_first"]
        assert config.include_agency_staff is True


class TestEligibleScore:
    def test_breakdown(self):
        result = _score()
        assert result.is_eligible is True
        assert result.breakdown["availability"] == 100
        assert result.breakdown["qualifications"] == 100
        assert result.breakdown["cost"] == 72.0
        assert result.breakdown["fairness"] == pytest.approx(47.37, abs=0.01)
        assert result.breakdown["preference"] == 50
        assert result.breakdown["penalty"] == 100
        assert set(result.breakdown) == set(BREAKDOWN_KEYS)

    def test_weighted_total(self):
        result = _score()
        assert result.score == 77
        assert result.estimated_cost == 168.0
        assert result.hourly_rate == 28.0
        assert result.pay is not None and result.pay.gross_pay == 168.0

    def test_deterministic(self):
        assert _score().to_dict() == _score().to_dict()

    @pytest.mark.parametrize("preset", sorted(WEIGHT_PRESETS))
    def test_every_preset_in_range(self, preset):
        result = _score(config=ScoringConfig.from_preset(preset))
        assert 0 <= result.score <= 100

    def test_committed_hours_from_existing_shifts(self):
        staff = _staff(current_weekly_hours=None)
        existing = [ExistingShift("X", "2026-10-20", "09:00", "17:00", break_minutes=30)]
        result = _score(staff=staff, existing=existing)
        assert result.breakdown["fairness"] == pytest.approx(100 * (1 - 7.5 / 38), abs=0.01)

    def test_hours_scoped_to_shift_week(self):
        staff = _staff(current_weekly_hours=None)
        existing = [ExistingShift("X", "2026-10-27", "09:00", "17:00")]
        run_shifts = [ExistingShift("X", "2026-10-16", "09:00", "17:00")]
        result = score_candidate(staff, _shift(), existing, ScoringConfig(), GENERAL, run_shifts=run_shifts)
        assert result.breakdown["fairness"] == 100.0

    def test_recorded_hours_belong_to_their_week(self):
        staff = _staff(current_weekly_hours=38.0)
        result = score_candidate(staff, _shift(), [], ScoringConfig(), GENERAL, recorded_week="2026-10-12")
        assert result.is_eligible is True
        assert result.breakdown["fairness"] == 100.0
        same_week = score_candidate(staff, _shift(), [], ScoringConfig(), GENERAL, recorded_week=MONDAY)
        assert same_week.is_eligible is False


class TestIneligible:
    def _assert_zeroed(self, result):
        assert result.is_eligible is False
        assert result.score == 0
        assert result.issues
        assert all(v == 0 for v in result.breakdown.values())

    def test_missing_qualification_strict(self):
        result = _score(staff=_staff(id="Y", qualifications=()))
        self._assert_zeroed(result)
        assert result.issues == ["Missing: First Aid Certificate"]

    def test_unavailable(self):
        result = _score(shift=_shift(date="2026-10-20"))
        self._assert_zeroed(result)
        assert result.issues == ["Not available on this day"]

    def test_over_overtime_cap(self):
        result = _score(staff=_staff(current_weekly_hours=38.0))
        self._assert_zeroed(result)
        assert result.issues == ["Would exceed max hours (38.0 + 6.0 > 41.8)"]

    def test_casual_excluded(self):
        result = _score(staff=_staff(employment_type="casual"), config=ScoringConfig(include_casual_staff=False))
        self._assert_zeroed(result)
        assert result.issues == ["Casual staff excluded"]

    def test_agency_excluded_by_default(self):
        result = _score(staff=_staff(agency="Hays Recruitment"))
        self._assert_zeroed(result)
        assert result.issues == ["Agency staff excluded"]

    def test_agency_included(self):
        result = _score(staff=_staff(agency="Hays Recruitment"), config=ScoringConfig(include_agency_staff=True))
        assert result.is_eligible is True

    def test_lenient_mode_keeps_candidate(self):
        config = ScoringConfig(enforce_qualifications_strictly=False)
        result = _score(staff=_staff(id="Y", qualifications=()), config=config)
        assert result.is_eligible is True
        assert result.breakdown["qualifications"] == 80
        assert "Missing 1 qualification(s)" in result.issues


class TestCostAndPenalty:
    def test_overtime_rate_and_penalty(self):
        result = _score(staff=_staff(current_weekly_hours=36.0), shift=_shift(end="13:00"))
        assert result.is_eligible is True
        assert result.hourly_rate == 42.0
        assert result.estimated_cost == 168.0
        assert result.breakdown["cost"] == pytest.approx(38.0)
        assert "Would incur overtime rates" in result.issues

    def test_overtime_falls_back_to_hourly_rate(self):
        staff = _staff(current_weekly_hours=36.0, overtime_rate=0.0)
        result = _score(staff=staff, shift=_shift(end="13:00"))
        assert result.hourly_rate == 28.0

    def test_saturday_penalty(self):
        result = _score(shift=_shift(date=SATURDAY))
        assert result.breakdown["penalty"] == 0
        assert "High penalty rates (50% loading)" in result.issues
        assert result.estimated_cost == 252.0

    def test_public_holiday_from_config_calendar(self):
        config = ScoringConfig().with_holidays({MONDAY})
        result = _score(config=config)
        assert result.pay.penalty_multiplier == 2.5

    def test_casual_loading_raises_cost(self):
        result = _score(staff=_staff(employment_type="casual"))
        assert result.estimated_cost == 210.0


class TestPreference:
    def test_preferred_room(self):
        staff = _staff(preferences=SchedulingPreferences(preferred_rooms=("room-a",)))
        assert _score(staff=staff).breakdown["preference"] == 100

    def test_avoided_room(self):
        staff = _staff(preferences=SchedulingPreferences(avoid_rooms=("room-a",)))
        result = _score(staff=staff)
        assert result.breakdown["preference"] == 20
        assert "Prefers to avoid this room" in result.issues

    def test_early_shift_bonus(self):
        staff = _staff(preferences=SchedulingPreferences(prefer_early_shifts=True))
        result = _score(staff=staff, shift=_shift(start="08:00", end="14:00"))
        assert result.breakdown["preference"] == 80

    def test_late_shift_bonus_capped(self):
        staff = _staff(preferences=SchedulingPreferences(preferred_rooms=("room-a",), prefer_late_shifts=True))
        result = _score(staff=staff, shift=_shift(start="12:00", end="16:00"))
        assert result.breakdown["preference"] == 100

    def test_preferences_ignored(self):
        staff = _staff(preferences=SchedulingPreferences(avoid_rooms=("room-a",)))
        result = _score(staff=staff, config=ScoringConfig(respect_preferences=False))
        assert result.breakdown["preference"] == 50
        assert "Prefers to avoid this room" not in result.issues

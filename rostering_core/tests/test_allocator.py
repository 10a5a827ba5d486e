"""Tests for the greedy allocator, manual overrides and run stats."""

from __future__ import annotations

from collections import Counter

import pytest

from rostering_core.allocator import (
    NO_ELIGIBLE_STAFF,
    AllocationLedger,
    allocate,
    apply_override,
    confirm_assignments,
    hours_overview,
)
from rostering_core.errors import InvalidInputError
from rostering_core.jurisdictions import get_jurisdiction
from rostering_core.models import DayAvailability, ExistingShift, Qualification, ShiftToFill, StaffMember
from rostering_core.scoring import ScoringConfig

MONDAY = "2026-10-19"
TUESDAY = "2026-10-20"
GENERAL = get_jurisdiction("general")
ALL_WEEK = {day: DayAvailability(True) for day in range(7)}


def _shift(shift_id, datum=MONDAY, start="09:00", end="15:00", **kwargs) -> ShiftToFill:
    return ShiftToFill(
        id=shift_id, centre_id="C1", room_id=kwargs.pop("room_id", "room-a"),
        date=datum, start=start, end=end, **kwargs,
    )


def _staff(staff_id, **overrides) -> StaffMember:
    values = {
        "id": staff_id,
        "name": f"Staff {staff_id}",
        "hourly_rate": 30.0,
        "current_weekly_hours": 10.0,
        "availability": ALL_WEEK,
    }
    values.update(overrides)
    return StaffMember(**values)


@pytest.fixture
def scenario_run():
    """One Room A shift needing first aid; X qualifies, Y does not."""
    shift = _shift("SH1", required_qualifications=("first_aid",))
    staff_x = _staff(
        "X",
        qualifications=(Qualification("first_aid"),),
        current_weekly_hours=20.0,
        hourly_rate=28.0,
        availability={0: DayAvailability(True, "08:00", "16:00")},
    )
    staff_y = _staff("Y", availability={0: DayAvailability(True, "09:00", "15:00")})
    return allocate([shift], [staff_y, staff_x], [], ScoringConfig(), GENERAL)


class TestScenario:
    def test_qualified_staff_assigned(self, scenario_run):
        result = scenario_run.result_for("SH1")
        assert result.staff_id == "X"
        assert result.staff_name == "Staff X"
        assert result.score == 77
        assert result.time == "09:00 - 15:00"

    def test_unqualified_staff_in_alternatives(self, scenario_run):
        result = scenario_run.result_for("SH1")
        assert [c.staff_id for c in result.alternatives] == ["Y"]
        alt = result.alternatives[0]
        assert alt.is_eligible is False
        assert alt.issues == ["Missing: First Aid Certificate"]

    def test_stats(self, scenario_run):
        stats = scenario_run.stats
        assert (stats.assigned, stats.unassigned, stats.total) == (1, 0, 1)
        assert stats.fill_rate == 100.0
        assert stats.total_estimated_cost == 168.0

    def test_lenient_mode_still_prefers_qualified(self):
        shift = _shift("SH1", required_qualifications=("first_aid",))
        staff = [_staff("X", qualifications=(Qualification("first_aid"),)), _staff("Y")]
        run = allocate([shift], staff, [], ScoringConfig(enforce_qualifications_strictly=False), GENERAL)
        result = run.results[0]
        assert result.staff_id == "X"
        assert result.alternatives[0].staff_id == "Y"
        assert result.alternatives[0].is_eligible is True


class TestGreedyOrder:
    def test_one_shift_per_staff_per_date(self):
        shifts = [_shift("AM", start="07:00", end="11:00"), _shift("PM", start="13:00", end="17:00")]
        run = allocate(shifts, [_staff("A")], [], ScoringConfig(), GENERAL)
        assert run.result_for("AM").staff_id == "A"
        pm = run.result_for("PM")
        assert pm.staff_id is None
        assert pm.issues == [NO_ELIGIBLE_STAFF]
        assert pm.score == 0

    def test_no_double_booking_across_many_shifts(self):
        shifts = [_shift(f"S{i}", start=f"{7 + i:02d}:00", end=f"{9 + i:02d}:00") for i in range(4)]
        shifts += [_shift(f"T{i}", datum=TUESDAY, start=f"{7 + i:02d}:00", end=f"{9 + i:02d}:00") for i in range(4)]
        staff = [_staff(s) for s in ("A", "B", "C")]
        run = allocate(shifts, staff, [], ScoringConfig(), GENERAL)
        per_day = Counter((r.staff_id, r.date) for r in run.results if r.staff_id)
        assert per_day and max(per_day.values()) == 1
        assert run.stats.assigned == 6
        assert run.stats.unassigned == 2

    def test_shifts_processed_by_date_then_start(self):
        shifts = [_shift("late", datum=TUESDAY), _shift("pm", start="13:00", end="17:00"), _shift("am")]
        run = allocate(shifts, [_staff("A"), _staff("B")], [], ScoringConfig(), GENERAL)
        assert [r.shift_id for r in run.results] == ["am", "pm", "late"]

    def test_tie_broken_by_staff_id(self):
        run = allocate([_shift("SH1")], [_staff("B"), _staff("A")], [], ScoringConfig(), GENERAL)
        result = run.results[0]
        assert result.staff_id == "A"
        assert result.alternatives[0].staff_id == "B"
        assert result.alternatives[0].score == result.score

    def test_alternatives_capped_at_five(self):
        staff = [_staff(f"S{i:02d}") for i in range(8)]
        run = allocate([_shift("SH1")], staff, [], ScoringConfig(), GENERAL)
        assert len(run.results[0].alternatives) == 5

    def test_run_commitments_count_towards_hours(self):
        staff = _staff("A", current_weekly_hours=30.0)
        shifts = [_shift("MON", start="09:00", end="15:00"), _shift("TUE", datum=TUESDAY, start="09:00", end="15:00")]
        run = allocate(shifts, [staff], [], ScoringConfig(), GENERAL)
        assert run.result_for("MON").staff_id == "A"
        tue = run.result_for("TUE")
        assert tue.staff_id is None
        assert tue.alternatives[0].issues == ["Would exceed max hours (36.0 + 6.0 > 41.8)"]

    def test_weekly_cap_resets_each_week(self):
        days = ["2026-10-19", "2026-10-20", "2026-10-21", "2026-10-22", "2026-10-23"]
        days += ["2026-10-26", "2026-10-27", "2026-10-28", "2026-10-29", "2026-10-30"]
        shifts = [_shift(f"D{i}", datum=d, start="09:00", end="17:00") for i, d in enumerate(days)]
        run = allocate(shifts, [_staff("A", current_weekly_hours=None)], [], ScoringConfig(), GENERAL)
        assert run.stats.assigned == 10
        # 40h in each week sits under the 41.8h overtime ceiling
        assert run.result_for("D4").issues == ["Would incur overtime rates"]
        assert run.result_for("D9").issues == ["Would incur overtime rates"]

    def test_recorded_hours_apply_to_first_week_only(self):
        days = ["2026-10-19", "2026-10-20", "2026-10-26", "2026-10-27"]
        shifts = [_shift(f"D{i}", datum=d, start="09:00", end="17:00") for i, d in enumerate(days)]
        run = allocate(shifts, [_staff("A", current_weekly_hours=30.0)], [], ScoringConfig(), GENERAL)
        assert [r.staff_id for r in run.results] == ["A", None, "A", "A"]
        assert run.result_for("D1").alternatives[0].issues == ["Would exceed max hours (38.0 + 8.0 > 41.8)"]

    def test_existing_shifts_in_other_weeks_ignored(self):
        existing = [ExistingShift("A", "2026-10-12", "06:00", "18:00"), ExistingShift("A", "2026-10-13", "06:00", "18:00")]
        staff = _staff("A", current_weekly_hours=None, max_hours_per_week=20.0)
        run = allocate([_shift("SH1", start="09:00", end="17:00")], [staff], existing, ScoringConfig(), GENERAL)
        assert run.result_for("SH1").staff_id == "A"

    def test_empty_input(self):
        run = allocate([], [_staff("A")], [], ScoringConfig(), GENERAL)
        assert run.results == []
        assert run.stats.fill_rate == 0.0


class TestLedger:
    def test_record_and_lookup(self):
        ledger = AllocationLedger()
        ledger.record("A", _shift("SH1"))
        assert ledger.has("A", MONDAY)
        assert not ledger.has("A", TUESDAY)
        assert not ledger.has("B", MONDAY)
        assert [s.id for s in ledger.shifts_for("A")] == ["SH1"]
        assert ledger.entries == [("A", MONDAY, "SH1")]


class TestOverride:
    @pytest.fixture
    def run(self):
        shifts = [_shift("AM", start="07:00", end="11:00"), _shift("PM", start="13:00", end="17:00")]
        return allocate(shifts, [_staff("A"), _staff("B")], [], ScoringConfig(), GENERAL)

    def test_baseline(self, run):
        assert run.result_for("AM").staff_id == "A"
        assert run.result_for("PM").staff_id == "B"

    def test_override_surfaces_same_day_conflict(self, run):
        updated = apply_override(run, "PM", "A")
        pm = updated.result_for("PM")
        assert pm.staff_id == "A"
        assert pm.overridden is True
        assert "Conflicts with AM on 2026-10-19" in pm.issues
        assert [c.staff_id for c in pm.alternatives] == ["B"]

    def test_override_does_not_mutate_input(self, run):
        apply_override(run, "PM", "A")
        assert run.result_for("PM").staff_id == "B"
        assert run.result_for("PM").overridden is False

    def test_override_reports_clash_with_later_shift(self, run):
        updated = apply_override(run, "AM", "B")
        am = updated.result_for("AM")
        assert am.staff_id == "B"
        assert any(i.startswith("Conflicts with PM") for i in am.issues)

    def test_override_to_same_staff_keeps_result(self, run):
        updated = apply_override(run, "AM", "A")
        assert updated.result_for("AM").staff_id == "A"
        assert not any(i.startswith("Conflicts") for i in updated.result_for("AM").issues)

    def test_unknown_shift(self, run):
        with pytest.raises(InvalidInputError):
            apply_override(run, "NOPE", "A")

    def test_unknown_staff(self, run):
        with pytest.raises(InvalidInputError):
            apply_override(run, "AM", "Z")

    def test_stats_recomputed(self):
        shifts = [_shift("AM", start="07:00", end="11:00"), _shift("PM", start="13:00", end="17:00")]
        run = allocate(shifts, [_staff("A")], [], ScoringConfig(), GENERAL)
        assert run.stats.assigned == 1
        updated = apply_override(run, "PM", "A")
        assert updated.stats.assigned == 2
        assert "Conflicts with AM on 2026-10-19" in updated.result_for("PM").issues


class TestRunOutput:
    def test_confirm_assignments(self):
        shifts = [_shift("AM", start="07:00", end="11:00"), _shift("PM", start="13:00", end="17:00")]
        run = allocate(shifts, [_staff("A")], [], ScoringConfig(), GENERAL)
        assert confirm_assignments(run) == [{"shift_id": "AM", "staff_id": "A"}]

    def test_hours_overview(self):
        shifts = [_shift("MON", break_minutes=30), _shift("TUE", datum=TUESDAY)]
        run = allocate(shifts, [_staff("A")], [], ScoringConfig(), GENERAL)
        rows = hours_overview(run, shifts)
        assert rows == [
            {
                "staff_id": "A",
                "staff_name": "Staff A",
                "assigned_hours": 11.5,
                "assigned_shifts": 2,
                "estimated_cost": run.stats.total_estimated_cost,
            }
        ]

    def test_to_dict(self, scenario_run):
        data = scenario_run.to_dict()
        assert data["stats"]["assigned"] == 1
        assert data["weights"]["cost"] == 0.25
        assert data["results"][0]["alternatives"][0]["staff_id"] == "Y"

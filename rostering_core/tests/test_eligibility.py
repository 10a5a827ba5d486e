"""Tests for the availability validator and the qualification matcher."""

from __future__ import annotations

from datetime import date

from rostering_core.availability import check_availability
from rostering_core.models import (
    DayAvailability,
    ExistingShift,
    LeaveInterval,
    Qualification,
    StaffMember,
)
from rostering_core.qualifications import check_qualifications

MONDAY = "2026-10-19"


def _staff(**overrides) -> StaffMember:
    values = {
        "id": "S1",
        "name": "Sam Lee",
        "role": "educator",
        "hourly_rate": 30.0,
        "availability": {0: DayAvailability(True, "07:00", "18:00")},
    }
    values.update(overrides)
    return StaffMember(**values)


class TestAvailability:
    def test_available(self):
        check = check_availability(_staff(), MONDAY, "09:00", "15:00")
        assert check.available is True
        assert check.reason is None

    def test_approved_leave_blocks(self):
        staff = _staff(leave=(LeaveInterval("2026-10-18", "2026-10-20"),))
        check = check_availability(staff, MONDAY, "09:00", "15:00")
        assert check.available is False
        assert check.reason == "On approved leave"

    def test_pending_leave_does_not_block(self):
        staff = _staff(leave=(LeaveInterval(MONDAY, MONDAY, status="pending"),))
        assert check_availability(staff, MONDAY, "09:00", "15:00").available is True

    def test_leave_checked_before_weekday(self):
        staff = _staff(availability={}, leave=(LeaveInterval(MONDAY, MONDAY),))
        assert check_availability(staff, MONDAY, "09:00", "15:00").reason == "On approved leave"

    def test_no_entry_for_weekday(self):
        check = check_availability(_staff(), "2026-10-20", "09:00", "15:00")
        assert check.reason == "Not available on this day"

    def test_flagged_unavailable(self):
        staff = _staff(availability={0: DayAvailability(False)})
        assert check_availability(staff, MONDAY, "09:00", "15:00").reason == "Not available on this day"

    def test_outside_window(self):
        check = check_availability(_staff(), MONDAY, "06:00", "12:00")
        assert check.reason == "Only available 07:00 - 18:00"

    def test_unbounded_day(self):
        staff = _staff(availability={0: DayAvailability(True)})
        assert check_availability(staff, MONDAY, "05:00", "23:00").available is True

    def test_overlapping_existing_shift(self):
        existing = [ExistingShift("S1", MONDAY, "12:00", "16:00")]
        check = check_availability(_staff(), MONDAY, "09:00", "13:00", existing)
        assert check.reason == "Has overlapping shift"

    def test_adjacent_shift_is_fine(self):
        existing = [ExistingShift("S1", MONDAY, "13:00", "16:00")]
        assert check_availability(_staff(), MONDAY, "09:00", "13:00", existing).available is True

    def test_other_staff_shift_ignored(self):
        existing = [ExistingShift("S2", MONDAY, "09:00", "13:00")]
        assert check_availability(_staff(), MONDAY, "09:00", "13:00", existing).available is True


class TestQualifications:
    def test_all_held(self):
        staff = _staff(qualifications=(Qualification("first_aid"),))
        check = check_qualifications(staff, ["first_aid"])
        assert check.qualified is True
        assert check.score == 100
        assert check.issues == []

    def test_strict_missing(self):
        check = check_qualifications(_staff(), ["first_aid", "food_safety"])
        assert check.qualified is False
        assert check.issues == ["Missing: First Aid Certificate, Food Safety"]

    def test_lenient_missing(self):
        check = check_qualifications(_staff(), ["first_aid", "food_safety"], strict=False)
        assert check.qualified is True
        assert check.score == 60
        assert check.issues == ["Missing 2 qualification(s)"]

    def test_expired_required_qualification(self):
        staff = _staff(qualifications=(Qualification("first_aid", expires_on=date(2026, 1, 1)),))
        check = check_qualifications(staff, ["first_aid"], on=date(2026, 10, 19))
        assert check.score == 70
        assert "Has expired qualifications" in check.issues

    def test_expiry_ignored_without_requirements(self):
        staff = _staff(qualifications=(Qualification("first_aid", expired=True),))
        assert check_qualifications(staff, []).score == 100

    def test_role_mismatch(self):
        check = check_qualifications(_staff(role="assistant"), [], "lead_educator")
        assert check.score == 85
        assert check.issues == ["Role mismatch: Assistant vs preferred Lead Educator"]

    def test_score_clamped_at_zero(self):
        required = ["first_aid", "food_safety", "diploma_ece", "working_with_children", "bachelor_ece"]
        check = check_qualifications(_staff(role="cook"), required, "educator", strict=False)
        assert check.score == 0

    def test_higher_classification_satisfies_minimum(self):
        staff = _staff(qualifications=(Qualification("bachelor_ece"),))
        assert check_qualifications(staff, minimum_classification="diploma_ece").qualified is True

    def test_lower_classification_fails_minimum(self):
        staff = _staff(qualifications=(Qualification("certificate_iii"),))
        check = check_qualifications(staff, minimum_classification="diploma_ece")
        assert check.qualified is False
        assert check.issues == ["Missing: Diploma ECE"]

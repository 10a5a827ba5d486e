"""Qualification, classification and role fit for a candidate shift."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date

from .models import StaffMember

QUALIFICATION_LABELS: dict[str, str] = {
    "diploma_ece": "Diploma ECE",
    "certificate_iii": "Certificate III",
    "first_aid": "First Aid Certificate",
    "food_safety": "Food Safety",
    "working_with_children": "WWC Check",
    "bachelor_ece": "Bachelor ECE",
    "masters_ece": "Masters ECE",
}

ROLE_LABELS: dict[str, str] = {
    "lead_educator": "Lead Educator",
    "educator": "Educator",
    "assistant": "Assistant",
    "cook": "Cook",
    "admin": "Admin",
}

# Ascending educational classification; a higher rank satisfies a lower minimum.
CLASSIFICATION_RANK: dict[str, int] = {
    "certificate_iii": 1,
    "diploma_ece": 2,
    "bachelor_ece": 3,
    "masters_ece": 4,
}

MISSING_PENALTY = 20
EXPIRED_PENALTY = 30
ROLE_MISMATCH_PENALTY = 15


@dataclass(frozen=True)
class QualificationCheck:
    qualified: bool
    score: float
    issues: list[str] = field(default_factory=list)


def qualification_label(qual_type: str) -> str:
    return QUALIFICATION_LABELS.get(qual_type, qual_type.replace("_", " ").title())


def role_label(role: str) -> str:
    return ROLE_LABELS.get(role, role.replace("_", " ").title())


def _meets_classification(staff: StaffMember, minimum: str) -> bool:
    required_rank = CLASSIFICATION_RANK.get(minimum)
    if required_rank is None:
        return minimum in staff.qualification_types()
    held = [CLASSIFICATION_RANK.get(t, 0) for t in staff.qualification_types()]
    return max(held, default=0) >= required_rank


def check_qualifications(
    staff: StaffMember,
    required: Sequence[str] = (),
    preferred_role: str | None = None,
    *,
    minimum_classification: str | None = None,
    strict: bool = True,
    on: date | None = None,
) -> QualificationCheck:
    """Score qualification fit from a 100-point base.

    In strict mode a missing required qualification (or a classification
    below the shift's minimum) makes the candidate unqualified outright.
    """
    issues: list[str] = []
    score = 100.0

    missing: list[str] = []
    if required:
        held = staff.qualification_types()
        missing = [q for q in required if q not in held]
    if minimum_classification and not _meets_classification(staff, minimum_classification):
        missing.append(minimum_classification)

    if missing:
        if strict:
            return QualificationCheck(
                qualified=False,
                score=0.0,
                issues=[f"Missing: {', '.join(qualification_label(q) for q in missing)}"],
            )
        score -= len(missing) * MISSING_PENALTY
        issues.append(f"Missing {len(missing)} qualification(s)")

    if required:
        wanted = set(required)
        if any(q.type in wanted and q.is_expired(on) for q in staff.qualifications):
            score -= EXPIRED_PENALTY
            issues.append("Has expired qualifications")

    if preferred_role and staff.role != preferred_role:
        score -= ROLE_MISMATCH_PENALTY
        issues.append(f"Role mismatch: {role_label(staff.role)} vs preferred {role_label(preferred_role)}")

    return QualificationCheck(qualified=True, score=max(0.0, score), issues=issues)

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import asdict, dataclass, field, replace
from typing import Any

from .errors import InvalidInputError
from .jurisdictions import Jurisdiction
from .models import ExistingShift, ShiftToFill, StaffMember
from .scoring import CandidateScore, ScoringConfig, score_candidate
from .time_utils import week_key

logger = logging.getLogger(__name__)

MAX_ALTERNATIVES = 5
NO_ELIGIBLE_STAFF = "No eligible staff found"


@dataclass
class AssignmentResult:
    shift_id: str
    staff_id: str | None
    staff_name: str | None
    room_id: str
    date: str
    time: str
    score: int
    issues: list[str]
    alternatives: list[CandidateScore]
    estimated_cost: float = 0.0
    candidate: CandidateScore | None = None
    overridden: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class AllocationStats:
    assigned: int
    unassigned: int
    total: int
    fill_rate: float
    total_estimated_cost: float


@dataclass
class AllocationRun:
    results: list[AssignmentResult]
    stats: AllocationStats
    config: ScoringConfig | None = None

    def result_for(self, shift_id: str) -> AssignmentResult:
        for result in self.results:
            if result.shift_id == shift_id:
                return result
        raise InvalidInputError(f"shift_id not found in allocation run: {shift_id}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "stats": asdict(self.stats),
            "weights": self.config.weights.as_dict() if self.config else None,
        }


@dataclass
class AllocationLedger:
    """Append-only record of (staff_id, date) commitments within one run."""

    entries: list[tuple[str, str, str]] = field(default_factory=list)
    _index: set[tuple[str, str]] = field(default_factory=set, init=False, repr=False)
    _shifts_by_staff: dict[str, list[ExistingShift]] = field(
        default_factory=lambda: defaultdict(list), init=False, repr=False
    )

    def record(self, staff_id: str, shift: ShiftToFill) -> None:
        self.entries.append((staff_id, shift.date, shift.id))
        self._index.add((staff_id, shift.date))
        self._shifts_by_staff[staff_id].append(
            ExistingShift(
                staff_id=staff_id,
                date=shift.date,
                start=shift.start,
                end=shift.end,
                break_minutes=shift.break_minutes,
                id=shift.id,
            )
        )

    def has(self, staff_id: str, datum: str) -> bool:
        return (staff_id, datum) in self._index

    def shifts_for(self, staff_id: str) -> list[ExistingShift]:
        return self._shifts_by_staff.get(staff_id, [])


def _shift_sort_key(shift: ShiftToFill) -> tuple[str, str, str]:
    return (shift.date, shift.start, shift.id)


def _candidate_sort_key(score: CandidateScore) -> tuple[int, int, str]:
    return (0 if score.is_eligible else 1, -score.score, score.staff_id)


def build_stats(results: list[AssignmentResult]) -> AllocationStats:
    assigned = sum(1 for r in results if r.staff_id)
    total = len(results)
    return AllocationStats(
        assigned=assigned,
        unassigned=total - assigned,
        total=total,
        fill_rate=round((assigned / total) * 100, 1) if total else 0.0,
        total_estimated_cost=round(sum(r.estimated_cost for r in results if r.staff_id), 2),
    )


def allocate(
    shifts_to_fill: Iterable[ShiftToFill],
    staff_pool: Iterable[StaffMember],
    existing_shifts: Iterable[ExistingShift],
    config: ScoringConfig,
    jurisdiction: Jurisdiction,
) -> AllocationRun:
    """Greedily assign the best eligible staff member to each shift.

    Shifts are handled in (date, start) order. A staff member is committed to
    at most one shift per date within the run; later shifts see earlier
    commitments as existing work, and weekly hour caps are checked per
    Monday-based week.
    """
    shifts = sorted(shifts_to_fill, key=_shift_sort_key)
    staff = sorted(staff_pool, key=lambda s: s.id)
    existing = list(existing_shifts)
    # current_weekly_hours describes the week the run starts in
    recorded_week = week_key(shifts[0].date) if shifts else None
    ledger = AllocationLedger()
    results: list[AssignmentResult] = []

    for shift in shifts:
        evals = [
            score_candidate(
                member,
                shift,
                existing,
                config,
                jurisdiction,
                run_shifts=ledger.shifts_for(member.id),
                recorded_week=recorded_week,
            )
            for member in staff
        ]
        # deterministic ordering
        evals.sort(key=_candidate_sort_key)

        best: CandidateScore | None = None
        for candidate in evals:
            if not candidate.is_eligible:
                break
            if ledger.has(candidate.staff_id, shift.date):
                logger.debug("skipping %s for %s: already assigned on %s", candidate.staff_id, shift.id, shift.date)
                continue
            best = candidate
            break

        if best is None:
            logger.warning("shift %s on %s left unassigned", shift.id, shift.date)
            results.append(
                AssignmentResult(
                    shift_id=shift.id,
                    staff_id=None,
                    staff_name=None,
                    room_id=shift.room_id,
                    date=shift.date,
                    time=shift.time_label,
                    score=0,
                    issues=[NO_ELIGIBLE_STAFF],
                    alternatives=evals[:MAX_ALTERNATIVES],
                )
            )
            continue

        ledger.record(best.staff_id, shift)
        results.append(
            AssignmentResult(
                shift_id=shift.id,
                staff_id=best.staff_id,
                staff_name=best.staff_name,
                room_id=shift.room_id,
                date=shift.date,
                time=shift.time_label,
                score=best.score,
                issues=list(best.issues),
                alternatives=[e for e in evals if e.staff_id != best.staff_id][:MAX_ALTERNATIVES],
                estimated_cost=best.estimated_cost,
                candidate=best,
            )
        )

    stats = build_stats(results)
    logger.info(
        "allocation run: %d/%d shifts filled (%.1f%%), estimated cost %.2f",
        stats.assigned,
        stats.total,
        stats.fill_rate,
        stats.total_estimated_cost,
    )
    return AllocationRun(results=results, stats=stats, config=config)


def apply_override(run: AllocationRun, shift_id: str, staff_id: str) -> AllocationRun:
    """Swap a shift's assignee for one of its scored candidates.

    The chosen candidate is re-checked against every other committed result
    in the run; a same-date clash is kept but surfaced as an issue.
    """
    target = run.result_for(shift_id)
    pool = list(target.alternatives)
    if target.candidate is not None:
        pool.append(target.candidate)
    chosen = next((c for c in pool if c.staff_id == staff_id), None)
    if chosen is None:
        raise InvalidInputError(f"staff {staff_id} was not scored for shift {shift_id}")

    issues = list(chosen.issues)
    clashes = [
        r.shift_id
        for r in run.results
        if r.shift_id != shift_id and r.staff_id == staff_id and r.date == target.date
    ]
    if clashes:
        issues.append(f"Conflicts with {', '.join(clashes)} on {target.date}")

    demoted = [c for c in pool if c.staff_id != staff_id]
    demoted.sort(key=_candidate_sort_key)
    updated = replace(
        target,
        staff_id=chosen.staff_id,
        staff_name=chosen.staff_name,
        score=chosen.score,
        issues=issues,
        alternatives=demoted[:MAX_ALTERNATIVES],
        estimated_cost=chosen.estimated_cost,
        candidate=chosen,
        overridden=True,
    )
    results = [updated if r.shift_id == shift_id else r for r in run.results]
    return replace(run, results=results, stats=build_stats(results))


def confirm_assignments(run: AllocationRun) -> list[dict[str, str]]:
    """Assignments the caller should commit to the roster."""
    return [{"shift_id": r.shift_id, "staff_id": r.staff_id} for r in run.results if r.staff_id]


def hours_overview(run: AllocationRun, shifts: Iterable[ShiftToFill]) -> list[dict[str, Any]]:
    hours_by_shift = {s.id: s.net_hours for s in shifts}
    per_staff = defaultdict(lambda: {"hours": 0.0, "shifts": 0, "cost": 0.0, "name": ""})
    for r in run.results:
        if not r.staff_id:
            continue
        item = per_staff[r.staff_id]
        item["name"] = r.staff_name or r.staff_id
        item["hours"] += hours_by_shift.get(r.shift_id, 0.0)
        item["shifts"] += 1
        item["cost"] += r.estimated_cost

    result = [
        {
            "staff_id": staff_id,
            "staff_name": values["name"],
            "assigned_hours": round(values["hours"], 2),
            "assigned_shifts": int(values["shifts"]),
            "estimated_cost": round(values["cost"], 2),
        }
        for staff_id, values in per_staff.items()
    ]
    result.sort(key=lambda row: (-row["assigned_hours"], row["staff_id"]))
    return result

"""Timesheet approval chains: which tiers must sign off, in what order, by when.

A chain is built once per timesheet from its compliance flags and overtime,
then advanced strictly one step at a time. A rejection halts the chain.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timedelta, timezone

from .compliance import ComplianceValidation, timesheet_hours
from .errors import InvalidInputError
from .jurisdictions import Jurisdiction, get_jurisdiction
from .models import Timesheet

UTC = timezone.utc

TIERS = ("auto", "manager", "senior_manager", "hr")
STATUSES = ("pending", "approved", "rejected")

AUTO_APPROVE_OVERTIME_HOURS = 2.0
FALLBACK_TIER = "manager"
FALLBACK_SLA_HOURS = 24


@dataclass(frozen=True)
class ApprovalRule:
    id: str
    name: str
    condition: str
    required_tier: str
    threshold: float | None = None
    sla_hours: int | None = None
    flag_type: str | None = None
    escalation_tier: str | None = None
    escalation_hours: int | None = None


DEFAULT_APPROVAL_RULES: tuple[ApprovalRule, ...] = (
    ApprovalRule("ar1", "Normal Hours Auto-Approve", "all", "auto"),
    ApprovalRule("ar2", "Overtime Review", "overtime", "manager", threshold=2, sla_hours=24,
                 escalation_tier="senior_manager", escalation_hours=24),
    ApprovalRule("ar3", "High Overtime", "overtime", "senior_manager", threshold=8, sla_hours=48,
                 escalation_tier="director", escalation_hours=48),
    ApprovalRule("ar4", "Compliance Issues", "compliance_flag", "hr", sla_hours=72, flag_type="max_daily_hours"),
    ApprovalRule("ar5", "Exception Handling", "exception", "manager", sla_hours=24),
)


@dataclass(frozen=True)
class ApprovalStep:
    tier: str
    status: str = "pending"
    sla_deadline: datetime | None = None
    decided_at: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class ApprovalChain:
    timesheet_id: str
    steps: tuple[ApprovalStep, ...]
    started_at: datetime
    current_step_index: int = 0
    is_complete: bool = False
    is_rejected: bool = False
    auto_approved: bool = False
    completed_at: datetime | None = None

    @property
    def current_step(self) -> ApprovalStep | None:
        if self.is_complete or self.is_rejected:
            return None
        return self.steps[self.current_step_index]

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("started_at", "completed_at"):
            data[key] = data[key].isoformat() if data[key] else None
        for step in data["steps"]:
            for key in ("sla_deadline", "decided_at"):
                step[key] = step[key].isoformat() if step[key] else None
        return data


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def _collapse(steps: list[ApprovalStep]) -> list[ApprovalStep]:
    collapsed: list[ApprovalStep] = []
    for step in steps:
        if not collapsed or collapsed[-1].tier != step.tier:
            collapsed.append(step)
    return collapsed


def build_approval_chain(
    timesheet: Timesheet,
    validation: ComplianceValidation,
    rules: Sequence[ApprovalRule] = DEFAULT_APPROVAL_RULES,
    *,
    jurisdiction: Jurisdiction | None = None,
    holidays: Collection[str] = (),
    now: datetime | None = None,
) -> ApprovalChain:
    started = _now(now)
    if jurisdiction is None:
        jurisdiction = get_jurisdiction(timesheet.award_type)
    _, overtime = timesheet_hours(timesheet, jurisdiction, holidays)

    has_exceptions = any(f.severity in ("critical", "warning") for f in validation.flags)
    overtime_rules = sorted(
        (r for r in rules if r.condition == "overtime" and r.threshold is not None),
        key=lambda r: r.threshold,
    )
    auto_limit = overtime_rules[0].threshold if overtime_rules else AUTO_APPROVE_OVERTIME_HOURS

    if not has_exceptions and overtime <= auto_limit:
        return ApprovalChain(
            timesheet_id=timesheet.id,
            steps=(
                ApprovalStep(
                    tier="auto",
                    status="approved",
                    decided_at=started,
                    notes="Automatically approved - no exceptions detected",
                ),
            ),
            started_at=started,
            is_complete=True,
            auto_approved=True,
            completed_at=started,
        )

    def step_for(rule: ApprovalRule) -> ApprovalStep:
        deadline = started + timedelta(hours=rule.sla_hours) if rule.sla_hours else None
        return ApprovalStep(tier=rule.required_tier, sla_deadline=deadline)

    fallback = ApprovalStep(tier=FALLBACK_TIER, sla_deadline=started + timedelta(hours=FALLBACK_SLA_HOURS))
    steps: list[ApprovalStep] = []
    if has_exceptions:
        steps.extend(step_for(r) for r in rules if r.condition == "exception")
        if not steps:
            steps.append(fallback)
    steps.extend(step_for(r) for r in overtime_rules if overtime > r.threshold)
    flag_types = {f.type for f in validation.flags}
    steps.extend(
        step_for(r) for r in rules if r.condition == "compliance_flag" and r.flag_type in flag_types
    )

    if not steps:
        # overtime past the auto limit with no overtime rule to route it
        steps.append(fallback)
    steps = _collapse(steps)
    return ApprovalChain(timesheet_id=timesheet.id, steps=tuple(steps), started_at=started)


def _decide(chain: ApprovalChain, status: str, notes: str | None, now: datetime | None) -> ApprovalChain:
    step = chain.current_step
    if step is None:
        state = "rejected" if chain.is_rejected else "complete"
        raise InvalidInputError(f"approval chain for {chain.timesheet_id} is already {state}")
    decided = _now(now)
    steps = list(chain.steps)
    steps[chain.current_step_index] = replace(step, status=status, decided_at=decided, notes=notes)

    if status == "rejected":
        return replace(chain, steps=tuple(steps), is_rejected=True, completed_at=decided)

    next_index = chain.current_step_index + 1
    if next_index >= len(steps):
        return replace(chain, steps=tuple(steps), is_complete=True, completed_at=decided)
    return replace(chain, steps=tuple(steps), current_step_index=next_index)


def approve_step(chain: ApprovalChain, *, notes: str | None = None, now: datetime | None = None) -> ApprovalChain:
    return _decide(chain, "approved", notes, now)


def reject_step(chain: ApprovalChain, *, notes: str | None = None, now: datetime | None = None) -> ApprovalChain:
    return _decide(chain, "rejected", notes, now)


def overdue_steps(chain: ApprovalChain, now: datetime | None = None) -> list[ApprovalStep]:
    """Pending steps whose SLA deadline has passed."""
    moment = _now(now)
    return [
        s for s in chain.steps
        if s.status == "pending" and s.sla_deadline is not None and s.sla_deadline < moment
    ]

"""Shift-staff matching and pay-rule compliance engine."""

from .allocator import AllocationRun, AssignmentResult, allocate, apply_override, confirm_assignments
from .approval import ApprovalChain, approve_step, build_approval_chain, overdue_steps, reject_step
from .compliance import ComplianceValidation, detect_anomalies, validate_timesheet
from .errors import InvalidInputError
from .jurisdictions import get_jurisdiction, get_penalty_rates
from .pay import price_shift, price_timesheet, price_week
from .scoring import CandidateScore, ScoringConfig, ScoringWeights, score_candidate, weights_for_preset
from .time_utils import calc_shift_hours, classify_day, parse_hhmm_to_minutes, time_overlap

# io re-exports; openpyxl is only imported when a workbook is rendered
from .io import load_input, write_output

__all__ = [
    "AllocationRun",
    "ApprovalChain",
    "AssignmentResult",
    "CandidateScore",
    "ComplianceValidation",
    "InvalidInputError",
    "ScoringConfig",
    "ScoringWeights",
    "allocate",
    "apply_override",
    "approve_step",
    "build_approval_chain",
    "calc_shift_hours",
    "classify_day",
    "confirm_assignments",
    "detect_anomalies",
    "get_jurisdiction",
    "get_penalty_rates",
    "load_input",
    "overdue_steps",
    "parse_hhmm_to_minutes",
    "price_shift",
    "price_timesheet",
    "price_week",
    "reject_step",
    "score_candidate",
    "time_overlap",
    "validate_timesheet",
    "weights_for_preset",
    "write_output",
]

"""Render allocation runs and compliance results to multi-sheet XLSX workbooks."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from ..allocator import AllocationRun, AssignmentResult, hours_overview
from ..approval import ApprovalChain
from ..compliance import ComplianceValidation
from ..scoring import CandidateScore
from .schemas import (
    ALTERNATIVES_COLS,
    APPROVAL_COLS,
    ASSIGNMENTS_COLS,
    FLAGS_COLS,
    SCORE_COMPONENTS,
    UNASSIGNED_COLS,
    fmt_bool,
    pipe_join,
)

_SEVERITY_COLORS = {
    "critical": "F8CBAD",
    "warning": "FFE699",
    "info": "DDEBF7",
}


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------

def _get_openpyxl():
    try:
        from openpyxl import Workbook
        from openpyxl.styles import Font, PatternFill
        return Workbook, Font, PatternFill
    except ImportError as exc:
        raise ImportError("openpyxl is required for XLSX export: pip install openpyxl") from exc


def _style_headers(worksheets):
    """Apply bold + blue fill to header row of each worksheet."""
    _, Font, PatternFill = _get_openpyxl()
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
    for ws in worksheets:
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill


def _fmt_ts(value) -> str:
    return value.isoformat(timespec="minutes") if value is not None else ""


# ---------------------------------------------------------------------------
# Row builders
# ---------------------------------------------------------------------------

def _assignment_row(r: AssignmentResult) -> dict[str, Any]:
    breakdown = r.candidate.breakdown if r.candidate is not None else {}
    return {
        "shift_id": r.shift_id,
        "date": r.date,
        "time": r.time,
        "room_id": r.room_id,
        "staff_id": r.staff_id,
        "staff_name": r.staff_name,
        "score": r.score,
        "estimated_cost": r.estimated_cost,
        "overridden": fmt_bool(r.overridden),
        **{f"score_{c}": breakdown.get(c, 0) for c in SCORE_COMPONENTS},
        "issues": pipe_join(r.issues),
    }


def _alternative_row(shift_id: str, rank: int, c: CandidateScore) -> dict[str, Any]:
    return {
        "shift_id": shift_id,
        "rank": rank,
        "staff_id": c.staff_id,
        "staff_name": c.staff_name,
        "employment_type": c.employment_type,
        "eligible": fmt_bool(c.is_eligible),
        "score": c.score,
        "hourly_rate": c.hourly_rate,
        "estimated_cost": c.estimated_cost,
        **{f"score_{k}": c.breakdown.get(k, 0) for k in SCORE_COMPONENTS},
        "issues": pipe_join(c.issues),
    }


def _unassigned_row(r: AssignmentResult) -> dict[str, Any]:
    blocked_parts = [
        f"{c.staff_name}:{','.join(c.issues)}" for c in r.alternatives if not c.is_eligible and c.issues
    ]
    return {
        "shift_id": r.shift_id,
        "date": r.date,
        "time": r.time,
        "room_id": r.room_id,
        "reason": pipe_join(r.issues),
        "top_blocked": "|".join(blocked_parts),
    }


# ---------------------------------------------------------------------------
# Workbooks
# ---------------------------------------------------------------------------

def render_xlsx(run: AllocationRun, path: Path, *, shifts=None) -> Path:
    """Render an allocation run to a multi-sheet XLSX workbook.

    Sheets: Assignments, Alternatives, Unassigned, Staff Hours (when the
    shifts are supplied), Metrics. Returns the path to the written file.
    """
    Workbook, _, _ = _get_openpyxl()

    wb = Workbook()
    all_sheets = []

    # --- Assignments sheet ---
    ws_assign = wb.active
    ws_assign.title = "Assignments"
    ws_assign.append(ASSIGNMENTS_COLS)
    for r in run.results:
        if not r.staff_id:
            continue
        row = _assignment_row(r)
        ws_assign.append([row.get(c, "") for c in ASSIGNMENTS_COLS])
    all_sheets.append(ws_assign)

    # --- Alternatives sheet ---
    ws_alt = wb.create_sheet("Alternatives")
    ws_alt.append(ALTERNATIVES_COLS)
    for r in run.results:
        for rank, candidate in enumerate(r.alternatives, start=1):
            row = _alternative_row(r.shift_id, rank, candidate)
            ws_alt.append([row.get(c, "") for c in ALTERNATIVES_COLS])
    all_sheets.append(ws_alt)

    # --- Unassigned sheet ---
    ws_unassigned = wb.create_sheet("Unassigned")
    ws_unassigned.append(UNASSIGNED_COLS)
    for r in run.results:
        if r.staff_id:
            continue
        row = _unassigned_row(r)
        ws_unassigned.append([row.get(c, "") for c in UNASSIGNED_COLS])
    all_sheets.append(ws_unassigned)

    # --- Staff Hours sheet ---
    if shifts is not None:
        ws_hours = wb.create_sheet("Staff Hours")
        cols = ["staff_id", "staff_name", "assigned_hours", "assigned_shifts", "estimated_cost"]
        ws_hours.append(cols)
        for row in hours_overview(run, shifts):
            ws_hours.append([row.get(c, "") for c in cols])
        all_sheets.append(ws_hours)

    # --- Metrics sheet ---
    ws_metrics = wb.create_sheet("Metrics")
    stats = run.stats
    fields = [
        ("total_shifts", stats.total),
        ("assigned", stats.assigned),
        ("unassigned", stats.unassigned),
        ("fill_rate", stats.fill_rate),
        ("total_estimated_cost", stats.total_estimated_cost),
    ]
    if run.config is not None:
        fields.extend((f"weight_{k}", v) for k, v in run.config.weights.as_dict().items())
    ws_metrics.append(["Field", "Value"])
    for field_name, value in fields:
        ws_metrics.append([field_name, value])
    all_sheets.append(ws_metrics)

    _style_headers(all_sheets)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return path


def render_compliance_xlsx(
    validation: ComplianceValidation,
    chain: ApprovalChain | None,
    path: Path,
) -> Path:
    """Render compliance flags and (optionally) the approval chain.

    Flag rows are tinted by severity.
    """
    Workbook, _, PatternFill = _get_openpyxl()

    wb = Workbook()
    all_sheets = []

    # --- Flags sheet ---
    ws_flags = wb.active
    ws_flags.title = "Flags"
    ws_flags.append(FLAGS_COLS)
    for flag in validation.flags:
        ws_flags.append([
            flag.id,
            flag.type,
            flag.severity,
            flag.title,
            flag.description,
            flag.entry_date or "",
        ])
        color = _SEVERITY_COLORS.get(flag.severity)
        if color:
            fill = PatternFill(start_color=color, end_color=color, fill_type="solid")
            for cell in ws_flags[ws_flags.max_row]:
                cell.fill = fill
    all_sheets.append(ws_flags)

    # --- Summary sheet ---
    ws_summary = wb.create_sheet("Summary")
    ws_summary.append(["Field", "Value"])
    ws_summary.append(["is_compliant", fmt_bool(validation.is_compliant)])
    ws_summary.append(["can_submit", fmt_bool(validation.can_submit)])
    ws_summary.append(["blocking_issues", pipe_join(validation.blocking_issues)])
    ws_summary.append(["warnings", pipe_join(validation.warnings)])
    all_sheets.append(ws_summary)

    # --- Approval sheet ---
    if chain is not None:
        ws_approval = wb.create_sheet("Approval")
        ws_approval.append(APPROVAL_COLS)
        for i, step in enumerate(chain.steps, start=1):
            ws_approval.append([
                i,
                step.tier,
                step.status,
                _fmt_ts(step.sla_deadline),
                _fmt_ts(step.decided_at),
                step.notes or "",
            ])
        all_sheets.append(ws_approval)

    _style_headers(all_sheets)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))
    return path

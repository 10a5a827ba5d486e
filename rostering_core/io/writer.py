"""Write aggregated metrics.json for an allocation run.

Row-level data (assignments, alternatives, unassigned shifts) lives in the
xlsx workbook only. metrics.json carries the KPIs a report needs: fill rate,
cost, score distribution, hours fairness and why shifts went unfilled.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Iterable
from datetime import date
from pathlib import Path

from ..allocator import AllocationRun, hours_overview
from ..models import ShiftToFill
from ..scoring import OVERTIME_RATES_ISSUE
from ..time_utils import calc_shift_hours
from .schemas import SCORE_COMPONENTS

# ---------------------------------------------------------------------------
# Lightweight helpers
# ---------------------------------------------------------------------------

_WEEKDAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def _gini(values: list[float]) -> float:
    """Gini coefficient: 0 = perfect equality, 1 = total concentration."""
    if not values or all(v == 0 for v in values):
        return 0.0
    s = sorted(values)
    n = len(s)
    total = sum(s)
    if total == 0:
        return 0.0
    cum = sum((i + 1) * v for i, v in enumerate(s))
    return round((2 * cum) / (n * total) - (n + 1) / n, 4)


def _weekday(datum: str) -> str:
    try:
        return _WEEKDAYS[date.fromisoformat(datum).weekday()]
    except ValueError:
        return "?"


def _label_hours(label: str) -> float:
    """Hours from a "HH:MM - HH:MM" label; used when the shifts are not supplied."""
    start, _, end = label.partition(" - ")
    return calc_shift_hours(start.strip(), end.strip())


def _assess(fill: dict, fairness: dict, cost: dict) -> list[dict]:
    """Generate traffic-light assessment bullets."""
    bullets: list[dict] = []
    pct = fill.get("pct", 0)

    if pct >= 95:
        bullets.append({"level": "green", "text": "Shift coverage excellent"})
    elif pct >= 85:
        bullets.append({"level": "green", "text": "Shift coverage good"})
    elif pct >= 70:
        bullets.append({"level": "yellow", "text": "Shift coverage moderate -- availability or qualifications are tight"})
    else:
        bullets.append({"level": "red", "text": "Shift coverage low -- most candidates blocked, see constraints"})

    gini = fairness.get("gini", 0)
    if gini > 0.4:
        bullets.append({"level": "red", "text": f"Hours concentrated on few staff (gini {gini:.2f})"})
    elif gini > 0.2:
        bullets.append({"level": "yellow", "text": f"Hours moderately uneven (gini {gini:.2f})"})

    if cost.get("overtime_assignments"):
        bullets.append({
            "level": "yellow",
            "text": f"{cost['overtime_assignments']} assignment(s) at overtime rates",
        })

    return bullets


# ---------------------------------------------------------------------------
# Build metrics dict
# ---------------------------------------------------------------------------


def build_metrics(run: AllocationRun, shifts: Iterable[ShiftToFill] | None = None) -> dict:
    """Aggregate KPIs for one run. No raw row-level data."""
    results = run.results
    assigned = [r for r in results if r.staff_id]
    unassigned = [r for r in results if not r.staff_id]

    # -- Fill rate --------------------------------------------------------------
    by_weekday: dict[str, dict[str, int]] = {}
    for r in results:
        wd = _weekday(r.date)
        by_weekday.setdefault(wd, {"assigned": 0, "open": 0})
        by_weekday[wd]["assigned" if r.staff_id else "open"] += 1

    fill_rate = {
        "total_shifts": run.stats.total,
        "assigned": run.stats.assigned,
        "unassigned": run.stats.unassigned,
        "pct": run.stats.fill_rate,
        "overridden": sum(1 for r in results if r.overridden),
        "by_weekday": by_weekday,
    }

    # -- Cost -------------------------------------------------------------------
    overtime = sum(
        1 for r in assigned if r.candidate is not None and OVERTIME_RATES_ISSUE in r.candidate.issues
    )
    cost = {
        "total_estimated": run.stats.total_estimated_cost,
        "avg_per_assigned_shift": (
            round(run.stats.total_estimated_cost / len(assigned), 2) if assigned else 0
        ),
        "overtime_assignments": overtime,
    }

    # -- Scoring ----------------------------------------------------------------
    scores = [r.score for r in assigned]
    component_vals: dict[str, list[float]] = {c: [] for c in SCORE_COMPONENTS}
    for r in assigned:
        if r.candidate is None:
            continue
        for c in SCORE_COMPONENTS:
            component_vals[c].append(r.candidate.breakdown.get(c, 0.0))

    scoring = {
        "avg": round(sum(scores) / len(scores), 1) if scores else 0,
        "min": min(scores) if scores else 0,
        "max": max(scores) if scores else 0,
        "per_component_avg": {
            c: round(sum(vals) / len(vals), 1) if vals else 0 for c, vals in component_vals.items()
        },
    }

    # -- Fairness ---------------------------------------------------------------
    if shifts is not None:
        per_staff = hours_overview(run, shifts)
    else:
        hours: dict[str, dict] = {}
        for r in assigned:
            row = hours.setdefault(
                r.staff_id,
                {"staff_id": r.staff_id, "staff_name": r.staff_name, "assigned_hours": 0.0,
                 "assigned_shifts": 0, "estimated_cost": 0.0},
            )
            row["assigned_hours"] += _label_hours(r.time)
            row["assigned_shifts"] += 1
            row["estimated_cost"] += r.estimated_cost
        per_staff = sorted(hours.values(), key=lambda row: (-row["assigned_hours"], row["staff_id"]))
        for row in per_staff:
            row["assigned_hours"] = round(row["assigned_hours"], 2)
            row["estimated_cost"] = round(row["estimated_cost"], 2)

    all_hours = [row["assigned_hours"] for row in per_staff]
    std_dev = 0.0
    if all_hours:
        mean_h = sum(all_hours) / len(all_hours)
        std_dev = round((sum((h - mean_h) ** 2 for h in all_hours) / len(all_hours)) ** 0.5, 2)

    fairness = {
        "gini": _gini(all_hours),
        "std_dev": std_dev,
        "per_staff": per_staff,
    }

    # -- Constraints ------------------------------------------------------------
    block_reasons: Counter = Counter()
    for r in unassigned:
        for alt in r.alternatives:
            if not alt.is_eligible:
                block_reasons.update(alt.issues)

    constraints = {
        "unassigned_by_reason": dict(Counter(issue for r in unassigned for issue in r.issues)),
        "top_block_reasons": [[reason, count] for reason, count in block_reasons.most_common(10)],
    }

    return {
        "weights": run.config.weights.as_dict() if run.config else None,
        "fill_rate": fill_rate,
        "cost": cost,
        "scoring": scoring,
        "fairness": fairness,
        "constraints": constraints,
        "assessment": _assess(fill_rate, fairness, cost),
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def write_output(
    run: AllocationRun,
    directory: Path,
    shifts: Iterable[ShiftToFill] | None = None,
    meta: dict | None = None,
) -> dict[str, Path]:
    """Write metrics.json for an allocation run. Returns {"metrics.json": Path(...)}."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    metrics = build_metrics(run, shifts)
    if meta:
        metrics = {"run_id": meta.get("run_id", ""), "centre_id": meta.get("centre_id", ""), **metrics}

    metrics_path = directory / "metrics.json"
    metrics_path.write_text(
        json.dumps(metrics, indent=2, ensure_ascii=False, default=str) + "\n",
        encoding="utf-8",
    )

    return {"metrics.json": metrics_path}

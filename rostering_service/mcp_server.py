"""rostering-engine MCP server.

Exposes the shift-staff matching and pay-rule compliance engine as stateless
tools: pricing, candidate scoring, greedy allocation with manual overrides,
timesheet validation and approval-chain derivation.
"""
from __future__ import annotations

import argparse
import os
from dataclasses import asdict
from typing import Any

from mcp.server.fastmcp import FastMCP

from rostering_core.allocator import allocate, apply_override, confirm_assignments, hours_overview
from rostering_core.approval import build_approval_chain as _build_approval_chain
from rostering_core.compliance import validate_timesheet as _validate_timesheet
from rostering_core.io.payloads import (
    config_from_dict,
    existing_shift_from_dict,
    jurisdiction_from_value,
    shift_from_dict,
    staff_from_dict,
    timesheet_from_dict,
)
from rostering_core.jurisdictions import AWARD_TYPES, casual_loading_for, get_jurisdiction, get_penalty_rates
from rostering_core.pay import price_shift as _price_shift
from rostering_core.scoring import WEIGHT_PRESETS
from rostering_core.scoring import score_candidate as _score_candidate
from rostering_core.time_utils import classify_day, shift_time_flags

from .config import load_env, load_holiday_calendar, runtime_config

mcp = FastMCP(
    "rostering-engine",
    host=os.getenv("HOST", "127.0.0.1"),
    port=int(os.getenv("PORT", "8000")),
    instructions=(
        "Shift-staff matching and pay-rule compliance engine. "
        "Scores and greedily allocates staff to open shifts under award pay rules, "
        "validates worked timesheets and derives approval chains. "
        "Every tool is stateless; committing assignments is the caller's job."
    ),
)

_ENV_FILE: str | None = None


def _runtime():
    load_env(_ENV_FILE or os.getenv("ROSTER_ENGINE_ENV_FILE"))
    return runtime_config()


def _holidays() -> frozenset[str]:
    return load_holiday_calendar(_runtime().holiday_file)


def _jurisdiction(value: str | dict[str, Any] | None):
    return jurisdiction_from_value(value, default_award=_runtime().default_award)


def _config(config: dict[str, Any] | None):
    data = dict(config or {})
    data.setdefault("preset", _runtime().default_preset)
    return config_from_dict(data, holidays=_holidays())


# -- Reference data --

@mcp.tool()
def list_jurisdictions() -> dict[str, Any]:
    """List the built-in award jurisdictions with hour limits, break rules and penalty rates."""
    result = {}
    for award in AWARD_TYPES:
        jurisdiction = get_jurisdiction(award)
        result[award] = {
            **asdict(jurisdiction),
            "double_time_start": jurisdiction.double_time_start,
            "penalty_rates": asdict(get_penalty_rates(award)),
            "casual_loading_pct": casual_loading_for(award),
        }
    return result


@mcp.tool()
def list_weight_presets() -> dict[str, Any]:
    """List scoring weight presets (cost / availability / qualifications / fairness / preference)."""
    return {name: weights.as_dict() for name, weights in WEIGHT_PRESETS.items()}


# -- Pricing & scoring --

@mcp.tool()
def price_shift(
    hours_worked: float,
    base_rate: float,
    is_casual: bool = False,
    award_type: str | None = None,
    day_type: str | None = None,
    date: str | None = None,
    start: str | None = None,
    end: str | None = None,
    is_night_shift: bool = False,
    is_evening_shift: bool = False,
    casual_loading_pct: float | None = None,
) -> dict[str, Any]:
    """Price one day's hours under tiered overtime and penalty rates.

    Pass day_type directly, or a date to classify it against the holiday
    calendar. Passing start/end derives the night/evening flags.
    """
    jurisdiction = _jurisdiction(award_type)
    if day_type is None:
        day_type = classify_day(date, _holidays()) if date else "weekday"
    if start and end:
        is_night_shift, is_evening_shift = shift_time_flags(start, end)
    if casual_loading_pct is None:
        casual_loading_pct = casual_loading_for(jurisdiction.award_type)

    breakdown = _price_shift(
        hours_worked,
        base_rate,
        is_casual,
        casual_loading_pct,
        jurisdiction.award_type,
        day_type,
        is_night_shift,
        is_evening_shift,
        jurisdiction,
    )
    return {"day_type": day_type, **breakdown.to_dict()}


@mcp.tool()
def score_candidate(
    staff: dict[str, Any],
    shift: dict[str, Any],
    existing_shifts: list[dict[str, Any]] | None = None,
    config: dict[str, Any] | None = None,
    jurisdiction: str | dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Score one staff member for one shift. Returns the candidate score with breakdown and issues."""
    result = _score_candidate(
        staff_from_dict(staff),
        shift_from_dict(shift),
        [existing_shift_from_dict(s) for s in existing_shifts or []],
        _config(config),
        _jurisdiction(jurisdiction),
    )
    return result.to_dict()


# -- Allocation --

def _run(shifts, staff, existing_shifts, config, jurisdiction):
    shift_models = [shift_from_dict(s) for s in shifts]
    run = allocate(
        shift_models,
        [staff_from_dict(s) for s in staff],
        [existing_shift_from_dict(s) for s in existing_shifts or []],
        _config(config),
        _jurisdiction(jurisdiction),
    )
    return run, shift_models


@mcp.tool()
def allocate_shifts(
    shifts: list[dict[str, Any]],
    staff: list[dict[str, Any]],
    existing_shifts: list[dict[str, Any]] | None = None,
    config: dict[str, Any] | None = None,
    jurisdiction: str | dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Greedily assign staff to open shifts.

    Returns per-shift results with up to five alternatives, run stats,
    per-staff hours and the assignments to confirm.
    """
    run, shift_models = _run(shifts, staff, existing_shifts, config, jurisdiction)
    return {
        **run.to_dict(),
        "hours": hours_overview(run, shift_models),
        "confirm": confirm_assignments(run),
    }


@mcp.tool()
def override_assignment(
    shift_id: str,
    staff_id: str,
    shifts: list[dict[str, Any]],
    staff: list[dict[str, Any]],
    existing_shifts: list[dict[str, Any]] | None = None,
    config: dict[str, Any] | None = None,
    jurisdiction: str | dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Re-run the allocation, then swap shift_id's assignee for one of its scored candidates.

    A same-date clash with another assignment is kept and reported as an issue.
    """
    run, shift_models = _run(shifts, staff, existing_shifts, config, jurisdiction)
    run = apply_override(run, shift_id, staff_id)
    return {
        **run.to_dict(),
        "hours": hours_overview(run, shift_models),
        "confirm": confirm_assignments(run),
    }


# -- Compliance --

@mcp.tool()
def validate_timesheet(
    timesheet: dict[str, Any],
    jurisdiction: str | dict[str, Any] | None = None,
    history: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Validate a worked timesheet: punch anomalies, breaks, weekly limits and overtime."""
    ts = timesheet_from_dict(timesheet)
    validation = _validate_timesheet(
        ts,
        _jurisdiction(jurisdiction or ts.award_type),
        [timesheet_from_dict(h) for h in history or []],
        _holidays(),
    )
    return validation.to_dict()


@mcp.tool()
def build_approval_chain(
    timesheet: dict[str, Any],
    jurisdiction: str | dict[str, Any] | None = None,
    history: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Validate a timesheet and derive the approval chain it needs.

    Clean timesheets with little overtime are auto-approved; otherwise the
    chain lists the tiers that must sign off with their SLA deadlines.
    """
    ts = timesheet_from_dict(timesheet)
    resolved = _jurisdiction(jurisdiction or ts.award_type)
    holidays = _holidays()
    validation = _validate_timesheet(ts, resolved, [timesheet_from_dict(h) for h in history or []], holidays)
    chain = _build_approval_chain(ts, validation, jurisdiction=resolved, holidays=holidays)
    return {"validation": validation.to_dict(), "chain": chain.to_dict()}


# -- Server entrypoints --

async def _run_http() -> None:
    import uvicorn
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.responses import JSONResponse, PlainTextResponse
    from starlette.routing import Route

    api_key = os.getenv("MCP_API_KEY")
    cfg = _runtime()

    class BearerAuth(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            if request.url.path == "/health":
                return await call_next(request)
            auth = request.headers.get("authorization", "")
            if not auth.startswith("Bearer ") or auth[7:] != api_key:
                return JSONResponse({"error": "unauthorized"}, status_code=401)
            return await call_next(request)

    starlette_app = mcp.streamable_http_app()

    if api_key:
        starlette_app.add_middleware(BearerAuth)

    starlette_app.routes.append(
        Route("/health", lambda r: PlainTextResponse("ok"))
    )

    config = uvicorn.Config(
        starlette_app,
        host=cfg.host,
        port=cfg.port,
        log_level="info",
    )
    await uvicorn.Server(config).serve()


def main() -> None:
    global _ENV_FILE

    parser = argparse.ArgumentParser(description="Run the rostering-engine MCP server")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    parser.add_argument(
        "--transport",
        default=None,
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: streamable-http when PORT is set, else stdio)",
    )
    args = parser.parse_args()
    _ENV_FILE = args.env_file

    transport = args.transport
    if transport is None:
        transport = "streamable-http" if os.getenv("PORT") else "stdio"

    if transport == "streamable-http":
        import anyio
        anyio.run(_run_http)
    else:
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()

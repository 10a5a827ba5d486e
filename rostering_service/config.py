from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from rostering_core.errors import InvalidInputError
from rostering_core.jurisdictions import AWARD_TYPES
from rostering_core.scoring import WEIGHT_PRESETS
from rostering_core.time_utils import parse_iso_date

logger = logging.getLogger(__name__)

DEFAULT_HOLIDAY_FILE = Path(__file__).resolve().parent / "data" / "public_holidays.json"


@dataclass(frozen=True)
class RuntimeConfig:
    default_award: str
    default_preset: str
    holiday_file: Path
    host: str
    port: int


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def runtime_config() -> RuntimeConfig:
    default_award = os.getenv("ROSTER_ENGINE_DEFAULT_AWARD", "general").strip() or "general"
    if default_award not in AWARD_TYPES:
        raise ValueError(
            f"ROSTER_ENGINE_DEFAULT_AWARD={default_award!r} is not a known award type. "
            f"Choose from {AWARD_TYPES}"
        )
    default_preset = os.getenv("ROSTER_ENGINE_DEFAULT_PRESET", "balanced").strip() or "balanced"
    if default_preset not in WEIGHT_PRESETS:
        raise ValueError(
            f"ROSTER_ENGINE_DEFAULT_PRESET={default_preset!r} is not a known preset. "
            f"Choose from {tuple(WEIGHT_PRESETS)}"
        )
    holiday_file = os.getenv("ROSTER_ENGINE_HOLIDAY_FILE")
    return RuntimeConfig(
        default_award=default_award,
        default_preset=default_preset,
        holiday_file=Path(holiday_file).expanduser().resolve() if holiday_file else DEFAULT_HOLIDAY_FILE,
        host=os.getenv("ROSTER_ENGINE_HOST") or os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("ROSTER_ENGINE_PORT") or os.getenv("PORT", "8000")),
    )


def load_holiday_calendar(holiday_file: Path | None = None) -> frozenset[str]:
    """Read a JSON list of ISO dates (or {"date": ..., "name": ...} objects).

    A missing file yields an empty calendar, so every date classifies by
    weekday alone.
    """
    if holiday_file is None:
        holiday_file = DEFAULT_HOLIDAY_FILE
    if not holiday_file.exists():
        logger.warning("holiday calendar %s not found; no public holidays applied", holiday_file)
        return frozenset()
    with holiday_file.open("r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, list):
        raise InvalidInputError(f"{holiday_file}: expected a JSON list of dates")

    dates = set()
    for item in raw:
        value = item.get("date") if isinstance(item, dict) else item
        dates.add(parse_iso_date(value, f"{holiday_file.name} entry").isoformat())
    return frozenset(dates)

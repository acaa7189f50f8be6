"""
Configuration loading utilities.

Loads environment variables from `.env` and resolves the engine defaults
(smoothing, cache size, display units). Invalid values fall back to the
defaults declared in the root `config` module.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from streamlit.logger import get_logger

import config

logger = get_logger(__name__)


@dataclass(frozen=True)
class Config:
    grade_window_m: float
    pace_smoothing_m: float
    sample_step_m: float
    cache_size: int
    distance_unit: str
    grade_model: str
    display_locale: str


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except (ValueError, TypeError):
        logger.debug("Invalid %s=%r, using %s", name, raw, default)
        return default
    if value != value or value < minimum:
        logger.debug("Out-of-range %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_choice(name: str, choices: list[str], default: str) -> str:
    raw = (os.getenv(name) or "").strip()
    if raw in choices:
        return raw
    if raw:
        logger.debug("Unknown %s=%r, using %s", name, raw, default)
    return default


def load_config() -> Config:
    """Load configuration from environment."""
    load_dotenv(find_dotenv(usecwd=True), override=False)

    cache_size_str = os.getenv("PACING_CACHE_SIZE", str(config.DEFAULT_CACHE_SIZE))
    try:
        cache_size = max(0, int(cache_size_str))
    except (ValueError, TypeError):
        cache_size = config.DEFAULT_CACHE_SIZE

    sample_step = _env_float("SAMPLE_STEP_METERS", config.DEFAULT_SAMPLE_STEP_M)
    if sample_step == 0:
        sample_step = config.DEFAULT_SAMPLE_STEP_M

    return Config(
        grade_window_m=_env_float("GRADE_WINDOW_METERS", config.DEFAULT_GRADE_WINDOW_M),
        pace_smoothing_m=_env_float("PACE_SMOOTHING_METERS", config.DEFAULT_PACE_SMOOTHING_M),
        sample_step_m=max(config.MIN_SAMPLE_STEP_M, sample_step),
        cache_size=cache_size,
        distance_unit=_env_choice("DISTANCE_UNIT", config.DISTANCE_UNITS, "kilometers"),
        grade_model=_env_choice("GRADE_MODEL", ["polynomial", "minetti"], "polynomial"),
        display_locale=(os.getenv("DISPLAY_LOCALE") or "en_US").strip(),
    )


def default_config(overrides: Optional[dict] = None) -> Config:
    """Return a Config built from the package defaults, without reading the environment."""
    values = {
        "grade_window_m": config.DEFAULT_GRADE_WINDOW_M,
        "pace_smoothing_m": config.DEFAULT_PACE_SMOOTHING_M,
        "sample_step_m": config.DEFAULT_SAMPLE_STEP_M,
        "cache_size": config.DEFAULT_CACHE_SIZE,
        "distance_unit": "kilometers",
        "grade_model": "polynomial",
        "display_locale": "en_US",
    }
    if overrides:
        values.update(overrides)
    return Config(**values)

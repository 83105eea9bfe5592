"""
Runtime defaults for CLI/batch unwrapping.

Values can be overridden via environment variables to avoid hardcoded tuning
in multiple entrypoints.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import os


ENV_ISLAND_MARGIN = "LIGHTMAPUV_ISLAND_MARGIN"
ENV_PROJECTION_LIMIT = "LIGHTMAPUV_PROJECTION_LIMIT"
ENV_AREA_WEIGHT = "LIGHTMAPUV_AREA_WEIGHT"
ENV_REMOVE_DOUBLES = "LIGHTMAPUV_REMOVE_DOUBLES"
ENV_FILL_HOLES = "LIGHTMAPUV_FILL_HOLES"
ENV_PREVIEW_RESOLUTION = "LIGHTMAPUV_PREVIEW_RESOLUTION"


@dataclass(frozen=True)
class RuntimeDefaults:
    island_margin: float
    projection_limit: float
    area_weight: float
    remove_doubles: bool
    fill_holes: bool
    preview_resolution: int


def _read_int_env(
    env_name: str,
    default: int,
    *,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_float_env(
    env_name: str,
    default: float,
    *,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    try:
        value = float(str(raw).strip())
    except (TypeError, ValueError):
        return default

    if not math.isfinite(value):
        return default
    if min_value is not None and value < min_value:
        return default
    if max_value is not None and value > max_value:
        return default
    return value


def _read_bool_env(env_name: str, default: bool) -> bool:
    raw = os.environ.get(env_name)
    if raw is None:
        return default
    value = str(raw).strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return default


def load_runtime_defaults() -> RuntimeDefaults:
    return RuntimeDefaults(
        island_margin=_read_float_env(ENV_ISLAND_MARGIN, 0.0, min_value=0.0, max_value=1.0),
        # 0° would never accumulate a face; 180° accepts every normal as one direction.
        projection_limit=_read_float_env(ENV_PROJECTION_LIMIT, 89.0, min_value=1.0, max_value=180.0),
        area_weight=_read_float_env(ENV_AREA_WEIGHT, 0.0, min_value=0.0, max_value=1.0),
        remove_doubles=_read_bool_env(ENV_REMOVE_DOUBLES, True),
        fill_holes=_read_bool_env(ENV_FILL_HOLES, False),
        preview_resolution=_read_int_env(ENV_PREVIEW_RESOLUTION, 1024, min_value=16, max_value=16384),
    )


DEFAULTS = load_runtime_defaults()

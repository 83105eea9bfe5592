"""
Logging helpers.

Unwrapping is an offline batch step, so logs go to a stable file location by
default. Degenerate input is recovered from silently in the output, which
makes the log the only place those decisions are visible.
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import fields, is_dataclass
from pathlib import Path
from typing import Optional

ENV_LOG_LEVEL = "LIGHTMAPUV_LOG_LEVEL"

_LOG_ONCE_KEYS: set[str] = set()
_LOG_ONCE_LOCK = threading.Lock()


def default_log_dir() -> Path:
    if os.name == "nt":
        base = os.environ.get("LOCALAPPDATA") or os.environ.get("APPDATA") or str(Path.home())
        return Path(base) / "LightmapUV" / "logs"

    xdg_state_home = os.environ.get("XDG_STATE_HOME")
    if xdg_state_home:
        return Path(xdg_state_home) / "lightmapuv" / "logs"

    return Path.home() / ".local" / "state" / "lightmapuv" / "logs"


def _parse_log_level(level: str | int) -> int:
    if isinstance(level, int):
        return int(level)
    value = str(level).strip().upper()
    if not value:
        return logging.INFO
    return int(getattr(logging, value, logging.INFO))


def setup_logging(
    *,
    log_level: str | int = "INFO",
    log_dir: Optional[str | Path] = None,
    filename: str = "lightmapuv.log",
) -> Optional[Path]:
    """
    Configure root logging to a UTF-8 file.

    This is idempotent: if a FileHandler is already attached, it won't add
    another one.
    """
    root = logging.getLogger()

    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    level = _parse_log_level(os.environ.get(ENV_LOG_LEVEL) or log_level)
    root.setLevel(level)

    resolved_dir = Path(log_dir) if log_dir is not None else default_log_dir()
    try:
        resolved_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None

    log_path = resolved_dir / filename

    fmt = "%(asctime)s.%(msecs)03d %(levelname)s [%(name)s] %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    try:
        file_handler = logging.FileHandler(str(log_path), encoding="utf-8")
    except OSError:
        return None
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(fmt=fmt, datefmt=datefmt))
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    root.info("Logging initialized: %s (level=%s)", log_path, logging.getLevelName(level))

    from .runtime_defaults import DEFAULTS

    root.info("Unwrap defaults: %s", format_settings(DEFAULTS))
    return log_path


def log_once(
    logger: logging.Logger,
    key: str,
    level: int,
    msg: str,
    *args,
    exc_info: bool | BaseException | None = None,
) -> bool:
    """
    Logs at most once per process for the given key.

    Useful for per-face warnings on large meshes where the same condition
    would otherwise be reported thousands of times.
    """
    k = str(key)
    with _LOG_ONCE_LOCK:
        if k in _LOG_ONCE_KEYS:
            return False
        _LOG_ONCE_KEYS.add(k)

    logger.log(level, msg, *args, exc_info=exc_info)
    return True


def format_settings(settings) -> str:
    """
    Render a settings dataclass as ``name=value`` pairs for log lines.

    Floats use ``%g`` so margins and angles stay short in the log.
    """
    if not is_dataclass(settings):
        return repr(settings)

    parts = []
    for f in fields(settings):
        value = getattr(settings, f.name)
        if isinstance(value, float):
            parts.append(f"{f.name}={value:g}")
        else:
            parts.append(f"{f.name}={value}")
    return ", ".join(parts)

"""
Output path helpers for common exports.

Centralizes naming conventions so the CLI and batch scripts stay in sync.
The scene is written next to its source as `<stem>.lightmap.glb`; an explicit
output without an extension is exported as glTF binary.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]

LIGHTMAP_SUFFIX = ".lightmap.glb"
UV_LAYOUT_SUFFIX = ".uvlayout.png"


def _as_path(value: PathLike) -> Path:
    return value if isinstance(value, Path) else Path(value)


def _resolve_output_path(input_path: PathLike, output_path: Optional[PathLike], suffix: str) -> Path:
    if output_path:
        path = _as_path(output_path)
        # a bare name gets the final extension of the default suffix
        if not path.suffix:
            return path.with_suffix(Path(suffix).suffix)
        return path
    return _as_path(input_path).with_suffix(suffix)


def lightmap_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _resolve_output_path(input_path, output_path, LIGHTMAP_SUFFIX)


def uv_layout_output_path(input_path: PathLike, output_path: Optional[PathLike] = None) -> Path:
    return _resolve_output_path(input_path, output_path, UV_LAYOUT_SUFFIX)

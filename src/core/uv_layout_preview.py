"""
UV Layout Preview
라이트맵 UV 배치 미리보기 이미지 생성

Draws every output triangle of the lightmap channel into an image, one color
per mesh, to check packing and seams by eye.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

import numpy as np
from PIL import Image, ImageDraw

from .runtime_defaults import DEFAULTS

if TYPE_CHECKING:
    from .uv_mapper import UnwrapResult

PALETTE = (
    (220, 50, 47),
    (38, 139, 210),
    (133, 153, 0),
    (211, 54, 130),
    (181, 137, 0),
    (42, 161, 152),
    (108, 113, 196),
    (203, 75, 22),
)


@dataclass
class UVLayoutImage:
    """
    UV 배치 이미지

    Attributes:
        image: PIL 이미지 (정사각형, v축은 위쪽)
        world_to_texel_ratio: 언랩 결과의 정규화 배율
    """
    image: Image.Image
    world_to_texel_ratio: float

    @property
    def resolution(self) -> int:
        return self.image.width

    def save(self, filepath: Union[str, Path]) -> Path:
        """PNG 저장"""
        filepath = Path(filepath)
        self.image.save(str(filepath))
        return filepath


def _triangles_px(lightmap_uv: np.ndarray, indices: np.ndarray, resolution: int) -> np.ndarray:
    tri = np.asarray(lightmap_uv, dtype=np.float64)[np.asarray(indices).reshape(-1, 3)]
    px = np.empty_like(tri)
    px[..., 0] = tri[..., 0] * (resolution - 1)
    px[..., 1] = (1.0 - tri[..., 1]) * (resolution - 1)
    return px


class UVLayoutPreview:
    """
    라이트맵 UV 미리보기 렌더러
    """

    def __init__(self, resolution: Optional[int] = None, background: str = 'white'):
        """
        Args:
            resolution: 이미지 한 변 픽셀 수 (None이면 기본값)
            background: 배경색
        """
        self.resolution = int(resolution or DEFAULTS.preview_resolution)
        self.background = background

    def render(
        self, result: 'UnwrapResult', resolution: Optional[int] = None, *, fill: bool = False
    ) -> UVLayoutImage:
        """
        Args:
            result: UVMapper.map() 결과
            resolution: 이 호출에만 쓸 해상도
            fill: 삼각형 내부 채우기 여부

        Returns:
            UVLayoutImage
        """
        res = int(resolution or self.resolution)
        img = Image.new('RGB', (res, res), self.background)
        draw = ImageDraw.Draw(img)

        for mesh_idx, mesh in enumerate(result.meshes):
            color = PALETTE[mesh_idx % len(PALETTE)]
            for tri in _triangles_px(mesh.lightmap_uv, mesh.indices, res):
                points = [(float(x), float(y)) for x, y in tri]
                draw.polygon(points, outline=color, fill=color if fill else None)

        return UVLayoutImage(image=img, world_to_texel_ratio=float(result.world_to_texel_ratio))


def uv_coverage(result: 'UnwrapResult', resolution: int = 256) -> float:
    """
    라이트맵 텍셀 중 삼각형이 덮는 비율 (0..1)
    """
    mask = Image.new('L', (resolution, resolution), 0)
    draw = ImageDraw.Draw(mask)
    for mesh in result.meshes:
        for tri in _triangles_px(mesh.lightmap_uv, mesh.indices, resolution):
            draw.polygon([(float(x), float(y)) for x, y in tri], fill=255)
    covered = np.asarray(mask, dtype=np.uint8) > 0
    return float(covered.mean())

"""
Island Packer
UV 섬 패킹 - 섬 바운딩 박스를 단위 정사각형 안에 배치

Shelf/guillotine packing: boxes go into the top-left corner of the first free
space that fits (newest spaces first), and every placement splits that space
into at most two remainders.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Optional, Sequence

import numpy as np

from .face_builder import Face, SMALL_NUM
from .hull_fit import uv_bounds
from .islands import island_uv_points

_LOGGER = logging.getLogger(__name__)

# Target utilization for the initial container width.
_PACK_FILL_GUESS = 0.95


@dataclass
class PackBox:
    """
    패킹 대상 사각형

    Attributes:
        w, h: 크기
        x, y: 패킹 후 위치 (좌상단)
        island_index: 대응하는 섬 번호
    """
    w: float
    h: float
    x: float = 0.0
    y: float = 0.0
    island_index: int = -1

    def overlaps(self, other: 'PackBox', tolerance: float = 1e-9) -> bool:
        return (
            self.x < other.x + other.w - tolerance
            and other.x < self.x + self.w - tolerance
            and self.y < other.y + other.h - tolerance
            and other.y < self.y + self.h - tolerance
        )


@dataclass(frozen=True)
class PackDimension:
    w: float
    h: float
    fill: float


def box_pack_2d(boxes: list[PackBox]) -> PackDimension:
    """
    상자 배치 (제자리 갱신)

    Boxes are sorted by height, descending, and given their x/y. The
    container has an unbounded height, so every box always fits.

    Returns:
        PackDimension: 사용된 폭/높이와 공간 활용률
    """
    area = 0.0
    max_width = 0.0
    for box in boxes:
        area += box.w * box.h
        max_width = max(max_width, box.w)

    boxes.sort(key=lambda b: -b.h)

    # aim for a squarish container, slightly adjusted for sub-100% utilization
    start_width = max(math.sqrt(area / _PACK_FILL_GUESS), max_width)

    spaces: list[PackBox] = [PackBox(x=0.0, y=0.0, w=start_width, h=math.inf)]

    width = 0.0
    height = 0.0

    for box in boxes:
        # newest spaces are the smallest ones
        for i in range(len(spaces) - 1, -1, -1):
            space = spaces[i]
            if box.w > space.w or box.h > space.h:
                continue

            box.x = space.x
            box.y = space.y
            height = max(height, box.y + box.h)
            width = max(width, box.x + box.w)

            if box.w == space.w and box.h == space.h:
                last = spaces.pop()
                if i < len(spaces):
                    spaces[i] = last
            elif box.h == space.h:
                space.x += box.w
                space.w -= box.w
            elif box.w == space.w:
                space.y += box.h
                space.h -= box.h
            else:
                spaces.append(PackBox(x=space.x + box.w, y=space.y, w=space.w - box.w, h=box.h))
                space.y += box.h
                space.h -= box.h
            break

    fill = area / (width * height) if width > 0 and height > 0 else 0.0
    return PackDimension(w=width, h=height, fill=fill)


@dataclass(frozen=True)
class PackResult:
    """
    섬 패킹 결과

    Attributes:
        scale: 정규화 배율 1 / max(w, h) (라이트맵 world-to-texel 비율)
        width, height: 정규화 전 사용 폭/높이
        fill: 공간 활용률
        boxes: 배치된 상자 (island_index 로 섬과 연결)
    """
    scale: float
    width: float
    height: float
    fill: float
    boxes: tuple[PackBox, ...] = ()


def pack_islands(islands: Sequence[Sequence[Face]], margin: float = 0.0) -> PackResult:
    """
    섬을 [0, 1]² 안으로 패킹 (UV 제자리 갱신)

    Args:
        islands: 회전 정규화가 끝난 섬 목록
        margin: 섬 크기 대비 여백 비율 (각 변에 margin * 크기 / 2)

    Returns:
        PackResult
    """
    boxes: list[PackBox] = []
    offsets: list[tuple[float, float]] = []

    for island_index, island in enumerate(islands):
        min_x, min_y, max_x, max_y = uv_bounds(island_uv_points(island))
        w = max_x - min_x
        h = max_y - min_y

        if margin:
            min_x -= margin * w / 2
            min_y -= margin * h / 2
            max_x += margin * w / 2
            max_y += margin * h / 2
            w = max_x - min_x
            h = max_y - min_y

        w = max(w, SMALL_NUM)
        h = max(h, SMALL_NUM)

        offsets.append((min_x, min_y))
        boxes.append(PackBox(w=w, h=h, island_index=island_index))

    dimension = box_pack_2d(boxes)

    scale = 1.0
    extent = max(dimension.w, dimension.h)
    if islands and extent > 0:
        scale = 1.0 / extent

    for box in boxes:
        island = islands[box.island_index]
        x_offset = box.x - offsets[box.island_index][0]
        y_offset = box.y - offsets[box.island_index][1]
        shift = np.array([x_offset, y_offset], dtype=np.float64)
        for f in island:
            f.uv[:] = (f.uv + shift) * scale

    _LOGGER.debug(
        "Packed %d island(s) into %.6g x %.6g (fill=%.1f%%)",
        len(boxes),
        dimension.w,
        dimension.h,
        dimension.fill * 100.0,
    )
    return PackResult(
        scale=scale,
        width=dimension.w,
        height=dimension.h,
        fill=dimension.fill,
        boxes=tuple(boxes),
    )


def find_overlapping_boxes(boxes: Sequence[PackBox], tolerance: float = 1e-9) -> Optional[tuple[int, int]]:
    """겹치는 상자 쌍의 island_index (없으면 None)"""
    for i in range(len(boxes)):
        for j in range(i + 1, len(boxes)):
            if boxes[i].overlaps(boxes[j], tolerance):
                return boxes[i].island_index, boxes[j].island_index
    return None

"""
Island Merge
작은 섬을 큰 섬의 빈 바운딩 영역 안에 끼워 넣기 (선택 기능)

Before box packing, small islands are nested into the unused bounding area of
larger ones. A candidate offset is rejected when any boundary edges cross or
when either island has a point inside the other.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
import logging
from typing import Optional, Sequence

import numpy as np

from .face_builder import Face, SMALL_NUM
from .hull_fit import points_in_triangles_2d, segments_intersect_2d, uv_bounds
from .islands import Island, island_uv_points
from .logging_utils import log_once

_LOGGER = logging.getLogger(__name__)

# Offset tests per source/target pair before the search gives up.
MAX_OFFSET_TESTS = 10000


class IslandOverlap(IntEnum):
    NONE = 0
    EDGE_CROSSING = 1
    SOURCE_INSIDE = 2
    TARGET_INSIDE = 3


@dataclass
class MeasuredEdge:
    """UV 엣지 (경계가 아니면 segment 없음)"""
    length: float
    segment: Optional[np.ndarray] = None


@dataclass(eq=False)
class IslandInfo:
    """
    병합 탐색용 섬 레코드

    Attributes:
        faces: 섬의 면 목록 (원본 섬 리스트와 같은 객체)
        total_face_area: 3D 면적 합
        efficiency: 바운딩 면적과 면적 합의 차이 (낭비 공간)
        bounds_area: 바운딩 박스 면적
        width, height: 바운딩 박스 크기
        edges: 길이 내림차순 엣지 목록
        unique_points: (K, 2) 중복 없는 UV 점
        merged: 다른 섬에 병합되었는지
    """
    faces: Island
    total_face_area: float
    efficiency: float
    bounds_area: float
    width: float
    height: float
    edges: list[MeasuredEdge] = field(default_factory=list)
    unique_points: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    merged: bool = False
    _segments: Optional[np.ndarray] = field(default=None, repr=False)
    _triangles: Optional[np.ndarray] = field(default=None, repr=False)

    @property
    def segments(self) -> np.ndarray:
        """(E, 2, 2) 경계 엣지"""
        if self._segments is None:
            segs = [e.segment for e in self.edges if e.segment is not None]
            self._segments = np.array(segs, dtype=np.float64).reshape(-1, 2, 2)
        return self._segments

    @property
    def triangles(self) -> np.ndarray:
        """(T, 3, 2) UV 삼각형"""
        if self._triangles is None:
            self._triangles = np.array([f.uv for f in self.faces], dtype=np.float64).reshape(-1, 3, 2)
        return self._triangles

    def invalidate(self) -> None:
        self._segments = None
        self._triangles = None


def island_to_edges(faces: Sequence[Face]) -> tuple[list[MeasuredEdge], np.ndarray]:
    """
    섬의 UV 엣지와 고유 점 추출

    An edge seen twice is interior and keeps no segment; edges are ordered by
    length, longest first.
    """
    edges: dict[tuple[float, float, float, float], MeasuredEdge] = {}
    unique_points: dict[tuple[float, float], np.ndarray] = {}

    for f in faces:
        for v in range(3):
            prev = (v - 1) % 3
            unique_points[(float(f.uv[v, 0]), float(f.uv[v, 1]))] = f.uv[v].copy()

            if f.vertex_indices[v] > f.vertex_indices[prev]:
                i1, i2 = prev, v
            else:
                i1, i2 = v, prev

            key = (float(f.uv[i1, 0]), float(f.uv[i1, 1]), float(f.uv[i2, 0]), float(f.uv[i2, 1]))
            if key not in edges:
                edges[key] = MeasuredEdge(
                    length=float(np.linalg.norm(f.uv[i2] - f.uv[i1])),
                    segment=np.array([f.uv[i1], f.uv[i2]], dtype=np.float64),
                )
            else:
                edges[key] = MeasuredEdge(length=0.0, segment=None)

    sorted_edges = sorted(edges.values(), key=lambda e: -e.length)
    points = np.array(list(unique_points.values()), dtype=np.float64).reshape(-1, 2)
    return sorted_edges, points


def island_intersect(source: IslandInfo, target: IslandInfo, source_offset: np.ndarray) -> IslandOverlap:
    """source를 source_offset 만큼 옮겼을 때 target과의 겹침 판정"""
    offset = np.asarray(source_offset, dtype=np.float64)

    if segments_intersect_2d(target.segments, source.segments + offset):
        return IslandOverlap.EDGE_CROSSING

    if points_in_triangles_2d(source.unique_points + offset, target.triangles).any():
        return IslandOverlap.SOURCE_INSIDE

    if points_in_triangles_2d(target.unique_points - offset, source.triangles).any():
        return IslandOverlap.TARGET_INSIDE

    return IslandOverlap.NONE


def _decorate(island: Island) -> Optional[IslandInfo]:
    min_x, min_y, max_x, max_y = uv_bounds(island_uv_points(island))
    w = max_x - min_x
    h = max_y - min_y

    origin = np.array([min_x, min_y], dtype=np.float64)
    total_face_area = 0.0
    for f in island:
        f.uv -= origin
        total_face_area += f.area

    if total_face_area < SMALL_NUM:
        return None

    bounds_area = w * h
    edges, unique_points = island_to_edges(island)
    return IslandInfo(
        faces=island,
        total_face_area=total_face_area,
        efficiency=abs(bounds_area - total_face_area),
        bounds_area=bounds_area,
        width=w,
        height=h,
        edges=edges,
        unique_points=unique_points,
    )


def _absorb(target: IslandInfo, source: IslandInfo, offset: np.ndarray) -> None:
    for f in source.faces:
        f.uv += offset
    target.faces.extend(source.faces)

    for e in source.edges:
        if e.segment is None:
            continue
        target.edges.append(MeasuredEdge(length=e.length, segment=e.segment + offset))
    target.edges.sort(key=lambda e: -e.length)

    target.unique_points = np.vstack([target.unique_points, source.unique_points + offset])
    target.total_face_area += source.total_face_area
    target.efficiency -= source.total_face_area
    target.invalidate()

    source.faces = []
    source.edges = []
    source.unique_points = np.zeros((0, 2))
    source.efficiency = 0.0
    source.merged = True
    source.invalidate()


def _try_nest(source: IslandInfo, target: IslandInfo, step_quality: float) -> bool:
    block_test_x = target.width / source.width
    block_test_y = target.height / source.height

    test_width = target.width - source.width
    test_height = target.height - source.height

    x_increment = test_width / (block_test_x * ((step_quality / 50) + 0.1))
    y_increment = test_height / (block_test_y * ((step_quality / 50) + 0.1))

    # never step less than a third of the source size
    if x_increment < source.width / 3:
        x_increment = source.width
    if y_increment < source.height / 3:
        y_increment = source.height

    box_left = 0.0
    box_bottom = 0.0
    for _ in range(MAX_OFFSET_TESTS):
        if box_bottom > test_height:
            return False
        if box_left > test_width:
            box_bottom += y_increment
            box_left = 0.0
            continue

        offset = np.array([box_left, box_bottom], dtype=np.float64)
        overlap = island_intersect(source, target, offset)
        if overlap == IslandOverlap.NONE:
            _absorb(target, source, offset)
            return True
        if overlap == IslandOverlap.SOURCE_INSIDE:
            # a whole width across; already known to hit this target
            box_left += source.width + SMALL_NUM
        else:
            box_left += x_increment

    log_once(
        _LOGGER,
        "island_merge:offset_search_limit",
        logging.WARNING,
        "Island merge offset search hit the %d test limit; island left unmerged",
        MAX_OFFSET_TESTS,
    )
    return False


def merge_uv_islands(islands: list[Island], quality: int = 1) -> list[Island]:
    """
    작은 섬을 큰 섬의 빈 공간에 병합

    Every island is first moved to its bounds origin. Sources are tried in
    ascending bounds area against targets in descending wasted area.

    Args:
        islands: 회전 정규화가 끝난 섬 목록 (면 리스트는 제자리 갱신)
        quality: 1..100, 높을수록 더 촘촘한 탐색

    Returns:
        list[Island]: 병합 후 남은 섬 (원래 순서 유지)
    """
    quality = int(min(max(quality, 1), 100))
    step_quality = ((quality - 1) / 25.0) + 1
    free_space_to_test_quality = 1 + (((100 - quality) / 100.0) * 5)

    infos: dict[int, IslandInfo] = {}
    for idx in range(len(islands) - 1, -1, -1):
        info = _decorate(islands[idx])
        if info is not None:
            infos[idx] = info

    decorated = list(infos.values())
    area_sorted = sorted(decorated, key=lambda info: info.bounds_area)
    effic_sorted = sorted(decorated, key=lambda info: -info.efficiency)

    merged_count = 0
    for source in area_sorted:
        if source.merged or source.width <= SMALL_NUM or source.height <= SMALL_NUM:
            continue
        for target in effic_sorted:
            if source.merged:
                break
            if target is source or target.merged:
                continue
            if (
                target.efficiency > source.total_face_area * free_space_to_test_quality
                and target.width > source.width
                and target.height > source.height
            ):
                if _try_nest(source, target, step_quality):
                    merged_count += 1

    _LOGGER.debug("Merged %d of %d island(s)", merged_count, len(islands))
    return [
        island
        for idx, island in enumerate(islands)
        if not (idx in infos and infos[idx].merged)
    ]

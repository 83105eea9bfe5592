"""
Island Builder
UV 섬 구성 - 투영 그룹 안에서 엣지를 공유하는 면끼리 연결 요소로 묶음

Two faces are adjacent only when they share an edge key, so T-junctions and
non-manifold edges are tolerated. Each island is then rotated to its
minimum-area bounding orientation and normalized to landscape.
"""

from __future__ import annotations

from collections import deque
import logging
import math
from typing import Sequence

import numpy as np

from .face_builder import Face
from .hull_fit import box_fit_2d, rotate_points, uv_bounds

_LOGGER = logging.getLogger(__name__)

Island = list[Face]

_UNVISITED = 0
_FRONTIER = 1
_DONE = 2


def build_islands(faces: Sequence[Face]) -> list[Island]:
    """
    엣지 인접 연결 요소 분리

    Args:
        faces: 하나의 투영 그룹에 속한 면 목록

    Returns:
        list[Island]: 모든 면을 정확히 한 번씩 포함하는 섬 목록
    """
    edge_users: dict[int, list[int]] = {}
    for i, f in enumerate(faces):
        for key in f.edge_keys:
            edge_users.setdefault(key, []).append(i)

    modes = np.zeros(len(faces), dtype=np.uint8)
    islands: list[Island] = []

    for seed in range(len(faces)):
        if modes[seed] != _UNVISITED:
            continue

        modes[seed] = _FRONTIER
        island: Island = [faces[seed]]
        frontier = deque([seed])
        while frontier:
            i = frontier.popleft()
            for key in faces[i].edge_keys:
                for j in edge_users[key]:
                    if modes[j] == _UNVISITED:
                        modes[j] = _FRONTIER
                        island.append(faces[j])
                        frontier.append(j)
            modes[i] = _DONE

        islands.append(island)

    return islands


def island_uv_points(faces: Sequence[Face]) -> np.ndarray:
    if not faces:
        return np.zeros((0, 2), dtype=np.float64)
    return np.vstack([f.uv for f in faces])


def _write_uv_points(faces: Sequence[Face], points: np.ndarray) -> None:
    for i, f in enumerate(faces):
        f.uv[:] = points[3 * i:3 * i + 3]


def optimize_island_rotation(faces: Sequence[Face]) -> float:
    """
    섬을 최소 면적 바운딩 박스 방향으로 회전 (제자리 갱신)

    Returns:
        float: 적용된 총 회전각 (라디안)
    """
    points = island_uv_points(faces)
    if len(points) == 0:
        return 0.0

    angle = box_fit_2d(points)
    if angle != 0:
        points = rotate_points(points, angle)

    min_x, min_y, max_x, max_y = uv_bounds(points)
    if (max_y - min_y) > (max_x - min_x) + 1e-5:
        points = rotate_points(points, math.pi / 2)
        angle += math.pi / 2

    _write_uv_points(faces, points)
    return angle


def get_uv_islands(face_groups: Sequence[Sequence[Face]]) -> list[Island]:
    """
    모든 투영 그룹의 섬 구성 및 회전 정규화

    Groups are visited from last to first.
    """
    islands: list[Island] = []
    for group in reversed(face_groups):
        if not group:
            continue
        islands.extend(build_islands(group))

    for island in islands:
        optimize_island_rotation(island)

    _LOGGER.debug("Built %d island(s) from %d projection group(s)", len(islands), len(face_groups))
    return islands

"""
Projection Grouper
투영 방향 그룹화 - 법선이 비슷한 면끼리 같은 축으로 평면 투영

Greedy selection of a small set of projection directions so every face is
within the angular limit of one of them, followed by a per-direction planar
projection that gives each face its initial UV.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

import numpy as np

from .face_builder import Face, SMALL_NUM

_LOGGER = logging.getLogger(__name__)


def _blend_weights(faces: Sequence[Face], indices: Sequence[int], area_weight: float) -> np.ndarray:
    if area_weight == 0:
        return np.ones(len(indices), dtype=np.float64)
    areas = np.array([faces[i].area for i in indices], dtype=np.float64)
    if area_weight == 1:
        return areas
    return areas * area_weight + (1.0 - area_weight)


def find_projection_vectors(
    faces: Sequence[Face],
    projection_limit: float = 89.0,
    area_weight: float = 0.0,
    max_rounds: Optional[int] = None,
) -> list[np.ndarray]:
    """
    투영 벡터 탐색

    Args:
        faces: 면적 내림차순으로 정렬된 비퇴화 면 목록
        projection_limit: 한 투영 방향이 허용하는 법선 각도 (도)
        area_weight: 평균 법선 계산 시 면적 가중치 (0..1)
        max_rounds: 누적 반복 상한 (None이면 면 개수 + 1)

    Returns:
        list[np.ndarray]: 단위 투영 벡터 목록 (발견 순서)
    """
    if not faces:
        return []

    limit_cos = math.cos(math.radians(projection_limit))
    half_limit_cos = math.cos(math.radians(projection_limit / 2.0))
    if max_rounds is None:
        max_rounds = len(faces) + 1

    normals = np.array([f.normal for f in faces], dtype=np.float64)
    remaining = list(range(len(faces)))
    project_vecs: list[np.ndarray] = []

    new_project_vec = normals[0]
    accumulated: list[int] = []

    # Only gathers the vectors; faces are assigned to them afterwards.
    for _ in range(max_rounds):
        if remaining:
            dots = normals[remaining] @ new_project_vec
            for pos in range(len(remaining) - 1, -1, -1):
                if dots[pos] > half_limit_cos:
                    accumulated.append(remaining.pop(pos))

        if accumulated:
            weights = _blend_weights(faces, accumulated, area_weight)
            average = (normals[accumulated] * weights[:, None]).sum(axis=0)
            length = float(np.linalg.norm(average))
            if length > 0:
                project_vecs.append(average / length)

        if not remaining:
            break

        if project_vecs:
            similarity = (normals[remaining] @ np.array(project_vecs).T).max(axis=1)
        else:
            similarity = np.full(len(remaining), -1.0)
        # highest position wins ties, matching a backward scan with strict '<'
        most_unique_pos = len(similarity) - 1 - int(np.argmin(similarity[::-1]))
        most_unique_angle = float(similarity[most_unique_pos])

        if most_unique_angle < limit_cos:
            new_project_vec = normals[remaining[most_unique_pos]]
            accumulated = [remaining.pop(most_unique_pos)]
        else:
            break
    else:
        _LOGGER.warning(
            "Projection search stopped after %d rounds with %d faces unassigned",
            max_rounds,
            len(remaining),
        )

    _LOGGER.debug("Found %d projection vector(s) for %d faces", len(project_vecs), len(faces))
    return project_vecs


def group_faces_by_projection(
    faces: Sequence[Face], project_vecs: Sequence[np.ndarray]
) -> list[list[Face]]:
    """
    각 면을 가장 잘 정렬된 투영 벡터 그룹에 배정

    Faces are visited from last to first; index 0 keeps ties, then the
    highest index.
    """
    groups: list[list[Face]] = [[] for _ in project_vecs]
    if not faces or not project_vecs:
        return groups

    normals = np.array([f.normal for f in faces], dtype=np.float64)
    dots = normals @ np.array(project_vecs, dtype=np.float64).T

    k = len(project_vecs)
    order = np.array([0] + list(range(k - 1, 0, -1)), dtype=np.int64)
    best = order[np.argmax(dots[:, order], axis=1)]

    for f_idx in range(len(faces) - 1, -1, -1):
        groups[int(best[f_idx])].append(faces[f_idx])
    return groups


def projection_matrix(vector: np.ndarray) -> np.ndarray:
    """
    투영 벡터를 Z축으로 하는 정규직교 기저 (행: X, Y, Z)

    Near-vertical vectors use (0, 1, 0) as the helper axis, others (0, 0, 1).
    """
    last_axis = np.asarray(vector, dtype=np.float64)
    last_axis = last_axis / np.linalg.norm(last_axis)

    if abs(last_axis[0]) < SMALL_NUM and abs(last_axis[1]) < SMALL_NUM:
        helper = np.array([0.0, 1.0, 0.0])
    else:
        helper = np.array([0.0, 0.0, 1.0])

    first_axis = np.cross(last_axis, helper)
    first_axis /= np.linalg.norm(first_axis)
    second_axis = np.cross(last_axis, first_axis)
    second_axis /= np.linalg.norm(second_axis)

    return np.vstack([first_axis, second_axis, last_axis])


def project_groups(groups: Sequence[Sequence[Face]], project_vecs: Sequence[np.ndarray]) -> None:
    """그룹별 평면 투영으로 초기 UV 기록 (제자리 갱신)"""
    for group, vec in zip(groups, project_vecs):
        if not group:
            continue
        basis = projection_matrix(vec)
        for f in group:
            f.uv[:] = (f.vertices @ basis.T)[:, :2]

"""
Vertex Deduplication
위치가 같은 정점 동치류 계산

Finds vertices that share a position so that edges between differently
indexed (split) vertices still produce matching edge keys. Geometry is never
merged here; the classes only pick a canonical index per position.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

# Coordinates are rounded to this grid before comparison.
DEDUP_PRECISION = 1e-12


def quantize_positions(positions: np.ndarray, precision: float = DEDUP_PRECISION) -> np.ndarray:
    """좌표를 정수 격자 키로 양자화 (N, 3)"""
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    if precision <= 0:
        raise ValueError("precision must be positive")
    scaled = np.rint(positions / precision)
    # Coordinates beyond ~9e6 overflow int64 at 1e-12; use Python ints there.
    if scaled.size and np.abs(scaled).max() >= 2.0 ** 62:
        return np.vectorize(int, otypes=[object])(scaled)
    return scaled.astype(np.int64)


def find_equivalent_vertices(positions: np.ndarray, precision: float = DEDUP_PRECISION) -> list[list[int]]:
    """
    위치 동치류 계산

    Args:
        positions: (N, 3) 또는 평탄화된 (N * 3,) 좌표
        precision: 비교 격자 간격

    Returns:
        list[list[int]]: 정점 i → 같은 위치를 공유하는 정렬된 인덱스 목록 (자기 자신 포함)
    """
    keys = quantize_positions(positions, precision)
    if len(keys) == 0:
        return []

    buckets: dict[tuple[int, int, int], list[int]] = {}
    for i, key in enumerate(map(tuple, keys.tolist())):
        buckets.setdefault(key, []).append(i)

    equivalencies: list[list[int]] = [[] for _ in range(len(keys))]
    for members in buckets.values():
        # members are already ascending; every index shares the same list object
        for i in members:
            equivalencies[i] = members
    return equivalencies


def canonical_index(equivalencies: Sequence[Sequence[int]] | None, index: int) -> int:
    """동치류의 대표(가장 작은) 인덱스"""
    if not equivalencies or index >= len(equivalencies):
        return int(index)
    members = equivalencies[index]
    if not members:
        return int(index)
    return int(members[0])


def merge_duplicate_positions(
    positions: np.ndarray, precision: float = DEDUP_PRECISION
) -> tuple[np.ndarray, np.ndarray]:
    """
    중복 위치 병합

    Returns:
        (unique_positions, remap): remap[i]는 원래 정점 i의 새 인덱스
    """
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    equivalencies = find_equivalent_vertices(positions, precision)

    remap = np.empty(len(positions), dtype=np.int64)
    representatives: list[int] = []
    for i, members in enumerate(equivalencies):
        first = members[0]
        if first == i:
            remap[i] = len(representatives)
            representatives.append(i)
        else:
            remap[i] = remap[first]
    return positions[representatives].copy(), remap

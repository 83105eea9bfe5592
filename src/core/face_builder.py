"""
Face Builder
삼각형별 자기완결 레코드 생성

Each Face carries world-space corners, the attribute rows of its three
vertices and canonical edge keys, so later stages never look back into the
source buffers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from .mesh_loader import LightmapMesh, transform_points
from .vertex_dedup import canonical_index

# Faces at or below this area are degenerate.
SMALL_NUM = 1e-12

_KEY_BITS = 32


def make_edge_key(mesh_index: int, a: int, b: int) -> int:
    """(mesh, min, max) 형태의 방향 무관 엣지 키"""
    lo, hi = (a, b) if a <= b else (b, a)
    return (int(mesh_index) << (2 * _KEY_BITS)) | (int(lo) << _KEY_BITS) | int(hi)


@dataclass(eq=False)
class Face:
    """
    언랩 대상 삼각형

    Attributes:
        vertices: (3, 3) 월드 좌표 정점
        vertex_indices: (3,) 원본 정점 인덱스
        uv: (3, 2) 계산 중인 UV (단계마다 갱신)
        normal: 단위 면 법선 (면적 0이면 영벡터)
        area: 면적
        mesh_index: 소속 메쉬 번호
        index: 인덱스 버퍼에서 첫 꼭짓점의 위치
        edge_keys: 세 엣지의 정규화 키
        attributes: 속성명 → (3, k) 꼭짓점별 값
    """
    vertices: np.ndarray
    vertex_indices: np.ndarray
    normal: np.ndarray
    area: float
    mesh_index: int
    index: int
    edge_keys: tuple[int, int, int]
    attributes: dict[str, np.ndarray] = field(default_factory=dict)
    uv: np.ndarray = field(default_factory=lambda: np.zeros((3, 2), dtype=np.float64))

    @property
    def is_degenerate(self) -> bool:
        return self.area <= SMALL_NUM

    def corner_attributes(self, corner: int) -> dict[str, np.ndarray]:
        """한 꼭짓점의 속성 행 복사본"""
        return {name: values[corner].copy() for name, values in self.attributes.items()}


def build_faces(
    mesh: LightmapMesh,
    mesh_index: int = 0,
    equivalencies: Optional[Sequence[Sequence[int]]] = None,
) -> list[Face]:
    """
    메쉬의 모든 삼각형을 Face로 변환

    Args:
        mesh: 입력 메쉬
        mesh_index: 엣지 키와 결과 매핑에 쓰이는 메쉬 번호
        equivalencies: vertex_dedup.find_equivalent_vertices 결과 (없으면 원본 인덱스 사용)

    Returns:
        list[Face]: 인덱스 버퍼 순서의 면 목록 (면적 0 포함)
    """
    if mesh.n_faces == 0:
        return []

    tris = mesh.faces
    world = transform_points(mesh.positions, mesh.world_matrix)
    corners = world[tris]

    cross = np.cross(corners[:, 0] - corners[:, 1], corners[:, 2] - corners[:, 1])
    double_area = np.linalg.norm(cross, axis=1)
    normals = np.zeros_like(cross)
    nonzero = double_area > 0
    normals[nonzero] = cross[nonzero] / double_area[nonzero, None]

    canonical = np.array(
        [canonical_index(equivalencies, i) for i in range(mesh.n_vertices)], dtype=np.int64
    )
    canon_tris = canonical[tris]

    faces: list[Face] = []
    for t in range(len(tris)):
        c = canon_tris[t]
        edge_keys = (
            make_edge_key(mesh_index, c[0], c[1]),
            make_edge_key(mesh_index, c[1], c[2]),
            make_edge_key(mesh_index, c[2], c[0]),
        )
        faces.append(
            Face(
                vertices=corners[t].copy(),
                vertex_indices=tris[t].copy(),
                normal=normals[t],
                area=float(double_area[t] / 2.0),
                mesh_index=int(mesh_index),
                index=3 * t,
                edge_keys=edge_keys,
                attributes={name: values[tris[t]] for name, values in mesh.attributes.items()},
            )
        )
    return faces

"""
Seam Resolver
심(seam) 처리 - 패킹된 UV를 정점 버퍼에 기록하고 필요 시 정점 복제

A vertex shared by corners that ended up with different UVs is split: the
later corners get a duplicated vertex carrying the same attributes and the
triangle index is rewritten to point at it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Iterable, Sequence

import numpy as np

from .face_builder import Face
from .mesh_loader import LightmapMesh

_LOGGER = logging.getLogger(__name__)

DEFAULT_LIGHTMAP_CHANNEL = 'uvs2'


@dataclass
class MeshUnwrap:
    """
    메쉬별 언랩 결과 (호출자가 원본 메쉬에 다시 기록)

    Attributes:
        name: 메쉬 이름
        positions: (N + A, 3) 로컬 좌표 (복제 정점이 뒤에 추가됨)
        indices: (M * 3,) 재작성된 인덱스
        attributes: 정점 속성 스트림 (복제 정점 포함)
        lightmap_uv: (N + A, 2) 새 라이트맵 UV
        world_matrix: 원본 월드 변환
        n_added_vertices: 심 때문에 추가된 정점 수
        lightmap_channel: 라이트맵 UV를 기록할 속성 이름
    """
    name: str
    positions: np.ndarray
    indices: np.ndarray
    attributes: dict[str, np.ndarray]
    lightmap_uv: np.ndarray
    world_matrix: np.ndarray
    n_added_vertices: int = 0
    lightmap_channel: str = DEFAULT_LIGHTMAP_CHANNEL

    @property
    def n_vertices(self) -> int:
        return len(self.positions)

    @property
    def n_faces(self) -> int:
        return len(self.indices) // 3

    def vertex_buffers(self) -> dict[str, np.ndarray]:
        """positions/indices/속성/라이트맵 채널을 하나의 사전으로"""
        buffers = {name: values for name, values in self.attributes.items()}
        buffers[self.lightmap_channel] = self.lightmap_uv
        buffers['positions'] = self.positions
        buffers['indices'] = self.indices
        return buffers

    def to_trimesh(self):
        """trimesh.Trimesh 변환 (라이트맵 UV는 visual.uv)"""
        from .mesh_loader import unwrap_to_trimesh

        return unwrap_to_trimesh(self)


@dataclass
class _SeamTable:
    """메쉬별 추가 정점 기록"""
    base_count: int
    lookup: dict[tuple[float, ...], int] = field(default_factory=dict)
    source_vertices: list[int] = field(default_factory=list)
    uvs: list[np.ndarray] = field(default_factory=list)
    attributes: dict[str, list[np.ndarray]] = field(default_factory=dict)

    def find_or_add(self, face: Face, corner: int) -> int:
        uv = face.uv[corner]
        pos = face.vertices[corner]
        key = (float(uv[0]), float(uv[1]), float(pos[0]), float(pos[1]), float(pos[2]))
        found = self.lookup.get(key)
        if found is not None:
            return found

        new_index = self.base_count + len(self.uvs)
        self.lookup[key] = new_index
        self.source_vertices.append(int(face.vertex_indices[corner]))
        self.uvs.append(uv.copy())
        for name, row in face.corner_attributes(corner).items():
            self.attributes.setdefault(name, []).append(row)
        return new_index


def _iter_faces(islands: Sequence[Sequence[Face]], degenerate_faces: Sequence[Face]) -> Iterable[Face]:
    for island in islands:
        yield from island
    yield from degenerate_faces


def resolve_seams(
    meshes: Sequence[LightmapMesh],
    islands: Sequence[Sequence[Face]],
    degenerate_faces: Sequence[Face] = (),
    lightmap_channel: str = DEFAULT_LIGHTMAP_CHANNEL,
) -> list[MeshUnwrap]:
    """
    최종 라이트맵 UV 및 정점/인덱스 버퍼 생성

    Args:
        meshes: 입력 메쉬 (Face.mesh_index 순서)
        islands: 패킹이 끝난 섬 목록
        degenerate_faces: UV (0, 0)으로 기록할 퇴화 면
        lightmap_channel: 결과 UV 채널 이름

    Returns:
        list[MeshUnwrap]: meshes 와 같은 순서의 결과
    """
    new_uvs = [np.full((m.n_vertices, 2), -1.0, dtype=np.float64) for m in meshes]
    assigned = [np.zeros(m.n_vertices, dtype=bool) for m in meshes]
    indices = [m.indices.copy() for m in meshes]
    tables = [_SeamTable(base_count=m.n_vertices) for m in meshes]

    for f in _iter_faces(islands, degenerate_faces):
        mi = f.mesh_index
        uv_buffer = new_uvs[mi]
        for k in range(3):
            v = int(f.vertex_indices[k])
            if not assigned[mi][v]:
                uv_buffer[v] = f.uv[k]
                assigned[mi][v] = True
            elif uv_buffer[v, 0] == f.uv[k, 0] and uv_buffer[v, 1] == f.uv[k, 1]:
                continue
            else:
                indices[mi][f.index + k] = tables[mi].find_or_add(f, k)

    results: list[MeshUnwrap] = []
    for mi, mesh in enumerate(meshes):
        table = tables[mi]
        uv = new_uvs[mi]

        unreferenced = ~assigned[mi]
        if unreferenced.any():
            uv[unreferenced] = 0.0

        n_added = len(table.uvs)
        if n_added:
            # exact local copies of the split vertex, not a round trip through the inverse matrix
            positions = np.vstack([mesh.positions, mesh.positions[table.source_vertices]])
            lightmap_uv = np.vstack([uv, np.array(table.uvs)])
            attributes = {
                name: np.vstack([values, np.array(table.attributes[name])])
                for name, values in mesh.attributes.items()
            }
        else:
            positions = mesh.positions.copy()
            lightmap_uv = uv
            attributes = {name: values.copy() for name, values in mesh.attributes.items()}

        attributes.pop(lightmap_channel, None)

        if n_added:
            _LOGGER.debug("Mesh '%s': split %d seam vertex/vertices", mesh.name, n_added)

        results.append(
            MeshUnwrap(
                name=mesh.name,
                positions=positions,
                indices=indices[mi],
                attributes=attributes,
                lightmap_uv=lightmap_uv,
                world_matrix=mesh.world_matrix.copy(),
                n_added_vertices=n_added,
                lightmap_channel=lightmap_channel,
            )
        )
    return results

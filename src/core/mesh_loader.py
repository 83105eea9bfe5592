"""
Mesh Loader Module
메쉬 파일 로딩 및 라이트맵 입력 데이터 구조 정의

Supports: OBJ, PLY, STL, OFF, GLTF/GLB formats
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, List, Union
import logging
import numpy as np

try:
    import trimesh
except ImportError:
    raise ImportError("trimesh is required. Install with: pip install trimesh")

if TYPE_CHECKING:
    from .uv_mapper import UnwrapResult

_LOGGER = logging.getLogger(__name__)

# Per-vertex attribute streams carried through unwrapping unchanged.
# Strides are only used to reshape flat arrays; 2D arrays keep their own width.
ATTRIBUTE_STRIDES = {
    'normals': 3,
    'tangents': 4,
    'uvs': 2,
    'uvs2': 2,
    'uvs3': 2,
    'uvs4': 2,
    'uvs5': 2,
    'uvs6': 2,
    'colors': 4,
    'matrices_indices': 4,
    'matrices_weights': 4,
    'matrices_indices_extra': 4,
    'matrices_weights_extra': 4,
}


def _as_attribute(name: str, value, n_vertices: int) -> np.ndarray:
    arr = np.asarray(value, dtype=np.float64)
    if arr.ndim == 1:
        stride = ATTRIBUTE_STRIDES.get(name)
        if stride is None:
            stride = arr.size // n_vertices if n_vertices else 1
        if stride <= 0 or arr.size != stride * n_vertices:
            raise ValueError(f"Attribute '{name}' has {arr.size} values for {n_vertices} vertices")
        arr = arr.reshape(n_vertices, stride)
    elif arr.ndim != 2 or arr.shape[0] != n_vertices:
        raise ValueError(f"Attribute '{name}' must have one row per vertex, got shape {arr.shape}")
    return arr


@dataclass
class LightmapMesh:
    """
    라이트맵 UV 생성 입력 메쉬

    Attributes:
        name: 메쉬 이름 (공유 공간 패킹 시 정렬 기준)
        positions: (N, 3) 로컬 정점 좌표
        indices: (M * 3,) 삼각형 인덱스 (평탄화된 목록)
        attributes: 정점별 속성 스트림 (normals, tangents, uvs, colors, ...)
        world_matrix: (4, 4) 로컬 → 월드 변환 (열 벡터 규약)
        filepath: 원본 파일 경로
    """
    name: str
    positions: np.ndarray
    indices: np.ndarray
    attributes: dict[str, np.ndarray] = field(default_factory=dict)
    world_matrix: Optional[np.ndarray] = None
    filepath: Optional[Path] = None

    def __post_init__(self):
        """데이터 검증 및 타입 변환"""
        self.name = str(self.name or "")

        positions = np.asarray(self.positions, dtype=np.float64)
        if positions.size % 3 != 0:
            raise ValueError(f"Mesh '{self.name}': positions must hold xyz triples")
        positions = positions.reshape(-1, 3)
        if not np.isfinite(positions).all():
            raise ValueError(f"Mesh '{self.name}': positions contain non-finite values")
        self.positions = positions

        indices = np.asarray(self.indices, dtype=np.int64).reshape(-1)
        if indices.size % 3 != 0:
            raise ValueError(f"Mesh '{self.name}': index count {indices.size} is not a multiple of 3")
        if indices.size and (indices.min() < 0 or indices.max() >= len(positions)):
            raise ValueError(f"Mesh '{self.name}': index out of range for {len(positions)} vertices")
        self.indices = indices

        self.attributes = {
            str(k): _as_attribute(str(k), v, len(positions))
            for k, v in (self.attributes or {}).items()
            if v is not None
        }

        if self.world_matrix is None:
            matrix = np.eye(4, dtype=np.float64)
        else:
            matrix = np.asarray(self.world_matrix, dtype=np.float64)
            if matrix.shape != (4, 4) or not np.isfinite(matrix).all():
                raise ValueError(f"Mesh '{self.name}': world_matrix must be a finite 4x4 matrix")
        self.world_matrix = matrix

    @property
    def n_vertices(self) -> int:
        """정점 개수"""
        return len(self.positions)

    @property
    def n_faces(self) -> int:
        """삼각형 개수"""
        return len(self.indices) // 3

    @property
    def faces(self) -> np.ndarray:
        """(M, 3) 삼각형 인덱스"""
        return self.indices.reshape(-1, 3)

    @property
    def world_positions(self) -> np.ndarray:
        """월드 좌표계 정점 좌표"""
        return transform_points(self.positions, self.world_matrix)

    @property
    def bounds(self) -> np.ndarray:
        """월드 경계 박스 [[min_x, min_y, min_z], [max_x, max_y, max_z]]"""
        if self.n_vertices == 0:
            return np.zeros((2, 3), dtype=np.float64)
        world = self.world_positions
        return np.array([world.min(axis=0), world.max(axis=0)])

    @property
    def surface_area(self) -> float:
        """월드 좌표 기준 총 표면적"""
        if self.n_faces == 0:
            return 0.0
        tri = self.world_positions[self.faces]
        cross = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
        return float(np.linalg.norm(cross, axis=1).sum() / 2.0)

    @classmethod
    def from_trimesh(cls, mesh: 'trimesh.Trimesh',
                     name: str = '',
                     transform: Optional[np.ndarray] = None,
                     filepath: Optional[Path] = None) -> 'LightmapMesh':
        """trimesh 객체에서 생성"""
        attributes: dict[str, np.ndarray] = {}

        if len(mesh.faces):
            attributes['normals'] = np.asarray(mesh.vertex_normals, dtype=np.float64)

        visual = getattr(mesh, "visual", None)
        uv = getattr(visual, "uv", None) if visual is not None else None
        if uv is not None and len(uv) == len(mesh.vertices):
            attributes['uvs'] = np.asarray(uv, dtype=np.float64)

        if visual is not None and getattr(visual, "kind", None) == 'vertex':
            colors = np.asarray(visual.vertex_colors, dtype=np.float64)
            if len(colors) == len(mesh.vertices):
                attributes['colors'] = colors / 255.0

        return cls(
            name=name or str(mesh.metadata.get('name', '') if mesh.metadata else ''),
            positions=mesh.vertices,
            indices=mesh.faces,
            attributes=attributes,
            world_matrix=transform,
            filepath=filepath,
        )


def transform_points(points: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """(N, 3) 점에 4x4 동차 변환 적용"""
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    homo = points @ matrix[:3, :3].T + matrix[:3, 3]
    w = points @ matrix[3, :3] + matrix[3, 3]
    if np.allclose(w, 1.0):
        return homo
    return homo / w[:, None]


class MeshLoader:
    """
    라이트맵 대상 장면 로더

    Scene graph nodes become one LightmapMesh each, keeping the node's world
    transform so packing happens in world units.
    """

    SUPPORTED_FORMATS = {
        '.obj': 'Wavefront OBJ',
        '.ply': 'Polygon File Format',
        '.stl': 'Stereolithography',
        '.off': 'Object File Format',
        '.gltf': 'GL Transmission Format',
        '.glb': 'GL Transmission Format (Binary)',
    }

    @classmethod
    def get_supported_formats(cls) -> dict:
        """지원 포맷 목록 반환"""
        return cls.SUPPORTED_FORMATS.copy()

    def _check_path(self, filepath: Union[str, Path]) -> Path:
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        ext = filepath.suffix.lower()
        supported = self.get_supported_formats()
        if ext not in supported:
            raise ValueError(
                f"Unsupported format: {ext}\n"
                f"Supported formats: {list(supported.keys())}"
            )
        return filepath

    @staticmethod
    def _load_scene(filepath: Path) -> 'trimesh.Scene':
        try:
            # 정점 순서 유지: process 비활성화
            loaded = trimesh.load(str(filepath), force='scene', process=False, maintain_order=True)
        except TypeError:
            # 구버전 trimesh 호환
            loaded = trimesh.load(str(filepath), force='scene')
        if isinstance(loaded, trimesh.Trimesh):
            loaded = trimesh.Scene(loaded)
        return loaded

    def load(self, filepath: Union[str, Path]) -> List[LightmapMesh]:
        """
        장면 파일 로드

        Args:
            filepath: 메쉬 파일 경로

        Returns:
            List[LightmapMesh]: 노드별 메쉬 목록

        Raises:
            FileNotFoundError: 파일이 존재하지 않음
            ValueError: 지원하지 않는 포맷 또는 메쉬 없음
        """
        filepath = self._check_path(filepath)
        scene = self._load_scene(filepath)

        meshes: List[LightmapMesh] = []
        for node_name in scene.graph.nodes_geometry:
            transform, geom_name = scene.graph[node_name]
            geometry = scene.geometry.get(geom_name)
            if not isinstance(geometry, trimesh.Trimesh):
                _LOGGER.debug("Skipping non-triangle geometry %s in %s", geom_name, filepath)
                continue
            meshes.append(
                LightmapMesh.from_trimesh(
                    geometry,
                    name=str(node_name),
                    transform=np.asarray(transform, dtype=np.float64),
                    filepath=filepath,
                )
            )

        if not meshes:
            raise ValueError(f"No valid mesh found in: {filepath}")
        _LOGGER.info("Loaded %d mesh node(s) from %s", len(meshes), filepath)
        return meshes

    def get_file_info(self, filepath: Union[str, Path]) -> dict:
        """
        파일 정보 미리보기

        Args:
            filepath: 메쉬 파일 경로

        Returns:
            dict: 파일 정보 딕셔너리
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"File not found: {filepath}")

        ext = filepath.suffix.lower()
        info = {
            'filename': filepath.name,
            'format': self.SUPPORTED_FORMATS.get(ext, 'Unknown'),
            'extension': ext,
            'file_size_mb': round(filepath.stat().st_size / (1024 * 1024), 2),
        }

        try:
            meshes = self.load(filepath)
        except (ValueError, OSError) as e:
            info['error'] = str(e)
            return info

        info['n_meshes'] = len(meshes)
        info['n_vertices'] = sum(m.n_vertices for m in meshes)
        info['n_faces'] = sum(m.n_faces for m in meshes)
        info['has_uv'] = any('uvs' in m.attributes for m in meshes)
        info['extents'] = [round(float(v), 6) for v in scene_extents(meshes)]
        return info


def unwrap_to_trimesh(mesh_unwrap) -> 'trimesh.Trimesh':
    """
    언랩 결과를 trimesh 객체로 변환

    The lightmap channel becomes the visual UV; the other attribute streams
    travel as vertex attributes.
    """
    attributes = dict(mesh_unwrap.attributes)
    normals = attributes.pop('normals', None)
    attributes.pop(mesh_unwrap.lightmap_channel, None)

    mesh = trimesh.Trimesh(
        vertices=mesh_unwrap.positions,
        faces=mesh_unwrap.indices.reshape(-1, 3),
        vertex_normals=normals,
        visual=trimesh.visual.TextureVisuals(uv=mesh_unwrap.lightmap_uv),
        process=False,
    )
    for key, value in attributes.items():
        mesh.vertex_attributes[key] = value
    return mesh


def save_unwrapped_scene(result: 'UnwrapResult', filepath: Union[str, Path]) -> Path:
    """
    언랩 결과를 장면 파일로 저장

    Args:
        result: UVMapper.map() 결과
        filepath: 저장할 파일 경로 (.glb 권장)
    """
    filepath = Path(filepath)
    scene = trimesh.Scene()
    for mesh_unwrap in result.meshes:
        scene.add_geometry(
            unwrap_to_trimesh(mesh_unwrap),
            node_name=mesh_unwrap.name or None,
            geom_name=mesh_unwrap.name or None,
            transform=mesh_unwrap.world_matrix,
        )
    scene.metadata['world_to_texel_ratio'] = float(result.world_to_texel_ratio)
    scene.export(str(filepath))
    _LOGGER.info("Saved unwrapped scene: %s", filepath)
    return filepath


def scene_extents(meshes: List[LightmapMesh]) -> np.ndarray:
    """여러 메쉬를 합친 월드 경계 박스 크기"""
    bounds = [m.bounds for m in meshes if m.n_vertices]
    if not bounds:
        return np.zeros(3, dtype=np.float64)
    stacked = np.vstack(bounds)
    return stacked.max(axis=0) - stacked.min(axis=0)

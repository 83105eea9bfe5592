"""
Lightmap UV Mapper
라이트맵 UV 생성 - 투영 그룹화, 섬 구성, 패킹, 심 처리 파이프라인

Given triangle meshes, produces a second UV channel with no overlapping
triangles, packed into the unit square, duplicating vertices along seams.
Meshes are sorted by name first so a scene unwraps the same way every run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import math
import time
from typing import Any, Optional, Sequence

from .box_packer import PackResult, pack_islands
from .face_builder import Face, build_faces
from .island_merge import merge_uv_islands
from .islands import Island, get_uv_islands
from .logging_utils import format_settings, log_once
from .mesh_loader import LightmapMesh
from .projection import find_projection_vectors, group_faces_by_projection, project_groups
from .runtime_defaults import DEFAULTS
from .seam_resolver import DEFAULT_LIGHTMAP_CHANNEL, MeshUnwrap, resolve_seams
from .vertex_dedup import find_equivalent_vertices

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnwrapOptions:
    """
    언랩 옵션

    Attributes:
        island_margin: 섬 크기 대비 여백 비율
        projection_limit: 투영 방향 허용 각도 (도)
        area_weight: 평균 법선의 면적 가중치 (0..1)
        remove_doubles: 같은 위치 정점을 엣지 인접 판정에서 동일시
        share_space: 모든 메쉬를 하나의 UV 공간에 패킹
        fill_holes: 패킹 전 작은 섬을 큰 섬 안에 병합
        fill_holes_quality: 병합 탐색 품질 (1..100)
        lightmap_channel: 결과 UV 채널 이름
    """
    island_margin: float = 0.0
    projection_limit: float = 89.0
    area_weight: float = 0.0
    remove_doubles: bool = True
    share_space: bool = True
    fill_holes: bool = False
    fill_holes_quality: int = 1
    lightmap_channel: str = DEFAULT_LIGHTMAP_CHANNEL

    def __post_init__(self):
        if not math.isfinite(self.island_margin) or self.island_margin < 0:
            raise ValueError(f"island_margin must be a finite value >= 0, got {self.island_margin}")
        if not math.isfinite(self.projection_limit) or not 0 < self.projection_limit <= 180:
            raise ValueError(f"projection_limit must be in (0, 180] degrees, got {self.projection_limit}")
        if not math.isfinite(self.area_weight) or not 0 <= self.area_weight <= 1:
            raise ValueError(f"area_weight must be in [0, 1], got {self.area_weight}")
        if not 1 <= int(self.fill_holes_quality) <= 100:
            raise ValueError(f"fill_holes_quality must be in [1, 100], got {self.fill_holes_quality}")

    @classmethod
    def from_defaults(cls, **overrides) -> 'UnwrapOptions':
        """환경 변수 기반 기본값에서 생성"""
        values: dict[str, Any] = {
            'island_margin': DEFAULTS.island_margin,
            'projection_limit': DEFAULTS.projection_limit,
            'area_weight': DEFAULTS.area_weight,
            'remove_doubles': DEFAULTS.remove_doubles,
            'fill_holes': DEFAULTS.fill_holes,
        }
        values.update(overrides)
        return cls(**values)


@dataclass
class UnwrapResult:
    """
    언랩 결과

    Attributes:
        meshes: 이름순으로 정렬된 입력에 대응하는 메쉬별 결과
        world_to_texel_ratio: 패킹 정규화 배율 (라이트맵 텍스처 크기 산정용)
        islands: 최종 섬 목록
        degenerate_faces: UV (0, 0)으로 처리된 면
        pack_width, pack_height, pack_fill: 정규화 전 패킹 치수와 활용률
        n_projection_vectors: meshes 와 같은 순서의 메쉬별 투영 벡터 수
        meta: 처리 통계
    """
    meshes: list[MeshUnwrap]
    world_to_texel_ratio: float
    islands: list[Island] = field(default_factory=list)
    degenerate_faces: list[Face] = field(default_factory=list)
    pack_width: float = 0.0
    pack_height: float = 0.0
    pack_fill: float = 0.0
    n_projection_vectors: list[int] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def n_islands(self) -> int:
        return len(self.islands)

    def get_mesh(self, name: str) -> Optional[MeshUnwrap]:
        """이름이 같은 첫 메쉬 (이름이 겹치면 meshes 를 직접 순회)"""
        for mesh in self.meshes:
            if mesh.name == name:
                return mesh
        return None


class UVMapper:
    """
    라이트맵 UV 매퍼

    Single-threaded and synchronous. Every call builds its faces, islands and
    boxes from scratch; nothing is kept between calls.
    """

    def __init__(self, options: Optional[UnwrapOptions] = None):
        """
        Args:
            options: 언랩 옵션 (None이면 환경 변수 기본값)
        """
        self.options = options if options is not None else UnwrapOptions.from_defaults()

    def _mesh_islands(
        self, mesh: LightmapMesh, mesh_index: int, degenerate: list[Face]
    ) -> tuple[list[Island], int]:
        opts = self.options

        equivalencies = find_equivalent_vertices(mesh.positions) if opts.remove_doubles else None
        faces = build_faces(mesh, mesh_index, equivalencies)
        faces.sort(key=lambda f: -f.area)

        while faces and faces[-1].is_degenerate:
            f = faces.pop()
            f.uv[:] = 0.0
            degenerate.append(f)

        if not faces:
            return [], 0

        project_vecs = find_projection_vectors(
            faces,
            projection_limit=opts.projection_limit,
            area_weight=opts.area_weight,
        )
        if not project_vecs:
            log_once(
                _LOGGER,
                f"uv_mapper:no_projection:{mesh.name}",
                logging.WARNING,
                "Mesh '%s': no projection vectors were generated; zero-area faces can cause this",
                mesh.name,
            )
            for f in faces:
                f.uv[:] = 0.0
            degenerate.extend(faces)
            return [], 0

        groups = group_faces_by_projection(faces, project_vecs)
        project_groups(groups, project_vecs)
        return get_uv_islands(groups), len(project_vecs)

    def _pack(self, islands: list[Island]) -> tuple[list[Island], PackResult]:
        if self.options.fill_holes:
            islands = merge_uv_islands(islands, quality=self.options.fill_holes_quality)
        return islands, pack_islands(islands, margin=self.options.island_margin)

    def map(self, meshes: Sequence[LightmapMesh]) -> UnwrapResult:
        """
        라이트맵 UV 생성

        Args:
            meshes: 입력 메쉬 목록 (변경되지 않음)

        Returns:
            UnwrapResult: 메쉬별 새 버퍼와 world_to_texel_ratio
        """
        started = time.perf_counter()
        opts = self.options
        _LOGGER.debug("Unwrap options: %s", format_settings(opts))

        ordered = sorted(meshes, key=lambda m: m.name)
        names = [m.name for m in ordered]
        if len(set(names)) != len(names):
            _LOGGER.warning("Mesh names are not unique; look results up by position, not by name")

        collected: list[Island] = []
        degenerate: list[Face] = []
        n_projection_vectors: list[int] = [0] * len(ordered)
        pack: Optional[PackResult] = None

        for mesh_index, mesh in enumerate(ordered):
            if mesh.n_vertices == 0 or mesh.n_faces == 0:
                _LOGGER.debug("Mesh '%s' has no triangles; skipped", mesh.name)
                continue

            islands, n_vecs = self._mesh_islands(mesh, mesh_index, degenerate)
            n_projection_vectors[mesh_index] = n_vecs

            if opts.share_space:
                collected.extend(islands)
            elif islands:
                islands, pack = self._pack(islands)
                collected.extend(islands)

        if opts.share_space:
            collected, pack = self._pack(collected)

        results = resolve_seams(ordered, collected, degenerate, lightmap_channel=opts.lightmap_channel)

        world_to_texel_ratio = pack.scale if pack is not None else 1.0
        elapsed = time.perf_counter() - started
        meta = {
            'n_meshes': len(ordered),
            'n_islands': len(collected),
            'n_degenerate_faces': len(degenerate),
            'n_added_vertices': sum(r.n_added_vertices for r in results),
            'elapsed_s': elapsed,
        }
        _LOGGER.info(
            "Unwrapped %d mesh(es): %d island(s), %d seam vertex/vertices, ratio=%.6g (%.2fs)",
            meta['n_meshes'],
            meta['n_islands'],
            meta['n_added_vertices'],
            world_to_texel_ratio,
            elapsed,
        )

        return UnwrapResult(
            meshes=results,
            world_to_texel_ratio=world_to_texel_ratio,
            islands=collected,
            degenerate_faces=degenerate,
            pack_width=pack.width if pack is not None else 0.0,
            pack_height=pack.height if pack is not None else 0.0,
            pack_fill=pack.fill if pack is not None else 0.0,
            n_projection_vectors=n_projection_vectors,
            meta=meta,
        )


def generate_lightmap_uvs(meshes: Sequence[LightmapMesh], **options) -> UnwrapResult:
    """UVMapper(UnwrapOptions.from_defaults(**options)).map(meshes) 단축 함수"""
    return UVMapper(UnwrapOptions.from_defaults(**options)).map(meshes)

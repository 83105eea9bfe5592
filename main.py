"""
LightmapUV - Lightmap UV generation for triangle mesh scenes
라이트맵 UV 생성 도구

Main entry point
"""

import sys
import os
import logging
from pathlib import Path

# Ensure repository root is on sys.path so "src" is importable.
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from src.core.runtime_defaults import DEFAULTS
from src.core.output_paths import lightmap_output_path, uv_layout_output_path

_LOGGER = logging.getLogger(__name__)
DEFAULT_PREVIEW_RESOLUTION = DEFAULTS.preview_resolution


def run_cli():
    """커맨드라인 인터페이스 실행"""
    try:
        from src.core.logging_utils import setup_logging

        setup_logging()
    except Exception as e:
        _LOGGER.debug("Failed to initialize logging: %s", e, exc_info=True)

    if len(sys.argv) < 2:
        print_help()
        return

    cmd = sys.argv[1]

    if cmd == '--help' or cmd == '-h':
        print_help()
        return

    if cmd == '--info' and len(sys.argv) > 2:
        show_file_info(sys.argv[2])
        return

    if cmd == '--preview' and len(sys.argv) > 2:
        preview_layout(sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else None)
        return

    # 기본: 파일 처리
    if os.path.exists(cmd):
        process_mesh(cmd, sys.argv[2] if len(sys.argv) > 2 else None)
    else:
        print(f"Error: Unknown command or file not found: {cmd}")
        print("Use --help for usage information")


def print_help():
    """도움말 출력"""
    from src.core.mesh_loader import MeshLoader

    print("=" * 60)
    print("LightmapUV - Lightmap UV Generator")
    print("라이트맵 UV 생성 도구")
    print("=" * 60)
    print()
    print("Usage:")
    print("  python main.py <mesh_file> [output]             # Unwrap and export scene")
    print("  python main.py --info <mesh_file>               # Show file info")
    print("  python main.py --preview <mesh_file> [png]      # Render UV layout preview")
    print()
    print("Supported formats:")
    for ext, label in MeshLoader.get_supported_formats().items():
        print(f"  {ext:<6} {label}")
    print()
    print("Environment:")
    print(f"  LIGHTMAPUV_ISLAND_MARGIN     (current: {DEFAULTS.island_margin})")
    print(f"  LIGHTMAPUV_PROJECTION_LIMIT  (current: {DEFAULTS.projection_limit})")
    print(f"  LIGHTMAPUV_AREA_WEIGHT       (current: {DEFAULTS.area_weight})")
    print(f"  LIGHTMAPUV_REMOVE_DOUBLES    (current: {DEFAULTS.remove_doubles})")
    print(f"  LIGHTMAPUV_FILL_HOLES        (current: {DEFAULTS.fill_holes})")
    print()
    print("Examples:")
    print("  python main.py level.glb")
    print("  python main.py --preview level.glb layout.png")


def show_file_info(filepath: str):
    """파일 정보 표시"""
    from src.core.mesh_loader import MeshLoader

    print(f"\nFile Info: {filepath}")
    print("-" * 40)

    try:
        loader = MeshLoader()
        info = loader.get_file_info(filepath)
        for key, value in info.items():
            print(f"  {key}: {value}")
    except Exception as e:
        print(f"  Error: {e}")


def _unwrap(filepath: str):
    from src.core.mesh_loader import MeshLoader
    from src.core.uv_mapper import UVMapper

    loader = MeshLoader()
    meshes = loader.load(filepath)
    print(f"  Loaded: {len(meshes)} mesh(es), "
          f"{sum(m.n_vertices for m in meshes):,} vertices, "
          f"{sum(m.n_faces for m in meshes):,} faces")
    return UVMapper().map(meshes)


def process_mesh(filepath: str, output_path: str | None = None):
    """메쉬 전체 처리 (로드 → 언랩 → 저장 → 미리보기)"""
    from src.core.mesh_loader import MeshLoader, save_unwrapped_scene, scene_extents
    from src.core.uv_mapper import UVMapper
    from src.core.uv_layout_preview import UVLayoutPreview

    print(f"\n{'='*60}")
    print(f"Processing: {filepath}")
    print(f"{'='*60}")

    try:
        # 1. 로드
        print("\n[1/4] Loading mesh...")
        loader = MeshLoader()
        meshes = loader.load(filepath)

        print(f"      Meshes: {len(meshes)}")
        print(f"      Vertices: {sum(m.n_vertices for m in meshes):,}")
        print(f"      Faces: {sum(m.n_faces for m in meshes):,}")
        print(f"      Surface Area: {sum(m.surface_area for m in meshes):,.2f}")
        size = scene_extents(meshes)
        print(f"      Size: {size[0]:.2f} x {size[1]:.2f} x {size[2]:.2f}")

        # 2. 언랩
        print("\n[2/4] Generating lightmap UVs...")
        result = UVMapper().map(meshes)

        print(f"      Islands: {result.n_islands:,}")
        print(f"      Seam vertices added: {result.meta['n_added_vertices']:,}")
        print(f"      Degenerate faces: {len(result.degenerate_faces):,}")
        print(f"      Pack fill: {result.pack_fill:.1%}")
        print(f"      World to texel ratio: {result.world_to_texel_ratio:.6g}")

        # 3. 저장
        print("\n[3/4] Saving scene...")
        save_path = lightmap_output_path(filepath, output_path)
        save_unwrapped_scene(result, save_path)
        print(f"      Saved: {save_path}")

        # 4. 미리보기
        print("\n[4/4] Rendering UV layout...")
        preview = UVLayoutPreview(resolution=DEFAULT_PREVIEW_RESOLUTION).render(result)
        preview_path = preview.save(uv_layout_output_path(filepath))
        print(f"      Saved: {preview_path}")

        print(f"\n{'='*60}")
        print("Done!")
        print(f"{'='*60}")

    except Exception as e:
        print(f"\nError: {e}")
        import traceback
        traceback.print_exc()


def preview_layout(filepath: str, output_path: str | None = None):
    """UV 배치 미리보기만 생성"""
    from src.core.uv_layout_preview import UVLayoutPreview, uv_coverage

    print(f"\nPreviewing: {filepath}")
    print("-" * 40)

    try:
        result = _unwrap(filepath)
        print(f"  Islands: {result.n_islands:,}, coverage: {uv_coverage(result):.1%}")

        preview = UVLayoutPreview(resolution=DEFAULT_PREVIEW_RESOLUTION).render(result)
        save_path = preview.save(uv_layout_output_path(filepath, output_path))

        print(f"  Saved: {save_path}")

    except Exception as e:
        print(f"Error: {e}")
        import traceback
        traceback.print_exc()


if __name__ == '__main__':
    run_cli()

"""
Core processing modules for LightmapUV
"""

from .mesh_loader import MeshLoader, LightmapMesh
from .uv_mapper import UVMapper, UnwrapOptions, UnwrapResult, generate_lightmap_uvs
from .seam_resolver import MeshUnwrap
from .uv_layout_preview import UVLayoutPreview, UVLayoutImage

__all__ = [
    # Mesh loading
    'MeshLoader',
    'LightmapMesh',
    # Unwrapping
    'UVMapper',
    'UnwrapOptions',
    'UnwrapResult',
    'MeshUnwrap',
    'generate_lightmap_uvs',
    # Layout preview
    'UVLayoutPreview',
    'UVLayoutImage',
]

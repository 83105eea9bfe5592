import tempfile
import unittest
from pathlib import Path

import trimesh
from PIL import Image

from src.core.mesh_loader import LightmapMesh
from src.core.uv_layout_preview import UVLayoutPreview, uv_coverage
from src.core.uv_mapper import generate_lightmap_uvs


class TestUVLayoutPreview(unittest.TestCase):
    def setUp(self):
        box = trimesh.creation.box(extents=(1.0, 1.0, 1.0))
        self.result = generate_lightmap_uvs([LightmapMesh.from_trimesh(box, name="cube")])

    def test_render_and_save(self):
        preview = UVLayoutPreview(resolution=64).render(self.result)

        self.assertEqual(preview.image.size, (64, 64))
        self.assertEqual(preview.resolution, 64)
        self.assertAlmostEqual(preview.world_to_texel_ratio, self.result.world_to_texel_ratio)
        # some outline pixels were drawn
        colors = preview.image.getcolors(maxcolors=64 * 64)
        self.assertGreater(len(colors), 1)

        with tempfile.TemporaryDirectory() as tmp:
            path = preview.save(Path(tmp) / "layout.png")
            with Image.open(path) as img:
                self.assertEqual(img.size, (64, 64))

    def test_render_resolution_override(self):
        preview = UVLayoutPreview(resolution=64).render(self.result, 32)

        self.assertEqual(preview.image.size, (32, 32))

    def test_coverage_matches_cube_layout(self):
        # six unit squares in a 2 x 3 layout cover two thirds of the square
        coverage = uv_coverage(self.result, resolution=300)

        self.assertGreater(coverage, 0.6)
        self.assertLess(coverage, 0.72)


if __name__ == '__main__':
    unittest.main()

import math
import unittest

import numpy as np

from src.core.face_builder import Face, make_edge_key
from src.core.islands import build_islands, get_uv_islands, island_uv_points, optimize_island_rotation
from src.core.hull_fit import uv_bounds


def _face(idx, verts, uv=None):
    verts = list(verts)
    keys = (
        make_edge_key(0, verts[0], verts[1]),
        make_edge_key(0, verts[1], verts[2]),
        make_edge_key(0, verts[2], verts[0]),
    )
    return Face(
        vertices=np.zeros((3, 3)),
        vertex_indices=np.array(verts),
        normal=np.array([0.0, 0.0, 1.0]),
        area=0.5,
        mesh_index=0,
        index=3 * idx,
        edge_keys=keys,
        uv=np.zeros((3, 2)) if uv is None else np.array(uv, dtype=np.float64),
    )


class TestIslands(unittest.TestCase):
    def test_edge_connected_components(self):
        faces = [
            _face(0, [0, 1, 2]),
            _face(1, [2, 1, 3]),
            _face(2, [3, 4, 5]),  # touches face 1 at a vertex only
            _face(3, [5, 4, 6]),
        ]
        islands = build_islands(faces)

        self.assertEqual(len(islands), 2)
        self.assertEqual([f.index for f in islands[0]], [0, 3])
        self.assertEqual([f.index for f in islands[1]], [6, 9])

    def test_every_face_in_exactly_one_island(self):
        faces = [_face(i, [i, i + 1, i + 2]) for i in range(10)]
        islands = build_islands(faces)

        seen = [id(f) for island in islands for f in island]
        self.assertEqual(len(seen), len(faces))
        self.assertEqual(set(seen), {id(f) for f in faces})

    def test_rotation_makes_island_landscape(self):
        tall = _face(0, [0, 1, 2], uv=[[0, 0], [1, 0], [0, 3]])
        optimize_island_rotation([tall])

        min_x, min_y, max_x, max_y = uv_bounds(tall.uv)
        self.assertGreaterEqual(max_x - min_x, max_y - min_y - 1e-5)
        self.assertAlmostEqual((max_x - min_x) * (max_y - min_y), 3.0)

    def test_rotation_aligns_tilted_square(self):
        c, s = math.cos(0.3), math.sin(0.3)
        square = np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=np.float64) @ np.array([[c, s], [-s, c]])
        faces = [
            _face(0, [0, 1, 2], uv=square[[0, 1, 2]]),
            _face(1, [0, 2, 3], uv=square[[0, 2, 3]]),
        ]
        optimize_island_rotation(faces)

        min_x, min_y, max_x, max_y = uv_bounds(island_uv_points(faces))
        self.assertAlmostEqual(max_x - min_x, 1.0)
        self.assertAlmostEqual(max_y - min_y, 1.0)

    def test_get_uv_islands_skips_empty_groups(self):
        groups = [[_face(0, [0, 1, 2])], [], [_face(1, [3, 4, 5])]]
        islands = get_uv_islands(groups)

        self.assertEqual([island[0].index for island in islands], [3, 0])


if __name__ == '__main__':
    unittest.main()

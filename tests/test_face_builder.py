import unittest

import numpy as np

from src.core.face_builder import build_faces, make_edge_key
from src.core.mesh_loader import LightmapMesh
from src.core.vertex_dedup import find_equivalent_vertices


def _split_quad() -> LightmapMesh:
    # Two triangles of a unit quad with the diagonal vertices duplicated.
    positions = np.array(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
        ]
    )
    return LightmapMesh(
        name="quad",
        positions=positions,
        indices=[0, 1, 2, 3, 4, 5],
        attributes={"uvs": np.arange(12, dtype=np.float64)},
    )


class TestFaceBuilder(unittest.TestCase):
    def test_edge_key_is_order_independent(self):
        self.assertEqual(make_edge_key(2, 5, 9), make_edge_key(2, 9, 5))
        self.assertNotEqual(make_edge_key(1, 5, 9), make_edge_key(2, 5, 9))
        self.assertEqual(make_edge_key(3, 9, 5), (3 << 64) | (5 << 32) | 9)

    def test_face_records(self):
        faces = build_faces(_split_quad(), mesh_index=1)

        self.assertEqual(len(faces), 2)
        self.assertAlmostEqual(faces[0].area, 0.5)
        self.assertEqual(faces[1].index, 3)
        self.assertEqual(faces[1].mesh_index, 1)
        np.testing.assert_allclose(np.abs(faces[0].normal), [0.0, 0.0, 1.0])
        np.testing.assert_array_equal(faces[1].attributes["uvs"], [[6.0, 7.0], [8.0, 9.0], [10.0, 11.0]])
        self.assertEqual(faces[0].uv.shape, (3, 2))

    def test_diagonal_edge_shared_only_with_equivalencies(self):
        mesh = _split_quad()

        plain = build_faces(mesh)
        self.assertFalse(set(plain[0].edge_keys) & set(plain[1].edge_keys))

        merged = build_faces(mesh, equivalencies=find_equivalent_vertices(mesh.positions))
        self.assertEqual(len(set(merged[0].edge_keys) & set(merged[1].edge_keys)), 1)

    def test_world_matrix_applied(self):
        mesh = _split_quad()
        matrix = np.diag([2.0, 2.0, 2.0, 1.0])
        matrix[:3, 3] = [10.0, 0.0, 0.0]
        mesh.world_matrix = matrix

        faces = build_faces(mesh)

        self.assertAlmostEqual(faces[0].area, 2.0)
        np.testing.assert_allclose(faces[0].vertices[0], [10.0, 0.0, 0.0])

    def test_degenerate_face_has_zero_normal(self):
        mesh = LightmapMesh(
            name="line",
            positions=[[0, 0, 0], [1, 0, 0], [2, 0, 0]],
            indices=[0, 1, 2],
        )
        faces = build_faces(mesh)

        self.assertTrue(faces[0].is_degenerate)
        np.testing.assert_array_equal(faces[0].normal, np.zeros(3))


if __name__ == '__main__':
    unittest.main()

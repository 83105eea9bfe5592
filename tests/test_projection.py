import unittest

import numpy as np
import trimesh

from src.core.face_builder import Face, build_faces
from src.core.mesh_loader import LightmapMesh
from src.core.projection import (
    find_projection_vectors,
    group_faces_by_projection,
    project_groups,
    projection_matrix,
)


def _cube_faces():
    box = trimesh.creation.box(extents=(1.0, 1.0, 1.0))
    faces = build_faces(LightmapMesh.from_trimesh(box, name="cube"))
    faces.sort(key=lambda f: -f.area)
    return faces


class TestProjection(unittest.TestCase):
    def test_cube_needs_six_directions(self):
        faces = _cube_faces()
        vecs = find_projection_vectors(faces, projection_limit=89.0)

        self.assertEqual(len(vecs), 6)
        axes = np.round(np.abs(np.array(vecs))).sum(axis=0)
        np.testing.assert_array_equal(axes, [2.0, 2.0, 2.0])

    def test_groups_hold_coplanar_pairs(self):
        faces = _cube_faces()
        vecs = find_projection_vectors(faces)
        groups = group_faces_by_projection(faces, vecs)

        self.assertEqual(sorted(len(g) for g in groups), [2] * 6)
        for group, vec in zip(groups, vecs):
            for f in group:
                self.assertGreater(float(f.normal @ vec), 0.99)

    def test_wide_limit_merges_directions(self):
        faces = _cube_faces()
        vecs = find_projection_vectors(faces, projection_limit=180.0)

        self.assertEqual(len(vecs), 1)

    def test_empty_faces(self):
        self.assertEqual(find_projection_vectors([]), [])
        self.assertEqual(group_faces_by_projection([], []), [])

    def test_projection_matrix_is_orthonormal(self):
        for vec in ([0.0, 0.0, 1.0], [0.0, 0.0, -1.0], [1.0, 2.0, 3.0], [1.0, 0.0, 0.0]):
            basis = projection_matrix(np.array(vec))
            np.testing.assert_allclose(basis @ basis.T, np.eye(3), atol=1e-12)
            np.testing.assert_allclose(basis[2], np.array(vec) / np.linalg.norm(vec))

    def test_projected_uv_preserves_face_area(self):
        faces = _cube_faces()
        vecs = find_projection_vectors(faces)
        groups = group_faces_by_projection(faces, vecs)
        project_groups(groups, vecs)

        for f in faces:
            e1 = f.uv[1] - f.uv[0]
            e2 = f.uv[2] - f.uv[0]
            uv_area = abs(e1[0] * e2[1] - e1[1] * e2[0]) / 2.0
            self.assertAlmostEqual(uv_area, f.area)


def _oriented_face(normal, area=1.0, index=0):
    normal = np.asarray(normal, dtype=np.float64)
    normal = normal / np.linalg.norm(normal)
    return Face(
        vertices=np.zeros((3, 3)),
        vertex_indices=np.array([0, 1, 2]),
        normal=normal,
        area=area,
        mesh_index=0,
        index=3 * index,
        edge_keys=(0, 0, 0),
    )


class TestProjectionWeighting(unittest.TestCase):
    def setUp(self):
        tilt = np.radians(30.0)
        self.n_big = np.array([0.0, 0.0, 1.0])
        self.n_small = np.array([np.sin(tilt), 0.0, np.cos(tilt)])
        self.faces = [_oriented_face(self.n_big, area=4.0, index=0), _oriented_face(self.n_small, area=1.0, index=1)]

    def _expected(self, w_big, w_small):
        v = w_big * self.n_big + w_small * self.n_small
        return v / np.linalg.norm(v)

    def test_area_weight_blends_normals(self):
        for area_weight, weights in ((0.0, (1.0, 1.0)), (0.5, (2.5, 1.0)), (1.0, (4.0, 1.0))):
            with self.subTest(area_weight=area_weight):
                vecs = find_projection_vectors(self.faces, area_weight=area_weight)

                self.assertEqual(len(vecs), 1)
                np.testing.assert_allclose(vecs[0], self._expected(*weights), atol=1e-12)

    def test_full_area_weight_leans_toward_big_face(self):
        plain = find_projection_vectors(self.faces, area_weight=0.0)[0]
        weighted = find_projection_vectors(self.faces, area_weight=1.0)[0]

        self.assertGreater(float(weighted @ self.n_big), float(plain @ self.n_big))


class TestProjectionTieBreaks(unittest.TestCase):
    def test_most_unique_tie_goes_to_highest_index(self):
        faces = [
            _oriented_face([0.0, 0.0, 1.0], index=0),
            _oriented_face([1.0, 0.0, 0.0], index=1),
            _oriented_face([0.0, 1.0, 0.0], index=2),
        ]
        vecs = find_projection_vectors(faces, projection_limit=89.0)

        np.testing.assert_allclose(vecs, [[0, 0, 1], [0, 1, 0], [1, 0, 0]], atol=1e-12)

    def test_group_tie_prefers_first_then_highest(self):
        vecs = [np.array([1.0, 0.0, 0.0]), np.array([0.0, 1.0, 0.0]), np.array([0.0, 0.0, 1.0])]
        all_three = _oriented_face([1.0, 1.0, 1.0], index=0)
        last_two = _oriented_face([0.0, 1.0, 1.0], index=1)

        groups = group_faces_by_projection([all_three, last_two], vecs)

        self.assertEqual(groups[0], [all_three])
        self.assertEqual(groups[1], [])
        self.assertEqual(groups[2], [last_two])

    def test_round_cap_stops_search_with_warning(self):
        faces = _cube_faces()

        with self.assertLogs("src.core.projection", level="WARNING") as logs:
            vecs = find_projection_vectors(faces, max_rounds=1)

        self.assertEqual(len(vecs), 1)
        self.assertIn("stopped after 1 rounds", logs.output[0])


if __name__ == '__main__':
    unittest.main()

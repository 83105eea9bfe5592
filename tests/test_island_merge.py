import unittest
from unittest import mock

import numpy as np

from src.core import island_merge
from src.core.face_builder import Face, SMALL_NUM, make_edge_key
from src.core.island_merge import IslandOverlap, _decorate, island_intersect, island_to_edges, merge_uv_islands


def _tri(uv, verts=(0, 1, 2), area=None):
    uv = np.array(uv, dtype=np.float64)
    if area is None:
        e1 = uv[1] - uv[0]
        e2 = uv[2] - uv[0]
        area = abs(e1[0] * e2[1] - e1[1] * e2[0]) / 2.0
    return Face(
        vertices=np.zeros((3, 3)),
        vertex_indices=np.array(verts),
        normal=np.array([0.0, 0.0, 1.0]),
        area=area,
        mesh_index=0,
        index=0,
        edge_keys=(
            make_edge_key(0, verts[0], verts[1]),
            make_edge_key(0, verts[1], verts[2]),
            make_edge_key(0, verts[2], verts[0]),
        ),
        uv=uv,
    )


class TestIslandMerge(unittest.TestCase):
    def test_interior_edges_have_no_segment(self):
        faces = [
            _tri([[0, 0], [1, 0], [1, 1]], verts=(0, 1, 2)),
            _tri([[0, 0], [1, 1], [0, 1]], verts=(0, 2, 3)),
        ]
        edges, points = island_to_edges(faces)

        self.assertEqual(len(edges), 5)
        self.assertEqual(sum(e.segment is None for e in edges), 1)
        self.assertEqual(len(points), 4)
        lengths = [e.length for e in edges]
        self.assertEqual(lengths, sorted(lengths, reverse=True))

    def test_intersect_classification(self):
        big = _decorate([_tri([[0, 0], [10, 0], [0, 10]])])
        small = _decorate([_tri([[0, 0], [1, 0], [0, 1]])])

        self.assertEqual(island_intersect(small, big, np.array([1.0, 1.0])), IslandOverlap.SOURCE_INSIDE)
        self.assertEqual(island_intersect(small, big, np.array([20.0, 20.0])), IslandOverlap.NONE)
        self.assertEqual(island_intersect(small, big, np.array([4.8, 4.8])), IslandOverlap.EDGE_CROSSING)

    def test_small_island_nested_in_empty_corner(self):
        big = [_tri([[0, 0], [10, 0], [0, 10]])]
        small = [_tri([[50, 50], [51, 50], [50, 51]])]

        merged = merge_uv_islands([big, small], quality=1)

        self.assertEqual(len(merged), 1)
        self.assertIs(merged[0], big)
        self.assertEqual(len(big), 2)
        placed = big[1].uv
        self.assertGreaterEqual(float((placed[:, 0] + placed[:, 1]).min()), 10.0)
        self.assertLessEqual(float(placed[:, 0].max()), 10.0)
        self.assertLessEqual(float(placed[:, 1].max()), 10.0)

    def test_islands_without_room_stay_separate(self):
        a = [_tri([[0, 0], [1, 0], [1, 1]]), _tri([[0, 0], [1, 1], [0, 1]])]
        b = [_tri([[3, 3], [4, 3], [4, 4]]), _tri([[3, 3], [4, 4], [3, 4]])]

        merged = merge_uv_islands([a, b])

        self.assertEqual(len(merged), 2)
        self.assertIs(merged[0], a)
        self.assertIs(merged[1], b)
        # both moved to their bounds origin
        np.testing.assert_allclose(b[0].uv.min(axis=0), [0.0, 0.0])

    def test_zero_area_island_is_left_alone(self):
        flat = [_tri([[0, 0], [1, 0], [2, 0]])]
        merged = merge_uv_islands([flat])

        self.assertEqual(merged, [flat])


class TestNestStepping(unittest.TestCase):
    def test_step_after_inside_hit_clears_source_width(self):
        target = _decorate([_tri([[0, 0], [10, 0], [0, 10]])])
        source = _decorate([_tri([[0, 0], [1, 0], [0, 1]])])
        offsets = []

        def fake_intersect(src, tgt, offset):
            offsets.append(offset.copy())
            return IslandOverlap.SOURCE_INSIDE if len(offsets) == 1 else IslandOverlap.NONE

        with mock.patch.object(island_merge, "island_intersect", side_effect=fake_intersect):
            self.assertTrue(island_merge._try_nest(source, target, step_quality=1.0))

        self.assertEqual(offsets[1][0], source.width + SMALL_NUM)
        self.assertGreater(offsets[1][0], source.width)
        self.assertTrue(source.merged)


if __name__ == '__main__':
    unittest.main()

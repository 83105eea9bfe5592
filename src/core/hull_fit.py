"""
2D hull and bounding-box helpers used to orient and nest UV islands.
"""

from __future__ import annotations

import math

import numpy as np


def _cross(o: np.ndarray, a: np.ndarray, b: np.ndarray) -> float:
    return float((a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0]))


def convex_hull_2d(points: np.ndarray) -> np.ndarray:
    """
    Monotone-chain convex hull.

    Returns the hull in counter-clockwise order without the closing point, or
    an empty (0, 2) array for fewer than 3 input points. Collinear points are
    dropped (``cross <= 0`` pops).
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if len(pts) < 3:
        return np.zeros((0, 2), dtype=np.float64)

    pts = pts[np.lexsort((pts[:, 1], pts[:, 0]))]

    lower: list[np.ndarray] = []
    for p in pts:
        while len(lower) >= 2 and _cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)

    upper: list[np.ndarray] = []
    for p in pts[::-1]:
        while len(upper) >= 2 and _cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)

    hull = lower[:-1] + upper[:-1]
    if not hull:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array(hull, dtype=np.float64)


def fit_aabb_2d(hull: np.ndarray) -> tuple[float, np.ndarray, np.ndarray]:
    """
    Minimum-area bounding box over the hull edge directions.

    Returns:
        (angle, min, max): ``angle`` is the direction of the best edge; min/max
        are the box corners in the frame rotated by ``-angle``.
    """
    hull = np.asarray(hull, dtype=np.float64).reshape(-1, 2)
    if len(hull) == 0:
        return 0.0, np.zeros(2), np.zeros(2)

    edges = hull - np.roll(hull, 1, axis=0)
    lengths = np.linalg.norm(edges, axis=1)
    usable = lengths > 1e-12
    if not usable.any():
        return 0.0, hull.min(axis=0), hull.max(axis=0)

    dirs = edges[usable] / lengths[usable, None]
    xs = dirs @ hull.T
    ys = dirs[:, :1] * hull[:, 1] - dirs[:, 1:] * hull[:, 0]
    areas = np.ptp(xs, axis=1) * np.ptp(ys, axis=1)

    best = int(np.argmin(areas))
    d = dirs[best]
    angle = math.atan2(d[1], d[0])
    box_min = np.array([xs[best].min(), ys[best].min()])
    box_max = np.array([xs[best].max(), ys[best].max()])
    return angle, box_min, box_max


def box_fit_2d(points: np.ndarray) -> float:
    """Angle that aligns the minimum-area bounding box with the axes."""
    hull = convex_hull_2d(points)
    angle, _, _ = fit_aabb_2d(hull)
    return angle


def rotate_points(points: np.ndarray, angle: float) -> np.ndarray:
    """Rotate (N, 2) points by ``-angle`` around the origin."""
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    if angle == 0:
        return pts.copy()
    c, s = math.cos(angle), math.sin(angle)
    out = np.empty_like(pts)
    out[:, 0] = pts[:, 0] * c + pts[:, 1] * s
    out[:, 1] = -pts[:, 0] * s + pts[:, 1] * c
    return out


def uv_bounds(uv_points: np.ndarray) -> tuple[float, float, float, float]:
    """(min_x, min_y, max_x, max_y) of a point set."""
    pts = np.asarray(uv_points, dtype=np.float64).reshape(-1, 2)
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    return float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1])


def points_in_triangles_2d(points: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """
    Barycentric inside test of every point against a triangle set.

    Edges count as inside. Triangles with a zero determinant never contain
    anything.

    Returns:
        (K,) bool, True where the point lies in at least one triangle.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
    tris = np.asarray(triangles, dtype=np.float64).reshape(-1, 3, 2)
    if len(pts) == 0 or len(tris) == 0:
        return np.zeros(len(pts), dtype=bool)

    v1 = tris[:, 0]
    side1 = tris[:, 1] - v1
    side2 = tris[:, 2] - v1
    det = side1[:, 0] * side2[:, 1] - side1[:, 1] * side2[:, 0]
    valid = det != 0
    safe_det = np.where(valid, det, 1.0)

    d = pts[:, None, :] - v1[None, :, :]
    u = (d[..., 0] * side2[:, 1] - d[..., 1] * side2[:, 0]) / safe_det
    w = (side1[:, 0] * d[..., 1] - side1[:, 1] * d[..., 0]) / safe_det
    inside = valid & (u >= 0) & (w >= 0) & (u + w <= 1)
    return inside.any(axis=1)


def segments_intersect_2d(segments_ab: np.ndarray, segments_cd: np.ndarray) -> bool:
    """
    True when any segment of the first set crosses any of the second.

    (Near) parallel pairs, with a denominator below 1e-6, count as missing.
    """
    ab = np.asarray(segments_ab, dtype=np.float64).reshape(-1, 2, 2)
    cd = np.asarray(segments_cd, dtype=np.float64).reshape(-1, 2, 2)
    if len(ab) == 0 or len(cd) == 0:
        return False

    a = ab[:, None, 0]
    ba = (ab[:, 1] - ab[:, 0])[:, None]
    c = cd[None, :, 0]
    dc = (cd[:, 1] - cd[:, 0])[None]

    denominator = ba[..., 0] * dc[..., 1] - ba[..., 1] * dc[..., 0]
    usable = np.abs(denominator) >= 1e-6
    inv = 1.0 / np.where(usable, denominator, 1.0)

    ac = a - c
    r = (ac[..., 1] * dc[..., 0] - ac[..., 0] * dc[..., 1]) * inv
    s = (ac[..., 1] * ba[..., 0] - ac[..., 0] * ba[..., 1]) * inv
    hits = usable & (r >= 0) & (r <= 1) & (s >= 0) & (s <= 1)
    return bool(hits.any())

"""Frenet (road-centerline) coordinate frame.

Converts working-frame positions and velocities to road-relative
coordinates:
  * **s**: arc-length distance along the centerline (longitudinal).
  * **d**: signed lateral offset from the centerline (positive = right).

Positions before the first or after the last waypoint are projected onto
the extension of the end segments, so ``s`` may be negative or exceed the
path length.
"""

import logging
from typing import Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class FrenetFrame:
    """Coordinate transform from working (x, y) to Frenet (s, d).

    Precomputes cumulative arc lengths, unit tangents, and unit normals so
    that the repeated projections made during planning are cheap.

    Args:
        waypoints: (N, 2) centerline positions, N >= 2.
    """

    def __init__(self, waypoints):
        waypoints = np.asarray(waypoints, dtype=float)
        if waypoints.ndim != 2 or waypoints.shape[1] != 2:
            raise ValueError(f"waypoints must have shape (N, 2), got {waypoints.shape}")
        if len(waypoints) < 2:
            raise ValueError("FrenetFrame requires at least 2 waypoints")
        self._waypoints = waypoints
        n = len(waypoints)

        diffs = np.diff(waypoints, axis=0)
        seg_lengths = np.linalg.norm(diffs, axis=1)
        seg_lengths = np.maximum(seg_lengths, 1e-9)

        self._arc_lengths = np.zeros(n)
        self._arc_lengths[1:] = np.cumsum(seg_lengths)
        self._seg_lengths = seg_lengths

        self._seg_tangents = diffs / seg_lengths[:, None]
        # Rotate tangent 90deg clockwise -> points right of travel
        self._seg_normals = np.column_stack([
            self._seg_tangents[:, 1],
            -self._seg_tangents[:, 0],
        ])

    @property
    def total_length(self) -> float:
        """Arc length of the centerline."""
        return float(self._arc_lengths[-1])

    def project(self, x: float, y: float, vx: float, vy: float) -> Tuple[float, float, float, float]:
        """Project a position and velocity onto the centerline.

        Returns:
            (s, d, vs, vd)
        """
        seg_idx, s, d = self._project(x, y)
        t = self._seg_tangents[seg_idx]
        n = self._seg_normals[seg_idx]
        vs = vx * t[0] + vy * t[1]
        vd = vx * n[0] + vy * n[1]
        return s, d, float(vs), float(vd)

    def _project(self, x: float, y: float) -> Tuple[int, float, float]:
        """Find the closest segment and the (s, d) of the point on it."""
        pt = np.array([x, y], dtype=float)
        starts = self._waypoints[:-1]
        rel = pt - starts
        along = np.einsum("ij,ij->i", rel, self._seg_tangents)

        lower = np.zeros_like(along)
        upper = self._seg_lengths.copy()
        lower[0] = -np.inf
        upper[-1] = np.inf
        along = np.clip(along, lower, upper)

        foot = starts + along[:, None] * self._seg_tangents
        dist_sq = np.sum((pt - foot) ** 2, axis=1)
        best = int(np.argmin(dist_sq))

        s = self._arc_lengths[best] + along[best]
        d = np.dot(pt - foot[best], self._seg_normals[best])
        return best, float(s), float(d)


def build_track(waypoints: Sequence[Sequence[float]]) -> FrenetFrame:
    """Build a road projection from ordered (x, y) waypoints."""
    return FrenetFrame(waypoints)

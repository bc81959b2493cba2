from typing import Any

import numpy as np

from app.core.exceptions import GeometryInputError


def as_point_array(points: Any) -> np.ndarray:
    """
    Normalizes any (x, y) point sequence (list of pairs, (N, 2) or OpenCV-style (N, 1, 2) array)
    into a new float64 array of shape (N, 2). The input is never modified.
    """
    pts = np.array(points, dtype=np.float64)
    if pts.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if pts.shape[-1] != 2:
        raise GeometryInputError(f"Points must be (x, y) pairs, got array of shape {pts.shape}.")
    pts = pts.reshape(-1, 2)
    if not np.all(np.isfinite(pts)):
        raise GeometryInputError("Points must be finite.")
    return pts

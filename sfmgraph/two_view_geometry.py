"""Two-view epipolar geometry helpers."""

from __future__ import annotations

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.rigid3d import EPS, Rigid3d


def _skew(v: np.ndarray) -> np.ndarray:
    return np.array(
        [
            [0.0, -v[2], v[1]],
            [v[2], 0.0, -v[0]],
            [-v[1], v[0], 0.0],
        ]
    )


def _homogeneous(x) -> np.ndarray:
    v = np.asarray(x, dtype=float).reshape(2)
    return np.array([v[0], v[1], 1.0])


def check_cheirality(
    pose: Rigid3d, x1, x2, min_depth: float = 0.0, max_depth: float = 100.0
) -> bool:
    """Whether unit rays ``x1`` and ``x2`` triangulate in front of both cameras."""
    x1 = np.asarray(x1, dtype=float)
    x2 = np.asarray(x2, dtype=float)
    rx1 = pose.rotation @ x1
    a = -float(rx1 @ x2)
    b1 = -float(rx1 @ pose.translation)
    b2 = float(x2 @ pose.translation)

    # The positive factor 1 / (1 - a^2) is dropped.
    lambda1 = b1 - a * b2
    lambda2 = -a * b1 + b2

    scale = 1.0 - a * a
    min_depth *= scale
    max_depth *= scale
    return min_depth < lambda1 < max_depth and min_depth < lambda2 < max_depth


def get_orientation_signum(f, epipole, pt1, pt2) -> float:
    """Orientation signum of a correspondence under fundamental matrix ``f``."""
    f = np.asarray(f, dtype=float)
    signum1 = f[0, 0] * pt2[0] + f[1, 0] * pt2[1] + f[2, 0]
    signum2 = epipole[1] - epipole[2] * pt1[1]
    return float(signum1 * signum2)


def essential_from_motion(pose: Rigid3d) -> np.ndarray:
    """Essential matrix ``[t]_x R`` of a relative pose."""
    return _skew(pose.translation) @ pose.rotation


def fundamental_from_motion_and_cameras(
    camera1: Camera, camera2: Camera, pose: Rigid3d
) -> np.ndarray:
    """Fundamental matrix of a relative pose between two calibrated cameras."""
    e = essential_from_motion(pose)
    k1_inv = np.linalg.inv(camera1.calibration_matrix())
    k2_inv = np.linalg.inv(camera2.calibration_matrix())
    return k2_inv.T @ e @ k1_inv


def sampson_error(e, x1, x2) -> float:
    """Squared Sampson error for 2D normalised image coordinates."""
    e = np.asarray(e, dtype=float)
    h1 = _homogeneous(x1)
    h2 = _homogeneous(x2)
    ex1 = e @ h1
    etx2 = e.T @ h2
    c = float(ex1 @ h2)
    cx = float(ex1[:2] @ ex1[:2])
    cy = float(etx2[:2] @ etx2[:2])
    return c * c / (cx + cy)


def sampson_error_rays(e, x1, x2) -> float:
    """Squared Sampson error for 3D image rays."""
    e = np.asarray(e, dtype=float)
    x1 = np.asarray(x1, dtype=float)
    x2 = np.asarray(x2, dtype=float)
    ex1 = e @ x1 / (EPS + x1[2])
    etx2 = e.T @ x2 / (EPS + x2[2])
    c = float(ex1 @ x2)
    cx = float(ex1[:2] @ ex1[:2])
    cy = float(etx2[:2] @ etx2[:2])
    return c * c / (cx + cy)


def homography_error(h, x1, x2) -> float:
    """Squared transfer error of ``x1`` mapped by ``h`` against ``x2``."""
    hx1 = np.asarray(h, dtype=float) @ _homogeneous(x1)
    projected = hx1[:2] / (EPS + hx1[2])
    diff = projected - np.asarray(x2, dtype=float)
    return float(diff @ diff)
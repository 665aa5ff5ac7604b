"""Pinhole camera with optional polynomial radial distortion."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

_MAX_UNDISTORT_ITERATIONS = 100
_UNDISTORT_TOLERANCE = 1e-14


@dataclass
class Camera:
    """Intrinsics of a camera.

    ``radial`` holds up to two radial distortion coefficients ``(k1, k2)``
    applied to normalised image coordinates.
    """

    focal_length_x: float = 1.0
    focal_length_y: float = 1.0
    principal_point_x: float = 0.0
    principal_point_y: float = 0.0
    radial: tuple[float, ...] = ()
    camera_id: int = -1
    width: int = 0
    height: int = 0
    has_prior_focal_length: bool = False
    has_refined_focal_length: bool = False

    def __post_init__(self) -> None:
        self.radial = tuple(float(k) for k in self.radial)
        if len(self.radial) > 2:
            raise ValueError("at most two radial distortion coefficients are supported")

    def focal(self) -> float:
        """Mean of the two focal lengths."""
        return (self.focal_length_x + self.focal_length_y) / 2.0

    def principal_point(self) -> np.ndarray:
        return np.array([self.principal_point_x, self.principal_point_y])

    def calibration_matrix(self) -> np.ndarray:
        """The 3x3 intrinsic matrix ``K``."""
        return np.array(
            [
                [self.focal_length_x, 0.0, self.principal_point_x],
                [0.0, self.focal_length_y, self.principal_point_y],
                [0.0, 0.0, 1.0],
            ]
        )

    def _distortion_factor(self, normalized: np.ndarray) -> np.ndarray:
        r2 = np.sum(normalized * normalized, axis=-1)
        factor = np.ones_like(r2)
        power = np.ones_like(r2)
        for k in self.radial:
            power = power * r2
            factor = factor + k * power
        return factor

    def img_from_cam(self, point) -> np.ndarray:
        """Project normalised coordinates, shape (2,) or (N, 2), to pixels."""
        normalized = np.asarray(point, dtype=float)
        distorted = normalized * self._distortion_factor(normalized)[..., None]
        focal = np.array([self.focal_length_x, self.focal_length_y])
        return distorted * focal + self.principal_point()

    def cam_from_img(self, point) -> np.ndarray:
        """Map pixels, shape (2,) or (N, 2), to undistorted normalised coordinates."""
        pixels = np.asarray(point, dtype=float)
        focal = np.array([self.focal_length_x, self.focal_length_y])
        distorted = (pixels - self.principal_point()) / focal
        if not self.radial:
            return distorted
        undistorted = distorted.copy()
        for _ in range(_MAX_UNDISTORT_ITERATIONS):
            updated = distorted / self._distortion_factor(undistorted)[..., None]
            delta = np.max(np.abs(updated - undistorted), initial=0.0)
            undistorted = updated
            if delta < _UNDISTORT_TOLERANCE:
                break
        return undistorted
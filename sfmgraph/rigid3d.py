"""Rigid transforms and rotation helpers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from scipy.spatial.transform import Rotation

EPS = 1e-12
HALF_PI = math.pi / 2
TWO_PI = 2 * math.pi


def _as_vector(value) -> np.ndarray:
    return np.asarray(value, dtype=float)


@dataclass(eq=False)
class Rigid3d:
    """A rigid transform ``x -> rotation @ x + translation``."""

    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.rotation = np.array(self.rotation, dtype=float).reshape(3, 3)
        self.translation = np.array(self.translation, dtype=float).reshape(3)

    def inverse(self) -> Rigid3d:
        """Return the inverse transform."""
        rot_t = self.rotation.T
        return Rigid3d(rot_t, -rot_t @ self.translation)

    def apply(self, point) -> np.ndarray:
        """Transform a point of shape (3,) or points of shape (N, 3)."""
        pts = _as_vector(point)
        return pts @ self.rotation.T + self.translation

    def __mul__(self, other):
        if isinstance(other, Rigid3d):
            return Rigid3d(
                self.rotation @ other.rotation,
                self.rotation @ other.translation + self.translation,
            )
        return self.apply(other)

    def __repr__(self) -> str:
        return (
            f"Rigid3d(rotation={self.rotation.tolist()}, "
            f"translation={self.translation.tolist()})"
        )


def _angle_from_cos(cos_r: float) -> float:
    cos_r = min(max(cos_r, -1.0), 1.0)
    return math.degrees(math.acos(cos_r))


def calc_rotation_angle(rotation1, rotation2) -> float:
    """Angle in degrees between two rotation matrices."""
    r1 = np.asarray(rotation1, dtype=float)
    r2 = np.asarray(rotation2, dtype=float)
    diagonal_sum = float((r1.T @ r2).diagonal().sum())
    return _angle_from_cos((diagonal_sum - 1.0) / 2.0)


def calc_angle(pose1: Rigid3d, pose2: Rigid3d) -> float:
    """Angle in degrees between the rotations of two poses."""
    return calc_rotation_angle(pose1.rotation, pose2.rotation)


def calc_trans(pose1: Rigid3d, pose2: Rigid3d) -> float:
    """Distance between the camera centres of two poses."""
    return float(
        np.linalg.norm(pose1.inverse().translation - pose2.inverse().translation)
    )


def calc_trans_angle(pose1: Rigid3d, pose2: Rigid3d) -> float:
    """Angle in degrees between the translation directions of two poses."""
    t1, t2 = pose1.translation, pose2.translation
    cos_r = float(t1 @ t2) / (np.linalg.norm(t1) * np.linalg.norm(t2))
    return _angle_from_cos(cos_r)


def deg_to_rad(degree: float) -> float:
    return degree * math.pi / 180


def rad_to_deg(radian: float) -> float:
    return radian * 180 / math.pi


def rotation_to_angle_axis(rot) -> np.ndarray:
    """Convert a rotation matrix to an angle-axis vector."""
    return Rotation.from_matrix(np.asarray(rot, dtype=float)).as_rotvec()


def rigid3d_to_angle_axis(pose: Rigid3d) -> np.ndarray:
    """Angle-axis vector of the rotation part of a pose."""
    return rotation_to_angle_axis(pose.rotation)


def angle_axis_to_rotation(aa_vec) -> np.ndarray:
    """Convert an angle-axis vector to a rotation matrix.

    Below ``EPS`` the first-order approximation ``I + [aa]_x`` is used.
    """
    aa = _as_vector(aa_vec).reshape(3)
    norm = float(np.linalg.norm(aa))
    if norm > EPS:
        return Rotation.from_rotvec(aa).as_matrix()
    skew = np.array(
        [
            [0.0, -aa[2], aa[1]],
            [aa[2], 0.0, -aa[0]],
            [-aa[1], aa[0], 0.0],
        ]
    )
    return np.eye(3) + skew
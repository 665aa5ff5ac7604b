"""Images, their gravity priors, and 3D point tracks."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from sfmgraph.gravity import get_align_rot
from sfmgraph.rigid3d import Rigid3d

Observation = tuple[int, int]


@dataclass
class GravityInfo:
    """Gravity direction of an image and its alignment rotation."""

    has_gravity: bool = False
    gravity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    # The second column is the gravity direction.
    r_align: np.ndarray = field(default_factory=lambda: np.eye(3))

    def set_gravity(self, g) -> None:
        self.gravity = np.array(g, dtype=float).reshape(3)
        self.r_align = get_align_rot(self.gravity)
        self.has_gravity = True


@dataclass(eq=False)
class Image:
    """An image with its pose and feature points."""

    image_id: int = -1
    camera_id: int = -1
    file_name: str = ""
    is_registered: bool = False
    cluster_id: int = -1
    # Transformation from world to camera.
    cam_from_world: Rigid3d = field(default_factory=Rigid3d)
    gravity_info: GravityInfo = field(default_factory=GravityInfo)
    # Distorted feature points in pixels, shape (N, 2).
    features: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    # Normalised feature rays, shape (N, 3).
    features_undist: np.ndarray = field(default_factory=lambda: np.zeros((0, 3)))

    def __post_init__(self) -> None:
        self.features = np.asarray(self.features, dtype=float).reshape(-1, 2)
        self.features_undist = np.asarray(self.features_undist, dtype=float).reshape(-1, 3)

    def center(self) -> np.ndarray:
        """Projection centre in world coordinates."""
        pose = self.cam_from_world
        return pose.rotation.T @ -pose.translation


@dataclass(eq=False)
class Track:
    """A 3D point and the image features that observe it."""

    track_id: int = -1
    xyz: np.ndarray = field(default_factory=lambda: np.zeros(3))
    color: np.ndarray = field(default_factory=lambda: np.zeros(3, dtype=np.uint8))
    is_initialized: bool = False
    # (image_id, feature_id) pairs.
    observations: list[Observation] = field(default_factory=list)
"""Similarity transforms and normalisation of a reconstruction's frame."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.image import Image, Track
from sfmgraph.rigid3d import Rigid3d


@dataclass(eq=False)
class Sim3d:
    """A similarity transform ``x -> scale * rotation @ x + translation``."""

    scale: float = 1.0
    rotation: np.ndarray = field(default_factory=lambda: np.eye(3))
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.scale = float(self.scale)
        self.rotation = np.array(self.rotation, dtype=float).reshape(3, 3)
        self.translation = np.array(self.translation, dtype=float).reshape(3)

    def apply(self, point) -> np.ndarray:
        """Transform a point of shape (3,) or points of shape (N, 3)."""
        pts = np.asarray(point, dtype=float)
        return self.scale * (pts @ self.rotation.T) + self.translation


def transform_camera_world(sim: Sim3d, cam_from_world: Rigid3d) -> Rigid3d:
    """Express a camera pose in the world frame mapped by ``sim``."""
    rotation = cam_from_world.rotation @ sim.rotation.T
    translation = sim.scale * cam_from_world.translation - rotation @ sim.translation
    return Rigid3d(rotation, translation)


def normalize_reconstruction(
    cameras: dict[int, Camera],
    images: dict[int, Image],
    tracks: dict[int, Track],
    fixed_scale: bool = False,
    extent: float = 10.0,
    p0: float = 0.1,
    p1: float = 0.9,
) -> Sim3d:
    """Centre and scale the reconstruction on its registered image centres.

    The centres between the ``p0`` and ``p1`` quantiles (all of them for at
    most three images) are moved to the origin and, unless ``fixed_scale``
    is set, their bounding box diagonal is scaled to ``extent``. Returns the
    applied transform.
    """
    centers = np.array(
        [image.center() for image in images.values() if image.is_registered],
        dtype=np.float32,
    ).reshape(-1, 3)
    num = len(centers)
    if num == 0:
        raise ValueError("no registered images to normalise the reconstruction on")
    coords = np.sort(centers, axis=0).astype(float)

    if num > 3:
        lo = int(p0 * (num - 1))
        hi = int(p1 * (num - 1))
    else:
        lo, hi = 0, num - 1

    bbox_min = coords[lo]
    bbox_max = coords[hi]
    mean_coord = coords[lo : hi + 1].sum(axis=0) / (hi - lo + 1)

    scale = 1.0
    if not fixed_scale:
        old_extent = float(np.linalg.norm(bbox_max - bbox_min))
        if old_extent >= np.finfo(float).eps:
            scale = extent / old_extent
    tform = Sim3d(scale, np.eye(3), -scale * mean_coord)

    for image in images.values():
        if image.is_registered:
            image.cam_from_world = transform_camera_world(tform, image.cam_from_world)
    for track in tracks.values():
        track.xyz = tform.apply(track.xyz)
    return tform
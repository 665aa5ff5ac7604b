"""Image pairs and their identifiers."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

import numpy as np

from sfmgraph.rigid3d import Rigid3d

MAX_NUM_IMAGES = 2**31 - 1
INVALID_IMAGE_PAIR_ID = 2**64 - 1


class TwoViewConfig(enum.IntEnum):
    """Configuration of a two-view geometry."""

    UNDEFINED = 0
    DEGENERATE = 1
    CALIBRATED = 2
    UNCALIBRATED = 3
    PLANAR = 4
    PANORAMIC = 5
    PLANAR_OR_PANORAMIC = 6
    WATERMARK = 7
    MULTIPLE = 8


def image_pair_to_pair_id(image_id1: int, image_id2: int) -> int:
    """Order-independent identifier of an image pair."""
    low, high = sorted((image_id1, image_id2))
    return MAX_NUM_IMAGES * low + high


def pair_id_to_image_pair(pair_id: int) -> tuple[int, int]:
    """Recover the two image ids of a pair id, larger id first."""
    image_id1 = pair_id % MAX_NUM_IMAGES
    image_id2 = (pair_id - image_id1) // MAX_NUM_IMAGES
    return image_id1, image_id2


def _zeros3() -> np.ndarray:
    return np.zeros((3, 3))


@dataclass(eq=False)
class ImagePair:
    """Two-view relation between two images."""

    image_id1: int = -1
    image_id2: int = -1
    cam2_from_cam1: Rigid3d = field(default_factory=Rigid3d)
    is_valid: bool = True
    # Initial inlier rate.
    weight: float = 0.0
    config: TwoViewConfig = TwoViewConfig.UNDEFINED
    E: np.ndarray = field(default_factory=_zeros3)
    F: np.ndarray = field(default_factory=_zeros3)
    H: np.ndarray = field(default_factory=_zeros3)
    # Rows of (feature index in image 1, feature index in image 2).
    matches: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=int))
    # Row indices of inliers in ``matches``.
    inliers: list[int] = field(default_factory=list)
    pair_id: int = field(init=False)

    def __post_init__(self) -> None:
        if self.image_id1 < 0 or self.image_id2 < 0:
            self.pair_id = INVALID_IMAGE_PAIR_ID
        else:
            self.pair_id = image_pair_to_pair_id(self.image_id1, self.image_id2)
        self.matches = np.asarray(self.matches, dtype=int).reshape(-1, 2)
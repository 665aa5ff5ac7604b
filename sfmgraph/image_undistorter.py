"""Conversion of pixel features into normalised camera rays."""

from __future__ import annotations

import logging

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.image import Image

logger = logging.getLogger(__name__)


def undistort_images(
    cameras: dict[int, Camera],
    images: dict[int, Image],
    clean_points: bool = True,
) -> None:
    """Fill ``features_undist`` of every image with unit-length rays.

    Unless ``clean_points`` is set, images whose rays already match their
    features in number are left alone.
    """
    logger.info("Undistorting images..")
    for image in images.values():
        num_points = len(image.features)
        if len(image.features_undist) == num_points and not clean_points:
            continue
        camera = cameras[image.camera_id]
        normalized = np.asarray(camera.cam_from_img(image.features), dtype=float).reshape(-1, 2)
        rays = np.hstack([normalized, np.ones((num_points, 1))])
        image.features_undist = rays / np.linalg.norm(rays, axis=1, keepdims=True)
    logger.info("Image undistortion done")
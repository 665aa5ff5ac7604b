"""Inlier classification of image-pair matches under their two-view model."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.image import Image
from sfmgraph.image_pair import ImagePair, TwoViewConfig
from sfmgraph.rigid3d import EPS, deg_to_rad
from sfmgraph.two_view_geometry import (
    check_cheirality,
    essential_from_motion,
    get_orientation_signum,
    homography_error,
    sampson_error,
    sampson_error_rays,
)
from sfmgraph.view_graph import ViewGraph

_HOMOGRAPHY_CONFIGS = (
    TwoViewConfig.PLANAR,
    TwoViewConfig.PANORAMIC,
    TwoViewConfig.PLANAR_OR_PANORAMIC,
)


@dataclass
class InlierThresholdOptions:
    # Thresholds for 3D-2D matches.
    max_angle_error: float = 1.0  # degrees, for global positioning
    max_reprojection_error: float = 1e-2  # for bundle adjustment
    min_triangulation_angle: float = 1.0  # degrees, for triangulation
    # Thresholds for image pairs.
    max_epipolar_error_e: float = 1.0
    max_epipolar_error_f: float = 4.0
    max_epipolar_error_h: float = 4.0
    # Thresholds for edges.
    min_inlier_num: float = 30
    min_inlier_ratio: float = 0.25
    max_rotation_error: float = 10.0  # degrees, for rotation averaging


class ImagePairInliers:
    """Scores the matches of one image pair and stores its inliers on it."""

    def __init__(
        self,
        image_pair: ImagePair,
        images: dict[int, Image],
        options: InlierThresholdOptions,
        cameras: dict[int, Camera] | None = None,
    ) -> None:
        self.image_pair = image_pair
        self.images = images
        self.options = options
        self.cameras = cameras

    def score_error(self) -> float:
        """Classify the matches by the pair's configuration; return the total error."""
        config = self.image_pair.config
        if config in _HOMOGRAPHY_CONFIGS:
            return self._score_homography()
        if config == TwoViewConfig.UNCALIBRATED:
            return self._score_fundamental()
        if config == TwoViewConfig.CALIBRATED:
            return self._score_essential()
        return 0.0

    def _images(self) -> tuple[Image, Image]:
        pair = self.image_pair
        return self.images[pair.image_id1], self.images[pair.image_id2]

    def _score_essential(self) -> float:
        if self.cameras is None:
            raise ValueError("cameras are required to score a calibrated pair")
        pair = self.image_pair
        pose = pair.cam2_from_cam1
        e = essential_from_motion(pose)

        # epipole_ij: camera i seen in image j.
        epipole12 = pose.translation.copy()
        epipole21 = pose.inverse().translation
        if epipole12[2] < 0:
            epipole12 = -epipole12
        if epipole21[2] < 0:
            epipole21 = -epipole21

        pair.inliers.clear()
        image1, image2 = self._images()

        # Convert the pixel threshold to normalised coordinates.
        thres = (
            self.options.max_epipolar_error_e
            * 0.5
            * (
                1.0 / self.cameras[image1.camera_id].focal()
                + 1.0 / self.cameras[image2.camera_id].focal()
            )
        )
        sq_threshold = thres * thres
        thres_angle = 1.0 + 1e-6
        thres_epipole = math.cos(deg_to_rad(3.0)) + 1e-6
        rot_inv = pose.rotation.T

        score = 0.0
        for k, (idx1, idx2) in enumerate(pair.matches):
            pt1 = image1.features_undist[idx1]
            pt2 = image2.features_undist[idx2]
            r2 = sampson_error_rays(e, pt1, pt2)
            if r2 >= sq_threshold:
                score += sq_threshold
                continue

            cheirality = check_cheirality(pose, pt1, pt2, 1e-2, 100.0)
            # Reject rays that are nearly parallel or too close to the epipoles.
            not_degenerate = (
                float(pt1 @ (rot_inv @ pt2)) < thres_angle
                and float(pt1 @ epipole21) < thres_epipole
                and float(pt2 @ epipole12) < thres_epipole
            )
            if cheirality and not_degenerate:
                score += r2
                pair.inliers.append(k)
            else:
                score += sq_threshold
        return score

    def _score_fundamental(self) -> float:
        pair = self.image_pair
        pair.inliers.clear()

        f = np.asarray(pair.F, dtype=float)
        epipole = np.cross(f[0], f[2])
        if not np.any(np.abs(epipole) > EPS):
            epipole = np.cross(f[1], f[2])

        image1, image2 = self._images()
        sq_threshold = self.options.max_epipolar_error_f ** 2

        score = 0.0
        candidates: list[tuple[int, float, float]] = []
        positive = negative = 0
        for k, (idx1, idx2) in enumerate(pair.matches):
            pt1 = image1.features[idx1]
            pt2 = image2.features[idx2]
            r2 = sampson_error(f, pt1, pt2)
            if r2 < sq_threshold:
                signum = get_orientation_signum(f, epipole, pt1, pt2)
                if signum > 0:
                    positive += 1
                else:
                    negative += 1
                candidates.append((k, r2, signum))
            else:
                score += sq_threshold

        # An undecidable orientation makes the pair unusable.
        if positive == negative:
            return 0.0
        is_positive = positive > negative

        for k, r2, signum in candidates:
            if (signum > 0) == is_positive:
                pair.inliers.append(k)
                score += r2
            else:
                score += sq_threshold
        return score

    def _score_homography(self) -> float:
        pair = self.image_pair
        pair.inliers.clear()
        image1, image2 = self._images()
        sq_threshold = self.options.max_epipolar_error_h ** 2

        score = 0.0
        for k, (idx1, idx2) in enumerate(pair.matches):
            r2 = homography_error(pair.H, image1.features[idx1], image2.features[idx2])
            if r2 < sq_threshold:
                score += r2
                pair.inliers.append(k)
            else:
                score += sq_threshold
        return score


def image_pairs_inlier_count(
    view_graph: ViewGraph,
    cameras: dict[int, Camera],
    images: dict[int, Image],
    options: InlierThresholdOptions,
    clean_inliers: bool,
) -> None:
    """Recompute the inliers of every valid pair.

    Unless ``clean_inliers`` is set, pairs that already hold inliers are kept.
    """
    for pair in view_graph.image_pairs.values():
        if not clean_inliers and pair.inliers:
            continue
        pair.inliers.clear()
        if not pair.is_valid:
            continue
        ImagePairInliers(pair, images, options, cameras).score_error()
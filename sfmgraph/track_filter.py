"""Removal of track observations that disagree with the current estimate."""

from __future__ import annotations

import logging
import math

import numpy as np

from sfmgraph.camera import Camera
from sfmgraph.image import Image, Observation, Track
from sfmgraph.rigid3d import EPS, deg_to_rad
from sfmgraph.view_graph import ViewGraph

logger = logging.getLogger(__name__)


def _normalized(vec: np.ndarray) -> np.ndarray:
    norm = float(np.linalg.norm(vec))
    return vec / norm if norm > 0 else vec


def filter_tracks_by_reprojection(
    view_graph: ViewGraph,
    cameras: dict[int, Camera],
    images: dict[int, Image],
    tracks: dict[int, Track],
    max_reprojection_error: float = 1e-2,
    in_normalized_image: bool = True,
) -> int:
    """Drop observations whose reprojection error reaches the threshold.

    The error is measured in normalised image coordinates against the
    undistorted rays, or in pixels against the raw features. Observations of
    points behind the camera are dropped too. Returns the number of tracks
    that lost observations.
    """
    counter = 0
    for track in tracks.values():
        kept: list[Observation] = []
        for image_id, feature_id in track.observations:
            image = images[image_id]
            pt_calc = image.cam_from_world.apply(track.xyz)
            if pt_calc[2] < EPS:
                continue
            pt_reproj = pt_calc[:2] / pt_calc[2]
            if in_normalized_image:
                feature = image.features_undist[feature_id]
                error = float(np.linalg.norm(pt_reproj - feature[:2] / (feature[2] + EPS)))
            else:
                pt_dist = cameras[image.camera_id].img_from_cam(pt_reproj)
                error = float(np.linalg.norm(pt_dist - image.features[feature_id]))
            if error < max_reprojection_error:
                kept.append((image_id, feature_id))
        if len(kept) != len(track.observations):
            counter += 1
            track.observations = kept
    logger.info("Filtered %d / %d tracks by reprojection error", counter, len(tracks))
    return counter


def filter_tracks_by_angle(
    view_graph: ViewGraph,
    cameras: dict[int, Camera],
    images: dict[int, Image],
    tracks: dict[int, Track],
    max_angle_error: float = 1.0,
) -> int:
    """Drop observations whose ray deviates from the point by too large an angle.

    ``max_angle_error`` is in degrees; cameras without a prior focal length
    are allowed twice that angle. Returns the number of tracks that lost
    observations.
    """
    counter = 0
    thres = math.cos(deg_to_rad(max_angle_error))
    thres_uncalib = math.cos(deg_to_rad(max_angle_error * 2))
    for track in tracks.values():
        kept: list[Observation] = []
        for image_id, feature_id in track.observations:
            image = images[image_id]
            feature = image.features_undist[feature_id]
            pt_calc = image.cam_from_world.apply(track.xyz)
            if pt_calc[2] < EPS:
                continue
            pt_calc = _normalized(pt_calc)
            thres_cam = (
                thres if cameras[image.camera_id].has_prior_focal_length else thres_uncalib
            )
            if float(pt_calc @ feature) > thres_cam:
                kept.append((image_id, feature_id))
        if len(kept) != len(track.observations):
            counter += 1
            track.observations = kept
    logger.info("Filtered %d / %d tracks by angle error", counter, len(tracks))
    return counter


def filter_track_triangulation_angle(
    view_graph: ViewGraph,
    images: dict[int, Image],
    tracks: dict[int, Track],
    min_angle: float = 1.0,
) -> int:
    """Clear tracks whose viewing rays never span ``min_angle`` degrees.

    Returns the number of tracks cleared.
    """
    counter = 0
    thres = math.cos(deg_to_rad(min_angle))
    for track in tracks.values():
        rays = [
            _normalized(np.asarray(track.xyz, dtype=float) - images[image_id].center())
            for image_id, _ in track.observations
        ]
        wide_enough = any(
            float(rays[i] @ rays[j]) < thres
            for i in range(len(rays))
            for j in range(i + 1, len(rays))
        )
        if not wide_enough:
            counter += 1
            track.observations.clear()
    logger.info(
        "Filtered %d / %d tracks by too small triangulation angle", counter, len(tracks)
    )
    return counter
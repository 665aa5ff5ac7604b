"""Sparsification, clustering and configuration updates of the view graph."""

from __future__ import annotations

import enum
import logging
import random

from sfmgraph.camera import Camera
from sfmgraph.image import Image
from sfmgraph.image_pair import ImagePair, TwoViewConfig
from sfmgraph.two_view_geometry import fundamental_from_motion_and_cameras
from sfmgraph.union_find import UnionFind
from sfmgraph.view_graph import ViewGraph

logger = logging.getLogger(__name__)

_MAX_CLUSTER_ITERATIONS = 10
_WEAK_EDGE_FACTOR = 0.75
_MIN_CONNECTING_PAIRS = 2


class StrongClusterCriteria(enum.Enum):
    """Which quantity of an image pair decides whether an edge is strong."""

    INLIER_NUM = 0
    WEIGHT = 1


def _is_registered(images: dict[int, Image], image_id: int) -> bool:
    image = images.get(image_id)
    return image is not None and image.is_registered


def sparsify_graph(
    view_graph: ViewGraph,
    images: dict[int, Image],
    expected_degree: int = 50,
    rng: random.Random | None = None,
) -> int:
    """Randomly drop edges between highly connected images.

    An edge between images of degrees ``d1`` and ``d2`` is always kept when
    either degree is at most ``expected_degree``; otherwise it is kept with
    probability ``expected_degree * average_degree / (d1 * d2)``. Only the
    largest connected component survives. Returns the number of kept edges.
    """
    rng = rng if rng is not None else random.Random()
    num_img = view_graph.keep_largest_connected_components(images)
    adjacency = view_graph.adjacency_list

    total_degree = sum(
        len(neighbors)
        for image_id, neighbors in adjacency.items()
        if _is_registered(images, image_id)
    )
    average_degree = total_degree / num_img if num_img else 0.0

    chosen: set[int] = set()
    for pair_id, pair in view_graph.image_pairs.items():
        if not pair.is_valid:
            continue
        if not (
            _is_registered(images, pair.image_id1)
            and _is_registered(images, pair.image_id2)
        ):
            continue
        degree1 = len(adjacency[pair.image_id1])
        degree2 = len(adjacency[pair.image_id2])
        if degree1 <= expected_degree or degree2 <= expected_degree:
            chosen.add(pair_id)
            continue
        if rng.random() < (expected_degree * average_degree) / (degree1 * degree2):
            chosen.add(pair_id)

    for pair_id, pair in view_graph.image_pairs.items():
        if pair_id not in chosen:
            pair.is_valid = False

    view_graph.keep_largest_connected_components(images)
    return len(chosen)


def _below(pair: ImagePair, criteria: StrongClusterCriteria, threshold: float) -> bool:
    if criteria is StrongClusterCriteria.INLIER_NUM:
        return len(pair.inliers) < threshold
    return pair.weight < threshold


def _above(pair: ImagePair, criteria: StrongClusterCriteria, threshold: float) -> bool:
    if criteria is StrongClusterCriteria.INLIER_NUM:
        return len(pair.inliers) > threshold
    return pair.weight > threshold


def establish_strong_clusters(
    view_graph: ViewGraph,
    images: dict[int, Image],
    criteria: StrongClusterCriteria = StrongClusterCriteria.INLIER_NUM,
    min_thres: float = 100,
    min_num_images: int = 2,
) -> int:
    """Split the graph into clusters joined by strong edges.

    Clusters are seeded by edges stronger than ``min_thres`` and merged when
    at least two edges of at least ``0.75 * min_thres`` connect them. Edges
    between different clusters are invalidated and cluster ids are assigned
    to the images. Returns the number of clusters.
    """
    view_graph.keep_largest_connected_components(images)

    forest: UnionFind[int] = UnionFind()
    for pair in view_graph.image_pairs.values():
        if pair.is_valid and _above(pair, criteria, min_thres):
            forest.union(pair.image_id1, pair.image_id2)

    weak_threshold = _WEAK_EDGE_FACTOR * min_thres
    iteration = 0
    merged = True
    while merged:
        merged = False
        iteration += 1
        if iteration > _MAX_CLUSTER_ITERATIONS:
            break

        num_pairs: dict[int, dict[int, int]] = {}
        for pair in view_graph.image_pairs.values():
            if not pair.is_valid or _below(pair, criteria, weak_threshold):
                continue
            root1 = forest.find(pair.image_id1)
            root2 = forest.find(pair.image_id2)
            if root1 == root2:
                continue
            counts1 = num_pairs.setdefault(root1, {})
            counts2 = num_pairs.setdefault(root2, {})
            counts1[root2] = counts1.get(root2, 0) + 1
            counts2[root1] = counts2.get(root1, 0) + 1

        for root1, counter in num_pairs.items():
            for root2, count in counter.items():
                if root1 <= root2:
                    continue
                if count >= _MIN_CONNECTING_PAIRS:
                    merged = True
                    forest.union(root1, root2)

    for pair in view_graph.image_pairs.values():
        if pair.is_valid and forest.find(pair.image_id1) != forest.find(pair.image_id2):
            pair.is_valid = False

    num_comp = view_graph.mark_connected_components(images)
    logger.info(
        "Clustering take %d iterations. Images are grouped into %d clusters "
        "after strong-clustering",
        iteration,
        num_comp,
    )
    return num_comp


def update_image_pairs_config(
    view_graph: ViewGraph,
    cameras: dict[int, Camera],
    images: dict[int, Image],
) -> None:
    """Promote uncalibrated pairs between mostly calibrated cameras.

    A camera with a prior focal length counts as calibrated when more than
    half of its valid pairs are calibrated. Uncalibrated pairs whose two
    cameras both count as calibrated become calibrated, and their
    fundamental matrix is recomputed from the relative pose.
    """
    # camera id -> [pairs involved in, calibrated pairs involved in]
    camera_counter: dict[int, list[int]] = {}
    for pair in view_graph.image_pairs.values():
        if not pair.is_valid:
            continue
        camera_id1 = images[pair.image_id1].camera_id
        camera_id2 = images[pair.image_id2].camera_id
        if not (
            cameras[camera_id1].has_prior_focal_length
            and cameras[camera_id2].has_prior_focal_length
        ):
            continue
        if pair.config == TwoViewConfig.CALIBRATED:
            for camera_id in (camera_id1, camera_id2):
                counter = camera_counter.setdefault(camera_id, [0, 0])
                counter[0] += 1
                counter[1] += 1
        elif pair.config == TwoViewConfig.UNCALIBRATED:
            for camera_id in (camera_id1, camera_id2):
                camera_counter.setdefault(camera_id, [0, 0])[0] += 1

    camera_validity = {
        camera_id: total > 0 and calibrated / total > 0.5
        for camera_id, (total, calibrated) in camera_counter.items()
    }

    for pair in view_graph.image_pairs.values():
        if not pair.is_valid or pair.config != TwoViewConfig.UNCALIBRATED:
            continue
        camera_id1 = images[pair.image_id1].camera_id
        camera_id2 = images[pair.image_id2].camera_id
        if camera_validity.get(camera_id1, False) and camera_validity.get(camera_id2, False):
            pair.config = TwoViewConfig.CALIBRATED
            pair.F = fundamental_from_motion_and_cameras(
                cameras[camera_id1], cameras[camera_id2], pair.cam2_from_cam1
            )
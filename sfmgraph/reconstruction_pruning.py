"""Pruning of images that are only weakly connected through shared points."""

from __future__ import annotations

import logging
from collections import Counter

from sfmgraph.image import Image, Track
from sfmgraph.image_pair import ImagePair, image_pair_to_pair_id, pair_id_to_image_pair
from sfmgraph.view_graph import ViewGraph
from sfmgraph.view_graph_manipulation import (
    StrongClusterCriteria,
    establish_strong_clusters,
)

logger = logging.getLogger(__name__)

# A relative pose is only fixed with at least five shared points.
_MIN_COVISIBLE_POINTS = 5
_MIN_CLUSTER_THRESHOLD = 20.0


def prune_weakly_connected_images(
    images: dict[int, Image],
    tracks: dict[int, Track],
    min_num_images: int = 2,
    min_num_observations: int = 0,
) -> int:
    """Cluster the images by how many tracks they share.

    Only tracks with more than two observations count. Pairs sharing at least
    five of them form a visibility graph, which is split into strong clusters
    with a threshold of the median minus the median absolute deviation of the
    shared counts, but at least 20. Cluster ids are written to the images;
    returns the number of clusters.
    """
    pair_covisibility: Counter[int] = Counter()
    observation_count: Counter[int] = Counter()
    for track in tracks.values():
        observations = track.observations
        if len(observations) <= 2:
            continue
        for i, (image_id1, _) in enumerate(observations):
            observation_count[image_id1] += 1
            for image_id2, _ in observations[i + 1 :]:
                if image_id1 != image_id2:
                    pair_covisibility[image_pair_to_pair_id(image_id1, image_id2)] += 1

    visibility_graph = ViewGraph()
    pair_counts: list[int] = []
    counter = 0
    for pair_id, count in pair_covisibility.items():
        if count < _MIN_COVISIBLE_POINTS:
            continue
        counter += 1
        image_id1, image_id2 = pair_id_to_image_pair(pair_id)
        if (
            observation_count[image_id1] < min_num_observations
            or observation_count[image_id2] < min_num_observations
        ):
            continue
        visibility_graph.image_pairs[pair_id] = ImagePair(
            image_id1, image_id2, is_valid=True, weight=count
        )
        pair_counts.append(count)
    logger.info("Established visibility graph with %d pairs", counter)

    if not pair_counts:
        raise ValueError("no image pairs share enough points to build a visibility graph")

    pair_counts.sort()
    median_count = float(pair_counts[len(pair_counts) // 2])
    deviations = sorted(abs(count - median_count) for count in pair_counts)
    median_deviation = deviations[len(deviations) // 2]

    threshold = median_count - median_deviation
    logger.info("Threshold for Strong Clustering: %s", threshold)
    return establish_strong_clusters(
        visibility_graph,
        images,
        StrongClusterCriteria.WEIGHT,
        max(threshold, _MIN_CLUSTER_THRESHOLD),
        min_num_images,
    )
"""Breadth-first traversal and maximum spanning trees over the view graph."""

from __future__ import annotations

import enum
from collections import deque
from collections.abc import Iterable, Sequence

from sfmgraph.image import Image
from sfmgraph.image_pair import ImagePair
from sfmgraph.union_find import UnionFind
from sfmgraph.view_graph import ViewGraph


class WeightType(enum.Enum):
    """Which quantity of an image pair is maximised by the spanning tree."""

    INLIER_NUM = 0
    INLIER_RATIO = 1


def bfs(
    graph: Sequence[Iterable[int]],
    root: int,
    banned_edges: Iterable[tuple[int, int]] = (),
) -> tuple[list[int], int]:
    """Breadth-first search over an adjacency list.

    Returns the parent of every vertex (the root is its own parent, vertices
    that cannot be reached get -1) and the number of vertices reached besides
    the root. Banned edges are ignored in both directions.
    """
    banned: set[tuple[int, int]] = set()
    for a, b in banned_edges:
        banned.add((a, b))
        banned.add((b, a))

    parents = [-1] * len(graph)
    parents[root] = root
    visited = {root}
    queue = deque([root])
    count = 0
    while queue:
        current = queue.popleft()
        for neighbor in graph[current]:
            if (current, neighbor) in banned or neighbor in visited:
                continue
            visited.add(neighbor)
            parents[neighbor] = current
            queue.append(neighbor)
            count += 1
    return parents, count


def _pair_score(pair: ImagePair, weight_type: WeightType) -> float:
    if weight_type is WeightType.INLIER_RATIO:
        return float(pair.weight)
    return float(len(pair.inliers))


def maximum_spanning_tree(
    view_graph: ViewGraph,
    images: dict[int, Image],
    weight_type: WeightType,
) -> tuple[int, dict[int, int]]:
    """Maximum spanning tree over the registered images.

    Returns the root image id and a mapping from image id to its parent image
    id; the root maps to itself. Images the tree does not reach are left out.
    """
    registered = [image_id for image_id, image in images.items() if image.is_registered]
    if not registered:
        raise ValueError("no registered images to build a spanning tree from")
    index = {image_id: idx for idx, image_id in enumerate(registered)}

    valid_pairs = [pair for pair in view_graph.image_pairs.values() if pair.is_valid]
    max_weight = max([0.0, *(_pair_score(pair, weight_type) for pair in valid_pairs)])

    edges: list[tuple[float, int, int]] = []
    for pair in valid_pairs:
        image1 = images[pair.image_id1]
        image2 = images[pair.image_id2]
        if not (image1.is_registered and image2.is_registered):
            continue
        # Minimising (max - score) maximises the score.
        edges.append(
            (max_weight - _pair_score(pair, weight_type), index[pair.image_id1], index[pair.image_id2])
        )

    edges.sort(key=lambda edge: edge[0])
    forest: UnionFind[int] = UnionFind()
    adjacency: list[list[int]] = [[] for _ in registered]
    for _, idx1, idx2 in edges:
        if forest.find(idx1) == forest.find(idx2):
            continue
        forest.union(idx1, idx2)
        adjacency[idx1].append(idx2)
        adjacency[idx2].append(idx1)

    parents_idx, _ = bfs(adjacency, 0)
    parents = {
        registered[idx]: registered[parent]
        for idx, parent in enumerate(parents_idx)
        if parent != -1
    }
    return registered[0], parents
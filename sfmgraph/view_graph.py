"""Graph of images connected by valid image pairs."""

from __future__ import annotations

from collections import deque

from sfmgraph.image import Image
from sfmgraph.image_pair import ImagePair


def _is_registered(images: dict[int, Image], image_id: int) -> bool:
    image = images.get(image_id)
    return image is not None and image.is_registered


class ViewGraph:
    """Image pairs keyed by pair id, with connectivity helpers."""

    def __init__(self) -> None:
        self.image_pairs: dict[int, ImagePair] = {}
        self.num_images = 0
        self.num_pairs = 0
        self._adjacency_list: dict[int, set[int]] = {}
        self._connected_components: list[set[int]] = []

    @property
    def adjacency_list(self) -> dict[int, set[int]]:
        return self._adjacency_list

    def remove_invalid_pair(self, pair_id: int) -> None:
        self.image_pairs[pair_id].is_valid = False

    def establish_adjacency_list(self) -> None:
        """Rebuild the adjacency list from the valid pairs."""
        self._adjacency_list = {}
        for pair in self.image_pairs.values():
            if pair.is_valid:
                self._adjacency_list.setdefault(pair.image_id1, set()).add(pair.image_id2)
                self._adjacency_list.setdefault(pair.image_id2, set()).add(pair.image_id1)

    def _bfs(self, root: int, visited: set[int]) -> set[int]:
        component = {root}
        visited.add(root)
        queue = deque([root])
        while queue:
            current = queue.popleft()
            for neighbor in self._adjacency_list.get(current, ()):
                if neighbor not in visited:
                    visited.add(neighbor)
                    component.add(neighbor)
                    queue.append(neighbor)
        return component

    def _find_connected_components(self) -> int:
        visited: set[int] = set()
        self._connected_components = [
            self._bfs(image_id, visited)
            for image_id in self._adjacency_list
            if image_id not in visited
        ]
        return len(self._connected_components)

    def keep_largest_connected_components(self, images: dict[int, Image]) -> int:
        """Register only the images of the largest component.

        Pairs outside it are invalidated. Returns the component's size.
        """
        self.establish_adjacency_list()
        self._find_connected_components()

        largest: set[int] = set()
        for component in self._connected_components:
            if len(component) > len(largest):
                largest = component
        if not largest:
            return 0

        for image in images.values():
            image.is_registered = False
        for image_id in largest:
            if image_id in images:
                images[image_id].is_registered = True

        self.num_pairs = 0
        for pair in self.image_pairs.values():
            if not (
                _is_registered(images, pair.image_id1)
                and _is_registered(images, pair.image_id2)
            ):
                pair.is_valid = False
            if pair.is_valid:
                self.num_pairs += 1

        self.num_images = len(largest)
        return len(largest)

    def mark_connected_components(
        self, images: dict[int, Image], min_num_img: int = -1
    ) -> int:
        """Set cluster ids by component size, largest first.

        Components smaller than ``min_num_img`` get cluster id -1.
        Returns the number of clusters assigned.
        """
        self.establish_adjacency_list()
        self._find_connected_components()

        ranked = sorted(
            ((len(component), index) for index, component in enumerate(self._connected_components)),
            reverse=True,
        )
        for image in images.values():
            image.cluster_id = -1

        num_clusters = 0
        for cluster_id, (size, index) in enumerate(ranked):
            if size < min_num_img:
                break
            for image_id in self._connected_components[index]:
                if image_id in images:
                    images[image_id].cluster_id = cluster_id
            num_clusters += 1
        return num_clusters
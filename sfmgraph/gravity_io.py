"""Reading per-image gravity directions from a text file."""

from __future__ import annotations

import logging
import os

from sfmgraph.image import Image

logger = logging.getLogger(__name__)


def read_gravity(gravity_path: str | os.PathLike[str], images: dict[int, Image]) -> int:
    """Load gravity directions for the images named in a file.

    Each line holds an image name and three numbers separated by single
    spaces; the gravity is the direction of ``[0, 1, 0]`` in the image frame.
    Matching images get the gravity and a rotation aligned with it. Returns
    the number of lines that matched an image.
    """
    name_to_id = {image.file_name: image_id for image_id, image in images.items()}

    counter = 0
    with open(gravity_path, encoding="utf-8") as handle:
        for line_number, line in enumerate(handle, start=1):
            line = line.rstrip("\r\n")
            if not line:
                continue
            parts = line.split(" ")
            if len(parts) < 4:
                raise ValueError(f"line {line_number}: expected a name and three numbers")
            name = parts[0]
            gravity = [float(item) for item in parts[1:4]]

            image_id = name_to_id.get(name)
            if image_id is None:
                continue
            counter += 1
            image = images[image_id]
            image.gravity_info.set_gravity(gravity)
            image.cam_from_world.rotation = image.gravity_info.r_align.T.copy()

    logger.info("%d images are loaded with gravity", counter)
    return counter
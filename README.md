# sfmgraph

Building blocks for global structure-from-motion pipelines: rigid poses,
two-view geometry, view-graph cleanup, clustering and track filtering, built
on NumPy and SciPy.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `sfmgraph.rigid3d`: the `Rigid3d` pose type (`inverse`, `apply`, and `*` for
  composing poses or transforming points) and helpers `calc_angle`,
  `calc_rotation_angle`, `calc_trans`, `calc_trans_angle`, `deg_to_rad`,
  `rad_to_deg`, `rigid3d_to_angle_axis`, `rotation_to_angle_axis` and
  `angle_axis_to_rotation`.
- `sfmgraph.gravity`: `get_align_rot` builds a rotation whose second column is
  the gravity direction; `angle_to_rot_up` and `rot_up_to_angle` convert
  between an angle and a rotation about the y axis.
- `sfmgraph.union_find`: `UnionFind`, a disjoint-set structure with path
  compression over any hashable elements.
- `sfmgraph.l1_solver`: `L1Solver` and `L1SolverOptions`, an ADMM solver for
  `min_x ||A x - b||_1` with a dense or SciPy sparse `A`. It raises
  `numpy.linalg.LinAlgError` when the normal equations cannot be factorised.
- `sfmgraph.camera`: `Camera`, a pinhole camera with up to two radial
  distortion coefficients; `calibration_matrix`, `img_from_cam` and
  `cam_from_img` (iterative undistortion).
- `sfmgraph.image`: `Image` (pose, features, undistorted rays, `center()`),
  `GravityInfo` and `Track`.
- `sfmgraph.image_pair`: `ImagePair`, the `TwoViewConfig` enumeration, and the
  order-independent pair ids `image_pair_to_pair_id` / `pair_id_to_image_pair`.
- `sfmgraph.view_graph`: `ViewGraph`, which holds image pairs by pair id,
  keeps the largest connected component (`keep_largest_connected_components`)
  and assigns cluster ids by component size (`mark_connected_components`).
- `sfmgraph.two_view_geometry`: `essential_from_motion`,
  `fundamental_from_motion_and_cameras`, `sampson_error` (2D points),
  `sampson_error_rays` (3D rays), `homography_error`, `check_cheirality` and
  `get_orientation_signum`.
- `sfmgraph.tree`: `bfs` over an adjacency list, returning parents and the
  number of reached vertices, and `maximum_spanning_tree`, which returns the
  root image id and a parent map, weighting pairs by inlier count or by
  `weight` (`WeightType`).
- `sfmgraph.image_pair_inliers`: `ImagePairInliers` scores the matches of a
  pair under its homography, fundamental or essential model and stores the
  inlier rows; `image_pairs_inlier_count` does so for a whole view graph,
  with thresholds from `InlierThresholdOptions`.
- `sfmgraph.image_undistorter`: `undistort_images` turns pixel features into
  unit-length camera rays.
- `sfmgraph.gravity_io`: `read_gravity` loads per-image gravity vectors from a
  text file and returns how many images matched.
- `sfmgraph.view_graph_manipulation`: `sparsify_graph` (random edge dropping,
  with an optional `random.Random`), `establish_strong_clusters`
  (`StrongClusterCriteria`) and `update_image_pairs_config`.
- `sfmgraph.relpose_filter`: `filter_rotations`, `filter_inlier_num` and
  `filter_inlier_ratio` invalidate unreliable pairs and return how many.
- `sfmgraph.track_filter`: `filter_tracks_by_reprojection`,
  `filter_tracks_by_angle` and `filter_track_triangulation_angle` drop bad
  observations and return how many tracks changed.
- `sfmgraph.reconstruction_normalizer`: `Sim3d`, `transform_camera_world`,
  and `normalize_reconstruction`, which recentres and rescales a scene on its
  registered image centres and returns the `Sim3d` it applied.
- `sfmgraph.reconstruction_pruning`: `prune_weakly_connected_images` splits
  the images into clusters of strong co-visibility and returns their number.

Progress messages are written through the standard `logging` module.

## Example

```python
from sfmgraph.image import Image
from sfmgraph.image_pair import ImagePair, image_pair_to_pair_id
from sfmgraph.view_graph import ViewGraph

images = {i: Image(image_id=i, camera_id=1, file_name=f"{i}.jpg") for i in (1, 2, 3)}
graph = ViewGraph()
pair = ImagePair(1, 2)
graph.image_pairs[pair.pair_id] = pair

size = graph.keep_largest_connected_components(images)
print(size)                                                 # 2
print([i for i, im in images.items() if im.is_registered])  # [1, 2]
print(image_pair_to_pair_id(2, 1) == pair.pair_id)          # True
```

## Gravity file format

`read_gravity` expects one line per image: the file name, then the three
components of the gravity direction, separated by single spaces. Empty lines
are skipped; a line with fewer than four fields raises `ValueError`.

```
frame_0001.jpg 0.0 1.0 0.0
```

## What the package does not do

- It has no command-line tool; everything is used from Python.
- It does not read feature matches or camera data from a database, and does
  not write reconstructions to disk. Images, cameras, pairs and tracks are
  built in memory by the caller.
- It does not estimate relative poses or two-view models from matches: the
  `cam2_from_cam1`, `F`, `H` and `config` of each `ImagePair` must be supplied.
- It contains no rotation averaging, global positioning or bundle adjustment.
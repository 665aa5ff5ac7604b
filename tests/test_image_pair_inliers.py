import numpy as np
import pytest

from sfmgraph.camera import Camera
from sfmgraph.image import Image
from sfmgraph.image_pair import ImagePair, TwoViewConfig
from sfmgraph.image_pair_inliers import (
    ImagePairInliers,
    InlierThresholdOptions,
    image_pairs_inlier_count,
)
from sfmgraph.rigid3d import Rigid3d, angle_axis_to_rotation
from sfmgraph.two_view_geometry import fundamental_from_motion_and_cameras
from sfmgraph.view_graph import ViewGraph

N = 20


def _camera():
    return Camera(
        focal_length_x=500.0,
        focal_length_y=500.0,
        principal_point_x=320.0,
        principal_point_y=240.0,
        camera_id=1,
    )


def _scene(seed=0):
    rng = np.random.default_rng(seed)
    pts1 = np.column_stack(
        [rng.uniform(-1, 1, N), rng.uniform(-1, 1, N), rng.uniform(4, 8, N)]
    )
    pose = Rigid3d(angle_axis_to_rotation([0.0, 0.1, 0.0]), [1.0, 0.0, 0.0])
    pts2 = pose.apply(pts1)
    return pts1, pts2, pose


def _pixels(camera, pts):
    proj = pts @ camera.calibration_matrix().T
    return proj[:, :2] / proj[:, 2:]


def _rays(pts):
    return pts / np.linalg.norm(pts, axis=1, keepdims=True)


def test_essential_all_inliers_and_flipped_rejected():
    pts1, pts2, pose = _scene()
    rays1 = _rays(pts1)
    rays2 = _rays(pts2)
    undist1 = np.vstack([rays1, -rays1[:1]])
    undist2 = np.vstack([rays2, -rays2[:1]])
    images = {
        1: Image(image_id=1, camera_id=1, features_undist=undist1),
        2: Image(image_id=2, camera_id=1, features_undist=undist2),
    }
    matches = np.column_stack([np.arange(N + 1), np.arange(N + 1)])
    pair = ImagePair(1, 2, cam2_from_cam1=pose, config=TwoViewConfig.CALIBRATED, matches=matches)
    options = InlierThresholdOptions()
    score = ImagePairInliers(pair, images, options, {1: _camera()}).score_error()
    assert pair.inliers == list(range(N))
    thres = options.max_epipolar_error_e / _camera().focal()
    assert score == pytest.approx(thres * thres, rel=1e-6)


def test_essential_requires_cameras():
    pair = ImagePair(1, 2, config=TwoViewConfig.CALIBRATED)
    images = {1: Image(image_id=1), 2: Image(image_id=2)}
    with pytest.raises(ValueError):
        ImagePairInliers(pair, images, InlierThresholdOptions()).score_error()


def test_fundamental_excludes_off_epipolar_point():
    camera = _camera()
    pts1, pts2, pose = _scene(seed=1)
    px1 = _pixels(camera, pts1)
    px2 = _pixels(camera, pts2)
    px2[3, 1] += 50.0
    images = {
        1: Image(image_id=1, camera_id=1, features=px1),
        2: Image(image_id=2, camera_id=1, features=px2),
    }
    f = fundamental_from_motion_and_cameras(camera, camera, pose)
    matches = np.column_stack([np.arange(N), np.arange(N)])
    pair = ImagePair(1, 2, config=TwoViewConfig.UNCALIBRATED, F=f, matches=matches)
    options = InlierThresholdOptions()
    score = ImagePairInliers(pair, images, options).score_error()
    assert pair.inliers == [k for k in range(N) if k != 3]
    assert score >= options.max_epipolar_error_f ** 2


def test_homography_identity():
    rng = np.random.default_rng(2)
    feats = rng.uniform(0, 500, size=(10, 2))
    other = feats.copy()
    other[0] += 100.0
    images = {
        1: Image(image_id=1, features=feats),
        2: Image(image_id=2, features=other),
    }
    matches = np.column_stack([np.arange(10), np.arange(10)])
    pair = ImagePair(1, 2, config=TwoViewConfig.PLANAR, H=np.eye(3), matches=matches)
    options = InlierThresholdOptions()
    score = ImagePairInliers(pair, images, options).score_error()
    assert pair.inliers == list(range(1, 10))
    assert score == pytest.approx(options.max_epipolar_error_h ** 2)


def test_undefined_config_scores_zero():
    pair = ImagePair(1, 2, inliers=[5])
    images = {1: Image(image_id=1), 2: Image(image_id=2)}
    assert ImagePairInliers(pair, images, InlierThresholdOptions()).score_error() == 0.0
    assert pair.inliers == [5]


def _homography_setup():
    feats = np.arange(20, dtype=float).reshape(10, 2)
    images = {i: Image(image_id=i, features=feats) for i in (1, 2, 3)}
    matches = np.column_stack([np.arange(10), np.arange(10)])
    valid = ImagePair(1, 2, config=TwoViewConfig.PLANAR, H=np.eye(3), matches=matches)
    invalid = ImagePair(2, 3, config=TwoViewConfig.PLANAR, H=np.eye(3), matches=matches)
    invalid.is_valid = False
    invalid.inliers = [0]
    graph = ViewGraph()
    graph.image_pairs[valid.pair_id] = valid
    graph.image_pairs[invalid.pair_id] = invalid
    return graph, images, valid, invalid


def test_image_pairs_inlier_count_cleans():
    graph, images, valid, invalid = _homography_setup()
    valid.inliers = [7]
    image_pairs_inlier_count(graph, {}, images, InlierThresholdOptions(), True)
    assert valid.inliers == list(range(10))
    assert invalid.inliers == []


def test_image_pairs_inlier_count_keeps_existing():
    graph, images, valid, invalid = _homography_setup()
    valid.inliers = [7]
    image_pairs_inlier_count(graph, {}, images, InlierThresholdOptions(), False)
    assert valid.inliers == [7]
    assert invalid.inliers == [0]
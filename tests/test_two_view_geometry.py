import numpy as np
import pytest

from sfmgraph.camera import Camera
from sfmgraph.rigid3d import Rigid3d, angle_axis_to_rotation
from sfmgraph.two_view_geometry import (
    check_cheirality,
    essential_from_motion,
    fundamental_from_motion_and_cameras,
    get_orientation_signum,
    homography_error,
    sampson_error,
    sampson_error_rays,
)

POSE = Rigid3d(angle_axis_to_rotation([0.05, -0.1, 0.02]), [-1.0, 0.2, 0.1])
POINTS = np.array([[0.3, -0.2, 5.0], [-0.5, 0.4, 7.0], [1.0, 1.0, 4.0]])


def _rays(point):
    x1 = point / np.linalg.norm(point)
    p2 = POSE.apply(point)
    x2 = p2 / np.linalg.norm(p2)
    return x1, x2


def test_epipolar_constraint():
    e = essential_from_motion(POSE)
    for point in POINTS:
        x1, x2 = _rays(point)
        assert x2 @ e @ x1 == pytest.approx(0.0, abs=1e-12)


def test_essential_singular():
    e = essential_from_motion(POSE)
    assert np.linalg.det(e) == pytest.approx(0.0, abs=1e-12)


def test_sampson_error_zero_for_true_match():
    e = essential_from_motion(POSE)
    for point in POINTS:
        p2 = POSE.apply(point)
        assert sampson_error(e, point[:2] / point[2], p2[:2] / p2[2]) == pytest.approx(0.0, abs=1e-20)
        x1, x2 = _rays(point)
        assert sampson_error_rays(e, x1, x2) == pytest.approx(0.0, abs=1e-20)


def test_sampson_error_positive_for_wrong_match():
    e = essential_from_motion(POSE)
    p2 = POSE.apply(POINTS[0])
    assert sampson_error(e, POINTS[0][:2] / POINTS[0][2], p2[:2] / p2[2] + [0.0, 0.1]) > 1e-4


def test_fundamental_constraint_in_pixels():
    cam1 = Camera(500.0, 500.0, 320.0, 240.0)
    cam2 = Camera(700.0, 650.0, 300.0, 200.0)
    f = fundamental_from_motion_and_cameras(cam1, cam2, POSE)
    for point in POINTS:
        p2 = POSE.apply(point)
        u1 = np.append(cam1.img_from_cam(point[:2] / point[2]), 1.0)
        u2 = np.append(cam2.img_from_cam(p2[:2] / p2[2]), 1.0)
        assert u2 @ f @ u1 / (np.linalg.norm(u1) * np.linalg.norm(u2)) == pytest.approx(0.0, abs=1e-12)


def test_cheirality_front_and_behind():
    x1, x2 = _rays(POINTS[0])
    assert check_cheirality(POSE, x1, x2)
    assert not check_cheirality(POSE, -x1, -x2)


def test_cheirality_max_depth():
    x1, x2 = _rays(POINTS[1])
    assert not check_cheirality(POSE, x1, x2, 0.0, 0.5)


def test_homography_identity():
    assert homography_error(np.eye(3), [0.4, -0.3], [0.4, -0.3]) == pytest.approx(0.0)
    err = homography_error(np.eye(3), [0.0, 0.0], [3.0, 4.0])
    assert err == pytest.approx(25.0)


def test_orientation_signum_flips_with_epipole():
    f = np.arange(9, dtype=float).reshape(3, 3) + 1.0
    e = np.array([0.3, 1.2, 0.5])
    pt1 = np.array([0.4, 0.2])
    pt2 = np.array([-0.1, 0.7])
    s = get_orientation_signum(f, e, pt1, pt2)
    assert s == pytest.approx(-get_orientation_signum(f, -e, pt1, pt2))
    assert s != 0.0
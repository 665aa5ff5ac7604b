import math

import numpy as np
import pytest

from sfmgraph.rigid3d import (
    EPS,
    Rigid3d,
    angle_axis_to_rotation,
    calc_angle,
    calc_rotation_angle,
    calc_trans,
    calc_trans_angle,
    deg_to_rad,
    rad_to_deg,
    rigid3d_to_angle_axis,
    rotation_to_angle_axis,
)


def _rot_z(deg):
    return angle_axis_to_rotation([0.0, 0.0, math.radians(deg)])


def _sample_pose():
    return Rigid3d(angle_axis_to_rotation([0.1, -0.4, 0.7]), [1.0, 2.0, -3.0])


def test_default_is_identity():
    pose = Rigid3d()
    point = np.array([1.5, -2.0, 4.0])
    assert np.allclose(pose.apply(point), point)


def test_compose_with_inverse_is_identity():
    pose = _sample_pose()
    ident = pose * pose.inverse()
    assert np.allclose(ident.rotation, np.eye(3))
    assert np.allclose(ident.translation, np.zeros(3))


def test_inverse_undoes_apply():
    pose = _sample_pose()
    point = np.array([0.3, 0.2, 5.0])
    assert np.allclose(pose.inverse().apply(pose.apply(point)), point)


def test_mul_with_point_matches_apply_and_batches():
    pose = _sample_pose()
    pts = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 2.0]])
    batch = pose.apply(pts)
    assert np.allclose(batch[1], pose * pts[1])
    assert batch.shape == (2, 3)


def test_composition_order():
    a = _sample_pose()
    b = Rigid3d(_rot_z(20), [0.0, 1.0, 0.0])
    point = np.array([2.0, -1.0, 0.5])
    assert np.allclose((a * b).apply(point), a.apply(b.apply(point)))


def test_calc_angle_recovers_rotation():
    pose1 = Rigid3d(_rot_z(10))
    pose2 = Rigid3d(_rot_z(40))
    assert calc_angle(pose1, pose2) == pytest.approx(30.0)
    assert calc_rotation_angle(_rot_z(10), _rot_z(40)) == pytest.approx(30.0)


def test_calc_angle_same_rotation_is_zero():
    pose = _sample_pose()
    assert calc_angle(pose, pose) == pytest.approx(0.0, abs=1e-5)


def test_calc_trans_is_center_distance():
    pose1 = Rigid3d(_rot_z(30), [1.0, 0.0, 0.0])
    pose2 = Rigid3d(_rot_z(30), [1.0, 0.0, 0.0])
    assert calc_trans(pose1, pose2) == pytest.approx(0.0)
    # Same rotation, shifted translation: centre distance equals translation gap.
    pose3 = Rigid3d(_rot_z(30), [1.0, 0.0, 4.0])
    assert calc_trans(pose1, pose3) == pytest.approx(4.0)


def test_calc_trans_angle_perpendicular_and_parallel():
    pose1 = Rigid3d(translation=[1.0, 0.0, 0.0])
    pose2 = Rigid3d(translation=[0.0, 3.0, 0.0])
    pose3 = Rigid3d(translation=[5.0, 0.0, 0.0])
    assert calc_trans_angle(pose1, pose2) == pytest.approx(90.0)
    assert calc_trans_angle(pose1, pose3) == pytest.approx(0.0, abs=1e-6)


def test_degree_radian_round_trip():
    assert deg_to_rad(180.0) == pytest.approx(math.pi)
    assert rad_to_deg(deg_to_rad(37.5)) == pytest.approx(37.5)


def test_angle_axis_round_trip():
    aa = np.array([0.2, -0.5, 0.9])
    rot = angle_axis_to_rotation(aa)
    assert np.allclose(rot @ rot.T, np.eye(3))
    assert np.linalg.det(rot) == pytest.approx(1.0)
    assert np.allclose(rotation_to_angle_axis(rot), aa)
    assert np.allclose(rigid3d_to_angle_axis(Rigid3d(rot)), aa)


def test_small_angle_axis_uses_first_order_form():
    aa = np.array([EPS / 10, -EPS / 20, EPS / 30])
    rot = angle_axis_to_rotation(aa)
    assert rot[1, 0] == aa[2]
    assert rot[0, 1] == -aa[2]
    assert rot[2, 1] == aa[0]
    assert np.allclose(rot, np.eye(3))
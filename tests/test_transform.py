import numpy as np
import pytest

from lighthouse_calib.core.transform import RigidTransform


def test_identity_is_all_zero():
    T = RigidTransform.identity()
    assert T.to_list() == [0.0] * 6
    assert T.is_identity()
    assert np.allclose(T.as_matrix(), np.eye(4))


def test_compose_with_inverse_is_identity():
    T = RigidTransform([0.3, -1.2, 2.0], [0.4, -0.1, 0.9])
    assert (T * T.inverse()).is_identity(atol=1e-12)
    assert (T.inverse() * T).is_identity(atol=1e-12)


def test_compose_matches_matrix_product():
    A = RigidTransform([1.0, 0.0, 0.0], [0.0, 0.0, np.pi / 2])
    B = RigidTransform([0.0, 2.0, 0.5], [0.2, 0.1, 0.0])
    assert np.allclose((A * B).as_matrix(), A.as_matrix() @ B.as_matrix())
    # B is applied first
    p = np.array([0.1, 0.2, 0.3])
    assert np.allclose((A * B).apply(p), A.apply(B.apply(p)))


def test_apply_accepts_point_arrays():
    T = RigidTransform([1.0, 2.0, 3.0], [0.0, 0.0, np.pi])
    pts = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    out = T.apply(pts)
    assert out.shape == (2, 3)
    assert np.allclose(out[0], [0.0, 2.0, 3.0])
    assert np.allclose(out[1], [1.0, 1.0, 3.0])


def test_quaternion_round_trip_and_pose7():
    T = RigidTransform([0.5, 0.6, 0.7], [0.3, -0.2, 0.1])
    q = T.as_quaternion()
    assert np.linalg.norm(q) == pytest.approx(1.0)
    back = RigidTransform.from_quaternion(T.translation, q)
    assert back.allclose(T, atol=1e-12)
    assert RigidTransform.from_pose7(T.to_pose7()).allclose(T, atol=1e-12)


def test_quaternion_sign_does_not_matter():
    T = RigidTransform([0.0, 0.0, 0.0], [0.0, 0.5, 0.0])
    q = T.as_quaternion()
    assert RigidTransform.from_quaternion([0, 0, 0], -q).allclose(T, atol=1e-12)


def test_bad_lengths_raise():
    with pytest.raises(ValueError):
        RigidTransform.from_list([0.0] * 5)
    with pytest.raises(ValueError):
        RigidTransform.from_pose7([0.0] * 6)
    with pytest.raises(ValueError):
        RigidTransform([0.0, 0.0], [0.0, 0.0, 0.0])

from dataclasses import dataclass, field
from typing import Sequence

import cv2
import numpy as np


def _vec3(values) -> np.ndarray:
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size != 3:
        raise ValueError(f"expected 3 values, got {arr.size}")
    return arr


def rotation_matrix(rvec) -> np.ndarray:
    """Axis-angle [rx, ry, rz] -> 3x3 rotation matrix."""
    R, _ = cv2.Rodrigues(_vec3(rvec).reshape(3, 1))
    return R


def rotation_vector(R) -> np.ndarray:
    """3x3 rotation matrix -> axis-angle [rx, ry, rz]."""
    rvec, _ = cv2.Rodrigues(np.asarray(R, dtype=np.float64).reshape(3, 3))
    return rvec.reshape(3)


@dataclass(frozen=True, eq=False)
class RigidTransform:
    """
    6-DOF rigid body transform: translation + axis-angle rotation.
    Maps points from the child frame into the parent frame:
    p_parent = R * p_child + t
    """
    translation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self):
        object.__setattr__(self, "translation", _vec3(self.translation))
        object.__setattr__(self, "rotation", _vec3(self.rotation))

    @staticmethod
    def identity() -> "RigidTransform":
        return RigidTransform(np.zeros(3), np.zeros(3))

    @staticmethod
    def from_matrix(M) -> "RigidTransform":
        M = np.asarray(M, dtype=np.float64)
        return RigidTransform(M[:3, 3], rotation_vector(M[:3, :3]))

    @staticmethod
    def from_rt(R, t) -> "RigidTransform":
        return RigidTransform(_vec3(t), rotation_vector(R))

    @staticmethod
    def from_list(values: Sequence[float]) -> "RigidTransform":
        """[tx, ty, tz, rx, ry, rz]"""
        if len(values) != 6:
            raise ValueError(f"expected 6 values, got {len(values)}")
        return RigidTransform(values[:3], values[3:])

    @staticmethod
    def from_quaternion(translation, quaternion) -> "RigidTransform":
        """quaternion is [x, y, z, w]"""
        q = np.asarray(quaternion, dtype=np.float64).reshape(4)
        n = float(np.linalg.norm(q))
        if n < 1e-12:
            raise ValueError("zero-length quaternion")
        q = q / n
        if q[3] < 0:
            q = -q
        s = float(np.linalg.norm(q[:3]))
        if s < 1e-12:
            return RigidTransform(translation, np.zeros(3))
        angle = 2.0 * np.arctan2(s, q[3])
        return RigidTransform(translation, q[:3] / s * angle)

    @staticmethod
    def from_pose7(values: Sequence[float]) -> "RigidTransform":
        """[x, y, z, qx, qy, qz, qw]"""
        if len(values) != 7:
            raise ValueError(f"expected 7 values, got {len(values)}")
        return RigidTransform.from_quaternion(values[:3], values[3:])

    @property
    def R(self) -> np.ndarray:
        return rotation_matrix(self.rotation)

    @property
    def t(self) -> np.ndarray:
        return self.translation.copy()

    def as_matrix(self) -> np.ndarray:
        M = np.eye(4)
        M[:3, :3] = self.R
        M[:3, 3] = self.translation
        return M

    def as_quaternion(self) -> np.ndarray:
        """[x, y, z, w]"""
        angle = float(np.linalg.norm(self.rotation))
        if angle < 1e-12:
            return np.array([0.0, 0.0, 0.0, 1.0])
        axis = self.rotation / angle
        s = np.sin(angle / 2.0)
        return np.array([axis[0] * s, axis[1] * s, axis[2] * s, np.cos(angle / 2.0)])

    def to_list(self) -> list:
        return [float(x) for x in self.translation] + [float(x) for x in self.rotation]

    def to_pose7(self) -> list:
        return [float(x) for x in self.translation] + [float(x) for x in self.as_quaternion()]

    def compose(self, other: "RigidTransform") -> "RigidTransform":
        """self * other: apply other first, then self."""
        R = self.R @ other.R
        t = self.R @ other.translation + self.translation
        return RigidTransform.from_rt(R, t)

    def __mul__(self, other: "RigidTransform") -> "RigidTransform":
        return self.compose(other)

    def inverse(self) -> "RigidTransform":
        R_inv = self.R.T
        return RigidTransform.from_rt(R_inv, -R_inv @ self.translation)

    def apply(self, points) -> np.ndarray:
        """Transform (3,) or (N, 3) points."""
        p = np.asarray(points, dtype=np.float64)
        if p.ndim == 1:
            return self.R @ p + self.translation
        return p @ self.R.T + self.translation

    def is_identity(self, atol: float = 1e-12) -> bool:
        return bool(np.allclose(self.translation, 0.0, atol=atol) and np.allclose(self.rotation, 0.0, atol=atol))

    def allclose(self, other: "RigidTransform", atol: float = 1e-6) -> bool:
        return bool(np.allclose(self.as_matrix(), other.as_matrix(), atol=atol))

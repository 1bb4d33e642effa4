import logging
from typing import Sequence, Tuple

import numpy as np

from ..core.transform import RigidTransform

logger = logging.getLogger(__name__)


def kabsch(source: Sequence, target: Sequence) -> Tuple[RigidTransform, bool]:
    """
    Least-squares rigid fit between two matched point sets (no scaling).

    source, target: (N, 3) points, source[i] corresponds to target[i].
    Returns (T, found) where T minimizes sum ||T(source_i) - target_i||^2.
    With no points the result is the identity and found is False.
    """
    P = np.asarray(source, dtype=np.float64).reshape(-1, 3)
    Q = np.asarray(target, dtype=np.float64).reshape(-1, 3)
    if P.shape[0] != Q.shape[0]:
        raise ValueError(f"point count mismatch: {P.shape[0]} vs {Q.shape[0]}")
    if P.shape[0] == 0:
        return RigidTransform.identity(), False

    p_mean = P.mean(axis=0)
    q_mean = Q.mean(axis=0)
    H = (P - p_mean).T @ (Q - q_mean)
    try:
        U, _, Vt = np.linalg.svd(H)
    except np.linalg.LinAlgError as e:
        logger.warning(f"SVD failed during alignment: {e}")
        return RigidTransform.identity(), False

    V = Vt.T
    # Reflection fix: force det(R) = +1
    d = 1.0 if np.linalg.det(V @ U.T) >= 0 else -1.0
    R = V @ np.diag([1.0, 1.0, d]) @ U.T
    t = q_mean - R @ p_mean
    return RigidTransform.from_rt(R, t), True


def rms_error(T: RigidTransform, source, target) -> float:
    P = np.asarray(source, dtype=np.float64).reshape(-1, 3)
    Q = np.asarray(target, dtype=np.float64).reshape(-1, 3)
    if P.shape[0] == 0:
        return 0.0
    diff = T.apply(P) - Q
    return float(np.sqrt(np.mean(np.sum(diff * diff, axis=1))))

import logging
from typing import Dict, List, Sequence, Tuple

import numpy as np

from ..core.transform import RigidTransform
from .alignment import kabsch, rms_error
from .bundler import CorrectionBundle
from .pose_solver import PoseMap

logger = logging.getLogger(__name__)


def lighthouse_correspondences(poses: PoseMap, trackers: Sequence[str], master: str, slave: str) -> Tuple[np.ndarray, np.ndarray]:
    """Tracker positions seen from both slave and master at the same bucket."""
    src: List[np.ndarray] = []
    dst: List[np.ndarray] = []
    for tserial in trackers:
        sequence = poses.get(tserial, {})
        for t in sorted(sequence.keys()):
            seen = sequence[t]
            if slave not in seen or master not in seen:
                continue
            src.append(seen[slave].translation)
            dst.append(seen[master].translation)
    return np.array(src, dtype=np.float64).reshape(-1, 3), np.array(dst, dtype=np.float64).reshape(-1, 3)


def register_lighthouses(poses: PoseMap, lighthouses: Sequence[str], trackers: Sequence[str],
                         min_correspondences: int = 3) -> Tuple[Dict[str, RigidTransform], Dict[str, int]]:
    """
    Solve every lighthouse pose in the frame of the first (master) lighthouse.
    Returns serial -> vTl and serial -> number of correspondences used.
    """
    solution: Dict[str, RigidTransform] = {}
    counts: Dict[str, int] = {}
    if not lighthouses:
        return solution, counts
    master = lighthouses[0]
    solution[master] = RigidTransform.identity()
    logger.info(f"Estimating lighthouse transforms relative to master {master}.")
    for slave in lighthouses[1:]:
        src, dst = lighthouse_correspondences(poses, trackers, master, slave)
        n = src.shape[0]
        counts[slave] = n
        logger.info(f"- {slave}: using {n} correspondences")
        if 0 < n < min_correspondences:
            logger.warning(f"- {slave}: only {n} correspondences, rotation is poorly constrained")
        T, found = kabsch(src, dst)
        if found:
            logger.info(f"- Solution {np.linalg.norm(T.translation):.4f} (rms {rms_error(T, src, dst):.4f})")
        else:
            logger.info("- Solution not found")
        solution[slave] = T
    return solution, counts


def world_correspondences(poses: PoseMap, corrections: CorrectionBundle, trackers: Sequence[str],
                          master: str, offset: Sequence[float]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Mean tracker position in the reference frame against the offset ground truth
    position, only for buckets where every tracker has a master pose.
    """
    offset = np.asarray(offset, dtype=np.float64).reshape(3)
    src: List[np.ndarray] = []
    dst: List[np.ndarray] = []
    if not trackers:
        return np.zeros((0, 3)), np.zeros((0, 3))
    for t in corrections.buckets():
        positions = []
        for tserial in trackers:
            pose = poses.get(tserial, {}).get(t, {}).get(master)
            if pose is not None:
                positions.append(pose.translation)
        if len(positions) != len(trackers):
            continue
        src.append(np.mean(positions, axis=0))
        dst.append(corrections.transforms[t].translation + offset)
    return np.array(src, dtype=np.float64).reshape(-1, 3), np.array(dst, dtype=np.float64).reshape(-1, 3)


def register_world(poses: PoseMap, corrections: CorrectionBundle, trackers: Sequence[str],
                   master: str, offset: Sequence[float]) -> Tuple[RigidTransform, int]:
    """Align the reference frame to the world frame. Returns (wTv, correspondences used)."""
    logger.info("Using corrections to register reference to world frame.")
    src, dst = world_correspondences(poses, corrections, trackers, master, offset)
    n = src.shape[0]
    logger.info(f"- Using {n} correspondences")
    T, found = kabsch(src, dst)
    if found:
        logger.info(f"- Solution {np.linalg.norm(T.translation):.4f} (rms {rms_error(T, src, dst):.4f})")
    else:
        logger.info("- No correspondences so reference -> world frame is identity")
    return T, n

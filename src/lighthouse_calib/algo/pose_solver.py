import logging
from dataclasses import dataclass
from typing import Optional, Tuple, List, Dict, Any

import cv2
import numpy as np

from ..core.transform import RigidTransform
from ..core.types import Tracker, Lighthouse, AZIMUTH, ELEVATION
from .bundler import Bundle, mean
from .lighthouse_model import SyntheticPinhole, correct_angles

logger = logging.getLogger(__name__)

# tracker -> bucket -> lighthouse -> pose of tracker in lighthouse frame
PoseMap = Dict[str, Dict[float, Dict[str, RigidTransform]]]


@dataclass
class PoseSolverConfig:
    fov: float = 2.0944
    image_width: float = 1.0
    min_correspondences: int = 7
    ransac_iterations: int = 100
    ransac_reprojection_error: float = 0.005  # fraction of image_width
    ransac_confidence: float = 0.99
    refine: bool = True

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "PoseSolverConfig":
        cfg = PoseSolverConfig()
        for k, v in d.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
        return cfg


class PerspectivePoseSolver:
    """
    Recovers a tracker pose in a lighthouse frame from one time bucket of
    sweep angles, treating the lighthouse as a synthetic pinhole camera.
    """

    def __init__(self, config: PoseSolverConfig = PoseSolverConfig()):
        self._cfg = config
        self._camera = SyntheticPinhole(fov=float(config.fov), width=float(config.image_width))
        self._K = self._camera.camera_matrix()
        self._dist = np.zeros(5, dtype=np.float64)

    @property
    def camera(self) -> SyntheticPinhole:
        return self._camera

    def correspondences(self, tracker: Tracker, lighthouse: Lighthouse,
                        samples: Dict[int, Dict[int, List[float]]], correct: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """
        samples: sensor -> axis -> raw angles for one bucket.
        Returns matched (N, 3) sensor positions and (N, 2) image points.
        """
        obj: List[np.ndarray] = []
        img: List[Tuple[float, float]] = []
        for sensor_id in sorted(samples.keys()):
            position = tracker.sensor_position(sensor_id)
            if position is None:
                continue
            az = mean(samples[sensor_id].get(AZIMUTH, []))
            el = mean(samples[sensor_id].get(ELEVATION, []))
            if az is None or el is None:
                continue
            az, el = correct_angles(lighthouse.params, (az, el), correct)
            obj.append(np.asarray(position, dtype=np.float64))
            img.append(self._camera.project_angles(az, el))
        return np.array(obj, dtype=np.float64).reshape(-1, 3), np.array(img, dtype=np.float64).reshape(-1, 2)

    def solve(self, obj: np.ndarray, img: np.ndarray) -> Optional[RigidTransform]:
        n = obj.shape[0]
        if n < int(self._cfg.min_correspondences):
            return None
        try:
            ok, rvec, tvec, inliers = cv2.solvePnPRansac(
                obj, img, self._K, self._dist,
                iterationsCount=int(self._cfg.ransac_iterations),
                reprojectionError=float(self._cfg.ransac_reprojection_error) * self._camera.width,
                confidence=float(self._cfg.ransac_confidence),
                flags=cv2.SOLVEPNP_EPNP)
        except cv2.error as e:
            logger.debug(f"solvePnPRansac failed on {n} correspondences: {e}")
            return None
        if not ok or rvec is None or tvec is None:
            return None
        if self._cfg.refine and inliers is not None and len(inliers) >= 4:
            idx = inliers.reshape(-1)
            try:
                rvec, tvec = cv2.solvePnPRefineLM(obj[idx], img[idx], self._K, self._dist, rvec, tvec)
            except cv2.error as e:
                logger.debug(f"LM refinement failed, keeping RANSAC estimate: {e}")
        return RigidTransform(tvec.reshape(3), rvec.reshape(3))

    def solve_bundle(self, bundle: Bundle, trackers: Dict[str, Tracker],
                     lighthouses: Dict[str, Lighthouse], correct: bool = False) -> Tuple[PoseMap, int]:
        """Solve every (lighthouse, tracker, bucket). Returns the pose map and solution count."""
        poses: PoseMap = {}
        count = 0
        for lserial, lighthouse in lighthouses.items():
            for tserial, tracker in trackers.items():
                logger.info(f"- Lighthouse {lserial} and tracker {tserial}")
                buckets = bundle.get(tserial, {}).get(lserial, {})
                for t in sorted(buckets.keys()):
                    obj, img = self.correspondences(tracker, lighthouse, buckets[t], correct)
                    if obj.shape[0] < int(self._cfg.min_correspondences):
                        continue
                    pose = self.solve(obj, img)
                    if pose is None:
                        logger.debug(f"  no PnP solution for {tserial}/{lserial} at {t:.3f}")
                        continue
                    poses.setdefault(tserial, {}).setdefault(t, {})[lserial] = pose
                    count += 1
        logger.info(f"Using {count} PNP solutions")
        return poses, count

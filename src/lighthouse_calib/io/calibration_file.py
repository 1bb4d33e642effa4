import json
import logging
import os
from typing import Dict, Optional

from ..core.interfaces import ICalibrationWriter
from ..core.transform import RigidTransform
from ..core.types import CalibrationResult, TrajectorySample

logger = logging.getLogger(__name__)


def _entry(parent: str, child: str, T: RigidTransform) -> Dict:
    return {"parent": parent, "child": child, "transform": T.to_pose7()}


def _sample_dict(s: TrajectorySample) -> Dict:
    return {
        "t": float(s.timestamp),
        "position": [float(x) for x in s.position],
        "orientation": [float(x) for x in s.orientation],
    }


class CalibrationFile(ICalibrationWriter):
    """
    JSON calibration record. Transforms are stored as [x, y, z, qx, qy, qz, qw]
    and keyed by frame names.
    """

    def __init__(self, calibration_file="lighthouse_calibration.json", trajectory_file: Optional[str] = None):
        self.calibration_file = calibration_file
        self.trajectory_file = trajectory_file
        self.frames: Dict[str, str] = {}
        self.wTv: Optional[RigidTransform] = None
        self.lighthouses: Dict[str, RigidTransform] = {}
        self.trackers: Dict[str, RigidTransform] = {}

    def write(self, result: CalibrationResult, frames: Dict[str, str]) -> bool:
        data = {
            "frames": dict(frames),
            "world_to_reference": _entry(frames["world"], frames["vive"], result.wTv),
            "lighthouses": {s: _entry(frames["vive"], s, T) for s, T in result.lighthouses.items()},
            "trackers": {s: _entry(frames["body"], s, T) for s, T in result.trackers.items()},
        }
        try:
            folder = os.path.dirname(self.calibration_file)
            if folder:
                os.makedirs(folder, exist_ok=True)
            with open(self.calibration_file, 'w') as f:
                json.dump(data, f, indent=4)
        except OSError as e:
            logger.error(f"Could not write calibration to {self.calibration_file}: {e}")
            return False
        logger.info(f"Calibration written to {self.calibration_file}")
        if self.trajectory_file:
            self.write_trajectories(result, frames)
        return True

    def write_trajectories(self, result: CalibrationResult, frames: Dict[str, str]):
        data = {
            "paths": {
                lserial: {tserial: [_sample_dict(s) for s in path] for tserial, path in per_tracker.items()}
                for lserial, per_tracker in result.paths.items()
            },
            "truth": {"frame": frames["world"], "poses": [_sample_dict(s) for s in result.truth]},
        }
        with open(self.trajectory_file, 'w') as f:
            json.dump(data, f, indent=2)
        logger.info(f"Trajectories written to {self.trajectory_file}")

    def load(self) -> bool:
        if not os.path.exists(self.calibration_file):
            return False
        with open(self.calibration_file, 'r') as f:
            data = json.load(f)
        self.frames = data.get("frames", {})
        self.wTv = RigidTransform.from_pose7(data["world_to_reference"]["transform"])
        self.lighthouses = {s: RigidTransform.from_pose7(e["transform"]) for s, e in data.get("lighthouses", {}).items()}
        self.trackers = {s: RigidTransform.from_pose7(e["transform"]) for s, e in data.get("trackers", {}).items()}
        logger.info(f"Loaded calibration with {len(self.lighthouses)} lighthouses from {self.calibration_file}")
        return True

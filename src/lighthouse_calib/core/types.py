from dataclasses import dataclass, field
import numpy as np
from typing import Optional, List, Dict, Tuple

from .transform import RigidTransform

AZIMUTH = 0
ELEVATION = 1

@dataclass
class Sensor:
    """Photosensor in the tracker-local frame"""
    position: np.ndarray       # [x, y, z] in meters
    normal: np.ndarray         # Outward unit normal

@dataclass
class Tracker:
    serial: str
    sensors: List[Sensor] = field(default_factory=list)        # sensor id = index
    extrinsics: RigidTransform = field(default_factory=RigidTransform.identity)   # bTh: body -> tracker
    ready: bool = False

    def sensor_position(self, sensor_id: int) -> Optional[np.ndarray]:
        if 0 <= sensor_id < len(self.sensors):
            return self.sensors[sensor_id].position
        return None

@dataclass
class LighthouseAxisParams:
    """Per-axis sweep correction parameters"""
    phase: float = 0.0
    tilt: float = 0.0
    curve: float = 0.0
    gib_phase: float = 0.0
    gib_mag: float = 0.0

    @staticmethod
    def from_dict(d) -> "LighthouseAxisParams":
        p = LighthouseAxisParams()
        for k, v in (d or {}).items():
            if hasattr(p, k):
                setattr(p, k, float(v))
        return p

@dataclass
class Lighthouse:
    serial: str
    params: Tuple[LighthouseAxisParams, LighthouseAxisParams] = field(
        default_factory=lambda: (LighthouseAxisParams(), LighthouseAxisParams()))
    vTl: RigidTransform = field(default_factory=RigidTransform.identity)        # lighthouse in reference frame
    ready: bool = False

@dataclass
class Pulse:
    sensor: int
    angle: float               # radians
    duration: float            # seconds

@dataclass
class Light:
    """One sweep of one lighthouse axis as seen by one tracker"""
    timestamp: float
    tracker: str
    lighthouse: str
    axis: int                  # AZIMUTH or ELEVATION
    pulses: List[Pulse] = field(default_factory=list)

@dataclass
class Correction:
    """Ground truth pose of the tracked body in the world frame"""
    timestamp: float
    transform: RigidTransform

@dataclass
class TrajectorySample:
    timestamp: float
    position: np.ndarray       # [x, y, z]
    orientation: np.ndarray    # Quaternion [x, y, z, w]

@dataclass
class CalibrationResult:
    success: bool
    message: str
    wTv: RigidTransform = field(default_factory=RigidTransform.identity)
    lighthouses: Dict[str, RigidTransform] = field(default_factory=dict)      # serial -> vTl, master first
    trackers: Dict[str, RigidTransform] = field(default_factory=dict)         # serial -> bTh
    paths: Dict[str, Dict[str, List[TrajectorySample]]] = field(default_factory=dict)  # lighthouse -> tracker -> path
    truth: List[TrajectorySample] = field(default_factory=list)
    height: float = 0.0
    num_poses: int = 0
    num_correspondences: Dict[str, int] = field(default_factory=dict)

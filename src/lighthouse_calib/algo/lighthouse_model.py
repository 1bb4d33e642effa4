from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from ..core.types import LighthouseAxisParams


def correct_angles(params: Sequence[LighthouseAxisParams], angles: Tuple[float, float], enabled: bool = True) -> Tuple[float, float]:
    """
    Remove the lighthouse sweep errors from a raw (azimuth, elevation) pair.
    Each axis is corrected against the raw value of the other axis.
    """
    if not enabled:
        return float(angles[0]), float(angles[1])
    raw = (float(angles[0]), float(angles[1]))
    out = []
    for a in (0, 1):
        p = params[a]
        other = raw[1 - a]
        err = p.phase + np.tan(p.tilt) * other + p.curve * other * other + p.gib_mag * np.sin(p.gib_phase + raw[a])
        out.append(raw[a] - float(err))
    return out[0], out[1]


@dataclass(frozen=True)
class SyntheticPinhole:
    """
    Virtual pinhole camera used to turn sweep angles into image points.
    Principal point at the origin, no distortion.
    """
    fov: float = 2.0944           # 120 deg
    width: float = 1.0            # synthetic image plane width

    @property
    def focal(self) -> float:
        return self.width / (2.0 * np.tan(self.fov / 2.0))

    def camera_matrix(self) -> np.ndarray:
        K = np.eye(3, dtype=np.float64)
        K[0, 0] = self.focal
        K[1, 1] = self.focal
        return K

    def project_angles(self, azimuth: float, elevation: float) -> Tuple[float, float]:
        f = self.focal
        return f * np.tan(azimuth), f * np.tan(elevation)

    @staticmethod
    def angles_of(point) -> Tuple[float, float]:
        """Sweep angles at which a point in the lighthouse optical frame is hit."""
        x, y, z = float(point[0]), float(point[1]), float(point[2])
        return float(np.arctan2(x, z)), float(np.arctan2(y, z))

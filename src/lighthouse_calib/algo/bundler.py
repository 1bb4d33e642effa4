import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import numpy as np

from ..core.transform import RigidTransform
from ..core.types import Light, Correction

logger = logging.getLogger(__name__)

# tracker -> lighthouse -> bucket -> sensor -> axis -> raw angles
Bundle = Dict[str, Dict[str, Dict[float, Dict[int, Dict[int, List[float]]]]]]


def bucket_time(t: float, resolution: float) -> float:
    """Snap a timestamp to the centre of its bucket."""
    return round(t / resolution) * resolution


def mean(samples: List[float]) -> Optional[float]:
    if not samples:
        return None
    return float(np.mean(samples))


@dataclass
class CorrectionBundle:
    transforms: Dict[float, RigidTransform] = field(default_factory=dict)   # bucket -> world pose of body
    height: float = 0.0                                                     # average body z

    def buckets(self) -> List[float]:
        return sorted(self.transforms.keys())


def bundle_measurements(measurements: Iterable[Light], resolution: float) -> Bundle:
    """Average asynchronous sweeps by binning them into buckets of width resolution."""
    bundle: Bundle = {}
    for light in measurements:
        t = bucket_time(light.timestamp, resolution)
        bins = bundle.setdefault(light.tracker, {}).setdefault(light.lighthouse, {}).setdefault(t, {})
        for pulse in light.pulses:
            bins.setdefault(int(pulse.sensor), {}).setdefault(int(light.axis), []).append(float(pulse.angle))
    return bundle


def bundle_corrections(corrections: Iterable[Correction], resolution: float) -> CorrectionBundle:
    out = CorrectionBundle()
    n = 0
    height = 0.0
    for cor in corrections:
        t = bucket_time(cor.timestamp, resolution)
        out.transforms[t] = cor.transform
        height += float(cor.transform.translation[2])
        n += 1
    if n > 0:
        out.height = height / n
    logger.info(f"Average height is {out.height} meters")
    return out

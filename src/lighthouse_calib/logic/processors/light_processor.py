import math
from dataclasses import dataclass, replace
from typing import Optional, Dict, Any

from ...core.types import Light


@dataclass
class LightFilterConfig:
    count: int = 4              # min surviving pulses
    angle: float = 60.0         # max angle, degrees
    duration: float = 1.0       # min duration, microseconds

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "LightFilterConfig":
        cfg = LightFilterConfig()
        for k, v in d.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
        return cfg


class LightProcessor:
    def __init__(self, config: LightFilterConfig = LightFilterConfig()):
        self.config = config
        self._max_angle = math.radians(float(config.angle))
        self._min_duration = float(config.duration) / 1e6

    def process(self, light: Light) -> Optional[Light]:
        """
        Drop pulses outside the angle / duration limits.
        Returns None if too few pulses survive, so the sweep is never stored partially.
        """
        pulses = [p for p in light.pulses
                  if not (p.angle > self._max_angle or p.duration < self._min_duration)]
        if len(pulses) < int(self.config.count):
            return None
        return replace(light, pulses=pulses)

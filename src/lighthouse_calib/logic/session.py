import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..core.transform import RigidTransform
from ..core.types import (Tracker, Lighthouse, LighthouseAxisParams, Sensor, Light, Correction,
                          CalibrationResult)

logger = logging.getLogger(__name__)


class CalibrationSession:
    """
    All state shared between the message handlers and the solver.
    Lighthouses keep insertion order; the first one is the master.
    """

    def __init__(self):
        self.trackers: Dict[str, Tracker] = {}
        self.lighthouses: Dict[str, Lighthouse] = {}
        self.measurements: List[Light] = []
        self.corrections: List[Correction] = []
        self.recording = False
        self.wTv = RigidTransform.identity()

    @staticmethod
    def from_config(config) -> "CalibrationSession":
        session = CalibrationSession()
        for lh in config.get("lighthouses", []):
            vTl = RigidTransform.from_pose7(lh["transform"]) if "transform" in lh else RigidTransform.identity()
            session.lighthouses[str(lh["serial"])] = Lighthouse(serial=str(lh["serial"]), vTl=vTl)
        for tr in config.get("trackers", []):
            bTh = RigidTransform.from_pose7(tr["extrinsics"]) if "extrinsics" in tr else RigidTransform.identity()
            session.trackers[str(tr["serial"])] = Tracker(serial=str(tr["serial"]), extrinsics=bTh)
        return session

    @property
    def master(self) -> Optional[str]:
        for serial in self.lighthouses:
            return serial
        return None

    def add_tracker(self, serial: str, sensors: Sequence[Sensor],
                    extrinsics: Optional[RigidTransform] = None) -> Tuple[Tracker, bool]:
        tracker = self.trackers.get(serial)
        is_new = tracker is None or not tracker.ready
        if tracker is None:
            tracker = Tracker(serial=serial)
            self.trackers[serial] = tracker
        tracker.sensors = list(sensors)
        if extrinsics is not None:
            tracker.extrinsics = extrinsics
        tracker.ready = True
        return tracker, is_new

    def add_lighthouse(self, serial: str, params: Sequence[LighthouseAxisParams]) -> Tuple[Lighthouse, bool]:
        lighthouse = self.lighthouses.get(serial)
        is_new = lighthouse is None or not lighthouse.ready
        if lighthouse is None:
            lighthouse = Lighthouse(serial=serial)
            if not self.lighthouses:
                logger.info(f"Lighthouse {serial} is the master")
            self.lighthouses[serial] = lighthouse
        lighthouse.params = (params[0], params[1])
        lighthouse.ready = True
        return lighthouse, is_new

    def is_ready(self, tracker: str, lighthouse: str) -> bool:
        return (tracker in self.trackers and self.trackers[tracker].ready
                and lighthouse in self.lighthouses and self.lighthouses[lighthouse].ready)

    def clear_measurements(self):
        self.measurements.clear()

    def apply(self, result: CalibrationResult):
        """Store a successful solution on the long-lived descriptors."""
        if not result.success:
            return
        for serial, vTl in result.lighthouses.items():
            if serial in self.lighthouses:
                self.lighthouses[serial].vTl = vTl
        self.wTv = result.wTv


def sensors_from_dicts(items) -> List[Sensor]:
    return [Sensor(position=np.asarray(s["position"], dtype=np.float64).reshape(3),
                   normal=np.asarray(s.get("normal", [0.0, 0.0, 0.0]), dtype=np.float64).reshape(3))
            for s in items]

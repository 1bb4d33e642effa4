import logging
from typing import Dict, Optional, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from ...algo.calibrator import Calibrator
from ...core.interfaces import ITransformBroadcaster, ICalibrationWriter
from ...core.types import CalibrationResult, Correction, Light
from ..session import CalibrationSession

logger = logging.getLogger(__name__)


class RecordingManager(QObject):
    status_update = pyqtSignal(str)
    calibration_finished = pyqtSignal(bool, str)

    def __init__(self, session: CalibrationSession, calibrator: Calibrator, frames: Dict[str, str],
                 broadcaster: Optional[ITransformBroadcaster] = None, writer: Optional[ICalibrationWriter] = None):
        super().__init__()
        self.session = session
        self.calibrator = calibrator
        self.frames = frames
        self.broadcaster = broadcaster
        self.writer = writer
        self.last_result: Optional[CalibrationResult] = None

    @property
    def is_recording(self) -> bool:
        return self.session.recording

    def start(self) -> Tuple[bool, str]:
        self.session.recording = True
        msg = "Recording started."
        self.status_update.emit(msg)
        return True, msg

    def stop(self) -> Tuple[bool, str]:
        """Stop recording, solve, publish. Measurements are cleared whatever the outcome."""
        self.session.recording = False
        if self.session.corrections:
            # Corrections from earlier recordings are kept and take part in this solve
            logger.info(f"{len(self.session.corrections)} corrections carried into this solve")
        try:
            result = self.calibrator.solve(self.session.trackers, self.session.lighthouses,
                                           self.session.measurements, self.session.corrections)
        finally:
            self.session.clear_measurements()
        self.last_result = result
        if result.success:
            self.session.apply(result)
            self.publish()
            msg = "Recording stopped. Solution found."
        else:
            msg = "Recording stopped. Solution not found."
        self.status_update.emit(msg)
        self.calibration_finished.emit(result.success, msg)
        return result.success, msg

    def toggle(self) -> Tuple[bool, str]:
        if self.session.recording:
            return self.stop()
        return self.start()

    def record_light(self, light: Light) -> bool:
        if not self.session.recording:
            return False
        self.session.measurements.append(light)
        return True

    def record_correction(self, correction: Correction) -> bool:
        if not self.session.recording:
            return False
        self.session.corrections.append(correction)
        return True

    def send_transforms(self):
        if self.broadcaster is None:
            return
        self.broadcaster.send(self.frames["world"], self.frames["vive"], self.session.wTv)
        for serial, lighthouse in self.session.lighthouses.items():
            self.broadcaster.send(self.frames["vive"], serial, lighthouse.vTl)
        for serial, tracker in self.session.trackers.items():
            self.broadcaster.send(self.frames["body"], serial, tracker.extrinsics)

    def publish(self):
        self.send_transforms()
        if self.writer is None or self.last_result is None:
            return
        try:
            ok = self.writer.write(self.last_result, self.frames)
        except OSError as e:
            logger.error(f"Calibration output failed: {e}")
            ok = False
        if not ok:
            self.status_update.emit("Could not write calibration.")

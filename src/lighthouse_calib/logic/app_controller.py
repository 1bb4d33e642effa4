import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

from PyQt5.QtCore import QObject, Qt, pyqtSignal

from ..algo.calibrator import Calibrator, CalibratorConfig
from ..core.interfaces import ITransformBroadcaster, ICalibrationWriter
from ..core.transform import RigidTransform
from ..core.types import Light, Pulse, Correction, LighthouseAxisParams, AZIMUTH, ELEVATION
from .dispatcher import Dispatcher
from .managers.recording_manager import RecordingManager
from .processors.light_processor import LightProcessor, LightFilterConfig
from .session import CalibrationSession, sensors_from_dicts

logger = logging.getLogger(__name__)


def _axis_param_dicts(raw) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Per-axis parameters as [az, el] or keyed by axis ({"0": ..., "1": ...} in JSON)."""
    if not raw:
        return {}, {}
    if isinstance(raw, dict):
        return raw.get(str(AZIMUTH), raw.get(AZIMUTH)) or {}, raw.get(str(ELEVATION), raw.get(ELEVATION)) or {}
    if len(raw) != 2:
        raise ValueError(f"expected parameters for 2 axes, got {len(raw)}")
    return raw[AZIMUTH] or {}, raw[ELEVATION] or {}


class CalibrationController(QObject):
    """
    Message handlers over one CalibrationSession. Handlers are not locked;
    post them through a Dispatcher when messages arrive from more than one thread.
    """
    status_update = pyqtSignal(str)

    def __init__(self, config: Dict[str, Any], broadcaster: Optional[ITransformBroadcaster] = None,
                 writer: Optional[ICalibrationWriter] = None, dispatcher: Optional[Dispatcher] = None):
        super().__init__()
        self.config = config
        self.frames = dict(config["frames"])
        self.session = CalibrationSession.from_config(config)
        self.calibrator = Calibrator(CalibratorConfig.from_dict(config))
        self.light_processor = LightProcessor(LightFilterConfig.from_dict(config.get("thresholds", {})))
        self.rec_manager = RecordingManager(self.session, self.calibrator, self.frames, broadcaster, writer)
        self.rec_manager.status_update.connect(self.handle_status_update, Qt.DirectConnection)

        self.dispatcher = dispatcher
        self.idle_timeout = float(config.get("idle_timeout", 1.0))
        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._deadline = 0.0

        if bool(config.get("offline", False)):
            logger.info("Offline mode: recording from startup.")
            self.session.recording = True

    def handle_status_update(self, msg):
        logger.info(msg)
        self.status_update.emit(msg)

    # --- Dispatch ---
    def handle(self, kind: str, msg: Optional[Dict[str, Any]] = None):
        handlers = {
            "tracker": self.on_tracker,
            "lighthouse": self.on_lighthouse,
            "light": self.on_light,
            "correction": self.on_correction,
            "trigger": self.on_trigger,
        }
        if kind not in handlers:
            logger.warning(f"Unknown message type {kind!r}")
            return None
        return handlers[kind](msg or {})

    def post(self, kind: str, msg: Optional[Dict[str, Any]] = None):
        if self.dispatcher is None:
            return self.handle(kind, msg)
        self.dispatcher.post(self.handle, kind, msg)
        return None

    # --- Handlers ---
    def on_tracker(self, msg: Dict[str, Any]):
        serial = str(msg["serial"])
        extrinsics = RigidTransform.from_pose7(msg["extrinsics"]) if "extrinsics" in msg else None
        tracker, is_new = self.session.add_tracker(serial, sensors_from_dicts(msg.get("sensors", [])), extrinsics)
        if is_new:
            logger.info(f"Found tracker {serial} with {len(tracker.sensors)} sensors")
        return tracker

    def on_lighthouse(self, msg: Dict[str, Any]):
        serial = str(msg["serial"])
        params = [LighthouseAxisParams.from_dict(d) for d in _axis_param_dicts(msg.get("params"))]
        lighthouse, is_new = self.session.add_lighthouse(serial, params)
        if is_new:
            logger.info(f"Found lighthouse {serial}")
        return lighthouse

    def on_light(self, msg: Dict[str, Any]) -> bool:
        tserial = str(msg["tracker"])
        lserial = str(msg["lighthouse"])
        if not self.rec_manager.is_recording or not self.session.is_ready(tserial, lserial):
            return False
        light = Light(
            timestamp=float(msg.get("timestamp", time.time())),
            tracker=tserial,
            lighthouse=lserial,
            axis=int(msg["axis"]),
            pulses=[Pulse(int(p["sensor"]), float(p["angle"]), float(p["duration"])) for p in msg.get("pulses", [])],
        )
        light = self.light_processor.process(light)
        if light is None:
            return False
        self.rec_manager.record_light(light)
        self._restart_timer()
        return True

    def on_correction(self, msg: Dict[str, Any]) -> bool:
        if not self.rec_manager.is_recording:
            return False
        if msg.get("frame_id") != self.frames["world"] or msg.get("child_frame_id") != self.frames["body"]:
            return False
        correction = Correction(
            timestamp=float(msg.get("timestamp", time.time())),
            transform=RigidTransform.from_pose7(msg["transform"]),
        )
        return self.rec_manager.record_correction(correction)

    def on_trigger(self, msg: Optional[Dict[str, Any]] = None) -> Tuple[bool, str]:
        if self.rec_manager.is_recording:
            self._cancel_timer()
        return self.rec_manager.toggle()

    # --- Actions ---
    def send_transforms(self):
        self.rec_manager.send_transforms()

    @property
    def last_result(self):
        return self.rec_manager.last_result

    def shutdown(self):
        self._cancel_timer()

    # --- Idle timer ---
    def _restart_timer(self):
        """Push the idle deadline back. One timer thread is pending at most."""
        if self.dispatcher is None or self.idle_timeout <= 0:
            return
        with self._timer_lock:
            self._deadline = time.monotonic() + self.idle_timeout
            if self._timer is None:
                self._schedule_timer(self.idle_timeout)

    def _schedule_timer(self, delay: float):
        # Caller holds _timer_lock
        self._timer = threading.Timer(delay, self._on_idle)
        self._timer.daemon = True
        self._timer.start()

    def _cancel_timer(self):
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _on_idle(self):
        with self._timer_lock:
            # Cancelled or superseded while waiting for the lock
            if self._timer is not threading.current_thread():
                return
            remaining = self._deadline - time.monotonic()
            if remaining > 0:
                self._schedule_timer(remaining)
                return
            self._timer = None
        # Timer thread: hand the trigger to the dispatcher instead of solving here
        self.dispatcher.post(self._idle_trigger)

    def _idle_trigger(self):
        if not self.rec_manager.is_recording:
            return
        logger.info(f"No light for {self.idle_timeout:.1f}s, triggering solve.")
        self.on_trigger()

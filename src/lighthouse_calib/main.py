import argparse
import logging
import sys

from PyQt5.QtCore import Qt

from lighthouse_calib.core.config_loader import load_config, ConfigError
from lighthouse_calib.io.calibration_file import CalibrationFile
from lighthouse_calib.io.replay_source import ReplaySource
from lighthouse_calib.io.transform_buffer import TransformBuffer
from lighthouse_calib.logic.app_controller import CalibrationController
from lighthouse_calib.logic.dispatcher import Dispatcher

logger = logging.getLogger("lighthouse_calib")


def run(config, input_path):
    """Replay a recorded message stream through the controller and solve."""
    writer = CalibrationFile(config["calfile"], config.get("trajectory_file"))
    broadcaster = TransformBuffer()
    dispatcher = Dispatcher()
    dispatcher.start()
    controller = CalibrationController(config, broadcaster=broadcaster, writer=writer, dispatcher=dispatcher)
    controller.status_update.connect(print, Qt.DirectConnection)
    controller.send_transforms()

    source = ReplaySource(input_path)
    source.open()
    try:
        while True:
            item = source.read_message()
            if item is None:
                break
            kind, msg = item
            controller.post(kind, msg)
    finally:
        source.close()

    dispatcher.join()
    controller.shutdown()
    dispatcher.join()
    # End of stream counts as the end of the experiment
    if controller.session.recording:
        controller.post("trigger")
        dispatcher.join()
    dispatcher.stop()
    return controller


def main(argv=None):
    ap = argparse.ArgumentParser(description="Calibrate lighthouses from a recorded light / correction stream")
    ap.add_argument("--input", required=True, help="recorded message stream (JSON lines)")
    ap.add_argument("--config", default="config.json")
    ap.add_argument("--calfile", default=None, help="override calibration output path")
    ap.add_argument("--trajectories", default=None, help="optional trajectory output path")
    ap.add_argument("--offline", action="store_true", help="record from startup")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        config = load_config(args.config)
    except ConfigError as e:
        logger.critical(str(e))
        return 2
    if args.calfile:
        config["calfile"] = args.calfile
    if args.trajectories:
        config["trajectory_file"] = args.trajectories
    if args.offline:
        config["offline"] = True
    print(f"Loaded config: {config.keys()}")

    controller = run(config, args.input)
    result = controller.last_result
    if result is None:
        print("No solve was triggered.")
        return 1
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())

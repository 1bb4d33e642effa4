import json

import numpy as np

from lighthouse_calib.algo.calibrator import Calibrator
from lighthouse_calib.io.calibration_file import CalibrationFile

from synthetic import make_scene

FRAMES = {"world": "world", "vive": "vive", "body": "body", "truth": "truth"}


def test_write_then_load(tmp_path):
    trackers, lighthouses, measurements, corrections = make_scene(n_buckets=10)
    result = Calibrator().solve(trackers, lighthouses, measurements, corrections)
    path = tmp_path / "out" / "cal.json"
    cal = CalibrationFile(str(path))
    assert cal.write(result, FRAMES)

    data = json.loads(path.read_text())
    assert data["world_to_reference"]["parent"] == "world"
    assert data["world_to_reference"]["child"] == "vive"
    assert set(data["lighthouses"].keys()) == {"A", "B"}
    assert data["lighthouses"]["B"]["parent"] == "vive"
    assert len(data["lighthouses"]["B"]["transform"]) == 7
    assert data["trackers"]["tracker_1"]["parent"] == "body"

    loaded = CalibrationFile(str(path))
    assert loaded.load()
    assert loaded.wTv.allclose(result.wTv, atol=1e-9)
    assert loaded.lighthouses["B"].allclose(result.lighthouses["B"], atol=1e-9)
    assert loaded.frames == FRAMES


def test_trajectories_written_when_configured(tmp_path):
    trackers, lighthouses, measurements, corrections = make_scene(n_buckets=4)
    result = Calibrator().solve(trackers, lighthouses, measurements, corrections)
    traj = tmp_path / "traj.json"
    cal = CalibrationFile(str(tmp_path / "cal.json"), trajectory_file=str(traj))
    assert cal.write(result, FRAMES)
    data = json.loads(traj.read_text())
    path = data["paths"]["A"]["tracker_1"]
    assert len(path) == 4
    assert np.allclose(path[0]["position"], result.paths["A"]["tracker_1"][0].position)
    assert data["truth"]["frame"] == "world"
    assert len(data["truth"]["poses"]) == 4


def test_load_missing_file(tmp_path):
    assert CalibrationFile(str(tmp_path / "missing.json")).load() is False

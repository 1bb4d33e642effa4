import json

import pytest

from lighthouse_calib.io.replay_source import ReplaySource
from lighthouse_calib.main import main

from synthetic import make_scene, light_message, tracker_message, correction_message


def _write_stream(path, n_buckets=12):
    trackers, _, measurements, corrections = make_scene(n_buckets=n_buckets)
    lines = [dict(tracker_message(t), type="tracker") for t in trackers.values()]
    lines.append({"type": "lighthouse", "serial": "A"})
    lines.append({"type": "lighthouse", "serial": "B"})
    lines += [dict(light_message(m), type="light") for m in measurements]
    lines += [dict(correction_message(c), type="correction") for c in corrections]
    with open(path, "w") as f:
        f.write("# synthetic session\n")
        for line in lines:
            f.write(json.dumps(line) + "\n")


def _write_config(path, **extra):
    cfg = {"idle_timeout": 0.0, "lighthouses": [{"serial": "A"}, {"serial": "B"}]}
    cfg.update(extra)
    path.write_text(json.dumps(cfg))


def test_offline_replay_writes_calibration(tmp_path):
    stream = tmp_path / "session.jsonl"
    config = tmp_path / "config.json"
    calfile = tmp_path / "cal.json"
    _write_stream(stream)
    _write_config(config)

    rc = main(["--input", str(stream), "--config", str(config), "--calfile", str(calfile), "--offline"])
    assert rc == 0
    data = json.loads(calfile.read_text())
    assert set(data["lighthouses"].keys()) == {"A", "B"}
    assert set(data["trackers"].keys()) == {"tracker_1"}


def test_replay_without_trigger_never_solves(tmp_path):
    stream = tmp_path / "session.jsonl"
    config = tmp_path / "config.json"
    _write_stream(stream, n_buckets=2)
    _write_config(config)
    rc = main(["--input", str(stream), "--config", str(config), "--calfile", str(tmp_path / "cal.json")])
    assert rc == 1
    assert not (tmp_path / "cal.json").exists()


def test_bad_config_exits_with_config_error(tmp_path):
    stream = tmp_path / "session.jsonl"
    config = tmp_path / "config.json"
    _write_stream(stream, n_buckets=1)
    _write_config(config, offset=[0.0, 1.0])
    assert main(["--input", str(stream), "--config", str(config)]) == 2


def test_replay_source_rejects_unknown_types(tmp_path):
    stream = tmp_path / "bad.jsonl"
    stream.write_text('{"type": "tracker", "serial": "t"}\n{"type": "mystery"}\n')
    source = ReplaySource(str(stream))
    source.open()
    try:
        kind, msg = source.read_message()
        assert kind == "tracker"
        assert msg == {"serial": "t"}
        with pytest.raises(ValueError):
            source.read_message()
    finally:
        source.close()

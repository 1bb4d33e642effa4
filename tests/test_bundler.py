import pytest

from lighthouse_calib.algo.bundler import bucket_time, bundle_measurements, bundle_corrections, mean
from lighthouse_calib.core.transform import RigidTransform
from lighthouse_calib.core.types import Light, Pulse, Correction


def test_bucket_time_rounds_to_resolution():
    assert bucket_time(1.02, 0.1) == pytest.approx(1.0)
    assert bucket_time(0.98, 0.1) == pytest.approx(1.0)
    assert bucket_time(1.07, 0.1) == pytest.approx(1.1)
    assert bucket_time(0.0, 0.1) == 0.0


def test_bucket_time_is_idempotent():
    for t in (0.013, 0.42, 3.1415, 17.77):
        b = bucket_time(t, 0.1)
        assert bucket_time(b, 0.1) == b


def test_close_timestamps_share_a_bucket():
    assert bucket_time(2.31, 0.1) == bucket_time(2.34, 0.1)
    assert bucket_time(2.26, 0.1) == bucket_time(2.31, 0.1)


def test_mean_of_empty_is_none():
    assert mean([]) is None
    assert mean([1.0, 2.0, 4.0]) == pytest.approx(7.0 / 3.0)


def test_measurements_grouped_by_tracker_lighthouse_bucket_sensor_axis():
    lights = [
        Light(1.01, "T", "A", 0, [Pulse(0, 0.10, 1e-5), Pulse(1, 0.20, 1e-5)]),
        Light(0.99, "T", "A", 0, [Pulse(0, 0.12, 1e-5)]),
        Light(1.00, "T", "A", 1, [Pulse(0, -0.30, 1e-5)]),
        Light(1.50, "T", "B", 0, [Pulse(3, 0.40, 1e-5)]),
    ]
    bundle = bundle_measurements(lights, 0.1)
    b = bucket_time(1.0, 0.1)
    assert bundle["T"]["A"][b][0][0] == [0.10, 0.12]
    assert bundle["T"]["A"][b][0][1] == [-0.30]
    assert bundle["T"]["A"][b][1][0] == [0.20]
    assert 1 not in bundle["T"]["A"][b][1]
    assert bundle["T"]["B"][bucket_time(1.5, 0.1)][3][0] == [0.40]


def test_corrections_bucketed_with_average_height():
    cors = [
        Correction(0.0, RigidTransform([1.0, 0.0, 1.0], [0.0, 0.0, 0.0])),
        Correction(0.1, RigidTransform([2.0, 0.0, 2.0], [0.0, 0.0, 0.1])),
        Correction(0.2, RigidTransform([3.0, 0.0, 3.0], [0.0, 0.0, 0.2])),
    ]
    out = bundle_corrections(cors, 0.1)
    assert len(out.transforms) == 3
    assert out.height == pytest.approx(2.0)
    assert out.buckets() == sorted(out.buckets())
    assert out.transforms[bucket_time(0.1, 0.1)].translation[0] == 2.0


def test_no_corrections_height_is_zero():
    out = bundle_corrections([], 0.1)
    assert out.transforms == {}
    assert out.height == 0.0

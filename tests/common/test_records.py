"""Unit tests for record layouts."""

import numpy as np
import pytest

from src.common.records import (
    POSE_DTYPE,
    SENSOR_DTYPE,
    PoseSample,
    as_structured,
    concatenate,
    make_records,
)
from src.common.stats import StreamStats


def test_as_structured_from_plain_array():
    poses = as_structured(np.array([[0.0, 1, 2, 3, 4, 5, 6]]), POSE_DTYPE)

    assert poses.dtype == POSE_DTYPE
    assert poses["yaw"][0] == 6.0


def test_as_structured_single_row():
    points = as_structured(np.array([1.0, 2.0, 3.0, 4.0]), SENSOR_DTYPE)

    assert len(points) == 1
    assert points["z"][0] == 4.0


def test_as_structured_wrong_width():
    with pytest.raises(ValueError):
        as_structured(np.zeros((2, 5)), SENSOR_DTYPE)


def test_make_records_duplicates_local_point():
    points = as_structured(np.array([[0.5, 1.0, 2.0, 3.0]]), SENSOR_DTYPE)
    poses = np.array([[10.0, 20.0, 30.0, 0.1, 0.2, 0.3]])

    records = make_records(points, poses)

    assert records["xs"][0] == records["xn"][0] == 1.0
    assert records["zs"][0] == records["zn"][0] == 3.0
    assert records["east"][0] == 20.0
    assert records["yaw"][0] == 0.3
    assert records["feature"][0] == 0


def test_concatenate_empty_stream():
    assert len(concatenate(iter([]))) == 0


def test_pose_sample_accessors():
    sample = PoseSample(1.0, 2.0, 3.0, 4.0, 0.1, 0.2, 0.3)

    assert sample.position == (2.0, 3.0, 4.0)
    assert sample.orientation == (0.1, 0.2, 0.3)
    assert sample.as_tuple()[0] == 1.0


def test_stream_stats_summary():
    stats = StreamStats("georeference")
    stats.update(10, 7, out_of_range=2, gap_exceeded=1)
    stats.update(5, 5, out_of_range=0)

    assert stats.discarded == 3
    assert stats.retained_fraction == pytest.approx(12 / 15)
    assert stats.to_dict() == {
        "candidates": 15, "retained": 12, "discarded": 3,
        "out_of_range": 2, "gap_exceeded": 1,
    }
    assert "12/15 retained" in stats.summary()


def test_stream_stats_renamed_outcomes():
    stats = StreamStats("radius_join", retained_key="matched", discarded_key="unmatched")
    stats.update(4, 1)

    assert stats.to_dict() == {"candidates": 4, "matched": 1, "unmatched": 3}
    assert stats.summary() == "radius_join: 1/4 matched (3 unmatched)"

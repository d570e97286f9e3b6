"""Unit tests for georeferencer."""

import numpy as np
import pytest

from src.common.records import RECORD_DTYPE, SENSOR_DTYPE, as_structured, concatenate
from src.preprocessing.georeferencer import Georeferencer
from src.preprocessing.pose_track import PoseTrack
from src.preprocessing.trajectory_interpolator import TrajectoryInterpolator


def straight_track():
    poses = np.array([
        [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [1.0, 10.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [2.0, 20.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        [10.0, 100.0, 0.0, 0.0, 0.0, 0.0, 0.0],
    ])
    return PoseTrack.from_array(poses)


class TestGeoreferencer:
    """Test suite for Georeferencer class."""

    def test_record_layout(self):
        """Test that records duplicate the local point and carry the pose."""
        georeferencer = Georeferencer(TrajectoryInterpolator(max_gap=1.5))
        points = np.array([[0.5, 1.0, 2.0, 3.0]])

        records = georeferencer.georeference_chunk(points, straight_track())

        assert records.dtype == RECORD_DTYPE
        assert len(records) == 1
        rec = records[0]
        assert rec["t"] == 0.5
        assert (rec["xs"], rec["ys"], rec["zs"]) == (1.0, 2.0, 3.0)
        assert (rec["xn"], rec["yn"], rec["zn"]) == (1.0, 2.0, 3.0)
        assert rec["north"] == pytest.approx(5.0)
        assert rec["feature"] == 0

    def test_discards_are_counted(self):
        """Test that out-of-range and gap points are dropped and counted."""
        georeferencer = Georeferencer(TrajectoryInterpolator(max_gap=1.5))
        points = np.array([
            [-1.0, 0.0, 0.0, 0.0],  # before track
            [0.5, 0.0, 0.0, 0.0],
            [1.5, 0.0, 0.0, 0.0],
            [5.0, 0.0, 0.0, 0.0],   # inside 8 s gap
            [11.0, 0.0, 0.0, 0.0],  # after track
        ])

        records = georeferencer.georeference_chunk(points, straight_track())

        assert len(records) == 2
        assert georeferencer.stats.candidates == 5
        assert georeferencer.stats.retained == 2
        assert georeferencer.stats.discarded == 3
        assert georeferencer.stats.reasons == {"out_of_range": 2, "gap_exceeded": 1}

    def test_stream_preserves_order(self):
        """Test that output order matches input order across chunks."""
        georeferencer = Georeferencer(TrajectoryInterpolator(max_gap=1.5))
        ts = np.linspace(0.0, 2.0, 50)
        points = np.column_stack([ts, np.arange(50.0), np.zeros(50), np.zeros(50)])
        chunks = [as_structured(points[i:i + 7], SENSOR_DTYPE) for i in range(0, 50, 7)]

        records = concatenate(georeferencer.georeference(iter(chunks), straight_track()))

        assert len(records) == 50
        assert np.array_equal(records["t"], ts)
        assert np.array_equal(records["xs"], np.arange(50.0))

    def test_stream_is_lazy(self):
        """Test that nothing is consumed until the generator is pulled."""
        georeferencer = Georeferencer(TrajectoryInterpolator(max_gap=1.5))
        consumed = []

        def source():
            for t in (0.1, 0.2):
                consumed.append(t)
                yield np.array([[t, 0.0, 0.0, 0.0]])

        stream = georeferencer.georeference(source(), straight_track())
        assert consumed == []
        next(stream)
        assert consumed == [0.1]

    def test_scenario_discard_then_accept(self):
        """Test a point inside a 10 s pose gap under two max_gap settings."""
        poses = np.array([
            [0.0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0],
            [10.0, 10.0, 0.0, 0.0, 0.0, 0.0, 0.0],
        ])
        track = PoseTrack.from_array(poses)
        points = np.array([[5.0, 0.0, 0.0, 0.0]])

        strict = Georeferencer(TrajectoryInterpolator(max_gap=1.0))
        assert len(strict.georeference_chunk(points, track)) == 0

        relaxed = Georeferencer(TrajectoryInterpolator(max_gap=20.0))
        records = relaxed.georeference_chunk(points, track)
        assert len(records) == 1
        assert (records["north"][0], records["east"][0], records["down"][0]) == pytest.approx((5.0, 0.0, 0.0))

"""Attach interpolated vehicle poses to sensor returns.

The :class:`Georeferencer` turns a timestamp-ordered stream of raw
sensor points into georeferenced records.  Each point is paired with
the pose interpolated at its timestamp; points the interpolator
discards (outside pose coverage or across a trajectory gap) are
dropped and counted, never reported as errors.  Input order is kept
exactly.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

import numpy as np

from ..common.records import SENSOR_DTYPE, as_structured, make_records
from ..common.stats import StreamStats
from ..utils.logging import get_logger
from .pose_track import PoseTrack
from .trajectory_interpolator import TrajectoryInterpolator

logger = get_logger(__name__)


@dataclass
class Georeferencer:
    """Stream raw sensor points into georeferenced records."""

    interpolator: TrajectoryInterpolator
    stats: StreamStats = field(default_factory=lambda: StreamStats("georeference"))

    def georeference_chunk(self, points: np.ndarray, track: PoseTrack) -> np.ndarray:
        """Georeference one chunk of points.

        Parameters
        ----------
        points : numpy.ndarray
            ``SENSOR_DTYPE`` structured array or an (N, 4) array of
            ``t, x, y, z``.
        track : PoseTrack
            Trajectory to interpolate against.

        Returns
        -------
        numpy.ndarray
            ``RECORD_DTYPE`` array with the retained points, in input
            order, all labelled 0.
        """
        points = as_structured(points, SENSOR_DTYPE)
        poses, valid, reasons = self.interpolator.interpolate_many(track, points["t"])
        records = make_records(points[valid], poses[valid])
        self.stats.update(len(points), len(records), **reasons)
        return records

    def georeference(
        self, point_chunks: Iterable[np.ndarray], track: PoseTrack
    ) -> Iterator[np.ndarray]:
        """Lazily georeference a stream of point chunks.

        The generator is not resumable; re-invoke it with fresh inputs
        to start over.  A summary of discards is logged once the input
        is exhausted.
        """
        for chunk in point_chunks:
            records = self.georeference_chunk(chunk, track)
            if len(records):
                yield records
        logger.info(self.stats.summary())

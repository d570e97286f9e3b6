"""Pose interpolation along a sparse trajectory.

The :class:`TrajectoryInterpolator` answers "where was the vehicle at
time t" for every sensor return.  Positions are interpolated linearly
between the two pose samples that bracket ``t``.  Orientations are
interpolated per axis along the shortest angular path, so a yaw
sequence that crosses the ±π boundary does not swing through zero.

A query is discarded instead of answered when ``t`` is outside the
track (no extrapolation) or when the bracketing samples are more than
``max_gap`` seconds apart, because the trajectory is then too sparse to
trust an interpolated pose.
"""

from dataclasses import dataclass
import math
from typing import Optional, Tuple

import numpy as np

from ..common.errors import ConfigurationError
from ..common.records import PoseSample
from .pose_track import PoseTrack

OUT_OF_RANGE = "out_of_range"
GAP_EXCEEDED = "gap_exceeded"


def wrap_angle(angles: np.ndarray) -> np.ndarray:
    """Wrap angles in radians to the interval (-π, π]."""
    wrapped = np.arctan2(np.sin(angles), np.cos(angles))
    # arctan2 returns -π for exact odd multiples; fold onto +π
    return np.where(wrapped == -np.pi, np.pi, wrapped)


def shortest_angular_delta(start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """Signed angle from ``start`` to ``end`` with magnitude at most π."""
    return (np.asarray(end) - np.asarray(start) + np.pi) % (2.0 * np.pi) - np.pi


@dataclass
class TrajectoryInterpolator:
    """Interpolate poses from a :class:`PoseTrack`."""

    max_gap: float = 1.0
    """Largest spacing in seconds between bracketing samples for which
    an interpolated pose is trusted."""

    def __post_init__(self):
        if not math.isfinite(self.max_gap) or self.max_gap <= 0:
            raise ConfigurationError("max_gap must be a positive, finite number of seconds")

    def interpolate(self, track: PoseTrack, t: float) -> Optional[PoseSample]:
        """Interpolate the pose at a single time.

        Returns
        -------
        PoseSample or None
            The interpolated pose stamped with ``t``, or ``None`` if the
            query is discarded.
        """
        poses, valid, _ = self.interpolate_many(track, np.array([t], dtype=float))
        if not valid[0]:
            return None
        return PoseSample(float(t), *(float(v) for v in poses[0]))

    def interpolate_many(
        self, track: PoseTrack, ts: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, dict]:
        """Interpolate poses for an array of query times.

        Parameters
        ----------
        track : PoseTrack
            The trajectory to sample.
        ts : numpy.ndarray
            Query times of shape (M,).  They need not be sorted.

        Returns
        -------
        (poses, valid, reasons)
            ``poses`` has shape (M, 6) with north, east, down, roll,
            pitch, yaw; rows where ``valid`` is False are NaN.
            ``reasons`` counts discarded queries by cause.
        """
        ts = np.asarray(ts, dtype=float).reshape(-1)
        lo, hi, inside = track.bracket_many(ts)

        t_lo = track.timestamps[lo]
        t_hi = track.timestamps[hi]
        span = t_hi - t_lo
        gap_ok = span <= self.max_gap
        valid = inside & gap_ok

        # Exact sample hits have span 0; they resolve to f = 0 and return p_lo.
        safe_span = np.where(span > 0, span, 1.0)
        f = np.where(span > 0, (ts - t_lo) / safe_span, 0.0)
        f = np.clip(f, 0.0, 1.0)[:, None]

        pos_lo = track.positions[lo]
        pos_hi = track.positions[hi]
        positions = pos_lo + f * (pos_hi - pos_lo)

        ori_lo = track.orientations[lo]
        ori_hi = track.orientations[hi]
        delta = shortest_angular_delta(ori_lo, ori_hi)
        orientations = np.where(f > 0, wrap_angle(ori_lo + f * delta), ori_lo)

        poses = np.hstack([positions, orientations])
        poses[~valid] = np.nan

        reasons = {
            OUT_OF_RANGE: int(np.count_nonzero(~inside)),
            GAP_EXCEEDED: int(np.count_nonzero(inside & ~gap_ok)),
        }
        return poses, valid, reasons

"""Ordered pose samples with bracket lookup.

A :class:`PoseTrack` holds the vehicle trajectory for one run.  It is
built once from the full pose file and is read-only afterwards: its
arrays are flagged non-writeable so that no stage can mutate the
trajectory while it is being queried.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

import numpy as np

from ..common.errors import InputDataError
from ..common.records import POSE_DTYPE, PoseSample, as_structured


@dataclass(frozen=True, eq=False)
class PoseTrack:
    """Immutable, timestamp-ordered sequence of 6-DoF pose samples."""

    timestamps: np.ndarray
    """Sample times of shape (N,), non-decreasing."""

    positions: np.ndarray
    """Positions (x, y, z) of shape (N, 3)."""

    orientations: np.ndarray
    """Orientations (roll, pitch, yaw) in radians, shape (N, 3)."""

    def __post_init__(self):
        ts = np.asarray(self.timestamps, dtype=float)
        pos = np.asarray(self.positions, dtype=float)
        ori = np.asarray(self.orientations, dtype=float)
        if ts.ndim != 1 or len(ts) == 0:
            raise InputDataError("pose track must contain at least one sample")
        if pos.shape != (len(ts), 3) or ori.shape != (len(ts), 3):
            raise InputDataError("positions and orientations must have shape (N, 3)")
        if not (np.all(np.isfinite(ts)) and np.all(np.isfinite(pos)) and np.all(np.isfinite(ori))):
            raise InputDataError("pose track contains non-finite values")
        if np.any(np.diff(ts) < 0):
            raise InputDataError("pose timestamps must be ordered in time")
        for name, arr in (("timestamps", ts), ("positions", pos), ("orientations", ori)):
            arr = arr.copy()
            arr.setflags(write=False)
            object.__setattr__(self, name, arr)

    @classmethod
    def from_array(cls, poses: np.ndarray) -> "PoseTrack":
        """Build a track from a ``POSE_DTYPE`` array or an (N, 7) array."""
        poses = as_structured(poses, POSE_DTYPE)
        return cls(
            timestamps=poses["t"],
            positions=np.column_stack([poses["x"], poses["y"], poses["z"]]),
            orientations=np.column_stack([poses["roll"], poses["pitch"], poses["yaw"]]),
        )

    @classmethod
    def from_samples(cls, samples: Iterable[PoseSample]) -> "PoseTrack":
        rows = [s.as_tuple() for s in samples]
        if not rows:
            raise InputDataError("pose track must contain at least one sample")
        return cls.from_array(np.array(rows, dtype=float))

    def __len__(self) -> int:
        return len(self.timestamps)

    @property
    def start(self) -> float:
        return float(self.timestamps[0])

    @property
    def end(self) -> float:
        return float(self.timestamps[-1])

    def covers(self, t: float) -> bool:
        return self.start <= t <= self.end

    def sample(self, index: int) -> PoseSample:
        return PoseSample(
            float(self.timestamps[index]),
            *(float(v) for v in self.positions[index]),
            *(float(v) for v in self.orientations[index]),
        )

    def bracket(self, t: float) -> Optional[Tuple[int, int]]:
        """Return indices ``(lo, hi)`` with ``ts[lo] <= t <= ts[hi]``.

        When ``t`` coincides with a sample timestamp both indices point
        at that sample.  Returns ``None`` outside the track's range.
        """
        lo, hi, inside = self.bracket_many(np.array([t], dtype=float))
        if not inside[0]:
            return None
        return int(lo[0]), int(hi[0])

    def bracket_many(self, ts: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Vectorised :meth:`bracket`.

        Returns
        -------
        (lo, hi, inside)
            Bracket indices for every query time and a boolean mask
            that is False where the time falls outside the track.  The
            indices are clipped to valid positions but meaningless where
            ``inside`` is False.
        """
        ts = np.asarray(ts, dtype=float)
        n = len(self.timestamps)
        inside = (ts >= self.timestamps[0]) & (ts <= self.timestamps[-1])
        hi = np.searchsorted(self.timestamps, ts, side='left')
        hi = np.clip(hi, 0, n - 1)
        exact = self.timestamps[hi] == ts
        lo = np.where(exact, hi, np.maximum(hi - 1, 0))
        return lo, hi, inside

"""Record layouts shared by every pipeline stage.

Pose, sensor and georeferenced records are stored as numpy structured
arrays whose field layout matches the binary files exchanged with the
labeling and preview tools.  All multi-byte fields are little-endian.

Georeferenced records carry the sensor-local point twice (``xs, ys,
zs`` and ``xn, yn, zn``) for downstream geometric use, the pose
interpolated at the point's timestamp (``north`` ... ``yaw``) and a
trailing feature label where 0 means "not a feature".
"""

from dataclasses import dataclass, astuple
from typing import Iterable, Tuple

import numpy as np

POSE_FIELDS = ("t", "x", "y", "z", "roll", "pitch", "yaw")
SENSOR_FIELDS = ("t", "x", "y", "z")
RECORD_FLOAT_FIELDS = (
    "t",
    "xs", "ys", "zs",
    "xn", "yn", "zn",
    "north", "east", "down",
    "roll", "pitch", "yaw",
)
POSE_COLUMNS = ("north", "east", "down", "roll", "pitch", "yaw")

POSE_DTYPE = np.dtype([(name, "<f8") for name in POSE_FIELDS])
SENSOR_DTYPE = np.dtype([(name, "<f8") for name in SENSOR_FIELDS])
RECORD_DTYPE = np.dtype(
    [(name, "<f8") for name in RECORD_FLOAT_FIELDS] + [("feature", "<u4")]
)


@dataclass(frozen=True)
class PoseSample:
    """A single timestamped 6-DoF pose (angles in radians)."""

    timestamp: float
    x: float
    y: float
    z: float
    roll: float
    pitch: float
    yaw: float

    @property
    def position(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def orientation(self) -> Tuple[float, float, float]:
        return (self.roll, self.pitch, self.yaw)

    def as_tuple(self) -> Tuple[float, ...]:
        return astuple(self)


def as_structured(array: np.ndarray, dtype: np.dtype) -> np.ndarray:
    """Return ``array`` as a structured array of ``dtype``.

    Plain ``(N, M)`` float arrays whose column count matches the number
    of fields are converted column by column.  Structured arrays with
    the right dtype are returned unchanged.
    """
    array = np.asarray(array)
    if array.dtype == dtype:
        return array
    if array.dtype.names is not None:
        missing = [name for name in dtype.names if name not in array.dtype.names]
        if missing:
            raise ValueError(f"structured array is missing fields {missing}")
        out = np.empty(len(array), dtype=dtype)
        for name in dtype.names:
            out[name] = array[name]
        return out
    if array.ndim == 1 and array.size == len(dtype.names):
        array = array.reshape(1, -1)
    if array.ndim != 2 or array.shape[1] != len(dtype.names):
        raise ValueError(
            f"expected an array of shape (N, {len(dtype.names)}), got {array.shape}"
        )
    out = np.empty(len(array), dtype=dtype)
    for i, name in enumerate(dtype.names):
        out[name] = array[:, i]
    return out


def empty_records(n: int = 0) -> np.ndarray:
    """Allocate ``n`` zero-filled georeferenced records."""
    return np.zeros(n, dtype=RECORD_DTYPE)


def make_records(points: np.ndarray, poses: np.ndarray, feature: int = 0) -> np.ndarray:
    """Build georeferenced records from sensor points and their poses.

    Parameters
    ----------
    points : numpy.ndarray
        Structured array with ``SENSOR_DTYPE``.
    poses : numpy.ndarray
        Array of shape (N, 6) holding north, east, down, roll, pitch,
        yaw for each point.
    feature : int, optional
        Initial feature label.  Default 0.
    """
    if len(points) != len(poses):
        raise ValueError("points and poses must have the same length")
    records = empty_records(len(points))
    records["t"] = points["t"]
    for local, dup, src in zip(("xs", "ys", "zs"), ("xn", "yn", "zn"), ("x", "y", "z")):
        records[local] = points[src]
        records[dup] = points[src]
    poses = np.asarray(poses, dtype=float).reshape(-1, 6)
    for i, name in enumerate(POSE_COLUMNS):
        records[name] = poses[:, i]
    records["feature"] = feature
    return records


def concatenate(chunks: Iterable[np.ndarray], dtype: np.dtype = RECORD_DTYPE) -> np.ndarray:
    """Materialise a stream of record chunks into a single array."""
    parts = [chunk for chunk in chunks if len(chunk)]
    if not parts:
        return np.empty(0, dtype=dtype)
    return np.concatenate(parts)

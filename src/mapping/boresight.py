"""Sensor alignment and record coordinate frames.

The initial boresight offset is the operator's first guess at the
rigid-body transform from the sensor frame to the vehicle body frame:
a lever arm (x, y, z) and a rotation (roll, pitch, yaw).  It is not
estimated here.  It is used to place georeferenced records in a common
world frame so that points of the same calibration target seen from
different vehicle positions fall close together, which is what voxel
thinning and label propagation need.

Rotations use the 'xyz' Euler convention in radians.
"""

from dataclasses import dataclass
import math
from typing import Iterable, Optional

import numpy as np
from scipy.spatial.transform import Rotation

from ..common.errors import ConfigurationError

FRAMES = ("ned", "sensor", "world")


@dataclass(frozen=True)
class BoresightOffset:
    """Rigid-body offset from sensor to vehicle body frame."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0

    @classmethod
    def from_sequence(cls, values: Optional[Iterable[float]]) -> "BoresightOffset":
        """Build an offset from six values ``(x, y, z, roll, pitch, yaw)``."""
        if values is None:
            raise ConfigurationError("an initial offset of six values is required")
        try:
            numbers = [float(v) for v in values]
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"initial offset must be numeric: {exc}") from exc
        if len(numbers) != 6:
            raise ConfigurationError(
                f"initial offset needs 3 translation and 3 rotation values, got {len(numbers)}"
            )
        if not all(math.isfinite(v) for v in numbers):
            raise ConfigurationError("initial offset values must be finite")
        return cls(*numbers)

    @property
    def translation(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def rotation_matrix(self) -> np.ndarray:
        return Rotation.from_euler('xyz', [self.roll, self.pitch, self.yaw]).as_matrix()

    def as_list(self):
        return [self.x, self.y, self.z, self.roll, self.pitch, self.yaw]


def apply_boresight(points: np.ndarray, offset: BoresightOffset) -> np.ndarray:
    """Apply boresight transformation to a set of points.

    Parameters
    ----------
    points : numpy.ndarray
        Array of shape (N, 3) or (N, M) containing XYZ coordinates in
        the first three columns.
    offset : BoresightOffset
        Rotation and translation to apply.

    Returns
    -------
    numpy.ndarray
        Transformed copy of ``points``.
    """
    coords = np.array(points, dtype=float, copy=True)
    if coords.ndim != 2 or coords.shape[1] < 3:
        raise ValueError("points must have shape (N, 3) or (N, M) with M >= 3")
    coords[:, :3] = coords[:, :3].dot(offset.rotation_matrix().T)
    coords[:, :3] += offset.translation
    return coords


def project_records(records: np.ndarray, offset: BoresightOffset) -> np.ndarray:
    """World coordinates of georeferenced records under ``offset``.

    Each local point is moved into the body frame with the boresight
    offset, rotated by the interpolated vehicle attitude and translated
    by the interpolated vehicle position.

    Returns
    -------
    numpy.ndarray
        Array of shape (N, 3).
    """
    if len(records) == 0:
        return np.empty((0, 3), dtype=float)
    local = np.column_stack([records["xn"], records["yn"], records["zn"]])
    body = apply_boresight(local, offset)
    attitude = Rotation.from_euler(
        'xyz', np.column_stack([records["roll"], records["pitch"], records["yaw"]])
    )
    position = np.column_stack([records["north"], records["east"], records["down"]])
    return attitude.apply(body) + position


def record_coordinates(
    records: np.ndarray,
    frame: str = "ned",
    offset: Optional[BoresightOffset] = None,
) -> np.ndarray:
    """Select the (N, 3) coordinates used for spatial bucketing.

    Parameters
    ----------
    records : numpy.ndarray
        ``RECORD_DTYPE`` array.
    frame : str
        ``"ned"`` for the interpolated vehicle position, ``"sensor"``
        for the sensor-local point or ``"world"`` for the point
        projected with ``offset``.
    offset : BoresightOffset, optional
        Required for the ``"world"`` frame.
    """
    if frame == "ned":
        return np.column_stack([records["north"], records["east"], records["down"]]).astype(float)
    if frame == "sensor":
        return np.column_stack([records["xs"], records["ys"], records["zs"]]).astype(float)
    if frame == "world":
        if offset is None:
            raise ConfigurationError("the world frame requires an initial offset")
        return project_records(records, offset)
    raise ConfigurationError(f"unknown coordinate frame {frame!r}; expected one of {FRAMES}")

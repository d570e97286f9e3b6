"""Validation of pose and sensor input files.

This module provides the `InputValidator` class which checks the two
binary input streams before any processing starts.  Missing, empty or
truncated files are fatal and stop the run before anything is written.
The validator also reports how much of the sensor stream falls inside
the pose coverage, since points outside it will be discarded during
georeferencing.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

from ..common.errors import InputDataError
from ..common.record_io import count_records
from ..common.records import POSE_DTYPE, SENSOR_DTYPE
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class InputSummary:
    """Structured description of a run's inputs."""

    pose_count: int
    """Number of pose samples."""

    sensor_count: int
    """Number of sensor returns."""

    pose_span: Tuple[float, float]
    """First and last pose timestamp."""

    sensor_span: Tuple[float, float]
    """First and last sensor timestamp."""

    max_pose_gap: float
    """Largest spacing between consecutive pose samples (seconds)."""

    overlap: Optional[Tuple[float, float]] = None
    """Time interval covered by both streams, if any."""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class InputValidator:
    """Check that pose and sensor files exist and hold usable records."""

    def check_file(self, path: Path, dtype: np.dtype, kind: str) -> int:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"{kind} file not found: {path}")
        count = count_records(path, dtype)
        if count == 0:
            raise InputDataError(f"{kind} file is empty: {path}")
        return count

    def read_poses(self, path: Path) -> np.ndarray:
        """Check the pose file and load it whole."""
        self.check_file(path, POSE_DTYPE, "pose")
        return np.fromfile(str(path), dtype=POSE_DTYPE)

    def sensor_span(self, path: Path, count: Optional[int] = None) -> Tuple[float, float]:
        """First and last sensor timestamp.

        Only the first and last records are read; the sensor stream is
        ordered in time.
        """
        if count is None:
            count = self.check_file(path, SENSOR_DTYPE, "sensor")
        first = np.fromfile(str(path), dtype=SENSOR_DTYPE, count=1)
        last = np.fromfile(
            str(path), dtype=SENSOR_DTYPE, count=1,
            offset=(count - 1) * SENSOR_DTYPE.itemsize,
        )
        return float(first["t"][0]), float(last["t"][0])

    def validate(
        self, pose_path: Path, sensor_path: Path, poses: Optional[np.ndarray] = None
    ) -> InputSummary:
        """Run all input checks.

        Parameters
        ----------
        pose_path, sensor_path : Path
            Binary input files.
        poses : numpy.ndarray, optional
            Pose records already loaded with :meth:`read_poses`; the
            pose file is not read again when given.

        Raises
        ------
        FileNotFoundError
            If either file is missing.
        InputDataError
            If either file is empty or truncated.
        """
        if poses is None:
            poses = self.read_poses(pose_path)
        pose_count = len(poses)
        sensor_count = self.check_file(sensor_path, SENSOR_DTYPE, "sensor")

        pose_span = (float(poses["t"][0]), float(poses["t"][-1]))
        max_gap = float(np.max(np.diff(poses["t"]))) if pose_count > 1 else 0.0
        sensor_span = self.sensor_span(sensor_path, sensor_count)

        lo = max(pose_span[0], sensor_span[0])
        hi = min(pose_span[1], sensor_span[1])
        overlap = (lo, hi) if lo <= hi else None
        if overlap is None:
            logger.warning(
                "sensor stream [%.3f, %.3f] does not overlap pose coverage [%.3f, %.3f]; "
                "every point will be discarded",
                sensor_span[0], sensor_span[1], pose_span[0], pose_span[1],
            )

        return InputSummary(
            pose_count=pose_count,
            sensor_count=sensor_count,
            pose_span=pose_span,
            sensor_span=sensor_span,
            max_pose_gap=max_gap,
            overlap=overlap,
        )

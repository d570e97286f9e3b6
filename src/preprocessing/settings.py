"""Typed run configuration.

The surrounding command-line tool collects a handful of parameters for
each calibration run.  :class:`CalibrationSettings` holds them with
validation, and can be built from a plain dictionary or a YAML file.

Whether a rough labeling pass runs is decided here, once, by choosing
either :class:`RoughPass` or :class:`NoRoughPass`.

Example YAML::

    sensor_name: lidar_front
    initial_offset: [0.8, 0.0, -1.6, 0.0, 0.0, 3.1416]
    thinning_rate: 0.2
    rough_pass:
      resolution: 0.5
    max_gap: 0.05
    join_radius: 0.25
"""

from dataclasses import dataclass, field
import math
from typing import Any, Dict, Optional, Union

from ..common.errors import ConfigurationError
from ..common.record_io import DEFAULT_CHUNK_SIZE
from ..mapping.boresight import FRAMES, BoresightOffset
from ..utils.config import load_config


@dataclass(frozen=True)
class RoughPass:
    """Run a coarse grid-thinned labeling pass before the fine pass."""

    resolution: float
    """Voxel edge length in metres for the rough pass."""

    points_per_voxel: int = 1

    def __post_init__(self):
        if not math.isfinite(self.resolution) or self.resolution <= 0:
            raise ConfigurationError("rough pass resolution must be positive")
        if self.points_per_voxel < 1:
            raise ConfigurationError("rough pass points_per_voxel must be at least 1")


@dataclass(frozen=True)
class NoRoughPass:
    """Skip the rough pass; fine records start unlabelled."""


RoughPassMode = Union[RoughPass, NoRoughPass]


@dataclass
class CalibrationSettings:
    """Parameters for one calibration preparation run."""

    sensor_name: str
    """Identifier of the sensor being calibrated; used in output names."""

    initial_offset: BoresightOffset
    """Initial sensor-to-body offset guess."""

    thinning_rate: float = 0.1
    """Fraction of fine-pass records kept, in (0, 1]."""

    rough_pass: RoughPassMode = field(default_factory=NoRoughPass)

    max_gap: float = 0.1
    """Largest pose spacing (seconds) across which poses are interpolated."""

    join_radius: float = 0.2
    """Distance (metres) within which rough labels propagate."""

    coordinate_frame: str = "world"
    """Frame used for voxel keys and join distances."""

    chunk_size: int = DEFAULT_CHUNK_SIZE
    """Number of records read per chunk from the sensor file."""

    def __post_init__(self):
        if not self.sensor_name or not str(self.sensor_name).strip():
            raise ConfigurationError("sensor_name must be a non-empty string")
        if not isinstance(self.initial_offset, BoresightOffset):
            self.initial_offset = BoresightOffset.from_sequence(self.initial_offset)
        if not (0.0 < self.thinning_rate <= 1.0):
            raise ConfigurationError("thinning_rate must lie in (0, 1]")
        if not math.isfinite(self.max_gap) or self.max_gap <= 0:
            raise ConfigurationError("max_gap must be a positive number of seconds")
        if not math.isfinite(self.join_radius) or self.join_radius < 0:
            raise ConfigurationError("join_radius must be a non-negative distance")
        if self.coordinate_frame not in FRAMES:
            raise ConfigurationError(
                f"coordinate_frame must be one of {FRAMES}, got {self.coordinate_frame!r}"
            )
        if self.chunk_size < 1:
            raise ConfigurationError("chunk_size must be a positive integer")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any]) -> "CalibrationSettings":
        """Build settings from a configuration dictionary.

        ``rough_pass`` may be omitted or null (no rough pass), a number
        (the resolution) or a mapping with ``resolution`` and optionally
        ``points_per_voxel``.
        """
        cfg = dict(cfg)
        if "initial_offset" not in cfg:
            raise ConfigurationError("initial_offset is required")
        if "sensor_name" not in cfg:
            raise ConfigurationError("sensor_name is required")
        unknown = set(cfg) - {
            "sensor_name", "initial_offset", "thinning_rate", "rough_pass",
            "max_gap", "join_radius", "coordinate_frame", "chunk_size",
        }
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {sorted(unknown)}")
        cfg["initial_offset"] = BoresightOffset.from_sequence(cfg["initial_offset"])
        cfg["rough_pass"] = _parse_rough_pass(cfg.get("rough_pass"))
        for key in ("thinning_rate", "max_gap", "join_radius"):
            if key in cfg:
                cfg[key] = float(cfg[key])
        if "chunk_size" in cfg:
            cfg["chunk_size"] = int(cfg["chunk_size"])
        return cls(**cfg)

    @classmethod
    def from_yaml(cls, path: str) -> "CalibrationSettings":
        return cls.from_dict(load_config(path))

    @property
    def has_rough_pass(self) -> bool:
        return isinstance(self.rough_pass, RoughPass)

    def to_dict(self) -> Dict[str, Any]:
        rough: Optional[Dict[str, Any]] = None
        if isinstance(self.rough_pass, RoughPass):
            rough = {
                "resolution": self.rough_pass.resolution,
                "points_per_voxel": self.rough_pass.points_per_voxel,
            }
        return {
            "sensor_name": self.sensor_name,
            "initial_offset": self.initial_offset.as_list(),
            "thinning_rate": self.thinning_rate,
            "rough_pass": rough,
            "max_gap": self.max_gap,
            "join_radius": self.join_radius,
            "coordinate_frame": self.coordinate_frame,
            "chunk_size": self.chunk_size,
        }


def _parse_rough_pass(value: Any) -> RoughPassMode:
    if value is None or value is False:
        return NoRoughPass()
    if isinstance(value, (RoughPass, NoRoughPass)):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return RoughPass(resolution=float(value))
    if isinstance(value, dict):
        if "resolution" not in value:
            raise ConfigurationError("rough_pass mapping needs a resolution")
        return RoughPass(
            resolution=float(value["resolution"]),
            points_per_voxel=int(value.get("points_per_voxel", 1)),
        )
    raise ConfigurationError(f"cannot interpret rough_pass setting {value!r}")

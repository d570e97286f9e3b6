"""Preprocessing package.

This package turns raw sensor returns and a vehicle pose stream into
labelled, thinned records ready for extrinsic calibration.  It
contains the pose track and trajectory interpolation, georeferencing,
rate and grid thinning, input validation, run settings and the
pipeline that chains them.
"""

from .pose_track import PoseTrack
from .trajectory_interpolator import TrajectoryInterpolator, wrap_angle, shortest_angular_delta
from .georeferencer import Georeferencer
from .voxel_thinner import RateThinner, GridThinner, make_thinner
from .input_validator import InputValidator, InputSummary
from .settings import CalibrationSettings, RoughPass, NoRoughPass
from .pipeline import CalibrationPipeline

__all__ = [
    "PoseTrack",
    "TrajectoryInterpolator",
    "wrap_angle",
    "shortest_angular_delta",
    "Georeferencer",
    "RateThinner",
    "GridThinner",
    "make_thinner",
    "InputValidator",
    "InputSummary",
    "CalibrationSettings",
    "RoughPass",
    "NoRoughPass",
    "CalibrationPipeline",
]

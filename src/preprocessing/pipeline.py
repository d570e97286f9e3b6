"""Calibration data preparation pipeline.

This module wires the georeferencing, thinning and label propagation
stages into the two fixed passes used to prepare a sensor stream for
extrinsic calibration:

1. Rough pass (optional): georeference all sensor points, grid-thin at
   a coarse resolution, let the operator label the result and keep the
   labelled records as the reference set.
2. Fine pass: georeference all sensor points again, rate-thin, propagate
   labels from the reference set (if any), let the operator confirm or
   adjust and keep the labelled records as the final feature set.

Every stage is a generator over record chunks, so the sensor file is
never held in memory as a whole.  The pose track and the reference set
are fully built before they are queried.  Output files are only
written once their contents are complete.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np

from ..common.record_io import iter_record_chunks, write_records
from ..common.records import SENSOR_DTYPE, concatenate
from ..common.stats import StreamStats
from ..mapping.feature_summary import export_summary_to_parquet, summarise_features
from ..mapping.labeling import (
    FeatureLabeler,
    PreviewViewer,
    check_labeling_contract,
    drop_unlabeled,
)
from ..mapping.radius_joiner import RadiusJoiner
from ..utils.logging import get_logger
from .georeferencer import Georeferencer
from .input_validator import InputSummary, InputValidator
from .pose_track import PoseTrack
from .settings import CalibrationSettings, RoughPass
from .trajectory_interpolator import TrajectoryInterpolator
from .voxel_thinner import GridThinner, RateThinner

logger = get_logger(__name__)


class CalibrationPipeline:
    """Prepare a labelled feature set from pose and sensor streams."""

    def __init__(
        self,
        settings: CalibrationSettings,
        output_dir: Path,
        labeler: FeatureLabeler,
        viewer: Optional[PreviewViewer] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize the pipeline.

        Parameters
        ----------
        settings : CalibrationSettings
            Run parameters.
        output_dir : Path
            Directory for the reference and feature record files.
        labeler : FeatureLabeler
            External labeling tool (or a stand-in).
        viewer : PreviewViewer, optional
            External preview tool shown the records before labeling.
        rng : numpy.random.Generator, optional
            Random source for rate thinning.
        """
        self.settings = settings
        self.output_dir = Path(output_dir)
        self.labeler = labeler
        self.viewer = viewer
        self.rng = rng if rng is not None else np.random.default_rng()

        self.input_validator = InputValidator()
        self.interpolator = TrajectoryInterpolator(max_gap=settings.max_gap)

        # Chosen once; the passes below never re-check the mode.
        if isinstance(settings.rough_pass, RoughPass):
            self._build_reference = self._rough_pass
        else:
            self._build_reference = self._skip_rough_pass

        # Pipeline state
        self.inputs: Optional[InputSummary] = None
        self.track: Optional[PoseTrack] = None
        self.reference: Optional[np.ndarray] = None
        self.features: Optional[np.ndarray] = None
        self.stats: Dict[str, StreamStats] = {}

    @property
    def reference_path(self) -> Path:
        return self.output_dir / f"reference_{self.settings.sensor_name}.bin"

    @property
    def features_path(self) -> Path:
        return self.output_dir / f"features_{self.settings.sensor_name}.bin"

    def step_1_load_inputs(self, pose_path: Path, sensor_path: Path) -> PoseTrack:
        """Validate both inputs and build the pose track."""
        logger.info("Step 1: validating inputs and loading pose track...")
        poses = self.input_validator.read_poses(pose_path)
        self.inputs = self.input_validator.validate(pose_path, sensor_path, poses=poses)
        self.track = PoseTrack.from_array(poses)
        logger.info(
            "  pose samples: %s over [%.3f, %.3f] s, largest gap %.3f s",
            f"{self.inputs.pose_count:,}", self.track.start, self.track.end,
            self.inputs.max_pose_gap,
        )
        logger.info("  sensor points: %s", f"{self.inputs.sensor_count:,}")
        if self.inputs.max_pose_gap > self.settings.max_gap:
            logger.warning(
                "  pose track has gaps above max_gap=%.3f s; points inside them will be discarded",
                self.settings.max_gap,
            )
        return self.track

    def _georeferenced_stream(self, sensor_path: Path, stage: str):
        georeferencer = Georeferencer(self.interpolator, stats=StreamStats(stage))
        self.stats[stage] = georeferencer.stats
        chunks = iter_record_chunks(sensor_path, SENSOR_DTYPE, self.settings.chunk_size)
        return georeferencer.georeference(chunks, self.track)

    def _label(self, records: np.ndarray, reference: Optional[np.ndarray] = None) -> np.ndarray:
        if self.viewer is not None:
            self.viewer.show(records)
        labelled = self.labeler.label(records, reference)
        check_labeling_contract(records, labelled)
        return labelled

    def _rough_pass(self, sensor_path: Path) -> Optional[np.ndarray]:
        rough: RoughPass = self.settings.rough_pass
        logger.info("Step 2: rough pass (grid %.3f m, %d per voxel)...",
                    rough.resolution, rough.points_per_voxel)
        thinner = GridThinner(
            resolution=rough.resolution,
            points_per_voxel=rough.points_per_voxel,
            frame=self.settings.coordinate_frame,
            offset=self.settings.initial_offset,
            stats=StreamStats("rough_grid_thin"),
        )
        self.stats[thinner.stats.stage] = thinner.stats
        records = concatenate(thinner.thin(self._georeferenced_stream(sensor_path, "rough_georeference")))

        labelled = self._label(records)
        reference = drop_unlabeled(labelled)
        logger.info("  reference set: %s labelled of %s records",
                    f"{len(reference):,}", f"{len(records):,}")
        write_records(self.reference_path, reference)
        logger.info("  ✓ reference set saved to %s", self.reference_path)
        return reference

    def _skip_rough_pass(self, sensor_path: Path) -> Optional[np.ndarray]:
        logger.info("Step 2: rough pass skipped")
        return None

    def step_2_build_reference(self, sensor_path: Path) -> Optional[np.ndarray]:
        """Run the rough pass if configured; return the reference set."""
        self.reference = self._build_reference(sensor_path)
        return self.reference

    def step_3_fine_pass(self, sensor_path: Path) -> np.ndarray:
        """Georeference, rate-thin and propagate labels; return labelled records."""
        logger.info("Step 3: fine pass (rate %.3f)...", self.settings.thinning_rate)
        thinner = RateThinner(
            rate=self.settings.thinning_rate,
            rng=self.rng,
            stats=StreamStats("fine_rate_thin"),
        )
        self.stats[thinner.stats.stage] = thinner.stats
        stream = thinner.thin(self._georeferenced_stream(sensor_path, "fine_georeference"))

        if self.reference is not None:
            joiner = RadiusJoiner.from_reference(
                self.reference,
                radius=self.settings.join_radius,
                frame=self.settings.coordinate_frame,
                offset=self.settings.initial_offset,
            )
            self.stats[joiner.stats.stage] = joiner.stats
            stream = joiner.join(stream)

        records = concatenate(stream)
        labelled = self._label(records, self.reference)
        self.features = drop_unlabeled(labelled)
        logger.info("  feature set: %s labelled of %s records",
                    f"{len(self.features):,}", f"{len(records):,}")
        return self.features

    def step_4_export(self, features: np.ndarray) -> Tuple[Path, Path]:
        """Persist the final feature set and its per-feature summary."""
        logger.info("Step 4: exporting feature set...")
        path = write_records(self.features_path, features)
        summary = summarise_features(
            features,
            frame=self.settings.coordinate_frame,
            offset=self.settings.initial_offset,
        )
        summary_path = export_summary_to_parquet(
            summary, self.output_dir, name=f"features_{self.settings.sensor_name}_summary"
        )
        logger.info("  ✓ %d features saved to %s", len(summary), path)
        return path, summary_path

    def run(self, pose_path: Path, sensor_path: Path) -> Dict:
        """Run the complete preparation.

        Parameters
        ----------
        pose_path : Path
            Binary pose file.
        sensor_path : Path
            Binary sensor file.

        Returns
        -------
        dict
            Summary statistics.
        """
        logger.info("=" * 60)
        logger.info("Calibration preparation - sensor %s", self.settings.sensor_name)
        logger.info("=" * 60)

        self.step_1_load_inputs(pose_path, sensor_path)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.step_2_build_reference(sensor_path)
        features = self.step_3_fine_pass(sensor_path)
        self.step_4_export(features)

        fine = self.stats["fine_georeference"]
        summary = {
            "sensor_name": self.settings.sensor_name,
            "pose_samples": self.inputs.pose_count,
            "input_points": self.inputs.sensor_count,
            "georeferenced_points": fine.retained,
            "discarded_points": fine.discarded,
            "thinned_points": self.stats["fine_rate_thin"].retained,
            "reference_points": 0 if self.reference is None else len(self.reference),
            "joined_points": self.stats["radius_join"].retained if "radius_join" in self.stats else 0,
            "feature_points": len(features),
            "feature_count": int(len(np.unique(features["feature"]))),
            "stages": {name: stats.to_dict() for name, stats in self.stats.items()},
        }

        logger.info("=" * 60)
        logger.info("Preparation complete!")
        logger.info("Input points:      %s", f"{summary['input_points']:,}")
        logger.info("Discarded points:  %s", f"{summary['discarded_points']:,}")
        logger.info("Thinned points:    %s", f"{summary['thinned_points']:,}")
        logger.info("Feature points:    %s", f"{summary['feature_points']:,}")
        logger.info("Features:          %d", summary["feature_count"])
        logger.info("Output directory: %s", self.output_dir)
        return summary

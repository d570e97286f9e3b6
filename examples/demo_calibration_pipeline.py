"""Demo script for the calibration preparation pipeline with synthetic data.

This script drives a simulated vehicle past a few calibration targets,
writes the pose and sensor streams in the binary interchange format and
runs both the rough and the fine pass.  A scripted labeler stands in
for the operator and labels every point near a known target.

Usage:
    python examples/demo_calibration_pipeline.py
"""

import sys
from pathlib import Path
import numpy as np

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.common.records import POSE_DTYPE, SENSOR_DTYPE, as_structured
from src.mapping.boresight import BoresightOffset, project_records
from src.preprocessing.pipeline import CalibrationPipeline
from src.preprocessing.settings import CalibrationSettings, RoughPass

TARGETS = {
    1: np.array([20.0, 4.0, -1.0]),
    2: np.array([45.0, -3.5, -2.0]),
    3: np.array([70.0, 5.0, -0.5]),
}


def create_synthetic_drive(
    output_dir: Path,
    duration: float = 40.0,
    speed: float = 2.0,
    pose_rate: float = 50.0,
    n_points: int = 60000,
) -> tuple:
    """Write a synthetic drive to ``output_dir``.

    The vehicle drives north with a slow yaw oscillation.  Sensor returns
    hit either the background (ground and clutter) or one of the
    targets.  Returns are expressed in the sensor frame using the true
    vehicle pose and a zero boresight offset.

    Returns
    -------
    tuple
        Paths of the pose and sensor files.
    """
    print("Creating synthetic drive...")
    rng = np.random.default_rng(2024)

    t_pose = np.arange(0.0, duration, 1.0 / pose_rate)
    yaw = 0.05 * np.sin(0.2 * t_pose)
    poses = np.column_stack([
        t_pose,
        speed * t_pose,
        np.zeros_like(t_pose),
        np.zeros_like(t_pose),
        np.zeros_like(t_pose),
        np.zeros_like(t_pose),
        yaw,
    ])

    # Drop a stretch of poses to simulate a GNSS outage
    outage = (t_pose > 25.0) & (t_pose < 27.0)
    poses = poses[~outage]
    print(f"  - Pose samples: {len(poses):,} (outage 25-27 s)")

    n_target = n_points // 10
    n_background = n_points - n_target * len(TARGETS)
    world = [rng.uniform([0, -10, -3], [speed * duration, 10, 0], (n_background, 3))]
    for centre in TARGETS.values():
        world.append(centre + rng.normal(0, 0.05, (n_target, 3)))
    world = np.vstack(world)
    rng.shuffle(world)
    t = np.sort(rng.uniform(0.0, duration + 1.0, len(world)))

    # Express each return in the sensor frame at its own timestamp
    heading = 0.05 * np.sin(0.2 * t)
    vehicle = np.column_stack([speed * t, np.zeros_like(t), np.zeros_like(t)])
    rel = world - vehicle
    cos_h, sin_h = np.cos(heading), np.sin(heading)
    local = np.column_stack([
        cos_h * rel[:, 0] + sin_h * rel[:, 1],
        -sin_h * rel[:, 0] + cos_h * rel[:, 1],
        rel[:, 2],
    ])
    points = np.column_stack([t, local])
    print(f"  - Sensor returns: {len(points):,}")

    output_dir.mkdir(parents=True, exist_ok=True)
    pose_path = output_dir / "poses.bin"
    sensor_path = output_dir / "lidar_front.bin"
    as_structured(poses, POSE_DTYPE).tofile(str(pose_path))
    as_structured(points, SENSOR_DTYPE).tofile(str(sensor_path))
    return pose_path, sensor_path


class ScriptedLabeler:
    """Label points near the known targets; accept joined labels as-is."""

    def __init__(self, offset: BoresightOffset, radius: float = 0.4):
        self.offset = offset
        self.radius = radius

    def label(self, records, reference=None):
        labelled = records.copy()
        if reference is not None:
            return labelled
        world = project_records(labelled, self.offset)
        for feature_id, centre in TARGETS.items():
            near = np.linalg.norm(world - centre, axis=1) <= self.radius
            labelled["feature"][near] = feature_id
        return labelled


def main():
    """Run demo pipeline."""
    print("="*70)
    print("Calibration Preparation Pipeline - Demo")
    print("="*70)
    print()

    output_dir = Path("output/demo_calibration")
    pose_path, sensor_path = create_synthetic_drive(output_dir / "input")

    print()

    settings = CalibrationSettings(
        sensor_name="lidar_front",
        initial_offset=BoresightOffset(),
        thinning_rate=0.25,
        rough_pass=RoughPass(resolution=0.5),
        max_gap=0.1,
        join_radius=0.3,
    )
    pipeline = CalibrationPipeline(
        settings,
        output_dir=output_dir,
        labeler=ScriptedLabeler(settings.initial_offset),
        rng=np.random.default_rng(0),
    )
    summary = pipeline.run(pose_path, sensor_path)

    print()
    print("="*70)
    print("Demo Complete!")
    print("="*70)
    print()
    print("Output files:")
    print(f"  • Reference set: {pipeline.reference_path}")
    print(f"  • Feature set: {pipeline.features_path}")
    print(f"  • Features: {summary['feature_count']} ({summary['feature_points']:,} points)")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())

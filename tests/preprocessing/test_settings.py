"""Unit tests for run settings."""

import tempfile
from pathlib import Path

import pytest

from src.common.errors import ConfigurationError
from src.mapping.boresight import BoresightOffset
from src.preprocessing.settings import CalibrationSettings, NoRoughPass, RoughPass


def base_config(**overrides):
    cfg = {
        "sensor_name": "lidar_front",
        "initial_offset": [0.5, 0.0, -1.2, 0.0, 0.0, 0.1],
    }
    cfg.update(overrides)
    return cfg


class TestCalibrationSettings:
    """Test suite for CalibrationSettings class."""

    def test_from_dict_defaults(self):
        """Test that optional settings take their defaults."""
        settings = CalibrationSettings.from_dict(base_config())

        assert settings.initial_offset == BoresightOffset(0.5, 0.0, -1.2, 0.0, 0.0, 0.1)
        assert isinstance(settings.rough_pass, NoRoughPass)
        assert not settings.has_rough_pass
        assert settings.coordinate_frame == "world"

    def test_rough_pass_from_number(self):
        """Test that a bare number is taken as the rough resolution."""
        settings = CalibrationSettings.from_dict(base_config(rough_pass=0.5))

        assert settings.rough_pass == RoughPass(resolution=0.5)
        assert settings.has_rough_pass

    def test_rough_pass_from_mapping(self):
        """Test a rough pass mapping with a per-voxel cap."""
        settings = CalibrationSettings.from_dict(
            base_config(rough_pass={"resolution": 0.25, "points_per_voxel": 2})
        )

        assert settings.rough_pass == RoughPass(resolution=0.25, points_per_voxel=2)

    def test_missing_offset(self):
        """Test that the offset is required."""
        cfg = base_config()
        del cfg["initial_offset"]

        with pytest.raises(ConfigurationError):
            CalibrationSettings.from_dict(cfg)

    def test_offset_needs_six_values(self):
        """Test that a short offset is rejected."""
        with pytest.raises(ConfigurationError):
            CalibrationSettings.from_dict(base_config(initial_offset=[0.0, 0.0, 0.0]))

    @pytest.mark.parametrize("key,value", [
        ("thinning_rate", 0.0),
        ("thinning_rate", 1.2),
        ("max_gap", -1.0),
        ("join_radius", -0.1),
        ("coordinate_frame", "ecef"),
        ("rough_pass", {"resolution": 0.0}),
        ("rough_pass", "coarse"),
        ("unexpected", 1),
    ])
    def test_invalid_values(self, key, value):
        """Test parameter validation."""
        with pytest.raises(ConfigurationError):
            CalibrationSettings.from_dict(base_config(**{key: value}))

    def test_from_yaml(self):
        """Test loading settings from a YAML file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "run.yaml"
            path.write_text(
                "sensor_name: lidar_rear\n"
                "initial_offset: [0, 0, 0, 0, 0, 3.1416]\n"
                "thinning_rate: 0.2\n"
                "rough_pass:\n"
                "  resolution: 0.5\n"
                "max_gap: 0.05\n"
                "join_radius: 0.25\n",
                encoding="utf-8",
            )

            settings = CalibrationSettings.from_yaml(str(path))

        assert settings.sensor_name == "lidar_rear"
        assert settings.thinning_rate == 0.2
        assert settings.rough_pass == RoughPass(resolution=0.5)
        assert settings.max_gap == 0.05
        assert settings.initial_offset.yaw == pytest.approx(3.1416)

    def test_to_dict_round_trip(self):
        """Test that to_dict output rebuilds the same settings."""
        settings = CalibrationSettings.from_dict(base_config(rough_pass=0.5, thinning_rate=0.3))

        assert CalibrationSettings.from_dict(settings.to_dict()) == settings

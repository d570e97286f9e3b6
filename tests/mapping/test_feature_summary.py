"""Unit tests for feature summaries."""

import tempfile
from pathlib import Path

import pandas as pd
import pytest

from src.common.records import empty_records
from src.mapping.feature_summary import SUMMARY_COLUMNS, export_summary_to_parquet, summarise_features


def labelled_records():
    records = empty_records(5)
    records["t"] = [0.0, 1.0, 2.0, 3.0, 4.0]
    records["north"] = [0.0, 2.0, 10.0, 12.0, 99.0]
    records["feature"] = [1, 1, 2, 2, 0]
    return records


class TestFeatureSummary:
    """Test suite for feature summary tables."""

    def test_summarise_features(self):
        summary = summarise_features(labelled_records())

        assert list(summary.columns) == SUMMARY_COLUMNS
        assert summary["feature_id"].tolist() == [1, 2]
        assert summary["point_count"].tolist() == [2, 2]
        assert summary["centroid_x"].tolist() == pytest.approx([1.0, 11.0])
        assert summary["t_start"].tolist() == [0.0, 2.0]
        assert summary["t_end"].tolist() == [1.0, 3.0]

    def test_summarise_unlabelled(self):
        records = labelled_records()
        records["feature"] = 0

        summary = summarise_features(records)

        assert summary.empty
        assert list(summary.columns) == SUMMARY_COLUMNS

    def test_export_to_parquet(self):
        summary = summarise_features(labelled_records())

        with tempfile.TemporaryDirectory() as tmpdir:
            path = export_summary_to_parquet(summary, Path(tmpdir), name="lidar")
            assert path.name == "lidar.parquet"
            loaded = pd.read_parquet(path)

        assert loaded["feature_id"].tolist() == [1, 2]

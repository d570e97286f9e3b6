"""Unit tests for radius joiner."""

import numpy as np
import pytest

from src.common.errors import ConfigurationError
from src.common.records import concatenate, empty_records
from src.mapping.radius_joiner import RadiusJoiner


def records_at(coords, features=None):
    coords = np.asarray(coords, dtype=float).reshape(-1, 3)
    records = empty_records(len(coords))
    records["t"] = np.arange(len(coords), dtype=float)
    records["north"] = coords[:, 0]
    records["east"] = coords[:, 1]
    records["down"] = coords[:, 2]
    if features is not None:
        records["feature"] = features
    return records


class TestRadiusJoiner:
    """Test suite for RadiusJoiner class."""

    def test_scenario_label_propagation(self):
        """Test that a nearby candidate takes the reference label."""
        reference = records_at([(0.0, 0.0, 0.0)], features=[3])
        joiner = RadiusJoiner.from_reference(reference, radius=0.1)

        joined = joiner.join_chunk(records_at([(0.05, 0.0, 0.0), (1.0, 0.0, 0.0)]))

        assert joined["feature"].tolist() == [3, 0]
        assert joiner.stats.candidates == 2
        assert joiner.stats.retained == 1

    def test_nearest_reference_wins(self):
        """Test that the nearest labelled reference point is used."""
        reference = records_at([(0.0, 0.0, 0.0), (0.3, 0.0, 0.0)], features=[1, 2])
        joiner = RadiusJoiner.from_reference(reference, radius=0.5)

        joined = joiner.join_chunk(records_at([(0.1, 0, 0), (0.2, 0, 0)]))

        assert joined["feature"].tolist() == [1, 2]

    def test_equidistant_smallest_id_wins(self):
        """Test the tie-break on exactly equidistant references."""
        reference = records_at([(0.5, 0.0, 0.0), (-0.5, 0.0, 0.0)], features=[8, 4])
        joiner = RadiusJoiner.from_reference(reference, radius=1.0)

        joined = joiner.join_chunk(records_at([(0.0, 0.0, 0.0)]))

        assert joined["feature"][0] == 4

    def test_zero_radius(self):
        """Test that a zero radius joins only coincident candidates."""
        reference = records_at([(1.0, 2.0, 3.0)], features=[5])
        joiner = RadiusJoiner.from_reference(reference, radius=0.0)

        joined = joiner.join_chunk(records_at([(1.0, 2.0, 3.0), (1.0, 2.0, 3.001)]))

        assert joined["feature"].tolist() == [5, 0]

    def test_join_does_not_mutate_input(self):
        """Test that the candidate chunk is copied, not modified."""
        reference = records_at([(0.0, 0.0, 0.0)], features=[3])
        joiner = RadiusJoiner.from_reference(reference, radius=0.1)
        candidates = records_at([(0.0, 0.0, 0.0)])

        joiner.join_chunk(candidates)

        assert candidates["feature"][0] == 0

    def test_stream_keeps_order_and_count(self):
        """Test that the joined stream has the same records in order."""
        reference = records_at([(0.0, 0.0, 0.0)], features=[1])
        joiner = RadiusJoiner.from_reference(reference, radius=0.5)
        coords = np.column_stack([np.linspace(-1, 1, 21), np.zeros(21), np.zeros(21)])
        candidates = records_at(coords)

        joined = concatenate(joiner.join([candidates[:10], candidates[10:]]))

        assert np.array_equal(joined["t"], candidates["t"])
        assert joined["feature"].tolist() == [1 if abs(x) <= 0.5 + 1e-9 else 0 for x in coords[:, 0]]

    def test_empty_reference(self):
        """Test that an empty reference set leaves labels untouched."""
        joiner = RadiusJoiner.from_reference(records_at(np.empty((0, 3))), radius=0.5)

        joined = joiner.join_chunk(records_at([(0.0, 0.0, 0.0)]))

        assert joined["feature"][0] == 0

    def test_negative_radius_rejected(self):
        with pytest.raises(ConfigurationError):
            RadiusJoiner.from_reference(records_at([(0, 0, 0)], features=[1]), radius=-1.0)

    def test_rounding_noise_tie_smallest_id_wins(self):
        """Test that distances equal up to rounding still tie on the label."""
        reference = records_at([(0.2, 0.0, 0.0), (0.4, 0.0, 0.0)], features=[9, 2])
        joiner = RadiusJoiner.from_reference(reference, radius=0.15)

        joined = joiner.join_chunk(records_at([(0.3, 0.0, 0.0)]))

        assert joined["feature"][0] == 2

    def test_unlabelled_reference_not_indexed(self):
        """Test that an unlabelled reference record never wins a tie."""
        reference = records_at([(-0.5, 0.0, 0.0), (0.5, 0.0, 0.0)], features=[0, 4])
        joiner = RadiusJoiner.from_reference(reference, radius=1.0)

        joined = joiner.join_chunk(records_at([(0.0, 0.0, 0.0)]))

        assert len(joiner.index) == 1
        assert joined["feature"][0] == 4

    def test_stats_report_matches(self):
        """Test that unmatched candidates are not reported as discarded."""
        reference = records_at([(0.0, 0.0, 0.0)], features=[3])
        joiner = RadiusJoiner.from_reference(reference, radius=0.1)

        joiner.join_chunk(records_at([(0.05, 0.0, 0.0), (1.0, 0.0, 0.0), (2.0, 0.0, 0.0)]))

        assert joiner.stats.to_dict() == {"candidates": 3, "matched": 1, "unmatched": 2}
        assert "1/3 matched (2 unmatched)" in joiner.stats.summary()

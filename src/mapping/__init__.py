"""Spatial lookups and label propagation.

This package places georeferenced records in a common frame using the
initial boresight offset, indexes labelled reference records on a
uniform grid, propagates their labels to nearby records and defines
the interfaces to the external labeling and preview tools.
"""

from .boresight import BoresightOffset, apply_boresight, project_records, record_coordinates
from .spatial_index import SpatialIndex
from .radius_joiner import RadiusJoiner
from .labeling import (
    FeatureLabeler,
    PassThroughLabeler,
    PreviewViewer,
    check_labeling_contract,
    drop_unlabeled,
)
from .feature_summary import summarise_features, export_summary_to_parquet

__all__ = [
    "BoresightOffset",
    "apply_boresight",
    "project_records",
    "record_coordinates",
    "SpatialIndex",
    "RadiusJoiner",
    "FeatureLabeler",
    "PassThroughLabeler",
    "PreviewViewer",
    "check_labeling_contract",
    "drop_unlabeled",
    "summarise_features",
    "export_summary_to_parquet",
]

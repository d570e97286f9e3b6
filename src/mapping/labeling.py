"""Interfaces to the external labeling and preview tools.

The operator-facing tools are not part of this package.  They are
reached through two small protocols so the pipeline can be driven by
an interactive tool, a scripted stand-in or a test double.  Whatever
labeler is plugged in must keep record count and order and may only
change the trailing feature label; :func:`check_labeling_contract`
enforces this after every labeling step.
"""

from typing import Optional, Protocol

import numpy as np

from ..common.errors import LabelingContractError
from ..common.records import RECORD_FLOAT_FIELDS


class FeatureLabeler(Protocol):
    """Assigns integer feature ids to records (0 means "not a feature")."""

    def label(self, records: np.ndarray, reference: Optional[np.ndarray] = None) -> np.ndarray:
        ...


class PreviewViewer(Protocol):
    """Displays a record set; produces nothing the pipeline consumes."""

    def show(self, records: np.ndarray) -> None:
        ...


class PassThroughLabeler:
    """Non-interactive labeler that accepts the labels as they are.

    Useful for batch runs where the propagated labels from a rough pass
    are trusted without operator review.
    """

    def label(self, records: np.ndarray, reference: Optional[np.ndarray] = None) -> np.ndarray:
        return records.copy()


def check_labeling_contract(before: np.ndarray, after: np.ndarray) -> None:
    """Verify the labeling tool only touched the feature field.

    Raises
    ------
    LabelingContractError
        If the record count, dtype, order or any non-label field
        changed.
    """
    if after.dtype != before.dtype:
        raise LabelingContractError(
            f"labeler returned dtype {after.dtype}, expected {before.dtype}"
        )
    if len(after) != len(before):
        raise LabelingContractError(
            f"labeler returned {len(after)} records for {len(before)} inputs"
        )
    for name in RECORD_FLOAT_FIELDS:
        if not np.array_equal(before[name], after[name], equal_nan=True):
            raise LabelingContractError(f"labeler modified field {name!r}")


def drop_unlabeled(records: np.ndarray) -> np.ndarray:
    """Keep only records with a non-zero feature label."""
    return records[records["feature"] != 0]

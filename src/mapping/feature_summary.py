"""Per-feature summary tables.

After labeling, every non-zero feature id names one calibration target.
This module condenses the labelled records into one row per feature
(point count, centroid, time span) so a run can be checked at a glance
and the table can be stored beside the record file.
"""

from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from .boresight import BoresightOffset, record_coordinates

SUMMARY_COLUMNS = [
    "feature_id",
    "point_count",
    "centroid_x",
    "centroid_y",
    "centroid_z",
    "t_start",
    "t_end",
]


def summarise_features(
    records: np.ndarray,
    frame: str = "ned",
    offset: Optional[BoresightOffset] = None,
) -> pd.DataFrame:
    """Summarise labelled records per feature id.

    Parameters
    ----------
    records : numpy.ndarray
        ``RECORD_DTYPE`` array.  Records labelled 0 are ignored.
    frame, offset
        Coordinate frame for the centroids; see
        :func:`src.mapping.boresight.record_coordinates`.

    Returns
    -------
    pandas.DataFrame
        One row per feature id, sorted by id.
    """
    labelled = records[records["feature"] != 0]
    if len(labelled) == 0:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)
    coords = record_coordinates(labelled, frame, offset)
    df = pd.DataFrame({
        "feature_id": labelled["feature"].astype(np.int64),
        "x": coords[:, 0],
        "y": coords[:, 1],
        "z": coords[:, 2],
        "t": labelled["t"],
    })
    summary = df.groupby("feature_id", sort=True).agg(
        point_count=("t", "size"),
        centroid_x=("x", "mean"),
        centroid_y=("y", "mean"),
        centroid_z=("z", "mean"),
        t_start=("t", "min"),
        t_end=("t", "max"),
    ).reset_index()
    return summary[SUMMARY_COLUMNS]


def export_summary_to_parquet(summary: pd.DataFrame, output_dir: Path, name: str = "features_summary") -> Path:
    """Write a feature summary table to ``<output_dir>/<name>.parquet``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{name}.parquet"
    summary.to_parquet(output_path, index=False)
    return output_path

"""Propagate feature labels from a coarse reference set to fine records.

An operator labels a small, voxel-thinned reference set.  The
:class:`RadiusJoiner` then broadcasts each label to every full
resolution record lying within the join radius of a labelled reference
record.  When several reference records qualify, the nearest one wins;
exact distance ties go to the smallest feature id.  Records without a
match keep the label they arrived with.
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

import numpy as np

from ..common.errors import ConfigurationError
from ..common.stats import StreamStats
from ..utils.logging import get_logger
from .boresight import BoresightOffset, record_coordinates
from .labeling import drop_unlabeled
from .spatial_index import SpatialIndex

logger = get_logger(__name__)


@dataclass
class RadiusJoiner:
    """Radius join of a candidate stream against a labelled reference set."""

    index: SpatialIndex
    labels: np.ndarray
    radius: float
    frame: str = "ned"
    offset: Optional[BoresightOffset] = None
    stats: StreamStats = field(default_factory=lambda: StreamStats(
        "radius_join", retained_key="matched", discarded_key="unmatched"
    ))

    def __post_init__(self):
        if self.radius < 0:
            raise ConfigurationError("join radius must be non-negative")
        if len(self.labels) != len(self.index):
            raise ValueError("labels must match the indexed reference points")

    @classmethod
    def from_reference(
        cls,
        reference: np.ndarray,
        radius: float,
        frame: str = "ned",
        offset: Optional[BoresightOffset] = None,
    ) -> "RadiusJoiner":
        """Index a fully materialised reference set.

        Parameters
        ----------
        reference : numpy.ndarray
            ``RECORD_DTYPE`` array of labelled records.  Records still
            labelled 0 are not indexed.
        radius : float
            Join radius, also used as the index cell size.
        frame, offset
            Coordinate frame in which distances are measured.
        """
        if radius < 0:
            raise ConfigurationError("join radius must be non-negative")
        reference = drop_unlabeled(reference)
        coords = record_coordinates(reference, frame, offset)
        index = SpatialIndex.build(coords, radius)
        labels = np.asarray(reference["feature"]).copy()
        labels.setflags(write=False)
        return cls(index=index, labels=labels, radius=radius, frame=frame, offset=offset)

    def join_chunk(self, records: np.ndarray) -> np.ndarray:
        """Return a copy of ``records`` with propagated feature labels."""
        joined = records.copy()
        if len(joined) == 0 or len(self.index) == 0:
            self.stats.update(len(joined), 0)
            return joined
        coords = record_coordinates(joined, self.frame, self.offset)
        matched = 0
        for row, point in enumerate(coords):
            hit = self.index.nearest_within(point, self.radius, self.labels)
            if hit is None:
                continue
            joined["feature"][row] = self.labels[hit[0]]
            matched += 1
        self.stats.update(len(joined), matched)
        return joined

    def join(self, chunks: Iterable[np.ndarray]) -> Iterator[np.ndarray]:
        for chunk in chunks:
            yield self.join_chunk(chunk)
        logger.info(self.stats.summary())

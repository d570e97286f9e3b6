"""Point thinning for georeferenced record streams.

Two independent policies reduce the number of records handed to the
labeling tool:

* :class:`RateThinner` keeps each record independently with a fixed
  probability.  This approximates a uniform Bernoulli retention per
  record; it is not a fixed-period decimation and is not reproducible
  across runs unless a seeded generator is injected.
* :class:`GridThinner` buckets records into cubic voxels and keeps only
  the first ``points_per_voxel`` records seen in each voxel during one
  pass.  Memory grows with the number of distinct voxels touched.

A thinning call applies exactly one policy.  The pipeline chains a
coarse grid pass and a later rate pass when it needs both.
"""

from dataclasses import dataclass, field
import math
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

import numpy as np

from ..common.errors import ConfigurationError
from ..common.stats import StreamStats
from ..mapping.boresight import BoresightOffset, record_coordinates
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateThinner:
    """Keep each record with probability ``rate``."""

    rate: float = 1.0
    """Retention probability in [0, 1].  1.0 passes every record."""

    rng: Optional[np.random.Generator] = None
    """Random source for the retention draw.  A fresh unseeded
    generator is used when omitted."""

    stats: StreamStats = field(default_factory=lambda: StreamStats("rate_thin"))

    def __post_init__(self):
        if not (0.0 <= self.rate <= 1.0):
            raise ConfigurationError("rate must lie in [0, 1]")
        if self.rng is None:
            self.rng = np.random.default_rng()

    def thin_chunk(self, records: np.ndarray) -> np.ndarray:
        if self.rate >= 1.0:
            kept = records
        else:
            mask = self.rng.random(len(records)) < self.rate
            kept = records[mask]
        self.stats.update(len(records), len(kept))
        return kept

    def thin(self, chunks: Iterable[np.ndarray]) -> Iterator[np.ndarray]:
        for chunk in chunks:
            kept = self.thin_chunk(chunk)
            if len(kept):
                yield kept
        logger.info(self.stats.summary())


@dataclass
class GridThinner:
    """Keep at most ``points_per_voxel`` records per voxel in one pass."""

    resolution: float
    """Voxel edge length in metres."""

    points_per_voxel: int = 1
    """Number of records a voxel accepts before it is closed."""

    frame: str = "ned"
    """Coordinates used for voxel keys; see
    :func:`src.mapping.boresight.record_coordinates`."""

    offset: Optional[BoresightOffset] = None
    """Initial sensor offset, required when ``frame`` is ``"world"``."""

    stats: StreamStats = field(default_factory=lambda: StreamStats("grid_thin"))

    def __post_init__(self):
        if not math.isfinite(self.resolution) or self.resolution <= 0:
            raise ConfigurationError("resolution must be a positive number of metres")
        if int(self.points_per_voxel) != self.points_per_voxel or self.points_per_voxel < 1:
            raise ConfigurationError("points_per_voxel must be a positive integer")
        self.points_per_voxel = int(self.points_per_voxel)

    def voxel_keys(self, records: np.ndarray) -> np.ndarray:
        """Integer voxel indices of shape (N, 3) for each record."""
        coords = record_coordinates(records, self.frame, self.offset)
        return np.floor(coords / self.resolution).astype(np.int64)

    def _thin_chunk(self, records: np.ndarray, counts: Dict[Tuple[int, int, int], int]) -> np.ndarray:
        keys = self.voxel_keys(records)
        keep = np.zeros(len(records), dtype=bool)
        for idx, key in enumerate(map(tuple, keys)):
            seen = counts.get(key, 0)
            if seen < self.points_per_voxel:
                counts[key] = seen + 1
                keep[idx] = True
        kept = records[keep]
        self.stats.update(len(records), len(kept))
        return kept

    def thin(self, chunks: Iterable[np.ndarray]) -> Iterator[np.ndarray]:
        """Thin a stream of record chunks.

        The voxel occupancy map is local to one call, so every call is
        an independent pass.
        """
        counts: Dict[Tuple[int, int, int], int] = {}
        for chunk in chunks:
            kept = self._thin_chunk(chunk, counts)
            if len(kept):
                yield kept
        logger.info("%s over %d voxels", self.stats.summary(), len(counts))


Thinner = Union[RateThinner, GridThinner]


def make_thinner(
    rate: Optional[float] = None,
    resolution: Optional[float] = None,
    points_per_voxel: int = 1,
    frame: str = "ned",
    offset: Optional[BoresightOffset] = None,
    rng: Optional[np.random.Generator] = None,
) -> Thinner:
    """Select a thinning policy.

    Exactly one of ``rate`` and ``resolution`` must be given.
    """
    if (rate is None) == (resolution is None):
        raise ConfigurationError("specify exactly one of rate or resolution")
    if resolution is not None:
        return GridThinner(
            resolution=resolution,
            points_per_voxel=points_per_voxel,
            frame=frame,
            offset=offset,
        )
    return RateThinner(rate=rate, rng=rng)

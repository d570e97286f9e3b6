"""Uniform grid index for radius queries over a fixed point set.

Reference points are bucketed into cubic cells keyed by
``floor(coord / cell_size)``.  A radius query inspects the query
point's cell and its 26 neighbours, then filters candidates by exact
Euclidean distance.  Because the 3×3×3 block only covers matches
within one cell of the query, the query radius may not exceed the
cell size.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

Key = Tuple[int, int, int]

DISTANCE_ATOL = 1e-9

_NEIGHBOUR_OFFSETS = np.array(
    [(i, j, k) for i in (-1, 0, 1) for j in (-1, 0, 1) for k in (-1, 0, 1)],
    dtype=np.int64,
)


@dataclass(eq=False)
class SpatialIndex:
    """Read-only grid over an (N, 3) array of reference coordinates."""

    points: np.ndarray
    cell_size: float
    cells: Dict[Key, np.ndarray]

    @classmethod
    def build(cls, points: np.ndarray, cell_size: float) -> "SpatialIndex":
        """Bucket reference coordinates into grid cells.

        Parameters
        ----------
        points : numpy.ndarray
            Reference coordinates of shape (N, 3).
        cell_size : float
            Cell edge length.  Use the join radius so that a query only
            needs the neighbouring cells; a zero radius falls back to
            unit cells.
        """
        coords = np.asarray(points, dtype=float).reshape(-1, 3)
        if cell_size <= 0:
            cell_size = 1.0
        coords = coords.copy()
        coords.setflags(write=False)
        keys = np.floor(coords / cell_size).astype(np.int64)
        buckets: Dict[Key, list] = {}
        for idx, key in enumerate(map(tuple, keys)):
            buckets.setdefault(key, []).append(idx)
        cells = {key: np.array(indices, dtype=np.int64) for key, indices in buckets.items()}
        return cls(points=coords, cell_size=float(cell_size), cells=cells)

    def __len__(self) -> int:
        return len(self.points)

    def cell_key(self, point: np.ndarray) -> Key:
        return tuple(int(v) for v in np.floor(np.asarray(point, dtype=float) / self.cell_size))

    def query(self, point: np.ndarray, radius: float) -> Tuple[np.ndarray, np.ndarray]:
        """Find reference points within ``radius`` of ``point``.

        Returns
        -------
        (indices, distances)
            Indices into the reference set and their distances, in
            ascending index order.
        """
        if radius < 0:
            raise ValueError("radius must be non-negative")
        if radius > self.cell_size:
            raise ValueError(
                f"radius {radius} exceeds the index cell size {self.cell_size}"
            )
        point = np.asarray(point, dtype=float).reshape(3)
        centre = np.array(self.cell_key(point), dtype=np.int64)
        found = [
            self.cells[key]
            for key in map(tuple, centre + _NEIGHBOUR_OFFSETS)
            if key in self.cells
        ]
        if not found:
            return np.empty(0, dtype=np.int64), np.empty(0, dtype=float)
        candidates = np.sort(np.concatenate(found))
        distances = np.linalg.norm(self.points[candidates] - point, axis=1)
        mask = distances <= radius + DISTANCE_ATOL
        return candidates[mask], distances[mask]

    def nearest_within(
        self, point: np.ndarray, radius: float, labels: np.ndarray
    ) -> Optional[Tuple[int, float]]:
        """Nearest reference point within ``radius``.

        Matches within ``DISTANCE_ATOL`` of the nearest distance count
        as equidistant and are resolved in favour of the smallest label,
        then the smallest index.

        Returns
        -------
        (index, distance) or None
        """
        indices, distances = self.query(point, radius)
        if len(indices) == 0:
            return None
        tied = distances <= distances.min() + DISTANCE_ATOL
        indices, distances = indices[tied], distances[tied]
        order = np.lexsort((indices, np.asarray(labels)[indices]))
        best = order[0]
        return int(indices[best]), float(distances[best])

"""Binary record stream I/O.

Pose, sensor and georeferenced record files are flat sequences of
fixed-width little-endian records with no header.  Files are read
lazily in chunks with :func:`numpy.fromfile` so that a sensor stream
never has to be held in memory as a whole; record files written for
the labeling tool are written atomically so an aborted run never
leaves a partial file behind.
"""

import os
from pathlib import Path
from typing import Iterator, Union

import numpy as np

from .errors import InputDataError
from .records import RECORD_DTYPE

PathLike = Union[str, Path]

DEFAULT_CHUNK_SIZE = 65536


def count_records(path: PathLike, dtype: np.dtype) -> int:
    """Return the number of complete records in a file.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    InputDataError
        If the file size is not a whole multiple of the record size.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Record file not found: {path}")
    size = path.stat().st_size
    if size % dtype.itemsize != 0:
        raise InputDataError(
            f"{path} is truncated: {size} bytes is not a multiple of the "
            f"{dtype.itemsize}-byte record size"
        )
    return size // dtype.itemsize


def iter_record_chunks(
    path: PathLike,
    dtype: np.dtype,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> Iterator[np.ndarray]:
    """Lazily yield structured arrays of at most ``chunk_size`` records.

    The file is validated when the generator starts, so a missing or
    truncated file raises on the first ``next()`` call.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be a positive integer")
    total = count_records(path, dtype)
    offset = 0
    while offset < total:
        count = min(chunk_size, total - offset)
        chunk = np.fromfile(str(path), dtype=dtype, count=count, offset=offset * dtype.itemsize)
        yield chunk
        offset += count


def read_records(path: PathLike, dtype: np.dtype = RECORD_DTYPE) -> np.ndarray:
    """Read an entire record file into memory."""
    count_records(path, dtype)
    return np.fromfile(str(path), dtype=dtype)


def write_records(path: PathLike, records: np.ndarray) -> Path:
    """Write records to ``path`` atomically.

    The data is written to a sibling temporary file which then replaces
    the target, so readers see either the old file or the complete new
    one.

    Returns
    -------
    Path
        The written file path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        np.ascontiguousarray(records).tofile(str(tmp_path))
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path

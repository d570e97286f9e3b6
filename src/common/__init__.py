"""Record layouts, binary record streams and shared error types."""

from .errors import ConfigurationError, InputDataError, LabelingContractError
from .records import (
    POSE_DTYPE,
    SENSOR_DTYPE,
    RECORD_DTYPE,
    PoseSample,
    as_structured,
    concatenate,
    empty_records,
    make_records,
)
from .record_io import count_records, iter_record_chunks, read_records, write_records
from .stats import StreamStats

__all__ = [
    "ConfigurationError",
    "InputDataError",
    "LabelingContractError",
    "POSE_DTYPE",
    "SENSOR_DTYPE",
    "RECORD_DTYPE",
    "PoseSample",
    "as_structured",
    "concatenate",
    "empty_records",
    "make_records",
    "count_records",
    "iter_record_chunks",
    "read_records",
    "write_records",
    "StreamStats",
]

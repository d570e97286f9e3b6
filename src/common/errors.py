"""Exception types raised by the pipeline.

Per-record conditions such as a point falling outside pose coverage
are not errors; they are counted in :class:`~src.common.stats.StreamStats`.
The exceptions below are reserved for conditions that stop a run.
"""


class ConfigurationError(ValueError):
    """A run parameter is missing or outside its valid range."""


class InputDataError(ValueError):
    """An input file or array is empty, truncated or malformed."""


class LabelingContractError(RuntimeError):
    """The labeling tool changed more than the feature label field."""

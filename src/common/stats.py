"""Streaming counters for per-record discards."""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class StreamStats:
    """Count candidates, discards and retained records for one stage.

    ``reasons`` optionally breaks the discard total down by cause
    (e.g. ``out_of_range`` or ``gap_exceeded`` for georeferencing).
    Stages that pass every record through but only act on some of them
    rename the two outcomes with ``retained_key`` and ``discarded_key``.
    """

    stage: str
    candidates: int = 0
    retained: int = 0
    reasons: Dict[str, int] = field(default_factory=dict)
    retained_key: str = "retained"
    discarded_key: str = "discarded"

    @property
    def discarded(self) -> int:
        return self.candidates - self.retained

    @property
    def retained_fraction(self) -> float:
        if self.candidates == 0:
            return 0.0
        return self.retained / self.candidates

    def update(self, candidates: int, retained: int, **reasons: int) -> None:
        self.candidates += int(candidates)
        self.retained += int(retained)
        for key, value in reasons.items():
            self.reasons[key] = self.reasons.get(key, 0) + int(value)

    def reset(self) -> None:
        self.candidates = 0
        self.retained = 0
        self.reasons.clear()

    def summary(self) -> str:
        """One-line end-of-stage summary suitable for logging."""
        text = (
            f"{self.stage}: {self.retained:,}/{self.candidates:,} {self.retained_key} "
            f"({self.discarded:,} {self.discarded_key})"
        )
        if self.reasons:
            details = ", ".join(f"{k}={v:,}" for k, v in sorted(self.reasons.items()))
            text += f" [{details}]"
        return text

    def to_dict(self) -> Dict[str, int]:
        return {
            "candidates": self.candidates,
            self.retained_key: self.retained,
            self.discarded_key: self.discarded,
            **self.reasons,
        }

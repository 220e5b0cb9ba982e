"""Metadata models for run observability."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Any


class StopReason(str, Enum):
    """Why a sampling run ended. None of these is an error."""
    CONVERGED = "converged"
    MAX_SAMPLES_REACHED = "max_samples_reached"
    FRACTION_SAMPLED_REACHED = "fraction_sampled_reached"
    EXHAUSTED = "exhausted"              # store returned an empty batch
    FIXED_SAMPLE = "fixed_sample"        # adaptive mode disabled
    EMPTY_COLLECTION = "empty_collection"


@dataclass
class RunMetrics:
    """Metrics for one introspection run."""
    collection: str
    started_at: datetime
    completed_at: Optional[datetime] = None

    # Store
    total_count: int = 0

    # Sampling
    batch_count: int = 0
    total_sampled: int = 0
    documents_skipped: int = 0
    unique_field_paths: int = 0

    # Termination
    stop_reason: Optional[StopReason] = None
    converged: bool = False
    stable_batches: int = 0

    @property
    def duration_ms(self) -> int:
        """Duration in milliseconds."""
        if not self.completed_at:
            return 0
        delta = self.completed_at - self.started_at
        return int(delta.total_seconds() * 1000)

    @property
    def documents_merged(self) -> int:
        return self.total_sampled - self.documents_skipped

    @property
    def sampled_fraction(self) -> float:
        """Sampled documents relative to the collection size."""
        if not self.total_count:
            return 0.0
        return self.total_sampled / self.total_count

    def to_summary_dict(self) -> dict[str, Any]:
        """Convert to a flat dictionary for logs and CLI output."""
        result = {
            "_type": "run_summary",
            "collection": self.collection,
            "started_at": self.started_at.isoformat(),
            "total_count": self.total_count,
            "batch_count": self.batch_count,
            "total_sampled": self.total_sampled,
            "documents_skipped": self.documents_skipped,
            "unique_field_paths": self.unique_field_paths,
            "stop_reason": self.stop_reason.value if self.stop_reason else None,
            "converged": self.converged,
        }

        if self.completed_at:
            result["completed_at"] = self.completed_at.isoformat()
            result["duration_ms"] = self.duration_ms

        return result

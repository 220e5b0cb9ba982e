"""Adaptive random sampling of a collection.

The controller pulls random batches from a store until the set of field
paths stops growing, or a hard limit is hit. Every batch is fully extracted
and merged, in arrival order, before the next merge starts. With
``prefetch`` enabled only the I/O of the next batch overlaps the merge of
the current one.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Protocol, runtime_checkable

from schemascout.config.loader import ExtractionConfig, SamplingConfig
from schemascout.core.accumulator import SchemaAccumulator
from schemascout.core.exceptions import (
    IntrospectionCancelledError,
    IntrospectionTimeoutError,
    StoreUnavailableError,
)
from schemascout.core.extractor import FieldPathExtractor
from schemascout.core.inference import TypeInferencer
from schemascout.core.resolver import SchemaResolver
from schemascout.core.utils.naming import type_name_for_collection
from schemascout.models.metadata import RunMetrics, StopReason
from schemascout.models.value import Value

logger = logging.getLogger(__name__)


@runtime_checkable
class DocumentStore(Protocol):
    """The two primitives sampling needs from a store."""

    def count(self, collection: str) -> int:
        """Total number of documents in the collection."""
        ...

    def sample_random(self, collection: str, k: int) -> list[Any]:
        """Up to k uniformly random documents (duplicates across calls allowed)."""
        ...


@dataclass
class SamplingOutcome:
    accumulator: SchemaAccumulator
    metrics: RunMetrics
    warnings: list[str] = field(default_factory=list)


class SamplingController:
    """Drives sampling batches and decides when to stop."""

    def __init__(
        self,
        store: DocumentStore,
        sampling: Optional[SamplingConfig] = None,
        extraction: Optional[ExtractionConfig] = None,
    ):
        self.store = store
        self.sampling = sampling or SamplingConfig()
        self.extraction = extraction or ExtractionConfig()
        self.extractor = FieldPathExtractor(self.extraction)
        self.resolver = SchemaResolver(
            TypeInferencer(self.extraction.detect_identifier_strings),
            identifier_field=self.extraction.identifier_field,
        )

    def run(
        self,
        collection: str,
        type_name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> SamplingOutcome:
        """Sample a collection into a fresh accumulator.

        Raises:
            StoreUnavailableError: If counting or sampling fails
            IntrospectionCancelledError: If cancelled or timed out between batches
        """
        accumulator = SchemaAccumulator(collection, type_name or type_name_for_collection(collection))
        metrics = RunMetrics(collection=collection, started_at=datetime.now())
        outcome = SamplingOutcome(accumulator=accumulator, metrics=metrics)
        deadline = None
        if self.sampling.timeout_seconds is not None:
            deadline = time.monotonic() + self.sampling.timeout_seconds

        metrics.total_count = self._count(collection)
        logger.info(f"Sampling {collection}: {metrics.total_count:,} documents")

        if metrics.total_count == 0:
            metrics.stop_reason = StopReason.EMPTY_COLLECTION
        elif not self.sampling.adaptive:
            batch = self._fetch(collection, self.sampling.fixed_sample_size, 1)
            self._receive(metrics, batch)
            self._process_batch(outcome, batch)
            metrics.stop_reason = StopReason.FIXED_SAMPLE
        elif self.sampling.prefetch:
            with ThreadPoolExecutor(max_workers=1, thread_name_prefix="schemascout-prefetch") as executor:
                self._run_adaptive(outcome, cancel_event, deadline, executor)
        else:
            self._run_adaptive(outcome, cancel_event, deadline, None)

        metrics.completed_at = datetime.now()
        metrics.unique_field_paths = accumulator.unique_path_count
        metrics.documents_skipped = accumulator.documents_skipped
        logger.info(
            f"Sampled {collection}: {metrics.total_sampled:,} documents in {metrics.batch_count} batch(es), "
            f"{metrics.unique_field_paths} field paths, stopped: {metrics.stop_reason.value}"
        )
        return outcome

    def _run_adaptive(
        self,
        outcome: SamplingOutcome,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
        executor: Optional[ThreadPoolExecutor],
    ) -> None:
        metrics = outcome.metrics
        collection = metrics.collection
        fraction_limit = self.sampling.max_fraction * metrics.total_count
        stable = 0

        pending = self._request(collection, 1, metrics, executor)
        while pending is not None:
            self._check_cancelled(collection, metrics.batch_count, cancel_event, deadline)

            batch = pending.result() if isinstance(pending, Future) else pending
            pending = None
            if not batch:
                metrics.stop_reason = StopReason.EXHAUSTED
                break
            self._receive(metrics, batch)

            if executor is not None:
                # Overlap the next fetch with this merge
                pending = self._request(collection, metrics.batch_count + 1, metrics, executor)

            delta = self._process_batch(outcome, batch)
            if delta < self.sampling.new_path_threshold:
                stable += 1
            else:
                stable = 0
            metrics.stable_batches = stable
            logger.debug(
                f"{collection} batch {metrics.batch_count}: {len(batch)} docs, {delta} new path(s), "
                f"stable {stable}/{self.sampling.stable_batches}"
            )

            if stable >= self.sampling.stable_batches:
                metrics.stop_reason = StopReason.CONVERGED
                metrics.converged = True
                break
            if metrics.total_sampled >= self.sampling.max_samples:
                metrics.stop_reason = StopReason.MAX_SAMPLES_REACHED
                break
            if metrics.total_sampled >= fraction_limit:
                metrics.stop_reason = StopReason.FRACTION_SAMPLED_REACHED
                break

            if executor is None:
                pending = self._request(collection, metrics.batch_count + 1, metrics, executor)
        else:
            metrics.stop_reason = StopReason.MAX_SAMPLES_REACHED

        if isinstance(pending, Future):
            # A prefetched batch left over at the stop is discarded
            pending.cancel()

        if not metrics.converged:
            message = (
                f"Sampling of {collection} stopped before convergence "
                f"({metrics.stop_reason.value} after {metrics.total_sampled:,} documents); "
                f"rare fields may be missing"
            )
            logger.warning(message)
            outcome.warnings.append(message)

    def _request(
        self,
        collection: str,
        batch_no: int,
        metrics: RunMetrics,
        executor: Optional[ThreadPoolExecutor],
    ):
        """Fetch (or schedule the fetch of) one batch; None once the budget is spent."""
        size = self.sampling.initial_batch_size if batch_no == 1 else self.sampling.batch_size
        size = min(size, self.sampling.max_samples - metrics.total_sampled)
        if size <= 0:
            return None
        if executor is None:
            return self._fetch(collection, size, batch_no)
        return executor.submit(self._fetch, collection, size, batch_no)

    def _receive(self, metrics: RunMetrics, batch: list[Any]) -> None:
        metrics.batch_count += 1
        metrics.total_sampled += len(batch)

    def _process_batch(self, outcome: SamplingOutcome, batch: list[Any]) -> int:
        """Extract and merge every document of one batch; return new path count."""
        accumulator = outcome.accumulator
        before = accumulator.unique_path_count

        for index, raw in enumerate(batch):
            try:
                extracted = self.extractor.extract(Value.from_python(raw))
                self.resolver.merge_document(accumulator, extracted)
            except Exception as e:
                accumulator.documents_skipped += 1
                logger.warning(
                    f"Skipping document {index} of batch {outcome.metrics.batch_count} "
                    f"in {accumulator.collection}: {e}"
                )

        return accumulator.unique_path_count - before

    def _count(self, collection: str) -> int:
        try:
            total = self.store.count(collection)
        except Exception as e:
            raise StoreUnavailableError(
                f"Failed to count documents in {collection}: {e}",
                collection=collection,
                original_error=e,
            ) from e
        return max(int(total), 0)

    def _fetch(self, collection: str, size: int, batch_no: int) -> list[Any]:
        try:
            return list(self.store.sample_random(collection, size))
        except Exception as e:
            raise StoreUnavailableError(
                f"Failed to sample batch {batch_no} ({size} documents) from {collection}: {e}",
                collection=collection,
                original_error=e,
            ) from e

    def _check_cancelled(
        self,
        collection: str,
        batches: int,
        cancel_event: Optional[threading.Event],
        deadline: Optional[float],
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise IntrospectionCancelledError(
                f"Introspection of {collection} cancelled after {batches} batch(es)",
                collection=collection,
                batches_completed=batches,
            )
        if deadline is not None and time.monotonic() >= deadline:
            raise IntrospectionTimeoutError(
                f"Introspection of {collection} timed out after {batches} batch(es) "
                f"({self.sampling.timeout_seconds}s budget)",
                collection=collection,
                batches_completed=batches,
            )

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Optional

from schemascout.config.loader import CollectionConfig, Config, ExtractionConfig, SamplingConfig
from schemascout.core.exceptions import ConfigError, SchemaScoutError
from schemascout.core.resolver import minimal_schema
from schemascout.core.sampler import DocumentStore, SamplingController
from schemascout.core.utils.naming import type_name_for_collection
from schemascout.models.metadata import StopReason
from schemascout.models.result import IntrospectionResult

# Import connectors to register them
import schemascout.connectors.sources  # noqa: F401
from schemascout.connectors import get_source

logger = logging.getLogger(__name__)


def introspect_collection(
    store: DocumentStore,
    collection: str,
    sampling: Optional[SamplingConfig] = None,
    extraction: Optional[ExtractionConfig] = None,
    type_name: Optional[str] = None,
    cancel_event: Optional[threading.Event] = None,
) -> IntrospectionResult:
    """Infer the schema of one collection by adaptive random sampling.

    Args:
        store: Anything with ``count`` and ``sample_random``
        collection: Collection name
        sampling: Sampling settings (defaults apply when omitted)
        extraction: Extraction settings (defaults apply when omitted)
        type_name: Root type name; defaults to the singular PascalCase
            collection name (``embedded_movies`` -> ``EmbeddedMovie``)
        cancel_event: Checked between batches; setting it aborts the run

    Returns:
        IntrospectionResult with the top-level schema, nested types and metrics

    Raises:
        StoreUnavailableError: If the store cannot be counted or sampled
        IntrospectionCancelledError: If cancelled or timed out
    """
    type_name = type_name or type_name_for_collection(collection)
    controller = SamplingController(store, sampling, extraction)
    outcome = controller.run(collection, type_name=type_name, cancel_event=cancel_event)
    accumulator = outcome.accumulator
    warnings = list(outcome.warnings)

    if outcome.metrics.stop_reason is StopReason.EMPTY_COLLECTION:
        message = f"Collection {collection} is empty; returning a minimal schema"
        logger.warning(message)
        warnings.append(message)
        entity = minimal_schema(collection, type_name, controller.extraction.identifier_field)
        nested_types = []
    else:
        if accumulator.documents_skipped:
            warnings.append(
                f"{accumulator.documents_skipped} malformed document(s) skipped in {collection}"
            )
        entity, nested_types = controller.resolver.build_schemas(accumulator)

    logger.info(
        f"Introspected {collection}: {entity.name} with {len(entity.fields)} field(s), "
        f"{len(nested_types)} nested type(s)"
    )
    return IntrospectionResult(
        collection=collection,
        entity=entity,
        nested_types=nested_types,
        metrics=outcome.metrics,
        warnings=warnings,
        collisions=list(accumulator.collisions),
    )


@dataclass
class BatchIntrospection:
    """Results of a multi-collection run; failed collections never appear in results."""
    results: dict[str, IntrospectionResult] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return not self.failures


class SchemaIntrospector:
    """Introspects the collections listed in a Config against its source."""

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)

    def introspect(self, collection_name: str, cancel_event: Optional[threading.Event] = None) -> IntrospectionResult:
        """Introspect one configured collection.

        Raises:
            ConfigError: If the collection is not configured
        """
        collection = self._get_collection(collection_name)
        with self._open_source() as source:
            return self._introspect(source, collection, cancel_event)

    def introspect_all(
        self,
        collection_name: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchIntrospection:
        """Introspect every configured collection (or just one, by name).

        With ``max_parallel_collections`` above 1 collections run in a thread
        pool; each run still owns its own accumulator.
        """
        collections = (
            [self._get_collection(collection_name)] if collection_name else list(self.config.collections)
        )
        batch = BatchIntrospection()
        self.logger.info(f"Introspecting {len(collections)} collection(s)")

        with self._open_source() as source:
            workers = min(self.config.max_parallel_collections, len(collections))
            if workers <= 1:
                for collection in collections:
                    self._record(batch, collection, lambda c=collection: self._introspect(source, c, cancel_event))
            else:
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="schemascout") as executor:
                    futures = {
                        collection.name: executor.submit(self._introspect, source, collection, cancel_event)
                        for collection in collections
                    }
                    for collection in collections:
                        self._record(batch, collection, futures[collection.name].result)

        self.logger.info(
            f"Introspection complete: {len(batch.results)} succeeded, {len(batch.failures)} failed"
        )
        return batch

    def check(self) -> dict[str, int]:
        """Connect to the source and count documents per configured collection."""
        with self._open_source() as source:
            return {c.name: source.count(c.name) for c in self.config.collections}

    def _record(self, batch: BatchIntrospection, collection: CollectionConfig, run) -> None:
        try:
            batch.results[collection.name] = run()
        except SchemaScoutError as e:
            self.logger.error(f"Failed to introspect {collection.name}: {e}")
            batch.failures[collection.name] = str(e)

    def _introspect(
        self,
        source: DocumentStore,
        collection: CollectionConfig,
        cancel_event: Optional[threading.Event],
    ) -> IntrospectionResult:
        return introspect_collection(
            source,
            collection.name,
            sampling=self.config.get_sampling_config(collection),
            extraction=self.config.get_extraction_config(collection),
            type_name=collection.type_name,
            cancel_event=cancel_event,
        )

    def _get_collection(self, name: str) -> CollectionConfig:
        collection = self.config.get_collection(name)
        if collection is None:
            available = [c.name for c in self.config.collections]
            raise ConfigError(
                f"Collection '{name}' not found in config. "
                f"Available: {', '.join(available)}"
            )
        return collection

    def _open_source(self):
        source_config = self.config.source
        return get_source(source_config.type, source_config.config)

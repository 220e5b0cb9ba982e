"""Shared pytest fixtures for schemascout tests."""

import random
import tempfile
from pathlib import Path

import pytest

from schemascout.config.loader import ExtractionConfig
from schemascout.connectors.sources.memory import MemorySource
from schemascout.core.accumulator import SchemaAccumulator
from schemascout.core.extractor import FieldPathExtractor
from schemascout.core.inference import TypeInferencer
from schemascout.core.resolver import SchemaResolver
from schemascout.core.utils.naming import type_name_for_collection
from schemascout.models.value import Value


class PositionalStore:
    """Store that always returns the first k documents, like find().limit(k)."""

    def __init__(self, documents):
        self.documents = list(documents)
        self.calls = 0

    def count(self, collection):
        return len(self.documents)

    def sample_random(self, collection, k):
        self.calls += 1
        return self.documents[:k]


class FailingStore:
    """Store whose sampling fails on a given call."""

    def __init__(self, documents, fail_on_call=1, error=None):
        self.documents = list(documents)
        self.fail_on_call = fail_on_call
        self.error = error or ConnectionError("connection reset by peer")
        self.calls = 0

    def count(self, collection):
        return len(self.documents)

    def sample_random(self, collection, k):
        self.calls += 1
        if self.calls >= self.fail_on_call:
            raise self.error
        return self.documents[:k]


def infer_schemas(documents, collection="items", extraction=None):
    """Extract and merge documents in order; return (accumulator, entity, nested)."""
    extraction = extraction or ExtractionConfig()
    extractor = FieldPathExtractor(extraction)
    resolver = SchemaResolver(
        TypeInferencer(extraction.detect_identifier_strings),
        identifier_field=extraction.identifier_field,
    )
    accumulator = SchemaAccumulator(collection, type_name_for_collection(collection))
    for document in documents:
        resolver.merge_document(accumulator, extractor.extract(Value.from_python(document)))
    entity, nested = resolver.build_schemas(accumulator)
    return accumulator, entity, nested


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_store():
    """Factory for a seeded in-memory store holding one collection."""
    def _make(documents, collection="items", seed=7, replacement=False):
        return MemorySource({
            "collections": {collection: documents},
            "seed": seed,
            "replacement": replacement,
        })
    return _make


@pytest.fixture
def uniform_documents():
    """10,000 documents sharing exactly five fields."""
    return [
        {"name": f"item-{i}", "price": i * 1.5, "qty": i % 7, "active": i % 2 == 0, "sku": f"S{i}"}
        for i in range(10_000)
    ]


@pytest.fixture
def sparse_documents():
    """1000 documents; rareFlag appears in exactly 3 of them, beyond the first 300."""
    rng = random.Random(1234)
    positions = set(rng.sample(range(300, 1000), 3))
    documents = []
    for i in range(1000):
        doc = {"name": f"doc-{i}", "value": i}
        if i in positions:
            doc["rareFlag"] = True
        documents.append(doc)
    return documents


@pytest.fixture
def sample_config_yaml():
    """Return valid config YAML for testing."""
    return """source:
  type: memory
  seed: 3

collections:
  - users
  - name: orders
    type_name: PurchaseOrder
    sampling:
      max_samples: 2000

sampling:
  initial_batch_size: 20
  batch_size: 100

extraction:
  max_depth: 10
"""


@pytest.fixture
def sample_config_file(temp_dir, sample_config_yaml):
    """Create a temporary config file."""
    config_file = temp_dir / "schemascout.yml"
    config_file.write_text(sample_config_yaml)
    return config_file

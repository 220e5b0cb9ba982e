"""In-process source connector."""

import random
from typing import Any


class MemorySource:
    """Source connector over collections held in memory.

    Without replacement, draws walk a shuffled permutation of the collection
    and reshuffle once it is used up, so every document is seen once per
    pass. With replacement, every draw is independent.

    Config:
        collections: Mapping of collection name to a list of documents
        seed: Random seed (optional)
        replacement: Draw with replacement (default: false)
    """

    def __init__(self, config: dict[str, Any]):
        self.collections: dict[str, list[Any]] = {
            name: list(docs) for name, docs in (config.get("collections") or {}).items()
        }
        self.replacement = bool(config.get("replacement", False))
        self._rng = random.Random(config.get("seed"))
        self._orders: dict[str, list[int]] = {}
        self._cursors: dict[str, int] = {}

    def connect(self) -> None:
        pass

    def list_collections(self) -> list[str]:
        return sorted(self.collections)

    def count(self, collection: str) -> int:
        return len(self._documents(collection))

    def sample_random(self, collection: str, k: int) -> list[Any]:
        documents = self._documents(collection)
        if not documents or k <= 0:
            return []
        if self.replacement:
            return self._rng.choices(documents, k=k)

        batch = []
        for _ in range(min(k, len(documents))):
            batch.append(documents[self._next_index(collection, len(documents))])
        return batch

    def _next_index(self, collection: str, size: int) -> int:
        cursor = self._cursors.get(collection, 0)
        order = self._orders.get(collection)
        if order is None or cursor >= size:
            order = list(range(size))
            self._rng.shuffle(order)
            self._orders[collection] = order
            cursor = 0
        self._cursors[collection] = cursor + 1
        return order[cursor]

    def _documents(self, collection: str) -> list[Any]:
        if collection not in self.collections:
            raise KeyError(f"Unknown collection: {collection}")
        return self.collections[collection]

    def close(self) -> None:
        pass

    def __enter__(self) -> "MemorySource":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

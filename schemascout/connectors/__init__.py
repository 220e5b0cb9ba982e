"""Connector framework for document stores sampled during introspection."""

from typing import Protocol, Any, runtime_checkable


@runtime_checkable
class SourceConnector(Protocol):
    """Protocol for document store connectors.

    Besides connection handling a source provides the two sampling
    primitives used by the sampling controller.
    """

    def connect(self) -> None:
        """Establish connection (auth, etc.)."""
        ...

    def list_collections(self) -> list[str]:
        """Names of the collections available in the store."""
        ...

    def count(self, collection: str) -> int:
        """Total number of documents in a collection."""
        ...

    def sample_random(self, collection: str, k: int) -> list[Any]:
        """Up to k uniformly random documents."""
        ...

    def close(self) -> None:
        """Clean up resources (connections, caches)."""
        ...

    def __enter__(self) -> "SourceConnector":
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class SourceRegistry:
    """Registry for source connectors."""

    def __init__(self):
        self._sources: dict[str, type] = {}

    def register(self, type_name: str, connector_class: type) -> None:
        """Register a source connector class."""
        self._sources[type_name] = connector_class

    def get(self, type_name: str) -> type:
        """Get a source connector class by type name."""
        if type_name not in self._sources:
            available = ", ".join(sorted(self._sources)) or "none"
            raise ValueError(
                f"Unknown source type: '{type_name}'. Available: {available}"
            )
        return self._sources[type_name]

    def create(self, type_name: str, config: dict[str, Any]) -> SourceConnector:
        """Create and return a source connector instance."""
        connector_class = self.get(type_name)
        return connector_class(config)

    @property
    def types(self) -> list[str]:
        return sorted(self._sources)


# Global registry
_source_registry = SourceRegistry()


def register_source(type_name: str, connector_class: type) -> None:
    """Register a source connector with the global registry."""
    _source_registry.register(type_name, connector_class)


def get_source(type_name: str, config: dict[str, Any]) -> SourceConnector:
    """Get a source connector instance from the global registry."""
    return _source_registry.create(type_name, config)


def get_source_registry() -> SourceRegistry:
    """Get the global source registry."""
    return _source_registry

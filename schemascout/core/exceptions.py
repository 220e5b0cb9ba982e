"""Custom exceptions for schemascout."""


class SchemaScoutError(Exception):
    """Base exception for all schemascout errors."""
    pass


class ConfigError(SchemaScoutError):
    """Configuration-related errors."""
    pass


class StoreError(SchemaScoutError):
    """Document store errors."""
    pass


class StoreUnavailableError(StoreError):
    """The store could not be counted or sampled. Fatal for the run."""

    def __init__(self, message: str, collection: str, original_error: Exception | None = None):
        self.collection = collection
        self.original_error = original_error
        super().__init__(message)


class IntrospectionCancelledError(SchemaScoutError):
    """Run was cancelled at a batch boundary; partial state is discarded."""

    def __init__(self, message: str, collection: str, batches_completed: int = 0):
        self.collection = collection
        self.batches_completed = batches_completed
        super().__init__(message)


class IntrospectionTimeoutError(IntrospectionCancelledError):
    """Run exceeded its configured time budget."""
    pass


class DocumentError(SchemaScoutError):
    """Errors tied to a single document."""
    pass


class MalformedDocumentError(DocumentError):
    """Document cannot be analyzed (not a mapping, bad keys, ...)."""
    pass

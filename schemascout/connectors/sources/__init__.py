"""Source connectors for sampling documents."""

from schemascout.connectors.sources.local import LocalSource
from schemascout.connectors.sources.memory import MemorySource
from schemascout.connectors.sources.mongodb import MongoDBSource
from schemascout.connectors import register_source

# Register built-in sources
register_source("local", LocalSource)
register_source("memory", MemorySource)
register_source("mongodb", MongoDBSource)

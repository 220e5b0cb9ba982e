import yaml
import os
import re
from dataclasses import dataclass, field, fields, replace
from typing import Optional, Dict, Any

from schemascout.core.exceptions import ConfigError


def _substitute_env_vars(value: Any) -> Any:
    """Substitute ${VAR} patterns with environment variables."""
    if isinstance(value, str):
        pattern = r'\$\{([^}]+)\}'
        matches = re.findall(pattern, value)
        for var_name in matches:
            env_value = os.environ.get(var_name, "")
            value = value.replace(f"${{{var_name}}}", env_value)
        return value
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    return value


@dataclass
class SamplingConfig:
    """Adaptive sampling parameters.

    Defaults favour a fast first signal (small first batch) followed by
    larger batches until few new field paths appear.
    """
    initial_batch_size: int = 50
    batch_size: int = 200
    max_samples: int = 5000
    max_fraction: float = 0.8  # Stop once this share of the collection was sampled
    new_path_threshold: int = 2  # A batch adding fewer new paths counts as stable
    stable_batches: int = 3  # Consecutive stable batches needed to converge
    adaptive: bool = True
    fixed_sample_size: int = 500  # Used only when adaptive is False
    prefetch: bool = False  # Fetch the next batch while merging the current one
    timeout_seconds: Optional[float] = None

    def __post_init__(self):
        for name in ("initial_batch_size", "batch_size", "max_samples",
                     "stable_batches", "fixed_sample_size"):
            _require_positive_int(name, getattr(self, name))
        _require_non_negative_int("new_path_threshold", self.new_path_threshold)
        if isinstance(self.max_fraction, bool) or not isinstance(self.max_fraction, (int, float)) \
                or self.max_fraction <= 0:
            raise ConfigError(f"sampling.max_fraction must be a positive number, got {self.max_fraction!r}")
        if self.timeout_seconds is not None and (
            not isinstance(self.timeout_seconds, (int, float)) or self.timeout_seconds <= 0
        ):
            raise ConfigError(
                f"sampling.timeout_seconds must be a positive number, got {self.timeout_seconds!r}"
            )


@dataclass
class ExtractionConfig:
    """Field-path extraction and type inference parameters."""
    max_depth: int = 32
    array_sample_size: int = 3  # Array elements inspected per document
    excluded_prefixes: tuple[str, ...] = ("__", "$")
    identifier_field: str = "_id"
    detect_identifier_strings: bool = True  # 24-hex strings become identifiers

    def __post_init__(self):
        _require_positive_int("max_depth", self.max_depth)
        _require_positive_int("array_sample_size", self.array_sample_size)
        if self.max_depth > 200:
            raise ConfigError(f"extraction.max_depth must be at most 200, got {self.max_depth}")
        if isinstance(self.excluded_prefixes, str):
            self.excluded_prefixes = (self.excluded_prefixes,)
        self.excluded_prefixes = tuple(p for p in self.excluded_prefixes if p)
        if not self.identifier_field:
            raise ConfigError("extraction.identifier_field cannot be empty")


@dataclass
class SourceConfig:
    """Configuration for a source connector."""
    type: str  # Connector type: "mongodb", "local", "memory"
    config: Dict[str, Any] = field(default_factory=dict)  # Connector-specific config


@dataclass
class CollectionConfig:
    """A collection to introspect, with optional per-collection overrides."""
    name: str
    type_name: Optional[str] = None  # Defaults to PascalCase(singular(name))
    sampling: Optional[SamplingConfig] = None
    extraction: Optional[ExtractionConfig] = None


@dataclass
class Config:
    """Main configuration object.

    Global sampling/extraction settings apply to every collection unless the
    collection entry overrides them.
    """
    source: SourceConfig
    collections: list[CollectionConfig]
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    max_parallel_collections: int = 1

    def get_collection(self, name: str) -> Optional[CollectionConfig]:
        """Get a collection config by name."""
        for collection in self.collections:
            if collection.name == name:
                return collection
        return None

    def get_sampling_config(self, collection: CollectionConfig) -> SamplingConfig:
        """Get effective sampling config (collection override or global)."""
        return collection.sampling or self.sampling

    def get_extraction_config(self, collection: CollectionConfig) -> ExtractionConfig:
        """Get effective extraction config (collection override or global)."""
        return collection.extraction or self.extraction


DEFAULT_CONFIG = """# schemascout configuration
# Collections are sampled at random until few new fields show up.

source:
  type: mongodb
  connection_string: ${MONGODB_URI}
  database: ${MONGODB_DATABASE}

collections:
  - movies  # Simple: just the collection name
#  - name: comments
#    type_name: Comment
#    sampling:
#      max_samples: 2000

sampling:
  initial_batch_size: 50
  batch_size: 200
  max_samples: 5000
  max_fraction: 0.8
  new_path_threshold: 2
  stable_batches: 3

extraction:
  max_depth: 32
  array_sample_size: 3
"""


def load_config(path: str = "schemascout.yml") -> Config:
    """Loads configuration from a YAML file.

    Args:
        path: Path to the config file

    Returns:
        Parsed Config object

    Raises:
        ConfigError: If config file is missing, invalid YAML, or missing required fields
    """
    if not os.path.exists(path):
        raise ConfigError(
            f"Configuration file not found: {path}\n"
            f"Run 'schemascout init' to create one."
        )

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML in {path}:\n{e}"
        )

    if data is None:
        raise ConfigError(f"Config file {path} is empty.")
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at the top level.")

    return parse_config(_substitute_env_vars(data))


def parse_config(data: dict) -> Config:
    """Build a Config from already-loaded YAML data."""
    source = _parse_connector_config(data.get("source"))
    if source is None:
        raise ConfigError(
            "Missing source configuration.\n\n"
            "Add a 'source' section:\n\n"
            "source:\n"
            "  type: mongodb\n"
            "  connection_string: ${MONGODB_URI}\n"
            "  database: my_database"
        )

    sampling = _parse_section(SamplingConfig, data.get("sampling"), "sampling")
    extraction = _parse_section(ExtractionConfig, data.get("extraction"), "extraction")

    max_parallel = data.get("max_parallel_collections", 1)
    _require_positive_int("max_parallel_collections", max_parallel)

    return Config(
        source=source,
        collections=_parse_collections(data, sampling, extraction),
        sampling=sampling,
        extraction=extraction,
        max_parallel_collections=max_parallel,
    )


def _parse_connector_config(data: Optional[dict]) -> Optional[SourceConfig]:
    """Parse a source connector config."""
    if data is None:
        return None

    if not isinstance(data, dict):
        raise ConfigError("Connector config must be a dictionary.")

    conn_type = data.get("type")
    if not conn_type:
        raise ConfigError("Connector config requires 'type' field.")

    # Everything except 'type' goes into config
    config = {k: v for k, v in data.items() if k != "type"}

    return SourceConfig(type=conn_type, config=config)


def _parse_section(cls, data: Optional[dict], section: str, base=None):
    """Parse a sampling/extraction section onto the dataclass defaults.

    When ``base`` is given (per-collection overrides), unspecified keys keep
    the base values.
    """
    if data is None:
        return base if base is not None else cls()
    if not isinstance(data, dict):
        raise ConfigError(f"'{section}' must be a mapping.")

    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown key(s) in '{section}': {', '.join(unknown)}. "
            f"Valid keys: {', '.join(sorted(known))}"
        )

    values = dict(data)
    if "excluded_prefixes" in values and isinstance(values["excluded_prefixes"], list):
        values["excluded_prefixes"] = tuple(values["excluded_prefixes"])

    try:
        if base is not None:
            return replace(base, **values)
        return cls(**values)
    except ConfigError as e:
        raise ConfigError(f"Invalid '{section}' configuration: {e}")


def _parse_collections(
    data: dict, sampling: SamplingConfig, extraction: ExtractionConfig
) -> list[CollectionConfig]:
    """Parse the collection list.

    Supports plain names and objects with per-collection overrides.
    """
    if "collections" not in data:
        raise ConfigError(
            "Missing 'collections' list.\n"
            "Example:\n\n"
            "collections:\n"
            "  - movies\n"
            "  - comments"
        )

    collections_data = data["collections"]
    if not isinstance(collections_data, list):
        raise ConfigError("'collections' must be a list.")
    if not collections_data:
        raise ConfigError("'collections' list cannot be empty.")

    collections = []
    for i, item in enumerate(collections_data):
        if isinstance(item, str):
            collections.append(CollectionConfig(name=item))
        elif isinstance(item, dict):
            if "name" not in item:
                raise ConfigError(
                    f"Missing 'name' in collections[{i}].\n"
                    "Use either:\n"
                    "  - collection_name\n"
                    "Or:\n"
                    "  - name: collection_name\n"
                    "    sampling:\n"
                    "      max_samples: 1000"
                )
            collections.append(CollectionConfig(
                name=item["name"],
                type_name=item.get("type_name"),
                sampling=_parse_section(
                    SamplingConfig, item.get("sampling"), f"collections[{i}].sampling", base=sampling
                ) if "sampling" in item else None,
                extraction=_parse_section(
                    ExtractionConfig, item.get("extraction"), f"collections[{i}].extraction", base=extraction
                ) if "extraction" in item else None,
            ))
        else:
            raise ConfigError(
                f"Invalid collection entry at index {i}. "
                "Must be a string or object with 'name' field."
            )

    names = [c.name for c in collections]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate collection(s): {', '.join(duplicates)}")

    return collections


def _require_positive_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")


def _require_non_negative_int(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigError(f"{name} must be a non-negative integer, got {value!r}")

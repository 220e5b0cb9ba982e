"""Tests for configuration loading."""

import pytest

from schemascout.config.loader import (
    DEFAULT_CONFIG,
    CollectionConfig,
    ExtractionConfig,
    SamplingConfig,
    load_config,
    parse_config,
)
from schemascout.core.exceptions import ConfigError


class TestSamplingConfig:
    """Tests for SamplingConfig dataclass."""

    def test_defaults(self):
        config = SamplingConfig()

        assert config.initial_batch_size == 50
        assert config.batch_size == 200
        assert config.max_samples == 5000
        assert config.max_fraction == 0.8
        assert config.new_path_threshold == 2
        assert config.stable_batches == 3
        assert config.adaptive is True
        assert config.prefetch is False
        assert config.timeout_seconds is None

    @pytest.mark.parametrize("kwargs", [
        {"batch_size": 0},
        {"initial_batch_size": -1},
        {"max_samples": True},
        {"stable_batches": 1.5},
        {"new_path_threshold": -1},
        {"max_fraction": 0},
        {"max_fraction": "half"},
        {"timeout_seconds": 0},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigError):
            SamplingConfig(**kwargs)

    def test_fraction_above_one_is_allowed(self):
        assert SamplingConfig(max_fraction=1.5).max_fraction == 1.5


class TestExtractionConfig:
    def test_defaults(self):
        config = ExtractionConfig()

        assert config.max_depth == 32
        assert config.array_sample_size == 3
        assert config.excluded_prefixes == ("__", "$")
        assert config.identifier_field == "_id"

    def test_depth_upper_bound(self):
        with pytest.raises(ConfigError, match="at most 200"):
            ExtractionConfig(max_depth=500)

    def test_prefix_normalization(self):
        assert ExtractionConfig(excluded_prefixes="_internal").excluded_prefixes == ("_internal",)
        assert ExtractionConfig(excluded_prefixes=("", "$")).excluded_prefixes == ("$",)


class TestLoadConfig:
    """Tests for load_config function."""

    def test_load_full_config(self, sample_config_file):
        config = load_config(str(sample_config_file))

        assert config.source.type == "memory"
        assert config.source.config == {"seed": 3}
        assert [c.name for c in config.collections] == ["users", "orders"]
        assert config.sampling.initial_batch_size == 20
        assert config.sampling.batch_size == 100
        assert config.extraction.max_depth == 10

    def test_collection_overrides_keep_global_values(self, sample_config_file):
        config = load_config(str(sample_config_file))

        users = config.get_collection("users")
        orders = config.get_collection("orders")
        assert users.sampling is None
        assert config.get_sampling_config(users) is config.sampling

        assert orders.type_name == "PurchaseOrder"
        effective = config.get_sampling_config(orders)
        assert effective.max_samples == 2000
        assert effective.initial_batch_size == 20
        assert config.get_extraction_config(orders) is config.extraction

    def test_env_var_substitution(self, temp_dir, monkeypatch):
        monkeypatch.setenv("TEST_MONGO_URI", "mongodb://db.example:27017")
        config_file = temp_dir / "schemascout.yml"
        config_file.write_text("""source:
  type: mongodb
  connection_string: ${TEST_MONGO_URI}
  database: shop
collections:
  - orders
""")

        config = load_config(str(config_file))

        assert config.source.config["connection_string"] == "mongodb://db.example:27017"
        assert config.max_parallel_collections == 1

    def test_default_config_parses(self, temp_dir, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://localhost")
        monkeypatch.setenv("MONGODB_DATABASE", "sample_mflix")
        config_file = temp_dir / "schemascout.yml"
        config_file.write_text(DEFAULT_CONFIG)

        config = load_config(str(config_file))

        assert config.source.config["database"] == "sample_mflix"
        assert config.collections == [CollectionConfig(name="movies")]

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigError, match="schemascout init"):
            load_config(str(temp_dir / "nope.yml"))

    def test_invalid_yaml(self, temp_dir):
        config_file = temp_dir / "schemascout.yml"
        config_file.write_text("source: [unclosed")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(str(config_file))

    def test_empty_file(self, temp_dir):
        config_file = temp_dir / "schemascout.yml"
        config_file.write_text("")

        with pytest.raises(ConfigError, match="empty"):
            load_config(str(config_file))


class TestParseConfig:
    """Tests for validation of parsed data."""

    BASE = {"source": {"type": "memory"}, "collections": ["users"]}

    def test_missing_source(self):
        with pytest.raises(ConfigError, match="Missing source"):
            parse_config({"collections": ["users"]})

    def test_source_requires_type(self):
        with pytest.raises(ConfigError, match="type"):
            parse_config({"source": {"path": "data"}, "collections": ["users"]})

    def test_missing_collections(self):
        with pytest.raises(ConfigError, match="collections"):
            parse_config({"source": {"type": "memory"}})

    def test_empty_collections(self):
        with pytest.raises(ConfigError, match="cannot be empty"):
            parse_config({**self.BASE, "collections": []})

    def test_duplicate_collections(self):
        with pytest.raises(ConfigError, match="Duplicate"):
            parse_config({**self.BASE, "collections": ["users", {"name": "users"}]})

    def test_collection_entry_requires_name(self):
        with pytest.raises(ConfigError, match="Missing 'name'"):
            parse_config({**self.BASE, "collections": [{"type_name": "User"}]})

    def test_unknown_sampling_key(self):
        with pytest.raises(ConfigError, match="Unknown key"):
            parse_config({**self.BASE, "sampling": {"batchsize": 10}})

    def test_invalid_sampling_value_names_section(self):
        with pytest.raises(ConfigError, match="collections\\[0\\].sampling"):
            parse_config({**self.BASE, "collections": [{"name": "users", "sampling": {"batch_size": 0}}]})

    def test_excluded_prefixes_from_list(self):
        config = parse_config({**self.BASE, "extraction": {"excluded_prefixes": ["_", "$"]}})
        assert config.extraction.excluded_prefixes == ("_", "$")

    def test_max_parallel_collections(self):
        assert parse_config({**self.BASE, "max_parallel_collections": 4}).max_parallel_collections == 4
        with pytest.raises(ConfigError):
            parse_config({**self.BASE, "max_parallel_collections": 0})

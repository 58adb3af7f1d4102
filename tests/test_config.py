"""Tests for configuration loading and validation."""

import pytest
import yaml

from perfload.config import (
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigValidationError,
    DatabaseConfig,
    LogLevel,
    PerfloadConfig,
    generate_example_config_yaml,
    load_config,
    save_config,
)


class TestPerfloadConfig:
    """Tests for PerfloadConfig model."""

    def test_minimal_config(self):
        """Test creating config with just the required field."""
        config = PerfloadConfig(name="fpa-perf")
        assert config.name == "fpa-perf"

    def test_only_documented_top_level_fields(self):
        assert set(PerfloadConfig.model_fields) == {
            "name",
            "database",
            "jenkins",
            "save_dir",
            "log_level",
        }

    def test_missing_name_raises(self):
        """Test that missing name raises validation error."""
        with pytest.raises(ValueError, match="'name' is required"):
            PerfloadConfig(name="")

    def test_default_values(self):
        """Test that default values are set correctly."""
        config = PerfloadConfig(name="test")
        assert config.database.path.endswith("perf.db")
        assert config.database.ddl_script is None
        assert config.database.timeout_seconds == 30.0
        assert config.jenkins.username == "jenkins-user"
        assert config.jenkins.verify_tls is True
        assert config.log_level == LogLevel.INFO
        assert config.get_save_dir().name == "downloads"

    def test_nested_values(self):
        config = PerfloadConfig(
            name="test",
            database={"path": "/data/perf.db"},
            jenkins={"url": "https://ci/api/json", "api_token": "t0k"},
            log_level="DEBUG",
        )
        assert config.database.path == "/data/perf.db"
        assert config.jenkins.api_token == "t0k"
        assert config.log_level == LogLevel.DEBUG

    def test_blank_database_path(self):
        with pytest.raises(ValueError, match="database.path must not be empty"):
            DatabaseConfig(path="  ")

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            PerfloadConfig(name="test", log_level="LOUD")


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_valid(self, tmp_path):
        path = tmp_path / "perfload.yaml"
        path.write_text("name: fpa-perf\ndatabase:\n  path: ./perf.db\n")
        config = load_config(path)
        assert config.name == "fpa-perf"
        assert config.database.path == "./perf.db"

    def test_file_not_found(self, tmp_path):
        with pytest.raises(ConfigFileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_parse_error(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("name: [unclosed\n")
        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigParseError, match="Expected a mapping"):
            load_config(path)

    def test_validation_error_details(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("name: x\ndatabase:\n  timeout_seconds: soon\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)
        locs = [".".join(str(p) for p in err["loc"]) for err in exc_info.value.errors]
        assert "database.timeout_seconds" in locs

    def test_empty_file_requires_name(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ConfigValidationError):
            load_config(path)


class TestSaveConfig:
    """Tests for save_config()."""

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "saved.yaml"
        config = PerfloadConfig(name="saved", log_level="WARNING")
        save_config(config, path)

        reloaded = load_config(path)
        assert reloaded == config
        assert yaml.safe_load(path.read_text())["log_level"] == "WARNING"


class TestExampleConfig:
    """Tests for generate_example_config_yaml()."""

    def test_is_valid_config(self, tmp_path):
        path = tmp_path / "example.yaml"
        path.write_text(generate_example_config_yaml("nightly-perf"))
        config = load_config(path)
        assert config.name == "nightly-perf"
        assert config == PerfloadConfig(name="nightly-perf")

    def test_documents_options(self):
        content = generate_example_config_yaml()
        assert "name: fpa-perf" in content
        for option in ("database:", "jenkins:", "download_base_url", "save_dir", "log_level"):
            assert option in content

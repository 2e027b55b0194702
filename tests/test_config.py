"""Tests for configuration loading and validation."""

import pytest
from pydantic import ValidationError

from autoflow.config import (
    AppConfig,
    LogLevel,
    get_config,
    get_development_config,
    get_production_config,
    get_testing_config,
    load_config,
    reset_config,
    validate_config,
)
from autoflow.core.exceptions import ConfigurationError


class TestAppConfig:
    """Test cases for AppConfig."""

    def test_defaults(self):
        config = AppConfig()

        assert config.app_name == "Automation Workflow Engine"
        assert config.simulated_delay_min_ms == 500
        assert config.simulated_delay_max_ms == 1500
        assert config.default_node_timeout_ms is None
        assert config.validate_before_run is False
        assert config.strict_scheduling is False
        assert config.is_production

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AUTOFLOW_PORT", "9000")
        monkeypatch.setenv("AUTOFLOW_DEBUG", "yes")
        monkeypatch.setenv("AUTOFLOW_STRICT_SCHEDULING", "1")
        monkeypatch.setenv("AUTOFLOW_DEFAULT_NODE_TIMEOUT_MS", "2500")
        monkeypatch.setenv("AUTOFLOW_LOG_LEVEL", "debug")
        monkeypatch.setenv("AUTOFLOW_CORS_ORIGINS", "https://a.example, https://b.example")

        config = AppConfig.from_env()

        assert config.port == 9000
        assert config.debug is True
        assert config.strict_scheduling is True
        assert config.default_node_timeout_ms == 2500
        assert config.log_level == LogLevel.DEBUG
        assert config.cors_origins == ["https://a.example", "https://b.example"]

    def test_empty_env_values_use_defaults(self, monkeypatch):
        monkeypatch.setenv("AUTOFLOW_PORT", "")
        monkeypatch.setenv("AUTOFLOW_CORS_ORIGINS", " , ")

        config = AppConfig.from_env()

        assert config.port == 8000
        assert config.cors_origins == ["*"]

    @pytest.mark.parametrize("overrides", [
        {"port": 0},
        {"port": 70000},
        {"default_node_timeout_ms": 0},
        {"default_execution_timeout_ms": -5},
        {"simulated_delay_min_ms": -1},
        {"simulated_delay_min_ms": 100, "simulated_delay_max_ms": 50},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ValidationError):
            AppConfig(**overrides)

    def test_uvicorn_config(self):
        config = AppConfig(host="127.0.0.1", port=8080, log_level=LogLevel.WARNING)

        assert config.get_uvicorn_config() == {
            "host": "127.0.0.1",
            "port": 8080,
            "reload": False,
            "log_level": "warning",
            "access_log": False,
        }


class TestConfigHelpers:
    """Test cases for the global config accessors and presets."""

    def test_get_config_is_cached_until_reset(self, monkeypatch):
        first = get_config()
        assert get_config() is first

        monkeypatch.setenv("AUTOFLOW_APP_NAME", "Renamed")
        assert get_config().app_name == "Automation Workflow Engine"

        reset_config()
        assert get_config().app_name == "Renamed"

    def test_load_config_reads_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / "engine.env"
        env_file.write_text("AUTOFLOW_VALIDATE_BEFORE_RUN=true\nAUTOFLOW_DEFAULT_EXECUTION_TIMEOUT_MS=60000\n")
        # load_dotenv writes os.environ directly; register the keys so teardown removes them
        for key in ("AUTOFLOW_VALIDATE_BEFORE_RUN", "AUTOFLOW_DEFAULT_EXECUTION_TIMEOUT_MS"):
            monkeypatch.setenv(key, "placeholder")
            monkeypatch.delenv(key)

        config = load_config(str(env_file))

        assert config.validate_before_run is True
        assert config.default_execution_timeout_ms == 60000
        assert get_config() is config

    def test_validate_config_accepts_defaults(self):
        validate_config(AppConfig())

    def test_validate_config_rejects_node_timeout_above_run_timeout(self):
        config = AppConfig(default_node_timeout_ms=5000, default_execution_timeout_ms=1000)

        with pytest.raises(ConfigurationError, match="Configuration validation failed"):
            validate_config(config)

    def test_validate_config_creates_log_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "engine.log"

        validate_config(AppConfig(log_file=str(log_file)))

        assert log_file.parent.is_dir()

    def test_presets(self):
        development = get_development_config()
        production = get_production_config()
        testing = get_testing_config()

        assert development.debug and development.log_level == LogLevel.DEBUG
        assert production.validate_before_run and production.log_structured
        assert production.cors_origins == []
        assert testing.simulated_delay_max_ms == 0

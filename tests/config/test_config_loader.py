"""
Unit tests for ConfigLoader class.

This module contains tests for environment configuration loading, shared
section merging, validation, and error handling.
"""

import json
import os
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from src.config import ConfigLoader
from src.exceptions import ProximityConfigurationError, ProximityValidationError


class TestConfigLoader:
    """Test suite for ConfigLoader class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with a shared processing block."""
        return {
            "shared": {
                "processing": {
                    "missing_geometry_policy": "skip",
                    "progress_log_interval": 10000,
                    "arcgis_max_retries": 3
                }
            },
            "environments": {
                "development": {
                    "arcgis_url": "https://dev.arcgis.com",
                    "logging": {
                        "level": "DEBUG",
                        "log_dir": None
                    },
                    "processing": {
                        "progress_log_interval": 100
                    }
                },
                "production": {
                    "arcgis_url": "https://prod.arcgis.com",
                    "logging": {
                        "level": "INFO",
                        "log_dir": "logs"
                    }
                }
            },
            "validation": {
                "required_environment_variables": ["ARCGIS_USERNAME", "ARCGIS_PASSWORD"]
            }
        }

    @pytest.fixture
    def config_loader(self, temp_config_dir, valid_environment_config):
        """ConfigLoader reading a valid configuration file."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            json.dump(valid_environment_config, f)
        loader = ConfigLoader(str(temp_config_dir))
        yield loader
        loader.clear_cache()

    def test_default_config_dir(self):
        """Test that the loader defaults to the config/ directory."""
        assert ConfigLoader().config_dir == Path("config")

    def test_load_environment_config(self, config_loader):
        """Test loading the development environment."""
        config = config_loader.load_environment_config("development")

        assert config["arcgis_url"] == "https://dev.arcgis.com"
        assert config["logging"]["level"] == "DEBUG"
        assert "_validation" in config

    def test_shared_processing_merged_key_by_key(self, config_loader):
        """Test that environment values override shared values per key."""
        processing = config_loader.get_processing_config("development")

        assert processing["progress_log_interval"] == 100
        assert processing["missing_geometry_policy"] == "skip"
        assert processing["arcgis_max_retries"] == 3

    def test_shared_section_used_when_not_overridden(self, config_loader):
        """Test that an environment without processing takes the shared block."""
        processing = config_loader.get_processing_config("production")
        assert processing["progress_log_interval"] == 10000

    def test_get_logging_config(self, config_loader):
        assert config_loader.get_logging_config("production") == {"level": "INFO", "log_dir": "logs"}

    def test_processing_config_is_a_copy(self, config_loader):
        """Test that callers cannot mutate the cached configuration."""
        config_loader.get_processing_config("development")["progress_log_interval"] = 1
        assert config_loader.get_processing_config("development")["progress_log_interval"] == 100

    def test_missing_file(self, temp_config_dir):
        """Test error when the configuration file does not exist."""
        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(ProximityConfigurationError, match="not found"):
            loader.load_environment_config("development")

    def test_invalid_json(self, temp_config_dir):
        """Test error when the configuration file is not valid JSON."""
        (temp_config_dir / "environment_config.json").write_text("{not json")
        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(ProximityConfigurationError) as exc_info:
            loader.load_environment_config("development")

        assert "Invalid JSON" in str(exc_info.value)
        assert "path" in exc_info.value.context

    def test_missing_environments_key(self, temp_config_dir):
        (temp_config_dir / "environment_config.json").write_text(json.dumps({"shared": {}}))

        with pytest.raises(ProximityValidationError, match="environments"):
            ConfigLoader(str(temp_config_dir)).load_environment_config("development")

    def test_unknown_environment(self, config_loader):
        with pytest.raises(ProximityValidationError, match="staging"):
            config_loader.load_environment_config("staging")

    def test_missing_required_section(self, temp_config_dir):
        """Test that logging and processing must exist in the environment or shared block."""
        config = {"environments": {"development": {"processing": {}}}}
        (temp_config_dir / "environment_config.json").write_text(json.dumps(config))

        with pytest.raises(ProximityValidationError, match="logging"):
            ConfigLoader(str(temp_config_dir)).load_environment_config("development")

    def test_configuration_cached(self, config_loader, temp_config_dir):
        """Test that the file is read once per environment until the cache is cleared."""
        first = config_loader.load_environment_config("development")
        (temp_config_dir / "environment_config.json").write_text("{not json")

        assert config_loader.load_environment_config("development") is first

        config_loader.clear_cache()
        with pytest.raises(ProximityConfigurationError):
            config_loader.load_environment_config("development")

    def test_validate_environment_variables_present(self, config_loader):
        with patch.dict(os.environ, {"ARCGIS_USERNAME": "user", "ARCGIS_PASSWORD": "secret"}):
            config_loader.validate_environment_variables("development")

    def test_validate_environment_variables_missing(self, config_loader):
        with patch.dict(os.environ, {"ARCGIS_USERNAME": "user"}, clear=True):
            with pytest.raises(ProximityValidationError, match="ARCGIS_PASSWORD"):
                config_loader.validate_environment_variables("development")

    def test_repository_config_is_valid(self):
        """Test that the shipped environment_config.json loads for every environment."""
        config_dir = Path(__file__).resolve().parents[2] / "config"
        loader = ConfigLoader(str(config_dir))

        try:
            for environment in ("development", "production"):
                processing = loader.get_processing_config(environment)
                assert processing["missing_geometry_policy"] in ("skip", "abort")
                assert processing["arcgis_object_id_field"] == "OBJECTID"
        finally:
            loader.clear_cache()

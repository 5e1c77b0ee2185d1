"""Unit tests for configuration loading and the configuration store."""

import logging
import os

import pytest
from pydantic import ValidationError

from setto_sdk import (
    ConfigError,
    ConfigurationStore,
    NotInitializedError,
    SettoConfig,
    SettoEnvironment,
    load_settings,
)


@pytest.mark.unit
class TestSettoConfig:
    """Test the immutable configuration value."""

    def test_defaults(self):
        config = SettoConfig(merchant_id="m1")

        assert config.environment is SettoEnvironment.PROD
        assert config.base_url == "https://wallet.settopay.com"
        assert config.idp_token is None
        assert config.debug is False

    def test_environment_aliases(self):
        assert SettoConfig(merchant_id="m1", environment="DEVELOPMENT").environment is SettoEnvironment.DEV
        assert SettoConfig(merchant_id="m1", environment="prod").environment is SettoEnvironment.PROD
        assert SettoEnvironment.DEV.base_url == "https://dev-wallet.settopay.com"

        with pytest.raises(ValidationError):
            SettoConfig(merchant_id="m1", environment="staging")

    def test_blank_merchant_rejected(self):
        with pytest.raises(ValidationError):
            SettoConfig(merchant_id="  ")

    def test_frozen(self):
        config = SettoConfig(merchant_id="m1")

        with pytest.raises(ValidationError):
            config.merchant_id = "m2"


@pytest.mark.unit
class TestConfigurationStore:
    """Test initialize/replace semantics."""

    def test_uninitialized(self):
        store = ConfigurationStore()

        assert store.is_initialized is False
        assert store.config is None
        with pytest.raises(NotInitializedError, match="SDK not initialized"):
            store.require()

    def test_initialize_replaces_without_merge(self):
        store = ConfigurationStore()
        store.initialize(SettoConfig(merchant_id="m1", idp_token="idp", return_scheme="app"))
        store.initialize(SettoConfig(merchant_id="m2"))

        config = store.require()
        assert config.merchant_id == "m2"
        assert config.idp_token is None
        assert config.return_scheme is None

    def test_debug_flag_controls_sdk_logger(self):
        store = ConfigurationStore()

        store.initialize(SettoConfig(merchant_id="m1", debug=True))
        assert logging.getLogger("setto_sdk").level == logging.DEBUG

        store.initialize(SettoConfig(merchant_id="m1"))
        assert logging.getLogger("setto_sdk").level == logging.NOTSET


@pytest.mark.unit
class TestLoadSettings:
    """Test SETTO_* environment loading."""

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("SETTO_MERCHANT_ID", "merchant-123")
        monkeypatch.setenv("SETTO_ENVIRONMENT", "development")
        monkeypatch.setenv("SETTO_IDP_TOKEN", "idp-xyz")
        monkeypatch.setenv("SETTO_DEBUG", "true")

        config = load_settings(env_file=None).to_config()

        assert config.merchant_id == "merchant-123"
        assert config.environment is SettoEnvironment.DEV
        assert config.idp_token == "idp-xyz"
        assert config.debug is True
        assert config.return_scheme is None

    def test_from_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("SETTO_MERCHANT_ID=from-file\nSETTO_RETURN_SCHEME=mygame\n")

        settings = load_settings(env_file=str(env_file))

        config = settings.to_config()
        assert config.merchant_id == "from-file"
        assert config.return_scheme == "mygame"
        assert settings.log_format == "text"
        assert "SETTO_MERCHANT_ID" not in os.environ

    def test_environment_wins_over_env_file(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("SETTO_MERCHANT_ID=from-file\nSETTO_ENVIRONMENT=dev\n")
        monkeypatch.setenv("SETTO_MERCHANT_ID", "from-env")

        settings = load_settings(env_file=str(env_file))

        assert settings.merchant_id == "from-env"
        assert settings.environment == "dev"
        assert os.environ["SETTO_MERCHANT_ID"] == "from-env"
        assert "SETTO_ENVIRONMENT" not in os.environ

    def test_missing_merchant(self):
        with pytest.raises(ConfigError, match="SETTO_MERCHANT_ID"):
            load_settings(env_file=None).to_config()

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("SETTO_MERCHANT_ID", "m1")
        monkeypatch.setenv("SETTO_ENVIRONMENT", "staging")

        with pytest.raises(ConfigError, match="Invalid Setto configuration"):
            load_settings(env_file=None).to_config()

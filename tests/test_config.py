"""Tests for environment-driven configuration."""

from __future__ import annotations

import pytest

from trackhub.config import HubConfig, JobSettings, SankhyaConfig, SyncConfig
from trackhub.exceptions import ConfigError

_BASE_ENV = {
    "SANKHYA_URL": "https://erp.example.com/mge",
    "SANKHYA_USER": "integracao",
    "SANKHYA_PASSWORD": "secret",
}


# ------------------------------------------------------------------
# SankhyaConfig
# ------------------------------------------------------------------


class TestSankhyaConfig:
    def test_from_env_defaults(self) -> None:
        config = SankhyaConfig.from_env(_BASE_ENV)
        assert config.base_url == "https://erp.example.com/mge"
        assert config.request_timeout == 120.0
        assert config.response_encoding == "iso-8859-1"

    def test_missing_credentials_raise(self) -> None:
        with pytest.raises(ConfigError, match="password"):
            SankhyaConfig.from_env({"SANKHYA_URL": "https://x", "SANKHYA_USER": "u"})

    def test_timeout_from_env(self) -> None:
        config = SankhyaConfig.from_env({**_BASE_ENV, "REQUEST_TIMEOUT_SECONDS": "15"})
        assert config.request_timeout == 15.0

    def test_override_wins_over_env(self) -> None:
        config = SankhyaConfig.from_env({**_BASE_ENV, "REQUEST_TIMEOUT_SECONDS": "15"}, request_timeout=3.0)
        assert config.request_timeout == 3.0

    @pytest.mark.parametrize("raw", ["abc", "0", "-1"])
    def test_invalid_timeout_raises(self, raw: str) -> None:
        with pytest.raises(ConfigError):
            SankhyaConfig.from_env({**_BASE_ENV, "REQUEST_TIMEOUT_SECONDS": raw})


# ------------------------------------------------------------------
# SyncConfig
# ------------------------------------------------------------------


class TestSyncConfig:
    def test_defaults(self) -> None:
        config = SyncConfig.from_env({})
        assert config.max_attempts == 3
        assert config.retry_delay == 60.0

    def test_delay_is_read_in_minutes(self) -> None:
        config = SyncConfig.from_env({"SANKHYA_RETRY_LIMIT": "5", "SANKHYA_RETRY_DELAY_MINUTES": "0.5"})
        assert config.max_attempts == 5
        assert config.retry_delay == 30.0

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ConfigError, match="max_attempts"):
            SyncConfig(max_attempts=0)

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ConfigError, match="retry_delay"):
            SyncConfig(retry_delay=-1)


# ------------------------------------------------------------------
# HubConfig
# ------------------------------------------------------------------


class TestHubConfig:
    def test_providers_absent_without_url(self) -> None:
        config = HubConfig.from_env(_BASE_ENV)
        assert config.atualcargo is None
        assert config.sitrax is None
        assert config.log_level == "INFO"

    def test_full_environment(self) -> None:
        env = {
            **_BASE_ENV,
            "ATUALCARGO_URL": "https://api.atualcargo.example",
            "ATUALCARGO_ACCESS_KEY": "key",
            "ATUALCARGO_USERNAME": "user",
            "ATUALCARGO_PASSWORD": "pw",
            "SITRAX_URL": "https://sitrax.example",
            "SITRAX_LOGIN": "login",
            "SITRAX_CGRUCHAVE": "g",
            "SITRAX_CUSUCHAVE": "u",
            "JOB_INTERVAL_ATUALCARGO": "2",
            "JOB_ENABLED_SITRAX": "false",
            "LOG_LEVEL": "debug",
        }
        config = HubConfig.from_env(env)

        assert config.atualcargo is not None and config.atualcargo.access_key == "key"
        assert config.sitrax is not None and config.sitrax.cgru_chave == "g"
        assert config.job_settings("atualcargo") == JobSettings(enabled=True, interval=120.0)
        assert config.job_settings("sitrax").enabled is False
        assert config.job_settings("sitrax").interval == 300.0
        assert config.log_level == "DEBUG"

    def test_partial_provider_settings_raise(self) -> None:
        with pytest.raises(ConfigError, match="atualcargo"):
            HubConfig.from_env({**_BASE_ENV, "ATUALCARGO_URL": "https://api.atualcargo.example"})

    def test_unknown_job_uses_defaults(self) -> None:
        config = HubConfig(sankhya=SankhyaConfig.from_env(_BASE_ENV))
        assert config.job_settings("other") == JobSettings()

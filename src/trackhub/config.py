"""Service configuration for trackhub."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from trackhub._constants import DEFAULT_REQUEST_TIMEOUT, DEFAULT_RESPONSE_ENCODING
from trackhub.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on", "s", "sim"}:
        return True
    if normalized in {"0", "false", "no", "n", "off", "nao", "não"}:
        return False
    return default


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _read_mapped(env: Mapping[str, str], mapping: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for env_key, field_name in mapping.items():
        val = env.get(env_key)
        if val is not None and val.strip():
            values[field_name] = val.strip()
    return values


def _require(prefix: str, **fields: str) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ConfigError(f"{prefix}: missing required setting(s): {', '.join(missing)}")


@dataclasses.dataclass(frozen=True)
class SankhyaConfig:
    """Record store (Sankhya ERP) connection settings.

    Parameters
    ----------
    base_url : str
        Base URL of the ``mge`` web application, e.g.
        ``https://erp.example.com/mge``.
    username : str
        Login user (``NOMUSU``).
    password : str
        Login password (``INTERNO``).
    request_timeout : float
        Seconds allowed for each outbound request.  Expiry surfaces as a
        :class:`~trackhub.exceptions.TransportError`.
    response_encoding : str
        Text encoding of service.sbr responses.
    """

    base_url: str
    username: str
    password: str
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    response_encoding: str = DEFAULT_RESPONSE_ENCODING

    def __post_init__(self) -> None:
        _require("sankhya", base_url=self.base_url, username=self.username, password=self.password)
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> SankhyaConfig:
        """Create configuration from ``SANKHYA_*`` environment variables."""
        env = os.environ if env is None else env
        kwargs = _read_mapped(
            env,
            {
                "SANKHYA_URL": "base_url",
                "SANKHYA_USER": "username",
                "SANKHYA_PASSWORD": "password",
                "SANKHYA_RESPONSE_ENCODING": "response_encoding",
            },
        )
        kwargs.setdefault("base_url", "")
        kwargs.setdefault("username", "")
        kwargs.setdefault("password", "")
        if "request_timeout" not in overrides:
            kwargs["request_timeout"] = _env_float(env, "REQUEST_TIMEOUT_SECONDS", DEFAULT_REQUEST_TIMEOUT)
        kwargs.update(overrides)
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Retry policy for one sync cycle.

    Parameters
    ----------
    max_attempts : int
        Whole-attempt retry ceiling (lookups + writes).
    retry_delay : float
        Seconds to wait after a failed attempt before the next one.
    """

    max_attempts: int = 3
    retry_delay: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.retry_delay < 0:
            raise ConfigError(f"retry_delay must be >= 0, got {self.retry_delay}")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, **overrides: Any) -> SyncConfig:
        env = os.environ if env is None else env
        kwargs: dict[str, Any] = {}
        if "max_attempts" not in overrides:
            kwargs["max_attempts"] = _env_int(env, "SANKHYA_RETRY_LIMIT", 3)
        if "retry_delay" not in overrides:
            kwargs["retry_delay"] = _env_float(env, "SANKHYA_RETRY_DELAY_MINUTES", 1.0) * 60.0
        kwargs.update(overrides)
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class AtualcargoConfig:
    base_url: str
    access_key: str
    username: str
    password: str

    def __post_init__(self) -> None:
        _require(
            "atualcargo",
            base_url=self.base_url,
            access_key=self.access_key,
            username=self.username,
            password=self.password,
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> AtualcargoConfig | None:
        """Return the provider config, or ``None`` when ``ATUALCARGO_URL`` is unset."""
        env = os.environ if env is None else env
        kwargs = _read_mapped(
            env,
            {
                "ATUALCARGO_URL": "base_url",
                "ATUALCARGO_ACCESS_KEY": "access_key",
                "ATUALCARGO_USERNAME": "username",
                "ATUALCARGO_PASSWORD": "password",
            },
        )
        if "base_url" not in kwargs:
            return None
        for name in ("access_key", "username", "password"):
            kwargs.setdefault(name, "")
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class SitraxConfig:
    base_url: str
    login: str
    cgru_chave: str
    cusu_chave: str

    def __post_init__(self) -> None:
        _require(
            "sitrax",
            base_url=self.base_url,
            login=self.login,
            cgru_chave=self.cgru_chave,
            cusu_chave=self.cusu_chave,
        )

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> SitraxConfig | None:
        """Return the provider config, or ``None`` when ``SITRAX_URL`` is unset."""
        env = os.environ if env is None else env
        kwargs = _read_mapped(
            env,
            {
                "SITRAX_URL": "base_url",
                "SITRAX_LOGIN": "login",
                "SITRAX_CGRUCHAVE": "cgru_chave",
                "SITRAX_CUSUCHAVE": "cusu_chave",
            },
        )
        if "base_url" not in kwargs:
            return None
        for name in ("login", "cgru_chave", "cusu_chave"):
            kwargs.setdefault(name, "")
        return cls(**kwargs)


@dataclasses.dataclass(frozen=True)
class JobSettings:
    """Scheduling settings for one provider job."""

    enabled: bool = True
    interval: float = 300.0


@dataclasses.dataclass(frozen=True)
class HubConfig:
    """Top-level service configuration.

    Parameters
    ----------
    sankhya : SankhyaConfig
        Record store connection.
    sync : SyncConfig
        Retry policy shared by every provider job.
    atualcargo, sitrax : provider config or None
        Provider credentials.  A job only runs when its provider is
        configured *and* enabled.
    jobs : dict
        Per-job scheduling settings keyed by job name.
    log_level : str
        Root log level name.
    """

    sankhya: SankhyaConfig
    sync: SyncConfig = dataclasses.field(default_factory=SyncConfig)
    atualcargo: AtualcargoConfig | None = None
    sitrax: SitraxConfig | None = None
    jobs: dict[str, JobSettings] = dataclasses.field(default_factory=dict)
    log_level: str = "INFO"

    def job_settings(self, name: str) -> JobSettings:
        return self.jobs.get(name, JobSettings())

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> HubConfig:
        """Create the full configuration from environment variables.

        Job intervals are read in minutes from ``JOB_INTERVAL_<NAME>``
        (default 5) and toggles from ``JOB_ENABLED_<NAME>``.
        """
        env = os.environ if env is None else env
        jobs: dict[str, JobSettings] = {}
        for name in ("atualcargo", "sitrax"):
            upper = name.upper()
            jobs[name] = JobSettings(
                enabled=_env_bool(env.get(f"JOB_ENABLED_{upper}"), True),
                interval=_env_float(env, f"JOB_INTERVAL_{upper}", 5.0) * 60.0,
            )

        return cls(
            sankhya=SankhyaConfig.from_env(env),
            sync=SyncConfig.from_env(env),
            atualcargo=AtualcargoConfig.from_env(env),
            sitrax=SitraxConfig.from_env(env),
            jobs=jobs,
            log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        )

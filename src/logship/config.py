"""Configuration objects for the telemetry shipper."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Mapping, Optional

import httpx

from .errors import ConfigurationError

DEFAULT_NETWORK_CHECK_INTERVAL_MS = 1000
DEFAULT_LOG_CHECK_INTERVAL_MS = 1000

_ALIASES = {
    "logPath": "log_path",
    "serverUrl": "server_url",
    "networkCheckInterval": "network_check_interval",
    "logCheckInterval": "log_check_interval",
    "requestTimeout": "request_timeout",
    "probeUrl": "probe_url",
}


def _check_url(name: str, value: str) -> None:
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"{name} is not a valid URL: {value!r} ({exc})") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(f"{name} must be an absolute http(s) URL, got {value!r}")


@dataclass(frozen=True)
class ShipperOptions:
    log_path: str
    server_url: str
    network_check_interval: float = DEFAULT_NETWORK_CHECK_INTERVAL_MS
    log_check_interval: float = DEFAULT_LOG_CHECK_INTERVAL_MS
    request_timeout: Optional[float] = None
    probe_url: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.log_path:
            raise ConfigurationError("log_path must be provided")
        if not self.server_url:
            raise ConfigurationError("server_url must be provided")
        _check_url("server_url", self.server_url)
        if self.probe_url is not None:
            _check_url("probe_url", self.probe_url)
        for name in ("network_check_interval", "log_check_interval"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(f"{name} must be a positive number of milliseconds, got {value!r}")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise ConfigurationError(f"request_timeout must be positive, got {self.request_timeout!r}")

    @property
    def network_check_seconds(self) -> float:
        return self.network_check_interval / 1000.0

    @property
    def log_check_seconds(self) -> float:
        return self.log_check_interval / 1000.0

    @property
    def effective_probe_url(self) -> str:
        return self.probe_url or self.server_url

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "ShipperOptions":
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        for key, value in values.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                raise ConfigurationError(f"unknown option {key!r}")
            if value is None and name not in ("log_path", "server_url"):
                continue
            kwargs[name] = value
        if not kwargs.get("log_path"):
            raise ConfigurationError("log_path must be provided")
        if not kwargs.get("server_url"):
            raise ConfigurationError("server_url must be provided")
        return cls(**kwargs)

    @classmethod
    def from_env(cls) -> "ShipperOptions":
        values: Dict[str, Any] = {
            "log_path": os.environ.get("LOGSHIP_LOG_PATH"),
            "server_url": os.environ.get("LOGSHIP_SERVER_URL"),
            "probe_url": os.environ.get("LOGSHIP_PROBE_URL") or None,
        }
        numeric = {
            "network_check_interval": "LOGSHIP_NETWORK_CHECK_INTERVAL_MS",
            "log_check_interval": "LOGSHIP_LOG_CHECK_INTERVAL_MS",
            "request_timeout": "LOGSHIP_REQUEST_TIMEOUT",
        }
        for name, env_key in numeric.items():
            raw = os.environ.get(env_key)
            if not raw:
                continue
            try:
                values[name] = float(raw)
            except ValueError as exc:
                raise ConfigurationError(f"{env_key} must be numeric, got {raw!r}") from exc
        return cls.from_mapping(values)


__all__ = [
    "ShipperOptions",
    "DEFAULT_NETWORK_CHECK_INTERVAL_MS",
    "DEFAULT_LOG_CHECK_INTERVAL_MS",
]

"""
Client configuration.

The core client never reads the process environment itself. Everything it
needs is carried by ``ClientConfig``; the helpers at the bottom of this module
build one from environment variables or a YAML file.

Environment variables:
- FORM3_BASE_URL (required)
- FORM3_TIMEOUT (seconds, optional)
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping
from urllib.parse import urlsplit, urlunsplit

import yaml

BASE_URL_ENV = "FORM3_BASE_URL"
TIMEOUT_ENV = "FORM3_TIMEOUT"

API_VERSION_SEGMENT = "v1/"
DEFAULT_TIMEOUT = 30.0


class Form3Error(Exception):
    """Base exception for all client errors."""

    pass


class ConfigurationError(Form3Error):
    """Raised when the client cannot be configured."""

    pass


def normalize_base_url(base_url: str) -> str:
    """Return ``base_url`` with a trailing ``v1/`` path segment.

    Query strings and fragments are dropped; they have no meaning for a base.
    """
    parts = urlsplit(base_url)
    path = parts.path
    if not path.endswith("/"):
        path += "/"
    if not path.endswith("/" + API_VERSION_SEGMENT):
        path += API_VERSION_SEGMENT
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a ``Form3Client``.

    - base_url: service root, e.g. ``http://localhost:8080``
    - timeout: per-request timeout in seconds handed to requests (None waits forever)
    - verify: TLS verification flag or path to a CA bundle; None leaves it to the session
    - pool_connections / pool_maxsize: HTTPAdapter connection pool sizing
    """

    base_url: str
    timeout: float | None = DEFAULT_TIMEOUT
    verify: bool | str | None = None
    pool_connections: int = 10
    pool_maxsize: int = 10

    def validate(self) -> list[str]:
        """Validate configuration.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.base_url:
            errors.append("base_url is required")
        else:
            parts = urlsplit(self.base_url)
            if parts.scheme not in ("http", "https"):
                errors.append(f"base_url must use http or https, got '{self.base_url}'")
            elif not parts.netloc:
                errors.append(f"base_url has no host: '{self.base_url}'")

        if self.timeout is not None and self.timeout <= 0:
            errors.append("timeout must be positive")
        if self.pool_connections < 1 or self.pool_maxsize < 1:
            errors.append("connection pool sizes must be >= 1")

        return errors

    def ensure_valid(self) -> None:
        """Raise ``ConfigurationError`` listing every validation problem."""
        errors = self.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

    @property
    def api_url(self) -> str:
        """Base URL normalized to end with the versioned path segment."""
        return normalize_base_url(self.base_url)


def _parse_timeout(raw: object) -> float | None:
    if raw is None or raw == "":
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid timeout value: {raw!r}") from e


def _parse_int(raw: object, name: str, default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid {name} value: {raw!r}") from e


def config_from_environment(environ: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a ``ClientConfig`` from environment variables.

    Raises:
        ConfigurationError: If FORM3_BASE_URL is not set
    """
    env = os.environ if environ is None else environ

    base_url = env.get(BASE_URL_ENV)
    if not base_url:
        raise ConfigurationError(f"Please set the base URL in the {BASE_URL_ENV} environment variable")

    config = ClientConfig(base_url=base_url, timeout=_parse_timeout(env.get(TIMEOUT_ENV)))
    config.ensure_valid()
    return config


def load_config(config_path: Path, environ: Mapping[str, str] | None = None) -> ClientConfig:
    """
    Load configuration from a YAML file.

    The file is expected to hold a ``form3`` section::

        form3:
          base_url: "http://localhost:8080"
          timeout: 10
          verify: true

    Environment variables override file values. A missing file is not an
    error as long as the environment provides the base URL.
    """
    env = os.environ if environ is None else environ

    if config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    else:
        data = {}

    section = data.get("form3", {}) or {}

    config = ClientConfig(
        base_url=env.get(BASE_URL_ENV, section.get("base_url", "")),
        timeout=_parse_timeout(env.get(TIMEOUT_ENV, section.get("timeout"))),
        verify=section.get("verify"),
        pool_connections=_parse_int(section.get("pool_connections"), "pool_connections", 10),
        pool_maxsize=_parse_int(section.get("pool_maxsize"), "pool_maxsize", 10),
    )
    config.ensure_valid()
    return config

"""Helpers for loading client settings and the packaged default headers."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

try:  # pragma: no cover - Python 3.11+ includes tomllib
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for older versions
    import tomli as tomllib  # type: ignore[no-redef]

DEFAULT_CONFIG_NAME = "httprequest.toml"
CONFIG_ENV_VAR = "HTTPREQUEST_CONFIG"
DEFAULT_HEADERS_PATH = Path(__file__).with_name("default_headers.json")

DEFAULT_PORT = 80
DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = "Comodojo-Dispatcher"
DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"
DEFAULT_HTTP_VERSION = "1.0"
DEFAULT_BUFFER_SIZE = 4096
DEFAULT_MAX_REDIRECTS = 20


@dataclass(slots=True)
class ClientSettings:
    timeout: int = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    content_type: str = DEFAULT_CONTENT_TYPE
    http_version: str = DEFAULT_HTTP_VERSION
    port: int = DEFAULT_PORT
    buffer_size: int = DEFAULT_BUFFER_SIZE
    prefer_native: bool = True
    follow_redirects: bool = True
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    headers: dict[str, str | None] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "timeout": self.timeout,
            "user_agent": self.user_agent,
            "content_type": self.content_type,
            "http_version": self.http_version,
            "port": self.port,
            "buffer_size": self.buffer_size,
            "prefer_native": self.prefer_native,
            "follow_redirects": self.follow_redirects,
            "max_redirects": self.max_redirects,
            "headers": dict(self.headers),
        }


def _config_path(explicit: str | os.PathLike[str] | None = None) -> tuple[Path, bool]:
    if explicit:
        return Path(explicit), True
    env_value = os.environ.get(CONFIG_ENV_VAR)
    if env_value:
        return Path(env_value), True
    return Path.cwd() / DEFAULT_CONFIG_NAME, False


def _load_toml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with path.open("rb") as fp:
        return tomllib.load(fp)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def load_settings(config_path: str | os.PathLike[str] | None = None) -> ClientSettings:
    """Load :class:`ClientSettings` from TOML.

    An explicitly named file (argument or ``HTTPREQUEST_CONFIG``) must exist;
    the implicit ``httprequest.toml`` in the working directory is optional.
    """

    path, explicit = _config_path(config_path)
    if not explicit and not path.exists():
        return ClientSettings()
    data = _load_toml(path)

    http_section = data.get("http", {})
    headers_section = data.get("headers", {})

    headers: dict[str, str | None] = {}
    for name, value in headers_section.items():
        # TOML has no null; an empty string marks a bare header
        headers[str(name)] = str(value) if value not in (None, "") else None

    return ClientSettings(
        timeout=int(http_section.get("timeout", DEFAULT_TIMEOUT)),
        user_agent=str(http_section.get("user_agent", DEFAULT_USER_AGENT)),
        content_type=str(http_section.get("content_type", DEFAULT_CONTENT_TYPE)),
        http_version=str(http_section.get("http_version", DEFAULT_HTTP_VERSION)),
        port=int(http_section.get("port", DEFAULT_PORT)),
        buffer_size=int(http_section.get("buffer_size", DEFAULT_BUFFER_SIZE)),
        prefer_native=_as_bool(http_section.get("prefer_native"), True),
        follow_redirects=_as_bool(http_section.get("follow_redirects"), True),
        max_redirects=int(http_section.get("max_redirects", DEFAULT_MAX_REDIRECTS)),
        headers=headers,
    )


def load_default_headers() -> dict[str, str]:
    path = DEFAULT_HEADERS_PATH
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as fp:
        data = json.load(fp)
    return {str(key): str(value) for key, value in data.items()}

from __future__ import annotations

from pathlib import Path

import pytest

from httprequest import HttpRequest
from httprequest.settings import ClientSettings, load_default_headers, load_settings
from httprequest.settings.loader import CONFIG_ENV_VAR

_CONFIG = """
[http]
timeout = 12
user_agent = "settings-agent/2.0"
http_version = "1.1"
buffer_size = 1024
prefer_native = false
max_redirects = 3

[headers]
Accept = "application/json"
X-Bare = ""
"""


def _write_config(root: Path) -> Path:
    path = root / "client.toml"
    path.write_text(_CONFIG, encoding="utf-8")
    return path


def test_load_explicit_file(tmp_path: Path) -> None:
    settings = load_settings(_write_config(tmp_path))

    assert settings.timeout == 12
    assert settings.user_agent == "settings-agent/2.0"
    assert settings.http_version == "1.1"
    assert settings.buffer_size == 1024
    assert settings.prefer_native is False
    assert settings.follow_redirects is True
    assert settings.max_redirects == 3
    assert settings.headers == {"Accept": "application/json", "X-Bare": None}


def test_env_var_selects_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(CONFIG_ENV_VAR, str(_write_config(tmp_path)))
    assert load_settings().timeout == 12


def test_missing_implicit_file_yields_defaults(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    assert load_settings() == ClientSettings()


def test_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_settings(tmp_path / "absent.toml")


def test_packaged_default_headers() -> None:
    headers = load_default_headers()
    assert headers["Accept-Encoding"] == "gzip, deflate"
    assert set(headers) == {"Accept", "Accept-Language", "Accept-Encoding", "Accept-Charset"}


def test_engine_uses_settings(tmp_path: Path) -> None:
    client = HttpRequest("http://example.test", settings=load_settings(_write_config(tmp_path)))

    assert client.config.user_agent == "settings-agent/2.0"
    assert client.config.timeout == 12
    assert client.config.headers.get("Accept") == "application/json"
    assert "X-Bare" in client.config.headers
    assert client.backend.value == "fallback"

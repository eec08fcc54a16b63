"""Request configuration: target, method, protocol, credentials and headers."""

from __future__ import annotations

import urllib.parse
from dataclasses import dataclass, field
from enum import Enum

from ..settings import DEFAULT_PORT, DEFAULT_TIMEOUT, ClientSettings
from ..utils.logging import get_logger
from .errors import ValidationError
from .headers import HeaderSet, default_headers

LOGGER = get_logger(__name__)

_TARGET_SCHEMES = ("http", "https")
_PROXY_SCHEMES = ("http",)
_SCHEME_PORTS = {"http": 80, "https": 443}


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class HttpVersion(str, Enum):
    V1_0 = "1.0"
    V1_1 = "1.1"
    NONE = "NONE"

    @property
    def wire(self) -> str:
        """Version written on the request line; ``NONE`` lets 1.0 through."""

        return "1.0" if self is HttpVersion.NONE else self.value


class AuthScheme(str, Enum):
    BASIC = "BASIC"
    DIGEST = "DIGEST"
    SPNEGO = "SPNEGO"
    NTLM = "NTLM"


@dataclass(slots=True, frozen=True)
class Credentials:
    username: str
    password: str | None = None

    def userpass(self) -> str:
        return f"{self.username}:{self.password or ''}"


@dataclass(slots=True, frozen=True)
class AuthSettings:
    scheme: AuthScheme
    credentials: Credentials


@dataclass(slots=True, frozen=True)
class ProxySettings:
    address: str
    credentials: Credentials | None = None

    def url(self, *, with_credentials: bool = False) -> str:
        if not with_credentials or self.credentials is None:
            return self.address
        parts = urllib.parse.urlsplit(self.address)
        user = urllib.parse.quote(self.credentials.username, safe="")
        password = urllib.parse.quote(self.credentials.password or "", safe="")
        netloc = f"{user}:{password}@{parts.netloc.rpartition('@')[2]}"
        return urllib.parse.urlunsplit(parts._replace(netloc=netloc))


def validate_url(address: object, *, schemes: tuple[str, ...], what: str) -> str:
    """Return ``address`` if it parses as an absolute URL with an allowed scheme."""

    if not isinstance(address, str) or not address.strip():
        raise ValidationError(f"Invalid {what}", details={"value": repr(address)})
    candidate = address.strip()
    try:
        parts = urllib.parse.urlsplit(candidate)
        # accessing .port validates the numeric part of the netloc
        parts.port
    except ValueError as exc:
        raise ValidationError(f"Invalid {what}", details={"value": candidate}) from exc
    if parts.scheme.lower() not in schemes or not parts.hostname:
        raise ValidationError(f"Invalid {what}", details={"value": candidate})
    return candidate


def _as_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("+-").isdigit():
        return int(value.strip())
    return None


def _reject_line_breaks(what: str, value: object) -> None:
    text = str(value)
    if "\r" in text or "\n" in text:
        raise ValidationError(f"{what} contains a line break", details={"value": text})


@dataclass(slots=True)
class RequestConfiguration:
    """Mutable request descriptor; every setter validates and returns ``self``."""

    settings: ClientSettings = field(default_factory=ClientSettings, repr=False)
    address: str | None = None
    port: int = DEFAULT_PORT
    method: HttpMethod = HttpMethod.GET
    http_version: HttpVersion = HttpVersion.V1_0
    timeout: int = DEFAULT_TIMEOUT
    user_agent: str = ""
    content_type: str = ""
    auth: AuthSettings | None = None
    proxy: ProxySettings | None = None
    headers: HeaderSet = field(default_factory=HeaderSet)
    buffer_size: int = 0
    follow_redirects: bool = True
    max_redirects: int = 0

    def __post_init__(self) -> None:
        self.reset()

    def reset(self) -> "RequestConfiguration":
        defaults = self.settings
        self.address = None
        self.port = defaults.port
        self.method = HttpMethod.GET
        self.http_version = _coerce_version(defaults.http_version)
        self.timeout = defaults.timeout
        self.user_agent = defaults.user_agent
        self.content_type = defaults.content_type
        self.auth = None
        self.proxy = None
        self.headers = default_headers(defaults.headers)
        self.buffer_size = defaults.buffer_size
        self.follow_redirects = defaults.follow_redirects
        self.max_redirects = defaults.max_redirects
        return self

    def set_address(self, address: object) -> "RequestConfiguration":
        self.address = validate_url(address, schemes=_TARGET_SCHEMES, what="remote address")
        return self

    def set_auth(
        self, scheme: object, user: str | None, password: str | None = None
    ) -> "RequestConfiguration":
        try:
            resolved = AuthScheme(str(scheme).upper())
        except ValueError as exc:
            raise ValidationError(
                "Unsupported authentication method", details={"scheme": str(scheme)}
            ) from exc
        if not user:
            raise ValidationError("User name cannot be empty")
        self.auth = AuthSettings(resolved, Credentials(str(user), password))
        return self

    def set_user_agent(self, user_agent: str | None) -> "RequestConfiguration":
        if not user_agent:
            raise ValidationError("User agent cannot be empty")
        _reject_line_breaks("User agent", user_agent)
        self.user_agent = str(user_agent)
        return self

    def set_timeout(self, seconds: object) -> "RequestConfiguration":
        value = _as_int(seconds)
        if value is None or value < 0:
            LOGGER.warning(
                "Invalid timeout %r, using default %s",
                seconds,
                self.settings.timeout,
                extra={"event": "config.timeout_invalid"},
            )
            value = self.settings.timeout
        self.timeout = value
        return self

    def set_http_version(self, version: object) -> "RequestConfiguration":
        self.http_version = _coerce_version(version)
        return self

    def set_content_type(self, content_type: str | None) -> "RequestConfiguration":
        if not content_type:
            raise ValidationError("Content type cannot be empty")
        _reject_line_breaks("Content type", content_type)
        self.content_type = str(content_type)
        return self

    def set_port(self, port: object) -> "RequestConfiguration":
        value = _as_int(port)
        if value is None or not 1 <= value <= 65535:
            LOGGER.warning(
                "Invalid port %r, using default %s",
                port,
                DEFAULT_PORT,
                extra={"event": "config.port_invalid"},
            )
            value = DEFAULT_PORT
        self.port = value
        return self

    def set_method(self, method: object) -> "RequestConfiguration":
        try:
            self.method = HttpMethod(str(method).upper())
        except ValueError as exc:
            raise ValidationError(
                "Unsupported HTTP method", details={"method": str(method)}
            ) from exc
        return self

    def set_proxy(
        self, address: object, user: str | None = None, password: str | None = None
    ) -> "RequestConfiguration":
        proxy_url = validate_url(address, schemes=_PROXY_SCHEMES, what="proxy address or URL")
        if user is None:
            if password is not None:
                raise ValidationError("Proxy password given without a user name")
            credentials = None
        elif not user:
            raise ValidationError("Proxy user name cannot be empty")
        else:
            credentials = Credentials(str(user), password)
        self.proxy = ProxySettings(proxy_url, credentials)
        return self

    def set_header(self, name: str, value: object | None = None) -> "RequestConfiguration":
        try:
            self.headers.set(name, value)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        return self

    def unset_header(self, name: str) -> "RequestConfiguration":
        self.headers.unset(name)
        return self

    def require_address(self) -> urllib.parse.SplitResult:
        if self.address is None:
            raise ValidationError("No remote address configured")
        return urllib.parse.urlsplit(self.address)

    def effective_port(self, url: str | None = None) -> int:
        """Configured port when changed from the default, else the URL's own port.

        An explicit ``url`` (a redirect target) always uses its own port.
        """

        parts = urllib.parse.urlsplit(url) if url else self.require_address()
        if url is None and self.port != DEFAULT_PORT:
            return self.port
        if parts.port is not None:
            return parts.port
        return _SCHEME_PORTS.get(parts.scheme.lower(), DEFAULT_PORT)

    def request_url(self, url: str | None = None) -> str:
        """Target URL with the effective port spelled out in the netloc."""

        parts = urllib.parse.urlsplit(url) if url else self.require_address()
        port = self.effective_port(url)
        host = parts.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        userinfo = parts.netloc.rpartition("@")[0]
        netloc = host if port == _SCHEME_PORTS.get(parts.scheme.lower()) else f"{host}:{port}"
        if userinfo:
            netloc = f"{userinfo}@{netloc}"
        return urllib.parse.urlunsplit(parts._replace(netloc=netloc, path=parts.path or "/"))


def _coerce_version(version: object) -> HttpVersion:
    if isinstance(version, HttpVersion):
        return version
    if isinstance(version, float):
        version = f"{version:.1f}"
    try:
        resolved = HttpVersion(str(version))
    except ValueError:
        return HttpVersion.NONE
    return resolved


__all__ = [
    "AuthScheme",
    "AuthSettings",
    "Credentials",
    "HttpMethod",
    "HttpVersion",
    "ProxySettings",
    "RequestConfiguration",
    "validate_url",
]

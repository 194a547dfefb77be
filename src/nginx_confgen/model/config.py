"""Config model dataclasses - The structured form of one nginx server.

A model is plain data. The generator renders it, the importer fills it,
the lint engine reads it and patches it. Invariants on enumerated fields,
ports and redirect codes are enforced in __post_init__ so that every
construction (including dataclasses.replace) is validated.
"""

import copy
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, get_args, get_origin

import yaml


class MatchType(str, Enum):
    """Location match modifier."""

    PREFIX = "prefix"  # location /path
    EXACT = "exact"  # location = /path
    REGEX = "regex"  # location ~ pattern
    REGEX_CASE_INSENSITIVE = "regex_case_insensitive"  # location ~* pattern


class LocationType(str, Enum):
    """What a location does with a request."""

    STATIC = "static"
    PROXY = "proxy"
    REDIRECT = "redirect"
    CUSTOM = "custom"


class CipherPreset(str, Enum):
    """Named TLS cipher profiles."""

    MODERN = "modern"
    INTERMEDIATE = "intermediate"
    LEGACY = "legacy"


class UpstreamMethod(str, Enum):
    """Load balancing method of an upstream pool."""

    ROUND_ROBIN = "round-robin"  # implicit nginx default
    LEAST_CONN = "least_conn"
    IP_HASH = "ip_hash"
    RANDOM = "random"


class BodySizeUnit(str, Enum):
    MB = "MB"
    GB = "GB"


class ErrorLogLevel(str, Enum):
    WARN = "warn"
    ERROR = "error"
    CRIT = "crit"


REDIRECT_CODES = (301, 302)

DEFAULT_GZIP_TYPES = [
    "text/plain",
    "text/css",
    "application/json",
    "application/javascript",
    "text/xml",
    "application/xml",
    "application/xml+rss",
    "text/javascript",
]

# Asset classes served by the static caching catch-all locations
ASSET_CLASSES = ("images", "css", "js", "fonts")


@dataclass
class Header:
    """A single proxy_set_header key/value pair."""

    key: str
    value: str


@dataclass
class SSLConfig:
    """TLS termination settings."""

    enabled: bool = False
    certificate_path: str = ""
    key_path: str = ""
    protocols: list[str] = field(default_factory=lambda: ["TLSv1.2", "TLSv1.3"])
    enable_hsts: bool = False
    enable_ocsp: bool = False
    http_redirect: bool = True  # emit a port 80 companion that redirects to https
    preset: CipherPreset = CipherPreset.INTERMEDIATE
    ciphers: str = ""  # explicit override, empty means "use preset"

    def __post_init__(self) -> None:
        self.preset = CipherPreset(self.preset)


@dataclass
class ReverseProxyConfig:
    """Server-wide reverse proxy settings."""

    enabled: bool = False
    backend_address: str = "http://127.0.0.1:3000"
    web_socket: bool = False
    real_ip_headers: bool = True  # Host, X-Real-IP, X-Forwarded-* headers
    custom_headers: list[Header] = field(default_factory=list)


@dataclass
class SecurityConfig:
    """Hardening settings."""

    rate_limiting: bool = False
    rate_limit: int = 10  # requests per second
    rate_burst: int = 20
    security_headers: bool = True
    hide_version: bool = True
    ip_allowlist: list[str] = field(default_factory=list)
    ip_denylist: list[str] = field(default_factory=list)
    basic_auth: bool = False
    basic_auth_realm: str = "Restricted"
    basic_auth_file: str = "/etc/nginx/.htpasswd"


@dataclass
class PerformanceConfig:
    """Compression, caching and connection settings."""

    gzip: bool = True
    gzip_types: list[str] = field(default_factory=lambda: list(DEFAULT_GZIP_TYPES))
    brotli: bool = False
    brotli_types: list[str] = field(default_factory=list)  # empty means "same as gzip"
    static_caching: bool = True
    cache_expiry: str = "30d"
    # Per asset class override of cache_expiry: images, css, js, fonts
    asset_cache_expiry: dict[str, str] = field(default_factory=dict)
    http2: bool = True
    client_max_body_size: int = 10
    client_max_body_unit: BodySizeUnit = BodySizeUnit.MB
    keepalive_timeout: int = 65  # seconds
    worker_connections: int = 1024  # advisory, main context only

    def __post_init__(self) -> None:
        self.client_max_body_unit = BodySizeUnit(self.client_max_body_unit)
        unknown = set(self.asset_cache_expiry) - set(ASSET_CLASSES)
        if unknown:
            raise ValueError(f"Unknown asset class: {', '.join(sorted(unknown))}")
        if self.client_max_body_size < 0:
            raise ValueError("client_max_body_size must not be negative")


@dataclass
class LoggingConfig:
    access_log: bool = True
    access_log_path: str = "/var/log/nginx/access.log"
    error_log: bool = True
    error_log_path: str = "/var/log/nginx/error.log"
    error_log_level: ErrorLogLevel = ErrorLogLevel.WARN

    def __post_init__(self) -> None:
        self.error_log_level = ErrorLogLevel(self.error_log_level)


@dataclass
class UpstreamServer:
    """One member of an upstream pool."""

    address: str  # 127.0.0.1:3000, unix:/run/app.sock
    weight: int = 1
    max_fails: int = 1
    fail_timeout: int = 10  # seconds

    def __post_init__(self) -> None:
        if self.weight < 1:
            raise ValueError("Upstream server weight must be at least 1")


@dataclass
class UpstreamConfig:
    enabled: bool = False
    name: str = "backend"
    method: UpstreamMethod = UpstreamMethod.ROUND_ROBIN
    servers: list[UpstreamServer] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.method = UpstreamMethod(self.method)


@dataclass
class LocationConfig:
    """A location block.

    Only the fields belonging to ``type`` are rendered; the rest are kept so
    switching the type back and forth in an editor loses nothing.
    """

    path: str  # /api, /static, \.php$
    match_type: MatchType = MatchType.PREFIX
    type: LocationType = LocationType.STATIC

    # Static
    root: str = ""
    try_files: str = ""
    index: str = ""
    autoindex: bool = False
    cache_expiry: str = ""

    # Proxy
    proxy_pass: str = ""
    proxy_web_socket: bool = False
    proxy_headers: list[Header] = field(default_factory=list)
    proxy_timeout: int = 0  # seconds, 0 keeps nginx defaults
    proxy_buffering: bool = True

    # Redirect
    redirect_url: str = ""
    redirect_code: int = 301

    # Custom
    custom_directives: str = ""

    def __post_init__(self) -> None:
        if not self.path:
            raise ValueError("Location path must not be empty")
        self.match_type = MatchType(self.match_type)
        self.type = LocationType(self.type)
        if self.redirect_code not in REDIRECT_CODES:
            raise ValueError(f"Redirect code must be 301 or 302, got {self.redirect_code}")


def create_default_location() -> LocationConfig:
    """The location every new model starts with."""
    return LocationConfig(path="/", try_files="$uri $uri/ =404")


@dataclass
class NginxConfig:
    """One nginx server and everything around it (upstream, rate limit zone)."""

    server_names: list[str] = field(default_factory=lambda: ["example.com"])
    listen_port: int = 80
    listen_ipv6: bool = True
    root_path: str = "/var/www/html"
    index_files: list[str] = field(default_factory=lambda: ["index.html", "index.htm"])
    ssl: SSLConfig = field(default_factory=SSLConfig)
    reverse_proxy: ReverseProxyConfig = field(default_factory=ReverseProxyConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    locations: list[LocationConfig] = field(default_factory=lambda: [create_default_location()])
    custom_directives: str = ""  # unmodelled server-level directives, raw text

    def __post_init__(self) -> None:
        if isinstance(self.listen_port, bool) or self.listen_port < 1:
            raise ValueError(f"listen_port must be a positive integer, got {self.listen_port}")


def create_default_config() -> NginxConfig:
    """Fresh model with the stock defaults."""
    return NginxConfig()


def create_default_upstream_server(address: str = "127.0.0.1:3000") -> UpstreamServer:
    return UpstreamServer(address=address)


# Dataclass-typed fields, declared once so conversion stays explicit.
_NESTED: dict[type, dict[str, type]] = {
    NginxConfig: {
        "ssl": SSLConfig,
        "reverse_proxy": ReverseProxyConfig,
        "security": SecurityConfig,
        "performance": PerformanceConfig,
        "logging": LoggingConfig,
        "upstream": UpstreamConfig,
    },
}
_NESTED_LISTS: dict[type, dict[str, type]] = {
    NginxConfig: {"locations": LocationConfig},
    ReverseProxyConfig: {"custom_headers": Header},
    UpstreamConfig: {"servers": UpstreamServer},
    LocationConfig: {"proxy_headers": Header},
}


def model_to_dict(obj: Any) -> Any:
    """Convert a model (or any part of it) into plain dicts, lists and scalars.

    Enums are rendered as their values, which makes the result safe for
    json.dumps and yaml.safe_dump and gives a canonical form for comparing
    two models structurally.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: model_to_dict(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, list):
        return [model_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {key: model_to_dict(value) for key, value in obj.items()}
    return obj


def _is_instance(value: Any, expected: Any) -> bool:
    """Shallow check of a plain value against a field annotation."""
    origin = get_origin(expected)
    if origin is list:
        (item,) = get_args(expected)
        return isinstance(value, list) and all(_is_instance(v, item) for v in value)
    if origin is dict:
        key, item = get_args(expected)
        return isinstance(value, dict) and all(
            _is_instance(k, key) and _is_instance(v, item) for k, v in value.items()
        )
    if isinstance(expected, type) and issubclass(expected, Enum):
        # Unknown members are rejected by __post_init__ with a better message
        return isinstance(value, str)
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


def _build(cls: type, data: Any, where: str = "") -> Any:
    where = where or cls.__name__
    if not isinstance(data, dict):
        raise ValueError(f"{where} must be a mapping, got {type(data).__name__}")
    nested = _NESTED.get(cls, {})
    nested_lists = _NESTED_LISTS.get(cls, {})
    kwargs: dict[str, Any] = {}
    for f in fields(cls):
        if f.name not in data:
            continue
        value = data[f.name]
        path = f"{where}.{f.name}"
        if f.name in nested:
            value = _build(nested[f.name], value, path)
        elif f.name in nested_lists:
            if not isinstance(value, list):
                raise ValueError(f"{path} must be a list, got {type(value).__name__}")
            item_cls = nested_lists[f.name]
            value = [_build(item_cls, item, f"{path}[{i}]") for i, item in enumerate(value)]
        elif not _is_instance(value, f.type):
            raise ValueError(f"{path} has the wrong type: {value!r}")
        elif isinstance(value, (list, dict)):
            value = copy.copy(value)
        kwargs[f.name] = value
    return cls(**kwargs)


def model_from_dict(data: dict[str, Any]) -> NginxConfig:
    """Build a model from the dict form produced by model_to_dict.

    Missing keys take their defaults, unknown keys are ignored.

    Raises:
        ValueError: If a value has the wrong type or breaks a model invariant.
    """
    return _build(NginxConfig, data)


class ModelFileError(ValueError):
    """A model file could not be read or does not describe a valid model."""

    def __init__(self, message: str, path: Path | None = None):
        self.message = message
        self.path = path
        super().__init__(message)


def load_model(path: Path) -> NginxConfig:
    """Load a model from a YAML file."""
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ModelFileError(f"Cannot read model file {path}: {e}", path=path) from e

    if not isinstance(data, dict):
        raise ModelFileError(f"Model file {path} must contain a mapping", path=path)

    try:
        return model_from_dict(data)
    except (TypeError, ValueError) as e:
        raise ModelFileError(f"Invalid model in {path}: {e}", path=path) from e


def dump_model(model: NginxConfig) -> str:
    """Serialize a model to YAML text."""
    return yaml.safe_dump(model_to_dict(model), sort_keys=False)

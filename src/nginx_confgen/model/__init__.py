"""Model package - Core data structures for nginx-confgen."""

from nginx_confgen.model.config import (
    ASSET_CLASSES,
    DEFAULT_GZIP_TYPES,
    BodySizeUnit,
    CipherPreset,
    ErrorLogLevel,
    Header,
    LocationConfig,
    LocationType,
    LoggingConfig,
    MatchType,
    ModelFileError,
    NginxConfig,
    PerformanceConfig,
    ReverseProxyConfig,
    SecurityConfig,
    SSLConfig,
    UpstreamConfig,
    UpstreamMethod,
    UpstreamServer,
    create_default_config,
    create_default_location,
    create_default_upstream_server,
    dump_model,
    load_model,
    model_from_dict,
    model_to_dict,
)
from nginx_confgen.model.finding import Category, LintReport, LintResult, Severity

__all__ = [
    "ASSET_CLASSES",
    "BodySizeUnit",
    "Category",
    "CipherPreset",
    "DEFAULT_GZIP_TYPES",
    "ErrorLogLevel",
    "Header",
    "LintReport",
    "LintResult",
    "LocationConfig",
    "LocationType",
    "LoggingConfig",
    "MatchType",
    "ModelFileError",
    "NginxConfig",
    "PerformanceConfig",
    "ReverseProxyConfig",
    "SecurityConfig",
    "Severity",
    "SSLConfig",
    "UpstreamConfig",
    "UpstreamMethod",
    "UpstreamServer",
    "create_default_config",
    "create_default_location",
    "create_default_upstream_server",
    "dump_model",
    "load_model",
    "model_from_dict",
    "model_to_dict",
]

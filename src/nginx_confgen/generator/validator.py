"""Structural checks on a model.

The validator is the small always-on safety net. It never blocks
generation, it only explains what the rendered file will get wrong.
The exhaustive audit with scoring lives in the lint engine.
"""

from dataclasses import dataclass

from nginx_confgen.model.config import LocationType, NginxConfig
from nginx_confgen.model.finding import Severity
from nginx_confgen.parser.ast import parse


@dataclass
class ValidationWarning:
    """One structural problem, addressed by the dotted path of the field."""

    field: str
    message: str
    severity: Severity = Severity.WARNING


def custom_text_errors(text: str) -> list[str]:
    """Syntax errors in a block of raw directives."""
    if not text.strip():
        return []
    return parse(text).errors


def validate(model: NginxConfig) -> list[ValidationWarning]:
    """Run every structural check. Pure, read-only."""
    warnings: list[ValidationWarning] = []

    def warn(field: str, message: str, severity: Severity = Severity.WARNING) -> None:
        warnings.append(ValidationWarning(field, message, severity))

    ssl = model.ssl
    if ssl.enabled:
        if not ssl.certificate_path.strip():
            warn(
                "ssl.certificate_path",
                "SSL is enabled but no certificate path is set. A placeholder path is used.",
                Severity.ERROR,
            )
        if not ssl.key_path.strip():
            warn(
                "ssl.key_path",
                "SSL is enabled but no key path is set. A placeholder path is used.",
                Severity.ERROR,
            )
        if ssl.http_redirect and model.listen_port == 80:
            warn(
                "ssl.http_redirect",
                "The HTTP to HTTPS redirect block and the main server both listen on port 80.",
            )

    if model.reverse_proxy.enabled and not model.reverse_proxy.backend_address.strip():
        warn(
            "reverse_proxy.backend_address",
            "Reverse proxy is enabled but no backend address is set.",
            Severity.ERROR,
        )

    if model.security.basic_auth and not ssl.enabled:
        warn(
            "security.basic_auth",
            "Basic authentication without SSL sends credentials in plain text.",
        )

    if model.security.rate_limiting and model.security.rate_limit <= 0:
        warn(
            "security.rate_limit",
            f"Rate limit must be positive, got {model.security.rate_limit}. 10r/s is used.",
        )

    upstream = model.upstream
    if upstream.enabled:
        if not upstream.servers:
            warn(
                "upstream.servers",
                "Upstream is enabled but has no servers. The upstream block is not generated.",
                Severity.ERROR,
            )
        for i, server in enumerate(upstream.servers):
            if server.weight < 1:
                warn(f"upstream.servers[{i}].weight", f"Weight of {server.address} must be at least 1.")

    seen: set[tuple[str, str]] = set()
    for i, location in enumerate(model.locations):
        key = (location.match_type.value, location.path)
        if key in seen:
            warn(f"locations[{i}].path", f'Duplicate location "{location.path}".', Severity.ERROR)
        seen.add(key)

        if location.type is LocationType.PROXY and not location.proxy_pass.strip():
            warn(f"locations[{i}].proxy_pass", f'Proxy location "{location.path}" has no target.')
        elif location.type is LocationType.REDIRECT and not location.redirect_url.strip():
            warn(
                f"locations[{i}].redirect_url",
                f'Redirect location "{location.path}" has no target URL.',
            )
        elif location.type is LocationType.CUSTOM:
            for error in custom_text_errors(location.custom_directives):
                warn(f"locations[{i}].custom_directives", f"Custom directives: {error}")

    for error in custom_text_errors(model.custom_directives):
        warn("custom_directives", f"Custom directives: {error}")

    return warnings

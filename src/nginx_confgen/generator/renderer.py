"""Config Generator - Renders a model into nginx configuration text.

Output is a pure function of the model: fixed section order, fixed
directive order, four space indentation, one blank line between sections.
Re-importing the output and rendering again gives the same text.
"""

import re
from dataclasses import dataclass, field

from nginx_confgen.generator import presets
from nginx_confgen.generator.locations import canonical_lines, directive, location_body
from nginx_confgen.generator.validator import validate
from nginx_confgen.model.config import (
    ASSET_CLASSES,
    DEFAULT_GZIP_TYPES,
    BodySizeUnit,
    LocationConfig,
    LocationType,
    MatchType,
    NginxConfig,
    UpstreamMethod,
)
from nginx_confgen.parser.ast import INDENT, quote_arg


@dataclass
class ConfigWarning:
    section: str
    message: str


@dataclass
class GenerationResult:
    text: str
    warnings: list[ConfigWarning] = field(default_factory=list)


_MATCH_PREFIX = {
    MatchType.PREFIX: "",
    MatchType.EXACT: "= ",
    MatchType.REGEX: "~ ",
    MatchType.REGEX_CASE_INSENSITIVE: "~* ",
}

# File extension (or alternation of extensions) after a literal dot in a regex
_EXTENSION_RE = re.compile(r"\\\.\(?(?:\?:)?([a-z0-9|]+)")


def banner(title: str) -> str:
    return f"# ─── {title} ───"


def indent(lines: list[str], level: int = 1) -> list[str]:
    """Indent non-empty lines."""
    pad = INDENT * level
    return [f"{pad}{line}" if line else line for line in lines]


def join_sections(sections: list[list[str]]) -> list[str]:
    """Flatten sections with one blank line between each."""
    lines: list[str] = []
    for section in sections:
        if lines:
            lines.append("")
        lines.extend(section)
    return lines


def double_quoted(value: str) -> str:
    """Double quote a value unless it holds a double quote itself."""
    return f'"{value}"' if '"' not in value else quote_arg(value)


class ConfigGenerator:
    """Renders one model."""

    def __init__(self, model: NginxConfig) -> None:
        self.model = model

    def render(self) -> str:
        sections = [
            self._upstream(),
            self._rate_limit_zone(),
            self._https_redirect(),
            self._main_server(),
        ]
        return "\n".join(join_sections([s for s in sections if s])) + "\n"

    # ─── File scope ─────────────────────────────────────────────────

    def _upstream(self) -> list[str]:
        upstream = self.model.upstream
        if not upstream.enabled or not upstream.servers:
            return []
        body: list[str] = []
        if upstream.method is not UpstreamMethod.ROUND_ROBIN:
            body.append(directive(upstream.method.value))
        for server in upstream.servers:
            args = [server.address]
            if server.weight != 1:
                args.append(f"weight={server.weight}")
            if server.max_fails != 1:
                args.append(f"max_fails={server.max_fails}")
            if server.fail_timeout != 10:
                args.append(f"fail_timeout={server.fail_timeout}s")
            body.append(directive("server", *args))
        return [
            banner("Load Balancing"),
            f"upstream {quote_arg(upstream.name or 'backend')} {{",
            *indent(body),
            "}",
        ]

    def _rate_limit_zone(self) -> list[str]:
        security = self.model.security
        if not security.rate_limiting:
            return []
        rate = security.rate_limit if security.rate_limit > 0 else presets.DEFAULT_RATE
        return [
            banner("Rate Limiting"),
            f"limit_req_zone $binary_remote_addr zone={presets.RATE_LIMIT_ZONE}:10m rate={rate}r/s;",
        ]

    def _https_redirect(self) -> list[str]:
        model = self.model
        if not (model.ssl.enabled and model.ssl.http_redirect):
            return []
        body = [directive("listen", "80")]
        if model.listen_ipv6:
            body.append(directive("listen", "[::]:80"))
        if model.server_names:
            body.append(directive("server_name", *model.server_names))
        body.append(directive("return", "301", presets.HTTPS_REDIRECT_TARGET))
        return [banner("HTTP to HTTPS Redirect"), "server {", *indent(body), "}"]

    # ─── Main server ────────────────────────────────────────────────

    def _main_server(self) -> list[str]:
        groups = [
            self._server_head(),
            self._ssl(),
            self._security(),
            self._performance(),
            self._logging(),
            self._locations(),
            self._static_caching(),
            self._custom_directives(),
        ]
        body = join_sections([g for g in groups if g])
        return [banner("Main Server Block"), "server {", *indent(body), "}"]

    def _server_head(self) -> list[str]:
        model = self.model
        flags = []
        if model.ssl.enabled:
            flags.append("ssl")
            if model.performance.http2:
                flags.append("http2")
        lines = [directive("listen", str(model.listen_port), *flags)]
        if model.listen_ipv6:
            lines.append(directive("listen", f"[::]:{model.listen_port}", *flags))
        if model.server_names:
            lines.append(directive("server_name", *model.server_names))
        if not model.reverse_proxy.enabled:
            if model.root_path:
                lines.append(directive("root", model.root_path))
            if model.index_files:
                lines.append(directive("index", *model.index_files))
        return lines

    def _ssl(self) -> list[str]:
        ssl = self.model.ssl
        if not ssl.enabled:
            return []
        preset = presets.get_preset(ssl.preset)
        ciphers = ssl.ciphers or preset.ciphers
        lines = [
            banner("SSL"),
            directive("ssl_certificate", ssl.certificate_path or presets.PLACEHOLDER_CERTIFICATE),
            directive("ssl_certificate_key", ssl.key_path or presets.PLACEHOLDER_KEY),
        ]
        if ssl.protocols:
            lines.append(directive("ssl_protocols", *ssl.protocols))
        if "'" in ciphers:
            lines.append(directive("ssl_ciphers", ciphers))
        else:
            lines.append(f"ssl_ciphers '{ciphers}';")
        lines += [
            directive("ssl_prefer_server_ciphers", "on" if preset.prefer_server_ciphers else "off"),
            directive("ssl_session_timeout", preset.session_timeout),
            directive("ssl_session_cache", presets.SSL_SESSION_CACHE),
            directive("ssl_session_tickets", "on" if preset.session_tickets else "off"),
        ]
        if ssl.enable_hsts:
            lines.append(
                f'add_header Strict-Transport-Security "{presets.HSTS_VALUE}" always;'
            )
        if ssl.enable_ocsp:
            lines.append(directive("ssl_stapling", "on"))
            lines.append(directive("ssl_stapling_verify", "on"))
        return lines

    def _security(self) -> list[str]:
        security = self.model.security
        lines: list[str] = []
        if security.hide_version:
            lines.append(directive("server_tokens", "off"))
        if security.security_headers:
            for name, value in presets.SECURITY_HEADERS.items():
                lines.append(f'add_header {name} "{value}" always;')
        for address in security.ip_allowlist:
            if address.strip():
                lines.append(directive("allow", address.strip()))
        for address in security.ip_denylist:
            if address.strip():
                lines.append(directive("deny", address.strip()))
        if security.basic_auth:
            lines.append(f"auth_basic {double_quoted(security.basic_auth_realm or 'Restricted')};")
            lines.append(
                directive("auth_basic_user_file", security.basic_auth_file or "/etc/nginx/.htpasswd")
            )
        if not lines:
            return []
        return [banner("Security"), *lines]

    def _performance(self) -> list[str]:
        performance = self.model.performance
        gzip_types = performance.gzip_types or DEFAULT_GZIP_TYPES
        lines: list[str] = []
        if performance.gzip:
            lines += [
                directive("gzip", "on"),
                directive("gzip_vary", "on"),
                directive("gzip_proxied", "any"),
                directive("gzip_comp_level", "6"),
                directive("gzip_types", *gzip_types),
            ]
        if performance.brotli:
            lines += [
                directive("brotli", "on"),
                directive("brotli_comp_level", "6"),
                directive("brotli_types", *(performance.brotli_types or gzip_types)),
            ]
        if performance.client_max_body_size > 0:
            suffix = "g" if performance.client_max_body_unit is BodySizeUnit.GB else "m"
            lines.append(directive("client_max_body_size", f"{performance.client_max_body_size}{suffix}"))
        if performance.keepalive_timeout > 0:
            lines.append(directive("keepalive_timeout", f"{performance.keepalive_timeout}s"))
        if not lines:
            return []
        return [banner("Performance"), *lines]

    def _logging(self) -> list[str]:
        logging_config = self.model.logging
        lines = [banner("Logging")]
        if logging_config.access_log:
            lines.append(
                directive("access_log", logging_config.access_log_path or "/var/log/nginx/access.log")
            )
        else:
            lines.append(directive("access_log", "off"))
        if logging_config.error_log:
            lines.append(
                directive(
                    "error_log",
                    logging_config.error_log_path or "/var/log/nginx/error.log",
                    logging_config.error_log_level.value,
                )
            )
        return lines

    # ─── Locations ──────────────────────────────────────────────────

    def effective_locations(self) -> list[LocationConfig]:
        """The model's locations, or the default one that stands in for none."""
        model = self.model
        if model.locations:
            return model.locations
        proxy = model.reverse_proxy
        if proxy.enabled:
            return [
                LocationConfig(
                    path="/",
                    type=LocationType.PROXY,
                    proxy_pass=proxy.backend_address,
                    proxy_web_socket=proxy.web_socket,
                    proxy_headers=list(proxy.custom_headers),
                )
            ]
        return [LocationConfig(path="/", root=model.root_path, try_files=presets.DEFAULT_TRY_FILES)]

    def _locations(self) -> list[str]:
        blocks = [self._location(location) for location in self.effective_locations()]
        return [banner("Location Blocks"), *join_sections(blocks)]

    def _location(self, location: LocationConfig) -> list[str]:
        head = f"location {_MATCH_PREFIX[location.match_type]}{quote_arg(location.path)} {{"
        body: list[str] = []
        security = self.model.security
        if security.rate_limiting:
            burst = security.rate_burst if security.rate_burst > 0 else presets.DEFAULT_BURST
            body.append(directive("limit_req", f"zone={presets.RATE_LIMIT_ZONE}", f"burst={burst}", "nodelay"))
        body += location_body(location, self.model.reverse_proxy.real_ip_headers)
        return [head, *indent(body), "}"]

    def _static_caching(self) -> list[str]:
        performance = self.model.performance
        if not performance.static_caching:
            return []

        # Extensions already claimed by the user's own regex locations
        claimed: set[str] = set()
        for location in self.model.locations:
            if location.match_type in (MatchType.REGEX, MatchType.REGEX_CASE_INSENSITIVE):
                for alternation in _EXTENSION_RE.findall(location.path.lower()):
                    claimed.update(alternation.split("|"))

        blocks = []
        for asset in ASSET_CLASSES:
            if presets.ASSET_EXTENSIONS[asset] & claimed:
                continue
            expiry = performance.asset_cache_expiry.get(asset) or performance.cache_expiry or "30d"
            blocks.append([
                f"location ~* {quote_arg(presets.ASSET_PATTERNS[asset])} {{",
                *indent([
                    directive("expires", *expiry.split()),
                    f'add_header Cache-Control "{presets.ASSET_CACHE_CONTROL}";',
                ]),
                "}",
            ])
        if not blocks:
            return []
        return [banner("Static File Caching"), *join_sections(blocks)]

    def _custom_directives(self) -> list[str]:
        text = self.model.custom_directives
        if not text.strip():
            return []
        return [banner("Custom Directives"), *canonical_lines(text)]


def generate(model: NginxConfig) -> GenerationResult:
    """Render a model and collect validation warnings alongside the text."""
    warnings = [ConfigWarning(section=w.field, message=w.message) for w in validate(model)]
    return GenerationResult(text=ConfigGenerator(model).render(), warnings=warnings)

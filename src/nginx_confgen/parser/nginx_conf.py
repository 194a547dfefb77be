"""Nginx configuration importer.

Maps a parsed tree back onto the config model. Import is best effort: it
never raises, it records a warning for everything it cannot place and fills
in as much of the model as it understands.

IMPORTANT DESIGN NOTES:
1. Only the first server block is imported. Server blocks that do nothing
   but redirect to https are recognized as the HTTP to HTTPS companion.
2. Settings are driven by presence. Import starts from a model with every
   optional feature switched off, so a directive missing from the text stays
   missing from the model.
3. Unknown server-level directives are kept verbatim while no location has
   been seen yet. After the first location they are dropped with a warning.
4. A location becomes static, proxy or redirect only if rendering it as
   that type gives back exactly the directives it holds. Anything else is
   kept as a custom location holding its canonical text, so nothing inside
   a location is lost or reordered.
"""

import logging
import math
import re
from dataclasses import dataclass, field

from nginx_confgen.generator import presets
from nginx_confgen.generator import locations
from nginx_confgen.model.config import (
    DEFAULT_GZIP_TYPES,
    BodySizeUnit,
    CipherPreset,
    ErrorLogLevel,
    Header,
    LocationConfig,
    LocationType,
    LoggingConfig,
    MatchType,
    NginxConfig,
    PerformanceConfig,
    SecurityConfig,
    SSLConfig,
    UpstreamConfig,
    UpstreamMethod,
    UpstreamServer,
    create_default_config,
    create_default_upstream_server,
)
from nginx_confgen.parser.ast import Node, ParseResult, build_ast, parse, serialize
from nginx_confgen.parser.tokenizer import tokenize

logger = logging.getLogger(__name__)

NO_SERVER_WARNING = 'No "server" block found in configuration.'

_MODIFIERS = {
    "=": MatchType.EXACT,
    "~": MatchType.REGEX,
    "~*": MatchType.REGEX_CASE_INSENSITIVE,
}

_STATIC_DIRECTIVES = frozenset({"root", "try_files", "index", "autoindex", "expires"})
_PROXY_DIRECTIVES = frozenset({
    "proxy_pass",
    "proxy_http_version",
    "proxy_set_header",
    "proxy_read_timeout",
    "proxy_send_timeout",
    "proxy_buffering",
})

# Derived from the preset or fixed by the generator, nothing to store
_ABSORBED = frozenset({
    "ssl_session_timeout",
    "ssl_session_cache",
    "ssl_session_tickets",
    "ssl_stapling_verify",
    "gzip_vary",
    "gzip_proxied",
    "gzip_comp_level",
    "brotli_comp_level",
})

# Always emitted by the generator, optional on import
_IMPLIED_LINES = {LocationType.PROXY: "proxy_http_version 1.1;"}

_SECURITY_HEADER_NAMES = frozenset(name.lower() for name in presets.SECURITY_HEADERS)

_BODY_SIZE_RE = re.compile(r"^(\d+)([kmg])?$", re.IGNORECASE)
_SECONDS_RE = re.compile(r"^(\d+)s?$")
_RATE_RE = re.compile(r"^rate=(\d+)r/s$")
_LIMIT_REQ_RE = re.compile(
    rf"^zone={presets.RATE_LIMIT_ZONE}(?: burst=(?P<burst>\d+))?(?: nodelay)?$"
)


@dataclass
class ImportResult:
    """Outcome of an import.

    Syntax errors come from the tree builder and are kept apart from the
    semantic warnings produced while mapping.
    """

    model: NginxConfig
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def _blank_model() -> NginxConfig:
    """A model with every presence-driven setting switched off."""
    return NginxConfig(
        server_names=[],
        listen_ipv6=False,
        root_path="",
        index_files=[],
        ssl=SSLConfig(protocols=[], http_redirect=False),
        security=SecurityConfig(security_headers=False, hide_version=False),
        performance=PerformanceConfig(
            gzip=False,
            gzip_types=[],
            static_caching=False,
            http2=False,
            client_max_body_size=0,
            keepalive_timeout=0,
        ),
        logging=LoggingConfig(access_log=False, error_log=False),
        locations=[],
    )


def _arg(node: Node, index: int = 0) -> str:
    return node.args[index] if len(node.args) > index else ""


def _seconds(value: str) -> int | None:
    match = _SECONDS_RE.match(value)
    return int(match.group(1)) if match else None


def _has_real_ip_headers(headers: list[Header]) -> bool:
    """Check that the headers open with the forwarding set, in generator order."""
    count = len(presets.REAL_IP_HEADERS)
    return [(h.key, h.value) for h in headers[:count]] == presets.REAL_IP_HEADERS


def _reproduces(location: LocationConfig, children: list[Node]) -> bool:
    """Check that rendering a typed location gives back ``children``.

    A line the generator adds to every location of the type may be missing
    from hand written text. Everything else must match, in order.
    """
    rendered = parse("\n".join(locations.location_body(location)))
    if rendered.errors:
        return False
    expected = serialize(rendered.children)
    actual = serialize(children)
    implied = _IMPLIED_LINES.get(location.type)
    if implied is not None and implied not in actual:
        expected = [line for line in expected if line != implied]
    return expected == actual


class ConfigImporter:
    """Maps one parsed tree onto a fresh model.

    An importer instance is single use: create one per tree.
    """

    def __init__(self) -> None:
        self.model = _blank_model()
        self.warnings: list[str] = []
        self._bucket: list[Node] = []
        self._location_seen = False
        self._server_root_seen = False
        self._ipv4_listen_seen = False
        self._prefer_server_ciphers: bool | None = None
        self._brotli_types: list[str] | None = None
        self._caching: dict[str, str] = {}
        self._proxy_locations: list[LocationConfig] = []

    def run(self, tree: ParseResult) -> ImportResult:
        scope = self._file_scope(tree.children)
        servers = [node for node in scope if node.is_block and node.name == "server"]
        upstreams = [node for node in scope if node.is_block and node.name == "upstream"]
        logger.debug("Found %d server blocks and %d upstream blocks", len(servers), len(upstreams))

        if not servers:
            return ImportResult(
                model=create_default_config(),
                warnings=[NO_SERVER_WARNING],
                errors=list(tree.errors),
            )

        for node in scope:
            if node.is_block and node.name in ("server", "upstream"):
                continue
            if not node.is_block and node.name == "limit_req_zone":
                self._limit_req_zone(node)
            else:
                kind = "block" if node.is_block else "directive"
                self.warnings.append(f'Ignored top-level {kind} "{node.name}"')

        redirects = [self._is_https_redirect(server) for server in servers]
        candidates = [server for server, redirect in zip(servers, redirects) if not redirect]
        if candidates and len(candidates) < len(servers):
            self.model.ssl.http_redirect = True
        if not candidates:
            candidates = servers
        if len(candidates) > 1:
            self.warnings.append(f"Found {len(candidates)} server blocks. Imported the first one.")

        self._server(candidates[0])

        if upstreams:
            if len(upstreams) > 1:
                self.warnings.append(
                    f"Found {len(upstreams)} upstream blocks. Imported the first one."
                )
            self._upstream(upstreams[0])

        self._finish()
        logger.debug("Imported %d locations", len(self.model.locations))
        return ImportResult(model=self.model, warnings=self.warnings, errors=list(tree.errors))

    def _file_scope(self, nodes: list[Node]) -> list[Node]:
        """Top-level nodes, looking through any http { } wrapper."""
        scope: list[Node] = []
        for node in nodes:
            if node.is_block and node.name == "http":
                scope.extend(self._file_scope(node.children))
            else:
                scope.append(node)
        return scope

    @staticmethod
    def _is_https_redirect(server: Node) -> bool:
        """Check for a server block that only sends plain HTTP to https."""
        if any(child.is_block for child in server.children):
            return False
        returns = [child for child in server.children if child.name == "return"]
        if len(returns) != 1:
            return False
        if any(child.name == "listen" and "ssl" in child.args for child in server.children):
            return False
        args = returns[0].args
        return len(args) == 2 and args[0] in ("301", "302") and args[1].startswith("https://")

    def _limit_req_zone(self, node: Node) -> None:
        security = self.model.security
        security.rate_limiting = True
        for arg in node.args:
            match = _RATE_RE.match(arg)
            if match:
                security.rate_limit = int(match.group(1))
                return
        self.warnings.append(
            f"Unsupported rate in limit_req_zone at line {node.line}, using {security.rate_limit}r/s"
        )

    # ─── Server block ───────────────────────────────────────────────

    def _server(self, server: Node) -> None:
        for node in server.children:
            if node.is_block and node.name == "location":
                self._location_seen = True
                self._location(node)
            elif node.is_block:
                self._unmodelled(node)
            elif node.name in _ABSORBED:
                continue
            else:
                handler = self._SERVER_HANDLERS.get(node.name)
                if handler is None:
                    self._unmodelled(node)
                else:
                    handler(self, node)

    def _unmodelled(self, node: Node) -> None:
        if not self._location_seen:
            self._bucket.append(node)
        elif node.is_block:
            self.warnings.append(f'Ignored block "{node.name}"')
        else:
            self.warnings.append(f'Ignored directive "{node.name}"')

    def _listen(self, node: Node) -> None:
        address = _arg(node)
        ipv6 = address.startswith("[")
        port_text = address.rsplit(":", 1)[-1]
        if port_text.isdecimal() and int(port_text) > 0 and not (ipv6 and self._ipv4_listen_seen):
            self.model.listen_port = int(port_text)
        if ipv6:
            self.model.listen_ipv6 = True
        else:
            self._ipv4_listen_seen = True
        flags = node.args[1:]
        if "ssl" in flags:
            self.model.ssl.enabled = True
        if "http2" in flags:
            self.model.performance.http2 = True

    def _server_name(self, node: Node) -> None:
        self.model.server_names.extend(node.args)

    def _root(self, node: Node) -> None:
        self.model.root_path = _arg(node)
        self._server_root_seen = True

    def _index(self, node: Node) -> None:
        self.model.index_files = list(node.args)
        self._server_root_seen = True

    def _ssl_certificate(self, node: Node) -> None:
        self.model.ssl.certificate_path = _arg(node)
        self.model.ssl.enabled = True

    def _ssl_certificate_key(self, node: Node) -> None:
        self.model.ssl.key_path = _arg(node)

    def _ssl_protocols(self, node: Node) -> None:
        self.model.ssl.protocols = list(node.args)

    def _ssl_ciphers(self, node: Node) -> None:
        ciphers = _arg(node)
        exact = presets.match_preset(ciphers)
        if exact is not None:
            self.model.ssl.preset = exact
            self.model.ssl.ciphers = ""
        else:
            self.model.ssl.preset = presets.infer_preset(ciphers)
            self.model.ssl.ciphers = ciphers

    def _ssl_prefer_server_ciphers(self, node: Node) -> None:
        self._prefer_server_ciphers = _arg(node) == "on"

    def _ssl_stapling(self, node: Node) -> None:
        self.model.ssl.enable_ocsp = _arg(node) == "on"

    def _server_tokens(self, node: Node) -> None:
        self.model.security.hide_version = _arg(node) == "off"

    def _add_header(self, node: Node) -> None:
        name = _arg(node).lower()
        if name == "strict-transport-security":
            self.model.ssl.enable_hsts = True
        elif name in _SECURITY_HEADER_NAMES:
            self.model.security.security_headers = True
        else:
            self._unmodelled(node)

    def _allow(self, node: Node) -> None:
        self.model.security.ip_allowlist.append(_arg(node))

    def _deny(self, node: Node) -> None:
        self.model.security.ip_denylist.append(_arg(node))

    def _auth_basic(self, node: Node) -> None:
        realm = _arg(node)
        if realm == "off":
            self.model.security.basic_auth = False
        else:
            self.model.security.basic_auth = True
            self.model.security.basic_auth_realm = realm

    def _auth_basic_user_file(self, node: Node) -> None:
        self.model.security.basic_auth_file = _arg(node)

    def _gzip(self, node: Node) -> None:
        self.model.performance.gzip = _arg(node) == "on"

    def _gzip_types(self, node: Node) -> None:
        self.model.performance.gzip_types = list(node.args)

    def _brotli(self, node: Node) -> None:
        self.model.performance.brotli = _arg(node) == "on"

    def _brotli_types_directive(self, node: Node) -> None:
        self._brotli_types = list(node.args)

    def _http2(self, node: Node) -> None:
        self.model.performance.http2 = _arg(node) == "on"

    def _client_max_body_size(self, node: Node) -> None:
        value = _arg(node)
        match = _BODY_SIZE_RE.match(value)
        if not match:
            self.warnings.append(f'Unsupported client_max_body_size "{value}" at line {node.line}')
            return
        size = int(match.group(1))
        unit = (match.group(2) or "m").lower()
        performance = self.model.performance
        if unit == "k":
            size = math.ceil(size / 1024)
            self.warnings.append(f"client_max_body_size {value} rounded up to {size}MB")
        performance.client_max_body_size = size
        performance.client_max_body_unit = BodySizeUnit.GB if unit == "g" else BodySizeUnit.MB

    def _keepalive_timeout(self, node: Node) -> None:
        seconds = _seconds(_arg(node))
        if seconds is None:
            self.warnings.append(f'Unsupported keepalive_timeout "{_arg(node)}" at line {node.line}')
            return
        self.model.performance.keepalive_timeout = seconds

    def _access_log(self, node: Node) -> None:
        path = _arg(node)
        if path == "off":
            self.model.logging.access_log = False
        else:
            self.model.logging.access_log = True
            self.model.logging.access_log_path = path

    def _error_log(self, node: Node) -> None:
        logging_config = self.model.logging
        logging_config.error_log = True
        logging_config.error_log_path = _arg(node)
        level = _arg(node, 1)
        try:
            logging_config.error_log_level = ErrorLogLevel(level or "error")
        except ValueError:
            self.warnings.append(f'Unsupported error_log level "{level}", using "error"')
            logging_config.error_log_level = ErrorLogLevel.ERROR

    _SERVER_HANDLERS = {
        "listen": _listen,
        "server_name": _server_name,
        "root": _root,
        "index": _index,
        "ssl_certificate": _ssl_certificate,
        "ssl_certificate_key": _ssl_certificate_key,
        "ssl_protocols": _ssl_protocols,
        "ssl_ciphers": _ssl_ciphers,
        "ssl_prefer_server_ciphers": _ssl_prefer_server_ciphers,
        "ssl_stapling": _ssl_stapling,
        "server_tokens": _server_tokens,
        "add_header": _add_header,
        "allow": _allow,
        "deny": _deny,
        "auth_basic": _auth_basic,
        "auth_basic_user_file": _auth_basic_user_file,
        "gzip": _gzip,
        "gzip_types": _gzip_types,
        "brotli": _brotli,
        "brotli_types": _brotli_types_directive,
        "http2": _http2,
        "client_max_body_size": _client_max_body_size,
        "keepalive_timeout": _keepalive_timeout,
        "access_log": _access_log,
        "error_log": _error_log,
    }

    # ─── Locations ──────────────────────────────────────────────────

    def _location(self, node: Node) -> None:
        match_type, path = self._location_target(node)
        if not path:
            self.warnings.append(f"Skipped location without a path at line {node.line}")
            return

        children = self._strip_rate_limit(node.children)
        if match_type is MatchType.REGEX_CASE_INSENSITIVE and self._caching_stanza(path, children):
            return

        location = (
            self._redirect_location(path, match_type, children)
            or self._proxy_location(path, match_type, children)
            or self._static_location(path, match_type, children)
        )
        if location is not None and not _reproduces(location, children):
            location = None
        if location is None:
            location = LocationConfig(
                path=path,
                match_type=match_type,
                type=LocationType.CUSTOM,
                custom_directives="\n".join(serialize(children)),
            )
        elif location.type is LocationType.PROXY:
            self._proxy_locations.append(location)
        self.model.locations.append(location)

    def _location_target(self, node: Node) -> tuple[MatchType, str]:
        modifier = _arg(node)
        if modifier in _MODIFIERS:
            return _MODIFIERS[modifier], _arg(node, 1)
        if modifier == "^~":
            self.warnings.append(
                f'Location modifier "^~" at line {node.line} imported as a prefix match'
            )
            return MatchType.PREFIX, _arg(node, 1)
        return MatchType.PREFIX, modifier

    def _strip_rate_limit(self, children: list[Node]) -> list[Node]:
        """Drop the limit_req line the generator puts first in every location."""
        if not self.model.security.rate_limiting or not children:
            return list(children)
        first = children[0]
        if first.is_block or first.name != "limit_req":
            return list(children)
        match = _LIMIT_REQ_RE.match(" ".join(first.args))
        if not match:
            return list(children)
        if match.group("burst"):
            self.model.security.rate_burst = int(match.group("burst"))
        return list(children[1:])

    def _caching_stanza(self, path: str, children: list[Node]) -> bool:
        asset = next(
            (name for name, pattern in presets.ASSET_PATTERNS.items() if pattern == path), None
        )
        if asset is None or asset in self._caching or len(children) != 2:
            return False
        expires, header = children
        if expires.is_block or expires.name != "expires" or not expires.args:
            return False
        if header.is_block or header.name != "add_header":
            return False
        if header.args != ["Cache-Control", presets.ASSET_CACHE_CONTROL]:
            return False
        self._caching[asset] = " ".join(expires.args)
        return True

    @staticmethod
    def _redirect_location(
        path: str, match_type: MatchType, children: list[Node]
    ) -> LocationConfig | None:
        if len(children) != 1:
            return None
        node = children[0]
        if node.is_block or node.name != "return" or not 1 <= len(node.args) <= 2:
            return None
        if node.args[0] not in ("301", "302"):
            return None
        return LocationConfig(
            path=path,
            match_type=match_type,
            type=LocationType.REDIRECT,
            redirect_code=int(node.args[0]),
            redirect_url=_arg(node, 1),
        )

    def _proxy_location(
        self, path: str, match_type: MatchType, children: list[Node]
    ) -> LocationConfig | None:
        names = [node.name for node in children]
        if "proxy_pass" not in names:
            return None
        if any(node.is_block or node.name not in _PROXY_DIRECTIVES for node in children):
            return None
        if any(names.count(name) > 1 for name in _PROXY_DIRECTIVES - {"proxy_set_header"}):
            return None

        location = LocationConfig(path=path, match_type=match_type, type=LocationType.PROXY)
        headers: list[Header] = []
        for node in children:
            if node.name == "proxy_pass":
                if len(node.args) > 1:
                    return None
                location.proxy_pass = _arg(node)
            elif node.name == "proxy_set_header":
                if len(node.args) != 2:
                    return None
                headers.append(Header(key=node.args[0], value=node.args[1]))
            elif node.name == "proxy_read_timeout":
                seconds = _seconds(_arg(node))
                if not seconds:
                    return None
                location.proxy_timeout = seconds
            elif node.name == "proxy_send_timeout":
                if not _seconds(_arg(node)):
                    return None
            elif node.name == "proxy_buffering":
                if _arg(node) not in ("on", "off"):
                    return None
                location.proxy_buffering = _arg(node) == "on"

        if [(h.key, h.value) for h in headers[:2]] == presets.WEBSOCKET_HEADERS:
            location.proxy_web_socket = True
            headers = headers[2:]
        location.proxy_headers = headers
        return location

    @staticmethod
    def _static_location(
        path: str, match_type: MatchType, children: list[Node]
    ) -> LocationConfig | None:
        names = [node.name for node in children]
        if any(node.is_block or node.name not in _STATIC_DIRECTIVES for node in children):
            return None
        if len(set(names)) != len(names):
            return None

        location = LocationConfig(path=path, match_type=match_type)
        for node in children:
            if not node.args:
                return None
            value = " ".join(node.args)
            if node.name == "root":
                location.root = value
            elif node.name == "try_files":
                location.try_files = value
            elif node.name == "index":
                location.index = value
            elif node.name == "autoindex":
                if value not in ("on", "off"):
                    return None
                location.autoindex = value == "on"
            elif node.name == "expires":
                location.cache_expiry = value
        return location

    # ─── Upstream ───────────────────────────────────────────────────

    def _upstream(self, node: Node) -> None:
        name = _arg(node)
        if not name:
            self.warnings.append(f"Ignored upstream block without a name at line {node.line}")
            return

        upstream = UpstreamConfig(enabled=True, name=name)
        for child in node.children:
            if child.is_block:
                self.warnings.append(f'Ignored block "{child.name}" inside upstream')
            elif child.name == "server" and child.args:
                upstream.servers.append(self._upstream_server(child))
            elif child.name in ("least_conn", "ip_hash", "random"):
                upstream.method = UpstreamMethod(child.name)
            else:
                self.warnings.append(f'Ignored upstream directive "{child.name}"')
        self.model.upstream = upstream

    def _upstream_server(self, node: Node) -> UpstreamServer:
        server = create_default_upstream_server(node.args[0])
        for param in node.args[1:]:
            key, _, value = param.partition("=")
            if key == "weight":
                server.weight = int(value) if value.isdecimal() and int(value) >= 1 else 1
            elif key == "max_fails":
                server.max_fails = int(value) if value.isdecimal() else 1
            elif key == "fail_timeout":
                seconds = _seconds(value)
                server.fail_timeout = seconds if seconds is not None else 10
            else:
                self.warnings.append(f'Ignored upstream server parameter "{param}"')
        return server

    # ─── Cross-cutting fields ───────────────────────────────────────

    def _finish(self) -> None:
        model = self.model
        ssl = model.ssl
        performance = model.performance

        prefer = self._prefer_server_ciphers
        if prefer is not None and presets.get_preset(ssl.preset).prefer_server_ciphers != prefer:
            # Only the legacy profile prefers server ciphers; keep the literal list
            if not ssl.ciphers:
                ssl.ciphers = presets.get_preset(ssl.preset).ciphers
            ssl.preset = CipherPreset.LEGACY if prefer else CipherPreset.INTERMEDIATE

        if self._brotli_types is not None:
            effective = performance.gzip_types or DEFAULT_GZIP_TYPES
            performance.brotli_types = [] if self._brotli_types == effective else self._brotli_types

        if self._caching:
            performance.static_caching = True
            base = self._caching.get("images") or next(iter(self._caching.values()))
            performance.cache_expiry = base
            performance.asset_cache_expiry = {
                asset: expiry for asset, expiry in self._caching.items() if expiry != base
            }

        proxies = self._proxy_locations
        if proxies:
            real_ip = all(_has_real_ip_headers(loc.proxy_headers) for loc in proxies)
            model.reverse_proxy.real_ip_headers = real_ip
            if real_ip:
                for location in proxies:
                    location.proxy_headers = location.proxy_headers[len(presets.REAL_IP_HEADERS):]
            if not self._server_root_seen:
                model.reverse_proxy.enabled = True
                model.reverse_proxy.backend_address = proxies[0].proxy_pass
                model.reverse_proxy.web_socket = proxies[0].proxy_web_socket

        if self._bucket:
            model.custom_directives = "\n".join(serialize(self._bucket))


def import_config(tree: ParseResult) -> ImportResult:
    """Map a parsed tree onto a model. Never raises."""
    return ConfigImporter().run(tree)


def parse_config(text: str) -> ImportResult:
    """Tokenize, build and import configuration text in one go."""
    return import_config(build_ast(tokenize(text)))

"""Lint rule catalog.

Rules are plain records in a fixed, ordered table. A rule's ``test`` returns
True when the rule is violated. An optional ``fix`` returns a patch (nested
dict) that resolves the violation when merged into the model.

Rule ids are stable slugs. Documentation and saved ignore lists refer to
rules by id, so never rename one.
"""

from dataclasses import dataclass, replace
from typing import Callable

from nginx_confgen.engine.merge import Patch
from nginx_confgen.model.config import BodySizeUnit, LocationType, NginxConfig
from nginx_confgen.model.finding import Category, Severity

OUTDATED_PROTOCOLS = ("TLSv1", "TLSv1.1")
SECURE_PROTOCOLS = ["TLSv1.2", "TLSv1.3"]


@dataclass(frozen=True)
class LintRule:
    id: str
    title: str
    message: str
    category: Category
    severity: Severity
    test: Callable[[NginxConfig], bool]
    fix: Callable[[NginxConfig], Patch] | None = None
    docs_url: str | None = None

    @property
    def fixable(self) -> bool:
        return self.fix is not None


def _docs(rule_id: str) -> str:
    return f"/docs/lint/{rule_id}"


def _is_local_backend(address: str) -> bool:
    return "localhost" in address or "127.0.0.1" in address


def _body_size_mb(c: NginxConfig) -> int:
    size = c.performance.client_max_body_size
    return size * 1024 if c.performance.client_max_body_unit is BodySizeUnit.GB else size


def _secure_protocols(c: NginxConfig) -> Patch:
    kept = [p for p in c.ssl.protocols if p not in OUTDATED_PROTOCOLS]
    return {"ssl": {"protocols": kept or list(SECURE_PROTOCOLS)}}


def _fill_proxy_targets(c: NginxConfig) -> Patch:
    backend = c.reverse_proxy.backend_address.strip()
    locations = [
        replace(loc, proxy_pass=backend)
        if loc.type is LocationType.PROXY and not loc.proxy_pass.strip()
        else loc
        for loc in c.locations
    ]
    return {"locations": locations}


RULES: list[LintRule] = [
    # Security
    LintRule(
        id="security-server-tokens",
        title="Server Tokens Visible",
        message=(
            "Nginx version is visible in error pages and headers. "
            "Disable server_tokens to obscure version info."
        ),
        category=Category.SECURITY,
        severity=Severity.WARNING,
        test=lambda c: not c.security.hide_version,
        fix=lambda c: {"security": {"hide_version": True}},
        docs_url=_docs("security-server-tokens"),
    ),
    LintRule(
        id="security-headers-missing",
        title="Missing Security Headers",
        message=(
            "Standard security headers (X-Frame-Options, X-Content-Type-Options, etc.) "
            "are disabled."
        ),
        category=Category.SECURITY,
        severity=Severity.ERROR,
        test=lambda c: not c.security.security_headers,
        fix=lambda c: {"security": {"security_headers": True}},
        docs_url=_docs("security-headers-missing"),
    ),
    LintRule(
        id="security-ssl-missing",
        title="SSL/TLS Disabled",
        message="Site is served over HTTP. Enable SSL/TLS for encryption.",
        category=Category.SECURITY,
        severity=Severity.ERROR,
        test=lambda c: not c.ssl.enabled and c.listen_port == 80,
        docs_url=_docs("security-ssl-missing"),
    ),
    LintRule(
        id="security-ssl-enabled-missing-certs",
        title="SSL Enabled Without Certificate Paths",
        message=(
            "SSL/TLS is enabled but certificate or key path is missing. "
            "Nginx will fail to start with an invalid TLS server block."
        ),
        category=Category.SECURITY,
        severity=Severity.ERROR,
        test=lambda c: c.ssl.enabled
        and (not c.ssl.certificate_path.strip() or not c.ssl.key_path.strip()),
        docs_url=_docs("security-ssl-enabled-missing-certs"),
    ),
    LintRule(
        id="bp-http-redirect-without-ssl",
        title="HTTP Redirect Without SSL",
        message=(
            "HTTP-to-HTTPS redirect is configured but SSL is not enabled. "
            "The redirect will fail or cause a loop."
        ),
        category=Category.BEST_PRACTICE,
        severity=Severity.ERROR,
        test=lambda c: c.ssl.http_redirect and not c.ssl.enabled,
        fix=lambda c: {"ssl": {"http_redirect": False}},
        docs_url=_docs("bp-http-redirect-without-ssl"),
    ),
    LintRule(
        id="security-upstream-needs-ssl",
        title="Upstream Traffic Unencrypted",
        message=(
            "Proxying to a remote backend without HTTPS. Consider using SSL between "
            "Nginx and the upstream if traffic crosses public networks."
        ),
        category=Category.SECURITY,
        severity=Severity.INFO,
        test=lambda c: c.reverse_proxy.enabled
        and c.reverse_proxy.backend_address.startswith("http://")
        and not _is_local_backend(c.reverse_proxy.backend_address),
        docs_url=_docs("security-upstream-needs-ssl"),
    ),
    LintRule(
        id="correctness-proxy-enabled-without-backend",
        title="Reverse Proxy Enabled Without Backend",
        message=(
            "Reverse proxy mode is enabled, but backend address is empty. "
            "Requests will fail because there is no upstream destination."
        ),
        category=Category.CORRECTNESS,
        severity=Severity.ERROR,
        test=lambda c: c.reverse_proxy.enabled and not c.reverse_proxy.backend_address.strip(),
        fix=lambda c: {"reverse_proxy": {"enabled": False}},
        docs_url=_docs("correctness-proxy-enabled-without-backend"),
    ),
    # Performance
    LintRule(
        id="perf-gzip-disabled",
        title="Gzip Compression Disabled",
        message=(
            "Gzip compression is disabled. Enable it to reduce bandwidth usage "
            "and improve load times."
        ),
        category=Category.PERFORMANCE,
        severity=Severity.WARNING,
        test=lambda c: not c.performance.gzip,
        fix=lambda c: {"performance": {"gzip": True}},
        docs_url=_docs("perf-gzip-disabled"),
    ),
    LintRule(
        id="perf-http2-disabled",
        title="HTTP/2 Disabled",
        message="HTTP/2 is not enabled. Enable it for better multiplexing and performance over SSL.",
        category=Category.PERFORMANCE,
        severity=Severity.INFO,
        test=lambda c: c.ssl.enabled and not c.performance.http2,
        fix=lambda c: {"performance": {"http2": True}},
        docs_url=_docs("perf-http2-disabled"),
    ),
    # Best practice
    LintRule(
        id="bp-worker-connections-low",
        title="Low Worker Connections",
        message=(
            "Worker connections is set low (< 1024). "
            "Default is usually 1024 or higher for production."
        ),
        category=Category.BEST_PRACTICE,
        severity=Severity.WARNING,
        # worker_connections lives in the events context, a server block cannot set it
        test=lambda c: False,
        fix=lambda c: {"performance": {"worker_connections": 1024}},
        docs_url=_docs("bp-worker-connections-low"),
    ),
    LintRule(
        id="bp-keepalive-timeout-high",
        title="High Keepalive Timeout",
        message="Keepalive timeout > 75s. Nginx default is 75s. Higher values may waste resources.",
        category=Category.BEST_PRACTICE,
        severity=Severity.INFO,
        test=lambda c: c.performance.keepalive_timeout > 75,
        fix=lambda c: {"performance": {"keepalive_timeout": 65}},
        docs_url=_docs("bp-keepalive-timeout-high"),
    ),
    # Security (additional)
    LintRule(
        id="security-ssl-protocols-outdated",
        title="Outdated SSL/TLS Protocols",
        message=(
            "SSL is enabled but outdated protocols (TLSv1 or TLSv1.1) may be in use. "
            "Only TLSv1.2 and TLSv1.3 are considered secure."
        ),
        category=Category.SECURITY,
        severity=Severity.ERROR,
        test=lambda c: c.ssl.enabled and any(p in OUTDATED_PROTOCOLS for p in c.ssl.protocols),
        fix=_secure_protocols,
        docs_url=_docs("security-ssl-protocols-outdated"),
    ),
    LintRule(
        id="security-no-rate-limiting",
        title="Rate Limiting Disabled",
        message=(
            "Rate limiting is not enabled. Without it, your server is more vulnerable "
            "to brute-force and DDoS attacks."
        ),
        category=Category.SECURITY,
        severity=Severity.INFO,
        test=lambda c: not c.security.rate_limiting,
        fix=lambda c: {"security": {"rate_limiting": True, "rate_limit": 10, "rate_burst": 20}},
        docs_url=_docs("security-no-rate-limiting"),
    ),
    LintRule(
        id="security-basic-auth-no-ssl",
        title="Basic Auth Without SSL",
        message=(
            "Basic authentication is enabled without SSL/TLS. "
            "Credentials are sent in plain text over HTTP."
        ),
        category=Category.SECURITY,
        severity=Severity.ERROR,
        test=lambda c: c.security.basic_auth and not c.ssl.enabled,
        docs_url=_docs("security-basic-auth-no-ssl"),
    ),
    LintRule(
        id="security-open-autoindex",
        title="Directory Listing Enabled",
        message=(
            "autoindex is enabled on one or more locations. "
            "This exposes your directory structure to visitors."
        ),
        category=Category.SECURITY,
        severity=Severity.WARNING,
        test=lambda c: any(loc.autoindex for loc in c.locations),
        docs_url=_docs("security-open-autoindex"),
    ),
    # Performance (additional)
    LintRule(
        id="perf-brotli-disabled",
        title="Brotli Compression Disabled",
        message=(
            "Brotli compression is not enabled. Brotli offers 15-25% better "
            "compression than gzip for text content."
        ),
        category=Category.PERFORMANCE,
        severity=Severity.INFO,
        test=lambda c: c.ssl.enabled and not c.performance.brotli,
        fix=lambda c: {"performance": {"brotli": True}},
        docs_url=_docs("perf-brotli-disabled"),
    ),
    LintRule(
        id="perf-no-static-caching",
        title="Static File Caching Disabled",
        message=(
            "Static file caching is not configured. Adding cache headers for assets "
            "(.js, .css, images) significantly improves page load times."
        ),
        category=Category.PERFORMANCE,
        severity=Severity.WARNING,
        test=lambda c: not c.performance.static_caching,
        fix=lambda c: {"performance": {"static_caching": True, "cache_expiry": "30d"}},
        docs_url=_docs("perf-no-static-caching"),
    ),
    LintRule(
        id="perf-large-client-body",
        title="Large Client Body Size Limit",
        message=(
            "client_max_body_size is set above 100 MB. This may allow excessively "
            "large file uploads and consume server resources."
        ),
        category=Category.PERFORMANCE,
        severity=Severity.WARNING,
        test=lambda c: _body_size_mb(c) > 100,
        docs_url=_docs("perf-large-client-body"),
    ),
    LintRule(
        id="perf-low-keepalive",
        title="Keepalive Timeout Too Low",
        message=(
            "Keepalive timeout is set very low (< 10s). This forces frequent TCP "
            "reconnections, adding latency."
        ),
        category=Category.PERFORMANCE,
        severity=Severity.INFO,
        test=lambda c: 0 < c.performance.keepalive_timeout < 10,
        fix=lambda c: {"performance": {"keepalive_timeout": 65}},
        docs_url=_docs("perf-low-keepalive"),
    ),
    # Correctness / best practice (additional)
    LintRule(
        id="bp-missing-root-or-proxy",
        title="No Root Path or Reverse Proxy",
        message=(
            "No locations defined and reverse proxy is disabled. Nginx won't know "
            "where to find files or where to forward requests."
        ),
        category=Category.BEST_PRACTICE,
        severity=Severity.WARNING,
        test=lambda c: not c.locations and not c.reverse_proxy.enabled,
        docs_url=_docs("bp-missing-root-or-proxy"),
    ),
    LintRule(
        id="bp-single-server-upstream",
        title="Single Server in Upstream",
        message=(
            "Upstream block has only one server. Consider using proxy_pass directly "
            "for simplicity, or add more servers for redundancy."
        ),
        category=Category.BEST_PRACTICE,
        severity=Severity.INFO,
        test=lambda c: c.upstream.enabled and len(c.upstream.servers) == 1,
        docs_url=_docs("bp-single-server-upstream"),
    ),
    LintRule(
        id="bp-logging-disabled",
        title="Access Logging Disabled",
        message=(
            "Access logging is disabled. Logs are essential for debugging, "
            "monitoring, and security auditing."
        ),
        category=Category.BEST_PRACTICE,
        severity=Severity.WARNING,
        test=lambda c: not c.logging.access_log,
        fix=lambda c: {
            "logging": {"access_log": True, "access_log_path": "/var/log/nginx/access.log"}
        },
        docs_url=_docs("bp-logging-disabled"),
    ),
    LintRule(
        id="correctness-upstream-without-servers",
        title="Upstream Enabled Without Servers",
        message=(
            "Load balancing is enabled but the upstream pool has no servers. "
            "The upstream block is not generated and proxy targets naming it will fail."
        ),
        category=Category.CORRECTNESS,
        severity=Severity.ERROR,
        test=lambda c: c.upstream.enabled and not c.upstream.servers,
        fix=lambda c: {"upstream": {"enabled": False}},
        docs_url=_docs("correctness-upstream-without-servers"),
    ),
    LintRule(
        id="correctness-proxy-location-without-target",
        title="Proxy Location Without Target",
        message=(
            "A proxy location has an empty proxy_pass target. "
            "Requests to it cannot be forwarded anywhere."
        ),
        category=Category.CORRECTNESS,
        severity=Severity.ERROR,
        test=lambda c: any(
            loc.type is LocationType.PROXY and not loc.proxy_pass.strip() for loc in c.locations
        ),
        fix=_fill_proxy_targets,
        docs_url=_docs("correctness-proxy-location-without-target"),
    ),
    LintRule(
        id="correctness-redirect-without-target",
        title="Redirect Location Without Target",
        message="A redirect location has no target URL. Nginx will answer with a bare status code.",
        category=Category.CORRECTNESS,
        severity=Severity.WARNING,
        test=lambda c: any(
            loc.type is LocationType.REDIRECT and not loc.redirect_url.strip() for loc in c.locations
        ),
        docs_url=_docs("correctness-redirect-without-target"),
    ),
    LintRule(
        id="security-hsts-missing",
        title="HSTS Not Enabled",
        message=(
            "SSL is enabled but Strict-Transport-Security is not sent. "
            "Browsers may still try plain HTTP first."
        ),
        category=Category.SECURITY,
        severity=Severity.INFO,
        test=lambda c: c.ssl.enabled and not c.ssl.enable_hsts,
        fix=lambda c: {"ssl": {"enable_hsts": True}},
        docs_url=_docs("security-hsts-missing"),
    ),
]

_RULES_BY_ID = {rule.id: rule for rule in RULES}


def get_rule(rule_id: str) -> LintRule | None:
    return _RULES_BY_ID.get(rule_id)

"""Location body rendering.

The generator renders every location body through here, and the importer
renders its typed reading of a location the same way to check that the
reading reproduces the text it came from.
"""

from nginx_confgen.generator import presets
from nginx_confgen.model.config import LocationConfig, LocationType
from nginx_confgen.parser.ast import format_statement, parse, serialize


def directive(name: str, *args: str) -> str:
    return format_statement(name, list(args)) + ";"


def canonical_lines(text: str) -> list[str]:
    """Render free-form directive text canonically.

    Text that does not parse is passed through line by line, stripped.
    """
    result = parse(text)
    if result.errors:
        return [line.strip() for line in text.splitlines() if line.strip()]
    return serialize(result.children)


def static_body(location: LocationConfig) -> list[str]:
    lines = []
    if location.root:
        lines.append(directive("root", location.root))
    if location.try_files.strip():
        lines.append(directive("try_files", *location.try_files.split()))
    if location.index.strip():
        lines.append(directive("index", *location.index.split()))
    if location.autoindex:
        lines.append(directive("autoindex", "on"))
    if location.cache_expiry.strip():
        lines.append(directive("expires", *location.cache_expiry.split()))
    return lines


def proxy_body(location: LocationConfig, real_ip_headers: bool = False) -> list[str]:
    lines = [
        directive("proxy_pass", location.proxy_pass) if location.proxy_pass else "proxy_pass;",
        directive("proxy_http_version", "1.1"),
    ]
    if location.proxy_web_socket:
        lines.append(directive("proxy_set_header", "Upgrade", "$http_upgrade"))
        lines.append('proxy_set_header Connection "upgrade";')
    if real_ip_headers:
        for key, value in presets.REAL_IP_HEADERS:
            lines.append(directive("proxy_set_header", key, value))
    for header in location.proxy_headers:
        if header.key and header.value:
            lines.append(directive("proxy_set_header", header.key, header.value))
    if location.proxy_timeout > 0:
        lines.append(directive("proxy_read_timeout", f"{location.proxy_timeout}s"))
        lines.append(directive("proxy_send_timeout", f"{location.proxy_timeout}s"))
    if not location.proxy_buffering:
        lines.append(directive("proxy_buffering", "off"))
    return lines


def location_body(location: LocationConfig, real_ip_headers: bool = False) -> list[str]:
    """Directives inside a location block, without the rate limit line."""
    if location.type is LocationType.STATIC:
        return static_body(location)
    if location.type is LocationType.PROXY:
        return proxy_body(location, real_ip_headers)
    if location.type is LocationType.REDIRECT:
        args = [str(location.redirect_code)]
        if location.redirect_url:
            args.append(location.redirect_url)
        return [directive("return", *args)]
    if location.custom_directives.strip():
        return canonical_lines(location.custom_directives)
    return []

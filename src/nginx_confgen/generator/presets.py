"""Fixed directive values shared by the generator and the importer.

The importer recognizes generated stanzas by comparing against these, so
both sides must read them from here.
"""

from dataclasses import dataclass

from nginx_confgen.model.config import CipherPreset


@dataclass(frozen=True)
class SSLPreset:
    """Cipher list and session settings of one named TLS profile."""

    ciphers: str
    prefer_server_ciphers: bool
    session_timeout: str = "1d"
    session_tickets: bool = False


_AES_GCM = (
    "ECDHE-ECDSA-AES128-GCM-SHA256:ECDHE-RSA-AES128-GCM-SHA256:"
    "ECDHE-ECDSA-AES256-GCM-SHA384:ECDHE-RSA-AES256-GCM-SHA384"
)

SSL_PRESETS: dict[CipherPreset, SSLPreset] = {
    CipherPreset.MODERN: SSLPreset(
        ciphers=_AES_GCM + ":ECDHE-ECDSA-CHACHA20-POLY1305:ECDHE-RSA-CHACHA20-POLY1305",
        prefer_server_ciphers=False,
    ),
    CipherPreset.INTERMEDIATE: SSLPreset(
        ciphers=_AES_GCM + ":DHE-RSA-AES128-GCM-SHA256:DHE-RSA-AES256-GCM-SHA384",
        prefer_server_ciphers=False,
    ),
    CipherPreset.LEGACY: SSLPreset(
        ciphers=(
            _AES_GCM + ":DHE-RSA-AES128-GCM-SHA256:DHE-RSA-AES256-GCM-SHA384"
            ":ECDHE-ECDSA-AES128-SHA256:ECDHE-RSA-AES128-SHA256:AES128-SHA:DES-CBC3-SHA"
        ),
        prefer_server_ciphers=True,
    ),
}

SSL_SESSION_CACHE = "shared:SSL:10m"
PLACEHOLDER_CERTIFICATE = "/etc/ssl/certs/cert.pem"
PLACEHOLDER_KEY = "/etc/ssl/private/key.pem"
HSTS_VALUE = "max-age=63072000; includeSubDomains; preload"


def get_preset(preset: CipherPreset) -> SSLPreset:
    return SSL_PRESETS[CipherPreset(preset)]


def match_preset(ciphers: str) -> CipherPreset | None:
    """Return the preset whose cipher list is exactly ``ciphers``."""
    for name, preset in SSL_PRESETS.items():
        if preset.ciphers == ciphers:
            return name
    return None


def infer_preset(ciphers: str) -> CipherPreset:
    """Guess the closest preset for a hand written cipher list."""
    exact = match_preset(ciphers)
    if exact is not None:
        return exact
    if "CHACHA20" in ciphers:
        return CipherPreset.MODERN
    if "DES" in ciphers:
        return CipherPreset.LEGACY
    return CipherPreset.INTERMEDIATE


# Header name -> value, in emission order
SECURITY_HEADERS: dict[str, str] = {
    "X-Frame-Options": "SAMEORIGIN",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "X-XSS-Protection": "1; mode=block",
}

# proxy_set_header pairs
WEBSOCKET_HEADERS: list[tuple[str, str]] = [
    ("Upgrade", "$http_upgrade"),
    ("Connection", "upgrade"),
]
REAL_IP_HEADERS: list[tuple[str, str]] = [
    ("Host", "$host"),
    ("X-Real-IP", "$remote_addr"),
    ("X-Forwarded-For", "$proxy_add_x_forwarded_for"),
    ("X-Forwarded-Proto", "$scheme"),
]

RATE_LIMIT_ZONE = "req_limit"
DEFAULT_RATE = 10
DEFAULT_BURST = 5

# Static asset caching locations, one per asset class
ASSET_PATTERNS: dict[str, str] = {
    "images": r"\.(jpg|jpeg|png|gif|ico|svg|webp|avif)$",
    "css": r"\.css$",
    "js": r"\.js$",
    "fonts": r"\.(woff|woff2|ttf|otf|eot)$",
}
ASSET_EXTENSIONS: dict[str, frozenset[str]] = {
    "images": frozenset({"jpg", "jpeg", "png", "gif", "ico", "svg", "webp", "avif"}),
    "css": frozenset({"css"}),
    "js": frozenset({"js"}),
    "fonts": frozenset({"woff", "woff2", "ttf", "otf", "eot"}),
}
ASSET_CACHE_CONTROL = "public, immutable"

DEFAULT_TRY_FILES = "$uri $uri/ =404"
HTTPS_REDIRECT_TARGET = "https://$host$request_uri"

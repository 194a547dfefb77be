"""Tests for importing nginx configuration text into a model."""

import pytest

from nginx_confgen.generator import presets
from nginx_confgen.model.config import (
    BodySizeUnit,
    CipherPreset,
    ErrorLogLevel,
    Header,
    LocationType,
    MatchType,
    UpstreamMethod,
    create_default_config,
)
from nginx_confgen.parser.ast import parse
from nginx_confgen.parser.nginx_conf import (
    NO_SERVER_WARNING,
    ConfigImporter,
    import_config,
    parse_config,
)


def _server(body: str) -> str:
    return "server {\n" + body + "\n}\n"


class TestSampleImport:
    """Import a realistic hand written config."""

    @pytest.fixture
    def imported(self, sample_conf):
        return parse_config(sample_conf)

    def test_clean_import(self, imported):
        assert imported.errors == []
        assert imported.warnings == []

    def test_listen_and_names(self, imported):
        model = imported.model
        assert model.listen_port == 443
        assert model.listen_ipv6 is True
        assert model.server_names == ["shop.example.com"]
        assert model.performance.http2 is True

    def test_ssl_and_companion_redirect(self, imported):
        ssl = imported.model.ssl
        assert ssl.enabled is True
        assert ssl.http_redirect is True
        assert ssl.certificate_path == "/etc/ssl/shop.crt"
        assert ssl.key_path == "/etc/ssl/shop.key"
        assert ssl.protocols == ["TLSv1.2", "TLSv1.3"]

    def test_presence_driven_settings(self, imported):
        model = imported.model
        assert model.security.hide_version is True
        assert model.security.security_headers is False
        assert model.performance.gzip is False
        assert model.logging.access_log is False
        assert model.performance.client_max_body_size == 25
        assert model.performance.client_max_body_unit is BodySizeUnit.MB

    def test_locations(self, imported):
        proxy, static = imported.model.locations
        assert proxy.type is LocationType.PROXY
        assert proxy.proxy_pass == "http://backend"
        assert proxy.proxy_headers == [Header(key="Host", value="$host")]
        assert static.type is LocationType.STATIC
        assert static.path == "/downloads"
        assert static.root == "/srv/files"
        assert static.autoindex is True

    def test_reverse_proxy_detected(self, imported):
        proxy = imported.model.reverse_proxy
        assert proxy.enabled is True
        assert proxy.backend_address == "http://backend"
        # Only Host was set, so the full real IP set is not claimed
        assert proxy.real_ip_headers is False

    def test_upstream(self, imported):
        upstream = imported.model.upstream
        assert upstream.enabled is True
        assert upstream.name == "backend"
        assert upstream.method is UpstreamMethod.LEAST_CONN
        assert [s.address for s in upstream.servers] == ["127.0.0.1:3000", "127.0.0.1:3001"]
        assert upstream.servers[0].weight == 2
        assert upstream.servers[1].weight == 1


class TestServerSelection:
    """Which server block gets imported."""

    def test_no_server_block_gives_default_model(self):
        result = parse_config("events { worker_connections 1024; }")

        assert result.warnings == [NO_SERVER_WARNING]
        assert result.model == create_default_config()

    def test_empty_input(self):
        result = parse_config("")

        assert result.warnings == [NO_SERVER_WARNING]
        assert result.errors == []

    def test_first_of_several_servers(self):
        text = _server("listen 8080;\nserver_name a.com;") + _server("listen 9090;\nserver_name b.com;")
        result = parse_config(text)

        assert result.model.server_names == ["a.com"]
        assert result.model.listen_port == 8080
        assert "Found 2 server blocks. Imported the first one." in result.warnings

    def test_only_redirect_servers(self):
        text = _server("listen 80;\nreturn 301 https://example.com$request_uri;")
        result = parse_config(text)

        assert result.model.listen_port == 80
        assert result.model.ssl.http_redirect is False

    def test_http_wrapper_is_looked_through(self):
        text = "http {\n" + _server("listen 8000;") + "}\n"
        result = parse_config(text)

        assert result.model.listen_port == 8000
        assert result.warnings == []

    def test_top_level_directives_are_reported(self):
        text = "user www-data;\nevents { }\n" + _server("listen 80;")
        result = parse_config(text)

        assert 'Ignored top-level directive "user"' in result.warnings
        assert 'Ignored top-level block "events"' in result.warnings

    def test_several_upstreams(self):
        text = (
            "upstream a { server 10.0.0.1; }\nupstream b { server 10.0.0.2; }\n"
            + _server("listen 80;")
        )
        result = parse_config(text)

        assert result.model.upstream.name == "a"
        assert "Found 2 upstream blocks. Imported the first one." in result.warnings


class TestServerDirectives:
    """Mapping of individual server level directives."""

    def test_ipv6_only_listen(self):
        model = parse_config(_server("listen [::]:8443;")).model

        assert model.listen_port == 8443
        assert model.listen_ipv6 is True

    def test_listen_with_address(self):
        model = parse_config(_server("listen 127.0.0.1:8080;")).model

        assert model.listen_port == 8080
        assert model.listen_ipv6 is False

    def test_non_ascii_digits_in_port_are_ignored(self):
        model = parse_config(_server("listen 8²;")).model

        assert model.listen_port == 80

    def test_upstream_server_parameters(self):
        text = (
            "upstream app { server 10.0.0.1 weight=² max_fails=³ fail_timeout=5s; }\n"
            + _server("listen 80;")
        )
        server = parse_config(text).model.upstream.servers[0]

        assert server.address == "10.0.0.1"
        assert server.weight == 1
        assert server.max_fails == 1
        assert server.fail_timeout == 5

    def test_body_size_in_kilobytes_is_rounded_up(self):
        result = parse_config(_server("client_max_body_size 512k;"))

        assert result.model.performance.client_max_body_size == 1
        assert "client_max_body_size 512k rounded up to 1MB" in result.warnings

    def test_body_size_defaults_to_megabytes(self):
        performance = parse_config(_server("client_max_body_size 500m;")).model.performance

        assert performance.client_max_body_size == 500
        assert performance.client_max_body_unit is BodySizeUnit.MB

    def test_body_size_in_gigabytes(self):
        performance = parse_config(_server("client_max_body_size 2G;")).model.performance

        assert performance.client_max_body_size == 2
        assert performance.client_max_body_unit is BodySizeUnit.GB

    def test_keepalive_timeout(self):
        model = parse_config(_server("keepalive_timeout 30s;")).model

        assert model.performance.keepalive_timeout == 30

    def test_error_log_level(self):
        logging_config = parse_config(_server("error_log /var/log/e.log crit;")).model.logging

        assert logging_config.error_log is True
        assert logging_config.error_log_path == "/var/log/e.log"
        assert logging_config.error_log_level is ErrorLogLevel.CRIT

    def test_error_log_unknown_level_falls_back(self):
        result = parse_config(_server("error_log /var/log/e.log debug;"))

        assert result.model.logging.error_log_level is ErrorLogLevel.ERROR
        assert 'Unsupported error_log level "debug", using "error"' in result.warnings

    def test_access_log_off(self):
        model = parse_config(_server("access_log off;")).model

        assert model.logging.access_log is False

    def test_security_headers_and_hsts(self):
        body = (
            'add_header X-Frame-Options "SAMEORIGIN" always;\n'
            'add_header Strict-Transport-Security "max-age=31536000" always;'
        )
        model = parse_config(_server(body)).model

        assert model.security.security_headers is True
        assert model.ssl.enable_hsts is True

    def test_allow_deny_and_basic_auth(self):
        body = (
            "allow 10.0.0.0/8;\ndeny all;\n"
            'auth_basic "Staff only";\nauth_basic_user_file /etc/nginx/staff.htpasswd;'
        )
        security = parse_config(_server(body)).model.security

        assert security.ip_allowlist == ["10.0.0.0/8"]
        assert security.ip_denylist == ["all"]
        assert security.basic_auth is True
        assert security.basic_auth_realm == "Staff only"
        assert security.basic_auth_file == "/etc/nginx/staff.htpasswd"

    def test_gzip_and_brotli(self):
        body = "gzip on;\ngzip_comp_level 5;\ngzip_types text/css;\nbrotli on;\nbrotli_types text/html;"
        performance = parse_config(_server(body)).model.performance

        assert performance.gzip is True
        assert performance.gzip_types == ["text/css"]
        assert performance.brotli is True
        assert performance.brotli_types == ["text/html"]

    def test_brotli_types_equal_to_gzip_types_are_collapsed(self):
        body = "gzip on;\ngzip_types text/css;\nbrotli on;\nbrotli_types text/css;"
        performance = parse_config(_server(body)).model.performance

        assert performance.brotli_types == []


class TestUnmodelledDirectives:
    """Directives the model has no field for."""

    def test_kept_verbatim_before_first_location(self):
        body = "listen 80;\nproxy_cache_valid 200 1h;\nset $tenant main;"
        result = parse_config(_server(body))

        assert result.model.custom_directives == "proxy_cache_valid 200 1h;\nset $tenant main;"
        assert result.warnings == []

    def test_dropped_after_first_location(self):
        body = "location / { root /srv; }\nfastcgi_buffers 8 16k;\nif ($bad) { return 403; }"
        result = parse_config(_server(body))

        assert result.model.custom_directives == ""
        assert 'Ignored directive "fastcgi_buffers"' in result.warnings
        assert 'Ignored block "if"' in result.warnings

    def test_unknown_header_is_kept(self):
        result = parse_config(_server('add_header X-Served-By "edge-1";'))

        assert result.model.custom_directives == "add_header X-Served-By edge-1;"


class TestLocations:
    """Classification of location blocks."""

    def _location(self, text):
        return parse_config(_server(text)).model.locations[0]

    def test_modifiers(self):
        body = "location = /health { return 200; }\nlocation ~ \\.php$ { return 404; }\nlocation ~* \\.txt$ { return 404; }"
        locations = parse_config(_server(body)).model.locations

        assert [loc.match_type for loc in locations] == [
            MatchType.EXACT,
            MatchType.REGEX,
            MatchType.REGEX_CASE_INSENSITIVE,
        ]
        assert locations[1].path == "\\.php$"

    def test_preferential_prefix_becomes_prefix(self):
        result = parse_config(_server("location ^~ /images { root /srv; }"))

        assert result.model.locations[0].match_type is MatchType.PREFIX
        assert result.model.locations[0].path == "/images"
        assert any('"^~"' in w for w in result.warnings)

    def test_location_without_path_is_skipped(self):
        result = parse_config(_server("location { root /srv; }"))

        assert result.model.locations == []
        assert any("without a path" in w for w in result.warnings)

    def test_redirect(self):
        location = self._location("location /old { return 302 https://new.example.com; }")

        assert location.type is LocationType.REDIRECT
        assert location.redirect_code == 302
        assert location.redirect_url == "https://new.example.com"

    def test_proxy_with_websocket_and_timeouts(self):
        location = self._location(
            "location /ws {\n"
            "proxy_pass http://127.0.0.1:9000;\n"
            "proxy_http_version 1.1;\n"
            "proxy_set_header Upgrade $http_upgrade;\n"
            'proxy_set_header Connection "upgrade";\n'
            "proxy_read_timeout 300s;\n"
            "proxy_send_timeout 300s;\n"
            "proxy_buffering off;\n"
            "}"
        )

        assert location.type is LocationType.PROXY
        assert location.proxy_pass == "http://127.0.0.1:9000"
        assert location.proxy_web_socket is True
        assert location.proxy_headers == []
        assert location.proxy_timeout == 300
        assert location.proxy_buffering is False

    def test_static(self):
        location = self._location(
            "location /assets { root /srv/app; try_files $uri =404; index a.html b.html; expires 7d; }"
        )

        assert location.type is LocationType.STATIC
        assert location.root == "/srv/app"
        assert location.try_files == "$uri =404"
        assert location.index == "a.html b.html"
        assert location.cache_expiry == "7d"

    def test_unknown_directive_makes_custom_location(self):
        location = self._location(
            "location ~ \\.php$ {\n    include fastcgi_params;\n    fastcgi_pass unix:/run/php.sock;\n}"
        )

        assert location.type is LocationType.CUSTOM
        assert location.custom_directives == "include fastcgi_params;\nfastcgi_pass unix:/run/php.sock;"

    def test_repeated_static_directive_makes_custom_location(self):
        location = self._location("location / { root /a; root /b; }")

        assert location.type is LocationType.CUSTOM

    def test_nested_block_makes_custom_location(self):
        location = self._location("location / { if ($x) { return 403; } proxy_pass http://a; }")

        assert location.type is LocationType.CUSTOM
        assert "if ($x) {" in location.custom_directives

    def test_real_ip_headers_are_recognized(self):
        headers = "\n".join(f"proxy_set_header {k} {v};" for k, v in presets.REAL_IP_HEADERS)
        result = parse_config(_server(f"location / {{\nproxy_pass http://app;\n{headers}\n}}"))

        assert result.model.reverse_proxy.real_ip_headers is True
        assert result.model.locations[0].proxy_headers == []

    def test_static_directives_out_of_order_stay_custom(self):
        location = self._location("location /files { expires 1d; root /srv; }")

        assert location.type is LocationType.CUSTOM
        assert location.custom_directives == "expires 1d;\nroot /srv;"

    def test_directive_the_generator_never_writes_stays_custom(self):
        location = self._location("location /files { autoindex off; }")

        assert location.type is LocationType.CUSTOM
        assert location.custom_directives == "autoindex off;"

    def test_upgrade_header_alone_is_not_websocket(self):
        location = self._location(
            "location /app { proxy_pass http://app; proxy_set_header Upgrade $http_upgrade; }"
        )

        assert location.type is LocationType.PROXY
        assert location.proxy_web_socket is False
        assert location.proxy_headers == [Header(key="Upgrade", value="$http_upgrade")]

    def test_proxy_without_http_version_is_still_proxy(self):
        location = self._location("location /app { proxy_pass http://app; proxy_buffering off; }")

        assert location.type is LocationType.PROXY
        assert location.proxy_buffering is False

    def test_other_http_version_stays_custom(self):
        location = self._location("location /app { proxy_pass http://app; proxy_http_version 1.0; }")

        assert location.type is LocationType.CUSTOM

    def test_read_timeout_without_send_timeout_stays_custom(self):
        location = self._location("location /app { proxy_pass http://app; proxy_read_timeout 30s; }")

        assert location.type is LocationType.CUSTOM
        assert location.custom_directives == "proxy_pass http://app;\nproxy_read_timeout 30s;"

    def test_real_ip_headers_after_custom_header_are_kept_in_place(self):
        headers = "\n".join(f"proxy_set_header {k} {v};" for k, v in presets.REAL_IP_HEADERS)
        body = f"location / {{\nproxy_pass http://app;\nproxy_set_header X-Tenant main;\n{headers}\n}}"
        model = parse_config(_server(body)).model

        assert model.reverse_proxy.real_ip_headers is False
        assert model.locations[0].proxy_headers[0] == Header(key="X-Tenant", value="main")
        assert len(model.locations[0].proxy_headers) == 5

    def test_custom_proxy_location_does_not_enable_reverse_proxy(self):
        model = parse_config(
            _server("location /app { proxy_pass http://app; proxy_http_version 1.0; }")
        ).model

        assert model.reverse_proxy.enabled is False

    def test_proxy_with_server_root_keeps_reverse_proxy_off(self):
        model = parse_config(_server("root /srv;\nlocation /api { proxy_pass http://api; }")).model

        assert model.reverse_proxy.enabled is False
        assert model.root_path == "/srv"


class TestGeneratedStanzas:
    """Stanzas the generator emits are folded back into model fields."""

    def test_rate_limiting(self):
        text = (
            "limit_req_zone $binary_remote_addr zone=req_limit:10m rate=5r/s;\n"
            + _server("location / {\nlimit_req zone=req_limit burst=7 nodelay;\nroot /srv;\n}")
        )
        model = parse_config(text).model

        assert model.security.rate_limiting is True
        assert model.security.rate_limit == 5
        assert model.security.rate_burst == 7
        assert model.locations[0].type is LocationType.STATIC

    def test_caching_locations(self):
        body = "\n".join(
            f'location ~* {pattern} {{ expires {"1y" if asset == "fonts" else "30d"}; '
            f'add_header Cache-Control "public, immutable"; }}'
            for asset, pattern in presets.ASSET_PATTERNS.items()
        )
        model = parse_config(_server(body)).model

        assert model.locations == []
        assert model.performance.static_caching is True
        assert model.performance.cache_expiry == "30d"
        assert model.performance.asset_cache_expiry == {"fonts": "1y"}

    def test_exact_preset_ciphers(self):
        modern = presets.get_preset(CipherPreset.MODERN)
        body = f"listen 443 ssl;\nssl_ciphers '{modern.ciphers}';\nssl_prefer_server_ciphers off;"
        ssl = parse_config(_server(body)).model.ssl

        assert ssl.preset is CipherPreset.MODERN
        assert ssl.ciphers == ""

    def test_custom_ciphers_are_kept(self):
        body = "listen 443 ssl;\nssl_ciphers HIGH:!aNULL:!MD5;"
        ssl = parse_config(_server(body)).model.ssl

        assert ssl.ciphers == "HIGH:!aNULL:!MD5"

    def test_prefer_server_ciphers_selects_legacy(self):
        intermediate = presets.get_preset(CipherPreset.INTERMEDIATE)
        body = f"ssl_ciphers '{intermediate.ciphers}';\nssl_prefer_server_ciphers on;"
        ssl = parse_config(_server(body)).model.ssl

        assert ssl.preset is CipherPreset.LEGACY
        assert ssl.ciphers == intermediate.ciphers


def test_import_config_accepts_tree_with_errors():
    """Syntax errors are passed through next to a best effort model."""
    tree = parse("server {\n    listen 8080;\n")
    result = import_config(tree)

    assert result.errors == ["Unclosed block 'server' at line 1"]
    assert result.model.listen_port == 8080


def test_importer_is_single_use():
    importer = ConfigImporter()
    result = importer.run(parse(_server("listen 81;")))

    assert result.model is importer.model

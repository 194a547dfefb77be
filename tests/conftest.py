"""Pytest configuration and fixtures for nginx-confgen tests."""

import pytest

from nginx_confgen.model.config import (
    Header,
    LocationConfig,
    LocationType,
    MatchType,
    NginxConfig,
    ReverseProxyConfig,
    UpstreamConfig,
    UpstreamMethod,
    UpstreamServer,
    create_default_config,
)


@pytest.fixture
def default_model():
    """A fresh model with stock defaults."""
    return create_default_config()


@pytest.fixture
def ssl_model():
    """A hardened HTTPS site serving static files."""
    model = create_default_config()
    model.server_names = ["example.com", "www.example.com"]
    model.listen_port = 443
    model.ssl.enabled = True
    model.ssl.certificate_path = "/etc/letsencrypt/live/example.com/fullchain.pem"
    model.ssl.key_path = "/etc/letsencrypt/live/example.com/privkey.pem"
    model.ssl.enable_hsts = True
    model.ssl.enable_ocsp = True
    model.performance.brotli = True
    return model


@pytest.fixture
def proxy_model():
    """An application behind a load balanced reverse proxy."""
    return NginxConfig(
        server_names=["app.example.com"],
        listen_port=443,
        reverse_proxy=ReverseProxyConfig(
            enabled=True, backend_address="http://app_pool", web_socket=True
        ),
        upstream=UpstreamConfig(
            enabled=True,
            name="app_pool",
            method=UpstreamMethod.LEAST_CONN,
            servers=[
                UpstreamServer(address="10.0.0.1:8080", weight=3),
                UpstreamServer(address="10.0.0.2:8080", max_fails=2, fail_timeout=30),
            ],
        ),
        locations=[
            LocationConfig(
                path="/",
                type=LocationType.PROXY,
                proxy_pass="http://app_pool",
                proxy_web_socket=True,
                proxy_headers=[Header(key="X-Request-Id", value="$request_id")],
                proxy_timeout=120,
                proxy_buffering=False,
            ),
            LocationConfig(
                path="/old-blog",
                type=LocationType.REDIRECT,
                redirect_url="https://blog.example.com",
                redirect_code=302,
            ),
            LocationConfig(
                path="\\.php$",
                match_type=MatchType.REGEX,
                type=LocationType.CUSTOM,
                custom_directives="fastcgi_pass unix:/run/php/php8.2-fpm.sock;\ninclude fastcgi_params;",
            ),
        ],
    )


@pytest.fixture
def sample_conf():
    """A hand written config of the kind found on a typical web server."""
    return """\
# Main site
upstream backend {
    least_conn;
    server 127.0.0.1:3000 weight=2;
    server 127.0.0.1:3001;
}

server {
    listen 80;
    server_name shop.example.com;
    return 301 https://$host$request_uri;
}

server {
    listen 443 ssl http2;
    listen [::]:443 ssl http2;
    server_name shop.example.com;

    ssl_certificate /etc/ssl/shop.crt;
    ssl_certificate_key /etc/ssl/shop.key;
    ssl_protocols TLSv1.2 TLSv1.3;

    server_tokens off;
    client_max_body_size 25m;

    location / {
        proxy_pass http://backend;
        proxy_set_header Host $host;
    }

    location /downloads {
        root /srv/files;
        autoindex on;
    }
}
"""

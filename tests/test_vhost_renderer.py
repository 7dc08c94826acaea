"""Tests for the Jinja2 fragment templates."""

from __future__ import annotations

from vhostctl.services import composer
from vhostctl_common import VhostctlConfig, VhostSpec


def _render(spec: VhostSpec, cfg: VhostctlConfig, **kwargs) -> dict[str, str]:
    """Compose a vhost and return fragment name -> text."""
    return {f.path.name: f.content.decode() for f in composer.compose(spec, cfg, **kwargs)}


class TestHeader:
    def test_basic_header(self, tmp_config: VhostctlConfig):
        config = _render(VhostSpec(name="example.com", www_root="/srv/www"), tmp_config)["example.com-001"]
        assert config.startswith("server {\n")
        assert "  listen                *:80;\n" in config
        assert "  server_name           example.com;\n" in config
        assert f"access_log            {tmp_config.nginx_log_dir}/example.com.access.log;" in config
        assert "ssl" not in config
        assert "auth_basic" not in config

    def test_listen_options_and_server_names(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(
            name="site",
            listen_ip="10.0.0.1",
            listen_port=8080,
            listen_options="default_server",
            server_name=["site.example.com", "www.site.example.com"],
            www_root="/srv",
        )
        config = _render(spec, tmp_config)["site-001"]
        assert "listen                10.0.0.1:8080 default_server;" in config
        assert "server_name           site.example.com www.site.example.com;" in config

    def test_ipv6_listener(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(name="v6", www_root="/srv", ipv6_enable=True)
        config = _render(spec, tmp_config, ipv6_capable=True)["v6-001"]
        assert "listen                [::]:80 default ipv6only=on;" in config

    def test_ipv6_dropped_without_support(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(name="v6", www_root="/srv", ipv6_enable=True)
        config = _render(spec, tmp_config, ipv6_capable=False)["v6-001"]
        assert "ipv6only" not in config

    def test_basic_auth(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(
            name="staging",
            www_root="/srv",
            auth_basic="Restricted Access",
            auth_basic_user_file="/etc/nginx/auth/staging.htpasswd",
        )
        config = _render(spec, tmp_config)["staging-001"]
        assert 'auth_basic            "Restricted Access";' in config
        assert "auth_basic_user_file  /etc/nginx/auth/staging.htpasswd;" in config

    def test_rewrite_to_https(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(name="r", www_root="/srv", rewrite_to_https=True)
        config = _render(spec, tmp_config)["r-001"]
        assert "return 301 https://$host$request_uri;" in config

    def test_rewrite_to_https_custom_port(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(
            name="r", www_root="/srv", rewrite_to_https=True, ssl=False, ssl_port="8443"
        )
        config = _render(spec, tmp_config)["r-001"]
        assert "return 301 https://$host:8443$request_uri;" in config


class TestFooter:
    def test_plain_footer(self, tmp_config: VhostctlConfig):
        config = _render(VhostSpec(name="f", www_root="/srv"), tmp_config)["f-699"]
        assert config == "}\n"

    def test_vhost_cfg_append(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(
            name="f",
            www_root="/srv",
            vhost_cfg_append={"rewrite": "^/old /new permanent", "error_page": ["404", "/404.html"]},
        )
        config = _render(spec, tmp_config)["f-699"]
        assert config == "  rewrite ^/old /new permanent;\n  error_page 404 /404.html;\n}\n"


class TestSslHeader:
    def test_ssl_block(self, tmp_config: VhostctlConfig, ssl_spec: VhostSpec):
        fragments = _render(ssl_spec, tmp_config)
        config = fragments["test2.local-700-ssl"]
        assert "listen                *:443 ssl;" in config
        assert "server_name           test2.local;" in config
        assert f"ssl_certificate       {tmp_config.conf_dir}/test2.local.crt;" in config
        assert f"ssl_certificate_key   {tmp_config.conf_dir}/test2.local.key;" in config
        assert "ssl_protocols         TLSv1.2 TLSv1.3;" in config
        assert fragments["test2.local-999-ssl"] == "}\n"

    def test_sanitized_cert_paths(self, tmp_config: VhostctlConfig, ssl_spec: VhostSpec):
        spec = ssl_spec.model_copy(update={"name": "my site", "server_name": ["mysite.example.com"]})
        config = _render(spec, tmp_config)["my site-700-ssl"]
        assert f"{tmp_config.conf_dir}/my_site.crt;" in config
        assert f"{tmp_config.conf_dir}/my_site.key;" in config


class TestLocations:
    def test_directory_location(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(name="d", www_root="/var/www/nginx-default", try_files=["$uri", "$uri/", "=404"])
        config = _render(spec, tmp_config)["d-500-d-default"]
        assert config == (
            "  location / {\n"
            "    root                  /var/www/nginx-default;\n"
            "    try_files             $uri $uri/ =404;\n"
            "    index                 index.html index.htm index.php;\n"
            "  }\n"
            "\n"
        )

    def test_proxy_location(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(name="p", proxy="http://127.0.0.1:3000", proxy_read_timeout="300")
        config = _render(spec, tmp_config)["p-500-p-default"]
        assert "proxy_pass            http://127.0.0.1:3000;" in config
        assert "proxy_read_timeout    300;" in config
        assert "proxy_cache" not in config

    def test_proxy_cache(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(name="p", proxy="http://b", proxy_cache="zone", proxy_cache_valid="200 10m")
        config = _render(spec, tmp_config)["p-500-p-default"]
        assert "proxy_cache           zone;" in config
        assert "proxy_cache_valid     200 10m;" in config

    def test_fastcgi_location(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(
            name="php",
            fastcgi="127.0.0.1:9000",
            fastcgi_script="/srv/app/index.php",
        )
        config = _render(spec, tmp_config)["php-500-php-default"]
        assert "include               /etc/nginx/fastcgi_params;" in config
        assert "fastcgi_pass          127.0.0.1:9000;" in config
        assert "fastcgi_param         SCRIPT_FILENAME /srv/app/index.php;" in config

    def test_prepend_and_append_wrap_body(self, tmp_config: VhostctlConfig):
        spec = VhostSpec(
            name="w",
            www_root="/srv",
            location_cfg_prepend={"client_max_body_size": "20m"},
            location_cfg_append={"expires": "1h", "add_header": ["X-Frame-Options", "DENY"]},
        )
        lines = _render(spec, tmp_config)["w-500-w-default"].rstrip("\n").splitlines()
        assert lines[0] == "  location / {"
        assert lines[1] == "    client_max_body_size 20m;"
        assert lines[2].strip().startswith("root")
        assert lines[-3] == "    expires 1h;"
        assert lines[-2] == "    add_header X-Frame-Options DENY;"
        assert lines[-1] == "  }"

    def test_ssl_location_matches_plain(self, tmp_config: VhostctlConfig, ssl_spec: VhostSpec):
        fragments = _render(ssl_spec, tmp_config)
        assert (
            fragments["test2.local-500-test2.local-default"]
            == fragments["test2.local-800-test2.local-default-ssl"]
        )

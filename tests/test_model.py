"""Tests for the config model, YAML files and patch merging."""

import pytest

from nginx_confgen.engine.merge import deep_merge, same_model, signature
from nginx_confgen.model.config import (
    CipherPreset,
    Header,
    LocationConfig,
    LocationType,
    MatchType,
    ModelFileError,
    NginxConfig,
    PerformanceConfig,
    UpstreamServer,
    create_default_config,
    dump_model,
    load_model,
    model_from_dict,
    model_to_dict,
)


class TestInvariants:
    """Construction rejects values nginx could never accept."""

    def test_enum_fields_accept_values(self):
        location = LocationConfig(path="/x", match_type="regex", type="proxy")

        assert location.match_type is MatchType.REGEX
        assert location.type is LocationType.PROXY

    def test_unknown_enum_value(self):
        with pytest.raises(ValueError):
            LocationConfig(path="/x", type="fastcgi")

    def test_redirect_code(self):
        with pytest.raises(ValueError, match="301 or 302"):
            LocationConfig(path="/x", redirect_code=307)

    def test_empty_location_path(self):
        with pytest.raises(ValueError):
            LocationConfig(path="")

    def test_upstream_weight(self):
        with pytest.raises(ValueError):
            UpstreamServer(address="10.0.0.1", weight=0)

    def test_listen_port(self):
        with pytest.raises(ValueError):
            NginxConfig(listen_port=0)

    def test_unknown_asset_class(self):
        with pytest.raises(ValueError, match="Unknown asset class"):
            PerformanceConfig(asset_cache_expiry={"videos": "1d"})


class TestDictForm:
    """Conversion to and from plain data."""

    def test_enums_become_values(self, proxy_model):
        data = model_to_dict(proxy_model)

        assert data["upstream"]["method"] == "least_conn"
        assert data["locations"][2]["match_type"] == "regex"
        assert data["locations"][0]["proxy_headers"] == [{"key": "X-Request-Id", "value": "$request_id"}]

    def test_rebuild(self, proxy_model):
        assert model_from_dict(model_to_dict(proxy_model)) == proxy_model

    def test_missing_keys_take_defaults(self):
        model = model_from_dict({"listen_port": 8080, "ssl": {"enabled": True}})

        assert model.listen_port == 8080
        assert model.ssl.enabled is True
        assert model.ssl.preset is CipherPreset.INTERMEDIATE
        assert model.server_names == ["example.com"]

    def test_unknown_keys_are_ignored(self):
        model = model_from_dict({"colour": "blue", "security": {"firewall": True}})

        assert model == create_default_config()

    def test_section_must_be_a_mapping(self):
        with pytest.raises(ValueError, match="NginxConfig.ssl must be a mapping"):
            model_from_dict({"ssl": None})

    def test_string_for_list_field(self):
        with pytest.raises(ValueError, match="NginxConfig.server_names has the wrong type"):
            model_from_dict({"server_names": "example.com"})

    def test_locations_must_be_a_list(self):
        with pytest.raises(ValueError, match="must be a list"):
            model_from_dict({"locations": {"path": "/x"}})

    def test_bad_value_inside_location(self):
        with pytest.raises(ValueError, match=r"locations\[1\]\.autoindex"):
            model_from_dict({"locations": [{"path": "/a"}, {"path": "/b", "autoindex": "yes"}]})

    def test_bool_is_not_a_port(self):
        with pytest.raises(ValueError, match="listen_port"):
            model_from_dict({"listen_port": True})

    def test_input_lists_are_not_shared(self):
        names = ["a.com"]
        model = model_from_dict({"server_names": names})
        names.append("b.com")

        assert model.server_names == ["a.com"]


class TestModelFiles:
    """YAML model files."""

    def test_dump_and_load(self, tmp_path, ssl_model):
        path = tmp_path / "site.yaml"
        path.write_text(dump_model(ssl_model))

        assert load_model(path) == ssl_model

    def test_dump_keeps_field_order(self, default_model):
        text = dump_model(default_model)

        assert text.startswith("server_names:\n- example.com\nlisten_port: 80\n")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ModelFileError, match="Cannot read model file"):
            load_model(tmp_path / "missing.yaml")

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ModelFileError, match="must contain a mapping"):
            load_model(path)

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("locations:\n- path: /x\n  redirect_code: 307\n")

        with pytest.raises(ModelFileError, match="Invalid model") as exc_info:
            load_model(path)
        assert exc_info.value.path == path

    def test_null_section(self, tmp_path):
        path = tmp_path / "null.yaml"
        path.write_text("ssl: null\n")

        with pytest.raises(ModelFileError, match="Invalid model"):
            load_model(path)

    def test_empty_file_is_default_model(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_model(path) == create_default_config()


class TestDeepMerge:
    """Patches produced by lint fixes."""

    def test_nested_merge(self, default_model):
        merged = deep_merge(default_model, {"security": {"rate_limiting": True}})

        assert merged.security.rate_limiting is True
        assert merged.security.hide_version is True
        assert default_model.security.rate_limiting is False

    def test_lists_are_replaced(self, default_model):
        merged = deep_merge(default_model, {"server_names": ["a.com"]})

        assert merged.server_names == ["a.com"]

    def test_plain_dict_field_is_replaced(self, default_model):
        default_model.performance.asset_cache_expiry = {"css": "1d"}
        merged = deep_merge(default_model, {"performance": {"asset_cache_expiry": {"js": "2d"}}})

        assert merged.performance.asset_cache_expiry == {"js": "2d"}

    def test_unknown_field(self, default_model):
        with pytest.raises(ValueError, match="Unknown field"):
            deep_merge(default_model, {"ssl": {"colour": "blue"}})

    def test_invariants_rechecked(self, default_model):
        with pytest.raises(ValueError):
            deep_merge(default_model, {"listen_port": 0})

    def test_result_does_not_share_state(self, default_model):
        merged = deep_merge(default_model, {})
        merged.locations.append(LocationConfig(path="/x"))

        assert len(default_model.locations) == 1

    def test_signature(self, default_model):
        other = create_default_config()

        assert signature(default_model) == signature(other)
        assert same_model(default_model, other)

        other.reverse_proxy.custom_headers.append(Header(key="X-A", value="1"))
        assert not same_model(default_model, other)

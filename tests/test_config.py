"""
Tests for LocalConfig.
"""

import json

import pytest

from contentpacks import config as config_module
from contentpacks.config import ContentPathNotConfigured, LocalConfig


@pytest.fixture
def settings_file(tmp_path):
    return tmp_path / "local_settings.json"


class TestLoading:
    """Settings file and defaults."""

    def test_defaults(self, settings_file):
        config = LocalConfig(config_path=str(settings_file), use_env=False)

        assert config.get_content_path() == ""
        assert config.get_host() == "0.0.0.0"
        assert config.get_port() == 8080
        assert config.get_base_path() == ""
        assert config.should_validate_on_startup() is True

    def test_file_is_merged_over_defaults(self, settings_file):
        settings_file.write_text(json.dumps({
            "content_path": "/srv/content",
            "webserver": {"port": 9000},
            "unknown_key": 1,
        }))

        config = LocalConfig(config_path=str(settings_file), use_env=False)

        assert config.get_content_path() == "/srv/content"
        assert config.get_port() == 9000
        assert config.get_host() == "0.0.0.0"
        assert config.get("unknown_key") is None

    @pytest.mark.parametrize("body", ["{broken", "[1, 2]"])
    def test_bad_file_uses_defaults(self, settings_file, body):
        settings_file.write_text(body)
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        assert config.get_port() == 8080

    def test_unknown_keys_are_ignored(self, settings_file, caplog):
        settings_file.write_text(json.dumps({"webserver": {"port": 9000, "workers": 4}}))

        config = LocalConfig(config_path=str(settings_file), use_env=False)

        assert config.get_port() == 9000
        assert config.get("webserver.workers") is None
        assert "Ignoring unknown setting: workers" in caplog.text

    def test_dotted_get_and_set(self, settings_file):
        config = LocalConfig(config_path=str(settings_file), use_env=False)

        config.set("extra.nested.value", 1)

        assert config.get("extra.nested.value") == 1
        assert config.get("extra.missing", "fallback") == "fallback"
        assert config.get("content_path.below_a_string") is None

    def test_defaults_are_not_shared(self, settings_file):
        first = LocalConfig(config_path=str(settings_file), use_env=False)
        first.set("webserver.port", 1234)

        second = LocalConfig(config_path=str(settings_file), use_env=False)
        assert second.get_port() == 8080


class TestEnvironment:
    """Environment overrides."""

    def test_env_overrides_file(self, settings_file, monkeypatch):
        settings_file.write_text(json.dumps({"content_path": "/from/file"}))
        monkeypatch.setenv("CONTENT_PATH", "/from/env")
        monkeypatch.setenv("PORT", "9090")
        monkeypatch.setenv("BASE_PATH", "api")

        config = LocalConfig(config_path=str(settings_file))

        assert config.get_content_path() == "/from/env"
        assert config.get_port() == 9090
        assert config.get_base_path() == "/api"

    def test_env_ignored_when_disabled(self, settings_file, monkeypatch):
        monkeypatch.setenv("CONTENT_PATH", "/from/env")
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        assert config.get_content_path() == ""

    def test_cds_config_variable(self, settings_file, monkeypatch):
        settings_file.write_text(json.dumps({"webserver": {"host": "127.0.0.1"}}))
        monkeypatch.setenv("CDS_CONFIG", str(settings_file))

        config = LocalConfig(use_env=False)

        assert config.config_path == settings_file
        assert config.get_host() == "127.0.0.1"

    def test_global_instance(self, settings_file, monkeypatch):
        monkeypatch.setenv("CDS_CONFIG", str(settings_file))
        config_module.reset_local_config()
        try:
            first = config_module.get_local_config()
            assert config_module.get_local_config() is first
        finally:
            config_module.reset_local_config()


class TestValues:
    """Typed getters."""

    @pytest.mark.parametrize("raw,expected", [
        ("", ""),
        ("/", ""),
        ("cds", "/cds"),
        ("/cds/", "/cds"),
        (" /a/b ", "/a/b"),
    ])
    def test_base_path_normalization(self, settings_file, raw, expected):
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        config.set("webserver.base_path", raw)
        assert config.get_base_path() == expected

    @pytest.mark.parametrize("port", ["abc", 0, 70000])
    def test_invalid_port(self, settings_file, port):
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        config.set("webserver.port", port)
        with pytest.raises(ValueError):
            config.get_port()

    def test_require_content_path_unset(self, settings_file):
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        with pytest.raises(ContentPathNotConfigured):
            config.require_content_path()

    def test_require_content_path_missing_folder(self, settings_file, tmp_path):
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        config.set_content_path(str(tmp_path / "nope"))
        with pytest.raises(ContentPathNotConfigured):
            config.require_content_path()

    def test_require_content_path(self, settings_file, content_root):
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        config.set_content_path(str(content_root))
        assert config.require_content_path() == str(content_root)

    def test_static_content_path(self, settings_file, tmp_path):
        config = LocalConfig(config_path=str(settings_file), use_env=False)
        assert config.get_static_content_path() is None

        config.set("static_content_path", str(tmp_path / "missing"))
        assert config.get_static_content_path() is None

        config.set("static_content_path", str(tmp_path))
        assert config.get_static_content_path() == str(tmp_path)

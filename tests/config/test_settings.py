"""
Unit tests for settings loading.
"""

import pytest

from ziege.config import ConfigError, Settings, load_settings
from ziege.config.settings import DEFAULT_ZIG_INDEX_URL


@pytest.fixture
def settings_file(tmp_path):
    """Write settings.yaml content and return its path."""

    def _write(content: str):
        path = tmp_path / "settings.yaml"
        path.write_text(content, encoding="utf-8")
        return path

    return _write


class TestLoadSettings:
    """Test load_settings function."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "settings.yaml")

        assert settings == Settings()
        assert settings.zig_index_url == DEFAULT_ZIG_INDEX_URL
        assert settings.index_max_age_hours == 24
        assert settings.verify_downloads is True

    def test_none_gives_defaults(self):
        assert load_settings(None) == Settings()

    def test_empty_file_gives_defaults(self, settings_file):
        assert load_settings(settings_file("")) == Settings()

    def test_overrides(self, settings_file):
        path = settings_file(
            "zig_index_url: https://mirror.example.com/zig/index.json\n"
            "index_max_age_hours: 0.5\n"
            "http_timeout: 10\n"
            "verify_downloads: false\n"
        )

        settings = load_settings(path)

        assert settings.zig_index_url == "https://mirror.example.com/zig/index.json"
        assert settings.index_max_age_hours == 0.5
        assert settings.http_timeout == 10
        assert settings.verify_downloads is False

    def test_invalid_yaml(self, settings_file):
        path = settings_file("zig_index_url: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(path)

    def test_non_mapping(self, settings_file):
        with pytest.raises(ConfigError, match="must contain a mapping"):
            load_settings(settings_file("- a\n- b\n"))

    def test_unknown_key(self, settings_file):
        with pytest.raises(ConfigError, match="Unknown settings.*mirror"):
            load_settings(settings_file("mirror: https://example.com\n"))

    def test_bool_is_not_a_number(self, settings_file):
        with pytest.raises(ConfigError, match="must be a number"):
            load_settings(settings_file("http_timeout: true\n"))

    def test_string_is_not_a_bool(self, settings_file):
        with pytest.raises(ConfigError, match="verify_downloads"):
            load_settings(settings_file("verify_downloads: 'no'\n"))

    def test_negative_max_age(self, settings_file):
        with pytest.raises(ConfigError, match="must not be negative"):
            load_settings(settings_file("index_max_age_hours: -1\n"))

    def test_zero_timeout(self, settings_file):
        with pytest.raises(ConfigError, match="must be positive"):
            load_settings(settings_file("http_timeout: 0\n"))

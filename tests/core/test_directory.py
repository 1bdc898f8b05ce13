"""
Unit tests for directory management.
"""

import sys

import pytest

from ziege.core.directory import HOME_ENV_VAR, Locations, get_app_data_dir


class TestGetAppDataDir:
    """Test data root selection."""

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv(HOME_ENV_VAR, str(tmp_path / "custom"))

        assert get_app_data_dir() == tmp_path / "custom"

    @pytest.mark.skipif(
        sys.platform in ("win32", "darwin"), reason="XDG layout is Linux only"
    )
    def test_xdg_data_home(self, tmp_path, monkeypatch):
        monkeypatch.delenv(HOME_ENV_VAR, raising=False)
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

        assert get_app_data_dir() == tmp_path / "data" / "ziege"


class TestLocations:
    """Test Locations layout."""

    def test_create_builds_layout(self, tmp_path):
        root = tmp_path / "root"

        locations = Locations.create(root)

        assert locations.app_data == root
        assert locations.config_file == root / "settings.yaml"
        assert locations.zig_pkgs == root / "pkg" / "zig"
        assert locations.zls_pkgs == root / "pkg" / "zls"
        for directory in (
            locations.pkg_root,
            locations.zig_pkgs,
            locations.zls_pkgs,
            locations.lock_dir,
        ):
            assert directory.is_dir()

    def test_create_is_idempotent(self, tmp_path):
        Locations.create(tmp_path)
        (tmp_path / "pkg" / "zig" / "0.12.0").mkdir()

        locations = Locations.create(tmp_path)

        assert (locations.zig_pkgs / "0.12.0").is_dir()

    def test_create_uses_env_override(self, ziege_home):
        locations = Locations.create()

        assert locations.app_data == ziege_home

    def test_zig_root(self, locations):
        assert locations.zig_root("0.12.0") == locations.zig_pkgs / "0.12.0"

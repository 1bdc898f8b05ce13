"""
Pytest configuration and shared fixtures for Ziege tests.
"""

import pytest
import requests

from ziege.config.settings import Settings
from ziege.core.directory import HOME_ENV_VAR, Locations
from ziege.core.platform import PlatformInfo

# Import test fixtures to make them available to all tests
# These imports register the fixtures with pytest's fixture discovery system
# ruff: noqa: F401
from tests.fixtures.releases import (
    make_tar_xz,
    make_zip,
    stable_archive,
    nightly_archive,
    zig_index_document,
    zls_index_document,
    zig_index_bytes,
    zls_index_bytes,
    zig_index,
    zls_index,
    register_indexes,
)


# ============================================================================
# Shared Test Fixtures
# ============================================================================


@pytest.fixture
def ziege_home(tmp_path, monkeypatch):
    """Isolated data root, also exported as $ZIEGE_HOME."""
    home = tmp_path / "ziege-home"
    monkeypatch.setenv(HOME_ENV_VAR, str(home))
    return home


@pytest.fixture
def locations(ziege_home) -> Locations:
    return Locations.create(ziege_home)


@pytest.fixture
def linux_platform() -> PlatformInfo:
    return PlatformInfo("linux", "x86_64")


@pytest.fixture
def windows_platform() -> PlatformInfo:
    return PlatformInfo("windows", "x86_64")


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def project_dir(tmp_path):
    """Empty working directory for a project."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def session():
    with requests.Session() as s:
        yield s


@pytest.fixture
def install_fake_toolchain(locations, linux_platform):
    """Factory creating an installed toolchain directory with stub binaries."""

    def _install(version: str, with_zls: bool = False):
        root = locations.zig_root(version)
        root.mkdir(parents=True)
        (root / linux_platform.executable_name("zig")).write_text("#!/bin/sh\n")
        if with_zls:
            (root / linux_platform.executable_name("zls")).write_text("#!/bin/sh\n")
        return root

    return _install

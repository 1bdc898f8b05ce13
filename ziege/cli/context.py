"""
Per-invocation application state.

Everything that would otherwise be process-global (settings, the HTTP
session, loaded release indexes) is built once here and handed to the
commands and the proxy dispatcher explicitly.
"""

import logging
from datetime import timedelta
from pathlib import Path
from typing import Mapping, Optional

import requests

from ziege.config.settings import Settings, load_settings
from ziege.core.directory import Locations
from ziege.core.platform import PlatformInfo, detect_platform
from ziege.toolchain.installer import ToolchainInstaller
from ziege.toolchain.release_index import ReleaseIndex, ReleaseIndexCache, ToolFamily
from ziege.toolchain.resolver import PinFile, VersionResolver

logger = logging.getLogger(__name__)


class AppContext:
    """
    Lazily assembled collaborators for one invocation.

    Release indexes are loaded (and refreshed if stale) on first use and then
    reused, so each index is downloaded at most once per invocation.
    """

    def __init__(
        self,
        locations: Optional[Locations] = None,
        settings: Optional[Settings] = None,
        platform: Optional[PlatformInfo] = None,
        session: Optional[requests.Session] = None,
        working_dir: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.locations = locations or Locations.create()
        self.settings = settings or load_settings(self.locations.config_file)
        self.platform = platform or detect_platform()
        self.session = session or requests.Session()
        self.working_dir = Path(working_dir) if working_dir else Path.cwd()
        self.environ = environ

        max_age = timedelta(hours=self.settings.index_max_age_hours)
        self.index_caches = {
            ToolFamily.ZIG: ReleaseIndexCache(
                ToolFamily.ZIG,
                self.locations.zig_pkgs,
                self.settings.zig_index_url,
                self.session,
                max_age=max_age,
                timeout=self.settings.http_timeout,
            ),
            ToolFamily.ZLS: ReleaseIndexCache(
                ToolFamily.ZLS,
                self.locations.zls_pkgs,
                self.settings.zls_index_url,
                self.session,
                max_age=max_age,
                timeout=self.settings.http_timeout,
            ),
        }
        self._indexes = {}
        self._resolver = None
        self._installer = None

    def release_index(self, family: ToolFamily, force_refresh: bool = False) -> ReleaseIndex:
        """
        Get the release index for ``family``, loading it on first use.

        Args:
            family: Tool family
            force_refresh: Download a fresh copy even if the cache is recent
        """
        if force_refresh or family not in self._indexes:
            self._indexes[family] = self.index_caches[family].load_or_refresh(
                force=force_refresh
            )
        return self._indexes[family]

    def zig_index(self) -> ReleaseIndex:
        return self.release_index(ToolFamily.ZIG)

    def zls_index(self) -> ReleaseIndex:
        return self.release_index(ToolFamily.ZLS)

    @property
    def pin_file(self) -> PinFile:
        return PinFile.in_directory(self.working_dir)

    @property
    def resolver(self) -> VersionResolver:
        if self._resolver is None:
            self._resolver = VersionResolver(
                self.pin_file, self.zig_index, environ=self.environ
            )
        return self._resolver

    @property
    def installer(self) -> ToolchainInstaller:
        if self._installer is None:
            self._installer = ToolchainInstaller(
                self.locations,
                self.session,
                self.zig_index,
                self.zls_index,
                settings=self.settings,
                platform=self.platform,
            )
        return self._installer

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

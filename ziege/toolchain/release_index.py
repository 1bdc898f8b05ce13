"""
Release index cache.

Zig and ZLS each publish a JSON release index. A copy of each is cached as
``index.json`` in the family's package root and re-downloaded when the file's
modification time is more than ``max_age`` in the past. A missing cache file
counts as one week old, so it is always refreshed.

Example:
    >>> cache = ReleaseIndexCache(ToolFamily.ZIG, locations.zig_pkgs,
    ...                           DEFAULT_ZIG_INDEX_URL, session)
    >>> index = cache.load_or_refresh()
    >>> index.nightly_version()
    '0.14.0-dev.1+abcabc'
"""

import json
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional

import requests

from ziege.core.download import DEFAULT_TIMEOUT, fetch_bytes
from ziege.core.exceptions import FilesystemError, ReleaseIndexError
from ziege.core.filesystem import atomic_write

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"
DEFAULT_MAX_AGE = timedelta(hours=24)
MISSING_FILE_AGE = timedelta(weeks=1)

NIGHTLY_KEY = "master"
LATEST_KEY = "latest"


class ToolFamily(Enum):
    """Tool families with their own release index."""

    ZIG = "zig"
    ZLS = "zls"


@dataclass(frozen=True)
class ReleaseArtifactInfo:
    """Published download metadata for an indexed release on one platform."""

    download_url: str
    checksum: Optional[str]
    size_bytes: Optional[int]


class ReleaseIndex:
    """
    Parsed, read-only release index for one tool family.

    Only the top-level mapping is frozen; callers never mutate nested values.
    """

    def __init__(self, family: ToolFamily, document: Mapping[str, Any]):
        self.family = family
        self._document = MappingProxyType(dict(document))

    @classmethod
    def from_bytes(
        cls, family: ToolFamily, data: bytes, source: str = "<memory>"
    ) -> "ReleaseIndex":
        """
        Parse a JSON release index.

        Raises:
            ReleaseIndexError: If the document is not a JSON object
        """
        try:
            document = json.loads(data)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ReleaseIndexError(
                f"Malformed {family.value} release index {source}: {e}"
            ) from e

        if not isinstance(document, dict):
            raise ReleaseIndexError(
                f"Malformed {family.value} release index {source}: "
                "top-level value is not an object"
            )
        return cls(family, document)

    def __contains__(self, version: str) -> bool:
        return self.contains(version)

    def contains(self, version: str) -> bool:
        """True if ``version`` has a full entry in the index."""
        return version in self._document

    def nightly_version(self) -> str:
        """Version string of the current nightly ('master') build."""
        master = self._document.get(NIGHTLY_KEY)
        if not isinstance(master, dict) or not isinstance(master.get("version"), str):
            raise ReleaseIndexError(
                f"{self.family.value} release index has no '{NIGHTLY_KEY}.version' entry"
            )
        return master["version"]

    def latest_version(self) -> str:
        """Value of the index's 'latest' pointer."""
        latest = self._document.get(LATEST_KEY)
        if not isinstance(latest, str):
            raise ReleaseIndexError(
                f"{self.family.value} release index has no '{LATEST_KEY}' entry"
            )
        return latest

    def release_info(self, version: str, json_platform: str) -> ReleaseArtifactInfo:
        """
        Get published download metadata for ``version`` on ``json_platform``.

        Raises:
            ReleaseIndexError: If the version or platform entry is missing or invalid
        """
        entry = self._document.get(version)
        if not isinstance(entry, dict):
            raise ReleaseIndexError(
                f"{self.family.value} {version} is not in the release index"
            )

        info = entry.get(json_platform)
        if not isinstance(info, dict) or not isinstance(info.get("tarball"), str):
            raise ReleaseIndexError(
                f"{self.family.value} {version} has no build for {json_platform}"
            )

        size = info.get("size")
        try:
            size_bytes = int(size) if size is not None else None
        except (TypeError, ValueError) as e:
            raise ReleaseIndexError(
                f"Invalid size {size!r} for {self.family.value} {version}"
            ) from e

        return ReleaseArtifactInfo(
            download_url=info["tarball"],
            checksum=info.get("shasum"),
            size_bytes=size_bytes,
        )


class ReleaseIndexCache:
    """
    On-disk cache of one family's release index.

    Attributes:
        family: Tool family this cache belongs to
        cache_file: Path of the cached ``index.json``
        url: Where fresh copies are downloaded from
        max_age: Age beyond which the cache is refreshed
    """

    def __init__(
        self,
        family: ToolFamily,
        pkg_root: Path,
        url: str,
        session: requests.Session,
        max_age: timedelta = DEFAULT_MAX_AGE,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Callable[[], float] = time.time,
    ):
        self.family = family
        self.cache_file = Path(pkg_root) / INDEX_FILENAME
        self.url = url
        self.session = session
        self.max_age = max_age
        self.timeout = timeout
        self._clock = clock

    def age(self) -> timedelta:
        """Time since the cache file was last written (one week if missing)."""
        try:
            mtime = self.cache_file.stat().st_mtime
        except FileNotFoundError:
            return MISSING_FILE_AGE
        return timedelta(seconds=self._clock() - mtime)

    def is_stale(self) -> bool:
        return self.age() > self.max_age

    def refresh(self) -> ReleaseIndex:
        """
        Download the index and replace the cache file.

        The body is parsed before it is written, and written atomically, so a
        failed refresh leaves the previous cache file untouched.

        Raises:
            DownloadError: If the download fails
            ReleaseIndexError: If the downloaded document is malformed
            FilesystemError: If the cache file cannot be written
        """
        logger.debug(f"Downloading {self.url}")
        data = fetch_bytes(self.session, self.url, timeout=self.timeout)
        index = ReleaseIndex.from_bytes(self.family, data, source=self.url)
        try:
            atomic_write(self.cache_file, data)
        except OSError as e:
            raise FilesystemError(
                f"Cannot write release index {self.cache_file}: {e}"
            ) from e
        logger.debug(f"Updated {self.family.value} release index: {self.cache_file}")
        return index

    def load(self) -> ReleaseIndex:
        """
        Parse the cached index file.

        Raises:
            ReleaseIndexError: If the file is missing, unreadable or malformed
        """
        try:
            data = self.cache_file.read_bytes()
        except OSError as e:
            raise ReleaseIndexError(
                f"Cannot read {self.family.value} release index {self.cache_file}: {e}"
            ) from e
        return ReleaseIndex.from_bytes(self.family, data, source=str(self.cache_file))

    def load_or_refresh(self, force: bool = False) -> ReleaseIndex:
        """
        Load the index, refreshing it first when stale.

        There is no fallback to a stale copy: if the refresh fails, the error
        propagates.

        Args:
            force: Refresh regardless of age
        """
        if force or self.is_stale():
            return self.refresh()
        logger.debug(f"Using cached {self.family.value} release index")
        return self.load()

"""
HTTP transport for release indexes, archives and companion binaries.

This module provides:
- Whole-body fetches for small documents (release indexes)
- Streaming downloads to disk with progress reporting
- Optional size and SHA256 verification while streaming

Requests are never retried: any transport failure or non-success status
aborts the invocation. The ``requests.Session`` is created once per
invocation by the caller and passed in explicitly.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import requests
from requests.exceptions import RequestException

from ziege.core.exceptions import ZiegeError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30
CHUNK_SIZE = 64 * 1024


@dataclass
class DownloadProgress:
    """Progress information for a download."""

    bytes_downloaded: int
    total_bytes: int
    percentage: float
    speed_bps: float  # bytes per second
    eta_seconds: float

    def __str__(self) -> str:
        return format_progress(self)


class DownloadError(ZiegeError):
    """Exception raised when a download fails."""

    pass


class ChecksumError(DownloadError):
    """Exception raised when checksum verification fails."""

    pass


class StreamingHasher:
    """Compute a SHA256 digest incrementally for streaming downloads."""

    def __init__(self):
        self.hasher = hashlib.sha256()

    def update(self, data: bytes):
        self.hasher.update(data)

    def finalize(self) -> str:
        return self.hasher.hexdigest()

    def verify(self, expected_hash: str) -> bool:
        """
        Check if computed hash matches expected value (case-insensitive).

        Args:
            expected_hash: Expected hash value (hex string)
        """
        return self.finalize().lower() == expected_hash.lower()


def _get(session: requests.Session, url: str, timeout: float, stream: bool):
    try:
        response = session.get(url, stream=stream, timeout=timeout)
    except RequestException as e:
        raise DownloadError(f"Request to {url} failed: {e}") from e

    if not response.ok:
        response.close()
        raise DownloadError(
            f"Request to {url} failed with HTTP {response.status_code}"
        )
    return response


def fetch_bytes(
    session: requests.Session, url: str, timeout: float = DEFAULT_TIMEOUT
) -> bytes:
    """
    Fetch a complete response body into memory.

    Args:
        session: HTTP session for this invocation
        url: URL to fetch
        timeout: Request timeout in seconds

    Returns:
        Response body

    Raises:
        DownloadError: On connection errors, timeouts or non-success status
    """
    logger.debug(f"Fetching {url}")
    response = _get(session, url, timeout, stream=False)
    try:
        return response.content
    except RequestException as e:
        raise DownloadError(f"Failed reading response from {url}: {e}") from e


def download_file(
    session: requests.Session,
    url: str,
    destination: Path,
    expected_sha256: Optional[str] = None,
    expected_size: Optional[int] = None,
    progress_callback: Optional[Callable[[DownloadProgress], None]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Path:
    """
    Stream ``url`` into ``destination``.

    The destination is truncated before writing and removed again if the
    transfer or verification fails.

    Args:
        session: HTTP session for this invocation
        url: URL to download from
        destination: Local path to save file
        expected_sha256: Expected SHA256 hash (verified during download)
        expected_size: Expected size in bytes
        progress_callback: Optional callback for progress updates
        timeout: Request timeout in seconds

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If the request fails or the size does not match
        ChecksumError: If checksum doesn't match expected value

    Example:
        >>> with requests.Session() as session:
        ...     download_file(session, url, Path("zig.tar.xz"))
    """
    if not url:
        raise ValueError("URL cannot be empty")

    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DownloadError(f"Cannot create download directory for {url}: {e}") from e

    logger.info(f"Downloading {url}")
    response = _get(session, url, timeout, stream=True)

    content_length = response.headers.get("content-length")
    total_size = int(content_length) if content_length else 0

    hasher = StreamingHasher() if expected_sha256 else None
    downloaded = 0
    start_time = time.time()
    last_progress_time = start_time

    try:
        with response, open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                f.write(chunk)
                downloaded += len(chunk)
                if hasher:
                    hasher.update(chunk)

                # Report progress (max once per 0.5 seconds)
                current_time = time.time()
                if progress_callback and (
                    current_time - last_progress_time >= 0.5
                    or downloaded == total_size
                ):
                    progress_callback(
                        _make_progress(downloaded, total_size, current_time - start_time)
                    )
                    last_progress_time = current_time
    except (RequestException, OSError) as e:
        destination.unlink(missing_ok=True)
        raise DownloadError(f"Download of {url} failed: {e}") from e

    if expected_size is not None and downloaded != expected_size:
        destination.unlink(missing_ok=True)
        raise DownloadError(
            f"Size mismatch for {destination.name}: "
            f"expected {expected_size} bytes, got {downloaded}"
        )

    if hasher and not hasher.verify(expected_sha256):
        actual_hash = hasher.finalize()
        destination.unlink(missing_ok=True)
        raise ChecksumError(
            f"Checksum mismatch for {destination.name}: "
            f"expected {expected_sha256}, got {actual_hash}"
        )
    if hasher:
        logger.debug("Checksum verified successfully")

    logger.debug(f"Download complete: {destination}")
    return destination


def _make_progress(downloaded: int, total_size: int, elapsed: float) -> DownloadProgress:
    speed = downloaded / elapsed if elapsed > 0 else 0
    remaining = total_size - downloaded if total_size > 0 else 0
    return DownloadProgress(
        bytes_downloaded=downloaded,
        total_bytes=total_size if total_size > 0 else downloaded,
        percentage=(downloaded / total_size * 100) if total_size > 0 else 0,
        speed_bps=speed,
        eta_seconds=remaining / speed if speed > 0 else 0,
    )


def format_progress(progress: DownloadProgress) -> str:
    """
    Format progress for display.

    Example:
        >>> progress = DownloadProgress(52428800, 104857600, 50.0, 1048576, 50)
        >>> print(format_progress(progress))
        50.0/100.0 MB (50.0%) at 1.0 MB/s ETA: 50s
    """
    mb_downloaded = progress.bytes_downloaded / 1024 / 1024
    mb_total = progress.total_bytes / 1024 / 1024
    speed_mbps = progress.speed_bps / 1024 / 1024

    if progress.percentage > 0:
        return (
            f"{mb_downloaded:.1f}/{mb_total:.1f} MB "
            f"({progress.percentage:.1f}%) "
            f"at {speed_mbps:.1f} MB/s "
            f"ETA: {progress.eta_seconds:.0f}s"
        )
    return f"{mb_downloaded:.1f} MB at {speed_mbps:.1f} MB/s"

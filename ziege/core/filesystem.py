"""
Cross-platform file system utilities for Ziege.

This module provides:
- Archive extraction (tar.xz with optional prefix stripping, zip)
- Safe file operations (atomic writes, guarded recursive deletion)
- Executable permission handling
"""

import os
import shutil
import stat
import sys
import tarfile
import tempfile
import zipfile
from pathlib import Path
from typing import Iterator, Optional, Union

from ziege.core.exceptions import (
    ArchiveExtractionError,
    FilesystemError,
    InsecureArchiveError,
)

IS_WINDOWS = os.name == "nt"


def is_relative_to(path: Path, parent: Path) -> bool:
    """Check if ``path`` is ``parent`` or lies beneath it."""
    try:
        path.relative_to(parent)
        return True
    except ValueError:
        return False


# ============================================================================
# Archive Extraction
# ============================================================================


def _validate_archive_path(path: str, destination: Path) -> None:
    """
    Validate that an archive member path is safe to extract.

    Raises:
        InsecureArchiveError: If path attempts directory traversal
    """
    member_path = (destination / path).resolve()

    if not is_relative_to(member_path, destination.resolve()):
        raise InsecureArchiveError(
            f"Archive member '{path}' attempts directory traversal. "
            "This is a security risk and extraction has been blocked."
        )


def _strip_path(name: str, strip_components: int) -> Optional[str]:
    parts = [p for p in name.replace("\\", "/").split("/") if p not in ("", ".")]
    if len(parts) <= strip_components:
        return None
    return "/".join(parts[strip_components:])


def _stripped_members(
    tar: tarfile.TarFile, destination: Path, strip_components: int
) -> Iterator[tarfile.TarInfo]:
    for member in tar.getmembers():
        name = _strip_path(member.name, strip_components)
        if name is None:
            continue
        member.name = name
        if member.islnk():
            linkname = _strip_path(member.linkname, strip_components)
            if linkname is None:
                raise ArchiveExtractionError(
                    f"Hard link '{member.name}' points at a stripped path"
                )
            member.linkname = linkname
        _validate_archive_path(member.name, destination)
        yield member


def extract_tar(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    strip_components: int = 0,
) -> None:
    """
    Extract a compressed tar archive, optionally stripping leading path components.

    Compression is detected transparently (``tarfile`` mode ``r:*``).

    Args:
        archive_path: Path to the archive file
        destination: Existing directory to extract into
        strip_components: Number of leading path components to drop per member

    Raises:
        ArchiveExtractionError: If the archive is missing, corrupt or unreadable
        InsecureArchiveError: If a member would escape the destination

    Example:
        >>> extract_tar('zig-linux-x86_64-0.12.0.tar.xz', root, strip_components=1)
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    try:
        with tarfile.open(archive_path, "r:*") as tar:
            members = list(_stripped_members(tar, destination, strip_components))
            # Extract with filter for security (Python 3.12+)
            # For older Python, we've already validated paths above
            if sys.version_info >= (3, 12):
                tar.extractall(destination, members=members, filter="data")
            else:
                tar.extractall(destination, members=members)
    except ArchiveExtractionError:
        raise
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


def extract_zip(
    archive_path: Union[str, Path],
    destination: Union[str, Path],
    expected_root: Optional[str] = None,
) -> None:
    """
    Extract a ZIP archive as-is into ``destination``.

    ZIP extraction cannot strip prefixes, so the archive's own top-level
    folder is recreated under ``destination``.

    Args:
        archive_path: Path to the archive file
        destination: Directory to extract into
        expected_root: If given, every member must live under this top-level
            folder; checked before anything is written

    Raises:
        ArchiveExtractionError: If the archive is missing, corrupt, unreadable
            or laid out differently than expected
        InsecureArchiveError: If a member would escape the destination
    """
    archive_path = Path(archive_path)
    destination = Path(destination)

    if not archive_path.exists():
        raise ArchiveExtractionError(f"Archive not found: {archive_path}")

    try:
        with zipfile.ZipFile(archive_path, "r") as zf:
            members = zf.namelist()
            for member in members:
                _validate_archive_path(member, destination)
                if expected_root is not None:
                    top = member.replace("\\", "/").split("/", 1)[0]
                    if top != expected_root:
                        raise ArchiveExtractionError(
                            f"Unexpected member '{member}' in {archive_path.name}: "
                            f"expected everything under '{expected_root}/'"
                        )
            zf.extractall(destination, members)
    except ArchiveExtractionError:
        raise
    except (zipfile.BadZipFile, OSError, EOFError) as e:
        raise ArchiveExtractionError(f"Failed to extract {archive_path}: {e}") from e


# ============================================================================
# Safe File Operations
# ============================================================================


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Write file atomically using temp file + rename.

    If the write fails, the original file (if any) remains unchanged.

    Args:
        file_path: Path to write to
        content: Content to write (string or bytes)
        encoding: Text encoding (used only for string content)
    """
    file_path = Path(file_path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in same directory keeps the rename on one filesystem
    temp_fd, temp_path_str = tempfile.mkstemp(
        dir=file_path.parent, prefix=f".{file_path.name}.", suffix=".tmp"
    )
    temp_path = Path(temp_path_str)

    try:
        if isinstance(content, str):
            # newline="" keeps the content byte-for-byte on Windows
            with open(temp_fd, "w", encoding=encoding, newline="") as f:
                f.write(content)
        else:
            with open(temp_fd, "wb") as f:
                f.write(content)

        temp_path.replace(file_path)

    except Exception:
        temp_path.unlink(missing_ok=True)
        raise


def safe_rmtree(
    path: Union[str, Path], require_prefix: Optional[Union[str, Path]] = None
) -> None:
    """
    Safely remove a directory tree with safeguards.

    Args:
        path: Directory to remove
        require_prefix: If specified, path must be under this directory

    Raises:
        ValueError: If path is not under require_prefix
        FilesystemError: If deletion fails

    Example:
        >>> safe_rmtree(locations.zig_root("0.12.0"), require_prefix=locations.zig_pkgs)
    """
    path = Path(path).resolve()

    if require_prefix is not None:
        require_prefix = Path(require_prefix).resolve()
        if not is_relative_to(path, require_prefix) or path == require_prefix:
            raise ValueError(
                f"Refusing to delete '{path}': not under required prefix '{require_prefix}'"
            )

    if not path.exists():
        return

    if not path.is_dir():
        raise FilesystemError(f"Path is not a directory: {path}")

    try:
        if IS_WINDOWS:

            def handle_remove_readonly(func, path, exc):
                """Error handler for Windows read-only files."""
                if not os.access(path, os.W_OK):
                    os.chmod(path, stat.S_IWRITE)
                    func(path)
                else:
                    raise

            shutil.rmtree(path, onerror=handle_remove_readonly)
        else:
            shutil.rmtree(path)

    except Exception as e:
        raise FilesystemError(f"Failed to remove directory '{path}': {e}") from e


def make_executable(path: Union[str, Path]) -> None:
    """Set mode 0755 on ``path``. No-op on Windows."""
    if IS_WINDOWS:
        return
    try:
        os.chmod(path, 0o755)
    except OSError as e:
        raise FilesystemError(f"Failed to mark {path} executable: {e}") from e


__all__ = [
    "IS_WINDOWS",
    "is_relative_to",
    "extract_tar",
    "extract_zip",
    "atomic_write",
    "safe_rmtree",
    "make_executable",
]

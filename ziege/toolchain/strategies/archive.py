"""
Archive extraction strategies for Zig releases.

- TarStripExtraction: ``.tar.xz`` (Linux, macOS). Creates the install
  directory and extracts into it with the top-level folder stripped.
- ZipRenameExtraction: ``.zip`` (Windows). Extracts next to the install
  directory, recreating the archive's top-level folder, then renames that
  folder to the install directory.
"""

import logging
from pathlib import Path

from ziege.core.exceptions import (
    ArchiveExtractionError,
    FilesystemError,
    InstallCleanupError,
)
from ziege.core.filesystem import extract_tar, extract_zip, safe_rmtree
from ziege.core.platform import PlatformInfo
from ..strategy import ExtractionStrategy

logger = logging.getLogger(__name__)


def _remove_partial(directory: Path) -> None:
    if not directory.exists():
        return
    logger.debug(f"Removing partial extraction: {directory}")
    try:
        safe_rmtree(directory, require_prefix=directory.parent)
    except (FilesystemError, ValueError) as e:
        raise InstallCleanupError(
            f"Unable to remove {directory} after a failed extraction: {e}"
        ) from e


class TarStripExtraction(ExtractionStrategy):
    """Strategy for tar archives, which support stripping the leading folder."""

    archive_extension = "tar.xz"

    def extract(self, archive_path: Path, install_dir: Path) -> None:
        install_dir.mkdir(parents=True, exist_ok=True)
        try:
            extract_tar(archive_path, install_dir, strip_components=1)
            if not any(install_dir.iterdir()):
                raise ArchiveExtractionError(
                    f"{archive_path.name} has no top-level folder to strip; "
                    "nothing was extracted"
                )
        except Exception:
            _remove_partial(install_dir)
            raise


class ZipRenameExtraction(ExtractionStrategy):
    """Strategy for zip archives, which always recreate their top-level folder."""

    archive_extension = "zip"

    def extract(self, archive_path: Path, install_dir: Path) -> None:
        pkgs_dir = install_dir.parent
        # The archive's top-level folder matches its file name stem
        extracted_dir = pkgs_dir / _archive_stem(archive_path, self.archive_extension)

        # Left over from an interrupted run
        _remove_partial(extracted_dir)

        try:
            extract_zip(archive_path, pkgs_dir, expected_root=extracted_dir.name)
            if not extracted_dir.is_dir():
                raise ArchiveExtractionError(
                    f"{archive_path.name} did not contain folder '{extracted_dir.name}'"
                )
            logger.debug(f"Renaming {extracted_dir.name} => {install_dir.name}")
            try:
                extracted_dir.rename(install_dir)
            except OSError as e:
                raise FilesystemError(
                    f"Failed to rename {extracted_dir} to {install_dir}: {e}"
                ) from e
        except Exception:
            _remove_partial(extracted_dir)
            _remove_partial(install_dir)
            raise


def _archive_stem(archive_path: Path, extension: str) -> str:
    name = archive_path.name
    suffix = f".{extension}"
    if name.endswith(suffix):
        return name[: -len(suffix)]
    return archive_path.stem


def select_extraction_strategy(platform: PlatformInfo) -> ExtractionStrategy:
    """
    Pick the extraction strategy for the platform's native archive format.

    Args:
        platform: Host platform

    Returns:
        ZipRenameExtraction on Windows, TarStripExtraction elsewhere
    """
    if platform.archive_extension == ZipRenameExtraction.archive_extension:
        return ZipRenameExtraction()
    return TarStripExtraction()

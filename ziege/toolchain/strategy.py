"""
Extraction Strategy Interface.

Published Zig archives always wrap their contents in one top-level folder
named after the archive. How that folder is turned into the versioned
install directory depends on what the platform's archive format supports,
so extraction is modelled as an interchangeable strategy chosen once per
invocation.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class ExtractionStrategy(ABC):
    """
    Abstract base class for archive extraction strategies.

    Implementations must leave no ``install_dir`` behind when they fail.
    """

    #: Archive extension this strategy consumes (without leading dot)
    archive_extension: str = ""

    @abstractmethod
    def extract(self, archive_path: Path, install_dir: Path) -> None:
        """
        Extract ``archive_path`` so its contents end up directly in ``install_dir``.

        Args:
            archive_path: Downloaded archive
            install_dir: Versioned directory to populate; must not exist yet

        Raises:
            ArchiveExtractionError: If the archive is corrupt or has an
                unexpected layout
            InstallCleanupError: If a partial ``install_dir`` cannot be removed
        """
        pass

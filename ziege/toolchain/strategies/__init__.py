"""
Archive extraction strategies.

Use select_extraction_strategy() to pick the one matching the host platform.
"""

from ziege.toolchain.strategies.archive import (
    TarStripExtraction,
    ZipRenameExtraction,
    select_extraction_strategy,
)

__all__ = ["TarStripExtraction", "ZipRenameExtraction", "select_extraction_strategy"]

"""
Unit tests for archive extraction strategies.
"""

import pytest

from ziege.core.exceptions import ArchiveExtractionError
from ziege.core.platform import PlatformInfo
from ziege.toolchain.strategies import (
    TarStripExtraction,
    ZipRenameExtraction,
    select_extraction_strategy,
)
from ziege.toolchain.strategy import ExtractionStrategy


@pytest.fixture
def pkgs_dir(tmp_path):
    pkgs = tmp_path / "pkg" / "zig"
    pkgs.mkdir(parents=True)
    return pkgs


class TestSelectExtractionStrategy:
    def test_tar_on_posix(self):
        strategy = select_extraction_strategy(PlatformInfo("macos", "aarch64"))

        assert isinstance(strategy, TarStripExtraction)

    def test_zip_on_windows(self):
        strategy = select_extraction_strategy(PlatformInfo("windows", "x86_64"))

        assert isinstance(strategy, ZipRenameExtraction)

    def test_strategies_implement_interface(self):
        assert issubclass(TarStripExtraction, ExtractionStrategy)
        assert issubclass(ZipRenameExtraction, ExtractionStrategy)


class TestTarStripExtraction:
    """Test extraction of .tar.xz releases."""

    def test_contents_land_in_install_dir(self, pkgs_dir, make_tar_xz):
        archive = pkgs_dir / "zig-linux-x86_64-0.12.0.tar.xz"
        archive.write_bytes(
            make_tar_xz(
                {"zig": b"binary", "doc/langref.html": b"<html>"},
                top_dir="zig-linux-x86_64-0.12.0",
            )
        )
        install_dir = pkgs_dir / "0.12.0"

        TarStripExtraction().extract(archive, install_dir)

        assert (install_dir / "zig").read_bytes() == b"binary"
        assert (install_dir / "doc" / "langref.html").exists()

    def test_corrupt_archive_leaves_no_install_dir(self, pkgs_dir):
        archive = pkgs_dir / "zig-linux-x86_64-0.12.0.tar.xz"
        archive.write_bytes(b"truncated download")
        install_dir = pkgs_dir / "0.12.0"

        with pytest.raises(ArchiveExtractionError):
            TarStripExtraction().extract(archive, install_dir)

        assert not install_dir.exists()

    def test_archive_without_top_folder(self, pkgs_dir, make_tar_xz):
        """Test a flat archive extracts nothing and is reported as an error."""
        archive = pkgs_dir / "flat.tar.xz"
        archive.write_bytes(make_tar_xz({"zig": b"binary"}))
        install_dir = pkgs_dir / "0.12.0"

        with pytest.raises(ArchiveExtractionError, match="no top-level folder"):
            TarStripExtraction().extract(archive, install_dir)

        assert not install_dir.exists()


class TestZipRenameExtraction:
    """Test extraction of .zip releases."""

    ARCHIVE_NAME = "zig-windows-x86_64-0.12.0.zip"
    TOP_DIR = "zig-windows-x86_64-0.12.0"

    def test_top_folder_renamed_to_install_dir(self, pkgs_dir, make_zip):
        archive = pkgs_dir / self.ARCHIVE_NAME
        archive.write_bytes(
            make_zip({"zig.exe": b"binary", "lib/std.zig": b"//"}, top_dir=self.TOP_DIR)
        )
        install_dir = pkgs_dir / "0.12.0"

        ZipRenameExtraction().extract(archive, install_dir)

        assert (install_dir / "zig.exe").read_bytes() == b"binary"
        assert (install_dir / "lib" / "std.zig").exists()
        assert not (pkgs_dir / self.TOP_DIR).exists()

    def test_stale_extraction_folder_replaced(self, pkgs_dir, make_zip):
        """Test leftovers from an interrupted run do not leak into the install."""
        stale = pkgs_dir / self.TOP_DIR
        stale.mkdir()
        (stale / "leftover.txt").write_text("old")
        archive = pkgs_dir / self.ARCHIVE_NAME
        archive.write_bytes(make_zip({"zig.exe": b"binary"}, top_dir=self.TOP_DIR))
        install_dir = pkgs_dir / "0.12.0"

        ZipRenameExtraction().extract(archive, install_dir)

        assert not (install_dir / "leftover.txt").exists()
        assert (install_dir / "zig.exe").exists()

    def test_unexpected_layout_leaves_nothing(self, pkgs_dir, make_zip):
        archive = pkgs_dir / self.ARCHIVE_NAME
        archive.write_bytes(make_zip({"zig.exe": b"binary"}, top_dir="other"))
        install_dir = pkgs_dir / "0.12.0"

        with pytest.raises(ArchiveExtractionError):
            ZipRenameExtraction().extract(archive, install_dir)

        assert not install_dir.exists()
        assert not (pkgs_dir / "other").exists()
        assert not (pkgs_dir / self.TOP_DIR).exists()

"""Test fixtures for Ziege tests.

This package provides reusable pytest fixtures and sample data:

- releases: Release index documents, archive builders and well-known versions

Import fixtures or constants in your tests using:
    from tests.fixtures.releases import NIGHTLY_VERSION, build_tar_xz
"""

__all__ = [
    "releases",
]

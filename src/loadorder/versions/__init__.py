"""Version parsing and range arithmetic.

Exports ``parse_version`` and ``VersionRange``.
"""
from __future__ import annotations

from loadorder.versions.ranges import VersionRange, parse_version

__all__ = ["VersionRange", "parse_version"]

"""Exception types for loadorder.

Resolution itself never raises for a well-formed catalog: per-descriptor
problems are recorded as ``ResolutionIssue`` entries on the session.
The exceptions here are raised at the boundaries, when building
versions, ranges and manifests, and when a feature request string is
malformed.
"""
from __future__ import annotations


class LoadOrderError(Exception):
    """Base class for all loadorder errors."""


class InvalidVersionError(LoadOrderError, ValueError):
    """Raised when a version string cannot be parsed."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid version {text!r}{detail}")


class InvalidRangeError(LoadOrderError, ValueError):
    """Raised when a version range expression cannot be parsed."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid version range {text!r}{detail}")


class ManifestError(LoadOrderError):
    """Raised when a manifest mapping does not match the manifest schema.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    source:
        Optional origin label (file path, index in a catalog document).
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        prefix = f"{source}: " if source else ""
        super().__init__(f"{prefix}{message}")


class FeatureParseError(LoadOrderError):
    """Raised when a feature request string is syntactically malformed."""

    def __init__(self, text: str, reason: str) -> None:
        self.text = text
        self.reason = reason
        super().__init__(f"Malformed feature request {text!r}: {reason}")

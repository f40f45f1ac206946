"""Resolution session state and issue types."""
from __future__ import annotations

from loadorder.session.diagnostics import IssueKind, IssueSeverity, ResolutionIssue
from loadorder.session.session import Partition, ResolutionSession

__all__ = [
    "IssueKind",
    "IssueSeverity",
    "Partition",
    "ResolutionIssue",
    "ResolutionSession",
]

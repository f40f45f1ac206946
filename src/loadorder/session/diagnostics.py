"""Issue types recorded during a resolution session.

A ``ResolutionIssue`` is the reason attached to a descriptor when a
phase classifies it, or a finding that leaves its partition unchanged
(feature denials, host version mismatches).  Every issue carries a
short machine-readable code:

    LO001  Duplicate identity
    LO002  Declared conflict
    LO003  Disabled by the disabled-id store
    LO004  Unsatisfied dependency
    LO005  Cascade-disabled (dependency is disabled)
    LO006  Circular ordering constraint
    LO007  Feature request could not be parsed
    LO008  Feature denied the plugin
    LO009  Feature not found
    LO010  Host version mismatch
    LO999  Internal error while processing a descriptor
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor


class IssueSeverity(Enum):
    """Severity levels for resolution issues."""

    ERROR = auto()
    WARNING = auto()
    INFORMATION = auto()


class IssueKind(Enum):
    """What went wrong, with its code and default severity."""

    DUPLICATE_IDENTITY = ("LO001", IssueSeverity.WARNING)
    DECLARED_CONFLICT = ("LO002", IssueSeverity.WARNING)
    DISABLED = ("LO003", IssueSeverity.INFORMATION)
    UNSATISFIED_DEPENDENCY = ("LO004", IssueSeverity.WARNING)
    CASCADE_DISABLED = ("LO005", IssueSeverity.WARNING)
    CIRCULAR_CONSTRAINT = ("LO006", IssueSeverity.ERROR)
    FEATURE_PARSE_ERROR = ("LO007", IssueSeverity.ERROR)
    FEATURE_DENIED = ("LO008", IssueSeverity.WARNING)
    FEATURE_NOT_FOUND = ("LO009", IssueSeverity.WARNING)
    HOST_VERSION_MISMATCH = ("LO010", IssueSeverity.WARNING)
    INTERNAL_ERROR = ("LO999", IssueSeverity.ERROR)

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def default_severity(self) -> IssueSeverity:
        return self.value[1]


@dataclass(frozen=True)
class ResolutionIssue:
    """A single finding about one descriptor.

    Parameters
    ----------
    kind:
        What went wrong.
    descriptor:
        The descriptor the finding is about.
    message:
        Human-readable description.
    related:
        The other descriptor involved, if any (the winning duplicate,
        the conflicting plugin, the disabled dependency).
    detail:
        Optional extra context, such as the offending feature request or
        the members of a cycle.
    severity:
        Overrides ``kind.default_severity`` when given.
    """

    kind: IssueKind
    descriptor: PluginDescriptor
    message: str
    related: PluginDescriptor | None = field(default=None)
    detail: str | None = field(default=None)
    severity: IssueSeverity | None = field(default=None)

    @property
    def code(self) -> str:
        return self.kind.code

    @property
    def effective_severity(self) -> IssueSeverity:
        return self.severity if self.severity is not None else self.kind.default_severity

    @property
    def is_error(self) -> bool:
        """Return True if this issue is ERROR severity."""
        return self.effective_severity == IssueSeverity.ERROR

    def __str__(self) -> str:
        prefix = f"[{self.code}] {self.effective_severity.name}"
        detail_part = f" ({self.detail})" if self.detail else ""
        return f"{prefix} {self.descriptor.name}: {self.message}{detail_part}"

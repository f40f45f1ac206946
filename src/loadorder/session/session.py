"""Resolution session: the four partitions and the issue log.

Every descriptor handed to a session starts in ``PENDING``.  The
resolution phases move descriptors with :meth:`ResolutionSession.accept`,
:meth:`~ResolutionSession.disable` and :meth:`~ResolutionSession.ignore`;
each move takes the descriptor out of its previous partition, so a
descriptor is always in exactly one partition.

Usage
-----
::

    from loadorder.session import ResolutionSession

    session = ResolutionSession(catalog)
    ...  # run the phases
    for descriptor in session.accepted:
        print(descriptor)
    for issue in session.issues:
        print(issue)
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum, auto
from typing import TYPE_CHECKING

from loadorder.session.diagnostics import ResolutionIssue

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor
    from loadorder.features.registry import FeatureRegistry

logger = logging.getLogger(__name__)


class Partition(Enum):
    """Where a descriptor currently stands."""

    PENDING = auto()
    ACCEPTED = auto()
    DISABLED = auto()
    IGNORED = auto()


class ResolutionSession:
    """All mutable state of one resolution run.

    Parameters
    ----------
    catalog:
        The descriptors to resolve, in discovery order.  Discovery order
        never influences the outcome.
    """

    def __init__(self, catalog: Iterable[PluginDescriptor] = ()) -> None:
        self._membership: dict[PluginDescriptor, Partition] = {}
        self._partitions: dict[Partition, list[PluginDescriptor]] = {p: [] for p in Partition}
        self._issues: list[ResolutionIssue] = []
        self._reasons: dict[PluginDescriptor, ResolutionIssue] = {}
        self._newly_disabled: list[str] = []
        for descriptor in catalog:
            self.add(descriptor)

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    def add(self, descriptor: PluginDescriptor) -> None:
        """Add a descriptor to the catalog in the ``PENDING`` partition.

        Raises
        ------
        ValueError
            If the same descriptor object was already added.
        """
        if descriptor in self._membership:
            raise ValueError(f"{descriptor} is already part of this session")
        self._membership[descriptor] = Partition.PENDING
        self._partitions[Partition.PENDING].append(descriptor)

    @property
    def catalog(self) -> tuple[PluginDescriptor, ...]:
        """Every descriptor in the session, in insertion order."""
        return tuple(self._membership)

    def __len__(self) -> int:
        return len(self._membership)

    def __contains__(self, descriptor: object) -> bool:
        return descriptor in self._membership

    # ------------------------------------------------------------------
    # Partitions
    # ------------------------------------------------------------------

    @property
    def pending(self) -> tuple[PluginDescriptor, ...]:
        return tuple(self._partitions[Partition.PENDING])

    @property
    def accepted(self) -> tuple[PluginDescriptor, ...]:
        """The load order."""
        return tuple(self._partitions[Partition.ACCEPTED])

    @property
    def disabled(self) -> tuple[PluginDescriptor, ...]:
        return tuple(self._partitions[Partition.DISABLED])

    @property
    def ignored(self) -> tuple[PluginDescriptor, ...]:
        return tuple(self._partitions[Partition.IGNORED])

    @property
    def activatable(self) -> tuple[PluginDescriptor, ...]:
        """Accepted descriptors that can be activated, in load order.

        Bare descriptors have no backing binary and are excluded.
        """
        return tuple(d for d in self._partitions[Partition.ACCEPTED] if not d.is_bare)

    def partition_of(self, descriptor: PluginDescriptor) -> Partition:
        """Return the partition ``descriptor`` is in.

        Raises
        ------
        KeyError
            If ``descriptor`` is not part of this session.
        """
        try:
            return self._membership[descriptor]
        except KeyError:
            raise KeyError(f"{descriptor} is not part of this session") from None

    def _move(self, descriptor: PluginDescriptor, target: Partition) -> None:
        current = self.partition_of(descriptor)
        self._partitions[current].remove(descriptor)
        self._partitions[target].append(descriptor)
        self._membership[descriptor] = target

    def accept(self, descriptor: PluginDescriptor) -> None:
        """Append ``descriptor`` to the load order."""
        self._move(descriptor, Partition.ACCEPTED)

    def disable(self, descriptor: PluginDescriptor, issue: ResolutionIssue) -> None:
        """Move ``descriptor`` to the disabled partition with a reason."""
        self._move(descriptor, Partition.DISABLED)
        self._reasons[descriptor] = issue
        self.record(issue)

    def ignore(self, descriptor: PluginDescriptor, issue: ResolutionIssue) -> None:
        """Move ``descriptor`` to the ignored partition with a reason."""
        self._move(descriptor, Partition.IGNORED)
        self._reasons[descriptor] = issue
        self.record(issue)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    def record(self, issue: ResolutionIssue) -> None:
        """Append ``issue`` to the log without changing any partition."""
        self._issues.append(issue)

    @property
    def issues(self) -> tuple[ResolutionIssue, ...]:
        """Every issue recorded so far, in the order phases produced them."""
        return tuple(self._issues)

    def issues_for(self, descriptor: PluginDescriptor) -> list[ResolutionIssue]:
        return [issue for issue in self._issues if issue.descriptor is descriptor]

    def reason_for(self, descriptor: PluginDescriptor) -> ResolutionIssue | None:
        """Return the issue that put ``descriptor`` in its partition, if any."""
        return self._reasons.get(descriptor)

    def note_disabled_identity(self, identity: str) -> None:
        """Remember an identity this session added to the disabled-id store."""
        self._newly_disabled.append(identity)

    @property
    def newly_disabled(self) -> tuple[str, ...]:
        """Identities appended to the disabled-id store by cascade disabling."""
        return tuple(self._newly_disabled)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def release(self, full: bool = False, registry: FeatureRegistry | None = None) -> None:
        """Tear the session down before a new resolution run.

        A partial release keeps accepted and ignored descriptors in the
        ignored partition so that update tracking can still read their
        metadata, and drops everything else.  A full release empties the
        session.  Resolved features are cleared in both cases and
        ``registry``, when given, returns to its built-in state.
        """
        if full:
            kept: list[PluginDescriptor] = []
        else:
            kept = self._partitions[Partition.IGNORED] + self._partitions[Partition.ACCEPTED]

        for descriptor in self._membership:
            descriptor.features.clear()
            descriptor.resolved_dependencies.clear()

        self._membership = {d: Partition.IGNORED for d in kept}
        self._partitions = {p: [] for p in Partition}
        self._partitions[Partition.IGNORED] = list(kept)
        self._reasons = {d: r for d, r in self._reasons.items() if d in self._membership}
        self._issues = [] if full else [i for i in self._issues if i.descriptor in self._membership]
        self._newly_disabled = []

        if registry is not None:
            registry.reset()
        logger.debug("Released session (full=%s); %d descriptor(s) kept", full, len(kept))

    def summary(self) -> str:
        """Return a one-line human-readable summary of the partitions."""
        return (
            f"{len(self.accepted)} accepted, {len(self.disabled)} disabled, "
            f"{len(self.ignored)} ignored, {len(self.pending)} pending"
        )

    def __repr__(self) -> str:
        return f"ResolutionSession({self.summary()})"

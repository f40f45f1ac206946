"""Duplicate and conflict resolution.

Walks the pending descriptors in precedence order (the loader's own
descriptor first, then version descending, then id, name and source)
and ignores:

* every descriptor whose id is already held by an earlier survivor
  (``DUPLICATE_IDENTITY``), so the highest version of a plugin wins;
* every descriptor that is in conflict with an earlier survivor
  (``DECLARED_CONFLICT``).  A conflict is declared by one side but
  excludes both, and the side with precedence always survives.

Only survivors are compared against, so a descriptor that lost a
conflict can neither win a duplicate tie-break nor knock out another
plugin.
"""
from __future__ import annotations

import logging

from loadorder.catalog.descriptor import PluginDescriptor, by_precedence
from loadorder.session.diagnostics import IssueKind, ResolutionIssue
from loadorder.session.session import ResolutionSession

logger = logging.getLogger(__name__)


def declares_conflict(declarer: PluginDescriptor, target: PluginDescriptor) -> bool:
    """Return True if ``declarer`` declares a conflict ``target`` satisfies."""
    if target.id is None:
        return False
    conflict_range = declarer.manifest.conflicts.get(target.id)
    return conflict_range is not None and conflict_range.is_satisfied(target.version)


def in_conflict(a: PluginDescriptor, b: PluginDescriptor) -> bool:
    """Return True if either descriptor declares a conflict with the other."""
    if a is b:
        return False
    return declares_conflict(a, b) or declares_conflict(b, a)


def _conflict_issue(loser: PluginDescriptor, winner: PluginDescriptor) -> ResolutionIssue:
    if declares_conflict(winner, loser):
        message = f"{winner.name} declares a conflict with {loser.identity}@{loser.version}"
    else:
        message = f"declares a conflict with {winner.identity}@{winner.version}"
    return ResolutionIssue(
        kind=IssueKind.DECLARED_CONFLICT,
        descriptor=loser,
        message=message,
        related=winner,
    )


def resolve_conflicts(session: ResolutionSession) -> list[PluginDescriptor]:
    """Collapse duplicates and remove conflicting descriptors.

    Parameters
    ----------
    session:
        The session whose pending descriptors are resolved.  Losers are
        moved to the ignored partition; survivors stay pending.

    Returns
    -------
    list[PluginDescriptor]
        The surviving descriptors in precedence order.
    """
    holders: dict[str, PluginDescriptor] = {}
    survivors: list[PluginDescriptor] = []

    for descriptor in by_precedence(session.pending):
        try:
            holder = holders.get(descriptor.id) if descriptor.id is not None else None
            if holder is not None:
                logger.warning(
                    "Found duplicates of %s, using %s over %s",
                    descriptor.id,
                    holder.version,
                    descriptor.version,
                )
                session.ignore(
                    descriptor,
                    ResolutionIssue(
                        kind=IssueKind.DUPLICATE_IDENTITY,
                        descriptor=descriptor,
                        message=f"duplicate of {holder.id}@{holder.version}",
                        related=holder,
                    ),
                )
                continue

            rival = next((s for s in survivors if in_conflict(descriptor, s)), None)
            if rival is not None:
                logger.warning(
                    "%s@%s conflicts with %s; ignoring %s",
                    descriptor.identity,
                    descriptor.version,
                    rival.name,
                    descriptor.name,
                )
                session.ignore(descriptor, _conflict_issue(descriptor, rival))
                continue
        except Exception as exc:  # noqa: BLE001
            logger.exception("Internal error resolving conflicts for %s", descriptor)
            session.ignore(
                descriptor,
                ResolutionIssue(
                    kind=IssueKind.INTERNAL_ERROR,
                    descriptor=descriptor,
                    message=f"internal error during conflict resolution: {exc}",
                ),
            )
            continue

        if descriptor.id is not None:
            holders[descriptor.id] = descriptor
        survivors.append(descriptor)

    return survivors

"""Load-order sequencing and dependency validation.

Orders the pending descriptors with :mod:`loadorder.resolver.graph`,
ignores every member of a circular ordering constraint, then walks the
order left to right keeping a map of accepted id -> version.  Each
candidate's declared dependencies are checked against that map, and the
first unsatisfied one decides its fate:

* if the dependency is in the disabled partition with a matching
  version, the candidate is cascade-disabled and its identity is
  appended to the disabled-id store;
* otherwise the candidate is ignored as missing a dependency.

Candidates with every dependency satisfied are appended to the load
order.  Because disabled descriptors are looked up in the live
partition, cascades chain: a plugin that needs a cascade-disabled
plugin is cascade-disabled as well.
"""
from __future__ import annotations

import logging
from collections.abc import MutableSet

from semver import Version

from loadorder.catalog.descriptor import PluginDescriptor
from loadorder.resolver.graph import Cycle, build_graph, topological_order
from loadorder.session.diagnostics import IssueKind, ResolutionIssue
from loadorder.session.session import ResolutionSession
from loadorder.versions import VersionRange

logger = logging.getLogger(__name__)


def _first_unsatisfied(
    descriptor: PluginDescriptor, loaded: dict[str, Version]
) -> tuple[str, VersionRange] | None:
    # Sorted so the reported dependency does not depend on manifest key order.
    for dep_id, dep_range in sorted(descriptor.manifest.dependencies.items(), key=lambda item: item[0]):
        version = loaded.get(dep_id)
        if version is None or not dep_range.is_satisfied(version):
            return dep_id, dep_range
    return None


def _ignore_cycles(session: ResolutionSession, cycles: list[Cycle]) -> None:
    for cycle in cycles:
        logger.error("Circular ordering constraint: %s", cycle)
        for member in cycle.members:
            session.ignore(
                member,
                ResolutionIssue(
                    kind=IssueKind.CIRCULAR_CONSTRAINT,
                    descriptor=member,
                    message="circular ordering constraint",
                    detail=str(cycle),
                ),
            )


def compute_load_order(
    session: ResolutionSession, disabled_store: MutableSet[str]
) -> list[PluginDescriptor]:
    """Order, validate and accept the session's pending descriptors.

    Parameters
    ----------
    session:
        The session to sequence.  After this call nothing is pending.
    disabled_store:
        The externally owned disabled-id store.  Cascade-disabled
        identities are added to it.

    Returns
    -------
    list[PluginDescriptor]
        The descriptors accepted by this call, in load order.
    """
    graph = build_graph(session.pending)
    ordered = topological_order(graph)
    _ignore_cycles(session, ordered.cycles)

    logger.debug("Candidate order: %s", ", ".join(str(d) for d in ordered.order))

    loaded: dict[str, Version] = {}
    accepted: list[PluginDescriptor] = []

    for descriptor in ordered.order:
        try:
            missing = _first_unsatisfied(descriptor, loaded)
            if missing is None:
                session.accept(descriptor)
                accepted.append(descriptor)
                if descriptor.id is not None:
                    loaded[descriptor.id] = descriptor.version
                continue

            dep_id, dep_range = missing
            disabled_dep = next(
                (
                    d
                    for d in session.disabled
                    if d.id == dep_id and dep_range.is_satisfied(d.version)
                ),
                None,
            )
            if disabled_dep is not None:
                logger.warning(
                    "Dependency %s was found, but disabled. Disabling %s too.",
                    dep_id,
                    descriptor.name,
                )
                session.disable(
                    descriptor,
                    ResolutionIssue(
                        kind=IssueKind.CASCADE_DISABLED,
                        descriptor=descriptor,
                        message=f"dependency {dep_id}@{dep_range} is disabled",
                        related=disabled_dep,
                    ),
                )
                if descriptor.identity not in disabled_store:
                    disabled_store.add(descriptor.identity)
                    session.note_disabled_identity(descriptor.identity)
            else:
                logger.warning("%s is missing dependency %s@%s", descriptor.name, dep_id, dep_range)
                session.ignore(
                    descriptor,
                    ResolutionIssue(
                        kind=IssueKind.UNSATISFIED_DEPENDENCY,
                        descriptor=descriptor,
                        message=f"missing dependency {dep_id}@{dep_range}",
                    ),
                )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Internal error sequencing %s", descriptor)
            session.ignore(
                descriptor,
                ResolutionIssue(
                    kind=IssueKind.INTERNAL_ERROR,
                    descriptor=descriptor,
                    message=f"internal error during sequencing: {exc}",
                ),
            )

    return accepted

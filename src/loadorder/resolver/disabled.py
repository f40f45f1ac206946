"""Disabled-set filter.

Moves every pending descriptor whose identity (id, or name when the id
is absent) is in the externally owned disabled-id store into the
disabled partition.  The store is only read here; it is appended to
later by cascade disabling in the sequencer.

The loader's own descriptor cannot be disabled.
"""
from __future__ import annotations

import logging
from collections.abc import Collection

from loadorder.catalog.descriptor import PluginDescriptor, by_precedence
from loadorder.session.diagnostics import IssueKind, ResolutionIssue
from loadorder.session.session import ResolutionSession

logger = logging.getLogger(__name__)


def filter_disabled(
    session: ResolutionSession, disabled_ids: Collection[str]
) -> list[PluginDescriptor]:
    """Partition the pending descriptors into enabled and disabled.

    Parameters
    ----------
    session:
        The session whose pending descriptors are filtered.
    disabled_ids:
        Identities marked disabled.  Never modified.

    Returns
    -------
    list[PluginDescriptor]
        The descriptors that remain pending (enabled), in precedence order.
    """
    enabled: list[PluginDescriptor] = []
    for descriptor in by_precedence(session.pending):
        if descriptor.identity not in disabled_ids:
            enabled.append(descriptor)
            continue
        if descriptor.is_self:
            logger.warning("Ignoring request to disable the loader itself (%s)", descriptor.identity)
            enabled.append(descriptor)
            continue
        logger.info("%s is disabled", descriptor.identity)
        session.disable(
            descriptor,
            ResolutionIssue(
                kind=IssueKind.DISABLED,
                descriptor=descriptor,
                message=f"{descriptor.identity} is in the disabled list",
            ),
        )
    return enabled

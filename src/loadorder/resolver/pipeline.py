"""Load-order resolution pipeline.

``LoadOrderResolver`` runs the resolution phases in order over a fresh
``ResolutionSession``:

1. duplicate and conflict resolution;
2. the disabled-set filter;
3. graph building, ordering and dependency validation;
4. the host version check.

Feature negotiation is a separate, later step
(:meth:`LoadOrderResolver.evaluate_features`) so that callers can
inspect the load order before any feature code runs.

Usage
-----
::

    from loadorder.resolver import LoadOrderResolver

    resolver = LoadOrderResolver(disabled_store=disabled_ids)
    session = resolver.resolve(catalog)
    resolver.evaluate_features(session)
    for descriptor in session.activatable:
        ...
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, MutableSet

from loadorder.catalog.descriptor import PluginDescriptor
from loadorder.config import LoaderSettings
from loadorder.features.evaluator import FeatureEvaluation, FeatureEvaluator
from loadorder.features.registry import FeatureRegistry
from loadorder.resolver.conflicts import resolve_conflicts
from loadorder.resolver.disabled import filter_disabled
from loadorder.resolver.sequencer import compute_load_order
from loadorder.session.diagnostics import IssueKind, ResolutionIssue
from loadorder.session.session import ResolutionSession

logger = logging.getLogger(__name__)


class LoadOrderResolver:
    """Resolves a catalog into a load order.

    Parameters
    ----------
    disabled_store:
        The externally owned disabled-id store.  Read by the disabled
        filter and appended to by cascade disabling.  Defaults to a new
        set seeded from ``settings.disabled_ids``.
    settings:
        Loader settings.  Defaults to ``LoaderSettings()``.
    registry:
        Feature registry used by :meth:`evaluate_features`.  Defaults to
        a registry holding the built-in capabilities.
    """

    def __init__(
        self,
        disabled_store: MutableSet[str] | None = None,
        settings: LoaderSettings | None = None,
        registry: FeatureRegistry | None = None,
    ) -> None:
        self._settings = settings if settings is not None else LoaderSettings()
        self._disabled_store: MutableSet[str] = (
            disabled_store if disabled_store is not None else set(self._settings.disabled_ids)
        )
        self._registry = registry if registry is not None else FeatureRegistry()

    @property
    def disabled_store(self) -> MutableSet[str]:
        return self._disabled_store

    @property
    def registry(self) -> FeatureRegistry:
        return self._registry

    @property
    def settings(self) -> LoaderSettings:
        return self._settings

    def resolve(self, catalog: Iterable[PluginDescriptor]) -> ResolutionSession:
        """Run every resolution phase over ``catalog``.

        Returns
        -------
        ResolutionSession
            The session with every descriptor accepted, disabled or
            ignored, and the issue log.
        """
        session = ResolutionSession(catalog)
        logger.debug("Resolving %d descriptor(s)", len(session))

        resolve_conflicts(session)
        filter_disabled(session, self._disabled_store)
        compute_load_order(session, self._disabled_store)
        self._check_host_version(session)

        logger.info("Resolution finished: %s", session.summary())
        return session

    def evaluate_features(self, session: ResolutionSession) -> FeatureEvaluation:
        """Negotiate feature requests for the session's accepted descriptors."""
        evaluator = FeatureEvaluator(self._registry, max_passes=self._settings.max_feature_passes)
        return evaluator.evaluate(session)

    def _check_host_version(self, session: ResolutionSession) -> None:
        host_version = self._settings.host_version
        if not host_version:
            return
        for descriptor in session.activatable:
            declared = descriptor.manifest.game_version
            if declared is None or declared == host_version:
                continue
            logger.warning(
                "Mod %s developed for game version %s, so it may not work properly.",
                descriptor.name,
                declared,
            )
            session.record(
                ResolutionIssue(
                    kind=IssueKind.HOST_VERSION_MISMATCH,
                    descriptor=descriptor,
                    message=f"built for host version {declared}, running {host_version}",
                )
            )


def resolve(
    catalog: Iterable[PluginDescriptor],
    disabled_store: MutableSet[str] | None = None,
    settings: LoaderSettings | None = None,
) -> ResolutionSession:
    """Convenience function: resolve ``catalog`` with default collaborators.

    Parameters
    ----------
    catalog:
        The descriptors to resolve.
    disabled_store:
        The disabled-id store; see :class:`LoadOrderResolver`.
    settings:
        Loader settings.

    Returns
    -------
    ResolutionSession
        The resolved session.
    """
    return LoadOrderResolver(disabled_store=disabled_store, settings=settings).resolve(catalog)

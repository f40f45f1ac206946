"""Feature directive evaluation.

Negotiates every accepted descriptor's feature requests against a
:class:`~loadorder.features.registry.FeatureRegistry` that may grow
while negotiation runs.  Each pass:

1. tries every still-unresolved request against the current registry;
2. calls ``evaluate`` on every persistent feature of every descriptor,
   which may register new capabilities.

Passes repeat while the registry's generation changed during the
previous pass.  Requests that are still unresolved when it stops are
reported as not found; the plugin keeps loading without them.

Usage
-----
::

    from loadorder.features import FeatureEvaluator, FeatureRegistry

    evaluator = FeatureEvaluator(FeatureRegistry())
    evaluation = evaluator.evaluate(session)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from loadorder.catalog.descriptor import PluginDescriptor
from loadorder.features.base import ParseStatus
from loadorder.features.registry import FeatureRegistry
from loadorder.features.requests import FeatureRequest
from loadorder.session.diagnostics import IssueKind, ResolutionIssue
from loadorder.session.session import ResolutionSession

logger = logging.getLogger(__name__)


@dataclass
class _Unresolved:
    text: str
    state: FeatureRequest | None = None


@dataclass
class FeatureEvaluation:
    """Summary of a negotiation run.

    Parameters
    ----------
    passes:
        Number of negotiation passes performed.
    converged:
        ``False`` if the pass limit stopped a registry that kept growing.
    not_found:
        Unresolved request strings per descriptor.
    """

    passes: int = 0
    converged: bool = True
    not_found: dict[PluginDescriptor, list[str]] = field(default_factory=dict)


class FeatureEvaluator:
    """Fixed-point negotiator for feature requests.

    Parameters
    ----------
    registry:
        The capability registry to negotiate against.
    max_passes:
        Upper bound on negotiation passes.
    """

    def __init__(self, registry: FeatureRegistry, max_passes: int = 64) -> None:
        if max_passes < 1:
            raise ValueError("max_passes must be at least 1")
        self._registry = registry
        self._max_passes = max_passes

    @property
    def registry(self) -> FeatureRegistry:
        return self._registry

    def evaluate(self, session: ResolutionSession) -> FeatureEvaluation:
        """Resolve the feature requests of every accepted descriptor.

        Resolved persistent features are attached to
        ``descriptor.features``; denials, parse errors and unresolved
        requests are recorded as issues on ``session``.
        """
        descriptors = session.accepted
        unresolved: dict[PluginDescriptor, list[_Unresolved]] = {}
        for descriptor in descriptors:
            descriptor.features.clear()
            unresolved[descriptor] = [_Unresolved(text) for text in descriptor.manifest.features]

        evaluation = FeatureEvaluation()
        seen_generation: int | None = None
        while self._registry.generation != seen_generation:
            if evaluation.passes >= self._max_passes:
                logger.error(
                    "Feature registry still growing after %d pass(es); giving up",
                    evaluation.passes,
                )
                evaluation.converged = False
                break
            seen_generation = self._registry.generation
            evaluation.passes += 1

            for descriptor in descriptors:
                unresolved[descriptor] = self._negotiate(session, descriptor, unresolved[descriptor])
            for descriptor in descriptors:
                self._apply(session, descriptor)

            logger.debug(
                "Feature pass %d done; registry generation %d -> %d",
                evaluation.passes,
                seen_generation,
                self._registry.generation,
            )

        for descriptor, remaining in unresolved.items():
            if not remaining:
                continue
            evaluation.not_found[descriptor] = [item.text for item in remaining]
            logger.warning("On plugin %s:", descriptor.name)
            for item in remaining:
                logger.warning("    Feature not found with name %s", item.text)
                session.record(
                    ResolutionIssue(
                        kind=IssueKind.FEATURE_NOT_FOUND,
                        descriptor=descriptor,
                        message=f"feature not found: {item.text}",
                        detail=None if evaluation.converged else "negotiation pass limit reached",
                    )
                )
        return evaluation

    def _negotiate(
        self,
        session: ResolutionSession,
        descriptor: PluginDescriptor,
        requests: list[_Unresolved],
    ) -> list[_Unresolved]:
        remaining: list[_Unresolved] = []
        for item in requests:
            outcome = self._registry.try_parse(item.text, descriptor, item.state)

            if outcome.status is ParseStatus.PENDING:
                item.state = outcome.state
                remaining.append(item)
            elif outcome.status is ParseStatus.MATCHED:
                feature = outcome.feature
                if feature is not None and feature.store_on_plugin:
                    descriptor.features.append(feature)
            elif outcome.status is ParseStatus.INVALID:
                logger.warning("Feature not valid on %s: %s", descriptor.name, outcome.reason)
                session.record(
                    ResolutionIssue(
                        kind=IssueKind.FEATURE_DENIED,
                        descriptor=descriptor,
                        message=f"feature not valid: {outcome.reason}",
                        detail=item.text,
                    )
                )
            else:
                logger.error(
                    "Error parsing feature definition on %s: %s", descriptor.name, outcome.reason
                )
                session.record(
                    ResolutionIssue(
                        kind=IssueKind.FEATURE_PARSE_ERROR,
                        descriptor=descriptor,
                        message=f"error parsing feature: {outcome.reason}",
                        detail=item.text,
                    )
                )
        return remaining

    def _apply(self, session: ResolutionSession, descriptor: PluginDescriptor) -> None:
        for feature in list(descriptor.features):
            try:
                feature.evaluate(self._registry)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Feature %r errored during evaluation on %s", feature, descriptor.name)
                descriptor.features.remove(feature)
                session.record(
                    ResolutionIssue(
                        kind=IssueKind.INTERNAL_ERROR,
                        descriptor=descriptor,
                        message=f"feature evaluation failed: {exc}",
                        detail=feature.request.text if feature.request else None,
                    )
                )

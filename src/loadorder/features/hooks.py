"""Veto hook invocation for activation.

The activation step runs these around loading and initialising each
plugin.  ``before_load`` and ``before_init`` hooks can refuse; the first
refusal stops that plugin's activation.  A hook that raises counts as a
refusal.  ``after_init`` hooks cannot refuse and their failures are
logged.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor
    from loadorder.features.base import Feature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VetoResult:
    """Whether activation may proceed.

    Parameters
    ----------
    allowed:
        ``False`` if a feature refused.
    feature:
        The refusing feature.
    reason:
        The refusing feature's ``invalid_message`` or error text.
    """

    allowed: bool
    feature: Feature | None = field(default=None)
    reason: str | None = field(default=None)

    def __bool__(self) -> bool:
        return self.allowed


_ALLOWED = VetoResult(allowed=True)


def run_before_load(descriptor: PluginDescriptor) -> VetoResult:
    """Ask every feature of ``descriptor`` whether it may be loaded."""
    for feature in descriptor.features:
        try:
            allowed = feature.before_load(descriptor)
        except Exception as exc:  # noqa: BLE001
            logger.error("Feature %r failed in before_load for %s: %s", feature, descriptor.name, exc)
            return VetoResult(False, feature, f"{type(exc).__name__}: {exc}")
        if not allowed:
            logger.warning(
                "Feature %s denied plugin %s from loading! %s",
                type(feature).__name__,
                descriptor.name,
                feature.invalid_message or "",
            )
            return VetoResult(False, feature, feature.invalid_message)
    return _ALLOWED


def run_before_init(descriptor: PluginDescriptor, plugin: object) -> VetoResult:
    """Ask every feature of ``descriptor`` whether ``plugin`` may be initialised."""
    for feature in descriptor.features:
        try:
            allowed = feature.before_init(descriptor, plugin)
        except Exception as exc:  # noqa: BLE001
            logger.error("Feature %r failed in before_init for %s: %s", feature, descriptor.name, exc)
            return VetoResult(False, feature, f"{type(exc).__name__}: {exc}")
        if not allowed:
            logger.warning(
                "Feature %s denied plugin %s from initializing! %s",
                type(feature).__name__,
                descriptor.name,
                feature.invalid_message or "",
            )
            return VetoResult(False, feature, feature.invalid_message)
    return _ALLOWED


def run_after_init(descriptor: PluginDescriptor, plugin: object) -> None:
    """Notify every feature of ``descriptor`` that ``plugin`` is initialised."""
    for feature in descriptor.features:
        try:
            feature.after_init(descriptor, plugin)
        except Exception:
            logger.critical(
                "Feature %r errored in after_init for %s", feature, descriptor.name, exc_info=True
            )

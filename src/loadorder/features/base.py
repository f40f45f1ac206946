"""Feature capability interface.

A feature is a capability a plugin requests by name from its manifest.
Each capability is a ``Feature`` subclass registered in a
:class:`~loadorder.features.registry.FeatureRegistry`.  For every
matching request the registry creates a fresh instance and calls
:meth:`Feature.try_parse`, which runs :meth:`Feature.initialize` and
reports one of four outcomes:

``MATCHED``
    The request is valid.  Persistent features (``store_on_plugin``)
    are attached to the descriptor.
``INVALID``
    The capability exists but refused the request; the reason is
    ``invalid_message``.
``PENDING``
    No capability of that name is registered yet.  The parsed request is
    kept as retry state for the next negotiation pass.
``ERROR``
    The request string is malformed or the capability raised.

Example
-------
::

    from loadorder.features import Feature

    class RequiresHost(Feature):
        def initialize(self, descriptor, arguments):
            if len(arguments) != 1:
                self.invalid_message = "expects exactly one host name"
                return False
            self.host = arguments[0]
            return True

        def before_load(self, descriptor):
            return self.host == "desktop"

    registry.register_class("requires-host", RequiresHost)
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor
    from loadorder.features.registry import FeatureRegistry
    from loadorder.features.requests import FeatureRequest


class ParseStatus(Enum):
    """Outcome kinds of a single feature request parse."""

    MATCHED = auto()
    INVALID = auto()
    PENDING = auto()
    ERROR = auto()


@dataclass(frozen=True)
class ParseOutcome:
    """Result of negotiating one request string against the registry.

    Parameters
    ----------
    status:
        Which of the four outcomes occurred.
    text:
        The request string.
    feature:
        The feature instance, for ``MATCHED`` and ``INVALID``.
    state:
        The parsed request to retry with, for ``PENDING``.
    reason:
        Human-readable reason, for ``INVALID`` and ``ERROR``.
    """

    status: ParseStatus
    text: str
    feature: Feature | None = field(default=None)
    state: FeatureRequest | None = field(default=None)
    reason: str | None = field(default=None)

    @classmethod
    def matched(cls, text: str, feature: Feature) -> ParseOutcome:
        return cls(ParseStatus.MATCHED, text, feature=feature)

    @classmethod
    def invalid(cls, text: str, feature: Feature, reason: str) -> ParseOutcome:
        return cls(ParseStatus.INVALID, text, feature=feature, reason=reason)

    @classmethod
    def pending(cls, text: str, state: FeatureRequest) -> ParseOutcome:
        return cls(ParseStatus.PENDING, text, state=state)

    @classmethod
    def error(cls, text: str, reason: str) -> ParseOutcome:
        return cls(ParseStatus.ERROR, text, reason=reason)


class Feature(ABC):
    """Base class for feature capabilities.

    Subclasses implement :meth:`initialize` and override whichever hooks
    they need.  ``store_on_plugin`` controls whether a valid instance is
    kept on the requesting descriptor; non-persistent features do their
    work in :meth:`initialize`.
    """

    store_on_plugin: ClassVar[bool] = True

    def __init__(self) -> None:
        self.invalid_message: str | None = None
        self.descriptor: PluginDescriptor | None = None
        self.request: FeatureRequest | None = None

    @classmethod
    def try_parse(cls, request: FeatureRequest, descriptor: PluginDescriptor) -> ParseOutcome:
        """Instantiate this capability for ``request`` on ``descriptor``."""
        try:
            feature = cls()
            feature.descriptor = descriptor
            feature.request = request
            valid = feature.initialize(descriptor, request.arguments)
        except Exception as exc:  # noqa: BLE001
            return ParseOutcome.error(request.text, f"{type(exc).__name__}: {exc}")
        if not valid:
            reason = feature.invalid_message or f"{request.name} rejected its arguments"
            return ParseOutcome.invalid(request.text, feature, reason)
        return ParseOutcome.matched(request.text, feature)

    @abstractmethod
    def initialize(self, descriptor: PluginDescriptor, arguments: Sequence[str]) -> bool:
        """Validate the request; return ``False`` and set ``invalid_message`` to refuse."""

    def evaluate(self, registry: FeatureRegistry) -> None:
        """Apply the feature after a negotiation pass.

        Called once per pass for every persistent feature, so it must be
        idempotent.  It may register new capabilities in ``registry``.
        """

    def before_load(self, descriptor: PluginDescriptor) -> bool:
        """Veto hook run before the plugin's code is loaded."""
        return True

    def before_init(self, descriptor: PluginDescriptor, plugin: object) -> bool:
        """Veto hook run before the plugin instance is initialised."""
        return True

    def after_init(self, descriptor: PluginDescriptor, plugin: object) -> None:
        """Hook run after the plugin instance was initialised."""

    def __repr__(self) -> str:
        request = self.request.text if self.request is not None else None
        return f"{type(self).__name__}(request={request!r})"

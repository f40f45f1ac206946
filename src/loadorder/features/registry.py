"""Feature capability registry.

Maps feature names to :class:`~loadorder.features.base.Feature`
subclasses.  The registry can grow while features are being negotiated:
evaluating a ``define-feature`` request registers a new capability.
Every registration bumps :attr:`FeatureRegistry.generation`, which the
evaluator compares between passes to decide whether another pass can
make progress.

Besides active features the registry keeps *templates*: capability
classes that are known but not requestable until something registers
them under a feature name.

Example
-------
Register a capability with the decorator::

    from loadorder.features import Feature, FeatureRegistry

    registry = FeatureRegistry()

    @registry.register("requires-host")
    class RequiresHost(Feature):
        def initialize(self, descriptor, arguments):
            return True

Load capabilities installed by other packages via entry-points::

    registry.load_entrypoints("loadorder.features")
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from loadorder.errors import FeatureParseError
from loadorder.features.base import Feature, ParseOutcome
from loadorder.features.requests import FeatureRequest, parse_request

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor

logger = logging.getLogger(__name__)


class FeatureNotRegisteredError(KeyError):
    """Raised when a requested feature name is not in the registry."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.feature_name = name
        self.registry_name = registry_name
        super().__init__(
            f"Feature {name!r} is not registered in the {registry_name!r} registry."
        )


class FeatureAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.feature_name = name
        self.registry_name = registry_name
        super().__init__(
            f"Feature {name!r} is already registered in the {registry_name!r} registry. "
            "Use a unique name or explicitly deregister the existing entry first."
        )


def _check_feature_class(name: str, cls: object) -> None:
    if not (isinstance(cls, type) and issubclass(cls, Feature)):
        raise TypeError(f"Cannot register {cls!r} under {name!r}: it must be a subclass of Feature.")


class FeatureRegistry:
    """Registry of feature capabilities with a growth counter.

    Parameters
    ----------
    name:
        A human-readable name for this registry (used in error messages).
    builtins:
        If ``True`` (default), the built-in capabilities from
        :mod:`loadorder.features.builtin` are registered at construction.
    """

    def __init__(self, name: str = "features", builtins: bool = True) -> None:
        self._name = name
        self._features: dict[str, type[Feature]] = {}
        self._templates: dict[str, type[Feature]] = {}
        self._builtin_names: frozenset[str] = frozenset()
        self._generation = 0
        if builtins:
            self._load_builtins()

    def _load_builtins(self) -> None:
        from loadorder.features.builtin import BUILTIN_FEATURES

        for name, cls in BUILTIN_FEATURES.items():
            self._features[name] = cls
        self._builtin_names = frozenset(BUILTIN_FEATURES)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @property
    def generation(self) -> int:
        """Counter increased by every successful registration."""
        return self._generation

    def register(self, name: str) -> Callable[[type[Feature]], type[Feature]]:
        """Return a class decorator that registers the decorated class.

        Raises
        ------
        FeatureAlreadyRegisteredError
            If ``name`` is already in use in this registry.
        TypeError
            If the decorated class does not subclass ``Feature``.
        """

        def decorator(cls: type[Feature]) -> type[Feature]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[Feature]) -> int:
        """Register ``cls`` under ``name`` and return the new generation.

        Raises
        ------
        FeatureAlreadyRegisteredError
            If ``name`` is already registered.
        TypeError
            If ``cls`` is not a subclass of ``Feature``.
        """
        if name in self._features:
            raise FeatureAlreadyRegisteredError(name, self._name)
        _check_feature_class(name, cls)
        self._features[name] = cls
        self._generation += 1
        logger.debug(
            "Registered feature %r -> %s in registry %r (generation %d)",
            name,
            cls.__qualname__,
            self._name,
            self._generation,
        )
        return self._generation

    def deregister(self, name: str) -> None:
        """Remove a feature from the registry.

        Raises
        ------
        FeatureNotRegisteredError
            If ``name`` is not currently registered.
        """
        if name not in self._features:
            raise FeatureNotRegisteredError(name, self._name)
        del self._features[name]
        logger.debug("Deregistered feature %r from registry %r", name, self._name)

    def register_template(self, name: str, cls: type[Feature]) -> None:
        """Make ``cls`` available to ``define-feature`` under ``name``.

        Templates do not count as registry growth and cannot be requested
        directly.
        """
        _check_feature_class(name, cls)
        self._templates[name] = cls

    def reset(self) -> None:
        """Drop every feature that is not built in.

        Templates are kept.  The generation counter never decreases.
        """
        self._features = {n: c for n, c in self._features.items() if n in self._builtin_names}
        logger.debug("Reset registry %r to %d built-in feature(s)", self._name, len(self._features))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> type[Feature]:
        """Return the class registered under ``name``.

        Raises
        ------
        FeatureNotRegisteredError
            If no feature is registered under ``name``.
        """
        try:
            return self._features[name]
        except KeyError:
            raise FeatureNotRegisteredError(name, self._name) from None

    def find_template(self, name: str) -> type[Feature] | None:
        """Return the template ``name``, falling back to an active feature."""
        return self._templates.get(name) or self._features.get(name)

    def list_features(self) -> list[str]:
        """Return a sorted list of all registered feature names."""
        return sorted(self._features)

    def list_templates(self) -> list[str]:
        return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._features

    def __len__(self) -> int:
        return len(self._features)

    def __repr__(self) -> str:
        return (
            f"FeatureRegistry(name={self._name!r}, "
            f"generation={self._generation}, "
            f"features={self.list_features()})"
        )

    # ------------------------------------------------------------------
    # Negotiation
    # ------------------------------------------------------------------

    def try_parse(
        self,
        text: str,
        descriptor: PluginDescriptor,
        prior: FeatureRequest | None = None,
    ) -> ParseOutcome:
        """Negotiate one request string against the current registry.

        Parameters
        ----------
        text:
            The request string from the manifest.
        descriptor:
            The descriptor that made the request.
        prior:
            The parsed request returned by an earlier ``PENDING`` outcome,
            which saves parsing ``text`` again.
        """
        request = prior
        if request is None:
            try:
                request = parse_request(text)
            except FeatureParseError as exc:
                return ParseOutcome.error(text, exc.reason)
        cls = self._features.get(request.name)
        if cls is None:
            return ParseOutcome.pending(text, request)
        return cls.try_parse(request, descriptor)

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str, as_templates: bool = False) -> None:
        """Discover and register capabilities declared as package entry-points.

        Each entry-point value is imported and registered under the
        entry-point name, as an active feature or, with
        ``as_templates=True``, as a template.  Names that are already
        registered are skipped, so repeated calls are idempotent.

        Example
        -------
        In a downstream package's ``pyproject.toml``::

            [project.entry-points."loadorder.features"]
            requires-host = "my_package.features:RequiresHost"
        """
        for ep in importlib.metadata.entry_points(group=group):
            known = self._templates if as_templates else self._features
            if ep.name in known:
                logger.debug("Entry-point %r already registered in %r; skipping.", ep.name, self._name)
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception("Failed to load entry-point %r from group %r; skipping.", ep.name, group)
                continue
            try:
                if as_templates:
                    self.register_template(ep.name, cls)
                else:
                    self.register_class(ep.name, cls)
            except (FeatureAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered in registry %r; skipping.",
                    ep.name,
                    self._name,
                )

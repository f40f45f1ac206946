"""loadorder: plugin catalog resolution and load ordering.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import loadorder

    # Read a YAML catalog of plugin manifests
    catalog = loadorder.load_catalog("plugins.yaml")

    # Resolve duplicates, conflicts, disabled ids and ordering
    session = loadorder.resolve(catalog, disabled_store={"BrokenPlugin"})

    # Negotiate feature requests against the built-in capabilities
    loadorder.evaluate_features(session)

    for descriptor in session.accepted:
        print(descriptor)

    loadorder.__version__
    '0.1.0'
"""
from __future__ import annotations

from collections.abc import Iterable, MutableSet
from pathlib import Path
from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from loadorder.catalog.descriptor import PluginDescriptor
    from loadorder.config import LoaderSettings
    from loadorder.features.evaluator import FeatureEvaluation
    from loadorder.features.registry import FeatureRegistry
    from loadorder.session.session import ResolutionSession


def load_catalog(path: str | Path) -> list["PluginDescriptor"]:
    """Load plugin descriptors from a YAML catalog file.

    Parameters
    ----------
    path:
        Path to a YAML document holding a list of manifests, or a
        mapping with a ``plugins`` list.

    Returns
    -------
    list[PluginDescriptor]
        One descriptor per valid manifest, in file order.

    Raises
    ------
    OSError
        If the file cannot be read.
    loadorder.errors.ManifestError
        If the file is not valid YAML or has the wrong shape.
    """
    from loadorder.catalog.manifest import load_catalog as _load_catalog

    return _load_catalog(path)


def resolve(
    catalog: Iterable["PluginDescriptor"],
    disabled_store: MutableSet[str] | None = None,
    settings: "LoaderSettings | None" = None,
) -> "ResolutionSession":
    """Resolve a catalog into a load order.

    Parameters
    ----------
    catalog:
        The descriptors to resolve.
    disabled_store:
        Identities disabled before the run.  Cascade disabling appends
        to this store.
    settings:
        Loader settings; defaults are read from the environment.

    Returns
    -------
    ResolutionSession
        Every descriptor classified, with ``session.accepted`` as the
        load order.
    """
    from loadorder.resolver.pipeline import resolve as _resolve

    return _resolve(catalog, disabled_store=disabled_store, settings=settings)


def evaluate_features(
    session: "ResolutionSession",
    registry: "FeatureRegistry | None" = None,
    max_passes: int = 64,
) -> "FeatureEvaluation":
    """Negotiate the feature requests of a resolved session.

    Parameters
    ----------
    session:
        A session returned by :func:`resolve`.
    registry:
        The capability registry.  Defaults to one holding the built-in
        capabilities.
    max_passes:
        Upper bound on negotiation passes.

    Returns
    -------
    FeatureEvaluation
        Pass count, convergence flag and the unresolved requests.
    """
    from loadorder.features.evaluator import FeatureEvaluator
    from loadorder.features.registry import FeatureRegistry

    evaluator = FeatureEvaluator(registry if registry is not None else FeatureRegistry(), max_passes)
    return evaluator.evaluate(session)


__all__ = [
    "__version__",
    "evaluate_features",
    "load_catalog",
    "resolve",
]

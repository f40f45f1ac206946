"""Feature negotiation: capabilities, registry, evaluator and veto hooks.

Third-party capabilities register through ``importlib.metadata``
entry-points under the "loadorder.features" group.

Example
-------
Declare a capability in pyproject.toml:

.. code-block:: toml

    [project.entry-points."loadorder.features"]
    requires-host = "my_package.features:RequiresHost"
"""
from __future__ import annotations

from loadorder.features.base import Feature, ParseOutcome, ParseStatus
from loadorder.features.evaluator import FeatureEvaluation, FeatureEvaluator
from loadorder.features.hooks import VetoResult, run_after_init, run_before_init, run_before_load
from loadorder.features.registry import (
    FeatureAlreadyRegisteredError,
    FeatureNotRegisteredError,
    FeatureRegistry,
)
from loadorder.features.requests import FeatureRequest, parse_request

__all__ = [
    "Feature",
    "FeatureAlreadyRegisteredError",
    "FeatureEvaluation",
    "FeatureEvaluator",
    "FeatureNotRegisteredError",
    "FeatureRegistry",
    "FeatureRequest",
    "ParseOutcome",
    "ParseStatus",
    "VetoResult",
    "parse_request",
    "run_after_init",
    "run_before_init",
    "run_before_load",
]

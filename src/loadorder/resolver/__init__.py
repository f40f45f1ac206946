"""Resolution phases: conflicts, disabled filter, graph ordering, validation."""
from __future__ import annotations

from loadorder.resolver.conflicts import declares_conflict, in_conflict, resolve_conflicts
from loadorder.resolver.disabled import filter_disabled
from loadorder.resolver.graph import (
    Cycle,
    DependencyGraph,
    OrderResult,
    build_graph,
    topological_order,
)
from loadorder.resolver.pipeline import LoadOrderResolver, resolve
from loadorder.resolver.sequencer import compute_load_order

__all__ = [
    "Cycle",
    "DependencyGraph",
    "LoadOrderResolver",
    "OrderResult",
    "build_graph",
    "compute_load_order",
    "declares_conflict",
    "filter_disabled",
    "in_conflict",
    "resolve",
    "resolve_conflicts",
    "topological_order",
]

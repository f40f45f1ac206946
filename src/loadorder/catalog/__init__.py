"""Metadata catalog: plugin descriptors and the manifest boundary."""
from __future__ import annotations

from loadorder.catalog.descriptor import (
    PluginDescriptor,
    PluginManifest,
    by_precedence,
    compare_precedence,
    precedence_key,
)
from loadorder.catalog.manifest import (
    catalog_from_document,
    descriptor_from_dict,
    load_catalog,
    manifest_from_dict,
)

__all__ = [
    "PluginDescriptor",
    "PluginManifest",
    "by_precedence",
    "compare_precedence",
    "precedence_key",
    "catalog_from_document",
    "descriptor_from_dict",
    "load_catalog",
    "manifest_from_dict",
]

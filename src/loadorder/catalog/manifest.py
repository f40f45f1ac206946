"""Mapping between decoded manifest documents and catalog descriptors.

The catalog supplier hands the resolver a list of ``PluginDescriptor``
values.  This module is that boundary for callers whose manifests are
already decoded into plain mappings (JSON or YAML), as the CLI's are.

Manifest keys follow the published schema (``gameVersion``,
``loadBefore``, ``loadAfter``); their snake_case spellings are accepted
too.  Catalog entries may also carry the loader flags ``self``, ``bare``
and ``source``; the flags must be real booleans.

YAML reads an unquoted ``1.10`` as the float ``1.1``, so numbers with a
fractional part are rejected wherever a version, range or other text is
expected.  Whole numbers are taken as written (``version: 2``).

Usage
-----
::

    from loadorder.catalog.manifest import load_catalog

    catalog = load_catalog("plugins.yaml")
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from loadorder.catalog.descriptor import PluginDescriptor, PluginManifest
from loadorder.errors import InvalidRangeError, InvalidVersionError, ManifestError
from loadorder.versions import VersionRange, parse_version

logger = logging.getLogger(__name__)

_ALIASES: dict[str, str] = {
    "game_version": "gameVersion",
    "load_before": "loadBefore",
    "load_after": "loadAfter",
}


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    for alias, canonical in _ALIASES.items():
        if canonical == key and alias in data:
            return data[alias]
    return None


def _scalar_text(value: Any, key: str, source: str | None) -> str:
    if isinstance(value, float):
        raise ManifestError(
            f"{key!r} was read as the number {value!r}; quote it so the text is kept as written",
            source,
        )
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ManifestError(f"{key!r} must be a string, got {type(value).__name__}", source)
    return str(value)


def _optional_str(data: Mapping[str, Any], key: str, source: str | None) -> str | None:
    value = _lookup(data, key)
    if value is None:
        return None
    return _scalar_text(value, key, source)


def _flag(data: Mapping[str, Any], key: str, source: str | None) -> bool:
    value = data.get(key, False)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ManifestError(f"{key!r} must be true or false, got {value!r}", source)
    return value


def _ranges(data: Mapping[str, Any], key: str, source: str | None) -> dict[str, VersionRange]:
    raw = _lookup(data, key)
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ManifestError(f"{key!r} must be a mapping of id to version range", source)
    ranges: dict[str, VersionRange] = {}
    for plugin_id, text in raw.items():
        try:
            ranges[str(plugin_id)] = VersionRange(
                "*" if text is None else _scalar_text(text, f"{key}[{plugin_id!r}]", source)
            )
        except InvalidRangeError as exc:
            raise ManifestError(f"{key}[{plugin_id!r}]: {exc}", source) from None
    return ranges


def _strings(data: Mapping[str, Any], key: str, source: str | None) -> list[str]:
    raw = _lookup(data, key)
    if raw is None:
        return []
    if isinstance(raw, str) or not isinstance(raw, Iterable):
        raise ManifestError(f"{key!r} must be a list of strings", source)
    return [str(item) for item in raw]


def manifest_from_dict(data: Mapping[str, Any], source: str | None = None) -> PluginManifest:
    """Build a ``PluginManifest`` from a decoded manifest mapping.

    Parameters
    ----------
    data:
        The decoded manifest.
    source:
        Optional origin label used in error messages.

    Returns
    -------
    PluginManifest
        The validated manifest.

    Raises
    ------
    ManifestError
        If a required field is missing or any field has the wrong shape,
        including unparseable versions and ranges.
    """
    if not isinstance(data, Mapping):
        raise ManifestError(f"manifest must be a mapping, got {type(data).__name__}", source)

    name = _optional_str(data, "name", source)
    if not name:
        raise ManifestError("manifest is missing 'name'", source)
    version_text = _optional_str(data, "version", source)
    if not version_text:
        raise ManifestError(f"manifest for {name!r} is missing 'version'", source)
    try:
        version = parse_version(version_text)
    except InvalidVersionError as exc:
        raise ManifestError(str(exc), source) from None

    return PluginManifest(
        name=name,
        version=version,
        id=_optional_str(data, "id", source),
        game_version=_optional_str(data, "gameVersion", source),
        description=_optional_str(data, "description", source) or "",
        dependencies=_ranges(data, "dependencies", source),
        conflicts=_ranges(data, "conflicts", source),
        load_before=frozenset(_strings(data, "loadBefore", source)),
        load_after=frozenset(_strings(data, "loadAfter", source)),
        features=tuple(_strings(data, "features", source)),
    )


def descriptor_from_dict(data: Mapping[str, Any], source: str | None = None) -> PluginDescriptor:
    """Build a ``PluginDescriptor`` from a catalog entry.

    The entry is a manifest mapping that may additionally carry the
    loader flags ``self`` and ``bare`` and an explicit ``source``.
    """
    if not isinstance(data, Mapping):
        raise ManifestError(f"catalog entry must be a mapping, got {type(data).__name__}", source)
    entry_source = data.get("source")
    label = str(entry_source) if entry_source is not None else source
    return PluginDescriptor(
        manifest=manifest_from_dict(data, label),
        is_self=_flag(data, "self", label),
        is_bare=_flag(data, "bare", label),
        source=label,
    )


def catalog_from_document(document: Any, origin: str = "<catalog>") -> list[PluginDescriptor]:
    """Build descriptors from a decoded catalog document.

    ``document`` is either a list of catalog entries or a mapping with a
    ``plugins`` list.  Entries that fail to map are logged and skipped;
    one bad manifest never prevents the others from loading.

    Raises
    ------
    ManifestError
        If the document itself has the wrong shape.
    """
    if isinstance(document, Mapping):
        document = document.get("plugins", [])
    if document is None:
        return []
    if isinstance(document, (str, bytes)) or not isinstance(document, Iterable):
        raise ManifestError("catalog must be a list of manifests", origin)

    catalog: list[PluginDescriptor] = []
    for index, entry in enumerate(document):
        label = f"{origin}[{index}]"
        try:
            descriptor = descriptor_from_dict(entry, label)
        except ManifestError as exc:
            logger.error("Could not load manifest %s: %s", label, exc)
            continue
        logger.debug("Adding info for %s", descriptor)
        catalog.append(descriptor)
    return catalog


def load_catalog(path: str | Path) -> list[PluginDescriptor]:
    """Read a YAML or JSON catalog file and build its descriptors.

    Parameters
    ----------
    path:
        Path to the catalog document.

    Returns
    -------
    list[PluginDescriptor]
        Descriptors in document order.

    Raises
    ------
    OSError
        If the file cannot be read.
    ManifestError
        If the file is not valid YAML/JSON or has the wrong shape.
    """
    file_path = Path(path)
    text = file_path.read_text(encoding="utf-8")
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ManifestError(f"cannot decode catalog: {exc}", str(file_path)) from None
    return catalog_from_document(document, origin=str(file_path))

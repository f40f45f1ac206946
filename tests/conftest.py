"""Shared test fixtures for loadorder.

Fixtures defined here are available to all tests in the suite without
needing an explicit import. Add project-wide fixtures here; keep
domain-specific fixtures close to the tests that use them.
"""
from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

import pytest

from loadorder.catalog.descriptor import PluginDescriptor, PluginManifest
from loadorder.versions import VersionRange, parse_version

PluginFactory = Callable[..., PluginDescriptor]


def make_plugin(
    name: str,
    version: str = "1.0.0",
    *,
    id: str | None = "",
    dependencies: dict[str, str] | None = None,
    conflicts: dict[str, str] | None = None,
    load_before: Iterable[str] = (),
    load_after: Iterable[str] = (),
    features: Iterable[str] = (),
    game_version: str | None = None,
    is_self: bool = False,
    is_bare: bool = False,
    source: str | None = None,
) -> PluginDescriptor:
    """Build a descriptor; ``id`` defaults to ``name``, pass ``None`` for no id."""
    manifest = PluginManifest(
        name=name,
        version=parse_version(version),
        id=name if id == "" else id,
        game_version=game_version,
        dependencies={k: VersionRange(v) for k, v in (dependencies or {}).items()},
        conflicts={k: VersionRange(v) for k, v in (conflicts or {}).items()},
        load_before=frozenset(load_before),
        load_after=frozenset(load_after),
        features=tuple(features),
    )
    return PluginDescriptor(manifest=manifest, is_self=is_self, is_bare=is_bare, source=source)


@pytest.fixture()
def plugin() -> PluginFactory:
    """Return the descriptor builder."""
    return make_plugin


@pytest.fixture()
def package_name() -> str:
    """Return the importable package name for assertions."""
    return "loadorder"


@pytest.fixture()
def expected_version() -> str:
    """Return the current expected version string.

    Update this fixture when cutting a release so that the version
    test immediately catches stale ``__version__`` values.
    """
    return "0.1.0"


@pytest.fixture()
def catalog_document() -> list[dict[str, Any]]:
    """A small catalog exercising every resolution outcome."""
    return [
        {"name": "Core", "id": "core", "version": "2.1.0"},
        {"name": "Core", "id": "core", "version": "1.9.0", "source": "old/core"},
        {"name": "Ui", "id": "ui", "version": "1.0.0", "dependencies": {"core": "^2.0.0"}},
        {"name": "Legacy", "id": "legacy", "version": "0.5.0", "dependencies": {"core": "^1.0.0"}},
        {"name": "Sounds", "id": "sounds", "version": "1.0.0"},
        {"name": "Music", "id": "music", "version": "1.0.0", "dependencies": {"sounds": "*"}},
        {"name": "Rival", "id": "rival", "version": "1.0.0", "conflicts": {"core": ">=2"}},
    ]

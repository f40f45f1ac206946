"""Plugin descriptors: the unit of the resolution catalog.

A ``PluginManifest`` is the immutable declaration a plugin ships with.
A ``PluginDescriptor`` wraps one manifest together with the loader's
own flags and the two fields the resolution phases own: the resolved
dependency set and the resolved feature list.

Descriptors compare and hash by identity.  Two manifests may be
identical (the same plugin copied twice) and still be distinct catalog
entries that must each land in exactly one partition.
"""
from __future__ import annotations

import functools
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from semver import Version

from loadorder.versions import VersionRange

if TYPE_CHECKING:
    from loadorder.features.base import Feature


@dataclass(frozen=True)
class PluginManifest:
    """Declared identity and constraints of a plugin.

    Parameters
    ----------
    name:
        Display name; used as identity when ``id`` is absent.
    version:
        The plugin's semantic version.
    id:
        Globally unique identifier, or ``None``.
    game_version:
        Host version the plugin was built against, if declared.
    description:
        Free-form description text.
    dependencies:
        Mapping of plugin id to the version range that must be present
        and loaded earlier.
    conflicts:
        Mapping of plugin id to a version range that may not coexist
        with this plugin.
    load_before:
        Ids this plugin must load before, when they are present.
    load_after:
        Ids this plugin must load after, when they are present.
    features:
        Ordered, opaque feature request strings.
    """

    name: str
    version: Version
    id: str | None = None
    game_version: str | None = None
    description: str = ""
    dependencies: dict[str, VersionRange] = field(default_factory=dict)
    conflicts: dict[str, VersionRange] = field(default_factory=dict)
    load_before: frozenset[str] = field(default_factory=frozenset)
    load_after: frozenset[str] = field(default_factory=frozenset)
    features: tuple[str, ...] = ()


@dataclass(eq=False)
class PluginDescriptor:
    """A catalog entry: one manifest plus loader-owned state.

    Parameters
    ----------
    manifest:
        The plugin's declared manifest.
    is_self:
        ``True`` for the loader's own synthetic descriptor.
    is_bare:
        ``True`` for a manifest with no backing binary.  Bare descriptors
        are resolved for update tracking but never activated.
    source:
        Optional origin label, such as the path the manifest came from.
    """

    manifest: PluginManifest
    is_self: bool = False
    is_bare: bool = False
    source: str | None = None
    resolved_dependencies: set[PluginDescriptor] = field(default_factory=set, repr=False)
    features: list[Feature] = field(default_factory=list, repr=False)

    @property
    def id(self) -> str | None:
        return self.manifest.id

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def version(self) -> Version:
        return self.manifest.version

    @property
    def identity(self) -> str:
        """The id when present, otherwise the name.

        This is the key used by the disabled-id store.
        """
        return self.manifest.id if self.manifest.id is not None else self.manifest.name

    def __str__(self) -> str:
        origin = f" from {self.source!r}" if self.source else ""
        return f"{self.name}({self.id}@{self.version}){origin}"


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


def compare_precedence(a: PluginDescriptor, b: PluginDescriptor) -> int:
    """Total order used for every tie-break during resolution.

    The loader's own descriptor comes first, then higher versions, then
    id, name and source in lexical order.  Returns a negative number
    when ``a`` takes precedence over ``b``.
    """
    if a.is_self != b.is_self:
        return -1 if a.is_self else 1
    if a.version != b.version:
        return -1 if a.version > b.version else 1
    pairs = (
        (a.id or "", b.id or ""),
        (a.name, b.name),
        (a.source or "", b.source or ""),
    )
    for left, right in pairs:
        if left != right:
            return -1 if left < right else 1
    return 0


precedence_key = functools.cmp_to_key(compare_precedence)


def by_precedence(descriptors: Iterable[PluginDescriptor]) -> list[PluginDescriptor]:
    """Return ``descriptors`` sorted highest precedence first."""
    return sorted(descriptors, key=precedence_key)

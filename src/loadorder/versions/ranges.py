"""Semantic versions and npm-style version ranges.

Versions are ``semver.Version`` objects following SemVer 2.0.0: they
are totally ordered by precedence, pre-release identifiers compare
field by field, and build metadata never affects ordering or equality.
Ranges use the node-semver syntax that plugin manifests are written in
and are reduced to sets of primitive comparators:

==================  ==========================================
Range               Equivalent comparators
==================  ==========================================
``*``, ``x``, ````  any version
``1.2.3``           ``==1.2.3``
``1.x``, ``1``      ``>=1.0.0 <2.0.0``
``~1.2.3``          ``>=1.2.3 <1.3.0``
``^1.2.3``          ``>=1.2.3 <2.0.0``
``^0.2.3``          ``>=0.2.3 <0.3.0``
``^0.0.3``          ``>=0.0.3 <0.0.4``
``1.2 - 2.3``       ``>=1.2.0 <2.4.0``
``>1.2``            ``>=1.3.0``
``a || b``          either ``a`` or ``b``
==================  ==========================================

A pre-release version only satisfies a comparator set when it passes
every comparator and one of them names a pre-release of the same
``major.minor.patch``.  ``1.3.0-beta`` is inside ``>=1.3.0-alpha`` but
not inside ``>=1.0.0`` or ``*``, and ``2.0.0-beta`` does not satisfy
``^1.2.3``.

Usage
-----
::

    from loadorder.versions import VersionRange, parse_version

    supported = VersionRange("^1.4.0 || >=2.1 <3")
    assert parse_version("1.9.2") in supported
    assert not supported.is_satisfied("2.0.5")
"""
from __future__ import annotations

import operator
import re
from collections.abc import Callable
from dataclasses import dataclass

from semver import Version

from loadorder.errors import InvalidRangeError, InvalidVersionError

_OPERATORS: dict[str, Callable[[Version, Version], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
}

_PARTIAL_RE = re.compile(
    r"^v?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*])"
    r"(?:\.(?P<patch>\d+|[xX*])"
    r"(?:-(?P<pre>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?"
    r")?)?$"
)
_COMPARATOR_RE = re.compile(r"^(<=|>=|<|>|=|\^|~>|~)?(.*)$")
_HYPHEN_RE = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_OPERATOR_SPACE_RE = re.compile(r"(<=|>=|<|>|=|\^|~>|~)\s+")

Comparator = tuple[str, Version]


def parse_version(text: str | Version) -> Version:
    """Parse a semantic version string.

    Parameters
    ----------
    text:
        Version text such as ``"1.2.3"``, ``"v1.2.3"``,
        ``"1.0.0-beta.2"`` or ``"1.0.0+build.5"``.  A missing minor or
        patch component is read as ``0``.  ``Version`` instances are
        returned as-is.

    Returns
    -------
    Version
        The parsed, totally ordered version.

    Raises
    ------
    InvalidVersionError
        If ``text`` is not a valid version.
    """
    if isinstance(text, Version):
        return text
    if not isinstance(text, str) or not text.strip():
        raise InvalidVersionError(str(text), "empty version")
    cleaned = text.strip()
    if cleaned.startswith("v"):
        cleaned = cleaned[1:]
    try:
        return Version.parse(cleaned, optional_minor_and_patch=True)
    except ValueError as exc:
        raise InvalidVersionError(text, str(exc)) from None


# ---------------------------------------------------------------------------
# Partial versions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Partial:
    """A possibly incomplete version; ``None`` components are wildcards."""

    major: int | None
    minor: int | None
    patch: int | None
    pre: str | None = None

    @property
    def is_full(self) -> bool:
        return self.patch is not None

    def floor(self) -> Version:
        """Lowest version matched by this partial."""
        text = f"{self.major or 0}.{self.minor or 0}.{self.patch or 0}"
        if self.pre and self.is_full:
            text += f"-{self.pre}"
        return _version(text)


def _component(value: str | None) -> int | None:
    if value is None or value in ("x", "X", "*"):
        return None
    return int(value)


def _parse_partial(text: str, whole: str) -> _Partial:
    match = _PARTIAL_RE.match(text)
    if match is None:
        raise InvalidRangeError(whole, f"cannot parse version {text!r}")
    major = _component(match.group("major"))
    minor = _component(match.group("minor"))
    patch = _component(match.group("patch"))
    # A wildcard swallows every component to its right: ``1.x.3`` is ``1.x``.
    if major is None:
        minor = patch = None
    elif minor is None:
        patch = None
    return _Partial(major, minor, patch, match.group("pre"))


def _version(text: str) -> Version:
    return parse_version(text)


def _upper(major: int, minor: int = 0, patch: int = 0) -> Comparator:
    return ("<", Version(major, minor, patch))


# ---------------------------------------------------------------------------
# Range desugaring
# ---------------------------------------------------------------------------


def _exact(p: _Partial) -> list[Comparator]:
    if p.major is None:
        return []
    if p.minor is None:
        return [(">=", p.floor()), _upper(p.major + 1)]
    if p.patch is None:
        return [(">=", p.floor()), _upper(p.major, p.minor + 1)]
    return [("==", p.floor())]


def _tilde(p: _Partial) -> list[Comparator]:
    if p.major is None:
        return []
    if p.minor is None:
        return [(">=", p.floor()), _upper(p.major + 1)]
    return [(">=", p.floor()), _upper(p.major, p.minor + 1)]


def _caret(p: _Partial) -> list[Comparator]:
    if p.major is None:
        return []
    if p.minor is None or p.major > 0:
        return [(">=", p.floor()), _upper(p.major + 1)]
    if p.patch is None or p.minor > 0:
        return [(">=", p.floor()), _upper(0, p.minor + 1)]
    return [(">=", p.floor()), _upper(0, 0, p.patch + 1)]


def _primitive(op: str, p: _Partial, whole: str) -> list[Comparator]:
    if p.major is None:
        if op in ("<", ">"):
            raise InvalidRangeError(whole, f"{op}* can never be satisfied")
        return []
    if p.is_full:
        return [(op, p.floor())]
    if op == ">":
        if p.minor is None:
            return [(">=", _version(f"{p.major + 1}.0.0"))]
        return [(">=", _version(f"{p.major}.{p.minor + 1}.0"))]
    if op == ">=":
        return [(">=", p.floor())]
    if op == "<":
        return [_upper(p.major, p.minor or 0)]
    # op == "<="
    if p.minor is None:
        return [_upper(p.major + 1)]
    return [_upper(p.major, p.minor + 1)]


def _hyphen(low: _Partial, high: _Partial) -> list[Comparator]:
    comparators: list[Comparator] = []
    if low.major is not None:
        comparators.append((">=", low.floor()))
    if high.major is None:
        return comparators
    if high.minor is None:
        comparators.append(_upper(high.major + 1))
    elif high.patch is None:
        comparators.append(_upper(high.major, high.minor + 1))
    else:
        comparators.append(("<=", high.floor()))
    return comparators


def _parse_comparator(token: str, whole: str) -> list[Comparator]:
    match = _COMPARATOR_RE.match(token)
    op = (match.group(1) if match else None) or ""
    rest = match.group(2) if match else token
    partial = _parse_partial(rest, whole)
    if op == "^":
        return _caret(partial)
    if op in ("~", "~>"):
        return _tilde(partial)
    if op in ("", "="):
        return _exact(partial)
    return _primitive(op, partial, whole)


def _parse_set(text: str, whole: str) -> tuple[Comparator, ...]:
    text = text.strip()
    if not text:
        return ()
    hyphen = _HYPHEN_RE.match(text)
    if hyphen is not None:
        low = _parse_partial(hyphen.group(1), whole)
        high = _parse_partial(hyphen.group(2), whole)
        return tuple(_hyphen(low, high))
    comparators: list[Comparator] = []
    for token in _OPERATOR_SPACE_RE.sub(r"\1", text).split():
        comparators.extend(_parse_comparator(token, whole))
    return tuple(comparators)


def _release(version: Version) -> tuple[int, int, int]:
    return (version.major, version.minor, version.patch)


def _set_satisfied(candidate: Version, comparator_set: tuple[Comparator, ...]) -> bool:
    if not all(_OPERATORS[op](candidate, bound) for op, bound in comparator_set):
        return False
    if candidate.prerelease is None:
        return True
    return any(
        bound.prerelease is not None and _release(bound) == _release(candidate)
        for _, bound in comparator_set
    )


# ---------------------------------------------------------------------------
# VersionRange
# ---------------------------------------------------------------------------


class VersionRange:
    """A node-semver style range: a union of comparator sets.

    Parameters
    ----------
    text:
        The range expression.  An empty string or ``"*"`` matches every
        version.

    Raises
    ------
    InvalidRangeError
        If ``text`` is not a valid range expression.
    """

    __slots__ = ("_text", "_sets")

    def __init__(self, text: str = "*") -> None:
        if not isinstance(text, str):
            raise InvalidRangeError(repr(text), "range must be a string")
        self._text = text.strip()
        try:
            self._sets: tuple[tuple[Comparator, ...], ...] = tuple(
                _parse_set(part, text) for part in self._text.split("||")
            )
        except InvalidVersionError as exc:
            raise InvalidRangeError(text, str(exc)) from None

    @property
    def comparator_sets(self) -> tuple[tuple[Comparator, ...], ...]:
        """The desugared ``(operator, version)`` sets; any one set must fully hold."""
        return self._sets

    def is_satisfied(self, version: str | Version) -> bool:
        """Return ``True`` if ``version`` falls inside this range.

        A pre-release only matches a comparator set that itself names a
        pre-release of the same ``major.minor.patch``.
        """
        candidate = parse_version(version)
        return any(_set_satisfied(candidate, comparator_set) for comparator_set in self._sets)

    def __contains__(self, version: object) -> bool:
        if not isinstance(version, (str, Version)):
            return False
        return self.is_satisfied(version)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionRange):
            return NotImplemented
        return self._sets == other._sets

    def __hash__(self) -> int:
        return hash(self._sets)

    def __str__(self) -> str:
        return self._text or "*"

    def __repr__(self) -> str:
        return f"VersionRange({self._text!r})"

"""Feature request strings.

A plugin requests a feature with a short directive in its manifest::

    "no-update"
    "print(Hello from MyPlugin)"
    "define-feature(audio-hooks, audio-hooks-v2)"
    "print(\"commas, and (parens) need quotes\")"

The name is made of letters, digits, ``_``, ``.`` and ``-``.  Arguments
are separated by top-level commas and trimmed.  Double quotes group an
argument that contains commas or parentheses; ``\\`` escapes inside
quotes.
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from loadorder.errors import FeatureParseError

_NAME_RE = re.compile(r"[A-Za-z0-9_.\-]+")


@dataclass(frozen=True)
class FeatureRequest:
    """A parsed feature request.

    Parameters
    ----------
    name:
        The feature name to look up in the registry.
    arguments:
        Positional arguments, already unquoted and trimmed.
    text:
        The original request string.
    """

    name: str
    arguments: tuple[str, ...]
    text: str


def _split_arguments(body: str, text: str) -> tuple[str, ...]:
    arguments: list[str] = []
    current: list[str] = []
    depth = 0
    quoted = False
    escaped = False

    for char in body:
        if quoted:
            if escaped:
                current.append(char)
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                quoted = False
            else:
                current.append(char)
            continue
        if char == '"':
            quoted = True
            continue
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise FeatureParseError(text, "unbalanced ')'")
        elif char == "," and depth == 0:
            arguments.append("".join(current).strip())
            current = []
            continue
        current.append(char)

    if quoted:
        raise FeatureParseError(text, "unterminated quoted argument")
    if depth:
        raise FeatureParseError(text, "unbalanced '('")
    last = "".join(current).strip()
    if arguments or last:
        arguments.append(last)
    return tuple(arguments)


def parse_request(text: str) -> FeatureRequest:
    """Parse a feature request string.

    Raises
    ------
    FeatureParseError
        If ``text`` has no feature name or its argument list is malformed.
    """
    if not isinstance(text, str):
        raise FeatureParseError(repr(text), "request must be a string")
    stripped = text.strip()
    match = _NAME_RE.match(stripped)
    if match is None:
        raise FeatureParseError(text, "missing feature name")
    name = match.group(0)
    rest = stripped[match.end():].lstrip()
    if not rest:
        return FeatureRequest(name=name, arguments=(), text=text)
    if not rest.startswith("("):
        raise FeatureParseError(text, f"expected '(' after feature name {name!r}")
    if not rest.endswith(")"):
        raise FeatureParseError(text, "missing closing ')'")
    return FeatureRequest(name=name, arguments=_split_arguments(rest[1:-1], text), text=text)

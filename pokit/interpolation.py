#!/usr/bin/env python3
"""
Interpolation of ``%{name}`` placeholders in message strings.

    >>> interpolate("Hello %{name}", {"name": "José"})
    Interpolated(text='Hello José')

A placeholder can carry inner text after a colon, ``%{link:the docs}``;
the bound value must then be callable and is called with the inner text.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

# gettext format tag for %{name} placeholders
MESSAGE_FORMAT = "ruby-format"

OPEN = "%{"
CLOSE = "}"


@dataclass(frozen=True)
class Binding:
    key: str
    inner: Optional[str] = None

    def __str__(self) -> str:
        if self.inner is None:
            return f"%{{{self.key}}}"
        return f"%{{{self.key}:{self.inner}}}"


Segment = Union[str, Binding]


@dataclass
class Interpolated:
    text: str
    ok: bool = field(default=True, init=False, repr=False)


@dataclass
class MissingBindings:
    """Some bindings were not supplied; they stay in ``text`` as written."""
    text: str
    missing: list[str]
    ok: bool = field(default=False, init=False, repr=False)


@dataclass
class InvalidBindings:
    """Bindings with inner text whose value is not callable."""
    invalid: list[str]
    ok: bool = field(default=False, init=False, repr=False)


InterpolationResult = Union[Interpolated, MissingBindings, InvalidBindings]


def interpolatable(text: str) -> list[Segment]:
    """
    Split a string into literal text and bindings.

    ``%{}`` is literal text, and so is everything from an unterminated
    ``%{`` to the end of the string.
    """
    segments: list[Segment] = []
    literal = []
    pos = 0
    while True:
        start = text.find(OPEN, pos)
        if start == -1:
            literal.append(text[pos:])
            break
        if text.startswith(OPEN + CLOSE, start):
            literal.append(text[pos:start + 3])
            pos = start + 3
            continue
        end = text.find(CLOSE, start + len(OPEN))
        if end == -1:
            literal.append(text[pos:])
            break

        literal.append(text[pos:start])
        if any(literal):
            segments.append("".join(literal))
        literal = []

        key, sep, inner = text[start + len(OPEN):end].partition(":")
        segments.append(Binding(key, inner if sep else None))
        pos = end + 1

    if any(literal):
        segments.append("".join(literal))
    return segments


def _segments(message: Union[str, list[Segment]]) -> list[Segment]:
    if isinstance(message, str):
        return interpolatable(message)
    return message


def keys(message: Union[str, list[Segment]]) -> list[str]:
    """Binding keys in order of first appearance."""
    found = []
    for segment in _segments(message):
        if isinstance(segment, Binding) and segment.key not in found:
            found.append(segment.key)
    return found


def interpolate(
    message: Union[str, list[Segment]],
    bindings: Mapping[str, Any],
) -> InterpolationResult:
    """
    Substitute bindings into a string or a pre-split segment list.

    Args:
        message: Text or the output of ``interpolatable``
        bindings: Key -> value; values are rendered with ``str()``

    Returns:
        Interpolated, MissingBindings (partially substituted text plus the
        missing keys) or InvalidBindings
    """
    parts = []
    missing: list[str] = []
    invalid: list[str] = []

    for segment in _segments(message):
        if isinstance(segment, str):
            parts.append(segment)
            continue

        if segment.key not in bindings:
            parts.append(str(segment))
            if segment.key not in missing:
                missing.append(segment.key)
            continue

        value = bindings[segment.key]
        if segment.inner is None:
            parts.append(str(value))
        elif callable(value):
            parts.append(str(value(segment.inner)))
        elif segment.key not in invalid:
            invalid.append(segment.key)

    if invalid:
        return InvalidBindings(invalid)
    if missing:
        return MissingBindings("".join(parts), missing)
    return Interpolated("".join(parts))

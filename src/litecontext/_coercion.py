"""Conversion of literal strings from definitions to setter parameter types."""

from __future__ import annotations

import inspect
import types
import typing
from dataclasses import dataclass
from typing import Annotated, Any, Union, get_args, get_origin


@dataclass(frozen=True)
class IntWidth:
    """Signed integer width marker for ``Annotated[int, IntWidth(bits)]``."""

    bits: int

    @property
    def min(self) -> int:
        return -(1 << (self.bits - 1))

    @property
    def max(self) -> int:
        return (1 << (self.bits - 1)) - 1


Byte = Annotated[int, IntWidth(8)]
Short = Annotated[int, IntWidth(16)]
Long = Annotated[int, IntWidth(64)]

_BOOL_LITERALS = {"true": True, "false": False}


def coerce(literal: str, annotation: Any) -> Any:
    """Convert ``literal`` for a parameter annotated with ``annotation``.

    Conversion order: int, Byte, Short, Long, bool. Any other annotation gets the
    raw string, provided it accepts ``str``.

    Raise ValueError when the literal cannot be parsed or is out of range, and
    TypeError when the annotation accepts neither a number, a bool nor a string.
    """
    if annotation is int:
        return _parse_int(literal)

    width = _int_width(annotation)
    if width is not None:
        value = _parse_int(literal)
        if not width.min <= value <= width.max:
            msg = f"{literal!r} is out of range for a {width.bits}-bit integer"
            raise ValueError(msg)
        return value

    if annotation is bool:
        try:
            return _BOOL_LITERALS[literal.strip().lower()]
        except KeyError:
            msg = f"{literal!r} is not a boolean literal (expected 'true' or 'false')"
            raise ValueError(msg) from None

    if _accepts_str(annotation):
        return literal

    msg = f"Cannot convert {literal!r} to {getattr(annotation, '__name__', repr(annotation))}"
    raise TypeError(msg)


def _parse_int(literal: str) -> int:
    try:
        return int(literal, 10)
    except ValueError:
        msg = f"{literal!r} is not an integer literal"
        raise ValueError(msg) from None


def _int_width(annotation: Any) -> IntWidth | None:
    if get_origin(annotation) is not Annotated:
        return None

    base, *metadata = get_args(annotation)
    if base is not int:
        return None

    for meta in metadata:
        if isinstance(meta, IntWidth):
            return meta
    return None


def _accepts_str(annotation: Any) -> bool:
    if annotation in (str, object, Any, inspect.Parameter.empty):
        return True

    origin = get_origin(annotation)
    if origin is Annotated:
        return _accepts_str(get_args(annotation)[0])

    if origin is Union or origin is types.UnionType:
        return any(_accepts_str(arg) for arg in get_args(annotation))

    if isinstance(annotation, typing.TypeVar):
        return annotation.__bound__ is None or _accepts_str(annotation.__bound__)

    return False

"""
Argosy value coercion.

Converts a textual token into a typed value for a declared type name.

Rules
- "number": base-10 integer prefix ("12px" -> 12); no digits -> nan.
- "float": floating-point prefix ("1.5e3x" -> 1500.0); no number -> nan.
- "string": the token unchanged.
- "boolean" / untyped: false for "", "0", "false" and "no" (any case), true otherwise.
- "count": treated as "number" when converted directly; the parser increments
  counts itself.
- any other name is a custom coercion looked up in the owning spec:
  • callable -> called with the token, its result is the value;
  • compiled pattern -> first match of the pattern, or None when it does not match;
  • anything else -> substituted literally, the token is ignored.

Non-string input is returned unchanged, so converting twice is harmless.
"""
import math
import re

from .utils import Unset

PRIMITIVES = frozenset({"count", "string", "number", "float", "boolean"})

_FALSY = frozenset({"", "0", "FALSE", "NO"})
_INTEGER = re.compile(r"\s*[+-]?\d+")
_FLOAT = re.compile(r"\s*[+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def valid_type(type, coercions=(), /):
    """
    tell whether a type name is usable: a primitive or a key of coercions.
    """
    return isinstance(type, str) and (type in PRIMITIVES or type in coercions)


def to_boolean(token, /):
    return token.upper() not in _FALSY


def to_number(token, /):
    if match := _INTEGER.match(token):
        return int(match.group())
    return math.nan


def to_float(token, /):
    if match := _FLOAT.match(token):
        return float(match.group())
    return math.nan


def convert(type, token, spec=Unset, /):
    """
    Convert token according to the declared type.

    Parameters
    - type: declared type name, or Unset/None for untyped (boolean-like).
    - token: raw value; anything that is not a str passes through.
    - spec: mapping of custom coercions owned by the declaring option or
      command, consulted for names outside the primitive set.

    Raises
    - ValueError: the type is neither primitive nor present in spec.
    """
    if not isinstance(token, str):
        return token

    match type:
        case "number" | "count":
            return to_number(token)
        case "float":
            return to_float(token)
        case "string":
            return token
        case "boolean" | "" | None:
            return to_boolean(token)

    if type is Unset:
        return to_boolean(token)

    try:
        coercion = (spec or {})[type]
    except KeyError:
        raise ValueError(f"unknown type {type!r}") from None

    if isinstance(coercion, re.Pattern):
        if match := coercion.search(token):
            return match.group()
        return None
    if callable(coercion):
        return coercion(token)
    return coercion


__all__ = (
    "PRIMITIVES",
    "valid_type",
    "to_boolean",
    "to_number",
    "to_float",
    "convert",
)

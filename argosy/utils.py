"""
Argosy utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by the declaration, parser and front-end layers.

Overview
- UnsetType / Unset
  • Singleton sentinel to represent “value not provided” without conflating with None.
  • Falsey (bool(Unset) is False), printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Replace Unset with a concrete default, but preserve legitimate falsey values like None/0/""/[].

- mirror("attr")
  • Read-only property factory exposing a private backing field (self._attr) with fresh
    copies of containers, so callers cannot mutate a built specification through it.

- SpecType
  • Metaclass shared by Option and Command: mirrored read-only fields, hyphenated
    __typename__, generated __repr__/__rich_repr__ and `sealed=True` support.

- ordinal(number)
  • English ordinal used in position-first diagnostics ("first", "second", "23rd").

Quick examples
    >>> coalesce(Unset, "fallback")
    'fallback'
    >>> coalesce(None, "fallback") is None
    True
    >>> ordinal(3)
    'third'
"""
import functools
import operator
import re
from collections.abc import Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Internal sentinel type representing a value that was not provided.

    Used wherever None is a legitimate user value (an option default of None, a
    custom coercion that yields None) and the API still needs to tell “not
    provided” apart from “provided as None”.

    Characteristics
    - Boolean-false: bool(Unset) is False, but it is distinct from None and 0.
    - Printable: repr(Unset) -> "Unset".
    - Non-subclassable and a singleton per process.
    """

    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Resolve the Unset sentinel to a concrete default.

    Returns object unless it is Unset, in which case default is returned.
    Falsey values like None, 0, "" or [] are preserved as-is.
    """
    return object if object is not Unset else default


def _immortalize(object):
    """
    Recursively copy builtin containers, leaving everything else untouched.

    Behavior
    - list / tuple: a new list / tuple with each element processed. Named
      tuples are records, not containers, and are returned as-is.
    - Mapping: a new dict with the values processed (keys preserved).
    - Set: a new set (or frozenset) with each element processed.
    - Anything else (including registries, callables, patterns and Unset) is
      returned unchanged.
    """
    if isinstance(object, list):
        return list(map(_immortalize, object))
    elif isinstance(object, tuple) and not hasattr(object, "_fields"):
        return tuple(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return (frozenset if isinstance(object, frozenset) else set)(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors a private backing attribute.

    The generated property reads "_{name}" from the instance and hands out a
    fresh copy of container values.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    getter.__name__ = getter.__qualname__ = name
    return property(getter)



_ORDINALS = (
    "zeroth", "first", "second", "third", "fourth", "fifth",
    "sixth", "seventh", "eighth", "ninth", "tenth",
)


def ordinal(number, /):
    """
    english ordinal for a position, spelled out up to ten.

    examples
    - ordinal(1)  -> "first"
    - ordinal(12) -> "12th"
    - ordinal(23) -> "23rd"
    """
    if not isinstance(number, int) or number < 0:
        raise TypeError("ordinal() argument must be a non-negative integer")
    if number < len(_ORDINALS):
        return _ORDINALS[number]
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


Unset = UnsetType()
"""
Internal sentinel for “not provided”.

Singleton, falsey, and distinct from None: value = coalesce(user_value, default)
materializes a fallback only when user_value is Unset.
"""


class SpecType(type):
    """
    Metaclass giving option and command specs read-only fields and stable
    representations.

    Conventions
    - __typename__ is the class name split on camel case with hyphens, lowercased.
    - every name in __introspectable__ becomes a mirror() property over "_name".
    - __displayable__ (if set) narrows what __repr__/__rich_repr__ show.
    - `sealed=True` in the class statement forbids subclassing.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if options.get("sealed", False):
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


__all__ = (
    # Functions
    "coalesce",
    "mirror",
    "ordinal",

    # Types
    "UnsetType",

    # Constants
    "Unset",
)

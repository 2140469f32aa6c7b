"""
Argosy option specifications and the per-scope option registry.

Overview
- Option: one named switch, normalized once from its declaration.
  • alias: str or iterable of str, stored as a tuple.
  • type: Unset (untyped, boolean-like), "count", "string", "number", "float",
    "boolean", "array", "<subtype> array", or the name of a custom coercion.
  • default / requires_arg / allow_cmd / desc.
  • custom coercions: extra keyword arguments, or a `coercions` mapping.

- Options: registry for one scope (the top level or a single command). Indexes
  options by canonical name and by alias and rejects ambiguous spellings.

Validation raises TypeError for values of the wrong kind and ValueError for
well-typed but invalid ones, always naming the offending option.

Quick example:
    >>> options = Options({"verbose": {"alias": "v", "type": "count"}})
    >>> options.resolve("v")
    OptionMatch(name='verbose', option=option(name='verbose', ...), alias='v')
"""
import copy
import re
from collections import namedtuple
from collections.abc import Iterable, Mapping

from .coercion import valid_type
from .utils import *
from .utils import SpecType

_NAME = re.compile(r"[^\s=-][^\s=]*")


def _sanitize_name(cls, metadata, /):
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} name must be a string")
    elif not _NAME.fullmatch(name):
        raise ValueError(f"{cls.__typename__} name {name!r} is invalid")


def _sanitize_alias(cls, metadata, /):
    """
    Normalize 'alias' into a tuple of valid, distinct spellings.

    A single string is one alias. Any other iterable is a collection of
    aliases. An alias equal to the option's own name is rejected.
    """
    name = metadata["name"]
    if isinstance(alias := metadata["alias"], str):
        alias = (alias,)
    elif not isinstance(alias, Iterable):
        raise TypeError(f"{cls.__typename__} {name!r} alias must be a string or an iterable of strings")

    aliases = []
    for spelling in alias:
        if not isinstance(spelling, str):
            raise TypeError(f"{cls.__typename__} {name!r} alias must be a string or an iterable of strings")
        elif not _NAME.fullmatch(spelling):
            raise ValueError(f"{cls.__typename__} {name!r} alias {spelling!r} is invalid")
        elif spelling == name or spelling in aliases:
            raise ValueError(f"{cls.__typename__} {name!r} alias {spelling!r} is duplicated")
        aliases.append(spelling)
    metadata["alias"] = tuple(aliases)


def _sanitize_coercions(cls, metadata, customs, /):
    name = metadata["name"]
    if not isinstance(coercions := metadata["coercions"], Mapping | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} coercions must be a mapping")
    merged = dict(customs) | dict(coercions or {})
    for key in merged:
        if not isinstance(key, str):
            raise TypeError(f"{cls.__typename__} {name!r} coercion names must be strings")
    metadata["coercions"] = merged


def _sanitize_type(cls, metadata, /):
    """
    Validate the declared type and split the array form.

    "<subtype> array" becomes type "array" with that subtype; a bare "array"
    has no subtype and keeps its tokens as strings.
    """
    name = metadata["name"]
    metadata["subtype"] = Unset
    if (type := metadata["type"]) is Unset:
        return
    elif not isinstance(type, str):
        raise TypeError(f"{cls.__typename__} {name!r} type must be a string")

    match type.split():
        case ["array"]:
            metadata["type"] = "array"
        case [subtype, "array"]:
            if not valid_type(subtype, metadata["coercions"]):
                raise ValueError(f"unknown array type {subtype!r} for {cls.__typename__} {name!r}")
            metadata["type"] = "array"
            metadata["subtype"] = subtype
        case [single] if valid_type(single, metadata["coercions"]):
            metadata["type"] = single
        case _:
            raise ValueError(f"unknown type {type!r} for {cls.__typename__} {name!r}")


def _sanitize_allow_cmd(cls, metadata, /):
    name = metadata["name"]
    if isinstance(allow := metadata["allow_cmd"], str):
        allow = (allow,)
    elif not isinstance(allow, Iterable):
        raise TypeError(f"{cls.__typename__} {name!r} allow_cmd must be a string or an iterable of strings")
    allow = tuple(allow)
    if not all(isinstance(command, str) and command for command in allow):
        raise TypeError(f"{cls.__typename__} {name!r} allow_cmd must hold non-empty strings")
    metadata["allow_cmd"] = allow


class Option(metaclass=SpecType, sealed=True):
    """
    Named switch specification.

    Properties
    - name, alias, type, subtype, default, requires_arg, allow_cmd, desc and
      coercions are read-only copies of the sanitized declaration.
    - default is Unset when none was declared (None is a valid default).
    """

    __introspectable__ = (
        "name",
        "alias",
        "type",
        "subtype",
        "default",
        "requires_arg",
        "allow_cmd",
        "desc",
        "coercions",
    )
    __displayable__ = (
        "name",
        "alias",
        "type",
        "subtype",
        "default",
    )

    def __new__(
            cls,
            name,
            /,
            alias=(),
            type=Unset,
            default=Unset,
            requires_arg=False,
            allow_cmd=(),
            desc=Unset,
            coercions=Unset,
            **customs,
    ):
        metadata = {
            "name": name,
            "alias": alias,
            "type": type,
            "default": default,
            "requires_arg": bool(requires_arg),
            "allow_cmd": allow_cmd,
            "desc": desc,
            "coercions": coercions,
        }
        _sanitize_name(cls, metadata)
        _sanitize_alias(cls, metadata)
        _sanitize_coercions(cls, metadata, customs)
        _sanitize_type(cls, metadata)
        _sanitize_allow_cmd(cls, metadata)

        if not isinstance(desc, str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} desc must be a string")
        metadata["desc"] = coalesce(desc)

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        return self

    @property
    def has_default(self):
        return self._default is not Unset

    @property
    def flags(self):
        """spellings as typed on a command line, canonical first."""
        return tuple(("-" if len(spelling) == 1 else "--") + spelling for spelling in (self._name, *self._alias))


OptionMatch = namedtuple("OptionMatch", ("name", "option", "alias"))
OptionMatch.__doc__ = """
result of Options.resolve(): canonical name, the Option, and the alias
spelling used (None when the canonical name was typed).
"""


class Options:
    """
    Option registry for one scope.

    Accepts a mapping of name -> declaration mapping (keyword arguments of
    Option) or name -> Option. Every spelling, canonical or alias, resolves to
    exactly one option; a spelling claimed twice is a ValueError naming both
    owners.
    """

    def __init__(self, declarations=Unset, /, owner=Unset):
        label = "options" if owner is Unset else f"command {owner!r} options"
        if declarations is Unset:
            declarations = {}
        elif not isinstance(declarations, Mapping):
            raise TypeError(f"{label} must be a mapping of name to declaration")

        self._owner = owner
        self._options = {}
        self._aliases = {}

        prefix = "" if owner is Unset else f"command {owner!r} "
        for name, declaration in declarations.items():
            if isinstance(declaration, Option):
                if declaration.name != name:
                    raise ValueError(f"{prefix}option {declaration.name!r} is declared under name {name!r}")
                option = declaration
            elif isinstance(declaration, Mapping):
                option = Option(name, **declaration)
            else:
                raise TypeError(f"{prefix}option {name!r} declaration must be a mapping")

            for alias in option.alias:
                if alias in self._aliases:
                    raise ValueError(f"{prefix}option alias {alias!r} already used by option {self._aliases[alias]!r}")
                self._aliases[alias] = name
            self._options[name] = option

        for alias, name in self._aliases.items():
            if alias in self._options:
                raise ValueError(f"{prefix}option alias {alias!r} of option {name!r} shadows option {alias!r}")

    def resolve(self, token, /):
        """
        Resolve a spelling to its option: canonical name first, then aliases.

        Returns an OptionMatch, or None when the spelling is not declared here.
        """
        if token in self._options:
            return OptionMatch(token, self._options[token], None)
        if token in self._aliases:
            name = self._aliases[token]
            return OptionMatch(name, self._options[name], token)
        return None

    @property
    def owner(self):
        return self._owner

    @property
    def names(self):
        return tuple(self._options)

    @property
    def aliases(self):
        return dict(self._aliases)

    @property
    def defaults(self):
        """fresh copies of every declared default, by canonical name."""
        return {name: copy.deepcopy(option.default) for name, option in self._options.items() if option.has_default}

    def __contains__(self, token):
        return token in self._options or token in self._aliases

    def __getitem__(self, name):
        return self._options[name]

    def __iter__(self):
        return iter(self._options.values())

    def __len__(self):
        return len(self._options)

    def __rich_repr__(self):
        for option in self._options.values():
            yield option

    def __repr__(self):
        return f"options({', '.join(map(repr, self._options.values()))})"



__all__ = (
    "Option",
    "OptionMatch",
    "Options",
)

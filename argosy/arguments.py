"""
Argosy positional arguments.

A command declares its positional arguments with a compact signature string
that is parsed once, when the command is built:

    "<target> [mode]"          required target, optional mode
    "<number port> [hosts..]"  typed port, then any number of hosts
    "<..>"                     any number of unnamed values

- <name> is required, [name] is optional.
- a trailing ".." (two or more dots) marks the argument variadic; only the
  last argument may be variadic.
- an optional leading word inside the brackets is the type, validated like
  option types (a primitive or a custom coercion of the owning command).
"""
import re
from collections import namedtuple

from .coercion import valid_type
from .utils import Unset

_SIGNATURE = re.compile(r"([<\[])([^<>\[\]]*)([>\]])")


class Argument(namedtuple("Argument", ("name", "type", "required", "variadic"))):
    """
    positional argument descriptor.

    fields
    - name: binding name in the parse context args ("" for unnamed values).
    - type: declared type name, or Unset to keep the raw token.
    - required: declared with angle brackets.
    - variadic: collects every remaining token as one list.
    """
    __slots__ = ()

    def __str__(self):
        opening, closing = "<>" if self.required else "[]"
        body = self.name if self.type is Unset else f"{self.type} {self.name}".strip()
        return opening + body + (".." if self.variadic else "") + closing


def parse_signature(signature, coercions=(), /):
    """
    Parse an argument signature into a tuple of Argument descriptors.

    Parameters
    - signature: the declarative signature string.
    - coercions: names of custom types the owner declares.

    Raises
    - TypeError: the signature is not a string.
    - ValueError: stray text, mismatched brackets, a malformed or mistyped
      argument, duplicate names, or a variadic argument that is not last.
    """
    if not isinstance(signature, str):
        raise TypeError("argument signature must be a string")

    arguments = []
    position = 0
    for token in _SIGNATURE.finditer(signature):
        if signature[position:token.start()].strip():
            raise ValueError(f"argument signature {signature!r} is malformed")
        position = token.end()

        opening, content, closing = token.groups()
        if (opening == "<") != (closing == ">"):
            raise ValueError(f"argument {token.group()!r} has mismatched brackets")
        if arguments and arguments[-1].variadic:
            raise ValueError(f"argument {token.group()!r} follows a variadic argument, only the last can be variadic")

        content = content.strip()
        body = content.rstrip(".")
        variadic = len(body) < len(content)
        if variadic and not content.endswith(".."):
            raise ValueError(f"argument {token.group()!r} is invalid")

        match body.split():
            case [] if variadic:
                type, name = Unset, ""
            case [name]:
                type = Unset
            case [type, name]:
                if not valid_type(type, coercions):
                    raise ValueError(f"unknown argument {token.group()!r} type {type!r}")
            case _:
                raise ValueError(f"argument {token.group()!r} is invalid")

        if name and any(argument.name == name for argument in arguments):
            raise ValueError(f"argument name {name!r} is used more than once")

        arguments.append(Argument(name, type, opening == "<", variadic))

    if signature[position:].strip():
        raise ValueError(f"argument signature {signature!r} is malformed")

    return tuple(arguments)


__all__ = (
    "Argument",
    "parse_signature",
)

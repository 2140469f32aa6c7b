"""
Argosy command specifications and the command registry.

Overview
- Command: one invocable unit, normalized once from its declaration.
  • alias: str or iterable of str.
  • args: positional signature string (see argosy.arguments).
  • options: option declarations scoped to the command.
  • subcommands: nested command declarations.
  • default / exec: the default command runs when the command line names no
    runnable command; it takes no required arguments and must have a handler.
  • desc / usage: free text for help renderers.
  • custom coercions: extra keyword arguments, or a `coercions` mapping, used
    by typed positional arguments.

- Commands: registry for one level of commands. Resolves a token into a fresh
  ParseContext, building a transient unknown command when nothing matches so
  the tokens that follow are still captured.

Scope rules
- options of a command must not reuse any spelling of the top level options or
  of the options of any enclosing command; the check runs at build time.
- at most one command per registry is the default.
"""
import re
from collections.abc import Iterable, Mapping

from .arguments import parse_signature
from .options import Options
from .results import ParseContext
from .utils import *
from .utils import SpecType

_NAME = re.compile(r"[^\s-]\S*")


def _sanitize_metadata(cls, metadata, customs, /):
    """
    Validate the plain fields of a command declaration in place.

    - alias: normalized into a tuple of distinct, valid spellings.
    - coercions: merged with extra keyword arguments into one dict.
    - default: forced to bool.
    - exec: a callable or Unset.
    - desc / usage: strings, or None when omitted.
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

    if not isinstance(coercions := metadata["coercions"], Mapping | Unset):
        raise TypeError(f"{cls.__typename__} {name!r} coercions must be a mapping")
    metadata["coercions"] = dict(customs) | dict(coercions or {})

    metadata["default"] = bool(metadata["default"])

    if not (metadata["exec"] is Unset or callable(metadata["exec"])):
        raise TypeError(f"{cls.__typename__} {name!r} exec must be callable")

    for field in ("desc", "usage"):
        if not isinstance(metadata[field], str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} {field} must be a string")
        metadata[field] = coalesce(metadata[field])


def _sanitize_args(cls, metadata, /):
    name = metadata["name"]
    if (args := metadata["args"]) is Unset:
        metadata["args"] = ()
        return
    try:
        metadata["args"] = parse_signature(args, metadata["coercions"])
    except (TypeError, ValueError) as error:
        raise type(error)(f"{cls.__typename__} {name!r} {error}") from None


class Command(metaclass=SpecType, sealed=True):
    """
    Command specification.

    Properties
    - name, alias, args (Argument tuple), options (Options), subcommands
      (Commands), default, exec, desc, usage, coercions, parent and unknown
      are read-only.
    - need_args: number of required positional arguments.
    - expect_args: number of declared positional arguments.
    - variadic: the last argument collects every remaining token.

    Unknown commands are built with unknown=True: no arguments, no options, no
    sub-commands, and the name is taken verbatim from the command line.
    """

    __introspectable__ = (
        "name",
        "alias",
        "args",
        "options",
        "subcommands",
        "default",
        "exec",
        "desc",
        "usage",
        "coercions",
        "parent",
        "unknown",
    )
    __displayable__ = (
        "name",
        "alias",
        "args",
        "options",
        "subcommands",
        "default",
    )

    def __new__(
            cls,
            name,
            /,
            alias=(),
            args=Unset,
            options=Unset,
            subcommands=Unset,
            default=False,
            exec=Unset,
            desc=Unset,
            usage=Unset,
            coercions=Unset,
            *,
            parent=Unset,
            scope=(),
            unknown=False,
            **customs,
    ):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} name must be a string")
        elif not unknown and not _NAME.fullmatch(name):
            raise ValueError(f"{cls.__typename__} name {name!r} is invalid")

        metadata = {
            "name": name,
            "alias": alias,
            "args": args,
            "default": default,
            "exec": exec,
            "desc": desc,
            "usage": usage,
            "coercions": coercions,
        }
        _sanitize_metadata(cls, metadata, customs)
        _sanitize_args(cls, metadata)

        self = super().__new__(cls)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._parent = parent
        self._unknown = bool(unknown)
        self._options = Options(options, owner=name)

        self._verify_scope(scope)

        if self._default:
            if self.need_args:
                raise ValueError(f"default {cls.__typename__} {name!r} cannot have required arguments")
            if self._exec is Unset:
                raise ValueError(f"default {cls.__typename__} {name!r} must have an exec handler")

        self._subcommands = Commands(
            subcommands,
            parent=self,
            scope=(*scope, (f"{cls.__typename__} {name!r}", self._options)),
        )
        return self

    def _verify_scope(self, scope, /):
        """
        reject any option spelling already claimed by an enclosing scope.

        scope holds (label, Options) pairs, outermost first.
        """
        for label, registry in scope:
            for option in self._options:
                for spelling in (option.name, *option.alias):
                    if (match := registry.resolve(spelling)) is None:
                        continue
                    what = "option" if spelling == option.name else f"option {option.name!r} alias"
                    kind = "alias" if match.alias is not None else "option"
                    raise ValueError(
                        f"{type(self).__typename__} {self._name!r} {what} {spelling!r} conflicts with {label} {kind} {spelling!r}"
                    )

    @property
    def need_args(self):
        return sum(argument.required for argument in self._args)

    @property
    def expect_args(self):
        return len(self._args)

    @property
    def variadic(self):
        return bool(self._args) and self._args[-1].variadic

    @property
    def signature(self):
        return " ".join(map(str, self._args))

    @property
    def path(self):
        """canonical names from the outermost command down to this one."""
        if self._parent is Unset:
            return (self._name,)
        return (*self._parent.path, self._name)


class Commands:
    """
    Command registry for one level (the top level or a command's sub-commands).

    Accepts a mapping of name -> declaration mapping (keyword arguments of
    Command). Names and aliases share one namespace; reusing a spelling is a
    ValueError naming both commands.
    """

    def _verify_scope(self, scope, /):
        """check every command at every depth against the given enclosing scopes."""
        for command in self._commands.values():
            command._verify_scope(scope)
            command._subcommands._verify_scope(scope)

    def __init__(self, declarations=Unset, /, parent=Unset, scope=()):
        if declarations is Unset:
            declarations = {}
        elif not isinstance(declarations, Mapping):
            raise TypeError("commands must be a mapping of name to declaration")

        self._parent = parent
        self._commands = {}
        self._aliases = {}
        self._default = Unset

        for name, declaration in declarations.items():
            if not isinstance(declaration, Mapping):
                raise TypeError(f"command {name!r} declaration must be a mapping")
            try:
                command = Command(name, **declaration, parent=parent, scope=scope)
            except (TypeError, ValueError) as error:
                if parent is not Unset:
                    raise
                raise type(error)(f"init command {name!r} failed - {error}") from None

            if command.default:
                if self._default is not Unset:
                    raise ValueError(f"trying to set command {name!r} as default but {self._default.name!r} is already set")
                self._default = command

            for alias in command.alias:
                if alias in self._aliases:
                    raise ValueError(f"command {name!r} alias {alias!r} already used by command {self._aliases[alias]!r}")
                self._aliases[alias] = name
            self._commands[name] = command

        for alias, name in self._aliases.items():
            if alias in self._commands:
                raise ValueError(f"command {name!r} alias {alias!r} shadows command {alias!r}")

    def lookup(self, token, /):
        """the declared Command for a name or alias, or None."""
        if token in self._commands:
            return self._commands[token]
        if token in self._aliases:
            return self._commands[self._aliases[token]]
        return None

    def resolve(self, token, /):
        """
        Resolve a command token into a fresh ParseContext.

        An undeclared token still yields a context, marked unknown, backed by
        a transient command with no arguments, options or sub-commands.
        """
        if (command := self.lookup(token)) is not None:
            return ParseContext(token, command.name, command)
        return ParseContext(token, token, Command(token, parent=self._parent, unknown=True), unknown=True)

    @property
    def parent(self):
        return self._parent

    @property
    def default(self):
        """the default Command, or None."""
        return coalesce(self._default)

    @property
    def names(self):
        return tuple(self._commands)

    @property
    def aliases(self):
        return dict(self._aliases)

    def __contains__(self, token):
        return token in self._commands or token in self._aliases

    def __getitem__(self, name):
        return self._commands[name]

    def __iter__(self):
        return iter(self._commands.values())

    def __len__(self):
        return len(self._commands)

    def __rich_repr__(self):
        for command in self._commands.values():
            yield command

    def __repr__(self):
        return f"commands({', '.join(map(repr, self._commands.values()))})"



__all__ = (
    "Command",
    "Commands",
)

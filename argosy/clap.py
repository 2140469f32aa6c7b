"""
Argosy front end.

Clap ties the pieces together for an application:

    declarations -> Options / Commands -> Parser -> defaults -> ParseResult

and routes every fact the parse produces to a handler:

- "unknown-option":  UnknownOptionWarning
- "unknown-command": UnknownCommandWarning / UnknownSubcommandWarning
- "parse-fail":      the CommandException attached to the result
- "no-action":       NoActionWarning, nothing on the command line is runnable

Without a handler, warnings are surfaced with trigger() (warnings.warn, or a
rich panel in shell mode) and a failed parse is only surfaced in shell mode,
where it prints and exits with status 1 unless deferred.

Clap never calls command handlers itself. invocations() hands out immutable
Invocation snapshots for the caller to run however it likes.

Quick example:
    >>> clap = Clap(
    ...     {"verbose": {"alias": "v", "type": "count"}},
    ...     {"build": {"args": "<target> [mode]", "exec": print}},
    ...     "tool",
    ... )
    >>> result = clap.parse(["-vv", "build", "app"])
    >>> clap.invocations(result)[0].args
    mappingproxy({'target': 'app'})
"""
import copy
import os
import shlex
import sys
from collections import namedtuple
from collections.abc import Mapping
from types import MappingProxyType

from .commands import Commands
from .defaults import apply_defaults, propagate_defaults
from .faults import CommandWarning, FaultCode, NoActionWarning, getdoc, trigger
from .options import Options
from .parser import Parser
from .utils import Unset, coalesce

EVENTS = frozenset({"unknown-option", "unknown-command", "parse-fail", "no-action"})


class Invocation(namedtuple("Invocation", ("name", "long", "path", "source", "opts", "args", "arg_list", "exec"))):
    """
    read-only snapshot of one runnable command.

    opts and source merge the top level values with the command's own (the
    command wins on a shared key); args, opts and source are mapping proxies
    over private copies, arg_list is a tuple.
    """
    __slots__ = ()


class Clap:
    """
    Application-level parser.

    Parameters
    - options: top level option declarations (name -> mapping).
    - commands: command declarations (name -> mapping).
    - name: program name shown in diagnostics; defaults to the script name.
    - handlers: mapping of event name -> callable(fault).
    - allow_unknown_option / allow_unknown_command / multiple: forwarded to Parser.
    - shell, fancy, colorful, deferred: presentation switches forwarded to trigger().

    Raises TypeError / ValueError when a declaration is invalid.
    """

    def __init__(
            self,
            options=Unset,
            commands=Unset,
            /,
            name=Unset,
            *,
            handlers=Unset,
            allow_unknown_option=True,
            allow_unknown_command=True,
            multiple=True,
            shell=False,
            fancy=False,
            colorful=False,
            deferred=False,
    ):
        if not isinstance(name, str | Unset):
            raise TypeError("clap name must be a string")
        elif isinstance(name, str) and not (name := name.strip()):
            raise ValueError("clap name cannot be empty")
        self._name = coalesce(name, os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "argosy")

        self._handlers = {}
        if handlers is not Unset:
            if not isinstance(handlers, Mapping):
                raise TypeError("clap handlers must be a mapping of event to callable")
            for event, handler in handlers.items():
                self.on(event, handler)

        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._deferred = bool(deferred)

        self._options = Options(options)
        self._commands = Commands(commands, scope=(("top level", self._options),))
        self._parser = Parser(
            self._options,
            self._commands,
            self._dispatch,
            allow_unknown_option=allow_unknown_option,
            allow_unknown_command=allow_unknown_command,
            multiple=multiple,
        )

    @property
    def name(self):
        return self._name

    @property
    def options(self):
        return self._options

    @property
    def commands(self):
        return self._commands

    @property
    def parser(self):
        return self._parser

    def on(self, event, handler, /):
        """register handler for event, replacing any previous one; returns self."""
        if event not in EVENTS:
            raise ValueError(f"unknown event {event!r}, expected one of {', '.join(sorted(EVENTS))}")
        if not callable(handler):
            raise TypeError(f"handler for {event!r} must be callable")
        self._handlers[event] = handler
        return self

    def parse(self, argv=Unset, start=Unset, /):
        """
        Parse a command line and return the ParseResult.

        argv
        - Unset: sys.argv, skipping the program name (start defaults to 1).
        - str: split with shlex, start defaults to 0.
        - iterable of str: used as-is, start defaults to 0.

        Defaults are propagated only when the parse succeeded; a failed parse
        is reported as "parse-fail" and returned untouched.
        """
        if argv is Unset:
            argv, start = sys.argv, coalesce(start, 1)
        elif isinstance(argv, str):
            argv = shlex.split(argv)
        result = self._parser.parse(argv, coalesce(start, 0))

        if result.error is not None:
            self._dispatch("parse-fail", result.error)
            return result

        propagate_defaults(result, self._options)

        if len(self._commands) and not self.invocations(result):
            warning = NoActionWarning(
                "no command to run",
                title="no action",
                code=FaultCode.NO_ACTION,
                hint="name one of the commands: " + ", ".join(self._commands.names),
                docs=getdoc(FaultCode.NO_ACTION),
            )
            result.notices.append(warning)
            self._dispatch("no-action", warning)
        return result

    def invocations(self, result, /):
        """
        Snapshots of every resolved command that has an exec handler, in
        command line order. When there is none, the default command (with its
        defaults applied) stands in. A failed parse has no invocations.
        """
        if result.error is not None:
            return ()

        runnable = [
            context for context in result.commands
            if not context.unknown and context.command.exec is not Unset
        ]
        if not runnable and (default := self._commands.default) is not None:
            context = self._commands.resolve(default.name)
            apply_defaults(default.options.defaults, context)
            runnable.append(context)

        return tuple(self._snapshot(result, context) for context in runnable)

    def _snapshot(self, result, context, /):
        return Invocation(
            context.name,
            context.long,
            context.command.path,
            MappingProxyType(copy.deepcopy(result.source | context.source)),
            MappingProxyType(copy.deepcopy(result.opts | context.opts)),
            MappingProxyType(copy.deepcopy(context.args)),
            tuple(context.arg_list),
            context.command.exec,
        )

    def _dispatch(self, event, fault, /):
        if (handler := self._handlers.get(event)) is not None:
            handler(fault)
            return
        if isinstance(fault, CommandWarning) or self._shell:
            trigger(
                fault,
                tool=self,
                shell=self._shell,
                fancy=self._fancy,
                colorful=self._colorful,
                deferred=self._deferred,
            )

    def __rich_repr__(self):
        yield "name", self._name
        yield "options", self._options
        yield "commands", self._commands

    def __repr__(self):
        return f"clap(name={self._name!r}, options={self._options!r}, commands={self._commands!r})"


__all__ = (
    "EVENTS",
    "Invocation",
    "Clap",
)

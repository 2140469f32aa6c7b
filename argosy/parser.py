"""
Argosy parser: a left-to-right state machine over already split tokens.

States
- PARSING: classify the next token as an option, a command, or (while a
  command is gathering) a positional value.
- GATHERING_OPT_PARAMS: collecting values for an option named without an
  inline value.
- GATHERING_CMD_PARAMS: collecting positional values for the active command.

An option met while a command gathers its arguments suspends that gathering
on an explicit stack; the command resumes once the option is complete.

Token forms
- "--name", "--name=value", "-n", "-n=value"
- "--no-name": sets name to False without gathering.
- "-xyz": x and y are set as flags (or counted), z is resolved normally.
- "--": ends the gathering in progress. Parsing stops there unless the
  gatherer takes unbounded values (array option, variadic command).
- "-." / "--.": ends the active command's argument gathering, so several
  commands can follow one another.
- "-" on its own is a plain value.

Unknown options and commands are recorded and reported as warnings. Errors
(missing required values, missing required arguments, disallowed options,
failing custom coercions) end the parse and are attached to the result.

Quick example:
    >>> parser = Parser(Options({"verbose": {"alias": "v", "type": "count"}}), Commands())
    >>> parser.parse(["-vvv"]).opts
    {'verbose': 3}
"""
import copy
from collections.abc import Iterable
from enum import IntEnum

from .coercion import convert
from .commands import Commands
from .faults import *
from .options import Options
from .results import ParseResult, Provenance
from .utils import Unset, coalesce, ordinal

TERMINATOR = "--"
SEPARATORS = frozenset({"-.", "--."})


class State(IntEnum):
    PARSING = 1
    GATHERING_OPT_PARAMS = 2
    GATHERING_CMD_PARAMS = 3


def _flag(name, /):
    return ("-" if len(name) == 1 else "--") + name


def _is_option(token, /):
    return token.startswith("-") and token != "-"


class Parser:
    """
    Parser bound to a top level option registry and command registry.

    Parameters
    - options: Options for the top level scope.
    - commands: Commands for the top level.
    - notify: optional callable(event, warning) receiving each soft condition
      ("unknown-option", "unknown-command") as it happens.
    - allow_unknown_option / allow_unknown_command: when False an unknown
      entity ends the parse with UnknownOptionError / UnknownCommandError
      (UnknownSubcommandError below a command) instead of a warning.
    - multiple: honour the "-." / "--." command separators.

    A Parser holds no per-parse state; parse() may be called any number of
    times, from any number of threads.
    """

    def __init__(
            self,
            options,
            commands,
            /,
            notify=Unset,
            *,
            allow_unknown_option=True,
            allow_unknown_command=True,
            multiple=True,
    ):
        if not isinstance(options, Options):
            raise TypeError("parser options must be an Options registry")
        if not isinstance(commands, Commands):
            raise TypeError("parser commands must be a Commands registry")
        if not (notify is Unset or callable(notify)):
            raise TypeError("parser notify must be callable")
        commands._verify_scope((("top level", options),))
        self.options = options
        self.commands = commands
        self.notify = notify
        self.allow_unknown_option = bool(allow_unknown_option)
        self.allow_unknown_command = bool(allow_unknown_command)
        self.multiple = bool(multiple)

    def parse(self, argv, start=0, /):
        """
        Parse argv from position start and return a ParseResult.

        CommandException subclasses raised while parsing are stored in
        result.error, never raised. Exceptions raised by the notify callback
        that are not CommandException propagate.
        """
        if isinstance(argv, str) or not isinstance(argv, Iterable):
            raise TypeError("parse() argv must be an iterable of strings")
        argv = tuple(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse() argv must be an iterable of strings")
        if not isinstance(start, int) or isinstance(start, bool):
            raise TypeError("parse() start must be an integer")
        if not 0 <= start <= len(argv):
            raise ValueError("parse() start is out of range")
        return _Scan(self, argv, start).run()


class _Scan:
    """state of one parse() call."""

    def __init__(self, parser, argv, start, /):
        self.parser = parser
        self.argv = argv
        self.start = start
        self.index = start
        self.result = ParseResult()
        self.state = State.PARSING
        self.states = []
        # active command contexts, outermost first
        self.chain = []
        # (OptionMatch, target scope) while gathering option values
        self.pending = None
        self.values = []
        self.arguments = []

    def run(self):
        result = self.result
        try:
            while self.index < len(self.argv):
                token = self.argv[self.index]
                if token == TERMINATOR:
                    if self._terminate():
                        result.rest = list(self.argv[self.index + 1:])
                        break
                else:
                    self._consume(token)
                self.index += 1
            self._finish()
        except CommandException as error:
            result.error = error
        result.index = self.index
        return result

    # states

    def _push(self, state, /):
        self.states.append(self.state)
        self.state = state

    def _pop(self):
        if not self.states:
            raise self._fault(
                ParserStateError,
                "parser state stack is empty",
                title="parser state",
                code=FaultCode.PARSER_STATE,
            )
        self.state = self.states.pop()

    def _terminate(self):
        """end the gathering in progress; True when parsing must stop."""
        match self.state:
            case State.GATHERING_OPT_PARAMS:
                option = self.pending[0].option
                self._end_option()
                return option.type != "array"
            case State.GATHERING_CMD_PARAMS:
                command = self.chain[-1].command
                self._end_command()
                return not command.variadic
        return True

    def _finish(self):
        while self.state is not State.PARSING:
            match self.state:
                case State.GATHERING_OPT_PARAMS:
                    self._end_option()
                case State.GATHERING_CMD_PARAMS:
                    self._end_command()
                case _:
                    raise self._fault(
                        ParserStateError,
                        f"unknown parser state {self.state!r}",
                        title="parser state",
                        code=FaultCode.PARSER_STATE,
                    )

    def _consume(self, token, /):
        if self.state is State.GATHERING_OPT_PARAMS:
            return self._gather_option(token)
        if self.state is State.GATHERING_CMD_PARAMS and self.parser.multiple and token in SEPARATORS:
            return self._end_command()
        if _is_option(token):
            return self._option(token)
        if self.state is State.GATHERING_CMD_PARAMS:
            return self._gather_command(token)
        if self.state is State.PARSING:
            return self._command(token)
        raise self._fault(
            ParserStateError,
            f"unknown parser state {self.state!r}",
            title="parser state",
            code=FaultCode.PARSER_STATE,
        )

    # options

    def _option(self, token, /):
        if token.startswith("--no-") and len(token) > 5:
            return self._set_option(token[5:], [False], ["no-"])

        dashes = 2 if token.startswith("--") else 1
        name = token[dashes:]
        value = Unset
        if (position := name.find("=")) > 0:
            name, value = name[:position], [name[position + 1:]]

        if dashes == 1 and len(name) > 1:
            for flag in name[:-1]:
                self._set_flag(flag)
            name = name[-1]

        self._set_option(name, value, value)

    def _resolve(self, name, /):
        """top level first, then the active command and its ancestors."""
        if (match := self.parser.options.resolve(name)) is not None:
            return match, self.result
        for context in reversed(self.chain):
            if (match := context.command.options.resolve(name)) is not None:
                return match, context
        return None

    def _check_allowed(self, match, /):
        if not (allow := match.option.allow_cmd):
            return
        if any(context.long in allow for context in self.chain):
            return
        raise self._fault(
            DisallowedOptionError,
            f"option {_flag(match.name)!r} must follow one of these commands: {', '.join(allow)}",
            title="disallowed option",
            code=FaultCode.DISALLOWED_OPTION,
            hint=f"move {_flag(match.name)!r} after {allow[0]!r}",
            option=match.name,
        )

    def _set_flag(self, name, /):
        if (found := self._resolve(name)) is None:
            return self._unknown_option(name, Unset, Unset)
        match, target = found
        self._check_allowed(match)
        target.source[match.name] = Provenance.CLI
        if match.option.type == "count":
            target.opts[match.name] = target.opts.get(match.name, 0) + 1
        else:
            target.opts[match.name] = True

    def _set_option(self, name, value, verbatim, /):
        if (found := self._resolve(name)) is None:
            return self._unknown_option(name, value, verbatim)
        match, target = found
        self._check_allowed(match)
        target.source[match.name] = Provenance.CLI

        if value is Unset and match.option.type != "count":
            self.pending = (match, target)
            self.values = []
            self._push(State.GATHERING_OPT_PARAMS)
            return

        self._assign(match, target, coalesce(value, []))
        if verbatim is not Unset:
            target.verbatim[match.name] = list(verbatim)

    def _unknown_option(self, name, value, verbatim, /):
        target = self.chain[-1] if self.chain else self.result
        options = {
            "title": "unknown option",
            "hint": f"check the spelling of {_flag(name)!r} or declare it",
            "option": name,
        }
        message = f"unknown option {_flag(name)!r} at {self._position()} position"
        if not self.parser.allow_unknown_option:
            raise self._fault(UnknownOptionError, message, code=FaultCode.UNKNOWN_OPTION, **options)

        if verbatim is not Unset:
            target.verbatim[name] = list(verbatim)
        target.opts[name] = value[0] if value is not Unset else True
        target.source[name] = Provenance.CLI
        self._notify("unknown-option", self._fault(UnknownOptionWarning, message, code=FaultCode.UNRESOLVED_OPTION, **options))

    def _gather_option(self, token, /):
        option = self.pending[0].option
        if option.type == "boolean":
            accepted = token.lower() in ("true", "false")
        else:
            accepted = not _is_option(token)

        if not accepted:
            self._end_option()
            return self._consume(token)

        self.values.append(token)
        if option.type != "array":
            self._end_option()

    def _end_option(self):
        match, target = self.pending
        option = match.option
        if self.values:
            self._assign(match, target, self.values)
            target.verbatim[match.name] = list(self.values)
        elif option.type is Unset or option.type == "boolean":
            target.opts[match.name] = True
        elif option.requires_arg:
            raise self._fault(
                OptionArgumentRequiredError,
                f"option {_flag(match.name)!r} requires an argument",
                title="argument required",
                code=FaultCode.OPTION_ARGUMENT_REQUIRED,
                hint=f"pass a value after {_flag(match.name)!r} or use {_flag(match.name)}=VALUE",
                option=match.name,
            )
        else:
            target.opts[match.name] = copy.deepcopy(coalesce(option.default))
        self.pending = None
        self.values = []
        self._pop()

    def _assign(self, resolved, target, values, /):
        option = resolved.option
        match option.type:
            case "count":
                value = target.opts.get(resolved.name, 0) + 1
            case "array" if option.subtype is Unset:
                value = list(values)
            case "array":
                value = [self._convert(option.subtype, token, option.coercions) for token in values]
            case _:
                value = self._convert(option.type, values[0], option.coercions)
        target.opts[resolved.name] = value

    # commands

    def _command(self, token, /):
        if self.chain and not self.chain[-1].command.subcommands:
            self.chain.pop()
        registry = self.chain[-1].command.subcommands if self.chain else self.parser.commands
        context = registry.resolve(token)

        if context.unknown:
            self._unknown_command(token, registry)

        self.chain.append(context)
        self.result.commands.append(context)
        if context.command.args:
            self.arguments = []
            self._push(State.GATHERING_CMD_PARAMS)

    def _unknown_command(self, token, registry, /):
        position = self._position()
        if (parent := registry.parent) is Unset:
            message = f"unknown command {token!r} at {position} position"
            error, warning = UnknownCommandError, UnknownCommandWarning
            codes = FaultCode.UNKNOWN_COMMAND, FaultCode.UNRESOLVED_COMMAND
            title = "unknown command"
        else:
            message = f"unknown subcommand {token!r} of {parent.name!r} at {position} position"
            error, warning = UnknownSubcommandError, UnknownSubcommandWarning
            codes = FaultCode.UNKNOWN_SUBCOMMAND, FaultCode.UNRESOLVED_SUBCOMMAND
            title = "unknown subcommand"

        options = {"title": title, "hint": f"check the spelling of {token!r}", "command": token}
        if not self.parser.allow_unknown_command:
            raise self._fault(error, message, code=codes[0], **options)
        self._notify("unknown-command", self._fault(warning, message, code=codes[1], **options))

    def _gather_command(self, token, /):
        self.arguments.append(token)
        command = self.chain[-1].command
        if len(self.arguments) >= command.expect_args and not command.variadic:
            self._end_command()

    def _end_command(self):
        context = self.chain[-1]
        command = context.command
        gathered, self.arguments = self.arguments, []
        context.arg_list = list(gathered)

        if len(gathered) < command.need_args:
            raise self._fault(
                NotEnoughArgumentsError,
                f"not enough arguments for command {context.name!r}: expected at least {command.need_args}, got {len(gathered)}",
                title="not enough arguments",
                code=FaultCode.NOT_ENOUGH_ARGUMENTS,
                hint=f"usage: {' '.join(command.path)} {command.signature}",
                command=context.long,
            )

        for position, argument in enumerate(command.args):
            if argument.variadic:
                if not (tokens := gathered[position:]):
                    break
                value = [self._bind(argument, token, command) for token in tokens]
            elif position < len(gathered):
                value = self._bind(argument, gathered[position], command)
            else:
                break
            if argument.name:
                context.args[argument.name] = value

        self._pop()

    def _bind(self, argument, token, command, /):
        if argument.type is Unset:
            return token
        return self._convert(argument.type, token, command.coercions)

    # helpers

    def _convert(self, type, token, coercions, /):
        try:
            return convert(type, token, coercions)
        except Exception as error:
            raise self._fault(
                CoercionError,
                f"cannot convert {token!r} to {type}: {error}",
                title="conversion failed",
                code=FaultCode.COERCION_FAILED,
                exception=error,
            ) from error

    def _position(self):
        return ordinal(self.index - self.start + 1)

    def _fault(self, cls, message, /, **options):
        token = self.argv[self.index] if self.index < len(self.argv) else None
        return cls(message, token=token, index=self.index, docs=getdoc(options["code"]), **options)

    def _notify(self, event, warning, /):
        self.result.notices.append(warning)
        if self.parser.notify is not Unset:
            self.parser.notify(event, warning)


__all__ = (
    "TERMINATOR",
    "SEPARATORS",
    "State",
    "Parser",
)

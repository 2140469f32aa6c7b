"""
Argosy faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue, grouped
  by domain so logs and docs stay searchable.
- CommandException / CommandWarning: base types carrying a message plus
  options (code, title, hint, token, index, ...) that render themselves with rich.
- trigger(): single entry point to surface a fault (respecting shell/deferred/fancy/colorful).
- getdoc(): optional long description for a code, provided by the host application.

Parse errors are never raised out of Parser.parse(); they are attached to the
result and surfaced by the caller through trigger(). Soft conditions (unknown
options/commands, nothing to run) are warnings collected on the result.

Host hooks (all optional, looked up on __main__)
- __styles__: overrides for the rich styles below.
- __codes__: FaultCode -> label used instead of the number.
- __docs__: FaultCode -> long description.
- __prog__: program name shown in the header.
"""
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - routing (1110x): UNKNOWN_COMMAND, UNKNOWN_SUBCOMMAND
    - options (1111x): UNKNOWN_OPTION, OPTION_ARGUMENT_REQUIRED, DISALLOWED_OPTION
    - positionals (1112x): NOT_ENOUGH_ARGUMENTS
    - delegated (1113x): COERCION_FAILED
    - internal (1115x): PARSER_STATE
    - warnings (12xxx): UNRESOLVED_COMMAND, UNRESOLVED_SUBCOMMAND,
      UNRESOLVED_OPTION, NO_ACTION

    the gaps leave room for new codes without renumbering.
    """
    # --- routing errors (11xxx) ---
    UNKNOWN_COMMAND             = 11101
    UNKNOWN_SUBCOMMAND          = 11102

    # --- option errors (11xxx) ---
    UNKNOWN_OPTION              = 11112
    OPTION_ARGUMENT_REQUIRED    = 11117
    DISALLOWED_OPTION           = 11118

    # --- positional errors (11xxx) ---
    NOT_ENOUGH_ARGUMENTS        = 11125

    # --- delegated errors (11xxx) ---
    COERCION_FAILED             = 11131

    # --- internal errors (11xxx) ---
    PARSER_STATE                = 11151

    # --- warnings (12xxx) ---
    UNRESOLVED_COMMAND          = 12101
    UNRESOLVED_SUBCOMMAND       = 12102
    UNRESOLVED_OPTION           = 12112
    NO_ACTION                   = 12141

    def normalize(self):
        """
        return a host-normalized string for this code.

        __main__.__codes__ may map codes to friendlier labels; otherwise the
        numeric value is used.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


_ERROR_STYLES = {
    "prog-name": "bold #E6E6F0",
    "code": "bold #00E5FF",
    "error-title": "bold #FF4DA6",
    "error-message": "#C8C8D0",
    "hint-arrow": "#9CE19C dim",
    "hint": "italic #9CE19C",
    "docs": "#8A8F9C",
}

_WARNING_STYLES = {
    "prog-name": "bold #E6E6F0",
    "code": "bold #FFB400",
    "warning-title": "bold #FFC2E0",
    "warning-message": "#D6D6DE",
    "hint-arrow": "#B8EFAF dim",
    "hint": "italic #B8EFAF",
    "docs": "#8A8F9C",
}


def _render(fault, tone, palette, /):
    """
    build the rich renderable shared by errors and warnings.

    layout
    - header: [ prog | code | title ]
    - body: message, then "→ hint" and the docs line when present.
    - fancy mode wraps the body in a Panel titled with the header.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", False)
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = getattr(main, "__prog__", getattr(options.get("tool"), "name", "argosy"))
    code = options.get("code")

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " | ",
        text(code.normalize() if code is not None else "", "code"),
        " | ",
        text(options.get("title", "").title(), tone + "-title"),
        " ]",
    )
    body = [text(fault.message, tone + "-message")]
    if hint := options.get("hint"):
        body.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))
    if docs := options.get("docs"):
        body.append(text(docs, "docs"))

    if options.get("fancy", False):
        width = int(console.width * options["ratio"]) if "ratio" in options else None
        return Panel(Group(*body), title=header, title_align="left", width=width)

    return Group(header, *body)


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, "error", _ERROR_STYLES)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownOptionError(CommandException): ...
class UnknownCommandError(CommandException): ...
class UnknownSubcommandError(CommandException): ...
class OptionArgumentRequiredError(CommandException): ...
class DisallowedOptionError(CommandException): ...
class NotEnoughArgumentsError(CommandException): ...
class CoercionError(CommandException): ...
class ParserStateError(CommandException): ...


class CommandWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    def __rich__(self):
        return _render(self, "warning", _WARNING_STYLES)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownOptionWarning(CommandWarning): ...
class UnknownCommandWarning(CommandWarning): ...
class UnknownSubcommandWarning(CommandWarning): ...
class NoActionWarning(CommandWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see the base classes).
    - options are merged into a copy of the fault via __replace__(**options)
      before triggering; the original fault is left untouched.
    - outside shell mode exceptions are raised and warnings go through
      warnings.warn; in shell mode both are printed to stderr with rich.

    typical options
    - tool, shell, fancy, colorful, deferred, ratio.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ keyed by
    FaultCode; a missing entry yields None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "CommandException",
    "UnknownOptionError",
    "UnknownCommandError",
    "UnknownSubcommandError",
    "OptionArgumentRequiredError",
    "DisallowedOptionError",
    "NotEnoughArgumentsError",
    "CoercionError",
    "ParserStateError",
    "CommandWarning",
    "UnknownOptionWarning",
    "UnknownCommandWarning",
    "UnknownSubcommandWarning",
    "NoActionWarning",
    "trigger",
    "getdoc",
)

"""
Argosy parse results.

A parse produces one ParseResult (the root scope) holding an ordered list of
ParseContext objects, one per command token met on the command line. Both
kinds of scope carry three parallel maps keyed by canonical option name:

- opts:      typed values
- source:    provenance of each value (Provenance.CLI, Provenance.DEFAULT, or a
             caller supplied tag such as Provenance.USER)
- verbatim:  raw tokens the value was built from, kept for diagnostics

Results are plain data owned by the caller once parse() returns; nothing in
the parser keeps a reference to them.
"""
from enum import StrEnum


class Provenance(StrEnum):
    """where a value came from; compares equal to its lowercase string."""
    CLI = "cli"
    DEFAULT = "default"
    USER = "user"


class Scope:
    __displayable__ = ("opts", "source", "verbatim")

    def __init__(self):
        self.opts = {}
        self.source = {}
        self.verbatim = {}

    def __rich_repr__(self):
        for name in type(self).__displayable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return f"{type(self).__name__}({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"


class ParseContext(Scope):
    """
    One command occurrence on the command line.

    Attributes
    - name: the name as typed (may be an alias).
    - long: the canonical name (equal to name for unknown commands).
    - unknown: the token matched no declared command.
    - command: the Command specification that was resolved.
    - args: positional values bound by argument name.
    - arg_list: raw positional tokens in the order they were gathered.
    """
    __displayable__ = ("name", "long", "unknown", "args", "arg_list") + Scope.__displayable__

    def __init__(self, name, long, command, /, unknown=False):
        super().__init__()
        self.name = name
        self.long = long
        self.command = command
        self.unknown = unknown
        self.args = {}
        self.arg_list = []


class ParseResult(Scope):
    """
    Root scope of a parse.

    Attributes
    - commands: ParseContext objects in command-line order.
    - error: the CommandException that aborted the parse, or None.
    - index: position in argv where parsing stopped (the terminator's
      position when a bare "--" ended it, len(argv) otherwise).
    - rest: tokens after a stopping "--", left unparsed.
    - notices: CommandWarning objects raised during the parse, in order.
    """
    __displayable__ = Scope.__displayable__ + ("commands", "error", "index", "rest")

    def __init__(self):
        super().__init__()
        self.commands = []
        self.error = None
        self.index = 0
        self.rest = []
        self.notices = []

    @property
    def ok(self):
        return self.error is None

    def find(self, name, /):
        """first context whose canonical name is name, or None."""
        for context in self.commands:
            if context.long == name:
                return context
        return None


__all__ = (
    "Provenance",
    "ParseContext",
    "ParseResult",
)

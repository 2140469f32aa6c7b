"""
Argosy defaults propagation.

After parsing, declared defaults fill every option the command line left
unset, at the top level and inside each resolved command context. Values are
copied, so a default list handed to one parse is never shared with another.

Provenance rules
- apply_defaults never touches a key that already has a value: first writer wins.
- apply_config overwrites defaults and earlier merges, but never a value whose
  provenance is Provenance.CLI.
"""
import copy
from collections.abc import Mapping

from .options import Options
from .results import Provenance, Scope


def _check(scope, values, source, caller, /):
    if not isinstance(scope, Scope):
        raise TypeError(f"{caller}() scope must be a parse result or parse context")
    if not isinstance(values, Mapping):
        raise TypeError(f"{caller}() values must be a mapping")
    if not isinstance(source, str):
        raise TypeError(f"{caller}() source must be a string")


def apply_defaults(defaults, scope, /, source=Provenance.DEFAULT):
    """
    Fill the names of defaults that scope.opts lacks, tagging them with source.

    Returns scope.
    """
    _check(scope, defaults, source, "apply_defaults")
    for name, value in defaults.items():
        if name in scope.opts:
            continue
        scope.opts[name] = copy.deepcopy(value)
        scope.source[name] = source
    return scope


def apply_config(config, scope, /, source=Provenance.USER):
    """
    Merge configuration values into scope, keeping command line values.

    Every name in config whose current provenance is not "cli" takes the
    configured value and the source tag. Returns scope.
    """
    _check(scope, config, source, "apply_config")
    for name, value in config.items():
        if scope.source.get(name) == Provenance.CLI:
            continue
        scope.opts[name] = copy.deepcopy(value)
        scope.source[name] = source
    return scope


def propagate_defaults(result, options, /, source=Provenance.DEFAULT):
    """
    Apply top level defaults to result and each command's defaults to its
    context. Unknown command contexts have no declared options and stay as
    parsed. Returns result.
    """
    if not isinstance(options, Options):
        raise TypeError("propagate_defaults() options must be an Options registry")
    apply_defaults(options.defaults, result, source=source)
    for context in result.commands:
        apply_defaults(context.command.options.defaults, context, source=source)
    return result


__all__ = (
    "apply_defaults",
    "apply_config",
    "propagate_defaults",
)

# python
"""
Parser state machine tests.

Scope
- Option forms: long, inline value, negation, bundled single-dash flags, counts.
- Value gathering: scalars, arrays, booleans, missing values, defaults on demand.
- Commands: positional arity, variadic tails, separators, aliases, sub-commands.
- Terminator handling and the reported stop index.
- Soft conditions (unknown options/commands) and fatal errors on the result.

Conventions
- Test method names follow CamelCase per project convention.
- Parser.parse() must never raise a CommandException; errors land on result.error.
"""

from __future__ import annotations

import math
import re
import unittest
from unittest import TestCase

from argosy import (
    Commands,
    CoercionError,
    DisallowedOptionError,
    FaultCode,
    NotEnoughArgumentsError,
    OptionArgumentRequiredError,
    Options,
    Parser,
    UnknownCommandError,
    UnknownCommandWarning,
    UnknownOptionError,
    UnknownOptionWarning,
    UnknownSubcommandWarning,
)

OPTIONS = {
    "verbose": {"alias": "v", "type": "count"},
    "level": {"alias": "l", "type": "string"},
    "tags": {"type": "array"},
    "ids": {"type": "number array"},
    "color": {"type": "boolean"},
    "num": {"type": "number"},
    "name": {"type": "string", "requires_arg": True},
    "fallback": {"type": "string", "default": "dflt"},
    "all": {"alias": "a"},
    "force": {"alias": "f", "type": "boolean"},
    "port": {"type": "portnum", "portnum": int},
    "mode": {"type": "level", "level": re.compile(r"^(low|high)$", re.IGNORECASE)},
    "push-only": {"allow_cmd": "push"},
}

COMMANDS = {
    "build": {
        "alias": "b",
        "args": "<target> [mode]",
        "options": {"jobs": {"alias": "j", "type": "number", "default": 1}},
    },
    "cat": {"args": "<files..>"},
    "cp": {"args": "<src> <dst>"},
    "serve": {"args": "[number port]"},
    "sum": {"args": "<number _..>"},
    "push": {},
    "remote": {
        "options": {"dry": {"type": "boolean"}},
        "subcommands": {
            "add": {"args": "<name> <url>"},
            "list": {},
        },
    },
}


def build(options=OPTIONS, commands=COMMANDS, /, **config):
    options = Options(options)
    commands = Commands(commands, scope=(("top level", options),))
    return Parser(options, commands, **config)


class TestOptionForms(TestCase):
    def setUp(self):
        self.parser = build()

    def testBundledCount(self):
        result = self.parser.parse(["-vvv"])
        self.assertTrue(result.ok)
        self.assertEqual(result.opts["verbose"], 3)
        self.assertEqual(result.source["verbose"], "cli")

    def testCountAcrossSpellings(self):
        result = self.parser.parse(["--verbose", "-v", "--verbose"])
        self.assertEqual(result.opts["verbose"], 3)

    def testInlineValue(self):
        result = self.parser.parse(["--level=debug"])
        self.assertEqual(result.opts["level"], "debug")
        self.assertEqual(result.verbatim["level"], ["debug"])

    def testSeparateValue(self):
        result = self.parser.parse(["--level", "debug"])
        self.assertEqual(result.opts["level"], "debug")
        self.assertEqual(result.verbatim["level"], ["debug"])

    def testNegation(self):
        result = self.parser.parse(["--no-color"])
        self.assertIs(result.opts["color"], False)
        self.assertEqual(result.verbatim["color"], ["no-"])
        self.assertEqual(result.index, 1)

    def testBooleanForms(self):
        for argv in (["--color"], ["--color=true"], ["--color=1"], ["--color", "true"]):
            with self.subTest(argv=argv):
                self.assertIs(self.parser.parse(argv).opts["color"], True)

    def testBooleanFalseToken(self):
        self.assertIs(self.parser.parse(["--color", "FALSE"]).opts["color"], False)

    def testBooleanLeavesNumericTokenAlone(self):
        result = self.parser.parse(["--color", "1"])
        self.assertIs(result.opts["color"], True)
        self.assertEqual(result.commands[0].long, "1")
        self.assertTrue(result.commands[0].unknown)
        self.assertIsInstance(result.notices[0], UnknownCommandWarning)

    def testBooleanDoesNotSwallowOtherTokens(self):
        result = self.parser.parse(["--force", "push"])
        self.assertIs(result.opts["force"], True)
        self.assertEqual([context.long for context in result.commands], ["push"])

    def testUntypedGathersOneValue(self):
        result = self.parser.parse(["--all", "no"])
        self.assertIs(result.opts["all"], False)
        self.assertEqual(result.commands, [])

    def testBundledFlagsThenLastResolvedNormally(self):
        result = self.parser.parse(["-afl", "debug"])
        self.assertIs(result.opts["all"], True)
        self.assertIs(result.opts["force"], True)
        self.assertEqual(result.opts["level"], "debug")

    def testBundledWithInlineValue(self):
        result = self.parser.parse(["-al=debug"])
        self.assertIs(result.opts["all"], True)
        self.assertEqual(result.opts["level"], "debug")

    def testNumberConversion(self):
        self.assertEqual(self.parser.parse(["--num", "42"]).opts["num"], 42)
        self.assertTrue(math.isnan(self.parser.parse(["--num", "abc"]).opts["num"]))

    def testMissingValueUsesOwnDefault(self):
        result = self.parser.parse(["--fallback"])
        self.assertEqual(result.opts["fallback"], "dflt")
        self.assertEqual(result.source["fallback"], "cli")

    def testMissingValueWithoutDefaultIsNone(self):
        result = self.parser.parse(["--level", "--verbose"])
        self.assertTrue(result.ok)
        self.assertIsNone(result.opts["level"])
        self.assertEqual(result.opts["verbose"], 1)

    def testRequiresArgument(self):
        result = self.parser.parse(["--name"])
        self.assertIsInstance(result.error, OptionArgumentRequiredError)
        self.assertIs(result.error.code, FaultCode.OPTION_ARGUMENT_REQUIRED)
        self.assertFalse(result.ok)

    def testRequiresArgumentSatisfied(self):
        self.assertEqual(self.parser.parse(["--name", "x"]).opts["name"], "x")

    def testCustomCallableCoercion(self):
        self.assertEqual(self.parser.parse(["--port", "80"]).opts["port"], 80)

    def testFailingCustomCoercion(self):
        result = self.parser.parse(["--port", "eighty"])
        self.assertIsInstance(result.error, CoercionError)
        self.assertIsInstance(result.error.options["exception"], ValueError)

    def testCustomPatternCoercion(self):
        self.assertEqual(self.parser.parse(["--mode", "HIGH"]).opts["mode"], "HIGH")
        self.assertIsNone(self.parser.parse(["--mode", "medium"]).opts["mode"])


class TestArrays(TestCase):
    def setUp(self):
        self.parser = build()

    def testArrayGathersUntilOption(self):
        result = self.parser.parse(["--tags", "a", "b", "c"])
        self.assertEqual(result.opts["tags"], ["a", "b", "c"])

    def testArrayStopsAtNextOption(self):
        result = self.parser.parse(["--tags", "a", "--all"])
        self.assertEqual(result.opts["tags"], ["a"])
        self.assertIs(result.opts["all"], True)

    def testTypedArray(self):
        self.assertEqual(self.parser.parse(["--ids", "1", "2", "3"]).opts["ids"], [1, 2, 3])

    def testInlineArrayValue(self):
        self.assertEqual(self.parser.parse(["--ids=7"]).opts["ids"], [7])

    def testArrayContinuesAfterTerminator(self):
        result = self.parser.parse(["--tags", "a", "b", "--", "--all"])
        self.assertEqual(result.opts["tags"], ["a", "b"])
        self.assertIs(result.opts["all"], True)
        self.assertEqual(result.index, 5)
        self.assertEqual(result.rest, [])


class TestTerminator(TestCase):
    def setUp(self):
        self.parser = build()

    def testTerminatorStopsScalarGathering(self):
        result = self.parser.parse(["--level", "--", "d"])
        self.assertTrue(result.ok)
        self.assertIsNone(result.opts["level"])
        self.assertEqual(result.index, 1)
        self.assertEqual(result.rest, ["d"])
        self.assertEqual(result.commands, [])

    def testTerminatorWithNothingGathering(self):
        result = self.parser.parse(["-v", "--", "-v"])
        self.assertEqual(result.opts["verbose"], 1)
        self.assertEqual(result.index, 1)
        self.assertEqual(result.rest, ["-v"])

    def testTerminatorEndsFixedCommand(self):
        result = self.parser.parse(["build", "app", "--", "extra"])
        self.assertTrue(result.ok)
        self.assertEqual(result.commands[0].args, {"target": "app"})
        self.assertEqual(result.index, 2)
        self.assertEqual(result.rest, ["extra"])

    def testTerminatorContinuesAfterVariadicCommand(self):
        notices = []
        parser = build(notify=lambda event, warning: notices.append(event))
        result = parser.parse(["cat", "a", "b", "c", "--", "d"])
        self.assertEqual(result.commands[0].args, {"files": ["a", "b", "c"]})
        self.assertEqual(result.commands[1].long, "d")
        self.assertTrue(result.commands[1].unknown)
        self.assertEqual(result.index, 6)
        self.assertEqual(notices, ["unknown-command"])

    def testFullParseIndex(self):
        self.assertEqual(self.parser.parse(["-v", "build", "x"]).index, 3)


class TestCommands(TestCase):
    def setUp(self):
        self.parser = build()

    def testOptionalArgumentMayBeOmitted(self):
        result = self.parser.parse(["build", "app"])
        self.assertTrue(result.ok)
        context = result.commands[0]
        self.assertEqual(context.args, {"target": "app"})
        self.assertEqual(context.arg_list, ["app"])

    def testMissingRequiredArgument(self):
        result = self.parser.parse(["build"])
        self.assertIsInstance(result.error, NotEnoughArgumentsError)
        self.assertEqual(result.error.options["command"], "build")

    def testAllArguments(self):
        result = self.parser.parse(["build", "app", "dev"])
        self.assertEqual(result.commands[0].args, {"target": "app", "mode": "dev"})

    def testAliasSymmetry(self):
        longhand = self.parser.parse(["--level", "x", "build", "app"])
        shorthand = self.parser.parse(["-l", "x", "b", "app"])
        self.assertEqual(longhand.opts, shorthand.opts)
        self.assertEqual(longhand.commands[0].long, shorthand.commands[0].long)
        self.assertEqual(longhand.commands[0].args, shorthand.commands[0].args)
        self.assertEqual(shorthand.commands[0].name, "b")

    def testCommandScopedOption(self):
        result = self.parser.parse(["build", "app", "--jobs", "4", "-v"])
        context = result.find("build")
        self.assertEqual(context.opts, {"jobs": 4})
        self.assertEqual(context.source, {"jobs": "cli"})
        self.assertEqual(result.opts, {"verbose": 1})

    def testOptionSuspendsArgumentGathering(self):
        result = self.parser.parse(["cp", "a", "--force", "b"])
        self.assertTrue(result.ok)
        self.assertEqual(result.commands[0].args, {"src": "a", "dst": "b"})
        self.assertIs(result.opts["force"], True)

    def testVariadicCollectsEverything(self):
        result = self.parser.parse(["cat", "a", "b", "c"])
        self.assertEqual(result.commands[0].args, {"files": ["a", "b", "c"]})

    def testVariadicMinimum(self):
        self.assertIsInstance(self.parser.parse(["cat"]).error, NotEnoughArgumentsError)

    def testTypedPositional(self):
        self.assertEqual(self.parser.parse(["serve", "8080"]).commands[0].args, {"port": 8080})

    def testTypedVariadic(self):
        result = self.parser.parse(["sum", "1", "2", "3", "4"])
        self.assertEqual(result.commands[0].args, {"_": [1, 2, 3, 4]})

    def testLoneDashIsAValue(self):
        self.assertEqual(self.parser.parse(["cat", "-"]).commands[0].args, {"files": ["-"]})

    def testSeparatorEndsVariadic(self):
        result = self.parser.parse(["cat", "a", "b", "-.", "build", "x"])
        self.assertEqual([context.long for context in result.commands], ["cat", "build"])
        self.assertEqual(result.commands[0].args, {"files": ["a", "b"]})
        self.assertEqual(result.commands[1].args, {"target": "x"})

    def testSeparatorDisabled(self):
        parser = build(multiple=False, notify=lambda event, warning: None)
        result = parser.parse(["cat", "a", "-.", "b"])
        self.assertEqual(result.commands[0].args, {"files": ["a", "b"]})
        self.assertIs(result.commands[0].opts["."], True)

    def testSequentialCommands(self):
        result = self.parser.parse(["push", "serve"])
        self.assertEqual([context.long for context in result.commands], ["push", "serve"])

    def testSubcommand(self):
        result = self.parser.parse(["remote", "add", "origin", "http://example.org", "--dry"])
        self.assertEqual([context.long for context in result.commands], ["remote", "add"])
        self.assertEqual(result.commands[1].args, {"name": "origin", "url": "http://example.org"})
        self.assertEqual(result.commands[0].opts, {"dry": True})

    def testSiblingSubcommands(self):
        result = self.parser.parse(["remote", "list", "add", "a", "b"])
        self.assertEqual([context.long for context in result.commands], ["remote", "list", "add"])

    def testUnknownSubcommand(self):
        notices = []
        parser = build(notify=lambda event, warning: notices.append(warning))
        result = parser.parse(["remote", "zap"])
        self.assertTrue(result.ok)
        self.assertTrue(result.commands[1].unknown)
        self.assertIsInstance(notices[0], UnknownSubcommandWarning)

    def testAllowCmdRejected(self):
        result = self.parser.parse(["--push-only"])
        self.assertIsInstance(result.error, DisallowedOptionError)

    def testAllowCmdAccepted(self):
        result = self.parser.parse(["push", "--push-only"])
        self.assertTrue(result.ok)
        self.assertIs(result.opts["push-only"], True)


class TestUnknown(TestCase):
    def testUnknownOptionIsRecorded(self):
        events = []
        parser = build(notify=lambda event, warning: events.append((event, warning)))
        result = parser.parse(["--zzz"])
        self.assertTrue(result.ok)
        self.assertIs(result.opts["zzz"], True)
        self.assertEqual(result.source["zzz"], "cli")
        self.assertEqual(events[0][0], "unknown-option")
        self.assertIsInstance(events[0][1], UnknownOptionWarning)
        self.assertEqual(result.notices, [events[0][1]])

    def testUnknownOptionKeepsInlineValue(self):
        result = build().parse(["--zzz=val", "--no-yyy"])
        self.assertEqual(result.opts["zzz"], "val")
        self.assertIs(result.opts["yyy"], False)
        self.assertEqual(result.verbatim["yyy"], ["no-"])

    def testUnknownOptionBelongsToActiveCommand(self):
        result = build().parse(["push", "--zzz"])
        self.assertEqual(result.commands[0].opts, {"zzz": True})
        self.assertNotIn("zzz", result.opts)

    def testUnknownBundledCharacter(self):
        result = build().parse(["-xv"])
        self.assertIs(result.opts["x"], True)
        self.assertEqual(result.opts["verbose"], 1)
        self.assertEqual(len(result.notices), 1)

    def testUnknownCommandCollectsFollowingTokens(self):
        result = build().parse(["mystery", "--level", "x"])
        self.assertTrue(result.commands[0].unknown)
        self.assertIsInstance(result.notices[0], UnknownCommandWarning)
        self.assertEqual(result.opts["level"], "x")

    def testUnknownOptionDisallowed(self):
        result = build(allow_unknown_option=False).parse(["-v", "--zzz", "--level", "x"])
        self.assertIsInstance(result.error, UnknownOptionError)
        self.assertEqual(result.index, 1)
        self.assertNotIn("level", result.opts)

    def testUnknownCommandDisallowed(self):
        result = build(allow_unknown_command=False).parse(["mystery"])
        self.assertIsInstance(result.error, UnknownCommandError)
        self.assertEqual(result.commands, [])


class TestRoundTrip(TestCase):
    def setUp(self):
        self.parser = build()

    def flags(self, options, opts):
        for name, value in opts.items():
            if options[name].type == "count":
                yield from [f"--{name}"] * value
            elif value is True:
                yield f"--{name}"
            elif value is False:
                yield f"--no-{name}"
            elif isinstance(value, list):
                yield f"--{name}"
                yield from map(str, value)
                yield "--"
            else:
                yield f"--{name}={value}"

    def testReserializedParseMatches(self):
        argv = [
            "-vv", "--level", "debug", "--tags", "a", "b", "--", "--ids", "1", "2",
            "--no-color", "--num", "7", "--port", "80", "--mode", "HIGH",
            "build", "x", "dev", "--jobs", "3",
            "remote", "--dry", "add", "origin", "git@host",
        ]
        result = self.parser.parse(argv)
        self.assertTrue(result.ok)

        options = Options(OPTIONS)
        replay = list(self.flags(options, result.opts))
        for context in result.commands:
            replay += [context.long, *context.arg_list, *self.flags(context.command.options, context.opts)]

        again = self.parser.parse(replay)
        self.assertTrue(again.ok)
        self.assertEqual(again.opts, result.opts)
        self.assertEqual(
            [(context.long, context.args, context.opts) for context in again.commands],
            [(context.long, context.args, context.opts) for context in result.commands],
        )
        self.assertEqual([context.long for context in again.commands], ["build", "remote", "add"])


class TestParserContract(TestCase):
    def testStartSkipsProgramName(self):
        result = build().parse(["prog", "-v"], 1)
        self.assertEqual(result.opts, {"verbose": 1})
        self.assertEqual(result.index, 2)

    def testStringArgvRejected(self):
        with self.assertRaises(TypeError):
            build().parse("-v")

    def testStartOutOfRange(self):
        with self.assertRaises(ValueError):
            build().parse(["-v"], 3)

    def testParsesAreIndependent(self):
        parser = build()
        first = parser.parse(["--tags", "a"])
        second = parser.parse(["--tags", "b"])
        self.assertEqual(first.opts["tags"], ["a"])
        self.assertEqual(second.opts["tags"], ["b"])

    def testRegistriesRequired(self):
        with self.assertRaises(TypeError):
            Parser({}, Commands())


if __name__ == "__main__":
    unittest.main()

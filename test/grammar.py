"""
Grammar module behavioral tests (option table, matching, absorbed tokens).

Conventions
- Test method names follow CamelCase per project convention.
- Bindings are built by hand on Slots; nothing here is discoverable.
"""
import sys
import unittest
from argparse import ArgumentError
from unittest import TestCase

from argbinder import (
    CommandRef,
    DuplicateNameError,
    FieldRef,
    IgnoredTokenWarning,
    InvalidArgumentError,
    MissingValueWarning,
    Slot,
    argument,
    command,
)
from argbinder.grammar import Grammar, GrammarParser, Match

MODULE = sys.modules[__name__]


def noop():
    pass


def build():
    grammar = Grammar()
    target = FieldRef(Slot(int, 0), "value", int)
    grammar.add_argument(target, argument("gram-count", "how many"))
    grammar.add_command(CommandRef(MODULE, "noop", noop), command("gram-go"))
    return grammar, target


class TestGrammarMatching(TestCase):
    """Tokens are matched against one option per binding."""

    def testArgumentAndCommand(self):
        grammar, target = build()
        match = grammar.match(["-gram-count", "3", "-gram-go"])
        self.assertIsInstance(match, Match)
        self.assertEqual([(bound, token) for bound, _, token in match.arguments], [(target, "3")])
        self.assertEqual([marker.name for _, marker in match.commands], ["gram-go"])
        self.assertEqual(match.unrecognized, [])
        self.assertEqual(match.faults, [])

    def testAbsentOptionsAreNotMatched(self):
        grammar, _ = build()
        match = grammar.match([])
        self.assertEqual(match.arguments, [])
        self.assertEqual(match.commands, [])

    def testInlineValue(self):
        grammar, _ = build()
        match = grammar.match(["-gram-count=5"])
        self.assertEqual([token for _, _, token in match.arguments], ["5"])

    def testLastValueWins(self):
        grammar, _ = build()
        match = grammar.match(["-gram-count", "1", "-gram-count", "2"])
        self.assertEqual([token for _, _, token in match.arguments], ["2"])

    def testRepeatedCommandIsMatchedOnce(self):
        grammar, _ = build()
        match = grammar.match(["-gram-go", "-gram-go"])
        self.assertEqual(len(match.commands), 1)

    def testNegativeNumberIsAValue(self):
        grammar, _ = build()
        match = grammar.match(["-gram-count", "-4"])
        self.assertEqual([token for _, _, token in match.arguments], ["-4"])

    def testForeignTokensAreCollected(self):
        grammar, _ = build()
        match = grammar.match(["script.py", "--verbose", "-gram-count", "1", "tail"])
        self.assertEqual(match.unrecognized, ["script.py", "--verbose", "tail"])
        self.assertEqual(len(match.arguments), 1)

    def testMissingValue(self):
        grammar, _ = build()
        match = grammar.match(["-gram-count", "-gram-go"])
        self.assertEqual(match.arguments, [])
        self.assertEqual(len(match.commands), 1)
        self.assertIsInstance(match.faults[0], MissingValueWarning)

    def testCommandWithValueIsIgnored(self):
        grammar, _ = build()
        match = grammar.match(["-gram-go=yes", "-gram-count", "2"])
        self.assertEqual(match.commands, [])
        self.assertEqual(match.unrecognized, ["-gram-go=yes"])
        self.assertEqual([token for _, _, token in match.arguments], ["2"])
        self.assertIsInstance(match.faults[0], IgnoredTokenWarning)
        self.assertEqual(match.faults[0].options["token"], "-gram-go=yes")

    def testOneLetterOptionLeavesForeignTokensAlone(self):
        grammar = Grammar()
        target = FieldRef(Slot(str, "kept"), "value", str)
        grammar.add_argument(target, argument("n"))
        match = grammar.match(["-nographics", "-batchmode"])
        self.assertEqual(match.arguments, [])
        self.assertEqual(match.unrecognized, ["-nographics", "-batchmode"])
        self.assertEqual(match.faults, [])

    def testOneLetterOptionStillMatchesExactly(self):
        grammar = Grammar()
        grammar.add_argument(FieldRef(Slot(str), "value", str), argument("n"))
        self.assertEqual([token for _, _, token in grammar.match(["-n", "7"]).arguments], ["7"])
        self.assertEqual([token for _, _, token in grammar.match(["-n=8"]).arguments], ["8"])

    def testIgnoredTokenSparesSiblingOption(self):
        grammar = Grammar()
        grammar.add_command(CommandRef(MODULE, "noop", noop), command("gram-reset"))
        grammar.add_command(CommandRef(MODULE, "build", build), command("gram-reset-cache"))
        match = grammar.match(["-gram-reset-cache", "-gram-reset=1"])
        self.assertEqual([marker.name for _, marker in match.commands], ["gram-reset-cache"])
        self.assertEqual(match.unrecognized, ["-gram-reset=1"])
        self.assertIsInstance(match.faults[0], IgnoredTokenWarning)


class TestGrammarTable(TestCase):
    """Option names are unique across arguments and commands."""

    def testBindingsAreListed(self):
        grammar, target = build()
        self.assertEqual([bound for bound, _ in grammar.arguments], [target])
        self.assertEqual([marker.name for _, marker in grammar.commands], ["gram-go"])

    def testDuplicateArgumentRaises(self):
        grammar, _ = build()
        with self.assertRaises(DuplicateNameError):
            grammar.add_argument(FieldRef(Slot(str), "value", str), argument("gram-count"))

    def testArgumentAndCommandShareNamespace(self):
        grammar, _ = build()
        with self.assertRaises(InvalidArgumentError):
            grammar.add_command(CommandRef(MODULE, "build", build), command("gram-count"))

    def testDuplicateMessageNamesBothOwners(self):
        grammar, _ = build()
        try:
            grammar.add_argument(FieldRef(MODULE, "MODULE", object), argument("gram-go"))
        except DuplicateNameError as error:
            self.assertIn("noop", str(error))
            self.assertIn("MODULE", str(error))
        else:
            self.fail("DuplicateNameError not raised")


class TestGrammarParser(TestCase):

    def testErrorRaisesInsteadOfExiting(self):
        with self.assertRaises(ArgumentError):
            GrammarParser().error("boom")

    def testNoHelpSwitch(self):
        grammar, _ = build()
        self.assertEqual(grammar.match(["-h"]).unrecognized, ["-h"])


if __name__ == '__main__':
    unittest.main()

"""
Faults module behavioral tests (codes, rendering, trigger).

Conventions
- Test method names follow CamelCase per project convention.
- Rendering goes through a private rich Console writing into a StringIO.
"""
import io
import sys
import unittest
import warnings
from unittest import TestCase

from rich.console import Console

from argbinder import (
    BindingException,
    BindingWarning,
    DuplicateNameError,
    FaultCode,
    InvalidArgumentError,
    UnreadableValueWarning,
    faults,
    trigger,
)
from argbinder.utils import Unset


def render(fault):
    console = Console(file=io.StringIO(), width=100, color_system=None)
    console.print(fault)
    return console.file.getvalue()


class HostMain:
    """Temporarily set rendering dunders on __main__."""

    def __init__(self, **dunders):
        self.dunders = dunders
        self.previous = {}

    def __enter__(self):
        main = sys.modules["__main__"]
        for name, value in self.dunders.items():
            self.previous[name] = vars(main).get(name, Unset)
            setattr(main, name, value)

    def __exit__(self, *unused):
        main = sys.modules["__main__"]
        for name, value in self.previous.items():
            if value is Unset:
                delattr(main, name)
            else:
                setattr(main, name, value)


class TestFaultCodes(TestCase):

    def testGroups(self):
        self.assertEqual(FaultCode.INVALID_ARGUMENT, 21101)
        self.assertEqual(FaultCode.UNREADABLE_VALUE, 21202)
        self.assertEqual(FaultCode.FAILED_COMMAND, 21301)

    def testNormalizeDefaultsToNumber(self):
        with HostMain(__codes__={}):
            self.assertEqual(FaultCode.MISSING_READER.normalize(), "21201")

    def testNormalizeUsesHostLabels(self):
        with HostMain(__codes__={FaultCode.MISSING_READER: "E-READER"}):
            self.assertEqual(FaultCode.MISSING_READER.normalize(), "E-READER")


class TestFaultShape(TestCase):

    def testHierarchy(self):
        self.assertTrue(issubclass(InvalidArgumentError, TypeError))
        self.assertTrue(issubclass(DuplicateNameError, InvalidArgumentError))
        self.assertTrue(issubclass(UnreadableValueWarning, Warning))

    def testStrIsMessage(self):
        self.assertEqual(str(InvalidArgumentError("args cannot be None")), "args cannot be None")
        self.assertEqual(str(BindingWarning()), "")

    def testOptionsAreReadOnly(self):
        fault = BindingWarning("message", code=FaultCode.MISSING_VALUE)
        with self.assertRaises(TypeError):
            fault.options["code"] = FaultCode.IGNORED_TOKEN

    def testReplaceMergesOptions(self):
        fault = UnreadableValueWarning("bad token", code=FaultCode.UNREADABLE_VALUE, shell=False)
        replaced = fault.__replace__(shell=True)
        self.assertIsInstance(replaced, UnreadableValueWarning)
        self.assertEqual(replaced.message, "bad token")
        self.assertEqual(replaced.options["code"], FaultCode.UNREADABLE_VALUE)
        self.assertIs(replaced.options["shell"], True)
        self.assertIs(fault.options["shell"], False)


class TestFaultRendering(TestCase):
    """Faults draw themselves with rich."""

    def testHeaderMessageAndHint(self):
        fault = UnreadableValueWarning(
            "'-count many' could not be read",
            title="unreadable value",
            code=FaultCode.UNREADABLE_VALUE,
            hint="pass a number",
        )
        with HostMain(__prog__="demo", __codes__={}):
            output = render(fault)
        self.assertIn("[ demo — 21202 | Unreadable Value ]", output)
        self.assertIn("'-count many' could not be read", output)
        self.assertIn("→ pass a number", output)

    def testTitleDefaultsToClassName(self):
        with HostMain(__prog__="demo"):
            output = render(InvalidArgumentError("boom"))
        self.assertIn("Invalidargumenterror", output)
        self.assertIn("| ", output)

    def testFancyUsesPanel(self):
        fault = InvalidArgumentError("boom", title="invalid argument", fancy=True)
        output = render(fault)
        self.assertIn("Invalid Argument", output)
        self.assertIn("│", output)

    def testHostStylesAreAccepted(self):
        with HostMain(__styles__={"code": "bold red"}):
            output = render(InvalidArgumentError("boom", code=FaultCode.INVALID_ARGUMENT))
        self.assertIn("21101", output)


class TestTrigger(TestCase):
    """trigger() raises, warns or prints depending on the options."""

    def setUp(self):
        self.console = faults.console
        faults.console = Console(file=io.StringIO(), width=100, color_system=None)

    def tearDown(self):
        faults.console = self.console

    def testExceptionIsRaisedOutsideShell(self):
        with self.assertRaises(InvalidArgumentError):
            trigger(InvalidArgumentError("boom"), shell=False)

    def testExceptionExitsInShell(self):
        with self.assertRaises(SystemExit) as context:
            trigger(InvalidArgumentError("boom", title="invalid argument"), shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Invalid Argument", faults.console.file.getvalue())

    def testWarningIsEmittedOutsideShell(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            trigger(UnreadableValueWarning("bad"), shell=False)
        self.assertEqual(len(caught), 1)
        self.assertIsInstance(caught[0].message, UnreadableValueWarning)

    def testWarningIsPrintedInShell(self):
        trigger(UnreadableValueWarning("bad token", title="unreadable value"), shell=True)
        self.assertIn("bad token", faults.console.file.getvalue())

    def testRejectsPlainObjects(self):
        with self.assertRaises(TypeError):
            trigger(object())

    def testOriginalFaultIsNotModified(self):
        fault = BindingException("boom")
        with self.assertRaises(BindingException):
            trigger(fault, shell=False, hint="check")
        self.assertNotIn("hint", fault.options)


if __name__ == '__main__':
    unittest.main()

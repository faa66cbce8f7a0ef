"""
Argbinder faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for everything the binder can report.
- BindingException: raised for caller mistakes (precondition failures). These are
  never swallowed.
- BindingWarning: recorded for every per-binding problem absorbed during a pass
  (missing reader, unreadable value, failing command, ...). A pass never aborts
  because of them; they are collected on the outcome.
- trigger(): surface a fault honoring shell/fancy/colorful options.

Rendering
- Every fault knows how to draw itself with rich (`__rich__`): a header with the
  program name, the code and a title, followed by the message and a hint.
- The host program may customize rendering from `__main__`:
  • __prog__   program name in headers (defaults to "argbinder")
  • __styles__ mapping of style overrides
  • __codes__  mapping of FaultCode to a custom label
"""
import copy
import sys
import warnings
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - preconditions (2110x): INVALID_ARGUMENT, DUPLICATED_NAME, UNIMPORTABLE_SCOPE
    - dispatch (2120x): MISSING_READER, UNREADABLE_VALUE, MISSING_VALUE, IGNORED_TOKEN
    - commands (2130x): FAILED_COMMAND
    """
    # --- preconditions (21xxx) ---
    INVALID_ARGUMENT   = 21101
    DUPLICATED_NAME    = 21102
    UNIMPORTABLE_SCOPE = 21103

    # --- dispatch (21xxx) ---
    MISSING_READER     = 21201
    UNREADABLE_VALUE   = 21202
    MISSING_VALUE      = 21203
    IGNORED_TOKEN      = 21204

    # --- commands (21xxx) ---
    FAILED_COMMAND     = 21301

    def normalize(self):
        """
        return the host label for this code, or its number as a string.
        """
        return str(getattr(sys.modules.get("__main__"), "__codes__", {}).get(self, self.value))


def _renderer(fault, palette, title_style, message_style, /):
    """
    Build the rich renderable shared by exceptions and warnings.
    """
    main = sys.modules.get("__main__")
    options = fault.options
    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = options.get("colorful", True)

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    code = options.get("code", Unset)
    header = Text.assemble(
        "[ ",
        text(getattr(main, "__prog__", "argbinder"), "prog-name"),
        " — ",
        text(code.normalize() if code is not Unset else "-", "code"),
        " | ",
        text(str(options.get("title", type(fault).__name__)).title(), title_style),
        " ]",
    )
    message = text(fault.message, message_style)
    parts = [message]
    if hint := options.get("hint"):
        parts.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

    if options.get("fancy", False):
        return Panel(Group(*parts), title=header, title_align="left")
    return Group(header, *parts)


class BindingException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error-title", "error-message")

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidArgumentError(BindingException, TypeError): ...
class DuplicateNameError(InvalidArgumentError): ...


class BindingWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _renderer(self, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title", "warning-message")

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=3)
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MissingReaderWarning(BindingWarning): ...
class UnreadableValueWarning(BindingWarning): ...
class MissingValueWarning(BindingWarning): ...
class IgnoredTokenWarning(BindingWarning): ...
class FailedCommandWarning(BindingWarning): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ (see base classes).
    - options are merged into a copy of the fault via copy.replace() first.
    - shell mode prints through the rich console; otherwise exceptions are raised
      and warnings are emitted through the warnings module.
    """
    if (
        not callable(getattr(fault, "__trigger__", None)) or
        not callable(getattr(fault, "__replace__", None))
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "FaultCode",
    "BindingException",
    "InvalidArgumentError",
    "DuplicateNameError",
    "BindingWarning",
    "MissingReaderWarning",
    "UnreadableValueWarning",
    "MissingValueWarning",
    "IgnoredTokenWarning",
    "FailedCommandWarning",
    "trigger",
)

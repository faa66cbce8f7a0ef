"""
Argbinder command-line parser: discovery, grammar, matching, dispatch.

Overview
- CommandLineParser runs one linear pass per parse() call:
    UNPARSED -> MATCHED -> APPLIED
  1. discover argument and command bindings (fresh on every call, never cached),
     then add the explicit bindings registered on the parser;
  2. build the grammar (one option per binding) and match the tokens;
  3. apply every matched argument onto its field, then invoke every matched command.
- init(args) is the module-level entry point. init() with no argument reads the
  process argument vector; it is what a host calls once at startup.

Dispatch rules (per argument given with a value)
- a reader registered for the declared type converts the token;
- otherwise, for an enum, the reader of its underlying representation converts the
  token and the enum is built from the result;
- otherwise the binding is skipped.

Failure policy
- Caller mistakes (None arguments, malformed scopes, duplicated names) raise
  InvalidArgumentError and abort the pass.
- Everything else is absorbed: missing readers, tokens a reader rejects, values an
  enum rejects, commands that raise. The pass continues and the problem is recorded
  as a warning on the Outcome. Nothing is printed unless report=True.
"""
import inspect
import shlex
import sys
from collections.abc import Iterable
from enum import Enum, StrEnum

from .discovery import CommandRef, FieldRef, discover_arguments, discover_commands
from .faults import (
    FailedCommandWarning,
    FaultCode,
    InvalidArgumentError,
    MissingReaderWarning,
    UnreadableValueWarning,
    trigger,
)
from .grammar import Grammar
from .markers import Argument, Command, Slot, marker_of
from .readers import TypeReaders, type_readers, underlying_type
from .utils import Unset, coalesce, mirror


class Stage(StrEnum):
    UNPARSED = "unparsed"
    MATCHED = "matched"
    APPLIED = "applied"


class Outcome:
    """
    What a pass did.

    - stage: last stage reached.
    - applied: {option name: value} in application order.
    - invoked: names of the commands that ran (successfully or not).
    - unrecognized: tokens that matched no option.
    - faults: absorbed warnings, in the order they happened.
    """

    __introspectable__ = ("stage", "applied", "invoked", "unrecognized", "faults")

    stage = mirror("stage")
    applied = mirror("applied")
    invoked = mirror("invoked")
    unrecognized = mirror("unrecognized")
    faults = mirror("faults")

    def __init__(self):
        self._stage = Stage.UNPARSED
        self._applied = {}
        self._invoked = []
        self._unrecognized = []
        self._faults = []

    def __rich_repr__(self):
        for name in self.__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return f"Outcome(stage={self._stage.value!r}, applied={len(self._applied)}, invoked={len(self._invoked)}, faults={len(self._faults)})"


def _tokenize(args, /):
    """
    Normalize init()/parse() input into a list of tokens.
    """
    if args is Unset:
        return sys.argv[1:]
    if args is None:
        raise InvalidArgumentError(
            "args cannot be None",
            title="invalid argument",
            code=FaultCode.INVALID_ARGUMENT,
            hint="call init() without arguments to read the process command line",
        )
    if isinstance(args, str):
        return shlex.split(args)
    if not isinstance(args, Iterable):
        raise InvalidArgumentError(
            f"args must be a string or an iterable of strings, got {type(args).__name__}",
            title="invalid argument",
            code=FaultCode.INVALID_ARGUMENT,
        )
    tokens = list(args)
    for token in tokens:
        if not isinstance(token, str):
            raise InvalidArgumentError(
                f"args must only contain strings, got {token!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
    return tokens


class CommandLineParser:
    """
    Binds command-line options to static fields and zero-argument callbacks.

    Parameters
    - readers: TypeReaders registry (defaults to the process-wide one).
    - scope: discovery scope, see argbinder.discovery (defaults to all loaded modules).
    - discover: when False, only the explicit bindings are used.
    - report: print (or warn about) absorbed faults at the end of the pass.
    - shell/fancy/colorful: rendering options used when reporting.
    - prog: name given to the underlying argparse parser.

    Example:
        >>> parser = CommandLineParser(scope="app.settings")
        >>> slot = Slot(int, 0)
        >>> parser.bind_argument(slot, argument("retries"))
        >>> parser.parse(["-retries", "3"]).applied
        {'retries': 3}
    """

    def __init__(
            self,
            *,
            readers=Unset,
            scope=Unset,
            discover=True,
            report=False,
            shell=True,
            fancy=False,
            colorful=True,
            prog=Unset,
    ):
        if readers is None:
            raise InvalidArgumentError(
                "readers cannot be None",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        if readers is not Unset and not isinstance(readers, TypeReaders):
            raise InvalidArgumentError(
                f"readers must be a TypeReaders registry, got {readers!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        self._readers = coalesce(readers, type_readers)
        self._scope = scope
        self._discover = bool(discover)
        self._report = bool(report)
        self._options = {"shell": bool(shell), "fancy": bool(fancy), "colorful": bool(colorful)}
        self._prog = prog
        self._arguments = {}
        self._commands = {}

    @property
    def readers(self):
        return self._readers

    def bind_argument(self, target, marker, /):
        """
        Register an explicit argument binding.

        `target` is a FieldRef or a Slot (its `type` picks the reader).
        """
        if target is None or marker is None:
            raise InvalidArgumentError(
                "bind_argument() arguments cannot be None",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        if isinstance(target, Slot):
            target = FieldRef(target, "value", target.type)
        if not isinstance(target, FieldRef):
            raise InvalidArgumentError(
                f"bind_argument() target must be a FieldRef or a Slot, got {target!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        if not isinstance(marker, Argument):
            raise InvalidArgumentError(
                f"bind_argument() marker must be an Argument, got {marker!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        self._arguments[target] = marker

    def bind_command(self, callback, marker=Unset, /):
        """
        Register an explicit command binding.

        The marker may be omitted when the callback was already tagged with @command.
        """
        if callback is None or marker is None:
            raise InvalidArgumentError(
                "bind_command() arguments cannot be None",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        if not callable(callback):
            raise InvalidArgumentError(
                f"bind_command() callback must be callable, got {callback!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        if not isinstance(marker := coalesce(marker, marker_of(callback)), Command):
            raise InvalidArgumentError(
                f"bind_command() needs a Command marker for {callback!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
                hint="decorate the callback with @command(...) or pass the marker",
            )
        if inspect.iscoroutinefunction(callback) or inspect.isasyncgenfunction(callback):
            raise InvalidArgumentError(
                f"bind_command() callback must be synchronous, got {callback!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
                hint="wrap the coroutine in a plain function that runs it",
            )
        if (owner := getattr(callback, "__self__", None)) is None:
            owner = sys.modules.get(getattr(callback, "__module__", None), callback)
        name = getattr(callback, "__name__", type(callback).__name__)
        self._commands[CommandRef(owner, name, callback)] = marker

    def _grammar(self):
        grammar = Grammar(self._prog)
        arguments = discover_arguments(self._scope) if self._discover else {}
        commands = discover_commands(self._scope) if self._discover else {}
        for target, marker in (arguments | self._arguments).items():
            grammar.add_argument(target, marker)
        for target, marker in (commands | self._commands).items():
            grammar.add_command(target, marker)
        return grammar

    def _read(self, target, token):
        """
        Convert a token for a field; Unset when no reader applies.
        """
        if (reader := self._readers.lookup(target.type)) is not None:
            return reader.read(token)
        if isinstance(target.type, type) and issubclass(target.type, Enum):
            if (underlying := underlying_type(target.type)) is Unset:
                return Unset
            if (reader := self._readers.lookup(underlying)) is None:
                return Unset
            return target.type(reader.read(token))
        return Unset

    def _apply(self, match, outcome):
        for target, marker, token in match.arguments:
            try:
                value = self._read(target, token)
            except Exception as exception:
                outcome._faults.append(UnreadableValueWarning(
                    f"'-{marker.name} {token}' could not be read into {target.qualname}: {exception}",
                    title="unreadable value",
                    code=FaultCode.UNREADABLE_VALUE,
                    target=target,
                    token=token,
                    exception=exception,
                    hint=f"pass a value {getattr(target.type, '__qualname__', target.type)} accepts",
                ))
                continue
            if value is Unset:
                outcome._faults.append(MissingReaderWarning(
                    f"no reader for {getattr(target.type, '__qualname__', target.type)!s}, "
                    f"'-{marker.name}' left {target.qualname} untouched",
                    title="missing reader",
                    code=FaultCode.MISSING_READER,
                    target=target,
                    hint="register one with add_type_reader()",
                ))
                continue
            target.assign(value)
            outcome._applied[marker.name] = value

        for target, marker in match.commands:
            outcome._invoked.append(marker.name)
            try:
                target.invoke()
            except Exception as exception:
                # One failing command must not stop the others.
                outcome._faults.append(FailedCommandWarning(
                    f"command '-{marker.name}' ({target.qualname}) failed: {exception!r}",
                    title="failed command",
                    code=FaultCode.FAILED_COMMAND,
                    target=target,
                    exception=exception,
                ))

    def parse(self, args=Unset, /):
        """
        Run one pass over `args`.

        Parameters
        - args:
          • Unset: read sys.argv[1:].
          • str: split like a shell would (shlex.split).
          • Iterable[str]: used as-is.

        Returns
        - Outcome describing the pass.

        Raises
        - InvalidArgumentError: args is None or not made of strings, the scope is
          invalid, or two bindings share a name (DuplicateNameError).
        """
        tokens = _tokenize(args)
        outcome = Outcome()

        match = self._grammar().match(tokens)
        outcome._unrecognized.extend(match.unrecognized)
        outcome._faults.extend(match.faults)
        outcome._stage = Stage.MATCHED

        self._apply(match, outcome)
        outcome._stage = Stage.APPLIED

        if self._report:
            for fault in outcome._faults:
                trigger(fault, **self._options)
        return outcome


def init(args=Unset, /, **options):
    """
    Parse the command line and apply it onto every discovered binding.

    init() reads sys.argv[1:]; init(tokens) parses the given tokens (or string).
    Options are forwarded to CommandLineParser. Each call rediscovers bindings.

    Raises
    - InvalidArgumentError: when args is None (see CommandLineParser.parse).
    """
    return CommandLineParser(**options).parse(args)


__all__ = (
    "Stage",
    "Outcome",
    "CommandLineParser",
    "init",
)

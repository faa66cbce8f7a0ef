'''
Flag grammar built from discovered bindings, matched with argparse.

One option per binding:
- arguments become single-value options `-<name> <NAME>`;
- commands become presence-only options `-<name>`.

Tokens that do not belong to the grammar (interpreter flags, host flags, stray
values) are collected instead of rejected, so the grammar can be matched against
the whole process argument vector.
'''
from argparse import ArgumentError, ArgumentParser
from typing import NamedTuple

from .faults import DuplicateNameError, FaultCode, IgnoredTokenWarning, MissingValueWarning
from .utils import Unset, coalesce


class GrammarParser(ArgumentParser):
    '''
        A permissive ArgumentParser: no help switch, no abbreviations, and errors
        are raised as ArgumentError instead of exiting the process.

        Options only match their exact spelling (or `-name=value`): a foreign
        `-nographics` is never read as `-n ographics`.
    '''

    def __init__(self, prog=Unset):
        super().__init__(
            prog=coalesce(prog, "argbinder"),
            add_help=False,
            allow_abbrev=False,
            prefix_chars="-",
            exit_on_error=False,
        )

    def error(self, message):
        raise ArgumentError(None, message)

    def _get_option_tuples(self, option_string):
        return []


class Match(NamedTuple):
    '''
        Result of matching a token vector against a Grammar.

        - arguments: (target, marker, raw value) for every argument given with a value.
        - commands: (target, marker) for every command given at least once.
        - unrecognized: tokens that matched no option.
        - faults: warnings about tokens the grammar could not use.
    '''
    arguments: list
    commands: list
    unrecognized: list
    faults: list


class Grammar:
    '''
        Option table mapping argparse actions back to their bindings.

        Example:
        ```python
        grammar = Grammar()
        grammar.add_argument(FieldRef(Settings, "count", int), argument("count"))
        grammar.add_command(CommandRef(module, "reset", reset), command("reset"))
        match = grammar.match(["-count", "3", "-reset", "--unrelated"])
        ```
    '''

    def __init__(self, prog=Unset):
        self._parser = GrammarParser(prog)
        self._names = {}
        self._arguments = {}
        self._commands = {}

    @property
    def arguments(self):
        return list(self._arguments.values())

    @property
    def commands(self):
        return list(self._commands.values())

    def _claim(self, marker, target):
        if (owner := self._names.get(marker.name)) is not None:
            raise DuplicateNameError(
                f"option '-{marker.name}' is declared by both {owner.qualname} and {target.qualname}",
                title="duplicated name",
                code=FaultCode.DUPLICATED_NAME,
                hint="give every argument and command marker a distinct name",
            )
        self._names[marker.name] = target

    def add_argument(self, target, marker):
        self._claim(marker, target)
        dest = "argument:%d" % len(self._arguments)
        self._parser.add_argument(
            "-" + marker.name,
            metavar=marker.metavar,
            help=marker.descr,
            nargs="?",
            const=None,
            default=Unset,
            dest=dest,
        )
        self._arguments[dest] = (target, marker)

    def add_command(self, target, marker):
        self._claim(marker, target)
        dest = "command:%d" % len(self._commands)
        self._parser.add_argument(
            "-" + marker.name,
            help=marker.descr,
            action="count",
            default=0,
            dest=dest,
        )
        self._commands[dest] = (target, marker)

    def _offending(self, error, tokens):
        '''
            Index of the token argparse choked on (e.g. `-reset=1`), or None.
        '''
        names = error.argument_name.split("/") if error.argument_name else ["-" + name for name in self._names]
        for index, token in enumerate(tokens):
            option, separator, _ = token.partition("=")
            if separator and option in names:
                return index
        return None

    def match(self, tokens):
        pending = list(tokens)
        ignored = []
        faults = []
        while True:
            try:
                namespace, extras = self._parser.parse_known_args(pending)
                break
            except ArgumentError as error:
                if (index := self._offending(error, pending)) is None:
                    # Nothing to single out: the whole vector is left unmatched.
                    faults.append(IgnoredTokenWarning(
                        f"the command line could not be matched: {error.message}",
                        title="ignored tokens",
                        code=FaultCode.IGNORED_TOKEN,
                        hint="options must be written as '-name VALUE' or '-name'",
                    ))
                    namespace, extras = self._parser.parse_known_args([])
                    extras = pending
                    break
                token = pending.pop(index)
                ignored.append(token)
                faults.append(IgnoredTokenWarning(
                    f"token {token!r} does not fit its option: {error.message}",
                    title="ignored token",
                    code=FaultCode.IGNORED_TOKEN,
                    token=token,
                    hint="commands take no value, arguments take exactly one",
                ))

        values = vars(namespace)
        arguments = []
        for dest, (target, marker) in self._arguments.items():
            if (value := values[dest]) is Unset:
                continue
            if value is None:
                faults.append(MissingValueWarning(
                    f"option '-{marker.name}' was given without a value",
                    title="missing value",
                    code=FaultCode.MISSING_VALUE,
                    target=target,
                    hint=f"write it as '-{marker.name} {marker.metavar}'",
                ))
                continue
            arguments.append((target, marker, value))

        commands = [
            (target, marker)
            for dest, (target, marker) in self._commands.items()
            if values[dest] > 0
        ]
        return Match(arguments, commands, list(extras) + ignored, faults)


__all__ = (
    "GrammarParser",
    "Grammar",
    "Match",
)

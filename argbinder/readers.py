r"""
Argbinder type readers and the reader registry.

Overview
- TypeReader: anything with `read(token) -> value`. Plain callables (`int`,
  `lambda token: ...`) are accepted everywhere a reader is and are wrapped in a
  FunctionReader.
- Built-in readers
  • StringReader: identity.
  • IntegerReader(lower, upper): base-10 integer, optionally range-checked.
  • FloatReader: float().
  • BoolReader: "true"/"false", case-insensitive, surrounding blanks ignored.
- Semantic integer widths: `Int32` and `UInt8` are `NewType` aliases of int. They
  only exist to pick a range-checked reader; at runtime the values are plain ints.
- TypeReaders: the registry mapping a type identifier to its reader.
  • register(type, reader): insert or replace (last write wins), never removes.
  • lookup(type): reader or None, no side effects.
- `type_readers` is the process-wide registry used unless a parser is given its own.
  `add_type_reader(type, reader)` registers into it.

Enums
- Enumerations are resolved through their underlying representation, see
  underlying_type(): an explicit `__underlying__` attribute on the enum class wins,
  then int for int-mixin enums, then the common type of the member values.

Quick example:
    >>> from argbinder.readers import add_type_reader
    >>> add_type_reader(pathlib.Path, pathlib.Path)
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import NewType

from .faults import FaultCode, InvalidArgumentError
from .utils import Unset

Int32 = NewType("Int32", int)
UInt8 = NewType("UInt8", int)


class TypeReader(ABC):
    """
    Converts one raw command-line token into a typed value.

    Subclasses implement read(); calling the reader is the same as reading.
    Readers signal malformed tokens by raising (usually ValueError).
    """

    @abstractmethod
    def read(self, token, /):
        raise NotImplementedError

    def __call__(self, token, /):
        return self.read(token)

    def __repr__(self):
        return f"{type(self).__name__}()"


class FunctionReader(TypeReader):
    """
    Adapts a plain callable to the TypeReader interface.
    """

    def __init__(self, function, /):
        if not callable(function):
            raise TypeError("FunctionReader() argument must be callable")
        self._function = function

    @property
    def function(self):
        return self._function

    def read(self, token, /):
        return self._function(token)

    def __repr__(self):
        return f"FunctionReader({getattr(self._function, '__qualname__', self._function)!r})"


class StringReader(TypeReader):
    def read(self, token, /):
        return token


class IntegerReader(TypeReader):
    """
    Reads a base-10 integer, rejecting values outside [lower, upper].

    Unset bounds are open. Overflow is reported as OverflowError, malformed input
    as ValueError.
    """

    def __init__(self, lower=Unset, upper=Unset, /):
        self._lower = lower
        self._upper = upper

    def read(self, token, /):
        value = int(token, 10)
        if (self._lower is not Unset and value < self._lower) or (self._upper is not Unset and value > self._upper):
            raise OverflowError(f"{value} is outside of [{self._lower}, {self._upper}]")
        return value

    def __repr__(self):
        if self._lower is Unset and self._upper is Unset:
            return "IntegerReader()"
        return f"IntegerReader({self._lower!r}, {self._upper!r})"


class FloatReader(TypeReader):
    def read(self, token, /):
        return float(token)


class BoolReader(TypeReader):
    def read(self, token, /):
        match token.strip().lower():
            case "true":
                return True
            case "false":
                return False
        raise ValueError(f"{token!r} is not a valid boolean (expected 'true' or 'false')")


def _adapt(reader, /):
    if isinstance(reader, TypeReader):
        return reader
    return FunctionReader(reader)


class TypeReaders:
    """
    Registry of readers keyed by semantic type.

    The registry is a plain, unsynchronized mapping: configure it first (at import
    time or before calling init) and then let the parser read it.
    """

    def __init__(self, readers=Unset, /):
        self._readers = {}
        if readers is not Unset:
            for type, reader in dict(readers).items():
                self.register(type, reader)

    @classmethod
    def default(cls):
        """
        A new registry holding the built-in readers.
        """
        return cls({
            str: StringReader(),
            int: IntegerReader(),
            Int32: IntegerReader(-2 ** 31, 2 ** 31 - 1),
            UInt8: IntegerReader(0, 255),
            float: FloatReader(),
            bool: BoolReader(),
        })

    def register(self, type, reader, /):
        """
        Insert a reader for `type`, replacing any previous one.

        Raises
        - InvalidArgumentError: when type or reader is None, type is not hashable,
          or reader is neither a TypeReader nor callable.
        """
        if type is None:
            raise InvalidArgumentError(
                "type cannot be None",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
                hint="pass the type the reader converts tokens into",
            )
        if reader is None:
            raise InvalidArgumentError(
                "reader cannot be None",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
                hint="pass a TypeReader or a callable taking one string",
            )
        try:
            hash(type)
        except TypeError:
            raise InvalidArgumentError(
                f"type {type!r} is not hashable",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            ) from None
        if not callable(reader):
            raise InvalidArgumentError(
                f"reader {reader!r} is not callable",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
                hint="pass a TypeReader or a callable taking one string",
            )
        self._readers[type] = _adapt(reader)

    def lookup(self, type, /):
        try:
            return self._readers.get(type)
        except TypeError:
            # Unhashable annotations (rare, but legal) simply have no reader.
            return None

    def copy(self):
        return type(self)(self._readers)

    def __contains__(self, type):
        return self.lookup(type) is not None

    def __iter__(self):
        return iter(self._readers)

    def __len__(self):
        return len(self._readers)

    def __rich_repr__(self):
        for type, reader in self._readers.items():
            yield getattr(type, "__qualname__", repr(type)), reader

    def __repr__(self):
        return f"TypeReaders({len(self._readers)} readers)"


def underlying_type(enumeration, /):
    """
    Return the underlying representation of an enum class, or Unset.

    Resolution order
    - `__underlying__` declared on the enum class (e.g. `__underlying__ = UInt8`).
    - int for enums mixing in int (IntEnum, IntFlag, `class Mode(int, Enum)`).
    - the single common type of all member values.
    - Unset when there are no members or the values are heterogeneous.
    """
    if not (isinstance(enumeration, type) and issubclass(enumeration, Enum)):
        raise TypeError("underlying_type() argument must be an enum class")
    for klass in enumeration.__mro__:
        if "__underlying__" in vars(klass):
            return vars(klass)["__underlying__"]
    if issubclass(enumeration, int):
        return int
    kinds = {type(member.value) for member in enumeration}
    if len(kinds) == 1:
        return kinds.pop()
    return Unset


type_readers = TypeReaders.default()
"""
Process-wide registry read by init() when no other registry is given.
"""


def add_type_reader(type, reader, /):
    """
    Add, or override, the reader used for fields declared with `type`.

    Raises
    - InvalidArgumentError: when type or reader is None.
    """
    type_readers.register(type, reader)


__all__ = (
    "Int32",
    "UInt8",
    "TypeReader",
    "FunctionReader",
    "StringReader",
    "IntegerReader",
    "FloatReader",
    "BoolReader",
    "TypeReaders",
    "underlying_type",
    "type_readers",
    "add_type_reader",
)

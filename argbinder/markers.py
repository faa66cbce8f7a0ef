r"""
Argbinder markers: declarative tags discovered at startup.

Overview
- Argument: attaches {name, descr} to a static field. It lives in the field's
  annotation so the declared type travels with it:

      class Settings:
          count: Annotated[int, argument("count", "how many items")] = 0

  Module globals work the same way. The command line then accepts `-count VALUE`.

- Command: attaches {name, descr} to a zero-argument callback. `command(...)` is a
  decorator and returns the callback unchanged:

      @command("reset", "wipe the cache before starting")
      def reset(): ...

  Static and class methods are accepted (stack the marker below the descriptor or
  above it, both work). The command line then accepts `-reset`.

- Slot: a small mutable holder for explicit bindings, when a caller prefers
  passing a target to declaring a static field (see CommandLineParser.bind_argument).

Validation (on construction)
- name: non-empty string after trimming, starting with a letter and followed by
  letters, digits, '_' or '-'. The leading '-' is added by the grammar, never
  written by the user.
- descr: Unset (becomes None) or a non-empty string after trimming.
"""
import functools
import operator
import re

from .utils import Unset, coalesce, mirror, rename


class MarkerType(type):
    """
    Metaclass giving markers stable introspection.

    - __typename__ is the hyphenated lower-case class name ("argument", "command").
    - Names in __introspectable__ become read-only properties backed by "_<name>".
    - __repr__/__rich_repr__ render those properties.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            fields = ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            return f"{type(self).__typename__}({fields})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize the {name, descr} pair shared by markers.

    Raises
    - TypeError: name is not a string, descr is neither a string nor Unset.
    - ValueError: name is empty or malformed, descr is empty after trimming.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif name.startswith("-"):
        raise ValueError(f"{cls.__typename__} 'name' must be given without the leading '-'")
    elif not re.fullmatch(r"[^\W\d_][\w-]*", name):
        raise ValueError(f"{cls.__typename__} 'name' must be a valid switch name, got {name!r}")
    metadata["name"] = name

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


class Argument(metaclass=MarkerType):
    """
    Marks a static field as a single-value command-line option `-<name> <NAME>`.
    """

    __introspectable__ = ("name", "descr")

    def __init__(self, name, /, descr=Unset):
        metadata = {"name": name, "descr": descr}
        _sanitize_metadata(type(self), metadata)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)

    @property
    def metavar(self):
        return self._name.upper()


class Command(metaclass=MarkerType):
    """
    Marks a zero-argument callback as a presence-only option `-<name>`.

    Calling the marker with a callback tags it (once) and returns it unchanged.
    """

    __introspectable__ = ("name", "descr")

    def __init__(self, name, /, descr=Unset):
        metadata = {"name": name, "descr": descr}
        _sanitize_metadata(type(self), metadata)
        for key, object in metadata.items():
            setattr(self, "_" + key, object)
        self._target = Unset

    def __call__(self, callback, /):
        if self._target is not Unset:
            raise TypeError(f"command {self._name!r} is already bound to {self._target!r}")
        # staticmethod/classmethod carry the function in __func__.
        if not callable(target := getattr(callback, "__func__", callback)):
            raise TypeError("@command() must be applied to a callable")
        target.__command_marker__ = self
        self._target = target
        return callback


def marker_of(callback, /):
    """
    Return the Command marker carried by a callback (or its __func__), else None.
    """
    target = getattr(callback, "__func__", callback)
    try:
        marker = vars(target).get("__command_marker__")
    except TypeError:
        # Builtins and other objects without a __dict__ cannot carry markers.
        return None
    return marker if isinstance(marker, Command) else None


def argument(name, /, descr=Unset):
    """
    Build an Argument marker, meant for `Annotated[T, argument(...)]`.
    """
    return Argument(name, descr)


def command(name, /, descr=Unset):
    """
    Decorator marking a zero-argument callback as a command-line command.
    """
    return Command(name, descr)


class Slot:
    """
    Mutable holder used as the target of an explicit argument binding.

    `type` selects the reader; `value` is written when the option is present and
    left untouched otherwise.
    """

    __slots__ = ("type", "value")

    def __init__(self, type, /, value=None):
        self.type = type
        self.value = value

    def __repr__(self):
        return f"Slot({getattr(self.type, '__qualname__', self.type)}, value={self.value!r})"


__all__ = (
    "Argument",
    "Command",
    "Slot",
    "argument",
    "command",
    "marker_of",
)

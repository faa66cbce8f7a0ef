"""
Argbinder utilities (internal helpers shared by every layer)

Scope
- Small building blocks used by the readers, markers, discovery and parser layers.

Overview
- UnsetType / Unset
  • Singleton sentinel meaning "not provided", distinct from None. `init(None)` is a
    caller error while `init()` reads the process argument vector; Unset is what tells
    them apart.

- coalesce(value, default=None)
  • Materialize Unset into a default, keeping None/0/""/[] untouched.

- rename(callable, name) / @rename("name")
  • Give generated wrappers (reader adapters, grammar hooks) readable names.

- mirror("attr")
  • Read-only property exposing `self._attr`, copying containers on the way out so
    markers, bindings and outcomes cannot be mutated through their public surface.

- mglob(pattern)
  • Expand "pkg.**.settings" style patterns into importable module names. Used to
    narrow the discovery scope.

Stability
- Names listed in __all__ are supported; the rest may change without notice.
"""
import builtins
import functools
import importlib
import itertools
import pkgutil
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for "value not provided".

    Characteristics
    - Falsy, but never equal to None.
    - repr(Unset) -> "Unset".
    - Sealed and process-wide singleton.
    """

    def __or__(self, other, /):
        """
        Allow `str | Unset` style unions in isinstance checks.
        """
        try:
            return type(self) | other
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __reduce__(self):
        # Keep identity across copy/pickle.
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return `object` unless it is Unset, in which case return `default`.

    Falsy values are legitimate and preserved:
    - coalesce("count", "fallback") -> "count"
    - coalesce(Unset, "fallback")   -> "fallback"
    - coalesce(None, "fallback")    -> None
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator doing the same later

    Raises
    - TypeError: on a non-callable target, a non-string name, a callable whose
      names are read-only, or a wrong number of arguments.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _detach(object):
    """
    Copy containers recursively so callers never hold the backing storage.

    Strings and other scalars are returned unchanged; mapping keys are kept as-is.
    """
    if isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_detach, object))
    elif isinstance(object, Mapping):
        return {key: _detach(value) for key, value in object.items()}
    elif isinstance(object, Set):
        return set(map(_detach, object))
    return object


def mirror(name, /):
    """
    Build a read-only property backed by `self._<name>`.

    Containers are returned as fresh copies (see _detach), so
    `outcome.applied.append(...)` never changes the outcome itself.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _detach(getattr(self, "_" + name))

    return property(getter)


_IDENTIFIER = re.compile(r"[^\W\d]\w*")


def _wildcard(segment):
    """
    Regex fragment for one pattern segment: '*' spans any run of non-dot
    characters, '?' exactly one, everything else is literal.
    """
    return "".join(
        r"[^.]*" if char == "*" else r"[^.]" if char == "?" else re.escape(char)
        for char in segment
    )


@functools.cache
def _module_pattern(source):
    head, *tail = source.split(".")
    fragments = [re.escape(head)]
    for segment in tail:
        # '**' spans zero or more whole module names.
        fragments.append(r"(?:\.\w+)*" if segment == "**" else r"\." + _wildcard(segment))
    return re.compile("".join(fragments))


def mglob(source, /):
    """
    Expand a module pattern into the importable module names it designates.

    The leading dotted names up to the first wildcard form the package that is
    imported and walked. A pattern without wildcards designates itself, whether
    it exists or not, so import errors surface where the module is imported.
    An unimportable package designates nothing.

    Examples
    - "app.settings"     → ["app.settings"]
    - "app.*"            → every direct child of app
    - "app.**.settings"  → every settings module below app, at any depth
    """
    if not isinstance(source, str):
        raise TypeError("mglob() argument must be a string")
    elif not (source := source.strip()):
        raise ValueError("mglob() argument must be a non-empty string")

    segments = source.split(".")
    package = list(itertools.takewhile(_IDENTIFIER.fullmatch, segments))
    if len(package) == len(segments):
        return [source]
    if not package:
        raise ValueError("mglob() pattern must start with a package name, got %r" % source)

    try:
        root = importlib.import_module(name := ".".join(package))
    except ImportError:
        return []

    pattern = _module_pattern(source)
    names = [name] + [info.name for info in pkgutil.walk_packages(getattr(root, "__path__", ()), name + ".")]
    return sorted(filter(pattern.fullmatch, names))


Unset = UnsetType()
"""
Process-wide "not provided" marker; see UnsetType.
"""


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "mglob",
    "UnsetType",
    "Unset",
)

"""
Argbinder marker discovery.

Scope
- discover_arguments(): every static field whose annotation carries an Argument marker.
- discover_commands(): every static zero-argument callback tagged with a Command marker.

What is scanned
- By default every module currently in sys.modules; a scope narrows that down to
  modules, module-glob patterns ("app.**.settings", expanded with mglob and
  imported) or an iterable mixing both.
- For each module: its annotated globals, then the classes defined in it (nested
  classes included, imported classes are left to their own module).

Eligibility
- Fields: module globals, and class attributes that are either ClassVar or carry a
  class-level value. Dataclass fields, named-tuple fields and bare class annotations
  describe instances and are skipped.
- Commands: module functions, staticmethods and classmethods that can be called with
  no arguments and whose return annotation (if any) is None. Coroutine and async
  generator functions are not commands. Anything else carrying a
  marker is skipped silently.
- Objects that raise while being inspected (lazy proxies, half-initialized modules)
  are skipped.

Both scans are read-only and return insertion-ordered dicts, so discovery order is
module order, then declaration order.
"""
import dataclasses
import importlib
import inspect
import sys
import types
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Annotated, Any, ClassVar, get_args, get_origin

from .faults import FaultCode, InvalidArgumentError
from .markers import Argument, marker_of
from .utils import Unset, mglob


@dataclass(frozen=True)
class FieldRef:
    """
    A writable static location: `owner.name`, declared with `type`.

    The owner is a module, a class or a Slot; equality ignores the type.
    """
    owner: Any
    name: str
    type: Any = field(compare=False)

    def assign(self, value, /):
        setattr(self.owner, self.name, value)

    @property
    def qualname(self):
        return f"{getattr(self.owner, '__qualname__', getattr(self.owner, '__name__', type(self.owner).__name__))}.{self.name}"


@dataclass(frozen=True)
class CommandRef:
    """
    A zero-argument callback reachable as `owner.name`.
    """
    owner: Any
    name: str
    callback: Any

    def invoke(self):
        return self.callback()

    @property
    def qualname(self):
        return f"{getattr(self.owner, '__qualname__', getattr(self.owner, '__name__', type(self.owner).__name__))}.{self.name}"


def _resolve_scope(scope, /):
    """
    Turn a scope into the ordered list of modules to scan.
    """
    if scope is Unset:
        return [module for module in list(sys.modules.values()) if _probe(isinstance, module, types.ModuleType)]

    if isinstance(scope, str | types.ModuleType):
        scope = (scope,)
    elif not isinstance(scope, Iterable):
        raise InvalidArgumentError(
            f"scope must be a module, a module pattern or an iterable of those, got {scope!r}",
            title="invalid argument",
            code=FaultCode.INVALID_ARGUMENT,
        )

    modules = {}
    for item in scope:
        if isinstance(item, types.ModuleType):
            modules.setdefault(item.__name__, item)
            continue
        if not isinstance(item, str):
            raise InvalidArgumentError(
                f"scope items must be modules or module patterns, got {item!r}",
                title="invalid argument",
                code=FaultCode.INVALID_ARGUMENT,
            )
        for name in mglob(item):
            try:
                modules.setdefault(name, importlib.import_module(name))
            except ImportError:
                raise InvalidArgumentError(
                    f"unable to import module {name!r}",
                    title="unimportable scope",
                    code=FaultCode.UNIMPORTABLE_SCOPE,
                    hint="check the module pattern given as scope",
                ) from None
    return list(modules.values())


def _probe(predicate, /, *args, default=False):
    """
    predicate(*args), or default when a foreign object refuses introspection.
    """
    try:
        return predicate(*args)
    except Exception:
        # Lazy proxies and half-initialized modules raise from isinstance/getattr.
        return default


def _classes(module, /):
    """
    Yield the classes defined in a module, nested ones included.
    """
    seen = set()

    def owned(object, prefix):
        return (
            isinstance(object, type)
            and getattr(object, "__module__", None) == module.__name__
            and isinstance(qualname := getattr(object, "__qualname__", ""), str)
            and qualname.startswith(prefix)
        )

    def walk(namespace, prefix):
        for object in list(namespace.values()):
            if id(object) in seen or not _probe(owned, object, prefix):
                continue
            seen.add(id(object))
            yield object
            yield from walk(vars(object), object.__qualname__ + ".")

    yield from walk(vars(module), "")


def _annotations(owner, /):
    """
    Own annotations of a module or class, evaluated; {} when they cannot be read.
    """
    try:
        return inspect.get_annotations(owner, eval_str=True)
    except Exception:
        # Unresolvable forward references or exotic objects: nothing to bind here.
        return {}


def _unwrap(annotation, /):
    """
    Strip ClassVar/Annotated layers; return (declared type, argument marker, classvar).
    """
    marker = None
    classvar = False
    while True:
        origin = get_origin(annotation)
        if origin is ClassVar:
            classvar = True
            annotation, = get_args(annotation) or (Any,)
        elif origin is Annotated:
            annotation, *metadata = get_args(annotation)
            for object in metadata:
                if marker is None and isinstance(object, Argument):
                    marker = object
        elif annotation is ClassVar:
            return Any, marker, True
        else:
            return annotation, marker, classvar


def _instance_fields(cls, /):
    names = set()
    if dataclasses.is_dataclass(cls):
        names.update(item.name for item in dataclasses.fields(cls))
    if issubclass(cls, tuple) and isinstance(fields := getattr(cls, "_fields", None), tuple):
        names.update(fields)
    return names


def discover_arguments(scope=Unset, /):
    """
    Collect all static fields annotated with an Argument marker.

    Returns
    - dict[FieldRef, Argument] in discovery order.

    Raises
    - InvalidArgumentError: on a malformed or unimportable scope.
    """
    found = {}
    for module in _resolve_scope(scope):
        for name, annotation in _annotations(module).items():
            declared, marker, _ = _probe(_unwrap, annotation, default=(Any, None, False))
            if marker is not None:
                found[FieldRef(module, name, declared)] = marker

        for cls in _classes(module):
            instance = _probe(_instance_fields, cls, default=set())
            namespace = vars(cls)
            for name, annotation in _annotations(cls).items():
                declared, marker, classvar = _probe(_unwrap, annotation, default=(Any, None, False))
                if marker is None or name in instance:
                    continue
                if not classvar and name not in namespace:
                    continue
                found[FieldRef(cls, name, declared)] = marker
    return found


def _invocable(callback, /):
    """
    True when callback can be called with no arguments and returns nothing.
    """
    if inspect.iscoroutinefunction(callback) or inspect.isasyncgenfunction(callback):
        # Calling it would only build a coroutine or generator that never runs.
        return False
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        return False
    try:
        signature.bind()
    except TypeError:
        return False
    return signature.return_annotation in (inspect.Signature.empty, None, type(None), "None")


def _defined_in(object, module, /):
    return inspect.isfunction(object) and object.__module__ == module.__name__


def discover_commands(scope=Unset, /):
    """
    Collect all static zero-argument callbacks tagged with a Command marker.

    Returns
    - dict[CommandRef, Command] in discovery order.

    Raises
    - InvalidArgumentError: on a malformed or unimportable scope.
    """
    found = {}
    for module in _resolve_scope(scope):
        for name, object in list(vars(module).items()):
            if not _probe(_defined_in, object, module):
                continue
            if (marker := marker_of(object)) is not None and _invocable(object):
                found[CommandRef(module, name, object)] = marker

        for cls in _classes(module):
            for name, object in list(vars(cls).items()):
                # Plain functions in a class body need an instance.
                if not _probe(isinstance, object, staticmethod | classmethod) or (marker := marker_of(object)) is None:
                    continue
                # classmethods are bound to the class, so no instance is needed either.
                callback = object.__func__ if isinstance(object, staticmethod) else _probe(getattr, cls, name, default=None)
                if callback is not None and _invocable(callback):
                    found[CommandRef(cls, name, callback)] = marker
    return found


__all__ = (
    "FieldRef",
    "CommandRef",
    "discover_arguments",
    "discover_commands",
)

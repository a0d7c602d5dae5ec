"""
Deep instrumentation of every callable reachable from a root object.

The walk visits each object at most once per top-level call, so circular
references and shared sub-objects terminate. Callables found along the way
are replaced in place with timed wrappers, except classes, which keep their
slot and get their own __init__ timed instead. The root itself is returned
unchanged.

Usage:
    wrap_object(recorder, "app", app_module)
    Service = instrument(recorder, "Service", Service)
"""

import enum
import functools
import inspect
import logging
import types
from typing import Any, Iterable, Optional

from .interceptor import InstrumentedClass, is_instrumented, wrap_descriptor, wrap_function

logger = logging.getLogger(__name__)


class ValueKind(enum.Enum):
    """The runtime value kinds the walker distinguishes."""

    ABSENT = "absent"
    CALLABLE = "callable"
    COMPOSITE = "composite"
    PRIMITIVE = "primitive"


# Attribute access on these forwards elsewhere or exposes nothing of their own.
_NO_PROPERTIES = (
    types.MethodType,
    types.BuiltinFunctionType,
    types.MethodWrapperType,
    types.WrapperDescriptorType,
    types.MethodDescriptorType,
    types.ClassMethodDescriptorType,
    types.GetSetDescriptorType,
    types.MemberDescriptorType,
    property,
)


def _is_dunder(key) -> bool:
    """Dunder names count as non-enumerable."""
    return isinstance(key, str) and key.startswith("__") and key.endswith("__")


@functools.singledispatch
def own_properties(value) -> Iterable:
    """
    Return the enumerable own (key, value) pairs of an object.

    Objects with a __dict__ expose its entries; everything else has none.
    """
    if isinstance(value, _NO_PROPERTIES):
        return ()
    namespace = getattr(value, "__dict__", None)
    if not isinstance(namespace, dict):
        return ()
    return [(key, item) for key, item in namespace.items() if not _is_dunder(key)]


@own_properties.register(dict)
def _(value: dict) -> Iterable:
    return list(value.items())


@own_properties.register(type)
def _(value: type) -> Iterable:
    return [(key, item) for key, item in vars(value).items() if not _is_dunder(key)]


@own_properties.register(InstrumentedClass)
def _(value: InstrumentedClass) -> Iterable:
    return own_properties(value.__wrapped__)


def _unwrap_descriptor(value):
    if isinstance(value, (staticmethod, classmethod)):
        return value.__func__
    return value


def classify(value) -> ValueKind:
    """Sort a value into one of the walker's value kinds."""
    if value is None:
        return ValueKind.ABSENT
    if callable(value) or isinstance(value, (staticmethod, classmethod)):
        return ValueKind.CALLABLE
    if isinstance(value, (dict, types.ModuleType)) or own_properties(value):
        return ValueKind.COMPOSITE
    return ValueKind.PRIMITIVE


def _belongs_to_module(module: types.ModuleType, value) -> bool:
    """Return True if a module-level value is part of that module."""
    if isinstance(value, types.ModuleType):
        return value.__name__.startswith(module.__name__ + ".")
    if isinstance(value, dict):
        return True
    return getattr(_unwrap_descriptor(value), "__module__", None) == module.__name__


def _set_property(owner, key, value) -> bool:
    """Replace owner[key] or owner.key; return False if it is read-only."""
    if isinstance(owner, dict):
        owner[key] = value
        return True
    if isinstance(owner, InstrumentedClass):
        owner = owner.__wrapped__
    try:
        setattr(owner, key, value)
    except (AttributeError, TypeError) as exc:
        logger.debug("left %r on %r untouched: %s", key, owner, exc)
        return False
    return True


class Traversal:
    """
    Visited set and wrapper cache for one top-level wrap_object call.

    Identities are tracked by id(); visited objects are kept referenced until
    the traversal is discarded so no id can be reused mid-walk.
    """

    def __init__(self, recorder):
        self.recorder = recorder
        self.visited: set = set()
        self._alive: list = []
        self._wrappers: dict = {}

    def seen(self, value) -> bool:
        """Mark value visited; return True if it already was."""
        identity = id(value)
        if identity in self.visited:
            return True
        self.visited.add(identity)
        self._alive.append(value)
        return False

    def walk(self, name: str, root):
        if root is None or self.seen(root):
            return root
        if isinstance(root, InstrumentedClass):
            self.walk(name, root.__wrapped__)
            return root

        module = root if isinstance(root, types.ModuleType) else None
        for key, value in own_properties(root):
            if module is not None and not _belongs_to_module(module, value):
                continue
            self.visit(name, root, key, value)
        return root

    def reserve(self, value, wrapped) -> None:
        """Register the wrapper every slot holding value will receive."""
        self._wrappers[id(value)] = wrapped

    def visit(self, name: str, owner, key, value) -> None:
        label = f"{name}.{key}"
        kind = classify(value)

        if kind is ValueKind.CALLABLE:
            if is_instrumented(_unwrap_descriptor(value), self.recorder):
                return
            if inspect.isclass(value) or isinstance(value, InstrumentedClass):
                self.walk(label, value)
                self.time_construction(label, value)
                return
            # One wrapper per callable, however many slots point at it.
            wrapped = self._wrappers.get(id(value))
            if wrapped is None:
                wrapped = wrap_descriptor(self.recorder, label, value)
                self.reserve(value, wrapped)
                inner = _unwrap_descriptor(value)
                self.walk(label, inner)
                _sync_attributes(_unwrap_descriptor(wrapped), inner)
            _set_property(owner, key, wrapped)
        elif kind is ValueKind.COMPOSITE:
            self.walk(label, value)

    def time_construction(self, label: str, cls) -> None:
        """Wrap the class's own __init__ in place; the class slot keeps the real type."""
        if isinstance(cls, InstrumentedClass):
            cls = cls.__wrapped__
        init = vars(cls).get("__init__")
        if init is None or is_instrumented(init, self.recorder):
            return
        _set_property(cls, "__init__", wrap_function(self.recorder, label, init))


def _sync_attributes(wrapper, original) -> None:
    """Copy the walked attributes of original onto its wrapper."""
    namespace = getattr(wrapper, "__dict__", None)
    if not isinstance(namespace, dict):
        return
    for key, item in own_properties(original):
        namespace[key] = item


def wrap_object(recorder, name: str, root: Any, visited: Optional[Traversal] = None) -> Any:
    """
    Instrument every callable reachable from root, in place.

    Classes are walked through their namespace, so instance methods,
    static methods, class methods and nested classes are all wrapped.
    Members of a class are named "<name>.<attr>": a Python class is its own
    prototype, so there is no "<name>.prototype.<attr>" level. Classes found
    in a slot stay real types; their construction is timed through their
    own __init__, recorded under the slot's name. Modules only contribute
    what they define themselves.

    Args:
        recorder: Recorder the wrappers report to
        name: Label prefix; members are recorded as "<name>.<key>"
        root: Object to walk; None is accepted and ignored
        visited: Traversal state when continuing an existing walk

    Returns:
        root itself
    """
    traversal = visited or Traversal(recorder)
    return traversal.walk(name, root)


def instrument(recorder, name: str, target: Any) -> Any:
    """
    Walk target and, when it is callable, also wrap target itself.

    A function that reaches itself through its attributes gets the same
    wrapper in those slots as the one returned here.

    Returns:
        The timed wrapper for callables, otherwise target unchanged
    """
    if not callable(target) or is_instrumented(target, recorder):
        return wrap_object(recorder, name, target)
    if inspect.isclass(target):
        wrap_object(recorder, name, target)
        return wrap_function(recorder, name, target)

    traversal = Traversal(recorder)
    wrapped = wrap_function(recorder, name, target)
    traversal.reserve(target, wrapped)
    wrap_object(recorder, name, target, visited=traversal)
    _sync_attributes(wrapped, target)
    return wrapped

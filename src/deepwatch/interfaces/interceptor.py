"""
Call interception: build timed wrappers that behave like the original.

Functions, methods and other plain callables are wrapped by a function that
forwards its arguments untouched. Classes are wrapped by an InstrumentedClass
proxy that constructs instances through the original class and delegates
attribute access, isinstance checks and subclassing to it.

Usage:
    wrapped = wrap_function(recorder, "parser.parse", parse)
    wrap_method(recorder, "Parser", Parser, "parse")
"""

import enum
import functools
import inspect
from collections.abc import MutableMapping
from typing import Any, Callable, Optional

from ..core.errors import InvalidArgumentError

MARKER = "__deepwatch_recorder__"


class InvocationMode(enum.Enum):
    """How the wrapped target is invoked once the bracket is open."""

    PLAIN = "plain"
    CONSTRUCT = "construct"


def invocation_mode(target: Callable) -> InvocationMode:
    """Return CONSTRUCT for classes and PLAIN for every other callable."""
    if inspect.isclass(target) or isinstance(target, InstrumentedClass):
        return InvocationMode.CONSTRUCT
    return InvocationMode.PLAIN


def construct(cls: type, args: tuple = (), kwargs: Optional[dict] = None):
    """
    Create an instance using the class's own instantiation.

    A __new__ that returns an object of another type is honoured and
    __init__ is skipped for it, exactly as with a direct call.
    """
    return cls(*args, **(kwargs or {}))


def is_instrumented(value, recorder=None) -> bool:
    """
    Return True if the value is a deepwatch wrapper.

    Args:
        value: Any object
        recorder: When given, only wrappers built for this recorder count
    """
    owner = getattr(value, MARKER, None)
    if owner is None:
        return False
    return recorder is None or owner is recorder


def _validate(name, target) -> None:
    """Fail fast on unusable names and targets."""
    if not isinstance(name, str):
        raise InvalidArgumentError(
            f"instrumentation name must be a string, got {type(name).__name__}"
        )
    if not name:
        raise InvalidArgumentError("instrumentation name must not be empty")
    if not callable(target):
        raise InvalidArgumentError(
            f"cannot instrument {name!r}: {type(target).__name__} object is not callable"
        )


def _bracket(recorder, name: str, mode: InvocationMode, target: Callable,
             args: tuple, kwargs: dict):
    """Invoke the target inside a timer; the sample is recorded even on error."""
    timer = recorder.timer(name).start()
    try:
        if mode is InvocationMode.CONSTRUCT:
            return construct(target, args, kwargs)
        return target(*args, **kwargs)
    finally:
        timer.stop()


def _make_wrapper(recorder, name: str, fn: Callable) -> Callable:
    """Wrap a plain callable; attributes of fn are copied onto the wrapper."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        return _bracket(recorder, name, InvocationMode.PLAIN, fn, args, kwargs)

    wrapper.__deepwatch_recorder__ = recorder
    wrapper.__deepwatch_name__ = name
    return wrapper


class InstrumentedClass:
    """
    Stand-in for a class whose construction is timed.

    Calling the proxy builds an instance of the original class. Everything
    else (attributes, isinstance, issubclass, subclassing) goes to the
    original class.
    """

    __slots__ = ("__wrapped__", "__deepwatch_recorder__", "__deepwatch_name__")

    def __init__(self, recorder, name: str, cls: type):
        object.__setattr__(self, "__wrapped__", cls)
        object.__setattr__(self, MARKER, recorder)
        object.__setattr__(self, "__deepwatch_name__", name)

    def __call__(self, *args, **kwargs):
        return _bracket(self.__deepwatch_recorder__, self.__deepwatch_name__,
                        InvocationMode.CONSTRUCT, self.__wrapped__, args, kwargs)

    def __getattr__(self, attr):
        return getattr(self.__wrapped__, attr)

    def __setattr__(self, attr, value):
        setattr(self.__wrapped__, attr, value)

    def __delattr__(self, attr):
        delattr(self.__wrapped__, attr)

    def __instancecheck__(self, instance) -> bool:
        return isinstance(instance, self.__wrapped__)

    def __subclasscheck__(self, subclass) -> bool:
        if isinstance(subclass, InstrumentedClass):
            subclass = subclass.__wrapped__
        return issubclass(subclass, self.__wrapped__)

    def __mro_entries__(self, bases):
        if isinstance(self.__wrapped__, InstrumentedClass):
            return self.__wrapped__.__mro_entries__(bases)
        return (self.__wrapped__,)

    def __eq__(self, other):
        if isinstance(other, InstrumentedClass):
            other = other.__wrapped__
        return self.__wrapped__ is other

    def __hash__(self):
        return hash(self.__wrapped__)

    def __repr__(self) -> str:
        return f"<instrumented {self.__wrapped__!r} as {self.__deepwatch_name__!r}>"

    @property
    def __doc__(self):
        return self.__wrapped__.__doc__


def wrap_function(recorder, name: str, target: Callable) -> Callable:
    """
    Return a timed stand-in for target.

    Args:
        recorder: Recorder receiving one sample per completed call
        name: Label the samples are stored under
        target: Function, method, class or any other callable

    Raises:
        InvalidArgumentError: name is not a non-empty string or target is
            not callable
    """
    _validate(name, target)
    if invocation_mode(target) is InvocationMode.CONSTRUCT:
        return InstrumentedClass(recorder, name, target)
    return _make_wrapper(recorder, name, target)


def wrap_descriptor(recorder, name: str, value: Any) -> Any:
    """
    Wrap a class-namespace entry, keeping staticmethod/classmethod semantics.

    Plain functions in a class namespace are wrapped directly; the wrapper is
    a function too, so it still binds to instances.
    """
    if isinstance(value, (staticmethod, classmethod)):
        return type(value)(wrap_function(recorder, name, value.__func__))
    return wrap_function(recorder, name, value)


def wrap_method(recorder, owner_name: str, obj: Any, method_name: str) -> None:
    """
    Replace obj.method_name (or obj[method_name] for mappings) in place.

    The sample name is "<owner_name>.<method_name>". On classes the raw
    namespace entry is looked up (inherited ones included) so staticmethod
    and classmethod keep working.
    """
    label = f"{owner_name}.{method_name}"
    if isinstance(obj, MutableMapping):
        obj[method_name] = wrap_function(recorder, label, obj[method_name])
        return

    if isinstance(obj, InstrumentedClass):
        obj = obj.__wrapped__
    if inspect.isclass(obj):
        value = inspect.getattr_static(obj, method_name)
    else:
        value = getattr(obj, method_name)
    setattr(obj, method_name, wrap_descriptor(recorder, label, value))

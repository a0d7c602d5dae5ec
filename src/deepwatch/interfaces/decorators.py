"""
Decorator and context-manager shorthands over the interceptor and walker.

Usage:
    @watch                          # uses default name (qualname)
    def my_function(): ...

    @watch("custom label")          # uses custom name
    def my_function(): ...

    @watch_all("Service")           # every method of the class
    class Service: ...

    with watch_block("db query"):   # inline block timing
        result = db.query(...)
"""

from typing import Callable, Optional

from ..core.recorder import Recorder, default_recorder
from .interceptor import wrap_function
from .walker import wrap_object


def _label_for(target, label: Optional[str]) -> str:
    return label or getattr(target, "__qualname__", None) or repr(target)


def _build_decorator(label: Optional[str], recorder: Recorder) -> Callable:
    """Return a decorator that instruments its target under the resolved label."""

    def decorator(target: Callable) -> Callable:
        return wrap_function(recorder, _label_for(target, label), target)

    return decorator


def watch(arg=None, *, name: Optional[str] = None, recorder: Optional[Recorder] = None):
    """
    Decorator that times a function or class on every call.

    Supported usage patterns:
        @watch
        @watch("custom name")
        @watch(name="custom name")
        @watch(recorder=my_recorder)
        @watch("name", recorder=my_recorder)

    Decorating a class times construction and returns an InstrumentedClass.

    Args:
        arg: Either the decorated callable (bare @watch) or a string label
        name: Keyword-only custom label
        recorder: Recorder to store samples; defaults to default_recorder
    """
    active_recorder = recorder or default_recorder

    if callable(arg):
        return _build_decorator(name, active_recorder)(arg)

    if isinstance(arg, str):
        return _build_decorator(arg, active_recorder)

    return _build_decorator(name, active_recorder)


def watch_all(arg=None, *, prefix: Optional[str] = None, recorder: Optional[Recorder] = None):
    """
    Class decorator that instruments everything defined in the class body.

    The class itself is returned, so isinstance checks and subclassing are
    untouched; only its methods are replaced. Nested classes keep their slot
    and have their own __init__ timed.

    Supported usage patterns:
        @watch_all
        @watch_all("Prefix")
        @watch_all(prefix="Prefix", recorder=my_recorder)
    """
    active_recorder = recorder or default_recorder

    def decorator(cls):
        return wrap_object(active_recorder, _label_for(cls, prefix), cls)

    if callable(arg):
        return decorator(arg)

    if isinstance(arg, str):
        prefix = arg
    return decorator


def watch_block(name: str, recorder: Optional[Recorder] = None):
    """
    Context manager timing an inline block as a nested instrumented call.

    Args:
        name: Label for this measurement
        recorder: Custom recorder; defaults to default_recorder

    Example:
        with watch_block("parse json"):
            data = json.loads(raw)
    """
    return (recorder or default_recorder).block(name)

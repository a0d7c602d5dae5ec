"""
deepwatch - Transparent call instrumentation with self/total time attribution.

Wrap functions, methods, classes or whole object graphs and every call is
timed without touching call sites:
  - create_recorder()      : build an independent Recorder
  - wrap_function()        : timed stand-in for one callable
  - wrap_method()          : replace obj.method with a timed wrapper
  - wrap_object()          : instrument everything reachable from a root
  - instrument()           : wrap_object plus wrapping a callable root itself
  - @watch / @watch_all    : decorator shorthands
  - watch_block()          : time a block of code as a nested call
  - get_samples()          : raw total/self durations per name
  - get_report()           : calls plus mean/max/min/sum per name
  - summary()              : print the report to stdout
  - save()                 : persist samples and report to a JSON file
  - recorder               : access the default global Recorder

Durations are split into total time (the call's own wall time) and self
time (total time minus time spent in nested instrumented calls).
All measurements use time.perf_counter_ns unless another clock is given.
"""

from .core.errors import DeepwatchError, InvalidArgumentError
from .core.recorder import Recorder, SampleSet, create_recorder, default_recorder
from .core.stats import aggregate, summarize
from .core.timer import NestingStack, Timer, TimingRecord

from .interfaces.interceptor import InstrumentedClass, InvocationMode, construct, is_instrumented
from .interfaces.decorators import watch, watch_all, watch_block

from .output.formatter import print_report, save_to_file


def wrap_function(name: str, target):
    """Return a timed wrapper for target, recorded by the default recorder."""
    return default_recorder.wrap_function(name, target)


def wrap_method(owner_name: str, obj, method_name: str) -> None:
    """Replace obj.method_name with a timed wrapper, in place."""
    default_recorder.wrap_method(owner_name, obj, method_name)


def wrap_object(name: str, root=None):
    """Instrument every callable reachable from root; returns root."""
    return default_recorder.wrap_object(name, root)


def instrument(name: str, target):
    """Walk target and return a timed wrapper when target is callable."""
    return default_recorder.instrument(name, target)


def get_samples() -> dict:
    """Return the default recorder's live samples."""
    return default_recorder.get_samples()


def get_report() -> dict:
    """Return the default recorder's report."""
    return default_recorder.get_report()


def summary() -> None:
    """Print a formatted report from the global recorder."""
    print_report(default_recorder)


def save(path: str) -> None:
    """
    Save all recorded samples to a JSON file.

    Args:
        path: Output file path (e.g. "deepwatch_results.json")
    """
    save_to_file(default_recorder, path)


def reset() -> None:
    """Clear all samples from the global recorder."""
    default_recorder.clear()


recorder = default_recorder

__all__ = [
    "create_recorder",
    "wrap_function",
    "wrap_method",
    "wrap_object",
    "instrument",
    "get_samples",
    "get_report",
    "watch",
    "watch_all",
    "watch_block",
    "summary",
    "save",
    "reset",
    "recorder",
    "aggregate",
    "summarize",
    "construct",
    "is_instrumented",
    "Recorder",
    "SampleSet",
    "Timer",
    "TimingRecord",
    "NestingStack",
    "InstrumentedClass",
    "InvocationMode",
    "DeepwatchError",
    "InvalidArgumentError",
]

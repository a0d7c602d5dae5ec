"""
Central recorder for every sample produced by instrumented callables.

Owns the sample store, the per-thread nesting stack and the time source.
Designed to be used as the module-level default or as a scoped instance.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from .stats import aggregate
from .timer import NestingStack, Timer, TimingRecord
from ..interfaces.interceptor import wrap_function, wrap_method
from ..interfaces.walker import instrument, wrap_object
from ..output.formatter import print_sample

logger = logging.getLogger(__name__)


@dataclass
class SampleSet:
    """Parallel total/self duration lists for one name, in call order."""

    total_times: list = field(default_factory=list)
    self_times: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.total_times)


class Recorder:
    """
    Sample store plus the bookkeeping needed to split total and self time.

    Samples from all threads go to one store guarded by a lock; each thread
    has its own nesting stack.
    """

    def __init__(self, clock: Optional[Callable[[], int]] = None, echo: bool = False):
        """
        Args:
            clock: Zero-argument time source; defaults to time.perf_counter_ns
            echo: Print every sample as it is recorded
        """
        self._samples: dict[str, SampleSet] = {}
        self._lock = threading.Lock()
        self._stack = NestingStack()
        self.echo = echo
        if clock is not None:
            self.get_time = clock

    def get_time(self) -> int:
        """Return the current timestamp in nanoseconds."""
        return time.perf_counter_ns()

    # -- sample store -----------------------------------------------------

    def add_sample(self, name: str, total_time, self_time) -> None:
        """Append one (total, self) pair to the named sample set."""
        with self._lock:
            samples = self._samples.get(name)
            if samples is None:
                samples = self._samples[name] = SampleSet()
            samples.total_times.append(total_time)
            samples.self_times.append(self_time)

    def add_record(self, record: TimingRecord) -> None:
        """Store a completed TimingRecord, echoing it when enabled."""
        self.add_sample(record.name, record.total_ns, record.self_ns)
        if self.echo:
            print_sample(record)

    def get_samples(self) -> dict[str, SampleSet]:
        """Return the live name -> SampleSet mapping (not a copy)."""
        return self._samples

    def get_report(self) -> dict[str, dict]:
        """
        Summarize every sample set.

        Returns:
            {name: {"calls", "self_time", "total_time"}} where both times
            are {"mean", "max", "min", "sum"} dicts
        """
        with self._lock:
            items = list(self._samples.items())
        return {
            name: {
                "calls": len(samples.total_times),
                "self_time": aggregate(samples.self_times),
                "total_time": aggregate(samples.total_times),
            }
            for name, samples in items
        }

    def clear(self) -> None:
        """Remove all stored samples."""
        with self._lock:
            self._samples.clear()

    # -- bracketing -------------------------------------------------------

    def timer(self, name: str) -> Timer:
        """Return an unstarted Timer that stores its record here when stopped."""
        return Timer(name, self._stack, clock=self.get_time, on_stop=self.add_record)

    @property
    def stack_depth(self) -> int:
        """Number of instrumented calls currently open on this thread."""
        return self._stack.depth

    @contextmanager
    def block(self, name: str):
        """
        Time a block of code as if it were an instrumented call.

        Example:
            with recorder.block("parse json"):
                data = json.loads(raw)
        """
        with self.timer(name) as timer:
            yield timer

    # -- instrumentation --------------------------------------------------

    def wrap_function(self, name: str, target: Callable) -> Callable:
        """Return a timed wrapper for target; see interceptor.wrap_function."""
        return wrap_function(self, name, target)

    def wrap_method(self, owner_name: str, obj: Any, method_name: str) -> None:
        """Replace obj.method_name with a timed wrapper, in place."""
        wrap_method(self, owner_name, obj, method_name)

    def wrap_object(self, name: str, root: Any = None) -> Any:
        """Instrument every callable reachable from root and return root."""
        logger.debug("instrumenting object graph %r", name)
        return wrap_object(self, name, root)

    def instrument(self, name: str, target: Any) -> Any:
        """Walk target and return a timed wrapper when target is callable."""
        return instrument(self, name, target)

    def __repr__(self) -> str:
        return f"<Recorder names={len(self._samples)}>"


def create_recorder(clock: Optional[Callable[[], int]] = None, echo: bool = False) -> Recorder:
    """Build a new, independent Recorder."""
    return Recorder(clock=clock, echo=echo)


# Module-level default recorder used by all convenience interfaces.
default_recorder = Recorder()

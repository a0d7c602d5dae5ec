"""
Bracketing timer and per-thread nesting stack.

The nesting stack holds one child-time accumulator per wrapped call that is
currently running on a thread. A Timer pushes an accumulator when started and
pops it when stopped, so nested instrumented calls can be subtracted from the
caller's self time.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class TimingRecord:
    """
    Result of one completed bracket.

    Durations use the units of the clock that produced them
    (nanoseconds for the default clock).
    """

    name: str
    total_ns: int
    self_ns: int


class NestingStack(threading.local):
    """
    Child-time accumulators for the calls running on the current thread.

    Every thread starts with a single zero entry. The stack must be back to
    that single entry once all wrapped calls on the thread have returned.
    """

    def __init__(self):
        self.entries: list = [0]

    @property
    def depth(self) -> int:
        """Return the number of brackets currently open on this thread."""
        return len(self.entries) - 1

    def push(self) -> None:
        """Open a new accumulator for a call that is about to run."""
        self.entries.append(0)

    def pop(self, total) -> int:
        """
        Close the top accumulator and charge `total` to the caller.

        Returns:
            The child time accumulated by the closed call
        """
        entries = self.entries
        child = entries.pop()
        entries[-1] += total
        return child

    def discard(self) -> None:
        """Drop the top accumulator without charging anything to the caller."""
        self.entries.pop()


class Timer:
    """
    Start/stop bracket around one invocation.

    Uses time.perf_counter_ns unless another clock is supplied. The clock
    is any zero-argument callable returning numbers in consistent units.
    The stack entry pushed by start() is always removed by stop(), even
    when the clock raises.
    """

    def __init__(self, name: str, stack: NestingStack,
                 clock: Optional[Callable[[], int]] = None,
                 on_stop: Optional[Callable[[TimingRecord], None]] = None):
        """
        Initialize timer with a measurement name.

        Args:
            name: Label for this measurement
            stack: Nesting stack shared by every timer of one recorder
            clock: Time source; defaults to time.perf_counter_ns
            on_stop: Receives the completed record when the timer stops
        """
        self.name = name
        self._stack = stack
        self._clock = clock or time.perf_counter_ns
        self._on_stop = on_stop
        self._start = None
        self._record: Optional[TimingRecord] = None

    def start(self) -> "Timer":
        """Read the clock, push an accumulator and return self for chaining."""
        start = self._clock()
        self._stack.push()
        self._start = start
        return self

    def stop(self) -> TimingRecord:
        """Read the clock, pop the accumulator and return the completed record."""
        try:
            end = self._clock()
        except BaseException:
            self._stack.discard()
            raise
        total = end - self._start
        child = self._stack.pop(total)
        self._record = TimingRecord(
            name=self.name,
            total_ns=total,
            self_ns=total - child,
        )
        if self._on_stop is not None:
            self._on_stop(self._record)
        return self._record

    def __enter__(self) -> "Timer":
        """Start timing on context entry."""
        return self.start()

    def __exit__(self, *_) -> None:
        """Stop timing on context exit; the record goes to on_stop."""
        self.stop()

    @property
    def record(self) -> Optional[TimingRecord]:
        """Return the completed record, or None if not yet stopped."""
        return self._record

"""
deepwatch demo script.

Run this directly to see all interfaces in action:
    python demo.py
"""

import time

import deepwatch
from deepwatch import watch, watch_all, watch_block


# --- 1. Function decorator ---------------------------------------------------

@watch
def fibonacci(n):
    """Compute nth Fibonacci number recursively (every level is timed)."""
    if n <= 1:
        return n
    return fibonacci(n - 1) + fibonacci(n - 2)


@watch("sum of range")
def heavy_sum(limit):
    """Sum a large range."""
    return sum(range(limit))


# --- 2. Whole class ----------------------------------------------------------

@watch_all("DataPipeline")
class DataPipeline:
    """Sample data pipeline; every method reports self and total time."""

    def run(self, source):
        data = self.load(source)
        return self.transform(data)

    def load(self, source):
        time.sleep(0.002)
        return [1, 2, 3]

    def transform(self, data):
        time.sleep(0.001)
        return [x * 2 for x in data]


# --- 3. Object graph ---------------------------------------------------------

def parse(text):
    time.sleep(0.001)
    return text.split()


def render(tokens):
    return " ".join(reversed(tokens))


toolkit = {"text": {"parse": parse, "render": render}, "version": 1}
toolkit["self"] = toolkit


if __name__ == "__main__":
    fibonacci(10)
    heavy_sum(1_000_000)
    DataPipeline().run("db")

    deepwatch.wrap_object("toolkit", toolkit)
    toolkit["text"]["render"](toolkit["text"]["parse"]("hello instrumented world"))

    with watch_block("sleep block"):
        time.sleep(0.003)

    deepwatch.summary()
    deepwatch.save("deepwatch_results.json")

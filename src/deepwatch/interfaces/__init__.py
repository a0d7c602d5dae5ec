"""Call interception and object-graph instrumentation."""
from .interceptor import (
    InstrumentedClass,
    InvocationMode,
    construct,
    is_instrumented,
    wrap_function,
    wrap_method,
)
from .walker import Traversal, ValueKind, instrument, own_properties, wrap_object

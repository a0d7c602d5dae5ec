"""Exception types raised by deepwatch itself."""


class DeepwatchError(Exception):
    """Base class for errors raised by the instrumentation layer."""


class InvalidArgumentError(DeepwatchError, TypeError, ValueError):
    """
    A name or target handed to the interceptor cannot be used.

    Raised before anything is wrapped or replaced. Subclasses both TypeError
    and ValueError so callers can catch it either way.
    """

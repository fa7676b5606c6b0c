"""
Exception types shared by the mapper, the contracts and the orchestrators.
"""


class InvalidStateError(RuntimeError):
    """An operation was invoked on an object in a state that forbids it."""


class InvalidInputError(ValueError):
    """Caller supplied a missing or malformed identity, key, page or payload."""


class OperationCancelledError(Exception):
    """A backing service honoured a cancellation request."""


__all__ = ["InvalidStateError", "InvalidInputError", "OperationCancelledError"]

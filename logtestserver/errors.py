"""Exceptions raised by the synthetic log emission scheduler.

- EmissionError: base class for everything below
- InvalidRequest: rate or duration rejected before reaching the dispatcher
- InvalidDuration: duration text could not be parsed
- EntropyUnavailable: the random source failed inside a running task

A full dispatch queue is not an error: submitters block until a slot frees.
"""

__all__ = [
    "EmissionError",
    "InvalidRequest",
    "InvalidDuration",
    "EntropyUnavailable",
]


class EmissionError(Exception):
    """Base exception for emission scheduling errors."""


class InvalidRequest(EmissionError, ValueError):
    """Raised when an emission request has a malformed rate or duration."""


class InvalidDuration(InvalidRequest):
    """Raised when a duration string cannot be parsed."""

    def __init__(self, text: str, reason: str = ""):
        self.text = text
        message = f"invalid duration {text!r}"
        super().__init__(f"{message}: {reason}" if reason else message)


class EntropyUnavailable(EmissionError):
    """Raised when the system randomness source cannot supply bytes."""

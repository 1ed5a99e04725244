"""Error conditions raised by the n-gram language model components.

Every error derives from `NgramError` and from the closest builtin exception,
so callers can catch either the specific condition, the package-wide base
class, or the builtin they would naturally expect (e.g. `ValueError`).
"""

from __future__ import annotations


class NgramError(Exception):
    """Base class for all errors raised by this package."""


class InvalidConfigurationError(NgramError, ValueError):
    """A model, tape or RNG was configured with out-of-domain parameters."""


class CapacityExceededError(NgramError, MemoryError):
    """The requested counts table would exceed the allowed memory budget."""


class CountOverflowError(NgramError, OverflowError):
    """A count cell is already at the maximum value of its dtype."""


class InvalidCharacterError(NgramError, ValueError):
    """A character outside the closed `a-z` plus newline alphabet."""


class InvalidTokenError(NgramError, ValueError):
    """A token id outside `[0, vocab_size)`."""


class IndexOutOfRangeError(NgramError, IndexError):
    """A multi-dimensional index component or flat offset is out of range."""


class TapeNotReadyError(NgramError, RuntimeError):
    """The tape was read before it held a full window."""


class FileOpenError(NgramError, OSError):
    """A text source could not be opened for reading."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Failed to open file '{path}': {reason}")
        self.path = path
        self.reason = reason

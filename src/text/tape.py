"""Fixed-capacity sliding window of token ids.

The tape absorbs one token at a time and reports when it holds a full window.
Internally it is a NumPy-backed ring buffer with a head index, so `update` is
O(1); `contents()` always returns the window oldest-first.
"""

from __future__ import annotations

from typing import Iterable, Iterator

import numpy as np

from src.exceptions import InvalidConfigurationError, TapeNotReadyError


class Tape:
    """Sliding window over the most recent `length` tokens.

    A tape of length 0 is permanently ready: every token is its own complete
    window (the unigram case, which has no context).
    """

    __slots__ = ("_buffer", "_length", "_head", "_size")

    def __init__(self, length: int) -> None:
        if isinstance(length, bool) or not isinstance(length, int):
            raise InvalidConfigurationError("Tape length must be an integer.")
        if length < 0:
            raise InvalidConfigurationError("Tape length must be non-negative.")
        self._length = length
        self._buffer = np.zeros(length, dtype=np.int64)
        # _head is the slot the next token is written to, which is also the
        # oldest slot once the tape is full.
        self._head = 0
        self._size = 0

    @property
    def length(self) -> int:
        return self._length

    @property
    def is_ready(self) -> bool:
        return self._size == self._length

    def __len__(self) -> int:
        return self._size

    def update(self, token: int) -> bool:
        """Append `token` as the newest element and report whether the tape is full."""

        if self._length == 0:
            return True
        self._buffer[self._head] = token
        self._head = (self._head + 1) % self._length
        if self._size < self._length:
            self._size += 1
        return self._size == self._length

    def fill(self, token: int) -> None:
        """Set every slot to `token` and mark the tape full."""

        self._buffer.fill(token)
        self._head = 0
        self._size = self._length

    def reset(self) -> None:
        self._head = 0
        self._size = 0

    def contents(self) -> tuple[int, ...]:
        """Return the current window, oldest token first."""

        if self._size < self._length:
            raise TapeNotReadyError(
                f"Tape holds {self._size} of {self._length} tokens; no full window yet."
            )
        if self._length == 0:
            return ()
        ordered = np.roll(self._buffer, -self._head)
        return tuple(int(token) for token in ordered)

    def __repr__(self) -> str:
        return f"Tape(length={self._length}, size={self._size})"


def iter_windows(tokens: Iterable[int], length: int) -> Iterator[tuple[int, ...]]:
    """Yield every full window of `length` tokens in an in-memory sequence."""

    tape = Tape(length)
    for token in tokens:
        if tape.update(int(token)):
            yield tape.contents()

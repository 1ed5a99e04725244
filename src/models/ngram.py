"""Dense-table n-gram language model with additive (Laplace) smoothing.

Counts for every `seq_len`-tuple of tokens live in one flat NumPy array of
`vocab_size ** seq_len` unsigned integers. A window is mapped to its cell by
`ravel_index`, which treats the window as a base-`vocab_size` number with the
last (predicted) token as the least significant digit. Training and inference
must agree on this convention: because the predicted token varies fastest,
the counts for every next token after a given context form one contiguous run
of `vocab_size` cells, starting at the offset of the context padded with 0.
"""

from __future__ import annotations

import logging
import math
from typing import Iterable, Sequence

import numpy as np
from numpy.typing import DTypeLike, NDArray

from src.config import DEFAULT_MAX_TABLE_BYTES, DEFAULT_SMOOTHING, DEFAULT_VOCAB_SIZE, NgramConfig
from src.exceptions import (
    CapacityExceededError,
    CountOverflowError,
    IndexOutOfRangeError,
    InvalidConfigurationError,
)


logger = logging.getLogger(__name__)


def ravel_index(index: Sequence[int], dim: int) -> int:
    """Convert an n-dimensional index into a flat row-major offset.

    Every axis has size `dim` and the last component varies fastest, i.e.
    `offset = sum(index[i] * dim ** (n - 1 - i))`.
    """

    offset = 0
    for ix in index:
        ix = int(ix)
        if ix < 0 or ix >= dim:
            raise IndexOutOfRangeError(f"Index component {ix} out of range [0, {dim}).")
        offset = offset * dim + ix
    return offset


def unravel_index(offset: int, n: int, dim: int) -> tuple[int, ...]:
    """Inverse of `ravel_index`: decompose `offset` into `n` base-`dim` digits."""

    offset = int(offset)
    if offset < 0 or offset >= dim**n:
        raise IndexOutOfRangeError(f"Offset {offset} out of range [0, {dim}**{n}).")
    digits = [0] * n
    for i in range(n - 1, -1, -1):
        offset, digits[i] = divmod(offset, dim)
    return tuple(digits)


class NgramModel:
    """Character n-gram model over a dense counts table.

    Parameters:
        vocab_size: Number of distinct tokens.
        seq_len: The n in n-gram (context tokens plus the predicted token).
        smoothing: Non-negative constant added to every count at inference.
        count_dtype: Unsigned integer dtype of the counts table.
        max_table_bytes: Upper bound on the size of the counts table.

    Counts only ever increase. Incrementing a cell that already holds the
    maximum value of `count_dtype` raises `CountOverflowError` instead of
    wrapping around.
    """

    def __init__(
        self,
        vocab_size: int = DEFAULT_VOCAB_SIZE,
        seq_len: int = 4,
        smoothing: float = DEFAULT_SMOOTHING,
        *,
        count_dtype: DTypeLike = np.uint64,
        max_table_bytes: int = DEFAULT_MAX_TABLE_BYTES,
    ) -> None:
        NgramConfig(
            vocab_size=vocab_size,
            seq_len=seq_len,
            smoothing=smoothing,
            max_table_bytes=max_table_bytes,
        ).validate()
        dtype = np.dtype(count_dtype)
        if dtype.kind != "u":
            raise InvalidConfigurationError(f"count_dtype must be an unsigned integer type, got {dtype}.")

        # compare in log2 first; the exact size of a huge table is too costly to build
        log2_bytes = seq_len * math.log2(vocab_size) + math.log2(dtype.itemsize)
        if log2_bytes > math.log2(max_table_bytes) + 1.0:
            raise CapacityExceededError(
                f"Counts table for vocab_size={vocab_size}, seq_len={seq_len} needs about "
                f"2**{log2_bytes:.1f} bytes, above the limit of {max_table_bytes} bytes."
            )
        num_counts = vocab_size**seq_len
        table_bytes = num_counts * dtype.itemsize
        if table_bytes > max_table_bytes:
            raise CapacityExceededError(
                f"Counts table for vocab_size={vocab_size}, seq_len={seq_len} needs "
                f"{table_bytes} bytes, above the limit of {max_table_bytes} bytes."
            )

        self.vocab_size = int(vocab_size)
        self.seq_len = int(seq_len)
        self.smoothing = float(smoothing)
        self.num_counts = num_counts
        self.counts: NDArray[np.unsignedinteger] = np.zeros(num_counts, dtype=dtype)
        self._count_max = int(np.iinfo(dtype).max)
        self._uniform = np.full(self.vocab_size, 1.0 / self.vocab_size, dtype=np.float64)

        logger.debug(
            "Allocated n-gram table: vocab_size=%d seq_len=%d cells=%d bytes=%d dtype=%s",
            self.vocab_size,
            self.seq_len,
            num_counts,
            table_bytes,
            dtype,
        )

    @classmethod
    def from_config(cls, config: NgramConfig, **kwargs) -> "NgramModel":
        return cls(
            vocab_size=config.vocab_size,
            seq_len=config.seq_len,
            smoothing=config.smoothing,
            max_table_bytes=config.max_table_bytes,
            **kwargs,
        )

    @property
    def smoothing(self) -> float:
        return self._smoothing

    @smoothing.setter
    def smoothing(self, value: float) -> None:
        # counts do not depend on smoothing, so it may change after training
        value = float(value)
        if not math.isfinite(value) or value < 0:
            raise InvalidConfigurationError("smoothing must be finite and non-negative.")
        self._smoothing = value

    def ravel(self, window: Sequence[int]) -> int:
        """Flat offset of a full window of `seq_len` tokens."""

        if len(window) != self.seq_len:
            raise ValueError(f"Expected sequence length {self.seq_len}, got {len(window)}")
        return ravel_index(window, self.vocab_size)

    def train(self, window: Sequence[int]) -> None:
        """Count one observed window (context followed by the predicted token)."""

        offset = self.ravel(window)
        if int(self.counts[offset]) >= self._count_max:
            raise CountOverflowError(
                f"Count for window {tuple(window)} is already at the {self.counts.dtype} maximum."
            )
        self.counts[offset] += 1

    def fit(self, windows: Iterable[Sequence[int]]) -> "NgramModel":
        """Train on every window of an iterable and return self."""

        num_windows = 0
        for window in windows:
            self.train(window)
            num_windows += 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Trained on %d windows (total count %d).", num_windows, self.total_count)
        return self

    def infer(self, context: Sequence[int]) -> NDArray[np.float64]:
        """Return the smoothed next-token distribution after `context`.

        `context` holds `seq_len - 1` tokens. If the row of counts plus
        smoothing sums to zero (no smoothing and an unseen context) the uniform
        distribution is returned.
        """

        if len(context) != self.seq_len - 1:
            raise ValueError(f"Expected context length {self.seq_len - 1}, got {len(context)}")
        padded = (*context, 0)
        offset = ravel_index(padded, self.vocab_size)
        row = self.counts[offset : offset + self.vocab_size].astype(np.float64)

        row_sum = float(row.sum()) + self.vocab_size * self.smoothing
        if row_sum == 0.0:
            return self._uniform.copy()
        return (row + self.smoothing) / row_sum

    __call__ = infer

    def count(self, window: Sequence[int]) -> int:
        return int(self.counts[self.ravel(window)])

    @property
    def total_count(self) -> int:
        # a uint64 sum is exact unless the total nears 2**64
        if float(self.counts.sum(dtype=np.float64)) < 2.0**63:
            return int(self.counts.sum(dtype=np.uint64))
        return int(self.counts.sum(dtype=object))

    def merge(self, other: "NgramModel") -> "NgramModel":
        """Add the counts of a model trained on another partition of the data.

        Count accumulation is commutative and associative, so models trained
        independently on disjoint text can be combined after the fact.
        """

        if (other.vocab_size, other.seq_len) != (self.vocab_size, self.seq_len):
            raise InvalidConfigurationError(
                f"Cannot merge a (vocab_size={other.vocab_size}, seq_len={other.seq_len}) model "
                f"into a (vocab_size={self.vocab_size}, seq_len={self.seq_len}) model."
            )
        headroom = self._count_max - self.counts.astype(np.uint64)
        if np.any(other.counts.astype(np.uint64) > headroom):
            raise CountOverflowError("Merging would overflow at least one count cell.")
        self.counts += other.counts.astype(self.counts.dtype)
        return self

    def reset(self) -> None:
        self.counts.fill(0)

    def __repr__(self) -> str:
        return (
            f"NgramModel(vocab_size={self.vocab_size}, seq_len={self.seq_len}, "
            f"smoothing={self.smoothing}, dtype={self.counts.dtype})"
        )

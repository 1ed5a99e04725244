"""Configuration surface for the character-level n-gram model."""

from __future__ import annotations

from dataclasses import dataclass
import math

from src.exceptions import InvalidConfigurationError


DEFAULT_VOCAB_SIZE = 27
DEFAULT_SMOOTHING = 0.1
DEFAULT_SEED = 1337
# 2 GiB of counts; a 27-symbol 6-gram with uint64 counts is ~3.1 GB.
DEFAULT_MAX_TABLE_BYTES = 2 * 1024**3


@dataclass(frozen=True)
class NgramConfig:
    """Hyperparameters recognized by every program embedding the model.

    Tuning notes:
    - `seq_len` is the n in n-gram: `seq_len - 1` context tokens plus the
      predicted token. Table size grows as `vocab_size ** seq_len`.
    - `smoothing` is added to every count before normalization. Zero is
      allowed and falls back to a uniform distribution for unseen contexts.
    - `seed` drives the xorshift* generator used for sampling and must not be
      zero modulo 2**64.
    """

    vocab_size: int = DEFAULT_VOCAB_SIZE
    seq_len: int = 4
    smoothing: float = DEFAULT_SMOOTHING
    seed: int = DEFAULT_SEED
    max_table_bytes: int = DEFAULT_MAX_TABLE_BYTES

    def validate(self) -> None:
        if isinstance(self.vocab_size, bool) or not isinstance(self.vocab_size, int):
            raise InvalidConfigurationError("vocab_size must be an integer.")
        if self.vocab_size <= 0:
            raise InvalidConfigurationError("vocab_size must be positive.")
        if isinstance(self.seq_len, bool) or not isinstance(self.seq_len, int):
            raise InvalidConfigurationError("seq_len must be an integer.")
        if self.seq_len < 1:
            raise InvalidConfigurationError("seq_len must be at least 1.")
        if not math.isfinite(float(self.smoothing)) or self.smoothing < 0:
            raise InvalidConfigurationError("smoothing must be finite and non-negative.")
        if not isinstance(self.seed, int) or self.seed % 2**64 == 0:
            raise InvalidConfigurationError("seed must be an integer that is non-zero modulo 2**64.")
        if self.max_table_bytes <= 0:
            raise InvalidConfigurationError("max_table_bytes must be positive.")

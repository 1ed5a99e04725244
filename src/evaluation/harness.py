"""Training and evaluation loops over text files.

The evaluation metric is the empirical cross-entropy of the model: for every
window, the negative log-likelihood of its last token given the preceding
`seq_len - 1` tokens, averaged over all windows of the file.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from pathlib import Path
from time import perf_counter
from typing import Iterable, Sequence

from src.data.dataloader import DataLoader
from src.models.ngram import NgramModel


logger = logging.getLogger(__name__)

_LN2 = math.log(2.0)


@dataclass(frozen=True)
class EvaluationResult:
    """Summary of an evaluation run."""

    num_windows: int
    total_nll: float
    loss: float
    perplexity: float
    bits_per_token: float
    elapsed_seconds: float
    windows_per_second: float


def train_file(model: NgramModel, path: str | Path) -> int:
    """Train `model` on every window of a text file; return the window count."""

    start = perf_counter()
    num_windows = 0
    with DataLoader(path, model.seq_len) as loader:
        for window in loader:
            model.train(window)
            num_windows += 1
    logger.info(
        "Trained seq_len=%d on %s: %d windows in %.3fs",
        model.seq_len,
        path,
        num_windows,
        perf_counter() - start,
    )
    return num_windows


def evaluate_windows(model: NgramModel, windows: Iterable[Sequence[int]]) -> EvaluationResult:
    """Evaluate `model` on full `seq_len` windows.

    A zero probability for an observed token (possible only with
    `smoothing == 0`) makes the loss infinite; this is reported, not raised.
    """

    start = perf_counter()
    total_nll = 0.0
    num_windows = 0
    for window in windows:
        if len(window) != model.seq_len:
            raise ValueError(f"Expected window length {model.seq_len}, got {len(window)}")
        probs = model.infer(window[:-1])
        prob = float(probs[int(window[-1])])
        total_nll += -math.log(prob) if prob > 0.0 else math.inf
        num_windows += 1

    elapsed_seconds = perf_counter() - start
    if num_windows:
        loss = total_nll / num_windows
        # math.exp overflows above ~709.78
        perplexity = math.exp(loss) if loss < 700.0 else math.inf
    else:
        loss = float("nan")
        perplexity = float("nan")
    if elapsed_seconds > 0:
        windows_per_second = num_windows / elapsed_seconds
    else:
        windows_per_second = float("inf") if num_windows > 0 else 0.0

    return EvaluationResult(
        num_windows=num_windows,
        total_nll=total_nll,
        loss=loss,
        perplexity=perplexity,
        bits_per_token=loss / _LN2,
        elapsed_seconds=elapsed_seconds,
        windows_per_second=windows_per_second,
    )


def evaluate_file(model: NgramModel, path: str | Path) -> EvaluationResult:
    """Evaluate `model` on every window of a text file."""

    with DataLoader(path, model.seq_len) as loader:
        result = evaluate_windows(model, loader)
    logger.info(
        "Evaluated seq_len=%d smoothing=%g on %s: loss=%.4f perplexity=%.4f (%d windows)",
        model.seq_len,
        model.smoothing,
        path,
        result.loss,
        result.perplexity,
        result.num_windows,
    )
    return result

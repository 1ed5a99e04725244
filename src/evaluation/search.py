"""Grid search over n-gram order and smoothing on a validation file."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from pathlib import Path
from typing import Sequence

from src.config import DEFAULT_MAX_TABLE_BYTES, DEFAULT_VOCAB_SIZE
from src.evaluation.harness import evaluate_file, train_file
from src.models.ngram import NgramModel


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchRow:
    """Validation result for one `(seq_len, smoothing)` combination."""

    seq_len: int
    smoothing: float
    train_windows: int
    val_windows: int
    val_loss: float
    val_perplexity: float


@dataclass(frozen=True)
class SearchReport:
    """All rows of a grid search and the best (lowest validation loss) row."""

    train_path: str
    val_path: str
    vocab_size: int
    rows: list[SearchRow]
    best: SearchRow


def grid_search(
    train_path: str | Path,
    val_path: str | Path,
    *,
    seq_lens: Sequence[int],
    smoothings: Sequence[float],
    vocab_size: int = DEFAULT_VOCAB_SIZE,
    max_table_bytes: int = DEFAULT_MAX_TABLE_BYTES,
) -> SearchReport:
    """Train one model per `seq_len` and score every smoothing on validation data.

    Counts do not depend on the smoothing constant, so each order is trained
    once and only the inference-time `smoothing` is varied.
    """

    if not seq_lens:
        raise ValueError("seq_lens must not be empty.")
    if not smoothings:
        raise ValueError("smoothings must not be empty.")

    rows: list[SearchRow] = []
    for seq_len in seq_lens:
        model = NgramModel(
            vocab_size=vocab_size,
            seq_len=seq_len,
            smoothing=smoothings[0],
            max_table_bytes=max_table_bytes,
        )
        train_windows = train_file(model, train_path)
        for smoothing in smoothings:
            model.smoothing = smoothing
            result = evaluate_file(model, val_path)
            row = SearchRow(
                seq_len=int(seq_len),
                smoothing=float(smoothing),
                train_windows=train_windows,
                val_windows=result.num_windows,
                val_loss=result.loss,
                val_perplexity=result.perplexity,
            )
            logger.info(
                "seq_len=%d smoothing=%g val_loss=%.4f val_perplexity=%.4f",
                row.seq_len,
                row.smoothing,
                row.val_loss,
                row.val_perplexity,
            )
            rows.append(row)

    scored = [row for row in rows if not math.isnan(row.val_loss)]
    if not scored:
        raise ValueError(f"Validation file {val_path} yielded no windows to score.")
    best = min(scored, key=lambda row: row.val_loss)

    return SearchReport(
        train_path=str(Path(train_path)),
        val_path=str(Path(val_path)),
        vocab_size=int(vocab_size),
        rows=rows,
        best=best,
    )


def markdown_table(rows: Sequence[SearchRow]) -> str:
    headers = ["seq_len", "smoothing", "val_loss", "val_perplexity", "train_windows", "val_windows"]
    table_rows = [
        [
            str(row.seq_len),
            f"{row.smoothing:g}",
            f"{row.val_loss:.4f}",
            f"{row.val_perplexity:.4f}",
            str(row.train_windows),
            str(row.val_windows),
        ]
        for row in rows
    ]
    widths = [len(h) for h in headers]
    for r in table_rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))

    def fmt(cells: list[str]) -> str:
        return "| " + " | ".join(cells[i].ljust(widths[i]) for i in range(len(cells))) + " |"

    lines = [fmt(headers), "|-" + "-|-".join("-" * w for w in widths) + "-|"]
    lines.extend(fmt(r) for r in table_rows)
    return "\n".join(lines)

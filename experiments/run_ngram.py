"""Train a character n-gram model, sample from it and report test loss.

Usage (from repo root):
    python -m experiments.run_ngram --train-path data/train.txt --val-path data/val.txt --test-path data/test.txt
    python -m experiments.run_ngram --train-path data/train.txt --test-path data/test.txt --seq-len 4 --smoothing 0.03

Without `--seq-len`/`--smoothing` the order and smoothing are chosen by grid
search on the validation file, then the best model is trained and scored on
the test file.
"""

from __future__ import annotations

import argparse
import logging
import sys

from src.config import DEFAULT_SEED, DEFAULT_VOCAB_SIZE, NgramConfig
from src.evaluation.harness import EvaluationResult, evaluate_file, train_file
from src.evaluation.search import grid_search, markdown_table
from src.exceptions import NgramError
from src.models.ngram import NgramModel
from src.sampling.generate import generate_text
from src.sampling.rng import XorShiftRNG


logger = logging.getLogger("experiments.run_ngram")


def _parse_int_list(text: str) -> list[int]:
    return [int(item) for item in text.split(",") if item.strip()]


def _parse_float_list(text: str) -> list[float]:
    return [float(item) for item in text.split(",") if item.strip()]


def _print_summary(config: NgramConfig, train_windows: int, result: EvaluationResult) -> None:
    print("N-gram Evaluation Summary")
    print(f"  seq_len: {config.seq_len}")
    print(f"  smoothing: {config.smoothing}")
    print(f"  vocab_size: {config.vocab_size}")
    print(f"  train_windows: {train_windows}")
    print(f"  test_windows: {result.num_windows}")
    print(f"  test_loss: {result.loss:.6f}")
    print(f"  test_perplexity: {result.perplexity:.6f}")
    print(f"  bits_per_token: {result.bits_per_token:.6f}")
    print(f"  elapsed_seconds: {result.elapsed_seconds:.6f}")


def run(args: argparse.Namespace) -> None:
    if (args.seq_len is None) != (args.smoothing is None):
        raise ValueError("--seq-len and --smoothing must be given together.")

    if args.seq_len is not None:
        seq_len, smoothing = args.seq_len, args.smoothing
    else:
        if args.val_path is None:
            raise ValueError("--val-path is required when searching hyperparameters.")
        report = grid_search(
            args.train_path,
            args.val_path,
            seq_lens=_parse_int_list(args.seq_lens),
            smoothings=_parse_float_list(args.smoothings),
            vocab_size=args.vocab_size,
        )
        print("# Hyperparameter Search")
        print()
        print(markdown_table(report.rows))
        print()
        seq_len, smoothing = report.best.seq_len, report.best.smoothing
        print(f"Best: seq_len={seq_len} smoothing={smoothing:g} val_loss={report.best.val_loss:.4f}")
        print()

    config = NgramConfig(
        vocab_size=args.vocab_size,
        seq_len=seq_len,
        smoothing=smoothing,
        seed=args.seed,
    )
    config.validate()

    model = NgramModel.from_config(config)
    train_windows = train_file(model, args.train_path)

    rng = XorShiftRNG(config.seed)
    sample = generate_text(model, rng, args.num_chars, prompt=args.prompt)
    print("Sample:")
    print(args.prompt + sample)
    print()

    if args.test_path is not None:
        result = evaluate_file(model, args.test_path)
        _print_summary(config, train_windows, result)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Train and evaluate a character n-gram model.")
    parser.add_argument("--train-path", type=str, default="data/train.txt")
    parser.add_argument("--val-path", type=str, default=None)
    parser.add_argument("--test-path", type=str, default=None)
    parser.add_argument("--vocab-size", type=int, default=DEFAULT_VOCAB_SIZE)
    parser.add_argument("--seq-len", type=int, default=None)
    parser.add_argument("--smoothing", type=float, default=None)
    parser.add_argument("--seq-lens", type=str, default="3,4,5")
    parser.add_argument("--smoothings", type=str, default="0.03,0.1,0.3,1.0")
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    parser.add_argument("--num-chars", type=int, default=200)
    parser.add_argument("--prompt", type=str, default="")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        run(args)
    except (NgramError, ValueError) as exc:
        logger.debug("Run failed", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Split a one-item-per-line corpus into train/val/test text files.

Usage (from repo root):
    curl -O https://raw.githubusercontent.com/karpathy/makemore/master/names.txt
    python -m experiments.split_corpus --input names.txt --output-dir data
"""

from __future__ import annotations

import argparse
import sys

from src.data.splits import write_splits
from src.exceptions import NgramError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Shuffle a corpus into train/val/test splits.")
    parser.add_argument("--input", type=str, required=True)
    parser.add_argument("--output-dir", type=str, default="data")
    parser.add_argument("--num-val", type=int, default=1000)
    parser.add_argument("--num-test", type=int, default=1000)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args(argv)

    try:
        split = write_splits(
            args.input,
            args.output_dir,
            num_val=args.num_val,
            num_test=args.num_test,
            seed=args.seed,
        )
    except (NgramError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print("Released corpus splits")
    print(f"  train lines: {len(split.train)}")
    print(f"  val lines:   {len(split.val)}")
    print(f"  test lines:  {len(split.test)}")
    print(f"  saved to: {args.output_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Shuffle a line-oriented corpus (e.g. one name per line) into train/val/test files."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from src.data.dataloader import open_text


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CorpusSplit:
    """Lines assigned to each split, newline-terminated."""

    train: list[str]
    val: list[str]
    test: list[str]


def split_lines(
    lines: Sequence[str],
    *,
    num_val: int,
    num_test: int,
    seed: int = 42,
) -> CorpusSplit:
    """Shuffle `lines` with a seeded generator: first `num_test` are test, next `num_val` val."""

    if num_val < 0 or num_test < 0:
        raise ValueError("num_val and num_test must be non-negative.")
    if num_val + num_test >= len(lines):
        raise ValueError(
            f"Cannot hold out {num_val} + {num_test} lines from a corpus of {len(lines)}; "
            "nothing would be left for training."
        )

    normalized = [line if line.endswith("\n") else line + "\n" for line in lines]
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(normalized))

    test = [normalized[i] for i in order[:num_test]]
    val = [normalized[i] for i in order[num_test : num_test + num_val]]
    train = [normalized[i] for i in order[num_test + num_val :]]
    return CorpusSplit(train=train, val=val, test=test)


def write_splits(
    input_path: str | Path,
    output_dir: str | Path,
    *,
    num_val: int = 1000,
    num_test: int = 1000,
    seed: int = 42,
) -> CorpusSplit:
    """Split a corpus file and write `train.txt`, `val.txt`, `test.txt` and `metadata.json`."""

    with open_text(input_path) as fh:
        lines = [line for line in fh.read().splitlines() if line]
    split = split_lines(lines, num_val=num_val, num_test=num_test, seed=seed)

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    for name, part in (("train", split.train), ("val", split.val), ("test", split.test)):
        (out / f"{name}.txt").write_text("".join(part), encoding="ascii")

    metadata = {
        "source": str(Path(input_path)),
        "seed": seed,
        "train_lines": len(split.train),
        "val_lines": len(split.val),
        "test_lines": len(split.test),
    }
    with (out / "metadata.json").open("w", encoding="utf-8") as fh:
        json.dump(metadata, fh, indent=2)

    logger.info(
        "Split %s into train/val/test = %d/%d/%d lines under %s",
        input_path,
        len(split.train),
        len(split.val),
        len(split.test),
        out,
    )
    return split

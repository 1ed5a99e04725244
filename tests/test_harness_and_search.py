"""Tests for file training, evaluation and the hyperparameter grid search."""

from __future__ import annotations

import math
from pathlib import Path

import numpy as np
import pytest

from src.evaluation.harness import evaluate_file, evaluate_windows, train_file
from src.evaluation.search import grid_search, markdown_table
from src.exceptions import FileOpenError
from src.models.ngram import NgramModel
from src.text.tape import iter_windows
from src.text.tokenizer import encode_text


NAMES = "emma\nolivia\nava\nisabella\nsophia\ncharlotte\nmia\namelia\nharper\nevelyn\n"


@pytest.fixture
def corpus(tmp_path: Path) -> tuple[Path, Path]:
    train_path = tmp_path / "train.txt"
    val_path = tmp_path / "val.txt"
    train_path.write_text(NAMES * 20, encoding="ascii")
    val_path.write_text("emma\nava\nmia\n", encoding="ascii")
    return train_path, val_path


def test_train_file_counts_every_window(corpus: tuple[Path, Path]) -> None:
    train_path, _ = corpus
    model = NgramModel(vocab_size=27, seq_len=3)
    num_windows = train_file(model, train_path)
    assert num_windows == len(NAMES) * 20 - 2
    assert model.total_count == num_windows


def test_evaluate_windows_matches_manual_negative_log_likelihood() -> None:
    model = NgramModel(vocab_size=27, seq_len=2, smoothing=0.1)
    model.fit(iter_windows(encode_text("ab\nab\nab\n"), 2))
    windows = list(iter_windows(encode_text("ab\n"), 2))

    expected = 0.0
    for window in windows:
        expected -= math.log(float(model.infer(window[:-1])[window[-1]]))
    expected /= len(windows)

    result = evaluate_windows(model, windows)
    assert result.num_windows == 2
    assert result.loss == pytest.approx(expected)
    assert result.perplexity == pytest.approx(math.exp(expected))
    assert result.bits_per_token == pytest.approx(expected / math.log(2.0))


def test_untrained_model_scores_uniform_loss() -> None:
    model = NgramModel(vocab_size=27, seq_len=2, smoothing=0.0)
    result = evaluate_windows(model, iter_windows(encode_text("abc\n"), 2))
    assert result.loss == pytest.approx(math.log(27.0))
    assert result.perplexity == pytest.approx(27.0)


def test_zero_probability_yields_infinite_loss() -> None:
    model = NgramModel(vocab_size=27, seq_len=2, smoothing=0.0)
    model.train([1, 2])
    result = evaluate_windows(model, [(1, 3)])
    assert math.isinf(result.loss)
    assert math.isinf(result.perplexity)


def test_empty_input_reports_nan(tmp_path: Path) -> None:
    path = tmp_path / "empty.txt"
    path.write_text("", encoding="ascii")
    result = evaluate_file(NgramModel(vocab_size=27, seq_len=2), path)
    assert result.num_windows == 0
    assert math.isnan(result.loss)
    assert math.isnan(result.perplexity)


def test_evaluate_file_matches_in_memory_evaluation(corpus: tuple[Path, Path]) -> None:
    train_path, val_path = corpus
    model = NgramModel(vocab_size=27, seq_len=3, smoothing=0.1)
    train_file(model, train_path)

    from_file = evaluate_file(model, val_path)
    in_memory = evaluate_windows(model, iter_windows(encode_text(val_path.read_text()), 3))
    assert from_file.num_windows == in_memory.num_windows
    assert from_file.loss == pytest.approx(in_memory.loss, abs=1e-12)


def test_trained_model_beats_uniform_on_validation(corpus: tuple[Path, Path]) -> None:
    train_path, val_path = corpus
    model = NgramModel(vocab_size=27, seq_len=3, smoothing=0.1)
    train_file(model, train_path)
    assert evaluate_file(model, val_path).loss < math.log(27.0)


def test_grid_search_reports_every_combination(corpus: tuple[Path, Path]) -> None:
    train_path, val_path = corpus
    report = grid_search(train_path, val_path, seq_lens=[1, 2, 3], smoothings=[0.01, 0.1, 1.0])

    assert len(report.rows) == 9
    assert {(row.seq_len, row.smoothing) for row in report.rows} == {
        (n, s) for n in (1, 2, 3) for s in (0.01, 0.1, 1.0)
    }
    assert report.best.val_loss == min(row.val_loss for row in report.rows)
    # validation names all appear in training data, so context helps
    assert report.best.seq_len > 1

    table = markdown_table(report.rows)
    assert table.splitlines()[0].startswith("| seq_len")
    assert len(table.splitlines()) == 11


def test_grid_search_smoothing_does_not_change_counts(corpus: tuple[Path, Path]) -> None:
    train_path, val_path = corpus
    report = grid_search(train_path, val_path, seq_lens=[2], smoothings=[0.1, 1.0])
    single = NgramModel(vocab_size=27, seq_len=2, smoothing=1.0)
    train_file(single, train_path)
    row = [r for r in report.rows if r.smoothing == 1.0][0]
    assert row.val_loss == pytest.approx(evaluate_file(single, val_path).loss)


def test_grid_search_argument_validation(corpus: tuple[Path, Path], tmp_path: Path) -> None:
    train_path, val_path = corpus
    with pytest.raises(ValueError):
        grid_search(train_path, val_path, seq_lens=[], smoothings=[0.1])
    with pytest.raises(ValueError):
        grid_search(train_path, val_path, seq_lens=[2], smoothings=[])
    with pytest.raises(FileOpenError):
        grid_search(tmp_path / "missing.txt", val_path, seq_lens=[2], smoothings=[0.1])


def test_merged_partition_models_evaluate_like_single_model(tmp_path: Path) -> None:
    left_path = tmp_path / "left.txt"
    right_path = tmp_path / "right.txt"
    left_path.write_text("emma\nolivia\n", encoding="ascii")
    right_path.write_text("ava\nmia\n", encoding="ascii")

    left = NgramModel(vocab_size=27, seq_len=2)
    right = NgramModel(vocab_size=27, seq_len=2)
    train_file(left, left_path)
    train_file(right, right_path)
    left.merge(right)

    both = NgramModel(vocab_size=27, seq_len=2)
    both.fit(iter_windows(encode_text("emma\nolivia\n"), 2))
    both.fit(iter_windows(encode_text("ava\nmia\n"), 2))
    np.testing.assert_array_equal(left.counts, both.counts)

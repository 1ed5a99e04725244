"""Counting n-gram language models."""

from src.models.ngram import NgramModel, ravel_index, unravel_index

__all__ = [
    "NgramModel",
    "ravel_index",
    "unravel_index",
]

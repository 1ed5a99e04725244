"""Tokenizer for the closed 27-symbol alphabet.

Characters `a..z` map to tokens `1..26` and the newline, which doubles as the
end-of-text / sentence-boundary marker, maps to token `0`.
"""

from __future__ import annotations

import operator
from typing import Iterable

from src.exceptions import InvalidCharacterError, InvalidTokenError


VOCAB_SIZE = 27
EOT_TOKEN = 0
EOT_CHAR = "\n"


def encode(char: str) -> int:
    """Return the token id of a single character."""

    if char == EOT_CHAR:
        return EOT_TOKEN
    if isinstance(char, str) and len(char) == 1 and "a" <= char <= "z":
        return ord(char) - ord("a") + 1
    raise InvalidCharacterError(f"Character {char!r} is not in the a-z + newline alphabet.")


def decode(token: int) -> str:
    """Return the character of a token id."""

    if isinstance(token, bool):
        raise InvalidTokenError(f"Token {token!r} is not an integer.")
    try:
        # accepts numpy integer scalars as well as int
        token = operator.index(token)
    except TypeError:
        raise InvalidTokenError(f"Token {token!r} is not an integer.") from None
    if token < 0 or token >= VOCAB_SIZE:
        raise InvalidTokenError(f"Token {token} out of range [0, {VOCAB_SIZE}).")
    if token == EOT_TOKEN:
        return EOT_CHAR
    return chr(ord("a") + token - 1)


def encode_text(text: str) -> list[int]:
    return [encode(char) for char in text]


def decode_tokens(tokens: Iterable[int]) -> str:
    return "".join(decode(token) for token in tokens)

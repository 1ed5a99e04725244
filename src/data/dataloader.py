"""Stream overlapping token windows out of a plain text file.

The loader reads the file in binary chunks, decodes each chunk as ASCII, then
encodes every character and pushes it onto a `Tape`. Every time the tape is
full the current window is yielded. Iteration is lazy, finite and
forward-only; to start over, create a new loader.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Iterator, TextIO

from src.exceptions import FileOpenError, InvalidCharacterError
from src.text.tape import Tape
from src.text.tokenizer import encode


logger = logging.getLogger(__name__)

_READ_CHUNK_BYTES = 64 * 1024


def open_text(path: str | Path) -> TextIO:
    """Open `path` for reading as ASCII text, raising `FileOpenError` on failure."""

    try:
        return open(path, "r", encoding="ascii", newline="")
    except OSError as exc:
        raise FileOpenError(str(path), exc.strerror or str(exc)) from exc


def open_binary(path: str | Path) -> BinaryIO:
    """Open `path` for reading as bytes, raising `FileOpenError` on failure."""

    try:
        return open(path, "rb")
    except OSError as exc:
        raise FileOpenError(str(path), exc.strerror or str(exc)) from exc


class DataLoader:
    """Iterator over every full `seq_len` window of a text file.

    Usage:
        with DataLoader("data/train.txt", seq_len=4) as loader:
            for window in loader:
                model.train(window)
    """

    def __init__(self, path: str | Path, seq_len: int) -> None:
        self.path = Path(path)
        self.seq_len = seq_len
        self.tape = Tape(seq_len)
        self._file: BinaryIO | None = open_binary(self.path)
        self._chunk = ""
        self._chunk_pos = 0
        # raised once the valid prefix of a chunk with a non-ASCII byte is consumed
        self._pending_error: InvalidCharacterError | None = None
        # 1-based position of the next character, for error messages
        self._line = 1
        self._column = 1
        self.num_windows = 0
        logger.debug("Opened %s with seq_len=%d", self.path, seq_len)

    def __enter__(self) -> "DataLoader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._file is None

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            logger.debug("Closed %s after %d windows", self.path, self.num_windows)

    def __iter__(self) -> Iterator[tuple[int, ...]]:
        return self

    def __next__(self) -> tuple[int, ...]:
        """Return the next full window; `StopIteration` marks end of stream."""

        if self._file is None:
            raise ValueError(f"DataLoader for {self.path} is closed.")
        while True:
            char = self._read_char()
            if char is None:
                raise StopIteration
            try:
                token = encode(char)
            except InvalidCharacterError:
                raise InvalidCharacterError(
                    f"{self.path}:{self._line}:{self._column}: character {char!r} is not in "
                    "the a-z + newline alphabet."
                ) from None
            self._advance_position(char)
            if self.tape.update(token):
                self.num_windows += 1
                return self.tape.contents()

    def _read_char(self) -> str | None:
        if self._chunk_pos >= len(self._chunk):
            if self._pending_error is not None:
                raise self._pending_error
            if self._file is None:
                raise ValueError(f"DataLoader for {self.path} is closed.")
            raw = self._file.read(_READ_CHUNK_BYTES)
            try:
                self._chunk = raw.decode("ascii")
            except UnicodeDecodeError as exc:
                # keep the valid prefix so earlier windows are still produced in order
                prefix = raw[: exc.start]
                self._chunk = prefix.decode("ascii")
                self._pending_error = self._non_ascii_error(prefix, raw[exc.start : exc.start + 1])
            self._chunk_pos = 0
            if not self._chunk:
                if self._pending_error is not None:
                    raise self._pending_error
                return None
        char = self._chunk[self._chunk_pos]
        self._chunk_pos += 1
        return char

    def _non_ascii_error(self, prefix: bytes, bad: bytes) -> InvalidCharacterError:
        line = self._line + prefix.count(b"\n")
        last_newline = prefix.rfind(b"\n")
        if last_newline >= 0:
            column = len(prefix) - last_newline
        else:
            column = self._column + len(prefix)
        return InvalidCharacterError(
            f"{self.path}:{line}:{column}: non-ASCII byte {bad!r} is not in the a-z + newline alphabet."
        )

    def _advance_position(self, char: str) -> None:
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

"""Autoregressive text generation from a trained n-gram model."""

from __future__ import annotations

import logging

from src.models.ngram import NgramModel
from src.sampling.rng import XorShiftRNG, sample_discrete
from src.text.tape import Tape
from src.text.tokenizer import EOT_TOKEN, decode_tokens, encode_text


logger = logging.getLogger(__name__)


def generate_tokens(
    model: NgramModel,
    rng: XorShiftRNG,
    num_tokens: int,
    *,
    prompt_tokens: list[int] | None = None,
) -> list[int]:
    """Sample `num_tokens` tokens, starting from an all-EOT context.

    The context tape starts filled with end-of-text tokens, as if generation
    began right after a sentence boundary; `prompt_tokens` are then pushed
    through it before the first draw.
    """

    if num_tokens < 0:
        raise ValueError("num_tokens must be non-negative.")
    tape = Tape(model.seq_len - 1)
    tape.fill(EOT_TOKEN)
    for token in prompt_tokens or ():
        tape.update(token)

    out: list[int] = []
    for _ in range(num_tokens):
        probs = model.infer(tape.contents())
        token = sample_discrete(probs, rng.next_f32())
        tape.update(token)
        out.append(token)
    return out


def generate_text(
    model: NgramModel,
    rng: XorShiftRNG,
    num_chars: int,
    *,
    prompt: str = "",
) -> str:
    """Sample `num_chars` characters, continuing `prompt` if one is given."""

    prompt_tokens = encode_text(prompt)
    tokens = generate_tokens(model, rng, num_chars, prompt_tokens=prompt_tokens)
    logger.debug("Generated %d tokens with seq_len=%d", len(tokens), model.seq_len)
    return decode_tokens(tokens)

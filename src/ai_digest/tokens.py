from __future__ import annotations

from collections.abc import Callable
from functools import cache

import tiktoken

from ai_digest.logging import get_logger

TOKEN_MODEL = "gpt-4o"

TokenEstimator = Callable[[str], int]


@cache
def get_encoding(model: str = TOKEN_MODEL) -> tiktoken.Encoding | None:
    """Load the tokenizer of `model` once per process.

    A failed load (unknown model, BPE file not downloadable) is logged once and
    cached as well, so later estimates do not retry it.

    Args:
        model (str): model whose encoding is wanted

    Returns:
        tiktoken.Encoding | None: the encoding, or None if it cannot be loaded
    """
    try:
        return tiktoken.encoding_for_model(model)
    except Exception as e:  # noqa: BLE001
        get_logger().error("tokenizer_unavailable", model=model, error=str(e))
        return None


def estimate_token_count(text: str) -> int:
    """Estimate the number of tokens of `text` with the GPT-4o tokenizer.

    Special-token markers found in source files are encoded as plain text.

    Args:
        text (str): the text to measure

    Returns:
        int: the token count, or 0 if the tokenizer is unavailable
    """
    encoding = get_encoding()
    if encoding is None:
        return 0
    return len(encoding.encode(text, disallowed_special=()))

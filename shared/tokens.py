"""
Token counting for context budgeting.

Downstream context assembly packs fused results into a prompt budget,
so the service reports token counts alongside each result.
"""

from functools import lru_cache

import tiktoken


@lru_cache()
def _encoding() -> tiktoken.Encoding:
    return tiktoken.get_encoding("cl100k_base")


def count_tokens(text: str) -> int:
    """Count tokens in text."""
    return len(_encoding().encode(text))

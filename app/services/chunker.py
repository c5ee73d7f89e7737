# =============================================================================
# Token-Window Chunker — tiktoken
# =============================================================================
#
# Splits submission text into overlapping token windows for question
# extraction. Each window is sent to the LLM separately and all windows
# are processed concurrently.
#
# DESIGN DECISION: Token-based windows (not character-based). The
# extraction prompt plus one window must fit the model's context, and
# token counts are what the model limit is expressed in.
#
# DESIGN DECISION: Overlap. A question that straddles a window boundary
# appears whole in at least one window as long as it is shorter than the
# overlap. Duplicates are removed downstream by question number.
#
# ALGORITHM:
# 1. Encode the full text with tiktoken (cl100k_base)
# 2. Slide a window of chunk_size tokens, stepping chunk_size - overlap
# 3. Decode each window back to text
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass

import tiktoken

logger = logging.getLogger(__name__)


@dataclass
class TextWindow:
    content: str
    index: int        # 0-indexed position in the text
    token_count: int


# ---------------------------------------------------------------------------
# Tiktoken Encoder — Cached Singleton
# ---------------------------------------------------------------------------
# Loading the encoder reads a ~1.7MB BPE file; it is loaded once.
# ---------------------------------------------------------------------------

_encoder: tiktoken.Encoding | None = None


def _get_encoder() -> tiktoken.Encoding:
    """Lazily initialize and cache the tiktoken encoder."""
    global _encoder
    if _encoder is None:
        _encoder = tiktoken.get_encoding("cl100k_base")
    return _encoder


def split_text_windows(
    text: str,
    chunk_size: int = 750,
    chunk_overlap: int = 200,
) -> list[TextWindow]:
    """
    Split text into overlapping token windows.

    Args:
        text: Full text to split.
        chunk_size: Maximum tokens per window.
        chunk_overlap: Tokens shared by consecutive windows.

    Returns:
        Windows in text order. Empty list for blank text.
    """
    encoder = _get_encoder()
    tokens = encoder.encode(text)
    total_tokens = len(tokens)

    if not text.strip() or total_tokens == 0:
        return []

    windows: list[TextWindow] = []
    step = max(chunk_size - chunk_overlap, 1)

    for start in range(0, total_tokens, step):
        end = min(start + chunk_size, total_tokens)
        window_tokens = tokens[start:end]

        content = encoder.decode(window_tokens).strip()
        if content:
            windows.append(TextWindow(
                content=content,
                index=len(windows),
                token_count=len(window_tokens),
            ))

        if end >= total_tokens:
            break

    logger.info(
        "Split %d tokens into %d windows (size=%d, overlap=%d)",
        total_tokens, len(windows), chunk_size, chunk_overlap,
    )
    return windows

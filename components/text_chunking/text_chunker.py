"""Character-based text chunking with sentence-boundary awareness."""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from rag_indexer.config import ChunkingConfig

logger = logging.getLogger(__name__)

SENTENCE_ENDERS = ".?!"


class Chunk(BaseModel):
    """A contiguous slice of a longer text."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Chunk text, trimmed of outer whitespace")
    index: int = Field(..., ge=0, description="Zero-based position among chunks")
    start_offset: int = Field(
        ..., ge=0, description="Start of the untrimmed window in the source text"
    )
    end_offset: int = Field(
        ..., description="End (exclusive) of the untrimmed window in the source text"
    )

    @model_validator(mode="after")
    def _check_offsets(self) -> "Chunk":
        if self.end_offset <= self.start_offset:
            raise ValueError("end_offset must be greater than start_offset")
        return self


class TextChunker:
    """
    Splits text into overlapping chunks of at most ``max_chunk_size``
    characters, preferring to break at paragraph or sentence boundaries so
    that no sentence is cut mid-way when a boundary is close enough.
    """

    def __init__(self, options: Optional[ChunkingConfig] = None):
        self.options = options or ChunkingConfig()

    def chunk(self, text: Optional[str]) -> List[Chunk]:
        """Split ``text`` into chunks.

        Raises:
            ValueError: If the text is None, empty or whitespace only.
        """
        if text is None or not text.strip():
            raise ValueError("Text is required and cannot be empty.")

        max_size = self.options.max_chunk_size
        overlap = self.options.overlap
        text_length = len(text)

        if text_length <= max_size:
            return [Chunk(text=text, index=0, start_offset=0, end_offset=text_length)]

        chunks: List[Chunk] = []
        start = 0

        while start < text_length:
            length = min(max_size, text_length - start)
            reaches_end = start + length >= text_length

            if not reaches_end:
                length = _find_break(text, start, length)

            chunk_text = text[start : start + length].strip()
            if chunk_text:
                chunks.append(
                    Chunk(
                        text=chunk_text,
                        index=len(chunks),
                        start_offset=start,
                        end_offset=start + length,
                    )
                )

            # A window that reaches the end is the last one; no overlap-only tail
            if reaches_end:
                break

            # Repeat the last `overlap` characters at the start of the next
            # window; fall back to a full step when that would not advance.
            advance = length - overlap
            if advance < 1:
                advance = length
            start += advance

        logger.debug(
            f"Split {text_length} characters into {len(chunks)} chunks "
            f"(max={max_size}, overlap={overlap})"
        )
        return chunks


def _find_break(text: str, start: int, length: int) -> int:
    """
    Scan backwards from the end of the window ``[start, start + length)`` for a
    break point in its back half and return the adjusted window length.

    Candidate positions ``p`` satisfy ``start + length // 2 <= p < start + length``
    for every kind of boundary.
    """
    end = start + length
    search_floor = start + length // 2

    # Paragraph breaks first, keeping the newline in the chunk.
    newline_pos = text.rfind("\n", search_floor, end)
    if newline_pos != -1:
        return newline_pos - start + 1

    # Then sentence enders followed by whitespace, keeping the punctuation.
    for i in range(end - 1, search_floor - 1, -1):
        if (
            text[i] in SENTENCE_ENDERS
            and i + 1 < len(text)
            and text[i + 1].isspace()
        ):
            return i - start + 1

    # Last resort: any whitespace, cutting just before it.
    for i in range(end - 1, max(search_floor, start + 1) - 1, -1):
        if text[i].isspace():
            return i - start

    return length


def chunk_text(text: str, max_chunk_size: int = 2000, overlap: int = 200) -> List[Chunk]:
    """Convenience wrapper around :class:`TextChunker`."""
    options = ChunkingConfig(max_chunk_size=max_chunk_size, overlap=overlap)
    return TextChunker(options).chunk(text)

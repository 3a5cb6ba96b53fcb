"""Text chunking component."""

from .text_chunker import Chunk, TextChunker, chunk_text

__all__ = ["Chunk", "TextChunker", "chunk_text"]

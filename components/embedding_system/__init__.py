"""Embedding model construction."""

from .embedding_factory import (
    EmbeddingProvider,
    OpenAIEndpointEmbedding,
    SentenceTransformersEmbedding,
    create_embedding_model,
)

__all__ = [
    "EmbeddingProvider",
    "OpenAIEndpointEmbedding",
    "SentenceTransformersEmbedding",
    "create_embedding_model",
]

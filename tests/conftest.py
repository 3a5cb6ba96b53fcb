"""Test fixtures and configuration."""

import hashlib
import logging
import math
import re
import sys
from typing import List
from unittest.mock import AsyncMock

import pytest
from components.failure_indexing import FailureIndexer, FailureSearchService
from components.indexing_service import DocumentIndexer
from components.retrieval_service import RetrievalService
from components.text_chunking import TextChunker
from components.vector_store import InMemoryVectorStore
from rag_indexer.config import ChunkingConfig, Config, StorageConfig

TEST_DIMENSION = 32


# --- This function enables logging visibility during tests ---
def pytest_configure(config):
    """Configure logging to be visible for all tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stdout,
    )


# -----------------------------------------------------------


class HashingEmbedding:
    """Bag-of-words embedding: texts sharing words get similar vectors."""

    def __init__(self, dimension: int = TEST_DIMENSION):
        self.dimension = dimension
        self.calls: List[str] = []

    def _embed(self, text: str) -> List[float]:
        vector = [0.0] * self.dimension
        for word in re.findall(r"\w+", text.lower()):
            digest = hashlib.sha256(word.encode("utf-8")).digest()
            vector[digest[0] % self.dimension] += 1.0
        norm = math.sqrt(sum(v * v for v in vector))
        if norm == 0.0:
            vector[0] = 1.0
            return vector
        return [v / norm for v in vector]

    def get_text_embedding(self, text: str) -> List[float]:
        self.calls.append(text)
        return self._embed(text)

    def get_query_embedding(self, query: str) -> List[float]:
        return self._embed(query)


@pytest.fixture
def embedding_model() -> HashingEmbedding:
    return HashingEmbedding()


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration backed by in-memory storage."""
    config = Config(
        storage=StorageConfig(backend="memory", bootstrap_attempts=1),
        chunking=ChunkingConfig(max_chunk_size=100, overlap=10),
    )
    config.embedding_model.dimension = TEST_DIMENSION
    return config


@pytest.fixture
def document_store() -> InMemoryVectorStore:
    store = InMemoryVectorStore("documents", TEST_DIMENSION)
    store.ensure_collection()
    return store


@pytest.fixture
def failure_store() -> InMemoryVectorStore:
    store = InMemoryVectorStore("failed_test_results", TEST_DIMENSION)
    store.ensure_collection()
    return store


@pytest.fixture
def indexer(test_config, document_store, embedding_model) -> DocumentIndexer:
    return DocumentIndexer(
        vector_store=document_store,
        embedding_model=embedding_model,
        chunker=TextChunker(test_config.chunking),
    )


@pytest.fixture
def mock_generator() -> AsyncMock:
    generator = AsyncMock()
    generator.generate.return_value = "Generated answer."
    return generator


@pytest.fixture
def retrieval(test_config, document_store, embedding_model, mock_generator):
    return RetrievalService(
        vector_store=document_store,
        embedding_model=embedding_model,
        generator=mock_generator,
        search_config=test_config.search,
    )


@pytest.fixture
def failure_indexer(failure_store, embedding_model) -> FailureIndexer:
    return FailureIndexer(vector_store=failure_store, embedding_model=embedding_model)


@pytest.fixture
def failure_search(test_config, failure_store, embedding_model):
    return FailureSearchService(
        vector_store=failure_store,
        embedding_model=embedding_model,
        search_config=test_config.search,
    )

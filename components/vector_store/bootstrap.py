"""Vector store construction and startup collection bootstrap."""

import asyncio
import logging
from typing import Iterable

from rag_indexer.config import StorageConfig
from tenacity import (
    AsyncRetrying,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from .chroma_store import ChromaVectorStore
from .memory_store import InMemoryVectorStore
from .models import VectorStoreBackend

logger = logging.getLogger(__name__)


def create_vector_store(
    storage_config: StorageConfig, collection_name: str, dimension: int
) -> VectorStoreBackend:
    """Factory function to create a vector store for the configured backend."""
    backend = storage_config.backend.lower()

    if backend == "chroma":
        return ChromaVectorStore(storage_config, collection_name, dimension)

    elif backend == "memory":
        return InMemoryVectorStore(collection_name, dimension)

    else:
        raise ValueError(
            f"Unsupported storage backend: {backend}. "
            f"Supported backends: chroma, memory"
        )


async def ensure_collection(
    store: VectorStoreBackend, attempts: int = 30, delay_seconds: float = 1.0
) -> None:
    """Create the store's collection, retrying while the storage engine starts.

    Configuration errors such as a dimension mismatch are raised immediately.
    Once ``attempts`` are exhausted the last error is re-raised.
    """
    async for attempt in AsyncRetrying(
        retry=retry_if_not_exception_type(ValueError),
        stop=stop_after_attempt(attempts),
        wait=wait_fixed(delay_seconds),
        before_sleep=lambda retry_state: logger.warning(
            f"Collection '{store.collection_name}' not ready "
            f"(attempt {retry_state.attempt_number}/{attempts}): "
            f"{retry_state.outcome.exception() if retry_state.outcome else ''}"
        ),
        reraise=True,
    ):
        with attempt:
            await asyncio.to_thread(store.ensure_collection)


async def ensure_collections(
    stores: Iterable[VectorStoreBackend],
    attempts: int = 30,
    delay_seconds: float = 1.0,
) -> None:
    """Bootstrap every collection the application uses."""
    for store in stores:
        await ensure_collection(store, attempts=attempts, delay_seconds=delay_seconds)

"""Vector storage backends."""

from .bootstrap import create_vector_store, ensure_collection, ensure_collections
from .chroma_store import ChromaVectorStore
from .memory_store import InMemoryVectorStore
from .models import SearchHit, StorageRecord, VectorStoreBackend

__all__ = [
    "ChromaVectorStore",
    "InMemoryVectorStore",
    "SearchHit",
    "StorageRecord",
    "VectorStoreBackend",
    "create_vector_store",
    "ensure_collection",
    "ensure_collections",
]

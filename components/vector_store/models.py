"""Data models for records exchanged with the vector storage engine."""

from typing import Any, Dict, List, Optional, Protocol

from pydantic import BaseModel, Field

from components.filtering import PayloadFilter


class StorageRecord(BaseModel):
    """A single point written to the vector store."""

    id: str = Field(..., description="Deterministic UUID of the point")
    vector: List[float] = Field(..., description="Embedding of the point's text")
    payload: Dict[str, Any] = Field(
        default_factory=dict, description="Flat metadata stored with the vector"
    )


class SearchHit(BaseModel):
    """A single search result returned by the search endpoints."""

    id: str = Field(..., description="Point id")
    score: float = Field(
        ...,
        description="Cosine similarity; 0.0 when no similarity was computed",
    )
    payload: Dict[str, Any] = Field(default_factory=dict, description="Full payload")


class VectorStoreBackend(Protocol):
    """Operations the pipeline needs from a storage engine."""

    collection_name: str

    def ensure_collection(self) -> None:
        """Create the collection if missing; an existing collection is success."""
        ...

    def upsert(self, records: List[StorageRecord], wait: bool = True) -> None:
        """Insert or fully overwrite records by id."""
        ...

    def query(
        self,
        vector: List[float],
        limit: int,
        payload_filter: Optional[PayloadFilter] = None,
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        """Similarity search, best match first."""
        ...

    def scroll(
        self, payload_filter: Optional[PayloadFilter] = None, limit: int = 25
    ) -> List[SearchHit]:
        """Filter-only browse; hits carry the 0.0 sentinel score."""
        ...

    def count(self) -> int:
        """Number of records in the collection."""
        ...

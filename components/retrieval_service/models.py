"""Request and response models for search and chat."""

from typing import Any, Dict, List, Optional

from components.vector_store import SearchHit
from pydantic import BaseModel, Field


class TopKSearchRequest(BaseModel):
    """Vector search returning a fixed number of results."""

    query_text: str = Field(..., description="Free-text query to embed")
    k: Optional[int] = Field(default=None, ge=1, description="Maximum results")
    tags: Optional[Dict[str, str]] = Field(
        default=None, description="Only documents matching all tags are returned"
    )


class ThresholdSearchRequest(BaseModel):
    """Vector search returning every result at or above a similarity score."""

    query_text: str = Field(..., description="Free-text query to embed")
    score_threshold: Optional[float] = Field(
        default=None, description="Minimum cosine similarity"
    )
    limit: Optional[int] = Field(default=None, ge=1, description="Safety cap")
    tags: Optional[Dict[str, str]] = None


class MetadataSearchRequest(BaseModel):
    """Filter-only browse, no vector similarity involved."""

    limit: Optional[int] = Field(default=None, ge=1, description="Page size")
    tags: Optional[Dict[str, str]] = None


class MetadataSearchResponse(BaseModel):
    results: List[SearchHit] = Field(default_factory=list)
    filter: Optional[Dict[str, Any]] = Field(
        default=None, description="Scroll filter that was applied, if any"
    )


class ChatRequest(BaseModel):
    """Question answered from retrieved context."""

    question: str = Field(..., description="Natural-language question")
    k: Optional[int] = Field(
        default=None, ge=1, description="Documents retrieved as context"
    )
    score_threshold: Optional[float] = Field(
        default=None, description="Drop context documents below this score"
    )
    tags: Optional[Dict[str, str]] = None
    system_prompt: Optional[str] = Field(
        default=None, description="Overrides the configured system prompt"
    )


class ChatSource(BaseModel):
    """A document that contributed to a chat answer."""

    id: str
    score: float
    text_snippet: str


class ChatResponse(BaseModel):
    answer: str
    sources: List[ChatSource] = Field(default_factory=list)

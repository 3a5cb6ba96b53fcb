"""Request and response models for document indexing."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class DocumentUpsertRequest(BaseModel):
    """A document to index."""

    id: Optional[str] = Field(
        default=None,
        description="Caller-supplied identifier; the text is used when omitted",
    )
    text: Optional[str] = Field(default=None, description="Document text")
    tags: Optional[Dict[str, str]] = Field(
        default=None, description="Filterable key/value pairs, inherited by every chunk"
    )
    properties: Optional[Dict[str, str]] = Field(
        default=None, description="Informational key/value pairs, not used for filtering"
    )


class DocumentUpsertResponse(BaseModel):
    """Result of indexing a single document."""

    point_id: str = Field(..., description="Id of the first chunk")
    total_chunks: int = Field(..., description="Number of chunks written")
    chunk_point_ids: List[str] = Field(
        default_factory=list, description="Ids of every chunk in order"
    )


class BatchUpsertResponse(BaseModel):
    """Result of indexing a batch of documents."""

    total: int
    succeeded: int
    failed: int
    errors: List[str] = Field(
        default_factory=list, description="One '[label]: message' entry per failure"
    )

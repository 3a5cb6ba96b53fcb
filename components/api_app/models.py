"""Response models specific to the HTTP surface."""

from typing import Dict, List

from pydantic import BaseModel, Field


class CollectionInfo(BaseModel):
    name: str
    points: int = Field(..., description="Number of stored points")


class ServiceInfo(BaseModel):
    """Service description returned by /api/info."""

    service: str
    version: str
    storage_backend: str
    embedding_model: str
    embedding_dimension: int
    generation_model: str
    chunking: Dict[str, int]
    collections: List[CollectionInfo] = Field(default_factory=list)

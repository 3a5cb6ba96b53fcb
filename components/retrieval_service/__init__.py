"""Search and chat component."""

from .main import DEFAULT_SYSTEM_PROMPT, RetrievalService
from .models import (
    ChatRequest,
    ChatResponse,
    ChatSource,
    MetadataSearchRequest,
    MetadataSearchResponse,
    ThresholdSearchRequest,
    TopKSearchRequest,
)

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "ChatRequest",
    "ChatResponse",
    "ChatSource",
    "MetadataSearchRequest",
    "MetadataSearchResponse",
    "RetrievalService",
    "ThresholdSearchRequest",
    "TopKSearchRequest",
]

"""Document indexing component."""

from .main import DocumentIndexer
from .models import BatchUpsertResponse, DocumentUpsertRequest, DocumentUpsertResponse

__all__ = [
    "BatchUpsertResponse",
    "DocumentIndexer",
    "DocumentUpsertRequest",
    "DocumentUpsertResponse",
]

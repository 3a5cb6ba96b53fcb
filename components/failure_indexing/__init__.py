"""Failed test result indexing and search."""

from .indexer import FailureIndexer, failure_point_id, failure_signature_id
from .models import (
    FailedTestEnvelope,
    FailedTestResult,
    FailureIndexResponse,
    FailureMetadataRequest,
    FailureSimilarityRequest,
)
from .search import FailureSearchService, build_metadata_filter, build_similarity_filter

__all__ = [
    "FailedTestEnvelope",
    "FailedTestResult",
    "FailureIndexResponse",
    "FailureIndexer",
    "FailureMetadataRequest",
    "FailureSearchService",
    "FailureSimilarityRequest",
    "build_metadata_filter",
    "build_similarity_filter",
    "failure_point_id",
    "failure_signature_id",
]

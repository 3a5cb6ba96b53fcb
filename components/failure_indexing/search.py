"""Similarity and metadata search over indexed failed test results."""

import asyncio
import logging
from typing import List, Optional

from components.embedding_system import EmbeddingProvider
from components.filtering import Condition, MatchCondition, PayloadFilter, RangeCondition
from components.vector_store import SearchHit, VectorStoreBackend
from rag_indexer.config import SearchConfig
from shared import payload_keys

from .models import FailureMetadataRequest, FailureSimilarityRequest

logger = logging.getLogger(__name__)


def _add_match(conditions: List[Condition], key: str, value: Optional[str]) -> None:
    if value and value.strip():
        conditions.append(MatchCondition(key=key, value=value))


def _add_time_range(
    conditions: List[Condition],
    from_timestamp_ms: Optional[int],
    to_timestamp_ms: Optional[int],
) -> None:
    if from_timestamp_ms is not None or to_timestamp_ms is not None:
        conditions.append(
            RangeCondition(
                key=payload_keys.TIMESTAMP_MS,
                gte=from_timestamp_ms,
                lte=to_timestamp_ms,
            )
        )


def build_similarity_filter(
    request: FailureSimilarityRequest,
) -> Optional[PayloadFilter]:
    conditions: List[Condition] = []
    _add_match(conditions, payload_keys.PROJECT_NAME, request.project_name)
    _add_match(conditions, payload_keys.DEFINITION_NAME, request.definition_name)
    _add_time_range(conditions, request.from_timestamp_ms, request.to_timestamp_ms)
    return PayloadFilter(must=conditions) if conditions else None


def build_metadata_filter(request: FailureMetadataRequest) -> Optional[PayloadFilter]:
    conditions: List[Condition] = []
    _add_match(conditions, payload_keys.PROJECT_NAME, request.project_name)
    _add_match(conditions, payload_keys.DEFINITION_NAME, request.definition_name)
    _add_match(conditions, payload_keys.TEST_NAME, request.test_name)
    _add_match(conditions, payload_keys.OUTCOME, request.outcome)
    _add_time_range(conditions, request.from_timestamp_ms, request.to_timestamp_ms)
    return PayloadFilter(must=conditions) if conditions else None


class FailureSearchService:
    """Finds failures similar to a description, or browses them by metadata."""

    def __init__(
        self,
        vector_store: VectorStoreBackend,
        embedding_model: EmbeddingProvider,
        search_config: Optional[SearchConfig] = None,
    ):
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.search_config = search_config or SearchConfig()

    async def search_similar(self, request: FailureSimilarityRequest) -> List[SearchHit]:
        """Every failure scoring at least the threshold, capped at ``limit``."""
        threshold = (
            request.score_threshold
            if request.score_threshold is not None
            else self.search_config.failure_score_threshold
        )

        try:
            vector = await asyncio.to_thread(
                self.embedding_model.get_query_embedding, request.query_text
            )
        except Exception as e:
            logger.error(f"Query embedding failed: {e}")
            raise

        return await asyncio.to_thread(
            self.vector_store.query,
            vector,
            request.limit,
            build_similarity_filter(request),
            threshold,
        )

    async def search_metadata(self, request: FailureMetadataRequest) -> List[SearchHit]:
        return await asyncio.to_thread(
            self.vector_store.scroll, build_metadata_filter(request), request.limit
        )

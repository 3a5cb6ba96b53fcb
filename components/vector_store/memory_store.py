"""In-process vector storage for tests and local development."""

import logging
import math
from typing import Dict, List, Optional, cast

from components.filtering import PayloadFilter

from .models import SearchHit, StorageRecord

logger = logging.getLogger(__name__)


def cosine_similarity(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return dot / (norm_a * norm_b)


class InMemoryVectorStore:
    """Keeps records in a dict keyed by point id.

    Behaves like the Chroma backend: upsert overwrites whole records, query
    ranks by cosine similarity, scroll returns records in insertion order.
    """

    def __init__(self, collection_name: str, dimension: int):
        self.collection_name = collection_name
        self.dimension = dimension
        self._records: Optional[Dict[str, StorageRecord]] = None

    def ensure_collection(self) -> None:
        if self._records is None:
            self._records = {}
            logger.info(f"Created in-memory collection '{self.collection_name}'")

    @property
    def records(self) -> Dict[str, StorageRecord]:
        if self._records is None:
            self.ensure_collection()
        return cast(Dict[str, StorageRecord], self._records)

    def upsert(self, records: List[StorageRecord], wait: bool = True) -> None:
        for record in records:
            if len(record.vector) != self.dimension:
                raise ValueError(
                    f"Vector for point {record.id} has size {len(record.vector)}, "
                    f"expected {self.dimension}"
                )

        for record in records:
            self.records[record.id] = record.model_copy(deep=True)

    def query(
        self,
        vector: List[float],
        limit: int,
        payload_filter: Optional[PayloadFilter] = None,
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        if len(vector) != self.dimension:
            raise ValueError(
                f"Query vector has size {len(vector)}, expected {self.dimension}"
            )

        hits = []
        for record in self.records.values():
            if payload_filter and not payload_filter.matches(record.payload):
                continue
            score = cosine_similarity(vector, record.vector)
            if score_threshold is not None and score < score_threshold:
                continue
            hits.append(SearchHit(id=record.id, score=score, payload=dict(record.payload)))

        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[: max(limit, 0)]

    def scroll(
        self, payload_filter: Optional[PayloadFilter] = None, limit: int = 25
    ) -> List[SearchHit]:
        hits = []
        for record in self.records.values():
            if len(hits) >= limit:
                break
            if payload_filter and not payload_filter.matches(record.payload):
                continue
            hits.append(SearchHit(id=record.id, score=0.0, payload=dict(record.payload)))
        return hits

    def count(self) -> int:
        return len(self.records)

"""Tests for the vector store backends."""

from unittest.mock import Mock

import pytest
from components.filtering import MatchCondition, PayloadFilter, RangeCondition
from components.vector_store import (
    ChromaVectorStore,
    InMemoryVectorStore,
    StorageRecord,
    create_vector_store,
    ensure_collection,
)
from rag_indexer.config import StorageConfig


def make_records():
    return [
        StorageRecord(
            id="00000000-0000-5000-8000-000000000001",
            vector=[1.0, 0.0, 0.0],
            payload={"text": "alpha", "tag_lang": "en", "timestamp_ms": 100},
        ),
        StorageRecord(
            id="00000000-0000-5000-8000-000000000002",
            vector=[0.8, 0.6, 0.0],
            payload={"text": "beta", "tag_lang": "de", "timestamp_ms": 200},
        ),
        StorageRecord(
            id="00000000-0000-5000-8000-000000000003",
            vector=[0.0, 0.0, 1.0],
            payload={"text": "gamma", "tag_lang": "en", "timestamp_ms": 300},
        ),
    ]


@pytest.fixture(params=["memory", "chroma"])
def store(request, tmp_path):
    if request.param == "memory":
        vector_store = InMemoryVectorStore("test_docs", 3)
    else:
        vector_store = ChromaVectorStore(
            StorageConfig(database_dir=str(tmp_path / "chroma")), "test_docs", 3
        )
    vector_store.ensure_collection()
    return vector_store


class TestVectorStores:
    def test_query_ranks_by_cosine_similarity(self, store):
        store.upsert(make_records())

        hits = store.query([1.0, 0.0, 0.0], limit=3)

        assert [hit.payload["text"] for hit in hits] == ["alpha", "beta", "gamma"]
        assert hits[0].score == pytest.approx(1.0, abs=1e-4)
        assert hits[1].score == pytest.approx(0.8, abs=1e-4)

    def test_query_respects_limit(self, store):
        store.upsert(make_records())
        assert len(store.query([1.0, 0.0, 0.0], limit=1)) == 1

    def test_query_applies_score_threshold(self, store):
        store.upsert(make_records())

        hits = store.query([1.0, 0.0, 0.0], limit=10, score_threshold=0.5)

        assert {hit.payload["text"] for hit in hits} == {"alpha", "beta"}
        assert all(hit.score >= 0.5 for hit in hits)

    def test_query_applies_payload_filter(self, store):
        store.upsert(make_records())
        payload_filter = PayloadFilter(must=[MatchCondition(key="tag_lang", value="en")])

        hits = store.query([1.0, 0.0, 0.0], limit=10, payload_filter=payload_filter)

        assert [hit.payload["text"] for hit in hits] == ["alpha", "gamma"]

    def test_scroll_returns_sentinel_score(self, store):
        store.upsert(make_records())
        payload_filter = PayloadFilter(
            must=[RangeCondition(key="timestamp_ms", gte=150, lte=300)]
        )

        hits = store.scroll(payload_filter, limit=10)

        assert {hit.payload["text"] for hit in hits} == {"beta", "gamma"}
        assert all(hit.score == 0.0 for hit in hits)

    def test_scroll_limit(self, store):
        store.upsert(make_records())
        assert len(store.scroll(limit=2)) == 2

    def test_upsert_overwrites_by_id(self, store):
        records = make_records()
        store.upsert(records)
        replacement = StorageRecord(
            id=records[0].id, vector=[0.0, 1.0, 0.0], payload={"text": "alpha v2"}
        )
        store.upsert([replacement])

        assert store.count() == 3
        hits = store.query([0.0, 1.0, 0.0], limit=1)
        assert hits[0].id == records[0].id
        assert hits[0].payload == {"text": "alpha v2"}

    def test_integers_stay_integers(self, store):
        store.upsert(make_records())
        hits = store.scroll(
            PayloadFilter(must=[MatchCondition(key="text", value="alpha")]), limit=1
        )
        assert hits[0].payload["timestamp_ms"] == 100
        assert isinstance(hits[0].payload["timestamp_ms"], int)

    def test_wrong_dimension_is_rejected(self, store):
        with pytest.raises(ValueError, match="expected 3"):
            store.upsert(
                [StorageRecord(id="00000000-0000-5000-8000-000000000009", vector=[1.0])]
            )

    def test_ensure_collection_is_idempotent(self, store):
        store.upsert(make_records())
        store.ensure_collection()
        assert store.count() == 3


class TestChromaVectorStore:
    def test_existing_collection_with_other_dimension_is_rejected(self, tmp_path):
        config = StorageConfig(database_dir=str(tmp_path / "chroma"))
        ChromaVectorStore(config, "dims", 3).ensure_collection()

        with pytest.raises(ValueError, match="stores vectors of size 3"):
            ChromaVectorStore(config, "dims", 5).ensure_collection()

    def test_data_survives_a_new_client(self, tmp_path):
        config = StorageConfig(database_dir=str(tmp_path / "chroma"))
        ChromaVectorStore(config, "docs", 3).upsert(make_records())

        assert ChromaVectorStore(config, "docs", 3).count() == 3

    def test_failed_overwrite_keeps_previous_point(self, tmp_path):
        store = ChromaVectorStore(
            StorageConfig(database_dir=str(tmp_path / "chroma")), "docs", 3
        )
        original = make_records()[0]
        store.upsert([original])

        collection = store.collection
        store._collection = Mock(wraps=collection)
        store._collection.upsert.side_effect = RuntimeError("write rejected")
        replacement = StorageRecord(
            id=original.id, vector=[0.0, 1.0, 0.0], payload={"text": "alpha v2"}
        )

        with pytest.raises(RuntimeError, match="write rejected"):
            store.upsert([replacement])

        store._collection = collection
        assert store.count() == 1
        assert store.scroll(limit=1)[0].payload == original.payload

    def test_overwrite_drops_stale_keys_in_a_single_write(self, tmp_path):
        store = ChromaVectorStore(
            StorageConfig(database_dir=str(tmp_path / "chroma")), "docs", 3
        )
        original = make_records()[0]
        store.upsert([original])

        collection = store.collection
        store._collection = Mock(wraps=collection)
        store.upsert(
            [StorageRecord(id=original.id, vector=[1.0, 0.0, 0.0], payload={"text": "v2"})]
        )

        store._collection.delete.assert_not_called()
        store._collection.add.assert_not_called()
        store._collection.upsert.assert_called_once()
        store._collection = collection
        assert store.scroll(limit=1)[0].payload == {"text": "v2"}


class TestInMemoryVectorStore:
    def test_records_are_available_before_ensure_collection(self):
        store = InMemoryVectorStore("lazy", 3)

        assert store.records == {}
        store.upsert(make_records())
        assert store.count() == 3


class TestCreateVectorStore:
    def test_memory_backend(self):
        store = create_vector_store(StorageConfig(backend="memory"), "docs", 4)
        assert isinstance(store, InMemoryVectorStore)
        assert store.collection_name == "docs"

    def test_chroma_backend(self, tmp_path):
        config = StorageConfig(backend="chroma", database_dir=str(tmp_path))
        assert isinstance(create_vector_store(config, "docs", 4), ChromaVectorStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported storage backend"):
            create_vector_store(StorageConfig(backend="qdrant"), "docs", 4)


class FlakyStore:
    def __init__(self, failures: int, error: Exception):
        self.collection_name = "flaky"
        self.failures = failures
        self.error = error
        self.calls = 0

    def ensure_collection(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error


class TestEnsureCollection:
    @pytest.mark.asyncio
    async def test_retries_until_collection_is_ready(self):
        store = FlakyStore(failures=2, error=ConnectionError("not up yet"))

        await ensure_collection(store, attempts=5, delay_seconds=0)

        assert store.calls == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        store = FlakyStore(failures=10, error=ConnectionError("down"))

        with pytest.raises(ConnectionError, match="down"):
            await ensure_collection(store, attempts=3, delay_seconds=0)

        assert store.calls == 3

    @pytest.mark.asyncio
    async def test_configuration_errors_are_not_retried(self):
        store = FlakyStore(failures=10, error=ValueError("dimension mismatch"))

        with pytest.raises(ValueError):
            await ensure_collection(store, attempts=5, delay_seconds=0)

        assert store.calls == 1

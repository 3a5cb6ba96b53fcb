"""Tests for API App main functionality."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from components.api_app.main import create_app
from components.identity import derive_id
from components.vector_store import SearchHit
from fastapi.testclient import TestClient
from rag_indexer.config import Config, StorageConfig
from shared.initializer import build_services

DIMENSION = 8


class KeywordEmbedding:
    """Maps each known keyword to its own axis."""

    KEYWORDS = ["vector", "search", "pasta", "payment", "timeout"]

    def _embed(self, text):
        lowered = text.lower()
        vector = [1.0 if word in lowered else 0.0 for word in self.KEYWORDS]
        vector += [0.1] * (DIMENSION - len(vector))
        return vector

    def get_text_embedding(self, text):
        return self._embed(text)

    def get_query_embedding(self, query):
        return self._embed(query)


@pytest.fixture
def generator():
    mock = AsyncMock()
    mock.generate.return_value = "An answer."
    return mock


@pytest.fixture
def services(generator):
    """Create fully wired services over in-memory storage."""
    config = Config(storage=StorageConfig(backend="memory", bootstrap_attempts=1))
    config.embedding_model.dimension = DIMENSION
    return asyncio.run(
        build_services(config, embedding_model=KeywordEmbedding(), generator=generator)
    )


@pytest.fixture
def client(services):
    """Create a test client for the API server."""
    app = create_app(services)
    with TestClient(app) as test_client:
        yield test_client


def failure_envelope(result_id: int = 1) -> dict:
    return {
        "project_name": "Shop",
        "definition_name": "Shop-CI",
        "build_id": 100,
        "build_name": "2024.100",
        "test_run_id": 7,
        "result": {
            "id": result_id,
            "automated_test_name": "Shop.Tests.PaysOrder",
            "outcome": "Failed",
            "error_message": "Payment timeout",
            "completed_date": "2024-05-01T12:00:00Z",
        },
    }


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == "healthy"


def test_info(client):
    client.post("/documents", json={"id": "a", "text": "vector search"})

    response = client.get("/api/info")

    assert response.status_code == 200
    data = response.json()
    assert data["storage_backend"] == "memory"
    assert data["embedding_dimension"] == DIMENSION
    assert data["chunking"] == {"max_chunk_size": 2000, "overlap": 200}
    assert data["collections"] == [
        {"name": "documents", "points": 1},
        {"name": "failed_test_results", "points": 0},
    ]


def test_upsert_document(client):
    response = client.post(
        "/documents",
        json={"id": "doc-1", "text": "All about vector search.", "tags": {"lang": "en"}},
    )

    assert response.status_code == 200
    assert response.json() == {
        "point_id": derive_id("doc-1"),
        "total_chunks": 1,
        "chunk_point_ids": [derive_id("doc-1")],
    }


@pytest.mark.parametrize("body", [{"text": "   "}, {"id": "x"}])
def test_upsert_document_rejects_blank_text(client, body):
    response = client.post("/documents", json=body)

    assert response.status_code == 400
    assert response.json()["detail"] == "Text is required and cannot be empty."


def test_upsert_document_upstream_failure_is_500(client, services):
    services.indexer.embedding_model = Mock()
    services.indexer.embedding_model.get_text_embedding.side_effect = RuntimeError(
        "embedding quota exceeded"
    )

    response = client.post("/documents", json={"text": "Some text."})

    assert response.status_code == 500
    assert response.json()["detail"] == "embedding quota exceeded"


def test_batch_upsert(client):
    response = client.post(
        "/documents/batch",
        json=[{"id": "a", "text": "vector search"}, {"id": "b", "text": " "}],
    )

    assert response.status_code == 200
    assert response.json() == {
        "total": 2,
        "succeeded": 1,
        "failed": 1,
        "errors": ["[b]: Text is required and cannot be empty."],
    }


def test_search_endpoints(client):
    client.post(
        "/documents/batch",
        json=[
            {"id": "v", "text": "vector search basics", "tags": {"topic": "ir"}},
            {"id": "p", "text": "pasta recipes", "tags": {"topic": "food"}},
        ],
    )

    top_k = client.post("/search/topk", json={"query_text": "vector", "k": 1})
    assert top_k.status_code == 200
    assert [hit["id"] for hit in top_k.json()] == [derive_id("v")]

    threshold = client.post(
        "/search/threshold", json={"query_text": "pasta", "score_threshold": 0.9}
    )
    assert threshold.status_code == 200
    assert [hit["id"] for hit in threshold.json()] == [derive_id("p")]

    metadata = client.post("/search/metadata", json={"tags": {"topic": "food"}})
    assert metadata.status_code == 200
    data = metadata.json()
    assert [hit["id"] for hit in data["results"]] == [derive_id("p")]
    assert data["results"][0]["score"] == 0.0
    assert data["filter"] == {"must": [{"key": "tag_topic", "match": {"value": "food"}}]}


def test_search_validation_error_is_422(client):
    response = client.post("/search/topk", json={"query_text": "x", "k": 0})
    assert response.status_code == 422


def test_chat(client, generator):
    client.post("/documents", json={"id": "v", "text": "vector search basics"})

    response = client.post("/chat", json={"question": "What is vector search?"})

    assert response.status_code == 200
    assert response.json()["answer"] == "An answer."
    assert response.json()["sources"][0]["id"] == derive_id("v")
    generator.generate.assert_awaited_once()


def test_chat_blank_question_is_400(client):
    response = client.post("/chat", json={"question": " "})
    assert response.status_code == 400


def test_chat_generation_failure_is_500(client, generator):
    generator.generate.side_effect = RuntimeError("model unavailable")

    response = client.post("/chat", json={"question": "anything"})

    assert response.status_code == 500
    assert response.json()["detail"] == "model unavailable"


def test_failure_endpoints(client):
    indexed = client.post("/failures/index", json=failure_envelope())
    assert indexed.status_code == 200
    assert indexed.json()["point_id"] == derive_id("ado|Shop|100|7|1")

    batch = client.post(
        "/failures/index/batch", json=[failure_envelope(2), failure_envelope(3)]
    )
    assert batch.json()["succeeded"] == 2

    similar = client.post(
        "/failures/search/similar",
        json={"query_text": "payment timeout", "project_name": "Shop"},
    )
    assert similar.status_code == 200
    assert len(similar.json()) == 3

    metadata = client.post(
        "/failures/search/metadata",
        json={"definition_name": "Shop-CI", "from_timestamp_ms": 0, "limit": 2},
    )
    assert metadata.status_code == 200
    data = metadata.json()
    assert len(data["results"]) == 2
    assert data["filter"]["must"][1] == {
        "key": "timestamp_ms",
        "range": {"gte": 0},
    }


def test_failure_index_validation_error_is_422(client):
    response = client.post("/failures/index", json={"project_name": "Shop"})
    assert response.status_code == 422


def test_search_hit_model_shape():
    hit = SearchHit(id="x", score=0.5, payload={"text": "t"})
    assert hit.model_dump() == {"id": "x", "score": 0.5, "payload": {"text": "t"}}

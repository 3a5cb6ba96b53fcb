# ruff: noqa: B008

import asyncio
import logging
from typing import List

from components.failure_indexing import (
    FailedTestEnvelope,
    FailureIndexResponse,
    FailureMetadataRequest,
    FailureSimilarityRequest,
    build_metadata_filter,
)
from components.indexing_service import (
    BatchUpsertResponse,
    DocumentUpsertRequest,
    DocumentUpsertResponse,
)
from components.retrieval_service import (
    ChatRequest,
    ChatResponse,
    MetadataSearchRequest,
    MetadataSearchResponse,
    ThresholdSearchRequest,
    TopKSearchRequest,
)
from components.vector_store import SearchHit
from fastapi import Depends, FastAPI, HTTPException
from rag_indexer import __version__
from shared.initializer import AppServices

from .models import CollectionInfo, ServiceInfo

logger = logging.getLogger(__name__)


def _upstream_error(operation: str, error: Exception) -> HTTPException:
    logger.error(f"[{operation}] Error: {error}")
    return HTTPException(status_code=500, detail=str(error))


def create_app(services: AppServices) -> FastAPI:
    """
    Creates and configures the FastAPI application, registering all routes.
    This function returns the app object but does not run it.

    Args:
        services: The fully initialized core services.

    Returns:
        The configured FastAPI app instance.
    """
    app = FastAPI(title="RAG Indexer API", version=__version__)

    # Dependency provider to make the services available to endpoints
    def get_services() -> AppServices:
        return services

    # --- Documents ---
    @app.post(
        "/documents",
        response_model=DocumentUpsertResponse,
        tags=["documents"],
        operation_id="upsert_document",
    )
    async def upsert_document(
        request: DocumentUpsertRequest, svc: AppServices = Depends(get_services)
    ) -> DocumentUpsertResponse:
        try:
            return await svc.indexer.index(request)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except Exception as e:
            raise _upstream_error("documents", e) from e

    @app.post(
        "/documents/batch",
        response_model=BatchUpsertResponse,
        tags=["documents"],
        operation_id="upsert_documents_batch",
    )
    async def upsert_documents_batch(
        requests: List[DocumentUpsertRequest],
        svc: AppServices = Depends(get_services),
    ) -> BatchUpsertResponse:
        return await svc.indexer.index_batch(requests)

    # --- Search ---
    @app.post(
        "/search/topk",
        response_model=List[SearchHit],
        tags=["search"],
        operation_id="search_top_k",
    )
    async def search_top_k(
        request: TopKSearchRequest, svc: AppServices = Depends(get_services)
    ) -> List[SearchHit]:
        try:
            return await svc.retrieval.search_top_k(
                request.query_text, k=request.k, tags=request.tags
            )
        except Exception as e:
            raise _upstream_error("search/topk", e) from e

    @app.post(
        "/search/threshold",
        response_model=List[SearchHit],
        tags=["search"],
        operation_id="search_threshold",
    )
    async def search_threshold(
        request: ThresholdSearchRequest, svc: AppServices = Depends(get_services)
    ) -> List[SearchHit]:
        try:
            return await svc.retrieval.search_threshold(
                request.query_text,
                score_threshold=request.score_threshold,
                limit=request.limit,
                tags=request.tags,
            )
        except Exception as e:
            raise _upstream_error("search/threshold", e) from e

    @app.post(
        "/search/metadata",
        response_model=MetadataSearchResponse,
        tags=["search"],
        operation_id="search_metadata",
    )
    async def search_metadata(
        request: MetadataSearchRequest, svc: AppServices = Depends(get_services)
    ) -> MetadataSearchResponse:
        try:
            results = await svc.retrieval.search_metadata(
                limit=request.limit, tags=request.tags
            )
        except Exception as e:
            raise _upstream_error("search/metadata", e) from e
        return MetadataSearchResponse(
            results=results,
            filter=svc.retrieval.filter_builder.build_scroll_filter(request.tags),
        )

    # --- Chat ---
    @app.post(
        "/chat",
        response_model=ChatResponse,
        tags=["chat"],
        operation_id="chat",
    )
    async def chat(
        request: ChatRequest, svc: AppServices = Depends(get_services)
    ) -> ChatResponse:
        try:
            return await svc.retrieval.chat(
                request.question,
                k=request.k,
                score_threshold=request.score_threshold,
                tags=request.tags,
                system_prompt=request.system_prompt,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        except Exception as e:
            raise _upstream_error("chat", e) from e

    # --- Failed test results ---
    @app.post(
        "/failures/index",
        response_model=FailureIndexResponse,
        tags=["failures"],
        operation_id="index_failure",
    )
    async def index_failure(
        envelope: FailedTestEnvelope, svc: AppServices = Depends(get_services)
    ) -> FailureIndexResponse:
        try:
            return await svc.failure_indexer.index(envelope)
        except Exception as e:
            raise _upstream_error("failures/index", e) from e

    @app.post(
        "/failures/index/batch",
        response_model=BatchUpsertResponse,
        tags=["failures"],
        operation_id="index_failures_batch",
    )
    async def index_failures_batch(
        envelopes: List[FailedTestEnvelope], svc: AppServices = Depends(get_services)
    ) -> BatchUpsertResponse:
        return await svc.failure_indexer.index_batch(envelopes)

    @app.post(
        "/failures/search/similar",
        response_model=List[SearchHit],
        tags=["failures"],
        operation_id="search_similar_failures",
    )
    async def search_similar_failures(
        request: FailureSimilarityRequest, svc: AppServices = Depends(get_services)
    ) -> List[SearchHit]:
        try:
            return await svc.failure_search.search_similar(request)
        except Exception as e:
            raise _upstream_error("failures/search/similar", e) from e

    @app.post(
        "/failures/search/metadata",
        response_model=MetadataSearchResponse,
        tags=["failures"],
        operation_id="search_failures_metadata",
    )
    async def search_failures_metadata(
        request: FailureMetadataRequest, svc: AppServices = Depends(get_services)
    ) -> MetadataSearchResponse:
        try:
            results = await svc.failure_search.search_metadata(request)
        except Exception as e:
            raise _upstream_error("failures/search/metadata", e) from e

        payload_filter = build_metadata_filter(request)
        return MetadataSearchResponse(
            results=results,
            filter=payload_filter.to_scroll_filter() if payload_filter else None,
        )

    # --- Info ---
    @app.get(
        "/api/info",
        response_model=ServiceInfo,
        tags=["admin"],
        operation_id="service_info",
    )
    async def service_info(svc: AppServices = Depends(get_services)) -> ServiceInfo:
        config = svc.config
        collections = []
        for store in (svc.document_store, svc.failure_store):
            points = await asyncio.to_thread(store.count)
            collections.append(CollectionInfo(name=store.collection_name, points=points))

        return ServiceInfo(
            service="rag-indexer",
            version=__version__,
            storage_backend=config.storage.backend,
            embedding_model=config.embedding_model.model_name,
            embedding_dimension=config.embedding_model.dimension,
            generation_model=config.generation_model.model_name,
            chunking={
                "max_chunk_size": config.chunking.max_chunk_size,
                "overlap": config.chunking.overlap,
            },
            collections=collections,
        )

    @app.get("/health", tags=["admin"], include_in_schema=False)
    def health() -> str:
        return "healthy"

    return app

"""
Retrieval over indexed documents.

Three search modes share one tag filter: top-K similarity, every hit above a
similarity threshold, and a metadata-only browse that never touches vectors
(its hits carry the 0.0 sentinel score). Chat builds a numbered context block
from top-K hits and asks the generation model to answer from it alone.
"""

import asyncio
import logging
from typing import List, Mapping, Optional

from components.embedding_system import EmbeddingProvider
from components.filtering import FilterBuilder
from components.generation import AnswerGenerator
from components.vector_store import SearchHit, VectorStoreBackend
from rag_indexer.config import SearchConfig
from shared import payload_keys

from .models import ChatResponse, ChatSource

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the user's question based **only** on "
    "the provided context documents. If the context does not contain enough "
    "information to answer, say so clearly, and do not make up facts."
)

EMPTY_QUESTION_MESSAGE = "Question is required and cannot be empty."


def build_context(hits: List[SearchHit]) -> str:
    """Number hits from 1 and join them with blank lines."""
    return "\n\n".join(
        f"[{i}] {hit.payload.get(payload_keys.TEXT, '')}"
        for i, hit in enumerate(hits, start=1)
    )


def build_user_prompt(context: str, question: str) -> str:
    return f"Context:\n{context}\n\nQuestion: {question}"


class RetrievalService:
    """Searches a vector store and answers questions from the results."""

    def __init__(
        self,
        vector_store: VectorStoreBackend,
        embedding_model: EmbeddingProvider,
        generator: Optional[AnswerGenerator] = None,
        search_config: Optional[SearchConfig] = None,
        system_prompt: Optional[str] = None,
        filter_builder: Optional[FilterBuilder] = None,
    ):
        """
        Args:
            vector_store: Collection holding document chunks.
            embedding_model: Model used to embed queries; must match the one
                used at indexing time.
            generator: Chat model for :meth:`chat`. Search works without one.
            search_config: Defaults for omitted request parameters.
            system_prompt: Default chat system prompt.
            filter_builder: Tag filter construction.
        """
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.generator = generator
        self.search_config = search_config or SearchConfig()
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.filter_builder = filter_builder or FilterBuilder()

    async def _embed_query(self, query_text: str) -> List[float]:
        try:
            return await asyncio.to_thread(
                self.embedding_model.get_query_embedding, query_text
            )
        except Exception as e:
            logger.error(f"Query embedding failed: {e}")
            raise

    async def _query(
        self,
        query_text: str,
        limit: int,
        tags: Optional[Mapping[str, str]],
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        vector = await self._embed_query(query_text)
        payload_filter = self.filter_builder.build(tags)
        return await asyncio.to_thread(
            self.vector_store.query,
            vector,
            limit,
            payload_filter,
            score_threshold,
        )

    async def search_top_k(
        self,
        query_text: str,
        k: Optional[int] = None,
        tags: Optional[Mapping[str, str]] = None,
    ) -> List[SearchHit]:
        """Return at most ``k`` hits, best first."""
        limit = k if k is not None else self.search_config.default_k
        return await self._query(query_text, limit, tags)

    async def search_threshold(
        self,
        query_text: str,
        score_threshold: Optional[float] = None,
        limit: Optional[int] = None,
        tags: Optional[Mapping[str, str]] = None,
    ) -> List[SearchHit]:
        """Return every hit scoring at least ``score_threshold``, capped at ``limit``."""
        threshold = (
            score_threshold
            if score_threshold is not None
            else self.search_config.default_score_threshold
        )
        cap = limit if limit is not None else self.search_config.default_threshold_limit
        return await self._query(query_text, cap, tags, score_threshold=threshold)

    async def search_metadata(
        self,
        limit: Optional[int] = None,
        tags: Optional[Mapping[str, str]] = None,
    ) -> List[SearchHit]:
        """Browse documents matching the tags; no similarity is computed."""
        page_size = (
            limit if limit is not None else self.search_config.default_metadata_limit
        )
        payload_filter = self.filter_builder.build(tags)
        return await asyncio.to_thread(
            self.vector_store.scroll, payload_filter, page_size
        )

    async def chat(
        self,
        question: str,
        k: Optional[int] = None,
        score_threshold: Optional[float] = None,
        tags: Optional[Mapping[str, str]] = None,
        system_prompt: Optional[str] = None,
    ) -> ChatResponse:
        """Answer ``question`` from the top-K retrieved documents.

        Raises:
            ValueError: If the question is blank.
            RuntimeError: If no generation model is configured.
        """
        if not question or not question.strip():
            raise ValueError(EMPTY_QUESTION_MESSAGE)
        if self.generator is None:
            raise RuntimeError("No generation model is configured for chat.")

        limit = k if k is not None else self.search_config.default_k
        hits = await self._query(question, limit, tags, score_threshold=score_threshold)

        sources = [
            ChatSource(
                id=hit.id,
                score=hit.score,
                text_snippet=str(hit.payload.get(payload_keys.TEXT, "")),
            )
            for hit in hits
        ]

        user_prompt = build_user_prompt(build_context(hits), question)
        try:
            answer = await self.generator.generate(
                system_prompt or self.system_prompt, user_prompt
            )
        except Exception as e:
            logger.error(f"Answer generation failed: {e}")
            raise

        logger.info(f"Answered question from {len(sources)} source(s)")
        return ChatResponse(answer=answer, sources=sources)

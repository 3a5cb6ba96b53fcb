"""
Document indexing: chunk, embed and store free-text documents.

A document is split into chunks, every chunk is embedded concurrently, and all
chunk records are written with a single acknowledged upsert. Ids are derived
from the caller's id (or the text itself), so indexing the same document twice
overwrites the same points instead of creating duplicates.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from components.embedding_system import EmbeddingProvider
from components.identity import derive_id
from components.text_chunking import Chunk, TextChunker
from components.vector_store import StorageRecord, VectorStoreBackend
from shared import payload_keys

from .models import BatchUpsertResponse, DocumentUpsertRequest, DocumentUpsertResponse

logger = logging.getLogger(__name__)

EMPTY_TEXT_MESSAGE = "Text is required and cannot be empty."
ERROR_LABEL_LENGTH = 40


def chunk_point_id(source_id: str, chunk_index: int) -> str:
    return derive_id(f"{source_id}_chunk_{chunk_index}")


def caller_id(request: DocumentUpsertRequest) -> Optional[str]:
    """The caller's id, or None when it is missing or blank."""
    if request.id and request.id.strip():
        return request.id
    return None



def build_payload(
    request: DocumentUpsertRequest,
    chunk: Chunk,
    source_id: str,
    total_chunks: int,
    indexed_at_ms: int,
) -> Dict[str, Any]:
    """Build the flat payload stored with one chunk."""
    payload: Dict[str, Any] = {
        payload_keys.TEXT: chunk.text,
        payload_keys.INDEXED_AT_MS: indexed_at_ms,
    }

    if total_chunks > 1:
        payload[payload_keys.SOURCE_DOC_ID] = source_id
        payload[payload_keys.CHUNK_INDEX] = chunk.index
        payload[payload_keys.TOTAL_CHUNKS] = total_chunks

    for key, value in (request.tags or {}).items():
        payload[payload_keys.tag_key(key)] = value
    for key, value in (request.properties or {}).items():
        payload[payload_keys.property_key(key)] = value

    return payload


class DocumentIndexer:
    """Indexes documents into a vector store."""

    def __init__(
        self,
        vector_store: VectorStoreBackend,
        embedding_model: EmbeddingProvider,
        chunker: TextChunker,
    ):
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.chunker = chunker

    async def _embed_chunks(self, chunks: Sequence[Chunk]) -> List[List[float]]:
        # gather preserves argument order, so vectors line up with chunks
        return list(
            await asyncio.gather(
                *(
                    asyncio.to_thread(self.embedding_model.get_text_embedding, chunk.text)
                    for chunk in chunks
                )
            )
        )

    async def index(self, request: DocumentUpsertRequest) -> DocumentUpsertResponse:
        """
        Index one document.

        Nothing is written unless every chunk was embedded; embedding and
        storage errors propagate to the caller.

        Raises:
            ValueError: If the document text is empty or whitespace only.
        """
        if not request.text or not request.text.strip():
            raise ValueError(EMPTY_TEXT_MESSAGE)

        source_id = derive_id(caller_id(request) or request.text)
        chunks = self.chunker.chunk(request.text)
        total_chunks = len(chunks)

        if total_chunks == 1:
            point_ids = [source_id]
        else:
            point_ids = [chunk_point_id(source_id, chunk.index) for chunk in chunks]

        try:
            vectors = await self._embed_chunks(chunks)
        except Exception as e:
            logger.error(f"Embedding failed for document {source_id}: {e}")
            raise

        indexed_at_ms = int(time.time() * 1000)
        records = [
            StorageRecord(
                id=point_id,
                vector=vector,
                payload=build_payload(
                    request, chunk, source_id, total_chunks, indexed_at_ms
                ),
            )
            for point_id, chunk, vector in zip(point_ids, chunks, vectors, strict=True)
        ]

        try:
            await asyncio.to_thread(self.vector_store.upsert, records, True)
        except Exception as e:
            logger.error(f"Storing document {source_id} failed: {e}")
            raise

        logger.info(f"Indexed document {source_id} as {total_chunks} chunk(s)")
        return DocumentUpsertResponse(
            point_id=point_ids[0],
            total_chunks=total_chunks,
            chunk_point_ids=point_ids,
        )

    async def index_batch(
        self, requests: Sequence[DocumentUpsertRequest]
    ) -> BatchUpsertResponse:
        """Index documents one by one; a failing document does not stop the rest."""
        errors: List[str] = []
        succeeded = 0

        for request in requests:
            if not request.text or not request.text.strip():
                label = caller_id(request) or "(empty)"
                errors.append(f"[{label}]: {EMPTY_TEXT_MESSAGE}")
                continue

            try:
                await self.index(request)
                succeeded += 1
            except Exception as e:
                label = caller_id(request) or request.text[:ERROR_LABEL_LENGTH]
                errors.append(f"[{label}]: {e}")

        if errors:
            logger.warning(
                f"Batch indexing finished with {len(errors)} failure(s) "
                f"out of {len(requests)}"
            )

        return BatchUpsertResponse(
            total=len(requests),
            succeeded=succeeded,
            failed=len(errors),
            errors=errors,
        )

"""Embeds failed test results and stores them with deterministic ids."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Sequence

from components.embedding_system import EmbeddingProvider
from components.identity import derive_id
from components.indexing_service import BatchUpsertResponse
from components.vector_store import StorageRecord, VectorStoreBackend
from shared import payload_keys

from .models import FailedTestEnvelope, FailureIndexResponse
from .text_helpers import (
    build_embedding_text,
    normalize,
    normalize_stack,
    pick_test_name,
    to_unix_ms,
)

logger = logging.getLogger(__name__)


def failure_point_id(envelope: FailedTestEnvelope) -> str:
    """Idempotent per project, build, run and result."""
    return derive_id(
        f"ado|{envelope.project_name}|{envelope.build_id}"
        f"|{envelope.test_run_id}|{envelope.result.id}"
    )


def failure_signature_id(envelope: FailedTestEnvelope, test_name: str) -> str:
    """Groups recurring failures across builds."""
    return derive_id(
        f"sig|{envelope.project_name}|{envelope.definition_name}|{test_name}"
        f"|{normalize(envelope.result.error_message)}"
        f"|{normalize_stack(envelope.result.stack_trace)}"
    )


def build_failure_payload(
    envelope: FailedTestEnvelope, test_name: str, signature_id: str
) -> Dict[str, Any]:
    result = envelope.result
    timestamp = result.completed_date or result.started_date or datetime.now(timezone.utc)

    return {
        payload_keys.PROJECT_NAME: envelope.project_name,
        payload_keys.DEFINITION_NAME: envelope.definition_name,
        payload_keys.BUILD_ID: envelope.build_id,
        payload_keys.BUILD_NAME: envelope.build_name,
        payload_keys.TEST_RUN_ID: envelope.test_run_id,
        payload_keys.TEST_RESULT_ID: result.id,
        payload_keys.TEST_NAME: test_name,
        payload_keys.AUTOMATED_TEST_NAME: result.automated_test_name or "",
        payload_keys.COMPUTER_NAME: result.computer_name or "",
        payload_keys.OUTCOME: result.outcome or "",
        payload_keys.TIMESTAMP_MS: to_unix_ms(timestamp),
        payload_keys.SIGNATURE_ID: signature_id,
        payload_keys.ERROR_MESSAGE: result.error_message or "",
        payload_keys.STACK_TRACE: result.stack_trace or "",
    }


class FailureIndexer:
    """Indexes one point per failed test result."""

    def __init__(
        self, vector_store: VectorStoreBackend, embedding_model: EmbeddingProvider
    ):
        self.vector_store = vector_store
        self.embedding_model = embedding_model

    async def index(self, envelope: FailedTestEnvelope) -> FailureIndexResponse:
        test_name = pick_test_name(envelope.result)
        point_id = failure_point_id(envelope)
        signature_id = failure_signature_id(envelope, test_name)

        embedding_text = build_embedding_text(envelope, test_name)
        try:
            vector = await asyncio.to_thread(
                self.embedding_model.get_text_embedding, embedding_text
            )
        except Exception as e:
            logger.error(f"Embedding failed for test result {point_id}: {e}")
            raise

        record = StorageRecord(
            id=point_id,
            vector=vector,
            payload=build_failure_payload(envelope, test_name, signature_id),
        )
        try:
            await asyncio.to_thread(self.vector_store.upsert, [record], True)
        except Exception as e:
            logger.error(f"Storing test result {point_id} failed: {e}")
            raise

        logger.info(
            f"Indexed failed test '{test_name}' from build {envelope.build_id} "
            f"(signature {signature_id})"
        )
        return FailureIndexResponse(point_id=point_id, signature_id=signature_id)

    async def index_batch(
        self, envelopes: Sequence[FailedTestEnvelope]
    ) -> BatchUpsertResponse:
        """Index results one by one; a failing result does not stop the rest."""
        errors: List[str] = []
        succeeded = 0

        for envelope in envelopes:
            try:
                await self.index(envelope)
                succeeded += 1
            except Exception as e:
                label = f"run {envelope.test_run_id}, result {envelope.result.id}"
                errors.append(f"[{label}]: {e}")

        return BatchUpsertResponse(
            total=len(envelopes),
            succeeded=succeeded,
            failed=len(errors),
            errors=errors,
        )

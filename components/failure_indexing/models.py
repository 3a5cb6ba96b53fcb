"""Data models for failed test results and their search requests."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class FailedTestResult(BaseModel):
    """The subset of a CI test case result that gets indexed."""

    id: int = Field(..., description="Test result id within its run")
    test_case_title: Optional[str] = None
    automated_test_name: Optional[str] = None
    computer_name: Optional[str] = None
    outcome: Optional[str] = None
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None
    started_date: Optional[datetime] = None
    completed_date: Optional[datetime] = None


class FailedTestEnvelope(BaseModel):
    """A test result together with its pipeline, build and run context."""

    project_name: str
    definition_name: str
    build_id: int
    build_name: str
    test_run_id: int
    result: FailedTestResult


class FailureIndexResponse(BaseModel):
    point_id: str = Field(..., description="Idempotent per project/build/run/result")
    signature_id: str = Field(
        ..., description="Shared by failures with the same normalized error and stack"
    )


class FailureSimilarityRequest(BaseModel):
    """Similarity search over failures with optional metadata filters."""

    query_text: str = Field(..., description="Error text or description to match")
    score_threshold: Optional[float] = Field(
        default=None, description="Minimum cosine similarity"
    )
    limit: int = Field(default=100, ge=1, description="Safety cap")
    project_name: Optional[str] = None
    definition_name: Optional[str] = None
    from_timestamp_ms: Optional[int] = None
    to_timestamp_ms: Optional[int] = None


class FailureMetadataRequest(BaseModel):
    """Metadata-only browse over failures."""

    limit: int = Field(default=25, ge=1)
    project_name: Optional[str] = None
    definition_name: Optional[str] = None
    test_name: Optional[str] = None
    outcome: Optional[str] = None
    from_timestamp_ms: Optional[int] = None
    to_timestamp_ms: Optional[int] = None

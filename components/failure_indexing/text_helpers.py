"""
Text helpers for failed test results.

``normalize`` and ``normalize_stack`` strip volatile tokens (GUIDs, numbers,
line numbers) so that the same failure produces the same signature across
builds. ``build_embedding_text`` decides what "similar failure" means: project
context plus error message plus stack trace.
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import FailedTestEnvelope, FailedTestResult

UNKNOWN_TEST_NAME = "<unknown-test>"
MAX_STACK_FRAMES = 12

_GUID_RE = re.compile(
    r"\b[0-9a-fA-F]{8}\b-[0-9a-fA-F]{4}\b-[0-9a-fA-F]{4}\b-[0-9a-fA-F]{4}\b-"
    r"[0-9a-fA-F]{12}\b"
)
_NUMBER_RE = re.compile(r"\b\d+\b")
_WHITESPACE_RE = re.compile(r"\s+")
_LINE_NUMBER_RE = re.compile(r":line\s+\d+")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def pick_test_name(result: FailedTestResult) -> str:
    """Best available human-readable test name."""
    if result.automated_test_name and result.automated_test_name.strip():
        return result.automated_test_name
    if result.test_case_title and result.test_case_title.strip():
        return result.test_case_title
    return UNKNOWN_TEST_NAME


def build_embedding_text(envelope: FailedTestEnvelope, test_name: str) -> str:
    lines = [
        f"Project: {envelope.project_name}",
        f"Definition: {envelope.definition_name}",
        f"Build: {envelope.build_name} ({envelope.build_id})",
        f"Test: {test_name}",
        f"Outcome: {envelope.result.outcome or ''}",
        "",
        envelope.result.error_message or "",
        "",
        envelope.result.stack_trace or "",
    ]
    return "\n".join(lines) + "\n"


def normalize(value: Optional[str]) -> str:
    """Replace GUIDs and integers with placeholders and collapse whitespace."""
    if value is None or not value.strip():
        return ""

    text = value.strip()
    text = _GUID_RE.sub("<guid>", text)
    text = _NUMBER_RE.sub("<n>", text)
    return _WHITESPACE_RE.sub(" ", text)


def normalize_stack(value: Optional[str]) -> str:
    """Keep the top stack frames with line numbers replaced by a placeholder."""
    if value is None or not value.strip():
        return ""

    frames = [
        _LINE_NUMBER_RE.sub(":line <n>", line.strip())
        for line in value.split("\n")
        if line
    ]
    return "\n".join(frames[:MAX_STACK_FRAMES])


def to_unix_ms(value: datetime) -> int:
    """Unix epoch milliseconds; naive datetimes are taken as local time."""
    utc = value.astimezone(timezone.utc)
    return (utc - _EPOCH) // timedelta(milliseconds=1)

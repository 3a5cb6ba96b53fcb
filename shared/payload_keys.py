"""
Well-known payload field names shared by indexing and retrieval.

These names are a stored-data contract: records written with one set of keys
cannot be filtered or reassembled with another. Renaming any of them requires
re-indexing the affected collections.
"""

# Original chunk text
TEXT = "text"

# Indexing time, Unix epoch milliseconds
INDEXED_AT_MS = "indexed_at_ms"

# Filterable tags are stored as tag_{key}
TAG_PREFIX = "tag_"

# Informational properties are stored as prop_{key}
PROPERTY_PREFIX = "prop_"

# Chunk linkage, only present when a document produced more than one chunk
SOURCE_DOC_ID = "source_doc_id"
CHUNK_INDEX = "chunk_index"
TOTAL_CHUNKS = "total_chunks"


def tag_key(key: str) -> str:
    """Payload field name for a filterable tag."""
    return f"{TAG_PREFIX}{key}"


def property_key(key: str) -> str:
    """Payload field name for an informational property."""
    return f"{PROPERTY_PREFIX}{key}"


# Failed test result fields
PROJECT_NAME = "project_name"
DEFINITION_NAME = "definition_name"
BUILD_ID = "build_id"
BUILD_NAME = "build_name"
TEST_RUN_ID = "test_run_id"
TEST_RESULT_ID = "test_result_id"
TEST_NAME = "test_name"
AUTOMATED_TEST_NAME = "automated_test_name"
COMPUTER_NAME = "computer_name"
OUTCOME = "outcome"
TIMESTAMP_MS = "timestamp_ms"
SIGNATURE_ID = "signature_id"
ERROR_MESSAGE = "error_message"
STACK_TRACE = "stack_trace"

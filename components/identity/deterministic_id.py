"""Content-derived identifiers for idempotent upserts."""

import hashlib
import uuid


def derive_id(value: str) -> str:
    """
    Derive a stable UUID string from arbitrary text.

    The first 16 bytes of the SHA-256 digest of the UTF-8 encoded input are
    stamped with version 5 and the RFC 4122 variant, then rendered in network
    byte order. The same input always yields the same identifier, on any
    platform and in any process.

    Args:
        value: Any string, including the empty string.

    Returns:
        The canonical dashed, lowercase UUID representation.
    """
    digest = hashlib.sha256(value.encode("utf-8")).digest()
    raw = bytearray(digest[:16])

    # version 5 (0101xxxx)
    raw[6] = (raw[6] & 0x0F) | 0x50
    # RFC 4122 variant (10xxxxxx)
    raw[8] = (raw[8] & 0x3F) | 0x80

    return str(uuid.UUID(bytes=bytes(raw)))

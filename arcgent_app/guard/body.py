"""Bounded request body reading."""

from typing import BinaryIO, Optional

from ..errors import BodyTooLargeError
from ..logging.config import get_guard_logger

logger = get_guard_logger(__name__)

BODY_READ_SIZE = 64 * 1024


def read_limited_body(stream: BinaryIO, content_length: Optional[int], max_bytes: int,
                      chunk_size: int = BODY_READ_SIZE) -> bytes:
    """
    Read a request body, refusing anything over max_bytes.

    The declared length is checked before reading; the streamed byte count
    is checked as chunks arrive, so an undeclared oversized body is cut off
    without buffering it whole.

    Raises:
        BodyTooLargeError: declared or received size exceeds max_bytes
    """
    if content_length is not None and content_length > max_bytes:
        logger.warning("Declared body size over limit", declared_bytes=content_length, max_bytes=max_bytes)
        raise BodyTooLargeError(max_bytes, received_bytes=content_length)

    chunks = []
    received = 0
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        received += len(chunk)
        if received > max_bytes:
            logger.warning("Streamed body size over limit", received_bytes=received, max_bytes=max_bytes)
            raise BodyTooLargeError(max_bytes, received_bytes=received)
        chunks.append(chunk)

    return b"".join(chunks)

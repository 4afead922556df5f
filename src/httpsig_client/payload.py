"""
Request payload resolution

Payloads come from a literal argument, a file ('@path') or standard input
('@-'). Reads are chunked and bounded by a maximum size.
"""

import sys
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from .config.client_config import DEFAULT_MAX_PAYLOAD_BYTES
from .exceptions import PayloadTooLargeError, ValidationError

CHUNK_SIZE = 64 * 1024
STDIN_SOURCE = "@-"


def iter_chunks(
    stream: BinaryIO,
    chunk_size: int = CHUNK_SIZE,
    max_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
) -> Iterator[bytes]:
    """
    Read a binary stream in chunks, refusing to go past max_bytes.

    Args:
        stream: Binary stream to read
        chunk_size: Bytes per read
        max_bytes: Largest total accepted

    Yields:
        bytes: Non-empty chunks

    Raises:
        PayloadTooLargeError: If the stream holds more than max_bytes
    """
    total = 0
    while True:
        # One byte past the limit is enough to detect overflow
        chunk = stream.read(min(chunk_size, max_bytes - total + 1))
        if not chunk:
            return
        total += len(chunk)
        if total > max_bytes:
            raise PayloadTooLargeError(max_bytes, {"read_bytes": total})
        yield chunk


def read_stream(stream: BinaryIO, max_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES) -> bytes:
    """Read a whole binary stream, bounded by max_bytes."""
    return b"".join(iter_chunks(stream, max_bytes=max_bytes))


def read_payload(
    source: Optional[str],
    stdin: Optional[BinaryIO] = None,
    max_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
) -> bytes:
    """
    Resolve a payload argument to bytes.

    Args:
        source: None or '' for no body, '@-' for stdin, '@path' for a file,
            anything else is sent literally (UTF-8)
        stdin: Binary stream used for '@-' (sys.stdin.buffer if None)
        max_bytes: Largest accepted payload

    Returns:
        bytes: Payload, empty for no body

    Raises:
        PayloadTooLargeError: If the payload exceeds max_bytes
        ValidationError: If a payload file cannot be read
    """
    if not source:
        return b""

    if source == STDIN_SOURCE:
        stream = stdin if stdin is not None else sys.stdin.buffer
        return read_stream(stream, max_bytes)

    if source.startswith("@"):
        path = Path(source[1:])
        try:
            with open(path, 'rb') as f:
                return read_stream(f, max_bytes)
        except OSError as e:
            raise ValidationError(
                f"Failed to read payload file: {e}",
                "PAYLOAD_FILE_ERROR",
                {"path": str(path)}
            )

    data = source.encode('utf-8')
    if len(data) > max_bytes:
        raise PayloadTooLargeError(max_bytes, {"read_bytes": len(data)})
    return data

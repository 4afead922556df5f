"""
Utility functions for request signing

This module provides utility functions for shared-secret HTTP signatures,
including body digest calculation, date formatting, URL parsing and header
name handling.
"""

import time
import hashlib
import base64
import re
from wsgiref.handlers import format_date_time
from typing import Iterable, Optional, Union
from urllib.parse import urlsplit

import requests

from ..exceptions import InvalidSecretError, ValidationError
from .types import (
    DigestAlgorithm,
    DigestResult,
    DateFormat,
    ParsedUrl,
    SigningErrorCodes,
)

_DEFAULT_PORTS = {"http": 80, "https": 443}

_KEY_ID_PATTERN = re.compile(r'^[!#-\[\]-~]+$')

_HASH_CONSTRUCTORS = {
    DigestAlgorithm.SHA256: hashlib.sha256,
    DigestAlgorithm.SHA512: hashlib.sha512,
}


def _new_hasher(algorithm: Union[str, DigestAlgorithm]):
    resolved = DigestAlgorithm.from_name(algorithm)
    return resolved, _HASH_CONSTRUCTORS[resolved]()


def compute_digest(
    payload: bytes,
    algorithm: Union[str, DigestAlgorithm] = DigestAlgorithm.SHA256
) -> DigestResult:
    """
    Calculate the digest of a request body.

    Callers skip this for empty payloads; bodiless requests carry no
    Digest header.

    Args:
        payload: Exact body bytes that will be sent
        algorithm: Digest algorithm name or enum member

    Returns:
        DigestResult: Algorithm and base64-encoded hash

    Raises:
        UnsupportedAlgorithmError: If the algorithm is not supported
        ValidationError: If payload is not bytes
    """
    if not isinstance(payload, (bytes, bytearray, memoryview)):
        raise ValidationError(
            f"Payload must be bytes, got {type(payload).__name__}",
            SigningErrorCodes.DIGEST_CALCULATION_FAILED,
            {"payload_type": type(payload).__name__}
        )

    resolved, hasher = _new_hasher(algorithm)
    hasher.update(payload)
    return DigestResult(
        algorithm=resolved,
        encoded_value=base64.b64encode(hasher.digest()).decode('ascii')
    )


def compute_digest_stream(
    chunks: Iterable[bytes],
    algorithm: Union[str, DigestAlgorithm] = DigestAlgorithm.SHA256
) -> DigestResult:
    """
    Calculate a body digest incrementally over byte chunks.

    Produces the same result as compute_digest over the concatenated chunks.

    Args:
        chunks: Iterable of byte chunks
        algorithm: Digest algorithm name or enum member

    Returns:
        DigestResult: Algorithm and base64-encoded hash
    """
    resolved, hasher = _new_hasher(algorithm)
    for chunk in chunks:
        hasher.update(chunk)
    return DigestResult(
        algorithm=resolved,
        encoded_value=base64.b64encode(hasher.digest()).decode('ascii')
    )


def parse_url(url: str) -> ParsedUrl:
    """
    Parse URL to extract components needed for signing.

    Args:
        url: URL string to parse

    Returns:
        ParsedUrl: scheme, host, path and query

    Raises:
        ValidationError: If URL format is invalid
    """
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError as e:
        raise ValidationError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )

    if not parsed.scheme or not parsed.hostname:
        raise ValidationError(
            f"Invalid URL format: {url}",
            SigningErrorCodes.INVALID_URL,
            {"url": url}
        )

    scheme = parsed.scheme.lower()
    if scheme not in _DEFAULT_PORTS:
        raise ValidationError(
            f"Unsupported URL scheme: {parsed.scheme}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "scheme": parsed.scheme}
        )

    # Sign the URL exactly as requests will put it on the wire
    # (IDNA host, percent-encoded path and query)
    try:
        wire = urlsplit(requests.Request('GET', url).prepare().url)
    except (requests.exceptions.RequestException, ValueError) as e:
        raise ValidationError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )

    # Host header carries the port only when it is not the scheme default
    hostname = wire.hostname
    if ':' in hostname:
        hostname = f"[{hostname}]"
    host = hostname
    if port is not None and port != _DEFAULT_PORTS[scheme]:
        host = f"{hostname}:{port}"

    return ParsedUrl(
        scheme=scheme,
        host=host,
        path=wire.path or "/",
        query=wire.query
    )


def normalize_header_name(name: str) -> str:
    """
    Normalize header name to lowercase for consistent processing.

    Args:
        name: Header name to normalize

    Returns:
        str: Lowercase header name
    """
    return name.lower().strip()


def validate_header_name(name: str) -> bool:
    """
    Validate header name (RFC 7230 token).

    Args:
        name: Header name to validate

    Returns:
        bool: True if header name is valid
    """
    if not isinstance(name, str):
        return False

    header_name_pattern = re.compile(r'^[!#$%&\'*+\-.0-9A-Z^_`a-z|~]+$')
    return bool(header_name_pattern.match(name))


def validate_header_value(value: str) -> bool:
    """
    Validate a header value can be sent as-is.

    http.client encodes header values as Latin-1 and refuses line breaks.

    Args:
        value: Header value to validate

    Returns:
        bool: True if header value is valid
    """
    if not isinstance(value, str):
        return False
    if any(ch in value for ch in '\r\n\0'):
        return False
    try:
        value.encode('latin-1')
    except UnicodeEncodeError:
        return False
    return True


def validate_key_id(key_id: str) -> bool:
    """
    Validate a key id for the quoted keyId parameter.

    Visible ASCII only, without '"' or '\\'.
    """
    if not isinstance(key_id, str):
        return False
    return bool(_KEY_ID_PATTERN.match(key_id))


def format_http_date(timestamp: Optional[float] = None) -> str:
    """
    Format timestamp as an RFC 7231 IMF-fixdate string.

    Args:
        timestamp: Unix timestamp (uses current time if None)

    Returns:
        str: e.g. 'Sun, 06 Nov 1994 08:49:37 GMT'
    """
    if timestamp is None:
        timestamp = time.time()
    return format_date_time(timestamp)


def format_epoch_ms(timestamp: Optional[float] = None) -> str:
    """
    Format timestamp as milliseconds since the epoch.

    Args:
        timestamp: Unix timestamp in seconds (uses current time if None)

    Returns:
        str: Integer millisecond string
    """
    if timestamp is None:
        timestamp = time.time()
    return str(int(timestamp * 1000))


def format_date(timestamp: float, date_format: Union[str, DateFormat] = DateFormat.HTTP_DATE) -> str:
    """
    Format a timestamp for the signed Date header.

    Args:
        timestamp: Unix timestamp in seconds
        date_format: Encoding to use

    Returns:
        str: Date header value
    """
    try:
        resolved = DateFormat(date_format)
    except ValueError:
        raise ValidationError(
            f"Unsupported date format: {date_format}",
            "INVALID_DATE_FORMAT",
            {"date_format": date_format, "supported": [f.value for f in DateFormat]}
        )

    if resolved == DateFormat.EPOCH_MS:
        return format_epoch_ms(timestamp)
    return format_http_date(timestamp)


def coerce_secret(secret: Union[str, bytes, bytearray, None]) -> bytes:
    """
    Convert a shared secret to bytes.

    Strings are UTF-8 encoded. Validation of the result is the signer's job.
    """
    if secret is None:
        return b""
    if isinstance(secret, str):
        return secret.encode('utf-8')
    if isinstance(secret, (bytes, bytearray)):
        return bytes(secret)
    raise InvalidSecretError(
        f"Secret must be string or bytes, got {type(secret).__name__}",
        SigningErrorCodes.INVALID_SECRET,
        {"secret_type": type(secret).__name__}
    )


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000

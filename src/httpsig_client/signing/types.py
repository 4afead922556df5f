"""
Type definitions for request signing functionality

This module provides type definitions and data classes for shared-secret HTTP
signatures: the request being signed, the body digest, the signature header
and the fully signed request handed to the dispatcher.
"""

from typing import Dict, Tuple, Optional, Union
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import UnsupportedAlgorithmError, ValidationError


class HttpMethod(str, Enum):
    """HTTP methods supported for signing"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    @classmethod
    def from_name(cls, name: Union[str, 'HttpMethod']) -> 'HttpMethod':
        """Resolve a method name case-insensitively."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unsupported HTTP method: {name}",
                "INVALID_METHOD",
                {"method": name}
            )


class DigestAlgorithm(str, Enum):
    """Body digest algorithms"""
    SHA256 = "SHA-256"
    SHA512 = "SHA-512"

    @classmethod
    def from_name(cls, name: Union[str, 'DigestAlgorithm']) -> 'DigestAlgorithm':
        """
        Resolve a digest algorithm name.

        Accepts 'SHA-256', 'sha-256' and 'sha256' style spellings.

        Raises:
            UnsupportedAlgorithmError: If the name is not a supported digest
        """
        if isinstance(name, cls):
            return name
        normalized = str(name).strip().upper().replace("_", "-")
        if normalized.startswith("SHA") and not normalized.startswith("SHA-"):
            normalized = "SHA-" + normalized[3:]
        for algorithm in cls:
            if algorithm.value == normalized:
                return algorithm
        raise UnsupportedAlgorithmError(
            f"Unsupported digest algorithm: {name}",
            SigningErrorCodes.UNSUPPORTED_DIGEST_ALGORITHM,
            {"algorithm": name, "supported": [a.value for a in cls]}
        )


class SignatureAlgorithm(str, Enum):
    """Keyed signature algorithms"""
    HMAC_SHA256 = "hmac-sha256"
    HMAC_SHA512 = "hmac-sha512"

    @classmethod
    def from_name(cls, name: Union[str, 'SignatureAlgorithm']) -> 'SignatureAlgorithm':
        """
        Resolve a signature algorithm name case-insensitively.

        Raises:
            UnsupportedAlgorithmError: If the name is not a supported algorithm
        """
        if isinstance(name, cls):
            return name
        normalized = str(name).strip().lower().replace("_", "-")
        for algorithm in cls:
            if algorithm.value == normalized:
                return algorithm
        raise UnsupportedAlgorithmError(
            f"Unsupported signature algorithm: {name}",
            SigningErrorCodes.UNSUPPORTED_SIGNATURE_ALGORITHM,
            {"algorithm": name, "supported": [a.value for a in cls]}
        )


class DateFormat(str, Enum):
    """Encodings for the signed date header"""
    HTTP_DATE = "http-date"
    EPOCH_MS = "epoch-ms"


class SignatureHeaderName(str, Enum):
    """Header used to carry the signature"""
    SIGNATURE = "signature"
    AUTHORIZATION = "authorization"


@dataclass(frozen=True)
class ParsedUrl:
    """
    URL components needed for signing

    Attributes:
        scheme: 'http' or 'https'
        host: Host header value (hostname plus explicit port, no userinfo)
        path: Path component, '/' when empty
        query: Query string without the leading '?'
    """
    scheme: str
    host: str
    path: str
    query: str = ""

    @property
    def target(self) -> str:
        """Path with query, as used in the (request-target) line."""
        if self.query:
            return f"{self.path}?{self.query}"
        return self.path


@dataclass(frozen=True)
class RequestSpec:
    """
    Request to be signed

    Attributes:
        method: HTTP method
        url: Complete request URL
        date: Date header value, exactly as it will be sent
        identity: Key id advertised to the verifier
        payload: Request body bytes, empty for bodiless requests
        headers: Additional unsigned headers to send
    """
    method: HttpMethod
    url: str
    date: str
    identity: str
    payload: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        """Validate request after initialization"""
        if not self.url:
            raise ValidationError("Request URL cannot be empty", "INVALID_URL")

        if not self.identity:
            raise ValidationError("Identity (key id) cannot be empty", "INVALID_KEY_ID")

        if not self.date:
            raise ValidationError("Date cannot be empty", "INVALID_DATE")

        if not isinstance(self.payload, bytes):
            raise ValidationError("Payload must be bytes", "INVALID_PAYLOAD",
                                  {"payload_type": type(self.payload).__name__})

        object.__setattr__(self, "method", HttpMethod.from_name(self.method))

    @property
    def has_payload(self) -> bool:
        return len(self.payload) > 0


@dataclass(frozen=True)
class DigestResult:
    """
    Digest of a request body

    Attributes:
        algorithm: Digest algorithm used
        encoded_value: Base64-encoded raw hash bytes
    """
    algorithm: DigestAlgorithm
    encoded_value: str

    @property
    def header_value(self) -> str:
        """Value for the Digest header, e.g. 'SHA-256=<base64>'."""
        return f"{self.algorithm.value}={self.encoded_value}"


@dataclass(frozen=True)
class SignatureHeader:
    """
    Parsed or generated signature header

    Attributes:
        key_id: Key identifier for the verifier
        algorithm: Signature algorithm identifier
        headers: Covered header names, in canonical order
        signature: Base64-encoded signature bytes
    """
    key_id: str
    algorithm: str
    headers: Tuple[str, ...]
    signature: str

    def to_header_value(self) -> str:
        return (
            f'keyId="{self.key_id}",'
            f'algorithm="{self.algorithm}",'
            f'headers="{" ".join(self.headers)}",'
            f'signature="{self.signature}"'
        )

    def to_authorization_value(self) -> str:
        return f"Signature {self.to_header_value()}"


@dataclass
class SignedRequest:
    """
    Request ready for dispatch

    Attributes:
        method: HTTP method
        url: Request URL
        headers: Final wire headers, signature included
        body: Exact bytes that were digested
        canonical_string: String the signature was computed over
        signature_header: Signature components
        digest: Body digest, None for bodiless requests
    """
    method: HttpMethod
    url: str
    headers: Dict[str, str]
    body: bytes
    canonical_string: str
    signature_header: SignatureHeader
    digest: Optional[DigestResult] = None


# Common signing error codes
class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"

    # Algorithm errors
    UNSUPPORTED_DIGEST_ALGORITHM = "UNSUPPORTED_DIGEST_ALGORITHM"
    UNSUPPORTED_SIGNATURE_ALGORITHM = "UNSUPPORTED_SIGNATURE_ALGORITHM"

    # Secret / identity errors
    INVALID_SECRET = "INVALID_SECRET"
    INVALID_KEY_ID = "INVALID_KEY_ID"

    # Canonicalization errors
    MISSING_SIGNING_HEADER = "MISSING_SIGNING_HEADER"
    REQUEST_TARGET_NOT_FIRST = "REQUEST_TARGET_NOT_FIRST"
    INVALID_URL = "INVALID_URL"

    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"
    DIGEST_CALCULATION_FAILED = "DIGEST_CALCULATION_FAILED"

    # Verification errors
    MALFORMED_SIGNATURE_HEADER = "MALFORMED_SIGNATURE_HEADER"


# Ordered covered header name to value
SigningHeaders = Dict[str, str]

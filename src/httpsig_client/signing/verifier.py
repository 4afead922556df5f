"""
Signature verification for shared-secret HTTP signatures

This module recomputes the body digest and canonical string of a received
request from the header list advertised in its signature header and checks
the HMAC in constant time. It is the receiving side of HttpSignatureSigner.
"""

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from ..exceptions import HttpSigClientError, SigningError
from .types import (
    DigestAlgorithm,
    HttpMethod,
    SignatureAlgorithm,
    SignatureHeader,
    SigningErrorCodes,
)
from .utils import coerce_secret, compute_digest, normalize_header_name, parse_url
from .canonical_message import REQUEST_TARGET, build_canonical_string

logger = logging.getLogger(__name__)

_PARAM_PATTERN = re.compile(r'\s*([A-Za-z]+)="([^"]*)"\s*(?:,|$)')

_REQUIRED_PARAMS = ("keyId", "signature")

SecretResolver = Callable[[str], Optional[Union[str, bytes]]]


class VerificationStatus:
    """Reasons reported by verify_request"""
    VALID = "valid"
    MISSING_SIGNATURE = "missing_signature"
    MALFORMED_SIGNATURE = "malformed_signature"
    UNKNOWN_KEY = "unknown_key"
    MISSING_HEADER = "missing_header"
    DIGEST_MISMATCH = "digest_mismatch"
    SIGNATURE_MISMATCH = "signature_mismatch"


@dataclass
class VerificationResult:
    """
    Result of verifying a signed request

    Attributes:
        valid: Whether the signature matched
        key_id: Key id from the signature header, if it could be parsed
        reason: One of the VerificationStatus values
        canonical_string: Recomputed canonical string, if it was built
    """
    valid: bool
    key_id: Optional[str] = None
    reason: str = VerificationStatus.VALID
    canonical_string: Optional[str] = None


def parse_signature_header(value: str) -> SignatureHeader:
    """
    Parse a signature header value.

    Accepts the bare parameter list or an Authorization value with the
    'Signature ' scheme prefix. A missing algorithm defaults to hmac-sha256
    and a missing headers list to 'date'.

    Args:
        value: Header value

    Returns:
        SignatureHeader: Parsed components

    Raises:
        SigningError: If the value is malformed
    """
    if not value or not value.strip():
        raise SigningError(
            "Signature header is empty",
            SigningErrorCodes.MALFORMED_SIGNATURE_HEADER
        )

    text = value.strip()
    if text[:10].lower() == "signature ":
        text = text[10:].strip()

    params = {}
    position = 0
    while position < len(text):
        match = _PARAM_PATTERN.match(text, position)
        if not match:
            raise SigningError(
                f"Malformed signature header near offset {position}",
                SigningErrorCodes.MALFORMED_SIGNATURE_HEADER,
                {"value": value}
            )
        params[match.group(1)] = match.group(2)
        position = match.end()

    missing = [name for name in _REQUIRED_PARAMS if not params.get(name)]
    if missing:
        raise SigningError(
            f"Signature header missing parameters: {', '.join(missing)}",
            SigningErrorCodes.MALFORMED_SIGNATURE_HEADER,
            {"missing": missing}
        )

    return SignatureHeader(
        key_id=params["keyId"],
        algorithm=params.get("algorithm", SignatureAlgorithm.HMAC_SHA256.value),
        headers=tuple(params.get("headers", "date").lower().split()),
        signature=params["signature"]
    )


def _find_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    for header_name, header_value in headers.items():
        if normalize_header_name(header_name) == name:
            return header_value
    return None


def _extract_signature_value(headers: Mapping[str, str]) -> Optional[str]:
    signature_value = _find_header(headers, "signature")
    if signature_value:
        return signature_value

    authorization = _find_header(headers, "authorization")
    if authorization and authorization.strip()[:10].lower() == "signature ":
        return authorization
    return None


def _digest_matches(digest_header: str, body: bytes) -> bool:
    algorithm_name, _, encoded = digest_header.partition("=")
    if not encoded:
        return False
    try:
        expected = compute_digest(body, DigestAlgorithm.from_name(algorithm_name))
    except HttpSigClientError:
        return False
    return expected.encoded_value == encoded


def verify_request(
    method: Union[str, HttpMethod],
    url: str,
    headers: Mapping[str, str],
    body: bytes,
    secret_resolver: SecretResolver
) -> VerificationResult:
    """
    Verify the signature of a received request.

    Args:
        method: HTTP method of the request
        url: Full request URL
        headers: Received headers (any case)
        body: Received body bytes
        secret_resolver: Returns the shared secret for a key id, or None

    Returns:
        VerificationResult: Verification outcome
    """
    signature_value = _extract_signature_value(headers)
    if signature_value is None:
        return VerificationResult(valid=False, reason=VerificationStatus.MISSING_SIGNATURE)

    try:
        parsed = parse_signature_header(signature_value)
        algorithm = SignatureAlgorithm.from_name(parsed.algorithm)
        signature_bytes = base64.b64decode(parsed.signature, validate=True)
    except (HttpSigClientError, binascii.Error) as e:
        logger.debug(f"Rejecting malformed signature header: {e}")
        return VerificationResult(valid=False, reason=VerificationStatus.MALFORMED_SIGNATURE)

    secret = secret_resolver(parsed.key_id)
    if not secret:
        return VerificationResult(
            valid=False, key_id=parsed.key_id, reason=VerificationStatus.UNKNOWN_KEY
        )

    ordered = {}
    for name in parsed.headers:
        if name == REQUEST_TARGET:
            ordered[name] = None
            continue
        value = _find_header(headers, name)
        if value is None:
            return VerificationResult(
                valid=False, key_id=parsed.key_id, reason=VerificationStatus.MISSING_HEADER
            )
        ordered[name] = value

    if "digest" in ordered and not _digest_matches(ordered["digest"], body or b""):
        return VerificationResult(
            valid=False, key_id=parsed.key_id, reason=VerificationStatus.DIGEST_MISMATCH
        )

    try:
        canonical_string = build_canonical_string(
            HttpMethod.from_name(method), parse_url(url).target, ordered
        )
    except HttpSigClientError:
        return VerificationResult(
            valid=False, key_id=parsed.key_id, reason=VerificationStatus.MISSING_HEADER
        )

    hash_algorithm = hashes.SHA512() if algorithm == SignatureAlgorithm.HMAC_SHA512 else hashes.SHA256()
    mac = hmac.HMAC(coerce_secret(secret), hash_algorithm)
    mac.update(canonical_string.encode('utf-8'))
    try:
        mac.verify(signature_bytes)
    except InvalidSignature:
        return VerificationResult(
            valid=False,
            key_id=parsed.key_id,
            reason=VerificationStatus.SIGNATURE_MISMATCH,
            canonical_string=canonical_string
        )

    return VerificationResult(
        valid=True,
        key_id=parsed.key_id,
        reason=VerificationStatus.VALID,
        canonical_string=canonical_string
    )

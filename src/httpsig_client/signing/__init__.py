"""
httpsig-client - Request Signing Module

Shared-secret HTTP signatures: body digest, canonical string construction,
HMAC signing and verification.
"""

from .types import (
    RequestSpec,
    ParsedUrl,
    DigestResult,
    SignatureHeader,
    SignedRequest,
    SigningHeaders,
    SigningErrorCodes,
    DigestAlgorithm,
    HttpMethod,
    SignatureAlgorithm,
    SignatureHeaderName,
    DateFormat,
)

from .utils import (
    compute_digest,
    compute_digest_stream,
    parse_url,
    normalize_header_name,
    validate_header_name,
    validate_header_value,
    validate_key_id,
    format_http_date,
    format_epoch_ms,
    format_date,
)

from .canonical_message import (
    REQUEST_TARGET,
    build_signing_headers,
    build_canonical_string,
    covered_headers,
)

from .signing_config import (
    SigningConfig,
    SigningConfigBuilder,
    create_signing_config,
    validate_signing_config,
)

from .signer import (
    HttpSignatureSigner,
    compute_signature,
    sign,
    create_signer,
    sign_request,
)

from .verifier import (
    VerificationResult,
    VerificationStatus,
    parse_signature_header,
    verify_request,
)

# Public API exports
__all__ = [
    # Types
    'RequestSpec',
    'ParsedUrl',
    'DigestResult',
    'SignatureHeader',
    'SignedRequest',
    'SigningHeaders',
    'SigningErrorCodes',
    'DigestAlgorithm',
    'HttpMethod',
    'SignatureAlgorithm',
    'SignatureHeaderName',
    'DateFormat',
    # Utilities
    'compute_digest',
    'compute_digest_stream',
    'parse_url',
    'normalize_header_name',
    'validate_header_name',
    'validate_header_value',
    'validate_key_id',
    'format_http_date',
    'format_epoch_ms',
    'format_date',
    # Canonical string
    'REQUEST_TARGET',
    'build_signing_headers',
    'build_canonical_string',
    'covered_headers',
    # Configuration
    'SigningConfig',
    'SigningConfigBuilder',
    'create_signing_config',
    'validate_signing_config',
    # Signing
    'HttpSignatureSigner',
    'compute_signature',
    'sign',
    'create_signer',
    'sign_request',
    # Verification
    'VerificationResult',
    'VerificationStatus',
    'parse_signature_header',
    'verify_request',
]

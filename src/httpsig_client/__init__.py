"""
httpsig-client
One-shot HTTP client with shared-secret HTTP signatures
"""

from .version import __version__
from .exceptions import (
    HttpSigClientError,
    ValidationError,
    PayloadTooLargeError,
    ConfigurationError,
    SigningError,
    UnsupportedAlgorithmError,
    MissingSigningHeaderError,
    InvalidSecretError,
    ServerCommunicationError,
)
from .signing import (
    # Types
    RequestSpec,
    DigestResult,
    SignatureHeader,
    SignedRequest,
    DigestAlgorithm,
    HttpMethod,
    SignatureAlgorithm,
    SignatureHeaderName,
    DateFormat,
    # Core operations
    compute_digest,
    compute_digest_stream,
    build_signing_headers,
    build_canonical_string,
    sign,
    HttpSignatureSigner,
    SigningConfig,
    create_signing_config,
    # Verification
    verify_request,
    parse_signature_header,
    VerificationResult,
)
from .http_client import (
    Dispatcher,
    DispatchResult,
    DispatchSuccess,
    TransportFailure,
    TransportFailureKind,
    create_dispatcher,
)
from .classifier import (
    Outcome,
    Ok,
    RemoteError,
    TransportError,
    classify,
    raise_for_outcome,
)
from .config import ClientConfig, load_config
from .payload import read_payload
from .integration import SignedRequestClient, send_signed_request

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'HttpSigClientError',
    'ValidationError',
    'PayloadTooLargeError',
    'ConfigurationError',
    'SigningError',
    'UnsupportedAlgorithmError',
    'MissingSigningHeaderError',
    'InvalidSecretError',
    'ServerCommunicationError',
    # Signing - Types
    'RequestSpec',
    'DigestResult',
    'SignatureHeader',
    'SignedRequest',
    'DigestAlgorithm',
    'HttpMethod',
    'SignatureAlgorithm',
    'SignatureHeaderName',
    'DateFormat',
    # Signing - Core
    'compute_digest',
    'compute_digest_stream',
    'build_signing_headers',
    'build_canonical_string',
    'sign',
    'HttpSignatureSigner',
    'SigningConfig',
    'create_signing_config',
    # Verification
    'verify_request',
    'parse_signature_header',
    'VerificationResult',
    # Dispatch
    'Dispatcher',
    'DispatchResult',
    'DispatchSuccess',
    'TransportFailure',
    'TransportFailureKind',
    'create_dispatcher',
    # Classification
    'Outcome',
    'Ok',
    'RemoteError',
    'TransportError',
    'classify',
    'raise_for_outcome',
    # Configuration
    'ClientConfig',
    'load_config',
    # Payload
    'read_payload',
    # Integration
    'SignedRequestClient',
    'send_signed_request',
]

"""
Shared-secret HTTP signature signer

This module computes keyed HMAC signatures over canonical strings and runs the
full signing pipeline for a request: body digest, signing headers, canonical
string, signature and the final wire headers.
"""

import base64
import logging
from typing import Dict, Iterable, Union

from cryptography.hazmat.primitives import hashes, hmac

from ..exceptions import InvalidSecretError, SigningError, ValidationError
from .types import (
    RequestSpec,
    SignatureAlgorithm,
    SignatureHeader,
    SignatureHeaderName,
    SignedRequest,
    SigningErrorCodes,
)
from .utils import (
    coerce_secret,
    compute_digest,
    normalize_header_name,
    parse_url,
    validate_header_name,
    validate_header_value,
    validate_key_id,
    PerformanceTimer,
)
from .canonical_message import (
    build_canonical_string,
    build_signing_headers,
    covered_headers,
)
from .signing_config import SigningConfig, validate_signing_config

logger = logging.getLogger(__name__)

_HASH_FOR_ALGORITHM = {
    SignatureAlgorithm.HMAC_SHA256: hashes.SHA256,
    SignatureAlgorithm.HMAC_SHA512: hashes.SHA512,
}

# Headers the signer owns on the wire; caller-supplied copies are dropped
_SIGNER_OWNED_HEADERS = {"host", "date", "digest", "signature"}


def compute_signature(
    message: Union[str, bytes],
    secret: Union[str, bytes],
    algorithm: Union[str, SignatureAlgorithm] = SignatureAlgorithm.HMAC_SHA256
) -> bytes:
    """
    Compute a raw HMAC over a message.

    Args:
        message: Message to sign, strings are UTF-8 encoded
        secret: Shared secret
        algorithm: Signature algorithm

    Returns:
        bytes: Raw HMAC bytes

    Raises:
        InvalidSecretError: If the secret is empty
        UnsupportedAlgorithmError: If the algorithm is not supported
    """
    resolved = SignatureAlgorithm.from_name(algorithm)
    key = coerce_secret(secret)
    if not key:
        raise InvalidSecretError(
            "Shared secret cannot be empty",
            SigningErrorCodes.INVALID_SECRET
        )

    if isinstance(message, str):
        message = message.encode('utf-8')

    mac = hmac.HMAC(key, _HASH_FOR_ALGORITHM[resolved]())
    mac.update(message)
    return mac.finalize()


def sign(
    canonical_string: str,
    identity: str,
    secret: Union[str, bytes],
    algorithm: Union[str, SignatureAlgorithm],
    covered: Iterable[str]
) -> SignatureHeader:
    """
    Sign a canonical string and assemble the signature header.

    Args:
        canonical_string: Canonical string to sign
        identity: Key id advertised to the verifier
        secret: Shared secret
        algorithm: Signature algorithm
        covered: Covered header names, in canonical order

    Returns:
        SignatureHeader: Signature header components

    Raises:
        InvalidSecretError: If the secret is empty
        UnsupportedAlgorithmError: If the algorithm is not supported
        ValidationError: If the identity is empty or not a valid key id
    """
    if not identity:
        raise ValidationError(
            "Identity (key id) cannot be empty",
            SigningErrorCodes.INVALID_KEY_ID
        )

    if not validate_key_id(identity):
        raise ValidationError(
            f"Invalid key id: {identity!r}",
            SigningErrorCodes.INVALID_KEY_ID,
            {"reason": "key id must be visible ASCII without quotes or backslashes"}
        )

    resolved = SignatureAlgorithm.from_name(algorithm)
    signature_bytes = compute_signature(canonical_string, secret, resolved)

    return SignatureHeader(
        key_id=identity,
        algorithm=resolved.value,
        headers=tuple(normalize_header_name(name) for name in covered),
        signature=base64.b64encode(signature_bytes).decode('ascii')
    )


class HttpSignatureSigner:
    """
    Shared-secret HTTP signature signer

    Runs the digest, canonical string and signature steps for a request and
    returns the headers to send with it.
    """

    def __init__(self, config: SigningConfig):
        """
        Initialize the signer with configuration.

        Args:
            config: Signing configuration

        Raises:
            SigningError: If configuration is invalid
        """
        validate_signing_config(config)
        self.config = config

    def sign_request(self, spec: RequestSpec) -> SignedRequest:
        """
        Sign a request.

        Args:
            spec: Request to sign; its date is used verbatim

        Returns:
            SignedRequest: Request with final wire headers

        Raises:
            SigningError: If signing fails
            ValidationError: If the request is malformed
        """
        timer = PerformanceTimer()
        self._validate_request(spec)

        digest = None
        if spec.has_payload:
            digest = compute_digest(spec.payload, self.config.digest_algorithm)

        signing_headers = build_signing_headers(spec, digest)
        target = parse_url(spec.url).target
        canonical_string = build_canonical_string(spec.method, target, signing_headers)

        signature_header = sign(
            canonical_string,
            spec.identity,
            self.config.secret,
            self.config.algorithm,
            covered_headers(signing_headers)
        )

        headers = self._build_wire_headers(spec, signing_headers, signature_header)

        logger.debug(f"Canonical string for {spec.method.value} {spec.url}:\n{canonical_string}")

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > 10:
            logger.warning(f"Signing operation took {elapsed_ms:.2f}ms (target: <10ms)")

        return SignedRequest(
            method=spec.method,
            url=spec.url,
            headers=headers,
            body=spec.payload,
            canonical_string=canonical_string,
            signature_header=signature_header,
            digest=digest
        )

    def _validate_request(self, spec: RequestSpec) -> None:
        """
        Reject requests that cannot be sent exactly as signed.

        Raises:
            SigningError: If the request identity is not the configured key id
            ValidationError: If the date or an extra header cannot go on the wire
        """
        if spec.identity != self.config.key_id:
            raise SigningError(
                "Request identity does not match the configured key id",
                SigningErrorCodes.INVALID_KEY_ID,
                {"identity": spec.identity, "key_id": self.config.key_id}
            )

        if not validate_header_value(spec.date):
            raise ValidationError(
                f"Invalid date header value: {spec.date!r}",
                "INVALID_DATE"
            )

        for name, value in spec.headers.items():
            if not validate_header_name(name) or not validate_header_value(value):
                raise ValidationError(
                    f"Invalid header: {name!r}",
                    "INVALID_HEADERS",
                    {"header": name}
                )

    def _build_wire_headers(
        self,
        spec: RequestSpec,
        signing_headers: Dict[str, str],
        signature_header: SignatureHeader
    ) -> Dict[str, str]:
        """
        Build the headers sent on the wire.

        Signed values are sent exactly as they were signed.
        """
        owned = set(_SIGNER_OWNED_HEADERS)
        if self.config.signature_header == SignatureHeaderName.AUTHORIZATION:
            owned.add("authorization")

        headers = {
            name: value for name, value in spec.headers.items()
            if normalize_header_name(name) not in owned
        }

        headers['Host'] = signing_headers['host']
        headers['Date'] = signing_headers['date']
        if 'digest' in signing_headers:
            headers['Digest'] = signing_headers['digest']

        if self.config.signature_header == SignatureHeaderName.AUTHORIZATION:
            headers['Authorization'] = signature_header.to_authorization_value()
        else:
            headers['Signature'] = signature_header.to_header_value()

        return headers


def create_signer(config: SigningConfig) -> HttpSignatureSigner:
    """
    Create a new HTTP signature signer.

    Args:
        config: Signing configuration

    Returns:
        HttpSignatureSigner: Configured signer instance
    """
    return HttpSignatureSigner(config)


def sign_request(spec: RequestSpec, config: SigningConfig) -> SignedRequest:
    """
    Sign a request with the given configuration.

    Args:
        spec: Request to sign
        config: Signing configuration

    Returns:
        SignedRequest: Signed request
    """
    return create_signer(config).sign_request(spec)

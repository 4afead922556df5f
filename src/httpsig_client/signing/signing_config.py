"""
Configuration management for request signing

This module provides the signing configuration (identity, shared secret and
algorithms), a fluent builder and validation.
"""

from typing import Optional, Union
from dataclasses import dataclass

from ..exceptions import InvalidSecretError, SigningError
from .types import (
    DigestAlgorithm,
    SignatureAlgorithm,
    SignatureHeaderName,
    SigningErrorCodes,
)
from .utils import coerce_secret, validate_key_id


@dataclass
class SigningConfig:
    """
    Configuration for request signing

    Attributes:
        key_id: Key identifier advertised in the signature header
        secret: Shared secret bytes
        algorithm: Keyed signature algorithm
        digest_algorithm: Body digest algorithm
        signature_header: Header carrying the signature
    """
    key_id: str
    secret: bytes
    algorithm: SignatureAlgorithm = SignatureAlgorithm.HMAC_SHA256
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
    signature_header: SignatureHeaderName = SignatureHeaderName.SIGNATURE

    def __post_init__(self):
        """Normalize and validate signing configuration"""
        self.secret = coerce_secret(self.secret)
        self.algorithm = SignatureAlgorithm.from_name(self.algorithm)
        self.digest_algorithm = DigestAlgorithm.from_name(self.digest_algorithm)
        if not isinstance(self.signature_header, SignatureHeaderName):
            try:
                self.signature_header = SignatureHeaderName(str(self.signature_header).strip().lower())
            except ValueError:
                raise SigningError(
                    f"Unsupported signature header: {self.signature_header}",
                    SigningErrorCodes.INVALID_CONFIG,
                    {"supported": [h.value for h in SignatureHeaderName]}
                )
        validate_signing_config(self)

    def __repr__(self) -> str:
        return (
            f"SigningConfig(key_id='{self.key_id}', secret=<{len(self.secret)} bytes>, "
            f"algorithm='{self.algorithm.value}', digest_algorithm='{self.digest_algorithm.value}', "
            f"signature_header='{self.signature_header.value}')"
        )


def validate_signing_config(config: SigningConfig) -> None:
    """
    Validate a signing configuration.

    Args:
        config: Configuration to validate

    Raises:
        SigningError: If the key id is empty or contains characters that
            cannot be sent in the signature header
        InvalidSecretError: If the secret is empty
    """
    if not config.key_id:
        raise SigningError(
            "Key ID cannot be empty",
            SigningErrorCodes.INVALID_KEY_ID
        )

    if not validate_key_id(config.key_id):
        raise SigningError(
            f"Invalid key id: {config.key_id!r}",
            SigningErrorCodes.INVALID_KEY_ID,
            {"reason": "key id must be visible ASCII without quotes or backslashes"}
        )

    if not config.secret:
        raise InvalidSecretError(
            "Shared secret cannot be empty",
            SigningErrorCodes.INVALID_SECRET
        )


class SigningConfigBuilder:
    """
    Builder for creating signing configurations with fluent API
    """

    def __init__(self):
        self._key_id: Optional[str] = None
        self._secret: Optional[bytes] = None
        self._algorithm: SignatureAlgorithm = SignatureAlgorithm.HMAC_SHA256
        self._digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
        self._signature_header: SignatureHeaderName = SignatureHeaderName.SIGNATURE

    def key_id(self, key_id: str) -> 'SigningConfigBuilder':
        """
        Set key identifier.

        Args:
            key_id: Key identifier for the signature

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._key_id = key_id
        return self

    def secret(self, secret: Union[str, bytes]) -> 'SigningConfigBuilder':
        """
        Set the shared secret.

        Args:
            secret: Shared secret, strings are UTF-8 encoded

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._secret = coerce_secret(secret)
        return self

    def algorithm(self, algorithm: Union[str, SignatureAlgorithm]) -> 'SigningConfigBuilder':
        """Set signature algorithm."""
        self._algorithm = SignatureAlgorithm.from_name(algorithm)
        return self

    def digest_algorithm(self, algorithm: Union[str, DigestAlgorithm]) -> 'SigningConfigBuilder':
        """Set body digest algorithm."""
        self._digest_algorithm = DigestAlgorithm.from_name(algorithm)
        return self

    def use_authorization_header(self, enabled: bool = True) -> 'SigningConfigBuilder':
        """Send the signature as 'Authorization: Signature ...'."""
        self._signature_header = (
            SignatureHeaderName.AUTHORIZATION if enabled else SignatureHeaderName.SIGNATURE
        )
        return self

    def build(self) -> SigningConfig:
        """
        Build the signing configuration.

        Returns:
            SigningConfig: Validated configuration

        Raises:
            SigningError: If required fields are missing
        """
        if self._key_id is None:
            raise SigningError(
                "Key ID is required",
                SigningErrorCodes.INVALID_KEY_ID
            )

        if self._secret is None:
            raise InvalidSecretError(
                "Shared secret is required",
                SigningErrorCodes.INVALID_SECRET
            )

        return SigningConfig(
            key_id=self._key_id,
            secret=self._secret,
            algorithm=self._algorithm,
            digest_algorithm=self._digest_algorithm,
            signature_header=self._signature_header
        )


def create_signing_config() -> SigningConfigBuilder:
    """
    Create a new signing configuration builder.

    Returns:
        SigningConfigBuilder: New builder instance
    """
    return SigningConfigBuilder()

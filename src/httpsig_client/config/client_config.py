"""
Client configuration management

Provides the explicit configuration passed into the signing client, loaded
from defaults, an optional JSON file, environment variables and explicit
overrides, in that order of precedence.
"""

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..exceptions import ConfigurationError, HttpSigClientError
from ..signing.types import (
    DateFormat,
    DigestAlgorithm,
    SignatureAlgorithm,
    SignatureHeaderName,
)
from ..signing.signing_config import SigningConfig
from ..version import __version__

DEFAULT_MAX_PAYLOAD_BYTES = 10 * 1024 * 1024

ENV_PREFIX = "HTTPSIG_"

# Environment variable suffix -> ClientConfig field
ENV_FIELDS = {
    "KEY_ID": "key_id",
    "SECRET": "secret",
    "SECRET_FILE": "secret_file",
    "ALGORITHM": "signature_algorithm",
    "DIGEST": "digest_algorithm",
    "DATE_FORMAT": "date_format",
    "SIGNATURE_HEADER": "signature_header",
    "TIMEOUT": "timeout",
    "VERIFY_SSL": "verify_ssl",
    "MAX_PAYLOAD_BYTES": "max_payload_bytes",
    "USER_AGENT": "user_agent",
    "LOG_LEVEL": "log_level",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {value}", details={"field": name})


@dataclass
class ClientConfig:
    """
    Configuration for a signing client

    Attributes:
        key_id: Identity advertised in the signature header
        secret: Shared secret bytes
        signature_algorithm: Keyed signature algorithm
        digest_algorithm: Body digest algorithm
        date_format: Encoding of the signed Date header
        signature_header: Header carrying the signature
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify TLS certificates
        max_payload_bytes: Largest accepted request payload
        user_agent: User-Agent header value
        log_level: Logging level name for the CLI
    """
    key_id: str = ""
    secret: bytes = b""
    signature_algorithm: SignatureAlgorithm = SignatureAlgorithm.HMAC_SHA256
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
    date_format: DateFormat = DateFormat.HTTP_DATE
    signature_header: SignatureHeaderName = SignatureHeaderName.SIGNATURE
    timeout: float = 30.0
    verify_ssl: bool = True
    max_payload_bytes: int = DEFAULT_MAX_PAYLOAD_BYTES
    user_agent: str = f"httpsig-client/{__version__}"
    log_level: str = "WARNING"

    def __post_init__(self):
        """Normalize and validate configuration values"""
        try:
            if isinstance(self.secret, str):
                self.secret = self.secret.encode('utf-8')
            self.signature_algorithm = SignatureAlgorithm.from_name(self.signature_algorithm)
            self.digest_algorithm = DigestAlgorithm.from_name(self.digest_algorithm)
            self.date_format = DateFormat(str(getattr(self.date_format, "value", self.date_format)).lower())
            self.signature_header = SignatureHeaderName(
                str(getattr(self.signature_header, "value", self.signature_header)).lower()
            )
            self.timeout = float(self.timeout)
            self.verify_ssl = _parse_bool("verify_ssl", self.verify_ssl)
            self.max_payload_bytes = int(self.max_payload_bytes)
        except HttpSigClientError as e:
            raise ConfigurationError(str(e), details=e.details)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration value: {e}")

        if self.timeout <= 0:
            raise ConfigurationError("Timeout must be positive", details={"timeout": self.timeout})

        if self.max_payload_bytes <= 0:
            raise ConfigurationError(
                "max_payload_bytes must be positive",
                details={"max_payload_bytes": self.max_payload_bytes}
            )

    def __repr__(self) -> str:
        return (
            f"ClientConfig(key_id='{self.key_id}', secret=<{len(self.secret)} bytes>, "
            f"signature_algorithm='{self.signature_algorithm.value}', "
            f"digest_algorithm='{self.digest_algorithm.value}', "
            f"date_format='{self.date_format.value}', timeout={self.timeout}, "
            f"verify_ssl={self.verify_ssl})"
        )

    def to_signing_config(self) -> SigningConfig:
        """
        Build the signing configuration.

        Raises:
            SigningError: If key id or secret are missing
        """
        return SigningConfig(
            key_id=self.key_id,
            secret=self.secret,
            algorithm=self.signature_algorithm,
            digest_algorithm=self.digest_algorithm,
            signature_header=self.signature_header,
        )

    def with_overrides(self, **overrides: Any) -> 'ClientConfig':
        """Return a copy with non-None overrides applied."""
        values = _normalize_values({k: v for k, v in overrides.items() if v is not None})
        return replace(self, **values)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ClientConfig':
        """Create configuration from a dictionary"""
        return cls().with_overrides(**dict(data))

    @classmethod
    def from_json(cls, json_string: str) -> 'ClientConfig':
        """Load configuration from a JSON string"""
        try:
            data = json.loads(json_string)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Failed to parse configuration JSON: {e}", "PARSE_ERROR")
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration JSON must be an object", "INVALID_FORMAT")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> 'ClientConfig':
        """Load configuration from a JSON file"""
        try:
            path = Path(file_path)
            with open(path, 'r', encoding='utf-8') as f:
                json_string = f.read()
        except OSError as e:
            raise ConfigurationError(f"Failed to read configuration file: {e}", "FILE_ERROR",
                                     {"path": str(file_path)})
        return cls.from_json(json_string)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'ClientConfig':
        """Load configuration from HTTPSIG_* environment variables"""
        return cls().with_overrides(**env_overrides(env))


def _normalize_values(values: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(ClientConfig)}
    normalized = {}

    secret_file = values.pop("secret_file", None)
    if secret_file is not None and "secret" not in values:
        normalized["secret"] = read_secret_file(secret_file)

    for name, value in values.items():
        if name not in known:
            raise ConfigurationError(f"Unknown configuration field: {name}", details={"field": name})
        normalized[name] = value
    return normalized


def read_secret_file(path: Union[str, Path]) -> bytes:
    """
    Read a shared secret from a file.

    A single trailing newline is stripped.
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Failed to read secret file: {e}", "FILE_ERROR", {"path": str(path)})
    if data.endswith(b"\r\n"):
        return data[:-2]
    if data.endswith(b"\n"):
        return data[:-1]
    return data


def env_overrides(env: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Collect configuration values from HTTPSIG_* environment variables."""
    if env is None:
        env = os.environ
    overrides = {}
    for suffix, field_name in ENV_FIELDS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value not in (None, ""):
            overrides[field_name] = value
    return overrides


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    env: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None
) -> ClientConfig:
    """
    Load layered client configuration.

    Precedence, lowest first: defaults, JSON file, environment, overrides.

    Args:
        config_path: Optional JSON configuration file
        env: Environment mapping (os.environ if None)
        overrides: Explicit values, None entries are ignored

    Returns:
        ClientConfig: Merged configuration

    Raises:
        ConfigurationError: If any layer is invalid
    """
    config = ClientConfig.from_file(config_path) if config_path else ClientConfig()
    config = config.with_overrides(**env_overrides(env))
    if overrides:
        config = config.with_overrides(**dict(overrides))
    return config

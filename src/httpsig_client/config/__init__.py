"""
Configuration management for httpsig-client
"""

from .client_config import (
    ClientConfig,
    DEFAULT_MAX_PAYLOAD_BYTES,
    ENV_PREFIX,
    env_overrides,
    load_config,
    read_secret_file,
)

__all__ = [
    'ClientConfig',
    'DEFAULT_MAX_PAYLOAD_BYTES',
    'ENV_PREFIX',
    'env_overrides',
    'load_config',
    'read_secret_file',
]

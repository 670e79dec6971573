"""Config module.

This module provides configuration management functionality.
"""

from fake_idp.config.manager import (
    build_response_request,
    get_certificate_paths,
    get_identity_provider_config,
    get_key_password,
    get_logging_config,
    load_config,
)
from fake_idp.config.schema import (
    CertificatesConfig,
    Config,
    IdentityProviderConfig,
    LoggingConfig,
)

__all__ = [
    # Main configuration loading
    "load_config",
    "build_response_request",
    # Helper functions
    "get_identity_provider_config",
    "get_certificate_paths",
    "get_key_password",
    "get_logging_config",
    # Configuration models
    "Config",
    "IdentityProviderConfig",
    "CertificatesConfig",
    "LoggingConfig",
]

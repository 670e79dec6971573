"""Default configuration values.

This module defines the default configuration values used when no configuration
file is provided or when configuration values are not specified.
"""

from typing import Any

# Default configuration dictionary
# This is used as a fallback when no configuration file is present
DEFAULT_CONFIG: dict[str, Any] = {
    "identity_provider": {
        # Entity ID of the fake IdP, also used as the Audience
        "issuer_uri": "http://localhost:8080/saml/metadata",
        # Default to a local SP consuming responses
        "acs_url": "http://localhost:3000/saml/acs",
        "digest_algorithm": "sha256",
        "encryption_enabled": False,
    },
    "certificates": {
        # No default certificate paths - must be provided by user
        "cert_path": None,
        "key_path": None,
        "key_password_env_var": "FAKE_IDP_KEY_PASSWORD",
    },
    "logging": {
        "level": "INFO",
        "log_file": "logs/fake-idp.log",
        # Do not redact by default (user must opt-in)
        "redact_pii": False,
    },
}

# Default configuration file path
DEFAULT_CONFIG_PATH = "config/config.json"

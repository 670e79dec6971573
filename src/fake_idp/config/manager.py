"""Configuration manager for loading and managing configuration.

This module provides the main configuration loading and management functionality,
including support for JSON configuration files, environment variable overrides,
and building a ResponseRequest from configuration.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from fake_idp.config.defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_PATH
from fake_idp.config.schema import (
    CertificatesConfig,
    Config,
    IdentityProviderConfig,
    LoggingConfig,
)
from fake_idp.models.saml import ResponseRequest
from fake_idp.saml.certificate_manager import read_credential_file
from fake_idp.utils.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Environment variable prefix for all configuration overrides
ENV_PREFIX = "FAKE_IDP_"


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file and environment variables.

    Configuration is loaded with the following precedence (highest to lowest):
    1. CLI arguments (handled by caller)
    2. Environment variables (FAKE_IDP_* prefix)
    3. Configuration file (JSON)
    4. Default values

    Args:
        config_path: Path to configuration file. If None, uses ./config/config.json

    Returns:
        Validated Config instance

    Raises:
        ConfigurationError: If configuration is invalid or malformed

    Example:
        >>> config = load_config(Path("custom/config.json"))
        >>> acs_url = config.identity_provider.acs_url
    """
    # Load .env file if present in project root
    load_dotenv()

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_PATH)

    config_dict = _load_config_file(config_path)
    config_dict = _apply_env_overrides(config_dict)
    _check_sensitive_values(config_dict)

    try:
        return Config(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(
            f"Configuration validation failed:\n{e}\n\n"
            f"Fix: Check your configuration file at {config_path} and ensure all "
            f"values match the expected format."
        ) from e


def _load_config_file(config_path: Path) -> dict[str, Any]:
    """Load configuration file or return defaults.

    Raises:
        ConfigurationError: If JSON is malformed or the file cannot be read
    """
    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
            logger.info(f"Loaded configuration from {config_path}")
            return config_dict
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check JSON syntax at line {e.lineno}, column {e.colno}"
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Failed to read config file: {config_path}\n"
                f"Error: {e}\n"
                f"Fix: Check file permissions and path"
            ) from e

    logger.info(
        f"Config file not found: {config_path}. Using default configuration."
    )
    # Return a deep copy of defaults to avoid mutation
    return json.loads(json.dumps(DEFAULT_CONFIG))


def _apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides with FAKE_IDP_ prefix.

    Environment variables follow the pattern: FAKE_IDP_<FIELD>
    For example: FAKE_IDP_ACS_URL, FAKE_IDP_LOG_LEVEL

    Args:
        config_dict: Configuration dictionary to update

    Returns:
        Updated configuration dictionary with environment overrides applied
    """
    # Identity provider section
    if issuer_uri := os.getenv(f"{ENV_PREFIX}ISSUER_URI"):
        config_dict.setdefault("identity_provider", {})["issuer_uri"] = issuer_uri
        logger.debug("Override: issuer_uri from environment")

    if acs_url := os.getenv(f"{ENV_PREFIX}ACS_URL"):
        config_dict.setdefault("identity_provider", {})["acs_url"] = acs_url
        logger.debug("Override: acs_url from environment")

    if digest_algorithm := os.getenv(f"{ENV_PREFIX}DIGEST_ALGORITHM"):
        config_dict.setdefault("identity_provider", {})["digest_algorithm"] = digest_algorithm
        logger.debug("Override: digest_algorithm from environment")

    if encryption_enabled := os.getenv(f"{ENV_PREFIX}ENCRYPTION_ENABLED"):
        config_dict.setdefault("identity_provider", {})["encryption_enabled"] = _parse_bool(
            encryption_enabled
        )
        logger.debug("Override: encryption_enabled from environment")

    # Certificates section
    if cert_path := os.getenv(f"{ENV_PREFIX}CERT_PATH"):
        config_dict.setdefault("certificates", {})["cert_path"] = cert_path
        logger.debug("Override: cert_path from environment")

    if key_path := os.getenv(f"{ENV_PREFIX}KEY_PATH"):
        config_dict.setdefault("certificates", {})["key_path"] = key_path
        logger.debug("Override: key_path from environment")

    # Logging section
    if log_level := os.getenv(f"{ENV_PREFIX}LOG_LEVEL"):
        config_dict.setdefault("logging", {})["level"] = log_level
        logger.debug("Override: log_level from environment")

    if log_file := os.getenv(f"{ENV_PREFIX}LOG_FILE"):
        config_dict.setdefault("logging", {})["log_file"] = log_file
        logger.debug("Override: log_file from environment")

    if redact_pii := os.getenv(f"{ENV_PREFIX}REDACT_PII"):
        config_dict.setdefault("logging", {})["redact_pii"] = _parse_bool(redact_pii)
        logger.debug("Override: redact_pii from environment")

    return config_dict


def _parse_bool(value: str) -> bool:
    """Parse boolean value from string (case-insensitive)."""
    return value.lower() in ("true", "1", "yes", "on")


def _check_sensitive_values(config_dict: dict[str, Any]) -> None:
    """Warn when secrets are stored in the configuration file.

    Args:
        config_dict: Configuration dictionary to check
    """
    certs = config_dict.get("certificates", {})
    if "key_password" in certs:
        logger.warning(
            "WARNING: Private key password found in configuration file! "
            "Passwords should be stored in environment variables, not config files. "
            f"Use {ENV_PREFIX}KEY_PASSWORD environment variable instead."
        )


def get_identity_provider_config(config: Config) -> IdentityProviderConfig:
    """Get fake IdP configuration."""
    return config.identity_provider


def get_certificate_paths(config: Config) -> tuple[Optional[Path], Optional[Path]]:
    """Get certificate and key paths from configuration.

    Returns:
        Tuple of (cert_path, key_path) as Path objects or None
    """
    return config.certificates.cert_path, config.certificates.key_path


def get_logging_config(config: Config) -> LoggingConfig:
    """Get logging configuration."""
    return config.logging


def get_key_password(certificates: CertificatesConfig) -> Optional[bytes]:
    """Read the private key password from the configured environment variable.

    Returns:
        Password bytes, or None when the variable is unset or empty
    """
    if not certificates.key_password_env_var:
        return None
    password = os.getenv(certificates.key_password_env_var)
    return password.encode("utf-8") if password else None


def build_response_request(
    config: Config,
    name_id: str,
    request_id: str,
    user_attributes: Optional[Mapping[str, str]] = None,
    cert_path: Optional[Path] = None,
    key_path: Optional[Path] = None,
) -> ResponseRequest:
    """Build a ResponseRequest from configuration and per-request values.

    Certificate and key paths passed explicitly take precedence over the
    configured ones. Both files are read here so the request is self-contained.

    Args:
        config: Loaded configuration
        name_id: Subject identifier
        request_id: ID of the AuthnRequest being answered
        user_attributes: Ordered attribute mapping
        cert_path: IdP certificate path override
        key_path: IdP private key path override

    Returns:
        ResponseRequest ready for SamlResponse

    Raises:
        ConfigurationError: If no certificate or key path is configured
        CertificateLoadError: If a credential file cannot be read

    Example:
        >>> config = load_config()
        >>> request = build_response_request(config, "user@example.com", "_req1")
    """
    cert_path = cert_path or config.certificates.cert_path
    key_path = key_path or config.certificates.key_path

    if cert_path is None or key_path is None:
        raise ConfigurationError(
            "Certificate and private key paths are required to sign responses. "
            f"Fix: Set certificates.cert_path/key_path in the config file, "
            f"{ENV_PREFIX}CERT_PATH/{ENV_PREFIX}KEY_PATH, or pass --cert/--key."
        )

    idp = config.identity_provider
    return ResponseRequest(
        name_id=name_id,
        issuer_uri=idp.issuer_uri,
        acs_url=idp.acs_url,
        request_id=request_id,
        user_attributes=dict(user_attributes or {}),
        digest_algorithm=idp.algorithm,
        certificate=read_credential_file(Path(cert_path)),
        private_key=read_credential_file(Path(key_path)),
        encryption_enabled=idp.encryption_enabled,
        private_key_password=get_key_password(config.certificates),
    )

"""Configuration schema models using pydantic.

This module defines the configuration structure and validation rules using pydantic.
All configuration values are validated according to the schema defined here.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from fake_idp.models.saml import DigestAlgorithm
from fake_idp.utils.exceptions import UnsupportedAlgorithmError


def _validate_http_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError(
            f"Invalid URL: {v}. Must start with http:// or https://"
        )
    return v


class IdentityProviderConfig(BaseModel):
    """Configuration for the fake Identity Provider.

    Attributes:
        issuer_uri: IdP entity ID (Issuer and Audience)
        acs_url: Service Provider Assertion Consumer Service URL (Destination)
        digest_algorithm: Digest/signature hash (sha1, sha256, sha384, sha512)
        encryption_enabled: Encrypt the assertion in generated responses
    """

    issuer_uri: str = Field(..., description="IdP entity ID")
    acs_url: str = Field(..., description="SP Assertion Consumer Service URL")
    digest_algorithm: str = Field(
        default="sha256",
        description="Digest algorithm: sha1, sha256, sha384, sha512"
    )
    encryption_enabled: bool = Field(
        default=False,
        description="Encrypt the assertion"
    )

    @field_validator("issuer_uri", "acs_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL is valid HTTP/HTTPS.

        Raises:
            ValueError: If URL does not start with http:// or https://
        """
        return _validate_http_url(v)

    @field_validator("digest_algorithm")
    @classmethod
    def validate_digest_algorithm(cls, v: str) -> str:
        """Validate and normalize the digest algorithm name.

        Returns:
            Lowercase algorithm name (e.g., "sha256")

        Raises:
            ValueError: If the algorithm is not supported
        """
        try:
            return DigestAlgorithm.from_value(v).value
        except UnsupportedAlgorithmError as e:
            raise ValueError(str(e)) from e

    @property
    def algorithm(self) -> DigestAlgorithm:
        return DigestAlgorithm.from_value(self.digest_algorithm)


class CertificatesConfig(BaseModel):
    """Configuration for certificate and key paths.

    Attributes:
        cert_path: Path to IdP certificate (PEM or DER)
        key_path: Path to IdP RSA private key (PEM)
        key_password_env_var: Environment variable holding the key password
    """

    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    key_password_env_var: Optional[str] = Field(
        default="FAKE_IDP_KEY_PASSWORD",
        description="Environment variable for private key password"
    )


class LoggingConfig(BaseModel):
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file
        redact_pii: Whether to redact subject identifiers and key material
    """

    level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Path = Field(
        default=Path("logs/fake-idp.log"),
        description="Log file path"
    )
    redact_pii: bool = Field(
        default=False,
        description="Redact e-mail addresses and PEM blocks from logs"
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level.

        Returns:
            Validated log level (uppercase)

        Raises:
            ValueError: If log level is not valid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(valid_levels)}"
            )
        return v_upper


class Config(BaseModel):
    """Root configuration model.

    Attributes:
        identity_provider: Fake IdP settings
        certificates: Certificate and key paths
        logging: Logging configuration

    Example:
        >>> config = Config(
        ...     identity_provider=IdentityProviderConfig(
        ...         issuer_uri="https://idp.example.com",
        ...         acs_url="https://sp.example.com/saml/acs",
        ...     )
        ... )
        >>> config.identity_provider.digest_algorithm
        'sha256'
    """

    identity_provider: IdentityProviderConfig
    certificates: CertificatesConfig = CertificatesConfig()
    logging: LoggingConfig = LoggingConfig()

"""Certificate management module for loading X.509 certificates and RSA keys.

This module provides functionality for loading the signing certificate
(PEM or DER) and RSA private key (PEM) from in-memory bytes or from files,
extracting certificate metadata, and rendering the certificate for
``ds:X509Certificate``.
"""

import base64
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ..models.saml import CertificateInfo
from ..utils.exceptions import CertificateLoadError

logger = logging.getLogger(__name__)

PEM_MARKER = b"-----BEGIN"


def get_certificate_info(cert: x509.Certificate) -> CertificateInfo:
    """Extract certificate information for display and logging.

    Args:
        cert: X.509 certificate

    Returns:
        CertificateInfo dataclass with certificate details

    Example:
        >>> cert = load_certificate_bytes(Path("idp_cert.pem").read_bytes())
        >>> info = get_certificate_info(cert)
        >>> print(info.subject)
        CN=Fake IdP
    """
    public_key = cert.public_key()
    key_size = public_key.key_size if hasattr(public_key, "key_size") else None

    return CertificateInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        not_before=cert.not_valid_before_utc,
        not_after=cert.not_valid_after_utc,
        serial_number=cert.serial_number,
        key_size=key_size,
    )


def check_expiration_warning(
    cert: x509.Certificate, warning_days: int = 30
) -> bool:
    """Check if certificate is expiring soon and log warning.

    Args:
        cert: X.509 certificate to check
        warning_days: Number of days before expiration to warn (default: 30)

    Returns:
        True if certificate expires within warning_days, False otherwise
    """
    now = datetime.now(timezone.utc)
    warning_date = now + timedelta(days=warning_days)

    if cert.not_valid_after_utc < warning_date:
        days_remaining = (cert.not_valid_after_utc - now).days
        logger.warning(
            f"Certificate expiring soon: {days_remaining} days remaining "
            f"(expires: {cert.not_valid_after_utc.strftime('%Y-%m-%d')})"
        )
        return True

    return False


def load_certificate_bytes(cert_data: bytes) -> x509.Certificate:
    """Load X.509 certificate from PEM or DER bytes.

    PEM is detected by its ``-----BEGIN`` armor; anything else is parsed
    as DER.

    Args:
        cert_data: Certificate bytes

    Returns:
        Loaded X.509 certificate

    Raises:
        CertificateLoadError: If the bytes are empty or not a certificate
    """
    if not cert_data:
        raise CertificateLoadError(
            "Certificate data is empty. "
            "Provide the IdP signing certificate as PEM or DER bytes."
        )

    try:
        if cert_data.lstrip().startswith(PEM_MARKER):
            cert = x509.load_pem_x509_certificate(cert_data)
        else:
            cert = x509.load_der_x509_certificate(cert_data)
    except (ValueError, TypeError) as e:
        raise CertificateLoadError(
            f"Failed to load certificate: {e}. "
            f"Ensure the data is a valid PEM or DER encoded X.509 certificate."
        ) from e

    logger.debug(f"Loaded certificate: {cert.subject.rfc4514_string()}")
    check_expiration_warning(cert)
    return cert


def load_private_key_bytes(
    key_data: bytes, password: Optional[bytes] = None
) -> rsa.RSAPrivateKey:
    """Load an RSA private key from PEM or DER bytes.

    PEM is detected by its ``-----BEGIN`` armor; anything else is parsed
    as DER.

    Args:
        key_data: PEM or DER encoded private key (PKCS#1 or PKCS#8)
        password: Optional password for an encrypted key

    Returns:
        Loaded RSA private key

    Raises:
        CertificateLoadError: If the key is empty, malformed, encrypted
            with a different password, or not an RSA key
    """
    if not key_data:
        raise CertificateLoadError(
            "Private key data is empty. "
            "Provide the IdP RSA private key as PEM or DER bytes."
        )

    try:
        if key_data.lstrip().startswith(PEM_MARKER):
            private_key = serialization.load_pem_private_key(key_data, password=password)
        else:
            private_key = serialization.load_der_private_key(key_data, password=password)
    except TypeError as e:
        raise CertificateLoadError(
            f"Failed to load private key: {e}. "
            f"If the key is encrypted, provide the correct password."
        ) from e
    except (ValueError, UnsupportedAlgorithm) as e:
        raise CertificateLoadError(
            f"Failed to load private key: {e}. "
            f"Ensure the data is a valid PEM or DER encoded private key and the password is correct."
        ) from e

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise CertificateLoadError(
            f"Private key must be an RSA key, got {type(private_key).__name__}. "
            f"Generate an RSA key pair for the IdP."
        )

    # Never log private key contents
    logger.debug(f"Loaded RSA private key ({private_key.key_size} bits)")
    return private_key


def read_credential_file(path: Path) -> bytes:
    """Read a certificate or key file into memory.

    Args:
        path: Path to the file

    Returns:
        File contents

    Raises:
        CertificateLoadError: If the file does not exist or cannot be read
    """
    if not path.exists():
        raise CertificateLoadError(
            f"Credential file not found: {path}. "
            f"Ensure the file exists and path is correct."
        )

    try:
        data = path.read_bytes()
    except OSError as e:
        raise CertificateLoadError(
            f"Failed to read credential file {path}: {e}. "
            f"Check file permissions."
        ) from e

    logger.info(f"Read credential file: {path.name}")
    return data


def load_certificate_file(cert_path: Path) -> x509.Certificate:
    """Load X.509 certificate from a PEM or DER file."""
    return load_certificate_bytes(read_credential_file(cert_path))


def load_private_key_file(
    key_path: Path, password: Optional[bytes] = None
) -> rsa.RSAPrivateKey:
    """Load an RSA private key from a PEM or DER file."""
    return load_private_key_bytes(read_credential_file(key_path), password)


def certificate_to_base64_der(cert_data: bytes) -> str:
    """Render certificate bytes as base64 DER for ds:X509Certificate.

    Args:
        cert_data: Certificate as PEM or DER bytes

    Returns:
        Base64 of the DER encoding, single line
    """
    cert = load_certificate_bytes(cert_data)
    der = cert.public_bytes(serialization.Encoding.DER)
    return base64.b64encode(der).decode("ascii")


def convert_to_pem(cert: x509.Certificate) -> bytes:
    """Convert certificate to PEM format.

    Args:
        cert: X.509 certificate

    Returns:
        PEM encoded certificate bytes
    """
    return cert.public_bytes(serialization.Encoding.PEM)

"""
Shared pytest configuration and fixtures.

This module provides fixtures used across the unit and integration suites:
an RSA key pair with a self-signed certificate generated once per session,
and a ready-to-build ResponseRequest.
"""

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from fake_idp.models.saml import DigestAlgorithm, ResponseRequest


def _generate_credentials(common_name: str) -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    """Generate an RSA 2048 key and a self-signed certificate valid for a year."""
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    subject = issuer = x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "TestOrg"),
        x509.NameAttribute(NameOID.COMMON_NAME, common_name),
    ])
    now = datetime.now(timezone.utc)

    cert = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer
    ).public_key(
        private_key.public_key()
    ).serial_number(
        x509.random_serial_number()
    ).not_valid_before(
        now - timedelta(days=1)
    ).not_valid_after(
        now + timedelta(days=365)
    ).add_extension(
        x509.BasicConstraints(ca=True, path_length=None),
        critical=True,
    ).add_extension(
        x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
        critical=False,
    ).sign(private_key, hashes.SHA256())

    return private_key, cert


@pytest.fixture(scope="session")
def idp_credentials() -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    """IdP RSA key and certificate shared by the whole test session."""
    return _generate_credentials("Fake IdP")


@pytest.fixture(scope="session")
def other_credentials() -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    """A second, unrelated key pair for wrong-key tests."""
    return _generate_credentials("Other IdP")


@pytest.fixture(scope="session")
def private_key(idp_credentials) -> rsa.RSAPrivateKey:
    return idp_credentials[0]


@pytest.fixture(scope="session")
def certificate(idp_credentials) -> x509.Certificate:
    return idp_credentials[1]


@pytest.fixture(scope="session")
def key_pem(private_key) -> bytes:
    """PKCS#8 PEM encoding of the IdP private key."""
    return private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def cert_pem(certificate) -> bytes:
    return certificate.public_bytes(serialization.Encoding.PEM)


@pytest.fixture(scope="session")
def cert_der(certificate) -> bytes:
    return certificate.public_bytes(serialization.Encoding.DER)


@pytest.fixture
def cert_file(tmp_path: Path, cert_pem: bytes) -> Path:
    path = tmp_path / "idp_cert.pem"
    path.write_bytes(cert_pem)
    return path


@pytest.fixture
def key_file(tmp_path: Path, key_pem: bytes) -> Path:
    path = tmp_path / "idp_key.pem"
    path.write_bytes(key_pem)
    return path


@pytest.fixture
def response_request(cert_pem: bytes, key_pem: bytes) -> ResponseRequest:
    """
    Build a SHA-256 ResponseRequest with two ordered attributes.

    Returns:
        ResponseRequest: Request ready for SamlResponse.
    """
    return ResponseRequest(
        name_id="user@example.com",
        issuer_uri="https://idp.example.com",
        acs_url="https://sp.example.com/saml/acs",
        request_id="_a1b2c3",
        user_attributes={"email": "user@example.com", "role": "admin"},
        digest_algorithm=DigestAlgorithm.SHA256,
        certificate=cert_pem,
        private_key=key_pem,
    )


@pytest.fixture(autouse=True)
def reset_root_logger() -> Generator[None, None, None]:
    """Remove handlers added by configure_logging during a test."""
    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    yield
    for handler in list(root_logger.handlers):
        if handler in original_handlers or type(handler).__module__.startswith("_pytest"):
            continue
        if isinstance(handler, logging.StreamHandler):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(original_level)

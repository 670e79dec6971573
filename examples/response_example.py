"""Signed SAML Response Example.

This example demonstrates using SamlResponse to produce the responses a
Service Provider receives from an Identity Provider, without any IdP.

Key features demonstrated:
- Signed response with ordered user attributes
- Choice of digest/signature algorithm
- Encrypted assertion and decryption on the SP side
- Verification of the signature with signxml
- Base64 encoding for the HTTP-POST SAMLResponse form field

Run after installing the package (pip install -e .).
"""

import base64
import uuid
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from lxml import etree

from fake_idp.models.saml import DigestAlgorithm, ResponseRequest
from fake_idp.saml import SamlResponse, decrypt_assertion, verify_response
from fake_idp.saml.constants import NSMAP


def create_demo_credentials() -> tuple[bytes, bytes]:
    """Create a throwaway RSA key and self-signed certificate (PEM)."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Demo Fake IdP")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return cert.public_bytes(serialization.Encoding.PEM), key_pem


def example_signed_response(cert_pem: bytes, key_pem: bytes) -> str:
    """Example 1: Signed response with user attributes."""
    print("\n" + "=" * 70)
    print("Example 1: Signed SAML Response")
    print("=" * 70)

    request = ResponseRequest(
        name_id="jane.doe@example.com",
        issuer_uri="https://idp.example.com",
        acs_url="https://sp.example.com/saml/acs",
        request_id=f"_{uuid.uuid4().hex}",
        user_attributes={
            "email": "jane.doe@example.com",
            "givenName": "Jane",
            "role": "admin",
        },
        digest_algorithm=DigestAlgorithm.SHA256,
        certificate=cert_pem,
        private_key=key_pem,
    )
    result = SamlResponse(request).build_result()

    print("\n✓ SAML Response Generated:")
    print(f"  • Response ID:  {result.identifiers.response_id}")
    print(f"  • Assertion ID: {result.identifiers.assertion_id}")
    print(f"  • Issue Instant: {result.timestamps.issue_instant}")

    assertion = verify_response(result.xml, cert_pem)
    print(f"\n✓ Signature verified with signxml (assertion {assertion.get('ID')})")

    print("\n✓ XML Structure (first 500 chars):")
    print("-" * 70)
    print(result.xml[:500] + "...")
    print("-" * 70)
    return result.xml


def example_algorithms(cert_pem: bytes, key_pem: bytes) -> None:
    """Example 2: Every supported digest/signature algorithm."""
    print("\n" + "=" * 70)
    print("Example 2: Digest and Signature Algorithms")
    print("=" * 70)

    for algorithm in DigestAlgorithm:
        request = ResponseRequest(
            name_id="jane.doe@example.com",
            issuer_uri="https://idp.example.com",
            acs_url="https://sp.example.com/saml/acs",
            request_id="_demo",
            user_attributes={},
            digest_algorithm=algorithm,
            certificate=cert_pem,
            private_key=key_pem,
        )
        document = SamlResponse(request).build()
        method = etree.fromstring(document.encode("utf-8")).find(
            ".//ds:SignatureMethod", NSMAP
        )
        print(f"  • {algorithm.name:<7} {method.get('Algorithm')}")


def example_encrypted_response(cert_pem: bytes, key_pem: bytes) -> None:
    """Example 3: Encrypted assertion, decrypted as the SP would."""
    print("\n" + "=" * 70)
    print("Example 3: Encrypted Assertion")
    print("=" * 70)

    request = ResponseRequest(
        name_id="jane.doe@example.com",
        issuer_uri="https://idp.example.com",
        acs_url="https://sp.example.com/saml/acs",
        request_id="_demo",
        user_attributes={"email": "jane.doe@example.com"},
        digest_algorithm=DigestAlgorithm.SHA256,
        certificate=cert_pem,
        private_key=key_pem,
        encryption_enabled=True,
    )
    document = SamlResponse(request).build()
    root = etree.fromstring(document.encode("utf-8"))
    print(f"\n✓ Children: {[etree.QName(child).localname for child in root]}")

    assertion = etree.fromstring(decrypt_assertion(document, key_pem).encode("utf-8"))
    print(f"✓ Decrypted assertion {assertion.get('ID')}")
    print(f"  • NameID: {assertion.find('saml:Subject/saml:NameID', NSMAP).text}")

    form_value = base64.b64encode(document.encode("utf-8")).decode("ascii")
    print(f"\n✓ SAMLResponse form value: {len(form_value)} base64 chars")


def main() -> None:
    cert_pem, key_pem = create_demo_credentials()
    example_signed_response(cert_pem, key_pem)
    example_algorithms(cert_pem, key_pem)
    example_encrypted_response(cert_pem, key_pem)


if __name__ == "__main__":
    main()

"""XML signature verification of generated responses using signxml.

This module plays the Service Provider side for smoke checks: it verifies
the enveloped assertion signature of a plain (unencrypted) response with
signxml, an implementation independent of the signer in this package.
"""

import logging
from typing import Optional

from lxml import etree
from signxml import DigestAlgorithm as XMLDigestAlgorithm
from signxml import SignatureConfiguration, SignatureMethod, XMLVerifier
from signxml.exceptions import InvalidDigest, InvalidSignature

from ..utils.exceptions import SAMLError
from .constants import NSMAP

logger = logging.getLogger(__name__)

# Responses may be signed with SHA-1, which signxml rejects by default
_ALLOW_ALL_ALGORITHMS = SignatureConfiguration(
    signature_methods=frozenset(SignatureMethod),
    digest_algorithms=frozenset(XMLDigestAlgorithm),
)


class ResponseVerifier:
    """Verify the assertion signature of a SAML Response.

    Attributes:
        cert_pem: PEM certificate trusted for verification

    Example:
        >>> verifier = ResponseVerifier(cert_pem)
        >>> assertion = verifier.verify(response_xml)
        >>> assert assertion.tag.endswith("Assertion")
    """

    def __init__(self, cert_pem: bytes) -> None:
        """Initialize response verifier.

        Args:
            cert_pem: PEM encoded IdP certificate
        """
        self.cert_pem = cert_pem

    def verify(self, document: str) -> etree._Element:
        """Verify the signature and return the signed assertion element.

        Args:
            document: Serialized samlp:Response with a signed assertion

        Returns:
            The verified saml:Assertion element as returned by signxml

        Raises:
            SAMLError: If the response has no signed assertion (e.g. it is encrypted)
            InvalidSignature: If signature verification fails
            InvalidDigest: If the assertion was modified after signing
        """
        root = etree.fromstring(document.encode("utf-8"))
        if not root.xpath("//saml:Assertion/ds:Signature", namespaces=NSMAP):
            raise SAMLError(
                "Response has no signed saml:Assertion. "
                "Encrypted responses must be decrypted before verification."
            )

        try:
            result = XMLVerifier().verify(
                root,
                x509_cert=self.cert_pem.decode("ascii"),
                expect_config=_ALLOW_ALL_ALGORITHMS,
            )
        except (InvalidSignature, InvalidDigest) as e:
            logger.warning(f"SAML response signature verification failed: {e}")
            raise

        logger.info("SAML response signature verified")
        return result.signed_xml

    def is_valid(self, document: str) -> bool:
        """Return True if the response signature verifies, False otherwise."""
        try:
            self.verify(document)
        except (InvalidSignature, InvalidDigest, SAMLError):
            return False
        return True


def verify_response(document: str, cert_pem: Optional[bytes]) -> etree._Element:
    """Verify a response against a PEM certificate.

    Args:
        document: Serialized samlp:Response
        cert_pem: PEM encoded IdP certificate

    Returns:
        The verified saml:Assertion element
    """
    if not cert_pem:
        raise SAMLError("A certificate is required to verify a response.")
    return ResponseVerifier(cert_pem).verify(document)

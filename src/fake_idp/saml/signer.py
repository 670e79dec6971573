"""Enveloped XML signature over the SAML assertion.

This module fills the placeholders left by the assembler in two passes:

1. Digest pass: the ``ds:Signature`` is removed from a working copy (a
   signature is never part of its own digest), the assertion is
   exclusively canonicalized and hashed, and the base64 digest is written
   into ``DigestValue`` of a separate, unmodified parse.
2. Signature pass: ``SignedInfo`` (now carrying the digest) is exclusively
   canonicalized and RSA-signed, and the base64 signature is written into
   ``SignatureValue`` of a separate parse.

Canonicalization uses lxml; digests and RSA signatures use cryptography.
"""

import base64
import logging
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..models.saml import DigestAlgorithm
from .certificate_manager import load_private_key_bytes
from .document import (
    canonicalize,
    find_required,
    parse_document,
    remove_element,
    serialize_document,
)

logger = logging.getLogger(__name__)


def compute_digest(data: bytes, algorithm: DigestAlgorithm) -> str:
    """Hash bytes and return the base64 digest.

    Args:
        data: Canonical bytes
        algorithm: Digest algorithm

    Returns:
        Base64 encoded digest without surrounding whitespace
    """
    digest = hashes.Hash(algorithm.hash_algorithm())
    digest.update(data)
    return base64.b64encode(digest.finalize()).decode("ascii").strip()


class ResponseSigner:
    """Fill DigestValue and SignatureValue of an assembled SAML Response.

    The private key is loaded when the signer is created, so a malformed
    key fails the build before any XML work is done.

    Attributes:
        algorithm: Digest algorithm, also the RSA signature hash
        private_key: Loaded RSA private key

    Example:
        >>> signer = ResponseSigner(key_pem, DigestAlgorithm.SHA256)
        >>> signed = signer.sign(assembled_document, identifiers.assertion_id)
    """

    def __init__(
        self,
        private_key: Union[bytes, rsa.RSAPrivateKey],
        algorithm: Union[DigestAlgorithm, str] = DigestAlgorithm.SHA256,
        password: Optional[bytes] = None,
    ) -> None:
        """Initialize the signer.

        Args:
            private_key: RSA private key as PEM bytes or loaded key
            algorithm: Digest algorithm member or name
            password: Password for an encrypted PEM key

        Raises:
            CertificateLoadError: If the private key cannot be loaded
            UnsupportedAlgorithmError: If the algorithm is not supported
        """
        self.algorithm = DigestAlgorithm.from_value(algorithm)

        if isinstance(private_key, rsa.RSAPrivateKey):
            self.private_key = private_key
        else:
            self.private_key = load_private_key_bytes(private_key, password)

        logger.debug(
            f"ResponseSigner initialized: algorithm={self.algorithm.name}, "
            f"key_size={self.private_key.key_size}"
        )

    def apply_digest(self, document: str, assertion_id: str) -> str:
        """Compute the assertion digest and write it into DigestValue.

        Args:
            document: Assembled Response with empty DigestValue
            assertion_id: ID of the assertion referenced by the signature

        Returns:
            New serialized document with DigestValue filled

        Raises:
            DocumentStructureError: If the Signature, the ID-matched assertion
                or the DigestValue node is missing
        """
        working = parse_document(document)

        signature = find_required(working, "//ds:Signature", "ds:Signature")
        remove_element(signature)

        assertion = find_required(
            working, "//*[@ID=$assertion_id]", f"element with ID={assertion_id}",
            assertion_id=assertion_id,
        )
        digest_value = compute_digest(canonicalize(assertion), self.algorithm)

        target = parse_document(document)
        digest_node = find_required(target, "//ds:DigestValue", "ds:DigestValue")
        digest_node.text = digest_value

        logger.debug(f"Digest computed for assertion {assertion_id} ({self.algorithm.name})")
        return serialize_document(target)

    def apply_signature(self, document: str) -> str:
        """Sign the canonical SignedInfo and write it into SignatureValue.

        Args:
            document: Response whose DigestValue is already filled

        Returns:
            New serialized document with SignatureValue filled

        Raises:
            DocumentStructureError: If SignedInfo or SignatureValue is missing
        """
        working = parse_document(document)
        signed_info = find_required(
            working, "//ds:Signature/ds:SignedInfo", "ds:Signature/ds:SignedInfo"
        )

        signature = self.private_key.sign(
            canonicalize(signed_info),
            padding.PKCS1v15(),
            self.algorithm.hash_algorithm(),
        )
        signature_value = base64.b64encode(signature).decode("ascii").replace("\n", "")

        target = parse_document(document)
        signature_node = find_required(target, "//ds:SignatureValue", "ds:SignatureValue")
        signature_node.text = signature_value

        logger.debug(f"SignedInfo signed ({self.algorithm.name}, {len(signature)} bytes)")
        return serialize_document(target)

    def sign(self, document: str, assertion_id: str) -> str:
        """Run the digest pass and then the signature pass.

        Args:
            document: Assembled Response with empty placeholders
            assertion_id: ID of the assertion referenced by the signature

        Returns:
            Signed serialized document
        """
        return self.apply_signature(self.apply_digest(document, assertion_id))

"""Assertion encryption (XML Encryption) for SAML responses.

The signed ``saml:Assertion`` is replaced by a ``saml:EncryptedAssertion``
holding an ``xenc:EncryptedData`` element:

- content encryption: AES-256-CBC, ``CipherValue`` is base64(IV || ciphertext)
- key transport: RSA-OAEP (MGF1 with SHA-1) to the Service Provider's
  certificate, carried in ``ds:KeyInfo/xenc:EncryptedKey``

The primitives come from cryptography and the fragment is built with lxml.
``decrypt_assertion`` reverses the process the way an SP would.
"""

import base64
import logging
import os
from typing import Optional, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from lxml import etree

from ..utils.exceptions import EncryptionError
from .certificate_manager import (
    certificate_to_base64_der,
    load_certificate_bytes,
    load_private_key_bytes,
)
from .constants import (
    DS_NS,
    DS_SHA1,
    SAML_NS,
    XENC_AES256_CBC,
    XENC_ELEMENT_TYPE,
    XENC_NS,
    XENC_RSA_OAEP_MGF1P,
)
from .document import (
    find_required,
    parse_document,
    serialize_document,
    serialize_fragment,
)

logger = logging.getLogger(__name__)

AES_KEY_BYTES = 32
AES_BLOCK_BYTES = 16


def _xenc(tag: str) -> str:
    return f"{{{XENC_NS}}}{tag}"


def _ds(tag: str) -> str:
    return f"{{{DS_NS}}}{tag}"


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA1()),
        algorithm=hashes.SHA1(),
        label=None,
    )


def _pad(data: bytes) -> bytes:
    # XML Encryption block padding: arbitrary bytes, last byte is the pad length
    pad_length = AES_BLOCK_BYTES - (len(data) % AES_BLOCK_BYTES)
    return data + os.urandom(pad_length - 1) + bytes([pad_length])


def _unpad(data: bytes) -> bytes:
    if not data:
        raise EncryptionError("Decrypted assertion is empty.")
    pad_length = data[-1]
    if not 1 <= pad_length <= AES_BLOCK_BYTES or pad_length > len(data):
        raise EncryptionError(
            f"Invalid XML Encryption padding length {pad_length}. "
            f"The content key or ciphertext is wrong."
        )
    return data[:-pad_length]


class Encryptor:
    """Encrypt a serialized assertion for a Service Provider certificate.

    Example:
        >>> fragment = Encryptor().encrypt(assertion_xml, sp_certificate_pem)
        >>> assert "EncryptedAssertion" in fragment
    """

    def encrypt(self, assertion_xml: str, certificate: bytes) -> str:
        """Encrypt an assertion into an EncryptedAssertion fragment.

        Args:
            assertion_xml: Serialized saml:Assertion element
            certificate: Recipient certificate, PEM or DER bytes

        Returns:
            Serialized saml:EncryptedAssertion element

        Raises:
            CertificateLoadError: If the certificate cannot be loaded
            EncryptionError: If the certificate key is not RSA
        """
        cert = load_certificate_bytes(certificate)
        public_key = cert.public_key()
        if not isinstance(public_key, rsa.RSAPublicKey):
            raise EncryptionError(
                f"Assertion encryption requires an RSA certificate, "
                f"got {type(public_key).__name__}."
            )

        content_key = os.urandom(AES_KEY_BYTES)
        iv = os.urandom(AES_BLOCK_BYTES)
        encryptor = Cipher(algorithms.AES(content_key), modes.CBC(iv)).encryptor()
        ciphertext = (
            encryptor.update(_pad(assertion_xml.encode("utf-8"))) + encryptor.finalize()
        )
        encrypted_key = public_key.encrypt(content_key, _oaep())

        fragment = self._build_fragment(
            cipher_value=base64.b64encode(iv + ciphertext).decode("ascii"),
            key_cipher_value=base64.b64encode(encrypted_key).decode("ascii"),
            certificate_b64=certificate_to_base64_der(certificate),
        )
        logger.debug(
            f"Encrypted assertion ({len(assertion_xml)} chars) for "
            f"{cert.subject.rfc4514_string()}"
        )
        return serialize_fragment(fragment)

    def _build_fragment(
        self, cipher_value: str, key_cipher_value: str, certificate_b64: str
    ) -> etree._Element:
        encrypted_assertion = etree.Element(
            f"{{{SAML_NS}}}EncryptedAssertion", nsmap={"saml": SAML_NS}
        )
        encrypted_data = etree.SubElement(
            encrypted_assertion,
            _xenc("EncryptedData"),
            nsmap={"xenc": XENC_NS},
            attrib={"Type": XENC_ELEMENT_TYPE},
        )
        etree.SubElement(
            encrypted_data, _xenc("EncryptionMethod"), attrib={"Algorithm": XENC_AES256_CBC}
        )

        key_info = etree.SubElement(encrypted_data, _ds("KeyInfo"), nsmap={"ds": DS_NS})
        encrypted_key = etree.SubElement(key_info, _xenc("EncryptedKey"))
        key_method = etree.SubElement(
            encrypted_key, _xenc("EncryptionMethod"), attrib={"Algorithm": XENC_RSA_OAEP_MGF1P}
        )
        etree.SubElement(key_method, _ds("DigestMethod"), attrib={"Algorithm": DS_SHA1})

        recipient_key_info = etree.SubElement(encrypted_key, _ds("KeyInfo"))
        x509_data = etree.SubElement(recipient_key_info, _ds("X509Data"))
        etree.SubElement(x509_data, _ds("X509Certificate")).text = certificate_b64

        key_cipher_data = etree.SubElement(encrypted_key, _xenc("CipherData"))
        etree.SubElement(key_cipher_data, _xenc("CipherValue")).text = key_cipher_value

        cipher_data = etree.SubElement(encrypted_data, _xenc("CipherData"))
        etree.SubElement(cipher_data, _xenc("CipherValue")).text = cipher_value

        return encrypted_assertion


def apply_encryption(
    document: str, certificate: bytes, encryptor: Optional[Encryptor] = None
) -> str:
    """Replace the signed assertion with its encrypted form.

    Args:
        document: Fully signed Response
        certificate: Recipient certificate, PEM or DER bytes
        encryptor: Encryptor to delegate to (default: Encryptor())

    Returns:
        New serialized Response whose Assertion is an EncryptedAssertion

    Raises:
        DocumentStructureError: If the document has no single saml:Assertion
    """
    encryptor = encryptor or Encryptor()

    source = parse_document(document)
    assertion = find_required(source, "//saml:Assertion", "saml:Assertion")
    fragment_xml = encryptor.encrypt(serialize_fragment(assertion), certificate)

    target = parse_document(document)
    target_assertion = find_required(target, "//saml:Assertion", "saml:Assertion")
    fragment = etree.fromstring(fragment_xml.encode("utf-8"))
    fragment.tail = target_assertion.tail
    target_assertion.getparent().replace(target_assertion, fragment)

    logger.debug("Replaced Assertion with EncryptedAssertion")
    return serialize_document(target)


def decrypt_assertion(
    encrypted_xml: str,
    private_key: Union[bytes, rsa.RSAPrivateKey],
    password: Optional[bytes] = None,
) -> str:
    """Decrypt the EncryptedData in a response or fragment.

    Args:
        encrypted_xml: Response or EncryptedAssertion containing one xenc:EncryptedData
        private_key: Recipient RSA private key, PEM bytes or loaded key
        password: Password for an encrypted PEM key

    Returns:
        Serialized assertion XML as it was before encryption

    Raises:
        DocumentStructureError: If the EncryptedData structure is incomplete
        EncryptionError: If the key cannot be unwrapped or padding is invalid
    """
    if not isinstance(private_key, rsa.RSAPrivateKey):
        private_key = load_private_key_bytes(private_key, password)

    root = parse_document(encrypted_xml)
    encrypted_data = find_required(
        root, "descendant-or-self::xenc:EncryptedData", "xenc:EncryptedData"
    )
    key_cipher_value = find_required(
        encrypted_data,
        "ds:KeyInfo/xenc:EncryptedKey/xenc:CipherData/xenc:CipherValue",
        "xenc:EncryptedKey CipherValue",
    )
    data_cipher_value = find_required(
        encrypted_data, "xenc:CipherData/xenc:CipherValue", "xenc:EncryptedData CipherValue"
    )

    try:
        content_key = private_key.decrypt(
            base64.b64decode(key_cipher_value.text or ""), _oaep()
        )
    except ValueError as e:
        raise EncryptionError(
            f"Failed to unwrap the content encryption key: {e}. "
            f"Ensure the private key matches the certificate used for encryption."
        ) from e

    if len(content_key) != AES_KEY_BYTES:
        raise EncryptionError(
            f"Content encryption key is {len(content_key)} bytes, "
            f"expected {AES_KEY_BYTES} for AES-256."
        )

    payload = base64.b64decode(data_cipher_value.text or "")
    if len(payload) <= AES_BLOCK_BYTES or len(payload) % AES_BLOCK_BYTES:
        raise EncryptionError(
            f"CipherValue has invalid length {len(payload)} for AES-CBC."
        )

    iv, ciphertext = payload[:AES_BLOCK_BYTES], payload[AES_BLOCK_BYTES:]
    decryptor = Cipher(algorithms.AES(content_key), modes.CBC(iv)).decryptor()
    plaintext = _unpad(decryptor.update(ciphertext) + decryptor.finalize())

    logger.debug(f"Decrypted assertion ({len(plaintext)} bytes)")
    return plaintext.decode("utf-8")

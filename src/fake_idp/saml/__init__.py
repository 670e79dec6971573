"""SAML 2.0 Response generation, signing, encryption and verification module.

This module provides functionality for:
- Assembling samlp:Response documents with a signed-assertion skeleton
- Filling the enveloped signature (exclusive C14N, RSA) in two passes
- Encrypting the signed assertion (XML Encryption, AES-256-CBC + RSA-OAEP)
- Loading certificates and keys (PEM/DER)
- Verifying generated responses with SignXML
"""

from fake_idp.saml.assembler import assemble_response
from fake_idp.saml.certificate_manager import (
    certificate_to_base64_der,
    get_certificate_info,
    load_certificate_bytes,
    load_certificate_file,
    load_private_key_bytes,
    load_private_key_file,
    read_credential_file,
)
from fake_idp.saml.encryptor import Encryptor, apply_encryption, decrypt_assertion
from fake_idp.saml.response import SamlResponse, build_response
from fake_idp.saml.signer import ResponseSigner, compute_digest
from fake_idp.saml.verifier import ResponseVerifier, verify_response

__all__ = [
    # Pipeline
    "SamlResponse",
    "build_response",
    "assemble_response",
    "ResponseSigner",
    "compute_digest",
    "Encryptor",
    "apply_encryption",
    "decrypt_assertion",
    # Certificate management
    "certificate_to_base64_der",
    "get_certificate_info",
    "load_certificate_bytes",
    "load_certificate_file",
    "load_private_key_bytes",
    "load_private_key_file",
    "read_credential_file",
    # Verification
    "ResponseVerifier",
    "verify_response",
]

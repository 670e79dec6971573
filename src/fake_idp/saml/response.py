"""Signed SAML 2.0 Response generation.

This module runs the response pipeline for one ``ResponseRequest``:

    assemble -> digest -> sign -> (encrypt)

Each stage receives the previous stage's serialized document and returns
a new one. The timestamp window and both IDs are captured once when the
``SamlResponse`` is created, so every value in the document derives from
the same instant and the signature Reference always resolves.
"""

import logging
import re
import time
from datetime import datetime
from typing import Callable, Optional

from ..logging_audit import log_audit_event, log_stage_output
from ..models.saml import (
    BuildResult,
    ResponseIdentifiers,
    ResponseRequest,
    TimestampWindow,
)
from ..utils.exceptions import ConfigurationError
from .assembler import assemble_response
from .certificate_manager import certificate_to_base64_der
from .encryptor import Encryptor, apply_encryption
from .signer import ResponseSigner

logger = logging.getLogger(__name__)

# Characters outside the XML 1.0 Char production
_XML_INVALID_CHARS = re.compile(
    r"[^\t\n\r\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]"
)


def _check_xml_text(label: str, value: str) -> None:
    match = _XML_INVALID_CHARS.search(value)
    if match:
        raise ConfigurationError(
            f"{label} contains a character not allowed in XML "
            f"(U+{ord(match.group()):04X} at position {match.start()}). "
            f"Remove control characters from the value."
        )


def _validate_request(request: ResponseRequest) -> None:
    """Validate required ResponseRequest fields.

    Args:
        request: Request to validate

    Raises:
        ConfigurationError: If a required field is empty or not a string
            or contains characters not allowed in XML
    """
    required = {
        "name_id": "Provide the subject identifier (e-mail address).",
        "issuer_uri": "Provide the IdP entity ID (e.g., https://idp.example.com).",
        "acs_url": "Provide the SP Assertion Consumer Service URL.",
        "request_id": "Provide the ID of the AuthnRequest being answered.",
    }
    for field_name, remediation in required.items():
        value = getattr(request, field_name)
        if not value or not isinstance(value, str):
            raise ConfigurationError(
                f"{field_name} must be a non-empty string, got: {value!r}. {remediation}"
            )
        _check_xml_text(field_name, value)

    for name, value in request.user_attributes.items():
        if not name or not isinstance(name, str):
            raise ConfigurationError(
                f"Attribute names must be non-empty strings, got: {name!r}."
            )
        if value is None:
            raise ConfigurationError(f"Attribute {name!r} has no value.")
        _check_xml_text("Attribute name", name)
        _check_xml_text(f"Attribute {name!r} value", str(value))


class SamlResponse:
    """One signed (and optionally encrypted) SAML Response.

    Identifiers and the timestamp window are fixed when the instance is
    created; create a new instance for every response.

    Attributes:
        request: Response request
        identifiers: Response and assertion IDs
        timestamps: Timestamp window

    Example:
        >>> request = ResponseRequest(
        ...     name_id="user@example.com",
        ...     issuer_uri="https://idp.example.com",
        ...     acs_url="https://sp.example.com/saml/acs",
        ...     request_id="_a1b2c3",
        ...     user_attributes={"email": "user@example.com"},
        ...     digest_algorithm=DigestAlgorithm.SHA256,
        ...     certificate=cert_pem,
        ...     private_key=key_pem,
        ... )
        >>> xml = SamlResponse(request).build()
    """

    def __init__(
        self,
        request: ResponseRequest,
        encryptor: Optional[Encryptor] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Validate the request and capture identifiers and timestamps.

        Args:
            request: Response request
            encryptor: Encryptor used when encryption is enabled
            clock: Returns the issue instant (default: current UTC time)

        Raises:
            ConfigurationError: If required request fields are missing
        """
        _validate_request(request)
        self.request = request
        self.encryptor = encryptor or Encryptor()
        self.identifiers = ResponseIdentifiers.generate()
        self.timestamps = TimestampWindow.capture(clock() if clock else None)

    def build(self) -> str:
        """Build the response and return the serialized document."""
        return self.build_result().xml

    def build_result(self) -> BuildResult:
        """Build the response.

        Returns:
            BuildResult with the document, identifiers and timestamp window

        Raises:
            CertificateLoadError: If the certificate or private key is malformed
            DocumentStructureError: If a stage cannot find a required node
            EncryptionError: If assertion encryption fails
        """
        request = self.request
        response_id = self.identifiers.response_id
        start_time = time.monotonic()

        logger.info(
            f"Building SAML response: ID={response_id}, "
            f"destination={request.acs_url}, algorithm={request.digest_algorithm.name}, "
            f"encrypted={request.encryption_enabled}"
        )

        try:
            # Credentials are loaded before any XML work
            signer = ResponseSigner(
                request.private_key,
                request.digest_algorithm,
                password=request.private_key_password,
            )
            certificate_b64 = certificate_to_base64_der(request.certificate)

            document = assemble_response(
                request, self.identifiers, self.timestamps, certificate_b64
            )
            log_stage_output("ASSEMBLED", response_id, document)

            document = signer.apply_digest(document, self.identifiers.assertion_id)
            log_stage_output("DIGESTED", response_id, document)

            document = signer.apply_signature(document)
            log_stage_output("SIGNED", response_id, document)

            if request.encryption_enabled:
                document = apply_encryption(document, request.certificate, self.encryptor)
                log_stage_output("ENCRYPTED", response_id, document)

        except Exception as e:
            log_audit_event(
                "RESPONSE_BUILD_FAILED",
                {
                    "status": "failure",
                    "response_id": response_id,
                    "assertion_id": self.identifiers.assertion_id,
                    "digest_algorithm": request.digest_algorithm.name,
                    "error_message": f"{type(e).__name__}: {e}",
                },
            )
            raise

        log_audit_event(
            "RESPONSE_BUILT",
            {
                "status": "success",
                "response_id": response_id,
                "assertion_id": self.identifiers.assertion_id,
                "digest_algorithm": request.digest_algorithm.name,
                "encrypted": request.encryption_enabled,
                "duration": time.monotonic() - start_time,
            },
        )

        return BuildResult(
            xml=document,
            identifiers=self.identifiers,
            timestamps=self.timestamps,
            encrypted=request.encryption_enabled,
        )


def build_response(
    request: ResponseRequest,
    encryptor: Optional[Encryptor] = None,
) -> str:
    """Build a fresh signed SAML Response for a request.

    Args:
        request: Response request
        encryptor: Encryptor used when encryption is enabled

    Returns:
        Serialized samlp:Response document
    """
    return SamlResponse(request, encryptor=encryptor).build()

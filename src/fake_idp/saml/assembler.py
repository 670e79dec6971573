"""SAML 2.0 Response document assembly.

This module builds the unsigned ``samlp:Response`` tree using lxml. The
assertion carries a ``ds:Signature`` skeleton whose ``DigestValue`` and
``SignatureValue`` are empty placeholders; the signer fills them in later
passes because both values depend on the canonical bytes of this document.

Child order inside the Response and the Assertion follows the SAML 2.0
schema sequence. Consumers that validate against the schema reject a
response whose children are reordered.
"""

import logging
from typing import Mapping

from lxml import etree

from ..models.saml import (
    ResponseIdentifiers,
    ResponseRequest,
    TimestampWindow,
    format_saml_timestamp,
)
from .constants import (
    AUTHN_CONTEXT_CLASS_REF,
    BEARER_METHOD,
    CONSENT_UNSPECIFIED,
    DIGEST_METHODS,
    DS_NS,
    EMAIL_ADDRESS_FORMAT,
    ENTITY_FORMAT,
    ENVELOPED_SIGNATURE,
    EXC_C14N,
    SAML_NS,
    SAML_VERSION,
    SAMLP_NS,
    SIGNATURE_METHODS,
    STATUS_SUCCESS,
)
from .document import serialize_document

logger = logging.getLogger(__name__)


def _saml(tag: str) -> str:
    return f"{{{SAML_NS}}}{tag}"


def _samlp(tag: str) -> str:
    return f"{{{SAMLP_NS}}}{tag}"


def _ds(tag: str) -> str:
    return f"{{{DS_NS}}}{tag}"


def _build_response_element(
    request: ResponseRequest,
    identifiers: ResponseIdentifiers,
    timestamps: TimestampWindow,
) -> etree._Element:
    """Build the samlp:Response root element.

    Args:
        request: Response request
        identifiers: IDs for this response
        timestamps: Timestamp window for this response

    Returns:
        lxml Element representing <samlp:Response>
    """
    return etree.Element(
        _samlp("Response"),
        nsmap={"samlp": SAMLP_NS},
        attrib={
            "Consent": CONSENT_UNSPECIFIED,
            "Destination": request.acs_url,
            "ID": identifiers.response_id,
            "InResponseTo": request.request_id,
            "IssueInstant": timestamps.issue_instant,
            "Version": SAML_VERSION,
        },
    )


def _add_issuer(response: etree._Element, issuer_uri: str) -> None:
    issuer = etree.SubElement(response, _saml("Issuer"), nsmap={"saml": SAML_NS})
    issuer.text = issuer_uri


def _add_status(response: etree._Element) -> None:
    status = etree.SubElement(response, _samlp("Status"))
    etree.SubElement(status, _samlp("StatusCode"), attrib={"Value": STATUS_SUCCESS})


def _add_signature_skeleton(
    assertion: etree._Element,
    request: ResponseRequest,
    identifiers: ResponseIdentifiers,
    certificate_b64: str,
) -> None:
    """Add the ds:Signature skeleton with empty DigestValue and SignatureValue.

    Args:
        assertion: SAML Assertion element
        request: Response request (digest algorithm)
        identifiers: IDs for this response (Reference URI)
        certificate_b64: Base64 DER of the signing certificate
    """
    signature = etree.SubElement(assertion, _ds("Signature"), nsmap={"ds": DS_NS})

    signed_info = etree.SubElement(signature, _ds("SignedInfo"))
    etree.SubElement(
        signed_info, _ds("CanonicalizationMethod"), attrib={"Algorithm": EXC_C14N}
    )
    etree.SubElement(
        signed_info,
        _ds("SignatureMethod"),
        attrib={"Algorithm": SIGNATURE_METHODS[request.digest_algorithm]},
    )

    reference = etree.SubElement(
        signed_info, _ds("Reference"), attrib={"URI": identifiers.reference_uri}
    )
    transforms = etree.SubElement(reference, _ds("Transforms"))
    etree.SubElement(transforms, _ds("Transform"), attrib={"Algorithm": ENVELOPED_SIGNATURE})
    etree.SubElement(transforms, _ds("Transform"), attrib={"Algorithm": EXC_C14N})
    etree.SubElement(
        reference,
        _ds("DigestMethod"),
        attrib={"Algorithm": DIGEST_METHODS[request.digest_algorithm]},
    )

    # Filled by the digest pass
    digest_value = etree.SubElement(reference, _ds("DigestValue"))
    digest_value.text = ""

    # Filled by the signature pass
    signature_value = etree.SubElement(signature, _ds("SignatureValue"))
    signature_value.text = ""

    key_info = etree.SubElement(signature, _ds("KeyInfo"))
    x509_data = etree.SubElement(key_info, _ds("X509Data"))
    x509_certificate = etree.SubElement(x509_data, _ds("X509Certificate"))
    x509_certificate.text = certificate_b64

    logger.debug(
        f"Added Signature skeleton: Reference URI={identifiers.reference_uri}, "
        f"algorithm={request.digest_algorithm.name}"
    )


def _add_subject(
    assertion: etree._Element, request: ResponseRequest, timestamps: TimestampWindow
) -> None:
    subject = etree.SubElement(assertion, _saml("Subject"))

    name_id = etree.SubElement(
        subject, _saml("NameID"), attrib={"Format": EMAIL_ADDRESS_FORMAT}
    )
    name_id.text = request.name_id

    subject_confirmation = etree.SubElement(
        subject, _saml("SubjectConfirmation"), attrib={"Method": BEARER_METHOD}
    )
    etree.SubElement(
        subject_confirmation,
        _saml("SubjectConfirmationData"),
        attrib={
            "InResponseTo": request.request_id,
            "NotOnOrAfter": format_saml_timestamp(
                timestamps.subject_confirmation_not_on_or_after
            ),
            "Recipient": request.acs_url,
        },
    )


def _add_conditions(
    assertion: etree._Element, audience: str, timestamps: TimestampWindow
) -> None:
    conditions = etree.SubElement(
        assertion,
        _saml("Conditions"),
        attrib={
            "NotBefore": format_saml_timestamp(timestamps.not_before),
            "NotOnOrAfter": format_saml_timestamp(timestamps.not_on_or_after),
        },
    )
    audience_restriction = etree.SubElement(conditions, _saml("AudienceRestriction"))
    audience_elem = etree.SubElement(audience_restriction, _saml("Audience"))
    audience_elem.text = audience


def _add_attribute_statement(
    assertion: etree._Element, attributes: Mapping[str, str]
) -> None:
    """Add AttributeStatement with one Attribute per entry, in mapping order.

    An empty mapping still produces an (empty) AttributeStatement.

    Args:
        assertion: SAML Assertion element
        attributes: Attribute name to value mapping
    """
    attr_statement = etree.SubElement(assertion, _saml("AttributeStatement"))

    for attr_name, attr_value in attributes.items():
        attr_elem = etree.SubElement(
            attr_statement, _saml("Attribute"), attrib={"Name": attr_name}
        )
        attr_value_elem = etree.SubElement(attr_elem, _saml("AttributeValue"))
        attr_value_elem.text = str(attr_value)

    logger.debug(f"Added AttributeStatement with {len(attributes)} attributes")


def _add_authn_statement(
    assertion: etree._Element,
    identifiers: ResponseIdentifiers,
    timestamps: TimestampWindow,
) -> None:
    authn_statement = etree.SubElement(
        assertion,
        _saml("AuthnStatement"),
        attrib={
            "AuthnInstant": timestamps.issue_instant,
            "SessionIndex": identifiers.response_id,
        },
    )
    authn_context = etree.SubElement(authn_statement, _saml("AuthnContext"))
    class_ref = etree.SubElement(authn_context, _saml("AuthnContextClassRef"))
    class_ref.text = AUTHN_CONTEXT_CLASS_REF


def _add_assertion(
    response: etree._Element,
    request: ResponseRequest,
    identifiers: ResponseIdentifiers,
    timestamps: TimestampWindow,
    certificate_b64: str,
) -> None:
    assertion = etree.SubElement(
        response,
        _saml("Assertion"),
        nsmap={"saml": SAML_NS},
        attrib={
            "ID": identifiers.assertion_id,
            "IssueInstant": timestamps.issue_instant,
            "Version": SAML_VERSION,
        },
    )

    issuer = etree.SubElement(assertion, _saml("Issuer"), attrib={"Format": ENTITY_FORMAT})
    issuer.text = request.issuer_uri

    _add_signature_skeleton(assertion, request, identifiers, certificate_b64)
    _add_subject(assertion, request, timestamps)
    _add_conditions(assertion, request.issuer_uri, timestamps)
    _add_attribute_statement(assertion, request.user_attributes)
    _add_authn_statement(assertion, identifiers, timestamps)

    logger.debug(f"Built Assertion element: ID={identifiers.assertion_id}")


def assemble_response(
    request: ResponseRequest,
    identifiers: ResponseIdentifiers,
    timestamps: TimestampWindow,
    certificate_b64: str,
) -> str:
    """Assemble the unsigned SAML Response document.

    Args:
        request: Response request
        identifiers: Response and assertion IDs for this build
        timestamps: Timestamp window for this build
        certificate_b64: Base64 DER of the signing certificate for KeyInfo

    Returns:
        Serialized samlp:Response with empty DigestValue and SignatureValue

    Example:
        >>> document = assemble_response(
        ...     request, ResponseIdentifiers.generate(), TimestampWindow.capture(), cert_b64
        ... )
        >>> assert "<ds:DigestValue></ds:DigestValue>" in document
    """
    response = _build_response_element(request, identifiers, timestamps)
    _add_issuer(response, request.issuer_uri)
    _add_status(response)
    _add_assertion(response, request, identifiers, timestamps, certificate_b64)

    document = serialize_document(response)
    logger.debug(
        f"Assembled Response: ID={identifiers.response_id}, "
        f"Destination={request.acs_url}"
    )
    return document

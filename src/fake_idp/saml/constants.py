"""Namespace URIs, algorithm identifiers and fixed SAML values."""

from ..models.saml import DigestAlgorithm

# Namespaces
SAMLP_NS = "urn:oasis:names:tc:SAML:2.0:protocol"
SAML_NS = "urn:oasis:names:tc:SAML:2.0:assertion"
DS_NS = "http://www.w3.org/2000/09/xmldsig#"
XENC_NS = "http://www.w3.org/2001/04/xmlenc#"

NSMAP = {"samlp": SAMLP_NS, "saml": SAML_NS, "ds": DS_NS, "xenc": XENC_NS}

SAML_VERSION = "2.0"

# Fixed attribute values
CONSENT_UNSPECIFIED = "urn:oasis:names:tc:SAML:2.0:consent:unspecified"
STATUS_SUCCESS = "urn:oasis:names:tc:SAML:2.0:status:Success"
ENTITY_FORMAT = "urn:oasis:names:tc:SAML:2.0:nameid-format:entity"
EMAIL_ADDRESS_FORMAT = "urn:oasis:names:tc:SAML:1.1:nameid-format:emailAddress"
BEARER_METHOD = "urn:oasis:names:tc:SAML:2.0:cm:bearer"
AUTHN_CONTEXT_CLASS_REF = "urn:federation:authentication:windows"

# Only exclusive canonicalization without comments is produced
EXC_C14N = "http://www.w3.org/2001/10/xml-exc-c14n#"
ENVELOPED_SIGNATURE = "http://www.w3.org/2000/09/xmldsig#enveloped-signature"

SIGNATURE_METHODS = {
    DigestAlgorithm.SHA1: "http://www.w3.org/2000/09/xmldsig#rsa-sha1",
    DigestAlgorithm.SHA256: "http://www.w3.org/2001/04/xmldsig-more#rsa-sha256",
    DigestAlgorithm.SHA384: "http://www.w3.org/2001/04/xmldsig-more#rsa-sha384",
    DigestAlgorithm.SHA512: "http://www.w3.org/2001/04/xmldsig-more#rsa-sha512",
}

DIGEST_METHODS = {
    DigestAlgorithm.SHA1: "http://www.w3.org/2000/09/xmldsig#sha1",
    DigestAlgorithm.SHA256: "http://www.w3.org/2001/04/xmlenc#sha256",
    DigestAlgorithm.SHA384: "http://www.w3.org/2001/04/xmldsig-more#sha384",
    DigestAlgorithm.SHA512: "http://www.w3.org/2001/04/xmlenc#sha512",
}

# XML Encryption
XENC_ELEMENT_TYPE = "http://www.w3.org/2001/04/xmlenc#Element"
XENC_AES256_CBC = "http://www.w3.org/2001/04/xmlenc#aes256-cbc"
XENC_RSA_OAEP_MGF1P = "http://www.w3.org/2001/04/xmlenc#rsa-oaep-mgf1p"
DS_SHA1 = "http://www.w3.org/2000/09/xmldsig#sha1"

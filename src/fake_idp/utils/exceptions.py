"""Custom exception classes for fake-idp.

All exceptions inherit from FakeIdpError to allow catching all custom exceptions.
"""


class FakeIdpError(Exception):
    """Base exception for all fake-idp custom exceptions."""

    pass


class ConfigurationError(FakeIdpError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Missing required configuration
        - Invalid configuration file format
        - Configuration value out of range
    """

    pass


class UnsupportedAlgorithmError(ConfigurationError):
    """Raised when a digest/signature algorithm identifier is not supported.

    Examples:
        - "md5" requested as digest algorithm
        - Misspelled algorithm name in configuration
    """

    pass


class SAMLError(FakeIdpError):
    """Raised when SAML response generation, signing or encryption fails.

    Examples:
        - Certificate loading failure
        - Signing failure
        - Invalid SAML response structure
    """

    pass


class CertificateLoadError(SAMLError):
    """Raised when certificate or private key loading fails.

    Examples:
        - Certificate file not found
        - Invalid certificate format
        - Incorrect password for encrypted key
        - Key is not an RSA key
    """

    pass


class DocumentStructureError(SAMLError):
    """Raised when a pipeline stage cannot find a node it requires.

    The assembler always emits these nodes, so this indicates a bug in
    the document handed to the stage rather than a transient condition.

    Examples:
        - DigestValue placeholder missing
        - No element whose ID matches the assertion ID
        - SignedInfo missing from Signature
    """

    pass


class EncryptionError(SAMLError):
    """Raised when assertion encryption or decryption cannot complete.

    Examples:
        - Certificate public key is not RSA
        - EncryptedData fragment missing CipherValue
        - Wrong private key used to unwrap the content key
    """

    pass

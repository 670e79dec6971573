"""Models module.

This module provides data models and dataclasses for the application.
"""

from fake_idp.models.saml import (
    BuildResult,
    CertificateInfo,
    DigestAlgorithm,
    ResponseIdentifiers,
    ResponseRequest,
    TimestampWindow,
)

__all__ = [
    "BuildResult",
    "CertificateInfo",
    "DigestAlgorithm",
    "ResponseIdentifiers",
    "ResponseRequest",
    "TimestampWindow",
]

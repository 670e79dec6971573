"""Data models for SAML response generation.

This module defines the immutable value objects that flow through the
response pipeline: the caller's request, the per-build identifiers and
timestamp window, the supported digest algorithms, and the build result.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Union

from cryptography.hazmat.primitives import hashes

from ..utils.exceptions import UnsupportedAlgorithmError

# SAML timestamps are xs:dateTime in UTC with second precision
SAML_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Offsets applied to the captured issue instant
NOT_BEFORE_SKEW = timedelta(seconds=5)
ASSERTION_LIFETIME = timedelta(hours=1)
SUBJECT_CONFIRMATION_LIFETIME = timedelta(minutes=3)


class DigestAlgorithm(Enum):
    """Hash algorithm used for both the reference digest and the RSA signature.

    Attributes:
        SHA1: SHA-1 (legacy, still accepted by most SAML consumers)
        SHA256: SHA-256 (default)
        SHA384: SHA-384
        SHA512: SHA-512
    """

    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @classmethod
    def from_value(cls, value: Union["DigestAlgorithm", str]) -> "DigestAlgorithm":
        """Resolve an algorithm from an enum member or a name.

        Names are matched case-insensitively and tolerate the common
        spellings ``SHA-256``, ``sha256`` and ``RSA-SHA256``.

        Args:
            value: Enum member or algorithm name

        Returns:
            Matching DigestAlgorithm member

        Raises:
            UnsupportedAlgorithmError: If the value names no supported algorithm

        Example:
            >>> DigestAlgorithm.from_value("RSA-SHA256")
            <DigestAlgorithm.SHA256: 'sha256'>
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            normalized = value.strip().lower().replace("-", "").replace("_", "")
            if normalized.startswith("rsa"):
                normalized = normalized[len("rsa"):]
            for member in cls:
                if member.value == normalized:
                    return member

        supported = ", ".join(member.name for member in cls)
        raise UnsupportedAlgorithmError(
            f"Unsupported digest algorithm: {value!r}. "
            f"Supported algorithms: {supported}"
        )

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Return a fresh cryptography hash instance for this algorithm."""
        return {
            DigestAlgorithm.SHA1: hashes.SHA1,
            DigestAlgorithm.SHA256: hashes.SHA256,
            DigestAlgorithm.SHA384: hashes.SHA384,
            DigestAlgorithm.SHA512: hashes.SHA512,
        }[self]()


@dataclass
class CertificateInfo:
    """Certificate information for display and logging.

    Contains extracted metadata from X.509 certificates without
    exposing sensitive key material.

    Attributes:
        subject: Certificate subject Distinguished Name (DN)
        issuer: Certificate issuer Distinguished Name (DN)
        not_before: Certificate validity start date
        not_after: Certificate expiration date
        serial_number: Certificate serial number
        key_size: Public key size in bits (e.g., 2048, 4096)
    """

    subject: str
    issuer: str
    not_before: datetime
    not_after: datetime
    serial_number: int
    key_size: Optional[int]


def format_saml_timestamp(value: datetime) -> str:
    """Format a datetime as a SAML xs:dateTime string in UTC."""
    return value.astimezone(timezone.utc).strftime(SAML_TIMESTAMP_FORMAT)


@dataclass(frozen=True)
class TimestampWindow:
    """Validity window derived from a single captured instant.

    Every timestamp in a response is computed from ``issued_at`` so the
    document is internally consistent even if building it takes time.

    Attributes:
        issued_at: Captured UTC instant, truncated to whole seconds
    """

    issued_at: datetime

    @classmethod
    def capture(cls, now: Optional[datetime] = None) -> "TimestampWindow":
        """Capture the window for a new response.

        Args:
            now: Instant to use instead of the current time (tests)

        Returns:
            TimestampWindow anchored at ``now`` in UTC
        """
        instant = now or datetime.now(timezone.utc)
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return cls(issued_at=instant.astimezone(timezone.utc).replace(microsecond=0))

    @property
    def not_before(self) -> datetime:
        return self.issued_at - NOT_BEFORE_SKEW

    @property
    def not_on_or_after(self) -> datetime:
        return self.issued_at + ASSERTION_LIFETIME

    @property
    def subject_confirmation_not_on_or_after(self) -> datetime:
        return self.issued_at + SUBJECT_CONFIRMATION_LIFETIME

    @property
    def issue_instant(self) -> str:
        return format_saml_timestamp(self.issued_at)


@dataclass(frozen=True)
class ResponseIdentifiers:
    """Reference IDs for one response.

    Attributes:
        response_id: ID of the Response root, reused as SessionIndex
        assertion_id: ID of the Assertion, target of the signature Reference
    """

    response_id: str
    assertion_id: str

    @classmethod
    def generate(cls) -> "ResponseIdentifiers":
        """Generate two independent IDs.

        XML ID values must start with a letter or underscore, so both are
        ``_`` followed by 32 hex characters.
        """
        return cls(
            response_id=f"_{uuid.uuid4().hex}",
            assertion_id=f"_{uuid.uuid4().hex}",
        )

    @property
    def reference_uri(self) -> str:
        return f"#{self.assertion_id}"


@dataclass(frozen=True)
class ResponseRequest:
    """Input for one SAML response build.

    Attributes:
        name_id: Subject identifier (e-mail address format)
        issuer_uri: IdP entity ID, also used as the Audience
        acs_url: Service Provider Assertion Consumer Service URL
        request_id: ID of the AuthnRequest being answered (InResponseTo)
        user_attributes: Ordered attribute name to value mapping
        digest_algorithm: Digest and signature hash algorithm
        certificate: Signing certificate, PEM or DER bytes
        private_key: RSA private key, PEM or DER bytes
        encryption_enabled: Replace the assertion with EncryptedAssertion
        private_key_password: Password for an encrypted private key
    """

    name_id: str
    issuer_uri: str
    acs_url: str
    request_id: str
    user_attributes: Mapping[str, str]
    digest_algorithm: DigestAlgorithm
    certificate: bytes
    private_key: bytes
    encryption_enabled: bool = False
    private_key_password: Optional[bytes] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "digest_algorithm", DigestAlgorithm.from_value(self.digest_algorithm)
        )
        object.__setattr__(
            self, "user_attributes", MappingProxyType(dict(self.user_attributes or {}))
        )


@dataclass(frozen=True)
class BuildResult:
    """Outcome of a response build.

    Attributes:
        xml: Serialized samlp:Response document
        identifiers: IDs used in the document
        timestamps: Timestamp window used in the document
        encrypted: Whether the assertion was replaced by EncryptedAssertion
    """

    xml: str
    identifiers: ResponseIdentifiers
    timestamps: TimestampWindow
    encrypted: bool

"""Custom log formatters for fake-idp.

This module provides a formatter that keeps subject identifiers and key
material out of log output.
"""

import logging
import re
from typing import List, Tuple


class SensitiveDataRedactingFormatter(logging.Formatter):
    """Formatter that redacts sensitive values from log messages.

    Subject identifiers in generated responses are e-mail addresses, and
    stage debug output can contain whole documents. When enabled, this
    formatter masks e-mail addresses, PEM blocks and NameID contents.

    Attributes:
        redact_pii: Whether to enable redaction
        patterns: List of (regex_pattern, replacement_text) tuples for redaction

    Example:
        >>> formatter = SensitiveDataRedactingFormatter(redact_pii=True)
        >>> handler = logging.StreamHandler()
        >>> handler.setFormatter(formatter)
    """

    def __init__(
        self,
        fmt: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt: str | None = None,
        redact_pii: bool = False,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.redact_pii = redact_pii

        self.patterns: List[Tuple[re.Pattern[str], str]] = [
            # PEM armored keys and certificates
            (
                re.compile(
                    r"-----BEGIN ([A-Z ]+)-----.*?-----END \1-----", re.DOTALL
                ),
                r"[\1-REDACTED]",
            ),
            # NameID element content, whatever its format
            (
                re.compile(r"(<(?:\w+:)?NameID\b[^>]*>)[^<]*(</(?:\w+:)?NameID>)"),
                r"\1[NAMEID-REDACTED]\2",
            ),
            # E-mail addresses
            (
                re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
                "[EMAIL-REDACTED]",
            ),
        ]

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional redaction.

        Args:
            record: Log record to format

        Returns:
            Formatted log message with sensitive values redacted if enabled
        """
        original = super().format(record)

        if self.redact_pii:
            for pattern, replacement in self.patterns:
                original = pattern.sub(replacement, original)

        return original

"""Audit trail functionality for fake-idp.

This module provides structured audit logging for generated responses so a
test run can be correlated with the responses the fake IdP issued.
"""

import time
import uuid
from typing import Any, Dict

from .logger import get_logger

logger = get_logger(__name__)


def log_audit_event(event_type: str, details: Dict[str, Any]) -> None:
    """Log an audit trail event.

    Creates a structured audit log entry with standard fields. Audit events
    are logged at INFO level for successful operations and ERROR level for
    failures.

    Args:
        event_type: Type of operation (e.g., "RESPONSE_BUILT",
                   "RESPONSE_BUILD_FAILED")
        details: Dictionary with event details. Common fields include:
                - status: "success" or "failure"
                - response_id / assertion_id: Identifiers of the response
                - digest_algorithm: Algorithm used for signing
                - encrypted: Whether the assertion was encrypted
                - duration: Operation duration in seconds
                - error_message: Error details (if status is failure)
                - correlation_id: Optional correlation ID for tracking related events

    Example:
        >>> log_audit_event("RESPONSE_BUILT", {
        ...     "status": "success",
        ...     "response_id": "_3f2a...",
        ...     "digest_algorithm": "SHA256",
        ...     "duration": 0.02
        ... })
    """
    details = dict(details)

    if "timestamp" not in details:
        details["timestamp"] = time.time()

    if "correlation_id" not in details:
        details["correlation_id"] = str(uuid.uuid4())

    message_parts = [f"AUDIT [{event_type}]"]

    field_order = [
        "status",
        "response_id",
        "assertion_id",
        "digest_algorithm",
        "encrypted",
        "duration",
        "error_message",
        "correlation_id",
    ]

    for field in field_order:
        if field in details:
            value = details[field]
            if field == "duration" and isinstance(value, (int, float)):
                message_parts.append(f"{field}={value:.3f}s")
            else:
                message_parts.append(f"{field}={value}")

    for key, value in details.items():
        if key not in field_order and key != "timestamp":
            message_parts.append(f"{key}={value}")

    audit_message = " | ".join(message_parts)

    status = details.get("status", "unknown")
    if status == "failure":
        logger.error(audit_message)
    else:
        logger.info(audit_message)


def log_stage_output(stage: str, response_id: str, document: str) -> None:
    """Log a pipeline stage's output document at DEBUG level.

    Args:
        stage: Stage name (e.g., "ASSEMBLED", "DIGESTED", "SIGNED", "ENCRYPTED")
        response_id: ID of the response being built
        document: Serialized document emitted by the stage

    Example:
        >>> log_stage_output("SIGNED", "_3f2a...", signed_xml)
    """
    logger.debug(
        f"STAGE [{stage}] | response_id={response_id} | "
        f"size={len(document)} chars\n{document}"
    )

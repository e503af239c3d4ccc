"""
Failure description — structured error information for the failure track.

Every SDK operation reports problems as a FailureDescription carrying an
ErrorCode, a human-readable message, the triggering exception (if any) and a
UTC timestamp. Callers branch on `code`; the message is for people.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """
    Error codes for the failure track.

    Two groups:
      - Artifact decoding: raised by the PEM decoder, never retryable.
      - Transport / service: mapped from HTTP status codes and network errors.
    """

    # --- Artifact decoding ---
    MALFORMED_PEM = "MALFORMED_PEM"
    """No PEM armor found, missing END marker, or invalid base64 body."""

    UNEXPECTED_BLOCK_TYPE = "UNEXPECTED_BLOCK_TYPE"
    """A PEM block was found but its type tag is not the one required."""

    INVALID_PRIVATE_KEY = "INVALID_PRIVATE_KEY"
    """A private key was expected but no PEM block (or no key-type tag) was present."""

    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"
    """The key-type tag names an algorithm this SDK does not decode."""

    CORRUPT_DER = "CORRUPT_DER"
    """Armor and block type were fine, the DER payload was not."""

    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    """The service returned no body where one was required."""

    # --- Transport / service ---
    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Invalid request or rejected input (400, 422)."""

    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    """Missing, invalid or expired credentials (401)."""

    AUTHORIZATION_ERROR = "AUTHORIZATION_ERROR"
    """Insufficient permissions (403)."""

    NOT_FOUND = "NOT_FOUND"
    """Resource doesn't exist (404)."""

    BUSINESS_RULE_ERROR = "BUSINESS_RULE_ERROR"
    """Conflicting state, e.g. a host that already exists (409)."""

    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    """Request limits exceeded (429)."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """Server-side failure, network failure, or an unreadable response (5xx)."""

    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    """The round trip exceeded the configured timeout."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """The SDK was wired with missing or invalid settings."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor.

    >>> desc = FailureDescription(ErrorCode.MALFORMED_PEM, "no BEGIN marker")
    >>> desc.code
    <ErrorCode.MALFORMED_PEM: 'MALFORMED_PEM'>
    """

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"

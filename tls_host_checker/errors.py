"""
Exception hierarchy for TLS Host Checker.
"""

from typing import Optional


class TLSCheckerError(Exception):
    """Base class for all checker errors."""


class InvalidInputError(TLSCheckerError):
    """Raised when the hostname collection is not a list."""


class ConfigValidationError(TLSCheckerError):
    """Raised when configuration fails validation."""

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"{field} {reason}")


class ProbeTimeoutError(TLSCheckerError):
    """Raised when a raced operation does not finish within its time budget."""

    def __init__(self, message: str, timeout_ms: float):
        self.timeout_ms = timeout_ms
        super().__init__(message)


class RetryableError(TLSCheckerError):
    """Errors that participate in the per-host retry policy."""


class ResolutionError(RetryableError):
    """DNS lookup failed or timed out."""

    TIMEOUT = "timeout"
    LOOKUP_FAILED = "lookup failed"

    def __init__(self, hostname: str, reason: str, cause: Optional[BaseException] = None):
        self.hostname = hostname
        self.reason = reason
        self.cause = cause
        detail = str(cause) if cause is not None and str(cause) else reason
        super().__init__(f"DNS resolution failed for {hostname}: {detail}")


class ConnectError(RetryableError):
    """TLS connection could not be established."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ConnectTimeoutError(ConnectError):
    """TLS connection did not complete within the connect timeout."""

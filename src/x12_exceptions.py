from typing import Optional


class X12Error(Exception):
    """Base class for errors raised while parsing, validating or building X12 content."""


class InvalidSegmentError(X12Error):
    """Raised when a segment does not follow the expected format."""

    def __init__(self, segment: str, reason: str = ""):
        self.segment = segment
        self.reason = reason
        message = f"Invalid segment format: {segment}"
        if reason:
            message += f" - {reason}"
        super().__init__(message)


class InvalidElementError(X12Error):
    """Raised when a single element value fails sanitization."""

    def __init__(self, value: str, reason: str = ""):
        self.value = value
        self.reason = reason
        super().__init__(reason or f"Invalid element value: {value}")


class UnsupportedTransactionTypeError(X12Error):
    SUPPORTED_TYPES = ("270", "271", "837", "835")

    def __init__(self, transaction_type: Optional[str]):
        self.transaction_type = transaction_type
        super().__init__(
            f"Unsupported transaction type: {transaction_type}. "
            f"Currently supported types: {', '.join(self.SUPPORTED_TYPES)}"
        )


class InvalidEligibilityDataError(X12Error):
    """
    Raised when an Eligibility270DTO would violate one of its invariants.
    Carries exactly one message: the first rule that failed.

    Must not subclass ValueError, otherwise pydantic wraps it in a ValidationError.
    """


class X12FileError(X12Error):
    """Raised by the file repository and service layer on I/O problems."""


class ConfigurationError(X12Error):
    pass

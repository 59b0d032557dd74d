from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable failure codes surfaced in extraction results."""

    # File validation
    INVALID_FORMAT = "INVALID_FORMAT"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    FILE_ENCRYPTED = "FILE_ENCRYPTED"
    TOO_MANY_PAGES = "TOO_MANY_PAGES"
    LOW_RESOLUTION = "LOW_RESOLUTION"
    MALFORMED_FILE = "MALFORMED_FILE"
    CANNOT_OPEN_FILE = "CANNOT_OPEN_FILE"

    # Remote service
    UPLOAD_FAILED = "UPLOAD_FAILED"
    REMOTE_PROCESSING_FAILED = "REMOTE_PROCESSING_FAILED"
    REMOTE_PROCESSING_TIMEOUT = "REMOTE_PROCESSING_TIMEOUT"
    BAD_REQUEST = "BAD_REQUEST"
    AUTH_ERROR = "AUTH_ERROR"
    HANDLE_EXPIRED = "HANDLE_EXPIRED"
    RATE_LIMITED = "RATE_LIMITED"
    SERVICE_ERROR = "SERVICE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"

    # Resilience
    CIRCUIT_OPEN = "CIRCUIT_OPEN"
    DEADLINE_EXCEEDED = "DEADLINE_EXCEEDED"

    # Model response
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    CONTENT_FILTERED = "CONTENT_FILTERED"
    RESPONSE_TRUNCATED = "RESPONSE_TRUNCATED"
    MALFORMED_JSON = "MALFORMED_JSON"

    # Business validation
    MISSING_TOTAL_AMOUNT = "MISSING_TOTAL_AMOUNT"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ExtractionError(Exception):
    """Base exception for all extraction pipeline errors.

    ``retryable`` tells the retry policy whether another attempt may succeed.
    """

    def __init__(self, message: str, code: ErrorCode, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.code = code
        self.retryable = retryable


class FileValidationError(ExtractionError):
    """Raised when an uploaded file is rejected before any network call."""

    def __init__(self, message: str, code: ErrorCode) -> None:
        super().__init__(message, code, retryable=False)


class GatewayError(ExtractionError):
    """Raised when the document-understanding service call fails."""


class ResponseParseError(ExtractionError):
    """Raised when the model response cannot be turned into a document."""


class CircuitOpenError(ExtractionError):
    """Raised when the circuit breaker rejects a call without attempting it."""

    def __init__(self, message: str = "Document service circuit is open") -> None:
        super().__init__(message, ErrorCode.CIRCUIT_OPEN, retryable=False)


class DeadlineExceededError(ExtractionError):
    """Raised when the caller's deadline passes or the request is cancelled."""

    def __init__(self, message: str = "Extraction deadline exceeded") -> None:
        super().__init__(message, ErrorCode.DEADLINE_EXCEEDED, retryable=False)

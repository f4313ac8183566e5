"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class HlsGrabError(Exception):
    """Base exception for all application-specific errors."""


class ParseError(HlsGrabError):
    """Raised when a manifest cannot be turned into a usable fragment list."""


class NoFragmentsError(ParseError):
    """Raised when a manifest yields zero media fragments."""

    def __init__(self, message: str = "No segments found in manifest."):
        super().__init__(message)


class InvalidByteRangeError(ParseError):
    """Raised when a byte-range attribute holds a non-numeric or empty value."""


class FetchError(HlsGrabError):
    """Raised when a manifest or fragment could not be retrieved."""

    def __init__(
        self, message: str, url: str | None = None, status: int | None = None
    ):
        super().__init__(message)
        self.url = url
        self.status = status


class RetryExhaustedError(FetchError):
    """Raised when every attempt for a fetch key has failed."""

    def __init__(self, key: str, attempts: int, last_error: BaseException):
        super().__init__(
            f"Failed after {attempts} attempts: {last_error}",
            url=getattr(last_error, "url", None),
            status=getattr(last_error, "status", None),
        )
        self.key = key
        self.attempts = attempts
        self.last_error = last_error


class ReassemblyError(HlsGrabError):
    """
    Raised when the reassembler is driven out of order, e.g. finalized without an
    initialization segment or used after finalization.
    """


class PipelineStateError(HlsGrabError):
    """Raised when a pipeline instance is run more than once."""


class ConfigurationError(HlsGrabError):
    """Raised for issues related to configuration loading or validation."""


class PersistenceError(HlsGrabError):
    """Raised when the finished file cannot be written to disk."""


class UnsupportedSourceError(HlsGrabError):
    """Raised when an input is neither a URL, a manifest file, nor a video ID."""

"""Exceptions raised and reported by the Code::Stats pulse client."""

from typing import Optional


class CodeStatsError(Exception):
    """Base exception for all Code::Stats client errors."""

    pass


class ConfigError(CodeStatsError):
    """Raised when the Code::Stats configuration cannot be loaded."""

    pass


class NoTriggerSetError(CodeStatsError):
    """Raised when a flush runs without a pending trigger."""

    pass


class InsecureServerError(CodeStatsError):
    """Raised when the configured server is not an https URL."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Refusing to send pulse over plaintext: {url}")


class TransportFailure(CodeStatsError):
    """Raised when a pulse could not be delivered to the server."""

    def __init__(
        self, message: str, status_code: Optional[int] = None, response_text: Optional[str] = None
    ):
        self.status_code = status_code
        self.response_text = response_text
        super().__init__(message)


class ResponseReadFailure(CodeStatsError):
    """Raised when the server response body could not be read."""

    pass

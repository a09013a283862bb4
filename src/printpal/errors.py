"""Exception hierarchy raised by the PrintPal client."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional


class PrintPalError(Exception):
    """Base exception for every PrintPal API error.

    Also raised directly for unexpected HTTP statuses and failed model
    downloads, in which case ``status_code`` and ``response`` carry the raw
    details.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code!r})"


class AuthenticationError(PrintPalError):
    """Raised when the API key is invalid or missing."""

    def __init__(self, message: str = "Invalid or missing API key", response: Any = None) -> None:
        super().__init__(message, 401, response)


class InsufficientCreditsError(PrintPalError):
    """Raised when the account cannot pay for the requested generation."""

    def __init__(
        self,
        message: str,
        credits_required: Optional[int] = None,
        credits_available: Optional[int] = None,
        response: Any = None,
    ) -> None:
        super().__init__(message, 402, response)
        self.credits_required = credits_required
        self.credits_available = credits_available


class NotFoundError(PrintPalError):
    """Raised when a generation or other resource does not exist."""

    def __init__(self, message: str = "Resource not found", response: Any = None) -> None:
        super().__init__(message, 404, response)


class RateLimitError(PrintPalError):
    """Raised when the rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        response: Any = None,
    ) -> None:
        super().__init__(message, 429, response)
        self.retry_after = retry_after


class ValidationError(PrintPalError):
    """Raised for rejected requests, both local pre-flight and server side."""

    def __init__(
        self,
        message: str,
        errors: Optional[Mapping[str, List[str]]] = None,
        response: Any = None,
    ) -> None:
        super().__init__(message, 400, response)
        self.errors: Dict[str, List[str]] = dict(errors or {})


class GenerationError(PrintPalError):
    """Raised when the service reports a generation as failed."""

    def __init__(self, message: str, generation_uid: Optional[str] = None) -> None:
        super().__init__(message, 500)
        self.generation_uid = generation_uid


class TimedOutError(PrintPalError):
    """Raised when a request or a completion wait exceeds its time budget."""

    def __init__(self, message: str = "Operation timed out") -> None:
        super().__init__(message, 408)


class NetworkError(PrintPalError):
    """Raised for transport failures other than timeouts."""

    def __init__(self, message: str = "Network error occurred") -> None:
        super().__init__(message)


def _error_message(data: Mapping[str, Any]) -> str:
    message = data.get("message") or data.get("error")
    return str(message) if message else "Unknown error"


def _parse_retry_after(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def error_from_response(
    status_code: int,
    data: Mapping[str, Any],
    retry_after_header: Optional[str] = None,
) -> PrintPalError:
    """Map an unsuccessful HTTP response onto the matching exception."""

    message = _error_message(data)
    if status_code == 401:
        return AuthenticationError(message, response=data)
    if status_code == 402:
        return InsufficientCreditsError(
            message,
            credits_required=data.get("credits_required"),
            credits_available=data.get("credits_available"),
            response=data,
        )
    if status_code == 404:
        return NotFoundError(message, response=data)
    if status_code == 429:
        retry_after = _parse_retry_after(data.get("retry_after"))
        if retry_after is None:
            retry_after = _parse_retry_after(retry_after_header)
        return RateLimitError(message, retry_after=retry_after, response=data)
    if status_code == 400:
        errors = data.get("errors")
        return ValidationError(
            message,
            errors=errors if isinstance(errors, Mapping) else None,
            response=data,
        )
    return PrintPalError(message, status_code, data)


__all__ = [
    "AuthenticationError",
    "GenerationError",
    "InsufficientCreditsError",
    "NetworkError",
    "NotFoundError",
    "PrintPalError",
    "RateLimitError",
    "TimedOutError",
    "ValidationError",
    "error_from_response",
]

"""Error types raised by the Zillow search client."""

from __future__ import annotations

from typing import Any


class MissingApiKeyError(RuntimeError):
    """Raised when no Zillow RapidAPI key is configured."""


class ZillowAPIError(Exception):
    """Base error for failed Zillow API calls."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    @staticmethod
    def extract_error_message(response: Any) -> str:
        """Pull a human-readable message out of an error payload."""

        if isinstance(response, str):
            return response
        if not isinstance(response, dict):
            return "Unknown API error"

        if response.get("message"):
            return str(response["message"])

        error = response.get("error")
        if error:
            if isinstance(error, str):
                return error
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])

        errors = response.get("errors")
        if errors:
            if isinstance(errors, list):
                return "; ".join(
                    str(item.get("message") or item)
                    if isinstance(item, dict)
                    else str(item)
                    for item in errors
                )
            if isinstance(errors, str):
                return errors

        if response.get("detail"):
            return str(response["detail"])

        return "Unknown API error"


class RateLimitError(ZillowAPIError):
    """Upstream kept answering 429 after all retries."""

    def __init__(self, message: str = "Rate limit exceeded", response: Any = None) -> None:
        super().__init__(message, 429, response)


class AuthenticationError(ZillowAPIError):
    """Upstream rejected the API key (401/403). Never retried."""

    def __init__(
        self, message: str = "Authentication failed", response: Any = None
    ) -> None:
        super().__init__(message, 401, response)


class NotFoundError(ZillowAPIError):
    """No data exists for the requested search."""

    def __init__(self, message: str = "Resource not found", response: Any = None) -> None:
        super().__init__(message, 404, response)

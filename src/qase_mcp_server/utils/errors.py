"""Qase MCP Server Error Handling Utilities

Custom exception classes for Qase API operations and tool dispatch, with
standardized error messages.
"""

import json
from typing import Optional, Dict, Any, List, Tuple


class QaseError(Exception):
    """Base exception for all Qase-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize Qase error.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(QaseError):
    """Raised when Qase rejects request data.

    Corresponds to HTTP 400 Bad Request and 422 Unprocessable Entity responses.
    """

    pass


class AuthenticationError(QaseError):
    """Raised when the API token is missing or invalid.

    Corresponds to HTTP 401 Unauthorized responses.
    """

    pass


class PermissionError(QaseError):
    """Raised when the token lacks access to a project or feature.

    Corresponds to HTTP 403 Forbidden responses (also returned by Qase
    when a feature is not available on the current plan).
    """

    pass


class NotFoundError(QaseError):
    """Raised when requested resource doesn't exist.

    Corresponds to HTTP 404 Not Found responses.
    """

    pass


class ConflictError(QaseError):
    """Raised when operation conflicts with current resource state.

    Examples:
    - Creating a project with a code that is already taken
    - Linking an external issue that is already attached

    Corresponds to HTTP 409 Conflict responses.
    """

    pass


class RateLimitError(QaseError):
    """Raised when API rate limit is exceeded.

    Corresponds to HTTP 429 Too Many Requests responses.
    Never retried automatically.
    """

    pass


class ServerError(QaseError):
    """Raised when Qase returns a server-side error.

    Corresponds to HTTP 5xx responses (500, 502, 503, 504).
    """

    pass


class ConfigError(QaseError):
    """Raised when the resolved server configuration is invalid."""

    pass


# ============================================================================
# Tool dispatch errors
# ============================================================================

class ToolValidationError(QaseError):
    """Raised when tool arguments fail schema validation.

    Carries one (field path, reason) pair per invalid field. Raised before
    any request reaches the Qase API.
    """

    def __init__(self, tool_name: str, errors: List[Tuple[str, str]]):
        self.tool_name = tool_name
        self.errors = errors
        summary = "; ".join(f"{path}: {reason}" for path, reason in errors)
        super().__init__(f"Invalid arguments for {tool_name}: {summary}")

    def __str__(self) -> str:
        return self.message


class UnknownToolError(QaseError):
    """Raised when a tool name is not in the catalog."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class OperationError(QaseError):
    """Raised when an operation finished with an error outcome."""

    pass


def _extract_error_message(response_text: str) -> str:
    """Pull the human-readable message out of a Qase error body.

    Qase reports failures as ``{"status": false, "errorMessage": "...",
    "errorFields": [{"field": ..., "error": ...}]}``. Falls back to the
    raw body when it isn't JSON.
    """
    try:
        body = json.loads(response_text)
    except (TypeError, ValueError):
        return response_text

    if not isinstance(body, dict):
        return response_text

    message = body.get("errorMessage") or body.get("message") or response_text
    field_errors = body.get("errorFields") or []
    if field_errors:
        fields = ", ".join(
            f"{err.get('field')}: {err.get('error')}"
            for err in field_errors
            if isinstance(err, dict)
        )
        if fields:
            message = f"{message} ({fields})"
    return message


def handle_http_error(status_code: int, response_text: str) -> QaseError:
    """Convert HTTP error response to appropriate exception.

    Args:
        status_code: HTTP status code
        response_text: Response body text

    Returns:
        Appropriate QaseError subclass instance
    """
    error_map = {
        400: ValidationError,
        401: AuthenticationError,
        403: PermissionError,
        404: NotFoundError,
        409: ConflictError,
        422: ValidationError,
        429: RateLimitError,
    }

    reason = _extract_error_message(response_text)
    details = {"status_code": status_code, "response": response_text}

    if status_code in error_map:
        error_class = error_map[status_code]
        return error_class(f"HTTP {status_code}: {reason}", details=details)

    if 500 <= status_code < 600:
        return ServerError(f"HTTP {status_code}: Server error - {reason}", details=details)

    return QaseError(f"HTTP {status_code}: Unexpected error - {reason}", details=details)

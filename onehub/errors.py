"""
Error types and user-facing error messages.

Upstream failures (email server, Groq) raise UpstreamError; the API turns
them into a 502 with a friendly title/message pair.
"""

NETWORK_KEYWORDS = ("network", "fetch", "timeout", "timed out", "connection", "connect", "unreachable")
AUTH_KEYWORDS = ("unauthorized", "401", "403", "forbidden", "jwt", "token", "session expired", "auth")
VALIDATION_KEYWORDS = ("invalid", "required", "must be", "validation", "too long", "too short")
NOT_FOUND_KEYWORDS = ("not found", "404", "no rows")
RATE_LIMIT_KEYWORDS = ("rate limit", "429", "too many requests")


class UpstreamError(Exception):
    """An external service (email server, LLM) failed."""

    def __init__(self, service: str, message: str, status_code: int | None = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.status_code = status_code


def _message_of(error: Exception | str) -> str:
    return str(error).lower()


def _has_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(k in text for k in keywords)


def is_network_error(error: Exception | str) -> bool:
    return _has_any(_message_of(error), NETWORK_KEYWORDS)


def is_auth_error(error: Exception | str) -> bool:
    return _has_any(_message_of(error), AUTH_KEYWORDS)


def is_validation_error(error: Exception | str) -> bool:
    return _has_any(_message_of(error), VALIDATION_KEYWORDS)


def to_user_friendly_error(error: Exception | str) -> dict:
    """
    Map a raw error to a title/message pair suitable for display.

    Returns:
        dict with: kind, title, message, detail
    """
    detail = str(error)
    text = detail.lower()

    if _has_any(text, RATE_LIMIT_KEYWORDS):
        kind, title, message = (
            "rate_limit",
            "Slow Down",
            "Too many requests. Please wait a moment and try again.",
        )
    elif is_network_error(detail):
        kind, title, message = (
            "network",
            "Connection Problem",
            "Unable to reach the server. Check your connection and try again.",
        )
    elif is_auth_error(detail):
        kind, title, message = (
            "auth",
            "Session Expired",
            "Your session has expired. Please sign in again.",
        )
    elif _has_any(text, NOT_FOUND_KEYWORDS):
        kind, title, message = (
            "not_found",
            "Not Found",
            "The item you are looking for no longer exists.",
        )
    elif is_validation_error(detail):
        kind, title, message = ("validation", "Invalid Input", detail)
    else:
        kind, title, message = (
            "unknown",
            "Something Went Wrong",
            "An unexpected error occurred. Please try again.",
        )

    return {"kind": kind, "title": title, "message": message, "detail": detail}

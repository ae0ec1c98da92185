"""Pagesmith exception hierarchy.

Shared across the reader, decoder, transport, and controller so every
module raises and catches the same types. Cancellation has no type of its
own: a stopped session is neither a success nor a failure.
"""

from __future__ import annotations

import json

# User-facing messages for backend statuses that carry no message of their own
STATUS_MESSAGES: dict[int, str] = {
    429: "Rate limit exceeded. Please wait a moment and try again.",
    402: "Insufficient credits. Please add more credits.",
    403: "This model requires a paid plan. Please upgrade.",
    401: "Session expired. Please log in again.",
}
UNAVAILABLE_MESSAGE = "AI service temporarily unavailable."
GENERIC_MESSAGE = "Failed to generate content"


class PagesmithError(Exception):
    """Base for all pagesmith-specific errors."""


class ConfigurationError(PagesmithError):
    """Raised when generator configuration is invalid."""


class GenerationError(PagesmithError):
    """A generation request failed with a user-presentable message.

    ``status`` is the HTTP status of the backend response, or ``None``
    when the failure happened before or after the HTTP exchange.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        self.message = message
        self.status = status
        super().__init__(message)

    @classmethod
    def from_response(cls, status: int, body: bytes | str = b"") -> GenerationError:
        """Build an error for a non-2xx backend response.

        A JSON body with an ``error`` string wins; otherwise the status is
        mapped to a known message, falling back to a generic one.
        """
        message = _message_from_body(body) or status_message(status)
        return cls(message, status=status)


class UpstreamError(GenerationError):
    """The model backend reported an error inside the event stream."""


class StreamProtocolError(PagesmithError):
    """The event stream could not be decoded into deltas."""


class FrameDecodeError(StreamProtocolError):
    """A data frame did not contain valid JSON.

    Not fatal on its own: the reader pushes the line back and retries it
    once more data has arrived.
    """


class UnexpectedPayloadError(StreamProtocolError):
    """A data frame decoded to JSON of an unexpected shape."""


def status_message(status: int) -> str:
    """Map an HTTP status to the message shown to the user."""
    if status in STATUS_MESSAGES:
        return STATUS_MESSAGES[status]
    if status >= 500:
        return UNAVAILABLE_MESSAGE
    return GENERIC_MESSAGE


def _message_from_body(body: bytes | str) -> str | None:
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    if not body.strip():
        return None
    try:
        data = json.loads(body)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, str) and error:
        return error
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None

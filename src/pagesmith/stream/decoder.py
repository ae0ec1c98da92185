"""Event decoder — one SSE data payload in, one text delta out.

Speaks the OpenAI-compatible Chat Completions stream shape::

    {"choices": [{"delta": {"content": "<html>"}}]}

A frame without the expected fields is "no delta this frame", never an
error. Pure functions, no state.
"""

import json
from typing import Any

from pagesmith.errors import FrameDecodeError, UnexpectedPayloadError, UpstreamError

DONE_SENTINEL = "[DONE]"


def is_sentinel(payload: str, sentinel: str = DONE_SENTINEL) -> bool:
    """Return True if *payload* is the end-of-stream marker."""
    return payload.strip() == sentinel


def decode_delta(payload: str) -> str:
    """Extract the incremental text of one data frame.

    Raises:
        FrameDecodeError: *payload* is not valid JSON (possibly truncated).
        UnexpectedPayloadError: the JSON is not an object.
        UpstreamError: the backend embedded an ``error`` object in the stream.
    """
    try:
        event = json.loads(payload)
    except json.JSONDecodeError as exc:
        msg = f"Invalid JSON in data frame: {exc}"
        raise FrameDecodeError(msg) from exc

    if not isinstance(event, dict):
        msg = f"Expected JSON object in data frame, got {type(event).__name__}"
        raise UnexpectedPayloadError(msg)

    if "error" in event:
        raise UpstreamError(_upstream_message(event["error"]))

    return _content_of(event)


def _content_of(event: dict[str, Any]) -> str:
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


def _upstream_message(error: Any) -> str:
    match error:
        case str() if error:
            return error
        case {"message": str(message)} if message:
            return message
        case _:
            return "AI service reported an error."

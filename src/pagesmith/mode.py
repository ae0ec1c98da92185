"""Response mode classification.

The backend announces, out of band, whether a response is a chat reply
or a generated page. Decided once per session, before any delta is
processed, and never revisited.
"""

from collections.abc import Mapping
from enum import StrEnum


class ResponseMode(StrEnum):
    CONVERSATION = "conversation"
    ARTIFACT = "artifact"


def classify_response(
    headers: Mapping[str, str],
    *,
    header: str = "X-Response-Type",
    conversation_value: str = "conversation",
) -> ResponseMode:
    """Classify a response from its headers.

    Header lookup is case-insensitive when *headers* is an
    ``httpx.Headers``; plain dicts are searched case-insensitively too.
    """
    value = headers.get(header)
    if value is None:
        wanted = header.lower()
        value = next((v for k, v in headers.items() if k.lower() == wanted), None)
    if value is not None and value.strip().lower() == conversation_value.lower():
        return ResponseMode.CONVERSATION
    return ResponseMode.ARTIFACT

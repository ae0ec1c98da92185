"""HTTP transport to the generation backend.

One streaming POST per session via httpx — no provider SDKs. The backend
speaks the OpenAI-compatible Chat Completions stream format and tags the
response with an ``X-Response-Type`` header.

Free-threading safety:
    - No module-level mutable state
    - The caller owns the ``httpx.AsyncClient`` and its lifetime
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from pagesmith.config import GeneratorConfig
from pagesmith.errors import GenerationError
from pagesmith.models import GenerationRequest
from pagesmith.session import CancellationToken

logger = logging.getLogger("pagesmith.transport")

NETWORK_MESSAGE = "Network error. Please check your connection and try again."
TIMEOUT_MESSAGE = "The AI service took too long to respond. Please try again."


def request_headers(config: GeneratorConfig) -> dict[str, str]:
    headers = {
        "Content-Type": "application/json",
        "Accept": "text/event-stream",
    }
    if config.api_key:
        headers["Authorization"] = f"Bearer {config.api_key}"
    return headers


@asynccontextmanager
async def open_stream(
    client: httpx.AsyncClient,
    config: GeneratorConfig,
    request: GenerationRequest,
) -> AsyncIterator[httpx.Response]:
    """Open the generation stream, raising ``GenerationError`` on non-2xx.

    Usage::

        async with open_stream(client, config, request) as response:
            async for chunk in iter_chunks(response, token):
                ...
    """
    logger.debug("POST %s (model=%s)", config.endpoint, request.model)
    async with client.stream(
        "POST",
        config.endpoint,
        json=request.to_payload(),
        headers=request_headers(config),
        timeout=config.timeout,
    ) as response:
        if not response.is_success:
            body = await response.aread()
            logger.warning("Backend returned %d: %.200s", response.status_code, body)
            raise GenerationError.from_response(response.status_code, body)
        yield response


async def iter_chunks(
    response: httpx.Response, token: CancellationToken
) -> AsyncIterator[bytes]:
    """Yield raw body chunks until the stream ends or *token* is cancelled."""
    async for chunk in response.aiter_bytes():
        if token.cancelled:
            logger.debug("Read loop exiting on cancellation")
            return
        yield chunk


def transport_message(exc: httpx.HTTPError) -> str:
    """User-facing message for a transport-level failure."""
    if isinstance(exc, httpx.TimeoutException):
        return TIMEOUT_MESSAGE
    return NETWORK_MESSAGE

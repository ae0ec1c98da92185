"""Builders for fake SSE streams and a fake generation backend."""

import asyncio
import json
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx


def frame(content: str) -> str:
    """One OpenAI-style SSE data line carrying *content*."""
    payload = {"choices": [{"delta": {"content": content}}]}
    return f"data: {json.dumps(payload)}\n"


def sse_text(*contents: str, done: bool = True) -> str:
    text = "".join(frame(c) for c in contents)
    if done:
        text += "data: [DONE]\n"
    return text


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i : i + size] for i in range(0, len(data), size)]


@dataclass
class Canned:
    chunks: list[bytes] = field(default_factory=list)
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    hang: asyncio.Event | None = None  # block after the last chunk until set
    raise_error: Exception | None = None


class FakeBackend:
    """Queue of canned responses served by an ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self._queue: list[Canned] = []
        self.payloads: list[dict[str, Any]] = []
        self.headers: list[httpx.Headers] = []
        self.before_chunk: Callable[[int], None] | None = None
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(self._handle))

    def respond(
        self,
        chunks: Iterable[bytes | str] = (),
        *,
        status: int = 200,
        headers: dict[str, str] | None = None,
        hang: asyncio.Event | None = None,
        raise_error: Exception | None = None,
    ) -> None:
        encoded = [c.encode() if isinstance(c, str) else c for c in chunks]
        self._queue.append(Canned(encoded, status, headers or {}, hang, raise_error))

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.payloads.append(json.loads(request.content))
        self.headers.append(request.headers)
        canned = self._queue.pop(0)
        if canned.raise_error is not None:
            raise canned.raise_error
        return httpx.Response(
            canned.status,
            headers=canned.headers,
            content=self._body(canned),
        )

    async def _body(self, canned: Canned) -> AsyncIterator[bytes]:
        for index, chunk in enumerate(canned.chunks):
            if self.before_chunk is not None:
                self.before_chunk(index)
            yield chunk
        if canned.hang is not None:
            await canned.hang.wait()



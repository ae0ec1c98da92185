"""Token stream reader — reassembles SSE data lines from network chunks.

Chunks arrive at arbitrary granularity: one chunk may end mid-line (or
mid-UTF-8 sequence), another may carry several lines at once. The reader
keeps a pending buffer, hands every complete ``data:`` line to the event
decoder, and returns the resulting text deltas in arrival order.

Usage::

    reader = FrameReader()
    async for chunk in response.aiter_bytes():
        for delta in reader.feed(chunk):
            ...
        if reader.done:
            break
    for delta in reader.close():
        ...
"""

import codecs
import logging
from collections.abc import Callable

from pagesmith.errors import FrameDecodeError, StreamProtocolError
from pagesmith.stream.decoder import DONE_SENTINEL, decode_delta

logger = logging.getLogger("pagesmith.stream")


class FrameReader:
    """Incremental SSE line reader for one response stream.

    Not thread-safe and not reusable: create one per session.
    """

    __slots__ = (
        "_buffer",
        "_decode",
        "_max_pending",
        "_prefix",
        "_sentinel",
        "_stalled",
        "_utf8",
        "done",
        "dropped",
    )

    def __init__(
        self,
        *,
        decode: Callable[[str], str] = decode_delta,
        prefix: str = "data: ",
        sentinel: str = DONE_SENTINEL,
        max_pending_chars: int = 1024 * 1024,
    ) -> None:
        self._decode = decode
        self._prefix = prefix
        self._sentinel = sentinel
        self._max_pending = max_pending_chars
        self._buffer = ""
        self._stalled: str | None = None
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.done = False
        self.dropped = 0

    @property
    def pending(self) -> str:
        """Text received but not yet consumed as complete lines."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one network chunk and return the deltas it completed."""
        if self.done:
            return []
        text = self._utf8.decode(chunk) if isinstance(chunk, bytes) else chunk
        self._buffer += text
        deltas = self._drain(final=False)
        if len(self._buffer) > self._max_pending:
            msg = (
                f"Event stream buffered {len(self._buffer)} characters "
                "without a decodable frame"
            )
            raise StreamProtocolError(msg)
        return deltas

    def close(self) -> list[str]:
        """Flush at physical end of stream.

        A final line without a terminator is still decoded; a line that
        never became valid JSON is dropped.
        """
        if self.done:
            return []
        self._buffer += self._utf8.decode(b"", final=True)
        if self._buffer and not self._buffer.endswith("\n"):
            self._buffer += "\n"
        deltas = self._drain(final=True)
        self._buffer = ""
        return deltas

    def _drain(self, *, final: bool) -> list[str]:
        deltas: list[str] = []
        while (newline := self._buffer.find("\n")) != -1:
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1 :]
            if line.endswith("\r"):
                line = line[:-1]

            # Blank lines, comments / keep-alives, and non-data fields
            if not line.strip() or line.startswith(":"):
                continue
            if not line.startswith(self._prefix):
                continue

            payload = line[len(self._prefix) :].strip()
            if payload == self._sentinel:
                self.done = True
                self._buffer = ""
                break

            try:
                delta = self._decode(payload)
            except FrameDecodeError:
                if final or line == self._stalled:
                    logger.warning("Dropping undecodable frame: %.80s", payload)
                    self.dropped += 1
                    self._stalled = None
                    continue
                # Retry once more data has arrived
                logger.debug("Frame did not decode, waiting for more data")
                self._stalled = line
                self._buffer = line + "\n" + self._buffer
                break

            self._stalled = None
            if delta:
                deltas.append(delta)
        return deltas

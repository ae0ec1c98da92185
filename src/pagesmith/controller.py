"""Generation session controller.

Owns the lifecycle of one generation at a time::

    idle ─generate()─▶ generating(artifact | conversation) ─▶ complete
                                   │                     ├──▶ error
                                   └────────stop()───────┴──▶ cancelled

Usage::

    controller = GenerationController(GeneratorConfig.from_env())

    result = await controller.generate(
        "A landing page for a coffee shop",
        model="google/gemini-2.0-flash",
        on_chunk=lambda html: preview.show_provisional(html),
        on_complete=lambda result: store.save(result.document, result.files, history),
        on_error=lambda message: toast.error(message),
    )

Callbacks may be plain functions or coroutines. Exactly one of
``on_complete`` / ``on_error`` fires per session, and neither fires when
the session is stopped: cancellation is neither success nor failure.

Every state mutation is guarded by an identity check against the
controller's current session, so a late resume of an abandoned session
can never touch the state of the one that replaced it.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import aclosing, asynccontextmanager
from dataclasses import dataclass
from typing import Any

import httpx

from pagesmith._internal.invoke import invoke
from pagesmith.config import GeneratorConfig
from pagesmith.errors import GenerationError, PagesmithError, StreamProtocolError
from pagesmith.extraction import (
    complete_html,
    extract_output,
    finalize_output,
    home_page,
    merge_files,
    strip_thinking,
)
from pagesmith.mode import ResponseMode, classify_response
from pagesmith.models import GenerationRequest, GenerationResult, Message, ProjectFile
from pagesmith.progress import PHASES, StatusType, complete_phase, estimate
from pagesmith.session import CancellationToken, GenerationSession
from pagesmith.stream.reader import FrameReader
from pagesmith.transport import iter_chunks, open_stream, transport_message

logger = logging.getLogger("pagesmith.controller")

CANCELLED_STATUS = "Generation cancelled"
CONVERSATION_STATUS = "AI is thinking..."
CONVERSATION_DONE_STATUS = "Ready"


@dataclass(frozen=True, slots=True)
class Callbacks:
    on_chunk: Callable[[str], Any] | None = None
    on_complete: Callable[[GenerationResult], Any] | None = None
    on_conversation: Callable[[str], Any] | None = None
    on_error: Callable[[str], Any] | None = None


class GenerationController:
    """Runs generation sessions, one at a time."""

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or GeneratorConfig()
        self._client = client
        self._session: GenerationSession | None = None
        self._token: CancellationToken | None = None

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def session(self) -> GenerationSession | None:
        """The most recent session, live or terminal. Never reused."""
        return self._session

    @property
    def is_generating(self) -> bool:
        return self._session is not None and self._session.is_generating

    # -- Stop --

    def stop(self) -> None:
        """Cancel the in-flight session. Safe to call at any time."""
        token, session = self._token, self._session
        if session is None or not session.is_generating:
            return
        self._token = None
        if token is not None:
            token.cancel()
        session.is_generating = False
        session.is_complete = False
        session.is_conversation = False
        session.conversation_response = ""
        session.error = None
        session.status = CANCELLED_STATUS
        session.status_type = StatusType.CANCELLED
        session.finished_at = time.monotonic()
        logger.info("Generation cancelled after %d deltas", session.tokens_generated)

    # -- Generate --

    async def generate(
        self,
        prompt: str | GenerationRequest,
        *,
        model: str | None = None,
        current_document: str | None = None,
        current_files: Iterable[ProjectFile] = (),
        history: Iterable[Message] = (),
        on_chunk: Callable[[str], Any] | None = None,
        on_complete: Callable[[GenerationResult], Any] | None = None,
        on_conversation: Callable[[str], Any] | None = None,
        on_error: Callable[[str], Any] | None = None,
    ) -> GenerationResult | None:
        """Run one generation session to its terminal state.

        Any session already in progress is stopped first. Returns the
        result on completion, ``None`` on error or cancellation.
        """
        if isinstance(prompt, GenerationRequest):
            request = prompt
        else:
            request = GenerationRequest(
                prompt=prompt,
                model=model or self._config.default_model,
                current_document=current_document,
                current_files=tuple(current_files),
                history=tuple(history),
            )
        callbacks = Callbacks(on_chunk, on_complete, on_conversation, on_error)

        self.stop()
        first = PHASES[0]
        session = GenerationSession(
            model=request.model,
            is_generating=True,
            status=first.status,
            status_type=first.status_type,
            progress=first.progress,
        )
        token = CancellationToken(asyncio.current_task())
        self._session, self._token = session, token
        logger.info("Generation started (model=%s)", request.model)

        try:
            return await self._run(session, token, request, callbacks)
        except asyncio.CancelledError:
            if not token.cancelled:
                raise
            task = asyncio.current_task()
            if task is not None:
                task.uncancel()
            return None
        except (PagesmithError, httpx.HTTPError) as exc:
            if token.cancelled:
                return None
            if not self._owns(session):
                # Raised by a host callback after the session ended
                raise
            message = _error_message(exc)
            logger.warning("Generation failed: %s", exc)
            self._fail(session, message)
            await invoke(callbacks.on_error, message)
            return None
        finally:
            if self._token is token:
                self._token = None
            if self._session is session and session.is_generating:
                session.is_generating = False
                session.finished_at = time.monotonic()

    # -- Session internals --

    def _owns(self, session: GenerationSession) -> bool:
        """Identity guard: only the live current session may be mutated."""
        return self._session is session and session.is_generating

    def _update(self, session: GenerationSession, **changes: Any) -> bool:
        if not self._owns(session):
            logger.debug("Ignoring update for a stale session")
            return False
        for name, value in changes.items():
            setattr(session, name, value)
        return True

    def _disarm(self, session: GenerationSession) -> None:
        """Drop the token of a terminal session before its callbacks run.

        A finished session cannot be stopped: ``stop()`` or a new
        ``generate()`` issued from a terminal callback must not cancel
        the task that is running it.
        """
        if self._session is session:
            self._token = None

    def _fail(self, session: GenerationSession, message: str) -> None:
        self._update(
            session,
            error=message,
            status=message,
            status_type=StatusType.ERROR,
            progress=0,
            is_complete=False,
            is_conversation=False,
            conversation_response="",
            is_generating=False,
            finished_at=time.monotonic(),
        )
        self._disarm(session)

    @asynccontextmanager
    async def _client_scope(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self._config.timeout) as client:
            yield client

    async def _run(
        self,
        session: GenerationSession,
        token: CancellationToken,
        request: GenerationRequest,
        callbacks: Callbacks,
    ) -> GenerationResult | None:
        config = self._config
        async with self._client_scope() as client, open_stream(client, config, request) as response:
            mode = classify_response(
                response.headers,
                header=config.response_type_header,
                conversation_value=config.conversation_value,
            )
            if not self._update(session, mode=mode):
                return None
            reader = FrameReader(
                prefix=config.data_prefix,
                sentinel=config.done_sentinel,
                max_pending_chars=config.max_pending_chars,
            )
            async with aclosing(self._deltas(response, reader, token)) as deltas:
                if mode is ResponseMode.CONVERSATION:
                    return await self._run_conversation(session, deltas, request, callbacks)
                return await self._run_artifact(session, deltas, reader, request, callbacks)

    async def _deltas(
        self,
        response: httpx.Response,
        reader: FrameReader,
        token: CancellationToken,
    ) -> AsyncIterator[str]:
        async for chunk in iter_chunks(response, token):
            for delta in reader.feed(chunk):
                yield delta
            if reader.done:
                return
        if not token.cancelled:
            for delta in reader.close():
                yield delta

    async def _run_artifact(
        self,
        session: GenerationSession,
        deltas: AsyncIterator[str],
        reader: FrameReader,
        request: GenerationRequest,
        callbacks: Callbacks,
    ) -> GenerationResult | None:
        config = self._config
        last_extraction = time.monotonic()
        last_sent = ""

        async for delta in deltas:
            if not self._owns(session):
                return None
            session.append(delta)
            count = session.tokens_generated + 1
            phase = estimate(count)
            session.tokens_generated = count
            session.status = phase.status
            session.status_type = phase.status_type
            session.progress = phase.progress

            now = time.monotonic()
            due = count % config.extraction_every_chunks == 0 or (
                now - last_extraction > config.extraction_interval
            )
            if count <= config.min_chunks_before_extraction or not due:
                continue

            last_extraction = now
            output = extract_output(session.accumulated_text)
            if not output.document:
                continue
            session.last_extracted_document = output.document
            if output.files:
                session.files = list(output.files)
            if len(output.document) > config.min_preview_length:
                provisional = (
                    output.document
                    if "</html>" in output.document.lower()
                    else complete_html(output.document)
                )
                if provisional != last_sent:
                    last_sent = provisional
                    await invoke(callbacks.on_chunk, provisional)

        if not self._owns(session):
            return None
        session.dropped_frames = reader.dropped
        return await self._complete_artifact(session, request, callbacks)

    async def _complete_artifact(
        self,
        session: GenerationSession,
        request: GenerationRequest,
        callbacks: Callbacks,
    ) -> GenerationResult | None:
        output = finalize_output(session.accumulated_text)
        document = output.document
        files = merge_files(request.current_files, output.files)
        pages = output.pages or (home_page(document),)
        elapsed = session.elapsed
        done = complete_phase(elapsed)

        if not self._update(
            session,
            preview=document,
            last_extracted_document=document,
            files=list(files),
            pages=list(pages),
            status=done.status,
            status_type=done.status_type,
            progress=done.progress,
            is_complete=True,
            is_generating=False,
            finished_at=time.monotonic(),
        ):
            return None
        self._disarm(session)

        logger.info(
            "Generation complete in %.1fs (%d deltas, %s)",
            elapsed,
            session.tokens_generated,
            output.strategy,
        )
        result = GenerationResult(
            mode=ResponseMode.ARTIFACT,
            model=request.model,
            document=document,
            text=session.accumulated_text,
            files=files,
            pages=pages,
            duration=elapsed,
            tokens_generated=session.tokens_generated,
        )
        await invoke(callbacks.on_complete, result)
        return result

    async def _run_conversation(
        self,
        session: GenerationSession,
        deltas: AsyncIterator[str],
        request: GenerationRequest,
        callbacks: Callbacks,
    ) -> GenerationResult | None:
        if not self._update(
            session,
            status=CONVERSATION_STATUS,
            status_type=StatusType.CONVERSATION,
            is_conversation=True,
            preview="",
        ):
            return None

        async for delta in deltas:
            if not self._owns(session):
                return None
            session.append(delta)
            session.tokens_generated += 1
            session.conversation_response = strip_thinking(session.accumulated_text).strip()

        if not self._owns(session):
            return None
        text = strip_thinking(session.accumulated_text).strip()
        elapsed = session.elapsed
        if not self._update(
            session,
            conversation_response=text,
            status=CONVERSATION_DONE_STATUS,
            status_type=StatusType.COMPLETE,
            progress=100,
            is_complete=True,
            is_generating=False,
            finished_at=time.monotonic(),
        ):
            return None
        self._disarm(session)

        logger.info("Conversation reply complete in %.1fs", elapsed)
        result = GenerationResult(
            mode=ResponseMode.CONVERSATION,
            model=request.model,
            text=text,
            duration=elapsed,
            tokens_generated=session.tokens_generated,
        )
        await invoke(callbacks.on_conversation, text)
        await invoke(callbacks.on_complete, result)
        return result


def _error_message(exc: Exception) -> str:
    if isinstance(exc, GenerationError):
        return exc.message
    if isinstance(exc, httpx.HTTPError):
        return transport_message(exc)
    if isinstance(exc, StreamProtocolError):
        return "The AI service sent a response that could not be read."
    return "An unexpected error occurred"

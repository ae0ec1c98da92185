"""Generation session state and its cancellation token.

A ``GenerationSession`` is created per ``generate()`` call, owned by one
controller, mutated only through that controller, and discarded once it
reaches a terminal state. Nothing here is shared across sessions.
"""

from __future__ import annotations

import asyncio
import dataclasses
import time
from dataclasses import dataclass, field

from pagesmith.mode import ResponseMode
from pagesmith.models import GeneratedPage, ProjectFile
from pagesmith.progress import StatusType


class CancellationToken:
    """Cooperative cancellation shared by the controller and the read loop.

    ``cancel()`` raises the flag and cancels the task that owns the
    session, which interrupts a pending network read. The read loop also
    polls ``cancelled`` between chunks.
    """

    __slots__ = ("_cancelled", "_task")

    def __init__(self, task: asyncio.Task[object] | None = None) -> None:
        self._cancelled = False
        self._task = task

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        task = self._task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()


def _current_task() -> asyncio.Task[object] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


@dataclass(slots=True)
class GenerationSession:
    """Mutable state of one in-flight generation.

    ``accumulated_text`` is append-only. ``last_extracted_document`` is
    the best provisional page seen so far and never falls back to empty;
    ``preview`` is the page surfaced as ready, set only on completion.
    """

    model: str = ""
    is_generating: bool = False
    status: str = ""
    status_type: StatusType = StatusType.ANALYZING
    progress: int = 0
    tokens_generated: int = 0
    accumulated_text: str = ""
    last_extracted_document: str = ""
    preview: str = ""
    files: list[ProjectFile] = field(default_factory=list)
    pages: list[GeneratedPage] = field(default_factory=list)
    is_complete: bool = False
    mode: ResponseMode | None = None
    is_conversation: bool = False
    conversation_response: str = ""
    error: str | None = None
    dropped_frames: int = 0
    started_at: float = field(default_factory=time.monotonic)
    finished_at: float | None = None

    @property
    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    @property
    def is_cancelled(self) -> bool:
        return self.status_type is StatusType.CANCELLED

    def append(self, delta: str) -> None:
        self.accumulated_text += delta

    def snapshot(self) -> GenerationSession:
        """A detached copy for readers that must not see later mutations."""
        return dataclasses.replace(self, files=list(self.files), pages=list(self.pages))

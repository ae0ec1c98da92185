"""Value types passed between the engine and its host.

All frozen: a request, a result, and the files and pages they carry are
facts about one generation and never change after creation.
"""

from dataclasses import dataclass
from typing import Any

from pagesmith.mode import ResponseMode


@dataclass(frozen=True, slots=True)
class Message:
    """One turn of chat history."""

    role: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True, slots=True)
class ProjectFile:
    path: str
    content: str

    def as_dict(self) -> dict[str, str]:
        return {"path": self.path, "content": self.content}


@dataclass(frozen=True, slots=True)
class GeneratedPage:
    """One page of a multi-page site."""

    id: str
    name: str
    path: str = "/"
    preview: str = ""
    icon: str = "file-text"
    files: tuple[ProjectFile, ...] = ()


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Everything the backend needs for one generation.

    ``current_document`` turns a fresh generation into a modification of
    the existing page.
    """

    prompt: str
    model: str
    current_document: str | None = None
    current_files: tuple[ProjectFile, ...] = ()
    history: tuple[Message, ...] = ()

    def to_payload(self) -> dict[str, Any]:
        """The JSON body posted to the generation endpoint."""
        return {
            "prompt": self.prompt,
            "conversationHistory": [m.as_dict() for m in self.history],
            "currentCode": self.current_document,
            "currentFiles": [f.as_dict() for f in self.current_files],
            "model": self.model,
        }


@dataclass(frozen=True, slots=True)
class UsageReport:
    """Raw usage figures for the billing collaborator.

    The engine reports what was produced; pricing is the host's business.
    """

    model: str
    document_length: int
    description: str


@dataclass(frozen=True, slots=True)
class GenerationResult:
    """The outcome of a successfully completed session.

    ``document`` is the renderable page on the artifact path and empty on
    the conversation path; ``text`` is the cleaned reply on the
    conversation path and the raw accumulated text otherwise.
    """

    mode: ResponseMode
    model: str
    document: str = ""
    text: str = ""
    files: tuple[ProjectFile, ...] = ()
    pages: tuple[GeneratedPage, ...] = ()
    duration: float = 0.0
    tokens_generated: int = 0

    @property
    def is_conversation(self) -> bool:
        return self.mode is ResponseMode.CONVERSATION

    def usage(self) -> UsageReport:
        if self.is_conversation:
            return UsageReport(self.model, len(self.text), f"Chat reply ({self.model})")
        return UsageReport(self.model, len(self.document), f"Page generation ({self.model})")

"""External collaborators: persistence, billing, and quality checks.

The engine never implements these. It defines the narrow interfaces a
host plugs in, and ``hand_off()``, the host-side step that runs once a
session completes::

    result = await controller.generate(prompt, model=model)
    if result is not None:
        await hand_off(result, history, store=projects, ledger=credits,
                       pricing=lambda usage: usage.document_length / 1000)

Collaborator methods may be sync or async.
"""

import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pagesmith._internal.invoke import invoke
from pagesmith.models import GenerationResult, Message, ProjectFile, UsageReport

logger = logging.getLogger("pagesmith.collaborators")


@runtime_checkable
class ArtifactStore(Protocol):
    def save(
        self, document: str, files: Sequence[ProjectFile], history: Sequence[Message]
    ) -> Any: ...


@runtime_checkable
class UsageLedger(Protocol):
    def deduct(self, cost: float, description: str) -> Any: ...


@runtime_checkable
class QualityCheck(Protocol):
    def validate(self, document: str) -> Any: ...


async def hand_off(
    result: GenerationResult,
    history: Iterable[Message] = (),
    *,
    store: ArtifactStore | None = None,
    ledger: UsageLedger | None = None,
    pricing: Callable[[UsageReport], float] | None = None,
    quality: QualityCheck | None = None,
) -> Any:
    """Pass a completed result to the host's collaborators.

    Artifacts are saved; conversation replies are not. The ledger is
    charged only when both *ledger* and *pricing* are given. Returns the
    quality check's verdict, or ``None`` when there is no check.
    """
    turns = tuple(history)
    if not result.is_conversation and store is not None:
        await invoke(store.save, result.document, result.files, turns)
        logger.debug("Saved artifact (%d chars)", len(result.document))

    if ledger is not None and pricing is not None:
        usage = result.usage()
        cost = pricing(usage)
        await invoke(ledger.deduct, cost, usage.description)
        logger.debug("Charged %s for %s", cost, usage.description)

    if quality is not None and not result.is_conversation:
        return await invoke(quality.validate, result.document)
    return None


class FileArtifactStore:
    """Writes each saved artifact into a directory.

    ``index.html`` receives the document; project files are written under
    their relative paths. Paths escaping the directory are refused.
    """

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def save(
        self, document: str, files: Sequence[ProjectFile], history: Sequence[Message]
    ) -> Path:
        root = self.directory.resolve()
        root.mkdir(parents=True, exist_ok=True)
        index = root / "index.html"
        index.write_text(document, encoding="utf-8")
        for f in files:
            target = (root / f.path.lstrip("/")).resolve()
            if not target.is_relative_to(root):
                logger.warning("Refusing to write outside %s: %s", root, f.path)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(f.content, encoding="utf-8")
        return index

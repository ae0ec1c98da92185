"""Document extraction — recover an HTML page from noisy model output.

The model's text arrives wrapped in reasoning spans, code fences, or a
JSON envelope, and mid-stream it is simply incomplete. Extraction is an
ordered list of named strategies, each a pure ``(text) -> Extraction |
None``; the first one that matches wins:

1. strip wrapping (``<think>`` spans, code fences)
2. unwrap a ``"preview": "..."`` envelope, only if it holds a full page
3. ``doctype`` — ``<!DOCTYPE html>`` through the last ``</html>``
4. ``root-element`` — ``<html`` through ``</html>``, doctype synthesized
5. ``partial`` — from the document start marker to the end (provisional)
6. nothing — empty, never fabricated

At end of stream ``finalize_document()`` closes a partial page and wraps
text with no page at all in a boilerplate document, so the host always
receives something renderable.

The envelope match in step 2 is a best-effort heuristic over possibly
incomplete JSON, not a JSON parse. It works on conventional output; it
makes no promises for adversarial payloads.
"""

import json
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeAlias

from pagesmith.models import GeneratedPage, ProjectFile

_THINK_RE = re.compile(r"<think>.*?</think>", re.IGNORECASE | re.DOTALL)
_FENCE_RE = re.compile(r"```[\w+#.-]*\s*")
_PREVIEW_RE = re.compile(r'"preview"\s*:\s*"(.*?)(?:(?<!\\)"\s*[,}]|\s*$)', re.DOTALL)
_ESCAPE_RE = re.compile(r'\\(["\\/ntr])')
_ESCAPES = {'"': '"', "\\": "\\", "/": "/", "n": "\n", "t": "\t", "r": "\r"}

_DOCTYPE_RE = re.compile(r"<!DOCTYPE html>", re.IGNORECASE)
_DOCTYPE_DOC_RE = re.compile(r"<!DOCTYPE html>.*</html>", re.IGNORECASE | re.DOTALL)
_ROOT_DOC_RE = re.compile(r"<html.*</html>", re.IGNORECASE | re.DOTALL)
_ROOT_OPEN_RE = re.compile(r"<html", re.IGNORECASE)

DOCTYPE = "<!DOCTYPE html>"


@dataclass(frozen=True, slots=True)
class Extraction:
    """Result of one extraction attempt.

    ``partial`` marks a provisional document cut from an unfinished
    stream; callers must not present it as final.
    """

    document: str = ""
    partial: bool = False
    strategy: str = "none"

    def __bool__(self) -> bool:
        return bool(self.document)


@dataclass(frozen=True, slots=True)
class ExtractedOutput:
    """A page plus the project files and pages of a structured envelope."""

    document: str = ""
    files: tuple[ProjectFile, ...] = ()
    pages: tuple[GeneratedPage, ...] = ()
    partial: bool = False
    strategy: str = "none"


Strategy: TypeAlias = Callable[[str], Extraction | None]


# =============================================================================
# Cleaning
# =============================================================================


def strip_thinking(text: str) -> str:
    """Remove every ``<think>...</think>`` span, contents included."""
    return _THINK_RE.sub("", text)


def strip_wrapping(text: str) -> str:
    """Remove reasoning spans and code fences of any language tag."""
    return _FENCE_RE.sub("", strip_thinking(text))


def unescape_json_string(value: str) -> str:
    """Undo the conventional JSON string escapes in a single pass."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(1)], value)


def unwrap_preview_envelope(text: str) -> str:
    """Substitute the ``preview`` field of a JSON envelope, if trustworthy.

    The field is used only when its unescaped value contains a doctype;
    otherwise *text* is returned unchanged, since a low-confidence partial
    match mid-stream is worse than no substitution.
    """
    match = _PREVIEW_RE.search(text)
    if match is None:
        return text
    candidate = unescape_json_string(match.group(1))
    if _DOCTYPE_RE.search(candidate):
        return candidate
    return text


def prepare(text: str) -> str:
    return unwrap_preview_envelope(strip_wrapping(text)).strip()


# =============================================================================
# Strategies
# =============================================================================


def match_doctype_document(text: str) -> Extraction | None:
    match = _DOCTYPE_DOC_RE.search(text)
    if match is None:
        return None
    return Extraction(match.group(0).strip(), strategy="doctype")


def match_root_element(text: str) -> Extraction | None:
    match = _ROOT_DOC_RE.search(text)
    if match is None:
        return None
    return Extraction(f"{DOCTYPE}\n{match.group(0).strip()}", strategy="root-element")


def match_partial_document(text: str) -> Extraction | None:
    if match := _DOCTYPE_RE.search(text):
        return Extraction(text[match.start() :], partial=True, strategy="partial")
    if match := _ROOT_OPEN_RE.search(text):
        return Extraction(f"{DOCTYPE}\n{text[match.start() :]}", partial=True, strategy="partial")
    return None


STRATEGIES: tuple[Strategy, ...] = (
    match_doctype_document,
    match_root_element,
    match_partial_document,
)


def extract_document(text: str, strategies: Iterable[Strategy] = STRATEGIES) -> Extraction:
    """Return the best document available in *text* so far."""
    if not text:
        return Extraction()
    cleaned = prepare(text)
    for strategy in strategies:
        if result := strategy(cleaned):
            return result
    return Extraction()


def complete_html(document: str) -> str:
    """Append the closing tags a partial document is missing."""
    completed = document
    if "</body>" not in completed.lower():
        completed += "\n</body>"
    if "</html>" not in completed.lower():
        completed += "\n</html>"
    return completed


def wrap_in_html(content: str) -> str:
    """Wrap raw text in a minimal renderable page."""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Generated Page</title>
  <script src="https://cdn.tailwindcss.com"></script>
  <link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600;700&display=swap" rel="stylesheet">
</head>
<body class="antialiased bg-gray-950 text-white min-h-screen font-sans">
  {content}
</body>
</html>"""


def finalize_document(text: str) -> Extraction:
    """End-of-stream extraction: always returns a renderable document."""
    result = extract_document(text)
    if result and not result.partial:
        return result
    if result:
        return Extraction(complete_html(result.document), strategy="completed")
    return Extraction(wrap_in_html(strip_wrapping(text).strip()), strategy="wrapped")


# =============================================================================
# Structured envelope (files + pages)
# =============================================================================


def extract_output(text: str) -> ExtractedOutput:
    """Extract a full JSON envelope, falling back to plain extraction."""
    if envelope := _parse_envelope(text):
        return envelope
    result = extract_document(text)
    return ExtractedOutput(result.document, partial=result.partial, strategy=result.strategy)


def finalize_output(text: str) -> ExtractedOutput:
    """End-of-stream counterpart of ``extract_output()``."""
    if envelope := _parse_envelope(text):
        return envelope
    result = finalize_document(text)
    return ExtractedOutput(result.document, strategy=result.strategy)


def _parse_envelope(text: str) -> ExtractedOutput | None:
    cleaned = strip_wrapping(text).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    files = _files_from(data.get("files"))
    pages = _pages_from(data.get("pages"))
    preview = data.get("preview")
    if not isinstance(preview, str) or not preview:
        preview = pages[0].preview if pages else ""

    if not files and not pages and not _DOCTYPE_RE.search(preview):
        return None
    return ExtractedOutput(
        preview or wrap_in_html("No preview available"),
        files=files,
        pages=pages,
        strategy="envelope",
    )


def _files_from(raw: Any) -> tuple[ProjectFile, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(
        ProjectFile(item["path"], item["content"])
        for item in raw
        if isinstance(item, dict)
        and isinstance(item.get("path"), str)
        and isinstance(item.get("content"), str)
    )


def _pages_from(raw: Any) -> tuple[GeneratedPage, ...]:
    if not isinstance(raw, list):
        return ()
    pages: list[GeneratedPage] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        if not isinstance(item.get("id"), str) or not isinstance(item.get("name"), str):
            continue
        path = item.get("path") or "/"
        preview = item.get("preview")
        pages.append(
            GeneratedPage(
                id=item["id"],
                name=item["name"],
                path=path,
                preview=preview if isinstance(preview, str) else "",
                icon=item.get("icon") or icon_for_path(path),
                files=_files_from(item.get("files")),
            )
        )
    return tuple(pages)


# Path keyword → icon name
_PATH_ICONS: tuple[tuple[str, str], ...] = (
    ("about", "info"),
    ("pricing", "dollar-sign"),
    ("contact", "mail"),
    ("blog", "book-open"),
    ("feature", "star"),
    ("team", "users"),
    ("service", "briefcase"),
)


def icon_for_path(path: str | None) -> str:
    if not path or path == "/":
        return "home"
    lowered = path.lower()
    for keyword, icon in _PATH_ICONS:
        if keyword in lowered:
            return icon
    return "file-text"


def merge_files(
    existing: Iterable[ProjectFile], new: Iterable[ProjectFile]
) -> tuple[ProjectFile, ...]:
    """Overlay *new* onto *existing* by path.

    Existing files keep their position when replaced; new paths are
    appended in the order given.
    """
    merged: dict[str, ProjectFile] = {f.path: f for f in existing}
    for f in new:
        merged[f.path] = f
    return tuple(merged.values())


def home_page(document: str) -> GeneratedPage:
    """The single page of a site that came without a page list."""
    return GeneratedPage(id="home", name="Home", path="/", preview=document, icon="home")

"""Progress estimation from the delta count.

Purely cosmetic: the phase and percentage tell the user something is
happening. They never influence the extracted document.

The table is ascending by threshold; ``estimate()`` picks the last entry
whose threshold does not exceed the count, so bursty chunk arrival can
skip phases but never move backwards.
"""

import bisect
from dataclasses import dataclass
from enum import StrEnum


class StatusType(StrEnum):
    """Session status. Declaration order is the forward order of a run."""

    ANALYZING = "analyzing"
    PLANNING = "planning"
    BUILDING = "building"
    STYLING = "styling"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    CONVERSATION = "conversation"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class Phase:
    threshold: int
    status: str
    status_type: StatusType
    progress: int


PHASES: tuple[Phase, ...] = (
    Phase(0, "Analyzing your request...", StatusType.ANALYZING, 5),
    Phase(2, "Understanding requirements...", StatusType.ANALYZING, 10),
    Phase(5, "Planning website structure...", StatusType.PLANNING, 15),
    Phase(10, "Designing component architecture...", StatusType.PLANNING, 20),
    Phase(20, "Generating HTML structure...", StatusType.BUILDING, 30),
    Phase(40, "Building navigation...", StatusType.BUILDING, 35),
    Phase(60, "Creating hero section...", StatusType.BUILDING, 45),
    Phase(100, "Adding content sections...", StatusType.BUILDING, 55),
    Phase(150, "Styling components...", StatusType.STYLING, 65),
    Phase(200, "Applying animations...", StatusType.STYLING, 75),
    Phase(300, "Polishing design details...", StatusType.FINALIZING, 85),
    Phase(400, "Optimizing for responsiveness...", StatusType.FINALIZING, 90),
    Phase(500, "Final touches...", StatusType.FINALIZING, 95),
)

_THRESHOLDS = [phase.threshold for phase in PHASES]


def estimate(chunk_count: int, phases: tuple[Phase, ...] = PHASES) -> Phase:
    """Return the phase for *chunk_count* deltas received so far."""
    thresholds = _THRESHOLDS if phases is PHASES else [p.threshold for p in phases]
    index = bisect.bisect_right(thresholds, max(chunk_count, 0)) - 1
    return phases[max(index, 0)]


def complete_phase(elapsed: float) -> Phase:
    """The terminal phase of a successful run, regardless of the count."""
    return Phase(0, f"Complete in {elapsed:.1f}s", StatusType.COMPLETE, 100)


# Substring hints, checked in order. Decorative only.
_STATUS_HINTS: tuple[tuple[tuple[str, ...], StatusType], ...] = (
    (("complete", "ready"), StatusType.COMPLETE),
    (("error", "failed", "cancelled"), StatusType.ERROR),
    (("polish", "optimiz", "final"), StatusType.FINALIZING),
    (("styl", "animation"), StatusType.STYLING),
    (("generat", "build", "creat", "adding"), StatusType.BUILDING),
    (("plan", "design"), StatusType.PLANNING),
)


def phase_from_status(message: str) -> StatusType:
    """Guess a status type from a human-readable status message.

    Best-effort and non-authoritative: for presentation layers that only
    have the message string. The controller never calls this.
    """
    lowered = message.lower()
    for needles, status_type in _STATUS_HINTS:
        if any(needle in lowered for needle in needles):
            return status_type
    return StatusType.ANALYZING

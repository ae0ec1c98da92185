"""Tests for pagesmith.progress — delta count to phase and percentage."""

from pagesmith.progress import PHASES, StatusType, complete_phase, estimate, phase_from_status


class TestEstimate:
    def test_start(self) -> None:
        phase = estimate(0)
        assert phase.status_type is StatusType.ANALYZING
        assert phase.progress == 5

    def test_exact_thresholds(self) -> None:
        assert estimate(5).status_type is StatusType.PLANNING
        assert estimate(20).status_type is StatusType.BUILDING
        assert estimate(150).status_type is StatusType.STYLING
        assert estimate(400).progress == 90

    def test_between_thresholds_uses_lower(self) -> None:
        phase = estimate(149)
        assert phase.threshold == 100
        assert phase.status == "Adding content sections..."

    def test_beyond_last_threshold(self) -> None:
        assert estimate(10_000) is PHASES[-1]

    def test_negative_count_clamps(self) -> None:
        assert estimate(-3) is PHASES[0]

    def test_monotonic_over_counts(self) -> None:
        progress = [estimate(n).progress for n in range(0, 700)]
        assert progress == sorted(progress)
        order = list(StatusType)
        positions = [order.index(estimate(n).status_type) for n in range(0, 700)]
        assert positions == sorted(positions)

    def test_table_ascending(self) -> None:
        thresholds = [p.threshold for p in PHASES]
        assert thresholds == sorted(thresholds)


class TestCompletePhase:
    def test_forces_complete(self) -> None:
        phase = complete_phase(3.21)
        assert phase.status_type is StatusType.COMPLETE
        assert phase.progress == 100
        assert phase.status == "Complete in 3.2s"


class TestPhaseFromStatus:
    def test_known_messages(self) -> None:
        assert phase_from_status("Styling components...") is StatusType.STYLING
        assert phase_from_status("Polishing design details...") is StatusType.FINALIZING
        assert phase_from_status("Planning website structure...") is StatusType.PLANNING
        assert phase_from_status("Creating hero section...") is StatusType.BUILDING
        assert phase_from_status("Complete in 2.0s") is StatusType.COMPLETE

    def test_unknown_message_defaults_to_analyzing(self) -> None:
        assert phase_from_status("Hmm") is StatusType.ANALYZING

"""Tests for pagesmith.stream.reader — SSE line reassembly across chunks."""

import pytest

from pagesmith.errors import StreamProtocolError
from pagesmith.stream.reader import FrameReader
from tests.helpers import frame, split_every, sse_text


def read_all(chunks: list[bytes]) -> tuple[list[str], FrameReader]:
    reader = FrameReader()
    deltas: list[str] = []
    for chunk in chunks:
        deltas.extend(reader.feed(chunk))
        if reader.done:
            break
    deltas.extend(reader.close())
    return deltas, reader


class TestFeed:
    def test_multiple_frames_in_one_chunk(self) -> None:
        reader = FrameReader()
        assert reader.feed(frame("a") + frame("b")) == ["a", "b"]

    def test_line_split_mid_json(self) -> None:
        line = frame("Hello")
        reader = FrameReader()
        assert reader.feed(line[:25]) == []
        assert reader.pending == line[:25]
        assert reader.feed(line[25:]) == ["Hello"]
        assert reader.pending == ""

    def test_crlf_terminators(self) -> None:
        reader = FrameReader()
        assert reader.feed(frame("x").replace("\n", "\r\n")) == ["x"]

    def test_comments_blank_and_other_fields_ignored(self) -> None:
        raw = ": keep-alive\n\nevent: message\nid: 7\n" + frame("kept") + "\n"
        assert FrameReader().feed(raw) == ["kept"]

    def test_empty_deltas_not_returned(self) -> None:
        raw = 'data: {"choices":[{"delta":{"role":"assistant"}}]}\n' + frame("x")
        assert FrameReader().feed(raw) == ["x"]

    def test_bytes_split_inside_utf8_sequence(self) -> None:
        raw = 'data: {"choices":[{"delta":{"content":"café"}}]}\n'.encode()
        cut = raw.index(b"\xc3") + 1
        reader = FrameReader()
        assert reader.feed(raw[:cut]) == []
        assert reader.feed(raw[cut:]) == ["café"]


class TestSentinel:
    def test_done_stops_reading(self) -> None:
        reader = FrameReader()
        deltas = reader.feed(frame("a") + "data: [DONE]\n" + frame("ignored"))
        assert deltas == ["a"]
        assert reader.done
        assert reader.feed(frame("late")) == []
        assert reader.close() == []


class TestPushback:
    def test_undecodable_line_is_retried_then_dropped(self) -> None:
        reader = FrameReader()
        assert reader.feed("data: {broken\n" + frame("ok")) == []
        assert reader.pending.startswith("data: {broken\n")

        # Still broken once more data arrives: dropped, the rest flows
        assert reader.feed(frame("more")) == ["ok", "more"]
        assert reader.dropped == 1

    def test_close_drops_a_stalled_line(self) -> None:
        reader = FrameReader()
        assert reader.feed("data: {broken\n") == []
        assert reader.close() == []
        assert reader.dropped == 1

    def test_close_flushes_unterminated_final_line(self) -> None:
        reader = FrameReader()
        assert reader.feed(frame("tail").rstrip("\n")) == []
        assert reader.close() == ["tail"]

    def test_unbounded_pending_buffer_raises(self) -> None:
        reader = FrameReader(max_pending_chars=64)
        with pytest.raises(StreamProtocolError):
            reader.feed("data: " + "x" * 100)


class TestChunkBoundaryIndependence:
    @pytest.mark.parametrize("size", [1, 2, 7, 33, 4096])
    def test_same_deltas_for_any_chunking(self, size: int) -> None:
        parts = ["<!DOCTYPE html>", "<html><body>", "Grüße ☕", "</body></html>"]
        deltas, reader = read_all(split_every(sse_text(*parts).encode(), size))
        assert deltas == parts
        assert reader.done
        assert reader.dropped == 0

"""SSE stream reading and frame decoding."""

from pagesmith.stream.decoder import decode_delta, is_sentinel
from pagesmith.stream.reader import FrameReader

__all__ = ["FrameReader", "decode_delta", "is_sentinel"]

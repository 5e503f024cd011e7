"""
Server-sent event frame decoder.

Splits an append-only text stream into blank-line delimited frames, carrying
any incomplete tail over to the next append.
"""

FRAME_DELIMITER = "\n\n"


def consume_frames(buffer: str) -> tuple[list[str], str]:
    """
    Split every complete frame off the front of a buffer.

    Args:
        buffer: Accumulated stream text

    Returns:
        Tuple of (frames, rest). Frames exclude the delimiter and are
        otherwise untouched, so joining each frame plus the delimiter and
        appending rest reproduces the buffer exactly.
    """
    frames = []
    start = 0

    while True:
        index = buffer.find(FRAME_DELIMITER, start)
        if index == -1:
            break
        frames.append(buffer[start:index])
        start = index + len(FRAME_DELIMITER)

    return frames, buffer[start:]


class EventStreamDecoder:
    """Stateful frame decoder with a carry buffer."""

    def __init__(self) -> None:
        self._buffer = ""

    @property
    def remainder(self) -> str:
        """Text received but not yet part of a complete frame."""
        return self._buffer

    def feed(self, text: str) -> list[str]:
        """Append text and return the frames it completed, in arrival order."""
        if not text:
            return []
        frames, self._buffer = consume_frames(self._buffer + text)
        return frames

    def flush(self) -> str:
        """Return and clear the carry buffer."""
        rest, self._buffer = self._buffer, ""
        return rest

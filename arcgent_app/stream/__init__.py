"""
Provider event stream decoding and parsing.
"""
from .decoder import EventStreamDecoder, consume_frames
from .events import StreamEvent, StreamEventType
from .parser import parse_completion_event

__all__ = [
    "EventStreamDecoder",
    "consume_frames",
    "StreamEvent",
    "StreamEventType",
    "parse_completion_event",
]

"""Tagged stream events produced by the completion event parser."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StreamEventType(Enum):
    """Kind of a parsed provider stream event."""
    CHUNK = "chunk"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class StreamEvent:
    """One parsed provider event: a text chunk, stream end, or an error."""
    type: StreamEventType
    text: str = ""
    message: str = ""
    status_code: Optional[int] = None

    @classmethod
    def chunk(cls, text: str) -> "StreamEvent":
        return cls(type=StreamEventType.CHUNK, text=text)

    @classmethod
    def done(cls) -> "StreamEvent":
        return cls(type=StreamEventType.DONE)

    @classmethod
    def error(cls, message: str, status_code: Optional[int] = None) -> "StreamEvent":
        return cls(type=StreamEventType.ERROR, message=message, status_code=status_code)

    @property
    def is_chunk(self) -> bool:
        return self.type is StreamEventType.CHUNK

    @property
    def is_done(self) -> bool:
        return self.type is StreamEventType.DONE

    @property
    def is_error(self) -> bool:
        return self.type is StreamEventType.ERROR

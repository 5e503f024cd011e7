"""
OpenAI-compatible completion event parser.

Turns one SSE frame into a StreamEvent. Provider payloads are heterogeneous
(streaming deltas vs full messages, string vs typed-part content, optional
error wrappers), so parsing is parse-or-ignore: unrecognized frames yield
None and never raise.
"""

import json
from typing import Any, Optional

from .events import StreamEvent

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def parse_text_content(value: Any) -> str:
    """Extract text from a plain string or a list of strings / typed text parts."""
    if isinstance(value, str):
        return value

    if isinstance(value, list):
        texts = []
        for entry in value:
            if isinstance(entry, str):
                texts.append(entry)
            elif isinstance(entry, dict) and isinstance(entry.get("text"), str):
                texts.append(entry["text"])
        return "".join(texts)

    return ""


def parse_error_message(value: Any) -> Optional[str]:
    """Extract an error description from a string or an object with a message."""
    if isinstance(value, str) and value.strip():
        return value

    if isinstance(value, dict):
        message = value.get("message")
        if isinstance(message, str) and message.strip():
            return message

    return None


def parse_error_status(value: Any) -> Optional[int]:
    """HTTP-like status carried in an error object (`code` or `status`), if any."""
    if not isinstance(value, dict):
        return None

    for key in ("status", "code"):
        status = value.get(key)
        if isinstance(status, int) and not isinstance(status, bool):
            return status
        if isinstance(status, str) and status.isdigit():
            return int(status)

    return None


def extract_data_payload(frame: str) -> Optional[str]:
    """Join the data lines of a frame, or None if it has none."""
    data_lines = []
    for line in frame.split("\n"):
        line = line.rstrip()
        if line.startswith(DATA_PREFIX):
            data_lines.append(line[len(DATA_PREFIX):].lstrip())

    if not data_lines:
        return None
    return "\n".join(data_lines)


def parse_completion_event(frame: str) -> Optional[StreamEvent]:
    """
    Parse one SSE frame into a stream event.

    Args:
        frame: One delimiter-bounded frame

    Returns:
        StreamEvent, or None when the frame carries nothing actionable
    """
    payload = extract_data_payload(frame)
    if payload is None:
        return None

    if payload == DONE_SENTINEL:
        return StreamEvent.done()

    try:
        parsed = json.loads(payload)
    except ValueError:
        return None

    if not isinstance(parsed, dict):
        return None

    error_message = parse_error_message(parsed.get("error"))
    if error_message:
        return StreamEvent.error(error_message, parse_error_status(parsed.get("error")))

    choices = parsed.get("choices")
    if not isinstance(choices, list):
        choices = []

    full_text = ""
    has_finished_choice = False

    for choice in choices:
        if not isinstance(choice, dict):
            continue

        delta = choice.get("delta") if isinstance(choice.get("delta"), dict) else {}
        message = choice.get("message") if isinstance(choice.get("message"), dict) else {}
        full_text += parse_text_content(delta.get("content")) or parse_text_content(message.get("content"))

        if choice.get("finish_reason"):
            has_finished_choice = True

    if full_text:
        return StreamEvent.chunk(full_text)

    if has_finished_choice:
        return StreamEvent.done()

    return None

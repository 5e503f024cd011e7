"""
Inbound payload parsing for the generation endpoint.

Converts decoded JSON into a GenerateRequest, rejecting anything that does
not have the expected shape.
"""

import json
from typing import Any, Optional

from ..errors import InvalidPayloadShapeError, MalformedPayloadError
from .models import (
    DEFAULT_PROMPT_MODE,
    DEFAULT_TARGET_AGENT,
    MESSAGE_ROLES,
    PROMPT_GENERATION_MODES,
    PROMPT_STABILITY_PROFILES,
    TARGET_AGENTS,
    GenerateRequest,
    Message,
)

MAX_CONTEXT_MESSAGES = 20


def parse_json_body(raw_body: bytes) -> Any:
    """Decode a JSON request body; an empty body decodes to an empty object."""
    if not raw_body:
        return {}
    try:
        return json.loads(raw_body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayloadError(raw_body=raw_body[:200].decode("utf-8", "replace")) from e


def _parse_message(value: Any) -> Optional[Message]:
    if not isinstance(value, dict):
        return None
    role = value.get("role")
    message_id = value.get("id")
    content = value.get("content")
    if role not in MESSAGE_ROLES or not isinstance(message_id, str) or not isinstance(content, str):
        return None
    return Message(id=message_id, role=role, content=content)


def parse_generate_request(value: Any) -> GenerateRequest:
    """
    Validate and convert a decoded payload.

    Args:
        value: Decoded JSON body

    Returns:
        GenerateRequest with defaults applied for omitted options

    Raises:
        InvalidPayloadShapeError: If the payload has the wrong shape or no messages
    """
    if not isinstance(value, dict):
        raise InvalidPayloadShapeError()

    raw_messages = value.get("messages")
    if not isinstance(raw_messages, list) or not raw_messages:
        raise InvalidPayloadShapeError(field="messages")

    messages = []
    for raw_message in raw_messages:
        message = _parse_message(raw_message)
        if message is None:
            raise InvalidPayloadShapeError(field="messages")
        messages.append(message)

    mode = value.get("mode")
    if mode is not None and mode not in PROMPT_GENERATION_MODES:
        raise InvalidPayloadShapeError(field="mode")

    target_agent = value.get("targetAgent")
    if target_agent is not None and target_agent not in TARGET_AGENTS:
        raise InvalidPayloadShapeError(field="targetAgent")

    stability_profile = value.get("stabilityProfile")
    if stability_profile is not None and stability_profile not in PROMPT_STABILITY_PROFILES:
        raise InvalidPayloadShapeError(field="stabilityProfile")

    return GenerateRequest(
        messages=tuple(messages),
        mode=mode or DEFAULT_PROMPT_MODE,
        target_agent=target_agent or DEFAULT_TARGET_AGENT,
        stability_profile=stability_profile,
    )


def trim_messages_for_context(messages: tuple[Message, ...],
                              limit: int = MAX_CONTEXT_MESSAGES) -> tuple[Message, ...]:
    """Keep only the most recent messages."""
    if len(messages) <= limit:
        return messages
    return messages[-limit:]


def last_user_message(messages: tuple[Message, ...]) -> str:
    """Content of the latest user message, stripped; empty if there is none."""
    for message in reversed(messages):
        if message.role == "user":
            return message.content.strip()
    return ""

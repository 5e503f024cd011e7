"""
Canonical data structures for conversations and completion requests.

All models are immutable; a CompletionRequest is built fresh for every
provider call and never mutated after dispatch.
"""

from dataclasses import dataclass
from typing import Optional

PROMPT_GENERATION_MODES = ("simple", "advanced", "expert")
PROMPT_STABILITY_PROFILES = ("standard", "strict")
TARGET_AGENTS = ("universal", "chatgpt", "gemini", "claude-code", "kiro", "kimi")
MESSAGE_ROLES = ("user", "assistant")

DEFAULT_PROMPT_MODE = "advanced"
DEFAULT_TARGET_AGENT = "universal"
DEFAULT_STABILITY_PROFILE = "standard"

TARGET_AGENT_LABELS = {
    "universal": "Universal",
    "chatgpt": "ChatGPT",
    "gemini": "Gemini",
    "claude-code": "Claude Code",
    "kiro": "Kiro",
    "kimi": "Kimi",
}


@dataclass(frozen=True)
class Message:
    """One conversation turn."""
    id: str
    role: str      # "user" | "assistant"
    content: str


@dataclass(frozen=True)
class GenerateRequest:
    """Parsed inbound generation payload."""
    messages: tuple[Message, ...]
    mode: str = DEFAULT_PROMPT_MODE
    target_agent: str = DEFAULT_TARGET_AGENT
    stability_profile: Optional[str] = None


@dataclass(frozen=True)
class ProviderMessage:
    """Outbound chat message for the completion provider."""
    role: str      # "system" | "user" | "assistant"
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class CompletionRequest:
    """A single provider completion call with its sampling and retry policy."""
    messages: tuple[ProviderMessage, ...]
    temperature: float
    timeout_seconds: float
    max_retries: int = 0
    retry_base_delay_seconds: float = 0.35

    def __post_init__(self) -> None:
        object.__setattr__(self, "temperature", clamp_temperature(self.temperature))
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got: {self.max_retries}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got: {self.timeout_seconds}")


def clamp_temperature(value: float) -> float:
    return min(max(float(value), 0.0), 1.0)


def to_provider_messages(messages: tuple[Message, ...], system_instruction: str) -> tuple[ProviderMessage, ...]:
    """Prefix the conversation with the system instruction."""
    mapped = [ProviderMessage(role="system", content=system_instruction)]
    for message in messages:
        role = "assistant" if message.role == "assistant" else "user"
        mapped.append(ProviderMessage(role=role, content=message.content))
    return tuple(mapped)

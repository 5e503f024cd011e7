"""Per-application collaborators shared by the route handlers."""

from dataclasses import dataclass, field
from typing import Callable, Optional

from flask import current_app

from ..config.defaults import AppConfig
from ..data.models import GenerateRequest
from ..data.payload import last_user_message
from ..engine import PromptArtifactEngine
from ..guard.rate_limit import RateLimiter
from ..prompts.capabilities import detect_capability_tags
from ..surprise import SurprisePromptEngine

EXTENSION_KEY = "arcgent"

# Maps a parsed request and its capability tags to an opaque supplementary instruction
SkillInstructionProvider = Callable[[GenerateRequest, frozenset], str]


@dataclass
class ServerState:
    """Everything a request handler needs, built once per app."""
    config: AppConfig
    engine: PromptArtifactEngine
    surprise_engine: SurprisePromptEngine
    rate_limiters: dict[str, RateLimiter] = field(default_factory=dict)
    skill_instruction_provider: Optional[SkillInstructionProvider] = None

    def skill_instruction_for(self, request: GenerateRequest) -> str:
        if self.skill_instruction_provider is None:
            return ""
        tags = detect_capability_tags(last_user_message(request.messages))
        return self.skill_instruction_provider(request, tags) or ""


def get_state() -> ServerState:
    return current_app.extensions[EXTENSION_KEY]

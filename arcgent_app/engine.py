"""
Prompt artifact generation engine.

Coordinates one generation: resolve the stability profile and temperature,
build the generator instruction, stream the completion, then enforce the
output contract through the repair orchestrator.
"""

import threading
from dataclasses import dataclass
from typing import Optional

import structlog

from .config.defaults import AppConfig
from .data.models import PROMPT_STABILITY_PROFILES, CompletionRequest, GenerateRequest, to_provider_messages
from .data.payload import last_user_message, trim_messages_for_context
from .prompts.instructions import (
    build_prompt_generator_instruction,
    resolve_stability_profile,
    resolve_temperature,
)
from .provider.client import StreamingCompletionClient
from .repair.orchestrator import RepairContext, RepairOrchestrator
from .validation.contract_schema import ValidationResult

logger = structlog.get_logger(__name__)

STREAM_CHUNK_SIZE = 700


@dataclass(frozen=True)
class ArtifactResult:
    """Final contract-enforced artifact."""
    output: str
    stability_profile: str
    repaired: bool
    fallback_applied: bool
    validation: ValidationResult


def split_into_stream_chunks(output: str, chunk_size: int = STREAM_CHUNK_SIZE) -> list[str]:
    """Split the artifact into fixed-size chunks; empty output yields one empty chunk."""
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got: {chunk_size}")
    if not output:
        return [""]
    return [output[index:index + chunk_size] for index in range(0, len(output), chunk_size)]


class PromptArtifactEngine:
    """
    Generates contract-conformant prompt artifacts.

    Pipeline:
    Request → Instruction → Streaming Completion → Normalize/Validate → Repair → Fallback
    """

    def __init__(self, config: AppConfig, client: Optional[StreamingCompletionClient] = None) -> None:
        self.logger = logger
        self.config = config
        self.client = client or StreamingCompletionClient(config.provider)
        self.orchestrator = RepairOrchestrator(
            self.client,
            repair_temperature_cap=config.generation.repair_temperature_cap,
        )

    def default_stability_profile(self) -> str:
        generation = self.config.generation
        if generation.default_stability_profile in PROMPT_STABILITY_PROFILES:
            return generation.default_stability_profile
        return "strict" if generation.force_strict else "standard"

    def build_system_instruction(self, request: GenerateRequest, stability_profile: str,
                                 skill_instruction: str = "") -> str:
        blocks = [
            build_prompt_generator_instruction(request.mode, request.target_agent, stability_profile),
            skill_instruction,
        ]
        return "\n\n".join(block for block in blocks if block)

    def build_completion_request(self, request: GenerateRequest, stability_profile: str,
                                 skill_instruction: str = "") -> CompletionRequest:
        """Messages and sampling for the primary generation call."""
        provider = self.config.provider
        context_messages = trim_messages_for_context(
            request.messages, self.config.generation.max_context_messages
        )
        return CompletionRequest(
            messages=to_provider_messages(
                context_messages,
                self.build_system_instruction(request, stability_profile, skill_instruction),
            ),
            temperature=resolve_temperature(
                request.mode, stability_profile, self.config.generation.temperature
            ),
            timeout_seconds=provider.timeout_seconds,
            max_retries=provider.max_retries,
            retry_base_delay_seconds=provider.retry_base_delay_seconds,
        )

    def generate(
        self,
        request: GenerateRequest,
        skill_instruction: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> ArtifactResult:
        """
        Generate one artifact for a parsed request.

        Args:
            request: Parsed generation request
            skill_instruction: Opaque supplementary instruction appended to the system prompt
            cancel_event: Optional signal that aborts provider calls when set

        Returns:
            ArtifactResult whose output always passes contract validation

        Raises:
            ProviderError: The primary completion failed
            CompletionCancelledError: cancel_event was set
            ConfigurationError: No provider URL is configured
        """
        stability_profile = resolve_stability_profile(
            request.stability_profile, self.default_stability_profile()
        )
        completion_request = self.build_completion_request(request, stability_profile, skill_instruction)

        self.logger.info(
            "Generating prompt artifact",
            mode=request.mode,
            target_agent=request.target_agent,
            stability_profile=stability_profile,
            temperature=completion_request.temperature,
            context_messages=len(completion_request.messages) - 1,
        )

        raw_output = self.client.complete(completion_request, cancel_event=cancel_event)

        enforcement = self.orchestrator.enforce(
            raw_output,
            RepairContext(
                target_agent=request.target_agent,
                stability_profile=stability_profile,
                user_request=last_user_message(request.messages),
                base_request=completion_request,
                auto_repair=self.config.generation.auto_repair,
            ),
            cancel_event=cancel_event,
        )

        self.logger.info(
            "Prompt artifact ready",
            target_agent=request.target_agent,
            output_chars=len(enforcement.output),
            repaired=enforcement.repaired,
            fallback_applied=enforcement.fallback_applied,
        )

        return ArtifactResult(
            output=enforcement.output,
            stability_profile=stability_profile,
            repaired=enforcement.repaired,
            fallback_applied=enforcement.fallback_applied,
            validation=enforcement.validation,
        )

"""
Contract enforcement with auto-repair and canonical fallback.

Runs normalize -> validate, then on failure a deterministic formatting call
through the completion client, and finally a synthesized artifact that is
built to always pass validation.
"""

import dataclasses
import re
import threading
from dataclasses import dataclass
from typing import Optional

import structlog

from ..data.models import CompletionRequest, ProviderMessage
from ..errors import CompletionCancelledError, RepairInvocationFailure, ValidationFailure
from ..logging.config import log_repair_outcome
from ..provider.client import StreamingCompletionClient
from ..validation.contract_schema import (
    CONTRACT_SCHEMA,
    ContractSchema,
    ContractValidator,
    ValidationResult,
    extract_core_prompt_text,
    format_validation_issues,
    normalize_line_endings,
    truncate,
)

logger = structlog.get_logger(__name__)

REPAIR_MODEL_SYSTEM_PROMPT = """You are a deterministic formatter.
Your only task is to rewrite the provided draft to satisfy the exact response schema.
Do not add new top-level sections beyond the required schema.
Keep wording concise, technical, and production-ready."""

MAX_REPAIR_DRAFT_CHARS = 12000
MAX_FALLBACK_DRAFT_CHARS = 6000
MAX_FALLBACK_REQUEST_CHARS = 500

_FENCE_RUN = re.compile(r"`{3,}")


@dataclass(frozen=True)
class RepairInstruction:
    """System and user messages for the formatting call."""
    system: str
    user: str

    def to_messages(self) -> tuple[ProviderMessage, ...]:
        return (
            ProviderMessage(role="system", content=self.system),
            ProviderMessage(role="user", content=self.user),
        )


@dataclass(frozen=True)
class RepairContext:
    """What the orchestrator needs to know about the original generation."""
    target_agent: str
    stability_profile: str
    user_request: str
    base_request: CompletionRequest
    auto_repair: bool = True


@dataclass(frozen=True)
class EnforcementResult:
    """Final artifact and how it was obtained."""
    output: str
    validation: ValidationResult
    repaired: bool = False
    fallback_applied: bool = False


def build_repair_instruction(
    target_agent: str,
    stability_profile: str,
    original_output: str,
    validation: ValidationResult,
    schema: ContractSchema = CONTRACT_SCHEMA,
) -> RepairInstruction:
    """Build the formatter messages for a draft that failed validation."""
    user = "\n".join([
        f"Stability profile: {stability_profile}.",
        "Rewrite the draft so it strictly matches the schema below.",
        "Keep the intent and quality, but make format deterministic and compact.",
        "",
        "Required schema (exact headings and order):",
        "\n".join(schema.required_headings(target_agent)),
        "",
        "Prompt contract labels that MUST exist inside the Final Prompt code block:",
        ", ".join(schema.contract_items),
        "",
        "Detected issues to fix:",
        format_validation_issues(validation) or "No issues listed.",
        "",
        "Draft to repair:",
        "```markdown",
        truncate(original_output, MAX_REPAIR_DRAFT_CHARS),
        "```",
    ])
    return RepairInstruction(system=REPAIR_MODEL_SYSTEM_PROMPT, user=user)


def _embed_draft(draft_core: str) -> str:
    # Neutralize fences and indent every line so nothing in the draft can
    # close the block or read as a heading.
    safe = _FENCE_RUN.sub(r"``\\`", draft_core)
    return "\n".join("  " + line if line.strip() else "" for line in safe.split("\n"))


def _single_line(value: str) -> str:
    return re.sub(r"\s+", " ", _FENCE_RUN.sub(r"``\\`", value)).strip()


def build_fallback_output(
    draft_output: str,
    user_request: str,
    target_agent: str,
    schema: ContractSchema = CONTRACT_SCHEMA,
) -> str:
    """
    Synthesize a canonical artifact from fixed templates.

    The result carries every required heading and contract label, so it
    passes validation regardless of the draft and request contents.
    """
    draft_core = truncate(
        extract_core_prompt_text(normalize_line_endings(draft_output)), MAX_FALLBACK_DRAFT_CHARS
    )
    concise_request = truncate(user_request.strip() or "General user request", MAX_FALLBACK_REQUEST_CHARS)

    return "\n".join([
        schema.core_heading,
        "```text",
        "Role: Senior Prompt Engineer for cross-model reliability.",
        "Objective: Transform user intent into a production-ready prompt artifact. "
        f"({_single_line(concise_request)})",
        "Context: Multi-provider usage (Gemini, Claude Code, Kiro, Kimi, and OpenAI-compatible models).",
        "Constraints: Keep output deterministic, portable, concise, and low-ambiguity; "
        "avoid provider-only syntax.",
        "Output Format: Return structured markdown sections exactly as required by schema.",
        "Quality Criteria: Clarity, completeness, transferability, measurable constraints, "
        "and low hallucination risk.",
        "Failure Handling: If context is missing, ask explicit follow-up questions before final assumptions.",
        "",
        "Draft Context (for refinement):",
        _embed_draft(draft_core) if draft_core.strip() else "  No draft content available.",
        "```",
        schema.adapter_heading(target_agent),
        "```text",
        "Apply only target-specific tuning while preserving the universal core contract.",
        "Do not remove required sections or labels.",
        "```",
        schema.rationale_heading,
        "- Enforces a deterministic schema across providers.",
        "- Preserves role/objective/constraints to reduce ambiguity.",
        "- Adds explicit failure handling for missing context.",
        schema.checklist_heading,
        *[f"- {item}: Yes" for item in schema.contract_items],
    ])


class RepairOrchestrator:
    """
    Enforces the output contract on a raw model response.

    Order: normalize -> validate -> [repair -> normalize -> validate]
    -> [fallback -> normalize -> validate].
    """

    def __init__(
        self,
        client: StreamingCompletionClient,
        validator: Optional[ContractValidator] = None,
        repair_temperature_cap: float = 0.15,
    ) -> None:
        self.logger = logger
        self.client = client
        self.validator = validator or ContractValidator()
        self.repair_temperature_cap = repair_temperature_cap

    def enforce(
        self,
        raw_output: str,
        context: RepairContext,
        cancel_event: Optional[threading.Event] = None,
    ) -> EnforcementResult:
        """
        Return a schema-valid artifact for raw_output.

        Raises:
            CompletionCancelledError: cancel_event was set during the repair call
        """
        target_agent = context.target_agent

        output = self.validator.normalize(raw_output, target_agent)
        validation = self.validator.validate(output, target_agent)
        log_repair_outcome(
            self.logger, "initial", validation.is_valid, target_agent,
            reason=format_validation_issues(validation) or None,
        )

        repaired = False
        if not validation.is_valid and context.auto_repair:
            repaired_output = self._attempt_repair(output, validation, context, cancel_event)
            if repaired_output is not None:
                output = self.validator.normalize(repaired_output, target_agent)
                validation = self.validator.validate(output, target_agent)
                repaired = True
                log_repair_outcome(
                    self.logger, "repair", validation.is_valid, target_agent,
                    reason=format_validation_issues(validation) or None,
                )

        fallback_applied = False
        if not validation.is_valid:
            output = self.validator.normalize(
                build_fallback_output(output, context.user_request, target_agent, self.validator.schema),
                target_agent,
            )
            validation = self.validator.validate(output, target_agent)
            fallback_applied = True
            log_repair_outcome(self.logger, "fallback", validation.is_valid, target_agent)

            if not validation.is_valid:
                raise ValidationFailure(
                    "Canonical fallback failed contract validation.",
                    validation=validation,
                )

        return EnforcementResult(
            output=output,
            validation=validation,
            repaired=repaired,
            fallback_applied=fallback_applied,
        )

    def build_repair_request(
        self,
        output: str,
        validation: ValidationResult,
        context: RepairContext,
    ) -> CompletionRequest:
        """Formatting request with the temperature lowered to the repair cap."""
        instruction = build_repair_instruction(
            context.target_agent,
            context.stability_profile,
            output,
            validation,
            self.validator.schema,
        )
        return dataclasses.replace(
            context.base_request,
            messages=instruction.to_messages(),
            temperature=min(context.base_request.temperature, self.repair_temperature_cap),
        )

    def _attempt_repair(
        self,
        output: str,
        validation: ValidationResult,
        context: RepairContext,
        cancel_event: Optional[threading.Event],
    ) -> Optional[str]:
        """Run the formatting call; any failure other than cancellation yields None."""
        request = self.build_repair_request(output, validation, context)

        try:
            return self.client.complete(request, cancel_event=cancel_event)
        except CompletionCancelledError:
            raise
        except Exception as e:
            failure = RepairInvocationFailure("Auto-repair request failed", cause=e)
            self.logger.warning(
                "Auto-repair request failed, using canonical fallback",
                target_agent=context.target_agent,
                error=str(e),
                error_type=type(e).__name__,
                fallback_strategy=failure.fallback_strategy,
            )
            return None

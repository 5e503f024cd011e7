"""
Surprise draft prompt generation.

Produces one short, ready-to-send user draft prompt from the model, with a
deterministic template fallback when the provider is unavailable.
"""

import random
import re
import threading
from typing import Optional

import structlog

from .config.defaults import AppConfig
from .data.models import CompletionRequest, ProviderMessage
from .errors import ProviderFatalError
from .provider.client import StreamingCompletionClient

logger = structlog.get_logger(__name__)

MAX_SURPRISE_PROMPT_CHARS = 420
MIN_SURPRISE_PROMPT_CHARS = 12

SURPRISE_SYSTEM_PROMPT = """You create one fresh, high-quality user draft prompt.
Return only plain text without markdown, list markers, numbering, or code fences.
The draft should be practical, specific, and ready to send to a prompt generator app."""

FALLBACK_TOPICS = (
    "a donation platform landing page",
    "a team productivity SaaS homepage",
    "a nonprofit campaign page",
    "a fintech onboarding website",
    "an education app landing page",
    "a health app product page",
)

FALLBACK_GOALS = (
    "increasing primary CTA conversion",
    "making the value proposition clear within 5 seconds",
    "building trust through social proof",
    "reducing mobile bounce rate",
    "growing new user sign-ups",
    "strengthening the brief quality for the design team",
)

FALLBACK_CONSTRAINTS = (
    "mobile-first layout, minimum WCAG accessibility, and concise copy",
    "semantic heading structure, consistent CTAs, and no false claims",
    "deterministic output that is copy-paste ready and clear across models",
    "performance limits, high readability, and mandatory trust elements",
    "a structured format with quality criteria and failure handling",
    "a UX checklist, basic SEO, and a fallback when data is missing",
)

_LEADING_FENCE = re.compile(r"^```[\w-]*\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\n?```$", re.IGNORECASE)
_EDGE_QUOTES = re.compile(r"^[\s\"'`]+|[\s\"'`]+$")
_LIST_MARKER = re.compile(r"^(?:[-*]|\d+[.)])\s+")


def sanitize_surprise_output(raw_output: str) -> str:
    """Reduce model output to a single plain-text line of bounded length."""
    value = re.sub(r"\r\n?", "\n", raw_output or "")
    value = _LEADING_FENCE.sub("", value)
    value = _TRAILING_FENCE.sub("", value)
    value = _EDGE_QUOTES.sub("", value).strip()
    if not value:
        return ""

    value = " ".join(line.strip() for line in value.split("\n") if line.strip())
    value = _LIST_MARKER.sub("", value)
    value = re.sub(r"\s{2,}", " ", value).strip()

    if len(value) > MAX_SURPRISE_PROMPT_CHARS:
        value = value[:MAX_SURPRISE_PROMPT_CHARS - 1].rstrip() + "…"
    return value


def build_fallback_surprise_prompt(context: Optional[str] = None,
                                   rng: Optional[random.Random] = None) -> str:
    """Template draft built from the topic, goal and constraint tables."""
    rng = rng or random.Random()
    topic = rng.choice(FALLBACK_TOPICS)
    goal = rng.choice(FALLBACK_GOALS)
    constraint = rng.choice(FALLBACK_CONSTRAINTS)
    suffix = f" Use this context as a reference: {context.strip()}." if context and context.strip() else ""

    return sanitize_surprise_output(
        f"Write a detailed prompt for {topic} aimed at {goal}; it must include {constraint}.{suffix}"
    )


def build_surprise_user_prompt(context: Optional[str] = None) -> str:
    lines = [
        "Create one unique user draft prompt for a prompt engineering request.",
        "The draft must be concrete, immediately usable, and free of placeholders like [fill in].",
        "Keep it to 1-2 sentences.",
        "It must state the output goal and at least one quality constraint.",
    ]
    if context and context.strip():
        lines.append(f"Theme direction: {context.strip()}")
    return "\n".join(lines)


class SurprisePromptEngine:
    """Generates one draft user prompt per call."""

    def __init__(self, config: AppConfig, client: Optional[StreamingCompletionClient] = None) -> None:
        self.logger = logger
        self.config = config
        self.client = client or StreamingCompletionClient(config.provider)

    def build_completion_request(self, context: Optional[str] = None) -> CompletionRequest:
        surprise = self.config.surprise
        return CompletionRequest(
            messages=(
                ProviderMessage(role="system", content=SURPRISE_SYSTEM_PROMPT),
                ProviderMessage(role="user", content=build_surprise_user_prompt(context)),
            ),
            temperature=surprise.temperature,
            timeout_seconds=surprise.timeout_seconds,
            max_retries=surprise.max_retries,
            retry_base_delay_seconds=self.config.provider.retry_base_delay_seconds,
        )

    def generate(self, context: Optional[str] = None,
                 cancel_event: Optional[threading.Event] = None) -> str:
        """
        Ask the model for a fresh draft prompt.

        Raises:
            ProviderError: The completion failed or returned an unusable draft
            ConfigurationError: No provider URL is configured
        """
        completion = self.client.complete(self.build_completion_request(context), cancel_event=cancel_event)
        prompt = sanitize_surprise_output(completion)
        if len(prompt) < MIN_SURPRISE_PROMPT_CHARS:
            raise ProviderFatalError("Model returned an invalid surprise prompt.")

        self.logger.debug("Surprise prompt generated", prompt_chars=len(prompt))
        return prompt

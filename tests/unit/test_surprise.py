"""Unit tests for surprise draft prompt generation."""

import random
from unittest.mock import Mock

import pytest

from arcgent_app.errors import ProviderFatalError, ProviderTransientError
from arcgent_app.surprise import (
    FALLBACK_CONSTRAINTS,
    FALLBACK_GOALS,
    FALLBACK_TOPICS,
    MAX_SURPRISE_PROMPT_CHARS,
    SURPRISE_SYSTEM_PROMPT,
    SurprisePromptEngine,
    build_fallback_surprise_prompt,
    build_surprise_user_prompt,
    sanitize_surprise_output,
)


class TestSanitizeSurpriseOutput:
    """Test suite for surprise output cleanup."""

    def test_plain_text_passes_through(self) -> None:
        assert sanitize_surprise_output("Draft a launch email for a budgeting app.") == \
            "Draft a launch email for a budgeting app."

    def test_strips_code_fence(self) -> None:
        raw = "```text\nDraft a launch email for a budgeting app.\n```"
        assert sanitize_surprise_output(raw) == "Draft a launch email for a budgeting app."

    def test_strips_edge_quotes(self) -> None:
        assert sanitize_surprise_output('"Draft a launch email."') == "Draft a launch email."

    def test_joins_lines_and_drops_list_marker(self) -> None:
        raw = "1. Draft a launch email\n   for a budgeting app.\r\n\r\nKeep it short."
        assert sanitize_surprise_output(raw) == "Draft a launch email for a budgeting app. Keep it short."

    def test_collapses_whitespace(self) -> None:
        assert sanitize_surprise_output("Draft   a\t\tlaunch  email") == "Draft a launch email"

    def test_caps_length_with_ellipsis(self) -> None:
        result = sanitize_surprise_output("word " * 200)
        assert len(result) <= MAX_SURPRISE_PROMPT_CHARS
        assert result.endswith("…")

    def test_empty_output(self) -> None:
        assert sanitize_surprise_output("") == ""
        assert sanitize_surprise_output("```\n```") == ""


class TestFallbackSurprisePrompt:
    """Test suite for the template fallback."""

    def test_uses_template_tables(self) -> None:
        prompt = build_fallback_surprise_prompt(rng=random.Random(7))

        assert prompt.startswith("Write a detailed prompt for ")
        assert any(topic in prompt for topic in FALLBACK_TOPICS)
        assert any(goal in prompt for goal in FALLBACK_GOALS)
        assert any(constraint in prompt for constraint in FALLBACK_CONSTRAINTS)

    def test_seeded_rng_is_deterministic(self) -> None:
        first = build_fallback_surprise_prompt(rng=random.Random(3))
        second = build_fallback_surprise_prompt(rng=random.Random(3))
        assert first == second

    def test_context_suffix(self) -> None:
        prompt = build_fallback_surprise_prompt("  coffee subscription  ", rng=random.Random(1))
        assert prompt.endswith(" Use this context as a reference: coffee subscription.")

    def test_blank_context_is_ignored(self) -> None:
        prompt = build_fallback_surprise_prompt("   ", rng=random.Random(1))
        assert "context" not in prompt


class TestSurpriseUserPrompt:
    """Test suite for the surprise user instruction."""

    def test_without_context(self) -> None:
        assert "Theme direction" not in build_surprise_user_prompt()

    def test_with_context(self) -> None:
        assert build_surprise_user_prompt(" travel ").endswith("Theme direction: travel")


class TestSurprisePromptEngine:
    """Test suite for the surprise engine."""

    def test_generate_sanitizes_completion(self, app_config) -> None:
        client = Mock()
        client.complete.return_value = '"Draft a product launch prompt for a smart bike."'

        result = SurprisePromptEngine(app_config, client=client).generate("cycling")

        assert result == "Draft a product launch prompt for a smart bike."

    def test_completion_request_uses_surprise_settings(self, app_config) -> None:
        request = SurprisePromptEngine(app_config, client=Mock()).build_completion_request("cycling")

        assert request.messages[0].role == "system"
        assert request.messages[0].content == SURPRISE_SYSTEM_PROMPT
        assert request.messages[1].content.endswith("Theme direction: cycling")
        assert request.temperature == 0.95
        assert request.timeout_seconds == 12.0
        assert request.max_retries == 0

    def test_short_output_is_rejected(self, app_config) -> None:
        client = Mock()
        client.complete.return_value = "```\nok\n```"

        with pytest.raises(ProviderFatalError, match="invalid surprise prompt"):
            SurprisePromptEngine(app_config, client=client).generate()

    def test_provider_errors_propagate(self, app_config) -> None:
        client = Mock()
        client.complete.side_effect = ProviderTransientError("timed out")

        with pytest.raises(ProviderTransientError):
            SurprisePromptEngine(app_config, client=client).generate()

"""
Error handling tests for the prompt artifact pipeline.

Tests cover the error hierarchy, user-visible messages, and how payload,
provider and contract failures are surfaced or recovered from.
"""

import dataclasses
from unittest.mock import Mock, patch

import pytest

from arcgent_app.data.models import CompletionRequest, ProviderMessage
from arcgent_app.data.payload import parse_generate_request, parse_json_body
from arcgent_app.errors import (
    BodyTooLargeError,
    CompletionCancelledError,
    ConfigurationError,
    GracefulDegradationError,
    InvalidPayloadShapeError,
    MalformedPayloadError,
    PayloadError,
    ProviderError,
    ProviderFatalError,
    ProviderTransientError,
    RepairInvocationFailure,
    ValidationFailure,
    to_error_message,
)
from arcgent_app.provider.client import StreamingCompletionClient, classify_provider_error
from arcgent_app.repair import RepairContext, RepairOrchestrator


class TestErrorClassification:
    """Test error classification system."""

    def test_payload_error_hierarchy(self):
        """Test that payload errors map to client status codes."""
        malformed = MalformedPayloadError(raw_body="{oops")
        assert isinstance(malformed, PayloadError)
        assert malformed.status_code == 400
        assert malformed.recoverable is False
        assert str(malformed) == "Invalid JSON body."

        shape = InvalidPayloadShapeError(field="messages")
        assert shape.status_code == 400
        assert shape.field == "messages"
        assert str(shape) == "Invalid payload. Expected { messages: [] }."

        too_large = BodyTooLargeError(1000, received_bytes=1500)
        assert too_large.status_code == 413
        assert too_large.received_bytes == 1500
        assert str(too_large) == "Request body exceeds 1000 bytes limit."

    def test_provider_error_hierarchy(self):
        """Test transient and fatal provider errors."""
        transient = ProviderTransientError("timed out", status_code=503, attempt=2)
        assert isinstance(transient, ProviderError)
        assert transient.transient is True
        assert transient.recoverable is True
        assert transient.attempt == 2

        fatal = ProviderFatalError("Incorrect API key", status_code=401)
        assert fatal.transient is False
        assert fatal.recoverable is False
        assert fatal.status_code == 401

    def test_cancellation_is_not_a_provider_error(self):
        assert not isinstance(CompletionCancelledError(), ProviderError)

    def test_recovery_errors(self):
        """Test graceful degradation defaults for contract recovery."""
        validation_failure = ValidationFailure("contract failed")
        assert isinstance(validation_failure, GracefulDegradationError)
        assert validation_failure.allows_degradation is True
        assert validation_failure.fallback_strategy == "auto_repair"

        cause = ProviderFatalError("bad request")
        repair_failure = RepairInvocationFailure("repair failed", cause=cause)
        assert repair_failure.degraded_functionality == "auto_repair"
        assert repair_failure.fallback_strategy == "canonical_fallback"
        assert repair_failure.cause is cause

    def test_to_error_message(self):
        assert to_error_message(ProviderFatalError("Incorrect API key")) == "Incorrect API key"
        assert to_error_message(RuntimeError("   ")) == "Request failed while generating content."

    @pytest.mark.parametrize("message,status_code,transient", [
        ("Service Unavailable", 503, True),
        ("Too many requests", 429, True),
        ("socket hang up", None, True),
        ("Incorrect API key", 401, False),
        ("context length exceeded", None, False),
    ])
    def test_classify_provider_error(self, message, status_code, transient):
        assert classify_provider_error(message, status_code).transient is transient


class TestPayloadErrorHandling:
    """Test error handling for inbound payloads."""

    def test_malformed_json(self):
        with pytest.raises(MalformedPayloadError) as exc_info:
            parse_json_body(b"{not json")
        assert exc_info.value.raw_body == "{not json"

    def test_invalid_utf8(self):
        with pytest.raises(MalformedPayloadError):
            parse_json_body(b"\xff\xfe{}")

    def test_wrong_shape(self):
        with pytest.raises(InvalidPayloadShapeError):
            parse_generate_request(["messages"])

    def test_unknown_option_value(self):
        payload = {"messages": [{"id": "1", "role": "user", "content": "x"}], "mode": "turbo"}
        with pytest.raises(InvalidPayloadShapeError) as exc_info:
            parse_generate_request(payload)
        assert exc_info.value.field == "mode"


class TestProviderErrorHandling:
    """Test error handling around provider calls."""

    def test_missing_provider_url(self, provider_config):
        """Test that an unconfigured provider fails before any network call."""
        opener = Mock()
        client = StreamingCompletionClient(dataclasses.replace(provider_config, url=None), opener=opener)
        request = CompletionRequest(
            messages=(ProviderMessage(role="user", content="x"),),
            temperature=0.2,
            timeout_seconds=1.0,
        )

        with pytest.raises(ConfigurationError):
            client.complete(request)
        opener.assert_not_called()


class TestContractErrorHandling:
    """Test graceful degradation when the contract cannot be met."""

    def _context(self, request):
        return RepairContext(
            target_agent="universal",
            stability_profile="standard",
            user_request="Write a prompt for an onboarding email",
            base_request=CompletionRequest(
                messages=(ProviderMessage(role="user", content=request),),
                temperature=0.3,
                timeout_seconds=5.0,
            ),
        )

    def test_repair_failure_degrades_to_fallback(self):
        """Test that a failed repair call never reaches the caller."""
        client = Mock()
        client.complete.side_effect = RuntimeError("connection dropped")

        result = RepairOrchestrator(client).enforce("just some text", self._context("x"))

        assert result.fallback_applied is True
        assert result.validation.is_valid is True

    def test_cancellation_during_repair_propagates(self):
        client = Mock()
        client.complete.side_effect = CompletionCancelledError()

        with pytest.raises(CompletionCancelledError):
            RepairOrchestrator(client).enforce("just some text", self._context("x"))

    def test_broken_fallback_raises_validation_failure(self):
        """Test the invariant guard when even the fallback fails validation."""
        context = dataclasses.replace(self._context("x"), auto_repair=False)

        with patch("arcgent_app.repair.orchestrator.build_fallback_output", return_value="no sections here"):
            with pytest.raises(ValidationFailure) as exc_info:
                RepairOrchestrator(Mock()).enforce("broken", context)

        assert exc_info.value.validation.is_valid is False

"""Integration tests for the full generation pipeline."""

import io
import json
from urllib.error import HTTPError

import pytest

from arcgent_app.engine import PromptArtifactEngine
from arcgent_app.provider.client import StreamingCompletionClient
from arcgent_app.server import create_app
from arcgent_app.surprise import SurprisePromptEngine
from conftest import PROVIDER_URL, FakeOpener, FakeStreamResponse, sse_bytes

GENERATE_PAYLOAD = {
    "messages": [{"id": "m1", "role": "user", "content": "Write a prompt for a rate limiter design review"}],
}


def _split(data: bytes, size: int) -> list[bytes]:
    return [data[index:index + size] for index in range(0, len(data), size)]


def _http_error(status: int, body: bytes) -> HTTPError:
    return HTTPError(PROVIDER_URL, status, "error", {}, io.BytesIO(body))


def _frames(response) -> list[dict]:
    return [json.loads(line) for line in response.get_data(as_text=True).splitlines() if line]


@pytest.fixture
def sleeps() -> list:
    return []


@pytest.fixture
def build_client(app_config, sleeps):
    """Factory for a real streaming client backed by queued fake responses."""
    def factory(*outcomes):
        opener = FakeOpener(outcomes)
        client = StreamingCompletionClient(app_config.provider, opener=opener, sleep=sleeps.append)
        return client, opener
    return factory


@pytest.fixture
def build_app(app_config, build_client):
    def factory(*outcomes):
        client, opener = build_client(*outcomes)
        app = create_app(
            config=app_config,
            engine=PromptArtifactEngine(app_config, client=client),
            surprise_engine=SurprisePromptEngine(app_config, client=client),
        )
        return app.test_client(), opener
    return factory


@pytest.mark.integration
class TestGenerationPipeline:
    """Integration tests from provider bytes to the final artifact."""

    def test_fragmented_stream_yields_valid_artifact(self, app_config, build_client,
                                                     generate_request, valid_artifact) -> None:
        """Test a valid artifact delivered in small, CRLF-delimited byte fragments."""
        halves = (valid_artifact[:200], valid_artifact[200:])
        body = sse_bytes(*halves, newline="\r\n")
        client, opener = build_client(FakeStreamResponse(_split(body, 7)))

        result = PromptArtifactEngine(app_config, client=client).generate(generate_request)

        assert result.output == valid_artifact
        assert not result.repaired
        assert not result.fallback_applied
        assert len(opener.requests) == 1

    def test_multibyte_text_split_across_reads(self, app_config, build_client, generate_request) -> None:
        draft = "Rôle: café ☕ draft"
        client, _ = build_client(
            FakeStreamResponse(_split(sse_bytes(draft), 3)),
            _http_error(400, b'{"error": "context length exceeded"}'),
        )

        result = PromptArtifactEngine(app_config, client=client).generate(generate_request)

        assert result.fallback_applied
        assert "  Rôle: café ☕ draft" in result.output

    def test_transient_failure_is_retried(self, app_config, build_client, sleeps,
                                          generate_request, valid_artifact) -> None:
        client, opener = build_client(
            _http_error(503, b'{"error": {"message": "Service Unavailable"}}'),
            FakeStreamResponse([sse_bytes(valid_artifact)]),
        )

        result = PromptArtifactEngine(app_config, client=client).generate(generate_request)

        assert result.output == valid_artifact
        assert len(opener.requests) == 2
        assert sleeps == [0.35]

    def test_malformed_draft_is_repaired(self, app_config, build_client,
                                         generate_request, valid_artifact) -> None:
        """Test the second provider call carries the repair instruction at the capped temperature."""
        client, opener = build_client(
            FakeStreamResponse([sse_bytes("Role: reviewer\nObjective: review")]),
            FakeStreamResponse([sse_bytes(valid_artifact)]),
        )

        result = PromptArtifactEngine(app_config, client=client).generate(generate_request)

        assert result.repaired
        assert not result.fallback_applied
        repair_payload = opener.sent_payloads()[1]
        assert repair_payload["temperature"] == 0.15
        assert repair_payload["messages"][0]["role"] == "system"
        assert "Detected issues to fix:" in repair_payload["messages"][1]["content"]


@pytest.mark.integration
class TestHttpPipeline:
    """Integration tests through the Flask application."""

    def test_generate_streams_artifact(self, build_app, valid_artifact) -> None:
        http, _ = build_app(FakeStreamResponse([sse_bytes(valid_artifact)]))

        response = http.post("/api/generate", json=GENERATE_PAYLOAD)

        frames = _frames(response)
        assert frames[-1] == {"type": "done"}
        assert "".join(frame["text"] for frame in frames if frame["type"] == "chunk") == valid_artifact
        assert not any(frame["type"] == "meta" for frame in frames)

    def test_generate_reports_fallback(self, build_app) -> None:
        http, _ = build_app(
            FakeStreamResponse([sse_bytes("just a sentence")]),
            _http_error(400, b'{"error": "context length exceeded"}'),
        )

        frames = _frames(http.post("/api/generate", json=GENERATE_PAYLOAD))

        assert frames[-2] == {
            "type": "meta",
            "event": "auto_repair_applied",
            "stabilityProfile": "standard",
            "fallbackApplied": True,
        }
        assert frames[-1] == {"type": "done"}

    def test_generate_fatal_provider_error(self, build_app) -> None:
        http, opener = build_app(_http_error(401, b'{"error": {"message": "Incorrect API key"}}'))

        response = http.post("/api/generate", json=GENERATE_PAYLOAD)

        assert response.status_code == 200
        assert _frames(response) == [{"type": "error", "message": "Incorrect API key"}]
        assert len(opener.requests) == 1

    def test_surprise_falls_back_on_provider_error(self, build_app) -> None:
        http, _ = build_app(_http_error(500, b"oops"))

        response = http.post("/api/surprise", json={"context": "coffee"})

        body = response.get_json()
        assert response.status_code == 200
        assert body["source"] == "fallback"
        assert body["prompt"].endswith("Use this context as a reference: coffee.")

    def test_surprise_uses_model_output(self, build_app) -> None:
        http, _ = build_app(FakeStreamResponse([sse_bytes('"Draft a product brief for a smart bike."')]))

        body = http.post("/api/surprise", json={}).get_json()

        assert body == {"prompt": "Draft a product brief for a smart bike.", "source": "ai"}

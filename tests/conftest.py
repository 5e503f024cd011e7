"""Pytest configuration and shared fixtures."""

import dataclasses
import json
from typing import Any, Callable, Iterable, Optional

import pytest

from arcgent_app.config.defaults import AppConfig, ProviderConfig, get_default_config
from arcgent_app.data.models import GenerateRequest, Message

PROVIDER_URL = "http://provider.test/v1/chat/completions"

VALID_ARTIFACT = """## Final Prompt (Universal Core)
```text
Role: Senior backend engineer reviewing API designs.
Objective: Design a per-tenant rate limiter for a public API.
Context: Multi-tenant gateway with bursty traffic.
Constraints: No external storage; decisions under 1 ms.
Output Format: Markdown with a design summary and pseudocode.
Quality Criteria: Correct under concurrency and easy to audit.
Failure Handling: Ask for the expected request volume if it is missing.
```

## Adapter Block (Target: Universal)
```text
Keep wording provider-neutral.
```

## Why This Prompt Is Powerful
- Every contract field is explicit.

## Prompt Contract Checklist
- Role: Yes
- Objective: Yes
- Context: Yes
- Constraints: Yes
- Output Format: Yes
- Quality Criteria: Yes
- Failure Handling: Yes"""


class FakeStreamResponse:
    """Stand-in for an http.client response streaming a fixed byte sequence."""

    def __init__(self, chunks: Iterable[Any] = (), status: int = 200, body: bytes = b""):
        self.status = status
        self._chunks = list(chunks)
        self._body = body
        self.closed = False
        self.reads = 0

    def read1(self, size: int = -1) -> bytes:
        self.reads += 1
        if not self._chunks:
            return b""
        item = self._chunks.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def read(self, size: int = -1) -> bytes:
        return self._body

    def close(self) -> None:
        self.closed = True


class FakeOpener:
    """Callable replacing urlopen; returns or raises the queued outcomes in order."""

    def __init__(self, outcomes: Iterable[Any]):
        self.outcomes = list(outcomes)
        self.requests: list = []

    def __call__(self, request: Any, timeout: Optional[float] = None) -> Any:
        self.requests.append((request, timeout))
        if not self.outcomes:
            raise AssertionError("Unexpected provider request")
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def sent_payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.data.decode("utf-8")) for request, _ in self.requests]


def sse_bytes(*texts: str, done: bool = True, newline: str = "\n") -> bytes:
    """Encode text deltas as an OpenAI-style SSE body."""
    frames = [
        "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}, ensure_ascii=False)
        for text in texts
    ]
    if done:
        frames.append("data: [DONE]")
    separator = newline * 2
    return (separator.join(frames) + separator).encode("utf-8")


@pytest.fixture
def valid_artifact() -> str:
    """Artifact that satisfies the contract for the universal target."""
    return VALID_ARTIFACT


@pytest.fixture
def provider_config() -> ProviderConfig:
    """Provider settings pointing at a fake endpoint."""
    return ProviderConfig(
        url=PROVIDER_URL,
        model="test-model",
        api_key="sk-test",
        timeout_seconds=5.0,
        max_retries=1,
        retry_base_delay_seconds=0.35,
        retry_max_delay_seconds=2.0,
    )


@pytest.fixture
def app_config(provider_config: ProviderConfig) -> AppConfig:
    """Default application config with the fake provider endpoint."""
    return dataclasses.replace(get_default_config(), provider=provider_config)


@pytest.fixture
def generate_request() -> GenerateRequest:
    """Single-turn generation request with default options."""
    return GenerateRequest(
        messages=(Message(id="m1", role="user", content="Write a prompt for a rate limiter design review"),),
    )


@pytest.fixture
def fake_response() -> Callable[..., FakeStreamResponse]:
    """Factory for fake streaming responses."""
    return FakeStreamResponse


@pytest.fixture
def fake_opener() -> Callable[..., FakeOpener]:
    """Factory for fake urlopen replacements."""
    return FakeOpener


@pytest.fixture
def sse_body() -> Callable[..., bytes]:
    """Factory for SSE response bodies."""
    return sse_bytes

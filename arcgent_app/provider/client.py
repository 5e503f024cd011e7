"""
Streaming completion client for OpenAI-compatible providers.

Drives one provider call end to end: connect, decode and parse the SSE
stream, enforce the per-call deadline, classify failures as transient or
fatal, and retry transient failures with linear backoff.
"""

import codecs
import json
import re
import socket
import threading
import time
from typing import Any, Callable, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .. import __version__
from ..config.defaults import ProviderConfig
from ..data.models import CompletionRequest
from ..errors import (
    CompletionCancelledError,
    ConfigurationError,
    ProviderError,
    ProviderFatalError,
    ProviderTransientError,
)
from ..logging.config import get_provider_logger, log_retry_decision
from ..stream.decoder import EventStreamDecoder
from ..stream.events import StreamEvent
from ..stream.parser import parse_completion_event

logger = get_provider_logger(__name__)

TRANSIENT_STATUS_CODES = frozenset({408, 425, 429})
TRANSIENT_MESSAGE_PATTERN = re.compile(
    r"\b(fetch failed|network|timed out|timeout|temporarily unavailable"
    r"|connection reset|econnreset|socket hang up)\b",
    re.IGNORECASE,
)
READ_SIZE = 4096
CANCEL_POLL_SECONDS = 0.05


def is_transient_status(status_code: Optional[int]) -> bool:
    if not status_code:
        return False
    return status_code in TRANSIENT_STATUS_CODES or status_code >= 500


def is_transient_message(message: str) -> bool:
    return bool(TRANSIENT_MESSAGE_PATTERN.search(message or ""))


def classify_provider_error(message: str, status_code: Optional[int] = None) -> ProviderError:
    """Build a transient or fatal provider error from a message and optional status."""
    if is_transient_status(status_code) or is_transient_message(message):
        return ProviderTransientError(message, status_code=status_code)
    return ProviderFatalError(message, status_code=status_code)


def read_error_response(body: bytes, status_code: int) -> str:
    """Best-effort error message from a non-2xx provider response body."""
    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, str) and error.strip():
            return error
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"].strip():
            return error["message"]
        if isinstance(payload.get("message"), str) and payload["message"].strip():
            return payload["message"]

    return f"Request failed with status {status_code}."


def abort_response(response: Any) -> None:
    """
    Tear down a streaming response from another thread.

    A blocked read holds the buffered reader's lock, so the socket is shut
    down first; the read then returns and close() can proceed.
    """
    raw = getattr(getattr(response, "fp", None), "raw", None)
    sock = getattr(raw, "_sock", None)
    if sock is not None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug("Provider socket shutdown failed", error=str(e))
    try:
        response.close()
    except OSError as e:
        logger.debug("Closing provider response failed", error=str(e))


class LineEndingNormalizer:
    """Rewrites CRLF to LF across read boundaries by holding back a trailing CR."""

    def __init__(self) -> None:
        self._pending_cr = False

    def feed(self, text: str) -> str:
        if self._pending_cr:
            text = "\r" + text
            self._pending_cr = False
        if text.endswith("\r"):
            text = text[:-1]
            self._pending_cr = True
        return text.replace("\r\n", "\n")

    def flush(self) -> str:
        if self._pending_cr:
            self._pending_cr = False
            return "\r"
        return ""


class StreamingCompletionClient:
    """
    Executes streaming chat-completion calls against one provider.

    Each attempt opens a fresh connection; text accumulated by a failed
    attempt is discarded before the retry.
    """

    def __init__(
        self,
        config: ProviderConfig,
        opener: Callable[..., Any] = urlopen,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        read_size: int = READ_SIZE,
    ) -> None:
        self.config = config
        self.logger = logger
        self._opener = opener
        self._sleep = sleep
        self._clock = clock
        self._read_size = read_size

    def backoff_delay(self, base_delay: float, attempt: int) -> float:
        """Linear backoff capped at the configured maximum."""
        return min(base_delay * attempt, self.config.retry_max_delay_seconds)

    def complete(
        self,
        request: CompletionRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """
        Run a completion with bounded retry.

        Args:
            request: Messages, sampling and retry policy for this call
            cancel_event: Optional signal that aborts the call when set

        Returns:
            Accumulated response text, stripped

        Raises:
            ProviderTransientError: Transient failure on the last attempt
            ProviderFatalError: Non-retryable failure
            CompletionCancelledError: cancel_event was set
            ConfigurationError: No provider endpoint configured
        """
        if not self.config.url:
            raise ConfigurationError("Missing OPENAI_COMPATIBLE_URL or OPENAI_COMPATIBLE_BASE_URL.")

        max_attempts = max(1, request.max_retries + 1)

        for attempt in range(1, max_attempts + 1):
            self._check_cancelled(cancel_event)
            try:
                text = self._request_once(request, cancel_event)
                self.logger.info(
                    "Provider completion finished",
                    attempt=attempt,
                    model=self.config.model,
                    response_chars=len(text),
                )
                return text

            except ProviderError as e:
                is_last_attempt = attempt >= max_attempts
                if is_last_attempt or not e.transient:
                    log_retry_decision(
                        self.logger, attempt, max_attempts, e.transient, str(e),
                        context={"status_code": e.status_code},
                    )
                    raise

                delay = self.backoff_delay(request.retry_base_delay_seconds, attempt)
                log_retry_decision(
                    self.logger, attempt, max_attempts, e.transient, str(e),
                    delay_seconds=delay, context={"status_code": e.status_code},
                )
                self._wait(delay, cancel_event)

        raise ProviderFatalError("Provider request failed after retries.")

    def _check_cancelled(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise CompletionCancelledError()

    def _wait(self, delay: float, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            self._sleep(delay)
        elif cancel_event.wait(delay):
            raise CompletionCancelledError()

    def _build_http_request(self, request: CompletionRequest) -> Request:
        body = json.dumps({
            "model": self.config.model,
            "stream": True,
            "temperature": request.temperature,
            "messages": [message.to_dict() for message in request.messages],
        }).encode("utf-8")

        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
            "User-Agent": f"arcgent-app/{__version__}",
        }
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        return Request(self.config.url, data=body, headers=headers, method="POST")

    def _open(self, request: CompletionRequest) -> Any:
        try:
            return self._opener(self._build_http_request(request), timeout=request.timeout_seconds)

        except HTTPError as e:
            try:
                error_body = e.read() or b""
            except OSError:
                error_body = b""
            finally:
                if e.fp is not None:
                    e.close()
            message = read_error_response(error_body, e.code)
            if is_transient_status(e.code):
                raise ProviderTransientError(message, status_code=e.code) from e
            raise ProviderFatalError(message, status_code=e.code) from e

        except (URLError, OSError) as e:
            reason = getattr(e, "reason", None) or e
            if isinstance(reason, (socket.timeout, TimeoutError)):
                raise ProviderTransientError(
                    f"Upstream request timed out after {request.timeout_seconds}s."
                ) from e
            raise ProviderTransientError(f"Failed to connect to provider: {reason}") from e

    def _request_once(
        self,
        request: CompletionRequest,
        cancel_event: Optional[threading.Event],
    ) -> str:
        deadline = self._clock() + request.timeout_seconds
        response = self._open(request)
        finished = threading.Event()
        watcher = None
        if cancel_event is not None:
            # Closing the response unblocks a pending read as soon as the caller cancels
            watcher = threading.Thread(
                target=self._close_when_cancelled,
                args=(response, cancel_event, finished),
                name="provider-cancel-watcher",
                daemon=True,
            )
            watcher.start()

        try:
            status = getattr(response, "status", 200) or 200
            if not 200 <= status < 300:
                message = read_error_response(response.read(), status)
                if is_transient_status(status):
                    raise ProviderTransientError(message, status_code=status)
                raise ProviderFatalError(message, status_code=status)

            return self._read_stream(response, request, deadline, cancel_event)
        finally:
            finished.set()
            if watcher is not None:
                watcher.join()
            response.close()

    def _close_when_cancelled(
        self,
        response: Any,
        cancel_event: threading.Event,
        finished: threading.Event,
    ) -> None:
        while not finished.is_set():
            if cancel_event.wait(CANCEL_POLL_SECONDS):
                self.logger.info("Completion cancelled, closing provider connection")
                abort_response(response)
                return

    def _read_stream(
        self,
        response: Any,
        request: CompletionRequest,
        deadline: float,
        cancel_event: Optional[threading.Event],
    ) -> str:
        decoder = EventStreamDecoder()
        text_decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        line_endings = LineEndingNormalizer()
        parts: list[str] = []
        done = False

        while not done:
            self._check_cancelled(cancel_event)
            if self._clock() > deadline:
                raise ProviderTransientError(
                    f"Upstream request timed out after {request.timeout_seconds}s."
                )

            try:
                data = response.read1(self._read_size)
            except (socket.timeout, TimeoutError) as e:
                self._check_cancelled(cancel_event)
                raise ProviderTransientError(
                    f"Upstream request timed out after {request.timeout_seconds}s."
                ) from e
            except (OSError, ValueError) as e:
                # A response closed by a cancellation fails its pending read
                self._check_cancelled(cancel_event)
                raise ProviderTransientError(f"Network error while reading provider stream: {e}") from e

            if not data:
                self._check_cancelled(cancel_event)
                break

            text = line_endings.feed(text_decoder.decode(data))
            for frame in decoder.feed(text):
                if self._apply_event(parse_completion_event(frame), parts):
                    done = True
                    break

        if not done:
            tail = line_endings.feed(text_decoder.decode(b"", final=True)) + line_endings.flush()
            for frame in decoder.feed(tail):
                if self._apply_event(parse_completion_event(frame), parts):
                    done = True
                    break

        if not done:
            remainder = decoder.flush().strip()
            if remainder:
                self._apply_event(parse_completion_event(remainder), parts)

        return "".join(parts).strip()

    def _apply_event(self, event: Optional[StreamEvent], parts: list[str]) -> bool:
        """Accumulate a parsed event; returns True once the stream is done."""
        if event is None:
            return False

        if event.is_chunk:
            parts.append(event.text)
            return False

        if event.is_error:
            raise classify_provider_error(event.message, event.status_code)

        return True

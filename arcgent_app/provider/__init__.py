"""OpenAI-compatible completion provider client."""
from .client import StreamingCompletionClient, classify_provider_error

__all__ = ["StreamingCompletionClient", "classify_provider_error"]

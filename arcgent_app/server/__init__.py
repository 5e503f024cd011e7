"""Flask HTTP surface for prompt artifact generation."""
from .app import create_app
from .state import ServerState

__all__ = ["create_app", "ServerState"]

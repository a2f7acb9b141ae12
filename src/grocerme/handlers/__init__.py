"""Route handlers."""

from .health import health
from .session import SessionHandlers, get_authenticated_user

__all__ = ["health", "SessionHandlers", "get_authenticated_user"]

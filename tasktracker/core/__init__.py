"""
Core module: Configuration, Database, Logging, Common Utilities
"""

from tasktracker.core.config import settings
from tasktracker.core.db import get_session, async_session_maker

__all__ = ["settings", "get_session", "async_session_maker"]

"""
API Application Factory
FastAPI app creation and configuration
"""

from tasktracker.api.main import create_app

__all__ = ["create_app"]

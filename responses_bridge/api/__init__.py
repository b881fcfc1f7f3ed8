"""API module for the bridge."""

from .routes import health, responses_endpoint

__all__ = [
    "health",
    "responses_endpoint",
]

"""
API v1 package.

Contains versioned API routes for the action-link flow service.
"""

from src.api.v1.routes import router

__all__ = ["router"]

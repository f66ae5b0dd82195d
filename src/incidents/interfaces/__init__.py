"""
Incident Interfaces Layer
=========================

Interface adapters (controllers) for alert group reconciliation.

Contains:
- Controllers: FastAPI route handlers
"""

from src.incidents.interfaces.controllers import webhook_router

__all__ = ["webhook_router"]

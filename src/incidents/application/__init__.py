"""
Incident Application Layer
==========================

Application layer for alert group reconciliation.

Contains:
- Services: Reconciliation orchestration and the tracker gateway interface
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and the gateway interface,
but not on concrete infrastructure implementations.
"""

from src.incidents.application.dto import (
    AlertRequest,
    AlertGroupRequest,
    WebhookResponse,
)
from src.incidents.application.services import (
    IIncidentTrackerGateway,
    ReconciliationService,
    ReconciliationResult,
    ReconciliationAction,
    GroupKeyLocks,
)

__all__ = [
    # DTOs
    "AlertRequest",
    "AlertGroupRequest",
    "WebhookResponse",
    # Services
    "ReconciliationService",
    "ReconciliationResult",
    "ReconciliationAction",
    "GroupKeyLocks",
    # Gateway Interface
    "IIncidentTrackerGateway",
]

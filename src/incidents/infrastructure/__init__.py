"""
Incident Infrastructure Layer
=============================

Infrastructure implementations for alert group reconciliation:
- External: ServiceNow Table API client, YAML config provider
"""

from src.incidents.infrastructure.external import (
    ServiceNowClient,
    YAMLConfigProvider,
)

__all__ = [
    "ServiceNowClient",
    "YAMLConfigProvider",
]

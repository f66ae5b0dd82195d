"""
Incident Domain Layer
=====================

Domain layer for alert group reconciliation.

Contains:
- Entities: AlertGroupNotification, AlertEntry, IncidentFields, ExistingIncidentRef
- Value Objects: IncidentDefaults, GroupKeyDeriver, IncidentFieldMapper

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.incidents.domain.entities import (
    AlertEntry,
    AlertGroupNotification,
    IncidentFields,
    ExistingIncidentRef,
)
from src.incidents.domain.value_objects import (
    COMMENTS_HEADER,
    IncidentDefaults,
    GroupKeyDeriver,
    IncidentFieldMapper,
    derive_group_key,
    map_to_incident_fields,
    format_timestamp,
)

__all__ = [
    # Entities
    "AlertEntry",
    "AlertGroupNotification",
    "IncidentFields",
    "ExistingIncidentRef",
    # Value Objects & Services
    "COMMENTS_HEADER",
    "IncidentDefaults",
    "GroupKeyDeriver",
    "IncidentFieldMapper",
    "derive_group_key",
    "map_to_incident_fields",
    "format_timestamp",
]

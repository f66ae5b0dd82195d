"""
Incident Domain Entities
========================

Pure Python domain entities for alert group reconciliation.

Following Domain-Driven Design principles, these entities contain
business rules and are free of infrastructure concerns. Notifications
are immutable once decoded: label and annotation maps are exposed as
read-only mappings. Incident fields are derived fresh on every
reconciliation and never stored locally.
"""

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Mapping, Tuple

from src.config import VALID_ALERT_STATUSES


def _freeze(obj, *names: str) -> None:
    for name in names:
        object.__setattr__(obj, name, MappingProxyType(dict(getattr(obj, name))))


@dataclass(frozen=True)
class AlertEntry:
    """
    A single alert inside an alert group notification.

    Position inside the parent notification is meaningful: comment
    blocks are rendered in the order alerts were received.

    ``starts_at_fraction`` holds the fractional-second digits exactly as
    sent (up to nanoseconds); ``starts_at`` itself only keeps microseconds.
    """

    status: str
    starts_at: datetime
    labels: Mapping[str, str] = field(default_factory=dict)
    annotations: Mapping[str, str] = field(default_factory=dict)
    starts_at_fraction: str = ""

    def __post_init__(self):
        """Validate alert status."""
        if self.status not in VALID_ALERT_STATUSES:
            raise ValueError(f"Invalid alert status: {self.status!r}")
        _freeze(self, "labels", "annotations")


@dataclass(frozen=True)
class AlertGroupNotification:
    """
    Alert group notification as delivered by Alertmanager.

    Produced once per inbound webhook call and owned by that call.
    """

    status: str
    group_labels: Mapping[str, str] = field(default_factory=dict)
    common_labels: Mapping[str, str] = field(default_factory=dict)
    common_annotations: Mapping[str, str] = field(default_factory=dict)
    receiver: str = ""
    external_url: str = ""
    alerts: Tuple[AlertEntry, ...] = ()

    def __post_init__(self):
        """Validate group status."""
        if self.status not in VALID_ALERT_STATUSES:
            raise ValueError(f"Invalid alert group status: {self.status!r}")
        _freeze(self, "group_labels", "common_labels", "common_annotations")
        object.__setattr__(self, "alerts", tuple(self.alerts))


@dataclass(frozen=True)
class IncidentFields:
    """
    Fields written to a ticket on create and update.

    impact and urgency are numeric values carried as strings, as the
    tracker expects them.
    """

    short_description: str
    description: str
    comments: str
    assignment_group: str
    caller_id: str
    impact: str
    urgency: str
    group_key: str


@dataclass(frozen=True)
class ExistingIncidentRef:
    """Reference to a ticket returned by the tracker."""

    sys_id: str
    number: str = ""

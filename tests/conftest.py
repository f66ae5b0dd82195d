"""Shared fixtures: sample alert groups and an in-memory tracker gateway."""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from src.core import TrackerQueryError
from src.incidents.application import IIncidentTrackerGateway
from src.incidents.domain import (
    AlertEntry,
    AlertGroupNotification,
    ExistingIncidentRef,
    IncidentDefaults,
    IncidentFields,
)

GROUP_KEY_FIELD = "u_other_reference_1"


class FakeGateway(IIncidentTrackerGateway):
    """
    In-memory tracker.

    Records every call; ``incidents`` maps group key to the refs returned
    by query, in order. ``query_delay`` yields to the event loop between
    reading and returning so concurrent reconciliations can interleave.
    """

    def __init__(
        self,
        incidents: Optional[Dict[str, List[ExistingIncidentRef]]] = None,
        query_error: Optional[Exception] = None,
        write_error: Optional[Exception] = None,
        query_delay: float = 0.0
    ):
        self.incidents = incidents or {}
        self.query_error = query_error
        self.write_error = write_error
        self.query_delay = query_delay
        self.queries: List[Dict[str, str]] = []
        self.created: List[IncidentFields] = []
        self.updated: List[tuple] = []

    async def query(self, field_filters: Dict[str, str]) -> List[ExistingIncidentRef]:
        self.queries.append(dict(field_filters))
        if self.query_error:
            raise self.query_error
        matches = list(self.incidents.get(field_filters[GROUP_KEY_FIELD], []))
        if self.query_delay:
            await asyncio.sleep(self.query_delay)
        return matches

    async def create(self, fields: IncidentFields) -> ExistingIncidentRef:
        if self.write_error:
            raise self.write_error
        self.created.append(fields)
        ref = ExistingIncidentRef(
            sys_id=f"sys{len(self.created)}",
            number=f"INC{len(self.created):07d}"
        )
        self.incidents.setdefault(fields.group_key, []).append(ref)
        return ref

    async def update(self, fields: IncidentFields, target_id: str) -> ExistingIncidentRef:
        if self.write_error:
            raise self.write_error
        self.updated.append((fields, target_id))
        return ExistingIncidentRef(sys_id=target_id, number="INC0000001")


def make_alert(
    status="firing",
    labels=None,
    annotations=None,
    starts_at=None,
    starts_at_fraction=""
) -> AlertEntry:
    return AlertEntry(
        status=status,
        starts_at=starts_at or datetime(2024, 1, 15, 10, 0, 0, tzinfo=timezone.utc),
        labels=labels or {},
        annotations=annotations or {},
        starts_at_fraction=starts_at_fraction,
    )


def make_notification(group_labels=None, alerts=(), status="firing") -> AlertGroupNotification:
    return AlertGroupNotification(
        status=status,
        group_labels={"alertname": "HighCPU", "job": "node"} if group_labels is None else group_labels,
        common_labels={"alertname": "HighCPU", "job": "node"},
        common_annotations={},
        receiver="servicenow",
        external_url="http://alertmanager:9093",
        alerts=tuple(alerts),
    )


@pytest.fixture
def defaults() -> IncidentDefaults:
    return IncidentDefaults(
        assignment_group="Monitoring",
        caller_id="alertmanager",
        impact="2",
        urgency="3",
    )


@pytest.fixture
def notification() -> AlertGroupNotification:
    return make_notification(alerts=[
        make_alert(labels={"alertname": "HighCPU", "job": "node", "instance": "node-1"}),
    ])


@pytest.fixture
def webhook_payload() -> dict:
    return {
        "version": "4",
        "groupKey": "{}:{alertname=\"HighCPU\", job=\"node\"}",
        "status": "firing",
        "receiver": "servicenow",
        "groupLabels": {"job": "node", "alertname": "HighCPU"},
        "commonLabels": {"alertname": "HighCPU", "job": "node"},
        "commonAnnotations": {"summary": "CPU usage above 90%"},
        "externalURL": "http://alertmanager:9093",
        "alerts": [
            {
                "status": "firing",
                "labels": {"alertname": "HighCPU", "instance": "node-1:9100", "job": "node"},
                "annotations": {"summary": "CPU usage above 90%"},
                "startsAt": "2024-01-15T10:00:00Z",
                "endsAt": "0001-01-01T00:00:00Z",
                "generatorURL": "http://prometheus:9090/graph",
                "fingerprint": "c4d2a1b3e5f60789"
            }
        ]
    }


@pytest.fixture
def query_failure() -> TrackerQueryError:
    return TrackerQueryError("Incident query returned HTTP 401", details={"status_code": 401})

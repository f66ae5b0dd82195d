"""
Incident Application Services
=============================

Application services orchestrate the reconciliation of an alert group with
the incident tracker.

Following SOLID principles:
- Single Responsibility: the service only decides create vs update
- Dependency Inversion: depend on the tracker gateway abstraction, not on
  the ServiceNow client
"""

import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

from src.incidents.domain import (
    AlertGroupNotification,
    ExistingIncidentRef,
    IncidentDefaults,
    IncidentFields,
    GroupKeyDeriver,
    IncidentFieldMapper,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Gateway Interface (Dependency Inversion) ==========

class IIncidentTrackerGateway(ABC):
    """Interface for incident tracker access."""

    @abstractmethod
    async def query(self, field_filters: Dict[str, str]) -> List[ExistingIncidentRef]:
        """
        Find incidents whose fields equal the given values.

        Raises:
            TrackerQueryError: On transport, auth or response parse failure
        """

    @abstractmethod
    async def create(self, fields: IncidentFields) -> ExistingIncidentRef:
        """
        Create an incident.

        Raises:
            TrackerWriteError: When the tracker rejects or fails the write
        """

    @abstractmethod
    async def update(self, fields: IncidentFields, target_id: str) -> ExistingIncidentRef:
        """
        Update the incident identified by target_id.

        Raises:
            TrackerWriteError: When the tracker rejects or fails the write
        """


# ========== Result ==========

class ReconciliationAction(str):
    """What the reconciliation did with the tracker."""
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of one successful reconciliation."""

    action: str
    group_key: str
    incident: ExistingIncidentRef
    matches: int = 0

    @property
    def had_duplicates(self) -> bool:
        return self.matches > 1


# ========== Per-key serialization ==========

class GroupKeyLocks:
    """
    One asyncio lock per group key currently being reconciled.

    Locks are created on first use and dropped once nobody holds or waits
    for them, so the registry only grows with in-flight keys.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, group_key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(group_key, asyncio.Lock())
        self._users[group_key] = self._users.get(group_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[group_key] -= 1
            if self._users[group_key] == 0:
                del self._users[group_key]
                del self._locks[group_key]

    def __len__(self) -> int:
        return len(self._locks)


# ========== Application Services ==========

class ReconciliationService:
    """
    Reconciles alert group notifications with tracker incidents.

    Stateless between calls: whether an incident exists for a group is
    asked of the tracker on every notification. No retries are performed;
    any gateway error propagates unchanged to the caller.
    """

    def __init__(
        self,
        gateway: IIncidentTrackerGateway,
        defaults: IncidentDefaults,
        group_key_field: str,
        locks: Optional[GroupKeyLocks] = None
    ):
        self._gateway = gateway
        self._defaults = defaults
        self._group_key_field = group_key_field
        self._locks = locks

    async def reconcile(self, notification: AlertGroupNotification) -> ReconciliationResult:
        """
        Create or update the incident for an alert group.

        Args:
            notification: Decoded alert group notification

        Returns:
            ReconciliationResult describing the write that was made

        Raises:
            TrackerQueryError: Lookup failed, nothing was written
            TrackerWriteError: Create or update failed
        """
        logger.info(
            "Received alert group",
            extra={
                "status": notification.status,
                "group_labels": dict(notification.group_labels),
                "common_labels": dict(notification.common_labels),
                "common_annotations": dict(notification.common_annotations),
                "alert_count": len(notification.alerts),
            }
        )

        group_key = GroupKeyDeriver.derive(notification.group_labels)

        if self._locks is None:
            return await self._reconcile(notification, group_key)

        async with self._locks.hold(group_key):
            return await self._reconcile(notification, group_key)

    async def _reconcile(
        self,
        notification: AlertGroupNotification,
        group_key: str
    ) -> ReconciliationResult:
        incidents = await self._gateway.query({self._group_key_field: group_key})

        fields = IncidentFieldMapper.map(notification, self._defaults)

        if not incidents:
            logger.info(
                "Found no existing incident for alert group key",
                extra={"group_key": group_key}
            )
            created = await self._gateway.create(fields)
            logger.info(
                "Created incident",
                extra={"group_key": group_key, "incident_number": created.number}
            )
            return ReconciliationResult(
                action=ReconciliationAction.CREATED,
                group_key=group_key,
                incident=created,
                matches=0
            )

        existing = incidents[0]
        if len(incidents) > 1:
            logger.warning(
                "Found multiple existing incidents for alert group key, using first one",
                extra={
                    "group_key": group_key,
                    "match_count": len(incidents),
                    "incident_number": existing.number,
                }
            )

        logger.info(
            "Found existing incident for alert group key",
            extra={"group_key": group_key, "incident_number": existing.number}
        )
        updated = await self._gateway.update(fields, existing.sys_id)

        return ReconciliationResult(
            action=ReconciliationAction.UPDATED,
            group_key=group_key,
            incident=updated,
            matches=len(incidents)
        )

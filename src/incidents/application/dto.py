"""
Incident Application DTOs
=========================

Data Transfer Objects for the webhook API layer.

Pydantic models for request/response validation. Field aliases follow the
Alertmanager webhook JSON (camelCase); unknown keys such as ``groupKey``,
``endsAt`` or ``fingerprint`` are ignored.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.incidents.domain import AlertEntry, AlertGroupNotification


AlertStatusStr = Literal["firing", "resolved"]

# Fractional seconds of an RFC3339 time, e.g. "123456789" in "10:00:00.123456789Z"
FRACTION_PATTERN = re.compile(r"T\d{2}:\d{2}:\d{2}[.,](\d+)")


def _empty_if_none(v: Any) -> Any:
    return {} if v is None else v


# ========== Request DTOs ==========

class AlertRequest(BaseModel):
    """Individual alert within an Alertmanager notification."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: AlertStatusStr
    starts_at: datetime = Field(..., alias="startsAt")
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    starts_at_fraction: str = Field(default="", exclude=True)

    @model_validator(mode="before")
    @classmethod
    def capture_fraction(cls, data: Any) -> Any:
        """Keep the sent fractional digits; datetime stops at microseconds."""
        if not isinstance(data, dict):
            return data
        raw = data.get("startsAt", data.get("starts_at"))
        match = FRACTION_PATTERN.search(raw) if isinstance(raw, str) else None
        return {**data, "starts_at_fraction": match.group(1) if match else ""}

    @field_validator("labels", "annotations", mode="before")
    @classmethod
    def validate_maps(cls, v: Any) -> Any:
        return _empty_if_none(v)

    def to_domain(self) -> AlertEntry:
        """Convert to domain entity."""
        return AlertEntry(
            status=self.status,
            starts_at=self.starts_at,
            labels=dict(self.labels),
            annotations=dict(self.annotations),
            starts_at_fraction=self.starts_at_fraction,
        )


class AlertGroupRequest(BaseModel):
    """Alertmanager webhook payload structure."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: AlertStatusStr
    receiver: str = ""
    group_labels: Dict[str, str] = Field(default_factory=dict, alias="groupLabels")
    common_labels: Dict[str, str] = Field(default_factory=dict, alias="commonLabels")
    common_annotations: Dict[str, str] = Field(default_factory=dict, alias="commonAnnotations")
    external_url: str = Field(default="", alias="externalURL")
    alerts: List[AlertRequest] = Field(default_factory=list)

    @field_validator("group_labels", "common_labels", "common_annotations", mode="before")
    @classmethod
    def validate_maps(cls, v: Any) -> Any:
        """Treat null maps as empty, like Alertmanager's own decoder."""
        return _empty_if_none(v)

    @field_validator("alerts", mode="before")
    @classmethod
    def validate_alerts(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("receiver", "external_url", mode="before")
    @classmethod
    def validate_strings(cls, v: Any) -> Any:
        return "" if v is None else v

    def to_domain(self) -> AlertGroupNotification:
        """Convert to domain entity, keeping alert order as received."""
        return AlertGroupNotification(
            status=self.status,
            group_labels=dict(self.group_labels),
            common_labels=dict(self.common_labels),
            common_annotations=dict(self.common_annotations),
            receiver=self.receiver,
            external_url=self.external_url,
            alerts=tuple(alert.to_domain() for alert in self.alerts),
        )


# ========== Response DTOs ==========

class WebhookResponse(BaseModel):
    """Response body of the webhook endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    status: int = Field(..., alias="Status")
    message: str = Field(..., alias="Message")

    def to_body(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

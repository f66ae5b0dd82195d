"""
Incident Value Objects
======================

Immutable value objects and pure functions for the incident domain.

- GroupKeyDeriver: stable identity of an alert group
- IncidentFieldMapper: ticket text derived from an alert group
- IncidentDefaults: static values copied onto every ticket

Nothing here performs I/O; every function returns a new immutable string
built from explicitly ordered parts.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Mapping, Optional

from src.incidents.domain.entities import (
    AlertEntry,
    AlertGroupNotification,
    IncidentFields,
)


COMMENTS_HEADER = "Alerts list:"


@dataclass(frozen=True)
class IncidentDefaults:
    """Values taken from configuration, never from the alert payload."""

    assignment_group: str = ""
    caller_id: str = ""
    impact: str = ""
    urgency: str = ""


def sorted_label_lines(labels: Mapping[str, str]) -> List[str]:
    """Render labels as "name: value" strings, sorted by label name."""
    return [f"{name}: {labels[name]}" for name in sorted(labels)]


def format_timestamp(value: datetime, fraction: Optional[str] = None) -> str:
    """
    Render a timestamp the way existing ticket comments show it.

    Format is ``YYYY-MM-DD HH:MM:SS[.fraction] +HHMM ZONE``: fraction
    without trailing zeros, ZONE is ``UTC`` at zero offset and the
    numeric offset otherwise. Naive values are taken as UTC.

    Args:
        value: Timestamp to render
        fraction: Fractional-second digits as received, up to nanosecond
            precision; when None the microseconds of ``value`` are used
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    if fraction is None:
        fraction = f"{value.microsecond:06d}"
    fraction = fraction.rstrip("0")

    rendered = value.strftime("%Y-%m-%d %H:%M:%S")
    if fraction:
        rendered += "." + fraction

    offset = value.strftime("%z")
    zone = "UTC" if value.utcoffset().total_seconds() == 0 else offset
    return f"{rendered} {offset} {zone}"


class GroupKeyDeriver:
    """
    Pure functions for alert group identity.

    The group key correlates re-delivered and updated alert groups to the
    same ticket, so it depends on label names and values only, never on
    the order labels arrived in.
    """

    SEPARATOR = ", "

    @staticmethod
    def derive(group_labels: Mapping[str, str]) -> str:
        """
        Derive the group key from the group labels.

        Args:
            group_labels: Label name to value mapping of the alert group

        Returns:
            Comma separated "name: value" pairs sorted by name; empty
            string when there are no group labels
        """
        return GroupKeyDeriver.SEPARATOR.join(sorted_label_lines(group_labels))


def derive_group_key(group_labels: Mapping[str, str]) -> str:
    """Module-level shortcut for GroupKeyDeriver.derive."""
    return GroupKeyDeriver.derive(group_labels)


class IncidentFieldMapper:
    """
    Builds ticket fields from an alert group notification.

    Following DRY principle - all ticket text formatting in one place.
    The output format must stay stable: existing tickets already carry
    text produced by these rules.
    """

    @classmethod
    def map(
        cls,
        notification: AlertGroupNotification,
        defaults: IncidentDefaults
    ) -> IncidentFields:
        """
        Map a notification to the fields written on create and update.

        Args:
            notification: Decoded alert group notification
            defaults: Configured assignment group, caller, impact, urgency

        Returns:
            IncidentFields for the tracker
        """
        group_key = GroupKeyDeriver.derive(notification.group_labels)

        return IncidentFields(
            short_description=cls.build_short_description(notification, group_key),
            description=cls.build_description(notification, group_key),
            comments=cls.build_comments(notification),
            assignment_group=defaults.assignment_group,
            caller_id=defaults.caller_id,
            impact=defaults.impact,
            urgency=defaults.urgency,
            group_key=group_key,
        )

    @staticmethod
    def build_short_description(notification: AlertGroupNotification, group_key: str) -> str:
        return f"[{notification.status}] {group_key}"

    @staticmethod
    def build_description(notification: AlertGroupNotification, group_key: str) -> str:
        lines = [
            f"Group key: {group_key}",
            f"AlertManager receiver: {notification.receiver}",
            f"AlertManager source URL: {notification.external_url}",
        ]
        return "\n".join(lines)

    @classmethod
    def build_comments(cls, notification: AlertGroupNotification) -> str:
        """Header line, then one block per alert in received order."""
        blocks = [COMMENTS_HEADER]
        blocks.extend(cls.build_alert_block(alert) for alert in notification.alerts)
        return "\n\n".join(blocks)

    @staticmethod
    def build_alert_block(alert: AlertEntry) -> str:
        """Status and start time, then sorted labels, then sorted annotations."""
        started = format_timestamp(alert.starts_at, alert.starts_at_fraction or None)
        lines = [f"[{alert.status}] {started}"]
        lines.extend(f"- {line}" for line in sorted_label_lines(alert.labels))
        lines.extend(f"- {line}" for line in sorted_label_lines(alert.annotations))
        return "\n".join(lines)


def map_to_incident_fields(
    notification: AlertGroupNotification,
    defaults: IncidentDefaults
) -> IncidentFields:
    """Module-level shortcut for IncidentFieldMapper.map."""
    return IncidentFieldMapper.map(notification, defaults)

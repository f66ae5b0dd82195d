"""Tests for the decoded alert group entities."""

import pytest

from src.incidents.application import AlertGroupRequest
from tests.conftest import make_alert, make_notification


class TestNotificationImmutability:
    def test_group_label_maps_are_read_only(self):
        notification = make_notification()

        with pytest.raises(TypeError):
            notification.group_labels["alertname"] = "Other"
        with pytest.raises(TypeError):
            notification.common_annotations["summary"] = "changed"

    def test_alert_maps_are_read_only(self):
        alert = make_alert(labels={"instance": "node-1"})

        with pytest.raises(TypeError):
            alert.labels["instance"] = "node-2"
        with pytest.raises(TypeError):
            alert.annotations["summary"] = "added"

    def test_caller_dict_changes_do_not_leak_in(self):
        labels = {"alertname": "HighCPU"}
        notification = make_notification(group_labels=labels)
        labels["alertname"] = "Changed"

        assert notification.group_labels == {"alertname": "HighCPU"}

    def test_decoded_payload_is_read_only(self, webhook_payload):
        notification = AlertGroupRequest.model_validate(webhook_payload).to_domain()

        assert isinstance(notification.alerts, tuple)
        with pytest.raises(TypeError):
            notification.alerts[0].labels["job"] = "other"


class TestStartsAtFraction:
    @pytest.mark.parametrize(
        "starts_at, fraction",
        [
            ("2024-01-15T10:00:00.123456789Z", "123456789"),
            ("2024-01-15T10:00:00.5+02:00", "5"),
            ("2024-01-15T10:00:00Z", ""),
        ],
    )
    def test_raw_digits_are_kept(self, webhook_payload, starts_at, fraction):
        webhook_payload["alerts"][0]["startsAt"] = starts_at
        notification = AlertGroupRequest.model_validate(webhook_payload).to_domain()

        assert notification.alerts[0].starts_at_fraction == fraction

"""Tests for the ServiceNow Table API client, against a mocked transport."""

import base64
import json

import httpx
import pytest

from src.config import WebhookConfig
from src.core import TrackerQueryError, TrackerWriteError
from src.incidents.domain import IncidentFields
from src.incidents.infrastructure import ServiceNowClient
from tests.conftest import GROUP_KEY_FIELD

BASE_URL = "https://instance.service-now.com"


def make_client(handler) -> ServiceNowClient:
    return ServiceNowClient(
        base_url=BASE_URL,
        user_name="alertmanager",
        password="secret",
        group_key_field=GROUP_KEY_FIELD,
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def fields() -> IncidentFields:
    return IncidentFields(
        short_description="[firing] alertname: HighCPU",
        description="Group key: alertname: HighCPU\nAlertManager receiver: sn\nAlertManager source URL: ",
        comments="Alerts list:",
        assignment_group="Monitoring",
        caller_id="alertmanager",
        impact="2",
        urgency="3",
        group_key="alertname: HighCPU",
    )


class TestQuery:
    async def test_sends_filters_and_credentials(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"result": []})

        client = make_client(handler)
        refs = await client.query({GROUP_KEY_FIELD: "alertname: HighCPU, job: node"})
        await client.close()

        assert refs == []
        request = seen[0]
        assert request.method == "GET"
        assert request.url.path == "/api/now/v1/table/incident"
        assert request.url.params[GROUP_KEY_FIELD] == "alertname: HighCPU, job: node"
        assert request.url.params["sysparm_fields"] == "sys_id,number"
        expected = base64.b64encode(b"alertmanager:secret").decode()
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert request.headers["Accept"] == "application/json"

    async def test_parses_records_in_order(self):
        def handler(request):
            return httpx.Response(200, json={"result": [
                {"sys_id": "t1", "number": "INC0000001"},
                {"sys_id": "t2", "number": "INC0000002"},
            ]})

        refs = await make_client(handler).query({GROUP_KEY_FIELD: "k"})

        assert [r.sys_id for r in refs] == ["t1", "t2"]
        assert refs[0].number == "INC0000001"

    async def test_auth_failure_raises_query_error(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "User Not Authenticated"}})

        with pytest.raises(TrackerQueryError) as exc_info:
            await make_client(handler).query({GROUP_KEY_FIELD: "k"})

        assert exc_info.value.details["status_code"] == 401
        assert "ServiceNow" in exc_info.value.message

    async def test_unparseable_body_raises_query_error(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(TrackerQueryError):
            await make_client(handler).query({GROUP_KEY_FIELD: "k"})

    async def test_record_without_sys_id_raises_query_error(self):
        def handler(request):
            return httpx.Response(200, json={"result": [{"number": "INC0000001"}]})

        with pytest.raises(TrackerQueryError):
            await make_client(handler).query({GROUP_KEY_FIELD: "k"})

    async def test_transport_error_raises_query_error(self):
        def handler(request):
            raise httpx.ConnectError("boom", request=request)

        with pytest.raises(TrackerQueryError):
            await make_client(handler).query({GROUP_KEY_FIELD: "k"})


class TestWrites:
    async def test_create_posts_incident_body(self, fields):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(201, json={"result": {"sys_id": "new1", "number": "INC0000010"}})

        ref = await make_client(handler).create(fields)

        assert ref.sys_id == "new1"
        assert ref.number == "INC0000010"
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/api/now/v1/table/incident"
        body = json.loads(request.content)
        assert body == {
            "assignment_group": "Monitoring",
            "caller_id": "alertmanager",
            "comments": "Alerts list:",
            "description": fields.description,
            "impact": "2",
            "short_description": "[firing] alertname: HighCPU",
            "urgency": "3",
            GROUP_KEY_FIELD: "alertname: HighCPU",
        }

    async def test_update_puts_to_record(self, fields):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"result": {"sys_id": "abc123", "number": "INC0000042"}})

        ref = await make_client(handler).update(fields, "abc123")

        assert ref.sys_id == "abc123"
        assert seen[0].method == "PUT"
        assert seen[0].url.path == "/api/now/v1/table/incident/abc123"
        assert json.loads(seen[0].content)[GROUP_KEY_FIELD] == "alertname: HighCPU"

    async def test_server_error_raises_write_error(self, fields):
        def handler(request):
            return httpx.Response(500, text="Internal error")

        with pytest.raises(TrackerWriteError) as exc_info:
            await make_client(handler).create(fields)

        assert exc_info.value.details == {"status_code": 500, "body": "Internal error"}

    async def test_transport_error_raises_write_error(self, fields):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TrackerWriteError):
            await make_client(handler).update(fields, "abc123")


class TestFromConfig:
    def _config(self, **service_now) -> WebhookConfig:
        data = {
            "user_name": "alertmanager",
            "password": "secret",
            "incident_group_key_field": GROUP_KEY_FIELD,
        }
        data.update(service_now)
        return WebhookConfig(service_now=data)

    async def test_instance_name_builds_service_now_host(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"result": []})

        config = self._config(instance_name="acme")
        client = ServiceNowClient.from_config(config, transport=httpx.MockTransport(handler))
        await client.query({GROUP_KEY_FIELD: "k"})

        assert seen[0].url.host == "acme.service-now.com"
        assert seen[0].url.scheme == "https"

    def test_instance_url_wins_over_name(self):
        config = self._config(instance_name="acme", instance_url="http://localhost:8080/")
        assert config.service_now.base_url == "http://localhost:8080"

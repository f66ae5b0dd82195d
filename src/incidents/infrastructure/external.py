"""
Incident External Service Integrations
======================================

External services for alert group reconciliation:
- ServiceNow Table API client (tracker gateway implementation)
- YAML configuration provider for the ServiceNow instance and incident defaults
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import yaml
from pydantic import ValidationError

from src.config import WebhookConfig, settings
from src.core import ConfigurationException, TrackerQueryError, TrackerWriteError
from src.incidents.application import IIncidentTrackerGateway
from src.incidents.domain import ExistingIncidentRef, IncidentDefaults, IncidentFields
from src.shared.infrastructure.logging import get_logger, log_latency

logger = get_logger(__name__)


class YAMLConfigProvider:
    """
    ServiceNow configuration provider that loads from YAML.

    The file is read once; the configuration is read-only afterwards.
    """

    def __init__(self, config_path: Path):
        self._config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> WebhookConfig:
        """Load and validate configuration from YAML file."""
        if not self._config_path.exists():
            raise ConfigurationException(
                f"ServiceNow config file not found: {self._config_path}"
            )

        try:
            with open(self._config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationException(f"Error reading config file: {e}")

        if not isinstance(data, dict):
            raise ConfigurationException("Config file must contain a YAML mapping")

        try:
            config = WebhookConfig(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid ServiceNow config: {e}",
                details={"errors": e.errors(include_url=False)}
            )

        logger.info("ServiceNow config loaded", extra={"path": str(self._config_path)})
        return config

    def get_config(self) -> WebhookConfig:
        """Get loaded configuration."""
        return self._config

    def get_incident_defaults(self) -> IncidentDefaults:
        """Static incident values; the caller is the ServiceNow user."""
        return IncidentDefaults(
            assignment_group=self._config.default_incident.assignment_group,
            caller_id=self._config.service_now.user_name,
            impact=self._config.default_incident.impact,
            urgency=self._config.default_incident.urgency,
        )


class ServiceNowClient(IIncidentTrackerGateway):
    """
    ServiceNow Table API client for the ``incident`` table.

    Authentication, timeouts and transport are handled here; the
    reconciliation service only sees the gateway interface. No retries:
    a failed call fails the reconciliation.
    """

    TABLE_PATH = "/api/now/v1/table/incident"
    QUERY_FIELDS = "sys_id,number"

    def __init__(
        self,
        base_url: str,
        user_name: str,
        password: str,
        group_key_field: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._base_url = base_url.rstrip("/")
        self._auth = httpx.BasicAuth(user_name, password)
        self._group_key_field = group_key_field
        self._timeout = timeout if timeout is not None else settings.servicenow_timeout_seconds
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_config(
        cls,
        config: WebhookConfig,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ServiceNowClient":
        sn = config.service_now
        return cls(
            base_url=sn.base_url,
            user_name=sn.user_name,
            password=sn.password,
            group_key_field=sn.incident_group_key_field,
            timeout=timeout,
            transport=transport,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self._base_url,
                auth=self._auth,
                timeout=self._timeout,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._http_client

    def _build_body(self, fields: IncidentFields) -> Dict[str, Any]:
        """Build incident record body in ServiceNow column names."""
        return {
            "assignment_group": fields.assignment_group,
            "caller_id": fields.caller_id,
            "comments": fields.comments,
            "description": fields.description,
            "impact": fields.impact,
            "short_description": fields.short_description,
            "urgency": fields.urgency,
            self._group_key_field: fields.group_key,
        }

    @staticmethod
    def _to_ref(record: Any) -> ExistingIncidentRef:
        if not isinstance(record, dict) or not record.get("sys_id"):
            raise ValueError(f"record without sys_id: {record!r}")
        return ExistingIncidentRef(
            sys_id=str(record["sys_id"]),
            number=str(record.get("number") or ""),
        )

    @staticmethod
    def _error_details(response: httpx.Response) -> Dict[str, Any]:
        return {"status_code": response.status_code, "body": response.text[:500]}

    async def query(self, field_filters: Dict[str, str]) -> List[ExistingIncidentRef]:
        """Find incidents whose columns equal the given values."""
        params = dict(field_filters)
        params["sysparm_fields"] = self.QUERY_FIELDS

        try:
            client = await self._get_client()
            with log_latency(logger, "servicenow_query", table="incident"):
                response = await client.get(self.TABLE_PATH, params=params)
        except httpx.HTTPError as e:
            raise TrackerQueryError(f"Error querying incidents: {e}")

        if not response.is_success:
            raise TrackerQueryError(
                f"Incident query returned HTTP {response.status_code}",
                details=self._error_details(response)
            )

        try:
            result = response.json()["result"]
            if not isinstance(result, list):
                raise ValueError("result is not a list")
            return [self._to_ref(record) for record in result]
        except (ValueError, KeyError, TypeError) as e:
            raise TrackerQueryError(
                f"Unexpected incident query response: {e}",
                details=self._error_details(response)
            )

    async def create(self, fields: IncidentFields) -> ExistingIncidentRef:
        """Create an incident record."""
        return await self._write("POST", self.TABLE_PATH, fields, "create")

    async def update(self, fields: IncidentFields, target_id: str) -> ExistingIncidentRef:
        """Update the incident record with the given sys_id."""
        return await self._write("PUT", f"{self.TABLE_PATH}/{target_id}", fields, "update")

    async def _write(
        self,
        method: str,
        path: str,
        fields: IncidentFields,
        action: str
    ) -> ExistingIncidentRef:
        try:
            client = await self._get_client()
            with log_latency(logger, f"servicenow_{action}", table="incident"):
                response = await client.request(method, path, json=self._build_body(fields))
        except httpx.HTTPError as e:
            raise TrackerWriteError(f"Error trying to {action} incident: {e}")

        if not response.is_success:
            raise TrackerWriteError(
                f"Incident {action} returned HTTP {response.status_code}",
                details=self._error_details(response)
            )

        try:
            return self._to_ref(response.json()["result"])
        except (ValueError, KeyError, TypeError) as e:
            raise TrackerWriteError(
                f"Unexpected incident {action} response: {e}",
                details=self._error_details(response)
            )

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

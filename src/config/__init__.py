"""
Configuration Module
====================

Application settings and configuration management using Pydantic.

Two layers:
- Settings: process settings loaded from environment variables / .env
- WebhookConfig: ServiceNow instance and default incident values, loaded
  once at startup from the YAML file pointed to by ``settings.config_file``
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator, model_validator
from functools import lru_cache
from pathlib import Path
from typing import Optional, Union


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="alertmanager-webhook-servicenow", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Return exception details in 500 responses")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=9877, description="Server port", ge=1, le=65535)

    # ========== ServiceNow ==========
    config_file: Path = Field(
        default=Path("config/servicenow.yml"),
        description="Path to the ServiceNow configuration YAML file"
    )
    servicenow_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for ServiceNow API calls",
        ge=0.1,
        le=120
    )

    # ========== Reconciliation ==========
    serialize_by_group_key: bool = Field(
        default=True,
        description="Run lookup and create/update for one group key under a per-key lock"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== ServiceNow configuration file ==========

class ServiceNowConfig(BaseModel):
    """ServiceNow instance configuration (``service_now`` section)."""

    instance_name: Optional[str] = Field(default=None, description="Instance name, as in <name>.service-now.com")
    instance_url: Optional[str] = Field(default=None, description="Full base URL, overrides instance_name")
    user_name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    incident_group_key_field: str = Field(
        ...,
        min_length=1,
        description="Incident column holding the alert group key"
    )

    @model_validator(mode="after")
    def validate_instance(self) -> "ServiceNowConfig":
        """Either instance_name or instance_url must be set."""
        if not self.instance_name and not self.instance_url:
            raise ValueError("one of instance_name or instance_url is required")
        return self

    @property
    def base_url(self) -> str:
        """Base URL of the ServiceNow instance, without trailing slash."""
        if self.instance_url:
            return self.instance_url.rstrip("/")
        return f"https://{self.instance_name}.service-now.com"


class DefaultIncidentConfig(BaseModel):
    """Static values written on every incident (``default_incident`` section)."""

    assignment_group: str = Field(default="")
    impact: str = Field(default="")
    urgency: str = Field(default="")

    @field_validator("impact", "urgency", mode="before")
    @classmethod
    def validate_numeric(cls, v: Union[int, str, None]) -> str:
        """Accept YAML integers or numeric strings, keep them as strings."""
        if v is None:
            return ""
        if isinstance(v, bool):
            raise ValueError("must be a number")
        value = str(v).strip()
        if value and not value.lstrip("-").isdigit():
            raise ValueError(f"must be a number, got {v!r}")
        return value


class WebhookConfig(BaseModel):
    """Root of the ServiceNow configuration YAML."""

    service_now: ServiceNowConfig
    default_incident: DefaultIncidentConfig = Field(default_factory=DefaultIncidentConfig)


# ========== Constants ==========

class AlertStatus(str):
    """Alert and alert group statuses sent by Alertmanager."""
    FIRING = "firing"
    RESOLVED = "resolved"


VALID_ALERT_STATUSES = [AlertStatus.FIRING, AlertStatus.RESOLVED]

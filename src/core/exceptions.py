"""
Core Exceptions
================

Custom exceptions for the webhook service.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries (the FastAPI exception handlers
map them to HTTP status codes).
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    status_code = 400


class MalformedInputException(ValidationException):
    """Inbound payload cannot be decoded into an alert group notification."""


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class TrackerQueryError(ExternalServiceException):
    """Looking up incidents by group key failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("ServiceNow", message, details)


class TrackerWriteError(ExternalServiceException):
    """Creating or updating an incident failed."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("ServiceNow", message, details)

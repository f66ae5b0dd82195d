"""
Incident Controllers (API Routes)
=================================

FastAPI route receiving Alertmanager webhook notifications.

Controllers are thin - they decode the body and delegate to the
reconciliation service. Error responses are produced by the application
exception handlers registered in main.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

from src.core import ExternalServiceException, MalformedInputException
from src.incidents.application import (
    AlertGroupRequest,
    ReconciliationService,
    WebhookResponse,
)
from src.incidents.domain import AlertGroupNotification
from src.shared.infrastructure.logging import get_logger
from src.shared.infrastructure.metrics import (
    duplicate_incidents_total,
    reconciliations_total,
)

logger = get_logger(__name__)
router = APIRouter(tags=["Alertmanager Webhook"])


# ========== Example payloads for Swagger ==========

WEBHOOK_REQUEST_EXAMPLE = {
    "version": "4",
    "groupKey": "{}:{alertname=\"HighCPU\", job=\"node\"}",
    "status": "firing",
    "receiver": "servicenow",
    "groupLabels": {"alertname": "HighCPU", "job": "node"},
    "commonLabels": {"alertname": "HighCPU", "job": "node", "severity": "critical"},
    "commonAnnotations": {"summary": "CPU usage above 90%"},
    "externalURL": "http://alertmanager:9093",
    "alerts": [
        {
            "status": "firing",
            "labels": {"alertname": "HighCPU", "instance": "node-1:9100", "job": "node"},
            "annotations": {"summary": "CPU usage above 90%"},
            "startsAt": "2024-01-15T10:00:00Z",
            "endsAt": "0001-01-01T00:00:00Z",
            "generatorURL": "http://prometheus:9090/graph"
        }
    ]
}

WEBHOOK_RESPONSE_EXAMPLE = {"Status": 200, "Message": "Success"}


# ========== Dependencies ==========

def get_reconciliation_service(request: Request) -> ReconciliationService:
    """Get reconciliation service built at startup."""
    service = getattr(request.app.state, "reconciliation_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reconciliation service not available - ServiceNow not configured"
        )
    return service


async def parse_notification(request: Request) -> AlertGroupNotification:
    """
    Decode the request body into an alert group notification.

    Raises:
        MalformedInputException: Body is not JSON or not an Alertmanager payload
    """
    try:
        payload = await request.json()
    except ValueError as e:
        raise MalformedInputException(f"Error reading request body: {e}")

    try:
        return AlertGroupRequest.model_validate(payload).to_domain()
    except ValueError as e:
        raise MalformedInputException(f"Invalid alert group payload: {e}")


# ========== Route Handlers ==========

@router.post(
    "/webhook",
    summary="Receive an Alertmanager notification",
    description="""
    Reconcile an Alertmanager alert group with ServiceNow.

    The alert group's `groupLabels` identify the incident: if no incident
    carries the group key, one is created; otherwise the first matching
    incident is updated with the latest alert state.

    **Responses**:
    - `200`: incident created or updated
    - `400`: body is not a valid Alertmanager webhook payload
    - `500`: ServiceNow lookup or write failed
    """,
    openapi_extra={
        "requestBody": {
            "content": {"application/json": {"example": WEBHOOK_REQUEST_EXAMPLE}}
        }
    },
    responses={
        200: {
            "description": "Incident created or updated",
            "content": {"application/json": {"example": WEBHOOK_RESPONSE_EXAMPLE}}
        },
        400: {"description": "Malformed alert group payload"},
        500: {"description": "ServiceNow error"}
    }
)
async def alertmanager_webhook(
    service: ReconciliationService = Depends(get_reconciliation_service),
    notification: AlertGroupNotification = Depends(parse_notification)
) -> JSONResponse:
    try:
        result = await service.reconcile(notification)
    except ExternalServiceException as e:
        reconciliations_total.labels(outcome="failed").inc()
        logger.error(
            "Error managing incident from alert",
            extra={"error": e.message, "details": e.details}
        )
        raise

    reconciliations_total.labels(outcome=result.action).inc()
    if result.had_duplicates:
        duplicate_incidents_total.inc()

    body = WebhookResponse(status=status.HTTP_200_OK, message="Success")
    return JSONResponse(status_code=status.HTTP_200_OK, content=body.to_body())


# Export router for inclusion in main app
webhook_router = router

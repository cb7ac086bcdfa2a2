"""Settlement incident endpoints - pending incidents and their confirmation"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from balance_gateway.api.v1.schemas import (
    BulkConfirmRequest,
    BulkConfirmResponse,
    IncidentConfirmRequest,
    IncidentConfirmResponse,
    PendingIncidentsResponse,
    pending_incidents_response,
)
from balance_gateway.api.dependencies import get_backend_client, get_request_id, get_response_cache
from balance_gateway.domain.exceptions import BackendAPIError, InvalidIncidentConfirmationError
from balance_gateway.domain.incidents import (
    bulk_arrival_confirmation,
    group_incidents_by_date,
    validate_confirmation,
)
from balance_gateway.domain.models import IncidentConfirmation
from balance_gateway.infrastructure.cache import ResponseCache
from balance_gateway.infrastructure.clients.backend import BackendClient
from balance_gateway.infrastructure.observability.metrics import (
    backend_fetch_failures_counter,
    incident_confirm_counter,
)
from balance_gateway.services.aggregator import BalanceAggregator

router = APIRouter()


def _backend_error_status(e: BackendAPIError) -> int:
    return e.status_code if e.status_code and 400 <= e.status_code < 500 else 502


@router.get("/venues/{venue_id}/settlement-incidents", response_model=PendingIncidentsResponse)
async def get_pending_incidents(
    venue_id: str,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """Pending incidents grouped by estimated settlement date, earliest first"""
    aggregator = BalanceAggregator(client, venue_id, cache)
    try:
        incidents = await aggregator.load_pending_incidents()
    except BackendAPIError as e:
        backend_fetch_failures_counter.inc()
        logging.error(f"Settlement incidents fetch failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail=e.message)

    return pending_incidents_response(group_incidents_by_date(incidents))


@router.post(
    "/venues/{venue_id}/settlement-incidents/{incident_id}/confirm",
    response_model=IncidentConfirmResponse,
)
async def confirm_incident(
    venue_id: str,
    incident_id: str,
    request_body: IncidentConfirmRequest,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """
    Record whether an expected settlement arrived.

    Flow:
    1. Require the actual date when the settlement arrived
    2. Forward the confirmation to the backend
    3. Drop cached incidents and refetch the balance; a refetch failure
       does not fail the request
    """
    request_id = get_request_id(request)
    try:
        confirmation = validate_confirmation(
            IncidentConfirmation(
                settlement_arrived=request_body.settlement_arrived,
                actual_date=request_body.actual_date,
                notes=request_body.notes,
            )
        )
    except InvalidIncidentConfirmationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    try:
        incident = await client.confirm_settlement_incident(venue_id, incident_id, confirmation)
    except BackendAPIError as e:
        incident_confirm_counter.labels(mode="single", outcome="error").inc()
        logging.error(f"Incident confirmation failed: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        raise HTTPException(status_code=_backend_error_status(e), detail=e.message)

    incident_confirm_counter.labels(mode="single", outcome="success").inc()
    refreshed = await BalanceAggregator(client, venue_id, cache).refresh_after_incident_confirm()
    logging.info(
        "Settlement incident confirmed",
        extra={
            "request_id": request_id,
            "venue_id": venue_id,
            "incident_id": incident_id,
            "settlement_arrived": confirmation.settlement_arrived,
            "balance_refreshed": refreshed,
        },
    )

    return IncidentConfirmResponse(
        incident=incident if isinstance(incident, dict) else {"result": incident},
        balance_refreshed=refreshed,
    )


@router.post("/venues/{venue_id}/settlement-incidents/bulk-confirm", response_model=BulkConfirmResponse)
async def bulk_confirm_incidents(
    venue_id: str,
    request_body: BulkConfirmRequest,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """Mark several incidents as arrived now, e.g. every incident of one date"""
    request_id = get_request_id(request)
    try:
        confirmed = await client.bulk_confirm_settlement_incidents(
            venue_id, request_body.incident_ids, bulk_arrival_confirmation()
        )
    except BackendAPIError as e:
        incident_confirm_counter.labels(mode="bulk", outcome="error").inc()
        logging.error(f"Bulk incident confirmation failed: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        raise HTTPException(status_code=_backend_error_status(e), detail=e.message)

    incident_confirm_counter.labels(mode="bulk", outcome="success").inc()
    BalanceAggregator(client, venue_id, cache).invalidate_incidents()
    logging.info(
        "Settlement incidents confirmed",
        extra={"request_id": request_id, "venue_id": venue_id, "confirmed": confirmed},
    )
    return BulkConfirmResponse(confirmed=confirmed)

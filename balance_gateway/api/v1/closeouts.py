"""Cash closeout endpoints - expected cash, history and closeout submission"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from balance_gateway.api.v1.schemas import (
    CloseoutHistoryResponse,
    CloseoutRequest,
    CloseoutResponse,
    ExpectedCashResponse,
    VarianceSchema,
    closeout_history_response,
)
from balance_gateway.api.dependencies import get_backend_client, get_request_id, get_response_cache
from balance_gateway.config import settings
from balance_gateway.domain.closeout import compute_variance, needs_closeout_reminder
from balance_gateway.domain.exceptions import BackendAPIError
from balance_gateway.domain.models import CashCloseoutRequest
from balance_gateway.infrastructure.cache import ResponseCache
from balance_gateway.infrastructure.clients.backend import BackendClient
from balance_gateway.infrastructure.observability.metrics import backend_fetch_failures_counter
from balance_gateway.services.aggregator import BalanceAggregator

router = APIRouter()


@router.get("/venues/{venue_id}/cash-closeouts/expected", response_model=ExpectedCashResponse)
async def get_expected_cash(
    venue_id: str,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """
    Cash expected since the last closeout.

    show_reminder is true once more than closeout_reminder_days have passed
    since the last closeout.
    """
    aggregator = BalanceAggregator(client, venue_id, cache)
    try:
        expected = await aggregator.load_expected_cash()
    except BackendAPIError as e:
        backend_fetch_failures_counter.inc()
        logging.error(f"Expected cash fetch failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail=e.message)

    return ExpectedCashResponse(
        expected_amount=float(expected.expected_amount),
        transaction_count=expected.transaction_count,
        days_since_last_closeout=expected.days_since_last_closeout,
        has_closeouts=expected.has_closeouts,
        show_reminder=needs_closeout_reminder(expected, settings.closeout_reminder_days),
    )


@router.post("/venues/{venue_id}/cash-closeouts", response_model=CloseoutResponse)
async def create_cash_closeout(
    venue_id: str,
    request_body: CloseoutRequest,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """
    Record a cash closeout, then refresh the venue's balance data.

    Flow:
    1. Read expected cash to compute the count variance
    2. Submit the closeout to the backend
    3. Invalidate cached balance/closeout data and refetch it; a refetch
       failure does not fail the request
    """
    request_id = get_request_id(request)
    aggregator = BalanceAggregator(client, venue_id, cache)

    variance = None
    try:
        expected = await aggregator.load_expected_cash()
        variance = compute_variance(request_body.actual_amount, expected.expected_amount)
    except BackendAPIError as e:
        logging.warning(f"Expected cash unavailable, skipping variance: {e}", extra={"request_id": request_id})

    try:
        closeout = await client.create_cash_closeout(
            venue_id,
            CashCloseoutRequest(
                actual_amount=request_body.actual_amount,
                deposit_method=request_body.deposit_method,
                bank_reference=request_body.bank_reference,
                notes=request_body.notes,
            ),
        )
    except BackendAPIError as e:
        backend_fetch_failures_counter.inc()
        logging.error(f"Cash closeout failed: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        status_code = e.status_code if e.status_code and 400 <= e.status_code < 500 else 502
        raise HTTPException(status_code=status_code, detail=e.message)

    refreshed = await aggregator.refresh_after_closeout()
    logging.info(
        "Cash closeout recorded",
        extra={"request_id": request_id, "venue_id": venue_id, "balance_refreshed": refreshed},
    )

    return CloseoutResponse(
        closeout=closeout if isinstance(closeout, dict) else {"result": closeout},
        variance=(
            VarianceSchema(
                variance=float(variance.variance),
                variance_percent=float(variance.variance_percent),
                is_high=variance.is_high,
            )
            if variance
            else None
        ),
        balance_refreshed=refreshed,
    )


@router.get("/venues/{venue_id}/cash-closeouts", response_model=CloseoutHistoryResponse)
async def get_cash_closeout_history(
    venue_id: str,
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """Past closeouts, newest first as the backend orders them"""
    aggregator = BalanceAggregator(client, venue_id, cache)
    try:
        history = await aggregator.load_closeout_history(page=page, page_size=page_size)
    except BackendAPIError as e:
        backend_fetch_failures_counter.inc()
        logging.error(f"Closeout history fetch failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=503, detail=e.message)

    return closeout_history_response(history)

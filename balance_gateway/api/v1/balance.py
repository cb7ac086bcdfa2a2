"""GET /v1/venues/{venue_id}/available-balance - Tab-filtered balance view"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from balance_gateway.api.v1.schemas import BalanceViewResponse, balance_view_response
from balance_gateway.api.dependencies import get_backend_client, get_request_id, get_response_cache
from balance_gateway.domain.exceptions import BalanceLoadError
from balance_gateway.domain.models import TabFilter
from balance_gateway.infrastructure.cache import ResponseCache
from balance_gateway.infrastructure.clients.backend import BackendClient
from balance_gateway.infrastructure.observability.logging import log_balance_view
from balance_gateway.infrastructure.observability.metrics import (
    backend_fetch_failures_counter,
    backend_latency_histogram,
    balance_tab_counter,
    record_balance_load,
)
from balance_gateway.services.aggregator import BalanceAggregator

router = APIRouter()


@router.get("/venues/{venue_id}/available-balance", response_model=BalanceViewResponse)
async def get_available_balance(
    venue_id: str,
    request: Request,
    tab: TabFilter = Query(TabFilter.ALL, description="all | cards | cash"),
    client: BackendClient = Depends(get_backend_client),
    cache: ResponseCache = Depends(get_response_cache),
):
    """
    Available balance page data for one tab.

    Flow:
    1. Fetch summary, card type breakdown, timeline and calendar concurrently
    2. Fail the whole request if any of the four fetches fails
    3. Filter breakdown, calendar and summary down to the selected tab
    4. Add tab counts and cash/card amounts from the unfiltered breakdown
    """
    start_time = time.time()
    request_id = get_request_id(request)
    aggregator = BalanceAggregator(client, venue_id, cache)

    try:
        with backend_latency_histogram.time():
            await aggregator.load()
        view = aggregator.view(tab)

    except BalanceLoadError as e:
        backend_fetch_failures_counter.inc()
        record_balance_load(False)
        logging.error(f"Balance load failed: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        raise HTTPException(status_code=503, detail=str(e))

    except Exception as e:
        record_balance_load(False)
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    record_balance_load(True)
    balance_tab_counter.labels(tab=tab.value).inc()
    log_balance_view(
        request_id,
        venue_id,
        tab.value,
        float(view.summary.available_now),
        float(view.summary.pending_settlement),
        duration_ms,
    )

    return balance_view_response(venue_id, view)

"""POST /v1/venues/{venue_id}/available-balance/simulate - Settlement simulation"""

import time
import logging
from fastapi import APIRouter, Depends, HTTPException, Request

from balance_gateway.api.v1.schemas import SimulationRequest, SimulationResponse, simulation_response
from balance_gateway.api.dependencies import get_backend_client, get_request_id
from balance_gateway.domain.exceptions import InvalidSimulationInputError, SimulationError
from balance_gateway.domain.models import SimulationInput, is_cash
from balance_gateway.domain.simulation import simulate_transaction
from balance_gateway.infrastructure.clients.backend import BackendClient
from balance_gateway.infrastructure.observability.logging import log_simulation
from balance_gateway.infrastructure.observability.metrics import record_simulation

router = APIRouter()


@router.post("/venues/{venue_id}/available-balance/simulate", response_model=SimulationResponse)
async def simulate(
    venue_id: str,
    request_body: SimulationRequest,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
):
    """
    Project when a hypothetical transaction would settle and what it nets.

    Cash is answered locally. Card types go to the backend; a card type
    with no settlement configuration returns configuration_found=false.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    cash = is_cash(request_body.card_type)

    params = SimulationInput(
        amount=request_body.amount,
        card_type=request_body.card_type,
        transaction_date=request_body.transaction_date,
        transaction_time=request_body.transaction_time,
    )

    try:
        result = await simulate_transaction(params, client, venue_id)

    except InvalidSimulationInputError as e:
        record_simulation(cash, "error")
        logging.warning(f"Invalid simulation input: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        raise HTTPException(status_code=422, detail=str(e))

    except SimulationError as e:
        record_simulation(cash, "error")
        logging.error(f"Simulation failed: {e}", extra={"request_id": request_id, "venue_id": venue_id})
        raise HTTPException(status_code=502, detail=str(e))

    record_simulation(cash, "result" if result.configuration_found else "no_configuration")
    duration_ms = (time.time() - start_time) * 1000
    log_simulation(request_id, venue_id, params.card_type.value, result.configuration_found, duration_ms)

    return simulation_response(result)

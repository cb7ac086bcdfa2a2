"""Settlement simulation for a hypothetical transaction

Cash and card simulations are separate variants. Cash settles instantly
with no fees and is answered locally; card settlements depend on the
venue's payment configuration, so the backend computes them.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Protocol, Union
from balance_gateway.config import settings
from balance_gateway.domain.exceptions import (
    BackendAPIError,
    InvalidSimulationInputError,
    SimulationError,
)
from balance_gateway.domain.models import (
    SettlementConfiguration,
    SettlementDayType,
    SimulationInput,
    SimulationResult,
    is_cash,
)
from balance_gateway.utils.date_utils import parse_time_of_day, to_utc_instant

logger = logging.getLogger(__name__)

CASH_CONFIGURATION = SettlementConfiguration(
    settlement_days=0,
    settlement_day_type=SettlementDayType.CALENDAR_DAYS,
    cutoff_time="23:59",
)


class SimulationBackend(Protocol):
    async def simulate_transaction(self, venue_id: str, payload: Dict[str, Any]) -> SimulationResult: ...


def no_configuration_result(params: SimulationInput) -> SimulationResult:
    """Result shown when the venue has no settlement rule for the card type"""
    return SimulationResult(
        simulated_amount=params.amount,
        card_type=params.card_type,
        transaction_date=params.transaction_date,
        estimated_settlement_date=None,
        settlement_days=None,
        gross_amount=params.amount,
        fees=Decimal("0"),
        net_amount=params.amount,
        configuration=None,
    )


class CashSimulation:
    """Cash is available the same day, in full"""

    def __init__(self, params: SimulationInput):
        self.params = params

    def run(self) -> SimulationResult:
        return SimulationResult(
            simulated_amount=self.params.amount,
            card_type=self.params.card_type,
            transaction_date=self.params.transaction_date,
            estimated_settlement_date=self.params.transaction_date,
            settlement_days=0,
            gross_amount=self.params.amount,
            fees=Decimal("0"),
            net_amount=self.params.amount,
            configuration=CASH_CONFIGURATION,
        )


class CardSimulation:
    """Card settlement projected by the backend"""

    def __init__(self, params: SimulationInput, tz_name: str):
        self.params = params
        self.tz_name = tz_name

    def to_payload(self) -> Dict[str, Any]:
        """
        Shape the backend request.

        transactionDate is the local date (at the given time, or midnight)
        as a UTC instant. transactionTime is left out entirely when the
        caller gave none.
        """
        try:
            time_of_day = parse_time_of_day(self.params.transaction_time)
        except ValueError as e:
            raise InvalidSimulationInputError(str(e)) from e

        payload: Dict[str, Any] = {
            "amount": float(self.params.amount),
            "cardType": self.params.card_type.value,
            "transactionDate": to_utc_instant(self.params.transaction_date, time_of_day, self.tz_name),
        }
        if time_of_day is not None:
            payload["transactionTime"] = self.params.transaction_time
        return payload

    async def run(self, client: SimulationBackend, venue_id: str) -> SimulationResult:
        payload = self.to_payload()
        try:
            result = await client.simulate_transaction(venue_id, payload)
        except BackendAPIError as e:
            if e.status_code == 404:
                logger.info(
                    "No settlement configuration for card type",
                    extra={"venue_id": venue_id, "card_type": self.params.card_type.value},
                )
                return no_configuration_result(self.params)
            if e.status_code in (400, 422):
                raise InvalidSimulationInputError(e.message) from e
            raise SimulationError(e.message) from e

        if not result.configuration_found:
            return no_configuration_result(self.params)
        return result


def build_simulation(
    params: SimulationInput,
    tz_name: str | None = None,
) -> Union[CashSimulation, CardSimulation]:
    """Pick the simulation variant for the transaction's card type"""
    if params.amount <= 0:
        raise InvalidSimulationInputError("Amount must be greater than zero")

    if is_cash(params.card_type):
        return CashSimulation(params)
    return CardSimulation(params, tz_name or settings.venue_timezone)


async def simulate_transaction(
    params: SimulationInput,
    client: SimulationBackend,
    venue_id: str,
    tz_name: str | None = None,
) -> SimulationResult:
    """
    Project when a transaction would settle and what it would net.

    Raises:
        InvalidSimulationInputError: Amount or time rejected
        SimulationError: Backend failed for any other reason
    """
    simulation = build_simulation(params, tz_name)
    if isinstance(simulation, CashSimulation):
        return simulation.run()
    return await simulation.run(client, venue_id)


class SimulationSession:
    """
    State of one simulation dialog.

    Closing the dialog does not cancel an in-flight request; its result is
    discarded when it arrives. A failed submit keeps the previous result
    and records the error message for the caller to show.
    """

    def __init__(self, client: SimulationBackend, venue_id: str, tz_name: str | None = None):
        self.client = client
        self.venue_id = venue_id
        self.tz_name = tz_name
        self.is_open = False
        self.loading = False
        self.result: Optional[SimulationResult] = None
        self.error: Optional[str] = None
        self._generation = 0

    def open(self) -> None:
        self.is_open = True

    def close(self) -> None:
        self.is_open = False
        self.loading = False
        self.result = None
        self.error = None
        self._generation += 1

    async def submit(self, params: SimulationInput) -> Optional[SimulationResult]:
        generation = self._generation
        self.loading = True
        self.error = None
        try:
            result = await simulate_transaction(params, self.client, self.venue_id, self.tz_name)
        except SimulationError as e:
            if generation == self._generation:
                self.error = str(e)
                self.loading = False
            logger.warning(f"Simulation failed: {e}", extra={"venue_id": self.venue_id})
            return None

        if generation != self._generation:
            # Dialog closed while the request was in flight
            return None

        self.result = result
        self.loading = False
        return result

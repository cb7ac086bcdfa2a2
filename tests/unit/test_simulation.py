"""Unit tests for settlement simulation"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
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
    TransactionCardType,
)
from balance_gateway.domain.simulation import (
    CardSimulation,
    CashSimulation,
    SimulationSession,
    build_simulation,
    simulate_transaction,
)


@pytest.fixture
def debit_result() -> SimulationResult:
    return SimulationResult(
        simulated_amount=Decimal("500"),
        card_type=TransactionCardType.DEBIT,
        transaction_date=date(2024, 6, 10),
        estimated_settlement_date=date(2024, 6, 11),
        settlement_days=1,
        gross_amount=Decimal("500"),
        fees=Decimal("12.50"),
        net_amount=Decimal("487.50"),
        configuration=SettlementConfiguration(1, SettlementDayType.BUSINESS_DAYS, "23:00"),
    )


def debit_input(**overrides) -> SimulationInput:
    values = dict(
        amount=Decimal("500"),
        card_type=TransactionCardType.DEBIT,
        transaction_date=date(2024, 6, 10),
        transaction_time=None,
    )
    values.update(overrides)
    return SimulationInput(**values)


async def test_cash_simulation_is_instant_and_local():
    """Cash settles same day, in full, without calling the backend"""
    backend = AsyncMock()
    params = SimulationInput(
        amount=Decimal("250.75"),
        card_type=TransactionCardType.CASH,
        transaction_date=date(2024, 6, 10),
    )

    result = await simulate_transaction(params, backend, "venue_1")

    backend.simulate_transaction.assert_not_called()
    assert result.settlement_days == 0
    assert result.estimated_settlement_date == date(2024, 6, 10)
    assert result.fees == Decimal("0")
    assert result.gross_amount == Decimal("250.75")
    assert result.net_amount == Decimal("250.75")
    assert result.configuration == SettlementConfiguration(0, SettlementDayType.CALENDAR_DAYS, "23:59")
    assert result.configuration_found is True


def test_build_simulation_dispatches_on_card_type():
    cash = SimulationInput(Decimal("10"), TransactionCardType.CASH, date(2024, 6, 10))
    assert isinstance(build_simulation(cash), CashSimulation)
    assert isinstance(build_simulation(debit_input()), CardSimulation)


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5")])
def test_build_simulation_rejects_non_positive_amount(amount):
    with pytest.raises(InvalidSimulationInputError):
        build_simulation(debit_input(amount=amount))


def test_card_payload_omits_empty_time():
    """An empty time string never reaches the backend"""
    payload = CardSimulation(debit_input(transaction_time=""), "UTC").to_payload()

    assert "transactionTime" not in payload
    assert payload == {
        "amount": 500.0,
        "cardType": "DEBIT",
        "transactionDate": "2024-06-10T00:00:00.000Z",
    }


def test_card_payload_includes_time_and_normalizes_instant():
    """Local 14:30 in Mexico City (UTC-6) is 20:30 UTC"""
    payload = CardSimulation(debit_input(transaction_time="14:30"), "America/Mexico_City").to_payload()

    assert payload["transactionTime"] == "14:30"
    assert payload["transactionDate"] == "2024-06-10T20:30:00.000Z"


def test_card_payload_rejects_bad_time():
    with pytest.raises(InvalidSimulationInputError):
        CardSimulation(debit_input(transaction_time="25:99"), "UTC").to_payload()


async def test_card_simulation_returns_backend_result(debit_result):
    backend = AsyncMock()
    backend.simulate_transaction.return_value = debit_result

    result = await simulate_transaction(debit_input(), backend, "venue_1", tz_name="UTC")

    assert result == debit_result
    backend.simulate_transaction.assert_awaited_once()
    venue_id, payload = backend.simulate_transaction.await_args.args
    assert venue_id == "venue_1"
    assert payload["cardType"] == "DEBIT"


async def test_card_simulation_without_configuration(debit_result):
    """Null settlement date and days means no configuration, not an error"""
    debit_result.estimated_settlement_date = None
    debit_result.settlement_days = None
    debit_result.configuration = None
    backend = AsyncMock()
    backend.simulate_transaction.return_value = debit_result

    result = await simulate_transaction(debit_input(), backend, "venue_1", tz_name="UTC")

    assert result.configuration_found is False
    assert result.fees == Decimal("0")
    assert result.net_amount == Decimal("500")


async def test_card_simulation_404_means_no_configuration():
    backend = AsyncMock()
    backend.simulate_transaction.side_effect = BackendAPIError("No settlement configuration", status_code=404)

    result = await simulate_transaction(debit_input(), backend, "venue_1", tz_name="UTC")

    assert result.configuration_found is False
    assert result.configuration is None
    assert result.gross_amount == Decimal("500")


async def test_card_simulation_backend_failure_raises():
    backend = AsyncMock()
    backend.simulate_transaction.side_effect = BackendAPIError("Backend API error: 500", status_code=500)

    with pytest.raises(SimulationError, match="500"):
        await simulate_transaction(debit_input(), backend, "venue_1", tz_name="UTC")


async def test_card_simulation_validation_failure_raises_input_error():
    backend = AsyncMock()
    backend.simulate_transaction.side_effect = BackendAPIError("amount too large", status_code=400)

    with pytest.raises(InvalidSimulationInputError, match="amount too large"):
        await simulate_transaction(debit_input(), backend, "venue_1", tz_name="UTC")


async def test_session_keeps_previous_result_on_failure(debit_result):
    """A failed retry leaves the last result and records the error"""
    backend = AsyncMock()
    backend.simulate_transaction.return_value = debit_result
    session = SimulationSession(backend, "venue_1", tz_name="UTC")
    session.open()

    assert await session.submit(debit_input()) == debit_result

    backend.simulate_transaction.side_effect = BackendAPIError("Backend API timeout after 5.0s")
    assert await session.submit(debit_input()) is None

    assert session.is_open is True
    assert session.result == debit_result
    assert session.error == "Backend API timeout after 5.0s"
    assert session.loading is False


async def test_session_discards_result_after_close(debit_result):
    """Closing the dialog mid-request drops the late result"""
    session = SimulationSession(AsyncMock(), "venue_1", tz_name="UTC")

    async def close_then_answer(venue_id, payload):
        session.close()
        return debit_result

    session.client.simulate_transaction.side_effect = close_then_answer
    session.open()

    assert await session.submit(debit_input()) is None
    assert session.result is None
    assert session.is_open is False

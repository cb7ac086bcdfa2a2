"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from balance_gateway.api.main import create_app
from balance_gateway.api.dependencies import get_backend_client, get_response_cache
from balance_gateway.domain.models import (
    AvailableBalanceSummary,
    BalanceSnapshot,
    CalendarCardTypeEntry,
    CardTypeBreakdown,
    EstimatedSettlement,
    ExpectedCash,
    SettlementCalendarEntry,
    SettlementStatus,
    TimelineEntry,
    TransactionCardType,
)
from balance_gateway.infrastructure.cache import ResponseCache


@pytest.fixture
def sample_summary() -> AvailableBalanceSummary:
    """Server summary for the "all" tab"""
    return AvailableBalanceSummary(
        total_sales=Decimal("1200"),
        total_fees=Decimal("30"),
        available_now=Decimal("900"),
        pending_settlement=Decimal("270"),
        estimated_next_settlement=EstimatedSettlement(date=date(2024, 6, 10), amount=Decimal("270")),
    )


@pytest.fixture
def sample_breakdown() -> list[CardTypeBreakdown]:
    """One debit and one cash entry"""
    return [
        CardTypeBreakdown(
            card_type=TransactionCardType.DEBIT,
            transaction_count=5,
            total_sales=Decimal("1000"),
            fees=Decimal("30"),
            net_amount=Decimal("970"),
            pending_amount=Decimal("270"),
            settled_amount=Decimal("700"),
            settlement_days=1,
        ),
        CardTypeBreakdown(
            card_type=TransactionCardType.CASH,
            transaction_count=3,
            total_sales=Decimal("200"),
            fees=Decimal("0"),
            net_amount=Decimal("200"),
            pending_amount=Decimal("0"),
            settled_amount=Decimal("200"),
            settlement_days=0,
        ),
    ]


@pytest.fixture
def sample_timeline() -> list[TimelineEntry]:
    return [
        TimelineEntry(
            date=date(2024, 6, 9),
            settlement_status=SettlementStatus.PENDING,
            transaction_count=2,
            gross_amount=Decimal("300"),
            fees_amount=Decimal("10"),
            net_amount=Decimal("290"),
            estimated_settlement_date=date(2024, 6, 10),
        )
    ]


@pytest.fixture
def sample_calendar() -> list[SettlementCalendarEntry]:
    """A cash-only day followed by a mixed debit/cash day"""
    return [
        SettlementCalendarEntry(
            settlement_date=date(2024, 6, 8),
            status=SettlementStatus.SETTLED,
            transaction_count=1,
            total_net_amount=Decimal("100"),
            by_card_type=[CalendarCardTypeEntry(TransactionCardType.CASH, Decimal("100"), 1)],
        ),
        SettlementCalendarEntry(
            settlement_date=date(2024, 6, 10),
            status=SettlementStatus.PENDING,
            transaction_count=4,
            total_net_amount=Decimal("500"),
            by_card_type=[
                CalendarCardTypeEntry(TransactionCardType.DEBIT, Decimal("300"), 2),
                CalendarCardTypeEntry(TransactionCardType.CASH, Decimal("200"), 2),
            ],
        ),
    ]


@pytest.fixture
def sample_snapshot(sample_summary, sample_breakdown, sample_timeline, sample_calendar) -> BalanceSnapshot:
    return BalanceSnapshot(
        summary=sample_summary,
        breakdown=sample_breakdown,
        timeline=sample_timeline,
        calendar=sample_calendar,
    )


@pytest.fixture
def sample_expected_cash() -> ExpectedCash:
    return ExpectedCash(
        expected_amount=Decimal("1000"),
        transaction_count=12,
        days_since_last_closeout=9,
        has_closeouts=True,
    )


@pytest.fixture
def fake_backend(sample_summary, sample_breakdown, sample_timeline, sample_calendar, sample_expected_cash) -> AsyncMock:
    """Backend client double answering with the sample datasets"""
    backend = AsyncMock()
    backend.get_available_balance.return_value = sample_summary
    backend.get_balance_by_card_type.return_value = sample_breakdown
    backend.get_settlement_timeline.return_value = sample_timeline
    backend.get_settlement_calendar.return_value = sample_calendar
    backend.get_expected_cash.return_value = sample_expected_cash
    backend.create_cash_closeout.return_value = {"id": "closeout_1", "actualAmount": 940}
    return backend


@pytest.fixture
def cache() -> ResponseCache:
    return ResponseCache(ttl_seconds=30)


@pytest.fixture
def client(fake_backend: AsyncMock, cache: ResponseCache) -> TestClient:
    """Create FastAPI test client backed by the fake payments backend"""
    app = create_app()
    app.dependency_overrides[get_backend_client] = lambda: fake_backend
    app.dependency_overrides[get_response_cache] = lambda: cache
    return TestClient(app)


@pytest.fixture
def live_client() -> TestClient:
    """Test client talking to the real payments backend at settings.backend_api_base"""
    app = create_app()
    app.dependency_overrides[get_response_cache] = lambda: ResponseCache(ttl_seconds=30)
    return TestClient(app)

"""Pydantic schemas for API request/response validation"""

import datetime as dt
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from balance_gateway.domain.models import (
    AvailableBalanceSummary,
    BalanceView,
    CardTypeBreakdown,
    CashCloseout,
    CloseoutHistoryPage,
    IncidentDateGroup,
    DepositMethod,
    SettlementCalendarEntry,
    SettlementDayType,
    SettlementStatus,
    SimulationResult,
    TabFilter,
    TimelineEntry,
    TransactionCardType,
)


class SimulationRequest(BaseModel):
    """Request body for POST /v1/venues/{venue_id}/available-balance/simulate"""

    amount: Decimal = Field(..., gt=0, description="Transaction amount")
    card_type: TransactionCardType
    transaction_date: date = Field(..., description="Local calendar date of the transaction")
    transaction_time: Optional[str] = Field(
        None,
        pattern=r"^$|^([01]\d|2[0-3]):[0-5]\d$",
        description="Local time HH:MM; empty or missing means midnight",
    )


class CloseoutRequest(BaseModel):
    """Request body for POST /v1/venues/{venue_id}/cash-closeouts"""

    actual_amount: Decimal = Field(..., ge=0, description="Cash actually counted")
    deposit_method: DepositMethod = DepositMethod.BANK_DEPOSIT
    bank_reference: Optional[str] = None
    notes: Optional[str] = None


class EstimatedSettlementSchema(BaseModel):
    date: Optional[dt.date] = None
    amount: float


class SummarySchema(BaseModel):
    total_sales: float
    total_fees: float
    available_now: float
    pending_settlement: float
    estimated_next_settlement: EstimatedSettlementSchema


class BreakdownSchema(BaseModel):
    card_type: TransactionCardType
    transaction_count: int
    total_sales: float
    fees: float
    net_amount: float
    settlement_days: Optional[int] = None
    pending_amount: float
    settled_amount: float


class TimelineEntrySchema(BaseModel):
    date: dt.date
    settlement_status: SettlementStatus
    transaction_count: int
    gross_amount: float
    fees_amount: float
    net_amount: float
    estimated_settlement_date: Optional[dt.date] = None


class CalendarCardTypeSchema(BaseModel):
    card_type: TransactionCardType
    net_amount: float
    transaction_count: int


class CalendarEntrySchema(BaseModel):
    settlement_date: date
    status: SettlementStatus
    transaction_count: int
    total_net_amount: float
    by_card_type: List[CalendarCardTypeSchema]


class TabCountsSchema(BaseModel):
    total: int
    cash_count: int
    cards_count: int


class SeparateAmountsSchema(BaseModel):
    cash_available: float
    cards_available: float
    cards_pending: float


class BalanceViewResponse(BaseModel):
    """Response for GET /v1/venues/{venue_id}/available-balance"""

    venue_id: str
    tab: TabFilter
    summary: SummarySchema
    card_breakdown: List[BreakdownSchema]
    timeline: List[TimelineEntrySchema]
    settlement_calendar: List[CalendarEntrySchema]
    tab_counts: TabCountsSchema
    separate_amounts: SeparateAmountsSchema


class ConfigurationSchema(BaseModel):
    settlement_days: int
    settlement_day_type: SettlementDayType
    cutoff_time: str


class SimulationResponse(BaseModel):
    """Response for POST /v1/venues/{venue_id}/available-balance/simulate"""

    simulated_amount: float
    card_type: TransactionCardType
    transaction_date: date
    estimated_settlement_date: Optional[date] = None
    settlement_days: Optional[int] = None
    gross_amount: float
    fees: float
    net_amount: float
    configuration: Optional[ConfigurationSchema] = None
    configuration_found: bool


class ExpectedCashResponse(BaseModel):
    """Response for GET /v1/venues/{venue_id}/cash-closeouts/expected"""

    expected_amount: float
    transaction_count: int
    days_since_last_closeout: int
    has_closeouts: bool
    show_reminder: bool


class VarianceSchema(BaseModel):
    variance: float
    variance_percent: float
    is_high: bool


class CloseoutResponse(BaseModel):
    """Response for POST /v1/venues/{venue_id}/cash-closeouts"""

    closeout: Dict[str, Any]
    variance: Optional[VarianceSchema] = None
    balance_refreshed: bool


def summary_schema(summary: AvailableBalanceSummary) -> SummarySchema:
    return SummarySchema(
        total_sales=float(summary.total_sales),
        total_fees=float(summary.total_fees),
        available_now=float(summary.available_now),
        pending_settlement=float(summary.pending_settlement),
        estimated_next_settlement=EstimatedSettlementSchema(
            date=summary.estimated_next_settlement.date,
            amount=float(summary.estimated_next_settlement.amount),
        ),
    )


def breakdown_schema(entry: CardTypeBreakdown) -> BreakdownSchema:
    return BreakdownSchema(
        card_type=entry.card_type,
        transaction_count=entry.transaction_count,
        total_sales=float(entry.total_sales),
        fees=float(entry.fees),
        net_amount=float(entry.net_amount),
        settlement_days=entry.settlement_days,
        pending_amount=float(entry.pending_amount),
        settled_amount=float(entry.settled_amount),
    )


def timeline_schema(entry: TimelineEntry) -> TimelineEntrySchema:
    return TimelineEntrySchema(
        date=entry.date,
        settlement_status=entry.settlement_status,
        transaction_count=entry.transaction_count,
        gross_amount=float(entry.gross_amount),
        fees_amount=float(entry.fees_amount),
        net_amount=float(entry.net_amount),
        estimated_settlement_date=entry.estimated_settlement_date,
    )


def calendar_schema(entry: SettlementCalendarEntry) -> CalendarEntrySchema:
    return CalendarEntrySchema(
        settlement_date=entry.settlement_date,
        status=entry.status,
        transaction_count=entry.transaction_count,
        total_net_amount=float(entry.total_net_amount),
        by_card_type=[
            CalendarCardTypeSchema(
                card_type=c.card_type,
                net_amount=float(c.net_amount),
                transaction_count=c.transaction_count,
            )
            for c in entry.by_card_type
        ],
    )


def balance_view_response(venue_id: str, view: BalanceView) -> BalanceViewResponse:
    return BalanceViewResponse(
        venue_id=venue_id,
        tab=view.tab,
        summary=summary_schema(view.summary),
        card_breakdown=[breakdown_schema(c) for c in view.breakdown],
        timeline=[timeline_schema(t) for t in view.timeline],
        settlement_calendar=[calendar_schema(d) for d in view.calendar],
        tab_counts=TabCountsSchema(
            total=view.tab_counts.total,
            cash_count=view.tab_counts.cash_count,
            cards_count=view.tab_counts.cards_count,
        ),
        separate_amounts=SeparateAmountsSchema(
            cash_available=float(view.separate_amounts.cash_available),
            cards_available=float(view.separate_amounts.cards_available),
            cards_pending=float(view.separate_amounts.cards_pending),
        ),
    )


def simulation_response(result: SimulationResult) -> SimulationResponse:
    config = result.configuration
    return SimulationResponse(
        simulated_amount=float(result.simulated_amount),
        card_type=result.card_type,
        transaction_date=result.transaction_date,
        estimated_settlement_date=result.estimated_settlement_date,
        settlement_days=result.settlement_days,
        gross_amount=float(result.gross_amount),
        fees=float(result.fees),
        net_amount=float(result.net_amount),
        configuration=(
            ConfigurationSchema(
                settlement_days=config.settlement_days,
                settlement_day_type=config.settlement_day_type,
                cutoff_time=config.cutoff_time,
            )
            if config
            else None
        ),
        configuration_found=result.configuration_found,
    )


class CloseoutHistoryItemSchema(BaseModel):
    id: str
    closed_at: datetime
    expected_amount: float
    actual_amount: float
    variance: float
    deposit_method: DepositMethod
    bank_reference: Optional[str] = None
    notes: Optional[str] = None


class CloseoutHistoryResponse(BaseModel):
    """Response for GET /v1/venues/{venue_id}/cash-closeouts"""

    items: List[CloseoutHistoryItemSchema]
    total: int
    page: int
    page_size: int


class IncidentSchema(BaseModel):
    id: str
    processor_name: str
    card_type: str
    amount: float
    estimated_settlement_date: dt.date


class IncidentCardTypeTotalSchema(BaseModel):
    card_type: str
    count: int
    amount: float


class IncidentDateGroupSchema(BaseModel):
    date: dt.date
    total_amount: float
    incidents: List[IncidentSchema]
    by_card_type: List[IncidentCardTypeTotalSchema]


class PendingIncidentsResponse(BaseModel):
    """Response for GET /v1/venues/{venue_id}/settlement-incidents"""

    pending_count: int
    total_amount: float
    groups: List[IncidentDateGroupSchema]


class IncidentConfirmRequest(BaseModel):
    """Request body for POST /v1/venues/{venue_id}/settlement-incidents/{incident_id}/confirm"""

    settlement_arrived: bool
    actual_date: Optional[datetime] = Field(None, description="Required when the settlement arrived")
    notes: Optional[str] = None


class IncidentConfirmResponse(BaseModel):
    incident: Dict[str, Any]
    balance_refreshed: bool


class BulkConfirmRequest(BaseModel):
    """Request body for POST /v1/venues/{venue_id}/settlement-incidents/bulk-confirm"""

    incident_ids: List[str] = Field(..., min_length=1)


class BulkConfirmResponse(BaseModel):
    confirmed: int


def closeout_history_response(history: CloseoutHistoryPage) -> CloseoutHistoryResponse:
    return CloseoutHistoryResponse(
        items=[closeout_history_item(c) for c in history.items],
        total=history.total,
        page=history.page,
        page_size=history.page_size,
    )


def closeout_history_item(closeout: CashCloseout) -> CloseoutHistoryItemSchema:
    return CloseoutHistoryItemSchema(
        id=closeout.id,
        closed_at=closeout.closed_at,
        expected_amount=float(closeout.expected_amount),
        actual_amount=float(closeout.actual_amount),
        variance=float(closeout.variance),
        deposit_method=closeout.deposit_method,
        bank_reference=closeout.bank_reference,
        notes=closeout.notes,
    )


def pending_incidents_response(groups: List[IncidentDateGroup]) -> PendingIncidentsResponse:
    return PendingIncidentsResponse(
        pending_count=sum(len(g.incidents) for g in groups),
        total_amount=float(sum((g.total_amount for g in groups), Decimal("0"))),
        groups=[
            IncidentDateGroupSchema(
                date=g.date,
                total_amount=float(g.total_amount),
                incidents=[
                    IncidentSchema(
                        id=i.id,
                        processor_name=i.processor_name,
                        card_type=i.card_type,
                        amount=float(i.amount),
                        estimated_settlement_date=i.estimated_settlement_date,
                    )
                    for i in g.incidents
                ],
                by_card_type=[
                    IncidentCardTypeTotalSchema(card_type=t.card_type, count=t.count, amount=float(t.amount))
                    for t in g.by_card_type
                ],
            )
            for g in groups
        ],
    )

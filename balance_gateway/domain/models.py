"""Domain models - pure Python dataclasses representing settlement entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class TransactionCardType(str, Enum):
    """Payment method a transaction was taken with"""

    CASH = "CASH"
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"
    AMEX = "AMEX"
    INTERNATIONAL = "INTERNATIONAL"


class SettlementDayType(str, Enum):
    CALENDAR_DAYS = "CALENDAR_DAYS"
    BUSINESS_DAYS = "BUSINESS_DAYS"


class SettlementStatus(str, Enum):
    SETTLED = "SETTLED"
    PENDING = "PENDING"
    PROJECTED = "PROJECTED"  # Timeline only


class TabFilter(str, Enum):
    """Balance page tab: everything, card payments only, or cash only"""

    ALL = "all"
    CARDS = "cards"
    CASH = "cash"


class DepositMethod(str, Enum):
    BANK_DEPOSIT = "BANK_DEPOSIT"
    SAFE = "SAFE"
    OWNER_WITHDRAWAL = "OWNER_WITHDRAWAL"
    NEXT_SHIFT = "NEXT_SHIFT"


def is_cash(card_type: TransactionCardType) -> bool:
    return card_type == TransactionCardType.CASH


@dataclass
class SettlementConfiguration:
    """Per card type rule for when funds become available"""

    settlement_days: int
    settlement_day_type: SettlementDayType
    cutoff_time: str  # "HH:MM"


@dataclass
class CardTypeBreakdown:
    """Sales, fees and settlement state aggregated for one card type"""

    card_type: TransactionCardType
    transaction_count: int
    total_sales: Decimal
    fees: Decimal
    net_amount: Decimal
    pending_amount: Decimal
    settled_amount: Decimal
    settlement_days: Optional[int] = None


@dataclass
class TimelineEntry:
    """Settlement activity for a single transaction date"""

    date: date
    settlement_status: SettlementStatus
    transaction_count: int
    gross_amount: Decimal
    fees_amount: Decimal
    net_amount: Decimal
    estimated_settlement_date: Optional[date] = None


@dataclass
class CalendarCardTypeEntry:
    card_type: TransactionCardType
    net_amount: Decimal
    transaction_count: int


@dataclass
class SettlementCalendarEntry:
    """Money landing on a given settlement date, split by card type"""

    settlement_date: date
    status: SettlementStatus  # SETTLED or PENDING
    transaction_count: int
    total_net_amount: Decimal
    by_card_type: List[CalendarCardTypeEntry] = field(default_factory=list)


@dataclass
class EstimatedSettlement:
    date: Optional[date]
    amount: Decimal


@dataclass
class AvailableBalanceSummary:
    """Headline figures of the available balance page"""

    total_sales: Decimal
    total_fees: Decimal
    available_now: Decimal
    pending_settlement: Decimal
    estimated_next_settlement: EstimatedSettlement


@dataclass
class BalanceSnapshot:
    """The four source datasets, always fetched and replaced together"""

    summary: AvailableBalanceSummary
    breakdown: List[CardTypeBreakdown]
    timeline: List[TimelineEntry]
    calendar: List[SettlementCalendarEntry]


@dataclass
class TabCounts:
    total: int
    cash_count: int
    cards_count: int


@dataclass
class SeparateAmounts:
    cash_available: Decimal
    cards_available: Decimal
    cards_pending: Decimal


@dataclass
class BalanceView:
    """Everything the balance page renders for one tab"""

    tab: TabFilter
    summary: AvailableBalanceSummary
    breakdown: List[CardTypeBreakdown]
    timeline: List[TimelineEntry]
    calendar: List[SettlementCalendarEntry]
    tab_counts: TabCounts
    separate_amounts: SeparateAmounts


@dataclass
class SimulationInput:
    """Hypothetical transaction to project a settlement for"""

    amount: Decimal
    card_type: TransactionCardType
    transaction_date: date
    transaction_time: Optional[str] = None  # "HH:MM"; None or "" means not given


@dataclass
class SimulationResult:
    simulated_amount: Decimal
    card_type: TransactionCardType
    transaction_date: date
    estimated_settlement_date: Optional[date]
    settlement_days: Optional[int]
    gross_amount: Decimal
    fees: Decimal
    net_amount: Decimal
    configuration: Optional[SettlementConfiguration] = None

    @property
    def configuration_found(self) -> bool:
        """False when the backend knows no settlement rule for the card type"""
        return not (self.estimated_settlement_date is None and self.settlement_days is None)


@dataclass
class ExpectedCash:
    """Cash the venue should hold since its last closeout"""

    expected_amount: Decimal
    transaction_count: int
    days_since_last_closeout: int
    has_closeouts: bool


@dataclass
class CashCloseoutRequest:
    actual_amount: Decimal
    deposit_method: DepositMethod
    bank_reference: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class CloseoutVariance:
    variance: Decimal
    variance_percent: Decimal
    is_high: bool


@dataclass
class CashCloseout:
    """A past closeout as listed in the venue's closeout history"""

    id: str
    closed_at: datetime
    expected_amount: Decimal
    actual_amount: Decimal
    deposit_method: DepositMethod
    bank_reference: Optional[str] = None
    notes: Optional[str] = None

    @property
    def variance(self) -> Decimal:
        return self.actual_amount - self.expected_amount


@dataclass
class CloseoutHistoryPage:
    items: List[CashCloseout]
    total: int
    page: int
    page_size: int


class IncidentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"


@dataclass
class SettlementIncident:
    """An expected settlement the venue has not confirmed as received"""

    id: str
    processor_name: str
    card_type: str  # Processor card label, not restricted to TransactionCardType
    amount: Decimal
    estimated_settlement_date: date
    status: IncidentStatus = IncidentStatus.PENDING


@dataclass
class IncidentCardTypeTotal:
    card_type: str
    count: int
    amount: Decimal


@dataclass
class IncidentDateGroup:
    """Pending incidents sharing an estimated settlement date"""

    date: date
    incidents: List[SettlementIncident]
    total_amount: Decimal
    by_card_type: List[IncidentCardTypeTotal] = field(default_factory=list)


@dataclass
class IncidentConfirmation:
    settlement_arrived: bool
    actual_date: Optional[datetime] = None
    notes: Optional[str] = None

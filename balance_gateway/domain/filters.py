"""Tab filtering - derive the cash / cards / all views from raw balance data

Every function here is a pure function of (raw data, tab). Nothing mutates
its input, so switching tabs back to "all" always yields the server data.
"""

from decimal import Decimal
from typing import Iterable, List
from balance_gateway.domain.models import (
    AvailableBalanceSummary,
    BalanceSnapshot,
    BalanceView,
    CalendarCardTypeEntry,
    CardTypeBreakdown,
    EstimatedSettlement,
    SeparateAmounts,
    SettlementCalendarEntry,
    TabCounts,
    TabFilter,
    TransactionCardType,
    is_cash,
)

ZERO = Decimal("0")


def matches_tab(card_type: TransactionCardType, tab: TabFilter) -> bool:
    """Whether a card type is visible in the given tab"""
    if tab == TabFilter.CASH:
        return is_cash(card_type)
    if tab == TabFilter.CARDS:
        return not is_cash(card_type)
    return True


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def filter_breakdown(breakdown: List[CardTypeBreakdown], tab: TabFilter) -> List[CardTypeBreakdown]:
    if tab == TabFilter.ALL:
        return breakdown
    return [entry for entry in breakdown if matches_tab(entry.card_type, tab)]


def filter_calendar(
    calendar: List[SettlementCalendarEntry],
    tab: TabFilter,
) -> List[SettlementCalendarEntry]:
    """
    Filter each settlement day down to the card types visible in the tab.

    Day totals are recomputed from the filtered card types instead of being
    copied from the server total, and days left with no card types are
    dropped.
    """
    if tab == TabFilter.ALL:
        return calendar

    filtered = []
    for day in calendar:
        by_card_type = [
            CalendarCardTypeEntry(
                card_type=item.card_type,
                net_amount=item.net_amount,
                transaction_count=item.transaction_count,
            )
            for item in day.by_card_type
            if matches_tab(item.card_type, tab)
        ]
        if not by_card_type:
            continue

        filtered.append(
            SettlementCalendarEntry(
                settlement_date=day.settlement_date,
                status=day.status,
                transaction_count=sum(item.transaction_count for item in by_card_type),
                total_net_amount=_sum(item.net_amount for item in by_card_type),
                by_card_type=by_card_type,
            )
        )
    return filtered


def filter_summary(
    summary: AvailableBalanceSummary,
    breakdown: List[CardTypeBreakdown],
    tab: TabFilter,
) -> AvailableBalanceSummary:
    """
    Rebuild the headline summary for a tab.

    The "all" tab keeps the server summary verbatim. Other tabs sum the
    filtered breakdown; cash never has a pending settlement, so its next
    settlement is always empty.
    """
    if tab == TabFilter.ALL:
        return summary

    visible = filter_breakdown(breakdown, tab)

    if tab == TabFilter.CASH:
        next_settlement = EstimatedSettlement(date=None, amount=ZERO)
    else:
        next_settlement = summary.estimated_next_settlement

    return AvailableBalanceSummary(
        total_sales=_sum(c.total_sales for c in visible),
        total_fees=_sum(c.fees for c in visible),
        available_now=_sum(c.settled_amount for c in visible),
        pending_settlement=_sum(c.pending_amount for c in visible),
        estimated_next_settlement=next_settlement,
    )


def compute_tab_counts(breakdown: List[CardTypeBreakdown]) -> TabCounts:
    """Transaction counts shown on the tab headers (always unfiltered)"""
    total = sum(c.transaction_count for c in breakdown)
    cash_count = sum(c.transaction_count for c in breakdown if is_cash(c.card_type))
    return TabCounts(total=total, cash_count=cash_count, cards_count=total - cash_count)


def compute_separate_amounts(breakdown: List[CardTypeBreakdown]) -> SeparateAmounts:
    cash_items = [c for c in breakdown if is_cash(c.card_type)]
    card_items = [c for c in breakdown if not is_cash(c.card_type)]
    return SeparateAmounts(
        cash_available=_sum(c.settled_amount for c in cash_items),
        cards_available=_sum(c.settled_amount for c in card_items),
        cards_pending=_sum(c.pending_amount for c in card_items),
    )


def build_balance_view(snapshot: BalanceSnapshot, tab: TabFilter) -> BalanceView:
    """Assemble everything the balance page shows for one tab"""
    return BalanceView(
        tab=tab,
        summary=filter_summary(snapshot.summary, snapshot.breakdown, tab),
        breakdown=filter_breakdown(snapshot.breakdown, tab),
        timeline=snapshot.timeline,
        calendar=filter_calendar(snapshot.calendar, tab),
        tab_counts=compute_tab_counts(snapshot.breakdown),
        separate_amounts=compute_separate_amounts(snapshot.breakdown),
    )

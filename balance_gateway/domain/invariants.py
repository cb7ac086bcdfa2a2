"""Consistency checks for settlement data returned by the backend"""

from decimal import Decimal
from typing import List
from balance_gateway.domain.models import CardTypeBreakdown, SettlementCalendarEntry, is_cash


def breakdown_violations(entry: CardTypeBreakdown) -> List[str]:
    """
    List the accounting rules a card type breakdown entry breaks.

    Rules:
    - net = total sales - fees
    - card types: settled + pending = net
    - cash: nothing pending, settled = net = total sales
    """
    problems = []
    if entry.net_amount != entry.total_sales - entry.fees:
        problems.append("net_amount != total_sales - fees")

    if is_cash(entry.card_type):
        if entry.pending_amount != 0:
            problems.append("cash pending_amount != 0")
        if not (entry.settled_amount == entry.net_amount == entry.total_sales):
            problems.append("cash settled_amount != net_amount != total_sales")
    elif entry.settled_amount + entry.pending_amount != entry.net_amount:
        problems.append("settled_amount + pending_amount != net_amount")

    return problems


def calendar_violations(entry: SettlementCalendarEntry) -> List[str]:
    """List where a calendar day's totals disagree with its card type split"""
    problems = []
    if entry.total_net_amount != sum((c.net_amount for c in entry.by_card_type), Decimal("0")):
        problems.append("total_net_amount != sum(by_card_type.net_amount)")
    if entry.transaction_count != sum(c.transaction_count for c in entry.by_card_type):
        problems.append("transaction_count != sum(by_card_type.transaction_count)")
    return problems

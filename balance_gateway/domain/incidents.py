"""Pending settlement incidents: grouping for display and confirmation rules"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional
from balance_gateway.domain.exceptions import InvalidIncidentConfirmationError
from balance_gateway.domain.models import (
    IncidentCardTypeTotal,
    IncidentConfirmation,
    IncidentDateGroup,
    SettlementIncident,
)


def group_incidents_by_date(incidents: List[SettlementIncident]) -> List[IncidentDateGroup]:
    """
    Group incidents by estimated settlement date, earliest first.

    Within a date, card types keep the order they first appear in.
    """
    groups: Dict = {}
    for incident in incidents:
        group = groups.get(incident.estimated_settlement_date)
        if group is None:
            group = IncidentDateGroup(
                date=incident.estimated_settlement_date,
                incidents=[],
                total_amount=Decimal("0"),
            )
            groups[incident.estimated_settlement_date] = group

        group.incidents.append(incident)
        group.total_amount += incident.amount

        totals = next((t for t in group.by_card_type if t.card_type == incident.card_type), None)
        if totals is None:
            totals = IncidentCardTypeTotal(card_type=incident.card_type, count=0, amount=Decimal("0"))
            group.by_card_type.append(totals)
        totals.count += 1
        totals.amount += incident.amount

    return sorted(groups.values(), key=lambda g: g.date)


def validate_confirmation(confirmation: IncidentConfirmation) -> IncidentConfirmation:
    """
    A settlement reported as arrived needs the date it actually arrived.

    Raises:
        InvalidIncidentConfirmationError: Arrival reported without a date
    """
    if confirmation.settlement_arrived and confirmation.actual_date is None:
        raise InvalidIncidentConfirmationError("actual_date is required when the settlement arrived")
    return confirmation


def bulk_arrival_confirmation(now: Optional[datetime] = None) -> IncidentConfirmation:
    """Confirmation used when several incidents are marked as arrived at once"""
    return IncidentConfirmation(settlement_arrived=True, actual_date=now or datetime.now(timezone.utc))

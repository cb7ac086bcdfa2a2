"""Unit tests for settlement incident grouping and confirmation rules"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from balance_gateway.domain.exceptions import InvalidIncidentConfirmationError
from balance_gateway.domain.incidents import (
    bulk_arrival_confirmation,
    group_incidents_by_date,
    validate_confirmation,
)
from balance_gateway.domain.models import IncidentConfirmation, SettlementIncident


def incident(incident_id: str, card_type: str, amount: str, day: int) -> SettlementIncident:
    return SettlementIncident(
        id=incident_id,
        processor_name="Blumon",
        card_type=card_type,
        amount=Decimal(amount),
        estimated_settlement_date=date(2024, 6, day),
    )


def test_groups_by_date_earliest_first():
    groups = group_incidents_by_date(
        [
            incident("inc_1", "DEBIT", "150", 7),
            incident("inc_2", "CREDIT", "80", 7),
            incident("inc_3", "DEBIT", "40", 5),
        ]
    )

    assert [g.date for g in groups] == [date(2024, 6, 5), date(2024, 6, 7)]
    assert groups[1].total_amount == Decimal("230")
    assert [i.id for i in groups[1].incidents] == ["inc_1", "inc_2"]


def test_groups_total_each_card_type_within_a_date():
    groups = group_incidents_by_date(
        [
            incident("inc_1", "DEBIT", "150.10", 7),
            incident("inc_2", "CREDIT", "80", 7),
            incident("inc_3", "DEBIT", "0.20", 7),
        ]
    )

    totals = {t.card_type: (t.count, t.amount) for t in groups[0].by_card_type}
    assert totals == {"DEBIT": (2, Decimal("150.30")), "CREDIT": (1, Decimal("80"))}


def test_no_incidents_no_groups():
    assert group_incidents_by_date([]) == []


def test_arrived_settlement_needs_actual_date():
    with pytest.raises(InvalidIncidentConfirmationError):
        validate_confirmation(IncidentConfirmation(settlement_arrived=True))


def test_missing_settlement_needs_no_date():
    confirmation = IncidentConfirmation(settlement_arrived=False, notes="Still waiting on the processor")
    assert validate_confirmation(confirmation) is confirmation


def test_bulk_confirmation_marks_arrival_now():
    now = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
    confirmation = bulk_arrival_confirmation(now)
    assert confirmation.settlement_arrived is True
    assert confirmation.actual_date == now

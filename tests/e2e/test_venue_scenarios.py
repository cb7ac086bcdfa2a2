"""
E2E tests for venue scenarios against the mock payments backend.

These tests require the mock backend to be running at settings.backend_api_base
and are deselected by default (run with `pytest -m integration`):
    uvicorn mock.settlement_backend.main:app --port 8001

Venues:
- demo: debit and cash sales, debit/credit settlement configured, AMEX not,
  one past closeout and three pending settlement incidents
- outage: card type breakdown endpoint returns 500
"""

import pytest
from fastapi.testclient import TestClient


@pytest.mark.integration
def test_demo_venue_all_tab(live_client: TestClient):
    """
    demo: every dataset loads
    Expected: server summary verbatim, both card types, both calendar days
    """
    response = live_client.get("/v1/venues/demo/available-balance")

    assert response.status_code == 200
    data = response.json()
    assert data["summary"]["available_now"] == 900.0
    assert len(data["card_breakdown"]) == 2
    assert len(data["timeline"]) == 2
    assert len(data["settlement_calendar"]) == 2
    assert data["tab_counts"] == {"total": 8, "cash_count": 3, "cards_count": 5}


@pytest.mark.integration
def test_demo_venue_cards_tab_drops_cash_only_days(live_client: TestClient):
    response = live_client.get("/v1/venues/demo/available-balance", params={"tab": "cards"})

    assert response.status_code == 200
    calendar = response.json()["settlement_calendar"]
    assert [d["settlement_date"] for d in calendar] == ["2024-06-10"]
    assert calendar[0]["total_net_amount"] == 300.0


@pytest.mark.integration
def test_outage_venue_fails_whole_page(live_client: TestClient):
    """
    outage: one of four datasets fails
    Expected: 503 with the backend's message, no partial balance data
    """
    response = live_client.get("/v1/venues/outage/available-balance")

    assert response.status_code == 503
    assert response.json() == {"detail": "byCardType unavailable"}


@pytest.mark.integration
def test_demo_venue_debit_simulation(live_client: TestClient):
    """Monday debit sale settles next business day, net of 2.5% fees"""
    response = live_client.post(
        "/v1/venues/demo/available-balance/simulate",
        json={"amount": 1000, "card_type": "DEBIT", "transaction_date": "2024-06-10"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["configuration_found"] is True
    assert data["estimated_settlement_date"] == "2024-06-11"
    assert data["fees"] == 25.0
    assert data["net_amount"] == 975.0


@pytest.mark.integration
def test_demo_venue_amex_has_no_configuration(live_client: TestClient):
    response = live_client.post(
        "/v1/venues/demo/available-balance/simulate",
        json={"amount": 100, "card_type": "AMEX", "transaction_date": "2024-06-10", "transaction_time": "12:00"},
    )

    assert response.status_code == 200
    assert response.json()["configuration_found"] is False


@pytest.mark.integration
def test_demo_venue_cash_closeout(live_client: TestClient):
    """
    demo: nine days since last closeout, 1000 expected
    Expected: reminder shown; counting 940 is a high variance
    """
    expected = live_client.get("/v1/venues/demo/cash-closeouts/expected").json()
    assert expected["show_reminder"] is True

    response = live_client.post(
        "/v1/venues/demo/cash-closeouts",
        json={"actual_amount": 940, "deposit_method": "BANK_DEPOSIT", "bank_reference": "DEP-001"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["closeout"]["bankReference"] == "DEP-001"
    assert data["variance"]["is_high"] is True
    assert data["balance_refreshed"] is True


@pytest.mark.integration
def test_demo_venue_closeout_history(live_client: TestClient):
    response = live_client.get("/v1/venues/demo/cash-closeouts")

    assert response.status_code == 200
    data = response.json()
    assert data["total"] >= 1
    assert data["items"][0]["variance"] == -5.0


@pytest.mark.integration
def test_demo_venue_pending_incidents(live_client: TestClient):
    """
    demo: three pending incidents over two dates, one already confirmed
    Expected: earliest date first, confirmed incident left out
    """
    response = live_client.get("/v1/venues/demo/settlement-incidents")

    assert response.status_code == 200
    data = response.json()
    assert data["pending_count"] == 3
    assert [g["date"] for g in data["groups"]] == ["2024-06-05", "2024-06-07"]


@pytest.mark.integration
def test_demo_venue_confirm_incident(live_client: TestClient):
    response = live_client.post(
        "/v1/venues/demo/settlement-incidents/inc_1/confirm",
        json={"settlement_arrived": True, "actual_date": "2024-06-08T15:00:00Z"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["incident"]["status"] == "confirmed"
    assert data["balance_refreshed"] is True

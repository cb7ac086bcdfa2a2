"""Payments backend HTTP client for settlement, cash closeout and incident data"""

import httpx
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional
from balance_gateway.domain.models import (
    AvailableBalanceSummary,
    CalendarCardTypeEntry,
    CardTypeBreakdown,
    CashCloseout,
    CashCloseoutRequest,
    CloseoutHistoryPage,
    DepositMethod,
    EstimatedSettlement,
    ExpectedCash,
    IncidentConfirmation,
    IncidentStatus,
    SettlementCalendarEntry,
    SettlementConfiguration,
    SettlementDayType,
    SettlementIncident,
    SettlementStatus,
    SimulationResult,
    TimelineEntry,
    TransactionCardType,
)
from balance_gateway.domain.exceptions import BackendAPIError
from balance_gateway.config import settings
from balance_gateway.utils.date_utils import (
    calendar_horizon,
    format_instant,
    parse_iso_date,
    parse_iso_datetime,
    today_in,
)


def _money(value: Any) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _unwrap(body: Any) -> Any:
    """Backend responses may come wrapped as {"success": true, "data": ...}"""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


def _error_message(response: httpx.Response) -> str:
    """Prefer the backend's own message over a generic status line"""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, str) and message:
            return message
    return f"Backend API error: {response.status_code}"


def parse_summary(data: Dict[str, Any]) -> AvailableBalanceSummary:
    next_settlement = data.get("estimatedNextSettlement") or {}
    return AvailableBalanceSummary(
        total_sales=_money(data["totalSales"]),
        total_fees=_money(data["totalFees"]),
        available_now=_money(data["availableNow"]),
        pending_settlement=_money(data["pendingSettlement"]),
        estimated_next_settlement=EstimatedSettlement(
            date=parse_iso_date(next_settlement.get("date")),
            amount=_money(next_settlement.get("amount")),
        ),
    )


def parse_breakdown(item: Dict[str, Any]) -> CardTypeBreakdown:
    return CardTypeBreakdown(
        card_type=TransactionCardType(item["cardType"]),
        transaction_count=int(item["transactionCount"]),
        total_sales=_money(item["totalSales"]),
        fees=_money(item["fees"]),
        net_amount=_money(item["netAmount"]),
        pending_amount=_money(item["pendingAmount"]),
        settled_amount=_money(item["settledAmount"]),
        settlement_days=item.get("settlementDays"),
    )


def parse_timeline_entry(item: Dict[str, Any]) -> TimelineEntry:
    return TimelineEntry(
        date=parse_iso_date(item["date"]),
        settlement_status=SettlementStatus(item["settlementStatus"]),
        transaction_count=int(item["transactionCount"]),
        gross_amount=_money(item["grossAmount"]),
        fees_amount=_money(item["feesAmount"]),
        net_amount=_money(item["netAmount"]),
        estimated_settlement_date=parse_iso_date(item.get("estimatedSettlementDate")),
    )


def parse_calendar_entry(item: Dict[str, Any]) -> SettlementCalendarEntry:
    return SettlementCalendarEntry(
        settlement_date=parse_iso_date(item["settlementDate"]),
        status=SettlementStatus(item["status"]),
        transaction_count=int(item["transactionCount"]),
        total_net_amount=_money(item["totalNetAmount"]),
        by_card_type=[
            CalendarCardTypeEntry(
                card_type=TransactionCardType(c["cardType"]),
                net_amount=_money(c["netAmount"]),
                transaction_count=int(c["transactionCount"]),
            )
            for c in item.get("byCardType", [])
        ],
    )


def parse_simulation(data: Dict[str, Any]) -> SimulationResult:
    config = data.get("configuration")
    return SimulationResult(
        simulated_amount=_money(data["simulatedAmount"]),
        card_type=TransactionCardType(data["cardType"]),
        transaction_date=parse_iso_date(data["transactionDate"]),
        estimated_settlement_date=parse_iso_date(data.get("estimatedSettlementDate")),
        settlement_days=data.get("settlementDays"),
        gross_amount=_money(data["grossAmount"]),
        fees=_money(data["fees"]),
        net_amount=_money(data["netAmount"]),
        configuration=(
            SettlementConfiguration(
                settlement_days=int(config["settlementDays"]),
                settlement_day_type=SettlementDayType(config["settlementDayType"]),
                cutoff_time=config["cutoffTime"],
            )
            if config
            else None
        ),
    )


def parse_expected_cash(data: Dict[str, Any]) -> ExpectedCash:
    return ExpectedCash(
        expected_amount=_money(data.get("expectedAmount")),
        transaction_count=int(data.get("transactionCount", 0)),
        days_since_last_closeout=int(data.get("daysSinceLastCloseout", 0)),
        has_closeouts=bool(data.get("hasCloseouts", False)),
    )


def parse_closeout(item: Dict[str, Any]) -> CashCloseout:
    return CashCloseout(
        id=str(item["id"]),
        closed_at=parse_iso_datetime(item["createdAt"]),
        expected_amount=_money(item.get("expectedAmount")),
        actual_amount=_money(item["actualAmount"]),
        deposit_method=DepositMethod(item["depositMethod"]),
        bank_reference=item.get("bankReference"),
        notes=item.get("notes"),
    )


def parse_closeout_history(data: Any, page: int, page_size: int) -> CloseoutHistoryPage:
    """History comes as {"items", "total", "page", "pageSize"} or as a bare list"""
    if isinstance(data, list):
        items = [parse_closeout(item) for item in data]
        return CloseoutHistoryPage(items=items, total=len(items), page=page, page_size=page_size)
    items = [parse_closeout(item) for item in data["items"]]
    return CloseoutHistoryPage(
        items=items,
        total=int(data.get("total", len(items))),
        page=int(data.get("page", page)),
        page_size=int(data.get("pageSize", page_size)),
    )


def parse_incident(item: Dict[str, Any]) -> SettlementIncident:
    estimated = parse_iso_date(item["estimatedSettlementDate"])
    if estimated is None:
        raise ValueError("incident without estimatedSettlementDate")
    return SettlementIncident(
        id=str(item["id"]),
        processor_name=item.get("processorName") or "",
        card_type=item["cardType"],
        amount=_money(item["amount"]),
        estimated_settlement_date=estimated,
        status=IncidentStatus(str(item.get("status") or IncidentStatus.PENDING.value).lower()),
    )


def confirmation_payload(confirmation: IncidentConfirmation) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"settlementArrived": confirmation.settlement_arrived}
    if confirmation.actual_date is not None:
        payload["actualDate"] = format_instant(confirmation.actual_date)
    if confirmation.notes:
        payload["notes"] = confirmation.notes
    return payload


class BackendClient:
    """Client for the payments backend's venue dashboard API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.backend_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    def _venue_url(self, venue_id: str, path: str) -> str:
        return f"{self.base_url}/api/v1/dashboard/venues/{venue_id}/{path}"

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request and return the unwrapped JSON payload.

        Raises:
            BackendAPIError: On timeout, network or HTTP errors, or a non-JSON body
        """
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.request(method, url, params=params, json=json)
                response.raise_for_status()
                return _unwrap(response.json())

            except httpx.TimeoutException as e:
                raise BackendAPIError(f"Backend API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise BackendAPIError(_error_message(e.response), status_code=e.response.status_code) from e
            except httpx.RequestError as e:
                raise BackendAPIError(f"Backend API unreachable: {e}") from e
            except ValueError as e:
                raise BackendAPIError(f"Invalid JSON from backend: {e}") from e

    async def get_available_balance(self, venue_id: str) -> AvailableBalanceSummary:
        data = await self._request("GET", self._venue_url(venue_id, "available-balance"))
        try:
            return parse_summary(data)
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid balance summary from backend: {e}") from e

    async def get_balance_by_card_type(self, venue_id: str) -> List[CardTypeBreakdown]:
        data = await self._request("GET", self._venue_url(venue_id, "available-balance/by-card-type"))
        try:
            return [parse_breakdown(item) for item in data]
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid card type breakdown from backend: {e}") from e

    async def get_settlement_timeline(
        self,
        venue_id: str,
        include_past: bool = True,
        include_future: bool = True,
    ) -> List[TimelineEntry]:
        data = await self._request(
            "GET",
            self._venue_url(venue_id, "available-balance/timeline"),
            params={
                "includePast": str(include_past).lower(),
                "includeFuture": str(include_future).lower(),
            },
        )
        try:
            return [parse_timeline_entry(item) for item in data]
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid settlement timeline from backend: {e}") from e

    async def get_settlement_calendar(
        self,
        venue_id: str,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> List[SettlementCalendarEntry]:
        """Fetch the settlement calendar, by default for the next 30 days"""
        if start_date is None or end_date is None:
            start_date, end_date = calendar_horizon(
                today_in(settings.venue_timezone), settings.calendar_horizon_days
            )
        data = await self._request(
            "GET",
            self._venue_url(venue_id, "available-balance/settlement-calendar"),
            params={"startDate": start_date.isoformat(), "endDate": end_date.isoformat()},
        )
        try:
            return [parse_calendar_entry(item) for item in data]
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid settlement calendar from backend: {e}") from e

    async def simulate_transaction(self, venue_id: str, payload: Dict[str, Any]) -> SimulationResult:
        data = await self._request(
            "POST",
            self._venue_url(venue_id, "available-balance/simulate"),
            json=payload,
        )
        try:
            return parse_simulation(data)
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid simulation result from backend: {e}") from e

    async def get_expected_cash(self, venue_id: str) -> ExpectedCash:
        data = await self._request("GET", self._venue_url(venue_id, "cash-closeouts/expected"))
        try:
            return parse_expected_cash(data)
        except (AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid expected cash data from backend: {e}") from e

    async def create_cash_closeout(self, venue_id: str, closeout: CashCloseoutRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "actualAmount": float(closeout.actual_amount),
            "depositMethod": closeout.deposit_method.value,
        }
        # Optional fields are omitted rather than sent empty
        if closeout.bank_reference:
            payload["bankReference"] = closeout.bank_reference
        if closeout.notes:
            payload["notes"] = closeout.notes
        return await self._request("POST", self._venue_url(venue_id, "cash-closeouts"), json=payload)

    async def get_cash_closeout_history(
        self,
        venue_id: str,
        page: int = 1,
        page_size: int = 10,
    ) -> CloseoutHistoryPage:
        data = await self._request(
            "GET",
            self._venue_url(venue_id, "cash-closeouts"),
            params={"page": page, "pageSize": page_size},
        )
        try:
            return parse_closeout_history(data, page, page_size)
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid cash closeout history from backend: {e}") from e

    async def get_settlement_incidents(
        self,
        venue_id: str,
        status: IncidentStatus | None = None,
    ) -> List[SettlementIncident]:
        params = {"status": status.value} if status else None
        data = await self._request("GET", self._venue_url(venue_id, "settlement-incidents"), params=params)
        try:
            return [parse_incident(item) for item in data]
        except (KeyError, AttributeError, ValueError, TypeError, ArithmeticError) as e:
            raise BackendAPIError(f"Invalid settlement incidents from backend: {e}") from e

    async def confirm_settlement_incident(
        self,
        venue_id: str,
        incident_id: str,
        confirmation: IncidentConfirmation,
    ) -> Dict[str, Any]:
        return await self._request(
            "POST",
            self._venue_url(venue_id, f"settlement-incidents/{incident_id}/confirm"),
            json=confirmation_payload(confirmation),
        )

    async def bulk_confirm_settlement_incidents(
        self,
        venue_id: str,
        incident_ids: List[str],
        confirmation: IncidentConfirmation,
    ) -> int:
        """Confirm several incidents at once; returns how many the backend confirmed"""
        data = await self._request(
            "POST",
            self._venue_url(venue_id, "settlement-incidents/bulk-confirm"),
            json={"incidentIds": incident_ids, **confirmation_payload(confirmation)},
        )
        try:
            return int(data["confirmed"])
        except (KeyError, AttributeError, ValueError, TypeError) as e:
            raise BackendAPIError(f"Invalid bulk confirm result from backend: {e}") from e

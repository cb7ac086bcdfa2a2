"""Balance aggregator - loads the four settlement datasets as one unit

Summary, card type breakdown, timeline and calendar are fetched
concurrently and replaced together. If any fetch fails the aggregator is
in the error state and exposes none of the datasets.
"""

import asyncio
import logging
from typing import List, Optional, Protocol
from balance_gateway.domain.exceptions import BackendAPIError, BalanceLoadError
from balance_gateway.domain.filters import build_balance_view
from balance_gateway.domain.invariants import breakdown_violations, calendar_violations
from balance_gateway.domain.models import (
    AvailableBalanceSummary,
    BalanceSnapshot,
    BalanceView,
    CardTypeBreakdown,
    CloseoutHistoryPage,
    ExpectedCash,
    IncidentStatus,
    SettlementCalendarEntry,
    SettlementIncident,
    TabFilter,
    TimelineEntry,
)
from balance_gateway.infrastructure.cache import ResponseCache
from balance_gateway.infrastructure.observability.metrics import refresh_failures_counter

logger = logging.getLogger(__name__)

BALANCE_CACHE_KEY = "available-balance"
SNAPSHOT_CACHE_NAME = "snapshot"
CLOSEOUT_CACHE_KEY = "cash-closeout"
INCIDENTS_CACHE_KEY = "settlement-incidents"
GENERIC_LOAD_ERROR = "Unexpected error while loading balance data"


class BalanceBackend(Protocol):
    async def get_available_balance(self, venue_id: str) -> AvailableBalanceSummary: ...

    async def get_balance_by_card_type(self, venue_id: str) -> List[CardTypeBreakdown]: ...

    async def get_settlement_timeline(
        self, venue_id: str, include_past: bool = True, include_future: bool = True
    ) -> List[TimelineEntry]: ...

    async def get_settlement_calendar(self, venue_id: str) -> List[SettlementCalendarEntry]: ...

    async def get_expected_cash(self, venue_id: str) -> ExpectedCash: ...

    async def get_cash_closeout_history(
        self, venue_id: str, page: int = 1, page_size: int = 10
    ) -> CloseoutHistoryPage: ...

    async def get_settlement_incidents(
        self, venue_id: str, status: IncidentStatus | None = None
    ) -> List[SettlementIncident]: ...


class BalanceAggregator:
    """
    Owns the balance datasets of one venue for the lifetime of a view.

    dispose() marks the view as gone: fetches still in flight complete
    normally but never write their results back.
    """

    def __init__(self, client: BalanceBackend, venue_id: str, cache: ResponseCache | None = None):
        self.client = client
        self.venue_id = venue_id
        self.cache = cache
        self.snapshot: Optional[BalanceSnapshot] = None
        self.error: Optional[str] = None
        self.loading = False
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def dispose(self) -> None:
        self._disposed = True

    async def _fetch_all(self, use_cache: bool = True) -> BalanceSnapshot:
        """
        Join all four fetches; the first failure fails the whole load.

        The snapshot is cached as one entry and only once every fetch
        succeeded, so a retry never mixes datasets fetched at different times.
        """
        key = (BALANCE_CACHE_KEY, self.venue_id, SNAPSHOT_CACHE_NAME)
        if self.cache is not None and use_cache:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        summary, breakdown, timeline, calendar = await asyncio.gather(
            self.client.get_available_balance(self.venue_id),
            self.client.get_balance_by_card_type(self.venue_id),
            self.client.get_settlement_timeline(self.venue_id, include_past=True, include_future=True),
            self.client.get_settlement_calendar(self.venue_id),
        )
        snapshot = BalanceSnapshot(summary=summary, breakdown=breakdown, timeline=timeline, calendar=calendar)
        self._check_invariants(snapshot)

        if self.cache is not None:
            self.cache.set(key, snapshot)
        return snapshot

    def _check_invariants(self, snapshot: BalanceSnapshot) -> None:
        for entry in snapshot.breakdown:
            problems = breakdown_violations(entry)
            if problems:
                logger.warning(
                    "Inconsistent card type breakdown from backend",
                    extra={"venue_id": self.venue_id, "card_type": entry.card_type.value, "problems": problems},
                )
        for day in snapshot.calendar:
            problems = calendar_violations(day)
            if problems:
                logger.warning(
                    "Inconsistent settlement calendar day from backend",
                    extra={
                        "venue_id": self.venue_id,
                        "settlement_date": day.settlement_date.isoformat(),
                        "problems": problems,
                    },
                )

    async def load(self) -> Optional[BalanceSnapshot]:
        """
        Load all balance datasets.

        Returns None without touching state when the aggregator was disposed
        while the fetches were running.

        Raises:
            BalanceLoadError: No venue, or any of the four fetches failed
        """
        if not self.venue_id:
            self.error = "No venue selected"
            raise BalanceLoadError(self.error)

        self.loading = True
        self.error = None
        try:
            snapshot = await self._fetch_all()
        except BackendAPIError as e:
            if self._disposed:
                return None
            self.snapshot = None
            self.error = e.message or GENERIC_LOAD_ERROR
            self.loading = False
            raise BalanceLoadError(self.error) from e
        except Exception as e:
            logger.exception("Unexpected error while loading balance data", extra={"venue_id": self.venue_id})
            if self._disposed:
                return None
            self.snapshot = None
            self.error = GENERIC_LOAD_ERROR
            self.loading = False
            raise BalanceLoadError(self.error) from e

        if self._disposed:
            return None
        self.snapshot = snapshot
        self.loading = False
        return snapshot

    def view(self, tab: TabFilter) -> BalanceView:
        """Derive the page content for a tab from the loaded snapshot"""
        if self.error is not None:
            raise BalanceLoadError(self.error)
        if self.snapshot is None:
            raise BalanceLoadError("Balance data not loaded")
        return build_balance_view(self.snapshot, tab)

    async def load_expected_cash(self) -> ExpectedCash:
        if self.cache is None:
            return await self.client.get_expected_cash(self.venue_id)
        return await self.cache.get_or_fetch(
            (CLOSEOUT_CACHE_KEY, self.venue_id, "expected"),
            lambda: self.client.get_expected_cash(self.venue_id),
        )

    async def load_closeout_history(self, page: int = 1, page_size: int = 10) -> CloseoutHistoryPage:
        if self.cache is None:
            return await self.client.get_cash_closeout_history(self.venue_id, page=page, page_size=page_size)
        return await self.cache.get_or_fetch(
            (CLOSEOUT_CACHE_KEY, self.venue_id, "history", page, page_size),
            lambda: self.client.get_cash_closeout_history(self.venue_id, page=page, page_size=page_size),
        )

    async def load_pending_incidents(self) -> List[SettlementIncident]:
        if self.cache is None:
            return await self.client.get_settlement_incidents(self.venue_id, status=IncidentStatus.PENDING)
        return await self.cache.get_or_fetch(
            (INCIDENTS_CACHE_KEY, self.venue_id, IncidentStatus.PENDING.value),
            lambda: self.client.get_settlement_incidents(self.venue_id, status=IncidentStatus.PENDING),
        )

    async def _refresh(self, reason: str, *prefixes: str) -> bool:
        """
        Invalidate the given cache prefixes for this venue and refetch the
        balance datasets.

        The mutation that triggered the refresh already succeeded, so a
        failed refetch is only logged; the previous snapshot stays visible.
        Returns whether the refresh replaced the snapshot.
        """
        if self.cache is not None:
            for prefix in prefixes:
                self.cache.invalidate((prefix, self.venue_id))

        try:
            snapshot = await self._fetch_all(use_cache=False)
        except Exception as e:
            refresh_failures_counter.labels(reason=reason).inc()
            logger.warning(f"Balance refresh after {reason} failed: {e!r}", extra={"venue_id": self.venue_id})
            return False

        if self._disposed:
            return False
        self.snapshot = snapshot
        self.error = None
        return True

    async def refresh_after_closeout(self) -> bool:
        """Refetch everything a cash closeout affects"""
        return await self._refresh("closeout", BALANCE_CACHE_KEY, CLOSEOUT_CACHE_KEY)

    async def refresh_after_incident_confirm(self) -> bool:
        """Refetch balance data once a settlement incident was resolved"""
        return await self._refresh("incident_confirm", BALANCE_CACHE_KEY, INCIDENTS_CACHE_KEY)

    def invalidate_incidents(self) -> int:
        """Drop cached incident lists without touching balance data"""
        if self.cache is None:
            return 0
        return self.cache.invalidate((INCIDENTS_CACHE_KEY, self.venue_id))

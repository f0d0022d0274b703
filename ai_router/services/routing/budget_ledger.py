"""
Budget Ledger - Monthly spend tracking with serialized reservations

The ledger is the single source of truth for spend against the budget
ceiling. Affordability checks, reservations, commits and releases all run
under one asyncio lock, so concurrent dispatches cannot both pass a check
against the same stale figure.

Funds move in two steps: a dispatch reserves the estimated cost while it
selects a model, then commits the reservation on success or releases it on
failure. ``available`` (remaining minus reservations) is the figure every
affordability check uses.
"""

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from ai_router.core.exceptions import ConfigurationError
from ai_router.core.metrics import record_spend
from .base_router import ProviderType
from .catalog import ModelDescriptor

logger = logging.getLogger(__name__)

_reservation_ids = itertools.count(1)


def next_month_start(moment: datetime) -> datetime:
    """First instant of the calendar month following ``moment``."""
    if moment.month == 12:
        return moment.replace(year=moment.year + 1, month=1, day=1,
                              hour=0, minute=0, second=0, microsecond=0)
    return moment.replace(month=moment.month + 1, day=1,
                          hour=0, minute=0, second=0, microsecond=0)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class BudgetSnapshot:
    """Read-only copy of the ledger state."""
    total_budget: float
    spent: float
    remaining: float
    reserved: float
    available: float
    per_provider_spend: Dict[str, float]
    period_start: datetime
    next_reset: datetime

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_budget": self.total_budget,
            "spent": round(self.spent, 6),
            "remaining": round(self.remaining, 6),
            "reserved": round(self.reserved, 6),
            "available": round(self.available, 6),
            "per_provider_spend": {k: round(v, 6) for k, v in self.per_provider_spend.items()},
            "period_start": self.period_start.isoformat(),
            "next_reset": self.next_reset.isoformat(),
        }


@dataclass
class Reservation:
    """Funds held for one in-flight provider call."""
    descriptor: ModelDescriptor
    amount: float
    id: int = field(default_factory=lambda: next(_reservation_ids))
    settled: bool = False

    @property
    def provider(self) -> ProviderType:
        return self.descriptor.provider


class BudgetLedger:
    """
    Process-lifetime spend ledger for one billing period.

    Invariant: ``spent + remaining == total_budget`` and ``spent`` never
    exceeds ``total_budget``.
    """

    def __init__(self, total_budget: float, clock: Optional[Callable[[], datetime]] = None):
        """
        Initialize ledger.

        Args:
            total_budget: Spend ceiling for each monthly period (USD)
            clock: Returns the current UTC time (injectable for tests)
        """
        if total_budget < 0:
            raise ConfigurationError(
                "Budget must be non-negative",
                details={"total_budget": total_budget}
            )

        self._total_budget = float(total_budget)
        self._clock = clock or _utcnow
        self._lock = asyncio.Lock()

        self._spent = 0.0
        self._reserved = 0.0
        self._per_provider_spend: Dict[ProviderType, float] = {p: 0.0 for p in ProviderType}

        self._period_start = self._clock()
        self._next_reset = next_month_start(self._period_start)

    # Reporting reads. Consistency-sensitive reads happen inside reserve().

    @property
    def total_budget(self) -> float:
        return self._total_budget

    @property
    def spent(self) -> float:
        return self._spent

    @property
    def remaining(self) -> float:
        return max(0.0, self._total_budget - self._spent)

    @property
    def reserved(self) -> float:
        return self._reserved

    @property
    def available(self) -> float:
        return max(0.0, self.remaining - self._reserved)

    async def reserve(
        self,
        choose: Callable[[float], Optional[ModelDescriptor]],
        max_tokens: int
    ) -> Optional[Reservation]:
        """
        Pick a model against the current available funds and hold its cost.

        ``choose`` runs while the lock is held and receives the available
        amount. It may raise (e.g. NoAffordableModelError) or return None
        when nothing fits.

        Returns:
            Reservation for the chosen model, or None
        """
        async with self._lock:
            self._maybe_rollover()
            available = self.available
            descriptor = choose(available)
            if descriptor is None:
                return None

            amount = descriptor.estimated_cost(max_tokens)
            if amount > available:
                # Selector contract: only free models bypass affordability
                raise ConfigurationError(
                    f"Model {descriptor.name} chosen beyond available budget",
                    details={"amount": amount, "available": available}
                )

            self._reserved += amount
            reservation = Reservation(descriptor=descriptor, amount=amount)
            logger.debug(
                f"Reserved ${amount:.6f} for {descriptor.name} "
                f"(reservation {reservation.id}, available ${self.available:.6f})"
            )
            return reservation

    async def commit(self, reservation: Reservation) -> float:
        """
        Charge a reservation to the ledger.

        Returns:
            Remaining budget after the charge
        """
        async with self._lock:
            self._maybe_rollover()
            if reservation.settled:
                return self.remaining

            reservation.settled = True
            self._reserved = max(0.0, self._reserved - reservation.amount)
            self._spent += reservation.amount
            self._per_provider_spend[reservation.provider] += reservation.amount
            remaining = self.remaining

        record_spend(reservation.provider.value, reservation.amount, remaining)
        logger.info(
            f"Charged ${reservation.amount:.6f} to {reservation.provider.value}",
            extra={
                "model": reservation.descriptor.name,
                "cost_usd": reservation.amount,
                "budget_remaining": remaining
            }
        )
        return remaining

    async def release(self, reservation: Reservation) -> None:
        """Return reserved funds without charging them."""
        async with self._lock:
            if reservation.settled:
                return
            reservation.settled = True
            self._reserved = max(0.0, self._reserved - reservation.amount)
        logger.debug(f"Released reservation {reservation.id} (${reservation.amount:.6f})")

    def release_nowait(self, reservation: Reservation) -> None:
        """
        Release without awaiting the lock.

        Used on cancellation, where awaiting is not possible. Safe because
        the event loop runs one task at a time and nothing here suspends.
        """
        if reservation.settled:
            return
        reservation.settled = True
        self._reserved = max(0.0, self._reserved - reservation.amount)

    async def reset(self) -> None:
        """Start a new billing period now."""
        async with self._lock:
            self._start_period(self._clock())

    def snapshot(self) -> BudgetSnapshot:
        """Copy of the current state, with any due rollover applied."""
        self._maybe_rollover()
        return BudgetSnapshot(
            total_budget=self._total_budget,
            spent=self._spent,
            remaining=self.remaining,
            reserved=self._reserved,
            available=self.available,
            per_provider_spend={p.value: v for p, v in self._per_provider_spend.items()},
            period_start=self._period_start,
            next_reset=self._next_reset,
        )

    def _maybe_rollover(self) -> None:
        now = self._clock()
        if now >= self._next_reset:
            self._start_period(now)

    def _start_period(self, now: datetime) -> None:
        logger.info(
            f"Budget period rollover: spent ${self._spent:.4f} of ${self._total_budget:.2f}"
        )
        self._spent = 0.0
        self._per_provider_spend = {p: 0.0 for p in ProviderType}
        self._period_start = now
        self._next_reset = next_month_start(now)

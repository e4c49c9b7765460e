"""Spending experience on alternate levels.

The ledger owns the "check, price, debit, commit" sequence.  It never talks
to players directly; callers receive a :class:`RaiseOutcome` or
:class:`RaiseBatch` and decide how to persist and announce it.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Hashable, Optional, Protocol

from .curves import MAX_CUMULATIVE_LEVELS, CostCurve
from .levels import LevelStore, LevelStoreError
from .models.tracks import QualificationTier, Track, TrackCategory, find_track
from .utils import format_number, pluralize

log = logging.getLogger(__name__)


class CurrencyLedger(Protocol):
    def get_balance(self, actor: Any) -> int: ...

    def try_spend(self, actor: Any, amount: int) -> bool: ...

    def refund(self, actor: Any, amount: int) -> None: ...


class QualificationLookup(Protocol):
    def get_tier(self, actor: Any, track: Track) -> Optional[QualificationTier]: ...


class RaiseFailure(str, Enum):
    UNKNOWN_TRACK = "unknown_track"
    NOT_QUALIFIED = "not_qualified"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    DEBIT_FAILED = "debit_failed"
    STORE_WRITE_FAILED = "store_write_failed"


@dataclass(slots=True)
class RaiseOutcome:
    """Result of a single raise attempt."""

    requested: str
    track: Track | None
    success: bool
    level: int = 0
    cost: int = 0
    failure: RaiseFailure | None = None
    shortfall: int = 0

    @property
    def new_level(self) -> int:
        return self.level

    @property
    def message(self) -> str:
        name = self.track.name if self.track else self.requested
        if self.success:
            assert self.track is not None
            label = self.track.category.value
            return (
                f"Your base {name} {label} is now {format_number(self.level)}, "
                f"costing {format_number(self.cost)}!"
            )
        if self.failure is RaiseFailure.UNKNOWN_TRACK:
            return f"Failed to get the cost for {name}."
        if self.failure is RaiseFailure.NOT_QUALIFIED:
            return f"You are not trained enough in {name} to raise it."
        if self.failure is RaiseFailure.INSUFFICIENT_FUNDS:
            return (
                f"Insufficient XP to raise {name}, "
                f"{format_number(self.shortfall)} needed."
            )
        if self.failure is RaiseFailure.DEBIT_FAILED:
            return f"Failed to spend {format_number(self.cost)} to raise {name}."
        return f"Failed to record the new level of {name}; nothing was spent."


@dataclass(slots=True)
class RaiseBatch:
    """Result of raising a track up to ``requested`` times."""

    requested: int
    track: Track | None
    raised: int = 0
    total_cost: int = 0
    level: int = 0
    failure: RaiseOutcome | None = None

    @property
    def success(self) -> bool:
        return self.raised > 0

    @property
    def message(self) -> str:
        if self.track is None:
            return self.failure.message if self.failure else "Nothing to raise."
        if self.raised == 0:
            if self.failure is not None:
                return self.failure.message
            return f"{self.track.name} was not raised."
        summary = (
            f"Raised {self.track.name} by {pluralize(self.raised, 'level')} "
            f"to {format_number(self.level)}, costing {format_number(self.total_cost)} XP."
        )
        if self.failure is not None:
            summary = f"{summary} Stopped early: {self.failure.message}"
        return summary


@dataclass(slots=True)
class Quote:
    """Read-only price preview for ``count`` more levels."""

    track: Track | None
    level: int
    count: int
    total_cost: int
    balance: int
    affordable: int
    tier: QualificationTier | None = None
    failure: RaiseFailure | None = None

    @property
    def eligible(self) -> bool:
        return self.failure is None


class LevelingLedger:
    """Prices and commits alternate level purchases for actors."""

    def __init__(
        self,
        curve: CostCurve,
        levels: LevelStore,
        currency: CurrencyLedger,
        qualifications: QualificationLookup,
        *,
        actor_key: Callable[[Any], Hashable] = id,
    ) -> None:
        self.curve = curve
        self.levels = levels
        self.currency = currency
        self.qualifications = qualifications
        self._actor_key = actor_key
        # Entries vanish once no raise holds the actor's lock.
        self._locks: weakref.WeakValueDictionary[Hashable, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    def _lock_for(self, actor: Any) -> threading.Lock:
        key = self._actor_key(actor)
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def resolve(
        self, track: Track | str, category: TrackCategory | str | None = None
    ) -> Track | None:
        return find_track(track, category)

    def eligibility(
        self, actor: Any, track: Track
    ) -> tuple[QualificationTier | None, RaiseFailure | None]:
        """Return the tier that prices ``track`` or the reason it is closed."""

        if track.category is TrackCategory.SKILL:
            tier = self.qualifications.get_tier(actor, track)
            if tier is None:
                return None, RaiseFailure.UNKNOWN_TRACK
            if not tier.at_least(QualificationTier.TRAINED):
                return tier, RaiseFailure.NOT_QUALIFIED
            return tier, None
        if track.is_pool_vital:
            return None, RaiseFailure.NOT_QUALIFIED
        return None, None

    def next_cost(self, actor: Any, track: Track) -> int | None:
        tier, failure = self.eligibility(actor, track)
        if failure is not None:
            return None
        return self.curve.cost_of(track.category, tier, self.levels.get(actor, track))

    def raise_once(
        self,
        actor: Any,
        track: Track | str,
        category: TrackCategory | str | None = None,
    ) -> RaiseOutcome:
        requested = str(track)
        resolved = self.resolve(track, category)
        if resolved is None:
            log.debug("Rejected raise of unknown track %r", requested)
            return RaiseOutcome(requested, None, False, failure=RaiseFailure.UNKNOWN_TRACK)

        tier, failure = self.eligibility(actor, resolved)
        if failure is not None:
            log.debug("Rejected raise of %s: %s", resolved.qualified_key, failure.value)
            return RaiseOutcome(
                requested,
                resolved,
                False,
                level=self.levels.get(actor, resolved),
                failure=failure,
            )

        with self._lock_for(actor):
            level = self.levels.get(actor, resolved)
            cost = self.curve.cost_of(resolved.category, tier, level)
            balance = self.currency.get_balance(actor)
            if cost > balance:
                log.debug("Raise of %s short by %d", resolved.qualified_key, cost - balance)
                return RaiseOutcome(
                    requested,
                    resolved,
                    False,
                    level=level,
                    cost=cost,
                    failure=RaiseFailure.INSUFFICIENT_FUNDS,
                    shortfall=cost - balance,
                )

            try:
                spent = self.currency.try_spend(actor, cost)
            except (OSError, RuntimeError, ValueError) as exc:
                log.warning("Currency debit of %d for %s raised: %s", cost, resolved.qualified_key, exc)
                spent = False
            if not spent:
                return RaiseOutcome(
                    requested,
                    resolved,
                    False,
                    level=level,
                    cost=cost,
                    failure=RaiseFailure.DEBIT_FAILED,
                )

            try:
                self.levels.set(actor, resolved, level + 1)
            except LevelStoreError as exc:
                log.error("Rolling back %d spent on %s: %s", cost, resolved.qualified_key, exc)
                self.currency.refund(actor, cost)
                return RaiseOutcome(
                    requested,
                    resolved,
                    False,
                    level=level,
                    cost=cost,
                    failure=RaiseFailure.STORE_WRITE_FAILED,
                )

        log.info("Raised %s to %d for %d", resolved.qualified_key, level + 1, cost)
        return RaiseOutcome(requested, resolved, True, level=level + 1, cost=cost)

    def raise_by(
        self,
        actor: Any,
        track: Track | str,
        count: int,
        category: TrackCategory | str | None = None,
    ) -> RaiseBatch:
        """Raise ``track`` up to ``count`` times, stopping at the first failure.

        Levels bought before the failure stay bought.
        """

        resolved = self.resolve(track, category)
        batch = RaiseBatch(requested=max(0, int(count)), track=resolved)
        if resolved is not None:
            batch.level = self.levels.get(actor, resolved)
        for _ in range(batch.requested):
            outcome = self.raise_once(actor, resolved or track, category)
            if not outcome.success:
                batch.failure = outcome
                break
            batch.raised += 1
            batch.total_cost += outcome.cost
            batch.level = outcome.level
        return batch

    def quote(
        self,
        actor: Any,
        track: Track | str,
        count: int = 1,
        category: TrackCategory | str | None = None,
    ) -> Quote:
        resolved = self.resolve(track, category)
        count = min(max(0, int(count)), MAX_CUMULATIVE_LEVELS)
        balance = self.currency.get_balance(actor)
        if resolved is None:
            return Quote(None, 0, count, 0, balance, 0, failure=RaiseFailure.UNKNOWN_TRACK)
        level = self.levels.get(actor, resolved)
        tier, failure = self.eligibility(actor, resolved)
        if failure is not None:
            return Quote(resolved, level, count, 0, balance, 0, tier=tier, failure=failure)
        total = self.curve.cumulative_cost(resolved.category, tier, level, count)
        affordable = self.curve.affordable_levels(resolved.category, tier, level, balance)
        return Quote(resolved, level, count, total, balance, affordable, tier=tier)


__all__ = [
    "CurrencyLedger",
    "LevelingLedger",
    "QualificationLookup",
    "Quote",
    "RaiseBatch",
    "RaiseFailure",
    "RaiseOutcome",
]

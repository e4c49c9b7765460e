"""Progressive cost curves for alternate levels."""

from __future__ import annotations

from .models.tracks import QualificationTier, TrackCategory
from .settings import CurveSettings

DEFAULT_SETTINGS = CurveSettings()

# Guard for affordable_levels when a curve is flat at zero.
MAX_AFFORDABLE_SCAN = 100_000
# Longest run of levels cumulative_cost will price in one call.
MAX_CUMULATIVE_LEVELS = MAX_AFFORDABLE_SCAN


def cost_of(
    category: TrackCategory,
    tier: QualificationTier | None,
    current_level: int,
    settings: CurveSettings = DEFAULT_SETTINGS,
) -> int:
    """Return the price of raising a track from ``current_level`` by one.

    The price is computed in floating point and truncated toward zero, so the
    first level of every curve (``0 ** e``) is free.
    """

    level = int(current_level)
    if level < 0:
        raise ValueError(f"Level cannot be negative: {current_level}")
    constants = settings.constants_for(TrackCategory.from_value(category), tier)
    return int(constants.multiplier * level**constants.exponent)


def cumulative_cost(
    category: TrackCategory,
    tier: QualificationTier | None,
    start_level: int,
    count: int,
    settings: CurveSettings = DEFAULT_SETTINGS,
) -> int:
    """Total price of the next ``count`` levels starting at ``start_level``.

    Raises :class:`ValueError` when ``count`` exceeds
    :data:`MAX_CUMULATIVE_LEVELS`.
    """

    count = int(count)
    if count <= 0:
        return 0
    if count > MAX_CUMULATIVE_LEVELS:
        raise ValueError(
            f"Cannot price more than {MAX_CUMULATIVE_LEVELS} levels at once: {count}"
        )
    start_level = int(start_level)
    return sum(
        cost_of(category, tier, level, settings)
        for level in range(start_level, start_level + count)
    )


def affordable_levels(
    category: TrackCategory,
    tier: QualificationTier | None,
    start_level: int,
    balance: int,
    settings: CurveSettings = DEFAULT_SETTINGS,
) -> int:
    """How many consecutive levels ``balance`` pays for from ``start_level``."""

    remaining = int(balance)
    level = int(start_level)
    bought = 0
    while bought < MAX_AFFORDABLE_SCAN:
        price = cost_of(category, tier, level, settings)
        if price > remaining:
            break
        remaining -= price
        level += 1
        bought += 1
    return bought


class CostCurve:
    """Binds the curve functions to one :class:`CurveSettings`."""

    def __init__(self, settings: CurveSettings | None = None) -> None:
        self.settings = settings or DEFAULT_SETTINGS

    def cost_of(
        self, category: TrackCategory, tier: QualificationTier | None, current_level: int
    ) -> int:
        return cost_of(category, tier, current_level, self.settings)

    def cumulative_cost(
        self,
        category: TrackCategory,
        tier: QualificationTier | None,
        start_level: int,
        count: int,
    ) -> int:
        return cumulative_cost(category, tier, start_level, count, self.settings)

    def affordable_levels(
        self,
        category: TrackCategory,
        tier: QualificationTier | None,
        start_level: int,
        balance: int,
    ) -> int:
        return affordable_levels(category, tier, start_level, balance, self.settings)


__all__ = [
    "CostCurve",
    "DEFAULT_SETTINGS",
    "MAX_AFFORDABLE_SCAN",
    "MAX_CUMULATIVE_LEVELS",
    "affordable_levels",
    "cost_of",
    "cumulative_cost",
]

"""Read-only views over an actor's alternate levels."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List

from .ledger import LevelingLedger
from .models.tracks import Track, TrackCategory, tracks_for
from .utils import format_number

COLUMN_WIDTH = 20


@dataclass(frozen=True, slots=True)
class LevelRow:
    track: Track
    level: int
    next_cost: int

    @property
    def name(self) -> str:
        return self.track.name


def list_tracks(
    ledger: LevelingLedger, actor: Any, category: TrackCategory | str
) -> List[LevelRow]:
    """Rows for every track in ``category`` the actor could currently raise.

    Tracks failing the eligibility check are left out.  Rows are ordered by
    track name.
    """

    rows: List[LevelRow] = []
    for track in sorted(tracks_for(category), key=lambda track: track.name):
        cost = ledger.next_cost(actor, track)
        if cost is None:
            continue
        rows.append(LevelRow(track=track, level=ledger.levels.get(actor, track), next_cost=cost))
    return rows


def render_levels(rows: Iterable[LevelRow], category: TrackCategory | str) -> str:
    label = TrackCategory.from_value(category).display_name
    lines = [f"{'Level':<{COLUMN_WIDTH}}{'Cost':<{COLUMN_WIDTH}}{label}"]
    for row in rows:
        lines.append(
            f"{format_number(row.level):<{COLUMN_WIDTH}}"
            f"{format_number(row.next_cost):<{COLUMN_WIDTH}}"
            f"{row.name}"
        )
    if len(lines) == 1:
        lines.append(f"No {label.lower()}s can be raised right now.")
    return "\n".join(lines)


__all__ = ["COLUMN_WIDTH", "LevelRow", "list_tracks", "render_levels"]

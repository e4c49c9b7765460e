"""Alternate level storage on top of a host's integer property map."""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Protocol

from .models.tracks import Track, TrackCategory, tracks_for

# Host-defined integer properties stay well below this base.
ALT_LEVEL_KEY_BASE = 10_000
ALT_LEVEL_RANGE_SIZE = 100

CATEGORY_KEY_OFFSETS: Mapping[TrackCategory, int] = MappingProxyType(
    {
        TrackCategory.SKILL: 0,
        TrackCategory.ATTRIBUTE: ALT_LEVEL_RANGE_SIZE,
        TrackCategory.VITAL: 2 * ALT_LEVEL_RANGE_SIZE,
    }
)


class PropertyWriteError(RuntimeError):
    """Raised by a property store that could not persist a value."""


class LevelStoreError(RuntimeError):
    """Raised when an alternate level could not be written."""


class PropertyStore(Protocol):
    def get_property(self, actor: Any, key: int) -> Optional[int]: ...

    def set_property(self, actor: Any, key: int, value: int) -> None: ...


def alt_level_key(track: Track) -> int:
    """Reserved property key holding the alternate level of ``track``."""

    if not 0 < track.index < ALT_LEVEL_RANGE_SIZE:
        raise ValueError(f"Track index out of reserved range: {track!r}")
    return ALT_LEVEL_KEY_BASE + CATEGORY_KEY_OFFSETS[track.category] + track.index


def is_alt_level_key(key: int) -> bool:
    span = ALT_LEVEL_RANGE_SIZE * len(CATEGORY_KEY_OFFSETS)
    return ALT_LEVEL_KEY_BASE <= int(key) < ALT_LEVEL_KEY_BASE + span


class LevelStore:
    """Reads and writes alternate levels through a :class:`PropertyStore`."""

    def __init__(self, properties: PropertyStore) -> None:
        self._properties = properties

    @staticmethod
    def key_for(track: Track) -> int:
        return alt_level_key(track)

    def get(self, actor: Any, track: Track) -> int:
        value = self._properties.get_property(actor, self.key_for(track))
        if value is None:
            return 0
        return max(0, int(value))

    def set(self, actor: Any, track: Track, level: int) -> None:
        if level < 0:
            raise ValueError(f"Alternate level cannot be negative: {level}")
        try:
            self._properties.set_property(actor, self.key_for(track), int(level))
        except (OSError, PropertyWriteError) as exc:
            raise LevelStoreError(f"Failed to store {track.qualified_key}: {exc}") from exc

    def levels(self, actor: Any, category: TrackCategory) -> Dict[Track, int]:
        """Snapshot of every alternate level in ``category``."""

        return {track: self.get(actor, track) for track in tracks_for(category)}


__all__ = [
    "ALT_LEVEL_KEY_BASE",
    "ALT_LEVEL_RANGE_SIZE",
    "CATEGORY_KEY_OFFSETS",
    "LevelStore",
    "LevelStoreError",
    "PropertyStore",
    "PropertyWriteError",
    "alt_level_key",
    "is_alt_level_key",
]

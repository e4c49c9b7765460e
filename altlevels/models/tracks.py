"""Track catalogue: the named skills, attributes and vitals that can be levelled."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional, Tuple


class TrackCategory(str, Enum):
    """Enumerates the kinds of track an actor can buy levels in."""

    SKILL = "skill"
    ATTRIBUTE = "attribute"
    VITAL = "vital"

    @property
    def display_name(self) -> str:
        return self.value.title()

    @classmethod
    def from_value(cls, value: "TrackCategory | str") -> "TrackCategory":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized.endswith("s"):
            normalized = normalized[:-1]
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown track category: {value}") from None


class QualificationTier(str, Enum):
    """How far an actor has committed to a skill."""

    UNQUALIFIED = "unqualified"
    TRAINED = "trained"
    SPECIALIZED = "specialized"

    @property
    def order_index(self) -> int:
        order = {
            QualificationTier.UNQUALIFIED: 0,
            QualificationTier.TRAINED: 1,
            QualificationTier.SPECIALIZED: 2,
        }
        return order[self]

    @property
    def display_name(self) -> str:
        return self.value.title()

    def at_least(self, other: "QualificationTier") -> bool:
        return self.order_index >= other.order_index

    @classmethod
    def from_value(cls, value: "QualificationTier | str") -> "QualificationTier":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        aliases = {"untrained": "unqualified", "specialised": "specialized"}
        normalized = aliases.get(normalized, normalized)
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Unknown qualification tier: {value}") from None


_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    return _SLUG_RE.sub("_", str(name).strip().lower()).strip("_")


def _lookup_token(name: str) -> str:
    return _SLUG_RE.sub("", str(name).strip().lower())


@dataclass(frozen=True, slots=True)
class Track:
    """A single levelable track within a category."""

    category: TrackCategory
    name: str
    index: int

    @property
    def key(self) -> str:
        return slugify(self.name)

    @property
    def qualified_key(self) -> str:
        return f"{self.category.value}:{self.key}"

    @property
    def is_pool_vital(self) -> bool:
        """Vitals that track a current pool rather than its maximum."""

        return self.category is TrackCategory.VITAL and not self.name.startswith("Max ")

    def __str__(self) -> str:
        return self.name


SKILL_NAMES: Tuple[str, ...] = (
    "Axe",
    "Bow",
    "Crossbow",
    "Dagger",
    "Mace",
    "Melee Defense",
    "Missile Defense",
    "Sling",
    "Spear",
    "Staff",
    "Sword",
    "Thrown Weapon",
    "Unarmed Combat",
    "Arcane Lore",
    "Magic Defense",
    "Mana Conversion",
    "Spellcraft",
    "Item Tinkering",
    "Assess Person",
    "Deception",
    "Healing",
    "Jump",
    "Lockpick",
    "Run",
    "Awareness",
    "Arms and Armor Repair",
    "Assess Creature",
    "Weapon Tinkering",
    "Armor Tinkering",
    "Magic Item Tinkering",
    "Creature Enchantment",
    "Item Enchantment",
    "Life Magic",
    "War Magic",
    "Leadership",
    "Loyalty",
    "Fletching",
    "Alchemy",
    "Cooking",
    "Salvaging",
    "Two Handed Combat",
    "Gearcraft",
    "Void Magic",
    "Heavy Weapons",
    "Light Weapons",
    "Finesse Weapons",
    "Missile Weapons",
    "Shield",
    "Dual Wield",
    "Recklessness",
    "Sneak Attack",
    "Dirty Fighting",
    "Challenge",
    "Summoning",
)

ATTRIBUTE_NAMES: Tuple[str, ...] = (
    "Strength",
    "Endurance",
    "Quickness",
    "Coordination",
    "Focus",
    "Self",
)

VITAL_NAMES: Tuple[str, ...] = (
    "Max Health",
    "Health",
    "Max Stamina",
    "Stamina",
    "Max Mana",
    "Mana",
)


def _build_catalogue() -> Mapping[TrackCategory, Tuple[Track, ...]]:
    sources = {
        TrackCategory.SKILL: SKILL_NAMES,
        TrackCategory.ATTRIBUTE: ATTRIBUTE_NAMES,
        TrackCategory.VITAL: VITAL_NAMES,
    }
    catalogue: Dict[TrackCategory, Tuple[Track, ...]] = {}
    for category, names in sources.items():
        # Indices start at 1; 0 is the host's "undefined" slot.
        catalogue[category] = tuple(
            Track(category=category, name=name, index=position)
            for position, name in enumerate(names, start=1)
        )
    return MappingProxyType(catalogue)


TRACKS: Mapping[TrackCategory, Tuple[Track, ...]] = _build_catalogue()

_TRACKS_BY_TOKEN: Mapping[Tuple[TrackCategory, str], Track] = MappingProxyType(
    {
        (track.category, _lookup_token(track.name)): track
        for tracks in TRACKS.values()
        for track in tracks
    }
)


def tracks_for(category: TrackCategory | str) -> Tuple[Track, ...]:
    return TRACKS[TrackCategory.from_value(category)]


def iter_tracks() -> Iterator[Track]:
    for category in TrackCategory:
        yield from TRACKS[category]


def find_track(
    name: "Track | str", category: TrackCategory | str | None = None
) -> Optional[Track]:
    """Resolve ``name`` to a catalogue track.

    Matching ignores case, spaces, hyphens and underscores. Without a
    ``category`` the categories are searched in declaration order, and a
    ``"<category>:<name>"`` prefix selects one explicitly.
    """

    if isinstance(name, Track):
        return name
    text = str(name).strip()
    try:
        if category is not None:
            category = TrackCategory.from_value(category)
        if ":" in text:
            prefix, _, text = text.partition(":")
            prefixed = TrackCategory.from_value(prefix)
            if category is not None and prefixed is not category:
                return None
            category = prefixed
    except ValueError:
        return None
    token = _lookup_token(text)
    if not token:
        return None
    if category is not None:
        return _TRACKS_BY_TOKEN.get((category, token))
    for candidate in TrackCategory:
        track = _TRACKS_BY_TOKEN.get((candidate, token))
        if track is not None:
            return track
    return None


__all__ = [
    "ATTRIBUTE_NAMES",
    "QualificationTier",
    "SKILL_NAMES",
    "TRACKS",
    "Track",
    "TrackCategory",
    "VITAL_NAMES",
    "find_track",
    "iter_tracks",
    "slugify",
    "tracks_for",
]

"""Character records: the actors that spend experience on alternate levels."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, Iterable, Mapping, Optional

from ._validation import (
    FieldSpec,
    MappingSpec,
    ModelValidator,
    is_int_like,
    is_non_empty_str,
    validate_dataclass_payload,
)
from .tracks import (
    SKILL_NAMES,
    QualificationTier,
    Track,
    TrackCategory,
    find_track,
    slugify,
)

DEFAULT_TRAINED_SKILLS: tuple[str, ...] = (
    "Arcane Lore",
    "Jump",
    "Loyalty",
    "Magic Defense",
    "Melee Defense",
    "Missile Defense",
    "Run",
)


def default_skill_tiers(
    trained: Iterable[str] = DEFAULT_TRAINED_SKILLS,
) -> Dict[str, str]:
    trained_keys = {slugify(name) for name in trained}
    return {
        slugify(name): (
            QualificationTier.TRAINED.value
            if slugify(name) in trained_keys
            else QualificationTier.UNQUALIFIED.value
        )
        for name in SKILL_NAMES
    }


def _coerce_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(slots=True)
class Character:
    """A registered member's progression record."""

    user_id: int
    name: str
    available_experience: int = 0
    total_experience: int = 0
    properties: Dict[int, int] = field(default_factory=dict)
    skill_tiers: Dict[str, str] = field(default_factory=default_skill_tiers)
    base_levels: Dict[str, int] = field(default_factory=dict)

    validator: ClassVar[type[ModelValidator]]

    def __post_init__(self) -> None:
        self.user_id = _coerce_int(self.user_id)
        self.available_experience = max(0, _coerce_int(self.available_experience))
        self.total_experience = max(
            self.available_experience, _coerce_int(self.total_experience)
        )
        # TOML tables only have string keys.
        self.properties = {
            int(key): _coerce_int(value) for key, value in dict(self.properties).items()
        }
        tiers: Dict[str, str] = {}
        for key, value in dict(self.skill_tiers).items():
            try:
                tiers[slugify(key)] = QualificationTier.from_value(value).value
            except ValueError:
                continue
        self.skill_tiers = tiers
        self.base_levels = {
            str(key): max(0, _coerce_int(value))
            for key, value in dict(self.base_levels).items()
        }

    def tier_for(self, track: Track) -> Optional[QualificationTier]:
        if track.category is not TrackCategory.SKILL:
            return None
        value = self.skill_tiers.get(track.key)
        if value is None:
            return None
        return QualificationTier.from_value(value)

    def set_tier(self, skill: Track | str, tier: QualificationTier | str) -> Track:
        track = find_track(skill, TrackCategory.SKILL)
        if track is None:
            raise ValueError(f"Unknown skill: {skill}")
        self.skill_tiers[track.key] = QualificationTier.from_value(tier).value
        return track

    def base_level(self, track: Track) -> int:
        return self.base_levels.get(track.qualified_key, 0)

    def grant_experience(self, amount: int) -> int:
        amount = int(amount)
        if amount < 0:
            raise ValueError("Experience grants cannot be negative")
        self.available_experience += amount
        self.total_experience += amount
        return self.available_experience

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["properties"] = {
            str(key): value for key, value in sorted(self.properties.items())
        }
        return payload

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Character":
        payload = validate_dataclass_payload(cls, data)
        known = {
            "user_id",
            "name",
            "available_experience",
            "total_experience",
            "properties",
            "skill_tiers",
            "base_levels",
        }
        return cls(**{key: value for key, value in payload.items() if key in known})


class CharacterValidator(ModelValidator):
    model = Character
    fields = {
        "user_id": FieldSpec(is_int_like, "integer user id"),
        "name": FieldSpec(is_non_empty_str, "non-empty string"),
        "available_experience": FieldSpec(int, "integer", required=False),
        "total_experience": FieldSpec(int, "integer", required=False),
        "properties": FieldSpec(
            MappingSpec(is_int_like, int), "mapping of integer keys to integers", required=False
        ),
        "skill_tiers": FieldSpec(
            MappingSpec(str, str), "mapping of skill names to tiers", required=False
        ),
        "base_levels": FieldSpec(
            MappingSpec(str, int), "mapping of track keys to levels", required=False
        ),
    }


Character.validator = CharacterValidator


__all__ = [
    "Character",
    "CharacterValidator",
    "DEFAULT_TRAINED_SKILLS",
    "default_skill_tiers",
]

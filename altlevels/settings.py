"""Curve constants and their TOML settings file."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping

from .models.tracks import QualificationTier, TrackCategory
from .storage import read_toml, write_toml

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CurveConstants:
    """``price = multiplier * level ** exponent`` for one curve."""

    multiplier: float
    exponent: float

    def to_dict(self) -> dict[str, float]:
        return {"multiplier": float(self.multiplier), "exponent": float(self.exponent)}


DEFAULT_SKILL_CURVES: Mapping[QualificationTier, CurveConstants] = MappingProxyType(
    {
        QualificationTier.UNQUALIFIED: CurveConstants(100.0, 1.3),
        QualificationTier.TRAINED: CurveConstants(60.0, 1.2),
        QualificationTier.SPECIALIZED: CurveConstants(20.0, 1.1),
    }
)
DEFAULT_ATTRIBUTE_CURVE = CurveConstants(100.0, 1.3)
DEFAULT_VITAL_CURVE = CurveConstants(100.0, 1.3)


def _default_skill_curves() -> Dict[QualificationTier, CurveConstants]:
    return dict(DEFAULT_SKILL_CURVES)


@dataclass(frozen=True, slots=True)
class CurveSettings:
    """Immutable set of curve constants, built once and handed to the curve."""

    skill: Dict[QualificationTier, CurveConstants] = field(
        default_factory=_default_skill_curves
    )
    attribute: CurveConstants = DEFAULT_ATTRIBUTE_CURVE
    vital: CurveConstants = DEFAULT_VITAL_CURVE

    def constants_for(
        self, category: TrackCategory, tier: QualificationTier | None = None
    ) -> CurveConstants:
        if category is TrackCategory.SKILL:
            if tier is None:
                raise ValueError("Skill curves require a qualification tier")
            return self.skill.get(tier, DEFAULT_SKILL_CURVES[tier])
        if category is TrackCategory.ATTRIBUTE:
            return self.attribute
        return self.vital

    def to_dict(self) -> dict[str, Any]:
        return {
            "skill": {
                tier.value: self.skill.get(tier, DEFAULT_SKILL_CURVES[tier]).to_dict()
                for tier in QualificationTier
            },
            "attribute": self.attribute.to_dict(),
            "vital": self.vital.to_dict(),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CurveSettings":
        """Build settings from a parsed document, defaulting anything invalid."""

        skill_section = payload.get("skill")
        if not isinstance(skill_section, Mapping):
            if skill_section is not None:
                log.warning("Ignoring malformed [skill] curve table")
            skill_section = {}
        skill: Dict[QualificationTier, CurveConstants] = {}
        for tier in QualificationTier:
            skill[tier] = _parse_constants(
                skill_section.get(tier.value),
                DEFAULT_SKILL_CURVES[tier],
                label=f"skill.{tier.value}",
            )
        return cls(
            skill=skill,
            attribute=_parse_constants(
                payload.get("attribute"), DEFAULT_ATTRIBUTE_CURVE, label="attribute"
            ),
            vital=_parse_constants(
                payload.get("vital"), DEFAULT_VITAL_CURVE, label="vital"
            ),
        )


def _parse_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    number = float(value)
    if not math.isfinite(number) or number < 0:
        return None
    return number


def _parse_constants(
    payload: Any, default: CurveConstants, *, label: str
) -> CurveConstants:
    if payload is None:
        return default
    if not isinstance(payload, Mapping):
        log.warning("Curve %s is not a table; using defaults", label)
        return default
    multiplier = _parse_number(payload.get("multiplier", default.multiplier))
    exponent = _parse_number(payload.get("exponent", default.exponent))
    if multiplier is None:
        log.warning("Curve %s has an invalid multiplier; using %s", label, default.multiplier)
        multiplier = default.multiplier
    if exponent is None:
        log.warning("Curve %s has an invalid exponent; using %s", label, default.exponent)
        exponent = default.exponent
    return CurveConstants(multiplier=multiplier, exponent=exponent)


def save_settings(path: Path, settings: CurveSettings) -> bool:
    try:
        write_toml(path, settings.to_dict())
    except OSError as exc:
        log.warning("Failed to save curve settings to %s: %s", path, exc)
        return False
    return True


def load_settings(path: Path) -> CurveSettings:
    """Load curve settings from ``path``.

    A missing file is created with the defaults.  Unreadable or malformed
    files fall back to the defaults; nothing is raised to the caller.
    """

    if not path.exists():
        log.info("Creating %s with default curves", path)
        settings = CurveSettings()
        save_settings(path, settings)
        return settings

    log.info("Loading curve settings from %s", path)
    payload = read_toml(path)
    if not isinstance(payload, Mapping):
        log.warning("Failed to parse curve settings %s; using defaults", path)
        return CurveSettings()
    return CurveSettings.from_dict(payload)


__all__ = [
    "CurveConstants",
    "CurveSettings",
    "DEFAULT_ATTRIBUTE_CURVE",
    "DEFAULT_SKILL_CURVES",
    "DEFAULT_VITAL_CURVE",
    "load_settings",
    "save_settings",
]

"""Domain models for alternate levelling."""

from ._validation import ModelValidationError, ModelValidator, validate_dataclass_payload
from .characters import Character
from .tracks import QualificationTier, Track, TrackCategory, find_track

__all__ = [
    "Character",
    "ModelValidationError",
    "ModelValidator",
    "QualificationTier",
    "Track",
    "TrackCategory",
    "find_track",
    "validate_dataclass_payload",
]

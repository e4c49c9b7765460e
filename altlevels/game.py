"""In-memory game state shared by the command cogs."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from .curves import CostCurve
from .host import CharacterHost, character_key
from .ledger import LevelingLedger
from .levels import LevelStore
from .models.characters import Character
from .models.tracks import Track
from .settings import CurveSettings

log = logging.getLogger(__name__)


class GameState:
    def __init__(self, settings: CurveSettings | None = None) -> None:
        self.characters: Dict[Tuple[int, int], Character] = {}
        self.host = CharacterHost()
        self.levels = LevelStore(self.host)
        self.curve = CostCurve(settings or CurveSettings())
        self.ledger = LevelingLedger(
            self.curve,
            self.levels,
            self.host,
            self.host,
            actor_key=character_key,
        )

    @property
    def settings(self) -> CurveSettings:
        return self.curve.settings

    def reload_curves(self, settings: CurveSettings) -> None:
        self.curve.settings = settings
        log.info("Curve settings reloaded")

    def register_character(self, guild_id: int, character: Character) -> Character:
        self.characters[(guild_id, character.user_id)] = character
        return character

    def get_character(self, guild_id: int, user_id: int) -> Optional[Character]:
        return self.characters.get((guild_id, user_id))

    def forget_character(self, guild_id: int, user_id: int) -> None:
        self.characters.pop((guild_id, user_id), None)

    def effective_level(self, character: Character, track: Track) -> int:
        return self.host.effective_level(character, track, self.levels)


__all__ = ["GameState"]

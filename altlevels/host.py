"""Host-side adapters binding the ledger to :class:`Character` records."""

from __future__ import annotations

from typing import Optional

from .config import BotConfig
from .levels import LevelStore
from .models.characters import Character
from .models.tracks import QualificationTier, Track


class CharacterHost:
    """Property store, currency ledger and qualification lookup for characters.

    Characters are plain in-memory records; persisting them after a raise is
    the caller's job.
    """

    def get_property(self, actor: Character, key: int) -> Optional[int]:
        return actor.properties.get(int(key))

    def set_property(self, actor: Character, key: int, value: int) -> None:
        actor.properties[int(key)] = int(value)

    def get_balance(self, actor: Character) -> int:
        return actor.available_experience

    def try_spend(self, actor: Character, amount: int) -> bool:
        amount = int(amount)
        if amount < 0:
            raise ValueError("Cannot spend a negative amount of experience")
        if amount > actor.available_experience:
            return False
        actor.available_experience -= amount
        return True

    def refund(self, actor: Character, amount: int) -> None:
        actor.available_experience += max(0, int(amount))

    def get_tier(self, actor: Character, track: Track) -> Optional[QualificationTier]:
        return actor.tier_for(track)

    def effective_level(self, actor: Character, track: Track, levels: LevelStore) -> int:
        """Host-granted level plus purchased alternate levels."""

        return actor.base_level(track) + levels.get(actor, track)


def character_key(actor: Character) -> int:
    return actor.user_id


def translate_raise_request(amount: int, config: BotConfig) -> int:
    """Turn a client raise request into a number of levels to buy.

    Small amounts are level counts.  Anything above ``max_raise_batch`` is the
    legacy "raise by a lot" request and buys ``legacy_raise_batch`` levels.
    """

    amount = int(amount)
    if amount <= 0:
        return 0
    if amount > config.max_raise_batch:
        return config.legacy_raise_batch
    return amount


__all__ = ["CharacterHost", "character_key", "translate_raise_request"]

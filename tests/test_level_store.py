from __future__ import annotations

import sys
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from altlevels.host import CharacterHost
from altlevels.levels import (
    ALT_LEVEL_KEY_BASE,
    LevelStore,
    LevelStoreError,
    PropertyWriteError,
    alt_level_key,
    is_alt_level_key,
)
from altlevels.models.characters import Character
from altlevels.models.tracks import TrackCategory, find_track, iter_tracks


def _make_store() -> tuple[LevelStore, Character]:
    return LevelStore(CharacterHost()), Character(user_id=1, name="Tester")


def test_every_track_starts_at_zero() -> None:
    store, character = _make_store()
    assert all(store.get(character, track) == 0 for track in iter_tracks())
    assert character.properties == {}


def test_reserved_keys_are_unique_and_inside_the_range() -> None:
    keys = [alt_level_key(track) for track in iter_tracks()]
    assert len(keys) == len(set(keys))
    assert all(is_alt_level_key(key) for key in keys)
    assert not is_alt_level_key(ALT_LEVEL_KEY_BASE - 1)

    assert alt_level_key(find_track("Melee Defense")) == 10_006
    assert alt_level_key(find_track("Strength")) == 10_101
    assert alt_level_key(find_track("Max Health")) == 10_201


def test_set_then_get_uses_the_property_map() -> None:
    store, character = _make_store()
    run = find_track("Run", TrackCategory.SKILL)

    store.set(character, run, 4)

    assert store.get(character, run) == 4
    assert character.properties == {alt_level_key(run): 4}
    assert store.levels(character, TrackCategory.SKILL)[run] == 4


def test_negative_levels_are_rejected() -> None:
    store, character = _make_store()
    with pytest.raises(ValueError):
        store.set(character, find_track("Focus"), -1)


def test_write_errors_surface_as_level_store_errors() -> None:
    class BrokenHost(CharacterHost):
        def set_property(self, actor, key, value):
            raise PropertyWriteError("disk full")

    store = LevelStore(BrokenHost())
    character = Character(user_id=1, name="Tester")

    with pytest.raises(LevelStoreError):
        store.set(character, find_track("Focus"), 1)


def test_levels_are_stored_under_the_reserved_key() -> None:
    store, character = _make_store()
    track = find_track("Missile Weapons")

    store.set(character, track, 7)

    assert store.key_for(track) == alt_level_key(track)
    assert character.properties == {store.key_for(track): 7}

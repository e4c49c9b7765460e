from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from altlevels.cogs.admin import AdminCog, apply_base_level, apply_tier, format_roster
from altlevels.cogs.base import MAX_CHOICES, track_choices
from altlevels.cogs.levels import (
    LevelsCog,
    format_inspect,
    format_levels_report,
    format_quote,
)
from altlevels.config import BotConfig
from altlevels.game import GameState
from altlevels.ledger import RaiseFailure
from altlevels.models import ModelValidationError
from altlevels.models.characters import Character
from altlevels.models.tracks import TrackCategory, find_track
from altlevels.storage import DataStore, read_toml, write_toml


def _make_cog(
    state: GameState | None = None, store: DataStore | None = None, cls: type = LevelsCog
):
    cog = cls.__new__(cls)
    cog.bot = SimpleNamespace(
        state=state or GameState(),
        config=BotConfig(token="token", max_raise_batch=100, legacy_raise_batch=10),
        store=store,
    )
    return cog


def _make_character(experience: int = 0) -> Character:
    return Character(user_id=11, name="Commander", available_experience=experience)


def test_raise_command_buys_the_requested_levels() -> None:
    cog = _make_cog()
    character = _make_character(10**6)

    batch = cog._perform_raise(character, "attribute:strength", 4)

    assert batch.raised == 4
    assert cog.state.levels.get(character, find_track("Strength")) == 4


def test_legacy_large_raise_buys_a_fixed_batch() -> None:
    cog = _make_cog()
    character = _make_character(10**9)

    batch = cog._perform_raise(character, "Run", 250)

    assert batch.requested == 10
    assert batch.raised == 10


def test_raise_command_reports_ledger_failures() -> None:
    cog = _make_cog()
    character = _make_character()

    batch = cog._perform_raise(character, "Axe", 1)

    assert batch.raised == 0
    assert batch.failure.failure is RaiseFailure.NOT_QUALIFIED


def test_levels_report_wraps_the_table_in_a_code_block() -> None:
    state = GameState()
    character = _make_character(12_345)

    report = format_levels_report(state, character, "attribute")

    assert report.startswith("Unassigned XP: 12'345\n```\n")
    assert report.endswith("\n```")
    assert "Strength" in report


def test_quote_and_inspect_messages() -> None:
    state = GameState()
    character = _make_character(421)
    character.base_levels["skill:melee_defense"] = 30

    quote = state.ledger.quote(character, "Melee Defense", 4)
    assert "cost 421 XP" in format_quote(quote, "Melee Defense")
    assert "covers 4 levels" in format_quote(quote, "Melee Defense")
    assert format_quote(state.ledger.quote(character, "nope"), "nope") == "Unknown track: nope."
    assert "cannot raise Axe" in format_quote(state.ledger.quote(character, "Axe"), "Axe")

    state.ledger.raise_by(character, "Melee Defense", 2)
    text = format_inspect(state, character, find_track("Melee Defense"))
    assert "Base 30 + purchased 2 = 32" in text
    assert "Qualification: Trained" in text
    assert "Next level: 137 XP" in text


def test_track_choices_filter_and_cap() -> None:
    everything = track_choices("")
    assert len(everything) == MAX_CHOICES

    defenses = track_choices("defense", TrackCategory.SKILL)
    assert [choice.name for choice in defenses] == [
        "Magic Defense",
        "Melee Defense",
        "Missile Defense",
    ]
    assert defenses[1].value == "skill:melee_defense"


def test_admin_helpers_update_characters() -> None:
    character = _make_character()

    assert apply_tier(character, "skill:sword", "specialized") == (
        "Commander is now Specialized in Sword."
    )
    assert apply_base_level(character, "Max Mana", 120) == "Commander's base Max Mana is now 120."
    assert character.base_levels["vital:max_mana"] == 120


def test_quote_command_caps_the_count_like_raise() -> None:
    cog = _make_cog()
    character = _make_character(500)

    quote = cog._perform_quote(character, "Melee Defense", 2**53)

    assert quote.count == 100
    assert cog._perform_quote(character, "Melee Defense", 0).count == 1


def test_register_creates_a_record_once(tmp_path: Path) -> None:
    cog = _make_cog(store=DataStore(root=tmp_path))

    created = asyncio.run(cog._register(1, 11, "Commander"))
    again = asyncio.run(cog._register(1, 11, "Impostor"))

    assert created is not None and created.name == "Commander"
    assert again is None
    assert cog.state.get_character(1, 11).name == "Commander"


def test_register_never_overwrites_an_unreadable_record(tmp_path: Path) -> None:
    store = DataStore(root=tmp_path)
    cog = _make_cog(store=store)
    path = tmp_path / "guilds" / "1" / "characters" / "11.toml"
    stored = {"user_id": "abc", "name": "Veteran", "available_experience": 9_000}
    write_toml(path, stored)

    with pytest.raises(ModelValidationError):
        asyncio.run(cog._register(1, 11, "Veteran"))

    assert read_toml(path) == stored


def test_roster_and_unregister(tmp_path: Path) -> None:
    store = DataStore(root=tmp_path)
    cog = _make_cog(store=store, cls=AdminCog)
    zed = Character(user_id=2, name="zed", available_experience=10, total_experience=40)
    asyncio.run(cog._save_character(1, zed))
    asyncio.run(cog._save_character(1, Character(user_id=3, name="Ann")))
    write_toml(tmp_path / "guilds" / "1" / "characters" / "4.toml", {"name": 5})

    roster = format_roster(asyncio.run(cog._list_characters(1)))

    assert roster.splitlines() == [
        "2 registered characters:",
        "- Ann: 0 unassigned of 0 XP",
        "- zed: 10 unassigned of 40 XP",
    ]
    assert asyncio.run(cog._remove_character(1, 2))
    assert not asyncio.run(cog._remove_character(1, 2))
    assert cog.state.get_character(1, 2) is None
    assert format_roster([]) == "No characters are registered in this server."


def test_register_never_overwrites_a_corrupt_file(tmp_path: Path) -> None:
    cog = _make_cog(store=DataStore(root=tmp_path))
    path = tmp_path / "guilds" / "1" / "characters" / "11.toml"
    path.parent.mkdir(parents=True)
    path.write_text("user_id = [broken", encoding="utf8")

    with pytest.raises(ModelValidationError):
        asyncio.run(cog._register(1, 11, "Veteran"))

    assert path.read_text(encoding="utf8") == "user_id = [broken"

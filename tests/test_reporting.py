from __future__ import annotations

import sys
from pathlib import Path

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from altlevels.game import GameState
from altlevels.models.characters import DEFAULT_TRAINED_SKILLS, Character
from altlevels.models.tracks import ATTRIBUTE_NAMES, QualificationTier, TrackCategory, find_track
from altlevels.reporting import COLUMN_WIDTH, list_tracks, render_levels


def _make_state() -> tuple[GameState, Character]:
    return GameState(), Character(user_id=3, name="Reader", available_experience=5_000)


def test_skill_rows_only_include_trained_skills_sorted_by_name() -> None:
    state, character = _make_state()
    character.set_tier("Sword", QualificationTier.SPECIALIZED)

    rows = list_tracks(state.ledger, character, TrackCategory.SKILL)

    names = [row.name for row in rows]
    assert names == sorted([*DEFAULT_TRAINED_SKILLS, "Sword"])
    assert "Axe" not in names


def test_vital_rows_exclude_pool_vitals() -> None:
    state, character = _make_state()
    rows = list_tracks(state.ledger, character, "vitals")
    assert [row.name for row in rows] == ["Max Health", "Max Mana", "Max Stamina"]


def test_rows_report_level_and_next_cost() -> None:
    state, character = _make_state()
    state.ledger.raise_by(character, "Strength", 3)

    rows = {row.name: row for row in list_tracks(state.ledger, character, TrackCategory.ATTRIBUTE)}

    assert sorted(rows) == sorted(ATTRIBUTE_NAMES)
    assert rows["Strength"].level == 3
    assert rows["Strength"].next_cost == int(100 * 3**1.3)
    assert rows["Focus"].level == 0
    assert rows["Focus"].next_cost == 0


def test_listing_is_read_only_and_repeatable() -> None:
    state, character = _make_state()
    before = (dict(character.properties), character.available_experience)

    first = list_tracks(state.ledger, character, TrackCategory.SKILL)
    second = list_tracks(state.ledger, character, TrackCategory.SKILL)

    assert first == second
    assert (dict(character.properties), character.available_experience) == before


def test_render_levels_lays_out_fixed_width_columns() -> None:
    state, character = _make_state()
    state.levels.set(character, find_track("Run"), 10)
    rows = list_tracks(state.ledger, character, TrackCategory.SKILL)

    text = render_levels(rows, TrackCategory.SKILL)
    lines = text.splitlines()

    assert lines[0] == "Level".ljust(COLUMN_WIDTH) + "Cost".ljust(COLUMN_WIDTH) + "Skill"
    assert len(lines) == len(rows) + 1
    run_line = next(line for line in lines if line.endswith("Run"))
    assert run_line == "10".ljust(COLUMN_WIDTH) + "950".ljust(COLUMN_WIDTH) + "Run"


def test_render_levels_explains_an_empty_listing() -> None:
    text = render_levels([], TrackCategory.VITAL)
    assert text.splitlines()[1] == "No vitals can be raised right now."

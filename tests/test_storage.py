from __future__ import annotations

import asyncio
import sys
import tomllib
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from altlevels.models.characters import Character
from altlevels.models.tracks import find_track
from altlevels.storage import DataStore, resolve_storage_root, toml_dumps, write_toml


def test_write_toml_preserves_original_on_replace_failure(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = tmp_path / "data.toml"
    write_toml(target, {"alpha": 1})
    original_contents = target.read_text(encoding="utf8")

    def _boom(src: Path, dst: Path) -> None:
        raise RuntimeError("simulated failure")

    monkeypatch.setattr("altlevels.storage.os.replace", _boom)

    with pytest.raises(RuntimeError):
        write_toml(target, {"alpha": 2})

    assert target.read_text(encoding="utf8") == original_contents
    leftovers = [p for p in target.parent.iterdir() if p.name != "data.toml"]
    assert leftovers == []


def test_toml_dumps_quotes_keys_that_need_it() -> None:
    text = toml_dumps({"levels": {"skill:run": 3, "10006": 2}, "name": "Tester"})
    assert tomllib.loads(text) == {"name": "Tester", "levels": {"skill:run": 3, "10006": 2}}


def test_character_round_trips_through_the_store(tmp_path: Path) -> None:
    store = DataStore(root=tmp_path)
    character = Character(user_id=42, name="Saver", available_experience=1_234)
    character.properties[10_006] = 5
    character.set_tier("Sword", "specialized")
    character.base_levels[find_track("Strength").qualified_key] = 60

    asyncio.run(store.upsert_character(1001, character.to_dict()))
    loaded = asyncio.run(store.get_character(1001, 42))

    assert loaded is not None
    assert Character.from_dict(loaded) == character
    assert (tmp_path / "guilds" / "1001" / "characters" / "42.toml").exists()


def test_missing_and_deleted_characters(tmp_path: Path) -> None:
    store = DataStore(root=tmp_path)

    assert asyncio.run(store.get_character(1, 2)) is None
    assert asyncio.run(store.list_characters(1)) == {}

    asyncio.run(store.upsert_character(1, Character(user_id=2, name="Gone").to_dict()))
    assert list(asyncio.run(store.list_characters(1))) == ["2"]
    assert asyncio.run(store.delete_character(1, 2))
    assert not asyncio.run(store.delete_character(1, 2))
    assert asyncio.run(store.get_character(1, 2)) is None


def test_upsert_requires_a_user_id(tmp_path: Path) -> None:
    store = DataStore(root=tmp_path)
    with pytest.raises(ValueError):
        asyncio.run(store.upsert_character(1, {"name": "Nobody"}))


def test_storage_root_honours_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ALTLEVELS_DATA_ROOT", str(tmp_path / "data"))
    assert resolve_storage_root(PROJECT_BASE) == (tmp_path / "data").resolve()
    assert DataStore().settings_path == (tmp_path / "data").resolve() / "curves.toml"


def test_names_outside_the_basic_plane_survive_a_save(tmp_path: Path) -> None:
    store = DataStore(root=tmp_path)
    character = Character(user_id=5, name="\U0001F525Blaze été")

    asyncio.run(store.upsert_character(7, character.to_dict()))
    loaded = asyncio.run(store.get_character(7, 5))

    assert loaded is not None
    assert loaded["name"] == "\U0001F525Blaze été"
    assert tomllib.loads(toml_dumps({"emoji": "\U0001F600"})) == {"emoji": "\U0001F600"}

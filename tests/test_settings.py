from __future__ import annotations

import logging
import sys
import tomllib
from pathlib import Path

import pytest

PROJECT_BASE = Path(__file__).resolve().parents[1]
if str(PROJECT_BASE) not in sys.path:
    sys.path.insert(0, str(PROJECT_BASE))

from altlevels.models.tracks import QualificationTier, TrackCategory
from altlevels.settings import (
    DEFAULT_SKILL_CURVES,
    CurveConstants,
    CurveSettings,
    load_settings,
    save_settings,
)


def test_missing_file_is_created_with_defaults(tmp_path: Path) -> None:
    path = tmp_path / "curves.toml"

    settings = load_settings(path)

    assert settings == CurveSettings()
    assert path.exists()
    with path.open("rb") as handle:
        written = tomllib.load(handle)
    assert written["skill"]["trained"] == {"multiplier": 60.0, "exponent": 1.2}
    assert written["attribute"] == {"multiplier": 100.0, "exponent": 1.3}


def test_saved_settings_load_back(tmp_path: Path) -> None:
    path = tmp_path / "curves.toml"
    custom = CurveSettings(
        skill={
            **DEFAULT_SKILL_CURVES,
            QualificationTier.TRAINED: CurveConstants(multiplier=75.0, exponent=1.25),
        },
        vital=CurveConstants(multiplier=50.0, exponent=2.0),
    )

    assert save_settings(path, custom)
    loaded = load_settings(path)

    assert loaded.constants_for(TrackCategory.SKILL, QualificationTier.TRAINED) == CurveConstants(75.0, 1.25)
    assert loaded.constants_for(TrackCategory.VITAL) == CurveConstants(50.0, 2.0)
    assert loaded.attribute == CurveConstants(100.0, 1.3)


def test_malformed_file_falls_back_to_defaults(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "curves.toml"
    path.write_text("[skill.trained\nmultiplier = ", encoding="utf8")

    with caplog.at_level(logging.WARNING, logger="altlevels"):
        settings = load_settings(path)

    assert settings == CurveSettings()
    assert any("curve settings" in record.getMessage() for record in caplog.records)


def test_invalid_entries_fall_back_individually(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    path = tmp_path / "curves.toml"
    path.write_text(
        "\n".join(
            [
                "[attribute]",
                'multiplier = "lots"',
                "exponent = 1.5",
                "",
                "[skill.specialized]",
                "multiplier = 30",
                "exponent = -2",
                "",
            ]
        ),
        encoding="utf8",
    )

    with caplog.at_level(logging.WARNING, logger="altlevels"):
        settings = load_settings(path)

    assert settings.attribute == CurveConstants(100.0, 1.5)
    assert settings.skill[QualificationTier.SPECIALIZED] == CurveConstants(30.0, 1.1)
    assert settings.skill[QualificationTier.TRAINED] == DEFAULT_SKILL_CURVES[QualificationTier.TRAINED]
    assert len(caplog.records) == 2

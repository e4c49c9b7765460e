"""TOML persistence for character records and the curve settings file.

Everything that touches disk goes through :class:`DataStore`.  Character
records live one file per character under
``<root>/guilds/<guild_id>/characters/<user_id>.toml``; the curve settings live
in ``<root>/curves.toml``.  Writes go through a temporary file that is swapped
into place with :func:`os.replace`, so a crash never leaves a half-written
record behind.
"""

from __future__ import annotations

import asyncio
import logging
import math
import os
import tempfile
from copy import deepcopy
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, MutableMapping, Optional
from urllib.parse import quote, unquote

import tomllib

log = logging.getLogger(__name__)

_STORAGE_LOCK = asyncio.Lock()

SETTINGS_FILENAME = "curves.toml"


def _is_site_packages(path: Path) -> bool:
    """Return ``True`` if ``path`` is inside a site/dist-packages directory."""

    normalized = {part.lower() for part in path.parts}
    return "site-packages" in normalized or "dist-packages" in normalized


def resolve_storage_root(package_root: Path) -> Path:
    """Determine where mutable data should be stored.

    ``ALTLEVELS_DATA_ROOT`` wins when set.  Otherwise data sits next to the
    source checkout, unless the package was installed somewhere read-only, in
    which case the working directory is used.
    """

    override = os.getenv("ALTLEVELS_DATA_ROOT")
    if override:
        return Path(override).expanduser().resolve()

    if _is_site_packages(package_root) or not os.access(package_root, os.W_OK):
        return Path.cwd().resolve()

    return package_root


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------


def _normalize_for_toml(value: Any) -> Any:
    if isinstance(value, MappingProxyType):
        value = dict(value)
    if isinstance(value, Mapping):
        normalized: Dict[str, Any] = {}
        for key, item in value.items():
            if item is None:
                continue
            normalized[str(key)] = _normalize_for_toml(item)
        return normalized
    if isinstance(value, (list, tuple)):
        return [_normalize_for_toml(item) for item in value if item is not None]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, (str, int, bool)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0.0
        return value
    return str(value)


def _quote_string(value: str) -> str:
    replacements = {
        "\\": "\\\\",
        '"': '\\"',
        "\b": "\\b",
        "\t": "\\t",
        "\n": "\\n",
        "\f": "\\f",
        "\r": "\\r",
    }

    def _escape_char(char: str) -> str:
        if char in replacements:
            return replacements[char]
        code = ord(char)
        if 0x20 <= code <= 0x7E:
            return char
        if code > 0xFFFF:
            return f"\\U{code:08x}"
        return f"\\u{code:04x}"

    return '"' + "".join(_escape_char(char) for char in value) + '"'


def _format_key(key: str) -> str:
    if key and all(char.isalnum() or char in "_-" for char in key):
        return key
    return _quote_string(key)


def _format_toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # Floats keep a decimal point so they read back as floats.
        text = repr(value)
        if "." not in text and "e" not in text and "E" not in text:
            text = f"{text}.0"
        return text
    if isinstance(value, str):
        return _quote_string(value)
    if isinstance(value, list):
        return "[" + ", ".join(_format_toml_value(item) for item in value) + "]"
    if isinstance(value, Mapping):
        raise TypeError("Mappings must be serialised as tables")
    return _quote_string(str(value))


def _serialize_table(
    data: Mapping[str, Any],
    *,
    parent: tuple[str, ...] = (),
    output: list[str],
) -> None:
    simple_items = sorted(
        ((key, value) for key, value in data.items() if not isinstance(value, Mapping)),
        key=lambda item: item[0],
    )
    tables = sorted(
        ((key, value) for key, value in data.items() if isinstance(value, Mapping)),
        key=lambda item: item[0],
    )

    for key, value in simple_items:
        output.append(f"{_format_key(key)} = {_format_toml_value(value)}")

    for key, value in tables:
        path = (*parent, key)
        if output and output[-1] != "":
            output.append("")
        output.append("[" + ".".join(_format_key(part) for part in path) + "]")
        _serialize_table(value, parent=path, output=output)


def toml_dumps(data: Mapping[str, Any]) -> str:
    normalized = _normalize_for_toml(data)
    if not isinstance(normalized, Mapping):
        raise TypeError("Top level TOML document must be a mapping")
    output: list[str] = []
    _serialize_table(normalized, output=output)
    return "\n".join(output) + "\n"


def read_toml(path: Path) -> Any:
    """Load ``path`` or return ``None`` if it is missing or unreadable."""

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return None
    except (tomllib.TOMLDecodeError, OSError) as exc:
        log.warning("Unable to read %s: %s", path, exc)
        return None


def write_toml(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Path | None = None
    data = toml_dumps(payload)
    try:
        with tempfile.NamedTemporaryFile(
            "w", encoding="utf8", dir=path.parent, delete=False
        ) as handle:
            temp_path = Path(handle.name)
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_path, path)
        temp_path = None
    finally:
        if temp_path is not None:
            try:
                temp_path.unlink()
            except FileNotFoundError:
                pass


# ---------------------------------------------------------------------------
# DataStore implementation
# ---------------------------------------------------------------------------


class DataStore:
    """Asynchronous datastore for character records."""

    def __init__(self, root: Path | None = None) -> None:
        self._package_root = Path(__file__).resolve().parent.parent
        if root is None:
            root = resolve_storage_root(self._package_root)
        self._storage_root = Path(root)

    @property
    def root(self) -> Path:
        return self._storage_root

    @property
    def settings_path(self) -> Path:
        return self._storage_root / SETTINGS_FILENAME

    async def get_character(
        self, guild_id: int | str, user_id: int | str
    ) -> Optional[Dict[str, Any]]:
        async with _STORAGE_LOCK:
            payload = read_toml(self._character_path(guild_id, user_id))
            if isinstance(payload, MutableMapping):
                return dict(payload)
            return None

    async def upsert_character(
        self, guild_id: int | str, character_data: Mapping[str, Any]
    ) -> None:
        user_id = character_data.get("user_id")
        if user_id is None:
            raise ValueError("Character payload is missing a user_id")
        async with _STORAGE_LOCK:
            payload = deepcopy(dict(character_data))
            write_toml(self._character_path(guild_id, user_id), payload)

    async def has_character(self, guild_id: int | str, user_id: int | str) -> bool:
        async with _STORAGE_LOCK:
            return self._character_path(guild_id, user_id).exists()

    async def delete_character(self, guild_id: int | str, user_id: int | str) -> bool:
        async with _STORAGE_LOCK:
            try:
                self._character_path(guild_id, user_id).unlink()
            except FileNotFoundError:
                return False
            return True

    async def list_characters(self, guild_id: int | str) -> dict[str, Dict[str, Any]]:
        async with _STORAGE_LOCK:
            directory = self._characters_dir(guild_id)
            if not directory.exists():
                return {}
            result: dict[str, Dict[str, Any]] = {}
            for path in sorted(directory.glob("*.toml")):
                payload = read_toml(path)
                if isinstance(payload, MutableMapping):
                    result[_decode_key(path.stem)] = dict(payload)
            return result

    def _characters_dir(self, guild_id: int | str) -> Path:
        return self._storage_root / "guilds" / _encode_key(guild_id) / "characters"

    def _character_path(self, guild_id: int | str, user_id: int | str) -> Path:
        return self._characters_dir(guild_id) / f"{_encode_key(user_id)}.toml"


def _encode_key(key: int | str) -> str:
    return quote(str(key), safe="")


def _decode_key(filename: str) -> str:
    return unquote(filename)


__all__ = ["DataStore", "read_toml", "resolve_storage_root", "toml_dumps", "write_toml"]

"""Shared helpers for cogs."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Tuple

import discord
from discord import app_commands
from discord.ext import commands

from ..config import BotConfig
from ..game import GameState
from ..models import ModelValidationError
from ..models.characters import Character
from ..models.tracks import QualificationTier, TrackCategory, iter_tracks, tracks_for
from ..storage import DataStore

log = logging.getLogger(__name__)

UNREADABLE_RECORD_HINT = (
    "Your stored record could not be read. Ask a server administrator to repair it."
)

# Discord rejects autocomplete responses with more entries than this.
MAX_CHOICES = 25

CATEGORY_CHOICES: list[app_commands.Choice[str]] = [
    app_commands.Choice(name=f"{category.display_name}s", value=category.value)
    for category in TrackCategory
]

TIER_CHOICES: list[app_commands.Choice[str]] = [
    app_commands.Choice(name=tier.display_name, value=tier.value)
    for tier in QualificationTier
]


def track_choices(
    current: str, category: TrackCategory | None = None
) -> list[app_commands.Choice[str]]:
    needle = current.strip().lower()
    tracks = tracks_for(category) if category is not None else tuple(iter_tracks())
    results: list[app_commands.Choice[str]] = []
    for track in sorted(tracks, key=lambda track: track.name):
        if needle and needle not in track.name.lower():
            continue
        label = track.name if category is not None else f"{track.name} ({track.category.value})"
        results.append(app_commands.Choice(name=label, value=track.qualified_key))
        if len(results) >= MAX_CHOICES:
            break
    return results


class AltLevelsCog(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self._character_locks: Dict[Tuple[int, int], asyncio.Lock] = {}

    @property
    def store(self) -> DataStore:
        return self.bot.store  # type: ignore[return-value]

    @property
    def state(self) -> GameState:
        return self.bot.state  # type: ignore[return-value]

    @property
    def config(self) -> BotConfig:
        return self.bot.config  # type: ignore[return-value]

    def character_lock(self, guild_id: int, user_id: int) -> asyncio.Lock:
        key = (guild_id, user_id)
        lock = self._character_locks.get(key)
        if lock is None:
            lock = self._character_locks[key] = asyncio.Lock()
        return lock

    async def _fetch_character(self, guild_id: int, user_id: int) -> Optional[Character]:
        """Load a stored character, or ``None`` when the member has no record.

        A record that exists but fails validation raises
        :class:`ModelValidationError` so callers never mistake it for a
        missing one.
        """

        data = await self.store.get_character(guild_id, user_id)
        if not data:
            self.state.forget_character(guild_id, user_id)
            return None
        try:
            character = Character.from_dict(data)
        except ModelValidationError as exc:
            log.error(
                "Failed to load character %s for guild %s: %s",
                user_id,
                guild_id,
                "; ".join(exc.errors) or exc,
            )
            raise
        return self.state.register_character(guild_id, character)

    async def _list_characters(self, guild_id: int) -> List[Character]:
        records = await self.store.list_characters(guild_id)
        characters: List[Character] = []
        for user_id, data in records.items():
            try:
                characters.append(Character.from_dict(data))
            except ModelValidationError as exc:
                log.warning(
                    "Skipping unreadable character %s in guild %s: %s",
                    user_id,
                    guild_id,
                    "; ".join(exc.errors) or exc,
                )
        return characters

    async def _remove_character(self, guild_id: int, user_id: int) -> bool:
        removed = await self.store.delete_character(guild_id, user_id)
        self.state.forget_character(guild_id, user_id)
        return removed

    async def _save_character(self, guild_id: int, character: Character) -> None:
        await self.store.upsert_character(guild_id, character.to_dict())
        self.state.register_character(guild_id, character)

    async def send(
        self, interaction: discord.Interaction, message: str, *, ephemeral: bool = True
    ) -> None:
        if interaction.response.is_done():
            await interaction.followup.send(message, ephemeral=ephemeral)
        else:
            await interaction.response.send_message(message, ephemeral=ephemeral)

    async def cog_app_command_error(
        self, interaction: discord.Interaction, error: app_commands.AppCommandError
    ) -> None:
        if isinstance(error, app_commands.CheckFailure):
            await self.send(interaction, str(error))
            return
        if isinstance(getattr(error, "original", None), ModelValidationError):
            await self.send(interaction, UNREADABLE_RECORD_HINT)
            return
        command = interaction.command.name if interaction.command else "unknown"
        log.error("Command /%s failed", command, exc_info=error)
        await self.send(interaction, "Something went wrong while handling that command.")


__all__ = [
    "AltLevelsCog",
    "CATEGORY_CHOICES",
    "MAX_CHOICES",
    "TIER_CHOICES",
    "UNREADABLE_RECORD_HINT",
    "track_choices",
]

from __future__ import annotations

import logging

import discord
from discord import app_commands
from discord.ext import commands

from ..game import GameState
from ..host import translate_raise_request
from ..ledger import Quote, RaiseBatch, RaiseFailure
from ..models import ModelValidationError
from ..models.characters import Character
from ..models.tracks import Track, TrackCategory, find_track
from ..reporting import list_tracks, render_levels
from ..utils import format_number, pluralize
from .base import CATEGORY_CHOICES, UNREADABLE_RECORD_HINT, AltLevelsCog, track_choices

log = logging.getLogger(__name__)

REGISTER_HINT = "Register first with /register."


def format_levels_report(
    state: GameState, character: Character, category: TrackCategory | str
) -> str:
    rows = list_tracks(state.ledger, character, category)
    table = render_levels(rows, category)
    balance = format_number(character.available_experience)
    return f"Unassigned XP: {balance}\n```\n{table}\n```"


def format_quote(quote: Quote, requested: str) -> str:
    if quote.track is None:
        return f"Unknown track: {requested}."
    if quote.failure is RaiseFailure.NOT_QUALIFIED:
        return f"You cannot raise {quote.track.name} yet."
    if quote.failure is not None:
        return f"You have no record of {quote.track.name}."
    lines = [
        f"{quote.track.name} is at level {format_number(quote.level)}.",
        f"The next {pluralize(quote.count, 'level')} cost {format_number(quote.total_cost)} XP.",
        f"Your {format_number(quote.balance)} XP covers {pluralize(quote.affordable, 'level')}.",
    ]
    return "\n".join(lines)


def format_inspect(state: GameState, character: Character, track: Track) -> str:
    base = character.base_level(track)
    alternate = state.levels.get(character, track)
    total = state.effective_level(character, track)
    lines = [f"**{track.name}** ({track.category.value})"]
    tier = character.tier_for(track)
    if tier is not None:
        lines.append(f"Qualification: {tier.display_name}")
    lines.append(
        f"Base {format_number(base)} + purchased {format_number(alternate)}"
        f" = {format_number(total)}"
    )
    next_cost = state.ledger.next_cost(character, track)
    if next_cost is not None:
        lines.append(f"Next level: {format_number(next_cost)} XP")
    return "\n".join(lines)


class LevelsCog(AltLevelsCog):
    def _perform_raise(self, character: Character, track: str, amount: int) -> RaiseBatch:
        count = translate_raise_request(amount, self.config)
        return self.state.ledger.raise_by(character, track, count)

    def _perform_quote(self, character: Character, track: str, amount: int) -> Quote:
        count = min(max(1, amount), self.config.max_raise_batch)
        return self.state.ledger.quote(character, track, count)

    async def _register(self, guild_id: int, user_id: int, name: str) -> Character | None:
        """Create and save a new character; ``None`` if one is already stored.

        An unreadable stored record raises :class:`ModelValidationError` and is
        left untouched.
        """

        if await self._fetch_character(guild_id, user_id):
            return None
        if await self.store.has_character(guild_id, user_id):
            raise ModelValidationError(Character, ["stored record is not valid TOML"])
        character = Character(user_id=user_id, name=name)
        await self._save_character(guild_id, character)
        return character

    @app_commands.command(name="register", description="Create your progression record")
    @app_commands.guild_only()
    async def register(self, interaction: discord.Interaction) -> None:
        guild = interaction.guild
        assert guild is not None
        async with self.character_lock(guild.id, interaction.user.id):
            try:
                character = await self._register(
                    guild.id, interaction.user.id, interaction.user.display_name
                )
            except ModelValidationError:
                await self.send(interaction, UNREADABLE_RECORD_HINT)
                return
            if character is None:
                await self.send(interaction, "You are already registered.")
                return
        log.info("Registered character %s in guild %s", character.user_id, guild.id)
        await self.send(
            interaction,
            f"Welcome, {character.name}. Use /levels to see what you can raise.",
        )

    @app_commands.command(name="levels", description="List your alternate levels and their costs")
    @app_commands.describe(category="Which tracks to list")
    @app_commands.choices(category=CATEGORY_CHOICES)
    @app_commands.guild_only()
    async def levels(self, interaction: discord.Interaction, category: str = "skill") -> None:
        guild = interaction.guild
        assert guild is not None
        character = await self._fetch_character(guild.id, interaction.user.id)
        if not character:
            await self.send(interaction, REGISTER_HINT)
            return
        await self.send(interaction, format_levels_report(self.state, character, category))

    @app_commands.command(name="raise", description="Spend experience to raise a skill, attribute or vital")
    @app_commands.describe(track="Skill, attribute or vital to raise", count="How many levels to buy")
    @app_commands.guild_only()
    async def raise_track(
        self, interaction: discord.Interaction, track: str, count: int = 1
    ) -> None:
        guild = interaction.guild
        assert guild is not None
        async with self.character_lock(guild.id, interaction.user.id):
            character = await self._fetch_character(guild.id, interaction.user.id)
            if not character:
                await self.send(interaction, REGISTER_HINT)
                return
            batch = self._perform_raise(character, track, count)
            if batch.raised:
                await self._save_character(guild.id, character)
        await self.send(interaction, batch.message, ephemeral=not batch.success)

    @app_commands.command(name="quote", description="Preview the cost of raising a track")
    @app_commands.describe(track="Skill, attribute or vital", count="How many levels to price")
    @app_commands.guild_only()
    async def quote(self, interaction: discord.Interaction, track: str, count: int = 1) -> None:
        guild = interaction.guild
        assert guild is not None
        character = await self._fetch_character(guild.id, interaction.user.id)
        if not character:
            await self.send(interaction, REGISTER_HINT)
            return
        quote = self._perform_quote(character, track, count)
        await self.send(interaction, format_quote(quote, track))

    @app_commands.command(name="inspect", description="Show base and purchased levels of a track")
    @app_commands.describe(track="Skill, attribute or vital")
    @app_commands.guild_only()
    async def inspect(self, interaction: discord.Interaction, track: str) -> None:
        guild = interaction.guild
        assert guild is not None
        character = await self._fetch_character(guild.id, interaction.user.id)
        if not character:
            await self.send(interaction, REGISTER_HINT)
            return
        resolved = find_track(track)
        if resolved is None:
            await self.send(interaction, f"Unknown track: {track}.")
            return
        await self.send(interaction, format_inspect(self.state, character, resolved))

    @raise_track.autocomplete("track")
    @quote.autocomplete("track")
    @inspect.autocomplete("track")
    async def track_autocomplete(
        self, interaction: discord.Interaction, current: str
    ) -> list[app_commands.Choice[str]]:
        return track_choices(current)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(LevelsCog(bot))
